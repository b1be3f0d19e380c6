"""
FastAPI wrapper for AI Content Writer - Vercel Serverless Function.

This module exposes scoring, optimization, product matching and brand
profile merging as a REST API.
"""

from typing import Any, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from ai_content_writer import __version__
from ai_content_writer.brand import merge_brand_profiles
from ai_content_writer.config import WriterConfig
from ai_content_writer.llm_client import create_llm_client
from ai_content_writer.models import ErrorType, ProductRecord
from ai_content_writer.optimizer import ContentOptimizer
from ai_content_writer.product_matcher import ProductMatcher
from ai_content_writer.seo_scorer import SeoScorer

app = FastAPI(
    title="AI Content Writer API",
    description="SEO scoring, content optimization, product matching and brand profile merging",
    version=__version__,
)

# Enable CORS for all origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Failure category -> HTTP status
ERROR_STATUS = {
    ErrorType.VALIDATION.value: 400,
    ErrorType.NOT_FOUND.value: 404,
    ErrorType.CONFIGURATION.value: 500,
    ErrorType.REPOSITORY.value: 500,
    ErrorType.BACKEND.value: 502,
}


def _config(site_url: Optional[str] = None) -> WriterConfig:
    overrides = {"site_url": site_url} if site_url else {}
    return WriterConfig.from_env(**overrides)


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str


class ScoreRequest(BaseModel):
    """Request model for scoring content."""
    content: str = Field(..., description="Content to score (HTML or plain text)")
    keyword: str = Field("", description="Focus keyword")
    site_url: Optional[str] = Field(None, description="Site origin used to recognise internal links")


class ScoreResponse(BaseModel):
    """Response model for scoring results."""
    score: int
    is_optimized: bool
    breakdown: dict[str, Any]
    recommendations: list[str]


class OptimizeRequest(BaseModel):
    """Request model for optimizing content."""
    content: str = Field(..., description="Content to optimize")
    keyword: str = Field(..., description="Focus keyword")
    brand_profile: Optional[dict[str, Any]] = Field(None, description="Brand profile for the prompt")
    site_url: Optional[str] = Field(None, description="Site origin used to recognise internal links")


class OptimizeResponse(BaseModel):
    """Response model for optimization results."""
    success: bool
    message: str
    score: int
    content: str
    previous_score: Optional[int] = None
    improvements: list[str] = Field(default_factory=list)


class ProductInput(BaseModel):
    """Single product input model."""
    id: int
    name: str
    description: str = ""
    short_description: str = ""
    price: Optional[float] = None
    categories: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    url: str = ""
    image: str = ""
    in_stock: bool = True


class MatchRequest(BaseModel):
    """Request model for product matching."""
    query: str = Field(..., description="Shopper query")
    products: list[ProductInput] = Field(..., description="Candidate products")
    limit: int = Field(5, ge=1, le=50, description="Maximum products to return")
    use_ai: bool = Field(True, description="Rank with the completion backend when a key is configured")


class MatchResponse(BaseModel):
    """Response model for product matching."""
    query: str
    source: str
    total_found: int
    products: list[dict[str, Any]]


class MergeRequest(BaseModel):
    """Request model for merging brand profiles."""
    existing: dict[str, Any] = Field(default_factory=dict, description="Stored profile")
    incoming: dict[str, Any] = Field(default_factory=dict, description="Newly derived profile")


class MergeResponse(BaseModel):
    """Response model for merged brand profiles."""
    profile: dict[str, Any]


@app.get("/api/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        version=__version__,
    )


@app.post("/api/score", response_model=ScoreResponse)
async def score_content(request: ScoreRequest):
    """Score content against the 10-point SEO checklist."""
    scorer = SeoScorer(site_url=request.site_url)
    breakdown = scorer.evaluate(request.content, request.keyword)
    return ScoreResponse(
        score=breakdown.score,
        is_optimized=breakdown.score >= scorer.min_score,
        breakdown=breakdown.to_dict(),
        recommendations=scorer.recommendations(request.content, request.keyword),
    )


@app.post("/api/optimize", response_model=OptimizeResponse)
def optimize_content(request: OptimizeRequest):
    """
    Optimize content for a focus keyword.

    Content already scoring 8 or more is returned unchanged without
    contacting the completion backend.
    """
    config = _config(request.site_url)
    optimizer = ContentOptimizer(create_llm_client(config), config=config)
    result = optimizer.optimize(request.content, request.keyword, brand_profile=request.brand_profile or {})

    if not result.success:
        raise HTTPException(
            status_code=ERROR_STATUS.get(result.error_type, 500),
            detail=result.message,
        )

    return OptimizeResponse(
        success=True,
        message=result.message,
        score=result.get("score"),
        content=result.get("content"),
        previous_score=result.get("previous_score"),
        improvements=result.get("improvements", []),
    )


@app.post("/api/match", response_model=MatchResponse)
def match_products(request: MatchRequest):
    """
    Rank products for a shopper query.

    Falls back to keyword ranking when no backend key is configured or the
    backend answer is unusable.
    """
    config = _config()
    backend = create_llm_client(config) if request.use_ai and config.has_api_key else None
    matcher = ProductMatcher(backend, config)
    products = [ProductRecord(**p.model_dump()) for p in request.products]

    ranked, source = matcher.rank(request.query, products, request.limit)
    return MatchResponse(
        query=request.query,
        source=source,
        total_found=len(ranked),
        products=[p.to_dict() for p in ranked],
    )


@app.post("/api/brand-profile/merge", response_model=MergeResponse)
async def merge_profiles(request: MergeRequest):
    """Union two brand profiles. Neither input is modified."""
    return MergeResponse(profile=merge_brand_profiles(request.existing, request.incoming))


@app.get("/api/info")
async def api_info():
    """Get API information and usage instructions."""
    return {
        "name": "AI Content Writer API",
        "version": __version__,
        "description": "SEO content automation tool",
        "endpoints": {
            "GET /api/health": "Health check",
            "POST /api/score": "Score content for a focus keyword",
            "POST /api/optimize": "Optimize content scoring below the threshold",
            "POST /api/match": "Rank products for a shopper query",
            "POST /api/brand-profile/merge": "Merge two brand profiles",
            "GET /api/info": "This endpoint",
        },
        "documentation": "/docs",
        "openapi": "/openapi.json",
    }
