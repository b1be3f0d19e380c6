"""
AI Content Writer

SEO content automation for a site and its product catalog:
- Scores content against a fixed on-page SEO checklist
- Optimizes under-scoring content through a completion backend
- Derives and grows a brand profile from published content
- Generates, schedules and publishes new articles
- Matches shopper queries to catalog products
"""

__version__ = "1.0.0"
__author__ = "AI Content Writer Team"

from .config import OptionKeys, WriterConfig

from .models import (
    BrandProfile,
    ContentDraft,
    Document,
    ErrorType,
    OperationResult,
    Priority,
    ProductRecord,
    ScanResult,
    ScheduledItem,
    ScheduleStatus,
    SeoMeta,
)

from .llm_client import (
    CompletionBackend,
    LLMClient,
    LLMClientError,
    create_llm_client,
)

from .repositories import (
    InMemoryContentRepository,
    InMemoryOptionStore,
    InMemoryProductCatalog,
    InMemoryTaskScheduler,
    JsonFileOptionStore,
    RepositoryError,
)

# Scoring and optimization
from .seo_scorer import SeoScoreBreakdown, SeoScorer
from .optimizer import ContentOptimizer

# Brand profile
from .brand import BrandAnalyzer, merge_brand_profiles

# Product search
from .product_matcher import ProductMatcher, StoreAssistant, fallback_search
from .product_loader import ProductLoadError, load_products

# Automation
from .generator import ContentGenerator, calculate_reading_time
from .learning import LearningSystem
from .scanner import ContentScanner
from .scheduler import AutomationRunner, ContentScheduler
from .ecommerce import EcommerceAnalyzer

from .seo_backends import SeoMetadataBackend, get_seo_backend
from .response_parsing import extract_id_list, extract_json_object

__all__ = [
    # Configuration
    "OptionKeys",
    "WriterConfig",
    # Models
    "BrandProfile",
    "ContentDraft",
    "Document",
    "ErrorType",
    "OperationResult",
    "Priority",
    "ProductRecord",
    "ScanResult",
    "ScheduledItem",
    "ScheduleStatus",
    "SeoMeta",
    # Completion backend
    "CompletionBackend",
    "LLMClient",
    "LLMClientError",
    "create_llm_client",
    # Collaborators
    "InMemoryContentRepository",
    "InMemoryOptionStore",
    "InMemoryProductCatalog",
    "InMemoryTaskScheduler",
    "JsonFileOptionStore",
    "RepositoryError",
    "SeoMetadataBackend",
    "get_seo_backend",
    # Scoring and optimization
    "SeoScoreBreakdown",
    "SeoScorer",
    "ContentOptimizer",
    # Brand profile
    "BrandAnalyzer",
    "merge_brand_profiles",
    # Product search
    "ProductMatcher",
    "StoreAssistant",
    "fallback_search",
    "ProductLoadError",
    "load_products",
    # Automation
    "ContentGenerator",
    "calculate_reading_time",
    "LearningSystem",
    "ContentScanner",
    "AutomationRunner",
    "ContentScheduler",
    "EcommerceAnalyzer",
    # Response parsing
    "extract_id_list",
    "extract_json_object",
]
