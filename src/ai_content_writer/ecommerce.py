"""
Store analysis for product-driven content.

Finds products and categories that need copy, seasonal angles and missing
product SEO meta, and drafts promotional articles for single products.
"""

import json
import logging
from datetime import datetime, time, timedelta
from typing import Any, Callable, Optional

from .config import OptionKeys, WriterConfig
from .llm_client import CompletionBackend
from .models import BrandProfile, ErrorType, OperationResult, Priority, ProductRecord
from .repositories import OptionStore, ProductCatalog, RepositoryError
from .suggestions import MONTH_NAMES
from .text_utils import strip_tags

logger = logging.getLogger(__name__)

PROMOTIONAL_MAX_TOKENS = 3000
PROMOTIONAL_TEMPERATURE = 0.7

THIN_DESCRIPTION_BELOW = 100
POPULAR_SALES_ABOVE = 10
NEW_PRODUCT_DAYS = 30
PRODUCT_GUIDE_LIMIT = 20
CATEGORY_GUIDE_LIMIT = 10
COMPARISON_POOL = 10
POPULAR_PRODUCTS_LIMIT = 10
SEO_CHECK_LIMIT = 50

SEASONAL_TAGS = frozenset({"summer", "winter", "spring", "autumn", "christmas", "halloween", "valentine", "easter"})

SEASONAL_PRODUCT_TOPICS: dict[int, tuple[str, ...]] = {
    1: ("New Year Fitness Products", "New Year Home Organization", "New Year Tech Gadgets"),
    2: ("Valentine's Day Gifts", "Romantic Home Decor", "Couples Products"),
    3: ("Spring Cleaning Products", "Garden and Outdoor Items", "Spring Fashion"),
    4: ("Easter Decorations", "Spring Home Decor", "Easter Gifts"),
    5: ("Mother's Day Gifts", "Women's Products", "Family Products"),
    6: ("Father's Day Gifts", "Men's Products", "Summer Products"),
    7: ("Summer Vacation Products", "Beach and Pool Items", "Summer Fashion"),
    8: ("Back to School Products", "Educational Items", "Student Essentials"),
    9: ("Fall Fashion", "Home Heating Products", "Autumn Decor"),
    10: ("Halloween Decorations", "Costume Accessories", "Spooky Products"),
    11: ("Thanksgiving Products", "Fall Home Decor", "Gratitude Items"),
    12: ("Christmas Decorations", "Holiday Gifts", "Winter Products"),
}

NOT_AVAILABLE = "not_available"
PRODUCT_VIEWS_UNAVAILABLE = {
    "status": NOT_AVAILABLE,
    "message": "Product view counts require an analytics integration",
}
COMPETITOR_ANALYSIS_UNAVAILABLE = {
    "status": NOT_AVAILABLE,
    "message": "Competitor analysis requires an external search data integration",
}


def product_content_ideas(product: ProductRecord) -> list[dict[str, Any]]:
    """Review, how-to, benefits and FAQ article ideas for one product."""
    name = product.name
    ideas = [
        ("product_review", f"{name} Review: Is It Worth It?", Priority.HIGH, f"In-depth review of {name}"),
        ("how_to_guide", f"How to Use {name}: Complete Tutorial", Priority.HIGH,
         f"Step-by-step guide for using {name}"),
        ("benefits_article", f"10 Benefits of {name}", Priority.MEDIUM, f"Key benefits and advantages of {name}"),
        ("faq_article", f"{name} FAQ: Everything You Need to Know", Priority.MEDIUM,
         f"Frequently asked questions about {name}"),
    ]
    return [
        {"type": kind, "title": title, "product_id": product.id, "priority": priority.value, "description": description}
        for kind, title, priority, description in ideas
    ]


def _format_price(price: Optional[float]) -> str:
    return "" if price is None else f"{price:g}"


def build_promotional_prompt(product: ProductRecord, content_type: str, brand_profile: BrandProfile) -> str:
    """Build the promotional article prompt for a product."""
    brand_guidelines = ""
    if brand_profile.get("brand_guidelines"):
        brand_guidelines = "Brand Guidelines: " + json.dumps(brand_profile["brand_guidelines"])

    return f"""Write a {content_type} article about the product '{product.name}'.

Product Details:
- Name: {product.name}
- Description: {strip_tags(product.description)}
- Price: {_format_price(product.price)}
- Categories: {', '.join(product.categories)}

{brand_guidelines}

Requirements:
- Write in an engaging, informative style
- Include product benefits and features
- Add a call-to-action to purchase the product
- Optimize for SEO with relevant keywords
- Include internal links to the product page
- Make it 1000-1500 words
- Use proper heading structure (H2, H3)
- Include product specifications and details

Please write only the content without any additional commentary."""


class EcommerceAnalyzer:
    """
    Analyses the product catalog for content opportunities.

    Args:
        catalog: Product catalog. None when no e-commerce extension is present.
        options: Settings store for the brand profile and last analysis.
        backend: Completion backend for promotional content.
        config: Promotional content timeout.
        clock: Returns the current time.
    """

    def __init__(
        self,
        catalog: Optional[ProductCatalog],
        options: OptionStore,
        backend: Optional[CompletionBackend] = None,
        config: Optional[WriterConfig] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.catalog = catalog
        self.options = options
        self.backend = backend
        self.config = config or WriterConfig()
        self.clock = clock

    def analyze_store(self) -> OperationResult:
        """
        Run every catalog check and persist the result.

        Returns:
            OperationResult with ``analysis`` (a dict of sections).
        """
        if self.catalog is None:
            return OperationResult.fail("Product catalog is not available", ErrorType.CONFIGURATION)

        try:
            products = self.catalog.list_products()
            analysis = {
                "products": self.analyze_products(products),
                "categories": self.analyze_categories(products),
                "content_opportunities": self.find_content_opportunities(products),
                "product_content_suggestions": self.get_product_content_suggestions(),
                "seasonal_opportunities": self.get_seasonal_opportunities(),
                "seo_opportunities": self.find_seo_opportunities(products),
                "product_views": dict(PRODUCT_VIEWS_UNAVAILABLE),
                "competitor_analysis": dict(COMPETITOR_ANALYSIS_UNAVAILABLE),
            }
        except RepositoryError as e:
            logger.error(f"Store analysis failed: {e}")
            return OperationResult.fail(f"Error during e-commerce analysis: {e}", ErrorType.REPOSITORY)

        self.options.set(OptionKeys.ECOMMERCE_ANALYSIS, analysis)
        self.options.set(OptionKeys.ECOMMERCE_ANALYSIS_DATE, self.clock().isoformat(sep=" ", timespec="seconds"))
        logger.info(f"Analysed {len(products)} products")
        return OperationResult.ok("E-commerce analysis completed successfully", analysis=analysis)

    def analyze_products(self, products: list[ProductRecord]) -> dict[str, Any]:
        now = self.clock()
        analysis: dict[str, Any] = {
            "total_products": len(products),
            "products_without_content": [],
            "popular_products": [],
            "new_products": [],
            "seasonal_products": [],
        }

        for product in products:
            length = len(strip_tags(product.description))
            if length < THIN_DESCRIPTION_BELOW:
                analysis["products_without_content"].append({
                    "id": product.id,
                    "name": product.name,
                    "url": product.url,
                    "content_length": length,
                })

            sales = self.catalog.product_sales(product.id)
            if sales > POPULAR_SALES_ABOVE:
                analysis["popular_products"].append({"id": product.id, "name": product.name, "sales": sales})

            if product.created_at is not None:
                age = (now - product.created_at).days
                if 0 <= age < NEW_PRODUCT_DAYS:
                    analysis["new_products"].append({
                        "id": product.id,
                        "name": product.name,
                        "created_date": product.created_at.strftime("%Y-%m-%d"),
                        "days_old": age,
                    })

            seasonal_tag = next((t for t in product.tags if t.lower() in SEASONAL_TAGS), None)
            if seasonal_tag:
                analysis["seasonal_products"].append({
                    "id": product.id,
                    "name": product.name,
                    "seasonal_tag": seasonal_tag,
                })
        return analysis

    def analyze_categories(self, products: list[ProductRecord]) -> dict[str, Any]:
        """Product count and aggregated sales per category."""
        stats: dict[str, dict[str, Any]] = {}
        for product in products:
            sales = self.catalog.product_sales(product.id)
            for category in product.categories:
                entry = stats.setdefault(category, {"name": category, "product_count": 0, "total_sales": 0})
                entry["product_count"] += 1
                entry["total_sales"] += sales
        return {
            "total_categories": len(stats),
            "categories": sorted(stats.values(), key=lambda c: c["product_count"], reverse=True),
        }

    def find_content_opportunities(self, products: list[ProductRecord]) -> list[dict[str, Any]]:
        """Product guides, category round-ups and pairwise comparisons."""
        opportunities = [
            {
                "type": "product_guide",
                "title": f"Complete Guide to {p.name}",
                "product_id": p.id,
                "priority": Priority.HIGH.value,
                "description": f"Comprehensive guide for {p.name}",
            }
            for p in products[:PRODUCT_GUIDE_LIMIT]
        ]

        year = self.clock().year
        for category in self.catalog.top_categories(CATEGORY_GUIDE_LIMIT):
            opportunities.append({
                "type": "category_guide",
                "title": f"Best {category.name} Products {year}",
                "category": category.name,
                "priority": Priority.MEDIUM.value,
                "description": f"Product recommendations for {category.name}",
            })

        pool = products[:COMPARISON_POOL]
        for first, second in zip(pool[0::2], pool[1::2]):
            opportunities.append({
                "type": "comparison",
                "title": f"{first.name} vs {second.name}: Which is Better?",
                "product_ids": [first.id, second.id],
                "priority": Priority.MEDIUM.value,
                "description": f"Detailed comparison between {first.name} and {second.name}",
            })
        return opportunities

    def get_product_content_suggestions(self, product_id: Optional[int] = None) -> list[dict[str, Any]]:
        """
        Article ideas for one product, or for the best-selling products.

        Args:
            product_id: Product to suggest for. None means the top sellers.

        Returns:
            List of idea dicts. Empty when the product does not exist.
        """
        if self.catalog is None:
            return []
        if product_id is not None:
            product = self.catalog.get_product(product_id)
            return product_content_ideas(product) if product else []

        products = self.catalog.list_products()
        popular = sorted(products, key=lambda p: self.catalog.product_sales(p.id), reverse=True)
        suggestions: list[dict[str, Any]] = []
        for product in popular[:POPULAR_PRODUCTS_LIMIT]:
            suggestions.extend(product_content_ideas(product))
        return suggestions

    def get_seasonal_opportunities(self) -> list[dict[str, Any]]:
        now = self.clock()
        publish_at = datetime.combine(now.date() + timedelta(days=1), time(9, 0))
        return [
            {
                "type": "seasonal",
                "title": topic,
                "priority": Priority.HIGH.value,
                "description": f"Seasonal content for {MONTH_NAMES[now.month]}",
                "suggested_date": publish_at.isoformat(sep=" ", timespec="seconds"),
            }
            for topic in SEASONAL_PRODUCT_TOPICS.get(now.month, ())
        ]

    def find_seo_opportunities(self, products: list[ProductRecord]) -> list[dict[str, Any]]:
        opportunities = []
        for product in products[:SEO_CHECK_LIMIT]:
            if product.meta_title and product.meta_description:
                continue
            opportunities.append({
                "type": "missing_seo",
                "product_id": product.id,
                "product_name": product.name,
                "missing": {
                    "title": not product.meta_title,
                    "description": not product.meta_description,
                },
                "priority": Priority.HIGH.value,
            })
        return opportunities

    def generate_promotional_content(self, product_id: int, content_type: str = "review") -> OperationResult:
        """
        Draft a promotional article for one product.

        Returns:
            OperationResult with ``content``, ``product_id`` and ``content_type``.
        """
        if self.catalog is None:
            return OperationResult.fail("Product catalog is not available", ErrorType.CONFIGURATION)
        if self.backend is None:
            return OperationResult.fail("API key not configured", ErrorType.CONFIGURATION)

        try:
            product = self.catalog.get_product(product_id)
        except RepositoryError as e:
            return OperationResult.fail(f"Error generating promotional content: {e}", ErrorType.REPOSITORY)
        if product is None:
            return OperationResult.fail("Product not found", ErrorType.NOT_FOUND)

        brand_profile = self.options.get(OptionKeys.BRAND_PROFILE, {}) or {}
        response = self.backend.complete(
            build_promotional_prompt(product, content_type, brand_profile),
            max_tokens=PROMOTIONAL_MAX_TOKENS,
            temperature=PROMOTIONAL_TEMPERATURE,
            timeout=self.config.promotional_timeout,
        )
        if not response.success:
            logger.error(f"Promotional content generation failed: {response.message}")
            return response

        return OperationResult.ok(
            "Promotional content generated",
            content=response.get("text", ""),
            product_id=product_id,
            content_type=content_type,
        )

    def get_analysis_results(self) -> dict[str, Any]:
        return self.options.get(OptionKeys.ECOMMERCE_ANALYSIS, {}) or {}

    def get_analysis_date(self) -> str:
        return self.options.get(OptionKeys.ECOMMERCE_ANALYSIS_DATE, "") or ""
