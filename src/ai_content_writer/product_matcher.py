"""
Product search for the storefront assistant.

Ranking is delegated to the completion backend, which returns a JSON
array of product ids. When the backend is unavailable or its answer is
unusable, a deterministic keyword-overlap score ranks the products instead.
"""

import logging
from collections import Counter
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from .config import OptionKeys, WriterConfig
from .llm_client import CompletionBackend
from .models import ErrorType, OperationResult, ProductRecord
from .repositories import OptionStore, ProductCatalog, RepositoryError, append_capped
from .response_parsing import extract_id_list

logger = logging.getLogger(__name__)

SEARCH_MAX_TOKENS = 500
SEARCH_TEMPERATURE = 0.3
SEARCH_LOG_LIMIT = 1000

# Fallback weights per query token found in each field
NAME_WEIGHT = 3
DESCRIPTION_WEIGHT = 2
CATEGORY_WEIGHT = 2
TAG_WEIGHT = 1

SOURCE_BACKEND = "backend"
SOURCE_FALLBACK = "fallback"


def _format_price(price: Optional[float]) -> str:
    if price is None:
        return ""
    return f"{price:g}"


def build_search_prompt(query: str, products: list[ProductRecord], max_results: int = 5) -> str:
    """Build the ranking prompt listing a one-line summary of every product."""
    products_text = ""
    for product in products:
        in_stock = "Yes" if product.in_stock else "No"
        products_text += (
            f"ID: {product.id} - {product.summary()} - "
            f"Price: {_format_price(product.price)} - In Stock: {in_stock}\n"
        )

    return f"""You are an AI shopping assistant for an online store. A customer is searching for: "{query}"

Available products:
{products_text}
Please analyze the customer's query and find the best matching products. Consider:
1. Product names and descriptions
2. Categories and tags
3. Price range if mentioned
4. Specific features or attributes
5. Stock availability

Return ONLY a JSON array of product IDs in order of relevance (most relevant first). Maximum {max_results} products.

Example format: [123, 456, 789]

If no products match, return an empty array: []"""


def relevance_score(tokens: list[str], product: ProductRecord) -> int:
    """Keyword-overlap score of one product against lowercased query tokens."""
    name = product.name.lower()
    description = f"{product.description} {product.short_description}".lower()
    categories = [c.lower() for c in product.categories]
    tags = [t.lower() for t in product.tags]

    score = 0
    for token in tokens:
        if token in name:
            score += NAME_WEIGHT
        if token in description:
            score += DESCRIPTION_WEIGHT
        score += CATEGORY_WEIGHT * sum(1 for c in categories if token in c)
        score += TAG_WEIGHT * sum(1 for t in tags if token in t)
    return score


def fallback_search(query: str, products: list[ProductRecord], limit: int = 5) -> list[ProductRecord]:
    """
    Rank products by keyword overlap with the query.

    Zero-score products are dropped. Equal scores keep input order.

    Returns:
        Copies of the matching products with ``relevance_score`` set.
    """
    tokens = query.lower().split()
    if not tokens:
        return []
    scored = []
    for product in products:
        score = relevance_score(tokens, product)
        if score > 0:
            scored.append(replace(product, relevance_score=score))
    scored.sort(key=lambda p: p.relevance_score, reverse=True)
    return scored[:limit]


class ProductMatcher:
    """
    Ranks products for a free-text query.

    Args:
        backend: Completion backend used for ranking. None means fallback only.
        config: Search timeout and result cap.
    """

    def __init__(self, backend: Optional[CompletionBackend] = None, config: Optional[WriterConfig] = None):
        self.backend = backend
        self.config = config or WriterConfig()

    def match(self, query: str, products: list[ProductRecord], limit: int = 5) -> list[ProductRecord]:
        """Return at most ``limit`` products from ``products``, most relevant first."""
        return self.rank(query, products, limit)[0]

    def rank(self, query: str, products: list[ProductRecord], limit: int = 5) -> tuple[list[ProductRecord], str]:
        """
        Rank products and report which path produced the ranking.

        Returns:
            Tuple of (ranked products, "backend" or "fallback").
        """
        if limit <= 0 or not products or not query.strip():
            return [], SOURCE_FALLBACK

        if self.backend is not None:
            ranked = self._rank_with_backend(query, products, limit)
            if ranked:
                return ranked, SOURCE_BACKEND

        return fallback_search(query, products, limit), SOURCE_FALLBACK

    def _rank_with_backend(self, query: str, products: list[ProductRecord], limit: int) -> list[ProductRecord]:
        response = self.backend.complete(
            build_search_prompt(query, products, min(limit, self.config.max_search_results)),
            max_tokens=SEARCH_MAX_TOKENS,
            temperature=SEARCH_TEMPERATURE,
            timeout=self.config.search_timeout,
        )
        if not response.success:
            logger.warning(f"Ranking backend unavailable, using keyword fallback: {response.message}")
            return []

        by_id = {p.id: p for p in products}
        ranked = [by_id[i] for i in extract_id_list(response.get("text", "")) if i in by_id]
        if not ranked:
            logger.warning("Ranking backend returned no usable ids, using keyword fallback")
        return ranked[:limit]


class StoreAssistant:
    """
    Storefront search: ranking, no-result suggestions and search analytics.

    Args:
        matcher: Product matcher.
        catalog: Product catalog. None when no e-commerce extension is present.
        options: Settings store for the search log.
        config: Result cap.
        clock: Returns the current time.
    """

    def __init__(
        self,
        matcher: ProductMatcher,
        catalog: Optional[ProductCatalog],
        options: OptionStore,
        config: Optional[WriterConfig] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.matcher = matcher
        self.catalog = catalog
        self.options = options
        self.config = config or WriterConfig()
        self.clock = clock

    def process_query(self, query: str, user_id: Optional[int] = None) -> OperationResult:
        """
        Find products for a shopper's query.

        Returns:
            OperationResult with ``products`` (dicts), ``query``, ``total_found``
            and ``source``. An empty ranking succeeds with ``suggestions``.
        """
        query = (query or "").strip()
        if not query:
            return OperationResult.fail("Please enter a search query", ErrorType.VALIDATION)
        if self.catalog is None:
            return OperationResult.fail("Product catalog is not available", ErrorType.CONFIGURATION)

        try:
            products = self.catalog.list_products()
        except RepositoryError as e:
            return OperationResult.fail(f"Error processing query: {e}", ErrorType.REPOSITORY)
        if not products:
            return OperationResult.fail("No products found in store", ErrorType.NOT_FOUND)

        matches, source = self.matcher.rank(query, products, self.config.max_search_results)
        self._log_search(query, len(matches), user_id)

        if not matches:
            return OperationResult.ok(
                "No matching products found",
                products=[],
                query=query,
                total_found=0,
                source=source,
                suggestions=self.get_general_suggestions(),
            )
        return OperationResult.ok(
            "Found matching products",
            products=[p.to_dict() for p in matches],
            query=query,
            total_found=len(matches),
            source=source,
        )

    def get_general_suggestions(self) -> list[dict[str, Any]]:
        """Top categories by product count, then featured products."""
        if self.catalog is None:
            return []
        suggestions: list[dict[str, Any]] = [
            {"type": "category", "name": c.name, "url": c.url, "count": c.count}
            for c in self.catalog.top_categories(5)
        ]
        suggestions.extend(
            {"type": "product", "name": p.name, "url": p.url, "price": p.price, "image": p.image}
            for p in self.catalog.featured_products(3)
        )
        return suggestions

    def _log_search(self, query: str, results_count: int, user_id: Optional[int]) -> None:
        append_capped(self.options, OptionKeys.STORE_ASSISTANT_LOGS, {
            "query": query,
            "results_count": results_count,
            "user_id": user_id,
            "timestamp": self.clock().isoformat(sep=" ", timespec="seconds"),
        }, SEARCH_LOG_LIMIT)

    def _recent_logs(self, days: int) -> list[dict[str, Any]]:
        cutoff = self.clock() - timedelta(days=days)
        recent = []
        for log in self.options.get(OptionKeys.STORE_ASSISTANT_LOGS, []) or []:
            try:
                logged_at = datetime.fromisoformat(log.get("timestamp", ""))
            except ValueError:
                continue
            if logged_at >= cutoff:
                recent.append(log)
        return recent

    def get_search_analytics(self, days: int = 30) -> dict[str, Any]:
        logs = self._recent_logs(days)
        queries = [log["query"] for log in logs]
        analytics: dict[str, Any] = {
            "total_searches": len(logs),
            "unique_queries": len(set(queries)),
            "avg_results_per_search": 0,
            "popular_queries": {},
            "no_results_queries": [],
        }
        if logs:
            total_results = sum(log.get("results_count", 0) for log in logs)
            analytics["avg_results_per_search"] = round(total_results / len(logs), 2)
            analytics["popular_queries"] = dict(Counter(queries).most_common(10))
            analytics["no_results_queries"] = [
                log["query"] for log in logs if log.get("results_count", 0) == 0
            ][:10]
        return analytics

    def get_search_suggestions(self) -> list[dict[str, Any]]:
        """Last week's popular queries and the top categories, ten at most."""
        suggestions: list[dict[str, Any]] = [
            {"text": text, "type": "popular", "count": count}
            for text, count in self.get_search_analytics(7)["popular_queries"].items()
        ]
        if self.catalog is not None:
            suggestions.extend(
                {"text": c.name, "type": "category", "count": c.count}
                for c in self.catalog.top_categories(5)
            )
        return suggestions[:10]
