"""
Collaborator interfaces consumed by the content operations.

The host platform owns persistence, the product catalog and cron. Each
concern is expressed here as a small protocol plus an in-memory
implementation used by the CLI, the API and the tests.
"""

import copy
import json
import logging
from collections import Counter
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Optional, Protocol, Union

from .models import CategorySummary, Document, ProductRecord

logger = logging.getLogger(__name__)


class RepositoryError(Exception):
    """Raised when a collaborator cannot complete a read or write."""
    pass


# =============================================================================
# Flat settings store
# =============================================================================

class OptionStore(Protocol):
    """Flat key-value settings store. Last writer wins."""

    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...


class InMemoryOptionStore:
    """Option store held in a dict. Values are deep-copied on read and write."""

    def __init__(self, initial: Optional[dict[str, Any]] = None):
        self._values: dict[str, Any] = copy.deepcopy(initial) if initial else {}

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._values:
            return default
        return copy.deepcopy(self._values[key])

    def set(self, key: str, value: Any) -> None:
        self._values[key] = copy.deepcopy(value)

    def delete(self, key: str) -> None:
        self._values.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._values)


class JsonFileOptionStore:
    """
    Option store persisted as a single JSON document.

    Every ``set`` rewrites the whole file. There is no locking, so concurrent
    writers overwrite each other.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            return json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as e:
            raise RepositoryError(f"Failed to read option store {self.path}: {e}")

    def _save(self, values: dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(values, indent=2, default=str), encoding="utf-8")
        except OSError as e:
            raise RepositoryError(f"Failed to write option store {self.path}: {e}")

    def get(self, key: str, default: Any = None) -> Any:
        return self._load().get(key, default)

    def set(self, key: str, value: Any) -> None:
        values = self._load()
        values[key] = value
        self._save(values)

    def delete(self, key: str) -> None:
        values = self._load()
        if key in values:
            del values[key]
            self._save(values)


def append_capped(store: OptionStore, key: str, entry: Any, cap: int) -> list[Any]:
    """Append an entry to a list option, keeping only the newest ``cap`` items."""
    entries = list(store.get(key, []) or [])
    entries.append(entry)
    if len(entries) > cap:
        entries = entries[-cap:]
    store.set(key, entries)
    return entries


# =============================================================================
# Content repository
# =============================================================================

class MetaStore(Protocol):
    """Per-document metadata keyed by document id and key name."""

    def get_meta(self, doc_id: int, key: str, default: Any = None) -> Any: ...

    def set_meta(self, doc_id: int, key: str, value: Any) -> None: ...


class ContentRepository(MetaStore, Protocol):
    """Read and write site documents and their metadata."""

    def list_documents(
        self, post_types: Iterable[str] = ("post",), status: Optional[str] = "publish"
    ) -> list[Document]: ...

    def get_document(self, doc_id: int) -> Optional[Document]: ...

    def search_documents(self, term: str, limit: int = 3) -> list[Document]: ...

    def create_document(
        self,
        title: str,
        content: str,
        status: str = "draft",
        post_type: str = "post",
        categories: Optional[list[str]] = None,
        tags: Optional[list[str]] = None,
        author_id: int = 0,
    ) -> int: ...

    def update_document(self, doc_id: int, **fields: Any) -> None: ...

    def delete_document(self, doc_id: int) -> None: ...

    def list_categories(self) -> list[str]: ...


class InMemoryContentRepository:
    """Content repository backed by dicts."""

    def __init__(
        self,
        documents: Optional[Iterable[Document]] = None,
        site_url: str = "https://example.com",
        categories: Optional[Iterable[str]] = None,
    ):
        self.site_url = site_url.rstrip("/")
        self._documents: dict[int, Document] = {}
        self._meta: dict[int, dict[str, Any]] = {}
        self._categories: list[str] = list(categories or [])
        self._next_id = 1
        for doc in documents or []:
            self.add(doc)

    def add(self, doc: Document) -> Document:
        """Insert an existing document, assigning a permalink if it has none."""
        if not doc.url:
            doc = replace(doc, url=f"{self.site_url}/?p={doc.id}")
        self._documents[doc.id] = doc
        self._next_id = max(self._next_id, doc.id + 1)
        for category in doc.categories:
            if category not in self._categories:
                self._categories.append(category)
        return doc

    def list_documents(
        self, post_types: Iterable[str] = ("post",), status: Optional[str] = "publish"
    ) -> list[Document]:
        types = set(post_types)
        docs = [
            d for d in self._documents.values()
            if d.post_type in types and (status is None or d.status == status)
        ]
        # Newest first, like the host's default ordering
        return sorted(docs, key=lambda d: (d.date or datetime.min, d.id), reverse=True)

    def get_document(self, doc_id: int) -> Optional[Document]:
        return self._documents.get(doc_id)

    def search_documents(self, term: str, limit: int = 3) -> list[Document]:
        term_lower = term.lower().strip()
        if not term_lower:
            return []
        matches = [
            d for d in self.list_documents()
            if term_lower in d.title.lower() or term_lower in d.content.lower()
        ]
        # Title hits rank above body-only hits
        matches.sort(key=lambda d: term_lower not in d.title.lower())
        return matches[:limit]

    def create_document(
        self,
        title: str,
        content: str,
        status: str = "draft",
        post_type: str = "post",
        categories: Optional[list[str]] = None,
        tags: Optional[list[str]] = None,
        author_id: int = 0,
    ) -> int:
        if not title:
            raise RepositoryError("Document title is required")
        doc_id = self._next_id
        self.add(Document(
            id=doc_id,
            title=title,
            content=content,
            status=status,
            post_type=post_type,
            categories=list(categories or []),
            tags=list(tags or []),
            date=datetime.now(),
            author_id=author_id,
        ))
        return doc_id

    def update_document(self, doc_id: int, **fields: Any) -> None:
        doc = self._documents.get(doc_id)
        if doc is None:
            raise RepositoryError(f"Document {doc_id} not found")
        self._documents[doc_id] = replace(doc, **fields)

    def delete_document(self, doc_id: int) -> None:
        if self._documents.pop(doc_id, None) is None:
            raise RepositoryError(f"Document {doc_id} not found")
        self._meta.pop(doc_id, None)

    def get_meta(self, doc_id: int, key: str, default: Any = None) -> Any:
        return self._meta.get(doc_id, {}).get(key, default)

    def set_meta(self, doc_id: int, key: str, value: Any) -> None:
        self._meta.setdefault(doc_id, {})[key] = value

    def list_categories(self) -> list[str]:
        return list(self._categories)


# =============================================================================
# Product catalog
# =============================================================================

class ProductCatalog(Protocol):
    """Read-only view of the e-commerce catalog and its order history."""

    def list_products(self) -> list[ProductRecord]: ...

    def get_product(self, product_id: int) -> Optional[ProductRecord]: ...

    def top_categories(self, limit: int = 5) -> list[CategorySummary]: ...

    def featured_products(self, limit: int = 3) -> list[ProductRecord]: ...

    def product_sales(self, product_id: int) -> int: ...


class InMemoryProductCatalog:
    """Catalog backed by a product list and a product-id -> quantity-sold map."""

    def __init__(
        self,
        products: Optional[Iterable[ProductRecord]] = None,
        sales: Optional[dict[int, int]] = None,
        category_urls: Optional[dict[str, str]] = None,
    ):
        self._products = list(products or [])
        self._sales = dict(sales or {})
        self._category_urls = dict(category_urls or {})

    def list_products(self) -> list[ProductRecord]:
        return list(self._products)

    def get_product(self, product_id: int) -> Optional[ProductRecord]:
        for product in self._products:
            if product.id == product_id:
                return product
        return None

    def top_categories(self, limit: int = 5) -> list[CategorySummary]:
        counts: Counter[str] = Counter()
        for product in self._products:
            counts.update(set(product.categories))
        return [
            CategorySummary(name=name, count=count, url=self._category_urls.get(name, ""))
            for name, count in counts.most_common(limit)
        ]

    def featured_products(self, limit: int = 3) -> list[ProductRecord]:
        return [p for p in self._products if p.featured][:limit]

    def product_sales(self, product_id: int) -> int:
        return int(self._sales.get(product_id, 0))


# =============================================================================
# Task scheduler
# =============================================================================

class TaskScheduler(Protocol):
    """Schedules a named callback for a future time with a payload."""

    def schedule(self, timestamp: datetime, hook: str, payload: dict[str, Any]) -> None: ...

    def cancel(self, hook: str, payload: dict[str, Any]) -> int: ...


class InMemoryTaskScheduler:
    """Task scheduler that records events until they are popped with ``due``."""

    def __init__(self):
        self.events: list[tuple[datetime, str, dict[str, Any]]] = []

    def schedule(self, timestamp: datetime, hook: str, payload: dict[str, Any]) -> None:
        self.events.append((timestamp, hook, dict(payload)))
        logger.info(f"Scheduled '{hook}' for {timestamp.isoformat()}")

    def cancel(self, hook: str, payload: dict[str, Any]) -> int:
        """Remove events for ``hook`` whose payload contains every given key/value."""
        kept = []
        removed = 0
        for event in self.events:
            _, event_hook, event_payload = event
            if event_hook == hook and all(event_payload.get(k) == v for k, v in payload.items()):
                removed += 1
            else:
                kept.append(event)
        self.events = kept
        return removed

    def due(self, now: datetime) -> list[tuple[str, dict[str, Any]]]:
        """Pop and return every event whose time has come, oldest first."""
        ready = sorted((e for e in self.events if e[0] <= now), key=lambda e: e[0])
        self.events = [e for e in self.events if e[0] > now]
        return [(hook, payload) for _, hook, payload in ready]
