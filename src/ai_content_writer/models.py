"""
Data models for AI Content Writer.

This module defines the core data structures shared by the scorer, the
optimizer, the brand analyzer, the scheduler and the store assistant.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union


# A brand profile is a plain nested mapping. Leaves are strings or lists of strings.
BrandProfile = dict[str, Any]

BRAND_PROFILE_SECTIONS = (
    "tone_of_voice",
    "language_characteristics",
    "content_themes",
    "seo_patterns",
    "brand_guidelines",
)


class ErrorType(str, Enum):
    """Failure categories carried on failed results."""
    CONFIGURATION = "configuration"
    BACKEND = "backend"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    REPOSITORY = "repository"


@dataclass
class OperationResult:
    """
    Uniform success/failure result returned by every public operation.

    Attributes:
        success: Whether the operation succeeded.
        message: Human-readable outcome message.
        data: Optional payload. Failed results carry an ``error_type`` entry.
    """
    success: bool
    message: str
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, message: str, **data: Any) -> "OperationResult":
        """Create a successful result."""
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(
        cls,
        message: str,
        error_type: Union[ErrorType, str] = ErrorType.BACKEND,
        **data: Any,
    ) -> "OperationResult":
        """Create a failed result."""
        data["error_type"] = ErrorType(error_type).value
        return cls(success=False, message=message, data=data)

    @property
    def error_type(self) -> Optional[str]:
        return self.data.get("error_type")

    def get(self, key: str, default: Any = None) -> Any:
        """Shortcut for reading a payload value."""
        return self.data.get(key, default)

    def to_dict(self) -> dict[str, Any]:
        """Flatten into a JSON-friendly dict (success, message, payload keys)."""
        result = {"success": self.success, "message": self.message}
        result.update(self.data)
        return result


class Severity(str, Enum):
    """Severity of an SEO gap."""
    HIGH = "high"
    MEDIUM = "medium"


class Priority(str, Enum):
    """Priority of a suggestion or opportunity."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


PRIORITY_ORDER = {Priority.HIGH.value: 3, Priority.MEDIUM.value: 2, Priority.LOW.value: 1}


@dataclass
class Document:
    """A document (post or page) held by the content repository."""
    id: int
    title: str
    content: str = ""
    excerpt: str = ""
    categories: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    url: str = ""
    status: str = "publish"
    post_type: str = "post"
    date: Optional[datetime] = None
    author_id: int = 0
    comment_count: int = 0

    @property
    def is_published(self) -> bool:
        return self.status == "publish"


@dataclass
class ProductRecord:
    """Flattened read-only snapshot of a catalog product."""
    id: int
    name: str
    description: str = ""
    short_description: str = ""
    price: Optional[float] = None
    regular_price: Optional[float] = None
    sale_price: Optional[float] = None
    sku: str = ""
    categories: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    attributes: dict[str, list[str]] = field(default_factory=dict)
    url: str = ""
    image: str = ""
    in_stock: bool = True
    stock_status: str = "instock"
    meta_title: str = ""
    meta_description: str = ""
    featured: bool = False
    created_at: Optional[datetime] = None
    # Set by the fallback matcher on the returned copies
    relevance_score: Optional[int] = None

    def summary(self) -> str:
        """One-line summary used in ranking prompts."""
        text = self.name
        if self.short_description:
            text += f" - {self.short_description}"
        if self.categories:
            text += f" (Categories: {', '.join(self.categories)})"
        if self.tags:
            text += f" (Tags: {', '.join(self.tags)})"
        return text

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["created_at"] = self.created_at.isoformat() if self.created_at else None
        return data


@dataclass
class CategorySummary:
    """A catalog category with its product count."""
    name: str
    count: int
    url: str = ""


@dataclass
class SeoMeta:
    """SEO metadata written through an SEO metadata backend."""
    meta_title: str = ""
    meta_description: str = ""
    focus_keyword: str = ""
    canonical: str = ""
    noindex: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SeoMeta":
        return cls(
            meta_title=data.get("meta_title", "") or "",
            meta_description=data.get("meta_description", "") or "",
            focus_keyword=data.get("focus_keyword", "") or "",
            canonical=data.get("canonical", "") or "",
            noindex=bool(data.get("noindex", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ContentDraft:
    """A generated article plus its derived metrics, ready for publishing."""
    title: str
    content: str
    keyword: str
    seo_score: int = 0
    word_count: int = 0
    reading_time: int = 0
    meta_data: SeoMeta = field(default_factory=SeoMeta)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["meta_data"] = self.meta_data.to_dict()
        return data


@dataclass
class SeoGap:
    """A single SEO problem found on a document."""
    type: str
    severity: Severity
    description: str


@dataclass
class PostSeoGaps:
    """All SEO gaps found on one document."""
    post_id: int
    post_title: str
    post_url: str
    gaps: list[SeoGap] = field(default_factory=list)


@dataclass
class MissingTopic:
    """A brand topic that no site category covers yet."""
    topic: str
    priority: Priority
    suggested_keywords: list[str] = field(default_factory=list)


@dataclass
class ContentOpportunity:
    """A document worth expanding or improving."""
    type: str
    post_id: int
    post_title: str
    priority: Priority
    current_length: Optional[int] = None
    suggested_length: Optional[int] = None


@dataclass
class LinkedPost:
    """Reference to a document in linking statistics."""
    post_id: int
    post_title: str
    post_url: str


@dataclass
class LinkingStats:
    """Internal linking statistics for the site."""
    posts_without_internal_links: list[LinkedPost] = field(default_factory=list)
    orphaned_posts: list[LinkedPost] = field(default_factory=list)
    link_opportunities: list[LinkedPost] = field(default_factory=list)


@dataclass
class KeywordOpportunity:
    """An under-used category that deserves more content."""
    type: str
    category: str
    post_count: int
    suggested_posts: int


@dataclass
class ScanResult:
    """Independently computed lists produced by a content scan."""
    seo_gaps: list[PostSeoGaps] = field(default_factory=list)
    missing_topics: list[MissingTopic] = field(default_factory=list)
    content_opportunities: list[ContentOpportunity] = field(default_factory=list)
    internal_linking: LinkingStats = field(default_factory=LinkingStats)
    keyword_opportunities: list[KeywordOpportunity] = field(default_factory=list)
    competitor_analysis: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Serialize with enum values flattened to strings."""
        return _plain(asdict(self))


class ScheduleStatus(str, Enum):
    """Lifecycle of a scheduled item."""
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass
class ScheduledItem:
    """A topic scheduled for generation and publication at a future time."""
    id: str
    topic: str
    scheduled_for: datetime
    status: ScheduleStatus = ScheduleStatus.SCHEDULED
    keyword: str = ""
    word_count: int = 1000
    tone: str = ""
    category: str = ""
    tags: list[str] = field(default_factory=list)
    options: dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None
    post_id: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        data["scheduled_for"] = self.scheduled_for.isoformat()
        data["created_at"] = self.created_at.isoformat() if self.created_at else None
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScheduledItem":
        created_at = data.get("created_at")
        return cls(
            id=data["id"],
            topic=data["topic"],
            scheduled_for=datetime.fromisoformat(data["scheduled_for"]),
            status=ScheduleStatus(data.get("status", "scheduled")),
            keyword=data.get("keyword", ""),
            word_count=int(data.get("word_count", 1000)),
            tone=data.get("tone", ""),
            category=data.get("category", ""),
            tags=list(data.get("tags", [])),
            options=dict(data.get("options", {})),
            created_at=datetime.fromisoformat(created_at) if created_at else None,
            post_id=data.get("post_id"),
        )


def _plain(value: Any) -> Any:
    """Recursively replace enum members with their values."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value
