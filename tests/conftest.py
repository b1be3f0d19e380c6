"""
Pytest fixtures and configuration for AI Content Writer tests.
"""

from datetime import datetime
from typing import Any, Union

import pytest

from ai_content_writer.config import OptionKeys, WriterConfig
from ai_content_writer.models import Document, ErrorType, OperationResult, ProductRecord
from ai_content_writer.repositories import (
    InMemoryContentRepository,
    InMemoryOptionStore,
    InMemoryProductCatalog,
    InMemoryTaskScheduler,
)

FIXED_NOW = datetime(2025, 3, 10, 12, 0, 0)

# Scores 9/10 for "running shoes": everything except the transition-word ratio.
GOOD_CONTENT = (
    "<p>Choosing running shoes starts with knowing how your feet move during every stride.</p>\n\n"
    "<h2>Fit and Comfort</h2>\n"
    "<p>A good fit leaves a thumb width of space in front of your longest toe. "
    "Try each pair late in the day because feet swell after long walks. "
    "Walk around the store and notice any rubbing near the heel or arch.</p>\n"
    "<h2>Cushioning and Support</h2>\n"
    "<p>Road runners often prefer soft foam that absorbs impact on hard pavement. "
    "Trail runners need firm soles with deep lugs for grip on loose dirt. "
    'Our <a href="/guides/shoe-care">shoe care guide</a> explains how to clean and store each pair. '
    "Replace your running shoes after roughly five hundred miles of regular training.</p>"
)

# Scores 0/10 for "running shoes".
WEAK_CONTENT = "Shoes are nice. We sell many kinds."


class FakeBackend:
    """
    Completion backend double.

    Replies are consumed in order; the last one repeats once the list is
    exhausted. Strings become successful completions.
    """

    def __init__(self, *replies: Union[str, OperationResult]):
        self.replies = list(replies) or [""]
        self.calls: list[dict[str, Any]] = []

    def complete(self, prompt: str, *, max_tokens: int = 2000, temperature: float = 0.3,
                 timeout: float = 60.0) -> OperationResult:
        self.calls.append({
            "prompt": prompt,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "timeout": timeout,
        })
        index = min(len(self.calls) - 1, len(self.replies) - 1)
        reply = self.replies[index]
        if isinstance(reply, OperationResult):
            return reply
        if not reply:
            return OperationResult.fail("Invalid response from completion backend", ErrorType.BACKEND)
        return OperationResult.ok("Completion received", text=reply)

    @property
    def last_prompt(self) -> str:
        return self.calls[-1]["prompt"]


@pytest.fixture
def clock():
    """A clock frozen at FIXED_NOW."""
    return lambda: FIXED_NOW


@pytest.fixture
def config() -> WriterConfig:
    """Configuration with a dummy key and a fixed site origin."""
    return WriterConfig(api_key="test-key", site_url="https://example.com", site_name="Stride")


@pytest.fixture
def brand_profile() -> dict[str, Any]:
    return {
        "tone_of_voice": {"formality": "informal", "personality": "friendly"},
        "language_characteristics": {"vocabulary_level": "intermediate", "common_phrases": ["hit the road"]},
        "content_themes": {"main_topics": ["Running", "Trail Running"], "target_audience": "amateur runners"},
        "seo_patterns": {"common_keywords": ["running shoes"]},
        "brand_guidelines": {"voice_guidelines": "Encouraging and practical"},
    }


@pytest.fixture
def options() -> InMemoryOptionStore:
    return InMemoryOptionStore()


@pytest.fixture
def options_with_profile(brand_profile) -> InMemoryOptionStore:
    return InMemoryOptionStore({OptionKeys.BRAND_PROFILE: brand_profile})


@pytest.fixture
def documents() -> list[Document]:
    """Three published posts and one draft."""
    long_body = "<p>" + "Tempo runs build speed and stamina for race day. " * 12 + "</p>"
    return [
        Document(
            id=1,
            title="Running Shoes Buying Guide",
            content=long_body + '<p>See our <a href="https://example.com/?p=2">trail tips</a>.</p>',
            categories=["Running"],
            tags=["shoes"],
            date=datetime(2025, 3, 1, 9, 0),
            comment_count=12,
        ),
        Document(
            id=2,
            title="Trail Running Tips",
            content="<p>Short note about trails.</p><img src='trail.jpg'>",
            categories=["Running", "Trail"],
            date=datetime(2025, 2, 20, 9, 0),
            comment_count=5,
        ),
        Document(
            id=3,
            title="Stretching Basics",
            content=long_body,
            categories=["Health"],
            date=datetime(2024, 12, 1, 9, 0),
        ),
        Document(id=4, title="Unfinished Draft", content="Draft body", status="draft"),
    ]


@pytest.fixture
def repository(documents) -> InMemoryContentRepository:
    return InMemoryContentRepository(documents, site_url="https://example.com")


@pytest.fixture
def products() -> list[ProductRecord]:
    return [
        ProductRecord(
            id=10,
            name="Red Running Shoes",
            description="Lightweight shoes built for road running and daily training sessions.",
            short_description="Light road shoe",
            price=89.99,
            categories=["Shoes"],
            tags=["running", "red"],
            url="https://example.com/product/red-running-shoes",
            meta_title="Red Running Shoes",
            meta_description="Lightweight road running shoes.",
            featured=True,
            created_at=datetime(2025, 3, 1),
        ),
        ProductRecord(
            id=11,
            name="Blue Hat",
            description="A warm hat.",
            price=19.5,
            categories=["Hats"],
            tags=["winter"],
            url="https://example.com/product/blue-hat",
            created_at=datetime(2024, 6, 1),
        ),
        ProductRecord(
            id=12,
            name="Trail Shoes",
            description="Grippy outsole for muddy trails.",
            price=120.0,
            categories=["Shoes", "Trail"],
            tags=["trail"],
            in_stock=False,
            stock_status="outofstock",
            url="https://example.com/product/trail-shoes",
        ),
    ]


@pytest.fixture
def catalog(products) -> InMemoryProductCatalog:
    return InMemoryProductCatalog(products, sales={10: 25, 11: 3, 12: 8})


@pytest.fixture
def task_scheduler() -> InMemoryTaskScheduler:
    return InMemoryTaskScheduler()


@pytest.fixture
def make_backend():
    """Factory for FakeBackend instances."""
    return FakeBackend


@pytest.fixture
def good_content() -> str:
    return GOOD_CONTENT


@pytest.fixture
def weak_content() -> str:
    return WEAK_CONTENT
