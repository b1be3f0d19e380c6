"""
Content scheduling and recurring automation.

Scheduled items live in the settings store and are identified by a
generated id. The host's task scheduler fires
``ai_cw_scheduled_content_generation`` with that id in its payload.
"""

import logging
import uuid
from datetime import datetime, time, timedelta
from typing import Any, Callable, Optional, Union

from .brand import BrandAnalyzer
from .config import OptionKeys, WriterConfig
from .generator import ContentGenerator
from .models import ErrorType, OperationResult, Priority, ScheduledItem, ScheduleStatus
from .repositories import (
    ContentRepository,
    OptionStore,
    ProductCatalog,
    RepositoryError,
    TaskScheduler,
    append_capped,
)
from .scanner import ContentScanner
from .suggestions import ContentSuggestion, seasonal_suggestions, select_best_suggestion

logger = logging.getLogger(__name__)

SCHEDULED_GENERATION_HOOK = "ai_cw_scheduled_content_generation"
OPTIMAL_PUBLISH_TIME = time(9, 0)
PRODUCT_SUGGESTION_LIMIT = 10

AUTOMATED_LOG_LIMIT = 50
SCAN_LOG_LIMIT = 20
BRAND_UPDATE_POSTS = 10
BRAND_UPDATE_WINDOW = timedelta(days=30)

FREQUENCY_INTERVALS = {
    "daily": timedelta(days=1),
    "weekly": timedelta(weeks=1),
    "monthly": timedelta(days=30),
}


def _parse_datetime(value: Union[datetime, str, None]) -> Optional[datetime]:
    if not isinstance(value, datetime):
        if not value:
            return None
        try:
            value = datetime.fromisoformat(str(value).strip())
        except ValueError:
            return None
    # Offsets are converted to naive local time to match the clock
    if value.tzinfo is not None:
        value = value.astimezone().replace(tzinfo=None)
    return value


def _parse_tags(value: Union[list[str], str, None]) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [t.strip() for t in value if t and t.strip()]


class ContentScheduler:
    """
    Plans and runs scheduled articles.

    Args:
        generator: Generates and publishes each item.
        options: Settings store holding the scheduled items.
        task_scheduler: Host task scheduler.
        catalog: Optional product catalog for product-driven suggestions.
        clock: Returns the current time.
    """

    def __init__(
        self,
        generator: ContentGenerator,
        options: OptionStore,
        task_scheduler: TaskScheduler,
        catalog: Optional[ProductCatalog] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.generator = generator
        self.options = options
        self.task_scheduler = task_scheduler
        self.catalog = catalog
        self.clock = clock

    # -------------------------------------------------------------------------
    # Storage
    # -------------------------------------------------------------------------

    def _load(self) -> list[ScheduledItem]:
        return [ScheduledItem.from_dict(d) for d in self.options.get(OptionKeys.SCHEDULED_CONTENT, []) or []]

    def _save(self, items: list[ScheduledItem]) -> None:
        self.options.set(OptionKeys.SCHEDULED_CONTENT, [item.to_dict() for item in items])

    def _find(self, items: list[ScheduledItem], schedule_id: str) -> Optional[ScheduledItem]:
        return next((item for item in items if item.id == schedule_id), None)

    def get_item(self, schedule_id: str) -> Optional[ScheduledItem]:
        return self._find(self._load(), schedule_id)

    # -------------------------------------------------------------------------
    # Scheduling
    # -------------------------------------------------------------------------

    def schedule_content(self, content_data: dict[str, Any]) -> OperationResult:
        """
        Schedule a topic for generation at a future time.

        Args:
            content_data: ``topic`` and ``scheduled_for`` (datetime or ISO string)
                are required. ``keyword``, ``word_count``, ``tone``, ``category``,
                ``tags`` (list or comma-separated) and ``options`` are optional.

        Returns:
            OperationResult with ``scheduled_id``.
        """
        topic = str(content_data.get("topic") or "").strip()
        if not topic:
            return OperationResult.fail("Topic is required", ErrorType.VALIDATION)

        scheduled_for = _parse_datetime(content_data.get("scheduled_for"))
        if scheduled_for is None:
            return OperationResult.fail("A valid scheduled date is required", ErrorType.VALIDATION)
        if scheduled_for <= self.clock():
            return OperationResult.fail("Scheduled date must be in the future", ErrorType.VALIDATION)

        try:
            word_count = int(content_data.get("word_count") or 1000)
        except (TypeError, ValueError):
            return OperationResult.fail("Word count must be a number", ErrorType.VALIDATION)

        item = ScheduledItem(
            id=uuid.uuid4().hex,
            topic=topic,
            scheduled_for=scheduled_for,
            keyword=str(content_data.get("keyword") or "").strip(),
            word_count=word_count,
            tone=str(content_data.get("tone") or "").strip(),
            category=str(content_data.get("category") or "").strip(),
            tags=_parse_tags(content_data.get("tags")),
            options=dict(content_data.get("options") or {}),
            created_at=self.clock(),
        )
        items = self._load()
        items.append(item)
        self._save(items)
        self.task_scheduler.schedule(scheduled_for, SCHEDULED_GENERATION_HOOK, {"schedule_id": item.id})

        logger.info(f"Scheduled '{topic}' for {scheduled_for.isoformat()} ({item.id})")
        return OperationResult.ok("Content scheduled successfully", scheduled_id=item.id)

    def bulk_schedule_content(self, content_list: list[dict[str, Any]]) -> OperationResult:
        """Schedule several items; each one succeeds or fails on its own."""
        results = [
            {"topic": data.get("topic", ""), "result": self.schedule_content(data).to_dict()}
            for data in content_list
        ]
        return OperationResult.ok("Bulk scheduling completed", results=results)

    def process_scheduled_content(self, schedule_id: str) -> OperationResult:
        """
        Generate, publish and complete one scheduled item.

        Returns:
            OperationResult with ``post_id``.
        """
        item = self.get_item(schedule_id)
        if item is None:
            return OperationResult.fail(f"Scheduled item {schedule_id} not found", ErrorType.NOT_FOUND)
        if item.status != ScheduleStatus.SCHEDULED:
            return OperationResult.fail(
                f"Scheduled item {schedule_id} is {item.status.value}", ErrorType.VALIDATION
            )

        generation = self.generator.generate_content(item.topic, {
            "word_count": item.word_count,
            "tone": item.tone,
        })
        if not generation.success:
            return generation

        published = self.generator.publish_content(
            generation.get("draft"),
            status="publish",
            categories=[item.category] if item.category else None,
            tags=item.tags or None,
        )
        if not published.success:
            return published

        self._update(schedule_id, status=ScheduleStatus.COMPLETED, post_id=published.get("post_id"))
        return OperationResult.ok(
            "Scheduled content published successfully",
            post_id=published.get("post_id"),
        )

    def handle_scheduled_event(self, payload: dict[str, Any]) -> OperationResult:
        """Entry point for the task scheduler callback."""
        schedule_id = payload.get("schedule_id")
        if not schedule_id:
            return OperationResult.fail("Event payload has no schedule_id", ErrorType.VALIDATION)
        return self.process_scheduled_content(schedule_id)

    def _update(self, schedule_id: str, **fields: Any) -> None:
        items = self._load()
        item = self._find(items, schedule_id)
        if item is None:
            raise RepositoryError(f"Scheduled item {schedule_id} not found")
        for name, value in fields.items():
            setattr(item, name, value)
        self._save(items)

    def cancel_scheduled_content(self, schedule_id: str) -> OperationResult:
        item = self.get_item(schedule_id)
        if item is None:
            return OperationResult.fail(f"Scheduled item {schedule_id} not found", ErrorType.NOT_FOUND)
        if item.status != ScheduleStatus.SCHEDULED:
            return OperationResult.fail(
                f"Scheduled item {schedule_id} is {item.status.value}", ErrorType.VALIDATION
            )
        self._update(schedule_id, status=ScheduleStatus.CANCELLED)
        self.task_scheduler.cancel(SCHEDULED_GENERATION_HOOK, {"schedule_id": schedule_id})
        logger.info(f"Cancelled scheduled item {schedule_id}")
        return OperationResult.ok("Scheduled content cancelled")

    def cancel_by_topic(self, topic: str) -> OperationResult:
        """
        Cancel every pending item with this exact topic.

        Kept for callers that only know the topic. Items sharing a topic are
        all cancelled.
        """
        matching = [i for i in self._load() if i.topic == topic and i.status == ScheduleStatus.SCHEDULED]
        if not matching:
            return OperationResult.fail(f"No scheduled content for topic '{topic}'", ErrorType.NOT_FOUND)
        for item in matching:
            self.cancel_scheduled_content(item.id)
        return OperationResult.ok("Scheduled content cancelled", cancelled=len(matching))

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_scheduled_content(
        self, status: Optional[str] = "scheduled", limit: Optional[int] = 20
    ) -> list[ScheduledItem]:
        """Items with a status (all when None), soonest first."""
        items = [i for i in self._load() if status is None or i.status.value == status]
        items.sort(key=lambda i: i.scheduled_for)
        return items[:limit] if limit is not None else items

    def get_content_calendar(
        self, month: Optional[int] = None, year: Optional[int] = None
    ) -> dict[int, list[ScheduledItem]]:
        """Pending items in a month, keyed by day of month."""
        now = self.clock()
        month = month or now.month
        year = year or now.year
        calendar: dict[int, list[ScheduledItem]] = {}
        for item in self.get_scheduled_content("scheduled", limit=None):
            when = item.scheduled_for
            if when.month == month and when.year == year:
                calendar.setdefault(when.day, []).append(item)
        return calendar

    def get_optimal_publish_date(self) -> datetime:
        """The first day from tomorrow with nothing scheduled, at 09:00."""
        taken = {i.scheduled_for.date() for i in self.get_scheduled_content("scheduled", limit=None)}
        day = self.clock().date() + timedelta(days=1)
        while day in taken:
            day += timedelta(days=1)
        return datetime.combine(day, OPTIMAL_PUBLISH_TIME)

    def get_scheduling_stats(self) -> dict[str, int]:
        now = self.clock()
        scheduled = self.get_scheduled_content("scheduled", limit=None)
        completed = self.get_scheduled_content("completed", limit=None)

        week_start = now.date() - timedelta(days=now.weekday())
        week_end = week_start + timedelta(days=6)
        return {
            "total_scheduled": len(scheduled),
            "completed_this_month": sum(
                1 for i in completed
                if i.scheduled_for.year == now.year and i.scheduled_for.month == now.month
            ),
            "upcoming_this_week": sum(
                1 for i in scheduled if week_start <= i.scheduled_for.date() <= week_end
            ),
        }

    def get_scheduling_suggestions(self) -> list[ContentSuggestion]:
        """Seasonal topics plus product and category guides when a catalog exists."""
        now = self.clock()
        suggested_date = self.get_optimal_publish_date().isoformat(sep=" ")
        suggestions = seasonal_suggestions(now.month, suggested_date)
        if self.catalog is None:
            return suggestions

        products = self.catalog.list_products()
        # Stable sort keeps catalog order among equal sales
        popular = sorted(products, key=lambda p: self.catalog.product_sales(p.id), reverse=True)
        for product in popular[:PRODUCT_SUGGESTION_LIMIT]:
            suggestions.append(ContentSuggestion(
                topic=f"Complete Guide to {product.name}",
                type="product_guide",
                priority=Priority.HIGH,
                description=f"Comprehensive guide for {product.name}",
                suggested_date=suggested_date,
                product_id=product.id,
            ))
        for category in self.catalog.top_categories(PRODUCT_SUGGESTION_LIMIT):
            suggestions.append(ContentSuggestion(
                topic=f"Best {category.name} Products {now.year}",
                type="category_guide",
                priority=Priority.MEDIUM,
                description=f"Product recommendations for {category.name}",
                suggested_date=suggested_date,
                category=category.name,
            ))
        return suggestions


class AutomationRunner:
    """
    Recurring jobs: daily generation, weekly scan, monthly brand refresh.

    Args:
        generator: Content generator.
        scanner: Content scanner.
        brand_analyzer: Brand analyzer.
        repository: Content repository, for recent posts.
        options: Settings store for logs and the last-run marker.
        config: ``auto_publish`` and ``content_frequency``.
        clock: Returns the current time.
    """

    def __init__(
        self,
        generator: ContentGenerator,
        scanner: ContentScanner,
        brand_analyzer: BrandAnalyzer,
        repository: ContentRepository,
        options: OptionStore,
        config: Optional[WriterConfig] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.generator = generator
        self.scanner = scanner
        self.brand_analyzer = brand_analyzer
        self.repository = repository
        self.options = options
        self.config = config or WriterConfig()
        self.clock = clock

    def should_generate_content(self, frequency: Optional[str] = None) -> bool:
        """True when the frequency interval has passed since the last automated post."""
        interval = FREQUENCY_INTERVALS.get(frequency or self.config.content_frequency)
        if interval is None:
            return False
        last = float(self.options.get(OptionKeys.LAST_AUTOMATED_GENERATION, 0) or 0)
        return self.clock().timestamp() - last >= interval.total_seconds()

    def run_daily_generation(self) -> OperationResult:
        """
        Generate and publish the best suggestion when automation allows it.

        Returns:
            OperationResult. ``skipped`` is True when nothing was due.
        """
        if not self.config.auto_publish:
            return OperationResult.ok("Automatic publishing is disabled", skipped=True)
        if not self.should_generate_content():
            return OperationResult.ok("Content is not due yet", skipped=True)

        suggestion = select_best_suggestion(self.generator.generate_content_suggestions())
        if suggestion is None:
            return OperationResult.ok("No content suggestions available", skipped=True)

        generation = self.generator.generate_content(suggestion.topic)
        if not generation.success:
            return generation
        published = self.generator.publish_content(generation.get("draft"), status="publish")
        if not published.success:
            return published

        now = self.clock()
        append_capped(self.options, OptionKeys.AUTOMATED_LOGS, {
            "post_id": published.get("post_id"),
            "suggestion": suggestion.to_dict(),
            "generated_at": now.isoformat(sep=" ", timespec="seconds"),
            "type": "automated",
        }, AUTOMATED_LOG_LIMIT)
        self.options.set(OptionKeys.LAST_AUTOMATED_GENERATION, now.timestamp())

        logger.info(f"Automated post {published.get('post_id')} for '{suggestion.topic}'")
        return OperationResult.ok(
            "Automated content published",
            skipped=False,
            post_id=published.get("post_id"),
            topic=suggestion.topic,
        )

    def run_weekly_scan(self) -> OperationResult:
        result = self.scanner.scan_all_content()
        if result.success:
            append_capped(self.options, OptionKeys.SCAN_LOGS, {
                "scan_data": result.get("scan").to_dict(),
                "scanned_at": self.clock().isoformat(sep=" ", timespec="seconds"),
                "type": "content_scan",
            }, SCAN_LOG_LIMIT)
        return result

    def run_monthly_brand_update(self) -> OperationResult:
        """Fold the last month's posts into the brand profile."""
        cutoff = self.clock() - BRAND_UPDATE_WINDOW
        try:
            documents = self.repository.list_documents()
        except RepositoryError as e:
            return OperationResult.fail(f"Error during brand update: {e}", ErrorType.REPOSITORY)
        recent = [doc for doc in documents if doc.date is not None and doc.date >= cutoff][:BRAND_UPDATE_POSTS]
        if not recent:
            return OperationResult.ok("No recent content to learn from", skipped=True)
        return self.brand_analyzer.update_brand_profile(recent)

    def get_automated_logs(self, limit: int = 20) -> list[dict[str, Any]]:
        logs = self.options.get(OptionKeys.AUTOMATED_LOGS, []) or []
        return list(reversed(logs))[:limit]

    def get_scan_logs(self, limit: int = 10) -> list[dict[str, Any]]:
        logs = self.options.get(OptionKeys.SCAN_LOGS, []) or []
        return list(reversed(logs))[:limit]
