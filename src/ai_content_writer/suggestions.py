"""
Topic suggestions for generation and scheduling.
"""

from dataclasses import asdict, dataclass
from typing import Any, Optional

from .models import PRIORITY_ORDER, Priority

SEASONAL_TOPICS: dict[int, tuple[str, ...]] = {
    1: ("New Year Marketing Strategies", "New Year Resolutions for Business", "Planning Your Year Ahead"),
    2: ("Valentine's Day Marketing", "Love and Business", "Romantic Business Ideas"),
    3: ("Spring Marketing Trends", "Spring Cleaning for Business", "Fresh Start Marketing"),
    4: ("Easter Marketing Ideas", "Spring Business Growth", "Renewal and Growth"),
    5: ("Mother's Day Marketing", "Women in Business", "Family Business Tips"),
    6: ("Father's Day Marketing", "Summer Business Planning", "Mid-Year Review"),
    7: ("Summer Marketing Strategies", "Vacation Business Tips", "Summer Sales Boost"),
    8: ("Back to School Marketing", "Educational Content Ideas", "Learning and Development"),
    9: ("Fall Marketing Trends", "Back to Business", "Autumn Growth Strategies"),
    10: ("Halloween Marketing", "Spooky Business Tips", "Creative Marketing Ideas"),
    11: ("Thanksgiving Marketing", "Gratitude in Business", "Thank You Campaigns"),
    12: ("Christmas Marketing", "Holiday Business Tips", "Year-End Strategies"),
}

MONTH_NAMES = (
    "", "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


@dataclass
class ContentSuggestion:
    """A topic worth writing about, with why and how urgently."""
    topic: str
    type: str
    priority: Priority
    description: str = ""
    suggested_date: Optional[str] = None
    product_id: Optional[int] = None
    category: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["priority"] = self.priority.value
        return data


def seasonal_suggestions(month: int, suggested_date: Optional[str] = None) -> list[ContentSuggestion]:
    """High-priority seasonal topics for a month (1-12)."""
    return [
        ContentSuggestion(
            topic=topic,
            type="seasonal",
            priority=Priority.HIGH,
            description=f"Seasonal content for {MONTH_NAMES[month]}",
            suggested_date=suggested_date,
        )
        for topic in SEASONAL_TOPICS.get(month, ())
    ]


def select_best_suggestion(suggestions: list[ContentSuggestion]) -> Optional[ContentSuggestion]:
    """Pick the highest-priority suggestion; earlier entries win ties."""
    if not suggestions:
        return None
    ranked = sorted(suggestions, key=lambda s: PRIORITY_ORDER.get(Priority(s.priority).value, 0), reverse=True)
    return ranked[0]
