"""
Rule-based SEO scoring.

Scores content against a focus keyword on a 0-10 scale by adding fixed
weights for each satisfied criterion. There is no partial credit.
"""

import re
from dataclasses import asdict, dataclass
from typing import Any, Optional

from .models import SeoMeta
from .text_utils import (
    first_paragraph,
    has_headings,
    has_internal_links,
    split_sentences,
    strip_tags,
    trim_words,
    words,
)

TRANSITION_WORDS = (
    "however", "therefore", "furthermore", "moreover", "additionally",
    "consequently", "meanwhile", "nevertheless", "nonetheless",
    "similarly", "likewise", "conversely", "alternatively",
    "firstly", "secondly", "finally", "initially", "ultimately",
    "specifically", "particularly", "especially", "notably",
    "indeed", "certainly", "obviously", "clearly", "evidently",
)

PASSIVE_INDICATORS = (
    "was", "were", "been", "being", "is", "are", "am",
    "have been", "has been", "had been", "will be",
    "can be", "could be", "should be", "would be",
)

# Criterion weights, max total 10
POINTS_KEYWORD_FIRST_PARAGRAPH = 2
POINTS_KEYWORD_DENSITY = 2
POINTS_CONTENT_LENGTH = 1
POINTS_TRANSITION_WORDS = 1
POINTS_PASSIVE_VOICE = 1
POINTS_HEADINGS = 1
POINTS_INTERNAL_LINKS = 1
POINTS_READABILITY = 1

MIN_KEYWORD_DENSITY = 0.5
MAX_KEYWORD_DENSITY = 2.0
MIN_CONTENT_LENGTH = 300
MIN_TRANSITION_RATIO = 0.3
MAX_PASSIVE_RATIO = 0.1
MIN_SENTENCE_WORDS = 10
MAX_SENTENCE_WORDS = 20

META_TITLE_MAX = 60
META_DESCRIPTION_MIN = 120
META_DESCRIPTION_MAX = 160
META_DESCRIPTION_WORDS = 25


def _phrase_pattern(phrase: str) -> re.Pattern:
    return re.compile(r"\b" + r"\s+".join(re.escape(p) for p in phrase.split()) + r"\b")


_TRANSITION_PATTERNS = [_phrase_pattern(w) for w in TRANSITION_WORDS]
_PASSIVE_PATTERNS = [_phrase_pattern(w) for w in PASSIVE_INDICATORS]


@dataclass
class SeoScoreBreakdown:
    """Per-criterion outcome of a scoring run plus the metrics behind it."""
    keyword_in_first_paragraph: bool
    keyword_density_ok: bool
    content_length_ok: bool
    transition_words_ok: bool
    passive_voice_ok: bool
    has_headings: bool
    has_internal_links: bool
    readable: bool
    word_count: int
    keyword_density: float
    transition_ratio: float
    passive_ratio: float
    average_sentence_length: float

    @property
    def score(self) -> int:
        total = 0
        if self.keyword_in_first_paragraph:
            total += POINTS_KEYWORD_FIRST_PARAGRAPH
        if self.keyword_density_ok:
            total += POINTS_KEYWORD_DENSITY
        if self.content_length_ok:
            total += POINTS_CONTENT_LENGTH
        if self.transition_words_ok:
            total += POINTS_TRANSITION_WORDS
        if self.passive_voice_ok:
            total += POINTS_PASSIVE_VOICE
        if self.has_headings:
            total += POINTS_HEADINGS
        if self.has_internal_links:
            total += POINTS_INTERNAL_LINKS
        if self.readable:
            total += POINTS_READABILITY
        return total

    def criteria(self) -> dict[str, bool]:
        """Criterion name -> passed, in scoring order."""
        return {
            "keyword_in_first_paragraph": self.keyword_in_first_paragraph,
            "keyword_density_ok": self.keyword_density_ok,
            "content_length_ok": self.content_length_ok,
            "transition_words_ok": self.transition_words_ok,
            "passive_voice_ok": self.passive_voice_ok,
            "has_headings": self.has_headings,
            "has_internal_links": self.has_internal_links,
            "readable": self.readable,
        }

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["score"] = self.score
        return data


class SeoScorer:
    """
    Heuristic SEO scorer.

    Args:
        site_url: Site origin. Absolute links to this host count as internal,
            as do root-relative links.
        min_score: Scores at or above this value count as optimized.
    """

    def __init__(self, site_url: Optional[str] = None, min_score: int = 8):
        self.site_url = site_url
        self.min_score = min_score

    def score(self, content: str, keyword: str) -> int:
        """Compute the 0-10 score for content against a focus keyword."""
        return self.evaluate(content, keyword).score

    def is_optimized(self, content: str, keyword: str) -> bool:
        return self.score(content, keyword) >= self.min_score

    def evaluate(self, content: str, keyword: str) -> SeoScoreBreakdown:
        """Evaluate every criterion and keep the underlying metrics."""
        content = content or ""
        keyword = (keyword or "").strip()
        text = strip_tags(content)
        text_lower = text.lower()
        word_count = len(words(text))

        keyword_in_first = bool(keyword) and keyword.lower() in strip_tags(first_paragraph(content)).lower()

        density = 0.0
        if keyword and word_count:
            density = text_lower.count(keyword.lower()) / word_count * 100

        transition_ratio = self._ratio(_TRANSITION_PATTERNS, text_lower, word_count)
        passive_ratio = self._ratio(_PASSIVE_PATTERNS, text_lower, word_count)

        sentences = split_sentences(text)
        avg_sentence = word_count / len(sentences) if sentences else 0.0

        return SeoScoreBreakdown(
            keyword_in_first_paragraph=keyword_in_first,
            keyword_density_ok=MIN_KEYWORD_DENSITY <= density <= MAX_KEYWORD_DENSITY,
            content_length_ok=len(text) >= MIN_CONTENT_LENGTH,
            transition_words_ok=word_count > 0 and transition_ratio >= MIN_TRANSITION_RATIO,
            passive_voice_ok=word_count > 0 and passive_ratio <= MAX_PASSIVE_RATIO,
            has_headings=has_headings(content),
            has_internal_links=has_internal_links(content, self.site_url),
            readable=bool(sentences) and MIN_SENTENCE_WORDS <= avg_sentence <= MAX_SENTENCE_WORDS,
            word_count=word_count,
            keyword_density=round(density, 2),
            transition_ratio=round(transition_ratio, 3),
            passive_ratio=round(passive_ratio, 3),
            average_sentence_length=round(avg_sentence, 1),
        )

    @staticmethod
    def _ratio(patterns: list[re.Pattern], text_lower: str, word_count: int) -> float:
        if not word_count:
            return 0.0
        return sum(len(p.findall(text_lower)) for p in patterns) / word_count

    def has_headings(self, content: str) -> bool:
        return has_headings(content)

    def has_internal_links(self, content: str) -> bool:
        return has_internal_links(content, self.site_url)

    def improvements(self, original: str, optimized: str, keyword: str = "") -> list[str]:
        """
        Describe what changed between two versions in human-readable terms.

        Args:
            original: Content before optimization.
            optimized: Content after optimization.
            keyword: Focus keyword used for both scores.

        Returns:
            List of improvement labels.
        """
        result = []
        if self.score(optimized, keyword) > self.score(original, keyword):
            result.append("SEO score improved")
        if len(optimized) > len(original):
            result.append("Content length increased")
        if has_headings(optimized) and not has_headings(original):
            result.append("Headings structure added")
        if self.has_internal_links(optimized) and not self.has_internal_links(original):
            result.append("Internal links added")
        return result

    def recommendations(self, content: str, keyword: str) -> list[str]:
        """Actionable recommendations for content that falls short."""
        breakdown = self.evaluate(content, keyword)
        result = []
        if breakdown.score < self.min_score:
            result.append("Content needs SEO optimization")
        if not breakdown.has_headings:
            result.append("Add proper heading structure (H2, H3)")
        if not breakdown.has_internal_links:
            result.append("Add internal links to related content")
        if breakdown.transition_ratio < MIN_TRANSITION_RATIO:
            result.append("Increase use of transition words")
        if breakdown.passive_ratio > MAX_PASSIVE_RATIO:
            result.append("Reduce passive voice usage")
        return result

    def generate_meta_data(
        self,
        content: str,
        keyword: str,
        title: str = "",
        site_name: str = "",
    ) -> SeoMeta:
        """
        Build a meta title and description for a piece of content.

        Args:
            content: Article body.
            keyword: Focus keyword.
            title: Article title. The keyword stands in when empty.
            site_name: Appended to the meta title after " - ".

        Returns:
            SeoMeta with title, description and focus keyword set.
        """
        return SeoMeta(
            meta_title=generate_meta_title(keyword, title, site_name),
            meta_description=generate_meta_description(content, keyword),
            focus_keyword=keyword,
        )


def generate_meta_title(keyword: str, title: str = "", site_name: str = "") -> str:
    """``title - site_name``, truncated to 57 characters plus "..." past 60."""
    meta_title = title or keyword
    if site_name:
        meta_title = f"{meta_title} - {site_name}"
    if len(meta_title) > META_TITLE_MAX:
        meta_title = meta_title[:META_TITLE_MAX - 3] + "..."
    return meta_title


def generate_meta_description(content: str, keyword: str) -> str:
    """First 25 words, padded with a call to action when short, truncated when long."""
    description = trim_words(content, META_DESCRIPTION_WORDS)
    if len(description) < META_DESCRIPTION_MIN:
        description += f" Learn more about {keyword} and discover expert insights."
    elif len(description) > META_DESCRIPTION_MAX:
        description = description[:META_DESCRIPTION_MAX - 3] + "..."
    return description
