"""
Continuous learning from newly published content.

Each published document refines the brand profile with simple lexical
heuristics and feeds rolling statistics used for insights and
recommendations.
"""

import logging
from collections import Counter
from datetime import datetime
from typing import Any, Callable, Optional

from .brand import merge_brand_profiles
from .config import OptionKeys, WriterConfig
from .generator import calculate_reading_time
from .models import Document, ErrorType, OperationResult, Priority
from .repositories import ContentRepository, OptionStore, RepositoryError, append_capped
from .seo_backends import SeoMetadataBackend, get_seo_backend
from .text_utils import split_sentences, strip_tags, words

logger = logging.getLogger(__name__)

PATTERN_HISTORY_LIMIT = 100
LEARNING_LOG_LIMIT = 50

FORMAL_WORDS = ("therefore", "however", "furthermore", "moreover", "consequently")
INFORMAL_WORDS = ("hey", "wow", "awesome", "cool", "yeah", "gonna", "wanna")
POSITIVE_WORDS = ("great", "excellent", "amazing", "wonderful", "fantastic", "awesome", "brilliant")
NEGATIVE_WORDS = ("terrible", "awful", "horrible", "bad", "worst", "disappointing", "frustrating")
NEUTRAL_WORDS = ("good", "okay", "fine", "average", "standard", "normal")


def _count(counts: Counter, vocabulary: tuple[str, ...]) -> int:
    return sum(counts[w] for w in vocabulary)


def analyze_vocabulary_level(text: str) -> str:
    """Classify by the share of words longer than six letters."""
    tokens = words(text)
    if not tokens:
        return "basic"
    ratio = sum(1 for w in tokens if len(w) > 6) / len(tokens)
    if ratio > 0.3:
        return "advanced"
    if ratio > 0.15:
        return "intermediate"
    return "basic"


def analyze_sentence_structure(text: str) -> str:
    """Classify by average words per sentence."""
    sentences = split_sentences(text)
    if not sentences:
        return "simple"
    average = len(words(text)) / len(sentences)
    if average > 20:
        return "complex"
    if average > 15:
        return "mixed"
    return "simple"


def analyze_formality(text: str) -> str:
    counts = Counter(words(text.lower()))
    formal = _count(counts, FORMAL_WORDS)
    informal = _count(counts, INFORMAL_WORDS)
    if formal > informal:
        return "formal"
    if informal > formal:
        return "informal"
    return "mixed"


def analyze_emotional_tone(text: str) -> str:
    counts = Counter(words(text.lower()))
    positive = _count(counts, POSITIVE_WORDS)
    negative = _count(counts, NEGATIVE_WORDS)
    neutral = _count(counts, NEUTRAL_WORDS)
    if positive > negative and positive > neutral:
        return "positive"
    if negative > positive and negative > neutral:
        return "negative"
    return "neutral"


class LearningSystem:
    """
    Learns from published documents.

    Args:
        repository: Content repository.
        options: Settings store for the profile, patterns and logs.
        config: Reading speed and SEO backend name.
        seo_backend: SEO metadata backend override.
        clock: Returns the current time.
    """

    def __init__(
        self,
        repository: ContentRepository,
        options: OptionStore,
        config: Optional[WriterConfig] = None,
        seo_backend: Optional[SeoMetadataBackend] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.repository = repository
        self.options = options
        self.config = config or WriterConfig()
        self.seo_backend = seo_backend or get_seo_backend(self.config.seo_backend, repository)
        self.clock = clock

    def _now(self) -> str:
        return self.clock().isoformat(sep=" ", timespec="seconds")

    def analyze_content(self, document: Document) -> dict[str, Any]:
        """Collect the text metrics and stored SEO data for one document."""
        text = strip_tags(document.content)
        word_count = len(words(text))
        return {
            "post_id": document.id,
            "title": document.title,
            "word_count": word_count,
            "reading_time": calculate_reading_time(word_count, self.config.words_per_minute),
            "categories": list(document.categories),
            "tags": list(document.tags),
            "meta_title": self.seo_backend.get_meta_title(document.id),
            "meta_description": self.seo_backend.get_meta_description(document.id),
            "focus_keyword": self.seo_backend.get_focus_keyword(document.id),
            "seo_score": self.seo_backend.get_seo_score(document.id),
            "vocabulary_level": analyze_vocabulary_level(text),
            "sentence_structure": analyze_sentence_structure(text),
            "formality": analyze_formality(text),
            "emotional_tone": analyze_emotional_tone(text),
            "published_date": document.date.isoformat(sep=" ", timespec="seconds") if document.date else "",
            "author_id": document.author_id,
        }

    def learn_from_content(self, post_id: int) -> OperationResult:
        """
        Fold a published document into the profile and rolling statistics.

        Args:
            post_id: Document id.

        Returns:
            OperationResult with ``analysis`` on success.
        """
        try:
            document = self.repository.get_document(post_id)
        except RepositoryError as e:
            return OperationResult.fail(f"Error during learning: {e}", ErrorType.REPOSITORY)
        if document is None or not document.is_published:
            return OperationResult.fail("Post not found or not published", ErrorType.NOT_FOUND)

        analysis = self.analyze_content(document)
        self._update_brand_profile(analysis)
        self._update_content_patterns(analysis)
        self._update_seo_patterns(analysis)
        append_capped(self.options, OptionKeys.LEARNING_LOGS, {
            "post_id": post_id,
            "analysis": analysis,
            "learned_at": self._now(),
            "type": "content_learning",
        }, LEARNING_LOG_LIMIT)

        logger.info(f"Learned from document {post_id}")
        return OperationResult.ok("Learning completed successfully", analysis=analysis)

    def _update_brand_profile(self, analysis: dict[str, Any]) -> None:
        current = self.options.get(OptionKeys.BRAND_PROFILE, {}) or {}
        if not current:
            return
        learned: dict[str, Any] = {
            "language_characteristics": {
                "vocabulary_level": analysis["vocabulary_level"],
                "sentence_structure": analysis["sentence_structure"],
            },
            "tone_of_voice": {
                "formality": analysis["formality"],
                "emotional_tone": analysis["emotional_tone"],
            },
        }
        if analysis["categories"]:
            learned["content_themes"] = {"main_topics": analysis["categories"]}
        self.options.set(OptionKeys.BRAND_PROFILE, merge_brand_profiles(current, learned))
        self.options.set(OptionKeys.BRAND_PROFILE_UPDATED, self._now())

    def _update_content_patterns(self, analysis: dict[str, Any]) -> None:
        patterns = self.options.get(OptionKeys.CONTENT_PATTERNS, {}) or {}
        patterns["word_count"] = (patterns.get("word_count", []) + [analysis["word_count"]])[-PATTERN_HISTORY_LIMIT:]
        patterns["reading_time"] = (patterns.get("reading_time", []) + [analysis["reading_time"]])[-PATTERN_HISTORY_LIMIT:]
        categories = patterns.get("categories", {})
        for category in analysis["categories"]:
            categories[category] = categories.get(category, 0) + 1
        patterns["categories"] = categories
        self.options.set(OptionKeys.CONTENT_PATTERNS, patterns)

    def _update_seo_patterns(self, analysis: dict[str, Any]) -> None:
        patterns = self.options.get(OptionKeys.SEO_PATTERNS, {}) or {}
        observed = {
            "title_length": len(analysis["meta_title"]) if analysis["meta_title"] else None,
            "description_length": len(analysis["meta_description"]) if analysis["meta_description"] else None,
            "seo_score": analysis["seo_score"] or None,
        }
        for key, value in observed.items():
            if value is not None:
                patterns[key] = (patterns.get(key, []) + [value])[-PATTERN_HISTORY_LIMIT:]
        self.options.set(OptionKeys.SEO_PATTERNS, patterns)

    def get_learning_insights(self) -> dict[str, Any]:
        """Averages and top categories from the rolling statistics."""
        content_patterns = self.options.get(OptionKeys.CONTENT_PATTERNS, {}) or {}
        seo_patterns = self.options.get(OptionKeys.SEO_PATTERNS, {}) or {}
        insights: dict[str, Any] = {}

        word_counts = content_patterns.get("word_count") or []
        if word_counts:
            insights["avg_word_count"] = round(sum(word_counts) / len(word_counts))

        reading_times = content_patterns.get("reading_time") or []
        if reading_times:
            insights["avg_reading_time"] = round(sum(reading_times) / len(reading_times))

        categories = content_patterns.get("categories") or {}
        if categories:
            insights["popular_categories"] = dict(Counter(categories).most_common(5))

        scores = seo_patterns.get("seo_score") or []
        if scores:
            insights["avg_seo_score"] = round(sum(scores) / len(scores), 1)

        return insights

    def get_content_recommendations(self) -> list[dict[str, str]]:
        insights = self.get_learning_insights()
        recommendations = []

        if "avg_word_count" in insights and insights["avg_word_count"] < 500:
            recommendations.append({
                "type": "word_count",
                "message": "Consider increasing content length for better SEO",
                "priority": Priority.MEDIUM.value,
            })
        if "avg_seo_score" in insights and insights["avg_seo_score"] < 7:
            recommendations.append({
                "type": "seo_score",
                "message": "Focus on improving SEO scores for better rankings",
                "priority": Priority.HIGH.value,
            })
        if "popular_categories" in insights and len(insights["popular_categories"]) < 3:
            recommendations.append({
                "type": "category_diversity",
                "message": "Consider diversifying content across more categories",
                "priority": Priority.LOW.value,
            })
        return recommendations

    def get_learning_logs(self, limit: int = 20) -> list[dict[str, Any]]:
        logs = self.options.get(OptionKeys.LEARNING_LOGS, []) or []
        return list(reversed(logs))[:limit]
