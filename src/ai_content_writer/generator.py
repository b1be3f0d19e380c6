"""
Article generation and publishing.

Generates a brand-aligned article for a topic, runs it through the
optimizer, attaches meta data and internal links, and publishes the
resulting draft through the content repository.
"""

import json
import logging
import math
import re
from collections import Counter
from datetime import datetime
from typing import Any, Callable, Optional

from .brand import profile_list
from .config import FOCUS_KEYWORD_META_KEY, OptionKeys, WriterConfig
from .llm_client import CompletionBackend
from .models import BrandProfile, ContentDraft, ErrorType, OperationResult, Priority
from .optimizer import ContentOptimizer
from .repositories import ContentRepository, OptionStore, RepositoryError, append_capped
from .seo_backends import SeoMetadataBackend, get_seo_backend
from .seo_scorer import SeoScorer
from .suggestions import ContentSuggestion, seasonal_suggestions
from .text_utils import count_words, words

logger = logging.getLogger(__name__)

GENERATION_MAX_TOKENS = 3000
GENERATION_TEMPERATURE = 0.7
DEFAULT_WORD_COUNT = 1000
RELATED_POSTS_LIMIT = 3
CONTENT_LOG_LIMIT = 100

INTERNAL_LINK_MARKER = re.compile(r"\[INTERNAL_LINK:([^\]]+)\]")

STOPWORDS = frozenset({
    "the", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by",
    "is", "are", "was", "were", "be", "been", "have", "has", "had", "do", "does",
    "did", "will", "would", "could", "should", "may", "might", "can", "this",
    "that", "these", "those", "a", "an",
})


def calculate_reading_time(word_count: int, words_per_minute: int = 200) -> int:
    """Minutes to read, rounded up."""
    if word_count <= 0:
        return 0
    return math.ceil(word_count / words_per_minute)


def extract_keyword(topic: str, content: str = "") -> str:
    """
    Derive a focus keyword for generated content.

    The first three words of the topic are used. When that is shorter than
    five characters, the most frequent non-stopword longer than three letters
    in the content is used instead.
    """
    keyword = " ".join(topic.lower().split()[:3])
    if len(keyword) >= 5:
        return keyword

    counts = Counter(w for w in words(content.lower()) if w not in STOPWORDS and len(w) > 3)
    if counts:
        return counts.most_common(1)[0][0]
    return keyword


def _json_section(label: str, value: Any) -> str:
    return f"{label}: {json.dumps(value)}" if value else ""


def build_generation_prompt(topic: str, brand_profile: BrandProfile, options: dict[str, Any]) -> str:
    """Build the article generation prompt."""
    word_count = options.get("word_count") or DEFAULT_WORD_COUNT
    tone = options.get("tone") or ""
    tone_line = f"\n- Tone: {tone}" if tone else ""

    brand_guidelines = _json_section("Brand Guidelines", brand_profile.get("brand_guidelines"))
    tone_voice = _json_section("Tone of Voice", brand_profile.get("tone_of_voice"))
    content_themes = _json_section("Content Themes", brand_profile.get("content_themes"))

    return f"""Write a comprehensive, SEO-optimized blog post about '{topic}'.

Requirements:
- Word count: approximately {word_count} words{tone_line}
- Include proper heading structure (H2, H3)
- Use engaging, informative content
- Include actionable insights and tips
- Add relevant examples and case studies
- Ensure content is original and valuable
- Write in a professional yet accessible tone
- Include a compelling introduction and conclusion
- Add internal linking opportunities (mark with [INTERNAL_LINK:keyword])

{brand_guidelines}
{tone_voice}
{content_themes}

Please write only the content without any additional commentary or explanations. The content should be ready for publication."""


class ContentGenerator:
    """
    Generates, links and publishes articles.

    Args:
        backend: Completion backend.
        repository: Content repository for related posts and publishing.
        options: Settings store holding the brand profile and generation logs.
        config: Thresholds, timeouts and the SEO backend name.
        optimizer: Optimizer override.
        seo_backend: SEO metadata backend override.
        clock: Returns the current time.
    """

    def __init__(
        self,
        backend: CompletionBackend,
        repository: ContentRepository,
        options: OptionStore,
        config: Optional[WriterConfig] = None,
        optimizer: Optional[ContentOptimizer] = None,
        seo_backend: Optional[SeoMetadataBackend] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.backend = backend
        self.repository = repository
        self.options = options
        self.config = config or WriterConfig()
        self.optimizer = optimizer or ContentOptimizer(backend, self.config, options)
        self.scorer: SeoScorer = self.optimizer.scorer
        self.seo_backend = seo_backend or get_seo_backend(self.config.seo_backend, repository)
        self.clock = clock

    def get_brand_profile(self) -> BrandProfile:
        return self.options.get(OptionKeys.BRAND_PROFILE, {}) or {}

    def generate_content(self, topic: str, options: Optional[dict[str, Any]] = None) -> OperationResult:
        """
        Generate an article draft for a topic.

        Args:
            topic: Article topic, also used as the title.
            options: ``word_count`` and ``tone``.

        Returns:
            OperationResult with ``draft`` (a ContentDraft) on success.
        """
        options = options or {}
        if not topic or not topic.strip():
            return OperationResult.fail("Topic is required", ErrorType.VALIDATION)

        brand_profile = self.get_brand_profile()
        if not brand_profile:
            return OperationResult.fail(
                "Brand analysis not completed. Please run brand analysis first.",
                ErrorType.NOT_FOUND,
            )

        response = self.backend.complete(
            build_generation_prompt(topic, brand_profile, options),
            max_tokens=GENERATION_MAX_TOKENS,
            temperature=GENERATION_TEMPERATURE,
            timeout=self.config.generation_timeout,
        )
        if not response.success:
            logger.error(f"Generation backend failed for '{topic}': {response.message}")
            return response

        content = response.get("text", "")
        keyword = extract_keyword(topic, content)

        optimized = self.optimizer.optimize(content, keyword, brand_profile)
        if optimized.success:
            content = optimized.get("content", content)
        else:
            logger.warning(f"Optimization skipped for '{topic}': {optimized.message}")

        meta = self.scorer.generate_meta_data(content, keyword, topic, self.config.site_name)
        content = self.add_internal_links(content, keyword)

        word_count = count_words(content)
        draft = ContentDraft(
            title=topic,
            content=content,
            keyword=keyword,
            seo_score=self.scorer.score(content, keyword),
            word_count=word_count,
            reading_time=calculate_reading_time(word_count, self.config.words_per_minute),
            meta_data=meta,
        )
        logger.info(f"Generated '{topic}' ({word_count} words, score {draft.seo_score})")
        return OperationResult.ok("Content generated successfully", draft=draft)

    def _link(self, url: str, title: str, text: str) -> str:
        safe_title = title.replace('"', "&quot;")
        return f'<a href="{url}" title="{safe_title}">{text}</a>'

    def add_internal_links(self, content: str, keyword: str) -> str:
        """
        Insert links to related published posts.

        ``[INTERNAL_LINK:term]`` markers become a link to the best post for
        the term, or plain text when there is none. Then, for each of up to
        three posts related to the keyword, the next free occurrence of the
        keyword (outside tags and existing links) is linked.
        """
        def resolve_marker(match: re.Match) -> str:
            term = match.group(1).strip()
            posts = self.repository.search_documents(term, limit=1)
            if not posts:
                return term
            return self._link(posts[0].url, posts[0].title, term)

        content = INTERNAL_LINK_MARKER.sub(resolve_marker, content)

        if not keyword.strip():
            return content

        pattern = re.compile(
            r"\b" + re.escape(keyword) + r"\b(?![^<]*>)(?![^<]*</a>)",
            re.IGNORECASE,
        )
        for post in self.repository.search_documents(keyword, limit=RELATED_POSTS_LIMIT):
            content = pattern.sub(lambda m, p=post: self._link(p.url, p.title, m.group(0)), content, count=1)
        return content

    def publish_content(
        self,
        draft: ContentDraft,
        status: str = "draft",
        categories: Optional[list[str]] = None,
        tags: Optional[list[str]] = None,
        author_id: int = 0,
    ) -> OperationResult:
        """
        Create a document from a draft and write its SEO data.

        If writing the SEO data fails, the new document is deleted again.

        Returns:
            OperationResult with ``post_id`` and ``post_url``.
        """
        try:
            post_id = self.repository.create_document(
                title=draft.title,
                content=draft.content,
                status=status,
                categories=categories,
                tags=tags,
                author_id=author_id,
            )
        except RepositoryError as e:
            logger.error(f"Publishing '{draft.title}' failed: {e}")
            return OperationResult.fail(f"Error publishing content: {e}", ErrorType.REPOSITORY)

        try:
            self.seo_backend.set_seo_meta(post_id, draft.meta_data)
            if draft.keyword:
                self.repository.set_meta(post_id, FOCUS_KEYWORD_META_KEY, draft.keyword)
            if draft.seo_score:
                self.seo_backend.update_seo_score(post_id, draft.seo_score)
        except RepositoryError as e:
            logger.error(f"Writing SEO data for document {post_id} failed, removing it: {e}")
            self.repository.delete_document(post_id)
            return OperationResult.fail(f"Error publishing content: {e}", ErrorType.REPOSITORY)

        append_capped(self.options, OptionKeys.CONTENT_LOGS, {
            "post_id": post_id,
            "title": draft.title,
            "keyword": draft.keyword,
            "seo_score": draft.seo_score,
            "word_count": draft.word_count,
            "generated_at": self.clock().isoformat(sep=" ", timespec="seconds"),
            "generated_by": author_id,
        }, CONTENT_LOG_LIMIT)

        document = self.repository.get_document(post_id)
        logger.info(f"Published '{draft.title}' as document {post_id} ({status})")
        return OperationResult.ok(
            "Content published successfully",
            post_id=post_id,
            post_url=document.url if document else "",
        )

    def get_content_logs(self, limit: int = 20) -> list[dict[str, Any]]:
        """Most recent generation log entries first."""
        logs = self.options.get(OptionKeys.CONTENT_LOGS, []) or []
        return list(reversed(logs))[:limit]

    def generate_content_suggestions(self) -> list[ContentSuggestion]:
        """Brand main topics plus this month's seasonal topics."""
        brand_profile = self.get_brand_profile()
        if not brand_profile:
            return []

        suggestions = [
            ContentSuggestion(
                topic=topic,
                type="brand_topic",
                priority=Priority.HIGH,
                description=f"Content about {topic} based on brand analysis",
            )
            for topic in profile_list(brand_profile, "content_themes", "main_topics")
        ]
        suggestions.extend(seasonal_suggestions(self.clock().month))
        return suggestions
