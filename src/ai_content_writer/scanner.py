"""
Site-wide content scan.

Looks for SEO gaps, uncovered brand topics, thin content, weak internal
linking and under-used categories. Each list is computed independently.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Optional
from urllib.parse import urlparse

from .brand import profile_list
from .config import OptionKeys, WriterConfig
from .models import (
    ContentOpportunity,
    Document,
    ErrorType,
    KeywordOpportunity,
    LinkedPost,
    LinkingStats,
    MissingTopic,
    OperationResult,
    PostSeoGaps,
    Priority,
    ScanResult,
    SeoGap,
    Severity,
)
from .repositories import ContentRepository, OptionStore, RepositoryError
from .seo_backends import (
    META_DESCRIPTION_MAX,
    META_DESCRIPTION_MIN,
    META_TITLE_MAX,
    META_TITLE_MIN,
    SeoMetadataBackend,
    get_seo_backend,
)
from .text_utils import extract_links, images_without_alt, is_internal_url, strip_tags

logger = logging.getLogger(__name__)

MIN_CONTENT_LENGTH = 300
POPULAR_POSTS_LIMIT = 5
POPULAR_EXPAND_BELOW = 1000
POPULAR_SUGGESTED_LENGTH = 1500
SHORT_CONTENT_BELOW = 500
SHORT_POSTS_LIMIT = 10
UNDERUSED_CATEGORY_BELOW = 3
CATEGORY_TARGET_POSTS = 5

COMPETITOR_ANALYSIS_UNAVAILABLE = {
    "status": "not_available",
    "message": "Competitor analysis requires an external search data integration",
}


def topic_keywords(topic: str) -> list[str]:
    return [topic, f"{topic} guide", f"how to {topic}"]


def _linked(doc: Document) -> LinkedPost:
    return LinkedPost(post_id=doc.id, post_title=doc.title, post_url=doc.url)


class ContentScanner:
    """
    Scans published posts.

    Args:
        repository: Content repository.
        options: Settings store for the brand profile and last scan.
        config: Site URL and SEO backend name.
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

    def scan_all_content(self) -> OperationResult:
        """
        Run every check and persist the result.

        Returns:
            OperationResult with ``scan`` (a ScanResult).
        """
        try:
            posts = self.repository.list_documents()
            categories = self.repository.list_categories()
        except RepositoryError as e:
            logger.error(f"Content scan failed: {e}")
            return OperationResult.fail(f"Error during content scan: {e}", ErrorType.REPOSITORY)

        scan = ScanResult(
            seo_gaps=self.find_seo_gaps(posts),
            missing_topics=self.find_missing_topics(posts),
            content_opportunities=self.find_content_opportunities(posts),
            internal_linking=self.analyze_internal_linking(posts),
            keyword_opportunities=self.find_keyword_opportunities(posts, categories),
            competitor_analysis=dict(COMPETITOR_ANALYSIS_UNAVAILABLE),
        )
        self.options.set(OptionKeys.LAST_SCAN, scan.to_dict())
        self.options.set(OptionKeys.LAST_SCAN_DATE, self.clock().isoformat(sep=" ", timespec="seconds"))
        logger.info(f"Scanned {len(posts)} posts: {len(scan.seo_gaps)} with SEO gaps")
        return OperationResult.ok("Content scan completed successfully", scan=scan)

    def find_seo_gaps(self, posts: list[Document]) -> list[PostSeoGaps]:
        results = []
        for post in posts:
            gaps = []

            meta_title = self.seo_backend.get_meta_title(post.id)
            if not meta_title:
                gaps.append(SeoGap("missing_meta_title", Severity.HIGH, "Missing meta title"))
            elif not META_TITLE_MIN <= len(meta_title) <= META_TITLE_MAX:
                gaps.append(SeoGap("meta_title_length", Severity.MEDIUM, "Meta title length not optimal"))

            meta_description = self.seo_backend.get_meta_description(post.id)
            if not meta_description:
                gaps.append(SeoGap("missing_meta_description", Severity.HIGH, "Missing meta description"))
            elif not META_DESCRIPTION_MIN <= len(meta_description) <= META_DESCRIPTION_MAX:
                gaps.append(SeoGap(
                    "meta_description_length", Severity.MEDIUM, "Meta description length not optimal"
                ))

            if not self.seo_backend.get_focus_keyword(post.id):
                gaps.append(SeoGap("missing_focus_keyword", Severity.HIGH, "Missing focus keyword"))

            if len(strip_tags(post.content)) < MIN_CONTENT_LENGTH:
                gaps.append(SeoGap("content_too_short", Severity.MEDIUM, "Content too short for good SEO"))

            missing_alt = images_without_alt(post.content)
            if missing_alt:
                gaps.append(SeoGap("missing_alt_text", Severity.MEDIUM, f"{missing_alt} images missing alt text"))

            if gaps:
                results.append(PostSeoGaps(post.id, post.title, post.url, gaps))
        return results

    def find_missing_topics(self, posts: list[Document]) -> list[MissingTopic]:
        """Brand main topics that no post category mentions (either way round)."""
        profile = self.options.get(OptionKeys.BRAND_PROFILE, {}) or {}
        brand_topics = [str(t) for t in profile_list(profile, "content_themes", "main_topics")]
        if not brand_topics:
            return []

        existing = {c.lower() for post in posts for c in post.categories}
        missing = []
        for topic in brand_topics:
            topic_lower = topic.lower()
            covered = any(topic_lower in c or c in topic_lower for c in existing if c)
            if not covered:
                missing.append(MissingTopic(topic, Priority.MEDIUM, topic_keywords(topic)))
        return missing

    def find_content_opportunities(self, posts: list[Document]) -> list[ContentOpportunity]:
        opportunities = []

        # sorted() is stable, so equal comment counts keep repository order
        popular = sorted(posts, key=lambda p: p.comment_count, reverse=True)[:POPULAR_POSTS_LIMIT]
        for post in popular:
            length = len(strip_tags(post.content))
            if length < POPULAR_EXPAND_BELOW:
                opportunities.append(ContentOpportunity(
                    type="expand_popular_content",
                    post_id=post.id,
                    post_title=post.title,
                    priority=Priority.HIGH,
                    current_length=length,
                    suggested_length=POPULAR_SUGGESTED_LENGTH,
                ))

        short_posts = [p for p in posts if len(strip_tags(p.content)) < SHORT_CONTENT_BELOW]
        for post in short_posts[:SHORT_POSTS_LIMIT]:
            opportunities.append(ContentOpportunity(
                type="improve_short_content",
                post_id=post.id,
                post_title=post.title,
                priority=Priority.MEDIUM,
                current_length=len(strip_tags(post.content)),
            ))
        return opportunities

    def analyze_internal_linking(self, posts: list[Document]) -> LinkingStats:
        """
        Find posts with no outgoing internal links and posts nothing links to.

        A post without internal links is also a link opportunity when another
        post shares one of its categories.
        """
        site_url = self.config.site_url
        outgoing: dict[int, list[str]] = {
            post.id: [h for h in extract_links(post.content) if is_internal_url(h, site_url)]
            for post in posts
        }
        stats = LinkingStats()

        for post in posts:
            if not outgoing[post.id]:
                stats.posts_without_internal_links.append(_linked(post))
                if any(set(post.categories) & set(other.categories) for other in posts if other.id != post.id):
                    stats.link_opportunities.append(_linked(post))

            targets = self._url_forms(post.url)
            incoming = any(
                self._normalize(href) in targets
                for other in posts if other.id != post.id
                for href in outgoing[other.id]
            )
            if not incoming:
                stats.orphaned_posts.append(_linked(post))
        return stats

    @staticmethod
    def _normalize(url: str) -> str:
        return url.strip().rstrip("/").lower()

    def _url_forms(self, url: str) -> set[str]:
        """The absolute permalink and its root-relative path."""
        if not url:
            return set()
        parsed = urlparse(url)
        path = parsed.path or "/"
        if parsed.query:
            path += f"?{parsed.query}"
        return {self._normalize(url), self._normalize(path)}

    def find_keyword_opportunities(
        self, posts: list[Document], categories: list[str]
    ) -> list[KeywordOpportunity]:
        opportunities = []
        for category in categories:
            count = sum(1 for post in posts if category in post.categories)
            if count < UNDERUSED_CATEGORY_BELOW:
                opportunities.append(KeywordOpportunity(
                    type="underutilized_category",
                    category=category,
                    post_count=count,
                    suggested_posts=CATEGORY_TARGET_POSTS - count,
                ))
        return opportunities

    def get_last_scan_results(self) -> dict[str, Any]:
        return self.options.get(OptionKeys.LAST_SCAN, {}) or {}

    def get_last_scan_date(self) -> str:
        return self.options.get(OptionKeys.LAST_SCAN_DATE, "") or ""
