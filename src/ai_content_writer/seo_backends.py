"""
SEO metadata backends.

Each SEO plugin keeps meta title, description, focus keyword and score
under its own post meta keys. One backend class per plugin maps the common
fields onto those keys; the configured backend is picked by name.
"""

import logging
from typing import Any, Optional

from .models import OperationResult, SeoMeta
from .repositories import MetaStore

logger = logging.getLogger(__name__)

META_TITLE_MIN = 30
META_TITLE_MAX = 60
META_DESCRIPTION_MIN = 120
META_DESCRIPTION_MAX = 160


class SeoMetadataBackend:
    """
    Default backend used when no SEO plugin is active.

    Subclasses override the key names. A ``None`` key means the plugin has no
    such field and it is skipped on write.
    """

    name = "default"
    plugin_name = "None"
    title_key: Optional[str] = "_ai_cw_meta_title"
    description_key: Optional[str] = "_ai_cw_meta_description"
    keyword_key: Optional[str] = "_ai_cw_focus_keyword"
    canonical_key: Optional[str] = None
    noindex_key: Optional[str] = None
    score_key = "_ai_cw_seo_score"

    def __init__(self, meta_store: MetaStore):
        self.meta_store = meta_store

    @property
    def is_plugin_active(self) -> bool:
        return self.name != "default"

    def _noindex_value(self, noindex: bool) -> Any:
        return noindex

    def set_seo_meta(self, post_id: int, meta: SeoMeta) -> OperationResult:
        """
        Write every non-empty field the plugin has a key for.

        Returns:
            OperationResult with ``updated`` (field -> True) and ``plugin``.
        """
        updated: dict[str, bool] = {}
        fields = (
            ("title", self.title_key, meta.meta_title),
            ("description", self.description_key, meta.meta_description),
            ("keyword", self.keyword_key, meta.focus_keyword),
            ("canonical", self.canonical_key, meta.canonical),
        )
        for label, key, value in fields:
            if key and value:
                self.meta_store.set_meta(post_id, key, value)
                updated[label] = True
        if self.noindex_key and meta.noindex:
            self.meta_store.set_meta(post_id, self.noindex_key, self._noindex_value(meta.noindex))
            updated["noindex"] = True

        logger.debug(f"Wrote SEO meta for post {post_id} via {self.name}: {sorted(updated)}")
        return OperationResult.ok("SEO meta updated", updated=updated, plugin=self.name)

    def _get(self, post_id: int, key: Optional[str]) -> str:
        if not key:
            return ""
        return self.meta_store.get_meta(post_id, key, "") or ""

    def get_meta_title(self, post_id: int) -> str:
        return self._get(post_id, self.title_key)

    def get_meta_description(self, post_id: int) -> str:
        return self._get(post_id, self.description_key)

    def get_focus_keyword(self, post_id: int) -> str:
        return self._get(post_id, self.keyword_key)

    def get_seo_score(self, post_id: int) -> int:
        score = self.meta_store.get_meta(post_id, self.score_key, 0)
        try:
            return int(score) if score else 0
        except (TypeError, ValueError):
            return 0

    def update_seo_score(self, post_id: int, score: int) -> None:
        self.meta_store.set_meta(post_id, self.score_key, score)

    def is_seo_optimal(self, post_id: int, min_score: int = 8) -> bool:
        return self.get_seo_score(post_id) >= min_score

    def get_seo_recommendations(self, post_id: int) -> list[str]:
        """Check stored meta title, description and focus keyword."""
        recommendations = []

        meta_title = self.get_meta_title(post_id)
        if not meta_title:
            recommendations.append("Add meta title")
        elif not META_TITLE_MIN <= len(meta_title) <= META_TITLE_MAX:
            recommendations.append("Optimize meta title length (30-60 characters)")

        meta_description = self.get_meta_description(post_id)
        if not meta_description:
            recommendations.append("Add meta description")
        elif not META_DESCRIPTION_MIN <= len(meta_description) <= META_DESCRIPTION_MAX:
            recommendations.append("Optimize meta description length (120-160 characters)")

        if not self.get_focus_keyword(post_id):
            recommendations.append("Add focus keyword")

        return recommendations


DefaultSeoBackend = SeoMetadataBackend


class YoastSeoBackend(SeoMetadataBackend):
    name = "yoast"
    plugin_name = "Yoast SEO"
    title_key = "_yoast_wpseo_title"
    description_key = "_yoast_wpseo_metadesc"
    keyword_key = "_yoast_wpseo_focuskw"
    canonical_key = "_yoast_wpseo_canonical"
    noindex_key = "_yoast_wpseo_meta-robots-noindex"
    score_key = "_yoast_wpseo_content_score"


class RankMathSeoBackend(SeoMetadataBackend):
    name = "rankmath"
    plugin_name = "RankMath"
    title_key = "rank_math_title"
    description_key = "rank_math_description"
    keyword_key = "rank_math_focus_keyword"
    canonical_key = "rank_math_canonical_url"
    noindex_key = "rank_math_robots"
    score_key = "rank_math_seo_score"

    def _noindex_value(self, noindex: bool) -> Any:
        # Robots directives are stored as a list
        return ["noindex"] if noindex else []


class AioseoSeoBackend(SeoMetadataBackend):
    name = "aioseo"
    plugin_name = "All in One SEO"
    title_key = "_aioseo_title"
    description_key = "_aioseo_description"
    keyword_key = "_aioseo_keywords"
    canonical_key = "_aioseo_canonical_url"
    noindex_key = "_aioseo_robots_noindex"
    score_key = "_aioseo_score"


SEO_BACKENDS: dict[str, type[SeoMetadataBackend]] = {
    "yoast": YoastSeoBackend,
    "rankmath": RankMathSeoBackend,
    "aioseo": AioseoSeoBackend,
    "none": DefaultSeoBackend,
}


def get_seo_backend(name: str, meta_store: MetaStore) -> SeoMetadataBackend:
    """
    Build the SEO metadata backend selected by configuration.

    Args:
        name: One of "yoast", "rankmath", "aioseo" or "none".
        meta_store: Per-document metadata store.

    Raises:
        ValueError: If the name is unknown.
    """
    try:
        backend_cls = SEO_BACKENDS[name]
    except KeyError:
        raise ValueError(f"Unknown SEO backend '{name}'. Choose from: {', '.join(SEO_BACKENDS)}")
    return backend_cls(meta_store)
