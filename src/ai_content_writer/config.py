# -*- coding: utf-8 -*-
"""
Centralized configuration for AI Content Writer.

This module provides a single validated configuration dataclass and the
option-store key names used to persist settings and state.
"""

import os
from dataclasses import dataclass
from typing import Any, Literal, Optional


# Which SEO plugin owns the post meta keys.
SeoBackendName = Literal["yoast", "rankmath", "aioseo", "none"]

# How often automated generation may publish a new post.
ContentFrequency = Literal["daily", "weekly", "monthly"]

DEFAULT_MODEL = "claude-sonnet-4-20250514"


class OptionKeys:
    """Flat settings-store keys. All keys share the ``ai_cw_`` prefix."""
    API_KEY = "ai_cw_api_key"
    MODEL = "ai_cw_model"
    MIN_SEO_SCORE = "ai_cw_min_seo_score"
    SEO_BACKEND = "ai_cw_seo_backend"
    SITE_URL = "ai_cw_site_url"
    SITE_NAME = "ai_cw_site_name"
    AUTO_PUBLISH = "ai_cw_auto_publish"
    CONTENT_FREQUENCY = "ai_cw_content_frequency"

    BRAND_PROFILE = "ai_cw_brand_profile"
    BRAND_PROFILE_UPDATED = "ai_cw_brand_profile_updated"
    BRAND_ANALYSIS_COMPLETED = "ai_cw_brand_analysis_completed"
    BRAND_ANALYSIS_DATE = "ai_cw_brand_analysis_date"
    BRAND_ANALYSIS_RAW = "ai_cw_brand_analysis_raw"

    CONTENT_LOGS = "ai_cw_content_logs"
    CONTENT_PATTERNS = "ai_cw_content_patterns"
    SEO_PATTERNS = "ai_cw_seo_patterns"
    LEARNING_LOGS = "ai_cw_learning_logs"

    LAST_SCAN = "ai_cw_last_scan"
    LAST_SCAN_DATE = "ai_cw_last_scan_date"

    SCHEDULED_CONTENT = "ai_cw_scheduled_content"
    AUTOMATED_LOGS = "ai_cw_automated_logs"
    LAST_AUTOMATED_GENERATION = "ai_cw_last_automated_generation"
    SCAN_LOGS = "ai_cw_scan_logs"

    STORE_ASSISTANT_LOGS = "ai_cw_store_assistant_logs"
    ECOMMERCE_ANALYSIS = "ai_cw_ecommerce_analysis"
    ECOMMERCE_ANALYSIS_DATE = "ai_cw_ecommerce_analysis_date"


# Post meta key for the focus keyword, written regardless of SEO backend.
FOCUS_KEYWORD_META_KEY = "_ai_cw_focus_keyword"


@dataclass
class WriterConfig:
    """
    Central configuration for content operations.

    Attributes:
        api_key: Completion backend credential. Falls back to ANTHROPIC_API_KEY.
        model: Model identifier sent to the completion backend.
        min_seo_score: Scores at or above this value count as "optimized".
        seo_backend: Which SEO plugin's meta keys to read and write.
        site_url: Site origin used to recognise internal links.
        site_name: Appended to generated meta titles.
        max_search_results: Cap on products returned by the store assistant.
        words_per_minute: Reading speed used for reading time.
        auto_publish: Whether automated daily generation may publish.
        content_frequency: Minimum spacing between automated publications.

        Per-call network timeouts (seconds). A timeout is a definitive failure;
        nothing is retried.
            brand_analysis_timeout, optimization_timeout, generation_timeout,
            search_timeout, promotional_timeout

        Brand sampling limits:
            brand_sample_max_posts: Maximum posts sent for brand analysis.
            brand_sample_max_chars: Characters kept per post.
            brand_sample_min_chars: Shorter posts are skipped.
    """

    api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    min_seo_score: int = 8
    seo_backend: SeoBackendName = "none"
    site_url: Optional[str] = None
    site_name: str = ""
    max_search_results: int = 5
    words_per_minute: int = 200
    auto_publish: bool = False
    content_frequency: ContentFrequency = "weekly"

    brand_analysis_timeout: float = 60.0
    optimization_timeout: float = 60.0
    generation_timeout: float = 120.0
    search_timeout: float = 30.0
    promotional_timeout: float = 60.0

    brand_sample_max_posts: int = 20
    brand_sample_max_chars: int = 5000
    brand_sample_min_chars: int = 100

    def __post_init__(self):
        """Validate configuration values."""
        if self.api_key is None:
            self.api_key = os.environ.get("ANTHROPIC_API_KEY") or None
        if not 0 <= self.min_seo_score <= 10:
            raise ValueError(f"min_seo_score must be between 0 and 10, got {self.min_seo_score}")
        if self.seo_backend not in ("yoast", "rankmath", "aioseo", "none"):
            raise ValueError(
                f"seo_backend must be 'yoast', 'rankmath', 'aioseo', or 'none', "
                f"got '{self.seo_backend}'"
            )
        if self.content_frequency not in ("daily", "weekly", "monthly"):
            raise ValueError(
                f"content_frequency must be 'daily', 'weekly', or 'monthly', "
                f"got '{self.content_frequency}'"
            )
        if self.max_search_results < 1:
            raise ValueError(f"max_search_results must be >= 1, got {self.max_search_results}")
        if self.words_per_minute < 1:
            raise ValueError(f"words_per_minute must be >= 1, got {self.words_per_minute}")
        for name in (
            "brand_analysis_timeout",
            "optimization_timeout",
            "generation_timeout",
            "search_timeout",
            "promotional_timeout",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be > 0, got {getattr(self, name)}")

    @property
    def has_api_key(self) -> bool:
        """Check if a completion backend credential is configured."""
        return bool(self.api_key and self.api_key.strip())

    @classmethod
    def from_env(cls, **overrides) -> "WriterConfig":
        """Create config from environment variables.

        Reads ANTHROPIC_API_KEY, AI_CW_MODEL, AI_CW_SEO_BACKEND and AI_CW_SITE_URL.
        """
        values: dict[str, Any] = {
            "api_key": os.environ.get("ANTHROPIC_API_KEY"),
            "model": os.environ.get("AI_CW_MODEL", DEFAULT_MODEL),
            "seo_backend": os.environ.get("AI_CW_SEO_BACKEND", "none"),
            "site_url": os.environ.get("AI_CW_SITE_URL"),
        }
        values.update(overrides)
        return cls(**values)

    @classmethod
    def from_options(cls, store, **overrides) -> "WriterConfig":
        """Create config from a flat option store.

        Args:
            store: Any object with ``get(key, default)``.
            **overrides: Override any config values.
        """
        values: dict[str, Any] = {
            "api_key": store.get(OptionKeys.API_KEY) or None,
            "model": store.get(OptionKeys.MODEL, DEFAULT_MODEL),
            "min_seo_score": int(store.get(OptionKeys.MIN_SEO_SCORE, 8)),
            "seo_backend": store.get(OptionKeys.SEO_BACKEND, "none"),
            "site_url": store.get(OptionKeys.SITE_URL),
            "site_name": store.get(OptionKeys.SITE_NAME, ""),
            "auto_publish": bool(store.get(OptionKeys.AUTO_PUBLISH, False)),
            "content_frequency": store.get(OptionKeys.CONTENT_FREQUENCY, "weekly"),
        }
        values.update(overrides)
        return cls(**values)
