"""
Score-gated content optimization.

Content that already meets the score threshold is returned untouched.
Anything below it is rewritten by the completion backend and re-scored.
The caller's content is only ever replaced by a complete successful result.
"""

import json
import logging
from typing import Optional

from .config import OptionKeys, WriterConfig
from .llm_client import CompletionBackend
from .models import BrandProfile, ErrorType, OperationResult
from .repositories import OptionStore
from .seo_scorer import SeoScorer

logger = logging.getLogger(__name__)

OPTIMIZE_MAX_TOKENS = 2000
OPTIMIZE_TEMPERATURE = 0.3


def build_optimization_prompt(content: str, keyword: str, brand_profile: Optional[BrandProfile] = None) -> str:
    """Build the rewrite prompt with numeric targets matching the scorer's criteria."""
    brand_guidelines = ""
    if brand_profile and brand_profile.get("brand_guidelines"):
        brand_guidelines = "Brand Guidelines: " + json.dumps(brand_profile["brand_guidelines"])

    return f"""Optimize the following content for SEO while maintaining the brand voice and style. The content should achieve a 10/10 SEO score.

SEO Requirements:
1. Include the focus keyword '{keyword}' in the first paragraph
2. Maintain keyword density between 0.5% and 2%
3. Use at least 30% transition words
4. Keep passive voice under 10%
5. Include proper heading structure (H2, H3)
6. Add internal links where relevant
7. Ensure content is readable and engaging
8. Maintain content length of at least 300 words

{brand_guidelines}

Content to optimize:

{content}

Please return only the optimized content without any additional commentary or explanations."""


class ContentOptimizer:
    """
    Decides whether content needs a backend rewrite and reports the outcome.

    Args:
        backend: Completion backend used for rewrites.
        config: Supplies the score threshold, site URL and timeout.
        options: Settings store holding the brand profile.
        scorer: Scorer override. Built from ``config`` when omitted.
    """

    def __init__(
        self,
        backend: CompletionBackend,
        config: Optional[WriterConfig] = None,
        options: Optional[OptionStore] = None,
        scorer: Optional[SeoScorer] = None,
    ):
        self.backend = backend
        self.config = config or WriterConfig()
        self.options = options
        self.scorer = scorer or SeoScorer(
            site_url=self.config.site_url,
            min_score=self.config.min_seo_score,
        )

    def _brand_profile(self) -> BrandProfile:
        if self.options is None:
            return {}
        return self.options.get(OptionKeys.BRAND_PROFILE, {}) or {}

    def optimize(
        self,
        content: str,
        keyword: str,
        brand_profile: Optional[BrandProfile] = None,
    ) -> OperationResult:
        """
        Optimize content for a focus keyword.

        Args:
            content: Content to optimize.
            keyword: Focus keyword.
            brand_profile: Profile whose guidelines go into the prompt.
                Read from the settings store when omitted.

        Returns:
            OperationResult with ``score`` and ``content``. Rewrites also carry
            ``previous_score`` and ``improvements``.
        """
        if not content or not content.strip():
            return OperationResult.fail("Content is required", ErrorType.VALIDATION)
        if not keyword or not keyword.strip():
            return OperationResult.fail("Focus keyword is required", ErrorType.VALIDATION)

        current_score = self.scorer.score(content, keyword)
        if current_score >= self.config.min_seo_score:
            logger.info(f"Content already optimized for '{keyword}' (score {current_score})")
            return OperationResult.ok(
                "Content already optimized",
                score=current_score,
                content=content,
            )

        if brand_profile is None:
            brand_profile = self._brand_profile()
        prompt = build_optimization_prompt(content, keyword, brand_profile)
        response = self.backend.complete(
            prompt,
            max_tokens=OPTIMIZE_MAX_TOKENS,
            temperature=OPTIMIZE_TEMPERATURE,
            timeout=self.config.optimization_timeout,
        )
        if not response.success:
            logger.error(f"Optimization backend failed: {response.message}")
            return response

        optimized = response.get("text", "") or ""
        if not optimized.strip():
            return OperationResult.fail("Invalid response from completion backend", ErrorType.BACKEND)
        new_score = self.scorer.score(optimized, keyword)
        logger.info(f"Optimized content for '{keyword}': {current_score} -> {new_score}")
        return OperationResult.ok(
            "Content optimized successfully",
            score=new_score,
            previous_score=current_score,
            content=optimized,
            improvements=self.scorer.improvements(content, optimized, keyword),
        )
