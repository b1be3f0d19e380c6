"""
Brand profile derivation and merging.

The brand profile summarises a site's tone, vocabulary, themes and SEO
conventions. It is derived from published content by the completion
backend and grows by union as new content is analysed.
"""

import copy
import logging
from datetime import datetime
from typing import Any, Callable, Optional, Union

from .config import OptionKeys, WriterConfig
from .llm_client import CompletionBackend
from .models import BrandProfile, Document, ErrorType, OperationResult
from .repositories import ContentRepository, OptionStore, RepositoryError
from .response_parsing import extract_json_object
from .text_utils import strip_tags

logger = logging.getLogger(__name__)

BRAND_MAX_TOKENS = 2000
BRAND_TEMPERATURE = 0.3

BRAND_PROFILE_TEMPLATE = """{
  "tone_of_voice": {
    "formality": "formal/informal/mixed",
    "personality": "professional/friendly/authoritative/casual",
    "emotional_tone": "neutral/positive/enthusiastic/serious",
    "writing_style": "conversational/technical/educational/persuasive"
  },
  "language_characteristics": {
    "primary_language": "language_code",
    "vocabulary_level": "basic/intermediate/advanced",
    "sentence_structure": "simple/complex/mixed",
    "common_phrases": ["phrase1", "phrase2", "phrase3"],
    "technical_terms": ["term1", "term2", "term3"]
  },
  "content_themes": {
    "main_topics": ["topic1", "topic2", "topic3"],
    "content_categories": ["category1", "category2", "category3"],
    "target_audience": "description of target audience",
    "content_goals": ["goal1", "goal2", "goal3"]
  },
  "seo_patterns": {
    "common_keywords": ["keyword1", "keyword2", "keyword3"],
    "title_patterns": "description of title patterns",
    "content_structure": "description of content structure",
    "internal_linking_patterns": "description of linking patterns"
  },
  "brand_guidelines": {
    "voice_guidelines": "specific voice guidelines",
    "style_preferences": "style preferences",
    "content_standards": "content quality standards",
    "seo_requirements": "SEO requirements and patterns"
  }
}"""


def _union(existing: list[Any], incoming: list[Any]) -> list[Any]:
    merged: list[Any] = []
    for item in existing + incoming:
        if item not in merged:
            merged.append(item)
    return merged


def merge_brand_profiles(existing: Optional[BrandProfile], incoming: Optional[BrandProfile]) -> BrandProfile:
    """
    Recursively union two brand profiles.

    Mappings merge key-wise, lists are concatenated with duplicates removed in
    first-seen order, and for scalars the incoming value wins. A list meeting a
    scalar treats the scalar as a one-item list. Neither input is modified.

    Args:
        existing: Stored profile.
        incoming: Newly derived profile.

    Returns:
        The merged profile.
    """
    result: BrandProfile = copy.deepcopy(existing) if existing else {}
    for key, new_value in (incoming or {}).items():
        if key not in result:
            result[key] = copy.deepcopy(new_value)
            continue
        old_value = result[key]
        if isinstance(old_value, dict) and isinstance(new_value, dict):
            result[key] = merge_brand_profiles(old_value, new_value)
        elif isinstance(old_value, list) or isinstance(new_value, list):
            old_list = old_value if isinstance(old_value, list) else [old_value]
            new_list = new_value if isinstance(new_value, list) else [new_value]
            result[key] = _union(old_list, copy.deepcopy(new_list))
        elif new_value is not None:
            result[key] = copy.deepcopy(new_value)
    return result


def profile_list(profile: Optional[BrandProfile], section: str, key: str) -> list[Any]:
    """Read a profile leaf as a list. Scalars become one-item lists."""
    value = ((profile or {}).get(section) or {}).get(key)
    if value is None or value == "":
        return []
    return list(value) if isinstance(value, list) else [value]


def build_analysis_prompt(sample: list[dict[str, Any]]) -> str:
    """Build the brand analysis prompt for a content sample."""
    content_text = ""
    for post in sample:
        content_text += f"Title: {post['title']}\n"
        content_text += f"Content: {post['content']}\n"
        content_text += f"Categories: {', '.join(post['categories'])}\n"
        content_text += f"Tags: {', '.join(post['tags'])}\n\n"

    return (
        "Analyze the following blog content and provide a comprehensive brand analysis. "
        "Please respond in JSON format with the following structure:\n\n"
        f"{BRAND_PROFILE_TEMPLATE}\n\n"
        "Content to analyze:\n\n"
        f"{content_text}"
    )


class BrandAnalyzer:
    """
    Derives the brand profile from site content and keeps it in the settings store.

    Args:
        backend: Completion backend used for the analysis.
        repository: Source of published posts and pages.
        options: Settings store holding the profile and analysis state.
        config: Sample limits and timeout.
        clock: Returns the current time.
    """

    def __init__(
        self,
        backend: CompletionBackend,
        repository: ContentRepository,
        options: OptionStore,
        config: Optional[WriterConfig] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.backend = backend
        self.repository = repository
        self.options = options
        self.config = config or WriterConfig()
        self.clock = clock

    def _now(self) -> str:
        return self.clock().isoformat(sep=" ", timespec="seconds")

    def prepare_content_sample(self, documents: list[Document]) -> list[dict[str, Any]]:
        """Pick at most N documents with enough text, truncating each."""
        sample = []
        for doc in documents:
            if len(sample) >= self.config.brand_sample_max_posts:
                break
            content = strip_tags(doc.content)[:self.config.brand_sample_max_chars]
            if len(content) < self.config.brand_sample_min_chars:
                continue
            sample.append({
                "title": doc.title,
                "content": content,
                "categories": list(doc.categories),
                "tags": list(doc.tags),
            })
        return sample

    def _analyze_documents(self, documents: list[Document]) -> OperationResult:
        sample = self.prepare_content_sample(documents)
        if not sample:
            return OperationResult.fail("Not enough content to analyze", ErrorType.VALIDATION)

        response = self.backend.complete(
            build_analysis_prompt(sample),
            max_tokens=BRAND_MAX_TOKENS,
            temperature=BRAND_TEMPERATURE,
            timeout=self.config.brand_analysis_timeout,
        )
        if not response.success:
            logger.error(f"Brand analysis backend failed: {response.message}")
            return response

        raw = response.get("text", "")
        profile = extract_json_object(raw)
        if profile is None:
            logger.warning("Brand analysis response was not valid JSON; keeping raw text")
            return OperationResult.ok("Analysis returned unstructured text", parsed=False, raw_response=raw)
        return OperationResult.ok("Analysis parsed", parsed=True, profile=profile)

    def _save_profile(self, profile: BrandProfile) -> None:
        self.options.set(OptionKeys.BRAND_PROFILE, profile)
        self.options.set(OptionKeys.BRAND_PROFILE_UPDATED, self._now())

    def analyze_brand(self) -> OperationResult:
        """
        Analyse all published posts and pages and merge the result into the profile.

        Returns:
            OperationResult. Parsed analyses carry ``profile``; unparsable
            responses succeed with ``parsed=False`` and ``raw_response``.
        """
        try:
            documents = self.repository.list_documents(post_types=("post", "page"))
        except RepositoryError as e:
            return OperationResult.fail(f"Error during brand analysis: {e}", ErrorType.REPOSITORY)
        if not documents:
            return OperationResult.fail("No content found to analyze", ErrorType.NOT_FOUND)

        analysis = self._analyze_documents(documents)
        if not analysis.success:
            return analysis

        if not analysis.get("parsed"):
            self.options.set(OptionKeys.BRAND_ANALYSIS_RAW, analysis.get("raw_response"))
            return OperationResult.ok(
                "Brand analysis completed but the response could not be parsed",
                parsed=False,
                raw_response=analysis.get("raw_response"),
            )

        profile = merge_brand_profiles(self.get_brand_profile(), analysis.get("profile"))
        self._save_profile(profile)
        self.options.set(OptionKeys.BRAND_ANALYSIS_COMPLETED, True)
        self.options.set(OptionKeys.BRAND_ANALYSIS_DATE, self._now())
        logger.info(f"Brand analysis completed from {len(documents)} documents")
        return OperationResult.ok("Brand analysis completed successfully", parsed=True, profile=profile)

    def update_brand_profile(self, document: Union[Document, list[Document]]) -> OperationResult:
        """Fold new documents into the profile, or run a full analysis when there is none."""
        current = self.get_brand_profile()
        if not current:
            return self.analyze_brand()

        documents = document if isinstance(document, list) else [document]
        analysis = self._analyze_documents(documents)
        if not analysis.success:
            return analysis
        if not analysis.get("parsed"):
            return OperationResult.ok(
                "Brand profile unchanged; the response could not be parsed",
                parsed=False,
                raw_response=analysis.get("raw_response"),
            )

        profile = merge_brand_profiles(current, analysis.get("profile"))
        self._save_profile(profile)
        return OperationResult.ok("Brand profile updated successfully", parsed=True, profile=profile)

    def get_brand_profile(self) -> BrandProfile:
        return self.options.get(OptionKeys.BRAND_PROFILE, {}) or {}

    def is_analysis_completed(self) -> bool:
        return bool(self.options.get(OptionKeys.BRAND_ANALYSIS_COMPLETED, False))

    def get_analysis_date(self) -> str:
        return self.options.get(OptionKeys.BRAND_ANALYSIS_DATE, "") or ""
