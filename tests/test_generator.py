"""Tests for article generation and publishing."""

from unittest.mock import patch

import pytest

from ai_content_writer.config import FOCUS_KEYWORD_META_KEY, OptionKeys
from ai_content_writer.generator import (
    ContentGenerator,
    build_generation_prompt,
    calculate_reading_time,
    extract_keyword,
)
from ai_content_writer.models import ContentDraft, ErrorType, OperationResult, Priority, SeoMeta
from ai_content_writer.repositories import RepositoryError


@pytest.fixture
def make_generator(repository, options_with_profile, config, clock):
    def factory(backend, options=None):
        return ContentGenerator(
            backend,
            repository,
            options if options is not None else options_with_profile,
            config,
            clock=clock,
        )
    return factory


class TestHelpers:
    """Tests for module-level helpers."""

    @pytest.mark.parametrize("word_count,minutes", [(0, 0), (1, 1), (200, 1), (201, 2), (450, 3)])
    def test_reading_time_rounds_up(self, word_count, minutes):
        assert calculate_reading_time(word_count) == minutes

    def test_reading_time_custom_speed(self):
        assert calculate_reading_time(450, words_per_minute=300) == 2

    def test_keyword_from_topic(self):
        assert extract_keyword("Best Running Shoes for Beginners") == "best running shoes"

    def test_short_topic_uses_content_frequency(self):
        """Test that a short topic falls back to the most frequent content word."""
        content = "Running is great. Running daily builds stamina. Keep running with the group."

        assert extract_keyword("AI", content) == "running"

    def test_short_topic_without_content(self):
        assert extract_keyword("AI") == "ai"

    def test_prompt_contents(self, brand_profile):
        prompt = build_generation_prompt("Trail Tips", brand_profile, {"word_count": 800, "tone": "playful"})

        assert "blog post about 'Trail Tips'" in prompt
        assert "approximately 800 words" in prompt
        assert "- Tone: playful" in prompt
        assert "[INTERNAL_LINK:keyword]" in prompt
        assert 'Tone of Voice: {"formality": "informal"' in prompt

    def test_prompt_default_word_count(self, brand_profile):
        prompt = build_generation_prompt("Trail Tips", brand_profile, {})

        assert "approximately 1000 words" in prompt
        assert "- Tone:" not in prompt


class TestAddInternalLinks:
    """Tests for internal link insertion."""

    def test_marker_becomes_link(self, make_generator, make_backend):
        generator = make_generator(make_backend("unused"))

        content = generator.add_internal_links("<p>Read about [INTERNAL_LINK:trail] today.</p>", "")

        assert content == (
            '<p>Read about <a href="https://example.com/?p=2" '
            'title="Trail Running Tips">trail</a> today.</p>'
        )

    def test_unmatched_marker_becomes_plain_text(self, make_generator, make_backend):
        generator = make_generator(make_backend("unused"))

        assert generator.add_internal_links("See [INTERNAL_LINK:kayaking].", "") == "See kayaking."

    def test_keyword_occurrences_link_to_related_posts(self, make_generator, make_backend):
        """Test that each related post links the next free keyword occurrence."""
        generator = make_generator(make_backend("unused"))
        content = "<p>Running is fun. Running daily helps. Keep running.</p>"

        linked = generator.add_internal_links(content, "running")

        assert linked.count("<a ") == 2
        assert '<a href="https://example.com/?p=1" title="Running Shoes Buying Guide">Running</a> is fun' in linked
        assert '<a href="https://example.com/?p=2" title="Trail Running Tips">Running</a> daily' in linked
        assert linked.endswith("Keep running.</p>")

    def test_existing_links_are_not_nested(self, make_generator, make_backend):
        generator = make_generator(make_backend("unused"))
        content = '<p><a href="/x">stretching</a> then stretching again.</p>'

        linked = generator.add_internal_links(content, "stretching")

        assert linked.startswith('<p><a href="/x">stretching</a> then <a href="https://example.com/?p=3"')


class TestGenerateContent:
    """Tests for ContentGenerator.generate_content."""

    def test_requires_brand_profile(self, make_generator, make_backend, options):
        backend = make_backend("unused")

        result = make_generator(backend, options).generate_content("Running Shoes")

        assert not result.success
        assert result.message == "Brand analysis not completed. Please run brand analysis first."
        assert result.error_type == "not_found"
        assert backend.calls == []

    def test_requires_topic(self, make_generator, make_backend):
        result = make_generator(make_backend("unused")).generate_content("  ")

        assert result.error_type == "validation"

    def test_optimized_generation_needs_one_call(self, make_generator, make_backend, good_content, config):
        """Test that already-optimized output is not sent back for rewriting."""
        backend = make_backend(good_content)

        result = make_generator(backend).generate_content("Running Shoes", {"word_count": 600})

        assert result.success
        draft = result.get("draft")
        assert isinstance(draft, ContentDraft)
        assert draft.title == "Running Shoes"
        assert draft.keyword == "running shoes"
        assert draft.seo_score == 9
        assert draft.word_count == 109
        assert draft.reading_time == 1
        assert draft.meta_data.meta_title == "Running Shoes - Stride"
        assert draft.meta_data.focus_keyword == "running shoes"
        assert 'href="https://example.com/?p=1"' in draft.content
        assert len(backend.calls) == 1
        assert backend.calls[0]["max_tokens"] == 3000
        assert backend.calls[0]["temperature"] == 0.7
        assert backend.calls[0]["timeout"] == config.generation_timeout

    def test_weak_generation_is_optimized(self, make_generator, make_backend, weak_content, good_content):
        backend = make_backend(weak_content, good_content)

        result = make_generator(backend).generate_content("Running Shoes")

        assert result.get("draft").seo_score == 9
        assert len(backend.calls) == 2
        assert backend.calls[1]["prompt"].startswith("Optimize the following content")

    def test_optimizer_failure_keeps_generated_text(self, make_generator, make_backend, weak_content):
        failure = OperationResult.fail("rate limited", ErrorType.BACKEND)
        backend = make_backend(weak_content, failure)

        result = make_generator(backend).generate_content("Running Shoes")

        assert result.success
        assert "Shoes are nice" in result.get("draft").content

    def test_generation_failure_is_returned(self, make_generator, make_backend):
        failure = OperationResult.fail("API key not configured", ErrorType.CONFIGURATION)

        result = make_generator(make_backend(failure)).generate_content("Running Shoes")

        assert result is failure


class TestPublishContent:
    """Tests for publishing drafts."""

    @pytest.fixture
    def draft(self):
        return ContentDraft(
            title="Tempo Run Guide",
            content="<p>Body</p>",
            keyword="tempo run",
            seo_score=8,
            word_count=450,
            reading_time=3,
            meta_data=SeoMeta(meta_title="Tempo Run Guide - Stride", meta_description="About tempo runs."),
        )

    def test_publish_creates_document_and_meta(self, make_generator, make_backend, repository, draft):
        generator = make_generator(make_backend("unused"))

        result = generator.publish_content(draft, status="publish", categories=["Running"], author_id=3)

        assert result.success
        post_id = result.get("post_id")
        assert result.get("post_url") == f"https://example.com/?p={post_id}"
        document = repository.get_document(post_id)
        assert document.status == "publish"
        assert document.categories == ["Running"]
        assert repository.get_meta(post_id, "_ai_cw_meta_title") == "Tempo Run Guide - Stride"
        assert repository.get_meta(post_id, FOCUS_KEYWORD_META_KEY) == "tempo run"
        assert repository.get_meta(post_id, "_ai_cw_seo_score") == 8

    def test_publish_logs_generation(self, make_generator, make_backend, options_with_profile, draft):
        generator = make_generator(make_backend("unused"))

        generator.publish_content(draft, author_id=3)

        logs = generator.get_content_logs()
        assert len(logs) == 1
        assert logs[0]["title"] == "Tempo Run Guide"
        assert logs[0]["generated_at"] == "2025-03-10 12:00:00"
        assert logs[0]["generated_by"] == 3

    def test_logs_newest_first(self, make_generator, make_backend, options_with_profile):
        options_with_profile.set(OptionKeys.CONTENT_LOGS, [{"post_id": 1}, {"post_id": 2}, {"post_id": 3}])
        generator = make_generator(make_backend("unused"))

        assert [log["post_id"] for log in generator.get_content_logs(limit=2)] == [3, 2]

    def test_publish_failure(self, make_generator, make_backend, draft):
        draft.title = ""

        result = make_generator(make_backend("unused")).publish_content(draft)

        assert not result.success
        assert result.error_type == "repository"

    def test_meta_failure_removes_document(self, make_generator, make_backend, repository, draft):
        """Test that a failed SEO write leaves no half-published document behind."""
        before = {d.id for d in repository.list_documents(status=None)}
        generator = make_generator(make_backend("unused"))

        with patch.object(repository, "set_meta", side_effect=RepositoryError("meta table locked")):
            result = generator.publish_content(draft, status="publish")

        assert not result.success
        assert result.error_type == "repository"
        assert result.message == "Error publishing content: meta table locked"
        assert {d.id for d in repository.list_documents(status=None)} == before
        assert generator.get_content_logs() == []


class TestContentSuggestions:
    """Tests for generation suggestions."""

    def test_brand_topics_then_seasonal(self, make_generator, make_backend):
        suggestions = make_generator(make_backend("unused")).generate_content_suggestions()

        assert [s.topic for s in suggestions[:2]] == ["Running", "Trail Running"]
        assert suggestions[0].type == "brand_topic"
        assert suggestions[0].priority is Priority.HIGH
        assert [s.topic for s in suggestions[2:]] == [
            "Spring Marketing Trends",
            "Spring Cleaning for Business",
            "Fresh Start Marketing",
        ]

    def test_no_suggestions_without_profile(self, make_generator, make_backend, options):
        assert make_generator(make_backend("unused"), options).generate_content_suggestions() == []
