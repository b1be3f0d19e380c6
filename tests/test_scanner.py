"""Tests for the site-wide content scan."""

from unittest.mock import MagicMock

import pytest

from ai_content_writer.config import OptionKeys
from ai_content_writer.models import Document, Priority, Severity
from ai_content_writer.repositories import InMemoryContentRepository, InMemoryOptionStore, RepositoryError
from ai_content_writer.scanner import ContentScanner


@pytest.fixture
def scanner(repository, options_with_profile, config, clock):
    return ContentScanner(repository, options_with_profile, config, clock=clock)


@pytest.fixture
def posts(repository):
    return repository.list_documents()


class TestSeoGaps:
    """Tests for per-post SEO gaps."""

    def test_missing_meta_is_high_severity(self, scanner, posts):
        gaps = {g.post_id: g for g in scanner.find_seo_gaps(posts)}

        types = [gap.type for gap in gaps[1].gaps]
        assert types == ["missing_meta_title", "missing_meta_description", "missing_focus_keyword"]
        assert all(gap.severity is Severity.HIGH for gap in gaps[1].gaps)

    def test_short_content_and_missing_alt(self, scanner, posts):
        gaps = {g.post_id: g for g in scanner.find_seo_gaps(posts)}

        post_two = {gap.type: gap for gap in gaps[2].gaps}
        assert post_two["content_too_short"].severity is Severity.MEDIUM
        assert post_two["missing_alt_text"].description == "1 images missing alt text"

    def test_complete_meta_has_no_gaps(self, scanner, repository, posts):
        repository.set_meta(3, "_ai_cw_meta_title", "Stretching Basics for Runners of All Levels")
        repository.set_meta(3, "_ai_cw_meta_description", "d" * 130)
        repository.set_meta(3, "_ai_cw_focus_keyword", "stretching")

        assert 3 not in {g.post_id for g in scanner.find_seo_gaps(posts)}

    def test_length_gaps_are_medium(self, scanner, repository, posts):
        repository.set_meta(3, "_ai_cw_meta_title", "Too short")
        repository.set_meta(3, "_ai_cw_meta_description", "Also short")

        gaps = {g.post_id: g for g in scanner.find_seo_gaps(posts)}

        types = {gap.type: gap.severity for gap in gaps[3].gaps}
        assert types["meta_title_length"] is Severity.MEDIUM
        assert types["meta_description_length"] is Severity.MEDIUM


class TestMissingTopics:
    """Tests for uncovered brand topics."""

    def test_covered_topics_are_not_reported(self, scanner, posts):
        """Test that 'Trail Running' is covered by the 'Trail' category."""
        assert scanner.find_missing_topics(posts) == []

    def test_uncovered_topic(self, repository, config, posts):
        options = InMemoryOptionStore({
            OptionKeys.BRAND_PROFILE: {"content_themes": {"main_topics": ["Nutrition", "Running"]}},
        })

        missing = ContentScanner(repository, options, config).find_missing_topics(posts)

        assert len(missing) == 1
        assert missing[0].topic == "Nutrition"
        assert missing[0].priority is Priority.MEDIUM
        assert missing[0].suggested_keywords == ["Nutrition", "Nutrition guide", "how to Nutrition"]

    def test_no_profile(self, repository, options, config, posts):
        assert ContentScanner(repository, options, config).find_missing_topics(posts) == []


class TestContentOpportunities:
    """Tests for expansion and improvement opportunities."""

    def test_popular_and_short_posts(self, scanner, posts):
        opportunities = scanner.find_content_opportunities(posts)

        expand = [o for o in opportunities if o.type == "expand_popular_content"]
        short = [o for o in opportunities if o.type == "improve_short_content"]
        assert [o.post_id for o in expand] == [1, 2, 3]
        assert expand[0].suggested_length == 1500
        assert expand[0].priority is Priority.HIGH
        assert [o.post_id for o in short] == [2]
        assert short[0].priority is Priority.MEDIUM


class TestInternalLinking:
    """Tests for internal linking statistics."""

    def test_linking_stats(self, scanner, posts):
        stats = scanner.analyze_internal_linking(posts)

        assert [p.post_id for p in stats.posts_without_internal_links] == [2, 3]
        assert [p.post_id for p in stats.link_opportunities] == [2]
        assert [p.post_id for p in stats.orphaned_posts] == [1, 3]

    def test_root_relative_links_count_as_incoming(self, options, config):
        repository = InMemoryContentRepository([
            Document(id=1, title="A", content='<a href="/?p=2">B</a>'),
            Document(id=2, title="B", content='<a href="https://example.com/?p=1/">A</a>'),
        ])

        stats = ContentScanner(repository, options, config).analyze_internal_linking(repository.list_documents())

        assert stats.orphaned_posts == []
        assert stats.posts_without_internal_links == []


class TestKeywordOpportunities:
    """Tests for under-used categories."""

    def test_underused_categories(self, scanner, repository, posts):
        opportunities = scanner.find_keyword_opportunities(posts, repository.list_categories())

        assert [(o.category, o.post_count, o.suggested_posts) for o in opportunities] == [
            ("Running", 2, 3),
            ("Trail", 1, 4),
            ("Health", 1, 4),
        ]


class TestScanAllContent:
    """Tests for the full scan."""

    def test_scan_is_persisted(self, scanner, options_with_profile):
        result = scanner.scan_all_content()

        assert result.success
        assert result.message == "Content scan completed successfully"
        scan = result.get("scan")
        assert scan.competitor_analysis["status"] == "not_available"
        stored = scanner.get_last_scan_results()
        assert stored["seo_gaps"][0]["gaps"][0]["severity"] == "high"
        assert scanner.get_last_scan_date() == "2025-03-10 12:00:00"

    def test_drafts_are_not_scanned(self, scanner):
        scan = scanner.scan_all_content().get("scan")

        assert 4 not in {g.post_id for g in scan.seo_gaps}

    def test_repository_failure(self, options, config):
        repository = MagicMock()
        repository.list_documents.side_effect = RepositoryError("timeout")

        result = ContentScanner(repository, options, config, seo_backend=MagicMock()).scan_all_content()

        assert not result.success
        assert result.error_type == "repository"
        assert options.get(OptionKeys.LAST_SCAN) is None
