"""Tests for content scheduling and recurring automation."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from ai_content_writer.config import OptionKeys, WriterConfig
from ai_content_writer.generator import ContentGenerator
from ai_content_writer.models import OperationResult, ScheduleStatus
from ai_content_writer.repositories import RepositoryError
from ai_content_writer.scheduler import (
    SCHEDULED_GENERATION_HOOK,
    AutomationRunner,
    ContentScheduler,
)


@pytest.fixture
def generator(make_backend, good_content, repository, options_with_profile, config, clock):
    return ContentGenerator(make_backend(good_content), repository, options_with_profile, config, clock=clock)


@pytest.fixture
def scheduler(generator, options_with_profile, task_scheduler, clock):
    return ContentScheduler(generator, options_with_profile, task_scheduler, clock=clock)


class TestScheduleContent:
    """Tests for scheduling items."""

    def test_schedule_stores_item_and_event(self, scheduler, task_scheduler):
        result = scheduler.schedule_content({
            "topic": "Spring Sale",
            "scheduled_for": "2025-03-12T09:00:00",
            "keyword": "spring sale",
            "tags": "running, deals ,",
        })

        assert result.success
        schedule_id = result.get("scheduled_id")
        item = scheduler.get_item(schedule_id)
        assert item.topic == "Spring Sale"
        assert item.status is ScheduleStatus.SCHEDULED
        assert item.tags == ["running", "deals"]
        assert item.created_at == datetime(2025, 3, 10, 12, 0)
        assert task_scheduler.events == [
            (datetime(2025, 3, 12, 9, 0), SCHEDULED_GENERATION_HOOK, {"schedule_id": schedule_id}),
        ]

    def test_same_topic_gets_distinct_ids(self, scheduler):
        """Test that two items with one topic are addressable separately."""
        first = scheduler.schedule_content({"topic": "Weekly Tips", "scheduled_for": datetime(2025, 3, 12)})
        second = scheduler.schedule_content({"topic": "Weekly Tips", "scheduled_for": datetime(2025, 3, 19)})

        assert first.get("scheduled_id") != second.get("scheduled_id")
        assert len(scheduler.get_scheduled_content()) == 2

    @pytest.mark.parametrize("data,message", [
        ({"scheduled_for": "2025-03-12T09:00:00"}, "Topic is required"),
        ({"topic": "T", "scheduled_for": "next tuesday"}, "A valid scheduled date is required"),
        ({"topic": "T"}, "A valid scheduled date is required"),
        ({"topic": "T", "scheduled_for": "2025-03-01T09:00:00"}, "Scheduled date must be in the future"),
    ])
    def test_invalid_requests(self, scheduler, task_scheduler, data, message):
        result = scheduler.schedule_content(data)

        assert not result.success
        assert result.message == message
        assert result.error_type == "validation"
        assert task_scheduler.events == []

    def test_bulk_schedule_reports_each_item(self, scheduler):
        result = scheduler.bulk_schedule_content([
            {"topic": "Good", "scheduled_for": "2025-03-12T09:00:00"},
            {"topic": "Past", "scheduled_for": "2020-01-01T09:00:00"},
        ])

        outcomes = [entry["result"]["success"] for entry in result.get("results")]
        assert outcomes == [True, False]

    def test_date_with_utc_offset(self, scheduler, task_scheduler):
        """Test that offset dates are stored as naive local time."""
        result = scheduler.schedule_content({"topic": "Winter Gear", "scheduled_for": "2026-02-01T09:00:00+00:00"})

        assert result.success
        expected = datetime(2026, 2, 1, 9, 0, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
        item = scheduler.get_item(result.get("scheduled_id"))
        assert item.scheduled_for == expected
        assert item.scheduled_for.tzinfo is None
        assert task_scheduler.events[0][0] == expected

    def test_past_date_with_utc_offset(self, scheduler):
        result = scheduler.schedule_content({"topic": "Old", "scheduled_for": "2020-01-01T09:00:00+02:00"})

        assert result.message == "Scheduled date must be in the future"
        assert result.error_type == "validation"

    def test_non_numeric_word_count(self, scheduler, task_scheduler):
        """Test that a bad word count is a validation failure, not an exception."""
        result = scheduler.schedule_content({
            "topic": "Long Read",
            "scheduled_for": "2025-03-12T09:00:00",
            "word_count": "many",
        })

        assert not result.success
        assert result.message == "Word count must be a number"
        assert result.error_type == "validation"
        assert task_scheduler.events == []
        assert scheduler.get_scheduled_content() == []

    def test_bad_row_does_not_abort_bulk(self, scheduler):
        result = scheduler.bulk_schedule_content([
            {"topic": "Bad", "scheduled_for": "2025-03-12T09:00:00", "word_count": "lots"},
            {"topic": "Good", "scheduled_for": "2025-03-13T09:00:00", "word_count": "1500"},
        ])

        entries = result.get("results")
        assert [e["result"]["success"] for e in entries] == [False, True]
        assert entries[0]["result"]["message"] == "Word count must be a number"
        assert scheduler.get_scheduled_content()[0].word_count == 1500


class TestProcessScheduledContent:
    """Tests for running scheduled items."""

    def test_process_publishes_and_completes(self, scheduler, repository):
        schedule_id = scheduler.schedule_content({
            "topic": "Running Shoes",
            "scheduled_for": "2025-03-12T09:00:00",
            "category": "Running",
            "tags": ["shoes"],
        }).get("scheduled_id")

        result = scheduler.process_scheduled_content(schedule_id)

        assert result.success
        post = repository.get_document(result.get("post_id"))
        assert post.status == "publish"
        assert post.categories == ["Running"]
        assert post.tags == ["shoes"]
        item = scheduler.get_item(schedule_id)
        assert item.status is ScheduleStatus.COMPLETED
        assert item.post_id == post.id

    def test_completed_item_is_not_processed_twice(self, scheduler):
        schedule_id = scheduler.schedule_content({
            "topic": "Running Shoes", "scheduled_for": "2025-03-12T09:00:00",
        }).get("scheduled_id")
        scheduler.process_scheduled_content(schedule_id)

        result = scheduler.process_scheduled_content(schedule_id)

        assert result.error_type == "validation"

    def test_unknown_id(self, scheduler):
        assert scheduler.process_scheduled_content("missing").error_type == "not_found"

    def test_generation_failure_leaves_item_pending(self, make_backend, repository, options, task_scheduler,
                                                    config, clock):
        generator = ContentGenerator(make_backend("unused"), repository, options, config, clock=clock)
        scheduler = ContentScheduler(generator, options, task_scheduler, clock=clock)
        schedule_id = scheduler.schedule_content({
            "topic": "Running Shoes", "scheduled_for": "2025-03-12T09:00:00",
        }).get("scheduled_id")

        result = scheduler.process_scheduled_content(schedule_id)

        assert result.error_type == "not_found"
        assert scheduler.get_item(schedule_id).status is ScheduleStatus.SCHEDULED

    def test_handle_scheduled_event(self, scheduler, task_scheduler):
        scheduler.schedule_content({"topic": "Running Shoes", "scheduled_for": "2025-03-12T09:00:00"})

        results = [scheduler.handle_scheduled_event(payload)
                   for _, payload in task_scheduler.due(datetime(2025, 3, 13))]

        assert [r.success for r in results] == [True]
        assert scheduler.handle_scheduled_event({}).error_type == "validation"


class TestCancel:
    """Tests for cancelling scheduled items."""

    def test_cancel_by_id(self, scheduler, task_scheduler):
        schedule_id = scheduler.schedule_content({
            "topic": "T", "scheduled_for": "2025-03-12T09:00:00",
        }).get("scheduled_id")

        result = scheduler.cancel_scheduled_content(schedule_id)

        assert result.success
        assert scheduler.get_item(schedule_id).status is ScheduleStatus.CANCELLED
        assert task_scheduler.events == []
        assert scheduler.cancel_scheduled_content(schedule_id).error_type == "validation"

    def test_cancel_unknown_id(self, scheduler):
        assert scheduler.cancel_scheduled_content("missing").error_type == "not_found"

    def test_cancel_by_topic_cancels_all_matches(self, scheduler, task_scheduler):
        scheduler.schedule_content({"topic": "T", "scheduled_for": "2025-03-12T09:00:00"})
        scheduler.schedule_content({"topic": "T", "scheduled_for": "2025-03-13T09:00:00"})
        scheduler.schedule_content({"topic": "Other", "scheduled_for": "2025-03-14T09:00:00"})

        result = scheduler.cancel_by_topic("T")

        assert result.get("cancelled") == 2
        assert [i.topic for i in scheduler.get_scheduled_content()] == ["Other"]
        assert len(task_scheduler.events) == 1
        assert scheduler.cancel_by_topic("T").error_type == "not_found"


class TestQueries:
    """Tests for calendar, stats and suggestions."""

    def _schedule(self, scheduler, *dates):
        return [
            scheduler.schedule_content({"topic": f"Topic {i}", "scheduled_for": when}).get("scheduled_id")
            for i, when in enumerate(dates)
        ]

    def test_scheduled_content_soonest_first(self, scheduler):
        self._schedule(scheduler, "2025-03-20T09:00:00", "2025-03-12T09:00:00")

        assert [i.topic for i in scheduler.get_scheduled_content()] == ["Topic 1", "Topic 0"]
        assert len(scheduler.get_scheduled_content(limit=1)) == 1

    def test_calendar_groups_by_day(self, scheduler):
        self._schedule(scheduler, "2025-03-12T09:00:00", "2025-03-20T09:00:00", "2025-04-02T09:00:00")

        calendar = scheduler.get_content_calendar()

        assert sorted(calendar) == [12, 20]
        assert [i.topic for i in scheduler.get_content_calendar(4, 2025)[2]] == ["Topic 2"]

    def test_optimal_date_is_tomorrow_at_nine(self, scheduler):
        assert scheduler.get_optimal_publish_date() == datetime(2025, 3, 11, 9, 0)

    def test_optimal_date_skips_busy_days(self, scheduler):
        self._schedule(scheduler, "2025-03-11T15:00:00", "2025-03-12T08:00:00")

        assert scheduler.get_optimal_publish_date() == datetime(2025, 3, 13, 9, 0)

    def test_scheduling_stats(self, scheduler):
        ids = self._schedule(scheduler, "2025-03-12T09:00:00", "2025-03-20T09:00:00", "2025-03-14T09:00:00")
        scheduler.cancel_scheduled_content(ids[2])

        stats = scheduler.get_scheduling_stats()

        assert stats == {"total_scheduled": 2, "completed_this_month": 0, "upcoming_this_week": 1}

    def test_completed_items_count_this_month(self, scheduler):
        schedule_id = scheduler.schedule_content({
            "topic": "Running Shoes", "scheduled_for": "2025-03-12T09:00:00",
        }).get("scheduled_id")
        scheduler.process_scheduled_content(schedule_id)

        assert scheduler.get_scheduling_stats()["completed_this_month"] == 1

    def test_seasonal_suggestions_without_catalog(self, scheduler):
        suggestions = scheduler.get_scheduling_suggestions()

        assert [s.type for s in suggestions] == ["seasonal"] * 3
        assert suggestions[0].suggested_date == "2025-03-11 09:00:00"

    def test_product_suggestions_with_catalog(self, generator, options_with_profile, task_scheduler, catalog,
                                              clock):
        scheduler = ContentScheduler(generator, options_with_profile, task_scheduler, catalog, clock)

        suggestions = scheduler.get_scheduling_suggestions()

        guides = [s for s in suggestions if s.type == "product_guide"]
        categories = [s for s in suggestions if s.type == "category_guide"]
        assert [s.product_id for s in guides] == [10, 12, 11]
        assert guides[0].topic == "Complete Guide to Red Running Shoes"
        assert categories[0].topic == "Best Shoes Products 2025"
        assert categories[0].category == "Shoes"


class TestAutomationRunner:
    """Tests for the recurring jobs."""

    @pytest.fixture
    def auto_config(self):
        return WriterConfig(api_key="test-key", site_url="https://example.com", site_name="Stride",
                            auto_publish=True)

    @pytest.fixture
    def runner(self, generator, repository, options_with_profile, auto_config, clock):
        generator.config = auto_config
        return AutomationRunner(generator, MagicMock(), MagicMock(), repository, options_with_profile,
                                auto_config, clock)

    def test_disabled_auto_publish(self, generator, repository, options_with_profile, config, clock):
        runner = AutomationRunner(generator, MagicMock(), MagicMock(), repository, options_with_profile,
                                  config, clock)

        result = runner.run_daily_generation()

        assert result.success
        assert result.get("skipped") is True
        assert result.message == "Automatic publishing is disabled"

    def test_daily_generation_publishes_best_suggestion(self, runner, repository, options_with_profile, clock):
        result = runner.run_daily_generation()

        assert result.success
        assert result.get("skipped") is False
        assert result.get("topic") == "Running"
        assert repository.get_document(result.get("post_id")).status == "publish"
        assert options_with_profile.get(OptionKeys.LAST_AUTOMATED_GENERATION) == clock().timestamp()
        logs = runner.get_automated_logs()
        assert logs[0]["suggestion"]["type"] == "brand_topic"

    def test_generation_not_due_twice_in_a_week(self, runner):
        runner.run_daily_generation()

        result = runner.run_daily_generation()

        assert result.get("skipped") is True
        assert result.message == "Content is not due yet"

    def test_should_generate_by_frequency(self, runner, options_with_profile, clock):
        options_with_profile.set(OptionKeys.LAST_AUTOMATED_GENERATION, (clock() - timedelta(days=2)).timestamp())

        assert runner.should_generate_content("daily")
        assert not runner.should_generate_content("weekly")
        assert not runner.should_generate_content("hourly")

    def test_no_suggestions(self, generator, repository, options, auto_config, clock):
        generator.options = options
        runner = AutomationRunner(generator, MagicMock(), MagicMock(), repository, options, auto_config, clock)

        assert runner.run_daily_generation().message == "No content suggestions available"

    def test_weekly_scan_is_logged(self, runner, options_with_profile):
        scan = MagicMock()
        scan.to_dict.return_value = {"seo_gaps": []}
        runner.scanner.scan_all_content.return_value = OperationResult.ok("done", scan=scan)

        runner.run_weekly_scan()

        logs = runner.get_scan_logs()
        assert logs == [{"scan_data": {"seo_gaps": []}, "scanned_at": "2025-03-10 12:00:00", "type": "content_scan"}]

    def test_failed_scan_is_not_logged(self, runner):
        runner.scanner.scan_all_content.return_value = OperationResult.fail("boom", "repository")

        assert not runner.run_weekly_scan().success
        assert runner.get_scan_logs() == []

    def test_monthly_brand_update_uses_recent_posts(self, runner):
        runner.brand_analyzer.update_brand_profile.return_value = OperationResult.ok("updated")

        result = runner.run_monthly_brand_update()

        assert result.message == "updated"
        recent = runner.brand_analyzer.update_brand_profile.call_args.args[0]
        assert [doc.id for doc in recent] == [1, 2]

    def test_monthly_brand_update_without_recent_posts(self, generator, repository, options, config):
        runner = AutomationRunner(generator, MagicMock(), MagicMock(), repository, options, config,
                                  clock=lambda: datetime(2030, 1, 1))

        result = runner.run_monthly_brand_update()

        assert result.get("skipped") is True
        runner.brand_analyzer.update_brand_profile.assert_not_called()

    def test_monthly_brand_update_repository_error(self, generator, options, config, clock):
        repository = MagicMock()
        repository.list_documents.side_effect = RepositoryError("down")
        runner = AutomationRunner(generator, MagicMock(), MagicMock(), repository, options, config, clock)

        assert runner.run_monthly_brand_update().error_type == "repository"
