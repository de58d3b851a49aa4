from datetime import date, datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from services.burndown import (
    DEFAULT_WINDOW_DAYS, MIN_WINDOW_DAYS, PLACEHOLDER_POINTS, BurndownEngine, build_series, ideal_line, timeframe
)
from services.clock import FixedClock
from services.entities import Project, Sprint, Task


def sprint(sprint_id, start, end, project_id = 1):
    return Sprint(sprint_id, f"Sprint {sprint_id}", "", project_id, start, end)


def task(task_id, points, status = "todo", sprint_id = 1, updated_at = None):
    return Task(task_id, f"Task {task_id}", 1, status, sprint_id = sprint_id, story_points = points, updated_at = updated_at)


@pytest.mark.unit
class TestTimeframe:
    def test_no_sprints_uses_default_window_from_today(self):
        assert timeframe([], date(2024, 5, 1)) == (date(2024, 5, 1), DEFAULT_WINDOW_DAYS)

    def test_spans_earliest_start_to_latest_end(self):
        sprints = [sprint(1, date(2024, 3, 10), date(2024, 3, 20)), sprint(2, date(2024, 3, 1), date(2024, 3, 12))]
        assert timeframe(sprints, date(2024, 1, 1)) == (date(2024, 3, 1), 20)

    def test_short_range_is_widened_to_minimum(self):
        sprints = [sprint(1, date(2024, 3, 1), date(2024, 3, 3))]
        assert timeframe(sprints, date(2024, 1, 1)) == (date(2024, 3, 1), MIN_WINDOW_DAYS)


@pytest.mark.unit
class TestIdealLine:
    @pytest.mark.parametrize("total,length", [(10, 10), (5, 10), (37, 21), (1, 7), (100, 28)])
    def test_starts_at_total_and_never_increases(self, total, length):
        ideal = ideal_line(total, length)
        assert len(ideal) == length
        assert ideal[0] == total
        assert all(later <= earlier for earlier, later in zip(ideal, ideal[1:]))
        assert ideal[-1] <= ideal[0]
        assert min(ideal) >= 0

    def test_rounds_half_up(self):
        # 5 - 1 * 5 / 10 = 4.5
        assert ideal_line(5, 10)[1] == 5


@pytest.mark.unit
class TestBuildSeries:
    def test_task_done_on_day_three_of_ten_day_sprint(self):
        """One 10-point task completed on day 3 drops actual to zero from day 3"""
        start = date(2024, 3, 1)
        sprints = [sprint(1, start, start + timedelta(days = 9))]
        tasks = [task(1, 10, status = "done", updated_at = datetime(2024, 3, 4, 15, 0, tzinfo = timezone.utc))]

        series = build_series(1, sprints, tasks, today = date(2024, 3, 20))

        assert len(series) == 10
        assert [point.actual_points for point in series[:3]] == [10, 10, 10]
        assert all(point.actual_points == 0 for point in series[3:])
        assert [point.ideal_points for point in series] == [10, 9, 8, 7, 6, 5, 4, 3, 2, 1]
        assert series[0].date == start
        assert series[-1].date == date(2024, 3, 10)

    def test_same_input_gives_identical_series(self):
        sprints = [sprint(1, date(2024, 3, 1), date(2024, 3, 14))]
        tasks = [
            task(1, 3, status = "done", updated_at = datetime(2024, 3, 2, 10, 0)),
            task(2, 8),
            task(3, 5, status = "in-progress"),
        ]
        first = build_series(1, sprints, tasks, date(2024, 3, 10))
        second = build_series(1, sprints, tasks, date(2024, 3, 10))
        assert first == second
        assert repr(first) == repr(second)

    def test_no_sprints_gives_default_window(self):
        series = build_series(1, [], [], date(2024, 5, 1))
        assert len(series) == DEFAULT_WINDOW_DAYS
        assert series[0].date == date(2024, 5, 1)

    def test_zero_points_gives_placeholder_series(self):
        sprints = [sprint(1, date(2024, 3, 1), date(2024, 3, 14))]
        series = build_series(1, sprints, [task(1, None), task(2, 0)], date(2024, 3, 5))

        assert series[0].ideal_points == PLACEHOLDER_POINTS
        assert all(point.ideal_points == point.actual_points for point in series)
        assert series[-1].ideal_points < PLACEHOLDER_POINTS

    def test_future_days_stay_flat(self):
        sprints = [sprint(1, date(2024, 3, 1), date(2024, 3, 10))]
        tasks = [
            task(1, 4, status = "done", updated_at = datetime(2024, 3, 2, 8, 0)),
            task(2, 6),
        ]
        series = build_series(1, sprints, tasks, today = date(2024, 3, 4))
        assert [point.actual_points for point in series] == [10, 6, 6, 6, 6, 6, 6, 6, 6, 6]

    def test_completion_outside_timeframe_is_ignored(self):
        sprints = [sprint(1, date(2024, 3, 1), date(2024, 3, 10))]
        tasks = [task(1, 4, status = "done", updated_at = datetime(2024, 4, 15, 8, 0))]
        series = build_series(1, sprints, tasks, today = date(2024, 5, 1))
        assert all(point.actual_points == 4 for point in series)

    def test_backlog_tasks_do_not_count(self):
        sprints = [sprint(1, date(2024, 3, 1), date(2024, 3, 10))]
        tasks = [task(1, 5), task(2, 13, status = "backlog", sprint_id = None)]
        series = build_series(1, sprints, tasks, today = date(2024, 3, 1))
        assert series[0].ideal_points == 5


@pytest.mark.unit
class TestBurndownEngine:
    def test_recompute_stores_series_under_project_owner(self):
        repository = Mock()
        engine = BurndownEngine(repository, FixedClock(datetime(2024, 3, 1, 12, 0)))
        project = Project(7, "Shop", "", 3, None, None)
        sprints = [sprint(1, date(2024, 3, 1), date(2024, 3, 10), project_id = 7)]

        series = engine.recompute(project, sprints, [task(1, 5)])

        repository.upsert.assert_called_once_with(7, 3, series)
        assert all(point.project_id == 7 for point in series)

    def test_load_reads_owner_series(self):
        repository = Mock()
        engine = BurndownEngine(repository, FixedClock(datetime(2024, 3, 1, 12, 0)))
        project = Project(7, "Shop", "", 3, None, None)

        engine.load(project, viewer_id = 9)

        repository.fetch_by_parent.assert_called_once_with(7, 9, series_user_id = 3)
