'''
Burndown series for a project: one point per day with the ideal and the
actual remaining story points. The series is always rebuilt from the
current sprints and tasks, never patched.
'''

import logging
import math
from collections import defaultdict
from datetime import datetime, timedelta

from services.entities import DONE, BurndownPoint

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_DAYS = 21
MIN_WINDOW_DAYS = 7
# Starting value of the series shown before any sprint task has points
PLACEHOLDER_POINTS = 100


def round_half_up(value):
    return int(math.floor(value + 0.5))


def _day_of(moment):
    return moment.date() if isinstance(moment, datetime) else moment


def timeframe(sprints, today):
    """Return ``(first_day, length)`` covering every sprint of the project."""
    if not sprints:
        return today, DEFAULT_WINDOW_DAYS
    earliest_start = min(sprint.start_date for sprint in sprints)
    latest_end = max(sprint.end_date for sprint in sprints)
    return earliest_start, max((latest_end - earliest_start).days + 1, MIN_WINDOW_DAYS)


def ideal_line(total_points, length):
    return [max(0, round_half_up(total_points - i * total_points / length)) for i in range(length)]


def build_series(project_id, sprints, tasks, today):
    """Build the daily series for ``project_id``.

    Only tasks that belong to one of ``sprints`` count. A done task burns
    its points on the day of its last update; days after ``today`` hold the
    remaining value flat. Completions outside the timeframe are ignored.
    """
    first_day, length = timeframe(sprints, today)
    days = [first_day + timedelta(days = i) for i in range(length)]

    sprint_ids = {sprint.id for sprint in sprints}
    sprint_tasks = [task for task in tasks if task.sprint_id in sprint_ids]
    total_points = sum(task.story_points or 0 for task in sprint_tasks)

    if total_points == 0:
        placeholder = ideal_line(PLACEHOLDER_POINTS, length)
        return [BurndownPoint(project_id, day, value, value) for day, value in zip(days, placeholder)]

    burned = defaultdict(int)
    for task in sprint_tasks:
        if task.status == DONE and task.updated_at is not None:
            burned[_day_of(task.updated_at)] += task.story_points or 0

    actual = []
    remaining = total_points
    for day in days:
        if day <= today:
            remaining -= burned.get(day, 0)
        actual.append(remaining)

    ideal = ideal_line(total_points, length)
    return [
        BurndownPoint(project_id, day, ideal_points, actual_points)
        for day, ideal_points, actual_points in zip(days, ideal, actual)
    ]


class BurndownEngine:
    """Rebuilds and stores a project's burndown series.

    Series are stored under the project owner's id so every viewer of a
    shared project reads the same rows.
    """

    def __init__(self, repository, clock):
        self.repository = repository
        self.clock = clock

    def compute(self, project_id, sprints, tasks):
        return build_series(project_id, sprints, tasks, self.clock.today())

    def recompute(self, project, sprints, tasks):
        series = self.compute(project.id, sprints, tasks)
        self.repository.upsert(project.id, project.owner_id, series)
        logger.debug("Stored %d burndown points for project %s", len(series), project.id)
        return series

    def load(self, project, viewer_id):
        return self.repository.fetch_by_parent(project.id, viewer_id, series_user_id = project.owner_id)
