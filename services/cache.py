'''
----------------------------
Project state cache
In-memory mirror of every project, sprint, task and burndown series the
signed-in user can see (owned + shared with them).
----------------------------

Writes go to the database first; the lists are only touched with the row
the repository hands back, so a failed write leaves the cache as it was.

Collaborators write to the same projects from their own workspaces, so a
cached row is never trusted for a decision: lookups behind a write re-read
the row, and the burndown series is rebuilt from the project's rows as the
database holds them. Every public method runs under the workspace lock.
'''

import functools
import logging
import threading
from collections import deque
from types import SimpleNamespace

from services.burndown import build_series
from services.entities import (
    BACKLOG, DEFAULT_COLUMNS, DONE, PRIORITIES, SPRINT_STATUSES, BoardColumn, copy_with
)
from services.errors import AuthenticationFailed, NotFound, ScrumError, ValidationFailed
from services.realtime import task_inserts
from services.timeline import build_timeline

logger = logging.getLogger(__name__)

MIN_SPRINT_DAYS = 1
MAX_SPRINT_DAYS = 28


def validate_sprint_dates(start_date, end_date, today, is_new):
    if start_date is None or end_date is None:
        raise ValidationFailed("Sprint start and end dates are required")
    days = (end_date - start_date).days
    if days < MIN_SPRINT_DAYS or days > MAX_SPRINT_DAYS:
        raise ValidationFailed(
            f"Sprint must last between {MIN_SPRINT_DAYS} and {MAX_SPRINT_DAYS} days (got {days})"
        )
    # Only new sprints must start today or later
    if is_new and start_date < today:
        raise ValidationFailed("Sprint start date cannot be in the past")


def validate_task_fields(fields):
    if "title" in fields and not (fields["title"] or "").strip():
        raise ValidationFailed("Task title is required")
    points = fields.get("story_points")
    if points is not None and (not isinstance(points, int) or isinstance(points, bool) or points < 0):
        raise ValidationFailed("Story points must be a non-negative integer")
    priority = fields.get("priority")
    if priority is not None and priority not in PRIORITIES:
        raise ValidationFailed(f"Priority must be one of {', '.join(PRIORITIES)}")
    if "status" in fields and not fields["status"]:
        raise ValidationFailed("Task status cannot be empty")


def _find(rows, row_id):
    return next((row for row in rows if row.id == row_id), None)


def _swap(rows, fresh):
    # Replace the row with the same id in place, or append it
    if _find(rows, fresh.id) is None:
        return rows + [fresh]
    return [fresh if row.id == fresh.id else row for row in rows]


def serialized(method):
    """Run ``method`` holding the cache lock, after merging followed inserts."""
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self.lock:
            self._merge_inserts()
            return method(self, *args, **kwargs)
    return wrapper


class ProjectCache:
    def __init__(self, identity, projects, sprints, tasks, collaborators, columns, users, engine, clock, lock = None):
        self.identity = identity
        self.projects_repo = projects
        self.sprints_repo = sprints
        self.tasks_repo = tasks
        self.collaborators_repo = collaborators
        self.columns_repo = columns
        self.users_repo = users
        self.engine = engine
        self.clock = clock
        self.lock = lock or threading.RLock()

        self.projects = []
        self.sprints = []
        self.tasks = []
        self.burndown = {}

        # Filled from other threads by follow(); drained under the lock
        self._inserted = deque()
        self._subscriptions = []

        identity.add_listener(self._on_identity_change)

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def _on_identity_change(self, user):
        self.reset()
        if user is not None:
            self.load(user)

    @serialized
    def reset(self):
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions = []
        self._inserted.clear()
        self.projects = []
        self.sprints = []
        self.tasks = []
        self.burndown = {}

    @serialized
    def load(self, user):
        """Bulk-load owned projects, then projects shared with ``user``.

        A project reachable both ways is kept as owned.
        """
        owned = self._read("projects", lambda: self.projects_repo.fetch_by_parent(user.id, user.id))
        for project in owned:
            self._load_project(project)

        shared = self._read("collaborative projects", lambda: self.projects_repo.fetch_collaborative(user.id))
        for project in shared:
            if _find(self.projects, project.id) is None:
                self._load_project(project)

        logger.info(
            "Loaded %d projects, %d sprints, %d tasks for user %s",
            len(self.projects), len(self.sprints), len(self.tasks), user.id
        )

    def _load_project(self, project):
        self.projects = _swap(self.projects, project)
        for sprint in self.load_sprints(project.id):
            self.load_tasks(sprint.id)
        self.load_backlog(project.id)
        self.burndown[project.id] = self._read(
            "burndown", lambda: self.engine.load(project, self.identity.user_id)
        )

    def _forget_project(self, project_id):
        self.projects = [p for p in self.projects if p.id != project_id]
        self.sprints = [s for s in self.sprints if s.project_id != project_id]
        self.tasks = [t for t in self.tasks if t.project_id != project_id]
        self.burndown.pop(project_id, None)
        self.identity.leave_project(project_id)

    def _read(self, what, fetch):
        # Reads degrade to an empty result instead of failing the caller
        try:
            return fetch()
        except ScrumError as e:
            logger.warning("Could not load %s: %s", what, e.message)
            return []

    @serialized
    def refresh_projects(self):
        """Re-read which projects the user can see and return them.

        Projects shared since the last load are loaded with their rows, and
        projects the user lost access to are dropped. On a failed read the
        cached list is returned unchanged.
        """
        viewer_id = self._viewer()
        try:
            owned = self.projects_repo.fetch_by_parent(viewer_id, viewer_id)
            shared = self.projects_repo.fetch_collaborative(viewer_id)
        except ScrumError as e:
            logger.warning("Could not refresh projects: %s", e.message)
            return self.projects

        owned_ids = {p.id for p in owned}
        current = owned + [p for p in shared if p.id not in owned_ids]
        current_ids = {p.id for p in current}
        for project in self.projects:
            if project.id not in current_ids:
                self._forget_project(project.id)

        known = {p.id for p in self.projects}
        self.projects = current
        for project in current:
            if project.id not in known:
                self._load_project(project)
        return self.projects

    # Reloads replace every cached row of the parent rather than merging by id

    @serialized
    def load_sprints(self, project_id):
        fetched = self._read("sprints", lambda: self.sprints_repo.fetch_by_parent(project_id, self.identity.user_id))
        self.sprints = [s for s in self.sprints if s.project_id != project_id] + fetched
        return fetched

    @serialized
    def load_tasks(self, sprint_id):
        fetched = self._read("tasks", lambda: self.tasks_repo.fetch_by_parent(sprint_id, self.identity.user_id))
        self.tasks = [t for t in self.tasks if t.sprint_id != sprint_id] + fetched
        return fetched

    @serialized
    def load_backlog(self, project_id):
        fetched = self._read("backlog", lambda: self.tasks_repo.fetch_backlog(project_id, self.identity.user_id))
        self.tasks = [t for t in self.tasks if not (t.project_id == project_id and t.is_backlog)] + fetched
        return fetched

    def _replace_project_rows(self, project_id, sprints, tasks):
        self.sprints = [s for s in self.sprints if s.project_id != project_id] + sprints
        self.tasks = [t for t in self.tasks if t.project_id != project_id] + tasks

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    # Cached rows only; see fetch_* for the database's current view

    @serialized
    def get_project(self, project_id):
        return _find(self.projects, project_id)

    @serialized
    def get_sprint(self, sprint_id):
        return _find(self.sprints, sprint_id)

    @serialized
    def get_task(self, task_id):
        return _find(self.tasks, task_id)

    @serialized
    def sprints_for(self, project_id):
        return [s for s in self.sprints if s.project_id == project_id]

    @serialized
    def tasks_for_sprint(self, sprint_id):
        return [t for t in self.tasks if t.sprint_id == sprint_id]

    @serialized
    def backlog_for(self, project_id):
        return [t for t in self.tasks if t.project_id == project_id and t.is_backlog]

    @serialized
    def tasks_for_project(self, project_id):
        return [t for t in self.tasks if t.project_id == project_id]

    @serialized
    def collaborations(self):
        return [p for p in self.projects if p.is_collaboration]

    @serialized
    def fetch_project(self, project_id):
        return self._project_or_404(project_id)

    @serialized
    def fetch_sprint(self, sprint_id):
        return self._sprint_or_404(sprint_id)

    @serialized
    def fetch_task(self, task_id):
        return self._task_or_404(task_id)

    @serialized
    def get_burndown(self, project_id):
        project = self._project_or_404(project_id)
        # Any collaborator's last write may have replaced the stored series
        stored = self._read("burndown", lambda: self.engine.load(project, self.identity.user_id))
        if stored:
            self.burndown[project_id] = stored
        series = self.burndown.get(project_id)
        if not series:
            series = build_series(
                project_id, self.sprints_for(project_id), self.tasks_for_project(project_id), self.clock.today()
            )
        return series

    @serialized
    def timeline(self, project_id):
        self._project_or_404(project_id)
        self.load_sprints(project_id)
        return build_timeline(self.sprints_for(project_id))

    def _refetch(self, what, fetch, cached):
        """Row as the database holds it now.

        Raises NotFound when the row is gone or no longer visible. If the
        database cannot be read the cached row stands in for it.
        """
        try:
            return fetch()
        except NotFound:
            raise
        except ScrumError as e:
            logger.warning("Could not refresh %s: %s", what, e.message)
            if cached is None:
                raise NotFound(f"{what.capitalize()} not found") from e
            return cached

    def _project_or_404(self, project_id):
        viewer_id = self._viewer()
        try:
            project = self._refetch(
                "project", lambda: self.projects_repo.get(project_id, viewer_id), _find(self.projects, project_id)
            )
        except NotFound:
            self._forget_project(project_id)
            raise NotFound("Project not found")
        if _find(self.projects, project_id) is None:
            # Shared with the user after their workspace was loaded
            self._load_project(project)
        else:
            self.projects = _swap(self.projects, project)
        return project

    def _sprint_or_404(self, sprint_id):
        viewer_id = self._viewer()
        try:
            sprint = self._refetch(
                "sprint", lambda: self.sprints_repo.get(sprint_id, viewer_id), _find(self.sprints, sprint_id)
            )
        except NotFound:
            self.sprints = [s for s in self.sprints if s.id != sprint_id]
            self.tasks = [t for t in self.tasks if t.sprint_id != sprint_id]
            raise NotFound("Sprint not found")
        self.sprints = _swap(self.sprints, sprint)
        return sprint

    def _task_or_404(self, task_id):
        viewer_id = self._viewer()
        try:
            task = self._refetch(
                "task", lambda: self.tasks_repo.get(task_id, viewer_id), _find(self.tasks, task_id)
            )
        except NotFound:
            self.tasks = [t for t in self.tasks if t.id != task_id]
            raise NotFound("Task not found")
        self.tasks = _swap(self.tasks, task)
        return task

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    def _viewer(self):
        if not self.identity.is_authenticated:
            raise AuthenticationFailed("Not signed in")
        return self.identity.user_id

    def _authorize(self, project_id, permission):
        """Check ``permission`` on the project before any write is issued."""
        self._viewer()
        project = self._project_or_404(project_id)
        # Re-derived every time so a changed role applies to the next write
        self.identity.view_project(project)
        self.identity.require(permission)
        return project

    def _refresh_burndown(self, project):
        """Rebuild the project's series from its current rows and store it."""
        viewer_id = self.identity.user_id
        try:
            sprints = self.sprints_repo.fetch_by_parent(project.id, viewer_id)
            tasks = self.tasks_repo.fetch_by_project(project.id, viewer_id)
        except ScrumError as e:
            # The stored series is shared, so a series built from cached rows is never written
            logger.error("Failed to read project %s for its burndown: %s", project.id, e.message)
            series = self.engine.compute(project.id, self.sprints_for(project.id), self.tasks_for_project(project.id))
            self.burndown[project.id] = series
            return series

        self._replace_project_rows(project.id, sprints, tasks)
        try:
            series = self.engine.recompute(project, sprints, tasks)
        except ScrumError as e:
            logger.error("Failed to update burndown for project %s: %s", project.id, e.message)
            series = self.engine.compute(project.id, sprints, tasks)
        self.burndown[project.id] = series
        return series

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    @serialized
    def add_project(self, fields):
        viewer_id = self._viewer()
        if not (fields.get("title") or "").strip():
            raise ValidationFailed("Project title is required")
        values = {
            "title": fields["title"].strip(),
            "description": fields.get("description") or "",
            "end_goal": fields.get("end_goal") or None,
        }
        project = self.projects_repo.create(values, viewer_id)
        self.projects = self.projects + [project]
        self._refresh_burndown(project)
        return project

    @serialized
    def update_project(self, project_id, changes):
        existing = self._authorize(project_id, "project.update")
        if "title" in changes and not (changes["title"] or "").strip():
            raise ValidationFailed("Project title is required")
        if "description" in changes and changes["description"] is None:
            changes = dict(changes, description = "")
        updated = self.projects_repo.update(project_id, changes, self.identity.user_id)
        updated = copy_with(updated, owner_name = existing.owner_name)
        self.projects = [updated if p.id == project_id else p for p in self.projects]
        return updated

    @serialized
    def delete_project(self, project_id):
        self._authorize(project_id, "project.delete")
        self.projects_repo.delete(project_id, self.identity.user_id)
        self._forget_project(project_id)

    # ------------------------------------------------------------------
    # Sprints
    # ------------------------------------------------------------------

    @serialized
    def add_sprint(self, fields):
        project = self._authorize(fields.get("project_id"), "sprint.create")
        if not (fields.get("title") or "").strip():
            raise ValidationFailed("Sprint title is required")
        status = fields.get("status") or "planned"
        if status not in SPRINT_STATUSES:
            raise ValidationFailed(f"Sprint status must be one of {', '.join(SPRINT_STATUSES)}")
        validate_sprint_dates(fields.get("start_date"), fields.get("end_date"), self.clock.today(), is_new = True)

        values = {
            "title": fields["title"].strip(),
            "description": fields.get("description") or "",
            "project_id": project.id,
            "start_date": fields["start_date"],
            "end_date": fields["end_date"],
            "status": status,
        }
        sprint = self.sprints_repo.create(values, self.identity.user_id)
        self.sprints = self.sprints + [sprint]
        self._refresh_burndown(project)
        return sprint

    @serialized
    def update_sprint(self, sprint_id, changes):
        existing = self._sprint_or_404(sprint_id)
        project = self._authorize(existing.project_id, "sprint.update")
        if "project_id" in changes and changes["project_id"] != existing.project_id:
            raise ValidationFailed("A sprint cannot move to another project")
        if "status" in changes and changes["status"] not in SPRINT_STATUSES:
            raise ValidationFailed(f"Sprint status must be one of {', '.join(SPRINT_STATUSES)}")
        validate_sprint_dates(
            changes.get("start_date", existing.start_date),
            changes.get("end_date", existing.end_date),
            self.clock.today(),
            is_new = False,
        )

        changes = {key: value for key, value in changes.items() if key != "project_id"}
        updated = self.sprints_repo.update(sprint_id, changes, self.identity.user_id)
        self.sprints = [updated if s.id == sprint_id else s for s in self.sprints]
        self._refresh_burndown(project)
        return updated

    @serialized
    def delete_sprint(self, sprint_id):
        existing = self._sprint_or_404(sprint_id)
        project = self._authorize(existing.project_id, "sprint.delete")
        self.sprints_repo.delete(sprint_id, self.identity.user_id)
        self.sprints = [s for s in self.sprints if s.id != sprint_id]
        self.tasks = [t for t in self.tasks if t.sprint_id != sprint_id]
        self._refresh_burndown(project)

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def _check_sprint(self, sprint_id, project_id):
        try:
            sprint = self._sprint_or_404(sprint_id)
        except NotFound:
            sprint = None
        if sprint is None or sprint.project_id != project_id:
            raise ValidationFailed("Sprint does not belong to this project")

    def _place_new_task(self, project_id, sprint_id, status):
        # Returns (sprint_id, status) satisfying: no sprint <=> status "backlog"
        if not sprint_id:
            if status not in (None, BACKLOG):
                raise ValidationFailed("A task without a sprint must have status 'backlog'")
            return None, BACKLOG
        self._check_sprint(sprint_id, project_id)
        if status == BACKLOG:
            raise ValidationFailed("A task in a sprint cannot have status 'backlog'")
        return sprint_id, status or "todo"

    def _place_existing_task(self, task, changes):
        sprint_id = (changes.get("sprint_id") or None) if "sprint_id" in changes else task.sprint_id
        status = changes["status"] if "status" in changes else task.status

        if "sprint_id" in changes and "status" not in changes:
            # Leaving a sprint puts the task in the backlog, entering one starts it in "todo"
            if sprint_id is None:
                status = BACKLOG
            elif status == BACKLOG:
                status = "todo"
        elif "status" in changes and "sprint_id" not in changes and status == BACKLOG:
            sprint_id = None

        if (sprint_id is None) != (status == BACKLOG):
            raise ValidationFailed("Backlog tasks have no sprint, and sprint tasks cannot have status 'backlog'")
        if sprint_id is not None:
            self._check_sprint(sprint_id, task.project_id)
        return sprint_id, status

    @serialized
    def add_task(self, fields):
        project = self._authorize(fields.get("project_id"), "task.create")
        if not (fields.get("title") or "").strip():
            raise ValidationFailed("Task title is required")
        validate_task_fields(fields)
        sprint_id, status = self._place_new_task(project.id, fields.get("sprint_id"), fields.get("status"))

        values = {key: value for key, value in fields.items() if value is not None}
        values.update(title = fields["title"].strip(), project_id = project.id, sprint_id = sprint_id, status = status)
        if status == DONE and not values.get("completion_date"):
            values["completion_date"] = self.clock.today()

        task = self.tasks_repo.create(values, self.identity.user_id)
        self.tasks = _swap(self.tasks, task)
        self._refresh_burndown(project)
        return task

    @serialized
    def update_task(self, task_id, changes):
        existing = self._task_or_404(task_id)
        project = self._authorize(existing.project_id, "task.update")
        if "project_id" in changes and changes["project_id"] != existing.project_id:
            raise ValidationFailed("A task cannot move to another project")
        validate_task_fields(changes)

        changes = {key: value for key, value in changes.items() if key != "project_id"}
        if "sprint_id" in changes or "status" in changes:
            changes["sprint_id"], changes["status"] = self._place_existing_task(existing, changes)
        # First transition to done stamps the completion date unless one is given
        becomes_done = changes.get("status") == DONE and existing.status != DONE
        if becomes_done and existing.completion_date is None and "completion_date" not in changes:
            changes["completion_date"] = self.clock.today()

        updated = self.tasks_repo.update(task_id, changes, self.identity.user_id)
        self.tasks = [updated if t.id == task_id else t for t in self.tasks]
        self._refresh_burndown(project)
        return updated

    @serialized
    def delete_task(self, task_id):
        existing = self._task_or_404(task_id)
        project = self._authorize(existing.project_id, "task.delete")
        self.tasks_repo.delete(task_id, self.identity.user_id)
        self.tasks = [t for t in self.tasks if t.id != task_id]
        self._refresh_burndown(project)

    @serialized
    def follow(self, project_id):
        """Append tasks other sessions insert into ``project_id``.

        Returns the subscription; leave its ``with`` block (or call
        ``unsubscribe()``) to stop following. ``reset()`` ends every
        subscription the cache still holds.
        """
        self._project_or_404(project_id)

        def on_insert(row):
            # Runs on the committing thread, which may hold another workspace's lock
            self._inserted.append(self.tasks_repo.to_entity(SimpleNamespace(**row)))

        subscription = task_inserts.subscribe(lambda row: row["project_id"] == project_id, on_insert)
        self._subscriptions = [s for s in self._subscriptions if s.active] + [subscription]
        return subscription

    def _merge_inserts(self):
        while self._inserted:
            task = self._inserted.popleft()
            if _find(self.tasks, task.id) is None:
                self.tasks = self.tasks + [task]

    # ------------------------------------------------------------------
    # Collaborators
    # ------------------------------------------------------------------

    @serialized
    def list_collaborators(self, project_id):
        viewer_id = self._viewer()
        self._project_or_404(project_id)
        return self._read("collaborators", lambda: self.collaborators_repo.fetch_by_parent(project_id, viewer_id))

    @serialized
    def add_collaborator(self, project_id, identifier, role):
        self._authorize(project_id, "collaborator.manage")
        found = self.users_repo.find_by_identifier(identifier)
        if found is None:
            raise NotFound("User not found")
        user = found[0]
        return self.collaborators_repo.create(
            {"project_id": project_id, "user_id": user.id, "role": role}, self.identity.user_id
        )

    @serialized
    def update_collaborator_role(self, project_id, collaborator_id, role):
        self._authorize(project_id, "collaborator.manage")
        return self.collaborators_repo.update(
            collaborator_id, {"role": role}, self.identity.user_id, project_id = project_id
        )

    @serialized
    def remove_collaborator(self, project_id, collaborator_id):
        self._authorize(project_id, "collaborator.manage")
        self.collaborators_repo.delete(collaborator_id, self.identity.user_id, project_id = project_id)

    # ------------------------------------------------------------------
    # Board columns
    # ------------------------------------------------------------------

    @serialized
    def list_columns(self, sprint_id):
        viewer_id = self._viewer()
        self._sprint_or_404(sprint_id)
        defaults = [BoardColumn(title, index, sprint_id) for index, title in enumerate(DEFAULT_COLUMNS)]
        custom = self._read("board columns", lambda: self.columns_repo.fetch_by_parent(sprint_id, viewer_id))
        return defaults + custom

    @serialized
    def add_column(self, sprint_id, title):
        sprint = self._sprint_or_404(sprint_id)
        self._authorize(sprint.project_id, "column.manage")
        return self.columns_repo.create({"sprint_id": sprint_id, "title": title}, self.identity.user_id)

    @serialized
    def delete_column(self, sprint_id, column_id):
        sprint = self._sprint_or_404(sprint_id)
        self._authorize(sprint.project_id, "column.manage")
        column_sprint_id, moved = self.columns_repo.delete(column_id, self.identity.user_id, sprint_id = sprint_id)
        if moved:
            self.load_tasks(column_sprint_id)
        return moved
