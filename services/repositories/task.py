from sqlalchemy import and_, select

from models import SprintModel, TaskModel
from services.entities import BACKLOG, Task
from services.errors import ValidationFailed
from services.repositories.base import Repository, lock_project, visible_to


class TaskRepository(Repository):
    entity_name = "task"
    model = TaskModel
    entity_cls = Task
    # The only column whose name differs from its entity attribute
    field_map = {"assigned_to": "assign_to"}
    writable = (
        "title", "description", "status", "assigned_to", "priority", "story_points",
        "sprint_id", "project_id", "completion_date",
    )

    def fetch_by_parent(self, sprint_id, viewer_id):
        query = (
            TaskModel.query
            .filter(TaskModel.sprint_id == sprint_id, visible_to(TaskModel.project_id, viewer_id))
            .order_by(TaskModel.created_at, TaskModel.id)
        )
        return self._fetch("fetch", query)

    def fetch_backlog(self, project_id, viewer_id):
        query = (
            TaskModel.query
            .filter(
                TaskModel.project_id == project_id,
                TaskModel.sprint_id.is_(None),
                TaskModel.status == BACKLOG,
                visible_to(TaskModel.project_id, viewer_id),
            )
            .order_by(TaskModel.created_at, TaskModel.id)
        )
        return self._fetch("fetch", query)

    def fetch_by_project(self, project_id, viewer_id):
        # Sprint tasks and backlog items together
        query = (
            TaskModel.query
            .filter(TaskModel.project_id == project_id, visible_to(TaskModel.project_id, viewer_id))
            .order_by(TaskModel.created_at, TaskModel.id)
        )
        return self._fetch("fetch", query)

    def get(self, task_id, viewer_id):
        return self._fetch_one(
            TaskModel.query.filter(TaskModel.id == task_id, visible_to(TaskModel.project_id, viewer_id))
        )

    def create(self, fields, viewer_id):
        columns = self.to_columns(fields)
        now = self.clock.now()

        def write():
            lock_project(columns["project_id"], viewer_id)
            sprint_id = columns.get("sprint_id")
            if sprint_id is not None and not SprintModel.query.filter_by(id = sprint_id, project_id = columns["project_id"]).first():
                raise ValidationFailed("Sprint does not belong to this project")
            task = TaskModel(user_id = viewer_id, created_at = now, updated_at = now, **columns)
            return self._insert(task)

        return self.to_entity(self._run("create", write))

    def update(self, task_id, changes, viewer_id):
        condition = visible_to(TaskModel.project_id, viewer_id)
        if changes.get("sprint_id") is not None:
            # Only move between sprints of the task's own project
            condition = and_(condition, TaskModel.project_id.in_(
                select(SprintModel.project_id).where(SprintModel.id == changes["sprint_id"])
            ))
        return self._update_where(task_id, changes, condition)

    def delete(self, task_id, viewer_id):
        self._delete_where(task_id, visible_to(TaskModel.project_id, viewer_id))
