from sqlalchemy import func, select

from db import db
from models import BoardColumnModel, SprintModel, TaskModel
from services.entities import DEFAULT_COLUMNS, BoardColumn
from services.errors import NotFound, ValidationFailed
from services.repositories.base import Repository, lock_project, visible_to


def visible_sprints(viewer_id):
    return select(SprintModel.id).where(visible_to(SprintModel.project_id, viewer_id))


class BoardColumnRepository(Repository):
    entity_name = "board column"
    model = BoardColumnModel
    entity_cls = BoardColumn
    writable = ("sprint_id", "title")

    def fetch_by_parent(self, sprint_id, viewer_id):
        query = (
            BoardColumnModel.query
            .filter(BoardColumnModel.sprint_id == sprint_id, BoardColumnModel.sprint_id.in_(visible_sprints(viewer_id)))
            .order_by(BoardColumnModel.order_index, BoardColumnModel.id)
        )
        return self._fetch("fetch", query)

    def create(self, fields, viewer_id):
        title = (fields.get("title") or "").strip()
        if not title:
            raise ValidationFailed("Column title is required")
        if title in DEFAULT_COLUMNS or title == "backlog":
            raise ValidationFailed(f"'{title}' is a built-in column")
        sprint_id = fields["sprint_id"]

        def write():
            sprint = SprintModel.query.filter_by(id = sprint_id).first()
            if sprint is None:
                raise NotFound("Sprint not found or access denied")
            lock_project(sprint.project_id, viewer_id)
            # Custom columns sit after the built-in ones
            last = db.session.query(func.max(BoardColumnModel.order_index)).filter_by(sprint_id = sprint_id).scalar()
            order_index = len(DEFAULT_COLUMNS) if last is None else last + 1
            column = BoardColumnModel(sprint_id = sprint_id, user_id = viewer_id, title = title, order_index = order_index)
            return self._insert(column)

        return self.to_entity(self._run("create", write))

    def delete(self, column_id, viewer_id, sprint_id = None):
        """Delete a custom column; its tasks go back to "todo" in the same transaction.

        Returns ``(sprint_id, number_of_tasks_moved)``.
        """

        def write():
            query = BoardColumnModel.query.filter(
                BoardColumnModel.id == column_id, BoardColumnModel.sprint_id.in_(visible_sprints(viewer_id))
            )
            if sprint_id is not None:
                query = query.filter(BoardColumnModel.sprint_id == sprint_id)
            column = query.first()
            if column is None:
                raise NotFound("Board column not found or access denied")
            moved = (
                TaskModel.query
                .filter(TaskModel.sprint_id == column.sprint_id, TaskModel.status == column.title)
                .update({"status": "todo", "updated_at": self.clock.now()}, synchronize_session = False)
            )
            column_sprint_id = column.sprint_id
            db.session.delete(column)
            db.session.commit()
            return column_sprint_id, moved

        return self._run("delete", write)
