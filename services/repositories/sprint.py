from sqlalchemy import select

from db import db
from models import BoardColumnModel, SprintModel, TaskModel
from services.entities import Sprint
from services.errors import NotFound
from services.repositories.base import Repository, lock_project, visible_to


class SprintRepository(Repository):
    entity_name = "sprint"
    model = SprintModel
    entity_cls = Sprint
    writable = ("title", "description", "project_id", "start_date", "end_date", "status")

    def fetch_by_parent(self, project_id, viewer_id):
        query = (
            SprintModel.query
            .filter(SprintModel.project_id == project_id, visible_to(SprintModel.project_id, viewer_id))
            .order_by(SprintModel.start_date, SprintModel.id)
        )
        return self._fetch("fetch", query)

    def get(self, sprint_id, viewer_id):
        return self._fetch_one(
            SprintModel.query.filter(SprintModel.id == sprint_id, visible_to(SprintModel.project_id, viewer_id))
        )

    def create(self, fields, viewer_id):
        columns = self.to_columns(fields)
        now = self.clock.now()

        def write():
            lock_project(columns["project_id"], viewer_id)
            sprint = SprintModel(user_id = viewer_id, created_at = now, updated_at = now, **columns)
            return self._insert(sprint)

        return self.to_entity(self._run("create", write))

    def update(self, sprint_id, changes, viewer_id):
        return self._update_where(sprint_id, changes, visible_to(SprintModel.project_id, viewer_id))

    def delete(self, sprint_id, viewer_id):
        # The sprint's tasks and board columns go with it, in the same transaction
        visible = select(SprintModel.id).where(
            SprintModel.id == sprint_id, visible_to(SprintModel.project_id, viewer_id)
        )

        def write():
            BoardColumnModel.query.filter(BoardColumnModel.sprint_id.in_(visible)).delete(synchronize_session = False)
            TaskModel.query.filter(TaskModel.sprint_id.in_(visible)).delete(synchronize_session = False)
            count = (
                SprintModel.query
                .filter(SprintModel.id == sprint_id, visible_to(SprintModel.project_id, viewer_id))
                .delete(synchronize_session = False)
            )
            if count == 0:
                raise NotFound("Sprint not found or access denied")
            db.session.commit()

        self._run("delete", write)
