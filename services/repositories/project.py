from sqlalchemy import select

from db import db
from models import (
    BoardColumnModel, BurndownModel, CollaboratorModel, ProjectModel, SprintModel, TaskModel, UserModel
)
from services.entities import Project
from services.errors import NotFound
from services.repositories.base import Repository, visible_to


class ProjectRepository(Repository):
    entity_name = "project"
    model = ProjectModel
    entity_cls = Project
    writable = ("title", "description", "end_goal")

    def fetch_by_parent(self, owner_id, viewer_id):
        # Projects are parented by their owner; viewers only list their own
        query = (
            db.session.query(ProjectModel, UserModel.username)
            .join(UserModel, UserModel.id == ProjectModel.owner_id)
            .filter(ProjectModel.owner_id == owner_id, ProjectModel.owner_id == viewer_id)
            .order_by(ProjectModel.created_at.desc(), ProjectModel.id.desc())
        )
        rows = self._run("fetch", query.all)
        return [self.to_entity(project, owner_name = owner_name) for project, owner_name in rows]

    def fetch_collaborative(self, viewer_id):
        """Projects shared with the viewer, flagged with the viewer's role."""
        query = (
            db.session.query(ProjectModel, CollaboratorModel.role, UserModel.username)
            .join(CollaboratorModel, CollaboratorModel.project_id == ProjectModel.id)
            .join(UserModel, UserModel.id == ProjectModel.owner_id)
            .filter(CollaboratorModel.user_id == viewer_id)
            .order_by(ProjectModel.created_at.desc(), ProjectModel.id.desc())
        )
        rows = self._run("fetch", query.all)
        return [
            self.to_entity(project, is_collaboration = True, role = role, owner_name = owner_name or "")
            for project, role, owner_name in rows
        ]

    def get(self, project_id, viewer_id):
        query = (
            db.session.query(ProjectModel, UserModel.username)
            .join(UserModel, UserModel.id == ProjectModel.owner_id)
            .filter(ProjectModel.id == project_id, visible_to(ProjectModel.id, viewer_id))
        )
        found = self._run("fetch", query.first)
        if found is None:
            raise NotFound("Project not found or access denied")
        project, owner_name = found
        owner_name = owner_name or ""
        if project.owner_id == viewer_id:
            return self.to_entity(project, owner_name = owner_name)

        role = self._run(
            "fetch",
            db.session.query(CollaboratorModel.role)
            .filter_by(project_id = project_id, user_id = viewer_id)
            .scalar
        )
        return self.to_entity(project, is_collaboration = True, role = role, owner_name = owner_name)

    def create(self, fields, viewer_id):
        columns = self.to_columns(fields)
        now = self.clock.now()

        def write():
            project = self._insert(ProjectModel(owner_id = viewer_id, created_at = now, updated_at = now, **columns))
            return project, db.session.get(UserModel, viewer_id)

        project, owner = self._run("create", write)
        return self.to_entity(project, owner_name = owner.username if owner else "")

    def update(self, project_id, changes, viewer_id):
        return self._update_where(project_id, changes, ProjectModel.owner_id == viewer_id)

    def delete(self, project_id, viewer_id):
        """Delete the project and everything under it in one transaction.

        Order: columns and tasks, then sprints, then burndown rows and
        collaborators, then the project row. Nothing is deleted unless the
        viewer owns the project.
        """
        owned = select(ProjectModel.id).where(ProjectModel.id == project_id, ProjectModel.owner_id == viewer_id)
        project_sprints = select(SprintModel.id).where(SprintModel.project_id.in_(owned))

        def write():
            BoardColumnModel.query.filter(BoardColumnModel.sprint_id.in_(project_sprints)).delete(synchronize_session = False)
            TaskModel.query.filter(TaskModel.project_id.in_(owned)).delete(synchronize_session = False)
            SprintModel.query.filter(SprintModel.project_id.in_(owned)).delete(synchronize_session = False)
            BurndownModel.query.filter(BurndownModel.project_id.in_(owned)).delete(synchronize_session = False)
            CollaboratorModel.query.filter(CollaboratorModel.project_id.in_(owned)).delete(synchronize_session = False)
            count = (
                ProjectModel.query
                .filter(ProjectModel.id == project_id, ProjectModel.owner_id == viewer_id)
                .delete(synchronize_session = False)
            )
            if count == 0:
                raise NotFound("Project not found or access denied")
            db.session.commit()

        self._run("delete", write)
