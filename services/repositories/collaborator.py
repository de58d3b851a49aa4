from sqlalchemy import and_

from db import db
from models import CollaboratorModel, UserModel
from services.entities import ROLES, Collaborator
from services.errors import ValidationFailed
from services.repositories.base import Repository, lock_project, owned_project_ids, visible_to


class CollaboratorRepository(Repository):
    entity_name = "collaborator"
    model = CollaboratorModel
    entity_cls = Collaborator
    writable = ("project_id", "user_id", "role")

    def fetch_by_parent(self, project_id, viewer_id):
        """Collaborators of a project joined with their username and email."""
        query = (
            db.session.query(CollaboratorModel, UserModel.username, UserModel.email)
            .join(UserModel, UserModel.id == CollaboratorModel.user_id)
            .filter(
                CollaboratorModel.project_id == project_id,
                visible_to(CollaboratorModel.project_id, viewer_id),
            )
            .order_by(CollaboratorModel.created_at, CollaboratorModel.id)
        )
        rows = self._run("fetch", query.all)
        return [self.to_entity(row, username = username, email = email) for row, username, email in rows]

    def fetch_role(self, project_id, user_id):
        return self._run(
            "fetch",
            db.session.query(CollaboratorModel.role)
            .filter_by(project_id = project_id, user_id = user_id)
            .scalar
        )

    def create(self, fields, viewer_id):
        if fields.get("role") not in ROLES:
            raise ValidationFailed(f"Role must be one of {', '.join(ROLES)}")
        columns = self.to_columns(fields)

        def write():
            project = lock_project(columns["project_id"], viewer_id, owner_only = True)
            if project.owner_id == columns["user_id"]:
                raise ValidationFailed("The project owner cannot be added as a collaborator")
            # Unique (project_id, user_id) rejects a second role for the same user
            collaborator = self._insert(CollaboratorModel(**columns))
            user = db.session.get(UserModel, collaborator.user_id)
            return collaborator, user

        collaborator, user = self._run("add", write)
        return self.to_entity(collaborator, username = user.username, email = user.email)

    def _managed_by(self, viewer_id, project_id):
        condition = CollaboratorModel.project_id.in_(owned_project_ids(viewer_id))
        if project_id is not None:
            condition = and_(condition, CollaboratorModel.project_id == project_id)
        return condition

    def update(self, collaborator_id, changes, viewer_id, project_id = None):
        if "role" in changes and changes["role"] not in ROLES:
            raise ValidationFailed(f"Role must be one of {', '.join(ROLES)}")
        return self._update_where(collaborator_id, changes, self._managed_by(viewer_id, project_id))

    def delete(self, collaborator_id, viewer_id, project_id = None):
        self._delete_where(collaborator_id, self._managed_by(viewer_id, project_id))

