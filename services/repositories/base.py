'''
Shared plumbing for the entity repositories: retry, error translation,
row <-> entity mapping and the access predicates every write carries.
'''

import logging
from dataclasses import fields

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from db import db
from models import CollaboratorModel, ProjectModel
from services.clock import Clock
from services.errors import DuplicateEntry, NotFound, OperationFailed, ValidationFailed
from services.retry import RetryPolicy, is_transient_failure

logger = logging.getLogger(__name__)


def owned_project_ids(viewer_id):
    return select(ProjectModel.id).where(ProjectModel.owner_id == viewer_id)


def shared_project_ids(viewer_id):
    return select(CollaboratorModel.project_id).where(CollaboratorModel.user_id == viewer_id)


def visible_to(project_column, viewer_id):
    # Project owned by the viewer, or shared with them through a Collaborator row
    return or_(
        project_column.in_(owned_project_ids(viewer_id)),
        project_column.in_(shared_project_ids(viewer_id)),
    )


def lock_project(project_id, viewer_id, owner_only = False):
    """Load and row-lock a project inside the current transaction.

    Inserts under a project call this first so the access check and the
    insert commit together.
    """
    if owner_only:
        condition = ProjectModel.owner_id == viewer_id
    else:
        condition = visible_to(ProjectModel.id, viewer_id)
    project = (
        ProjectModel.query
        .filter(ProjectModel.id == project_id, condition)
        .with_for_update()
        .first()
    )
    if project is None:
        raise NotFound("Project not found or access denied")
    return project


def _reason(error):
    orig = getattr(error, "orig", None)
    return str(orig if orig is not None else error)


class Repository:
    entity_name = "row"
    model = None
    entity_cls = None
    # Entity attribute -> column name, only where the two differ
    field_map = {}
    # Entity attributes callers may set through create/update
    writable = ()

    def __init__(self, retry = None, clock = None):
        self.retry = retry or RetryPolicy()
        self.clock = clock or Clock()

    # --- mapping ---

    def to_entity(self, row, **extra):
        columns = self.model.__table__.columns
        values = {}
        for f in fields(self.entity_cls):
            column = self.field_map.get(f.name, f.name)
            if column in columns:
                values[f.name] = getattr(row, column)
        values.update(extra)
        return self.entity_cls(**values)

    def to_columns(self, changes):
        unknown = sorted(set(changes) - set(self.writable))
        if unknown:
            raise ValidationFailed(f"Unknown {self.entity_name} field(s): {', '.join(unknown)}")
        return {self.field_map.get(name, name): value for name, value in changes.items()}

    # --- store access ---

    def _run(self, operation, work):
        def attempt():
            try:
                return work()
            except Exception:
                # A failed statement leaves the session unusable until rolled back
                db.session.rollback()
                raise

        try:
            return self.retry.run(attempt)
        except IntegrityError as e:
            reason = _reason(e)
            logger.error("Failed to %s %s: %s", operation, self.entity_name, reason)
            if "unique" in reason.lower() or "duplicate" in reason.lower():
                raise DuplicateEntry(f"Failed to {operation} {self.entity_name}: {self.entity_name} already exists") from e
            raise ValidationFailed(f"Failed to {operation} {self.entity_name}: {reason}") from e
        except SQLAlchemyError as e:
            logger.error("Failed to %s %s: %s", operation, self.entity_name, _reason(e))
            raise OperationFailed(self.entity_name, operation, _reason(e)) from e
        except Exception as e:
            if not is_transient_failure(e):
                raise
            logger.error("Failed to %s %s: %s", operation, self.entity_name, e)
            raise OperationFailed(self.entity_name, operation, str(e)) from e

    def _insert(self, row):
        db.session.add(row)
        db.session.commit()
        return row

    def _update_where(self, row_id, changes, condition, operation = "update"):
        values = self.to_columns(changes)
        if "updated_at" in self.model.__table__.columns:
            values["updated_at"] = self.clock.now()

        def write():
            count = (
                self.model.query
                .filter(self.model.id == row_id, condition)
                .update(values, synchronize_session = False)
            )
            if count == 0:
                raise NotFound(f"{self.entity_name.capitalize()} not found or access denied")
            db.session.commit()
            return db.session.get(self.model, row_id)

        return self.to_entity(self._run(operation, write))

    def _delete_where(self, row_id, condition):
        def write():
            count = (
                self.model.query
                .filter(self.model.id == row_id, condition)
                .delete(synchronize_session = False)
            )
            if count == 0:
                raise NotFound(f"{self.entity_name.capitalize()} not found or access denied")
            db.session.commit()

        self._run("delete", write)

    def _fetch(self, operation, query):
        return [self.to_entity(row) for row in self._run(operation, query.all)]

    def _fetch_one(self, query):
        row = self._run("fetch", query.first)
        if row is None:
            raise NotFound(f"{self.entity_name.capitalize()} not found or access denied")
        return self.to_entity(row)
