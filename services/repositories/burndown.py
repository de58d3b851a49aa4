from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from db import db
from models import BurndownModel
from services.entities import BurndownPoint
from services.repositories.base import Repository, visible_to

UPSERT_DIALECTS = {"postgresql": pg_insert, "sqlite": sqlite_insert}


class BurndownRepository(Repository):
    entity_name = "burndown"
    model = BurndownModel
    entity_cls = BurndownPoint

    def fetch_by_parent(self, project_id, viewer_id, series_user_id = None):
        """Stored series for a project, ordered by date.

        ``series_user_id`` selects whose series to read (the project owner's
        unless given); access is still checked against ``viewer_id``.
        """
        query = BurndownModel.query.filter(
            BurndownModel.project_id == project_id,
            visible_to(BurndownModel.project_id, viewer_id),
        )
        if series_user_id is not None:
            query = query.filter(BurndownModel.user_id == series_user_id)
        return self._fetch("fetch", query.order_by(BurndownModel.date))

    def upsert(self, project_id, user_id, points):
        """Store ``points`` as the whole series of (project, user).

        Rows for the same date are overwritten; rows for dates the series no
        longer covers are removed in the same transaction.
        """
        now = self.clock.now()
        rows = [
            {
                "project_id": project_id,
                "user_id": user_id,
                "date": point.date,
                "ideal_points": point.ideal_points,
                "actual_points": point.actual_points,
                "created_at": now,
                "updated_at": now,
            }
            for point in points
        ]
        if not rows:
            return []

        def write():
            (
                BurndownModel.query
                .filter(
                    BurndownModel.project_id == project_id,
                    BurndownModel.user_id == user_id,
                    BurndownModel.date.notin_([row["date"] for row in rows]),
                )
                .delete(synchronize_session = False)
            )
            insert = UPSERT_DIALECTS.get(db.engine.dialect.name)
            if insert is None:
                self._merge_rows(rows)
            else:
                statement = insert(BurndownModel).values(rows)
                statement = statement.on_conflict_do_update(
                    index_elements = ["project_id", "user_id", "date"],
                    set_ = {
                        "ideal_points": statement.excluded.ideal_points,
                        "actual_points": statement.excluded.actual_points,
                        "updated_at": statement.excluded.updated_at,
                    },
                )
                db.session.execute(statement)
            db.session.commit()

        self._run("upsert", write)
        return list(points)

    def _merge_rows(self, rows):
        # Dialects without ON CONFLICT: update in place or add
        for values in rows:
            existing = BurndownModel.query.filter_by(
                project_id = values["project_id"], user_id = values["user_id"], date = values["date"]
            ).first()
            if existing is None:
                db.session.add(BurndownModel(**values))
            else:
                existing.ideal_points = values["ideal_points"]
                existing.actual_points = values["actual_points"]
                existing.updated_at = values["updated_at"]
