from datetime import datetime, timezone
from unittest.mock import Mock

from db import db
from models import TaskModel
from services.realtime import task_inserts


def add_task(project_id, title = "Task"):
    now = datetime(2024, 1, 1, tzinfo = timezone.utc)
    db.session.add(TaskModel(
        title = title, status = "backlog", project_id = project_id, user_id = 1, created_at = now, updated_at = now
    ))


class TestInsertChannel:
    def test_delivers_committed_rows_matching_predicate(self, app):
        received = []
        with task_inserts.subscribe(lambda row: row["project_id"] == 1, received.append):
            add_task(1, "Mine")
            add_task(2, "Someone else's")
            assert received == []
            db.session.commit()

        assert [row["title"] for row in received] == ["Mine"]
        assert received[0]["id"] is not None
        assert received[0]["assign_to"] is None

    def test_rolled_back_rows_are_not_delivered(self, app):
        on_insert = Mock()
        with task_inserts.subscribe(lambda row: True, on_insert):
            add_task(1)
            db.session.flush()
            db.session.rollback()
            db.session.commit()
        on_insert.assert_not_called()

    def test_unsubscribe_stops_delivery(self, app):
        on_insert = Mock()
        subscription = task_inserts.subscribe(lambda row: True, on_insert)
        count = task_inserts.subscriber_count

        subscription.unsubscribe()
        subscription.unsubscribe()
        add_task(1)
        db.session.commit()

        assert task_inserts.subscriber_count == count - 1
        on_insert.assert_not_called()

    def test_failing_subscriber_does_not_block_others(self, app, caplog):
        received = []
        broken = task_inserts.subscribe(lambda row: True, Mock(side_effect = RuntimeError("boom")))
        with task_inserts.subscribe(lambda row: True, received.append):
            add_task(1)
            db.session.commit()
        broken.unsubscribe()

        assert len(received) == 1
        assert "Insert subscriber for tasks failed" in caplog.text
