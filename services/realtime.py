'''
Insert notifications for a mapped table.

Rows inserted through any session are collected at flush time and handed to
subscribers once the transaction commits; a rollback discards them.
'''

import logging

from sqlalchemy import event
from sqlalchemy.orm import Session, object_session

from models import TaskModel

logger = logging.getLogger(__name__)


class Subscription:
    def __init__(self, channel, predicate, on_insert):
        self.channel = channel
        self.predicate = predicate
        self.on_insert = on_insert
        self.active = True

    def unsubscribe(self):
        if self.active:
            self.channel._remove(self)
            self.active = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.unsubscribe()
        return False


class InsertChannel:
    def __init__(self, model):
        self.model = model
        self._key = f"inserted:{model.__tablename__}"
        self._subscriptions = []
        event.listen(model, "after_insert", self._collect)
        event.listen(Session, "after_commit", self._deliver)
        event.listen(Session, "after_soft_rollback", self._discard)

    def subscribe(self, predicate, on_insert):
        """Call ``on_insert(row)`` for each committed row where ``predicate(row)`` holds.

        ``row`` is a dict of column values. Use the returned subscription as a
        context manager, or call ``unsubscribe()``, to stop receiving rows.
        """
        subscription = Subscription(self, predicate, on_insert)
        self._subscriptions.append(subscription)
        return subscription

    def _remove(self, subscription):
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    @property
    def subscriber_count(self):
        return len(self._subscriptions)

    def _collect(self, mapper, connection, target):
        session = object_session(target)
        if session is None:
            return
        # Snapshot now, attributes expire on commit
        row = {attr.key: getattr(target, attr.key) for attr in mapper.column_attrs}
        session.info.setdefault(self._key, []).append(row)

    def _deliver(self, session):
        rows = session.info.pop(self._key, [])
        for row in rows:
            for subscription in list(self._subscriptions):
                if not subscription.predicate(row):
                    continue
                try:
                    subscription.on_insert(row)
                except Exception:
                    # Insert is already committed; report and keep delivering
                    logger.exception("Insert subscriber for %s failed", self.model.__tablename__)

    def _discard(self, session, previous_transaction):
        session.info.pop(self._key, None)


task_inserts = InsertChannel(TaskModel)
