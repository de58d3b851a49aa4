'''
One Workspace per signed-in user: their Identity, their ProjectCache and
the repositories both use. The registry lives on the Flask app and hands the
right workspace to each authenticated request.
'''

import logging
import threading

from flask import current_app
from flask_jwt_extended import get_jwt_identity

from services.burndown import BurndownEngine
from services.cache import ProjectCache
from services.clock import Clock
from services.identity import Identity
from services.repositories import (
    BoardColumnRepository, BurndownRepository, CollaboratorRepository, ProjectRepository,
    SprintRepository, TaskRepository, UserRepository
)
from services.retry import RetryPolicy

logger = logging.getLogger(__name__)

EXTENSION_KEY = "workspaces"


class Workspace:
    def __init__(self, retry, clock):
        self.clock = clock
        # Requests of the same user run on different threads and share this workspace
        self.lock = threading.RLock()
        self.users = UserRepository(retry, clock)
        self.projects = ProjectRepository(retry, clock)
        self.sprints = SprintRepository(retry, clock)
        self.tasks = TaskRepository(retry, clock)
        self.collaborators = CollaboratorRepository(retry, clock)
        self.columns = BoardColumnRepository(retry, clock)
        self.engine = BurndownEngine(BurndownRepository(retry, clock), clock)

        self.identity = Identity(self.users, self.collaborators)
        self.cache = ProjectCache(
            self.identity,
            projects = self.projects,
            sprints = self.sprints,
            tasks = self.tasks,
            collaborators = self.collaborators,
            columns = self.columns,
            users = self.users,
            engine = self.engine,
            clock = clock,
            lock = self.lock,
        )

    def sign_out(self):
        with self.lock:
            self.identity.logout()


class WorkspaceRegistry:
    def __init__(self, config, clock = None):
        self.retry = RetryPolicy.from_config(config)
        self.clock = clock or Clock()
        self._workspaces = {}
        self._lock = threading.Lock()

    def build(self):
        return Workspace(self.retry, self.clock)

    def open(self, identifier, secret):
        """Sign in and keep the loaded workspace for later requests."""
        workspace = self.build()
        user = workspace.identity.login(identifier, secret)
        with self._lock:
            previous = self._workspaces.get(user.id)
            self._workspaces[user.id] = workspace
        if previous is not None:
            previous.sign_out()
        return workspace

    def get(self, user_id):
        # A valid token without a workspace (e.g. after a restart) rebuilds it
        with self._lock:
            workspace = self._workspaces.get(user_id)
        if workspace is not None:
            return workspace
        workspace = self.build()
        workspace.identity.restore(user_id)
        with self._lock:
            return self._workspaces.setdefault(user_id, workspace)

    def close(self, user_id):
        with self._lock:
            workspace = self._workspaces.pop(user_id, None)
        if workspace is not None:
            workspace.sign_out()
            logger.info("Closed workspace for user %s", user_id)

    def __contains__(self, user_id):
        with self._lock:
            return user_id in self._workspaces


def init_workspaces(app):
    app.extensions[EXTENSION_KEY] = WorkspaceRegistry(app.config)


def registry():
    return current_app.extensions[EXTENSION_KEY]


def current_workspace():
    # Only valid inside a @jwt_required() view
    return registry().get(int(get_jwt_identity()))
