'''
Who is signed in, and what they may do on the project being viewed.
'''

import logging

from passlib.hash import pbkdf2_sha256

from services.errors import AuthenticationFailed, PermissionDenied

logger = logging.getLogger(__name__)

OWNER = "owner"

# The owner holds every permission; collaborators hold what their role lists
ROLE_PERMISSIONS = {
    "product_owner": {
        "sprint.create", "sprint.update",
        "task.create", "task.update", "task.delete",
    },
    "scrum_master": {
        "sprint.create", "sprint.update", "sprint.delete",
        "task.create", "task.update", "task.delete",
        "column.manage",
    },
    "team_member": {"task.create", "task.update"},
}


class Identity:
    def __init__(self, users, collaborators):
        self.users = users
        self.collaborators = collaborators
        self.current_user = None
        self.project_id = None
        self.is_owner = False
        self.role = None
        self._listeners = []

    @property
    def is_authenticated(self):
        return self.current_user is not None

    @property
    def user_id(self):
        return self.current_user.id if self.current_user else None

    def add_listener(self, callback):
        # callback(user) runs on login/restore with the user, on logout with None
        self._listeners.append(callback)

    def _notify(self):
        for callback in self._listeners:
            callback(self.current_user)

    def login(self, identifier, secret):
        """Sign in with an email or username and a password."""
        found = self.users.find_by_identifier(identifier)
        if found is None or not pbkdf2_sha256.verify(secret, found[1]):
            raise AuthenticationFailed("Invalid credentials")
        self._set_user(found[0])
        logger.info("User %s signed in", self.current_user.username)
        return self.current_user

    def restore(self, user_id):
        # Re-establish a known identity, e.g. from a verified access token
        self._set_user(self.users.get(user_id))
        return self.current_user

    def logout(self):
        self.current_user = None
        self._clear_project()
        self._notify()

    def _set_user(self, user):
        self.current_user = user
        self._clear_project()
        self._notify()

    def _clear_project(self):
        self.project_id = None
        self.is_owner = False
        self.role = None

    def view_project(self, project):
        """Derive owner/role for ``project``; replaces any previous project scope."""
        if not self.is_authenticated:
            raise AuthenticationFailed("Not signed in")
        self.project_id = project.id
        if project.owner_id == self.current_user.id:
            self.is_owner = True
            self.role = OWNER
        else:
            self.is_owner = False
            # No Collaborator row means no role at all
            self.role = self.collaborators.fetch_role(project.id, self.current_user.id)
        return self.is_owner, self.role

    def leave_project(self, project_id):
        if self.project_id == project_id:
            self._clear_project()

    def can(self, permission):
        if self.is_owner:
            return True
        return permission in ROLE_PERMISSIONS.get(self.role, set())

    def require(self, permission):
        if not self.can(permission):
            role = self.role or "no role"
            raise PermissionDenied(f"Your role ({role}) does not allow {permission}")
