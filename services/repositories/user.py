from sqlalchemy import or_

from models import UserModel
from services.entities import User
from services.repositories.base import Repository


class UserRepository(Repository):
    entity_name = "user"
    model = UserModel
    entity_cls = User
    writable = ("username", "email")

    def find_by_identifier(self, identifier):
        """Look a user up by email OR username.

        Returns ``(user, password_hash)`` or None; absence is not an error.
        """
        row = self._run(
            "fetch",
            UserModel.query.filter(or_(UserModel.email == identifier, UserModel.username == identifier)).first
        )
        if row is None:
            return None
        return self.to_entity(row), row.password

    def get(self, user_id):
        return self._fetch_one(UserModel.query.filter(UserModel.id == user_id))

    def exists(self, username, email):
        query = UserModel.query.filter(or_(UserModel.username == username, UserModel.email == email))
        return self._run("fetch", query.first) is not None

    def create(self, fields, password_hash):
        columns = self.to_columns(fields)

        def write():
            return self._insert(UserModel(password = password_hash, **columns))

        return self.to_entity(self._run("create", write))
