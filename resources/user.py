'''
----------------------------
User/account actions
USER INTERACTIONS
----------------------------
'''

from flask.views import MethodView
# Blueprint divides APIs into smaller segments
from flask_smorest import Blueprint, abort
# Hashes the password that the user enters
# and saves the scrambled password into the database
from passlib.hash import pbkdf2_sha256
from flask_jwt_extended import create_access_token, get_jwt_identity, jwt_required, get_jwt

from db import db
from schemas import PlainUserSchema, UserLoginSchema
from models import TokenBlocklist
from services.repositories import UserRepository
from services.workspace import registry

blp = Blueprint("users", __name__, description = "Operations on users")


def _users():
    return UserRepository(registry().retry, registry().clock)


@blp.route("/register")
class UserRegister(MethodView):
    @blp.arguments(PlainUserSchema)
    @blp.response(201, PlainUserSchema)
    def post(self, user_data):
        users = _users()
        if users.exists(user_data["username"], user_data["email"]):
            abort(409, message = "A user with that username or email already exists")

        # The unique columns still reject a concurrent duplicate (DuplicateEntry -> 409)
        return users.create(
            {"username": user_data["username"], "email": user_data["email"]},
            pbkdf2_sha256.hash(user_data["password"])
        )


@blp.route("/login")
class UserLogin(MethodView):
    @blp.arguments(UserLoginSchema)
    def post(self, login_data):
        # Signs in and bulk-loads the user's projects; bad credentials -> 401
        workspace = registry().open(login_data["identifier"], login_data["password"])
        user = workspace.identity.current_user
        access_token = create_access_token(identity = str(user.id))
        return {"access_token": access_token, "user": PlainUserSchema().dump(user)}


@blp.route("/logout")
class UserLogout(MethodView):
    @jwt_required()
    def post(self):
        jti = get_jwt()["jti"]
        user_id = int(get_jwt_identity())
        if not TokenBlocklist.query.filter_by(jti = jti).first():
            db.session.add(TokenBlocklist(jti = jti, user_id = user_id))
            db.session.commit()
        # Drops the cached projects, sprints, tasks and burndown of this user
        registry().close(user_id)
        return {"message": "Logged out successfully"}


@blp.route("/user/<int:user_id>")
class User(MethodView):
    @jwt_required()
    @blp.response(200, PlainUserSchema)
    # Get user info
    def get(self, user_id):
        return _users().get(user_id)
