import os
import logging

from flask import Flask, jsonify
from flask_smorest import Api
from flask_jwt_extended import JWTManager
from flask_migrate import Migrate

from db import db
from models.tokens_blocklist import TokenBlocklist
from services.errors import ScrumError, OperationFailed
from services.workspace import init_workspaces

from resources.project import blp as ProjectBlueprint
from resources.sprint import blp as SprintBlueprint
from resources.task import blp as TaskBlueprint
from resources.collaborator import blp as CollaboratorBlueprint
from resources.user import blp as UserBlueprint

from datetime import timedelta
from flask_cors import CORS


def _engine_options(uri, timeout):
    # A hung connection surfaces as a timeout, which is retried
    if uri.startswith("sqlite"):
        return {"connect_args": {"timeout": timeout}}
    if uri.startswith("postgres"):
        return {
            "pool_pre_ping": True,
            "pool_timeout": timeout,
            "connect_args": {
                "connect_timeout": int(timeout),
                "options": f"-c statement_timeout={int(timeout * 1000)}",
            },
        }
    return {"pool_pre_ping": True}


def create_app(db_url = None, config = None):
    app = Flask(__name__)


    FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

    CORS(
        app,
        resources={r"/*": {
            "origins": [FRONTEND_URL],
            "supports_credentials": True,
            "methods": ["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization", "Accept"],
            "expose_headers": ["Content-Type", "Authorization"],
            "max_age": 86400
        }},
    )


    app.config["PROPAGATE_EXCEPTIONS"] = True
    app.config["API_TITLE"] = "Scrum Board -- Project, Sprint and Task API"
    app.config["API_VERSION"] = "v1"
    app.config["OPENAPI_VERSION"] = "3.0.3"
    app.config["OPENAPI_URL_PREFIX"] = "/"
    app.config["OPENAPI_SWAGGER_UI_PATH"] = "/swagger-ui"
    app.config["OPENAPI_SWAGGER_UI_URL"] = "https://cdn.jsdelivr.net/npm/swagger-ui-dist/"
    app.config["SQLALCHEMY_DATABASE_URI"] = db_url or os.getenv("DATABASE_URL", "sqlite:///scrum.db")
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    # Set a secret key used for signing the JWT
    # Prevents tampering with JWTs from others
    app.config["JWT_SECRET_KEY"] = os.getenv("JWT_SECRET_KEY")
    # Expiry for full access tokens
    app.config["JWT_ACCESS_TOKEN_EXPIRES"] = timedelta(hours = 3)
    # Retries of failed database calls: 3 attempts, waiting 1s then 2s
    app.config["RETRY_MAX_ATTEMPTS"] = int(os.getenv("RETRY_MAX_ATTEMPTS", 3))
    app.config["RETRY_INITIAL_DELAY_MS"] = int(os.getenv("RETRY_INITIAL_DELAY_MS", 1000))
    app.config["RETRY_BACKOFF_FACTOR"] = float(os.getenv("RETRY_BACKOFF_FACTOR", 2))
    app.config["STORE_TIMEOUT_SECONDS"] = float(os.getenv("STORE_TIMEOUT_SECONDS", 10))
    app.config["LOG_LEVEL"] = os.getenv("LOG_LEVEL", "INFO")
    # Tests pass their own settings here
    app.config.update(config or {})

    app.config.setdefault(
        "SQLALCHEMY_ENGINE_OPTIONS",
        _engine_options(app.config["SQLALCHEMY_DATABASE_URI"], app.config["STORE_TIMEOUT_SECONDS"])
    )

    logging.basicConfig(
        level = app.config["LOG_LEVEL"],
        format = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    # Connects Flask app to SQLAlchemy
    db.init_app(app)
    api = Api(app)

    # Initialize flask migrate
    migrate = Migrate(app, db)

    # Create instance
    jwt = JWTManager(app)

    # Whenever we receive a JWT, this function checks if it is inside blocklist
    # If returns True, the request is terminated (access is revoked)
    @jwt.token_in_blocklist_loader
    def check_if_token_in_blocklist(jwt_header, jwt_payload):
        jti = jwt_payload["jti"]
        return bool(TokenBlocklist.query.filter_by(jti=jti).first())

    # Shows error message
    @jwt.revoked_token_loader
    def revoked_token_callback(jwt_header, jwt_payload):
        return (
            jsonify(
                {"description": "Token has been revoked", "error": "token_revoked"}
            ),
            401
        )

    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return (jsonify({"message": "Token has expired", "error": "token_expired"}), 401)

    @jwt.invalid_token_loader
    def invalid_token_callback(error):
        return (jsonify({"message": "Signature verification failed", "error": "invalid_token"}), 401)

    @jwt.unauthorized_loader
    def missing_token_callback(error):
        return (
            jsonify(
                {
                    "description": "Request does not contain access token",
                    "error": "authorization_required"
                }
            ),
            401
        )

    # Errors raised by the cache and the repositories
    @app.errorhandler(ScrumError)
    def scrum_error_callback(error):
        code = error.label if isinstance(error, OperationFailed) else error.error
        return (jsonify({"message": error.message, "error": code}), error.status_code)

    # One workspace (identity + project cache) per signed-in user
    init_workspaces(app)

    api.register_blueprint(ProjectBlueprint)
    api.register_blueprint(SprintBlueprint)
    api.register_blueprint(TaskBlueprint)
    api.register_blueprint(CollaboratorBlueprint)
    api.register_blueprint(UserBlueprint)

    return app
