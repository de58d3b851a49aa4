from datetime import datetime, timezone

from db import db

class UserModel(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key = True)
    # Unique username and email, login accepts either
    username = db.Column(db.String(80), unique = True, nullable = False)
    email = db.Column(db.String(120), unique = True, nullable = False)
    # Make sure password isn't unique, or else people will know someone has that password
    password = db.Column(db.String(256), nullable = False)
    created_at = db.Column(
        db.DateTime(timezone = True),
        default = lambda: datetime.now(timezone.utc),
        nullable = False
    )

    # One user can own many projects
    projects = db.relationship("ProjectModel", back_populates = "owner", lazy = "dynamic")
