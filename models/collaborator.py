from datetime import datetime, timezone

from db import db

class CollaboratorModel(db.Model):
    __tablename__ = "collaborators"
    # A user holds at most one role per project
    __table_args__ = (db.UniqueConstraint("project_id", "user_id", name = "uq_collaborators_project_user"),)

    id = db.Column(db.Integer, primary_key = True)
    project_id = db.Column(db.Integer, db.ForeignKey("projects.id"), nullable = False, index = True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable = False, index = True)
    # product_owner, team_member or scrum_master
    role = db.Column(db.String(20), nullable = False)
    created_at = db.Column(
        db.DateTime(timezone = True),
        default = lambda: datetime.now(timezone.utc),
        nullable = False
    )

    project = db.relationship("ProjectModel", back_populates = "collaborators")
    user = db.relationship("UserModel")
