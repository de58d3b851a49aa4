from db import db

class SprintModel(db.Model):
    __tablename__ = "sprints"

    id = db.Column(db.Integer, primary_key = True)
    title = db.Column(db.String(120), nullable = False)
    description = db.Column(db.Text, nullable = False, default = "")
    project_id = db.Column(db.Integer, db.ForeignKey("projects.id"), nullable = False, index = True)
    start_date = db.Column(db.Date, nullable = False)
    end_date = db.Column(db.Date, nullable = False)
    # One of planned, in-progress, completed
    status = db.Column(db.String(20), nullable = False, default = "planned")
    # User who created the sprint
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable = False)
    created_at = db.Column(db.DateTime(timezone = True), nullable = False)
    updated_at = db.Column(db.DateTime(timezone = True), nullable = False)

    project = db.relationship("ProjectModel", back_populates = "sprints")
