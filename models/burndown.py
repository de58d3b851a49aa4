from db import db

class BurndownModel(db.Model):
    __tablename__ = "burndown_data"
    # One point per project, user and day, overwritten on every recompute
    __table_args__ = (db.UniqueConstraint("project_id", "user_id", "date", name = "uq_burndown_project_user_date"),)

    id = db.Column(db.Integer, primary_key = True)
    project_id = db.Column(db.Integer, db.ForeignKey("projects.id"), nullable = False, index = True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable = False)
    date = db.Column(db.Date, nullable = False)
    ideal_points = db.Column(db.Integer, nullable = False, default = 0)
    actual_points = db.Column(db.Integer, nullable = False, default = 0)
    created_at = db.Column(db.DateTime(timezone = True), nullable = False)
    updated_at = db.Column(db.DateTime(timezone = True), nullable = False)
