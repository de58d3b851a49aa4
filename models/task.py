from db import db

class TaskModel(db.Model):
    __tablename__ = "tasks"

    id = db.Column(db.Integer, primary_key = True)
    title = db.Column(db.String(200), nullable = False)
    description = db.Column(db.Text, nullable = True)
    # Board column name, "backlog" while the task has no sprint
    status = db.Column(db.String(80), nullable = False)
    # Exposed as assigned_to outside the repository
    assign_to = db.Column(db.String(120), nullable = True)
    story_points = db.Column(db.Integer, nullable = True)
    priority = db.Column(db.String(10), nullable = True)
    # Empty for backlog tasks
    sprint_id = db.Column(db.Integer, db.ForeignKey("sprints.id"), nullable = True, index = True)
    project_id = db.Column(db.Integer, db.ForeignKey("projects.id"), nullable = False, index = True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable = False)
    completion_date = db.Column(db.Date, nullable = True)
    created_at = db.Column(db.DateTime(timezone = True), nullable = False)
    updated_at = db.Column(db.DateTime(timezone = True), nullable = False)
