from db import db

class ProjectModel(db.Model):
    __tablename__ = "projects"

    # Project id
    id = db.Column(db.Integer, primary_key = True)
    title = db.Column(db.String(120), nullable = False)
    description = db.Column(db.Text, nullable = False, default = "")
    # Optional statement of what "finished" means for the project
    end_goal = db.Column(db.Text, nullable = True)
    # Owning user, never listed as a collaborator of their own project
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable = False, index = True)
    created_at = db.Column(db.DateTime(timezone = True), nullable = False)
    updated_at = db.Column(db.DateTime(timezone = True), nullable = False)

    owner = db.relationship("UserModel", back_populates = "projects")
    # Deletes are issued explicitly by the repository (tasks, then sprints, then project)
    sprints = db.relationship("SprintModel", back_populates = "project", lazy = "dynamic")
    collaborators = db.relationship("CollaboratorModel", back_populates = "project", lazy = "dynamic")
