'''
----------------------------
Project actions
USER INTERACTIONS
----------------------------
'''

from flask.views import MethodView
from flask_smorest import Blueprint
from flask_jwt_extended import jwt_required

from schemas import ProjectSchema, PlainProjectSchema, ProjectUpdateSchema, BurndownPointSchema, TimelineEntrySchema
from services.workspace import current_workspace

# Define the Blueprint for projects
blp = Blueprint("projects", __name__, description = "Operations on projects")


# Endpoint for generic create and view projects
@blp.route("/projects")
class ProjectListAndCreate(MethodView):
    @jwt_required()
    @blp.arguments(PlainProjectSchema)
    @blp.response(201, ProjectSchema)
    def post(self, project_data):
        # Create a new project owned by the authenticated user
        return current_workspace().cache.add_project(project_data)

    @jwt_required()
    # Owned projects first, then the ones shared with the user
    @blp.response(200, ProjectSchema(many = True))
    def get(self):
        # Picks up projects shared with the user since they signed in
        return current_workspace().cache.refresh_projects()


# Projects where the user is a collaborator, not the owner
@blp.route("/collaborations")
class CollaborationList(MethodView):
    @jwt_required()
    @blp.response(200, ProjectSchema(many = True))
    def get(self):
        cache = current_workspace().cache
        cache.refresh_projects()
        return cache.collaborations()


# Endpoint related to a specific project
@blp.route("/projects/<int:project_id>")
class ProjectResource(MethodView):
    @jwt_required()
    @blp.response(200, ProjectSchema)
    def get(self, project_id):
        return current_workspace().cache.fetch_project(project_id)

    # Patch reflects ability for partial updates
    @jwt_required()
    @blp.arguments(ProjectUpdateSchema)
    @blp.response(200, ProjectSchema)
    def patch(self, project_data, project_id):
        return current_workspace().cache.update_project(project_id, project_data)

    @jwt_required()
    def delete(self, project_id):
        # Removes sprints, tasks, collaborators and burndown data with it
        current_workspace().cache.delete_project(project_id)
        return {"message": "Project deleted successfully"}


@blp.route("/projects/<int:project_id>/burndown")
class ProjectBurndown(MethodView):
    @jwt_required()
    @blp.response(200, BurndownPointSchema(many = True))
    def get(self, project_id):
        return current_workspace().cache.get_burndown(project_id)


@blp.route("/projects/<int:project_id>/timeline")
class ProjectTimeline(MethodView):
    @jwt_required()
    @blp.response(200, TimelineEntrySchema(many = True))
    def get(self, project_id):
        return current_workspace().cache.timeline(project_id)
