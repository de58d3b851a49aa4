'''
----------------------------
Sprint and board column actions
USER INTERACTIONS
----------------------------
'''

from flask.views import MethodView
from flask_smorest import Blueprint
from flask_jwt_extended import jwt_required

from schemas import SprintSchema, PlainSprintSchema, SprintUpdateSchema, BoardColumnSchema
from services.workspace import current_workspace

blp = Blueprint("sprints", __name__, description = "Operations on sprints and their board columns")


@blp.route("/projects/<int:project_id>/sprints")
class ProjectSprints(MethodView):
    @jwt_required()
    @blp.response(200, SprintSchema(many = True))
    def get(self, project_id):
        cache = current_workspace().cache
        cache.fetch_project(project_id)
        # Re-fetch so changes by collaborators show up
        return cache.load_sprints(project_id)

    @jwt_required()
    @blp.arguments(PlainSprintSchema)
    @blp.response(201, SprintSchema)
    def post(self, sprint_data, project_id):
        # 1 to 28 days long, starting today or later
        return current_workspace().cache.add_sprint(dict(sprint_data, project_id = project_id))


@blp.route("/sprints/<int:sprint_id>")
class SprintResource(MethodView):
    @jwt_required()
    @blp.response(200, SprintSchema)
    def get(self, sprint_id):
        return current_workspace().cache.fetch_sprint(sprint_id)

    @jwt_required()
    @blp.arguments(SprintUpdateSchema)
    @blp.response(200, SprintSchema)
    def patch(self, sprint_data, sprint_id):
        return current_workspace().cache.update_sprint(sprint_id, sprint_data)

    @jwt_required()
    def delete(self, sprint_id):
        # Tasks and custom columns of the sprint are deleted with it
        current_workspace().cache.delete_sprint(sprint_id)
        return {"message": "Sprint deleted successfully"}


@blp.route("/sprints/<int:sprint_id>/columns")
class SprintColumns(MethodView):
    @jwt_required()
    @blp.response(200, BoardColumnSchema(many = True))
    def get(self, sprint_id):
        return current_workspace().cache.list_columns(sprint_id)

    @jwt_required()
    @blp.arguments(BoardColumnSchema)
    @blp.response(201, BoardColumnSchema)
    def post(self, column_data, sprint_id):
        return current_workspace().cache.add_column(sprint_id, column_data["title"])


@blp.route("/sprints/<int:sprint_id>/columns/<int:column_id>")
class SprintColumn(MethodView):
    @jwt_required()
    def delete(self, sprint_id, column_id):
        moved = current_workspace().cache.delete_column(sprint_id, column_id)
        return {"message": "Column deleted successfully", "tasks_moved": moved}
