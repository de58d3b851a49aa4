'''
----------------------------
Task actions (sprint board and product backlog)
USER INTERACTIONS
----------------------------
'''

from flask.views import MethodView
from flask_smorest import Blueprint
from flask_jwt_extended import jwt_required

from schemas import TaskSchema, PlainTaskSchema, TaskUpdateSchema
from services.workspace import current_workspace

blp = Blueprint("tasks", __name__, description = "Operations on sprint tasks and backlog items")


@blp.route("/sprints/<int:sprint_id>/tasks")
class SprintTasks(MethodView):
    @jwt_required()
    @blp.response(200, TaskSchema(many = True))
    def get(self, sprint_id):
        cache = current_workspace().cache
        cache.fetch_sprint(sprint_id)
        return cache.load_tasks(sprint_id)

    @jwt_required()
    @blp.arguments(PlainTaskSchema)
    @blp.response(201, TaskSchema)
    def post(self, task_data, sprint_id):
        cache = current_workspace().cache
        sprint = cache.fetch_sprint(sprint_id)
        return cache.add_task(dict(task_data, sprint_id = sprint_id, project_id = sprint.project_id))


# Backlog items have no sprint and status "backlog"
@blp.route("/projects/<int:project_id>/backlog")
class ProjectBacklog(MethodView):
    @jwt_required()
    @blp.response(200, TaskSchema(many = True))
    def get(self, project_id):
        cache = current_workspace().cache
        cache.fetch_project(project_id)
        return cache.load_backlog(project_id)

    @jwt_required()
    @blp.arguments(PlainTaskSchema)
    @blp.response(201, TaskSchema)
    def post(self, task_data, project_id):
        return current_workspace().cache.add_task(dict(task_data, project_id = project_id))


@blp.route("/tasks/<int:task_id>")
class TaskResource(MethodView):
    @jwt_required()
    @blp.response(200, TaskSchema)
    def get(self, task_id):
        return current_workspace().cache.fetch_task(task_id)

    # Also moves tasks between sprints and the backlog (sprintId / status)
    @jwt_required()
    @blp.arguments(TaskUpdateSchema)
    @blp.response(200, TaskSchema)
    def patch(self, task_data, task_id):
        return current_workspace().cache.update_task(task_id, task_data)

    @jwt_required()
    def delete(self, task_id):
        current_workspace().cache.delete_task(task_id)
        return {"message": "Task deleted successfully"}
