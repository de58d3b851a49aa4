'''
----------------------------
Collaborator actions (owner only, except listing)
USER INTERACTIONS
----------------------------
'''

from flask.views import MethodView
from flask_smorest import Blueprint
from flask_jwt_extended import jwt_required

from schemas import CollaboratorSchema, CollaboratorCreateSchema, CollaboratorUpdateSchema
from services.workspace import current_workspace

blp = Blueprint("collaborators", __name__, description = "Operations on project collaborators")


@blp.route("/projects/<int:project_id>/collaborators")
class ProjectCollaborators(MethodView):
    @jwt_required()
    @blp.response(200, CollaboratorSchema(many = True))
    def get(self, project_id):
        return current_workspace().cache.list_collaborators(project_id)

    @jwt_required()
    @blp.arguments(CollaboratorCreateSchema)
    @blp.response(201, CollaboratorSchema)
    def post(self, collaborator_data, project_id):
        # Invite by email or username; a user already on the project -> 409
        return current_workspace().cache.add_collaborator(
            project_id, collaborator_data["identifier"], collaborator_data["role"]
        )


@blp.route("/projects/<int:project_id>/collaborators/<int:collaborator_id>")
class ProjectCollaborator(MethodView):
    @jwt_required()
    @blp.arguments(CollaboratorUpdateSchema)
    @blp.response(200, CollaboratorSchema)
    def patch(self, collaborator_data, project_id, collaborator_id):
        return current_workspace().cache.update_collaborator_role(
            project_id, collaborator_id, collaborator_data["role"]
        )

    @jwt_required()
    def delete(self, project_id, collaborator_id):
        current_workspace().cache.remove_collaborator(project_id, collaborator_id)
        return {"message": "Collaborator removed successfully"}
