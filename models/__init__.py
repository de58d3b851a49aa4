# By having it in __init__.py, we can use "from models import ProjectModel, SprintModel"
from models.user import UserModel
from models.project import ProjectModel
from models.sprint import SprintModel
from models.task import TaskModel
from models.collaborator import CollaboratorModel
from models.burndown import BurndownModel
from models.board_column import BoardColumnModel
from models.tokens_blocklist import TokenBlocklist
