from services.repositories.board_column import BoardColumnRepository
from services.repositories.burndown import BurndownRepository
from services.repositories.collaborator import CollaboratorRepository
from services.repositories.project import ProjectRepository
from services.repositories.sprint import SprintRepository
from services.repositories.task import TaskRepository
from services.repositories.user import UserRepository
