'''
In-memory shapes of the rows the repositories read and write.
Nothing outside services/repositories sees an ORM model.
'''

from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Optional

BACKLOG = "backlog"
DONE = "done"

SPRINT_STATUSES = ("planned", "in-progress", "completed")
# Board columns every sprint has without storing them
DEFAULT_COLUMNS = ("todo", "in-progress", "done")
PRIORITIES = ("low", "medium", "high")
ROLES = ("product_owner", "team_member", "scrum_master")


@dataclass
class User:
    id: int
    username: str
    email: str


@dataclass
class Project:
    id: int
    title: str
    description: str
    owner_id: int
    created_at: datetime
    updated_at: datetime
    end_goal: Optional[str] = None
    # Set only when the viewer reaches the project through a Collaborator row
    is_collaboration: bool = False
    role: Optional[str] = None
    owner_name: str = ""


@dataclass
class Sprint:
    id: int
    title: str
    description: str
    project_id: int
    start_date: date
    end_date: date
    status: str = "planned"
    user_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Task:
    id: int
    title: str
    project_id: int
    status: str
    sprint_id: Optional[int] = None
    description: Optional[str] = None
    assigned_to: Optional[str] = None
    priority: Optional[str] = None
    story_points: Optional[int] = None
    completion_date: Optional[date] = None
    user_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_backlog(self):
        return self.sprint_id is None and self.status == BACKLOG


@dataclass
class Collaborator:
    id: int
    project_id: int
    user_id: int
    role: str
    created_at: Optional[datetime] = None
    username: str = ""
    email: str = ""


@dataclass(frozen = True)
class BurndownPoint:
    project_id: int
    date: date
    ideal_points: int
    actual_points: int


@dataclass
class BoardColumn:
    title: str
    order_index: int
    sprint_id: int
    id: Optional[int] = None

    @property
    def is_default(self):
        return self.id is None


@dataclass
class TimelineEntry:
    sprint_id: int
    title: str
    status: str
    start_date: date
    end_date: date
    duration_days: int
    offset_days: int
    offset_percent: float
    width_percent: float


def copy_with(entity, **changes):
    return replace(entity, **changes)
