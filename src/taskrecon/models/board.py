"""Data models for kanban boards."""

import uuid
from datetime import datetime, timezone
from typing import Optional

from pydantic import Field

from taskrecon.models.task import CamelModel, TaskStatus


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Board(CamelModel):
    """A kanban board owned by a user inside a workspace."""

    id: str = Field(default_factory=_new_id)
    user_id: str
    workspace_id: str
    name: str
    description: Optional[str] = None
    color: Optional[str] = None
    template_id: Optional[str] = None
    is_default: bool = False
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class BoardStatus(CamelModel):
    """A column of a board, tagged with the task status category it shows."""

    id: str = Field(default_factory=_new_id)
    user_id: str
    workspace_id: str
    board_id: str
    label: str
    color: str = "#3b82f6"
    category: TaskStatus = TaskStatus.TODO
    order: int = 0
    is_terminal: bool = False
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class BoardItem(CamelModel):
    """Projection of a task onto a board column.

    Items in a column are ordered by ``rank``, ties broken by ``id``.
    """

    id: str = Field(default_factory=_new_id)
    user_id: str
    workspace_id: str
    board_id: str
    task_id: str = Field(..., description="Task id shown by this item")
    task_canonical_id: Optional[str] = Field(None, description="Flat-store id of the task")
    board_status_id: str = Field(..., description="Column the item sits in")
    rank: float = Field(0.0, description="Ordering key within the column")
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @property
    def sort_key(self):
        return (self.rank, self.id)
