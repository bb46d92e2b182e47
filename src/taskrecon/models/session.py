"""Data models for users, meetings and chat sessions."""

from datetime import datetime
from typing import ClassVar, List, Optional

from pydantic import Field, field_validator

from taskrecon.models.task import CamelModel, SourceType, Task, normalize_tasks

DETAIL_LEVELS = ("light", "medium", "detailed")


class User(CamelModel):
    """Owner of sessions, tasks and boards."""

    id: str = Field(..., description="User id")
    legacy_id: Optional[str] = Field(None, description="Alternate id from older records")
    workspace_id: Optional[str] = Field(None, description="Active workspace")
    task_granularity_preference: Optional[str] = Field(
        None, description="Preferred detail level: light, medium or detailed"
    )
    auto_approve_completed_tasks: bool = Field(
        False, description="Confirm high-confidence completions without review"
    )
    completion_match_threshold: Optional[float] = Field(
        None, description="Confidence needed to auto-approve a completion"
    )

    def matches(self, identifier: str) -> bool:
        return identifier in (self.id, self.legacy_id)


class Session(CamelModel):
    """Common fields of meetings and chat sessions."""

    session_type: ClassVar[SourceType]
    tasks_field: ClassVar[str]

    id: str = Field(..., description="Session id")
    legacy_id: Optional[str] = Field(None, description="Alternate id from older records")
    user_id: str = Field(..., description="Owning user")
    workspace_id: Optional[str] = Field(None, description="Owning workspace")
    title: Optional[str] = Field(None, description="Session title")
    created_at: Optional[datetime] = None
    last_activity_at: Optional[datetime] = None

    def matches(self, identifier: str) -> bool:
        """Whether ``identifier`` is this session's id or alias."""
        return identifier in (self.id, self.legacy_id)

    @property
    def tasks(self) -> List[Task]:
        return getattr(self, self.tasks_field)

    @property
    def display_name(self) -> str:
        return self.title or ("Meeting" if self.session_type == SourceType.MEETING else "Chat")


class Meeting(Session):
    """A recorded meeting with its transcript and extracted tasks."""

    session_type: ClassVar[SourceType] = SourceType.MEETING
    tasks_field: ClassVar[str] = "extracted_tasks"

    original_transcript: Optional[str] = Field(None, description="Raw transcript text")
    extracted_tasks: List[Task] = Field(default_factory=list)
    chat_session_id: Optional[str] = Field(None, description="Chat session opened from this meeting")
    is_hidden: bool = Field(False, description="Soft-deleted meetings are hidden")

    @field_validator("extracted_tasks", mode="before")
    @classmethod
    def _normalize_tasks(cls, value):
        return normalize_tasks(value)


class ChatSession(Session):
    """A chat conversation holding suggested tasks."""

    session_type: ClassVar[SourceType] = SourceType.CHAT
    tasks_field: ClassVar[str] = "suggested_tasks"

    suggested_tasks: List[Task] = Field(default_factory=list)
    source_meeting_id: Optional[str] = Field(None, description="Meeting this chat was opened from")

    @field_validator("suggested_tasks", mode="before")
    @classmethod
    def _normalize_tasks(cls, value):
        return normalize_tasks(value)
