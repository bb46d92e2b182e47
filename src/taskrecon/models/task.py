"""Data models for extracted tasks and completion signals."""

import uuid
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_document(self) -> dict:
        """Dump to a JSON-safe dict using the wire (camelCase) names."""
        return self.model_dump(mode="json", by_alias=True)


class TaskStatus(str, Enum):
    """Lifecycle status of a task."""

    TODO = "todo"
    IN_PROGRESS = "inprogress"
    DONE = "done"
    RECURRING = "recurring"


class SourceType(str, Enum):
    """Kind of store a completion target points at."""

    TASK = "task"
    MEETING = "meeting"
    CHAT = "chat"


class Assignee(CamelModel):
    """Person a task is assigned to."""

    uid: Optional[str] = Field(None, description="User id of the assignee")
    name: Optional[str] = Field(None, description="Display name")
    email: Optional[str] = Field(None, description="Email address")
    photo_url: Optional[str] = Field(None, alias="photoURL", description="Avatar URL")
    slack_id: Optional[str] = Field(None, description="Slack member id")


class TaskEvidence(CamelModel):
    """Transcript snippet supporting a task or a completion."""

    snippet: str = Field(..., description="Quoted transcript text")
    speaker: Optional[str] = Field(None, description="Speaker of the snippet")
    timestamp: Optional[str] = Field(None, description="Position in the recording")


class CompletionTarget(CamelModel):
    """Reference to the stored task a detected completion applies to."""

    source_type: SourceType = Field(..., description="meeting, chat or task")
    source_session_id: str = Field(..., description="Session holding the task")
    task_id: str = Field(..., description="Id of the task inside that session")
    source_session_name: Optional[str] = Field(None, description="Session title")


class Task(CamelModel):
    """A node in an extracted task tree."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Stable task id")
    title: str = Field("Untitled Task", description="Short task title")
    description: Optional[str] = Field(None, description="Longer task description")
    status: TaskStatus = Field(TaskStatus.TODO, description="todo, inprogress, done, recurring")
    priority: str = Field("medium", description="high, medium or low")
    task_type: Optional[str] = Field(None, description="Task category")
    due_at: Optional[str] = Field(None, description="Due date (ISO string)")
    assignee: Optional[Assignee] = Field(None, description="Assigned person")
    assignee_name: Optional[str] = Field(None, description="Assignee name reported by the analyzer")
    source_evidence: Optional[List[TaskEvidence]] = Field(None, description="Supporting snippets")
    source_session_id: Optional[str] = Field(None, description="Session the task came from")
    source_session_name: Optional[str] = Field(None, description="Title of that session")

    # Completion detection
    completion_suggested: Optional[bool] = Field(
        None, description="A completion was detected but not yet confirmed"
    )
    completion_confidence: Optional[float] = Field(None, description="Confidence 0..1")
    completion_evidence: Optional[List[TaskEvidence]] = Field(None, description="Completion snippets")
    completion_targets: Optional[List[CompletionTarget]] = Field(
        None, description="Stored tasks this completion resolves"
    )

    subtasks: List["Task"] = Field(default_factory=list, description="Nested subtasks")

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value: Any) -> Any:
        if value is None:
            return TaskStatus.TODO
        if isinstance(value, str) and value not in {s.value for s in TaskStatus}:
            return TaskStatus.TODO
        return value

    @field_validator("title", mode="before")
    @classmethod
    def _default_title(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return "Untitled Task"
        return value

    @field_validator("priority", mode="before")
    @classmethod
    def _default_priority(cls, value: Any) -> Any:
        return value or "medium"

    @field_validator("subtasks", mode="before")
    @classmethod
    def _default_subtasks(cls, value: Any) -> Any:
        return value or []

    @property
    def is_confirmed_done(self) -> bool:
        """True when the task is done and no longer awaiting review."""
        return self.status == TaskStatus.DONE and not self.completion_suggested


class CompletionUpdate(CamelModel):
    """Completion state to apply to a single task id."""

    completion_suggested: bool = Field(
        ..., description="True flags for review, False confirms the task as done"
    )
    completion_confidence: Optional[float] = None
    completion_evidence: Optional[List[TaskEvidence]] = None
    completion_targets: Optional[List[CompletionTarget]] = None


def normalize_task(raw: Any) -> Task:
    """Validate analyzer output into a Task.

    Accepts a Task, or a loosely-typed dict with camelCase or snake_case keys.
    Mongo-style ``_id`` is used when ``id`` is missing.
    """
    if isinstance(raw, Task):
        return raw
    data = dict(raw or {})
    if not data.get("id") and data.get("_id"):
        data["id"] = str(data.pop("_id"))
    elif not data.get("id"):
        data.pop("id", None)
    return Task.model_validate(data)


def normalize_tasks(raw_tasks: Optional[List[Any]]) -> List[Task]:
    """Normalize a list of analyzer tasks, tolerating None."""
    return [normalize_task(task) for task in raw_tasks or []]


def iter_tasks(tasks: List[Task]):
    """Yield every task in the tree, parents before their subtasks."""
    for task in tasks:
        yield task
        if task.subtasks:
            yield from iter_tasks(task.subtasks)
