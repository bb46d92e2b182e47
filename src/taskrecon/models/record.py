"""Flat task store record model."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from taskrecon.models.task import (
    Assignee,
    CamelModel,
    CompletionTarget,
    SourceType,
    TaskEvidence,
    TaskStatus,
)


class TaskRecord(CamelModel):
    """One row of the flat task store used for per-person views.

    Rows are keyed by a canonical ``id``; ``source_task_id`` links the row back
    to the task node inside its originating session.
    """

    id: str = Field(..., description="Canonical task id")
    legacy_id: Optional[str] = Field(None, description="Alternate id from older records")
    user_id: str
    workspace_id: Optional[str] = None

    title: str
    description: str = ""
    status: TaskStatus = TaskStatus.TODO
    priority: str = "medium"
    due_at: Optional[str] = None
    assignee: Optional[Assignee] = None
    assignee_name: Optional[str] = None
    assignee_name_key: Optional[str] = None
    task_type: Optional[str] = None
    source_evidence: Optional[List[TaskEvidence]] = None

    completion_suggested: Optional[bool] = None
    completion_confidence: Optional[float] = None
    completion_evidence: Optional[List[TaskEvidence]] = None
    completion_targets: Optional[List[CompletionTarget]] = None

    ai_suggested: bool = True
    origin: str = Field("meeting", description="manual, meeting or chat")
    task_state: str = Field("active", description="active, suggested or archived")
    source_session_id: Optional[str] = None
    source_session_type: Optional[SourceType] = None
    source_session_name: Optional[str] = None
    source_task_id: Optional[str] = None
    parent_id: Optional[str] = None
    order: int = 0
    subtask_count: int = 0

    created_at: Optional[datetime] = None
    last_updated: Optional[datetime] = None

    def matches(self, identifier: str) -> bool:
        """Whether ``identifier`` is this row's id, alias or source task id."""
        return identifier in (self.id, self.legacy_id, self.source_task_id)

    @property
    def is_confirmed_done(self) -> bool:
        return self.status == TaskStatus.DONE and not self.completion_suggested
