"""Data models for task reconciliation."""

from taskrecon.models.board import Board, BoardItem, BoardStatus
from taskrecon.models.config import ReconcileSettings
from taskrecon.models.job import (
    AnalysisResult,
    RescanMode,
    RescanRequest,
    RescanResult,
    RescanStats,
)
from taskrecon.models.record import TaskRecord
from taskrecon.models.session import ChatSession, Meeting, Session, User
from taskrecon.models.task import (
    Assignee,
    CompletionTarget,
    CompletionUpdate,
    SourceType,
    Task,
    TaskEvidence,
    TaskStatus,
    iter_tasks,
    normalize_task,
    normalize_tasks,
)

__all__ = [
    "Assignee",
    "TaskEvidence",
    "CompletionTarget",
    "CompletionUpdate",
    "SourceType",
    "Task",
    "TaskStatus",
    "iter_tasks",
    "normalize_task",
    "normalize_tasks",
    "User",
    "Session",
    "Meeting",
    "ChatSession",
    "TaskRecord",
    "Board",
    "BoardStatus",
    "BoardItem",
    "AnalysisResult",
    "RescanMode",
    "RescanRequest",
    "RescanResult",
    "RescanStats",
    "ReconcileSettings",
]
