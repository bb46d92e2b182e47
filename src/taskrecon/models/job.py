"""Models for rescan job input and output."""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from taskrecon.models.session import Meeting
from taskrecon.models.task import CamelModel, Task, normalize_tasks


class RescanMode(str, Enum):
    """Which parts of a rescan run."""

    NEW = "new"
    COMPLETED = "completed"
    BOTH = "both"

    @property
    def scans_new(self) -> bool:
        return self in (RescanMode.NEW, RescanMode.BOTH)

    @property
    def scans_completed(self) -> bool:
        return self in (RescanMode.COMPLETED, RescanMode.BOTH)


class AnalysisResult(CamelModel):
    """Transcript analyzer output: candidate task trees per detail level."""

    all_task_levels: Optional[Dict[str, List[Task]]] = Field(
        None, description="Task trees keyed by light, medium, detailed"
    )

    @field_validator("all_task_levels", mode="before")
    @classmethod
    def _normalize_levels(cls, value):
        if not value:
            return None
        return {level: normalize_tasks(tasks) for level, tasks in value.items()}

    def select_level(self, detail_level: str) -> List[Task]:
        """Tasks for ``detail_level``, falling back to medium, light, detailed."""
        levels = self.all_task_levels or {}
        for level in (detail_level, "medium", "light", "detailed"):
            if levels.get(level):
                return levels[level]
        return []


class RescanRequest(BaseModel):
    """Input of one rescan job."""

    user_id: str
    meeting_id: str
    mode: RescanMode = RescanMode.BOTH
    correlation_id: Optional[str] = None


class RescanStats(CamelModel):
    """Counters reported by a rescan."""

    mode: RescanMode
    new_tasks_added: int = 0
    completion_updates: int = 0
    auto_approved: bool = False


class RescanResult(CamelModel):
    """Output of one rescan job."""

    meeting: Optional[Meeting] = None
    stats: RescanStats
