"""Collaborators that replay pre-computed analysis results."""

import json
from pathlib import Path
from typing import Any, List, Optional

from taskrecon.analysis.base import BaseCompletionSuggester, BaseTranscriptAnalyzer
from taskrecon.models.job import AnalysisResult
from taskrecon.models.task import Task, normalize_tasks


class StaticAnalyzer(BaseTranscriptAnalyzer):
    """Returns the same analysis for every transcript."""

    def __init__(self, result: Optional[AnalysisResult] = None) -> None:
        self.result = result or AnalysisResult()
        self.calls = 0

    @classmethod
    def from_file(cls, path: Path) -> "StaticAnalyzer":
        """Load an analysis saved as JSON.

        The file holds either ``{"allTaskLevels": {...}}`` or a plain list of
        tasks, used as the medium level.
        """
        with open(path, "r") as f:
            data: Any = json.load(f)
        if isinstance(data, list):
            data = {"allTaskLevels": {"medium": data}}
        return cls(AnalysisResult.model_validate(data))

    async def analyze(self, transcript: str, detail_level: str) -> AnalysisResult:
        self.calls += 1
        return self.result


class StaticSuggester(BaseCompletionSuggester):
    """Returns the same completion candidates for every transcript."""

    def __init__(self, candidates: Optional[List[Task]] = None) -> None:
        self.candidates = list(candidates or [])
        self.calls = 0

    @classmethod
    def from_file(cls, path: Path) -> "StaticSuggester":
        with open(path, "r") as f:
            data = json.load(f)
        return cls(normalize_tasks(data))

    async def suggest(self, user_id: str, transcript: str, match_threshold: float) -> List[Task]:
        self.calls += 1
        return list(self.candidates)
