"""Base classes for transcript analysis collaborators."""

from abc import ABC, abstractmethod
from typing import List

from taskrecon.models.job import AnalysisResult
from taskrecon.models.task import Task


class BaseTranscriptAnalyzer(ABC):
    """Abstract base class for transcript analyzers."""

    @abstractmethod
    async def analyze(self, transcript: str, detail_level: str) -> AnalysisResult:
        """Extract candidate task trees from a transcript.

        Args:
            transcript: Raw meeting transcript
            detail_level: Requested granularity: light, medium or detailed

        Returns:
            AnalysisResult with task trees per detail level

        Raises:
            Exception: If analysis fails
        """
        pass


class BaseCompletionSuggester(ABC):
    """Abstract base class for completion-suggestion generators."""

    @abstractmethod
    async def suggest(self, user_id: str, transcript: str, match_threshold: float) -> List[Task]:
        """Detect tasks the transcript reports as finished.

        Args:
            user_id: User whose open tasks are candidates
            transcript: Raw meeting transcript
            match_threshold: Minimum match confidence the user accepts

        Returns:
            Candidate tasks, each carrying ``completion_targets``. May be empty.

        Raises:
            Exception: If detection fails
        """
        pass
