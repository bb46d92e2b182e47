"""Transcript analysis collaborators."""

from taskrecon.analysis.base import BaseCompletionSuggester, BaseTranscriptAnalyzer
from taskrecon.analysis.static import StaticAnalyzer, StaticSuggester

__all__ = [
    "BaseTranscriptAnalyzer",
    "BaseCompletionSuggester",
    "StaticAnalyzer",
    "StaticSuggester",
]
