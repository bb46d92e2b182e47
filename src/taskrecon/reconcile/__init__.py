"""Task reconciliation: merging, completion and propagation."""

from taskrecon.reconcile.completion import (
    ApplyResult,
    CompletionReconciler,
    filter_tasks_for_session_sync,
    merge_completion_suggestions,
)
from taskrecon.reconcile.matching import (
    build_assignee_key,
    build_match_key,
    overlap_score,
    token_overlap_ratio,
    tokenize_task_text,
)
from taskrecon.reconcile.merger import MergeResult, TaskMerger
from taskrecon.reconcile.propagation import (
    CrossSessionPropagator,
    PropagationResult,
    group_completion_targets,
)

__all__ = [
    "build_assignee_key",
    "build_match_key",
    "tokenize_task_text",
    "token_overlap_ratio",
    "overlap_score",
    "TaskMerger",
    "MergeResult",
    "CompletionReconciler",
    "ApplyResult",
    "merge_completion_suggestions",
    "filter_tasks_for_session_sync",
    "CrossSessionPropagator",
    "PropagationResult",
    "group_completion_targets",
]
