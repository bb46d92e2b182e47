"""Merging newly extracted tasks into an existing task tree."""

from typing import List, NamedTuple, Set

import structlog

from taskrecon.models.task import Task, TaskStatus, iter_tasks, normalize_task
from taskrecon.reconcile.matching import (
    DEFAULT_OVERLAP_THRESHOLD,
    build_match_key,
    token_overlap_ratio,
    tokenize_task_text,
)

logger = structlog.get_logger(__name__)


class MergeResult(NamedTuple):
    """Merged task list and the number of incoming tasks actually added."""

    tasks: List[Task]
    added: int


class TaskMerger:
    """Adds incoming tasks that the existing tree does not already hold.

    An incoming task is dropped when it is already done, when its match key is
    empty or already known, or when its tokens overlap any accepted task at or
    above the threshold. Accepted tasks join the known set, so a batch cannot
    introduce its own duplicates. Merging the same batch twice adds nothing
    the second time.
    """

    def __init__(self, overlap_threshold: float = DEFAULT_OVERLAP_THRESHOLD) -> None:
        self.overlap_threshold = overlap_threshold

    def merge(self, existing: List[Task], incoming: List[Task]) -> MergeResult:
        """Merge ``incoming`` into ``existing``.

        Args:
            existing: Current task tree (left unmodified)
            incoming: Newly extracted top-level tasks

        Returns:
            MergeResult with the merged top-level list and the count added
        """
        merged = list(existing)
        keys: Set[str] = set()
        token_sets = []
        for task in iter_tasks(existing):
            key = build_match_key(task)
            if key:
                keys.add(key)
            token_sets.append(tokenize_task_text(task))

        added = 0
        for raw in incoming:
            task = normalize_task(raw)
            if task.status == TaskStatus.DONE:
                continue

            key = build_match_key(task)
            if not key or key in keys:
                continue

            tokens = tokenize_task_text(task)
            if any(token_overlap_ratio(seen, tokens) >= self.overlap_threshold for seen in token_sets):
                logger.debug("merge_skipped_near_duplicate", task_id=task.id, title=task.title)
                continue

            keys.add(key)
            token_sets.append(tokens)
            merged.append(task)
            added += 1

        return MergeResult(tasks=merged, added=added)
