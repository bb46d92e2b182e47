"""Applying detected completions to task trees."""

import math
from typing import Dict, Iterable, List, NamedTuple, Optional, Set

import structlog

from taskrecon.models.task import (
    CompletionUpdate,
    SourceType,
    Task,
    TaskStatus,
)
from taskrecon.reconcile.matching import build_match_key

logger = structlog.get_logger(__name__)

DEFAULT_MATCH_THRESHOLD = 0.6


class ApplyResult(NamedTuple):
    """Tree after applying updates and whether any node changed."""

    tasks: List[Task]
    updated: bool


class WalkResult(NamedTuple):
    node: Task
    changed: bool


def _finite_confidence(task: Task) -> Optional[float]:
    value = task.completion_confidence
    if isinstance(value, (int, float)) and math.isfinite(value):
        return float(value)
    return None


class CompletionReconciler:
    """Turns completion candidates into updates and applies them to trees.

    Args:
        auto_approve: Confirm completions without review when confident enough
        match_threshold: Confidence at or above which auto-approval applies
    """

    def __init__(self, auto_approve: bool = False, match_threshold: float = DEFAULT_MATCH_THRESHOLD) -> None:
        self.auto_approve = auto_approve
        self.match_threshold = match_threshold

    def requires_review(self, candidate: Task) -> bool:
        """Whether a candidate must be confirmed by a human."""
        if not self.auto_approve:
            return True
        confidence = _finite_confidence(candidate)
        if confidence is None:
            return True
        return confidence < self.match_threshold

    def build_update_map(self, candidates: Iterable[Task]) -> Dict[str, CompletionUpdate]:
        """Build one update per targeted task id.

        The highest-confidence candidate wins for each id; on ties the one
        seen last wins. A missing confidence counts as 0.
        """
        updates: Dict[str, CompletionUpdate] = {}
        for candidate in candidates:
            targets = candidate.completion_targets or []
            if not targets:
                continue

            confidence = _finite_confidence(candidate)
            update = CompletionUpdate(
                completion_suggested=self.requires_review(candidate),
                completion_confidence=confidence,
                completion_evidence=candidate.completion_evidence,
                completion_targets=candidate.completion_targets,
            )
            for target in targets:
                if not target.task_id:
                    continue
                existing = updates.get(target.task_id)
                existing_confidence = (existing.completion_confidence or 0.0) if existing else 0.0
                if existing is None or (confidence or 0.0) >= existing_confidence:
                    updates[target.task_id] = update
        return updates

    def apply(
        self,
        tasks: List[Task],
        updates: Dict[str, CompletionUpdate],
        applied_ids: Set[str],
    ) -> ApplyResult:
        """Apply ``updates`` to every matching node of ``tasks``.

        Subtasks are visited before their parent. A confirmed completion
        (done and not awaiting review) is never overwritten. Ids of updated
        nodes are added to ``applied_ids``. Unchanged branches are returned
        as-is; changed ones are copies, the input tree is not mutated.
        """
        if not updates:
            return ApplyResult(tasks=tasks, updated=False)
        new_tasks, changed = self._walk_list(tasks, updates, applied_ids)
        return ApplyResult(tasks=new_tasks, updated=changed)

    def _walk_list(self, tasks, updates, applied_ids):
        results = [self._walk(task, updates, applied_ids) for task in tasks]
        if not any(result.changed for result in results):
            return tasks, False
        return [result.node for result in results], True

    def _walk(self, task: Task, updates, applied_ids) -> WalkResult:
        node = task
        changed = False

        if task.subtasks:
            subtasks, subtasks_changed = self._walk_list(task.subtasks, updates, applied_ids)
            if subtasks_changed:
                node = node.model_copy(update={"subtasks": subtasks})
                changed = True

        update = updates.get(task.id)
        if update is None:
            return WalkResult(node, changed)

        if task.is_confirmed_done:
            logger.debug("completion_skipped_confirmed", task_id=task.id)
            return WalkResult(node, changed)

        next_status = task.status if update.completion_suggested else TaskStatus.DONE
        node = node.model_copy(
            update={
                "status": next_status,
                "completion_suggested": update.completion_suggested,
                "completion_confidence": update.completion_confidence,
                "completion_evidence": update.completion_evidence,
                "completion_targets": update.completion_targets,
            }
        )
        applied_ids.add(task.id)
        return WalkResult(node, True)


def _suggestion_key(task: Task) -> str:
    return build_match_key(task, prefer_assignee_record=True)


def merge_completion_suggestions(tasks: List[Task], suggestions: List[Task]) -> List[Task]:
    """Flag tasks that match a review-only suggestion by title and assignee.

    Each suggestion flags at most one task, the first found in tree order;
    of suggestions sharing a key the last one is used. Suggestions that
    match nothing are appended as flagged tasks, reset to todo when done.
    """
    if not suggestions:
        return tasks

    remaining: Dict[str, Task] = {}
    unkeyed: List[Task] = []
    for suggestion in suggestions:
        key = _suggestion_key(suggestion)
        if key:
            remaining[key] = suggestion
        else:
            unkeyed.append(suggestion)

    def flag(items: List[Task]) -> List[Task]:
        result = []
        for task in items:
            key = _suggestion_key(task)
            suggestion = remaining.pop(key, None) if key else None
            if suggestion is not None:
                task = task.model_copy(
                    update={
                        "completion_suggested": True,
                        "completion_confidence": suggestion.completion_confidence,
                        "completion_evidence": suggestion.completion_evidence,
                        "completion_targets": suggestion.completion_targets,
                    }
                )
            elif task.subtasks:
                task = task.model_copy(update={"subtasks": flag(task.subtasks)})
            result.append(task)
        return result

    merged = flag(tasks)
    for suggestion in list(remaining.values()) + unkeyed:
        status = suggestion.status if suggestion.status != TaskStatus.DONE else TaskStatus.TODO
        merged.append(suggestion.model_copy(update={"status": status, "completion_suggested": True}))
    return merged


def filter_tasks_for_session_sync(tasks: List[Task], session_type: SourceType, session_id: str) -> List[Task]:
    """Drop flagged tasks whose completion targets all belong to other sessions."""
    if not tasks:
        return tasks
    session_key = str(session_id)

    def include(task: Task) -> bool:
        if not task.completion_suggested:
            return True
        targets = task.completion_targets or []
        if not targets:
            return True
        return any(
            target.source_type == session_type and str(target.source_session_id) == session_key
            for target in targets
        )

    def walk(items: List[Task]) -> List[Task]:
        kept = []
        for task in items:
            if not include(task):
                continue
            if task.subtasks:
                task = task.model_copy(update={"subtasks": walk(task.subtasks)})
            kept.append(task)
        return kept

    return walk(tasks)
