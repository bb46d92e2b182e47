"""Fanning completion updates out to every store that holds a copy of a task."""

import asyncio
from datetime import datetime, timezone
from typing import Dict, List, NamedTuple, Optional, Set, Tuple

import structlog

from taskrecon.board.sync import BoardSynchronizer
from taskrecon.errors import PropagationTargetMissing
from taskrecon.models.session import Meeting, Session
from taskrecon.models.task import CompletionUpdate, SourceType, Task, TaskStatus
from taskrecon.reconcile.completion import CompletionReconciler, filter_tasks_for_session_sync
from taskrecon.storage.base import SessionStore, TaskStore
from taskrecon.storage.session_sync import cleanup_chat_tasks_for_sessions, update_linked_chat_sessions
from taskrecon.storage.task_sync import sync_tasks_for_source

logger = structlog.get_logger(__name__)

PROPAGATED_SOURCE_TYPES = (SourceType.MEETING, SourceType.CHAT)


class TargetGroup(NamedTuple):
    """Task ids of one session named by completion targets."""

    source_type: SourceType
    session_id: str
    task_ids: Set[str]


class ResolvedTarget(NamedTuple):
    """Session that actually stores the tasks of one or more groups."""

    source_type: SourceType
    session_id: str
    task_ids: Set[str]


class PropagationResult(NamedTuple):
    updated_sessions: List[str]
    skipped_sessions: List[str]


def group_completion_targets(candidates: List[Task]) -> List[TargetGroup]:
    """Group targets by (source type, session id), in first-seen order."""
    groups: Dict[Tuple[SourceType, str], TargetGroup] = {}
    for candidate in candidates:
        for target in candidate.completion_targets or []:
            if not target.source_session_id or not target.task_id:
                continue
            if target.source_type not in PROPAGATED_SOURCE_TYPES:
                continue
            key = (target.source_type, target.source_session_id)
            if key not in groups:
                groups[key] = TargetGroup(target.source_type, target.source_session_id, set())
            groups[key].task_ids.add(target.task_id)
    return list(groups.values())


class CrossSessionPropagator:
    """Applies one rescan's completion updates to every other affected session.

    Chat sessions opened from a meeting are views of that meeting, so their
    updates are redirected to the meeting. Targets are resolved concurrently,
    then each resolved session is read, reconciled and written one at a time.
    A session that cannot be found is skipped.
    """

    def __init__(
        self,
        sessions: SessionStore,
        tasks: TaskStore,
        board_sync: BoardSynchronizer,
        reconciler: CompletionReconciler,
    ) -> None:
        self.sessions = sessions
        self.tasks = tasks
        self.board_sync = board_sync
        self.reconciler = reconciler

    async def _resolve(self, user_id: str, group: TargetGroup) -> ResolvedTarget:
        if group.source_type == SourceType.MEETING:
            meeting = await self.sessions.get_meeting(user_id, group.session_id)
            if meeting is None:
                raise PropagationTargetMissing(group.source_type.value, group.session_id)
            return ResolvedTarget(SourceType.MEETING, meeting.id, set(group.task_ids))

        chat = await self.sessions.get_chat_session(user_id, group.session_id)
        if chat is None:
            raise PropagationTargetMissing(group.source_type.value, group.session_id)
        if chat.source_meeting_id:
            meeting = await self.sessions.get_meeting(user_id, chat.source_meeting_id)
            if meeting is None:
                raise PropagationTargetMissing(SourceType.MEETING.value, chat.source_meeting_id)
            return ResolvedTarget(SourceType.MEETING, meeting.id, set(group.task_ids))
        return ResolvedTarget(SourceType.CHAT, chat.id, set(group.task_ids))

    async def resolve_targets(
        self, user_id: str, groups: List[TargetGroup]
    ) -> Tuple[List[ResolvedTarget], List[str]]:
        """Resolve groups to the sessions that store their tasks.

        Groups landing on the same session are combined.

        Returns:
            Tuple of (resolved targets, ids of groups that could not be resolved)
        """
        outcomes = await asyncio.gather(
            *(self._resolve(user_id, group) for group in groups), return_exceptions=True
        )

        resolved: Dict[Tuple[SourceType, str], ResolvedTarget] = {}
        missing: List[str] = []
        for group, outcome in zip(groups, outcomes):
            if isinstance(outcome, PropagationTargetMissing):
                logger.warning(
                    "propagation_target_missing",
                    source_type=group.source_type.value,
                    session_id=group.session_id,
                    missing=outcome.session_id,
                )
                missing.append(group.session_id)
                continue
            if isinstance(outcome, BaseException):
                raise outcome
            key = (outcome.source_type, outcome.session_id)
            if key in resolved:
                resolved[key].task_ids.update(outcome.task_ids)
            else:
                resolved[key] = outcome
        return list(resolved.values()), missing

    async def propagate(
        self,
        user_id: str,
        source_meeting: Meeting,
        candidates: List[Task],
        updates: Dict[str, CompletionUpdate],
        applied_ids: Set[str],
        default_workspace_id: Optional[str] = None,
    ) -> PropagationResult:
        """Apply ``updates`` to every session named by the candidates' targets.

        The source meeting is excluded; it has already been reconciled.

        Args:
            user_id: Owner of all sessions
            source_meeting: Meeting that triggered the rescan
            candidates: Completion candidates carrying completion targets
            updates: Update map built from the candidates
            applied_ids: Ids updated so far in this run; extended in place
            default_workspace_id: Workspace used when a session has none

        Returns:
            PropagationResult listing updated and skipped session ids
        """
        if not updates:
            return PropagationResult([], [])

        groups = [
            group
            for group in group_completion_targets(candidates)
            if not (group.source_type == SourceType.MEETING and source_meeting.matches(group.session_id))
        ]
        if not groups:
            return PropagationResult([], [])

        targets, skipped = await self.resolve_targets(user_id, groups)

        updated: List[str] = []
        for target in targets:
            if target.source_type == SourceType.MEETING and source_meeting.matches(target.session_id):
                continue
            session_updates = {
                task_id: updates[task_id] for task_id in sorted(target.task_ids) if task_id in updates
            }
            if not session_updates:
                continue
            try:
                changed = await self._apply_to_session(
                    user_id, target, session_updates, applied_ids, default_workspace_id
                )
            except PropagationTargetMissing as e:
                logger.warning("propagation_target_missing", source_type=e.source_type, session_id=e.session_id)
                skipped.append(target.session_id)
                continue
            if changed:
                updated.append(target.session_id)

        logger.info("completion_propagated", updated_sessions=len(updated), skipped_sessions=len(skipped))
        return PropagationResult(updated, skipped)

    async def _apply_to_session(
        self,
        user_id: str,
        target: ResolvedTarget,
        session_updates: Dict[str, CompletionUpdate],
        applied_ids: Set[str],
        default_workspace_id: Optional[str],
    ) -> bool:
        session: Optional[Session]
        if target.source_type == SourceType.MEETING:
            session = await self.sessions.get_meeting(user_id, target.session_id)
        else:
            session = await self.sessions.get_chat_session(user_id, target.session_id)
        if session is None:
            raise PropagationTargetMissing(target.source_type.value, target.session_id)

        result = self.reconciler.apply(session.tasks, session_updates, applied_ids)
        if not result.updated:
            return False

        now = datetime.now(timezone.utc)
        fields = {session.tasks_field: result.tasks, "last_activity_at": now}
        if isinstance(session, Meeting):
            await self.sessions.update_meeting(user_id, session.id, fields)
            await self.sync_meeting_projections(
                user_id, session, result.tasks, session.workspace_id or default_workspace_id
            )
        else:
            await self.sessions.update_chat_session(user_id, session.id, fields)

        logger.debug(
            "session_completion_applied",
            source_type=target.source_type.value,
            session_id=session.id,
            task_ids=sorted(session_updates),
        )
        return True

    async def sync_meeting_projections(
        self, user_id: str, meeting: Meeting, tasks: List[Task], workspace_id: Optional[str]
    ) -> None:
        """Refresh the flat store, linked chats and default board for a meeting."""
        sync_tasks = filter_tasks_for_session_sync(tasks, SourceType.MEETING, meeting.id)
        await sync_tasks_for_source(
            self.tasks,
            sync_tasks,
            user_id=user_id,
            source_session_id=meeting.id,
            source_session_type=SourceType.MEETING,
            source_session_name=meeting.display_name,
            workspace_id=workspace_id,
            origin="meeting",
            task_state="active",
        )
        linked = await update_linked_chat_sessions(self.sessions, user_id, meeting, tasks)
        await cleanup_chat_tasks_for_sessions(self.tasks, user_id, linked)
        if workspace_id:
            board = await self.board_sync.ensure_default_board(user_id, workspace_id)
            await self.board_sync.ensure_board_items_for_tasks(user_id, workspace_id, board.id, sync_tasks)

    async def apply_to_task_store(
        self, user_id: str, updates: Dict[str, CompletionUpdate], applied_ids: Set[str]
    ) -> Set[str]:
        """Write completion updates to flat-store rows by any of their ids.

        Ids with no row and rows already confirmed done are left alone.
        Confirmed completions are then moved to the done column of every board showing them.

        Returns:
            Ids whose completion was confirmed (not just flagged)
        """
        if not updates:
            return set()

        task_ids = [task_id for task_id in updates if task_id]
        records = await self.tasks.find_by_ids(user_id, task_ids)
        stored_ids = set()
        skip_ids = set()
        for record in records:
            record_ids = {value for value in (record.id, record.legacy_id, record.source_task_id) if value}
            stored_ids.update(record_ids)
            if record.is_confirmed_done:
                skip_ids.update(record_ids)

        now = datetime.now(timezone.utc)
        operations = {}
        confirmed = set()
        for task_id in task_ids:
            if task_id not in stored_ids or task_id in skip_ids:
                continue
            update = updates[task_id]
            fields = {
                "completion_suggested": update.completion_suggested,
                "completion_confidence": update.completion_confidence,
                "completion_evidence": update.completion_evidence,
                "completion_targets": update.completion_targets,
                "last_updated": now,
            }
            if not update.completion_suggested:
                fields["status"] = TaskStatus.DONE
                confirmed.add(task_id)
            operations[task_id] = fields
            applied_ids.add(task_id)

        if operations:
            result = await self.tasks.bulk_update(user_id, operations)
            for error in result.errors:
                logger.warning(
                    "bulk_write_partial_failure",
                    collection=error.collection,
                    document_id=error.document_id,
                    reason=error.reason,
                )

        # Board items may show either the session task id or the row id
        board_task_ids = set(confirmed)
        for record in records:
            if any(record.matches(task_id) for task_id in confirmed):
                board_task_ids.add(record.id)
        for task_id in sorted(board_task_ids):
            await self.board_sync.sync_items_to_status(user_id, task_id, TaskStatus.DONE)
        return confirmed
