"""Syncing a session's task tree into the flat task store."""

from datetime import datetime, timezone
from typing import Dict, List, NamedTuple, Optional

import structlog

from taskrecon.models.record import TaskRecord
from taskrecon.models.task import SourceType, Task
from taskrecon.normalize import normalize_person_name_key
from taskrecon.errors import PartialWriteFailure
from taskrecon.storage.base import TaskStore

logger = structlog.get_logger(__name__)


class TaskSyncResult(NamedTuple):
    upserted: int
    deleted: int
    task_map: Dict[str, str]
    errors: List[PartialWriteFailure]


def build_task_records(
    tasks: List[Task],
    *,
    user_id: str,
    source_session_id: str,
    source_session_type: SourceType,
    source_session_name: Optional[str],
    workspace_id: Optional[str],
    origin: str,
    task_state: str,
    existing_by_source_task_id: Dict[str, str],
    now: datetime,
) -> List[TaskRecord]:
    """Flatten a task tree into store rows, parents before children."""
    records: List[TaskRecord] = []

    def walk(items: List[Task], parent_id: Optional[str]) -> None:
        for index, task in enumerate(items):
            task_id = existing_by_source_task_id.get(task.id, task.id)
            assignee_name = task.assignee_name or (task.assignee.name if task.assignee else None)
            records.append(
                TaskRecord(
                    id=task_id,
                    user_id=user_id,
                    workspace_id=workspace_id,
                    title=task.title,
                    description=task.description or "",
                    status=task.status,
                    priority=task.priority,
                    due_at=task.due_at,
                    assignee=task.assignee,
                    assignee_name=task.assignee_name,
                    assignee_name_key=normalize_person_name_key(assignee_name) or None,
                    task_type=task.task_type,
                    source_evidence=task.source_evidence,
                    completion_suggested=task.completion_suggested,
                    completion_confidence=task.completion_confidence,
                    completion_evidence=task.completion_evidence,
                    completion_targets=task.completion_targets,
                    origin=origin,
                    task_state=task_state,
                    source_session_id=source_session_id,
                    source_session_type=source_session_type,
                    source_session_name=source_session_name,
                    source_task_id=task.id,
                    parent_id=parent_id,
                    order=index,
                    subtask_count=len(task.subtasks),
                    last_updated=now,
                )
            )
            if task.subtasks:
                walk(task.subtasks, task_id)

    walk(tasks, None)
    return records


async def sync_tasks_for_source(
    store: TaskStore,
    tasks: List[Task],
    *,
    user_id: str,
    source_session_id: str,
    source_session_type: SourceType,
    source_session_name: Optional[str] = None,
    workspace_id: Optional[str] = None,
    origin: Optional[str] = None,
    task_state: str = "active",
) -> TaskSyncResult:
    """Make the flat store hold exactly ``tasks`` for one session.

    Only rows of ``source_session_id`` are read, written or deleted; rows
    belonging to any other session are never touched.

    Returns:
        TaskSyncResult with counts and a map of source task id to row id
    """
    now = datetime.now(timezone.utc)
    existing = await store.find_by_source(user_id, source_session_type, source_session_id)
    existing_by_source_task_id = {
        record.source_task_id or record.id: record.id for record in existing
    }

    records = build_task_records(
        tasks,
        user_id=user_id,
        source_session_id=source_session_id,
        source_session_type=source_session_type,
        source_session_name=source_session_name,
        workspace_id=workspace_id,
        origin=origin or source_session_type.value,
        task_state=task_state,
        existing_by_source_task_id=existing_by_source_task_id,
        now=now,
    )

    errors: List[PartialWriteFailure] = []
    if records:
        result = await store.bulk_upsert(user_id, records)
        errors = result.errors
        for error in errors:
            logger.warning(
                "bulk_write_partial_failure",
                collection=error.collection,
                document_id=error.document_id,
                reason=error.reason,
            )

    failed_ids = {error.document_id for error in errors}
    written = [record for record in records if record.id not in failed_ids]
    keep_ids = {record.id for record in records}
    deleted = await store.delete_for_sources(
        user_id, source_session_type, [source_session_id], keep_ids=keep_ids
    )

    task_map = {record.source_task_id: record.id for record in written if record.source_task_id}
    logger.debug(
        "tasks_synced_for_source",
        source_session_id=source_session_id,
        upserted=len(written),
        deleted=deleted,
        failed=len(errors),
    )
    return TaskSyncResult(upserted=len(written), deleted=deleted, task_map=task_map, errors=errors)
