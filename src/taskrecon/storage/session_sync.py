"""Keeping chat sessions linked to a meeting in step with it."""

from datetime import datetime, timezone
from typing import List

import structlog

from taskrecon.models.session import ChatSession, Meeting
from taskrecon.models.task import SourceType, Task
from taskrecon.storage.base import SessionStore, TaskStore

logger = structlog.get_logger(__name__)


async def update_linked_chat_sessions(
    sessions: SessionStore, user_id: str, meeting: Meeting, tasks: List[Task]
) -> List[ChatSession]:
    """Copy a meeting's task tree into every chat session linked to it.

    A chat is linked when the meeting names it in ``chat_session_id`` or when
    the chat's ``source_meeting_id`` is the meeting's id or alias.

    Returns:
        The linked chat sessions as they were before the update
    """
    meeting_ids = [value for value in (meeting.id, meeting.legacy_id) if value]
    chat_ids = [meeting.chat_session_id] if meeting.chat_session_id else []
    if not meeting_ids and not chat_ids:
        return []

    linked = await sessions.find_chat_sessions(user_id, chat_ids=chat_ids, source_meeting_ids=meeting_ids)
    if not linked:
        return []

    await sessions.update_chat_sessions(
        user_id,
        [chat.id for chat in linked],
        {"suggested_tasks": tasks, "last_activity_at": datetime.now(timezone.utc)},
    )
    logger.debug("linked_chat_sessions_updated", meeting_id=meeting.id, count=len(linked))
    return linked


async def cleanup_chat_tasks_for_sessions(store: TaskStore, user_id: str, chat_sessions: List[ChatSession]) -> int:
    """Delete flat-store rows sourced from chat sessions that mirror a meeting."""
    session_ids = set()
    for chat in chat_sessions:
        session_ids.add(chat.id)
        if chat.legacy_id:
            session_ids.add(chat.legacy_id)
    if not session_ids:
        return 0
    return await store.delete_for_sources(user_id, SourceType.CHAT, session_ids)
