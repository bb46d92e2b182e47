"""Store interfaces and implementations."""

from taskrecon.storage.base import BoardStore, SessionStore, TaskStore, UserStore
from taskrecon.storage.json_store import JsonFileDatabase
from taskrecon.storage.memory import InMemoryDatabase
from taskrecon.storage.session_sync import (
    cleanup_chat_tasks_for_sessions,
    update_linked_chat_sessions,
)
from taskrecon.storage.task_sync import TaskSyncResult, sync_tasks_for_source

__all__ = [
    "UserStore",
    "SessionStore",
    "TaskStore",
    "BoardStore",
    "InMemoryDatabase",
    "JsonFileDatabase",
    "sync_tasks_for_source",
    "TaskSyncResult",
    "update_linked_chat_sessions",
    "cleanup_chat_tasks_for_sessions",
]
