"""Abstract store interfaces consumed by the reconciliation engine."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional, Set

from taskrecon.errors import BulkWriteResult
from taskrecon.models.board import Board, BoardItem, BoardStatus
from taskrecon.models.record import TaskRecord
from taskrecon.models.session import ChatSession, Meeting, User
from taskrecon.models.task import SourceType, TaskStatus


class UserStore(ABC):
    """Read access to users."""

    @abstractmethod
    async def get_user(self, user_id: str) -> Optional[User]:
        """Get a user by id or legacy id."""
        pass


class SessionStore(ABC):
    """Meetings and chat sessions.

    Lookups accept either the session id or its legacy alias and are always
    scoped to the owning user. Update ``fields`` use model attribute names.
    """

    @abstractmethod
    async def get_meeting(self, user_id: str, meeting_id: str) -> Optional[Meeting]:
        pass

    @abstractmethod
    async def get_chat_session(self, user_id: str, chat_id: str) -> Optional[ChatSession]:
        pass

    @abstractmethod
    async def update_meeting(self, user_id: str, meeting_id: str, fields: Dict[str, Any]) -> bool:
        """Set ``fields`` on a meeting.

        Returns:
            True if a meeting matched
        """
        pass

    @abstractmethod
    async def update_chat_session(self, user_id: str, chat_id: str, fields: Dict[str, Any]) -> bool:
        pass

    @abstractmethod
    async def find_chat_sessions(
        self,
        user_id: str,
        chat_ids: Iterable[str] = (),
        source_meeting_ids: Iterable[str] = (),
    ) -> List[ChatSession]:
        """Find chat sessions by id/alias or by the meeting they came from."""
        pass

    @abstractmethod
    async def update_chat_sessions(self, user_id: str, chat_ids: Iterable[str], fields: Dict[str, Any]) -> int:
        """Set ``fields`` on several chat sessions.

        Returns:
            Number of sessions updated
        """
        pass


class TaskStore(ABC):
    """Flat task store used for per-person views."""

    @abstractmethod
    async def find_by_source(
        self, user_id: str, source_session_type: SourceType, source_session_id: str
    ) -> List[TaskRecord]:
        """All rows that were synced from one session."""
        pass

    @abstractmethod
    async def find_by_ids(self, user_id: str, task_ids: Iterable[str]) -> List[TaskRecord]:
        """Rows whose id, legacy id or source task id is in ``task_ids``."""
        pass

    @abstractmethod
    async def find_canonical_ids(self, workspace_id: str, source_task_ids: Iterable[str]) -> Dict[str, str]:
        """Map source task ids to the canonical row id within a workspace."""
        pass

    @abstractmethod
    async def bulk_upsert(self, user_id: str, records: List[TaskRecord]) -> BulkWriteResult:
        """Unordered upsert.

        Rows with a ``source_task_id`` are matched by (user, source session,
        source task id); others by id. ``created_at`` and ``id`` are only
        written on insert.
        """
        pass

    @abstractmethod
    async def bulk_update(self, user_id: str, updates: Dict[str, Dict[str, Any]]) -> BulkWriteResult:
        """Unordered update of the first row matching each task id by any id."""
        pass

    @abstractmethod
    async def delete_for_sources(
        self,
        user_id: str,
        source_session_type: SourceType,
        source_session_ids: Iterable[str],
        keep_ids: Optional[Set[str]] = None,
    ) -> int:
        """Delete rows of the given sessions whose id is not in ``keep_ids``."""
        pass


class BoardStore(ABC):
    """Boards, their status columns and board items."""

    @abstractmethod
    async def get_default_board(self, user_id: str, workspace_id: str) -> Optional[Board]:
        pass

    @abstractmethod
    async def list_boards(self, user_id: str) -> List[Board]:
        pass

    @abstractmethod
    async def create_board(self, board: Board, statuses: List[BoardStatus]) -> None:
        pass

    @abstractmethod
    async def list_statuses(self, board_id: str) -> List[BoardStatus]:
        """Columns of a board ordered by ``order``."""
        pass

    @abstractmethod
    async def find_statuses_by_category(
        self, user_id: str, board_ids: Iterable[str], category: TaskStatus
    ) -> List[BoardStatus]:
        pass

    @abstractmethod
    async def list_items(self, board_id: str) -> List[BoardItem]:
        pass

    @abstractmethod
    async def find_items(self, board_id: str, task_ids: Iterable[str]) -> List[BoardItem]:
        """Items of a board showing any of ``task_ids`` (task id or canonical id)."""
        pass

    @abstractmethod
    async def find_items_by_task_id(self, user_id: str, task_id: str) -> List[BoardItem]:
        """Items on any of the user's boards showing ``task_id``."""
        pass

    @abstractmethod
    async def max_rank(self, board_id: str, status_id: str) -> Optional[float]:
        """Highest rank in a column, or None when the column is empty."""
        pass

    @abstractmethod
    async def bulk_insert_items(self, items: List[BoardItem]) -> BulkWriteResult:
        """Unordered insert; an item whose (board, task id) already exists is left alone."""
        pass

    @abstractmethod
    async def bulk_update_items(self, updates: Dict[str, Dict[str, Any]]) -> BulkWriteResult:
        """Unordered update of items by item id."""
        pass
