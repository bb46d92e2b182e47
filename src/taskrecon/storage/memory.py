"""In-memory implementation of all stores."""

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Set, Type, TypeVar

from pydantic import BaseModel, ValidationError

from taskrecon.errors import BulkWriteResult, PartialWriteFailure
from taskrecon.models.board import Board, BoardItem, BoardStatus
from taskrecon.models.record import TaskRecord
from taskrecon.models.session import ChatSession, Meeting, User
from taskrecon.models.task import SourceType, TaskStatus
from taskrecon.storage.base import BoardStore, SessionStore, TaskStore, UserStore

ModelT = TypeVar("ModelT", bound=BaseModel)

COLLECTIONS: Dict[str, Type[BaseModel]] = {
    "users": User,
    "meetings": Meeting,
    "chat_sessions": ChatSession,
    "tasks": TaskRecord,
    "boards": Board,
    "board_statuses": BoardStatus,
    "board_items": BoardItem,
}


def _apply_fields(document: ModelT, fields: Dict[str, Any]) -> ModelT:
    """Return a validated copy of ``document`` with ``fields`` set."""
    data = document.model_dump()
    data.update(fields)
    return type(document).model_validate(data)


class InMemoryDatabase(UserStore, SessionStore, TaskStore, BoardStore):
    """Dictionary-backed stores.

    Bulk writes are unordered: a document that fails validation is reported
    in the result and the remaining documents are still written.
    """

    def __init__(self) -> None:
        self.collections: Dict[str, Dict[str, BaseModel]] = {name: {} for name in COLLECTIONS}

    def _persist(self) -> None:
        """Hook called after every write."""

    # ============================================================================
    # Seeding
    # ============================================================================

    def add(self, collection: str, *documents: BaseModel) -> None:
        """Insert documents directly, replacing any with the same id."""
        for document in documents:
            self.collections[collection][document.id] = document
        self._persist()

    def all(self, collection: str) -> List[BaseModel]:
        return list(self.collections[collection].values())

    # ============================================================================
    # Users
    # ============================================================================

    async def get_user(self, user_id: str) -> Optional[User]:
        for user in self.collections["users"].values():
            if user.matches(user_id):
                return user
        return None

    # ============================================================================
    # Sessions
    # ============================================================================

    def _find_session(self, collection: str, user_id: str, session_id: str):
        for session in self.collections[collection].values():
            if session.user_id == user_id and session.matches(session_id):
                return session
        return None

    def _update_session(self, collection: str, user_id: str, session_id: str, fields: Dict[str, Any]) -> bool:
        session = self._find_session(collection, user_id, session_id)
        if session is None:
            return False
        self.collections[collection][session.id] = _apply_fields(session, fields)
        self._persist()
        return True

    async def get_meeting(self, user_id: str, meeting_id: str) -> Optional[Meeting]:
        return self._find_session("meetings", user_id, meeting_id)

    async def get_chat_session(self, user_id: str, chat_id: str) -> Optional[ChatSession]:
        return self._find_session("chat_sessions", user_id, chat_id)

    async def update_meeting(self, user_id: str, meeting_id: str, fields: Dict[str, Any]) -> bool:
        return self._update_session("meetings", user_id, meeting_id, fields)

    async def update_chat_session(self, user_id: str, chat_id: str, fields: Dict[str, Any]) -> bool:
        return self._update_session("chat_sessions", user_id, chat_id, fields)

    async def find_chat_sessions(
        self,
        user_id: str,
        chat_ids: Iterable[str] = (),
        source_meeting_ids: Iterable[str] = (),
    ) -> List[ChatSession]:
        chat_ids = set(chat_ids)
        source_meeting_ids = set(source_meeting_ids)
        return [
            session
            for session in self.collections["chat_sessions"].values()
            if session.user_id == user_id
            and (
                session.id in chat_ids
                or (session.legacy_id is not None and session.legacy_id in chat_ids)
                or (session.source_meeting_id is not None and session.source_meeting_id in source_meeting_ids)
            )
        ]

    async def update_chat_sessions(self, user_id: str, chat_ids: Iterable[str], fields: Dict[str, Any]) -> int:
        updated = 0
        for chat_id in set(chat_ids):
            if self._update_session("chat_sessions", user_id, chat_id, fields):
                updated += 1
        return updated

    # ============================================================================
    # Flat task store
    # ============================================================================

    async def find_by_source(
        self, user_id: str, source_session_type: SourceType, source_session_id: str
    ) -> List[TaskRecord]:
        return [
            record
            for record in self.collections["tasks"].values()
            if record.user_id == user_id
            and record.source_session_type == source_session_type
            and record.source_session_id == source_session_id
        ]

    async def find_by_ids(self, user_id: str, task_ids: Iterable[str]) -> List[TaskRecord]:
        wanted = set(task_ids)
        return [
            record
            for record in self.collections["tasks"].values()
            if record.user_id == user_id and any(record.matches(task_id) for task_id in wanted)
        ]

    async def find_canonical_ids(self, workspace_id: str, source_task_ids: Iterable[str]) -> Dict[str, str]:
        wanted = set(source_task_ids)
        return {
            record.source_task_id: record.id
            for record in self.collections["tasks"].values()
            if record.workspace_id == workspace_id and record.source_task_id in wanted
        }

    def _find_upsert_target(self, user_id: str, record: TaskRecord) -> Optional[TaskRecord]:
        tasks = self.collections["tasks"]
        if record.source_task_id:
            for existing in tasks.values():
                if (
                    existing.user_id == user_id
                    and existing.source_session_id == record.source_session_id
                    and existing.source_task_id == record.source_task_id
                ):
                    return existing
            return None
        existing = tasks.get(record.id)
        if existing is not None and existing.user_id == user_id:
            return existing
        return None

    async def bulk_upsert(self, user_id: str, records: List[TaskRecord]) -> BulkWriteResult:
        result = BulkWriteResult()
        now = datetime.now(timezone.utc)
        tasks = self.collections["tasks"]
        for record in records:
            try:
                existing = self._find_upsert_target(user_id, record)
                if existing is None:
                    if record.id in tasks:
                        raise ValueError("duplicate key")
                    tasks[record.id] = _apply_fields(record, {"created_at": record.created_at or now})
                    result.upserted += 1
                else:
                    fields = record.model_dump(exclude={"id", "created_at", "legacy_id"})
                    tasks[existing.id] = _apply_fields(existing, fields)
                    result.matched += 1
                    result.modified += 1
            except (ValidationError, ValueError) as e:
                result.errors.append(PartialWriteFailure("tasks", record.id, str(e)))
        self._persist()
        return result

    async def bulk_update(self, user_id: str, updates: Dict[str, Dict[str, Any]]) -> BulkWriteResult:
        result = BulkWriteResult()
        tasks = self.collections["tasks"]
        for task_id, fields in updates.items():
            target = next(
                (r for r in tasks.values() if r.user_id == user_id and r.matches(task_id)),
                None,
            )
            if target is None:
                continue
            result.matched += 1
            try:
                tasks[target.id] = _apply_fields(target, fields)
                result.modified += 1
            except ValidationError as e:
                result.errors.append(PartialWriteFailure("tasks", target.id, str(e)))
        self._persist()
        return result

    async def delete_for_sources(
        self,
        user_id: str,
        source_session_type: SourceType,
        source_session_ids: Iterable[str],
        keep_ids: Optional[Set[str]] = None,
    ) -> int:
        session_ids = set(source_session_ids)
        keep_ids = keep_ids or set()
        doomed = [
            record.id
            for record in self.collections["tasks"].values()
            if record.user_id == user_id
            and record.source_session_type == source_session_type
            and record.source_session_id in session_ids
            and record.id not in keep_ids
        ]
        for record_id in doomed:
            del self.collections["tasks"][record_id]
        if doomed:
            self._persist()
        return len(doomed)

    # ============================================================================
    # Boards
    # ============================================================================

    async def get_default_board(self, user_id: str, workspace_id: str) -> Optional[Board]:
        for board in self.collections["boards"].values():
            if board.user_id == user_id and board.workspace_id == workspace_id and board.is_default:
                return board
        return None

    async def list_boards(self, user_id: str) -> List[Board]:
        return [board for board in self.collections["boards"].values() if board.user_id == user_id]

    async def create_board(self, board: Board, statuses: List[BoardStatus]) -> None:
        self.collections["boards"][board.id] = board
        for status in statuses:
            self.collections["board_statuses"][status.id] = status
        self._persist()

    async def list_statuses(self, board_id: str) -> List[BoardStatus]:
        statuses = [s for s in self.collections["board_statuses"].values() if s.board_id == board_id]
        return sorted(statuses, key=lambda s: s.order)

    async def find_statuses_by_category(
        self, user_id: str, board_ids: Iterable[str], category: TaskStatus
    ) -> List[BoardStatus]:
        board_ids = set(board_ids)
        statuses = [
            s
            for s in self.collections["board_statuses"].values()
            if s.user_id == user_id and s.board_id in board_ids and s.category == category
        ]
        return sorted(statuses, key=lambda s: (s.board_id, s.order))

    async def list_items(self, board_id: str) -> List[BoardItem]:
        items = [item for item in self.collections["board_items"].values() if item.board_id == board_id]
        return sorted(items, key=lambda item: item.sort_key)

    async def find_items(self, board_id: str, task_ids: Iterable[str]) -> List[BoardItem]:
        wanted = set(task_ids)
        return [
            item
            for item in self.collections["board_items"].values()
            if item.board_id == board_id and (item.task_id in wanted or item.task_canonical_id in wanted)
        ]

    async def find_items_by_task_id(self, user_id: str, task_id: str) -> List[BoardItem]:
        return [
            item
            for item in self.collections["board_items"].values()
            if item.user_id == user_id and item.task_id == task_id
        ]

    async def max_rank(self, board_id: str, status_id: str) -> Optional[float]:
        ranks = [
            item.rank
            for item in self.collections["board_items"].values()
            if item.board_id == board_id and item.board_status_id == status_id
        ]
        return max(ranks) if ranks else None

    async def bulk_insert_items(self, items: List[BoardItem]) -> BulkWriteResult:
        result = BulkWriteResult()
        board_items = self.collections["board_items"]
        for item in items:
            duplicate = any(
                existing.board_id == item.board_id and existing.task_id == item.task_id
                for existing in board_items.values()
            )
            if duplicate or item.id in board_items:
                result.matched += 1
                continue
            board_items[item.id] = item
            result.upserted += 1
        self._persist()
        return result

    async def bulk_update_items(self, updates: Dict[str, Dict[str, Any]]) -> BulkWriteResult:
        result = BulkWriteResult()
        board_items = self.collections["board_items"]
        for item_id, fields in updates.items():
            item = board_items.get(item_id)
            if item is None:
                continue
            result.matched += 1
            try:
                board_items[item_id] = _apply_fields(item, fields)
                result.modified += 1
            except ValidationError as e:
                result.errors.append(PartialWriteFailure("board_items", item_id, str(e)))
        self._persist()
        return result
