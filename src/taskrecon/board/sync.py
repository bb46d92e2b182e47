"""Projecting tasks onto kanban boards."""

from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

import structlog

from taskrecon.board.ranking import DEFAULT_RANK_EPSILON, DEFAULT_RANK_STEP, compute_rank
from taskrecon.board.templates import DEFAULT_BOARD_TEMPLATE_ID, get_board_template
from taskrecon.errors import BulkWriteResult
from taskrecon.models.board import Board, BoardItem, BoardStatus
from taskrecon.models.task import Task, TaskStatus
from taskrecon.storage.base import BoardStore, TaskStore

logger = structlog.get_logger(__name__)


def _log_write_errors(result: BulkWriteResult) -> None:
    for error in result.errors:
        logger.warning(
            "bulk_write_partial_failure",
            collection=error.collection,
            document_id=error.document_id,
            reason=error.reason,
        )


class BoardSynchronizer:
    """Keeps board items in step with the canonical task lists.

    Board items are created lazily: only ``ensure_board_items_for_tasks``
    creates them. Status changes only move items that already exist.
    """

    def __init__(
        self,
        boards: BoardStore,
        tasks: TaskStore,
        rank_step: float = DEFAULT_RANK_STEP,
        rank_epsilon: float = DEFAULT_RANK_EPSILON,
    ) -> None:
        self.boards = boards
        self.tasks = tasks
        self.rank_step = rank_step
        self.rank_epsilon = rank_epsilon

    def next_rank(self, before: Optional[float], after: Optional[float] = None) -> float:
        return compute_rank(before, after, step=self.rank_step, epsilon=self.rank_epsilon)

    async def ensure_default_board(self, user_id: str, workspace_id: str) -> Board:
        """Get the user's default board, creating it from the default template."""
        existing = await self.boards.get_default_board(user_id, workspace_id)
        if existing is not None:
            return existing

        template = get_board_template(DEFAULT_BOARD_TEMPLATE_ID)
        board = Board(
            user_id=user_id,
            workspace_id=workspace_id,
            name=template.name,
            color=template.statuses[0].color if template.statuses else "#2563eb",
            template_id=template.id,
            is_default=True,
        )
        statuses = [
            BoardStatus(
                user_id=user_id,
                workspace_id=workspace_id,
                board_id=board.id,
                label=status.label,
                color=status.color,
                category=status.category,
                order=index,
                is_terminal=status.is_terminal,
            )
            for index, status in enumerate(template.statuses)
        ]
        await self.boards.create_board(board, statuses)
        logger.info("default_board_created", user_id=user_id, workspace_id=workspace_id, board_id=board.id)
        return board

    async def ensure_board_items_for_tasks(
        self, user_id: str, workspace_id: str, board_id: str, tasks: List[Task]
    ) -> int:
        """Create board items for top-level tasks that have none on the board.

        Items land in the first column whose category matches the task status
        (the first column otherwise), appended at the end. Canonical flat-store
        ids are preferred over session-local task ids.

        Returns:
            Number of items created
        """
        task_ids = list(dict.fromkeys(task.id for task in tasks if task.id))
        if not task_ids:
            return 0

        statuses = await self.boards.list_statuses(board_id)
        if not statuses:
            return 0
        default_status_id = statuses[0].id
        status_by_category: Dict[TaskStatus, str] = {}
        for status in statuses:
            status_by_category.setdefault(status.category, status.id)

        canonical_map = await self.tasks.find_canonical_ids(workspace_id, task_ids)
        lookup_ids = set(task_ids) | set(canonical_map.values())
        existing_ids = set()
        for item in await self.boards.find_items(board_id, lookup_ids):
            existing_ids.add(item.task_id)
            if item.task_canonical_id:
                existing_ids.add(item.task_canonical_id)

        ranks: Dict[str, Optional[float]] = {}
        for status in statuses:
            ranks[status.id] = await self.boards.max_rank(board_id, status.id)

        new_items = []
        seen = set()
        for task in tasks:
            canonical_id = canonical_map.get(task.id)
            projection_id = canonical_id or task.id
            if not task.id or task.id in existing_ids or projection_id in existing_ids or projection_id in seen:
                continue
            seen.add(projection_id)
            status_id = status_by_category.get(task.status, default_status_id)
            rank = self.next_rank(ranks[status_id])
            ranks[status_id] = rank
            new_items.append(
                BoardItem(
                    user_id=user_id,
                    workspace_id=workspace_id,
                    board_id=board_id,
                    task_id=projection_id,
                    task_canonical_id=canonical_id,
                    board_status_id=status_id,
                    rank=rank,
                )
            )

        if not new_items:
            return 0
        result = await self.boards.bulk_insert_items(new_items)
        _log_write_errors(result)
        return result.upserted

    async def sync_items_to_status(self, user_id: str, task_id: str, next_status: TaskStatus) -> int:
        """Move every board item showing ``task_id`` into a ``next_status`` column.

        On each board the item goes to the end of the first column of that
        category. Items already in such a column keep their place; boards with
        no such column are left alone.

        Returns:
            Number of items moved
        """
        if not task_id:
            return 0
        items = await self.boards.find_items_by_task_id(user_id, task_id)
        if not items:
            return 0

        board_ids = list(dict.fromkeys(item.board_id for item in items))
        statuses = await self.boards.find_statuses_by_category(user_id, board_ids, next_status)
        if not statuses:
            return 0

        target_by_board: Dict[str, str] = {}
        category_status_ids = set()
        for status in statuses:
            target_by_board.setdefault(status.board_id, status.id)
            category_status_ids.add(status.id)

        ranks: Dict[Tuple[str, str], Optional[float]] = {}
        for board_id, status_id in target_by_board.items():
            ranks[(board_id, status_id)] = await self.boards.max_rank(board_id, status_id)

        now = datetime.now(timezone.utc)
        updates = {}
        for item in items:
            target_status_id = target_by_board.get(item.board_id)
            if target_status_id is None or item.board_status_id in category_status_ids:
                continue
            key = (item.board_id, target_status_id)
            rank = self.next_rank(ranks[key])
            ranks[key] = rank
            updates[item.id] = {"board_status_id": target_status_id, "rank": rank, "updated_at": now}

        if not updates:
            return 0
        result = await self.boards.bulk_update_items(updates)
        _log_write_errors(result)
        logger.debug("board_items_moved", task_id=task_id, status=next_status.value, moved=result.modified)
        return result.modified
