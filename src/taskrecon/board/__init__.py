"""Kanban board projection of tasks."""

from taskrecon.board.ranking import append_rank, compute_rank
from taskrecon.board.sync import BoardSynchronizer
from taskrecon.board.templates import BOARD_TEMPLATES, DEFAULT_BOARD_TEMPLATE_ID, get_board_template

__all__ = [
    "compute_rank",
    "append_rank",
    "BoardSynchronizer",
    "BOARD_TEMPLATES",
    "DEFAULT_BOARD_TEMPLATE_ID",
    "get_board_template",
]
