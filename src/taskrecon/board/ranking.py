"""Rank computation for ordering items inside a board column.

Ranks are floats. Inserting between two neighbours takes the midpoint until
the gap falls to ``epsilon``; after that the new rank is ``before + epsilon``,
which can collide with or pass ``after``. Columns squeezed that far need a
renumbering pass, which this module does not perform.
"""

from typing import Optional

DEFAULT_RANK_STEP = 1000.0
DEFAULT_RANK_EPSILON = 0.0001


def compute_rank(
    before: Optional[float] = None,
    after: Optional[float] = None,
    step: float = DEFAULT_RANK_STEP,
    epsilon: float = DEFAULT_RANK_EPSILON,
) -> float:
    """Rank for an item placed between ``before`` and ``after``.

    Args:
        before: Rank of the item above, None at the top of the column
        after: Rank of the item below, None at the end of the column
        step: Gap used when one side is open
        epsilon: Smallest gap that is still split at the midpoint

    Returns:
        The new rank
    """
    if before is None and after is None:
        return 0.0
    if before is None:
        return after - step
    if after is None:
        return before + step
    if after - before > epsilon:
        return (before + after) / 2
    return before + epsilon


def append_rank(current_max: Optional[float], step: float = DEFAULT_RANK_STEP) -> float:
    """Rank for an item added at the end of a column (0 in an empty column)."""
    return compute_rank(current_max, None, step=step)
