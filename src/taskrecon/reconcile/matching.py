"""Task identity keys and text overlap scoring.

Two complementary signals decide whether an incoming task is one the user
already has:

* an exact match key built from the normalized title and the assignee bucket
* a token containment ratio over title and description for near-duplicates
"""

from typing import FrozenSet

from taskrecon.models.task import Task
from taskrecon.normalize import normalize_person_name_key, normalize_text_key

DEFAULT_OVERLAP_THRESHOLD = 0.65

UNASSIGNED_KEY = "unassigned"

# Compared after normalization, so "n/a" arrives as "n a".
UNASSIGNED_LABELS = frozenset(
    {
        "unassigned",
        "un assigned",
        "unknown",
        "none",
        "na",
        "n a",
        "tbd",
    }
)

STOP_WORDS = frozenset(
    {
        "a", "an", "and", "are", "as", "at", "be", "by", "for", "from",
        "in", "is", "it", "of", "on", "or", "our", "the", "their", "they",
        "this", "to", "we", "with", "you", "your",
    }
)


def build_assignee_key(task: Task, prefer_assignee_record: bool = False) -> str:
    """Bucket a task's assignee: email first, then name, else unassigned.

    The name comes from ``assignee_name`` before the assignee record unless
    ``prefer_assignee_record`` is set.
    """
    email = task.assignee.email if task.assignee else None
    if email and email.strip():
        return f"email:{email.strip().lower()}"

    record_name = task.assignee.name if task.assignee else None
    if prefer_assignee_record:
        name = record_name or task.assignee_name
    else:
        name = task.assignee_name or record_name
    normalized_name = normalize_person_name_key(name)
    if normalized_name and normalized_name not in UNASSIGNED_LABELS:
        return f"name:{normalized_name}"
    return UNASSIGNED_KEY


def build_match_key(task: Task, prefer_assignee_record: bool = False) -> str:
    """Exact-dedup identity of a task, or "" when the title has no content."""
    title_key = normalize_text_key(task.title)
    if not title_key:
        return ""
    return f"{title_key}|{build_assignee_key(task, prefer_assignee_record)}"


def tokenize_task_text(task: Task) -> FrozenSet[str]:
    """Content tokens of a task's title and description."""
    text = " ".join(part for part in (task.title, task.description) if isinstance(part, str) and part)
    return frozenset(token for token in normalize_text_key(text).split() if token not in STOP_WORDS)


def token_overlap_ratio(a: FrozenSet[str], b: FrozenSet[str]) -> float:
    """Share of the smaller token set contained in the other one."""
    if not a or not b:
        return 0.0
    return len(a & b) / min(len(a), len(b))


def overlap_score(task_a: Task, task_b: Task) -> float:
    """Near-duplicate score between two tasks in [0, 1]."""
    return token_overlap_ratio(tokenize_task_text(task_a), tokenize_task_text(task_b))
