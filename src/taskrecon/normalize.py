"""Text normalization shared by matching and storage."""

import re
from typing import Optional

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize_text_key(value: Optional[str]) -> str:
    """Lowercase, replace punctuation with spaces and collapse whitespace."""
    if not value:
        return ""
    lowered = _NON_ALNUM.sub(" ", value.lower())
    return _WHITESPACE.sub(" ", lowered).strip()


# Person names use the same normalization as titles.
normalize_person_name_key = normalize_text_key
