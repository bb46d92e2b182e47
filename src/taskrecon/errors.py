"""Exceptions raised by the reconciliation engine."""

from typing import List, Optional


class ReconcileError(Exception):
    """Base class for reconciliation errors.

    Carries an HTTP-style status code and a short machine-readable code so
    callers can surface the failure to users.
    """

    status_code: int = 500
    code: str = "internal_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(ReconcileError):
    """The user or meeting a job refers to does not exist."""

    status_code = 404
    code = "not_found"


class InvalidStateError(ReconcileError):
    """The meeting cannot be rescanned in its current state."""

    status_code = 400
    code = "invalid_state"


class PropagationTargetMissing(ReconcileError):
    """A session referenced by a completion target no longer exists."""

    status_code = 404
    code = "propagation_target_missing"

    def __init__(self, source_type: str, session_id: str) -> None:
        super().__init__(f"{source_type} session {session_id} not found")
        self.source_type = source_type
        self.session_id = session_id


class PartialWriteFailure(ReconcileError):
    """One document of an unordered bulk write failed."""

    status_code = 500
    code = "partial_write_failure"

    def __init__(self, collection: str, document_id: Optional[str], reason: str) -> None:
        super().__init__(f"{collection} write failed for {document_id}: {reason}")
        self.collection = collection
        self.document_id = document_id
        self.reason = reason


class BulkWriteResult:
    """Result of an unordered bulk write."""

    def __init__(
        self,
        matched: int = 0,
        modified: int = 0,
        upserted: int = 0,
        errors: Optional[List[PartialWriteFailure]] = None,
    ):
        self.matched = matched
        self.modified = modified
        self.upserted = upserted
        self.errors = errors or []

    @property
    def ok(self) -> bool:
        return not self.errors
