"""Task reconciliation for meeting and chat transcripts."""

__version__ = "0.1.0"
