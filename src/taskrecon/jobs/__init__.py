"""Jobs run by the task-queue worker."""

from taskrecon.jobs.rescan import MeetingRescanJob

__all__ = ["MeetingRescanJob"]
