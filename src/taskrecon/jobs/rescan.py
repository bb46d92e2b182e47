"""Meeting rescan job - orchestrates task reconciliation for one meeting."""

import time
import uuid
from datetime import datetime, timezone
from typing import List, Optional, Set

import structlog

from taskrecon.analysis.base import BaseCompletionSuggester, BaseTranscriptAnalyzer
from taskrecon.board.sync import BoardSynchronizer
from taskrecon.errors import InvalidStateError, NotFoundError
from taskrecon.models.config import ReconcileSettings
from taskrecon.models.job import RescanMode, RescanRequest, RescanResult, RescanStats
from taskrecon.models.session import DETAIL_LEVELS, User
from taskrecon.models.task import Task
from taskrecon.reconcile.completion import CompletionReconciler, merge_completion_suggestions
from taskrecon.reconcile.merger import TaskMerger
from taskrecon.reconcile.propagation import CrossSessionPropagator
from taskrecon.storage.base import BoardStore, SessionStore, TaskStore, UserStore

logger = structlog.get_logger(__name__)


class MeetingRescanJob:
    """Re-analyzes a meeting and reconciles its tasks across every store.

    Steps run strictly in order, each reading the previous result: merge new
    tasks, reconcile completions locally, persist the meeting, refresh its
    projections, propagate to other sessions, then update the flat store and
    boards. Every step is idempotent, so a failed job can simply be re-run.
    """

    def __init__(
        self,
        users: UserStore,
        sessions: SessionStore,
        tasks: TaskStore,
        boards: BoardStore,
        analyzer: Optional[BaseTranscriptAnalyzer] = None,
        suggester: Optional[BaseCompletionSuggester] = None,
        settings: Optional[ReconcileSettings] = None,
    ) -> None:
        """Initialize the job.

        Args:
            users: User store
            sessions: Meeting and chat session store
            tasks: Flat task store
            boards: Board store
            analyzer: Transcript analyzer, needed for new-task scans
            suggester: Completion-suggestion generator, needed for completion scans
            settings: Reconciliation settings. If None, loads from environment.
        """
        self.users = users
        self.sessions = sessions
        self.tasks = tasks
        self.boards = boards
        self.analyzer = analyzer
        self.suggester = suggester
        self.settings = settings or ReconcileSettings()
        self.merger = TaskMerger(overlap_threshold=self.settings.overlap_threshold)
        self.board_sync = BoardSynchronizer(
            boards,
            tasks,
            rank_step=self.settings.rank_step,
            rank_epsilon=self.settings.rank_epsilon,
        )

    @classmethod
    def from_database(cls, db, **kwargs) -> "MeetingRescanJob":
        """Build a job whose four stores are one database object."""
        return cls(db, db, db, db, **kwargs)

    async def handle(self, request: RescanRequest) -> RescanResult:
        """Run the job for a queued request."""
        return await self.run(request.user_id, request.meeting_id, request.mode, request.correlation_id)

    def resolve_detail_level(self, user: User) -> str:
        preference = user.task_granularity_preference
        if preference in DETAIL_LEVELS:
            return preference
        return self.settings.default_detail_level

    async def run(
        self,
        user_id: str,
        meeting_id: str,
        mode: RescanMode = RescanMode.BOTH,
        correlation_id: Optional[str] = None,
    ) -> RescanResult:
        """Run one rescan.

        Args:
            user_id: Owner of the meeting
            meeting_id: Meeting id or legacy alias
            mode: new, completed or both
            correlation_id: Id tying together the job's log lines

        Returns:
            RescanResult with the updated meeting and counters

        Raises:
            NotFoundError: If the user or meeting does not exist
            InvalidStateError: If the meeting has no transcript
        """
        mode = RescanMode(mode)
        log = logger.bind(
            correlation_id=correlation_id or uuid.uuid4().hex,
            user_id=user_id,
            meeting_id=meeting_id,
            mode=mode.value,
        )
        started = time.monotonic()
        log.info("rescan_started")

        user = await self.users.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found.")

        meeting = await self.sessions.get_meeting(user_id, meeting_id)
        if meeting is None or meeting.is_hidden:
            raise NotFoundError("Meeting not found.")

        transcript = (meeting.original_transcript or "").strip()
        if not transcript:
            raise InvalidStateError("Meeting transcript is missing.")

        detail_level = self.resolve_detail_level(user)
        auto_approve = bool(user.auto_approve_completed_tasks)
        match_threshold = self.settings.clamp_match_threshold(user.completion_match_threshold)
        reconciler = CompletionReconciler(auto_approve=auto_approve, match_threshold=match_threshold)

        updated_tasks: List[Task] = list(meeting.extracted_tasks)

        # 1. Ingest newly analyzed tasks
        new_tasks_added = 0
        if mode.scans_new:
            if self.analyzer is None:
                log.warning("analyzer_not_configured")
            else:
                analysis = await self.analyzer.analyze(transcript, detail_level)
                merged = self.merger.merge(updated_tasks, analysis.select_level(detail_level))
                updated_tasks = merged.tasks
                new_tasks_added = merged.added

        # 2. Detect completions and apply them locally
        candidates: List[Task] = []
        if mode.scans_completed:
            if self.suggester is None:
                log.warning("suggester_not_configured")
            else:
                candidates = await self.suggester.suggest(user_id, transcript, match_threshold)

        updates = reconciler.build_update_map(candidates)
        applied_ids: Set[str] = set()
        if updates and mode.scans_completed:
            updated_tasks = reconciler.apply(updated_tasks, updates, applied_ids).tasks

        review_merged = False
        if mode.scans_completed and candidates:
            review = [c for c in candidates if reconciler.requires_review(c)]
            if review:
                updated_tasks = merge_completion_suggestions(updated_tasks, review)
                review_merged = True

        # 3. Persist the local session
        now = datetime.now(timezone.utc)
        tasks_changed = new_tasks_added > 0 or review_merged or bool(applied_ids)
        fields = {"last_activity_at": now}
        if tasks_changed:
            fields["extracted_tasks"] = updated_tasks
        await self.sessions.update_meeting(user_id, meeting.id, fields)

        updated_meeting = await self.sessions.get_meeting(user_id, meeting.id)
        workspace_id = (updated_meeting.workspace_id if updated_meeting else None) or user.workspace_id

        propagator = CrossSessionPropagator(self.sessions, self.tasks, self.board_sync, reconciler)

        # 4. Refresh the meeting's own projections
        if tasks_changed and updated_meeting is not None:
            await propagator.sync_meeting_projections(user_id, updated_meeting, updated_tasks, workspace_id)

        # 5. Fan out to other sessions, then the flat store and boards
        if updates:
            await propagator.propagate(
                user_id,
                updated_meeting or meeting,
                candidates,
                updates,
                applied_ids,
                default_workspace_id=workspace_id,
            )
            await propagator.apply_to_task_store(user_id, updates, applied_ids)

        completion_updates = len(applied_ids) or len(updates)
        log.info(
            "rescan_succeeded",
            duration_ms=int((time.monotonic() - started) * 1000),
            new_tasks_added=new_tasks_added,
            completion_updates=completion_updates,
            tasks_changed=tasks_changed,
        )

        return RescanResult(
            meeting=updated_meeting,
            stats=RescanStats(
                mode=mode,
                new_tasks_added=new_tasks_added,
                completion_updates=completion_updates,
                auto_approved=auto_approve,
            ),
        )
