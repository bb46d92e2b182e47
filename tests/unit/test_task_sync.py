"""Tests for syncing session task trees into the flat task store."""

import pytest
from structlog.testing import capture_logs

from taskrecon.errors import PartialWriteFailure
from taskrecon.models import Assignee, ChatSession, Meeting, SourceType, Task, TaskRecord
from taskrecon.storage import cleanup_chat_tasks_for_sessions, sync_tasks_for_source, update_linked_chat_sessions


def make_task(task_id, title, **kwargs):
    return Task(id=task_id, title=title, **kwargs)


async def _sync(db, tasks, session_id="m1"):
    return await sync_tasks_for_source(
        db,
        tasks,
        user_id="u1",
        source_session_id=session_id,
        source_session_type=SourceType.MEETING,
        source_session_name="Weekly sync",
        workspace_id="w1",
    )


class TestSyncTasksForSource:
    """Test sync_tasks_for_source."""

    @pytest.mark.asyncio
    async def test_flattens_tree(self, db):
        tree = [
            make_task(
                "p1",
                "Plan offsite",
                assignee=Assignee(name="Jane Doe"),
                subtasks=[make_task("s1", "Book venue"), make_task("s2", "Book flights")],
            )
        ]

        result = await _sync(db, tree)

        assert result.upserted == 3
        records = {record.id: record for record in db.all("tasks")}
        assert records["p1"].parent_id is None
        assert records["p1"].subtask_count == 2
        assert records["p1"].assignee_name_key == "jane doe"
        assert records["p1"].origin == "meeting"
        assert records["s2"].parent_id == "p1"
        assert records["s2"].order == 1
        assert records["s1"].source_session_name == "Weekly sync"

    @pytest.mark.asyncio
    async def test_removes_stale_rows_of_same_session_only(self, db):
        db.add(
            "tasks",
            TaskRecord(
                id="other",
                user_id="u1",
                title="Other meeting task",
                source_session_id="m2",
                source_session_type=SourceType.MEETING,
                source_task_id="other",
            ),
        )
        await _sync(db, [make_task("t1", "Send contract"), make_task("t2", "Draft plan")])

        result = await _sync(db, [make_task("t1", "Send contract")])

        assert result.deleted == 1
        assert sorted(record.id for record in db.all("tasks")) == ["other", "t1"]

    @pytest.mark.asyncio
    async def test_reuses_existing_canonical_id(self, db):
        db.add(
            "tasks",
            TaskRecord(
                id="canon-1",
                user_id="u1",
                title="Send contract",
                source_session_id="m1",
                source_session_type=SourceType.MEETING,
                source_task_id="t1",
            ),
        )

        result = await _sync(db, [make_task("t1", "Send the signed contract")])

        assert result.task_map == {"t1": "canon-1"}
        (record,) = db.all("tasks")
        assert record.id == "canon-1"
        assert record.title == "Send the signed contract"

    @pytest.mark.asyncio
    async def test_empty_tree_clears_session_rows(self, db):
        await _sync(db, [make_task("t1", "Send contract")])

        result = await _sync(db, [])

        assert result.deleted == 1
        assert db.all("tasks") == []

    @pytest.mark.asyncio
    async def test_colliding_row_fails_alone(self, db):
        db.add(
            "tasks",
            TaskRecord(
                id="t2",
                user_id="u1",
                title="Other meeting task",
                source_session_id="m2",
                source_session_type=SourceType.MEETING,
                source_task_id="t2",
            ),
        )
        tasks = [make_task("t1", "Send contract"), make_task("t2", "Draft plan"), make_task("t3", "Book venue")]

        with capture_logs() as logs:
            result = await _sync(db, tasks)

        (error,) = result.errors
        assert isinstance(error, PartialWriteFailure)
        assert error.collection == "tasks"
        assert error.document_id == "t2"
        assert result.upserted == 2
        assert result.task_map == {"t1": "t1", "t3": "t3"}
        records = {record.id: record for record in db.all("tasks")}
        assert records["t1"].source_session_id == "m1"
        assert records["t3"].source_session_id == "m1"
        assert records["t2"].source_session_id == "m2"
        assert records["t2"].title == "Other meeting task"
        warnings = [entry for entry in logs if entry["event"] == "bulk_write_partial_failure"]
        assert len(warnings) == 1
        assert warnings[0]["document_id"] == "t2"
        assert warnings[0]["log_level"] == "warning"



class TestLinkedChatSessions:
    """Test mirroring meeting tasks into linked chats."""

    @pytest.mark.asyncio
    async def test_updates_chats_linked_either_way(self, db):
        meeting = Meeting(id="m1", user_id="u1", chat_session_id="c1")
        db.add(
            "chat_sessions",
            ChatSession(id="c1", user_id="u1"),
            ChatSession(id="c2", user_id="u1", source_meeting_id="m1"),
            ChatSession(id="c3", user_id="u1"),
        )
        tasks = [make_task("t1", "Send contract")]

        linked = await update_linked_chat_sessions(db, "u1", meeting, tasks)

        assert sorted(chat.id for chat in linked) == ["c1", "c2"]
        chats = {chat.id: chat for chat in db.all("chat_sessions")}
        assert [task.id for task in chats["c1"].suggested_tasks] == ["t1"]
        assert [task.id for task in chats["c2"].suggested_tasks] == ["t1"]
        assert chats["c3"].suggested_tasks == []

    @pytest.mark.asyncio
    async def test_cleanup_removes_chat_sourced_rows(self, db):
        chat = ChatSession(id="c1", user_id="u1", source_meeting_id="m1")
        await sync_tasks_for_source(
            db,
            [make_task("ct1", "Send contract")],
            user_id="u1",
            source_session_id="c1",
            source_session_type=SourceType.CHAT,
        )
        await _sync(db, [make_task("t1", "Send contract")])

        deleted = await cleanup_chat_tasks_for_sessions(db, "u1", [chat])

        assert deleted == 1
        (record,) = db.all("tasks")
        assert record.source_session_type == SourceType.MEETING
