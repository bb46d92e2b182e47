"""Tests for per-document failures in in-memory bulk writes."""

import pytest

from taskrecon.models import BoardItem, SourceType, TaskRecord, TaskStatus


def record(task_id, session_id="m1", **kwargs):
    return TaskRecord(
        id=task_id,
        user_id="u1",
        title=f"Task {task_id}",
        source_session_id=session_id,
        source_session_type=SourceType.MEETING,
        source_task_id=task_id,
        **kwargs,
    )


def item(item_id, task_id, rank):
    return BoardItem(
        id=item_id, user_id="u1", workspace_id="w1", board_id="b1", task_id=task_id, board_status_id="s1", rank=rank
    )


class TestBulkWrites:
    """Test that one failing document does not stop the others."""

    @pytest.mark.asyncio
    async def test_upsert_duplicate_id_fails_alone(self, db):
        db.add("tasks", record("t1", session_id="m2"))

        result = await db.bulk_upsert("u1", [record("t0"), record("t1"), record("t2")])

        assert result.upserted == 2
        assert [error.document_id for error in result.errors] == ["t1"]
        assert not result.ok
        assert sorted(r.id for r in db.all("tasks")) == ["t0", "t1", "t2"]

    @pytest.mark.asyncio
    async def test_update_with_invalid_field_fails_alone(self, db):
        db.add("tasks", record("t1"), record("t2"))

        result = await db.bulk_update("u1", {"t1": {"status": "bogus"}, "t2": {"status": TaskStatus.DONE}})

        assert result.matched == 2
        assert result.modified == 1
        (error,) = result.errors
        assert error.collection == "tasks"
        assert error.document_id == "t1"
        tasks = {r.id: r for r in db.all("tasks")}
        assert tasks["t1"].status == TaskStatus.TODO
        assert tasks["t2"].status == TaskStatus.DONE

    @pytest.mark.asyncio
    async def test_item_update_with_invalid_rank_fails_alone(self, db):
        db.add(
            "board_items",
            item("i1", "t1", 1.0),
            item("i2", "t2", 2.0),
        )

        result = await db.bulk_update_items({"i1": {"rank": "abc"}, "i2": {"board_status_id": "s2"}})

        assert result.modified == 1
        (error,) = result.errors
        assert error.collection == "board_items"
        assert error.document_id == "i1"
        items = {item.id: item for item in db.all("board_items")}
        assert items["i1"].rank == 1.0
        assert items["i2"].board_status_id == "s2"
