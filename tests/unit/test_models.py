"""Tests for data models and settings."""

import pytest

from taskrecon.models import (
    AnalysisResult,
    ChatSession,
    Meeting,
    ReconcileSettings,
    RescanMode,
    Task,
    TaskStatus,
    User,
    iter_tasks,
    normalize_task,
)


class TestTaskModel:
    """Test Task validation and normalization."""

    def test_defaults(self):
        task = Task()
        assert task.title == "Untitled Task"
        assert task.status == TaskStatus.TODO
        assert task.priority == "medium"
        assert task.subtasks == []
        assert task.id

    def test_normalize_camel_case_dict(self):
        """Test loosely-typed analyzer output."""
        task = normalize_task(
            {
                "_id": 42,
                "title": "  ",
                "status": "blocked",
                "priority": None,
                "assigneeName": "Jane",
                "assignee": {"name": "Jane", "photoURL": "https://x/p.png"},
                "subtasks": None,
                "completionConfidence": 0.8,
            }
        )

        assert task.id == "42"
        assert task.title == "Untitled Task"
        assert task.status == TaskStatus.TODO
        assert task.priority == "medium"
        assert task.assignee_name == "Jane"
        assert task.assignee.photo_url == "https://x/p.png"
        assert task.subtasks == []
        assert task.completion_confidence == 0.8

    def test_to_document_uses_camel_case(self):
        doc = Task(id="t1", title="Send contract", assignee_name="Jane").to_document()
        assert doc["assigneeName"] == "Jane"
        assert doc["status"] == "todo"
        assert "assignee_name" not in doc

    def test_is_confirmed_done(self):
        assert Task(status=TaskStatus.DONE).is_confirmed_done
        assert Task(status=TaskStatus.DONE, completion_suggested=False).is_confirmed_done
        assert not Task(status=TaskStatus.DONE, completion_suggested=True).is_confirmed_done
        assert not Task(status=TaskStatus.TODO).is_confirmed_done

    def test_iter_tasks_visits_parents_first(self):
        tree = [
            Task(id="a", subtasks=[Task(id="a1", subtasks=[Task(id="a1x")]), Task(id="a2")]),
            Task(id="b"),
        ]
        assert [task.id for task in iter_tasks(tree)] == ["a", "a1", "a1x", "a2", "b"]


class TestSessionModels:
    """Test meeting and chat session models."""

    def test_meeting_normalizes_tasks(self):
        meeting = Meeting.model_validate(
            {"id": "m1", "userId": "u1", "extractedTasks": [{"title": "Send contract", "status": None}]}
        )
        assert meeting.tasks[0].status == TaskStatus.TODO
        assert meeting.display_name == "Meeting"

    def test_legacy_id_matches(self):
        chat = ChatSession(id="c1", legacy_id="old-c1", user_id="u1", title="Follow-up")
        assert chat.matches("old-c1")
        assert not chat.matches("c2")
        assert chat.display_name == "Follow-up"

    def test_user_matches_legacy_id(self):
        user = User(id="u1", legacy_id="uid-1")
        assert user.matches("uid-1")


class TestAnalysisResult:
    """Test detail level selection."""

    def test_selects_requested_level(self):
        result = AnalysisResult.model_validate(
            {"allTaskLevels": {"light": [{"title": "A"}], "detailed": [{"title": "B"}]}}
        )
        assert [t.title for t in result.select_level("detailed")] == ["B"]

    def test_falls_back_to_medium_then_light(self):
        result = AnalysisResult(all_task_levels={"light": [Task(title="A")], "medium": [Task(title="M")]})
        assert [t.title for t in result.select_level("detailed")] == ["M"]

        result = AnalysisResult(all_task_levels={"light": [Task(title="A")], "medium": []})
        assert [t.title for t in result.select_level("detailed")] == ["A"]

    def test_empty_result(self):
        assert AnalysisResult().select_level("medium") == []


class TestRescanMode:
    @pytest.mark.parametrize(
        "mode,new,completed",
        [(RescanMode.NEW, True, False), (RescanMode.COMPLETED, False, True), (RescanMode.BOTH, True, True)],
    )
    def test_flags(self, mode, new, completed):
        assert mode.scans_new is new
        assert mode.scans_completed is completed


class TestReconcileSettings:
    """Test settings loading and threshold clamping."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("TASKRECON_OVERLAP_THRESHOLD", raising=False)
        settings = ReconcileSettings(_env_file=None)
        assert settings.overlap_threshold == 0.65
        assert settings.rank_step == 1000.0

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("TASKRECON_OVERLAP_THRESHOLD", "0.8")
        assert ReconcileSettings(_env_file=None).overlap_threshold == 0.8

    @pytest.mark.parametrize(
        "value,expected",
        [(None, 0.6), ("0.7", 0.6), (True, 0.6), (float("nan"), 0.6), (0.1, 0.4), (0.99, 0.95), (0.75, 0.75)],
    )
    def test_clamp_match_threshold(self, value, expected):
        settings = ReconcileSettings(_env_file=None)
        assert settings.clamp_match_threshold(value) == expected
