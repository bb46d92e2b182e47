"""Tests for merging newly extracted tasks."""

from taskrecon.models import Assignee, Task, TaskStatus
from taskrecon.reconcile import TaskMerger


def _titles(tasks):
    return [task.title for task in tasks]


class TestTaskMerger:
    """Test TaskMerger.merge."""

    def test_rephrased_task_with_same_assignee_is_not_added(self):
        existing = [Task(id="t1", title="Send contract", assignee=Assignee(email="a@x.com"))]
        incoming = [Task(title="send the contract", assignee=Assignee(email="a@x.com"))]

        result = TaskMerger().merge(existing, incoming)

        assert result.added == 0
        assert _titles(result.tasks) == ["Send contract"]

    def test_same_title_for_different_assignees_is_added(self):
        existing = [Task(title="Review deck", assignee=Assignee(email="a@x.com"))]
        incoming = [Task(title="Review deck", assignee=Assignee(email="b@x.com"))]

        # Identical tokens still make it a near-duplicate
        assert TaskMerger().merge(existing, incoming).added == 0
        assert TaskMerger(overlap_threshold=1.01).merge(existing, incoming).added == 1

    def test_new_tasks_are_appended_in_order(self):
        existing = [Task(id="t1", title="Send contract")]
        incoming = [Task(title="Book venue for offsite"), Task(title="Draft hiring plan")]

        result = TaskMerger().merge(existing, incoming)

        assert result.added == 2
        assert _titles(result.tasks) == ["Send contract", "Book venue for offsite", "Draft hiring plan"]

    def test_merge_is_idempotent(self):
        existing = [Task(id="t1", title="Send contract")]
        incoming = [Task(title="Book venue for offsite"), Task(title="Draft hiring plan")]
        merger = TaskMerger()

        first = merger.merge(existing, incoming)
        second = merger.merge(first.tasks, incoming)

        assert second.added == 0
        assert second.tasks == first.tasks

    def test_existing_list_is_not_mutated(self):
        existing = [Task(id="t1", title="Send contract")]
        TaskMerger().merge(existing, [Task(title="Draft hiring plan")])
        assert len(existing) == 1

    def test_batch_cannot_add_its_own_near_duplicates(self):
        incoming = [
            Task(title="Update roadmap slides"),
            Task(title="Update the roadmap slides for Q3"),
        ]

        result = TaskMerger().merge([], incoming)

        assert result.added == 1
        assert _titles(result.tasks) == ["Update roadmap slides"]

    def test_batch_cannot_add_exact_duplicates(self):
        incoming = [Task(title="Draft hiring plan"), Task(title="draft hiring plan")]
        assert TaskMerger().merge([], incoming).added == 1

    def test_done_tasks_are_skipped(self):
        incoming = [Task(title="Draft hiring plan", status=TaskStatus.DONE)]
        assert TaskMerger().merge([], incoming).added == 0

    def test_empty_title_key_is_skipped(self):
        assert TaskMerger().merge([], [Task(title="???")]).added == 0

    def test_subtasks_count_as_existing(self):
        existing = [
            Task(
                id="t1",
                title="Launch website",
                subtasks=[Task(id="t1a", title="Call hosting vendor")],
            )
        ]

        result = TaskMerger().merge(existing, [Task(title="call hosting vendor")])

        assert result.added == 0

    def test_near_duplicate_of_description_is_skipped(self):
        existing = [
            Task(title="Budget review", description="Prepare the quarterly budget for finance"),
        ]
        result = TaskMerger().merge(existing, [Task(title="Prepare budget")])
        assert result.added == 0

    def test_accepts_raw_dicts(self):
        incoming = [{"_id": "abc", "title": "Draft hiring plan", "status": "weird"}]

        result = TaskMerger().merge([], incoming)

        assert result.added == 1
        assert result.tasks[0].id == "abc"
        assert result.tasks[0].status == TaskStatus.TODO
