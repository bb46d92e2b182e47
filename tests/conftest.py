"""Shared fixtures for taskrecon tests."""

import pytest

from taskrecon.models import Assignee, Meeting, Task, User
from taskrecon.storage import InMemoryDatabase


def make_task(task_id, title, **kwargs):
    """Build a Task with a fixed id."""
    return Task(id=task_id, title=title, **kwargs)


@pytest.fixture
def db():
    """Empty in-memory database."""
    return InMemoryDatabase()


@pytest.fixture
def user():
    return User(id="u1", workspace_id="w1")


@pytest.fixture
def seeded_db(db, user):
    """Database with one user and a meeting holding one open task."""
    db.add("users", user)
    db.add(
        "meetings",
        Meeting(
            id="m1",
            user_id="u1",
            workspace_id="w1",
            title="Weekly sync",
            original_transcript="Alice: I will send the contract tomorrow.",
            extracted_tasks=[
                make_task(
                    "t1",
                    "Send contract",
                    assignee=Assignee(email="a@x.com"),
                )
            ],
        ),
    )
    return db

