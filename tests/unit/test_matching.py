"""Tests for match keys and text overlap scoring."""

import pytest

from taskrecon.models import Assignee, Task
from taskrecon.reconcile.matching import (
    build_assignee_key,
    build_match_key,
    overlap_score,
    token_overlap_ratio,
    tokenize_task_text,
)


class TestMatchKey:
    """Test exact-dedup identity keys."""

    def test_email_is_lowercased(self):
        task = Task(title="Send contract", assignee=Assignee(email=" A@X.com "))
        assert build_match_key(task) == "send contract|email:a@x.com"

    def test_case_and_punctuation_share_key(self):
        first = Task(title="Send contract", assignee=Assignee(email="a@x.com"))
        second = Task(title="SEND contract!", assignee=Assignee(email="a@x.com"))
        assert build_match_key(first) == build_match_key(second)

    def test_stop_words_stay_in_key(self):
        task = Task(title="Send the contract", assignee=Assignee(email="a@x.com"))
        assert build_match_key(task) == "send the contract|email:a@x.com"

    def test_email_wins_over_name(self):
        task = Task(title="Review", assignee=Assignee(name="Jane Doe", email="jane@x.com"))
        assert build_assignee_key(task) == "email:jane@x.com"

    def test_name_from_analyzer(self):
        task = Task(title="Review deck", assignee_name="Jane  Doe")
        assert build_match_key(task) == "review deck|name:jane doe"

    def test_name_from_assignee(self):
        task = Task(title="Review deck", assignee=Assignee(name="Bob"))
        assert build_assignee_key(task) == "name:bob"

    @pytest.mark.parametrize("label", ["Unassigned", "unknown", "None", "NA", "n/a", "TBD"])
    def test_placeholder_names_are_unassigned(self, label):
        task = Task(title="Review deck", assignee_name=label)
        assert build_assignee_key(task) == "unassigned"

    def test_missing_assignee_is_unassigned(self):
        assert build_match_key(Task(title="Review deck")) == "review deck|unassigned"

    def test_punctuation_only_title_has_no_key(self):
        assert build_match_key(Task(title="?!...")) == ""

    def test_stop_word_title_keeps_plain_form(self):
        assert build_match_key(Task(title="The")) == "the|unassigned"

    def test_analyzer_name_wins_by_default(self):
        task = Task(title="Review deck", assignee_name="Jane", assignee=Assignee(name="Bob"))
        assert build_assignee_key(task) == "name:jane"

    def test_assignee_record_name_can_win(self):
        task = Task(title="Review deck", assignee_name="Jane", assignee=Assignee(name="Bob"))
        assert build_assignee_key(task, prefer_assignee_record=True) == "name:bob"
        assert build_match_key(task, prefer_assignee_record=True) == "review deck|name:bob"


class TestOverlap:
    """Test token containment scoring."""

    def test_tokens_drop_stop_words(self):
        task = Task(title="Send the contract", description="to the legal team")
        assert tokenize_task_text(task) == frozenset({"send", "contract", "legal", "team"})

    def test_short_title_contained_in_description_scores_one(self):
        short = Task(title="Prepare budget")
        long = Task(title="Budget review", description="Prepare the quarterly budget for finance")
        assert overlap_score(short, long) == 1.0
        assert overlap_score(long, short) == 1.0

    def test_partial_overlap(self):
        a = frozenset({"book", "venue", "offsite"})
        b = frozenset({"book", "flights", "offsite", "team"})
        assert token_overlap_ratio(a, b) == pytest.approx(2 / 3)

    def test_empty_set_scores_zero(self):
        assert overlap_score(Task(title="the"), Task(title="the plan")) == 0.0
        assert token_overlap_ratio(frozenset(), frozenset({"a"})) == 0.0
