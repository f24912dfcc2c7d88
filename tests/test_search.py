"""Tests for two-phase search state and ranked filtering."""

from recompile_explorer.models import FileRecord
from recompile_explorer.search import (
    SearchPhase,
    SearchState,
    filter_ranked,
    is_subsequence,
)


def paths(records):
    return [r.path for r in records]


def records(*names):
    return [FileRecord(path=name) for name in names]


# ── Transitions ───────────────────────────────────────────────────


class TestSearchState:
    def test_starts_idle(self):
        state = SearchState()
        assert state.is_idle
        assert state.query is None

    def test_begin_type_commit(self):
        state = SearchState().begin().append("f").append("o").append("o").commit()
        assert state == SearchState.committed("foo")
        assert state.query == "foo"

    def test_begin_while_prompting_keeps_text(self):
        state = SearchState.prompting("ab")
        assert state.begin() is state

    def test_begin_from_committed_starts_fresh(self):
        assert SearchState.committed("old").begin() == SearchState.prompting("")

    def test_delete(self):
        assert SearchState.prompting("ab").delete() == SearchState.prompting("a")

    def test_delete_on_empty_stays_empty(self):
        assert SearchState.prompting("").delete() == SearchState.prompting("")

    def test_edits_ignored_outside_prompting(self):
        idle = SearchState()
        committed = SearchState.committed("x")
        assert idle.append("a") is idle
        assert idle.delete() is idle
        assert idle.commit() is idle
        assert committed.append("a") is committed
        assert committed.commit() is committed

    def test_cancel(self):
        assert SearchState.prompting("a").cancel().phase is SearchPhase.IDLE
        assert SearchState.committed("a").cancel().phase is SearchPhase.IDLE


# ── Filtering ─────────────────────────────────────────────────────


class TestFilter:
    def test_ranked_subsequence_matches(self):
        result = filter_ranked(records("one", "two_one", "three_two"), "one", key=lambda r: r.path)
        assert paths(result) == ["one", "two_one"]

    def test_empty_query_keeps_everything(self):
        items = records("b", "a")
        assert filter_ranked(items, "", key=lambda r: r.path) == items

    def test_ties_keep_listing_order(self):
        result = filter_ranked(records("xab", "abx", "ab"), "ab", key=lambda r: r.path)
        assert paths(result) == ["ab", "xab", "abx"]

    def test_smart_case(self):
        assert is_subsequence("router", "lib/Router.ex")
        assert not is_subsequence("Router", "lib/router.ex")
        assert is_subsequence("Router", "lib/Router.ex")

    def test_only_committed_query_narrows(self):
        items = records("one", "two")
        assert SearchState.prompting("one").apply(items, key=lambda r: r.path) == items
        assert paths(SearchState.committed("one").apply(items, key=lambda r: r.path)) == ["one"]

    def test_committed_empty_query(self):
        items = records("one", "two")
        assert SearchState.committed("").apply(items, key=lambda r: r.path) == items
