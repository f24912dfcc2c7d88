"""Tests for the dependents view wired through a session."""

from recompile_explorer.events import (
    AppendSearchChar,
    BeginSearch,
    Cancel,
    CommitSearch,
    DependentsViewClosed,
    MoveNext,
    Select,
    StartViewLink,
    StopViewLink,
)
from recompile_explorer.state import ViewState


def open_router(session):
    session.dispatch(Select())
    return session.dependents_panel.navigator


class TestBinding:
    def test_fresh_cursor_on_open(self, session, router_file):
        navigator = open_router(session)
        assert navigator.entries == router_file.dependents
        assert navigator.cursor == (0, None)

    def test_new_anchor_gets_new_cursor(self, session):
        navigator = open_router(session)
        session.dispatch(MoveNext())
        session.dispatch(Select())
        assert navigator.expanded_id == "page"

        session.dispatch(Cancel())
        session.dispatch(Cancel())
        session.dispatch(Select())
        fresh = session.dependents_panel.navigator
        assert fresh.cursor == (0, None)
        assert fresh.expanded_id is None

    def test_committed_search_narrows_entries(self, session):
        navigator = open_router(session)
        session.dispatch(MoveNext())
        session.dispatch(BeginSearch())
        for char in "endpoint":
            session.dispatch(AppendSearchChar(char=char))
        session.dispatch(CommitSearch())

        navigator = session.dependents_panel.navigator
        assert [entry.id for entry in navigator.entries] == ["endpoint"]
        assert navigator.cursor == (0, None)


class TestCascades:
    def test_move_into_chain_starts_view(self, session, router_file):
        open_router(session)
        session.dispatch(MoveNext())
        session.dispatch(Select())
        processed = session.dispatch(MoveNext())

        page = router_file.dependents[1]
        assert processed[0] == MoveNext()
        assert processed[1] == StartViewLink(link=page.dependency_chain[0], reason=page.reason)

    def test_cancel_while_viewing(self, session):
        open_router(session)
        session.dispatch(MoveNext())
        session.dispatch(Select())
        session.dispatch(MoveNext())

        processed = session.dispatch(Cancel())

        names = [event.name for event in processed]
        assert names == ["Cancel", "StopViewLink", "DependentsViewClosed"]
        assert processed[2] == DependentsViewClosed(anchor="lib/router.ex")
        assert session.machine.view is ViewState.FILE_BROWSING

    def test_cancel_aborting_prompt_resets_navigator(self, session):
        navigator = open_router(session)
        session.dispatch(Select())
        session.dispatch(MoveNext())
        session.dispatch(BeginSearch())

        processed = session.dispatch(Cancel())

        assert isinstance(processed[1], StopViewLink)
        assert session.machine.view is ViewState.DEPENDENTS_BROWSING
        assert navigator.cursor == (0, None)
        assert navigator.expanded_id is None
