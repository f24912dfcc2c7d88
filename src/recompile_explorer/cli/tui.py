"""Recompile Explorer TUI.

Layout:
┌──────────────────────────────┬──────────────────────────────────────┐
│ Files (12 of 240)            │ Dependency causes                    │
│ > lib/app/router.ex          │ lib/app/web.ex has a compile-time    │
│   lib/app/web.ex             │ dependency on lib/app/router.ex      │
│                              │   12   use App.Router                │
├──────────────────────────────┴──────────────────────────────────────┤
│ j/k or ↑/↓ move · enter select · / search · esc back · q quit       │
└─────────────────────────────────────────────────────────────────────┘

All state lives in :class:`~recompile_explorer.session.ExplorerSession`.
The app only translates keys into events, ticks the session on an interval,
and re-renders the panes from state after every change.
"""

from __future__ import annotations

from typing import Optional

from rich.text import Text
from textual import events
from textual.app import App, ComposeResult
from textual.containers import Horizontal
from textual.widgets import Static

from ..exceptions import ExplorerError
from ..keymap import INSTRUCTIONS, PROMPT_INSTRUCTIONS, translate_key
from ..models import CodeSnippet, DependencyCause, DependencyLink
from ..search import SearchState
from ..session import ExplorerSession
from ..state import ViewState

LOADING_FRAMES = "⠋⠙⠹⠸⠼⠴⠦⠧⠇⠏"
SELECTED_STYLE = "reverse bold"
HIGHLIGHT_STYLE = "bold yellow"


# ══════════════════════════════════════════════════════════════════════════════
# Text Helpers
# ══════════════════════════════════════════════════════════════════════════════


def compact_path(path: str, max_width: int) -> str:
    """Drop leading segments until ``path`` fits, marking the cut with ``...``."""
    if len(path) <= max_width:
        return path
    parts = path.split("/")
    for start in range(1, len(parts)):
        candidate = ".../" + "/".join(parts[start:])
        if len(candidate) <= max_width:
            return candidate
    return ".../" + parts[-1]


def panel_title(label: str, shown: int, total: int, search: SearchState) -> str:
    """Title with an ``(N of M)`` suffix while a committed search narrows the list."""
    if search.is_committed and search.text:
        return f"{label} ({shown} of {total})"
    return label


def loading_indicator(frame: int) -> str:
    return LOADING_FRAMES[frame % len(LOADING_FRAMES)]


def describe_link(link: DependencyLink) -> str:
    return f"{link.source} {link.type.describe()} {link.sink}"


def footer_text(search: SearchState) -> str:
    if search.is_prompting:
        return f"/{search.text}▏  {PROMPT_INSTRUCTIONS}"
    if search.is_committed:
        return f"filter: {search.text}  ·  {INSTRUCTIONS}"
    return INSTRUCTIONS


def render_snippet(snippet: CodeSnippet) -> Text:
    text = Text()
    width = len(str(snippet.lines_span[1]))
    for number, line, highlighted in snippet.numbered_lines():
        style = HIGHLIGHT_STYLE if highlighted else ""
        text.append(f"{number:>{width}}  ", style="dim")
        text.append(line + "\n", style=style)
    return text


def render_causes(causes: tuple[DependencyCause, ...]) -> Text:
    text = Text()
    if not causes:
        text.append("No snippets", style="dim")
        return text
    for cause in causes:
        text.append(f"{cause.source} {cause.type.describe()} {cause.sink}\n", style="bold")
        if not cause.snippets:
            text.append("No snippets\n\n", style="dim")
            continue
        for snippet in cause.snippets:
            text.append_text(render_snippet(snippet))
            text.append("\n")
    return text


# ══════════════════════════════════════════════════════════════════════════════
# Pane Rendering
# ══════════════════════════════════════════════════════════════════════════════


def render_file_list(session: ExplorerSession, frame: int, width: int = 80) -> Text:
    machine = session.machine
    text = Text()
    if machine.is_loading:
        text.append(f"{loading_indicator(frame)} Loading files...", style="dim")
        return text

    visible = machine.visible_files()
    title = panel_title("Files", len(visible), len(machine.files or ()), machine.file_search)
    text.append(title + "\n", style="bold cyan")
    if not visible:
        text.append("No matching files", style="dim")
        return text

    cursor = session.file_panel.cursor
    for index, record in enumerate(visible):
        marker = "> " if index == cursor else "  "
        style = SELECTED_STYLE if index == cursor else ""
        text.append(marker + compact_path(record.path, width - 2) + "\n", style=style)
    return text


def render_dependents(session: ExplorerSession, width: int = 80) -> Text:
    machine = session.machine
    navigator = session.dependents_panel.navigator
    entries = navigator.entries
    text = Text()

    label = f"Dependents of {compact_path(machine.anchor_path or '', max(width - 30, 10))}"
    title = panel_title(label, len(entries), len(machine.all_dependents()), machine.dependents_search)
    text.append(title + "\n", style="bold cyan")
    if not entries:
        text.append("Nothing recompiles when this file changes", style="dim")
        return text

    outer, inner = navigator.cursor
    for index, entry in enumerate(entries):
        expanded = navigator.is_expanded(entry)
        marker = "▾ " if expanded else "▸ "
        style = SELECTED_STYLE if index == outer and inner is None else ""
        text.append(marker + compact_path(entry.path, width - 2) + "\n", style=style)
        if not expanded:
            continue
        text.append(f"    {entry.reason.describe()}\n", style="italic dim")
        for position, link in enumerate(entry.dependency_chain):
            style = SELECTED_STYLE if index == outer and inner == position else ""
            text.append(f"    {describe_link(link)}\n", style=style)
    return text


def render_cause_pane(session: ExplorerSession, frame: int) -> Text:
    panel = session.cause_panel
    text = Text()
    text.append("Dependency causes\n", style="bold cyan")
    if panel.viewing is None:
        text.append("Expand a dependent and move into its chain to see causes", style="dim")
        return text

    text.append(describe_link(panel.viewing) + "\n\n")
    failure = panel.displayed_failure()
    if failure is not None:
        text.append("Could not load causes\n", style="bold red")
        text.append(failure, style="red")
        return text
    causes = panel.displayed_causes()
    if causes is None:
        text.append(f"{loading_indicator(frame)} Loading causes...", style="dim")
        return text
    text.append_text(render_causes(causes))
    return text


# ══════════════════════════════════════════════════════════════════════════════
# App
# ══════════════════════════════════════════════════════════════════════════════


class ExplorerApp(App):
    """Recompile Explorer TUI."""

    TITLE = "Recompile Explorer"

    CSS = """
    Screen {
        background: $surface;
    }

    #panes {
        height: 1fr;
    }

    #list-pane {
        width: 1fr;
        padding: 0 1;
        border-right: solid $primary-background;
    }

    #cause-pane {
        width: 1fr;
        padding: 0 1;
    }

    #footer-bar {
        dock: bottom;
        height: 1;
        padding: 0 1;
        background: $primary-background;
    }
    """

    def __init__(self, session: ExplorerSession, poll_interval: float = 0.025) -> None:
        super().__init__()
        self.session = session
        self.poll_interval = poll_interval
        self.failure: Optional[ExplorerError] = None
        self._frame = 0

    def compose(self) -> ComposeResult:
        with Horizontal(id="panes"):
            yield Static(id="list-pane")
            yield Static(id="cause-pane")
        yield Static(id="footer-bar")

    def on_mount(self) -> None:
        try:
            self.session.start()
        except ExplorerError as e:
            self._fail(e)
            return
        self.set_interval(self.poll_interval, self._tick)
        self._render_panes()

    def _fail(self, error: ExplorerError) -> None:
        self.failure = error
        self.exit()

    def _tick(self) -> None:
        self._frame += 1
        try:
            self.session.tick()
        except ExplorerError as e:
            self._fail(e)
            return
        self._render_panes()

    def on_key(self, event: events.Key) -> None:
        intent = translate_key(event.key, event.character, self.session.machine)
        if intent is None:
            return
        event.stop()
        try:
            self.session.dispatch(intent)
        except ExplorerError as e:
            self._fail(e)
            return
        if self.session.should_quit:
            self.exit()
            return
        self._render_panes()

    def _render_panes(self) -> None:
        machine = self.session.machine
        list_pane = self.query_one("#list-pane", Static)
        width = max(list_pane.size.width, 20)
        if machine.view is ViewState.DEPENDENTS_BROWSING:
            list_pane.update(render_dependents(self.session, width))
        else:
            list_pane.update(render_file_list(self.session, self._frame, width))
        self.query_one("#cause-pane", Static).update(
            render_cause_pane(self.session, self._frame)
        )
        self.query_one("#footer-bar", Static).update(footer_text(machine.active_search))


def run_tui(session: ExplorerSession, poll_interval: float) -> Optional[ExplorerError]:
    """Run the UI until the operator quits. Returns the error that ended it, if any."""
    app = ExplorerApp(session, poll_interval=poll_interval)
    app.run()
    return app.failure
