"""Shared test fixtures for Recompile Explorer."""

import sys
from pathlib import Path

import pytest

from recompile_explorer.exceptions import ResponseDecodeError
from recompile_explorer.models import (
    CodeSnippet,
    DependencyCause,
    DependencyLink,
    DependencyType,
    FileRecord,
    RecompileDependency,
    RecompileReason,
)
from recompile_explorer.protocol import ServerAdapter
from recompile_explorer.protocol.framing import (
    get_dependency_causes_request,
    get_files_request,
    init_request,
)
from recompile_explorer.session import ExplorerSession

FAKE_SERVER = Path(__file__).parent / "fixtures" / "fake_analysis_server.py"


class RecordingAdapter(ServerAdapter):
    """In-memory adapter that records request bodies.

    Cause requests whose ``(source, sink)`` is in ``undecodable`` fail as if
    the server answered with a body that is not JSON.

    With ``deferred=True`` completions are held until :meth:`poll_responses`,
    like the threaded adapter; otherwise they run before the request returns.
    """

    def __init__(self, files=(), causes=None, deferred=False, undecodable=()):
        super().__init__()
        self.undecodable = set(undecodable)
        self.files = list(files)
        self.causes = causes or {}
        self.deferred = deferred
        self.requests = []
        self.diagnostics = None
        self.closed = False
        self._completions = []

    def _record(self, body):
        request_id = self._allocate_id()
        self.requests.append((request_id, body))
        return request_id

    def _complete(self, on_complete, result):
        if self.deferred:
            self._completions.append(lambda: on_complete(result))
        else:
            on_complete(result)

    @property
    def cause_requests(self):
        return [body for _, body in self.requests if body["type"] == "get_dependency_causes"]

    def initialize(self):
        self._record(init_request())

    def request_files(self, on_complete):
        request_id = self._record(get_files_request())
        self._complete(on_complete, list(self.files))
        return request_id

    def request_dependency_causes(self, source, sink, reason, on_complete, on_error=None):
        request_id = self._record(get_dependency_causes_request(source, sink, reason))
        if (source, sink) in self.undecodable:
            error = ResponseDecodeError("get_dependency_causes", "invalid JSON", "{not json")
            if on_error is None:
                raise error
            self._complete(on_error, error)
        else:
            self._complete(on_complete, list(self.causes.get((source, sink), [])))
        return request_id

    def poll_responses(self):
        pending, self._completions = self._completions, []
        for complete in pending:
            complete()
        return len(pending)

    def check_health(self, timeout=0.0):
        return self.diagnostics

    def close(self, timeout=5.0):
        self.closed = True


def chain(*paths, dependency_type=DependencyType.COMPILE):
    """Links path[0] -> path[1] -> ... of one type."""
    return tuple(
        DependencyLink(source=a, sink=b, type=dependency_type)
        for a, b in zip(paths, paths[1:])
    )


@pytest.fixture
def router_file():
    """lib/router.ex with three dependents; the second has a three-link chain."""
    return FileRecord(
        path="lib/router.ex",
        dependents=(
            RecompileDependency(
                id="web",
                path="lib/web.ex",
                reason=RecompileReason.COMPILE,
                dependency_chain=chain("lib/web.ex", "lib/router.ex"),
            ),
            RecompileDependency(
                id="page",
                path="lib/page_controller.ex",
                reason=RecompileReason.EXPORTS_THEN_COMPILE,
                dependency_chain=chain(
                    "lib/page_controller.ex", "lib/views.ex", "lib/web.ex", "lib/router.ex"
                ),
            ),
            RecompileDependency(
                id="endpoint",
                path="lib/endpoint.ex",
                reason=RecompileReason.COMPILE_THEN_RUNTIME,
                dependency_chain=chain(
                    "lib/endpoint.ex", "lib/router.ex", dependency_type=DependencyType.RUNTIME
                ),
            ),
        ),
    )


@pytest.fixture
def sample_files(router_file):
    return (
        router_file,
        FileRecord(path="lib/web.ex"),
        FileRecord(path="lib/page_controller.ex"),
    )


@pytest.fixture
def sample_causes():
    """Causes the adapters answer with, keyed by (source, sink) of the request."""
    return {
        ("lib/views.ex", "lib/router.ex"): [
            DependencyCause(
                source="lib/views.ex",
                sink="lib/router.ex",
                type=DependencyType.COMPILE,
                snippets=(
                    CodeSnippet(content="import Router", highlight=(4, 4), lines_span=(4, 4)),
                ),
            )
        ],
    }


@pytest.fixture
def recording_adapter(sample_files, sample_causes):
    return RecordingAdapter(files=sample_files, causes=sample_causes)


@pytest.fixture
def deferred_adapter(sample_files, sample_causes):
    return RecordingAdapter(files=sample_files, causes=sample_causes, deferred=True)


@pytest.fixture
def session(recording_adapter):
    """Started session whose file listing has already arrived."""
    explorer = ExplorerSession(recording_adapter)
    explorer.start()
    return explorer


@pytest.fixture
def deferred_session(deferred_adapter):
    """Started session on an adapter that completes only when ticked."""
    explorer = ExplorerSession(deferred_adapter)
    explorer.start()
    explorer.tick()
    return explorer


@pytest.fixture
def make_session(sample_files, sample_causes):
    """Build a started session over a fresh in-memory adapter."""

    def build(**adapter_options):
        adapter = RecordingAdapter(files=sample_files, causes=sample_causes, **adapter_options)
        explorer = ExplorerSession(adapter)
        explorer.start()
        explorer.tick()
        return explorer

    return build


@pytest.fixture
def fake_server_command():
    """argv for the scripted analysis server; append a mode to change its behaviour."""
    return [sys.executable, str(FAKE_SERVER)]


@pytest.fixture
def make_chain():
    return chain
