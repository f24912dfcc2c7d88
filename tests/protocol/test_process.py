"""Subprocess-backed tests against the scripted analysis server."""

import sys
import time

import pytest

from recompile_explorer.exceptions import AdapterIOError, ResponseDecodeError
from recompile_explorer.models import DependencyType, RecompileReason
from recompile_explorer.protocol import BlockingAdapter, ThreadedAdapter, spawn_server


def wait_for_exit(adapter, timeout=10.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        diagnostics = adapter.check_health()
        if diagnostics is not None:
            return diagnostics
        time.sleep(0.02)
    raise AssertionError("server did not exit")


# ── Spawning ──────────────────────────────────────────────────────


class TestSpawnServer:
    def test_empty_command(self):
        with pytest.raises(AdapterIOError):
            spawn_server([])

    def test_missing_executable(self, tmp_path):
        with pytest.raises(AdapterIOError) as exc_info:
            spawn_server([str(tmp_path / "no-such-server")])
        assert "could not start" in exc_info.value.reason

    def test_runs_in_requested_directory(self, tmp_path):
        process = spawn_server(
            [sys.executable, "-c", "import os; print(os.getcwd())"], cwd=str(tmp_path)
        )
        assert process.stdout.readline().strip() == str(tmp_path.resolve())
        process.shutdown(timeout=5.0)

    def test_shutdown_is_idempotent(self, fake_server_command):
        process = spawn_server(fake_server_command)
        first = process.shutdown(timeout=5.0)
        second = process.shutdown(timeout=5.0)
        assert first == second
        assert process.returncode is not None


# ── Health checks ─────────────────────────────────────────────────


class TestHealth:
    def test_running_server_is_healthy(self, fake_server_command):
        adapter = BlockingAdapter.from_process(spawn_server(fake_server_command))
        try:
            assert adapter.check_health() is None
        finally:
            adapter.close(timeout=5.0)

    def test_exit_returns_diagnostics(self, fake_server_command):
        adapter = BlockingAdapter.from_process(spawn_server(fake_server_command + ["crash"]))
        try:
            diagnostics = wait_for_exit(adapter)
            assert "Could not compile dependency" in diagnostics
            assert adapter.returncode == 3
            # Same text on every later check
            assert adapter.check_health() == diagnostics
        finally:
            adapter.close(timeout=5.0)


# ── Round trips ───────────────────────────────────────────────────


class TestBlockingRoundTrips:
    def test_listing_and_causes(self, fake_server_command):
        adapter = BlockingAdapter.from_process(spawn_server(fake_server_command))
        try:
            adapter.initialize()
            files = adapter.list_files()
            assert [f.path for f in files] == ["lib/router.ex", "lib/web.ex"]
            chain = files[0].dependents[1].dependency_chain
            assert chain[0].type is DependencyType.EXPORTS
            # Compact array links decode as well
            assert files[0].dependents[0].dependency_chain[0].source == "lib/web.ex"

            causes = adapter.fetch_dependency_causes(
                "lib/web.ex", "lib/router.ex", RecompileReason.COMPILE
            )
            assert causes[0].source == "lib/web.ex"
            assert causes[0].sink == "lib/router.ex"
            numbered = list(causes[0].snippets[0].numbered_lines())
            assert numbered[1] == (11, "  use Router", True)
        finally:
            adapter.close(timeout=5.0)

    def test_hangup_is_io_error(self, fake_server_command):
        adapter = BlockingAdapter.from_process(spawn_server(fake_server_command + ["hangup"]))
        try:
            adapter.initialize()
            with pytest.raises(AdapterIOError):
                adapter.list_files()
            assert "analysis crashed" in wait_for_exit(adapter)
        finally:
            adapter.close(timeout=5.0)

    def test_exit_behind_broken_pipe_is_reported(self, fake_server_command):
        adapter = BlockingAdapter.from_process(spawn_server(fake_server_command + ["hangup"]))
        try:
            adapter.initialize()
            with pytest.raises(AdapterIOError):
                adapter.list_files()
            # Output is closed before the process is reaped; wait for the exit
            diagnostics = adapter.check_health(timeout=5.0)
            assert diagnostics is not None
            assert "analysis crashed" in diagnostics
        finally:
            adapter.close(timeout=5.0)

    def test_bad_body_is_decode_error(self, fake_server_command):
        adapter = BlockingAdapter.from_process(spawn_server(fake_server_command + ["bad-json"]))
        try:
            adapter.initialize()
            with pytest.raises(ResponseDecodeError):
                adapter.list_files()
        finally:
            adapter.close(timeout=5.0)


class TestThreadedRoundTrips:
    def test_listing_delivered_on_poll(self, fake_server_command):
        adapter = ThreadedAdapter.from_process(spawn_server(fake_server_command))
        received = []
        try:
            adapter.initialize()
            adapter.request_files(received.append)
            deadline = time.monotonic() + 10.0
            while not received and time.monotonic() < deadline:
                adapter.poll_responses()
                time.sleep(0.01)
            assert [f.path for f in received[0]] == ["lib/router.ex", "lib/web.ex"]
        finally:
            adapter.close(timeout=5.0)

    def test_close_with_request_in_flight(self, fake_server_command):
        adapter = ThreadedAdapter.from_process(spawn_server(fake_server_command + ["hangup"]))
        adapter.initialize()
        adapter.request_files(lambda files: None)
        adapter.close(timeout=5.0)
        assert adapter.returncode is not None
