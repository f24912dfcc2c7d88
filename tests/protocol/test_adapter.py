"""Tests for the blocking and threaded adapters over in-memory streams."""

import io
import json
import time

import pytest

from recompile_explorer.exceptions import AdapterIOError, ResponseDecodeError
from recompile_explorer.models import RecompileReason
from recompile_explorer.protocol import BlockingAdapter, ThreadedAdapter

FILES_BODY = json.dumps(
    [
        {
            "path": "lib/a.ex",
            "recompile_dependencies": [
                {"id": "1", "path": "lib/b.ex", "reason": "compile", "dependency_chain": []}
            ],
        }
    ]
)
CAUSES_BODY = json.dumps(
    [
        {
            "source": "lib/b.ex",
            "sink": "lib/a.ex",
            "type": "compile",
            "snippets": [{"content": "use A", "highlight": [3, 3], "lines_span": [3, 3]}],
        }
    ]
)


def sent_lines(stream):
    return stream.getvalue().splitlines()


def poll_until(adapter, condition, timeout=5.0):
    """Drain the threaded adapter until ``condition()`` holds."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        adapter.poll_responses()
        if condition():
            return
        time.sleep(0.005)
    raise AssertionError("condition not reached before timeout")


# ── Blocking adapter ──────────────────────────────────────────────


class TestBlockingAdapter:
    def test_ids_start_at_zero_and_increase(self):
        stdin = io.StringIO()
        stdout = io.StringIO(f'S[0]:"ok"\nS[1]:{FILES_BODY}\nS[2]:{CAUSES_BODY}\nS[3]:[]\n')
        adapter = BlockingAdapter(stdin, stdout)

        adapter.initialize()
        adapter.list_files()
        adapter.fetch_dependency_causes("lib/b.ex", "lib/a.ex", RecompileReason.COMPILE)
        adapter.list_files()

        ids = [int(line[2 : line.index("]")]) for line in sent_lines(stdin)]
        assert ids == [0, 1, 2, 3]
        assert adapter.next_request_id == 4

    def test_list_files(self):
        stdout = io.StringIO(f"S[0]:{FILES_BODY}\n")
        records = BlockingAdapter(io.StringIO(), stdout).list_files()
        assert [r.path for r in records] == ["lib/a.ex"]
        assert records[0].dependents[0].path == "lib/b.ex"

    def test_fetch_causes_serializes_exactly(self):
        stdin = io.StringIO()
        stdout = io.StringIO(f"S[0]:{CAUSES_BODY}\n")
        adapter = BlockingAdapter(stdin, stdout)

        causes = adapter.fetch_dependency_causes("lib/b.ex", "lib/a.ex", RecompileReason.EXPORTS)

        assert sent_lines(stdin) == [
            'C[0]:{"type":"get_dependency_causes","source":"lib/b.ex",'
            '"sink":"lib/a.ex","reason":"exports"}'
        ]
        assert causes[0].snippets[0].content == "use A"

    def test_resolves_only_on_matching_id(self):
        stdout = io.StringIO(f"S[7]:[]\nS[1]:[]\n\ngarbage\nS[0]:{CAUSES_BODY}\n")
        adapter = BlockingAdapter(io.StringIO(), stdout)
        causes = adapter.fetch_dependency_causes("lib/b.ex", "lib/a.ex", RecompileReason.COMPILE)
        assert len(causes) == 1

    def test_eof_is_fatal(self):
        adapter = BlockingAdapter(io.StringIO(), io.StringIO("S[5]:[]\n"))
        with pytest.raises(AdapterIOError):
            adapter.list_files()

    def test_decode_error_propagates(self):
        adapter = BlockingAdapter(io.StringIO(), io.StringIO("S[0]:{}\n"))
        with pytest.raises(ResponseDecodeError):
            adapter.list_files()

    def test_undecodable_causes_go_to_error_callback(self):
        stdout = io.StringIO(f"S[0]:{{not json\nS[1]:{CAUSES_BODY}\n")
        adapter = BlockingAdapter(io.StringIO(), stdout)
        received, errors = [], []

        adapter.request_dependency_causes(
            "lib/b.ex", "lib/a.ex", RecompileReason.COMPILE, received.append, errors.append
        )
        adapter.request_dependency_causes(
            "lib/b.ex", "lib/a.ex", RecompileReason.COMPILE, received.append, errors.append
        )

        assert [e.request_type for e in errors] == ["get_dependency_causes"]
        assert received[0][0].source == "lib/b.ex"

    def test_request_callbacks_run_before_return(self):
        stdout = io.StringIO(f"S[0]:{FILES_BODY}\nS[1]:{CAUSES_BODY}\n")
        adapter = BlockingAdapter(io.StringIO(), stdout)
        received = []

        files_id = adapter.request_files(received.append)
        causes_id = adapter.request_dependency_causes(
            "lib/b.ex", "lib/a.ex", RecompileReason.COMPILE, received.append
        )

        assert (files_id, causes_id) == (0, 1)
        assert len(received) == 2
        assert adapter.poll_responses() == 0

    def test_no_process_means_healthy(self):
        adapter = BlockingAdapter(io.StringIO(), io.StringIO())
        assert adapter.check_health() is None
        assert adapter.returncode is None


# ── Threaded adapter ──────────────────────────────────────────────


class TestThreadedAdapter:
    def test_callbacks_run_on_poll(self):
        stdin = io.StringIO()
        stdout = io.StringIO(f'S[0]:"ok"\nS[1]:{FILES_BODY}\n')
        adapter = ThreadedAdapter(stdin, stdout)
        received = []

        adapter.initialize()
        request_id = adapter.request_files(received.append)
        assert request_id == 1
        # Nothing is delivered until the caller drains
        assert received == []

        poll_until(adapter, lambda: received)
        assert [r.path for r in received[0]] == ["lib/a.ex"]
        assert adapter.in_flight == 0
        adapter.close(timeout=1.0)

    def test_same_id_discipline(self):
        stdin = io.StringIO()
        stdout = io.StringIO(f"noise\nS[3]:[]\n\nS[0]:{CAUSES_BODY}\n")
        adapter = ThreadedAdapter(stdin, stdout)
        received = []

        adapter.request_dependency_causes(
            "lib/b.ex", "lib/a.ex", RecompileReason.COMPILE_THEN_RUNTIME, received.append
        )
        poll_until(adapter, lambda: received)

        assert received[0][0].sink == "lib/a.ex"
        assert sent_lines(stdin) == [
            'C[0]:{"type":"get_dependency_causes","source":"lib/b.ex",'
            '"sink":"lib/a.ex","reason":"compile_then_runtime"}'
        ]
        adapter.close(timeout=1.0)

    def test_ids_strictly_increase(self):
        responses = "".join(f"S[{i}]:[]\n" for i in range(5))
        stdin = io.StringIO()
        adapter = ThreadedAdapter(stdin, io.StringIO(responses))
        done = []

        ids = [adapter.request_files(done.append) for _ in range(5)]
        poll_until(adapter, lambda: len(done) == 5)

        assert ids == [0, 1, 2, 3, 4]
        assert [line[:4] for line in sent_lines(stdin)] == ["C[0]", "C[1]", "C[2]", "C[3]", "C[4]"]
        adapter.close(timeout=1.0)

    def test_bounded_buffer_still_delivers_everything(self):
        responses = "".join(f"S[{i}]:[]\n" for i in range(6))
        adapter = ThreadedAdapter(io.StringIO(), io.StringIO(responses), buffer_size=1)
        done = []

        for _ in range(6):
            adapter.request_files(done.append)
        poll_until(adapter, lambda: len(done) == 6)
        adapter.close(timeout=1.0)

    def test_io_error_reraised_on_poll(self):
        adapter = ThreadedAdapter(io.StringIO(), io.StringIO(""))
        adapter.request_files(lambda files: None)

        with pytest.raises(AdapterIOError):
            poll_until(adapter, lambda: False)
        adapter.close(timeout=1.0)

    def test_decode_error_reraised_on_poll(self):
        adapter = ThreadedAdapter(io.StringIO(), io.StringIO('S[0]:"not a list"\n'))
        adapter.request_files(lambda files: None)

        with pytest.raises(ResponseDecodeError):
            poll_until(adapter, lambda: False)
        adapter.close(timeout=1.0)

    def test_undecodable_causes_go_to_error_callback(self):
        stdout = io.StringIO(f"S[0]:{{not json\nS[1]:{CAUSES_BODY}\n")
        adapter = ThreadedAdapter(io.StringIO(), stdout)
        received, errors = [], []

        for _ in range(2):
            adapter.request_dependency_causes(
                "lib/b.ex", "lib/a.ex", RecompileReason.COMPILE, received.append, errors.append
            )
        poll_until(adapter, lambda: received)

        assert len(errors) == 1
        assert adapter.in_flight == 0
        adapter.close(timeout=1.0)

    def test_thread_starts_lazily(self):
        adapter = ThreadedAdapter(io.StringIO(), io.StringIO())
        assert adapter._thread is None
        adapter.close(timeout=1.0)
