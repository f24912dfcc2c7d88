"""Request/response adapters for the analysis server.

Two execution strategies share the same framing and id-matching discipline
(see :mod:`.framing`):

- :class:`BlockingAdapter` performs each round trip on the calling thread.
- :class:`ThreadedAdapter` hands requests to a dedicated I/O thread that owns
  the pipe; completed response bodies come back over a bounded queue that the
  UI thread drains once per frame with :meth:`ThreadedAdapter.poll_responses`.

Both assume a single request in flight on the wire: ids increase strictly
from 0 and a response for any other id is skipped, never buffered.
"""

from __future__ import annotations

import logging
import queue
import threading
from abc import ABC, abstractmethod
from typing import IO, Any, Callable, Optional

from ..exceptions import AdapterError, ResponseDecodeError
from ..models import DependencyCause, FileRecord, RecompileReason
from .framing import (
    decode_dependency_causes,
    decode_files,
    get_dependency_causes_request,
    get_files_request,
    init_request,
    read_response,
    write_request,
)
from .process import ServerProcess

logger = logging.getLogger(__name__)

FilesCallback = Callable[[list[FileRecord]], None]
CausesCallback = Callable[[list[DependencyCause]], None]
ErrorCallback = Callable[[ResponseDecodeError], None]

DEFAULT_RESPONSE_BUFFER = 64

_PendingRequest = tuple[
    Optional[Callable[[str], Any]], Optional[Callable], Optional[ErrorCallback]
]


class ServerAdapter(ABC):
    """Common surface used by the session, whichever strategy is behind it.

    ``request_*`` methods register a completion callback and return the
    request id. A blocking adapter calls the callback before returning; a
    threaded adapter calls it from :meth:`poll_responses`.
    """

    def __init__(self, process: Optional[ServerProcess] = None) -> None:
        self._process = process
        self._next_id = 0

    def _allocate_id(self) -> int:
        request_id = self._next_id
        self._next_id += 1
        return request_id

    @property
    def next_request_id(self) -> int:
        return self._next_id

    @abstractmethod
    def initialize(self) -> None:
        """Send the ``init`` control request."""

    @abstractmethod
    def request_files(self, on_complete: FilesCallback) -> int:
        """Ask for the full file listing."""

    @abstractmethod
    def request_dependency_causes(
        self,
        source: str,
        sink: str,
        reason: RecompileReason,
        on_complete: CausesCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> int:
        """Ask for the snippets explaining why ``source`` depends on ``sink``.

        A body that fails to decode is passed to ``on_error`` when given, so
        only this request fails; without it the error propagates.
        """

    @property
    def returncode(self) -> Optional[int]:
        return self._process.returncode if self._process is not None else None

    def poll_responses(self) -> int:
        """Deliver completed responses. Returns the number delivered."""
        return 0

    def check_health(self, timeout: float = 0.0) -> Optional[str]:
        """Return captured diagnostics if the server has exited, else None.

        ``timeout`` bounds how long to wait for an exit that is still under way.
        """
        if self._process is None:
            return None
        return self._process.poll_exit(timeout=timeout)

    def close(self, timeout: float = 5.0) -> None:
        if self._process is not None:
            self._process.shutdown(timeout=timeout)


class BlockingAdapter(ServerAdapter):
    """Synchronous adapter: each call stalls until its matching response arrives."""

    def __init__(
        self,
        stdin: IO[str],
        stdout: IO[str],
        process: Optional[ServerProcess] = None,
    ) -> None:
        super().__init__(process)
        self._stdin = stdin
        self._stdout = stdout

    @classmethod
    def from_process(cls, process: ServerProcess) -> BlockingAdapter:
        return cls(process.stdin, process.stdout, process)

    def _round_trip(self, body: dict[str, Any]) -> tuple[int, str]:
        request_id = self._allocate_id()
        write_request(self._stdin, request_id, body)
        return request_id, read_response(self._stdout, request_id)

    def initialize(self) -> None:
        self._round_trip(init_request())

    def list_files(self) -> list[FileRecord]:
        _, payload = self._round_trip(get_files_request())
        return decode_files(payload)

    def fetch_dependency_causes(
        self, source: str, sink: str, reason: RecompileReason
    ) -> list[DependencyCause]:
        _, payload = self._round_trip(get_dependency_causes_request(source, sink, reason))
        return decode_dependency_causes(payload)

    def request_files(self, on_complete: FilesCallback) -> int:
        request_id = self._next_id
        on_complete(self.list_files())
        return request_id

    def request_dependency_causes(
        self,
        source: str,
        sink: str,
        reason: RecompileReason,
        on_complete: CausesCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> int:
        request_id = self._next_id
        try:
            causes = self.fetch_dependency_causes(source, sink, reason)
        except ResponseDecodeError as exc:
            if on_error is None:
                raise
            on_error(exc)
            return request_id
        on_complete(causes)
        return request_id


class ThreadedAdapter(ServerAdapter):
    """Adapter whose pipe is owned by a background I/O thread.

    The I/O thread only reads and writes the pipe. Decoding and callbacks run
    on the thread that calls :meth:`poll_responses`, so application state is
    never touched from the background.
    """

    def __init__(
        self,
        stdin: IO[str],
        stdout: IO[str],
        process: Optional[ServerProcess] = None,
        buffer_size: int = DEFAULT_RESPONSE_BUFFER,
    ) -> None:
        super().__init__(process)
        self._stdin = stdin
        self._stdout = stdout
        self._outbound: queue.Queue = queue.Queue()
        self._responses: queue.Queue = queue.Queue(maxsize=buffer_size)
        self._pending: dict[int, _PendingRequest] = {}
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @classmethod
    def from_process(
        cls, process: ServerProcess, buffer_size: int = DEFAULT_RESPONSE_BUFFER
    ) -> ThreadedAdapter:
        return cls(process.stdin, process.stdout, process, buffer_size=buffer_size)

    @property
    def in_flight(self) -> int:
        return len(self._pending)

    def start(self) -> None:
        """Start the I/O thread. Called implicitly by the first request."""
        with self._lock:
            if self._thread is not None:
                return
            self._thread = threading.Thread(
                target=self._io_loop,
                name="recompile-explorer-io",
                daemon=True,
            )
            self._thread.start()

    def _io_loop(self) -> None:
        """Background thread: write each request, wait for its response."""
        while True:
            item = self._outbound.get()
            if item is None:
                break

            request_id, body = item
            try:
                write_request(self._stdin, request_id, body)
                payload = read_response(self._stdout, request_id)
            except AdapterError as exc:
                self._responses.put((request_id, None, exc))
                break

            self._responses.put((request_id, payload, None))

        logger.debug("I/O thread exiting")

    def _submit(
        self,
        body: dict[str, Any],
        decode: Optional[Callable[[str], Any]],
        on_complete: Optional[Callable],
        on_error: Optional[ErrorCallback] = None,
    ) -> int:
        self.start()
        request_id = self._allocate_id()
        self._pending[request_id] = (decode, on_complete, on_error)
        self._outbound.put((request_id, body))
        return request_id

    def initialize(self) -> None:
        self._submit(init_request(), None, None)

    def request_files(self, on_complete: FilesCallback) -> int:
        return self._submit(get_files_request(), decode_files, on_complete)

    def request_dependency_causes(
        self,
        source: str,
        sink: str,
        reason: RecompileReason,
        on_complete: CausesCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> int:
        return self._submit(
            get_dependency_causes_request(source, sink, reason),
            decode_dependency_causes,
            on_complete,
            on_error,
        )

    def poll_responses(self) -> int:
        """Drain completed responses without blocking and run their callbacks.

        Raises:
            AdapterError: The I/O thread failed, or a body failed to decode
                for a request registered without an error callback.
        """
        delivered = 0
        while True:
            try:
                request_id, payload, error = self._responses.get_nowait()
            except queue.Empty:
                return delivered

            entry = self._pending.pop(request_id, None)
            if error is not None:
                raise error
            if entry is None:
                logger.debug("No pending request for response %d", request_id)
                continue

            decode, on_complete, on_error = entry
            try:
                result = decode(payload) if decode is not None else payload
            except ResponseDecodeError as exc:
                if on_error is None:
                    raise
                on_error(exc)
                delivered += 1
                continue
            if on_complete is not None:
                on_complete(result)
            delivered += 1

    def close(self, timeout: float = 5.0) -> None:
        self._outbound.put(None)
        super().close(timeout=timeout)
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning("I/O thread did not exit within %.1f seconds", timeout)
