"""Analysis server process lifecycle.

Handles:
- Spawning the server with piped stdin/stdout
- Capturing its diagnostic (stderr) stream without risking a full pipe
- Non-blocking exit detection
- Shutdown (close stdin, terminate, kill after timeout)
"""

from __future__ import annotations

import logging
import subprocess
import tempfile
from pathlib import Path
from typing import IO, Optional, Sequence

from ..exceptions import AdapterIOError

logger = logging.getLogger(__name__)

SERVER_COMMAND_HINT = "Pass --server or set server_command in recompile-explorer.toml"


class ServerProcess:
    """A running analysis server and its pipe handles.

    stderr is spooled to an anonymous temporary file so a chatty server can
    never block on a full diagnostic pipe; it is read back only after exit.
    """

    def __init__(self, popen: subprocess.Popen, diagnostics: Optional[IO[bytes]] = None):
        self._popen = popen
        self._diagnostics = diagnostics
        self._exit_output: Optional[str] = None

    @property
    def stdin(self) -> IO[str]:
        assert self._popen.stdin is not None
        return self._popen.stdin

    @property
    def stdout(self) -> IO[str]:
        assert self._popen.stdout is not None
        return self._popen.stdout

    @property
    def pid(self) -> int:
        return self._popen.pid

    @property
    def returncode(self) -> Optional[int]:
        return self._popen.returncode

    def poll_exit(self, timeout: float = 0.0) -> Optional[str]:
        """Return captured diagnostics if the server has exited, else None.

        With the default timeout this never blocks. A positive ``timeout``
        waits that long for the exit, for callers that just saw the server
        close its output and expect it to be reaped shortly. Once the process
        is seen dead the same text is returned on every later call.
        """
        if self._exit_output is not None:
            return self._exit_output
        if self._popen.poll() is None:
            if timeout <= 0:
                return None
            try:
                self._popen.wait(timeout=timeout)
            except subprocess.TimeoutExpired:
                return None

        self._exit_output = self._read_diagnostics()
        logger.warning(
            "Analysis server (pid %d) exited with code %s", self.pid, self._popen.returncode
        )
        return self._exit_output

    def _read_diagnostics(self) -> str:
        if self._diagnostics is None:
            return ""
        try:
            self._diagnostics.seek(0)
            return self._diagnostics.read().decode("utf-8", errors="replace")
        except (OSError, ValueError) as exc:
            logger.debug("Could not read server diagnostics: %s", exc)
            return ""

    @staticmethod
    def _close_handle(handle: Optional[IO[str]]) -> None:
        if handle is None:
            return
        try:
            handle.close()
        except (OSError, ValueError):
            # Broken pipe on flush: the server is already gone
            pass

    def shutdown(self, timeout: float = 5.0) -> Optional[int]:
        """Stop the server. Safe to call more than once.

        stdout is closed only after the process is gone, so a reader blocked
        on it sees end-of-file instead of holding the stream lock forever.
        """
        self._close_handle(self._popen.stdin)

        if self._popen.poll() is None:
            self._popen.terminate()
            try:
                self._popen.wait(timeout=timeout)
            except subprocess.TimeoutExpired:
                logger.warning(
                    "Analysis server (pid %d) ignored SIGTERM for %.1fs, killing",
                    self.pid,
                    timeout,
                )
                self._popen.kill()
                self._popen.wait()

        self._close_handle(self._popen.stdout)
        if self._exit_output is None:
            self._exit_output = self._read_diagnostics()
        if self._diagnostics is not None:
            self._diagnostics.close()
        return self._popen.returncode


def spawn_server(command: Sequence[str], cwd: Optional[str] = None) -> ServerProcess:
    """Start the analysis server.

    Raises:
        AdapterIOError: The command could not be started.
    """
    if not command:
        raise AdapterIOError("empty server command", hint=SERVER_COMMAND_HINT)

    workdir = str(Path(cwd).resolve()) if cwd else None
    diagnostics = tempfile.TemporaryFile()
    try:
        popen = subprocess.Popen(
            list(command),
            cwd=workdir,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=diagnostics,
            text=True,
            encoding="utf-8",
            errors="replace",
            bufsize=1,
        )
    except OSError as exc:
        diagnostics.close()
        raise AdapterIOError(
            f"could not start {command[0]!r}: {exc}", hint=SERVER_COMMAND_HINT
        ) from exc

    logger.info("Started analysis server %r (pid %d) in %s", list(command), popen.pid, workdir)
    return ServerProcess(popen, diagnostics)
