"""Line framing for the analysis-server pipe.

Every message is one newline-terminated line::

    C[<id>]:<json>     client -> server
    S[<id>]:<json>     server -> client

A response is accepted only when its id equals the id of the request being
awaited. Anything else read from the pipe (blank lines, log noise, stale
responses) is discarded and reading continues.
"""

from __future__ import annotations

import json
import logging
import re
from typing import IO, Any, Callable, TypeVar

from ..exceptions import AdapterIOError, ResponseDecodeError
from ..models import DependencyCause, FileRecord, RecompileReason

logger = logging.getLogger(__name__)

T = TypeVar("T")

RESPONSE_PATTERN = re.compile(r"^S\[(\d+)\]:(.+)$")


def encode_request(request_id: int, body: dict[str, Any]) -> str:
    """Frame a request body as a single protocol line."""
    return f"C[{request_id}]:{json.dumps(body, separators=(',', ':'))}\n"


def parse_response_line(line: str) -> tuple[int, str] | None:
    """Split a response line into ``(id, payload)``.

    Returns None for lines that are not a response header.
    """
    match = RESPONSE_PATTERN.match(line.rstrip("\r\n"))
    if match is None:
        return None
    return int(match.group(1)), match.group(2)


def read_response(stream: IO[str], request_id: int) -> str:
    """Read lines from ``stream`` until the response for ``request_id`` arrives.

    Raises:
        AdapterIOError: The stream failed or hit end-of-file first.
    """
    while True:
        try:
            line = stream.readline()
        except (OSError, ValueError) as exc:
            raise AdapterIOError(str(exc), request_id=request_id) from exc

        if line == "":
            raise AdapterIOError("server closed its output stream", request_id=request_id)

        parsed = parse_response_line(line)
        if parsed is None:
            if line.strip():
                logger.debug("Discarding non-response line: %r", line[:200])
            continue

        response_id, payload = parsed
        if response_id != request_id:
            logger.debug(
                "Discarding response %d while waiting for %d", response_id, request_id
            )
            continue

        return payload


def write_request(stream: IO[str], request_id: int, body: dict[str, Any]) -> None:
    """Write one framed request and flush it to the server."""
    try:
        stream.write(encode_request(request_id, body))
        stream.flush()
    except (OSError, ValueError) as exc:
        raise AdapterIOError(str(exc), request_id=request_id) from exc
    logger.debug("Sent request %d (%s)", request_id, body.get("type"))


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------


def init_request() -> dict[str, Any]:
    return {"type": "init"}


def get_files_request() -> dict[str, Any]:
    return {"type": "get_files"}


def get_dependency_causes_request(
    source: str, sink: str, reason: RecompileReason | str
) -> dict[str, Any]:
    return {
        "type": "get_dependency_causes",
        "source": source,
        "sink": sink,
        "reason": RecompileReason(reason).value,
    }


# ---------------------------------------------------------------------------
# Response bodies
# ---------------------------------------------------------------------------


def _decode_list(request_type: str, payload: str, build: Callable[[dict], T]) -> list[T]:
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise ResponseDecodeError(request_type, f"invalid JSON: {exc}", payload) from exc

    if not isinstance(data, list):
        raise ResponseDecodeError(
            request_type, f"expected an array, got {type(data).__name__}", payload
        )

    try:
        return [build(item) for item in data]
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        reason = f"missing field {exc}" if isinstance(exc, KeyError) else str(exc)
        raise ResponseDecodeError(request_type, reason, payload) from exc


def decode_files(payload: str) -> list[FileRecord]:
    """Decode a ``get_files`` response body."""
    return _decode_list("get_files", payload, FileRecord.from_dict)


def decode_dependency_causes(payload: str) -> list[DependencyCause]:
    """Decode a ``get_dependency_causes`` response body."""
    return _decode_list("get_dependency_causes", payload, DependencyCause.from_dict)
