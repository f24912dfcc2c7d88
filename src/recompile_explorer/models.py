"""Data model for the recompile-dependency graph.

Records are built from the analysis server's JSON responses and are
immutable for the session; a refreshed listing replaces them wholesale.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator


class RecompileReason(str, Enum):
    """Why a dependent file must recompile when its anchor changes."""

    COMPILE = "compile"
    EXPORTS_THEN_COMPILE = "exports_then_compile"
    EXPORTS = "exports"
    COMPILE_THEN_RUNTIME = "compile_then_runtime"

    def describe(self) -> str:
        return _REASON_DESCRIPTIONS[self]


class DependencyType(str, Enum):
    """Kind of a single hop in a dependency chain."""

    COMPILE = "compile"
    EXPORTS = "exports"
    RUNTIME = "runtime"

    def describe(self) -> str:
        """Phrase used between the two ends of a link ("a <phrase> b")."""
        return _TYPE_DESCRIPTIONS[self]


_REASON_DESCRIPTIONS = {
    RecompileReason.COMPILE: "compile-time dependency",
    RecompileReason.EXPORTS_THEN_COMPILE: "exports dependency followed by a compile-time dependency",
    RecompileReason.EXPORTS: "exports dependency",
    RecompileReason.COMPILE_THEN_RUNTIME: "compile-time dependency reached through runtime dependencies",
}

_TYPE_DESCRIPTIONS = {
    DependencyType.COMPILE: "has a compile-time dependency on",
    DependencyType.EXPORTS: "has an exports dependency on",
    DependencyType.RUNTIME: "has a runtime dependency on",
}


def _span(value: Any, name: str) -> tuple[int, int]:
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise ValueError(f"{name} must be a two-element array, got {value!r}")
    start, end = value
    if isinstance(start, bool) or isinstance(end, bool):
        raise ValueError(f"{name} must contain integers, got {value!r}")
    if not isinstance(start, int) or not isinstance(end, int):
        raise ValueError(f"{name} must contain integers, got {value!r}")
    if start < 0 or end < start:
        raise ValueError(f"{name} is not a valid inclusive range: {value!r}")
    return (start, end)


def _text(data: dict, key: str) -> str:
    value = data[key]
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string, got {type(value).__name__}")
    return value


def _array(data: dict, key: str) -> list:
    value = data[key]
    if not isinstance(value, list):
        raise ValueError(f"{key} must be an array, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class DependencyLink:
    """One hop (source -> sink) in a causal chain. Addressed by position."""

    source: str
    sink: str
    type: DependencyType

    def to_dict(self) -> dict:
        return {"source": self.source, "sink": self.sink, "type": self.type.value}

    @classmethod
    def from_dict(cls, data: dict) -> DependencyLink:
        return cls(
            source=_text(data, "source"),
            sink=_text(data, "sink"),
            type=DependencyType(data["type"]),
        )

    @classmethod
    def from_json(cls, value: Any) -> DependencyLink:
        """Accept the object form or the compact ``[type, source, sink]`` array."""
        if isinstance(value, (list, tuple)):
            if len(value) != 3:
                raise ValueError(f"dependency link must have 3 elements, got {value!r}")
            dependency_type, source, sink = value
            return cls.from_dict({"type": dependency_type, "source": source, "sink": sink})
        return cls.from_dict(value)


@dataclass(frozen=True)
class RecompileDependency:
    """A file that recompiles when the anchor changes, with its explanatory chain."""

    id: str
    path: str
    reason: RecompileReason
    dependency_chain: tuple[DependencyLink, ...] = ()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "path": self.path,
            "reason": self.reason.value,
            "dependency_chain": [link.to_dict() for link in self.dependency_chain],
        }

    @classmethod
    def from_dict(cls, data: dict) -> RecompileDependency:
        return cls(
            id=_text(data, "id"),
            path=_text(data, "path"),
            reason=RecompileReason(data["reason"]),
            dependency_chain=tuple(
                DependencyLink.from_json(link) for link in _array(data, "dependency_chain")
            ),
        )


@dataclass(frozen=True)
class FileRecord:
    """One source file plus the files that recompile when it changes."""

    path: str
    dependents: tuple[RecompileDependency, ...] = ()

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "recompile_dependencies": [dep.to_dict() for dep in self.dependents],
        }

    @classmethod
    def from_dict(cls, data: dict) -> FileRecord:
        return cls(
            path=_text(data, "path"),
            dependents=tuple(
                RecompileDependency.from_dict(dep)
                for dep in _array(data, "recompile_dependencies")
            ),
        )


@dataclass(frozen=True)
class CodeSnippet:
    """A block of source with an inclusive highlighted range.

    ``lines_span`` is the absolute line range covered by ``content``;
    ``highlight`` must fall inside it.
    """

    content: str
    highlight: tuple[int, int]
    lines_span: tuple[int, int]

    def __post_init__(self) -> None:
        lo, hi = self.lines_span
        if not (lo <= self.highlight[0] and self.highlight[1] <= hi):
            raise ValueError(
                f"highlight {self.highlight} is outside lines_span {self.lines_span}"
            )

    def numbered_lines(self) -> Iterator[tuple[int, str, bool]]:
        """Yield ``(line_number, text, highlighted)`` for each content line."""
        first = self.lines_span[0]
        for offset, text in enumerate(self.content.split("\n")):
            number = first + offset
            yield number, text, self.highlight[0] <= number <= self.highlight[1]

    def to_dict(self) -> dict:
        return {
            "content": self.content,
            "highlight": list(self.highlight),
            "lines_span": list(self.lines_span),
        }

    @classmethod
    def from_dict(cls, data: dict) -> CodeSnippet:
        return cls(
            content=_text(data, "content"),
            highlight=_span(data["highlight"], "highlight"),
            lines_span=_span(data["lines_span"], "lines_span"),
        )


@dataclass(frozen=True)
class DependencyCause:
    """Source snippets explaining why ``source`` depends on ``sink``."""

    source: str
    sink: str
    type: DependencyType
    snippets: tuple[CodeSnippet, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "source": self.source,
            "sink": self.sink,
            "type": self.type.value,
            "snippets": [snippet.to_dict() for snippet in self.snippets],
        }

    @classmethod
    def from_dict(cls, data: dict) -> DependencyCause:
        return cls(
            source=_text(data, "source"),
            sink=_text(data, "sink"),
            type=DependencyType(data["type"]),
            snippets=tuple(CodeSnippet.from_dict(s) for s in _array(data, "snippets")),
        )
