"""
Recompile Explorer - browse a codebase's recompilation-dependency graph.

Talks to an analysis server over a line protocol on a subprocess pipe and
lets an operator drill from a file list into the files that recompile when
it changes, walk the chain of links that explains each one, and read the
source snippets behind every link.
"""

__version__ = "0.1.0"

from .models import (
    CodeSnippet,
    DependencyCause,
    DependencyLink,
    DependencyType,
    FileRecord,
    RecompileDependency,
    RecompileReason,
)
from .session import ExplorerSession, connect

__all__ = [
    "ExplorerSession",
    "connect",
    "FileRecord",
    "RecompileDependency",
    "DependencyLink",
    "DependencyCause",
    "CodeSnippet",
    "RecompileReason",
    "DependencyType",
]
