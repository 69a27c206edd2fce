"""
Snipgen Pipeline Data Models.

Events and reports flowing through the generation pipeline.
Requires Python 3.11+.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class EventKind(str, Enum):
    """Kind of filesystem change carried by a FileEvent."""

    CREATE = "create"
    WRITE = "write"
    REMOVE = "remove"


class Mode(str, Enum):
    """Pipeline mode for the duration of a run."""

    WATCH = "watch"
    SETTLING = "settling"
    PRODUCTION = "production"


@dataclass(frozen=True)
class FileEvent:
    """A single filesystem change, consumed exactly once by the handler."""

    path: Path
    kind: EventKind = EventKind.CREATE

    @property
    def is_removal(self) -> bool:
        return self.kind is EventKind.REMOVE


@dataclass(frozen=True)
class GenerationEvent:
    """Outcome of handling one FileEvent where at least one output changed."""

    source_event: FileEvent
    code_changed: bool = False
    text_changed: bool = False


@dataclass(frozen=True)
class Settlement:
    """A burst of generation events coalesced after the quiet period."""

    code_changed: bool
    text_changed: bool
    events: int
    interactive: bool


@dataclass
class RunReport:
    """Summary of a completed run."""

    error_count: int = 0
    files_with_errors: int = 0
    updates: int = 0
    settles: int = 0
    walks: int = 0
    duration: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error_count == 0
