"""Snipgen exception hierarchy.

All pipeline exceptions inherit from SnipgenError so callers can
catch them in one clause and map them to an exit status.
"""

from pathlib import Path

from generate.models import RunReport


class SnipgenError(Exception):
    """Base exception for all snipgen errors."""


class ConfigurationError(SnipgenError):
    """Invalid combination of run options."""


class RenderError(SnipgenError):
    """The renderer could not transform a source file."""


class FileGenerationError(SnipgenError):
    """Regenerating a single source file failed."""

    def __init__(self, path: Path, message: str) -> None:
        super().__init__(f"failed to generate code for {str(path)!r}: {message}")
        self.path = path


class ArtifactWriteError(SnipgenError):
    """An output artifact could not be persisted."""

    def __init__(self, path: Path, message: str) -> None:
        super().__init__(f"failed to write {str(path)!r}: {message}")
        self.path = path


class OutputCollisionError(SnipgenError):
    """Several sources would write the same generated artifacts."""

    def __init__(self, path: Path, others: list[Path]) -> None:
        names = ", ".join(repr(other.name) for other in others)
        super().__init__(f"output {path.name!r} is also generated from {names}")
        self.path = path
        self.others = others


class FatalError(SnipgenError):
    """Walker or watcher setup failed; the whole run is aborted."""


class GenerationFailedError(SnipgenError):
    """The run finished but some files could not be generated."""

    def __init__(self, error_count: int, report: RunReport | None = None) -> None:
        super().__init__(f"generation completed with {error_count} errors")
        self.error_count = error_count
        self.report = report
