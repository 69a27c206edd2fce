"""
Snipgen Generate Package.

Event handling and the run controller for incremental snippet builds.
Requires Python 3.11+.
"""

from generate.errors import (
    ArtifactWriteError,
    ConfigurationError,
    FatalError,
    FileGenerationError,
    GenerationFailedError,
    OutputCollisionError,
    RenderError,
    SnipgenError,
)
from generate.models import (
    EventKind,
    FileEvent,
    GenerationEvent,
    Mode,
    RunReport,
    Settlement,
)

__all__ = [
    # Errors
    "ArtifactWriteError",
    "ConfigurationError",
    "FatalError",
    "FileGenerationError",
    "GenerationFailedError",
    "OutputCollisionError",
    "RenderError",
    "SnipgenError",
    # Models
    "EventKind",
    "FileEvent",
    "GenerationEvent",
    "Mode",
    "RunReport",
    "Settlement",
]
