"""
Snipgen Artifact Writers.

Requires Python 3.11+.
"""

import threading
from collections.abc import Callable
from pathlib import Path
from typing import BinaryIO

ArtifactWriter = Callable[[Path, bytes], None]


def file_writer(path: Path, contents: bytes) -> None:
    """Write an artifact to the filesystem."""
    path.write_bytes(contents)


def stream_writer(stream: BinaryIO) -> ArtifactWriter:
    """
    Create a writer sending every artifact to one stream.

    Only meaningful when generating a single file, e.g. to stdout.
    """
    lock = threading.Lock()

    def write(_path: Path, contents: bytes) -> None:
        with lock:
            stream.write(contents)
            stream.flush()

    return write
