"""
Snipgen Renderer Models.

The contract between the generation pipeline and a content renderer.
Requires Python 3.11+.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol


@dataclass(frozen=True)
class RenderResult:
    """Output of rendering one snippet source."""

    output: bytes
    text: str = ""  # Extracted literal text, empty when not extracted


class Renderer(Protocol):
    """Transforms one snippet source into generated output."""

    def render(
        self, path: Path, content: bytes, *, extract_text: bool = False
    ) -> RenderResult:
        """
        Render a snippet.

        Args:
            path: Source file path
            content: Raw source bytes
            extract_text: Move literal text out of the output into `text`

        Returns:
            RenderResult with output bytes and optional extracted text

        Raises:
            RenderError: If the source cannot be rendered
        """
        ...
