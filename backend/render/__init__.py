"""
Snipgen Render Package.

Content renderers invoked by the generation pipeline.
Requires Python 3.11+.
"""

from render.models import RenderResult, Renderer
from render.highlighter import Highlighter, HighlightOptions
from render.snippet_renderer import SnippetRenderer

__all__ = [
    "RenderResult",
    "Renderer",
    "Highlighter",
    "HighlightOptions",
    "SnippetRenderer",
]
