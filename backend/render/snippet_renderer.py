"""
Snipgen Snippet Renderer.

Turns a snippet source into a Python module exposing its highlighted HTML.
Requires Python 3.11+.
"""

import time
from pathlib import Path

from generate.errors import RenderError
from generate.paths import component_name, module_name, strip_code_marker, text_path
from render.highlighter import Highlighter, HighlightOptions
from render.models import RenderResult
from utils.logger import LoggerMixin

GENERATED_HEADER = "# Code generated by snipgen - DO NOT EDIT.\n\n"


class SnippetRenderer(LoggerMixin):
    """
    Default renderer used by the command line tool.

    The generated module defines one function, named after the module,
    returning the highlighted HTML. With text extraction the HTML lives in
    the sibling `_code.txt` artifact and is read at call time, so edits
    to the snippet leave the module itself unchanged while watching.
    """

    def __init__(
        self,
        options: HighlightOptions | None = None,
        version: str | None = None,
    ) -> None:
        """
        Initialize the renderer.

        Args:
            options: Highlighting options
            version: Tool version written into the header, omitted when None
        """
        self._highlighter = Highlighter(options)
        self._version = version

    def render(
        self, path: Path, content: bytes, *, extract_text: bool = False
    ) -> RenderResult:
        """
        Render a snippet source.

        Args:
            path: Source file path
            content: Raw source bytes
            extract_text: Read the HTML from the text artifact at runtime

        Returns:
            RenderResult with module source and, if extracted, the HTML
        """
        start_time = time.perf_counter()
        try:
            source = content.decode("utf-8")
        except UnicodeDecodeError as e:
            raise RenderError(f"{path.name} is not valid UTF-8: {e}") from e

        display_name = strip_code_marker(path.name)
        extension = Path(display_name).suffix.lstrip(".")
        markup = self._highlighter.highlight(source, extension)

        function_name = module_name(path)
        lines = [GENERATED_HEADER]
        if self._version:
            lines.append(f"# snipgen: version: {self._version}\n\n")
        lines.append(f'"""Highlighted snippet generated from {path.name}."""\n\n')

        if extract_text:
            lines.append("from pathlib import Path\n\n")
            lines.append(f"SOURCE = {path.name!r}\n")
            lines.append(f"COMPONENT = {component_name(display_name)!r}\n")
            lines.append(
                f"_TEXT_PATH = Path(__file__).with_name({text_path(path).name!r})\n\n\n"
            )
            lines.append(f"def {function_name}() -> str:\n")
            lines.append(f'    """Return the highlighted HTML for {display_name}."""\n')
            lines.append('    return _TEXT_PATH.read_text(encoding="utf-8")\n')
            text = markup
        else:
            lines.append(f"SOURCE = {path.name!r}\n")
            lines.append(f"COMPONENT = {component_name(display_name)!r}\n")
            lines.append(f"_HTML = {markup!r}\n\n\n")
            lines.append(f"def {function_name}() -> str:\n")
            lines.append(f'    """Return the highlighted HTML for {display_name}."""\n')
            lines.append("    return _HTML\n")
            text = ""

        self.log.debug(
            "rendered_snippet",
            path=str(path),
            extension=extension or None,
            elapsed_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )
        return RenderResult(output="".join(lines).encode("utf-8"), text=text)
