"""
Snipgen Syntax Highlighter.

HTML highlighting of snippet sources. Python snippets are tokenised
with Tree-sitter; other languages are escaped without highlighting.
Requires Python 3.11+.
"""

import html
import keyword
from collections.abc import Iterator
from dataclasses import dataclass

import tree_sitter_python as tspython
from tree_sitter import Language, Node, Parser


# Node types that are emitted as a single span without descending
_ATOMIC_TYPES: dict[str, str] = {
    "string": "s",
    "concatenated_string": "s",
    "comment": "c",
    "integer": "m",
    "float": "m",
    "true": "kc",
    "false": "kc",
    "none": "kc",
}

_DEFINITION_CLASSES: dict[str, str] = {
    "function_definition": "nf",
    "class_definition": "nc",
}

_KEYWORDS = frozenset(keyword.kwlist) | frozenset(keyword.softkwlist)


@dataclass(frozen=True)
class HighlightOptions:
    """Presentation options for highlighted HTML."""

    tab_width: int = 8
    line_numbers: bool = False
    base_line: int = 1
    linkable_lines: bool = False


@dataclass(frozen=True)
class _Span:
    start: int
    end: int
    css_class: str


class Highlighter:
    """
    Produces `<pre>` HTML for snippet sources.

    One instance is shared by all workers; a Tree-sitter parser is not
    safe for concurrent use, so each call builds its own.
    """

    def __init__(self, options: HighlightOptions | None = None) -> None:
        self._options = options or HighlightOptions()
        self._language = Language(tspython.language())

    def highlight(self, source: str, extension: str) -> str:
        """
        Highlight source text.

        Args:
            source: Decoded snippet source
            extension: File extension without the dot, e.g. "py"

        Returns:
            HTML string
        """
        source = source.expandtabs(self._options.tab_width)
        if extension == "py":
            body = self._highlight_python(source)
        else:
            body = html.escape(source, quote=False)
        if self._options.line_numbers:
            body = self._number_lines(body)
        return f'<pre class="snip"><code>{body}</code></pre>'

    def _highlight_python(self, source: str) -> str:
        content = source.encode("utf-8")
        tree = Parser(self._language).parse(content)
        spans = list(self._collect_spans(tree.root_node))

        parts: list[str] = []
        position = 0
        for span in spans:
            parts.append(_escape(content[position:span.start]))
            parts.append(
                f'<span class="{span.css_class}">'
                f"{_escape(content[span.start:span.end])}</span>"
            )
            position = span.end
        parts.append(_escape(content[position:]))
        return "".join(parts)

    def _collect_spans(self, root: Node) -> Iterator[_Span]:
        """Yield token spans in source order."""
        stack = [root]
        while stack:
            node = stack.pop()
            css_class = self._classify(node)
            if css_class is not None:
                yield _Span(node.start_byte, node.end_byte, css_class)
                continue
            # Reverse so children pop in source order
            stack.extend(reversed(node.children))

    def _classify(self, node: Node) -> str | None:
        if node.type in _ATOMIC_TYPES:
            return _ATOMIC_TYPES[node.type]
        if node.child_count:
            return None
        if not node.is_named and node.type in _KEYWORDS:
            return "k"
        if node.type == "identifier" and node.parent is not None:
            css_class = _DEFINITION_CLASSES.get(node.parent.type)
            name = node.parent.child_by_field_name("name")
            if css_class and name is not None and name.start_byte == node.start_byte:
                return css_class
        return None

    def _number_lines(self, body: str) -> str:
        lines = body.split("\n")
        if lines and lines[-1] == "":
            lines.pop()
        numbered: list[str] = []
        for offset, line in enumerate(lines):
            number = self._options.base_line + offset
            if self._options.linkable_lines:
                gutter = (
                    f'<span class="ln" id="L{number}">'
                    f'<a href="#L{number}">{number}</a></span>'
                )
            else:
                gutter = f'<span class="ln">{number}</span>'
            numbered.append(f'<span class="line">{gutter}{line}</span>')
        return "\n".join(numbered) + "\n"


def _escape(data: bytes) -> str:
    return html.escape(data.decode("utf-8", errors="replace"), quote=False)
