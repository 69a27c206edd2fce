"""
Snipgen Path Filter.

Decides which filesystem paths are snippet sources or extracted-text
artifacts, and derives the names of generated outputs. Everything here
is pure and cheap; it runs on every raw filesystem notification.
Requires Python 3.11+.
"""

import fnmatch
import re
from pathlib import Path

CODE_MARKER = ".code."
TEXT_SUFFIX = "_code.txt"
OUTPUT_SUFFIX = "_snip.py"

_NON_IDENTIFIER = re.compile(r"[^0-9A-Za-z_]")


def is_code_file(path: str | Path) -> bool:
    """Check if the file name carries the `.code.` marker before an extension."""
    name = Path(path).name
    index = name.rfind(CODE_MARKER)
    return index != -1 and index < len(name) - len(CODE_MARKER)


def is_text_file(path: str | Path) -> bool:
    """Check if the path is an extracted-text artifact."""
    return str(path).endswith(TEXT_SUFFIX)


def should_include(path: str | Path) -> bool:
    """Check if the walker or watcher should emit an event for this path."""
    return is_code_file(path) or is_text_file(path)


def is_ignored(path: str | Path, ignore_patterns: list[str]) -> bool:
    """Check if any component of the path matches an ignore pattern."""
    parts = Path(path).parts
    for pattern in ignore_patterns:
        for part in parts:
            if part == pattern or fnmatch.fnmatch(part, pattern):
                return True
    return False


def strip_code_marker(name: str) -> str:
    """Remove the `.code` marker: `hello.code.go` -> `hello.go`."""
    index = name.rfind(CODE_MARKER)
    if index == -1:
        return name
    return name[:index] + name[index + len(".code"):]


def module_name(path: str | Path) -> str:
    """Derive the generated module stem: `hello.code.go` -> `hello_go`."""
    name = _NON_IDENTIFIER.sub("_", strip_code_marker(Path(path).name))
    if not name.isidentifier():
        name = f"snip_{name}"
    return name


def component_name(name: str) -> str:
    """
    Derive a CamelCase component name from a file name.

    Every run of letters and digits starts with an upper-case
    character and everything else is dropped: `hello_0.go` -> `Hello0Go`.
    """
    result: list[str] = []
    first_letter = True
    for char in name:
        if char.isalnum():
            result.append(char.upper() if first_letter else char)
            first_letter = False
        else:
            first_letter = True
    return "".join(result)


def output_path(source: str | Path) -> Path:
    """Path of the generated module for a snippet source."""
    source = Path(source)
    return source.with_name(module_name(source) + OUTPUT_SUFFIX)


def text_path(source: str | Path) -> Path:
    """Path of the extracted-text artifact for a snippet source."""
    source = Path(source)
    return source.with_name(module_name(source) + TEXT_SUFFIX)


def colliding_sources(source: str | Path) -> list[Path]:
    """
    Other snippet sources in the same directory sharing the source's outputs.

    Distinct file names can sanitise to the same module name, e.g.
    `a-b.code.go` and `a_b.code.go`.
    """
    source = Path(source)
    target = output_path(source)
    try:
        siblings = sorted(source.parent.iterdir())
    except OSError:
        return []
    return [
        sibling
        for sibling in siblings
        if sibling.name != source.name
        and is_code_file(sibling)
        and output_path(sibling) == target
    ]
