"""
Snipgen Command Line Interface.

Usage:
    snipgen generate --path ./snippets --watch
    snipgen generate -f hello.code.go --stdout
    snipgen version

Requires Python 3.11+.
"""

import argparse
import signal
import sys
import threading
from pathlib import Path
from typing import TextIO

from generate.controller import Generate, GenerateOptions
from generate.errors import ConfigurationError, SnipgenError
from generate.writers import stream_writer
from render.highlighter import HighlightOptions
from render.snippet_renderer import SnippetRenderer
from utils.config import get_settings
from utils.logger import configure_logging, get_logger

EX_USAGE = 64

USAGE = """usage: snipgen <command> [<args>...]

snipgen - generate syntax highlighted modules from code snippets

commands:
  generate   Generates highlighted modules from *.code.* snippet files
  version    Prints the version
"""


def build_generate_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the generate command."""
    settings = get_settings()
    parser = argparse.ArgumentParser(
        prog="snipgen generate",
        description="Generates highlighted modules from code snippets.",
    )
    parser.add_argument("--path", type=Path, default=Path("."), help="Generate code for all files in path")
    parser.add_argument("-f", dest="file_name", type=Path, help="Generate code for a single file")
    parser.add_argument("--stdout", action="store_true", help="Print to stdout, only with -f")
    parser.add_argument("--watch", action="store_true", help="Watch the path and regenerate on change")
    parser.add_argument("-w", dest="worker_count", type=int, default=None, help="Number of workers")
    parser.add_argument("--tab-width", type=int, default=settings.render.tab_width)
    parser.add_argument("--line-numbers", action="store_true", default=settings.render.line_numbers)
    parser.add_argument("--base-line", type=int, default=settings.render.base_line)
    parser.add_argument("--linkable-lines", action="store_true", default=settings.render.linkable_lines)
    parser.add_argument("--lazy", action="store_true", default=None, help="Only regenerate outputs older than their source")
    parser.add_argument(
        "--keep-orphaned-files",
        action="store_true",
        default=None,
        help="Keep generated files whose source was removed",
    )
    parser.add_argument("-v", dest="verbose", action="store_true", help="Set log level to debug")
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        default=None,
        help="Log verbosity",
    )
    return parser


def generate_command(args: list[str], stdout: TextIO, stderr: TextIO) -> int:
    """Run the generate command and return the exit code."""
    settings = get_settings()
    parser = build_generate_parser()
    try:
        ns = parser.parse_args(args)
    except SystemExit as e:
        return 0 if e.code == 0 else EX_USAGE

    configure_logging("debug" if ns.verbose else ns.log_level)
    log = get_logger("snipgen.cli")

    if ns.stdout and ns.file_name is None:
        stderr.write("only a single file can be output to stdout, add -f to choose it\n")
        return EX_USAGE

    renderer = SnippetRenderer(
        HighlightOptions(
            tab_width=ns.tab_width,
            line_numbers=ns.line_numbers,
            base_line=ns.base_line,
            linkable_lines=ns.linkable_lines,
        ),
        version=settings.app_version if settings.render.include_version else None,
    )
    options = GenerateOptions.from_settings(
        settings,
        path=ns.path,
        file_name=ns.file_name,
        watch=ns.watch,
        worker_count=ns.worker_count,
        lazy=ns.lazy,
        keep_orphaned_files=ns.keep_orphaned_files,
    )
    writer = stream_writer(stdout.buffer) if ns.stdout else None

    stop = threading.Event()

    def request_stop(signum: int, frame: object) -> None:
        stderr.write("Stopping...\n")
        stop.set()

    previous = signal.signal(signal.SIGINT, request_stop)
    try:
        report = Generate(options, renderer, writer=writer).run(stop)
    except ConfigurationError as e:
        stderr.write(f"{e}\n")
        return EX_USAGE
    except SnipgenError as e:
        log.debug("command_failed", error=str(e))
        stderr.write(f"(✗) Command failed: {e}\n")
        return 1
    finally:
        signal.signal(signal.SIGINT, previous)

    log.debug("command_succeeded", updates=report.updates, walks=report.walks)
    return 0


def run(argv: list[str], stdout: TextIO = sys.stdout, stderr: TextIO = sys.stderr) -> int:
    """Dispatch a command line and return the exit code."""
    if len(argv) < 2:
        stderr.write(USAGE)
        return EX_USAGE
    command = argv[1]
    if command == "generate":
        return generate_command(argv[2:], stdout, stderr)
    if command in ("version", "--version"):
        stdout.write(f"{get_settings().app_version}\n")
        return 0
    if command in ("help", "-help", "--help", "-h"):
        stdout.write(USAGE)
        return 0
    stderr.write(USAGE)
    return EX_USAGE


def main() -> None:
    """Console script entry point."""
    sys.exit(run(sys.argv))
