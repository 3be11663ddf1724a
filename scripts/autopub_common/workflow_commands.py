"""Emit GitHub Actions workflow commands for the job log.

The runner parses lines such as ``::error title=...::message`` written to the
process streams and turns them into annotations. Every helper here writes to
stderr so stdout stays free for the wrapped tool's own output.
"""

from __future__ import annotations

import contextlib
import sys
import typing as typ

__all__ = ["add_mask", "error", "group", "info", "notice", "warning"]


def _escape_data(value: str) -> str:
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def _escape_property(value: str) -> str:
    return _escape_data(value).replace(":", "%3A").replace(",", "%2C")


def _emit(command: str, message: str, *, title: str | None = None) -> None:
    properties = f" title={_escape_property(title)}" if title else ""
    print(f"::{command}{properties}::{_escape_data(message)}", file=sys.stderr)


def error(message: str, *, title: str | None = None) -> None:
    """Report ``message`` as an error annotation."""
    _emit("error", message, title=title)


def warning(message: str, *, title: str | None = None) -> None:
    """Report ``message`` as a warning annotation."""
    _emit("warning", message, title=title)


def notice(message: str, *, title: str | None = None) -> None:
    """Report ``message`` as a notice annotation."""
    _emit("notice", message, title=title)


def info(message: str) -> None:
    """Print a plain progress line."""
    print(message, file=sys.stderr)


def add_mask(value: str) -> None:
    """Ask the runner to redact ``value`` from all later log output."""
    if value:
        print(f"::add-mask::{value}", file=sys.stderr)


@contextlib.contextmanager
def group(title: str) -> typ.Iterator[None]:
    """Fold everything logged inside the block under ``title``."""
    print(f"::group::{title}", file=sys.stderr)
    try:
        yield
    finally:
        print("::endgroup::", file=sys.stderr)
