"""Timestamped, colourised console logging for the server."""

from __future__ import annotations

import sys
import time
from typing import TextIO

RESET_ALL = "\x1b[0m"
COLOR_BLACK = "\x1b[30m"
COLOR_RED = "\x1b[31m"
COLOR_GREEN = "\x1b[32m"
COLOR_YELLOW = "\x1b[33m"
COLOR_BLUE = "\x1b[34m"
COLOR_MAGENTA = "\x1b[35m"
COLOR_CYAN = "\x1b[36m"
COLOR_WHITE = "\x1b[37m"

STYLE_BOLD = "\x1b[1m"
STYLE_ITALIC = "\x1b[3m"
STYLE_UNDERLINE = "\x1b[4m"


def _write(text: str, stream: TextIO | None) -> None:
    out = stream if stream is not None else sys.stdout
    out.write(text)
    out.flush()


def _stamp() -> str:
    return f"{STYLE_BOLD}{COLOR_GREEN}[{time.ctime()}] "


def log_message(username: str, message: str, addr: str, stream: TextIO | None = None) -> None:
    """Log a message received from a client."""
    _write(
        f"{_stamp()}{RESET_ALL}{STYLE_BOLD}{username}{COLOR_MAGENTA}@{addr}{RESET_ALL}"
        f"{COLOR_YELLOW} > {message}\n{RESET_ALL}",
        stream,
    )


def log_server_message(
    username: str, message: str, addr: str, stream: TextIO | None = None
) -> None:
    """Log a message the server sent to one client (message carries its newline)."""
    _write(
        f"{_stamp()}{COLOR_CYAN}Server send to {RESET_ALL}{STYLE_BOLD}{username}"
        f"{COLOR_MAGENTA}@{addr}{RESET_ALL}{COLOR_YELLOW} > {message}{RESET_ALL}",
        stream,
    )


def log_broadcast(message: str, stream: TextIO | None = None) -> None:
    """Log a message the server sent to every client."""
    _write(
        f"{_stamp()}{COLOR_CYAN}Server broadcast a message to everyone > {RESET_ALL}"
        f"{COLOR_YELLOW}{message}{RESET_ALL}",
        stream,
    )