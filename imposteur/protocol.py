"""Line protocol shared by the game server and client, plus game limits."""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_PORT = 5000
DEFAULT_MAX_PLAYERS = 10
DEFAULT_MAX_ROUNDS = 3
DEFAULT_TIMING_PLAY = 30
DEFAULT_TIMING_CHOICE = 60
BUFFER_SIZE = 256
MAX_PLAYERS = 10
MAX_USERNAME = 16
MIN_USERNAME = 3
MAX_WORD = 32
MIN_PLAYERS = 3
MAX_ADDR = 64
TIMING_BETWEEN_GAMES = 60
MAX_PARAMS = 10


@dataclass
class Command:
    """A parsed protocol line: ``/command param:param:...``."""

    command: str
    params: list[str] = field(default_factory=list)

    def describe(self) -> str:
        """Return a human-readable, multi-line description of the command."""
        lines = [f"Command: {self.command}", f"Params ({len(self.params)}):"]
        lines.extend(f"  - {param}" for param in self.params)
        return "\n".join(lines) + "\n"


def parse_command(text: str, max_params: int = MAX_PARAMS) -> Command | None:
    """Parse a protocol line; return None if it does not start with '/'.

    The command is everything up to the first space. The rest is split on
    ':' with surrounding spaces trimmed; empty parameters are dropped and at
    most ``max_params`` are kept.
    """
    if not text or not text.startswith("/"):
        return None

    name, _, rest = text.partition(" ")
    command = Command(name)
    if not rest or rest.isspace():
        return command

    for segment in rest.split(":"):
        if len(command.params) >= max_params:
            break
        segment = segment.strip(" ")
        if segment:
            command.params.append(segment)
    return command


def format_message(command: str, *args: object) -> str:
    """Build a newline-terminated protocol line from a command and parameters."""
    if not args:
        return f"{command}\n"
    return f"{command} {':'.join(str(arg) for arg in args)}\n"