"""Connected players and the registry that holds them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, TextIO

from .console import log_broadcast
from .protocol import MAX_USERNAME


def _name_key(name: str) -> str:
    return name[: MAX_USERNAME - 1].lower()


@dataclass(eq=False)
class Player:
    """A client connection and its per-game state."""

    connection: Any
    addr: str = ""
    username: str = ""
    username_set: bool = False
    secret_word: str = ""
    submitted_words: list[str] = field(default_factory=list)
    vote: str = ""
    score: int = 0
    ready: bool = False

    def send(self, message: str) -> None:
        """Send a protocol message; send failures are ignored."""
        try:
            self.connection.sendall(message.encode("utf-8"))
        except OSError:
            pass

    def clear_round(self, max_rounds: int) -> None:
        """Forget the secret word, submitted words and vote of the last game."""
        self.secret_word = ""
        self.submitted_words = [""] * max_rounds
        self.vote = ""


class PlayerRegistry:
    """Ordered collection of players; the newest player comes first."""

    def __init__(self, log_stream: TextIO | None = None) -> None:
        self._players: list[Player] = []
        self.log_stream = log_stream

    def __iter__(self) -> Iterator[Player]:
        return iter(list(self._players))

    def __len__(self) -> int:
        return len(self._players)

    def __contains__(self, player: object) -> bool:
        return any(p is player for p in self._players)

    def add(self, connection: Any, addr: str, max_rounds: int) -> Player:
        """Create a player for a new connection and put it at the front."""
        player = Player(connection, addr, submitted_words=[""] * max_rounds)
        self._players.insert(0, player)
        return player

    def remove(self, player: Player) -> None:
        """Remove a player and close its connection; unknown players are ignored."""
        index = self.index_of(player)
        if index is None:
            return
        del self._players[index]
        try:
            player.connection.close()
        except OSError:
            pass

    def get_by_connection(self, connection: Any) -> Player | None:
        return next((p for p in self._players if p.connection is connection), None)

    def get_by_index(self, index: int) -> Player | None:
        if 0 <= index < len(self._players):
            return self._players[index]
        return None

    def index_of(self, player: Player) -> int | None:
        return next((i for i, p in enumerate(self._players) if p is player), None)

    def get_by_username(self, username: str) -> Player | None:
        """Find a player by name, ignoring case."""
        key = _name_key(username)
        return next((p for p in self._players if _name_key(p.username) == key), None)

    def count_ready(self) -> int:
        return sum(1 for p in self._players if p.ready)

    def all_ready(self, ready_count: int) -> bool:
        """True when exactly ``ready_count`` players are ready."""
        return self.count_ready() == ready_count

    def broadcast(self, message: str, ignored: Player | None = None) -> None:
        """Send a message to every player except ``ignored`` and log it."""
        for player in self._players:
            if player is not ignored:
                player.send(message)
        log_broadcast(message, self.log_stream)