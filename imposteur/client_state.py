"""Client-side game state driven by the lines the server sends."""

from __future__ import annotations

import codecs
import re
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from .protocol import Command

PLAYERS_HEADER = (" Joueur", " Mots", " Score   ")
RESULT_DELAY_SECONDS = 60

_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")


class ClientPhase(Enum):
    """What the client is currently waiting for or doing."""

    WAITING_USERNAME = "waiting_username"
    WAITING = "waiting"
    ASSIGN = "assign"
    WAITING_TURN = "waiting_turn"
    PLAYING = "playing"
    VOTING = "voting"
    RESULT = "result"


@dataclass
class PlayerRow:
    """A player as seen by the client: name, words said and last score."""

    name: str
    words: list[str] = field(default_factory=list)
    score: str = ""


def parse_line(text: str) -> Command | None:
    """Parse a server line; return None if it does not start with '/'.

    The command runs up to the first space; the rest is split on ':' with
    surrounding whitespace trimmed and empty parameters dropped.
    """
    if not text or not text.startswith("/"):
        return None
    name, sep, rest = text.partition(" ")
    command = Command(name)
    if not sep:
        return command
    command.params.extend(
        segment.strip() for segment in rest.split(":") if segment.strip()
    )
    return command


def _to_int(text: str) -> int:
    match = _INT_PREFIX.match(text)
    if match is None:
        raise ValueError(f"invalid duration: {text!r}")
    return int(match.group(1))


class LineBuffer:
    """Collects received bytes and yields complete, non-empty lines."""

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._pending = ""

    def feed(self, data: bytes | str) -> list[str]:
        """Add received data; return the lines it completed."""
        if isinstance(data, bytes):
            data = self._decoder.decode(data)
        self._pending += data
        *complete, self._pending = self._pending.split("\n")
        lines = []
        for line in complete:
            if line.endswith("\r"):
                line = line[:-1]
            if line:
                lines.append(line)
        return lines


# (section, code) -> (log message or None, new phase or None)
_RET_OUTCOMES: dict[tuple[str, str], tuple[str | None, ClientPhase | None]] = {
    ("LOGIN", "101"): ("Nom d'utilisateur déjà utilisé.", ClientPhase.WAITING_USERNAME),
    ("LOGIN", "107"): ("Nom d'utilisateur invalide.", ClientPhase.WAITING_USERNAME),
    ("LOGIN", "202"): ("Commande non attendue.", None),
    ("PLAY", "000"): (None, ClientPhase.WAITING_TURN),
    ("PLAY", "102"): ("Ce n'est pas votre tour.", ClientPhase.WAITING_TURN),
    ("PLAY", "103"): ("Mot déjà utilisé.", ClientPhase.PLAYING),
    ("PLAY", "108"): ("Mot invalide (contient ':').", ClientPhase.PLAYING),
    ("PLAY", "202"): ("Commande non attendue.", None),
    ("CHOICE", "000"): (None, ClientPhase.VOTING),
    ("CHOICE", "105"): ("Vous ne pouvez pas voter pour vous-même.", ClientPhase.VOTING),
    ("CHOICE", "106"): ("Joueur inconnu.", ClientPhase.VOTING),
    ("CHOICE", "202"): ("Commande non attendue.", None),
    ("PROTO", "201"): ("Commande inconnue.", None),
}


@dataclass
class GameData:
    """Everything the client knows about the game in progress."""

    clock: Callable[[], float] = field(default=time.monotonic, repr=False)
    lock: threading.Lock = field(
        default_factory=threading.Lock, repr=False, compare=False
    )
    server_id: str = ""
    game_log: list[str] = field(default_factory=list)
    players: list[PlayerRow] = field(default_factory=list)
    current_word: str = ""
    current_login: str = ""
    current_player: str = ""
    impostor_name: str = ""
    impostor_word: str = ""
    common_word: str = ""
    rounds: str = ""
    players_count: int = 0
    game_active: bool = False
    game_state: ClientPhase = ClientPhase.WAITING_USERNAME
    play_start_time: float = 0.0
    play_duration_seconds: int = 30
    timer_active: bool = False
    show_splash: bool = True

    # -- helpers ---------------------------------------------------------

    def _log(self, message: str) -> None:
        self.game_log.append(message)

    def _find(self, name: str) -> PlayerRow | None:
        return next((row for row in self.players if row.name == name), None)

    def _ensure_player(self, name: str) -> PlayerRow | None:
        if not name:
            return None
        row = self._find(name)
        if row is None:
            row = PlayerRow(name)
            self.players.append(row)
            self.players_count += 1
        return row

    def _start_timer(self, seconds: int) -> None:
        self.play_duration_seconds = seconds
        self.play_start_time = self.clock()
        self.timer_active = True

    # -- server messages -------------------------------------------------

    def apply(self, line: str) -> Command | None:
        """Update the state from one server line; return the parsed command.

        Raises ValueError when a timer command carries no valid duration.
        """
        command = parse_line(line)
        if command is None:
            return None

        def param(index: int) -> str:
            return command.params[index] if index < len(command.params) else ""

        name = command.command
        if name == "/login":
            self._log("Veuillez vous connecter.")
            self.game_state = ClientPhase.WAITING_USERNAME
        elif name == "/assign":
            self._log("Votre mot est : " + (param(0) or "<aucun>"))
            self.game_state = ClientPhase.ASSIGN
            self.current_word = param(0)
            for row in self.players:
                row.words.clear()
        elif name == "/play":
            self._log("C'est à votre tour de jouer !")
            self.game_state = ClientPhase.PLAYING
            self._start_timer(_to_int(param(0)))
        elif name == "/choice":
            self._log("Votez pour un imposteur.")
            self.game_state = ClientPhase.VOTING
            self._start_timer(_to_int(param(0)))
        elif name == "/info":
            self._apply_info(command, param)
        elif name == "/ret":
            self._apply_ret(param)
        else:
            self._log("Commande inconnue : " + name)
        return command

    def _apply_info(self, command: Command, param: Callable[[int], str]) -> None:
        kind = param(0)
        if len(command.params) >= 2 and kind == "ID":
            self._log("Nom du serveur : " + param(1))
        elif kind == "LOGIN":
            self._log(f"{param(2)} viens de se connecter ({param(1)})")
            self._ensure_player(param(2))
        elif kind == "GAME":
            self._log(f"Rounds ({param(1)}) avec {param(2)} joueurs")
            self.rounds = param(1)
        elif kind == "WAIT":
            self._log(f"C'est au tour de {param(1)} de mettre un mot")
            self.current_player = param(1)
            if param(1).lower() != self.current_login.lower():
                self.game_state = ClientPhase.WAITING_TURN
            self._ensure_player(param(1))
        elif kind == "SAY":
            self._log(f"{param(1)} a dit {param(2)}")
            row = self._ensure_player(param(1))
            if row is not None:
                row.words.append(param(2))
        elif kind == "CHOICE":
            self._log(f"{param(1)} a voté pour {param(2)}")
        elif kind == "ANSWER":
            self._log(
                f"L'imposteur était {param(1)}, son mot était '{param(2)}', "
                f"les autres avaient '{param(3)}'"
            )
            self.game_state = ClientPhase.RESULT
            self.impostor_name = param(1)
            self.impostor_word = param(2)
            self.common_word = param(3)
            self._start_timer(RESULT_DELAY_SECONDS)
        elif kind == "RESULT":
            pairs = zip(command.params[1::2], command.params[2::2])
            for player_name, score in pairs:
                row = self._find(player_name)
                if row is not None:
                    row.score = score
        elif kind == "ALERT":
            self._log("ALERTE: " + param(1))
            self.game_state = ClientPhase.WAITING

    def _apply_ret(self, param: Callable[[int], str]) -> None:
        key = (param(0), param(1))
        if key == ("LOGIN", "000"):
            self._log(
                "Connexion réussie ! Vous êtes connecté en tant que "
                + self.current_login
            )
            self.game_state = ClientPhase.WAITING
            self._ensure_player(self.current_login)
            return
        outcome = _RET_OUTCOMES.get(key)
        if outcome is None:
            return
        message, phase = outcome
        if message is not None:
            self._log(message)
        if phase is not None:
            self.game_state = phase

    # -- timer -----------------------------------------------------------

    def remaining_time(self) -> int:
        """Whole seconds left on the running timer, never negative."""
        if not self.timer_active:
            return 0
        elapsed = int(self.clock() - self.play_start_time)
        return max(0, self.play_duration_seconds - elapsed)

    def check_timer(self) -> bool:
        """Stop an expired timer and log it; return True if it just expired."""
        if self.timer_active and self.remaining_time() <= 0:
            self.timer_active = False
            self._log("Temps écoulé !")
            return True
        return False

    # -- user input ------------------------------------------------------

    def submit(self, text: str) -> str | None:
        """Turn user input into the line to send, given the current phase.

        Returns the newline-terminated line, or None when nothing is to be sent.
        """
        if not text:
            return None
        if self.game_state is ClientPhase.WAITING_USERNAME:
            self.current_login = text
            return f"/login {text}\n"
        if self.game_state is ClientPhase.PLAYING:
            self._log(text)
            return f"/play {text}\n"
        if self.game_state is ClientPhase.VOTING:
            return f"/choice {text}\n"
        return None

    def player_rows(self) -> list[tuple[str, str, str]]:
        """Rows of the players table: name, words said, score."""
        return [
            (
                " " + row.name,
                ", ".join(row.words) if row.words else " -",
                " " + row.score if row.score else " 0",
            )
            for row in self.players
        ]