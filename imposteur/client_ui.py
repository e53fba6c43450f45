"""Terminal front end of the game client."""

from __future__ import annotations

import re
import shutil
import socket
import sys
import threading
from typing import Iterable, TextIO

from .client_state import ClientPhase, GameData, LineBuffer, PLAYERS_HEADER
from .protocol import DEFAULT_PORT

DEFAULT_HOST = "127.0.0.1"
SPLASH_SECONDS = 5.0
MIN_WIDTH = 20
VERSION_LABEL = "Imposteur client V0.3"

_CLEAR = "\x1b[2J\x1b[H"
_SPINNER = "|/-\\"
_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")

_SPLASH_ART = (
    "██ ███    ███ ██████   ██████  ███████ ████████ ███████ ██    ██ ██████  ",
    "██ ████  ████ ██   ██ ██    ██ ██         ██    ██      ██    ██ ██   ██ ",
    "██ ██ ████ ██ ██████  ██    ██ ███████    ██    █████   ██    ██ ██████ ",
    "██ ██  ██  ██ ██      ██    ██      ██    ██    ██      ██    ██ ██   ██ ",
    "██ ██      ██ ██       ██████  ███████    ██    ███████  ██████  ██   ██ ",
)

_TITLES = {
    ClientPhase.WAITING_USERNAME: " Connexion ",
    ClientPhase.WAITING: " En attente de joueurs ",
    ClientPhase.PLAYING: " C'est à votre tour ",
    ClientPhase.VOTING: " Choisissez l'imposteur ",
    ClientPhase.RESULT: " Résultats ",
}

_PLACEHOLDERS = {
    ClientPhase.WAITING_USERNAME: " Entrez votre login",
    ClientPhase.PLAYING: " Entrer un mot lié à votre mot",
    ClientPhase.VOTING: " Qui est l'imposteur ?",
}

_LOG_LINES = 5


def input_title(phase: ClientPhase) -> str:
    """Title of the input panel for a client phase."""
    return _TITLES.get(phase, " Jeu en cours ")


def _fit(text: str, width: int) -> str:
    return text[:width].ljust(width)


def _window(title: str, body: Iterable[str], width: int) -> list[str]:
    inner = width - 2
    top = "┌" + (title[:inner] + "─" * inner)[:inner] + "┐"
    lines = [top]
    lines.extend("│" + _fit(line, inner) + "│" for line in body)
    lines.append("└" + "─" * inner + "┘")
    return lines


def _gauge(progress: float, size: int) -> str:
    size = max(size, 0)
    filled = round(min(max(progress, 0.0), 1.0) * size)
    return "█" * filled + "░" * (size - filled)


def _table(rows: list[tuple[str, str, str]]) -> list[str]:
    widths = [max(len(row[col]) for row in rows) for col in range(3)]
    formatted = []
    for index, row in enumerate(rows):
        formatted.append(" │ ".join(cell.ljust(w) for cell, w in zip(row, widths)))
        if index == 0:
            formatted.append("─┼─".join("─" * w for w in widths))
    return formatted


def _result_text(data: GameData) -> str:
    return (
        f"L'imposteur était {data.impostor_name}, son mot était "
        f"{data.impostor_word}. Les autres avaient le mot {data.common_word}"
    )


def _splash(width: int) -> str:
    lines = [""]
    for art in _SPLASH_ART:
        pad = max((width - len(art)) // 2, 0)
        lines.append(_fit(" " * pad + art, width))
    lines.append("─" * width)
    lines.append(_fit("Chargement...".center(width), width))
    return "\n".join(lines)


def render_screen(data: GameData, input_text: str = "", width: int = 80) -> str:
    """Draw the whole client screen as text.

    The caller holds ``data.lock``; an expired timer is stopped and logged.
    """
    width = max(width, MIN_WIDTH)
    if data.show_splash:
        return _splash(width)

    remaining = data.remaining_time()
    duration = data.play_duration_seconds
    progress = 1.0 - remaining / duration if duration else 1.0
    data.check_timer()

    info = (
        f" Moi : {data.current_login} | Rounds : {data.rounds}"
        f" | Votre mot secret : {data.current_word}"
        f" | C'est au tour de : {data.current_player} "
    )
    if data.game_state is ClientPhase.RESULT:
        info += " | " + _result_text(data)
    lines = _window(" Informations du jeu ", [info], width)

    rows = [PLAYERS_HEADER, *data.player_rows()]
    lines += _window(" Joueurs ", _table(rows), width)
    lines += _window(" Evenements ", data.game_log[-_LOG_LINES:], width)

    label = None
    if data.game_state in (ClientPhase.PLAYING, ClientPhase.VOTING):
        label = f" Temps restant {remaining}s : "
    elif data.game_state is ClientPhase.RESULT:
        label = f" Prochaine partie dans {remaining}s : "
    if label is not None:
        lines.append(_fit(label + _gauge(progress, width - len(label)), width))

    phase = data.game_state
    if phase in _PLACEHOLDERS:
        body = ["> " + (input_text or _PLACEHOLDERS[phase])]
    elif phase is ClientPhase.WAITING:
        body = ["En attente de joueurs..."]
    elif phase is ClientPhase.RESULT:
        body = [_result_text(data)]
    else:
        frame = _SPINNER[int(data.clock() * 10) % len(_SPINNER)]
        body = [frame * 3]
    lines += _window(input_title(phase), body, width)

    left = " Appuyez sur Ctrl+C pour quitter"
    gap = max(width - len(left) - len(VERSION_LABEL), 1)
    lines.append(_fit(left + " " * gap + VERSION_LABEL, width))
    return "\n".join(lines)


def connect(host: str, port: int) -> socket.socket:
    """Open a TCP connection to the game server; raise OSError on failure."""
    return socket.create_connection((host, port))


def _stoi(text: str) -> int:
    match = _INT_PREFIX.match(text)
    if match is None:
        raise ValueError(f"invalid port: {text!r}")
    return int(match.group(1))


def parse_args(argv: list[str] | None = None) -> tuple[str, int]:
    """Read ``-s host`` and ``-p port``; return (host, port)."""
    args = sys.argv[1:] if argv is None else list(argv)
    host, port = DEFAULT_HOST, DEFAULT_PORT
    items = iter(args)
    for arg in items:
        if arg not in ("-s", "-p"):
            continue
        value = next(items, None)
        if value is None:
            break
        if arg == "-s":
            host = value
        else:
            port = _stoi(value)
    return host, port


class ClientApp:
    """Runs the client: server reader, periodic redraw and line input."""

    def __init__(
        self,
        connection: socket.socket,
        data: GameData | None = None,
        stdin: Iterable[str] | None = None,
        stdout: TextIO | None = None,
        width: int | None = None,
        splash_seconds: float = SPLASH_SECONDS,
        refresh_interval: float = 0.5,
    ) -> None:
        self.connection = connection
        self.data = data if data is not None else GameData()
        self.stdin = stdin if stdin is not None else sys.stdin
        self.stdout = stdout if stdout is not None else sys.stdout
        self.width = width
        self.splash_seconds = splash_seconds
        self.refresh_interval = refresh_interval
        self._stop = threading.Event()
        self._out_lock = threading.Lock()
        self._buffer = LineBuffer()

    # -- threads ---------------------------------------------------------

    def _read_server(self) -> None:
        while not self._stop.is_set():
            try:
                chunk = self.connection.recv(1024)
            except OSError:
                if not self._stop.is_set():
                    self._log("Erreur de lecture socket.")
                break
            if not chunk:
                if not self._stop.is_set():
                    self._log("Connexion fermée par le serveur.")
                break
            for line in self._buffer.feed(chunk):
                with self.data.lock:
                    try:
                        self.data.apply(line)
                    except ValueError:
                        pass
            self._redraw()
        self._stop.set()
        self._redraw()

    def _refresh(self) -> None:
        while not self._stop.wait(self.refresh_interval):
            with self.data.lock:
                busy = self.data.show_splash or self.data.timer_active
            if busy:
                self._redraw()

    def _end_splash(self) -> None:
        with self.data.lock:
            self.data.show_splash = False
        self._redraw()

    # -- helpers ---------------------------------------------------------

    def _log(self, message: str) -> None:
        with self.data.lock:
            self.data.game_log.append(message)

    def _redraw(self) -> None:
        width = self.width or shutil.get_terminal_size().columns
        with self._out_lock:
            with self.data.lock:
                screen = render_screen(self.data, "", width)
            self.stdout.write(_CLEAR + screen + "\n> ")
            self.stdout.flush()

    def _submit(self, text: str) -> None:
        with self.data.lock:
            message = self.data.submit(text)
        if message is not None:
            try:
                self.connection.sendall(message.encode("utf-8"))
            except OSError:
                self._log("Erreur de lecture socket.")
        self._redraw()

    def _close(self) -> None:
        try:
            self.connection.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        try:
            self.connection.close()
        except OSError:
            pass

    # -- main loop -------------------------------------------------------

    def run(self) -> None:
        """Run until input ends, the user interrupts or the server goes away."""
        self._stop.clear()
        reader = threading.Thread(target=self._read_server, daemon=True)
        refresher = threading.Thread(target=self._refresh, daemon=True)
        splash = threading.Timer(max(self.splash_seconds, 0.0), self._end_splash)
        splash.daemon = True
        if self.splash_seconds <= 0:
            self._end_splash()
        else:
            splash.start()
        reader.start()
        refresher.start()
        try:
            for line in self.stdin:
                if self._stop.is_set():
                    break
                self._submit(line.rstrip("\r\n"))
        except KeyboardInterrupt:
            pass
        finally:
            self._stop.set()
            splash.cancel()
            self._close()
            reader.join(1.0)
            refresher.join(1.0)


def main(argv: list[str] | None = None) -> int:
    """Start the client from the command line."""
    try:
        host, port = parse_args(argv)
    except ValueError as exc:
        print(exc, file=sys.stderr)
        return 1
    try:
        connection = connect(host, port)
    except OSError:
        print("Error connecting to server", file=sys.stderr)
        return 1
    ClientApp(connection).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())