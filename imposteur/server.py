"""Network server that runs impostor games for connected clients."""

from __future__ import annotations

import getopt
import selectors
import socket
import sys
from dataclasses import dataclass
from os import PathLike
from typing import Any, TextIO

from .console import (
    COLOR_CYAN,
    COLOR_GREEN,
    COLOR_RED,
    COLOR_WHITE,
    COLOR_YELLOW,
    RESET_ALL,
    STYLE_BOLD,
    STYLE_UNDERLINE,
    log_message,
    log_server_message,
)
from .game import DEFAULT_WORDS_PATH, Game, Phase
from .player import Player, PlayerRegistry
from .protocol import (
    BUFFER_SIZE,
    DEFAULT_MAX_PLAYERS,
    DEFAULT_MAX_ROUNDS,
    DEFAULT_PORT,
    DEFAULT_TIMING_CHOICE,
    DEFAULT_TIMING_PLAY,
    MAX_USERNAME,
    MIN_PLAYERS,
    MIN_USERNAME,
    format_message,
    parse_command,
)

_HEADER = (
    ".___                               __                       \n"
    "|   | _____ ______   ____  _______/  |_  ____  __ _________ \n"
    "|   |/     \\____  \\ /  _ \\/  ___/\\   __\\/ __ \\|  |  \\_  __ \\ \n"
    "|   |  Y Y  \\  |_> >  <_> )___ \\  |  | \\  ___/|  |  /|  | \\/\n"
    "|___|__|_|  /   __/ \\____/____  > |__|  \\___  >____/ |__|   \n"
    "          \\/|__|              \\/            \\/              \n\n"
)

_USAGE = (
    "Usage: {prog} [-p port] [-j max_players] [-r max_rounds] "
    "[-t TIMING_PLAY] [-T TIMING_CHOICE] [-d]"
)

_INFO_ID = "/info ID:Serveur Imposteur Super Cool\n"
_LOGIN = "/login\n"
_PROTO_ERROR = "/ret PROTO:201\n"
_UNKNOWN = f"{COLOR_RED}{STYLE_BOLD}Unknown"
_GAME_START = "/info ALERT:Début de la partie ! Attribution des mots...\n"
_GAME_INTERRUPTED = (
    "/info ALERT:Un joueur s'est déconnecté. Le jeu a été interrompu. "
    "En attente d'autres joueurs...\n"
)


@dataclass
class ServerConfig:
    """Command-line settings of the server."""

    port: int = DEFAULT_PORT
    max_players: int = DEFAULT_MAX_PLAYERS
    max_rounds: int = DEFAULT_MAX_ROUNDS
    timing_play: int = DEFAULT_TIMING_PLAY
    timing_choice: int = DEFAULT_TIMING_CHOICE
    debug: bool = False
    words_path: str | PathLike[str] = DEFAULT_WORDS_PATH


def _atoi(text: str) -> int:
    """Read a leading integer the lenient way: no digits means 0."""
    text = text.lstrip()
    sign = 1
    if text[:1] in ("+", "-"):
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    digits = ""
    for char in text:
        if not char.isdigit():
            break
        digits += char
    return sign * int(digits) if digits else 0


def parse_args(argv: list[str] | None = None) -> ServerConfig:
    """Parse server options; raise ValueError with a message on bad input."""
    args = sys.argv[1:] if argv is None else list(argv)
    try:
        options, _ = getopt.gnu_getopt(args, "p:j:r:t:T:d")
    except getopt.GetoptError as exc:
        raise ValueError(_USAGE.format(prog="imposteur-server")) from exc

    config = ServerConfig()
    for option, value in options:
        if option == "-p":
            config.port = _atoi(value)
            if not 0 < config.port <= 65535:
                raise ValueError(
                    f"Erreur : le port {value} n'est pas valide "
                    "(doit être entre 1 et 65535)"
                )
        elif option == "-j":
            config.max_players = _atoi(value)
            if config.max_players < MIN_PLAYERS:
                raise ValueError(
                    "Erreur : le nombre maximal de joueurs doit être au moins "
                    f"{MIN_PLAYERS}"
                )
        elif option == "-r":
            config.max_rounds = _atoi(value)
            if config.max_rounds < 1:
                raise ValueError("Erreur : le nombre de rounds doit être au moins 1")
        elif option == "-t":
            config.timing_play = _atoi(value)
            if config.timing_play < 1:
                raise ValueError("Erreur : TIMING_PLAY doit être positif")
        elif option == "-T":
            config.timing_choice = _atoi(value)
            if config.timing_choice < 1:
                raise ValueError("Erreur : TIMING_CHOICE doit être positif")
        elif option == "-d":
            config.debug = True
    return config


def _format_addr(addr: Any) -> str:
    if isinstance(addr, tuple) and len(addr) >= 2:
        return f"{addr[0]}:{addr[1]}"
    return str(addr)


class ImposteurServer:
    """Connection handling and command dispatch around a single game."""

    def __init__(
        self,
        config: ServerConfig | None = None,
        game: Game | None = None,
        log_stream: TextIO | None = None,
    ) -> None:
        self.config = config if config is not None else ServerConfig()
        self.log_stream = log_stream
        if game is None:
            game = Game(
                players=PlayerRegistry(log_stream),
                max_players=self.config.max_players,
                max_rounds=self.config.max_rounds,
                timing_play=self.config.timing_play,
                timing_choice=self.config.timing_choice,
                words_path=self.config.words_path,
                log_stream=log_stream,
            )
        self.game = game
        self.players = game.players

    # -- helpers ---------------------------------------------------------

    def _send(self, player: Player, message: str, log_name: str | None = None) -> None:
        player.send(message)
        name = player.username if log_name is None else log_name
        log_server_message(name, message, player.addr, self.log_stream)

    def _display_name(self, player: Player) -> str:
        return player.username or f"{_UNKNOWN}{RESET_ALL}"

    def _out(self) -> TextIO:
        return self.log_stream if self.log_stream is not None else sys.stdout

    # -- events ----------------------------------------------------------

    def accept(self, connection: Any, addr: Any) -> Player | None:
        """Register a new connection; refuse it when the server is full."""
        if len(self.players) >= self.game.max_players:
            try:
                connection.close()
            except OSError:
                pass
            return None

        address = _format_addr(addr)
        log_message(_UNKNOWN, "Waiting for username.", address, self.log_stream)

        player = self.players.add(connection, address, self.game.max_rounds)
        self.game.player_count += 1

        self._send(player, _INFO_ID, "Unknown")
        self._send(player, _LOGIN, "Unknown")
        return player

    def handle_data(self, player: Player, data: bytes) -> None:
        """Handle one chunk of data received from a client."""
        text = data.decode("utf-8", errors="replace").rstrip("\r\n")
        log_message(self._display_name(player), text, player.addr, self.log_stream)

        command = parse_command(text)
        if command is not None and self.config.debug:
            self._out().write(command.describe())

        if command is None:
            self._send(player, _PROTO_ERROR)
            return

        first = command.params[0] if command.params else None
        if command.command == "/login":
            self._handle_login(player, first)
        elif command.command == "/play":
            if self.game.phase is not Phase.PLAYING:
                self._send(player, format_message("/ret", "PLAY", "202"))
            elif first is None:
                self._send(player, _PROTO_ERROR)
            else:
                self.game.handle_word_submission(player, first)
        elif command.command == "/choice":
            if self.game.phase is not Phase.VOTING:
                self._send(player, format_message("/ret", "CHOICE", "202"))
            elif first is None:
                self._send(player, _PROTO_ERROR)
            else:
                self.game.handle_vote(player, first)
        else:
            self._send(player, _PROTO_ERROR)

    def _handle_login(self, player: Player, username: str | None) -> None:
        if player.username_set:
            self._send(player, format_message("/ret", "LOGIN", "202"))
            return

        invalid = username is None or len(username) < MIN_USERNAME or ":" in username
        if invalid or self.players.get_by_username(username) is not None:
            error = format_message("/ret", "LOGIN", "107" if invalid else "101")
            player.send(error)
            player.send(_LOGIN)
            log_server_message(player.username, error, player.addr, self.log_stream)
            return

        player.username = username[: MAX_USERNAME - 1]
        player.username_set = True
        player.ready = True

        log_message(
            player.username,
            f"{COLOR_GREEN}{STYLE_BOLD}Connected{RESET_ALL}",
            player.addr,
            self.log_stream,
        )
        self._send(player, format_message("/ret", "LOGIN", "000"))
        self.players.broadcast(
            format_message(
                "/info",
                "LOGIN",
                f"{self.players.count_ready()}/{self.game.max_players}",
                username,
            )
        )

        if self.game.phase is Phase.WAITING and self.players.all_ready(
            self.game.max_players
        ):
            self.game.phase = Phase.ASSIGNING_WORDS
            self.players.broadcast(_GAME_START)
            self.game.assign_words()

    def handle_disconnect(self, player: Player) -> None:
        """Forget a client that went away and stop the game if too few remain."""
        log_message(
            self._display_name(player),
            f"{COLOR_RED}{STYLE_BOLD}Disconnected{RESET_ALL}",
            player.addr,
            self.log_stream,
        )
        name = player.username or "Unknown"
        alert = f"/info ALERT:{name} s'est déconnecté.\n"

        self.players.remove(player)
        self.game.player_count -= 1
        self.players.broadcast(alert)

        if self.game.phase is not Phase.WAITING and self.game.player_count < MIN_PLAYERS:
            self.players.broadcast(_GAME_INTERRUPTED)
            self.game.reset()

    def tick(self) -> None:
        """Advance the timers of the current game phase."""
        if self.game.phase is Phase.PLAYING:
            self.game.tick_playing()
        elif self.game.phase is Phase.VOTING:
            self.game.tick_voting()

    # -- main loop -------------------------------------------------------

    def serve_forever(self) -> None:
        """Listen on the configured port and run until interrupted."""
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as listener, \
                selectors.DefaultSelector() as selector:
            listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            listener.bind(("", self.config.port))
            listener.listen(socket.SOMAXCONN)
            selector.register(listener, selectors.EVENT_READ, None)

            self._out().write(
                f"{COLOR_GREEN}Serveur en attente de connexion sur le port "
                f"{STYLE_BOLD}{self.config.port}{RESET_ALL}\n\n"
            )
            self._out().flush()

            while True:
                events = selector.select(0.5)
                ready_players = []
                for key, _ in events:
                    if key.data is None:
                        try:
                            connection, addr = listener.accept()
                        except BlockingIOError:
                            continue
                        player = self.accept(connection, addr)
                        if player is not None:
                            selector.register(connection, selectors.EVENT_READ, player)
                    else:
                        ready_players.append(key.data)

                self.tick()

                for player in ready_players:
                    if player not in self.players:
                        continue
                    try:
                        data = player.connection.recv(BUFFER_SIZE - 1)
                    except OSError:
                        data = b""
                    if not data:
                        try:
                            selector.unregister(player.connection)
                        except (KeyError, ValueError):
                            pass
                        self.handle_disconnect(player)
                        continue
                    self.handle_data(player, data)


def _print_settings(config: ServerConfig, out: TextIO) -> None:
    out.write(f"{STYLE_BOLD}{_HEADER}{RESET_ALL}")
    if config.debug:
        out.write(f"{COLOR_RED}{STYLE_BOLD}[DEBUG mode activé]{RESET_ALL}\n\n")
    out.write(
        f"{STYLE_BOLD}{STYLE_UNDERLINE}{COLOR_CYAN}Paramètres de la partie :{RESET_ALL}\n"
    )
    rows = [
        ("Nombre de joueurs    ", config.max_players, "\n"),
        ("Nombre de rounds     ", config.max_rounds, "\n"),
        ("TIMING_PLAY (sec)    ", config.timing_play, "\n"),
        ("TIMING_CHOICE (sec)  ", config.timing_choice, "\n\n"),
    ]
    for label, value, end in rows:
        out.write(
            f"{COLOR_YELLOW}● {label}{COLOR_WHITE}▸ {STYLE_BOLD}{COLOR_GREEN}"
            f"{value}{end}{RESET_ALL}"
        )
    out.flush()


def main(argv: list[str] | None = None) -> int:
    """Run the game server from the command line."""
    try:
        config = parse_args(argv)
    except ValueError as exc:
        print(exc, file=sys.stderr)
        return 1

    _print_settings(config, sys.stdout)
    server = ImposteurServer(config)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("\nArrêt du serveur...")
        return 0
    except OSError as exc:
        print(f"{COLOR_RED}{STYLE_BOLD}Bind {RESET_ALL}: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())