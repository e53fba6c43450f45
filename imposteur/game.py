"""Game rules: word assignment, turns, votes, scoring and phase timing."""

from __future__ import annotations

import random
import time
from dataclasses import dataclass, field
from enum import Enum
from os import PathLike
from typing import Callable, TextIO

from .console import log_message, log_server_message
from .player import Player, PlayerRegistry
from .protocol import (
    BUFFER_SIZE,
    DEFAULT_MAX_PLAYERS,
    DEFAULT_MAX_ROUNDS,
    DEFAULT_TIMING_CHOICE,
    DEFAULT_TIMING_PLAY,
    MAX_USERNAME,
    MAX_WORD,
    MIN_PLAYERS,
    TIMING_BETWEEN_GAMES,
    format_message,
)
from .words import select_random_words

DEFAULT_WORDS_PATH = "./data/words.csv"


class Phase(Enum):
    """Phases a game goes through."""

    WAITING = "waiting"
    ASSIGNING_WORDS = "assigning_words"
    PLAYING = "playing"
    VOTING = "voting"
    RESULTS = "results"


def _word_key(word: str) -> str:
    return word[: MAX_WORD - 1].lower()


@dataclass
class Game:
    """State of the current game and the rules that drive it."""

    players: PlayerRegistry = field(default_factory=PlayerRegistry)
    max_players: int = DEFAULT_MAX_PLAYERS
    max_rounds: int = DEFAULT_MAX_ROUNDS
    timing_play: int = DEFAULT_TIMING_PLAY
    timing_choice: int = DEFAULT_TIMING_CHOICE
    words_path: str | PathLike[str] = DEFAULT_WORDS_PATH
    rng: random.Random = field(default_factory=random.Random, repr=False)
    clock: Callable[[], float] = field(default=time.time, repr=False)
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)
    log_stream: TextIO | None = field(default=None, repr=False)
    phase: Phase = Phase.WAITING
    player_count: int = 0
    impostor_idx: int = -1
    current_turn: int = 0
    current_round: int = 1
    votes_received: int = 0
    phase_start_time: float = 0.0
    temps_restant: int = 0
    played_words: list[str] = field(default_factory=list)
    impostor_word: str = ""
    common_word: str = ""

    # -- helpers ---------------------------------------------------------

    def _send(self, player: Player, message: str, log: bool = True) -> None:
        player.send(message)
        if log:
            log_server_message(player.username, message, player.addr, self.log_stream)

    def _broadcast(self, message: str) -> None:
        self.players.broadcast(message)

    def _remaining(self, duration: int) -> int:
        return duration - int(self.clock() - self.phase_start_time)

    def _game_info(self) -> str:
        return format_message(
            "/info",
            "GAME",
            f"{self.current_round}/{self.max_rounds}",
            self.player_count,
            self.timing_play,
            self.timing_choice,
        )

    def _start_turn(self, player: Player) -> None:
        self._broadcast(format_message("/info", "WAIT", player.username, "PLAY"))
        self._send(player, format_message("/play", self.timing_play))
        self.phase_start_time = self.clock()

    def _start_voting(self) -> None:
        self.phase = Phase.VOTING
        self.votes_received = 0
        self.phase_start_time = self.clock()
        self._broadcast(format_message("/choice", self.timing_choice))

    def _advance_turn(self) -> None:
        self.current_turn += 1
        if self.current_turn >= self.player_count:
            self.current_turn = 0
            self.current_round += 1
            if self.current_round <= self.max_rounds:
                self._broadcast(self._game_info())

        if self.current_round > self.max_rounds:
            self._start_voting()
            return
        next_player = self.players.get_by_index(self.current_turn)
        if next_player is not None:
            self._start_turn(next_player)

    # -- rules -----------------------------------------------------------

    def assign_words(self) -> None:
        """Pick a word pair, give each player a word and start the first turn."""
        common_word, impostor_word = select_random_words(self.words_path, self.rng)
        self.impostor_idx = self.rng.randrange(self.player_count)

        for idx, player in enumerate(self.players):
            word = impostor_word if idx == self.impostor_idx else common_word
            player.secret_word = word[: MAX_WORD - 1]
            self._send(player, format_message("/assign", word))

        self.phase = Phase.PLAYING
        self.current_turn = 0
        self.current_round = 1
        self.phase_start_time = self.clock()

        turn_player = self.players.get_by_index(self.current_turn)
        self._broadcast(self._game_info())
        if turn_player is not None:
            self._broadcast(format_message("/info", "WAIT", turn_player.username, "PLAY"))
            self._send(turn_player, format_message("/play", self.timing_play))

        self.common_word = common_word
        self.impostor_word = impostor_word

    def is_word_played(self, word: str) -> bool:
        """True if the word was already played this game, ignoring case."""
        key = _word_key(word)
        return any(_word_key(played) == key for played in self.played_words)

    def add_played_word(self, word: str) -> None:
        self.played_words.append(word[: MAX_WORD - 1])

    def handle_word_submission(self, sender: Player, word: str) -> None:
        """Handle a ``/play`` from a player during the playing phase."""
        turn_player = self.players.get_by_index(self.current_turn)
        if sender is not turn_player:
            self._send(sender, format_message("/ret", "PLAY", "102"))
            return

        if self.is_word_played(word):
            self._send(sender, format_message("/ret", "PLAY", "103"))
            self._send(sender, format_message("/play", self.temps_restant))
            return

        if ":" in word:
            self._send(sender, format_message("/ret", "PLAY", "108"))
            self._send(sender, format_message("/play", self.temps_restant), log=False)
            return

        self.add_played_word(word)
        round_index = self.current_round - 1
        if 0 <= round_index < len(sender.submitted_words):
            sender.submitted_words[round_index] = word[: MAX_WORD - 1]

        self._broadcast(format_message("/info", "SAY", sender.username, word))
        log_message(sender.username, word, sender.addr, self.log_stream)
        self._send(sender, format_message("/ret", "PLAY", "000"))
        self.phase_start_time = self.clock()

        self._advance_turn()

    def handle_vote(self, voter: Player, vote: str) -> None:
        """Handle a ``/choice`` from a player during the voting phase."""
        target = self.players.get_by_username(vote)
        if target is None or target is voter:
            code = "106" if target is None else "105"
            self._send(voter, format_message("/ret", "CHOICE", code))
            self._send(voter, format_message("/choice", self.temps_restant))
            return

        voter.vote = target.username[: MAX_USERNAME - 1]
        log_message(voter.username, target.username, voter.addr, self.log_stream)

        self._broadcast(format_message("/info", "CHOICE", voter.username, target.username))
        self._send(voter, format_message("/choice", self.temps_restant))

    def reset(self) -> None:
        """Return to the waiting phase and clear every player's game state."""
        self.phase = Phase.WAITING
        self.impostor_idx = -1
        self.current_turn = 0
        self.current_round = 1
        self.votes_received = 0
        self.common_word = ""
        self.impostor_word = ""
        self.played_words.clear()
        for player in self.players:
            player.clear_round(self.max_rounds)
        self.player_count = len(self.players)

    def process_voting_results(self) -> None:
        """Count the votes, update scores and announce the answer and results."""
        players = list(self.players)
        counts = [0] * len(players)
        old_scores = [player.score for player in players]
        gains = [0] * len(players)

        for player in players:
            if not player.vote:
                continue
            voted = self.players.get_by_username(player.vote)
            if voted is None:
                continue
            voted_index = self.players.index_of(voted)
            if voted_index is not None:
                counts[voted_index] += 1

        max_votes, voted_idx = 0, -1
        for idx, count in enumerate(counts[: self.player_count]):
            if count > max_votes:
                max_votes, voted_idx = count, idx

        impostor = self.players.get_by_index(self.impostor_idx)
        if voted_idx == self.impostor_idx:
            for idx, player in enumerate(players):
                if player is not impostor:
                    player.score += 2
                    gains[idx] = 2
        else:
            for idx, player in enumerate(players):
                if player is impostor:
                    player.score += 3
                    gains[idx] = 3
                    break

        result = "/info RESULT:"
        for idx, player in enumerate(players):
            if BUFFER_SIZE - len(result.encode("utf-8")) < MAX_USERNAME + 20:
                break
            result += f"{player.username}:{old_scores[idx]}+{gains[idx]}"
            if idx < len(players) - 1:
                result += ":"
        result += "\n"

        impostor_name = impostor.username if impostor is not None else ""
        self._broadcast(
            format_message(
                "/info", "ANSWER", impostor_name, self.impostor_word, self.common_word
            )
        )
        self._broadcast(result)

    # -- timing ----------------------------------------------------------

    def tick_playing(self) -> None:
        """Skip the current player's turn once the play timer runs out."""
        self.temps_restant = self._remaining(self.timing_play)
        if self.temps_restant <= 0:
            self._advance_turn()

    def tick_voting(self) -> None:
        """Close the vote once the timer runs out, then start the next game."""
        self.temps_restant = self._remaining(self.timing_choice)
        if self.temps_restant > 0:
            return

        self.process_voting_results()
        self.phase = Phase.RESULTS
        self.sleep(TIMING_BETWEEN_GAMES)
        self.reset()

        if self.player_count >= MIN_PLAYERS:
            self._broadcast("/info ALERT:Début de la partie ! Attribution des mots...\n")
            self.phase = Phase.ASSIGNING_WORDS
            self.assign_words()
        else:
            self._broadcast("/info ALERT:En attente d'autres joueurs...\n")