import io
import random

import pytest

from imposteur.game import Game, Phase
from imposteur.player import PlayerRegistry
from imposteur.protocol import TIMING_BETWEEN_GAMES
from imposteur.words import WordFileError


class FakeConnection:
    def __init__(self):
        self.sent = []
        self.closed = False

    def sendall(self, data):
        self.sent.append(data.decode("utf-8"))

    def close(self):
        self.closed = True


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def make_game(tmp_path, names=("alice", "bob", "carol"), max_rounds=3, words="chat,chien\n"):
    words_file = tmp_path / "words.csv"
    words_file.write_text(words, encoding="utf-8")
    registry = PlayerRegistry(log_stream=io.StringIO())
    for name in names:
        player = registry.add(FakeConnection(), "127.0.0.1:1", max_rounds)
        player.username = name
        player.username_set = True
        player.ready = True
    sleeps = []
    game = Game(
        players=registry,
        max_rounds=max_rounds,
        words_path=words_file,
        rng=random.Random(7),
        clock=FakeClock(),
        sleep=sleeps.append,
        log_stream=io.StringIO(),
        player_count=len(names),
    )
    return game, sleeps


def sent(player):
    return player.connection.sent


def test_assign_words_gives_one_impostor(tmp_path):
    game, _ = make_game(tmp_path)
    game.assign_words()
    assert game.phase is Phase.PLAYING
    assert {game.common_word, game.impostor_word} == {"chat", "chien"}
    players = list(game.players)
    impostors = [p for p in players if p.secret_word == game.impostor_word]
    assert impostors == [game.players.get_by_index(game.impostor_idx)]
    for p in players:
        assert f"/assign {p.secret_word}\n" in sent(p)
        assert "/info GAME:1/3:3:30:60\n" in sent(p)
    first = game.players.get_by_index(0)
    assert sent(first)[-1] == "/play 30\n"


def test_assign_words_missing_file(tmp_path):
    game, _ = make_game(tmp_path)
    game.words_path = tmp_path / "absent.csv"
    with pytest.raises(WordFileError):
        game.assign_words()


def test_is_word_played_ignores_case(tmp_path):
    game, _ = make_game(tmp_path)
    game.add_played_word("Maison")
    assert game.is_word_played("maison")
    assert game.is_word_played("MAISON")
    assert not game.is_word_played("jardin")


def test_submission_out_of_turn(tmp_path):
    game, _ = make_game(tmp_path)
    game.assign_words()
    other = game.players.get_by_index(1)
    game.handle_word_submission(other, "mot")
    assert sent(other)[-1] == "/ret PLAY:102\n"
    assert game.played_words == []


def test_submission_duplicate_word(tmp_path):
    game, _ = make_game(tmp_path)
    game.assign_words()
    game.add_played_word("Lait")
    game.temps_restant = 12
    turn = game.players.get_by_index(0)
    game.handle_word_submission(turn, "lait")
    assert sent(turn)[-2:] == ["/ret PLAY:103\n", "/play 12\n"]
    assert game.current_turn == 0


def test_submission_with_colon(tmp_path):
    game, _ = make_game(tmp_path)
    game.assign_words()
    turn = game.players.get_by_index(0)
    game.handle_word_submission(turn, "a:b")
    assert "/ret PLAY:108\n" in sent(turn)
    assert not game.is_word_played("a:b")


def test_valid_submission_advances_turn(tmp_path):
    game, _ = make_game(tmp_path)
    game.assign_words()
    turn = game.players.get_by_index(0)
    nxt = game.players.get_by_index(1)
    game.handle_word_submission(turn, "miaou")
    assert f"/info SAY:{turn.username}:miaou\n" in sent(nxt)
    assert "/ret PLAY:000\n" in sent(turn)
    assert turn.submitted_words[0] == "miaou"
    assert game.current_turn == 1
    assert sent(nxt)[-1] == "/play 30\n"
    assert game.is_word_played("miaou")


def test_last_word_starts_voting(tmp_path):
    game, _ = make_game(tmp_path, max_rounds=1)
    game.assign_words()
    for idx, word in enumerate(["un", "deux", "trois"]):
        game.handle_word_submission(game.players.get_by_index(idx), word)
    assert game.phase is Phase.VOTING
    for p in game.players:
        assert sent(p)[-1] == "/choice 60\n"


def test_vote_unknown_and_self(tmp_path):
    game, _ = make_game(tmp_path)
    voter = game.players.get_by_username("alice")
    game.temps_restant = 5
    game.handle_vote(voter, "nobody")
    assert sent(voter)[-2:] == ["/ret CHOICE:106\n", "/choice 5\n"]
    game.handle_vote(voter, "ALICE")
    assert sent(voter)[-2:] == ["/ret CHOICE:105\n", "/choice 5\n"]
    assert voter.vote == ""


def test_valid_vote_is_broadcast(tmp_path):
    game, _ = make_game(tmp_path)
    voter = game.players.get_by_username("alice")
    game.handle_vote(voter, "Bob")
    assert voter.vote == "bob"
    carol = game.players.get_by_username("carol")
    assert "/info CHOICE:alice:bob\n" in sent(carol)


def test_impostor_caught_gives_others_two(tmp_path):
    game, _ = make_game(tmp_path)
    game.impostor_idx = 0
    impostor = game.players.get_by_index(0)
    game.impostor_word, game.common_word = "chien", "chat"
    for p in game.players:
        if p is not impostor:
            p.vote = impostor.username
    game.process_voting_results()
    assert impostor.score == 0
    assert all(p.score == 2 for p in game.players if p is not impostor)
    last = sent(impostor)
    assert last[-2] == f"/info ANSWER:{impostor.username}:chien:chat\n"
    assert last[-1] == "/info RESULT:carol:0+0:bob:0+2:alice:0+2\n"


def test_impostor_escapes_gets_three(tmp_path):
    game, _ = make_game(tmp_path)
    game.impostor_idx = 0
    impostor = game.players.get_by_index(0)
    game.process_voting_results()
    assert impostor.score == 3
    assert sum(p.score for p in game.players) == 3


def test_reset_clears_state(tmp_path):
    game, _ = make_game(tmp_path)
    game.assign_words()
    turn = game.players.get_by_index(0)
    game.handle_word_submission(turn, "miaou")
    turn.vote = "bob"
    game.reset()
    assert game.phase is Phase.WAITING
    assert game.played_words == []
    assert game.impostor_idx == -1
    assert game.player_count == len(game.players)
    assert turn.submitted_words == ["", "", ""]
    assert turn.secret_word == "" and turn.vote == ""


def test_tick_playing_skips_turn_on_timeout(tmp_path):
    game, _ = make_game(tmp_path)
    game.assign_words()
    game.clock.now += 10
    game.tick_playing()
    assert game.temps_restant == 20
    assert game.current_turn == 0
    game.clock.now += 25
    game.tick_playing()
    assert game.current_turn == 1
    assert sent(game.players.get_by_index(1))[-1] == "/play 30\n"


def test_tick_voting_restarts_game(tmp_path):
    game, sleeps = make_game(tmp_path)
    game.assign_words()
    game.phase = Phase.VOTING
    game.phase_start_time = game.clock.now
    game.clock.now += 61
    game.tick_voting()
    assert sleeps == [TIMING_BETWEEN_GAMES]
    assert game.phase is Phase.PLAYING
    assert all(p.score in (0, 3) for p in game.players)


def test_tick_voting_waits_without_enough_players(tmp_path):
    game, sleeps = make_game(tmp_path, names=("alice", "bob"))
    game.impostor_idx = 0
    game.phase = Phase.VOTING
    game.phase_start_time = game.clock.now
    game.clock.now += 100
    game.tick_voting()
    assert game.phase is Phase.WAITING
    assert sent(game.players.get_by_index(0))[-1] == "/info ALERT:En attente d'autres joueurs...\n"


def test_tick_voting_before_timeout_does_nothing(tmp_path):
    game, sleeps = make_game(tmp_path)
    game.phase = Phase.VOTING
    game.phase_start_time = game.clock.now
    game.clock.now += 5
    game.tick_voting()
    assert game.phase is Phase.VOTING
    assert game.temps_restant == 55
    assert sleeps == []