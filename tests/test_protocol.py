import pytest

from imposteur.protocol import MAX_PARAMS, Command, format_message, parse_command


def test_simple_command_with_one_param():
    cmd = parse_command("/login Bob")
    assert cmd == Command("/login", ["Bob"])


def test_params_split_on_colon():
    cmd = parse_command("/info GAME:1/3:4:30:60")
    assert cmd.command == "/info"
    assert cmd.params == ["GAME", "1/3", "4", "30", "60"]


@pytest.mark.parametrize("text", ["", "login Bob", " /login Bob"])
def test_lines_without_leading_slash_are_rejected(text):
    assert parse_command(text) is None


def test_command_without_params():
    cmd = parse_command("/login")
    assert cmd.command == "/login"
    assert cmd.params == []


def test_only_spaces_after_command_gives_no_params():
    assert parse_command("/login    ").params == []


def test_spaces_trimmed_and_empty_params_dropped():
    cmd = parse_command("/info  a :: b ")
    assert cmd.params == ["a", "b"]


def test_params_capped_at_default_maximum():
    text = "/x " + ":".join(f"p{n}" for n in range(15))
    cmd = parse_command(text)
    assert len(cmd.params) == MAX_PARAMS
    assert cmd.params[0] == "p0"
    assert cmd.params[-1] == f"p{MAX_PARAMS - 1}"


def test_custom_param_limit():
    assert parse_command("/x a:b:c", max_params=2).params == ["a", "b"]


def test_format_without_args():
    assert format_message("/login") == "/login\n"


def test_format_wire_bytes():
    assert format_message("/ret", "LOGIN", "000") == "/ret LOGIN:000\n"


def test_format_then_parse_round_trip():
    line = format_message("/info", "SAY", "alice", "pomme")
    cmd = parse_command(line.rstrip("\n"))
    assert cmd == Command("/info", ["SAY", "alice", "pomme"])


def test_describe_lists_params():
    cmd = Command("/play", ["mot", "autre"])
    assert cmd.describe() == "Command: /play\nParams (2):\n  - mot\n  - autre\n"