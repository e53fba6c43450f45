# imposteur

A multiplayer word game played over TCP. Every player gets a secret word,
except the impostor, whose word is close to it but different. Players take
turns saying a word related to their own, then everyone votes for who they
think the impostor is.

The package has a game server and a terminal client.

## Installation

```
pip install .
```

## Running the server

```
imposteur-server [-p port] [-j max_players] [-r max_rounds] [-t timing_play] [-T timing_choice] [-d]
```

- `-p` port to listen on (default 5000, must be between 1 and 65535)
- `-j` number of players needed to start a game, and the most the server
  accepts at once (default 10, at least 3)
- `-r` number of rounds per game (default 3, at least 1)
- `-t` seconds a player has to give a word (default 30, at least 1)
- `-T` seconds for the voting phase (default 60, at least 1)
- `-d` print every parsed command

An invalid option value prints an error and the command exits with status 1.
The server logs every message it receives and sends, with a timestamp and
ANSI colours, to standard output.

The server picks its word pairs from `./data/words.csv`, relative to where it
is started. Each line holds comma-separated related words; two different words
from a random line become the common word and the impostor's word. The file is
not part of the package.

A game starts once the configured number of players have logged in. A player
whose timer runs out loses the turn. After the vote, if the most-voted player
is the impostor, every other player scores 2; otherwise the impostor scores 3.
The next game begins 60 seconds later if at least 3 players remain. When a
player leaves and fewer than 3 remain, the game in progress is stopped.

## Running the client

```
imposteur-client [-s host] [-p port]
```

The defaults are `127.0.0.1` and port 5000. The client shows a splash for a
few seconds, then redraws a text screen with the game information, the
players table, the latest events, a countdown gauge and an input panel.
Type a line and press Enter: your login first, then your word when it is your
turn, then the name of the player you accuse. Press Ctrl+C, or end the input,
to quit.

## Protocol

Messages are single lines of the form `/command param1:param2:...`. Clients
send `/login NAME`, `/play WORD` and `/choice NAME`; the server answers with
`/ret`, `/info`, `/assign`, `/play` and `/choice` messages. Usernames need at
least 3 characters, are cut to 15 and are compared without regard to case;
neither names nor words may contain `:`. Played words are compared without
regard to case and cannot be repeated within a game.

## Using it as a library

- `imposteur.protocol`: `parse_command`, `format_message`, `Command` and the
  game limits.
- `imposteur.words.select_random_words(path, rng)` returns a word pair or
  raises `WordFileError`.
- `imposteur.player.PlayerRegistry` and `imposteur.game.Game` hold the server
  state and rules; `imposteur.server.ImposteurServer` drives them from
  connections, and `accept`, `handle_data`, `handle_disconnect` and `tick`
  can be called without a network.
- `imposteur.client_state.GameData.apply(line)` updates the client state from
  a server line; `imposteur.client_ui.render_screen` draws it as text.

## Limitations

- The client is line-based: it reads whole lines from standard input and
  redraws the screen as plain text. It has no full-screen widgets, no mouse
  support and no colour gradients.
- The server treats each chunk it receives from a client as one command; it
  does not reassemble lines split across reads.
- While waiting between games the server blocks and handles no messages.

## Tests

```
pip install .[test]
pytest
```