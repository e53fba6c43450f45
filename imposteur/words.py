"""Random selection of word pairs from a comma-separated word file."""

from __future__ import annotations

import random
import re
from os import PathLike

_SEPARATORS = re.compile(r"[,\n]")


class WordFileError(Exception):
    """Raised when the word file cannot provide a pair of words."""


def select_random_words(
    path: str | PathLike[str], rng: random.Random | None = None
) -> tuple[str, str]:
    """Pick a random line and two distinct positions in it; return both words.

    The first word is the common word, the second the impostor's.
    """
    rng = rng if rng is not None else random.Random()
    try:
        with open(path, encoding="utf-8") as handle:
            lines = handle.readlines()
    except OSError as exc:
        raise WordFileError(f"Erreur lors de l'ouverture du fichier: {exc}") from exc

    if not lines:
        raise WordFileError("Fichier vide.")

    line = lines[rng.randrange(len(lines))]
    words = [token for token in _SEPARATORS.split(line) if token]
    if len(words) < 2:
        raise WordFileError("Pas assez de mots dans la ligne sélectionnée.")

    first, second = rng.sample(range(len(words)), 2)
    return words[first], words[second]