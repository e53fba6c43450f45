import random

import pytest

from imposteur.words import WordFileError, select_random_words


def test_words_come_from_same_line_and_differ(tmp_path):
    path = tmp_path / "words.csv"
    path.write_text("chat,chien,lapin\nrouge,bleu\n", encoding="utf-8")
    lines = [{"chat", "chien", "lapin"}, {"rouge", "bleu"}]
    for seed in range(30):
        first, second = select_random_words(path, random.Random(seed))
        assert first != second
        assert any({first, second} <= line for line in lines)


def test_two_word_line_returns_both(tmp_path):
    path = tmp_path / "words.csv"
    path.write_text("soleil,lune\n", encoding="utf-8")
    pair = select_random_words(path, random.Random(1))
    assert set(pair) == {"soleil", "lune"}


def test_same_seed_same_result(tmp_path):
    path = tmp_path / "words.csv"
    path.write_text("a,b,c,d\ne,f,g\n", encoding="utf-8")
    lines = [{"a", "b", "c", "d"}, {"e", "f", "g"}]
    first = select_random_words(path, random.Random(7))
    second = select_random_words(path, random.Random(7))
    assert first == second
    assert first[0] != first[1]
    assert any(set(first) <= line for line in lines)


def test_empty_file_raises(tmp_path):
    path = tmp_path / "words.csv"
    path.write_text("", encoding="utf-8")
    with pytest.raises(WordFileError, match="vide"):
        select_random_words(path)


def test_single_word_line_raises(tmp_path):
    path = tmp_path / "words.csv"
    path.write_text("seul,\n", encoding="utf-8")
    with pytest.raises(WordFileError, match="Pas assez"):
        select_random_words(path)


def test_missing_file_raises(tmp_path):
    with pytest.raises(WordFileError):
        select_random_words(tmp_path / "absent.csv")