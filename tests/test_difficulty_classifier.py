from __future__ import annotations

import pytest

from manaquiz.core.difficulty_classifier import classify_difficulty, difficulty_score


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("What is a stack?", "easy"),
        ("Explain how a hash table handles collisions", "medium"),
        ("Analyze and design an algorithm to prove correctness", "hard"),
        ("What is the time complexity of X?", "easy"),
        ("Analyze and design an optimal algorithm to prove X", "hard"),
    ],
)
def test_keyword_driven_levels(text, expected):
    assert classify_difficulty(text) == expected


def test_each_keyword_counts_once():
    assert difficulty_score("what is what is") == -2


def test_numbers_and_formulas_raise_the_score():
    assert difficulty_score("Calculate 2+2") == 2


def test_many_sentences_raise_the_score():
    assert difficulty_score("One. Two. Three. Four") == 1


def test_long_questions_raise_the_score():
    assert difficulty_score("x" * 201) == 1
    assert difficulty_score("x" * 200) == 0


def test_boundaries():
    assert classify_difficulty("Define it") == "easy"
    assert classify_difficulty("Define 1") == "medium"
    assert classify_difficulty("Prove it") == "medium"
    assert classify_difficulty("Prove 1") == "hard"


def test_keywords_match_whole_words_only():
    assert difficulty_score("complexity") == 0
    assert difficulty_score("complex") == 2
    assert difficulty_score("statement") == 0


def test_same_text_always_gets_same_label():
    text = "What is the time complexity of X?"
    assert classify_difficulty(text) == classify_difficulty(text) == "easy"
    assert difficulty_score(text) == -2
