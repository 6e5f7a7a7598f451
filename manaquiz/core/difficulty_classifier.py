"""Keyword heuristic that rates a question as easy, medium or hard."""

from __future__ import annotations

import re

from manaquiz.core.models import Difficulty

EASY_INDICATORS = (
    "what is", "define", "list", "name", "identify", "state", "mention",
    "true or false", "fill in the blank", "choose the correct", "select",
    "which of the following", "basic", "simple", "definition", "which of",
)

HARD_INDICATORS = (
    "analyze", "evaluate", "compare and contrast", "justify", "critique",
    "design", "create", "synthesize", "formulate", "construct", "develop",
    "assess", "argue", "defend", "propose", "solve", "derive", "prove",
    "complex", "advanced", "sophisticated", "intricate",
)

MEDIUM_INDICATORS = (
    "explain", "describe", "discuss", "illustrate", "demonstrate",
    "apply", "calculate", "implement", "use", "show", "interpret",
    "summarize", "classify", "categorize", "organize", "outline",
    "compare", "contrast",
)

_SENTENCE_END = re.compile(r"[.!?]")
_NUMBER_OR_FORMULA = re.compile(r"[\d=+\-*/()^]")

EASY_CUTOFF = -2
HARD_CUTOFF = 3
LONG_QUESTION_LENGTH = 200


def _keyword_patterns(indicators: tuple[str, ...]) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(rf"\b{re.escape(indicator)}\b") for indicator in indicators)


# Whole words only, so "complexity" is not read as "complex".
_EASY_PATTERNS = _keyword_patterns(EASY_INDICATORS)
_MEDIUM_PATTERNS = _keyword_patterns(MEDIUM_INDICATORS)
_HARD_PATTERNS = _keyword_patterns(HARD_INDICATORS)


def _count_hits(text: str, patterns: tuple[re.Pattern[str], ...]) -> int:
    return sum(1 for pattern in patterns if pattern.search(text))


def difficulty_score(question_text: str) -> int:
    lowered = question_text.lower()
    score = -2 * _count_hits(lowered, _EASY_PATTERNS)
    score += _count_hits(lowered, _MEDIUM_PATTERNS)
    score += 2 * _count_hits(lowered, _HARD_PATTERNS)

    if len(_SENTENCE_END.findall(lowered)) > 2:
        score += 1
    if _NUMBER_OR_FORMULA.search(question_text):
        score += 1
    if len(question_text) > LONG_QUESTION_LENGTH:
        score += 1
    return score


def classify_difficulty(question_text: str) -> Difficulty:
    score = difficulty_score(question_text)
    if score <= EASY_CUTOFF:
        return "easy"
    if score >= HARD_CUTOFF:
        return "hard"
    return "medium"
