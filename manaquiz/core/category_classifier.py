"""Assign a subject category to a question from its text and source file name."""

from __future__ import annotations

# Order matters: on equal scores the earlier subject is kept.
SUBJECT_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Computer Science", (
        "algorithm", "data structure", "programming", "software", "computer", "binary",
        "loop", "function", "variable", "array", "linked list", "tree", "graph",
    )),
    ("Mathematics", (
        "equation", "derivative", "integral", "matrix", "probability", "statistics",
        "theorem", "proof", "calculus", "algebra", "geometry", "trigonometry",
    )),
    ("Physics", (
        "force", "energy", "motion", "velocity", "acceleration", "momentum",
        "wave", "particle", "quantum", "electromagnetic", "thermodynamics",
    )),
    ("Chemistry", (
        "molecule", "atom", "element", "compound", "reaction", "bond",
        "periodic table", "organic", "inorganic", "solution", "acid", "base",
    )),
    ("Biology", (
        "cell", "organism", "dna", "protein", "gene", "evolution",
        "ecosystem", "photosynthesis", "metabolism", "reproduction",
    )),
    ("Engineering", (
        "circuit", "voltage", "current", "resistance", "mechanical", "electrical",
        "design", "material", "stress", "strain", "manufacturing",
    )),
    ("Business", (
        "management", "marketing", "finance", "accounting", "economics",
        "strategy", "organization", "leadership", "profit", "revenue",
    )),
    ("Data Science", (
        "machine learning", "artificial intelligence", "neural network", "dataset",
        "regression", "classification", "clustering", "feature", "model",
    )),
)

GENERAL_CATEGORY = "General"

_FILENAME_FALLBACKS = (
    (("assignment", "homework"), "Assignment"),
    (("exam", "test"), "Exam Preparation"),
    (("lecture", "notes"), "Lecture Notes"),
)


def subject_scores(filename: str, question_text: str) -> dict[str, int]:
    combined = f"{filename.lower()} {question_text.lower()}"
    return {
        subject: sum(1 for keyword in keywords if keyword in combined)
        for subject, keywords in SUBJECT_KEYWORDS
    }


def classify_category(filename: str, question_text: str) -> str:
    best_match = GENERAL_CATEGORY
    best_score = 0
    for subject, score in subject_scores(filename, question_text).items():
        if score > best_score:
            best_score = score
            best_match = subject

    if best_score == 0:
        name = filename.lower()
        for needles, category in _FILENAME_FALLBACKS:
            if any(needle in name for needle in needles):
                return category
    return best_match
