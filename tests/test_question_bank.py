from __future__ import annotations

import random

from manaquiz.core.question_bank import (
    find_category,
    get_all_categories,
    get_questions_by_category,
    load_question_bank,
)


def test_bank_has_four_categories_of_fifty_question_subcategories():
    bank = load_question_bank()

    assert [c.id for c in bank] == ["dsa", "cloud", "programming", "algorithms"]
    for category in bank:
        assert len(category.subcategories) == 4
        for subcategory in category.subcategories:
            assert len(subcategory.questions) == 50


def test_question_ids_follow_category_and_subcategory():
    arrays = find_category("dsa").find_subcategory("arrays")

    assert [q.id for q in arrays.questions] == [f"dsa_arrays_{n}" for n in range(1, 51)]
    assert all(q.category == "dsa" and q.subcategory == "arrays" for q in arrays.questions)


def test_filler_difficulty_cycles_after_seeds():
    arrays = find_category("dsa").find_subcategory("arrays")

    assert [q.difficulty for q in arrays.questions[5:8]] == ["easy", "medium", "hard"]
    assert arrays.questions[5].question.startswith("Array Question 6:")


def test_subcategory_without_seeds_is_all_filler():
    trees = find_category("dsa").find_subcategory("trees")

    first = trees.questions[0]
    assert first.question.startswith("Tree/Graph Question 1:")
    assert first.difficulty == "easy"
    assert first.correct_answer == "O(log n)"


def test_seed_without_explanation_gets_a_default():
    arrays = find_category("dsa").find_subcategory("arrays")
    assert arrays.questions[1].explanation == "Correct answer is: Adding at the end"


def test_unknown_ids_return_nothing():
    assert get_questions_by_category("chemistry") == []
    assert get_questions_by_category("dsa", "heaps") == []
    assert find_category("chemistry") is None


def test_whole_category_and_filters():
    assert len(get_questions_by_category("cloud")) == 200

    easy = get_questions_by_category("dsa", "arrays", difficulty="easy")
    assert easy
    assert all(q.difficulty == "easy" for q in easy)
    assert len(get_questions_by_category("dsa", "arrays", difficulty="mixed")) == 50


def test_limit_truncates_after_shuffle():
    limited = get_questions_by_category("algorithms", "sorting", limit=5)
    assert len(limited) == 5
    assert len({q.id for q in limited}) == 5


def test_seeded_shuffle_is_deterministic():
    first = get_questions_by_category("programming", rng=random.Random(7))
    second = get_questions_by_category("programming", rng=random.Random(7))
    assert [q.id for q in first] == [q.id for q in second]


def test_category_summaries_report_counts():
    summaries = get_all_categories()

    dsa = summaries[0]
    assert dsa.name
    assert [s.id for s in dsa.subcategories] == ["arrays", "linkedlists", "stacks", "trees"]
    assert all(s.question_count == 50 for s in dsa.subcategories)
