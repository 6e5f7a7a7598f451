from __future__ import annotations

from manaquiz.core.markdown_math_renderer import MarkdownMathRenderer
from tests.conftest import make_question


def test_fragment_renders_inline_code():
    html = MarkdownMathRenderer().render_fragment("What does `print(2 ** 3)` output?")
    assert "<code>print(2 ** 3)</code>" in html


def test_empty_fragment_has_placeholder():
    assert MarkdownMathRenderer().render_fragment("   ") == "<p><em>No content provided.</em></p>"


def test_raw_html_is_escaped_by_default():
    html = MarkdownMathRenderer().render_fragment("<script>alert(1)</script>")
    assert "<script>" not in html


def test_question_rendering():
    rendered = MarkdownMathRenderer().render_question(make_question(1))

    assert rendered["question_html"] == "<p>Synthetic question 1?</p>\n"
    assert rendered["options_html"][0] == "right 1"
