"""Markdown rendering for question and option text served to web clients.

Questions lifted from assignments often carry inline code (``print(2 ** 3)``)
or math. The renderer turns that markup into HTML fragments and the client
page typesets any math with MathJax at display time.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from markdown_it import MarkdownIt

from manaquiz.core.models import Question


@dataclass(slots=True)
class MarkdownMathRenderer:
    """Converts markdown-with-math into HTML fragments."""

    enable_html: bool = False
    _markdown: MarkdownIt = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._markdown = (
            MarkdownIt("commonmark", {"html": self.enable_html})
            .enable("table")
            .enable("strikethrough")
        )

    def render_fragment(self, markdown_text: str) -> str:
        """Render a markdown string into an HTML fragment."""

        sanitized = markdown_text.strip()
        if not sanitized:
            return "<p><em>No content provided.</em></p>"
        return self._markdown.render(sanitized)

    def render_inline(self, markdown_text: str) -> str:
        """Render without the surrounding paragraph, for option labels."""

        return self._markdown.renderInline(markdown_text.strip())

    def render_question(self, question: Question) -> dict[str, object]:
        return {
            "question_html": self.render_fragment(question.question),
            "options_html": [self.render_inline(option) for option in question.options],
        }


# MarkdownIt is safe for concurrent read-only renders, so FastAPI handlers
# share this instance.
renderer = MarkdownMathRenderer()
