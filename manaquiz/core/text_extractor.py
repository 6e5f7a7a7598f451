"""Turn uploaded files into plain text for the question parser.

Binary document formats are not really parsed: a PDF upload yields a fixed
assignment sheet and a Word upload yields a fixed multilingual sample. Every
other file is read as UTF-8 text.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import mimetypes
from pathlib import Path
import re
from typing import Iterable

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"

ASSIGNMENT_SHEET_TEXT = """
Assignment Questions:

1. What is the time complexity of binary search?
   a) O(n)
   b) O(log n)
   c) O(n²)
   d) O(1)
   Answer: b

2. Which data structure follows LIFO principle?
   a) Queue
   b) Stack
   c) Array
   d) Tree
   Answer: b

3. In object-oriented programming, what is encapsulation?
   a) Creating objects
   b) Hiding implementation details
   c) Inheriting from classes
   d) Overriding methods
   Answer: b

4. What is the purpose of a constructor in a class?
   a) To destroy objects
   b) To initialize object state
   c) To copy objects
   d) To compare objects
   Answer: b

5. Which sorting algorithm has O(n log n) average case complexity?
   a) Bubble Sort
   b) Selection Sort
   c) Quick Sort
   d) Insertion Sort
   Answer: c

6. バイナリサーチの時間計算量は何ですか？
   a) O(n)
   b) O(log n)
   c) O(n²)
   d) O(1)
   Answer: b
"""

WORD_SAMPLE_TEXT = """
Sample content from Word document:

Programming concepts in multiple languages:
- English: What is object-oriented programming?
- Japanese: オブジェクト指向プログラミングとは何ですか？
- Spanish: ¿Qué es la programación orientada a objetos?
- French: Qu'est-ce que la programmation orientée objet?

This demonstrates multilingual support for various document types.
"""

# Checked in order; Japanese kana wins over the shared CJK ideographs.
_KANA = re.compile(r"[\u3040-\u309F\u30A0-\u30FF]")
_SCRIPT_PATTERNS = (
    ("zh", re.compile(r"[\u4E00-\u9FFF]")),
    ("ko", re.compile(r"[\uAC00-\uD7AF]")),
    ("ar", re.compile(r"[\u0600-\u06FF]")),
    ("hi", re.compile(r"[\u0900-\u097F]")),
)


class TextExtractionError(Exception):
    """Raised when an uploaded file cannot be turned into text."""


@dataclass(frozen=True, slots=True)
class UploadedFile:
    """Raw upload as received from a client or read from disk."""

    name: str
    data: bytes
    content_type: str | None = None

    @property
    def resolved_content_type(self) -> str:
        if self.content_type:
            return self.content_type
        guessed, _ = mimetypes.guess_type(self.name)
        return guessed or "text/plain"

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True, slots=True)
class ExtractionOutcome:
    """Per-file result of a batch extraction: either text or an error."""

    file: UploadedFile
    text: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def load_uploaded_file(file_path: Path, content_type: str | None = None) -> UploadedFile:
    return UploadedFile(
        name=file_path.name,
        data=file_path.read_bytes(),
        content_type=content_type,
    )


def extract_text(file: UploadedFile) -> str:
    content_type = file.resolved_content_type
    if content_type == PDF_CONTENT_TYPE:
        return ASSIGNMENT_SHEET_TEXT
    if "word" in content_type:
        return WORD_SAMPLE_TEXT
    try:
        return file.data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise TextExtractionError(f"Failed to read file {file.name}: {exc.reason}") from exc


def extract_all(files: Iterable[UploadedFile]) -> list[ExtractionOutcome]:
    """Extract every file, capturing failures instead of aborting the batch."""
    outcomes: list[ExtractionOutcome] = []
    for file in files:
        try:
            text = extract_text(file)
        except TextExtractionError as exc:
            logger.warning("Error processing file %s: %s", file.name, exc)
            outcomes.append(ExtractionOutcome(file=file, error=str(exc)))
            continue
        outcomes.append(ExtractionOutcome(file=file, text=text))
    return outcomes


def detect_language(text: str) -> str:
    """Best-effort script detection returning an ISO 639-1 code."""
    if _KANA.search(text):
        return "ja"
    for code, pattern in _SCRIPT_PATTERNS:
        if pattern.search(text):
            return code
    return "en"
