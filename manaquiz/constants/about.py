"""Static metadata describing ManaQuiz."""

APP_NAME = "ManaQuiz"
APP_VERSION = "0.1"
APP_LICENSE = "MIT License"
APP_ABOUT_TEXT = (
    "ManaQuiz is a practice-exam service. Upload study material or pick from the "
    "bundled question bank, configure a quiz, take it against an optional countdown "
    "and review scored results together with your progress history."
)

HELP_TEXT = (
    "Uploaded text files are scanned for numbered multiple-choice blocks such as:\n\n"
    "1. Which data structure follows LIFO principle?\n"
    "   a) Queue\n   b) Stack\n   c) Array\n   d) Tree\n"
    "   Answer: b\n\n"
    "Files without any recognisable block contribute a small set of general questions instead."
)
