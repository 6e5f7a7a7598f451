"""Quiz-related constants shared across the core and server layers."""

MIN_DURATION_MINUTES: int = 10
MAX_DURATION_MINUTES: int = 300

FALLBACK_QUESTION_LIMIT: int = 10
BANK_SUBCATEGORY_TARGET_SIZE: int = 50

WEAK_AREA_THRESHOLD: float = 70.0
STRONG_TOPIC_THRESHOLD: float = 80.0
WEAK_TOPIC_THRESHOLD: float = 60.0
HARDER_DIFFICULTY_THRESHOLD: float = 80.0
RECENT_ATTEMPT_WINDOW: int = 5
RECENT_ATTEMPT_MINIMUM: int = 3
WEEKLY_ACTIVITY_DAYS: int = 7

PROGRESS_SCHEMA_VERSION: int = 1
EXAM_STORE_KEY: str = "manaquiz-exam-store"
PROGRESS_STORE_KEY: str = "manaquiz-progress-store"
