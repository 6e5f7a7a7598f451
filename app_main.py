"""Application entry point for the ManaQuiz service."""

from __future__ import annotations

import logging

from manaquiz.constants.network_constants import DEFAULT_DATA_DIR, DEFAULT_HOST, DEFAULT_PORT
from manaquiz.constants.quiz_constants import EXAM_STORE_KEY, PROGRESS_STORE_KEY
from manaquiz.core.exam_manager import ExamManager
from manaquiz.core.services.progress_tracker import ProgressTracker
from manaquiz.server.api_server import run_api_server
from manaquiz.storage.state_store import StateStore
from manaquiz.utils.logging_config import configure_logging


def restore_persisted_state(
    store: StateStore,
    exam_manager: ExamManager,
    progress_tracker: ProgressTracker,
) -> None:
    """Load both blobs; anything unreadable is logged and replaced by defaults."""
    logger = logging.getLogger("manaquiz")
    exam_blob = store.load(EXAM_STORE_KEY)
    if exam_blob is not None:
        try:
            exam_manager.restore_state(exam_blob)
        except ValueError as exc:
            logger.warning("Discarding persisted exam state: %s", exc)

    progress_blob = store.load(PROGRESS_STORE_KEY)
    if progress_blob is not None:
        try:
            progress_tracker.restore_state(progress_blob)
        except ValueError as exc:
            logger.warning("Discarding persisted progress: %s", exc)


def main() -> None:
    """Initialize logging, restore saved state and serve the API."""
    logger = configure_logging()
    logger.info("Starting ManaQuiz…")

    store = StateStore(DEFAULT_DATA_DIR)
    exam_manager = ExamManager()
    progress_tracker = ProgressTracker()
    restore_persisted_state(store, exam_manager, progress_tracker)
    logger.info("State directory: %s", store.root)
    logger.info("API available at http://%s:%d/", DEFAULT_HOST, DEFAULT_PORT)

    run_api_server(exam_manager, progress_tracker, store, host=DEFAULT_HOST, port=DEFAULT_PORT)


if __name__ == "__main__":
    main()
