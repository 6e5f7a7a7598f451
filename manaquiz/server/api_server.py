"""FastAPI server exposing question sourcing, the exam run, results and progress."""

from __future__ import annotations

import base64
import binascii
from typing import Literal

from fastapi import Depends, FastAPI, HTTPException, Response
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, Field
import uvicorn

from manaquiz.constants.about import (
    APP_ABOUT_TEXT,
    APP_LICENSE,
    APP_NAME,
    APP_VERSION,
    HELP_TEXT,
)
from manaquiz.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from manaquiz.constants.quiz_constants import EXAM_STORE_KEY, PROGRESS_STORE_KEY
from manaquiz.core.exam_manager import (
    ExamManager,
    category_breakdown,
    difficulty_breakdown,
)
from manaquiz.core.markdown_math_renderer import renderer
from manaquiz.core.models import ExamConfig, ExamDifficulty, ExamMode, ExamResult
from manaquiz.core.progress_models import Achievement, TimeRange
from manaquiz.core.question_bank import get_all_categories
from manaquiz.core.result_exporter import build_result_report, render_sheet_csv
from manaquiz.core.services.progress_tracker import ProgressImportError, ProgressTracker
from manaquiz.core.services.result_history import summarize_result
from manaquiz.core.text_extractor import UploadedFile
from manaquiz.storage.state_store import StateStore


class UploadedFilePayload(BaseModel):
    """One file of an upload batch, with base64-encoded content."""

    name: str
    content_base64: str
    content_type: str | None = None


class UploadPayload(BaseModel):
    files: list[UploadedFilePayload] = Field(min_length=1)


class BankSelectionPayload(BaseModel):
    category_id: str
    subcategory_id: str | None = None
    difficulty: ExamDifficulty | None = None
    limit: int | None = Field(default=None, ge=1)


class ExamSetupPayload(BaseModel):
    """Payload schema for the exam configuration form."""

    course_name: str
    num_questions: int
    duration: int = 60
    difficulty: ExamDifficulty = "mixed"
    mode: ExamMode = "timed"
    categories: list[str] = Field(default_factory=list)


class AnswerPayload(BaseModel):
    question_id: str
    answer: str


class MarkPayload(BaseModel):
    """Set the mark explicitly, or toggle it when ``marked`` is omitted."""

    question_id: str
    marked: bool | None = None


class NavigatePayload(BaseModel):
    action: Literal["next", "previous", "goto"]
    index: int | None = None


class GoalPayload(BaseModel):
    title: str
    target_category: str
    target_score: float = Field(gt=0)
    target_attempts: int = Field(gt=0)
    description: str = ""


class ProgressImportPayload(BaseModel):
    data: str


def _decode_upload(payload: UploadedFilePayload) -> UploadedFile:
    try:
        data = base64.b64decode(payload.content_base64, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise HTTPException(
            status_code=422, detail=f"File {payload.name} is not valid base64."
        ) from exc
    return UploadedFile(name=payload.name, data=data, content_type=payload.content_type)


def _result_summary(result: ExamResult) -> dict[str, object]:
    return jsonable_encoder(summarize_result(result))


def _get_dependency(instance):
    def dependency():
        return instance

    return dependency


def create_api_app(
    exam_manager: ExamManager,
    progress_tracker: ProgressTracker,
    state_store: StateStore | None = None,
) -> FastAPI:
    """Create a FastAPI application wired to the provided manager and tracker."""
    app = FastAPI(title=f"{APP_NAME} API", version=APP_VERSION)
    exam_dep = _get_dependency(exam_manager)
    progress_dep = _get_dependency(progress_tracker)

    def persist() -> None:
        if state_store is None:
            return
        state_store.save(EXAM_STORE_KEY, exam_manager.export_state())
        state_store.save(PROGRESS_STORE_KEY, progress_tracker.export_state())

    def record_completion(result: ExamResult) -> list[Achievement]:
        source = exam_manager.get_attempt_source()
        attempt = progress_tracker.build_attempt(
            result,
            source=source.source,
            file_name=source.file_name,
            file_size=source.file_size,
        )
        unlocked = progress_tracker.record_attempt(attempt)
        persist()
        return unlocked

    def exam_view(manager: ExamManager) -> dict[str, object]:
        state = manager.get_exam_state()
        questions = manager.get_exam_questions()
        status = manager.get_exam_status()
        current = manager.get_current_question()
        current_payload = None
        if current is not None:
            current_payload = {
                "index": state.current_question_index,
                "id": current.id,
                "question": current.question,
                "options": list(current.options),
                "difficulty": current.difficulty,
                "category": current.category,
                "selected_answer": state.answers.get(current.id),
                "is_marked": current.id in state.marked,
                **renderer.render_question(current),
            }
            if status == "completed":
                current_payload["correct_answer"] = current.correct_answer
                current_payload["explanation"] = current.explanation
        return {
            "status": status,
            "config": jsonable_encoder(manager.get_config()),
            "total_questions": len(questions),
            "answered_count": sum(1 for q in questions if q.id in state.answers),
            "current_question_index": state.current_question_index,
            "time_remaining": state.time_remaining,
            "answers": dict(state.answers),
            "marked": sorted(state.marked),
            "question_ids": [q.id for q in questions],
            "start_time": state.start_time.isoformat() if state.start_time else None,
            "end_time": state.end_time.isoformat() if state.end_time else None,
            "completion_reason": state.completion_reason,
            "current_question": current_payload,
        }

    # --- Status ---

    @app.get("/")
    def get_status(manager: ExamManager = Depends(exam_dep)) -> dict[str, object]:
        return {
            "name": APP_NAME,
            "version": APP_VERSION,
            "exam_status": manager.get_exam_status(),
            "pool_size": manager.get_pool_summary().total,
        }

    @app.get("/about")
    def get_about() -> dict[str, str]:
        return {
            "name": APP_NAME,
            "version": APP_VERSION,
            "license": APP_LICENSE,
            "about": APP_ABOUT_TEXT,
            "help": HELP_TEXT,
        }

    # --- Question sourcing ---

    @app.post("/questions/upload")
    def upload_questions(
        payload: UploadPayload,
        manager: ExamManager = Depends(exam_dep),
    ) -> dict[str, object]:
        files = [_decode_upload(item) for item in payload.files]
        report = manager.load_uploaded_files(files)
        persist()
        return {
            "question_count": len(report.questions),
            "failed_files": [
                {"name": outcome.file.name, "error": outcome.error}
                for outcome in report.outcomes
                if not outcome.ok
            ],
            "summary": jsonable_encoder(manager.get_pool_summary()),
        }

    @app.post("/questions/sample")
    def use_sample_questions(manager: ExamManager = Depends(exam_dep)) -> dict[str, object]:
        questions = manager.use_sample_questions()
        persist()
        return {
            "question_count": len(questions),
            "summary": jsonable_encoder(manager.get_pool_summary()),
        }

    @app.post("/questions/bank")
    def use_bank_questions(
        payload: BankSelectionPayload,
        manager: ExamManager = Depends(exam_dep),
    ) -> dict[str, object]:
        try:
            questions = manager.use_bank_questions(
                payload.category_id,
                payload.subcategory_id,
                payload.difficulty,
                payload.limit,
            )
        except LookupError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        persist()
        return {
            "question_count": len(questions),
            "summary": jsonable_encoder(manager.get_pool_summary()),
        }

    @app.get("/questions/bank/categories")
    def list_bank_categories() -> list[dict[str, object]]:
        return jsonable_encoder(get_all_categories())

    @app.get("/questions")
    def get_pool_summary(manager: ExamManager = Depends(exam_dep)) -> dict[str, object]:
        return jsonable_encoder(manager.get_pool_summary())

    # --- Exam run ---

    @app.post("/exam/setup")
    def setup_exam(
        payload: ExamSetupPayload,
        manager: ExamManager = Depends(exam_dep),
    ) -> dict[str, object]:
        config = ExamConfig(
            course_name=payload.course_name,
            num_questions=payload.num_questions,
            duration=payload.duration,
            difficulty=payload.difficulty,
            mode=payload.mode,
            categories=tuple(payload.categories),
        )
        try:
            manager.setup_exam(config)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        except RuntimeError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        persist()
        return {"config": jsonable_encoder(config)}

    @app.post("/exam/start")
    def start_exam(manager: ExamManager = Depends(exam_dep)) -> dict[str, object]:
        try:
            manager.start_exam()
        except RuntimeError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        return exam_view(manager)

    @app.get("/exam/state")
    def get_exam_state(manager: ExamManager = Depends(exam_dep)) -> dict[str, object]:
        return exam_view(manager)

    @app.post("/exam/answer")
    def answer_question(
        payload: AnswerPayload,
        manager: ExamManager = Depends(exam_dep),
    ) -> dict[str, object]:
        try:
            manager.answer_question(payload.question_id, payload.answer)
        except RuntimeError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        return {"question_id": payload.question_id, "answer": payload.answer}

    @app.post("/exam/mark")
    def mark_question(
        payload: MarkPayload,
        manager: ExamManager = Depends(exam_dep),
    ) -> dict[str, object]:
        if payload.marked is None:
            marked = manager.toggle_mark(payload.question_id)
        else:
            manager.mark_question(payload.question_id, payload.marked)
            marked = payload.marked
        return {"question_id": payload.question_id, "marked": marked}

    @app.post("/exam/navigate")
    def navigate(
        payload: NavigatePayload,
        manager: ExamManager = Depends(exam_dep),
    ) -> dict[str, object]:
        if payload.action == "next":
            index = manager.next_question()
        elif payload.action == "previous":
            index = manager.previous_question()
        else:
            if payload.index is None:
                raise HTTPException(status_code=422, detail="goto requires an index.")
            index = manager.go_to_question(payload.index)
        return {"current_question_index": index}

    @app.post("/exam/tick")
    def tick(manager: ExamManager = Depends(exam_dep)) -> dict[str, object]:
        result = manager.tick()
        unlocked = record_completion(result) if result is not None else []
        return {
            "time_remaining": manager.get_exam_state().time_remaining,
            "auto_submitted": result is not None,
            "result": _result_summary(result) if result is not None else None,
            "new_achievements": jsonable_encoder(unlocked),
        }

    @app.post("/exam/submit")
    def submit_exam(manager: ExamManager = Depends(exam_dep)) -> dict[str, object]:
        try:
            result = manager.submit_exam()
        except RuntimeError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        unlocked = record_completion(result) if result is not None else []
        return {
            "submitted": result is not None,
            "result": _result_summary(result) if result is not None else None,
            "new_achievements": jsonable_encoder(unlocked),
        }

    @app.post("/exam/reset")
    def reset_exam(manager: ExamManager = Depends(exam_dep)) -> dict[str, object]:
        manager.reset_exam()
        persist()
        return {"status": manager.get_exam_status()}

    # --- Results ---

    @app.get("/results")
    def list_results(manager: ExamManager = Depends(exam_dep)) -> list[dict[str, object]]:
        return jsonable_encoder(manager.get_result_summaries())

    @app.delete("/results")
    def clear_results(manager: ExamManager = Depends(exam_dep)) -> dict[str, object]:
        manager.clear_results()
        persist()
        return {"cleared": True}

    @app.get("/results/{result_id}")
    def get_result(result_id: str, manager: ExamManager = Depends(exam_dep)) -> dict[str, object]:
        try:
            result = manager.get_result(result_id)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=f"Result {result_id} not found.") from exc
        return {
            **_result_summary(result),
            "difficulty": result.difficulty,
            "mode": result.mode,
            "answers": dict(result.answers),
            "questions": jsonable_encoder(result.questions),
            "category_breakdown": jsonable_encoder(category_breakdown(result)),
            "difficulty_breakdown": jsonable_encoder(difficulty_breakdown(result)),
        }

    @app.get("/results/{result_id}/report/{sheet}")
    def get_result_report(
        result_id: str,
        sheet: Literal["summary", "questions"],
        manager: ExamManager = Depends(exam_dep),
    ) -> Response:
        try:
            result = manager.get_result(result_id)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=f"Result {result_id} not found.") from exc
        report = build_result_report(result)
        rows = report.summary if sheet == "summary" else report.questions
        return Response(
            content=render_sheet_csv(rows),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{report.base_name}_{sheet}.csv"'},
        )

    # --- Progress ---

    @app.get("/progress")
    def get_progress(tracker: ProgressTracker = Depends(progress_dep)) -> dict[str, object]:
        return {
            "user_stats": jsonable_encoder(tracker.get_user_stats()),
            "category_progress": jsonable_encoder(tracker.get_category_progress()),
            "weak_areas": tracker.get_weak_areas(),
            "recommendations": tracker.get_recommendations(),
            "achievements": jsonable_encoder(tracker.get_achievements()),
            "learning_goals": jsonable_encoder(tracker.get_learning_goals()),
        }

    @app.get("/progress/data")
    def get_progress_data(
        time_range: TimeRange = "week",
        category: str | None = None,
        tracker: ProgressTracker = Depends(progress_dep),
    ) -> dict[str, object]:
        return jsonable_encoder(tracker.get_progress_data(time_range, category))

    @app.post("/progress/goals", status_code=201)
    def add_learning_goal(
        payload: GoalPayload,
        tracker: ProgressTracker = Depends(progress_dep),
    ) -> dict[str, object]:
        goal = tracker.add_learning_goal(
            title=payload.title,
            target_category=payload.target_category,
            target_score=payload.target_score,
            target_attempts=payload.target_attempts,
            description=payload.description,
        )
        persist()
        return jsonable_encoder(goal)

    @app.get("/progress/export")
    def export_progress(tracker: ProgressTracker = Depends(progress_dep)) -> Response:
        return Response(content=tracker.export_progress(), media_type="application/json")

    @app.post("/progress/import")
    def import_progress(
        payload: ProgressImportPayload,
        tracker: ProgressTracker = Depends(progress_dep),
    ) -> dict[str, object]:
        try:
            tracker.import_progress(payload.data)
        except ProgressImportError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        persist()
        return {"imported_attempts": len(tracker.get_attempts())}

    @app.post("/progress/reset")
    def reset_progress(tracker: ProgressTracker = Depends(progress_dep)) -> dict[str, object]:
        tracker.reset_progress()
        persist()
        return {"status": "reset"}

    return app


def run_api_server(
    exam_manager: ExamManager,
    progress_tracker: ProgressTracker,
    state_store: StateStore | None = None,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> None:
    """Serve the API in the foreground until interrupted."""
    app = create_api_app(exam_manager, progress_tracker, state_store)
    config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
    server = uvicorn.Server(config)
    server.run()
