import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Cookie, Depends, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from . import database
from .analytics import snapshot_to_frame
from .config import settings
from .globals import exam_library, session_store
from .models import FLASHCARD, Exam
from .session import ExamSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


class SessionInvalid(Exception):
    """No live session behind the request's cookie."""


# --- Request Models ---
class StartRequest(BaseModel):
    exam_id: Optional[str] = None
    exam: Optional[Exam] = None


class AnswerRequest(BaseModel):
    value: str
    correct: Optional[bool] = None


class BlankRequest(BaseModel):
    blank: int
    option: str = ""


# --- Dependencies ---
def get_session_id(
    session_id: Optional[str] = Cookie(None, alias=settings.SESSION_COOKIE_NAME)
) -> Optional[str]:
    return session_id


def get_active_session(session_id: Optional[str] = Depends(get_session_id)) -> ExamSession:
    session = session_store.get(session_id)
    if session is None:
        raise SessionInvalid()
    return session


# --- Views ---
def _lesson_link(exam: Exam) -> Dict[str, Any]:
    return {"exam_id": exam.id, "lesson_id": exam.lesson_id}


def _fill_in_view(session: ExamSession) -> Optional[Dict[str, Any]]:
    matcher = session.fill_in()
    if matcher is None:
        return None
    return {
        "segments": matcher.segments,
        "blanks": matcher.blanks,
        "options": matcher.options,
        "used_options": sorted(matcher.used_options),
        "selected_option": matcher.selected_option,
        "filled": matcher.filled,
        "checked": matcher.checked,
        "blank_states": [matcher.blank_state(i) for i in range(matcher.blank_count)],
    }


def _exercise_view(session: ExamSession) -> Optional[Dict[str, Any]]:
    exercise = session.current_exercise
    if exercise is None or session.is_complete:
        return None
    index = session.current_index
    judged = index in session.ledger.correctness
    # The back of a card is shown before the learner grades themselves.
    reveal = judged or exercise.type == FLASHCARD or session.exam.is_flashcard_mode
    return {
        "type": exercise.type,
        "content": exercise.content,
        "options": exercise.options,
        "answer": exercise.answer if reveal else None,
        "selected_answer": session.ledger.answers.get(index),
        "is_correct": session.ledger.correctness.get(index),
        "fill_in": _fill_in_view(session),
    }


def _state(session: ExamSession) -> Dict[str, Any]:
    return {
        "exam_id": session.exam.id,
        "exam_name": session.exam.name,
        "mode": session.exam.mode,
        "current_index": session.current_index,
        "total_questions": session.total,
        "is_first_question": session.is_first,
        "is_last_question": session.is_last,
        "is_complete": session.is_complete,
        "can_go_next": session.can_go_next,
        "can_go_previous": session.can_go_previous,
        "progress": session.progress(),
        "exercise": _exercise_view(session),
    }


# --- Routes ---
@router.get("/exams")
async def get_exams():
    return exam_library.get_exams()


@router.post("/sessions")
async def start_session(payload: StartRequest, response: Response):
    exam = payload.exam
    if exam is None and payload.exam_id:
        exam = exam_library.get_exam(payload.exam_id)
    if exam is None:
        logger.warning(f"Start requested for unknown exam '{payload.exam_id}'")
        return JSONResponse({"error": "Unknown exam"}, status_code=404)

    session = ExamSession(exam, on_view_lesson=_lesson_link)
    new_id = session_store.create(session)
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=new_id,
        httponly=True,
        samesite="Lax",
    )
    return _state(session)


@router.get("/session")
async def get_state(session: ExamSession = Depends(get_active_session)):
    return _state(session)


@router.post("/session/answer")
async def submit_answer(payload: AnswerRequest, session: ExamSession = Depends(get_active_session)):
    if session.is_complete:
        return JSONResponse({"error": "Exam already complete"}, status_code=400)
    verdict = session.submit_answer(payload.value, payload.correct)
    state = _state(session)
    state["verdict"] = verdict
    return state


@router.post("/session/next")
async def go_to_next(session: ExamSession = Depends(get_active_session)):
    session.go_to_next()
    return _state(session)


@router.post("/session/previous")
async def go_to_previous(session: ExamSession = Depends(get_active_session)):
    session.go_to_previous()
    return _state(session)


@router.post("/session/skip")
async def skip(session: ExamSession = Depends(get_active_session)):
    session.skip()
    return _state(session)


@router.post("/session/finish")
async def finish(session: ExamSession = Depends(get_active_session)):
    session.finish()
    return _state(session)


@router.post("/session/jump/{index}")
async def jump_to(index: int, session: ExamSession = Depends(get_active_session)):
    if not session.jump_to(index):
        return JSONResponse({"error": "Index error"}, status_code=404)
    return _state(session)


@router.post("/session/retry")
async def retry(session: ExamSession = Depends(get_active_session)):
    session.retry()
    return _state(session)


def _fill_in_or_error(session: ExamSession):
    if session.is_complete:
        return None, JSONResponse({"error": "Exam already complete"}, status_code=400)
    matcher = session.fill_in()
    if matcher is None:
        return None, JSONResponse({"error": "Not a fill-in question"}, status_code=400)
    return matcher, None


@router.post("/session/fill-in/assign")
async def assign_blank(payload: BlankRequest, session: ExamSession = Depends(get_active_session)):
    matcher, error = _fill_in_or_error(session)
    if error:
        return error
    accepted = matcher.assign(payload.blank, payload.option)
    state = _state(session)
    state["accepted"] = accepted
    return state


@router.post("/session/fill-in/clear")
async def clear_blank(payload: BlankRequest, session: ExamSession = Depends(get_active_session)):
    matcher, error = _fill_in_or_error(session)
    if error:
        return error
    matcher.clear(payload.blank)
    return _state(session)


@router.post("/session/fill-in/check")
async def check_fill_in(session: ExamSession = Depends(get_active_session)):
    _, error = _fill_in_or_error(session)
    if error:
        return error
    result = session.check_fill_in()
    state = _state(session)
    state["check"] = result.model_dump()
    return state


@router.post("/session/fill-in/reset")
async def reset_fill_in(session: ExamSession = Depends(get_active_session)):
    matcher, error = _fill_in_or_error(session)
    if error:
        return error
    matcher.reset()
    return _state(session)


@router.get("/session/analytics")
async def get_analytics(session: ExamSession = Depends(get_active_session)):
    return session.analytics().model_dump()


@router.get("/session/analytics.csv")
async def export_analytics(session: ExamSession = Depends(get_active_session)):
    frame = snapshot_to_frame(session.analytics())
    return Response(content=frame.to_csv(index=False), media_type="text/csv")


@router.post("/session/view-lesson")
async def view_lesson(session: ExamSession = Depends(get_active_session)):
    return session.view_lesson()


@router.delete("/session")
async def reset_session(response: Response, session_id: Optional[str] = Depends(get_session_id)):
    session_store.discard(session_id)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return {"status": "success"}


@router.get("/logs")
async def get_logs(limit: int = 50, level: Optional[str] = None):
    if not settings.LOG_TO_DB:
        return JSONResponse({"error": "Database logging disabled"}, status_code=404)
    return database.recent_logs(limit=limit, level=level)
