import logging
import uuid
from datetime import datetime, timedelta
from typing import Dict, Optional

from fastapi import APIRouter, Cookie, Depends, Response
from fastapi.responses import JSONResponse

from . import globals as app_globals
from .catalog import CatalogManager
from .config import settings
from .models import (
    ALL_TIERS,
    AnswerRequest,
    AnswerResult,
    Question,
    QuestionView,
    QuizMode,
    StartRequest,
)
from .quiz import QuizEngine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


class SessionEntry:
    def __init__(self, engine: QuizEngine):
        self.engine = engine
        self.created_at = datetime.now()


sessions: Dict[str, SessionEntry] = {}


# --- Dependencies ---
def get_catalog() -> CatalogManager:
    return app_globals.catalog_manager


def get_session_id(
    session_id: Optional[str] = Cookie(None, alias=settings.SESSION_COOKIE_NAME)
) -> Optional[str]:
    return session_id


def get_active_engine(session_id: Optional[str]) -> Optional[QuizEngine]:
    if not session_id or session_id not in sessions:
        return None
    entry = sessions[session_id]
    if datetime.now() - entry.created_at > timedelta(
        minutes=settings.SESSION_TIMEOUT_MINUTES
    ):
        del sessions[session_id]
        return None
    return entry.engine


def session_invalid() -> JSONResponse:
    return JSONResponse({"error": "Session invalid"}, status_code=401)


def question_view(engine: QuizEngine, question: Question) -> QuestionView:
    progress = engine.progress()
    return QuestionView(
        term=question.card.term,
        # The reading is what reading mode asks for, so it stays hidden there.
        reading=None if question.mode == QuizMode.READING else question.card.reading,
        options=question.options,
        option_hints=question.option_hints,
        mode=question.mode,
        current_index=progress.current - 1,
        total_questions=progress.total,
    )


# --- Catalog ---
@router.get("/tiers")
async def get_tiers(catalog: CatalogManager = Depends(get_catalog)):
    return catalog.get_tiers()


@router.get("/cards")
async def get_cards(
    tier: str = ALL_TIERS, catalog: CatalogManager = Depends(get_catalog)
):
    return catalog.get_cards(tier)


# --- Quiz ---
@router.post("/quiz/start")
async def start_quiz(
    payload: StartRequest,
    response: Response,
    session_id: Optional[str] = Depends(get_session_id),
    catalog: CatalogManager = Depends(get_catalog),
):
    engine = get_active_engine(session_id)
    if engine is None:
        engine = QuizEngine(catalog.cards)
        session_id = str(uuid.uuid4())
    else:
        engine.cards = catalog.cards

    question = engine.start(payload.tier, payload.count, payload.mode)
    if question is None:
        return JSONResponse({"error": "Not enough cards"}, status_code=422)

    sessions[session_id] = SessionEntry(engine)
    logger.info(
        f"New session: {session_id} "
        f"[Tier: {payload.tier}, Mode: {payload.mode.value}, Count: {payload.count}]"
    )
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=session_id,
        httponly=True,
        samesite="Lax",
    )
    return question_view(engine, question)


@router.get("/quiz/current")
async def get_current_question(session_id: Optional[str] = Depends(get_session_id)):
    engine = get_active_engine(session_id)
    if engine is None:
        return session_invalid()
    question = engine.current_question()
    if question is None:
        return JSONResponse({"error": "No active question"}, status_code=404)
    return question_view(engine, question)


@router.post("/quiz/answer", response_model=AnswerResult)
async def submit_answer(
    payload: AnswerRequest, session_id: Optional[str] = Depends(get_session_id)
):
    engine = get_active_engine(session_id)
    if engine is None:
        return session_invalid()
    question = engine.current_question()
    if question is None:
        return JSONResponse({"error": "No active question"}, status_code=404)
    if engine.is_answered():
        return JSONResponse({"error": "Already answered"}, status_code=400)

    is_correct = engine.check_answer(payload.selected_index)
    return AnswerResult(
        is_correct=is_correct,
        selected_index=payload.selected_index,
        correct_index=question.correct_index,
        correct_answer=question.correct_answer,
        translation=question.card.translation,
    )


@router.post("/quiz/next")
async def next_question(session_id: Optional[str] = Depends(get_session_id)):
    engine = get_active_engine(session_id)
    if engine is None:
        return session_invalid()
    question = engine.next_question()
    if question is None:
        return {"finished": True}
    return question_view(engine, question)


@router.get("/quiz/progress")
async def get_progress(session_id: Optional[str] = Depends(get_session_id)):
    engine = get_active_engine(session_id)
    if engine is None:
        return session_invalid()
    return engine.progress()


@router.get("/quiz/result")
async def get_result(session_id: Optional[str] = Depends(get_session_id)):
    engine = get_active_engine(session_id)
    if engine is None:
        return session_invalid()
    return engine.results()


@router.post("/quiz/end")
async def end_quiz(session_id: Optional[str] = Depends(get_session_id)):
    engine = get_active_engine(session_id)
    if engine is None:
        return session_invalid()
    engine.end_session()
    return {"status": "success"}
