# triage/api/routes.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from triage.errors import GenerationError
from triage.llm import TextGenerator
from triage.services import ReviewBoard, TriageSessionService, UnknownSessionError
from triage.dialogue.schema import StoredNote
from .dependencies import get_review_board, get_text_generator, get_triage_service
from .schemas import (
    AnswerRequest,
    GenerateRequest,
    GenerateResponse,
    NoteListResponse,
    NoteStatsResponse,
    SessionView,
    StartTriageRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _session_not_found(session_id: str) -> HTTPException:
    return HTTPException(
        status_code=404,
        detail=f"Triage session {session_id} not found. Start a new assessment.",
    )


@router.post("/generate", response_model=GenerateResponse)
def generate(
    payload: GenerateRequest,
    generator: TextGenerator = Depends(get_text_generator),
) -> GenerateResponse:
    """
    Thin proxy to the text-generation service.
    """
    if not payload.prompt.strip():
        raise HTTPException(status_code=400, detail="Prompt is required")
    try:
        text = generator.generate(payload.prompt)
    except GenerationError as exc:
        logger.error("Generation proxy failed: %s", exc)
        raise HTTPException(status_code=502, detail="Failed to generate content") from exc
    return GenerateResponse(text=text)


@router.post("/triage/start", response_model=SessionView)
def start_triage(
    payload: StartTriageRequest,
    service: TriageSessionService = Depends(get_triage_service),
) -> SessionView:
    """
    Start a new triage session from the patient's chief complaint and
    return it with the first follow-up question.
    """
    session_id, result = service.start_session(payload.complaint)
    if not result.state.transcript:
        raise HTTPException(status_code=422, detail=result.state.last_error)
    return SessionView.from_state(session_id, result.state)


@router.get("/triage/{session_id}", response_model=SessionView)
def get_triage(
    session_id: str,
    service: TriageSessionService = Depends(get_triage_service),
) -> SessionView:
    try:
        controller = service.get(session_id)
    except UnknownSessionError:
        raise _session_not_found(session_id)
    return SessionView.from_state(session_id, controller.state)


@router.post("/triage/{session_id}/start", response_model=SessionView)
def restart_triage(
    session_id: str,
    payload: StartTriageRequest,
    service: TriageSessionService = Depends(get_triage_service),
) -> SessionView:
    try:
        result = service.start(session_id, payload.complaint)
    except UnknownSessionError:
        raise _session_not_found(session_id)
    return SessionView.from_state(session_id, result.state)


@router.post("/triage/{session_id}/answer", response_model=SessionView)
def answer_triage(
    session_id: str,
    payload: AnswerRequest,
    service: TriageSessionService = Depends(get_triage_service),
) -> SessionView:
    try:
        result = service.submit_answer(session_id, payload.answer)
    except UnknownSessionError:
        raise _session_not_found(session_id)
    return SessionView.from_state(session_id, result.state)


@router.post("/triage/{session_id}/retry", response_model=SessionView)
def retry_triage(
    session_id: str,
    service: TriageSessionService = Depends(get_triage_service),
) -> SessionView:
    try:
        result = service.retry(session_id)
    except UnknownSessionError:
        raise _session_not_found(session_id)
    return SessionView.from_state(session_id, result.state)


@router.post("/triage/{session_id}/reset", response_model=SessionView)
def reset_triage(
    session_id: str,
    service: TriageSessionService = Depends(get_triage_service),
) -> SessionView:
    try:
        result = service.reset(session_id)
    except UnknownSessionError:
        raise _session_not_found(session_id)
    return SessionView.from_state(session_id, result.state)


@router.delete("/triage/{session_id}", response_model=SessionView)
def end_triage(
    session_id: str,
    service: TriageSessionService = Depends(get_triage_service),
) -> SessionView:
    """
    Drop the session from memory and return its final state.
    Saved notes are unaffected.
    """
    try:
        controller = service.end_session(session_id)
    except UnknownSessionError:
        raise _session_not_found(session_id)
    return SessionView.from_state(session_id, controller.state)


@router.get("/notes", response_model=NoteListResponse)
def list_notes(board: ReviewBoard = Depends(get_review_board)) -> NoteListResponse:
    return NoteListResponse(notes=board.notes())


@router.get("/notes/stats", response_model=NoteStatsResponse)
def note_stats(board: ReviewBoard = Depends(get_review_board)) -> NoteStatsResponse:
    return NoteStatsResponse(**board.stats().model_dump())


@router.get("/notes/{note_id}", response_model=StoredNote)
def get_note(note_id: str, board: ReviewBoard = Depends(get_review_board)) -> StoredNote:
    note = board.get(note_id)
    if note is None:
        raise HTTPException(status_code=404, detail="Triage note not found.")
    return note
