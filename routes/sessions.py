from fastapi import APIRouter, Depends, HTTPException, Request

from config import load_config
from db.database import get_db
from models.session import (
    MultiGameSession,
    SessionFinalizeRequest,
    SessionStartRequest,
    SessionSummary,
)
from routes.cards import resolve_total_slots
from utils.auth import get_current_user_id
from utils.sessions import (
    STATUS_UNAUTHENTICATED,
    complete_game,
    finalize_session,
    get_optimal_cards,
    load_session,
    start_session,
)

router = APIRouter()


@router.post("")
async def create_session(
    payload: SessionStartRequest,
    request: Request,
    conn=Depends(get_db),
):
    """Plan the cards for a multi-game session and open it."""
    config = load_config()
    user_id = get_current_user_id(request, conn)
    if user_id is None:
        return {"session": None, "status": STATUS_UNAUTHENTICATED, "breakdown": None}
    slots = resolve_total_slots(payload.total_slots, config)
    plan = get_optimal_cards(conn, user_id, slots, payload.mode, deck_ids=payload.deck_ids)
    session = start_session(conn, user_id, payload.selected_games, plan, payload.mode)
    return {
        "session": session.model_dump(mode="json"),
        "status": plan.status,
        "breakdown": plan.breakdown.model_dump(),
    }


@router.get("/{session_id}", response_model=MultiGameSession)
async def get_session(session_id: str, request: Request, conn=Depends(get_db)):
    user_id = get_current_user_id(request, conn)
    session = load_session(conn, user_id, session_id) if user_id is not None else None
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


@router.post("/{session_id}/finalize", response_model=SessionSummary)
async def finalize(
    session_id: str,
    payload: SessionFinalizeRequest,
    request: Request,
    conn=Depends(get_db),
):
    """Apply every played game's answers to the session's cards, once."""
    config = load_config()
    user_id = get_current_user_id(request, conn)
    if user_id is None:
        return SessionSummary()
    session = load_session(conn, user_id, session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    for result in payload.game_results:
        session = complete_game(session, result)
    return finalize_session(
        conn,
        user_id,
        session,
        config["game_tiers"],
        srs_settings=config["srs"],
        deadline_days=payload.deadline_days,
    )
