from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from config import load_config
from db.database import get_db
from models.session import LearningMode, SessionPlan
from utils.auth import get_current_user_id
from utils.sessions import get_optimal_cards

router = APIRouter()


def resolve_total_slots(total_slots: Optional[int], config: dict) -> int:
    selection = config["selection"]
    slots = total_slots or selection["default_session_size"]
    if slots > selection["max_session_size"]:
        raise HTTPException(
            status_code=422,
            detail=f"total_slots may not exceed {selection['max_session_size']}",
        )
    return slots


@router.get("/optimal", response_model=SessionPlan)
async def optimal_cards(
    request: Request,
    total_slots: Optional[int] = Query(default=None, ge=1),
    mode: LearningMode = Query(default=LearningMode.REVIEW_AND_NEW),
    deck_ids: Optional[List[str]] = Query(default=None),
    conn=Depends(get_db),
):
    """Ordered cards for the next session plus a per-tier breakdown."""
    config = load_config()
    user_id = get_current_user_id(request, conn)
    slots = resolve_total_slots(total_slots, config)
    return get_optimal_cards(conn, user_id, slots, mode, deck_ids=deck_ids)
