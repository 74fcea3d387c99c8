"""Pre-session card planning and post-session SRS finalization."""
from __future__ import annotations

import json
import logging
import random
import sqlite3
import threading
import weakref
from datetime import date, datetime, timezone
from typing import List, Mapping, Optional, Sequence
from uuid import uuid4

from models.card import CardContent
from models.session import (
    CardFailure,
    CardUpdate,
    GameResult,
    LearningMode,
    MultiGameSession,
    SessionPlan,
    SessionSummary,
)
from utils.pools import SqliteContentPool
from utils.progress import (
    CardProgressState,
    default_progress,
    get_card_progress,
    list_known_card_ids,
    list_progress_for_user,
    upsert_card_progress,
)
from utils.results import (
    answered_card_ids,
    combine_results,
    game_key,
    games_for_card,
    map_quality,
    resolve_session_cap,
    specific_results,
)
from utils.selection import fatigue_order, select_cards
from utils.sm2 import MAX_SRS_SCORE, MIN_EASINESS, update_srs
from utils.tiers import count_tiers, score_review_pool

logger = logging.getLogger(__name__)

STATUS_OK = "ok"
STATUS_INSUFFICIENT = "insufficient_material"
STATUS_UNAUTHENTICATED = "unauthenticated"

_finalize_locks: weakref.WeakValueDictionary[int, threading.Lock] = weakref.WeakValueDictionary()
_finalize_locks_guard = threading.Lock()


def user_finalize_lock(user_id: int) -> threading.Lock:
    """One lock per user so overlapping finalizations never interleave.

    Entries drop out once no finalization holds the lock any more.
    """
    with _finalize_locks_guard:
        lock = _finalize_locks.get(user_id)
        if lock is None:
            lock = threading.Lock()
            _finalize_locks[user_id] = lock
        return lock


def get_optimal_cards(
    conn,
    user_id: Optional[int],
    total_slots: int,
    mode: LearningMode,
    today: Optional[date] = None,
    rng: Optional[random.Random] = None,
    deck_ids: Optional[List[str]] = None,
) -> SessionPlan:
    """Pick and order the cards for one session."""
    if user_id is None:
        return SessionPlan(status=STATUS_UNAUTHENTICATED)
    if total_slots < 1:
        raise ValueError("total_slots must be at least 1")
    today = today or date.today()

    ranked = score_review_pool(list_progress_for_user(conn, user_id), today)
    ratio_counts = count_tiers(ranked)
    if deck_ids:
        wanted = set(deck_ids)
        ranked = [item for item in ranked if item.card.deck_id in wanted]

    pool = SqliteContentPool(conn, user_id, deck_ids)
    selected, breakdown = select_cards(
        total_slots,
        mode,
        ranked,
        pool,
        known_ids=list_known_card_ids(conn, user_id),
        ratio_counts=ratio_counts,
    )
    ordered = fatigue_order(selected, rng)
    status = STATUS_OK if len(ordered) >= total_slots else STATUS_INSUFFICIENT
    logger.info(
        "Planned %s/%s cards for user %s (%s): %s",
        len(ordered), total_slots, user_id, LearningMode(mode).value, breakdown.model_dump(),
    )
    return SessionPlan(
        cards=[item.card for item in ordered],
        breakdown=breakdown,
        requested=total_slots,
        status=status,
    )


def _cards_json(cards: Sequence[CardContent]) -> str:
    return json.dumps([card.model_dump(mode="json") for card in cards])


def start_session(
    conn,
    user_id: int,
    selected_games: Sequence[str],
    plan: SessionPlan,
    mode: LearningMode,
) -> MultiGameSession:
    """Persist an open session for a plan so it can be finalized later."""
    session = MultiGameSession(
        session_id=uuid4().hex,
        user_id=user_id,
        mode=mode,
        cards=tuple(plan.cards),
        selected_games=tuple(selected_games),
    )
    conn.execute(
        """
        INSERT INTO practice_sessions (id, user_id, mode, selected_games, plan_json)
        VALUES (?, ?, ?, ?, ?)
        """,
        (
            session.session_id,
            user_id,
            LearningMode(mode).value,
            json.dumps(list(session.selected_games)),
            _cards_json(session.cards),
        ),
    )
    conn.commit()
    return session


def load_session(conn, user_id: int, session_id: str) -> Optional[MultiGameSession]:
    cursor = conn.cursor()
    cursor.execute(
        "SELECT * FROM practice_sessions WHERE id = ? AND user_id = ?",
        (session_id, user_id),
    )
    row = cursor.fetchone()
    if not row:
        return None
    return MultiGameSession(
        session_id=row["id"],
        user_id=row["user_id"],
        mode=LearningMode(row["mode"]),
        cards=tuple(CardContent(**card) for card in json.loads(row["plan_json"])),
        selected_games=tuple(json.loads(row["selected_games"])),
    )


def complete_game(session: MultiGameSession, result: GameResult) -> MultiGameSession:
    return session.model_copy(
        update={
            "game_results": session.game_results + (result,),
            "current_game_index": session.current_game_index + 1,
        }
    )


def _session_status(conn, session_id: str) -> Optional[str]:
    cursor = conn.cursor()
    cursor.execute("SELECT status FROM practice_sessions WHERE id = ?", (session_id,))
    row = cursor.fetchone()
    return row["status"] if row else None


def _record_finalized(conn, session: MultiGameSession, summary: SessionSummary, finalized_at: str) -> None:
    conn.execute(
        """
        INSERT INTO practice_sessions (
            id, user_id, mode, selected_games, plan_json, status,
            words_learned, words_reviewed, combined_score, finalized_at
        )
        VALUES (?, ?, ?, ?, ?, 'finalized', ?, ?, ?, ?)
        ON CONFLICT(id) DO UPDATE SET
            status = 'finalized',
            words_learned = excluded.words_learned,
            words_reviewed = excluded.words_reviewed,
            combined_score = excluded.combined_score,
            finalized_at = excluded.finalized_at
        """,
        (
            session.session_id,
            session.user_id,
            session.mode.value,
            json.dumps(list(session.selected_games)),
            _cards_json(session.cards),
            summary.words_learned,
            summary.words_reviewed,
            summary.combined_score,
            finalized_at,
        ),
    )


def _apply_card(
    conn,
    user_id: int,
    card: CardContent,
    game_results: Sequence[GameResult],
    game_tiers: Mapping[str, int],
    srs_settings: Mapping,
    today: date,
    reviewed_at: str,
    deadline_days: Optional[int],
) -> CardUpdate:
    answers = specific_results(game_results, card.id)
    quality = map_quality(answers)
    session_cap = resolve_session_cap(
        [game_key(result) for result in games_for_card(game_results, card.id)],
        game_tiers,
    )
    previous = get_card_progress(conn, user_id, card.id)
    base = previous or default_progress(float(srs_settings.get("initial_easiness", 2.5)))
    update = update_srs(
        base.easiness_factor,
        base.interval_days,
        base.srs_level,
        base.srs_score,
        quality,
        session_cap,
        base_date=today,
        deadline_days=deadline_days,
        min_easiness=float(srs_settings.get("min_easiness", MIN_EASINESS)),
        max_score=int(srs_settings.get("max_score", MAX_SRS_SCORE)),
    )
    state = CardProgressState(
        easiness_factor=update.easiness_factor,
        interval_days=update.interval_days,
        srs_level=update.srs_level,
        srs_score=update.srs_score,
        times_reviewed=base.times_reviewed + 1,
        times_correct=base.times_correct + (1 if quality > 0 else 0),
        next_review_date=update.next_review_date,
        last_reviewed_at=reviewed_at,
    )
    upsert_card_progress(conn, user_id=user_id, card=card, state=state)
    return CardUpdate(
        card_id=card.id,
        quality=quality,
        session_cap=session_cap,
        previously_unseen=previous is None,
        easiness_factor=update.easiness_factor,
        interval_days=update.interval_days,
        srs_level=update.srs_level,
        srs_score=update.srs_score,
        next_review_date=update.next_review_date,
    )


def finalize_session(
    conn,
    user_id: Optional[int],
    session: MultiGameSession,
    game_tiers: Mapping[str, int],
    srs_settings: Optional[Mapping] = None,
    today: Optional[date] = None,
    deadline_days: Optional[int] = None,
) -> SessionSummary:
    """Write one session's results into every played card's SRS state.

    Each card is written inside its own savepoint, so a failed write is
    reported in ``failed`` and the remaining cards still go through. A
    session that was already finalized is left untouched. When the caller
    already has a transaction open, the writes join it and the caller
    commits.
    """
    if user_id is None or session.user_id != user_id:
        return SessionSummary()
    srs_settings = srs_settings or {}
    today = today or date.today()

    with user_finalize_lock(user_id):
        owns_transaction = not conn.in_transaction
        if owns_transaction:
            conn.execute("BEGIN IMMEDIATE")
        try:
            if _session_status(conn, session.session_id) == "finalized":
                if owns_transaction:
                    conn.rollback()
                logger.info("Session %s already finalized; ignoring", session.session_id)
                return SessionSummary(session_id=session.session_id, already_finalized=True)

            plan_ids = [card.id for card in session.cards]
            planned = set(plan_ids)
            combined = combine_results(plan_ids, session.game_results)
            summary = SessionSummary(
                session_id=session.session_id,
                rejected_card_ids=[
                    card_id for card_id in answered_card_ids(session.game_results)
                    if card_id not in planned
                ],
                combined_score=combined.combined_score,
                total_correct=combined.total_correct,
                total_questions=combined.total_questions,
                wrong_card_ids=combined.wrong_card_ids,
            )
            if summary.rejected_card_ids:
                logger.warning(
                    "Session %s has answers for cards outside its plan: %s",
                    session.session_id, summary.rejected_card_ids,
                )

            reviewed_at = datetime.now(timezone.utc).isoformat()
            for card in session.cards:
                if not specific_results(session.game_results, card.id):
                    summary.skipped_card_ids.append(card.id)
                    continue
                conn.execute("SAVEPOINT card_upsert")
                try:
                    card_update = _apply_card(
                        conn, user_id, card, session.game_results, game_tiers,
                        srs_settings, today, reviewed_at, deadline_days,
                    )
                except sqlite3.Error as exc:
                    conn.execute("ROLLBACK TO SAVEPOINT card_upsert")
                    conn.execute("RELEASE SAVEPOINT card_upsert")
                    logger.warning("SRS update failed for card %s: %s", card.id, exc)
                    summary.failed.append(CardFailure(card_id=card.id, error=str(exc)))
                    continue
                conn.execute("RELEASE SAVEPOINT card_upsert")
                summary.updated.append(card_update)

            summary.words_learned = sum(1 for item in summary.updated if item.previously_unseen)
            summary.words_reviewed = len(summary.updated)
            _record_finalized(conn, session, summary, reviewed_at)
            if owns_transaction:
                conn.commit()
        except Exception:
            if owns_transaction:
                conn.rollback()
            raise

    logger.info(
        "Finalized session %s for user %s: %s updated, %s failed, %s skipped",
        session.session_id, user_id, len(summary.updated), len(summary.failed), len(summary.skipped_card_ids),
    )
    return summary
