from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Tuple

from models.card import CardContent, CardSource


@dataclass(frozen=True)
class CardProgressState:
    easiness_factor: float
    interval_days: int
    srs_level: int
    srs_score: int
    times_reviewed: int = 0
    times_correct: int = 0
    next_review_date: Optional[date] = None
    last_reviewed_at: Optional[str] = None

    @property
    def accuracy(self) -> float:
        if self.times_reviewed <= 0:
            return 0.0
        return self.times_correct / self.times_reviewed


def default_progress(initial_easiness: float = 2.5) -> CardProgressState:
    return CardProgressState(
        easiness_factor=initial_easiness,
        interval_days=0,
        srs_level=0,
        srs_score=0,
    )


def _parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def _state_from_row(row) -> CardProgressState:
    return CardProgressState(
        easiness_factor=float(row["easiness_factor"]),
        interval_days=int(row["interval_days"]),
        srs_level=int(row["srs_level"]),
        srs_score=int(row["srs_score"]),
        times_reviewed=int(row["times_reviewed"]),
        times_correct=int(row["times_correct"]),
        next_review_date=_parse_date(row["next_review_date"]),
        last_reviewed_at=row["last_reviewed_at"],
    )


def list_progress_for_user(conn, user_id: int) -> List[Tuple[CardContent, CardProgressState]]:
    """All progress rows for a user, joined with their card content.

    Rows whose card no longer exists in either pool are left out.
    """
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT cp.*,
               COALESCE(s.prompt, u.prompt) AS prompt,
               COALESCE(s.answer, u.answer) AS answer,
               COALESCE(s.part_of_speech, u.part_of_speech) AS part_of_speech,
               COALESCE(s.deck_id, u.deck_id) AS deck_id
        FROM card_progress cp
        LEFT JOIN system_cards s
            ON cp.card_source = 'system' AND s.id = cp.card_id AND s.deleted_at IS NULL
        LEFT JOIN user_cards u
            ON cp.card_source = 'user' AND u.id = cp.card_id AND u.deleted_at IS NULL
        WHERE cp.user_id = ?
        ORDER BY cp.srs_score ASC, cp.rowid ASC
        """,
        (user_id,),
    )
    pairs = []
    for row in cursor.fetchall():
        if row["prompt"] is None:
            continue
        card = CardContent(
            id=row["card_id"],
            prompt=row["prompt"],
            answer=row["answer"],
            part_of_speech=row["part_of_speech"],
            source=CardSource(row["card_source"]),
            deck_id=row["deck_id"],
        )
        pairs.append((card, _state_from_row(row)))
    return pairs


def list_known_card_ids(conn, user_id: int) -> List[str]:
    cursor = conn.cursor()
    cursor.execute("SELECT card_id FROM card_progress WHERE user_id = ?", (user_id,))
    return [row[0] for row in cursor.fetchall()]


def get_card_progress(conn, user_id: int, card_id: str) -> Optional[CardProgressState]:
    cursor = conn.cursor()
    cursor.execute(
        """
        SELECT easiness_factor, interval_days, srs_level, srs_score, times_reviewed,
               times_correct, next_review_date, last_reviewed_at
        FROM card_progress
        WHERE user_id = ? AND card_id = ?
        """,
        (user_id, card_id),
    )
    row = cursor.fetchone()
    if not row:
        return None
    return _state_from_row(row)


def upsert_card_progress(
    conn,
    *,
    user_id: int,
    card: CardContent,
    state: CardProgressState,
) -> None:
    cursor = conn.cursor()
    cursor.execute(
        """
        INSERT INTO card_progress (
            user_id,
            card_id,
            card_source,
            easiness_factor,
            interval_days,
            srs_level,
            srs_score,
            times_reviewed,
            times_correct,
            next_review_date,
            last_reviewed_at
        )
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(user_id, card_id) DO UPDATE SET
            easiness_factor = excluded.easiness_factor,
            interval_days = excluded.interval_days,
            srs_level = excluded.srs_level,
            srs_score = excluded.srs_score,
            times_reviewed = excluded.times_reviewed,
            times_correct = excluded.times_correct,
            next_review_date = excluded.next_review_date,
            last_reviewed_at = excluded.last_reviewed_at
        """,
        (
            user_id,
            card.id,
            card.source.value,
            state.easiness_factor,
            state.interval_days,
            state.srs_level,
            state.srs_score,
            state.times_reviewed,
            state.times_correct,
            state.next_review_date.isoformat() if state.next_review_date else None,
            state.last_reviewed_at,
        ),
    )
