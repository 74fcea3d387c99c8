import json
from typing import Iterable, List, Optional

from models.card import CardContent, CardSource


def _deck_clause(deck_ids: Optional[List[str]], column: str):
    if not deck_ids:
        return "", []
    return f" AND {column} IN (SELECT value FROM json_each(?))", [json.dumps(list(deck_ids))]


def _rows_to_cards(rows, source: CardSource) -> List[CardContent]:
    return [
        CardContent(
            id=row["id"],
            prompt=row["prompt"],
            answer=row["answer"],
            part_of_speech=row["part_of_speech"],
            deck_id=row["deck_id"],
            source=source,
        )
        for row in rows
    ]


def new_system_cards(
    conn,
    exclude_ids: Iterable[str],
    limit: int,
    deck_ids: Optional[List[str]] = None,
) -> List[CardContent]:
    """Curated cards not in ``exclude_ids``, in deck/position order."""
    if limit <= 0:
        return []
    deck_sql, deck_params = _deck_clause(deck_ids, "deck_id")
    cursor = conn.cursor()
    cursor.execute(
        f"""
        SELECT id, prompt, answer, part_of_speech, deck_id
        FROM system_cards
        WHERE deleted_at IS NULL
            AND id NOT IN (SELECT value FROM json_each(?))
            {deck_sql}
        ORDER BY deck_id, position, created_at, rowid
        LIMIT ?
        """,
        [json.dumps(list(exclude_ids)), *deck_params, limit],
    )
    return _rows_to_cards(cursor.fetchall(), CardSource.SYSTEM)


def new_user_cards(
    conn,
    user_id: int,
    exclude_ids: Iterable[str],
    limit: int,
    deck_ids: Optional[List[str]] = None,
) -> List[CardContent]:
    """Cards the user authored themselves, excluding ``exclude_ids``."""
    if limit <= 0:
        return []
    deck_sql, deck_params = _deck_clause(deck_ids, "deck_id")
    cursor = conn.cursor()
    cursor.execute(
        f"""
        SELECT id, prompt, answer, part_of_speech, deck_id
        FROM user_cards
        WHERE user_id = ?
            AND deleted_at IS NULL
            AND id NOT IN (SELECT value FROM json_each(?))
            {deck_sql}
        ORDER BY deck_id, position, created_at, rowid
        LIMIT ?
        """,
        [user_id, json.dumps(list(exclude_ids)), *deck_params, limit],
    )
    return _rows_to_cards(cursor.fetchall(), CardSource.USER)


class SqliteContentPool:
    """Binds the pool queries to one connection and user for the selector."""

    def __init__(self, conn, user_id: int, deck_ids: Optional[List[str]] = None):
        self.conn = conn
        self.user_id = user_id
        self.deck_ids = deck_ids

    def new_system_cards(self, exclude_ids: Iterable[str], limit: int) -> List[CardContent]:
        return new_system_cards(self.conn, exclude_ids, limit, self.deck_ids)

    def new_user_cards(self, exclude_ids: Iterable[str], limit: int) -> List[CardContent]:
        return new_user_cards(self.conn, self.user_id, exclude_ids, limit, self.deck_ids)
