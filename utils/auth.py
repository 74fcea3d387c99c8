from __future__ import annotations

from typing import Optional

from fastapi import Request

USER_HEADER = "X-User-Id"


def parse_user_id(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    try:
        user_id = int(value.strip())
    except ValueError:
        return None
    return user_id if user_id > 0 else None


def user_exists(conn, user_id: int) -> bool:
    cursor = conn.cursor()
    cursor.execute("SELECT 1 FROM users WHERE id = ? AND deleted_at IS NULL", (user_id,))
    return cursor.fetchone() is not None


def get_current_user_id(request: Request, conn) -> Optional[int]:
    """The calling user, or None when the request carries no known user."""
    user_id = parse_user_id(request.headers.get(USER_HEADER))
    if user_id is None or not user_exists(conn, user_id):
        return None
    return user_id
