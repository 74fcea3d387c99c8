from datetime import date, timedelta
from uuid import uuid4

import pytest

import config
from db import database


@pytest.fixture
def lexiloop_home(tmp_path, monkeypatch):
    """Point config and the database at a throwaway ~/.lexiloop."""
    config_dir = tmp_path / ".lexiloop"
    config_dir.mkdir()
    monkeypatch.setattr(config, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(config, "CONFIG_PATH", config_dir / "config.toml")
    monkeypatch.setattr(database, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(database, "DB_PATH", config_dir / "lexiloop.db")
    for name in ("LEXILOOP_SESSION_SIZE", "LEXILOOP_MAX_SESSION_SIZE", "LEXILOOP_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    database.init_db()
    return config_dir


@pytest.fixture
def conn(lexiloop_home):
    with database.get_conn() as connection:
        yield connection


class Seeder:
    """Inserts rows the way content authoring would."""

    def __init__(self, conn):
        self.conn = conn
        self.position = 0

    def user(self, name="Ada"):
        cursor = self.conn.execute("INSERT INTO users (name) VALUES (?)", (name,))
        self.conn.commit()
        return cursor.lastrowid

    def system_card(self, prompt="word", answer="meaning", deck_id=None):
        card_id = uuid4().hex
        self.position += 1
        self.conn.execute(
            """
            INSERT INTO system_cards (id, deck_id, prompt, answer, position)
            VALUES (?, ?, ?, ?, ?)
            """,
            (card_id, deck_id, prompt, answer, self.position),
        )
        self.conn.commit()
        return card_id

    def user_card(self, user_id, prompt="own word", answer="own meaning", deck_id=None):
        card_id = uuid4().hex
        self.position += 1
        self.conn.execute(
            """
            INSERT INTO user_cards (id, user_id, deck_id, prompt, answer, position)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (card_id, user_id, deck_id, prompt, answer, self.position),
        )
        self.conn.commit()
        return card_id

    def progress(
        self,
        user_id,
        card_id,
        source="system",
        days_overdue=0,
        srs_level=3,
        srs_score=8,
        times_reviewed=10,
        times_correct=9,
        easiness_factor=2.5,
        interval_days=6,
        today=None,
    ):
        today = today or date.today()
        next_review = today - timedelta(days=days_overdue)
        self.conn.execute(
            """
            INSERT INTO card_progress (
                user_id, card_id, card_source, easiness_factor, interval_days,
                srs_level, srs_score, times_reviewed, times_correct, next_review_date
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                user_id, card_id, source, easiness_factor, interval_days,
                srs_level, srs_score, times_reviewed, times_correct, next_review.isoformat(),
            ),
        )
        self.conn.commit()


@pytest.fixture
def seed(conn):
    return Seeder(conn)
