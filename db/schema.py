# SQL schema for LexiLoop database

SCHEMA_VERSION = 2

SCHEMA_SQL = """
-- Learners
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT UNIQUE NOT NULL,
    deleted_at TEXT
);

-- Curated vocabulary (system pool)
CREATE TABLE IF NOT EXISTS system_cards (
    id TEXT PRIMARY KEY,
    deck_id TEXT,
    prompt TEXT NOT NULL,
    answer TEXT NOT NULL,
    part_of_speech TEXT,
    position INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL DEFAULT (datetime('now')),
    deleted_at TEXT
);

-- User-authored vocabulary (user pool)
CREATE TABLE IF NOT EXISTS user_cards (
    id TEXT PRIMARY KEY,
    user_id INTEGER NOT NULL,
    deck_id TEXT,
    prompt TEXT NOT NULL,
    answer TEXT NOT NULL,
    part_of_speech TEXT,
    position INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL DEFAULT (datetime('now')),
    deleted_at TEXT,
    FOREIGN KEY (user_id) REFERENCES users (id) ON DELETE CASCADE
);

-- Per-user SRS state, created on first exposure
CREATE TABLE IF NOT EXISTS card_progress (
    user_id INTEGER NOT NULL,
    card_id TEXT NOT NULL,
    card_source TEXT NOT NULL CHECK(card_source IN ('system', 'user')),
    easiness_factor REAL NOT NULL DEFAULT 2.5,
    interval_days INTEGER NOT NULL DEFAULT 0,
    srs_level INTEGER NOT NULL DEFAULT 0,
    srs_score INTEGER NOT NULL DEFAULT 0,
    times_reviewed INTEGER NOT NULL DEFAULT 0,
    times_correct INTEGER NOT NULL DEFAULT 0,
    next_review_date TEXT,
    last_reviewed_at TEXT,
    PRIMARY KEY (user_id, card_id),
    FOREIGN KEY (user_id) REFERENCES users (id) ON DELETE CASCADE
);

-- Multi-game practice sessions
CREATE TABLE IF NOT EXISTS practice_sessions (
    id TEXT PRIMARY KEY,
    user_id INTEGER NOT NULL,
    mode TEXT NOT NULL CHECK(mode IN ('review-only', 'review-and-new')),
    selected_games TEXT NOT NULL DEFAULT '[]',
    plan_json TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'open' CHECK(status IN ('open', 'finalized')),
    words_learned INTEGER,
    words_reviewed INTEGER,
    combined_score INTEGER,
    created_at TEXT NOT NULL DEFAULT (datetime('now')),
    finalized_at TEXT,
    FOREIGN KEY (user_id) REFERENCES users (id) ON DELETE CASCADE
);
"""

# Indexes for performance
INDEXES_SQL = """
CREATE INDEX IF NOT EXISTS idx_system_cards_deck ON system_cards (deck_id, position);
CREATE INDEX IF NOT EXISTS idx_system_cards_deleted ON system_cards (deleted_at);
CREATE INDEX IF NOT EXISTS idx_user_cards_owner ON user_cards (user_id, deck_id, position);
CREATE INDEX IF NOT EXISTS idx_user_cards_deleted ON user_cards (deleted_at);
CREATE INDEX IF NOT EXISTS idx_card_progress_review ON card_progress (user_id, next_review_date);
CREATE INDEX IF NOT EXISTS idx_practice_sessions_user ON practice_sessions (user_id, status);
CREATE INDEX IF NOT EXISTS idx_users_deleted ON users (deleted_at);
"""
