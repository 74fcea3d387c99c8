import tomllib
import shutil
from pathlib import Path
from typing import Any, Dict, Optional
from dotenv import load_dotenv
import os

CONFIG_DIR = Path.home() / ".lexiloop"
CONFIG_PATH = CONFIG_DIR / "config.toml"
PROJECT_CONFIG_EXAMPLE = Path(__file__).parent / "config.toml"

DEFAULT_GAME_TIERS = {
    # Recognition games
    "quiz": 1,
    "matching": 1,
    "wordsearch": 1,
    "ninja": 1,
    "listen-choose": 1,
    "vocab-blinder": 1,
    # Recall games
    "flashcard": 2,
    "scramble": 2,
    "hangman": 2,
    "honeycomb": 2,
    "speaking": 2,
}


def _normalize_game_tiers(raw: Dict[str, Any]) -> Dict[str, int]:
    tiers = dict(DEFAULT_GAME_TIERS)
    for game_id, tier in (raw or {}).items():
        try:
            tier_value = int(tier)
        except (TypeError, ValueError):
            continue
        if tier_value in (1, 2):
            tiers[str(game_id)] = tier_value
    return tiers


def load_config() -> Dict[str, Any]:
    """Load config from ~/.lexiloop/config.toml, copy example if missing, load .env overrides."""
    load_dotenv()
    if not CONFIG_PATH.exists():
        CONFIG_DIR.mkdir(parents=True, exist_ok=True)
        shutil.copy(PROJECT_CONFIG_EXAMPLE, CONFIG_PATH)
    with open(CONFIG_PATH, "rb") as f:
        config = tomllib.load(f)

    selection_cfg = config.get("selection", {})
    config["selection"] = {
        "default_session_size": int(os.getenv(
            "LEXILOOP_SESSION_SIZE", selection_cfg.get("default_session_size", 20)
        )),
        "max_session_size": int(os.getenv(
            "LEXILOOP_MAX_SESSION_SIZE", selection_cfg.get("max_session_size", 100)
        )),
    }
    srs_cfg = config.get("srs", {})
    config["srs"] = {
        "initial_easiness": float(srs_cfg.get("initial_easiness", 2.5)),
        "min_easiness": float(srs_cfg.get("min_easiness", 1.3)),
        "max_score": int(srs_cfg.get("max_score", 15)),
    }
    config["game_tiers"] = _normalize_game_tiers(config.get("game_tiers", {}))
    logging_cfg = config.get("logging", {})
    config["logging"] = {
        "level": os.getenv("LEXILOOP_LOG_LEVEL", logging_cfg.get("level", "INFO")).upper(),
    }
    return config


def get_config_value(section: str, key: str, default: Optional[Any] = None) -> Any:
    """Get nested config value, e.g., get_config_value('selection', 'default_session_size')."""
    config = load_config()
    value = config.get(section, {}).get(key, default)
    return value
