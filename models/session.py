from datetime import date
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .card import CardContent


class Tier(str, Enum):
    CRITICAL = "critical"
    DUE = "due"
    WEAK = "weak"
    NEW = "new"


class LearningMode(str, Enum):
    REVIEW_ONLY = "review-only"
    REVIEW_AND_NEW = "review-and-new"


class TierCounts(BaseModel):
    critical: int = 0
    due: int = 0
    weak: int = 0
    new: int = 0

    @property
    def total(self) -> int:
        return self.critical + self.due + self.weak + self.new


class SessionPlan(BaseModel):
    cards: List[CardContent] = Field(default_factory=list)
    breakdown: TierCounts = Field(default_factory=TierCounts)
    requested: int = 0
    status: str = "ok"  # "ok" | "insufficient_material"


class GameAnswer(BaseModel):
    card_id: str
    is_correct: bool
    time_spent_ms: Optional[int] = Field(default=None, ge=0)


class GameResult(BaseModel):
    game_id: str
    game_name: Optional[str] = None
    answers: List[GameAnswer] = Field(default_factory=list)
    score: int = 0
    correct: int = 0
    total: int = 0


class MultiGameSession(BaseModel):
    """Session state; each finished game produces a new value via ``complete_game``."""

    model_config = ConfigDict(frozen=True)

    session_id: str
    user_id: int
    mode: LearningMode
    cards: Tuple[CardContent, ...] = ()
    selected_games: Tuple[str, ...] = ()
    current_game_index: int = 0
    game_results: Tuple[GameResult, ...] = ()

    @property
    def is_complete(self) -> bool:
        return self.current_game_index >= len(self.selected_games)


class SessionStartRequest(BaseModel):
    total_slots: Optional[int] = Field(default=None, ge=1)
    mode: LearningMode = LearningMode.REVIEW_AND_NEW
    selected_games: List[str] = Field(min_length=1)
    deck_ids: Optional[List[str]] = None


class SessionFinalizeRequest(BaseModel):
    game_results: List[GameResult] = Field(default_factory=list)
    deadline_days: Optional[int] = Field(default=None, ge=0)


class CardUpdate(BaseModel):
    card_id: str
    quality: int
    session_cap: int
    previously_unseen: bool
    easiness_factor: float
    interval_days: int
    srs_level: int
    srs_score: int
    next_review_date: date


class CardFailure(BaseModel):
    card_id: str
    error: str


class SessionSummary(BaseModel):
    session_id: Optional[str] = None
    updated: List[CardUpdate] = Field(default_factory=list)
    failed: List[CardFailure] = Field(default_factory=list)
    skipped_card_ids: List[str] = Field(default_factory=list)
    rejected_card_ids: List[str] = Field(default_factory=list)
    words_learned: int = 0
    words_reviewed: int = 0
    combined_score: int = 0
    total_correct: int = 0
    total_questions: int = 0
    wrong_card_ids: List[str] = Field(default_factory=list)
    already_finalized: bool = False

    @property
    def is_partial(self) -> bool:
        return bool(self.failed)
