from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from models.session import GameResult

logger = logging.getLogger(__name__)

FAST_ANSWER_MS = 3000
CROSS_GAME_MIN = 2
RECOGNITION_TIER = 1
RECALL_TIER = 2
RECOGNITION_CAP = 10
RECALL_CAP = 15
WRONG_WORD_SUCCESS_RATE = 0.67

QUALITY_FAIL = 0
QUALITY_PASS = 3
QUALITY_PERFECT = 5


@dataclass(frozen=True)
class CardAnswer:
    game_id: str
    is_correct: bool
    time_spent_ms: Optional[int] = None


def game_key(result: GameResult) -> str:
    return result.game_id or (result.game_name or "")


def specific_results(game_results: Sequence[GameResult], card_id: str) -> List[CardAnswer]:
    """Every answer for ``card_id`` across all games played in the session."""
    answers = []
    for result in game_results:
        for answer in result.answers:
            if answer.card_id == card_id:
                answers.append(CardAnswer(game_key(result), answer.is_correct, answer.time_spent_ms))
    return answers


def games_for_card(game_results: Sequence[GameResult], card_id: str) -> List[GameResult]:
    return [
        result for result in game_results
        if any(answer.card_id == card_id for answer in result.answers)
    ]


def answered_card_ids(game_results: Sequence[GameResult]) -> List[str]:
    seen: Dict[str, None] = {}
    for result in game_results:
        for answer in result.answers:
            seen.setdefault(answer.card_id, None)
    return list(seen)


def map_quality(answers: Sequence[CardAnswer]) -> int:
    """Collapse one card's answers into an SM-2 quality of 0, 3 or 5."""
    if not answers:
        raise ValueError("a card needs at least one answer to be graded")
    if not all(answer.is_correct for answer in answers):
        return QUALITY_FAIL
    distinct_games = {answer.game_id for answer in answers}
    if len(distinct_games) >= CROSS_GAME_MIN:
        return QUALITY_PERFECT
    timed = [answer.time_spent_ms for answer in answers if answer.time_spent_ms is not None]
    if not timed or sum(timed) / len(timed) < FAST_ANSWER_MS:
        return QUALITY_PERFECT
    return QUALITY_PASS


def game_tier(game_id: str, game_tiers: Optional[Mapping[str, int]]) -> int:
    """Tier of a game; anything unknown counts as a recall game."""
    try:
        tier = (game_tiers or {}).get(game_id)
    except (AttributeError, TypeError) as exc:
        logger.debug("Game tier lookup failed for %s: %s", game_id, exc)
        return RECALL_TIER
    if tier not in (RECOGNITION_TIER, RECALL_TIER):
        return RECALL_TIER
    return tier


def resolve_session_cap(game_ids: Iterable[str], game_tiers: Optional[Mapping[str, int]]) -> int:
    if any(game_tier(game_id, game_tiers) == RECALL_TIER for game_id in game_ids):
        return RECALL_CAP
    return RECOGNITION_CAP


@dataclass(frozen=True)
class CombinedResults:
    total_correct: int
    total_questions: int
    combined_score: int
    wrong_card_ids: List[str]


def combine_results(card_ids: Sequence[str], game_results: Sequence[GameResult]) -> CombinedResults:
    """Session-wide score plus the cards answered correctly in under two thirds of the games."""
    total_correct = sum(result.correct for result in game_results)
    total_questions = sum(result.total for result in game_results)
    combined_score = round(total_correct / total_questions * 100) if total_questions else 0
    wrong = []
    if game_results:
        for card_id in card_ids:
            correct_games = sum(
                1 for result in game_results
                if any(a.card_id == card_id and a.is_correct for a in result.answers)
            )
            if correct_games / len(game_results) < WRONG_WORD_SUCCESS_RATE:
                wrong.append(card_id)
    return CombinedResults(total_correct, total_questions, combined_score, wrong)
