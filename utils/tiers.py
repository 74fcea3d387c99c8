from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional, Tuple

from models.card import CardContent
from models.session import Tier
from utils.progress import CardProgressState

CRITICAL_OVERDUE_DAYS = 3
WEAK_MAX_LEVEL = 2
WEAK_ACCURACY = 0.6
NEW_CARD_SCORE = 0.0


@dataclass(frozen=True)
class ScoredCard:
    card: CardContent
    tier: Tier
    score: float
    days_overdue: int = 0
    progress: Optional[CardProgressState] = None


def days_overdue(progress: CardProgressState, today: date) -> int:
    """Whole days since the card fell due; negative while it is still scheduled ahead."""
    if progress.next_review_date is None:
        return 0
    return (today - progress.next_review_date).days


def classify(progress: CardProgressState, today: date) -> Optional[Tuple[Tier, float, int]]:
    """Return (tier, score, days_overdue), or None when the card sits this session out."""
    overdue = days_overdue(progress, today)
    if overdue > CRITICAL_OVERDUE_DAYS:
        return Tier.CRITICAL, 100.0 + overdue * 10, overdue
    if overdue >= 0:
        return Tier.DUE, 50.0 + overdue * 5, overdue
    if progress.srs_level <= WEAK_MAX_LEVEL or progress.accuracy < WEAK_ACCURACY:
        return Tier.WEAK, 30.0 - progress.srs_level * 5, overdue
    return None


def classify_card(card: CardContent, progress: CardProgressState, today: date) -> Optional[ScoredCard]:
    result = classify(progress, today)
    if result is None:
        return None
    tier, score, overdue = result
    return ScoredCard(card=card, tier=tier, score=score, days_overdue=overdue, progress=progress)


def score_review_pool(
    rows: Iterable[Tuple[CardContent, CardProgressState]],
    today: date,
) -> List[ScoredCard]:
    """Classify every tracked card and rank by score, highest first.

    ``sorted`` is stable, so equal scores keep the order the rows came in.
    """
    scored = []
    for card, progress in rows:
        item = classify_card(card, progress, today)
        if item is not None:
            scored.append(item)
    return sorted(scored, key=lambda item: item.score, reverse=True)


def new_card(card: CardContent) -> ScoredCard:
    return ScoredCard(card=card, tier=Tier.NEW, score=NEW_CARD_SCORE)


def count_tiers(scored: Iterable[ScoredCard]) -> Tuple[int, int]:
    """Critical and due counts over a review pool."""
    critical = 0
    due = 0
    for item in scored:
        if item.tier is Tier.CRITICAL:
            critical += 1
        elif item.tier is Tier.DUE:
            due += 1
    return critical, due
