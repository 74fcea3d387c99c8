"""Session card selection.

A session's budget is split between review and brand-new cards according to
how much review backlog the user carries, then the picked cards are reordered
so the most urgent recall attempts come first.
"""
from __future__ import annotations

import logging
import math
import random
from typing import Iterable, List, Optional, Protocol, Sequence, Set, Tuple

from models.card import CardContent
from models.session import LearningMode, Tier, TierCounts
from utils.tiers import ScoredCard, count_tiers, new_card

logger = logging.getLogger(__name__)

HEAVY_CRITICAL_COUNT = 5
HEAVY_DUE_COUNT = 10
LIGHT_DUE_COUNT = 3


class ContentPool(Protocol):
    def new_system_cards(self, exclude_ids: Iterable[str], limit: int) -> List[CardContent]:
        ...

    def new_user_cards(self, exclude_ids: Iterable[str], limit: int) -> List[CardContent]:
        ...


def allocate_ratio(critical_count: int, due_count: int) -> Tuple[float, float]:
    """Split of a session between review and new material, as (review, new)."""
    if critical_count >= HEAVY_CRITICAL_COUNT:
        return 0.6, 0.4
    if due_count >= HEAVY_DUE_COUNT:
        return 0.5, 0.5
    if due_count < LIGHT_DUE_COUNT:
        return 0.2, 0.8
    return 0.3, 0.7


def review_slot_count(total_slots: int, review_fraction: float) -> int:
    # round() keeps float noise like 10 * 0.3 == 3.0000000000000004 from adding a slot
    return min(total_slots, math.ceil(round(total_slots * review_fraction, 9)))


def tally(selected: Iterable[ScoredCard]) -> TierCounts:
    counts = TierCounts()
    for item in selected:
        setattr(counts, item.tier.value, getattr(counts, item.tier.value) + 1)
    return counts


def _fill_new_slots(pool: ContentPool, new_slots: int, excluded: Set[str]) -> List[ScoredCard]:
    picked: List[ScoredCard] = []
    if new_slots <= 0:
        return picked
    for card in pool.new_system_cards(sorted(excluded), new_slots):
        if card.id in excluded:
            continue
        excluded.add(card.id)
        picked.append(new_card(card))
    remaining = new_slots - len(picked)
    if remaining > 0:
        for card in pool.new_user_cards(sorted(excluded), remaining):
            if card.id in excluded:
                continue
            excluded.add(card.id)
            picked.append(new_card(card))
    return picked[:new_slots]


def select_cards(
    total_slots: int,
    mode: LearningMode,
    review_candidates: Sequence[ScoredCard],
    pool: Optional[ContentPool],
    known_ids: Iterable[str] = (),
    ratio_counts: Optional[Tuple[int, int]] = None,
) -> Tuple[List[ScoredCard], TierCounts]:
    """Fill a session of at most ``total_slots`` cards.

    ``review_candidates`` must already be ranked by score, highest first.
    ``known_ids`` are ids the user already has progress for; new cards never
    repeat them. ``ratio_counts`` is the (critical, due) count of the user's
    whole review pool and defaults to counting ``review_candidates``.

    The ratio only sets the starting split. Review slots the ranked list
    cannot fill go to new cards, and new slots the pools cannot fill go back
    to the next review candidates.
    """
    if total_slots < 1:
        raise ValueError("total_slots must be at least 1")
    mode = LearningMode(mode)

    if mode is LearningMode.REVIEW_ONLY:
        selected = list(review_candidates[:total_slots])
        return selected, tally(selected)

    if ratio_counts is None:
        ratio_counts = count_tiers(review_candidates)
    review_fraction, new_fraction = allocate_ratio(*ratio_counts)
    review_slots = review_slot_count(total_slots, review_fraction)
    new_slots = total_slots - review_slots
    logger.info(
        "Allocating %s slots: review=%s (%.0f%%) new=%s (%.0f%%) for critical=%s due=%s",
        total_slots, review_slots, review_fraction * 100, new_slots, new_fraction * 100, *ratio_counts,
    )

    selected = list(review_candidates[:review_slots])
    excluded = set(known_ids)
    excluded.update(item.card.id for item in selected)
    if pool is not None:
        selected.extend(_fill_new_slots(pool, total_slots - len(selected), excluded))

    shortfall = total_slots - len(selected)
    if shortfall > 0:
        picked = {item.card.id for item in selected}
        extra = [item for item in review_candidates[review_slots:] if item.card.id not in picked]
        selected.extend(extra[:shortfall])
    return selected, tally(selected)


def fatigue_order(selected: Sequence[ScoredCard], rng: Optional[random.Random] = None) -> List[ScoredCard]:
    """Critical then due in rank order, then weak and new each shuffled."""
    rng = rng or random.Random()
    by_tier = {tier: [item for item in selected if item.tier is tier] for tier in Tier}
    weak = list(by_tier[Tier.WEAK])
    fresh = list(by_tier[Tier.NEW])
    rng.shuffle(weak)
    rng.shuffle(fresh)
    return by_tier[Tier.CRITICAL] + by_tier[Tier.DUE] + weak + fresh
