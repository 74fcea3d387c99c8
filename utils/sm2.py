from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

MIN_EASINESS = 1.3
MAX_SRS_SCORE = 15
PROMOTE_SCORE = 12
DEMOTE_SCORE = 5
PASSING_QUALITY = 3


@dataclass(frozen=True)
class SrsUpdate:
    easiness_factor: float
    interval_days: int
    srs_level: int
    srs_score: int
    next_review_date: date


def score_delta(quality: int) -> int:
    """Map SM-2 quality (0-5) to a change in the SRS score."""
    if quality >= 5:
        return 2
    if quality >= PASSING_QUALITY:
        return 1
    return -3


def combine_srs_score(current: Optional[int], quality: int, session_cap: int, max_score: int = MAX_SRS_SCORE) -> int:
    """Apply one session's delta to the score.

    Growth stops at ``session_cap`` unless the score already sat above it, in
    which case it is held there rather than pulled down.
    """
    current = current or 0
    delta = score_delta(quality)
    new_score = current + delta
    if delta > 0 and new_score > session_cap:
        new_score = max(current, session_cap)
    return max(0, min(max_score, new_score))


def next_easiness(easiness: float, quality: int, min_easiness: float = MIN_EASINESS) -> float:
    if quality >= PASSING_QUALITY:
        easiness = easiness + (0.1 - (5 - quality) * (0.08 + (5 - quality) * 0.02))
    else:
        easiness = easiness - 0.2
    return round(max(min_easiness, easiness), 2)


def interval_for_level(level: int, easiness: float) -> int:
    if level <= 1:
        return 1
    if level == 2:
        return 6
    return max(1, round(6 * easiness ** (level - 2)))


def update_srs(
    easiness_factor: float,
    interval_days: int,
    srs_level: int,
    srs_score: Optional[int],
    quality: int,
    session_cap: int,
    base_date: Optional[date] = None,
    deadline_days: Optional[int] = None,
    min_easiness: float = MIN_EASINESS,
    max_score: int = MAX_SRS_SCORE,
) -> SrsUpdate:
    """Compute the next SRS state for one card after one session."""
    correct = quality >= PASSING_QUALITY
    new_score = combine_srs_score(srs_score, quality, session_cap, max_score)
    new_ef = next_easiness(easiness_factor, quality, min_easiness)

    level = srs_level
    if correct and new_score >= PROMOTE_SCORE:
        level += 1
    elif not correct and new_score <= DEMOTE_SCORE:
        level = max(0, level - 1)

    if correct:
        new_interval = max(interval_for_level(level, new_ef), interval_days, 1)
    else:
        new_interval = 1

    if deadline_days is not None and deadline_days < 7 and new_interval > 1:
        new_interval = min(new_interval, max(1, deadline_days // 2))

    anchor = base_date or date.today()
    return SrsUpdate(
        easiness_factor=new_ef,
        interval_days=new_interval,
        srs_level=level,
        srs_score=new_score,
        next_review_date=anchor + timedelta(days=new_interval),
    )
