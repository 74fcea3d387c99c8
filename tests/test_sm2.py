from datetime import date

import pytest

from utils.sm2 import combine_srs_score, next_easiness, update_srs

TODAY = date(2026, 3, 10)


def _update(quality, cap=15, ef=2.5, interval=6, level=2, score=8, **kwargs):
    return update_srs(ef, interval, level, score, quality, cap, base_date=TODAY, **kwargs)


def test_perfect_answer_raises_easiness():
    assert next_easiness(2.5, 5) == 2.6


def test_failure_lowers_easiness_but_not_below_floor():
    assert next_easiness(2.5, 0) == 2.3
    assert next_easiness(1.35, 0) == 1.3


def test_failure_resets_interval_to_tomorrow():
    result = _update(0, interval=30, level=5, score=14)
    assert result.interval_days == 1
    assert (result.next_review_date - TODAY).days == 1


@pytest.mark.parametrize("level, score, interval", [(0, 0, 0), (2, 8, 6), (4, 13, 40), (6, 15, 120)])
def test_failure_never_schedules_later_than_perfect(level, score, interval):
    failed = _update(0, level=level, score=score, interval=interval)
    perfect = _update(5, level=level, score=score, interval=interval)
    assert failed.next_review_date <= perfect.next_review_date
    assert failed.easiness_factor <= perfect.easiness_factor


def test_higher_quality_never_shortens_interval_or_easiness():
    passed = _update(3)
    perfect = _update(5)
    assert perfect.interval_days >= passed.interval_days
    assert perfect.easiness_factor >= passed.easiness_factor


def test_correct_answer_keeps_interval_from_shrinking():
    result = _update(3, ef=2.5, level=3, score=8, interval=15)
    assert result.interval_days >= 15


def test_next_review_is_always_in_the_future():
    for quality in (0, 3, 5):
        assert _update(quality, level=0, score=0, interval=0).next_review_date > TODAY


def test_recognition_cap_stops_growth_at_ten():
    assert combine_srs_score(9, 5, 10) == 10
    assert combine_srs_score(10, 5, 10) == 10


def test_cap_does_not_pull_a_mature_score_down():
    assert combine_srs_score(14, 5, 10) == 14


def test_recall_cap_and_hard_ceiling():
    assert combine_srs_score(14, 5, 15) == 15
    assert combine_srs_score(None, 3, 15) == 1


def test_failure_costs_three_points_with_floor_at_zero():
    assert combine_srs_score(8, 0, 15) == 5
    assert combine_srs_score(1, 0, 15) == 0


@pytest.mark.parametrize("cap", [10, 15])
def test_score_increase_respects_session_cap(cap):
    for start in range(0, 16):
        for quality in (0, 3, 5):
            new_score = _update(quality, cap=cap, score=start).srs_score
            if new_score > start:
                assert new_score <= cap


def test_level_promotes_once_score_reaches_twelve():
    result = _update(5, level=2, score=10, interval=6)
    assert result.srs_score == 12
    assert result.srs_level == 3
    assert result.interval_days == round(6 * 2.6)


def test_level_demotes_when_failure_drops_score_low():
    result = _update(0, level=3, score=7)
    assert result.srs_score == 4
    assert result.srs_level == 2


def test_deadline_compresses_long_intervals():
    result = _update(5, level=4, score=13, interval=30, deadline_days=5)
    assert result.interval_days == 2


def test_update_is_deterministic():
    assert _update(5) == _update(5)
