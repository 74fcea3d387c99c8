import pytest

from config import DEFAULT_GAME_TIERS
from models.session import GameAnswer, GameResult
from utils.results import (
    CardAnswer,
    combine_results,
    game_tier,
    games_for_card,
    map_quality,
    resolve_session_cap,
    specific_results,
)


def _game(game_id, answers, correct=None, total=None):
    parsed = [GameAnswer(card_id=c, is_correct=ok, time_spent_ms=ms) for c, ok, ms in answers]
    return GameResult(
        game_id=game_id,
        answers=parsed,
        correct=sum(1 for a in parsed if a.is_correct) if correct is None else correct,
        total=len(parsed) if total is None else total,
    )


def test_specific_results_collects_answers_from_every_game():
    games = [
        _game("quiz", [("a", True, 1000), ("b", False, 2000)]),
        _game("hangman", [("a", True, 5000)]),
    ]
    answers = specific_results(games, "a")
    assert [answer.game_id for answer in answers] == ["quiz", "hangman"]
    assert [game.game_id for game in games_for_card(games, "b")] == ["quiz"]
    assert specific_results(games, "missing") == []


def test_any_miss_fails_the_card():
    answers = [CardAnswer("quiz", True, 500), CardAnswer("hangman", False, 500)]
    assert map_quality(answers) == 0


def test_fast_single_game_is_perfect():
    assert map_quality([CardAnswer("quiz", True, 2999)]) == 5


def test_slow_single_game_passes():
    assert map_quality([CardAnswer("quiz", True, 3000)]) == 3


def test_cross_game_correct_overrides_slow_average():
    answers = [CardAnswer("quiz", True, 4000), CardAnswer("matching", True, 4000)]
    assert map_quality(answers) == 5


def test_repeat_answers_in_one_game_are_not_cross_game():
    answers = [CardAnswer("quiz", True, 4000), CardAnswer("quiz", True, 4000)]
    assert map_quality(answers) == 3


def test_untimed_answers_count_as_fast():
    assert map_quality([CardAnswer("quiz", True, None)]) == 5


def test_quality_needs_answers():
    with pytest.raises(ValueError):
        map_quality([])


def test_recognition_only_games_cap_at_ten():
    assert resolve_session_cap(["quiz", "matching"], DEFAULT_GAME_TIERS) == 10


def test_any_recall_game_raises_cap_to_fifteen():
    assert resolve_session_cap(["quiz", "hangman"], DEFAULT_GAME_TIERS) == 15


def test_unknown_game_is_treated_as_recall():
    assert game_tier("brand-new-game", DEFAULT_GAME_TIERS) == 2
    assert resolve_session_cap(["brand-new-game"], DEFAULT_GAME_TIERS) == 15


def test_broken_tier_table_falls_back_to_recall():
    assert game_tier("quiz", None) == 2
    assert game_tier("quiz", ["not", "a", "mapping"]) == 2


def test_combined_results_flag_cards_below_two_thirds_success():
    games = [
        _game("quiz", [("a", True, None), ("b", False, None)]),
        _game("matching", [("a", True, None), ("b", True, None)]),
        _game("hangman", [("a", True, None), ("b", True, None)]),
    ]
    combined = combine_results(["a", "b", "c"], games)
    assert combined.total_correct == 5
    assert combined.total_questions == 6
    assert combined.combined_score == 83
    assert combined.wrong_card_ids == ["b", "c"]


def test_combined_results_without_games():
    combined = combine_results(["a"], [])
    assert combined.combined_score == 0
    assert combined.wrong_card_ids == []
