"""
Tests for round scoring.
"""

from cosmosmind.scoring import (
    ScoreBreakdown, ScoringEngine, grade_for, round_half_up, star_rating,
)


def test_incorrect_scores_zero():
    """A wrong answer scores nothing and breaks the combo."""
    engine = ScoringEngine()
    engine.score_round(True, 500, "largest_shape", 1)
    engine.score_round(True, 500, "largest_shape", 2)
    assert engine.combo == 2

    result = engine.score_round(False, 500, "largest_shape", 0)
    assert result == ScoreBreakdown()
    assert result.is_zero
    assert engine.combo == 0


def test_first_correct_round():
    """Instant answer on an easy challenge: base + full speed + difficulty."""
    result = ScoringEngine().score_round(True, 0, "largest_shape", 0)
    assert result.base == 100
    assert result.streak_bonus == 0
    assert result.speed_bonus == 50
    assert result.accuracy_bonus == 0
    assert result.difficulty_bonus == 4
    assert result.combo_bonus == 0
    assert result.perfect_bonus == 0
    assert result.total == 154
    assert result.multiplier == 1.0


def test_speed_bonus_is_quadratic():
    """Half the time left earns a quarter of the speed bonus."""
    result = ScoringEngine().score_round(True, 5000, "largest_shape", 0)
    assert result.speed_bonus == 13
    late = ScoringEngine().score_round(True, 12000, "largest_shape", 0)
    assert late.speed_bonus == 0


def test_non_positive_time_limit_uses_default():
    a = ScoringEngine().score_round(True, 5000, "largest_shape", 0, time_limit_sec=0)
    b = ScoringEngine().score_round(True, 5000, "largest_shape", 0, time_limit_sec=-3)
    assert a.speed_bonus == b.speed_bonus == 13


def test_streak_multiplier_caps():
    result = ScoringEngine().score_round(True, 9000, "largest_shape", 20)
    assert result.multiplier == 3.0
    assert result.streak_bonus == 200

    mid = ScoringEngine().score_round(True, 9000, "largest_shape", 2)
    assert mid.multiplier == 1.5
    assert mid.streak_bonus == 50


def test_combo_bonus():
    """Combo pays from the third consecutive correct answer."""
    engine = ScoringEngine()
    bonuses = [engine.score_round(True, 9000, "largest_shape", i).combo_bonus for i in range(5)]
    assert bonuses == [0, 0, 25, 50, 75]


def test_accuracy_and_perfect_bonus():
    snapshot = {"recentAccuracy": 1.0}
    result = ScoringEngine().score_round(True, 1000, "largest_shape", 0, snapshot)
    assert result.accuracy_bonus == 30
    assert result.perfect_bonus == 200

    slow = ScoringEngine().score_round(True, 6000, "largest_shape", 0, snapshot)
    assert slow.perfect_bonus == 0


def test_harder_challenges_pay_more():
    easy = ScoringEngine().score_round(True, 9000, "largest_shape", 0)
    hard = ScoringEngine().score_round(True, 9000, "color_shift", 0)
    assert hard.difficulty_bonus == 100
    assert hard.total > easy.total


def test_unknown_challenge_is_neutral():
    result = ScoringEngine().score_round(True, 9000, "not_a_challenge", 0)
    assert result.difficulty_bonus == 40


def test_garbage_snapshot_is_ignored():
    result = ScoringEngine().score_round(True, 9000, "largest_shape", 0, {"recentAccuracy": "lots"})
    assert result.accuracy_bonus == 0


def test_session_aggregates():
    """Average and grade count scored rounds only."""
    engine = ScoringEngine()
    first = engine.score_round(True, 0, "largest_shape", 0)
    engine.score_round(False, 0, "largest_shape", 0)
    assert engine.total_score == first.total
    assert engine.average_score() == first.total
    summary = engine.summary()
    assert summary["roundsScored"] == 1
    assert summary["grade"] == "B"
    assert summary["gradeColor"].startswith("#")

    engine.reset()
    assert engine.average_score() == 0
    assert engine.grade() == "D"


def test_grade_bands():
    assert grade_for(400) == "S+"
    assert grade_for(399) == "S"
    assert grade_for(150) == "B"
    assert grade_for(99) == "D"


def test_star_rating():
    assert star_rating(1000, 0) == 0
    assert star_rating(1000, -5) == 0
    assert star_rating(1500, 1000) == 3
    assert star_rating(1000, 1000) == 2
    assert star_rating(500, 1000) == 1
    assert star_rating(499, 1000) == 0


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(12.5) == 13
    assert round_half_up(0.49) == 0
