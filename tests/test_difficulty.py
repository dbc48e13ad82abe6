"""
Tests for the adaptive difficulty controller and challenge selection.
"""

import random

from cosmosmind.difficulty import AdaptiveDifficultyController, Bounds, DifficultyVector
from cosmosmind.shapes import ChallengeType


class _NoDraws:
    """RNG that fails the test if it is ever consulted."""
    def random(self):
        raise AssertionError("rng should not be used")


def _in_bounds(v: DifficultyVector, b: Bounds):
    assert b.time_pressure[0] <= v.time_pressure <= b.time_pressure[1]
    assert b.shape_count[0] <= v.shape_count <= b.shape_count[1]
    assert b.challenge_complexity[0] <= v.challenge_complexity <= b.challenge_complexity[1]
    assert b.visual_noise[0] <= v.visual_noise <= b.visual_noise[1]
    assert b.distractor_count[0] <= v.distractor_count <= b.distractor_count[1]


def test_defaults():
    ctl = AdaptiveDifficultyController(rng=random.Random(0))
    v = ctl.current()
    assert v == DifficultyVector(1.0, 4, 0.3, 0.1, 1)
    assert ctl.recent_success_rate() == 0.7
    assert ctl.label() == "Getting Interesting"


def test_on_target_with_no_history_holds_still():
    ctl = AdaptiveDifficultyController(rng=random.Random(0))
    assert ctl.adapt() == DifficultyVector(1.0, 4, 0.3, 0.1, 1)


def test_winning_streak_raises_difficulty():
    """20 correct rounds push shape count up to, never past, the ceiling."""
    ctl = AdaptiveDifficultyController(rng=random.Random(0))
    for _ in range(20):
        ctl.record_result(True)
        v = ctl.adapt()
    assert 4 < v.shape_count <= 12
    assert v.shape_count == 12
    assert v.time_pressure < 1.0
    assert v.challenge_complexity > 0.3
    assert v.distractor_count == 4


def test_losing_streak_lowers_difficulty():
    ctl = AdaptiveDifficultyController(rng=random.Random(0))
    for _ in range(20):
        ctl.record_result(False)
        v = ctl.adapt()
    assert v.shape_count == 3
    assert v.time_pressure > 1.0
    assert v.challenge_complexity == 0.2


def test_bounds_hold_under_random_play():
    rng = random.Random(11)
    ctl = AdaptiveDifficultyController(rng=rng)
    b = ctl.config.bounds
    snapshot = {"accuracy": 0.95, "totalRounds": 500}
    for _ in range(300):
        ctl.record_result(rng.random() < 0.6)
        _in_bounds(ctl.adapt(snapshot), b)


def test_noise_and_distractors_only_rise():
    """Once raised, noise and distractors stay up through a losing run."""
    ctl = AdaptiveDifficultyController(rng=random.Random(0))
    snapshot = {"accuracy": 0.9, "totalRounds": 40}
    for _ in range(10):
        ctl.record_result(True)
        ctl.adapt(snapshot)
    peak = ctl.current()
    assert peak.visual_noise > 0.1
    assert peak.distractor_count > 1

    noise, distractors = peak.visual_noise, peak.distractor_count
    for _ in range(20):
        ctl.record_result(False)
        v = ctl.adapt({"accuracy": 0.1, "totalRounds": 60})
        assert v.visual_noise >= noise
        assert v.distractor_count >= distractors
        noise, distractors = v.visual_noise, v.distractor_count

    ctl.reset()
    assert ctl.current() == DifficultyVector()


def test_history_is_bounded():
    ctl = AdaptiveDifficultyController(rng=random.Random(0))
    for _ in range(50):
        ctl.record_result(True)
    assert len(ctl.history) == 20


def test_time_limit_and_shape_count_for():
    ctl = AdaptiveDifficultyController(rng=random.Random(0))
    assert ctl.time_limit(10) == 10
    for _ in range(20):
        assert 4 <= ctl.shape_count_for(4) <= 5
    assert ctl.shape_count_for(40) == 12


def test_select_challenge_edge_cases():
    ctl = AdaptiveDifficultyController(rng=_NoDraws())
    assert ctl.select_challenge([]) is ChallengeType.LARGEST
    assert ctl.select_challenge(["pulsing"]) is ChallengeType.PULSING


def test_select_challenge_is_seeded():
    pool = ["largest_shape", "unique_color", "odd_one_out", "diagonal"]
    ctl = AdaptiveDifficultyController()
    first = [ctl.select_challenge(pool, rng=random.Random(5)) for _ in range(3)]
    again = [ctl.select_challenge(pool, rng=random.Random(5)) for _ in range(3)]
    assert first == again
    assert all(c.value in pool for c in first)


def test_struggling_types_come_up_more():
    """Low accuracy with enough attempts outweighs a mastered type."""
    ctl = AdaptiveDifficultyController(rng=random.Random(2))
    snapshot = {
        "challengeAccuracy": {"largest_shape": 0.95, "odd_one_out": 0.3},
        "challengeAttempts": {"largest_shape": 30, "odd_one_out": 30},
    }
    assert ctl.challenge_weight("odd_one_out", snapshot) == 1.5
    assert ctl.challenge_weight("largest_shape", snapshot) == 0.7
    assert ctl.challenge_weight("diagonal", snapshot) == 1.3

    picks = [ctl.select_challenge(["largest_shape", "odd_one_out"], snapshot) for _ in range(400)]
    assert picks.count(ChallengeType.ODD_ONE_OUT) > picks.count(ChallengeType.LARGEST)


def test_snapshot_restores_state():
    ctl = AdaptiveDifficultyController(rng=random.Random(0))
    for outcome in (True, True, False, True):
        ctl.record_result(outcome)
        ctl.adapt()
    restored = AdaptiveDifficultyController.from_snapshot(ctl.snapshot(), rng=random.Random(0))
    assert restored.history == ctl.history
    assert restored.current().shape_count == ctl.current().shape_count


def test_snapshot_out_of_range_is_clamped():
    restored = AdaptiveDifficultyController.from_snapshot(
        {"vector": {"shapeCount": 99, "timePressure": 0.1}}, rng=random.Random(0),
    )
    assert restored.current().shape_count == 12
    assert restored.current().time_pressure == 0.6
