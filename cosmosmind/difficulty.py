"""
CosmosMind Adaptive Difficulty
==============================
Proportional feedback loop that keeps the player near a 70% success rate.

    error      = recent success rate - target
    adjustment = error * gain

Time pressure and challenge complexity move by the adjustment every step.
Shape count moves one step only outside the deadband. Visual noise and
distractor count only ever rise: once the player has earned harder rounds
they stay harder until the controller is reset.

Challenge selection is a cumulative-weight roulette draw over
struggle x novelty x jitter. The random source is injected; anything with
a .random() method works (numpy Generator or random.Random).
"""

import math
from dataclasses import dataclass, asdict, field
from typing import Optional, Sequence

import numpy as np

from cosmosmind import config
from cosmosmind.log import log
from cosmosmind.shapes import ChallengeType


@dataclass(frozen=True)
class Bounds:
    time_pressure: tuple = (0.6, 1.5)
    shape_count: tuple = (3, 12)
    challenge_complexity: tuple = (0.2, 1.0)
    visual_noise: tuple = (0.0, 0.4)
    distractor_count: tuple = (0, 4)


@dataclass
class AdaptiveConfig:
    target_success_rate: float = config.TARGET_SUCCESS_RATE
    gain: float = config.ADAPTATION_GAIN
    deadband: float = config.SHAPE_COUNT_DEADBAND
    history_size: int = config.OUTCOME_HISTORY_SIZE
    recent_window: int = config.RECENT_WINDOW
    bounds: Bounds = field(default_factory=Bounds)


@dataclass
class DifficultyVector:
    time_pressure: float = 1.0
    shape_count: int = 4
    challenge_complexity: float = 0.3
    visual_noise: float = 0.1
    distractor_count: int = 1

    def to_dict(self) -> dict:
        return {
            "timePressure": round(self.time_pressure, 4),
            "shapeCount": self.shape_count,
            "challengeComplexity": round(self.challenge_complexity, 4),
            "visualNoise": round(self.visual_noise, 4),
            "distractorCount": self.distractor_count,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DifficultyVector":
        base = cls()

        def pick(key, default):
            value = data.get(key)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
                return default
            return value

        return cls(
            time_pressure=float(pick("timePressure", base.time_pressure)),
            shape_count=int(pick("shapeCount", base.shape_count)),
            challenge_complexity=float(pick("challengeComplexity", base.challenge_complexity)),
            visual_noise=float(pick("visualNoise", base.visual_noise)),
            distractor_count=int(pick("distractorCount", base.distractor_count)),
        )


DIFFICULTY_LABELS = [
    (0.3, "Warming Up", "#00FF88"),
    (0.5, "Getting Interesting", "#00FFFF"),
    (0.7, "Challenging", "#FFD700"),
    (0.9, "Intense", "#FF6B00"),
]
EXTREME_LABEL = ("EXTREME", "#FF0066")


def clamp(value, bounds):
    lo, hi = bounds
    return max(lo, min(hi, value))


def _profile_get(profile, key, default):
    if isinstance(profile, dict):
        return profile.get(key, default)
    return default


class AdaptiveDifficultyController:
    """One controller per active session."""

    def __init__(self, adaptive_config: Optional[AdaptiveConfig] = None, rng=None):
        self.config = adaptive_config or AdaptiveConfig()
        self.rng = rng if rng is not None else np.random.default_rng()
        self.vector = DifficultyVector()
        self.history: list[bool] = []
        self._clamp_all()

    def reset(self):
        self.vector = DifficultyVector()
        self.history = []
        self._clamp_all()

    # ── Outcomes ─────────────────────────────────────────

    def record_result(self, correct: bool):
        self.history.append(bool(correct))
        if len(self.history) > self.config.history_size:
            self.history = self.history[-self.config.history_size:]

    def recent_success_rate(self) -> float:
        """Success over the most recent window. Empty history sits on target."""
        if not self.history:
            return self.config.target_success_rate
        recent = self.history[-self.config.recent_window:]
        return sum(recent) / len(recent)

    # ── Control step ─────────────────────────────────────

    def adapt(self, profile_snapshot=None) -> DifficultyVector:
        """Run one control step and return a copy of the new vector."""
        cfg = self.config
        b = cfg.bounds
        v = self.vector

        recent = self.recent_success_rate()
        error = recent - cfg.target_success_rate
        adjustment = error * cfg.gain

        v.time_pressure = clamp(v.time_pressure - adjustment * 0.3, b.time_pressure)
        v.challenge_complexity = clamp(v.challenge_complexity + adjustment * 0.2, b.challenge_complexity)

        if abs(error) > cfg.deadband:
            step = 1 if error > 0 else -1
            v.shape_count = int(clamp(v.shape_count + step, b.shape_count))

        accuracy = float(_profile_get(profile_snapshot, "accuracy", 0.0) or 0.0)
        total_rounds = int(_profile_get(profile_snapshot, "totalRounds", 0) or 0)
        if accuracy > config.NOISE_ACCURACY_GATE and total_rounds > config.NOISE_MIN_ROUNDS:
            v.visual_noise = clamp(v.visual_noise + config.NOISE_STEP, b.visual_noise)

        if recent > config.DISTRACTOR_SUCCESS_GATE:
            v.distractor_count = int(clamp(v.distractor_count + 1, b.distractor_count))

        log.debug(
            f"Difficulty step: success={recent:.2f} error={error:+.2f} "
            f"shapes={v.shape_count} pressure={v.time_pressure:.3f} "
            f"complexity={v.challenge_complexity:.3f}"
        )
        return self.current()

    def current(self) -> DifficultyVector:
        return DifficultyVector(**asdict(self.vector))

    def _clamp_all(self):
        b = self.config.bounds
        v = self.vector
        v.time_pressure = clamp(v.time_pressure, b.time_pressure)
        v.shape_count = int(clamp(v.shape_count, b.shape_count))
        v.challenge_complexity = clamp(v.challenge_complexity, b.challenge_complexity)
        v.visual_noise = clamp(v.visual_noise, b.visual_noise)
        v.distractor_count = int(clamp(v.distractor_count, b.distractor_count))

    # ── Derived round parameters ─────────────────────────

    def time_limit(self, base_seconds: float) -> int:
        return int(round(base_seconds * self.vector.time_pressure))

    def shape_count_for(self, level_base: int) -> int:
        """Shapes for a round at a level: base, nudged by complexity, plus a coin flip."""
        bump = 1 if self.rng.random() > 0.5 else 0
        raw = level_base + (self.vector.challenge_complexity - 0.5) * 2 + bump
        return int(round(clamp(raw, self.config.bounds.shape_count)))

    def label(self) -> str:
        return self._band()[0]

    def color(self) -> str:
        return self._band()[1]

    def _band(self) -> tuple:
        c = self.vector.challenge_complexity
        for ceiling, label, color in DIFFICULTY_LABELS:
            if c < ceiling:
                return label, color
        return EXTREME_LABEL

    # ── Challenge selection ──────────────────────────────

    def challenge_weight(self, challenge, profile_snapshot=None) -> float:
        """Struggle x novelty, before jitter."""
        key = ChallengeType.parse(challenge).value
        per_type_accuracy = _profile_get(profile_snapshot, "challengeAccuracy", {}) or {}
        per_type_attempts = _profile_get(profile_snapshot, "challengeAttempts", {}) or {}
        accuracy = per_type_accuracy.get(key, 0.5)
        attempts = per_type_attempts.get(key, 0)

        if accuracy < 0.5:
            struggle = 1.5
        elif accuracy > 0.8:
            struggle = 0.7
        else:
            struggle = 1.0
        novelty = 1.3 if attempts < 5 else 1.0
        return struggle * novelty

    def select_challenge(
        self,
        available: Sequence,
        profile_snapshot=None,
        rng=None,
    ) -> ChallengeType:
        """Weighted roulette over available challenge types."""
        rng = rng if rng is not None else self.rng
        options = [ChallengeType.parse(c) for c in available]
        if not options:
            return ChallengeType.LARGEST
        if len(options) == 1:
            return options[0]

        weights = [
            self.challenge_weight(c, profile_snapshot) * (0.8 + rng.random() * 0.4)
            for c in options
        ]
        draw = rng.random() * sum(weights)
        for challenge, weight in zip(options, weights):
            draw -= weight
            if draw <= 0:
                return challenge
        return options[0]

    # ── Persistence ──────────────────────────────────────

    def snapshot(self) -> dict:
        return {"vector": self.vector.to_dict(), "history": list(self.history)}

    @classmethod
    def from_snapshot(cls, data: dict, adaptive_config: Optional[AdaptiveConfig] = None, rng=None):
        ctl = cls(adaptive_config, rng=rng)
        if isinstance(data, dict):
            vec = data.get("vector")
            if isinstance(vec, dict):
                ctl.vector = DifficultyVector.from_dict(vec)
            for outcome in data.get("history", []) or []:
                ctl.record_result(bool(outcome))
        ctl._clamp_all()
        return ctl
