"""
CosmosMind Scoring
==================
Skill-weighted points for a single round, accumulated per session.

total = base + streak + speed + accuracy + difficulty + combo + perfect

A wrong answer scores nothing and breaks the combo. Streak is supplied by
the caller; combo is counted here, one ScoringEngine per session.
"""

import math
from dataclasses import dataclass, asdict
from typing import Optional

from cosmosmind import config
from cosmosmind.shapes import complexity_of


GRADE_BANDS = [
    (400, "S+"),
    (350, "S"),
    (300, "A+"),
    (250, "A"),
    (200, "B+"),
    (150, "B"),
    (100, "C"),
]

GRADE_COLORS = {
    "S+": "#FFD700",
    "S": "#FFA500",
    "A+": "#FF6B6B",
    "A": "#FF69B4",
    "B+": "#00CED1",
    "B": "#00BFFF",
    "C": "#98FB98",
    "D": "#AAAAAA",
}


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (Python's round() is banker's)."""
    return int(math.floor(value + 0.5))


@dataclass
class ScoringConfig:
    base_points: int = config.SCORE_BASE_POINTS
    streak_multiplier_max: float = config.STREAK_MULTIPLIER_MAX
    streak_multiplier_increment: float = config.STREAK_MULTIPLIER_INCREMENT
    speed_bonus_max: float = config.SPEED_BONUS_MAX
    accuracy_bonus_max: float = config.ACCURACY_BONUS_MAX
    difficulty_multiplier_range: tuple = config.DIFFICULTY_MULTIPLIER_RANGE
    combo_threshold: int = config.COMBO_THRESHOLD
    combo_bonus_step: int = config.COMBO_BONUS_PER_STEP
    perfect_round_bonus: int = config.PERFECT_ROUND_BONUS
    default_time_limit_sec: float = config.DEFAULT_TIME_LIMIT_SEC


@dataclass
class ScoreBreakdown:
    base: int = 0
    streak_bonus: int = 0
    speed_bonus: int = 0
    accuracy_bonus: int = 0
    difficulty_bonus: int = 0
    combo_bonus: int = 0
    perfect_bonus: int = 0
    total: int = 0
    multiplier: float = 1.0

    @property
    def is_zero(self) -> bool:
        return self.total == 0

    def to_dict(self) -> dict:
        return asdict(self)


def _recent_accuracy(profile_snapshot) -> float:
    if profile_snapshot is None:
        return 0.0
    if isinstance(profile_snapshot, dict):
        value = profile_snapshot.get("recentAccuracy", profile_snapshot.get("accuracy", 0.0))
    else:
        value = getattr(profile_snapshot, "recent_accuracy", 0.0)
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(value):
        return 0.0
    return min(1.0, max(0.0, value))


class ScoringEngine:
    """Per-session score accumulator."""

    def __init__(self, scoring_config: Optional[ScoringConfig] = None):
        self.config = scoring_config or ScoringConfig()
        self.combo = 0
        self.round_scores: list[int] = []
        self.total_score = 0

    def reset(self):
        self.combo = 0
        self.round_scores = []
        self.total_score = 0

    def difficulty_multiplier(self, complexity: float) -> float:
        lo, hi = self.config.difficulty_multiplier_range
        complexity = min(1.0, max(0.0, complexity))
        return lo + complexity * (hi - lo)

    def score_round(
        self,
        correct: bool,
        response_time_ms: float,
        challenge_type,
        streak: int,
        profile_snapshot=None,
        time_limit_sec: Optional[float] = None,
    ) -> ScoreBreakdown:
        """Score one round. Incorrect rounds reset the combo and return zeros."""
        if not correct:
            self.combo = 0
            return ScoreBreakdown()

        cfg = self.config
        self.combo += 1

        response_time_ms = max(0.0, float(response_time_ms or 0))
        streak = max(0, int(streak or 0))
        if not time_limit_sec or time_limit_sec <= 0:
            time_limit_sec = cfg.default_time_limit_sec
        limit_ms = time_limit_sec * 1000
        recent_accuracy = _recent_accuracy(profile_snapshot)

        base = cfg.base_points

        multiplier = min(1 + streak * cfg.streak_multiplier_increment, cfg.streak_multiplier_max)
        streak_bonus = round_half_up(base * (multiplier - 1))

        time_ratio = max(0.0, (limit_ms - response_time_ms) / limit_ms)
        speed_bonus = round_half_up(cfg.speed_bonus_max * time_ratio * time_ratio)

        accuracy_bonus = round_half_up(cfg.accuracy_bonus_max * recent_accuracy)

        complexity = complexity_of(challenge_type)
        difficulty_bonus = round_half_up(base * (self.difficulty_multiplier(complexity) - 1))

        combo_bonus = 0
        if self.combo >= cfg.combo_threshold:
            combo_bonus = round_half_up(cfg.combo_bonus_step * (self.combo - cfg.combo_threshold + 1))

        perfect_bonus = 0
        if recent_accuracy == 1.0 and response_time_ms < limit_ms / 2:
            perfect_bonus = cfg.perfect_round_bonus

        total = base + streak_bonus + speed_bonus + accuracy_bonus + difficulty_bonus + combo_bonus + perfect_bonus
        self.round_scores.append(total)
        self.total_score += total

        return ScoreBreakdown(
            base=base,
            streak_bonus=streak_bonus,
            speed_bonus=speed_bonus,
            accuracy_bonus=accuracy_bonus,
            difficulty_bonus=difficulty_bonus,
            combo_bonus=combo_bonus,
            perfect_bonus=perfect_bonus,
            total=total,
            multiplier=multiplier,
        )

    # ── Aggregates ───────────────────────────────────────

    def average_score(self) -> int:
        """Mean over scored (correct) rounds, 0 before any."""
        if not self.round_scores:
            return 0
        return round_half_up(self.total_score / len(self.round_scores))

    def grade(self) -> str:
        return grade_for(self.average_score())

    def star_rating(self, target_score: float) -> int:
        return star_rating(self.total_score, target_score)

    def summary(self) -> dict:
        grade = self.grade()
        return {
            "totalScore": self.total_score,
            "averageScore": self.average_score(),
            "roundsScored": len(self.round_scores),
            "combo": self.combo,
            "grade": grade,
            "gradeColor": GRADE_COLORS[grade],
        }


def grade_for(average: float) -> str:
    for floor, letter in GRADE_BANDS:
        if average >= floor:
            return letter
    return "D"


def star_rating(total_score: float, target_score: float) -> int:
    """0-3 stars for total against target. A non-positive target earns nothing."""
    if not target_score or target_score <= 0:
        return 0
    ratio = total_score / target_score
    if ratio >= 1.5:
        return 3
    if ratio >= 1.0:
        return 2
    if ratio >= 0.5:
        return 1
    return 0
