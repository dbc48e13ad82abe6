"""
CosmosMind Session Tracker
==========================
Watches every trial of one session and keeps running observations:
streaks, per-challenge learning curves, speed/accuracy risk profile,
fatigue, intuition vs analysis, and an inferred mood.

The tracker never writes to the stored player mind. It starts from a copy
of the mind's risk, fatigue and curve data and hands its observations
back through summary(); ProfileUpdater folds them in at session end.
"""

import copy
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from cosmosmind.mind import lifetime_hits, now_ms
from cosmosmind.shapes import ChallengeType, complexity_of


RECENT_TRIALS = 20
MOOD_WINDOW = 10
FAST_RESPONSE_MS = 1500
HIGH_PRESSURE_COMPLEXITY = 0.7
FATIGUE_REFERENCE_MS = 20 * 60 * 1000


@dataclass
class Trial:
    challenge_type: str
    correct: bool
    response_time_ms: float
    rule_complexity: float = 0.5
    timestamp: int = field(default_factory=now_ms)
    position: Optional[tuple] = None


def _smooth(current: float, target: float, rate: float) -> float:
    return current + (target - current) * rate


def _accuracy(trials) -> float:
    if not trials:
        return 0.0
    return sum(1 for t in trials if t.correct) / len(trials)


class SessionTracker:
    """Per-session observer. Create one when a session starts."""

    def __init__(self, mind: Optional[dict] = None, sector_id: str = "", chamber_id: str = ""):
        mind = mind or {}
        self.sector_id = sector_id
        self.chamber_id = chamber_id
        self.trials: list[Trial] = []
        self.current_streak = 0
        self.peak_streak = 0
        self.started_at: Optional[int] = None

        self._baseline_p75 = float(mind.get("reactionProfile", {}).get("percentile_75", 900.0))
        self.risk = copy.deepcopy(mind.get("riskProfile", {
            "riskTolerance": 0.5,
            "speedAccuracyTradeoff": 0.5,
            "hesitationFrequency": 0.2,
            "changeOfMindRate": 0.1,
            "pressureResponse": "neutral",
        }))
        self.fatigue = copy.deepcopy(mind.get("fatigueModel", {
            "sessionDuration": 0,
            "roundsPlayed": 0,
            "responseTimeDeviation": 0.0,
            "accuracyDecline": 0.0,
            "estimatedFatigue": 0.0,
            "recommendedBreak": False,
        }))
        # decline is measured within this session only
        self.fatigue["accuracyDecline"] = 0.0
        self.intuition = float(mind.get("behaviorSignature", {}).get("intuitionVsAnalysis", 0.0))
        self.curves: dict = copy.deepcopy(mind.get("learningCurves", {}))
        self.mood = "curious"
        self.trend = "stable"

    # ── Recording ────────────────────────────────────────

    def record_trial(
        self,
        challenge_type,
        correct: bool,
        response_time_ms: float,
        rule_complexity: Optional[float] = None,
        timestamp: Optional[int] = None,
        position: Optional[tuple] = None,
    ) -> Trial:
        key = ChallengeType.parse(challenge_type).value
        if rule_complexity is None:
            rule_complexity = complexity_of(key)
        trial = Trial(
            challenge_type=key,
            correct=bool(correct),
            response_time_ms=max(0.0, float(response_time_ms or 0)),
            rule_complexity=min(1.0, max(0.0, float(rule_complexity))),
            timestamp=timestamp if timestamp is not None else now_ms(),
            position=position,
        )
        if self.started_at is None:
            self.started_at = trial.timestamp
        self.trials.append(trial)

        if trial.correct:
            self.current_streak += 1
            self.peak_streak = max(self.peak_streak, self.current_streak)
        else:
            self.current_streak = 0

        self._update_curve(trial)
        self._update_risk()
        self._update_fatigue()
        self._update_intuition(trial)
        self._update_trend()
        self._infer_mood()
        return trial

    # ── Learning curves ──────────────────────────────────

    def _update_curve(self, trial: Trial):
        curve = self.curves.get(trial.challenge_type)
        if curve is None:
            start = 100.0 if trial.correct else 0.0
            curve = {
                "challengeType": trial.challenge_type,
                "exposures": 0,
                "correct": 0,
                "initialAccuracy": start,
                "currentAccuracy": start,
                "plateauLevel": 0.0,
                "improvementRate": 0.0,
                "lastExposure": trial.timestamp,
            }
            self.curves[trial.challenge_type] = curve

        curve["correct"] = lifetime_hits(curve) + (1 if trial.correct else 0)
        curve["exposures"] += 1
        curve["lastExposure"] = trial.timestamp
        same_type = [t for t in self.trials if t.challenge_type == trial.challenge_type]
        accuracy = _accuracy(same_type) * 100
        previous = curve["currentAccuracy"]
        curve["currentAccuracy"] = accuracy
        curve["improvementRate"] = (accuracy - previous) / curve["exposures"]
        if curve["exposures"] >= 5 and abs(curve["improvementRate"]) < 1:
            curve["plateauLevel"] = accuracy

    # ── Risk ─────────────────────────────────────────────

    def _update_risk(self):
        recent = self.trials[-RECENT_TRIALS:]
        fast = [t for t in recent if t.response_time_ms < FAST_RESPONSE_MS]
        fast_accuracy = _accuracy(fast) if fast else 0.5

        self.risk["speedAccuracyTradeoff"] = _smooth(
            self.risk["speedAccuracyTradeoff"], len(fast) / len(recent) - 0.5, 0.1,
        )

        threshold = self._baseline_p75 * 1.5
        hesitations = sum(1 for t in recent if t.response_time_ms > threshold)
        self.risk["hesitationFrequency"] = hesitations / len(recent)

        high = [t for t in recent if t.rule_complexity > HIGH_PRESSURE_COMPLEXITY]
        low = [t for t in recent if t.rule_complexity <= HIGH_PRESSURE_COMPLEXITY]
        if len(high) >= 3 and len(low) >= 3:
            high_acc, low_acc = _accuracy(high), _accuracy(low)
            if high_acc > low_acc * 1.1:
                self.risk["pressureResponse"] = "thrives"
            elif high_acc < low_acc * 0.8:
                self.risk["pressureResponse"] = "struggles"
            else:
                self.risk["pressureResponse"] = "neutral"

        self.risk["riskTolerance"] = _smooth(
            self.risk["riskTolerance"], 0.7 if fast_accuracy > 0.6 else 0.3, 0.05,
        )

    # ── Fatigue ──────────────────────────────────────────

    def _update_fatigue(self):
        f = self.fatigue
        f["sessionDuration"] = self.trials[-1].timestamp - self.started_at
        f["roundsPlayed"] = len(self.trials)

        times = np.array([t.response_time_ms for t in self.trials[-10:]], dtype=float)
        mean = float(np.mean(times))
        f["responseTimeDeviation"] = float(np.std(times)) / mean if mean > 0 else 0.0

        if len(self.trials) >= 20:
            decline = _accuracy(self.trials[:10]) - _accuracy(self.trials[-10:])
            f["accuracyDecline"] = max(0.0, decline)

        f["estimatedFatigue"] = min(
            1.0,
            f["sessionDuration"] / FATIGUE_REFERENCE_MS * 0.3
            + f["responseTimeDeviation"] * 0.3
            + f.get("accuracyDecline", 0.0) * 0.4,
        )
        f["recommendedBreak"] = f["estimatedFatigue"] > 0.7

    # ── Behavior ─────────────────────────────────────────

    def _update_intuition(self, trial: Trial):
        if not trial.correct:
            return
        if trial.response_time_ms < 1200:
            self.intuition = _smooth(self.intuition, 1.0, 0.1)
        elif trial.response_time_ms >= 2000:
            self.intuition = _smooth(self.intuition, -1.0, 0.1)

    def _update_trend(self):
        times = [t.response_time_ms for t in self.trials[-RECENT_TRIALS:]]
        if len(times) < 5:
            return
        mean = float(np.mean(times))
        if mean > 0 and float(np.std(times)) > mean * 0.5:
            self.trend = "volatile"
            return
        if len(times) < 10:
            self.trend = "stable"
            return
        older = float(np.mean(times[-10:-5]))
        newer = float(np.mean(times[-5:]))
        if older > 0 and newer < older * 0.95:
            self.trend = "improving"
        elif older > 0 and newer > older * 1.05:
            self.trend = "declining"
        else:
            self.trend = "stable"

    def _infer_mood(self):
        recent = self.trials[-MOOD_WINDOW:]
        if len(recent) < 5:
            self.mood = "curious"
            return
        accuracy = _accuracy(recent)
        avg_time = float(np.mean([t.response_time_ms for t in recent]))
        median = float(np.median([t.response_time_ms for t in self.trials]))

        if accuracy > 0.8 and avg_time < 1500 and self.trend == "improving":
            self.mood = "flowing"
        elif accuracy > 0.7 and self.trend != "declining":
            self.mood = "focused"
        elif accuracy < 0.6 and avg_time < median:
            self.mood = "determined"
        elif accuracy < 0.5 and self.trend == "volatile":
            self.mood = "frustrated"
        elif self.fatigue["estimatedFatigue"] > 0.6:
            self.mood = "fatigued"
        else:
            self.mood = "curious"

    # ── Views ────────────────────────────────────────────

    @property
    def accuracy(self) -> float:
        return _accuracy(self.trials)

    @property
    def recent_accuracy(self) -> float:
        return _accuracy(self.trials[-MOOD_WINDOW:])

    @property
    def avg_response_time(self) -> float:
        if not self.trials:
            return 0.0
        return float(np.mean([t.response_time_ms for t in self.trials]))

    def improvement_rate(self) -> float:
        rates = [c["improvementRate"] for c in self.curves.values() if c.get("exposures", 0) > 0]
        return float(np.mean(rates)) if rates else 0.0

    def profile_snapshot(self, lifetime_trials: int = 0) -> dict:
        """What scoring and difficulty read each round."""
        return {
            "recentAccuracy": self.recent_accuracy,
            "accuracy": self.accuracy,
            "totalRounds": lifetime_trials + len(self.trials),
            "currentStreak": self.current_streak,
            "challengeAccuracy": {
                k: c["currentAccuracy"] / 100 for k, c in self.curves.items()
            },
            "challengeAttempts": {k: c["exposures"] for k, c in self.curves.items()},
        }

    def observations(self) -> dict:
        return {
            "riskProfile": copy.deepcopy(self.risk),
            "fatigueModel": copy.deepcopy(self.fatigue),
            "intuitionVsAnalysis": self.intuition,
            "learningCurves": copy.deepcopy(self.curves),
            "currentMood": self.mood,
            "peakStreak": self.peak_streak,
        }

    def summary(self, score: int = 0) -> dict:
        """Session summary in the shape record_session() takes."""
        duration_ms = self.fatigue.get("sessionDuration", 0) if self.trials else 0
        return {
            "sectorId": self.sector_id,
            "chamberId": self.chamber_id,
            "accuracy": self.accuracy,
            "responseTime": self.avg_response_time,
            "roundsPlayed": len(self.trials),
            "score": score,
            "duration": duration_ms / 1000,
            "observations": self.observations(),
        }

    def reflection_stats(self, cognitive_vector: Optional[dict] = None, evolution_gained: int = 0) -> dict:
        return {
            "trials": len(self.trials),
            "accuracy": self.accuracy,
            "avgResponseTime": self.avg_response_time,
            "peakStreak": self.peak_streak,
            "currentStreak": self.current_streak,
            "evolutionGained": evolution_gained,
            "cognitiveVector": dict(cognitive_vector or {}),
            "mood": self.mood,
            "trend": self.trend,
            "improvementRate": self.improvement_rate(),
            "riskProfile": copy.deepcopy(self.risk),
            "fatigueModel": copy.deepcopy(self.fatigue),
            "intuitionVsAnalysis": self.intuition,
        }
