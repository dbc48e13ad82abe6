"""
CosmosMind Profile Updater
==========================
Turns one finished session into an updated player mind.

  - session record prepended to history (most recent first, capped)
  - lifetime accuracy as a trial-weighted running mean
  - reaction profile recomputed from the last 20 sessions
  - cognitive vector nudged along the skills the sector trains
  - evolution stage climbed on a fixed ladder, never descended

Inputs are clamped here, at the edge of the model.
"""

import math
import uuid
from typing import Optional

import numpy as np

from cosmosmind import config
from cosmosmind.log import log
from cosmosmind.mind import (
    EVOLUTION_SKILLS, MOODS, learning_curves_from, normalize_mind, now_ms,
)


# sector -> [(skill, increment factor, gets speed bonus)]
SECTOR_SKILLS = {
    "genesis": [("perception", 1.0, True), ("pattern_recognition", 0.5, False)],
    "prisma": [("perception", 1.0, True), ("pattern_recognition", 0.5, False)],
    "void": [("spatial", 1.0, True), ("logic", 0.5, False)],
    "axiom": [("spatial", 1.0, True), ("logic", 0.5, False)],
    "chronos": [("temporal", 1.0, True)],
    "temporal": [("temporal", 1.0, True)],
    "nexus": [("working_memory", 1.0, True), ("flexibility", 0.5, False)],
}
GENERAL_SKILLS = [("perception", 0.3, False), ("logic", 0.3, False)]

# (minimum average skill, minimum sessions) -> stage, highest first
EVOLUTION_LADDER = [
    (90, 50, 10),
    (80, 40, 9),
    (75, 30, 8),
    (70, 25, 7),
    (65, 20, 6),
    (60, 15, 5),
    (55, 10, 4),
    (52, 5, 3),
    (0, 2, 2),
]


def _pick(summary: dict, *keys, default=None):
    for key in keys:
        if key in summary and summary[key] is not None:
            return summary[key]
    return default


def _number(value, default=0.0) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(value) or math.isinf(value):
        return default
    return value


def clamp_summary(summary: dict) -> dict:
    """Normalize a caller's session summary into a SessionRecord body."""
    summary = summary or {}
    return {
        "sectorId": str(_pick(summary, "sectorId", "sector_id", default="")),
        "chamberId": str(_pick(summary, "chamberId", "chamber_id", default="")),
        "accuracy": min(1.0, max(0.0, _number(_pick(summary, "accuracy", default=0.0)))),
        "responseTime": max(0.0, _number(_pick(summary, "responseTime", "response_time", default=0.0))),
        "score": max(0, int(_number(_pick(summary, "score", default=0)))),
        "roundsPlayed": max(0, int(_number(_pick(summary, "roundsPlayed", "rounds_played", default=0)))),
        "duration": max(0.0, _number(_pick(summary, "duration", default=0.0))),
    }


# ── Statistics ───────────────────────────────────────────

def reaction_stats(times) -> Optional[dict]:
    """Mean, median, quartiles by sorted index, and RMS deviation. None for no data."""
    if len(times) == 0:
        return None
    arr = np.sort(np.asarray(times, dtype=float))
    n = len(arr)
    mean = float(np.mean(arr))
    return {
        "mean": mean,
        "median": float(arr[n // 2]),
        "percentile_25": float(arr[int(math.floor(n * 0.25))]),
        "percentile_75": float(arr[min(n - 1, int(math.floor(n * 0.75)))]),
        "variance": float(np.sqrt(np.mean((arr - mean) ** 2))),
    }


def reaction_trend(recent_first, window: int = config.TREND_WINDOW,
                   threshold: float = config.TREND_THRESHOLD) -> Optional[str]:
    """Compare the newest `window` sessions against the ones before.

    Returns None when there is no older block to compare against.
    """
    if len(recent_first) <= window:
        return None
    recent = float(np.mean(recent_first[:window]))
    older = float(np.mean(recent_first[window:window * 2]))
    if older <= 0:
        return "stable"
    if recent < older * (1 - threshold):
        return "improving"
    if recent > older * (1 + threshold):
        return "declining"
    return "stable"


def evolution_stage_for(average: float, sessions: int) -> int:
    for min_avg, min_sessions, stage in EVOLUTION_LADDER:
        if average >= min_avg and sessions >= min_sessions:
            return stage
    return 1


def speed_score(response_time_ms: float) -> float:
    return max(0.0, 100 - response_time_ms / 20)


# ── Updater ──────────────────────────────────────────────

class ProfileUpdater:
    """Applies session summaries to a save record (player mind + history)."""

    def __init__(self, history_cap: int = config.SESSION_HISTORY_CAP,
                 reaction_window: int = config.REACTION_WINDOW):
        self.history_cap = history_cap
        self.reaction_window = reaction_window

    def record_session(self, save: dict, summary: dict, now: Optional[int] = None) -> dict:
        """Apply one finished session. Mutates `save` and returns its player mind."""
        now = now if now is not None else now_ms()
        body = clamp_summary(summary)
        record = {
            "id": f"session_{now}_{uuid.uuid4().hex[:9]}",
            "timestamp": now,
            **body,
        }

        history = save.setdefault("sessionHistory", [])
        history.insert(0, record)
        del history[self.history_cap:]
        save["totalPlayTime"] = save.get("totalPlayTime", 0) + record["duration"]

        mind = save["playerMind"]
        self._update_counters(mind, record)
        self._update_reaction_profile(mind, history)
        self._update_cognitive_vector(mind, record)
        self._update_evolution(mind)
        self._apply_observations(save, mind, (summary or {}).get("observations"))
        mind["lastUpdated"] = now
        save["lastPlayedAt"] = now

        log.info(
            f"Session recorded: sector={record['sectorId'] or '-'} "
            f"acc={record['accuracy']:.2f} rounds={record['roundsPlayed']} "
            f"lifetime={mind['lifetimeAccuracy']:.3f} stage={mind['evolutionStage']}"
        )
        return mind

    def _update_counters(self, mind: dict, record: dict):
        old_trials = mind["totalTrials"]
        rounds = record["roundsPlayed"]

        mind["totalSessions"] += 1
        mind["totalTrials"] += rounds
        if old_trials <= 0:
            mind["lifetimeAccuracy"] = record["accuracy"]
        elif old_trials + rounds > 0:
            mind["lifetimeAccuracy"] = (
                mind["lifetimeAccuracy"] * old_trials + record["accuracy"] * rounds
            ) / (old_trials + rounds)
        mind["lifetimeAccuracy"] = min(1.0, max(0.0, mind["lifetimeAccuracy"]))
        mind["totalTrials"] = max(mind["totalTrials"], mind["totalSessions"])

    def _update_reaction_profile(self, mind: dict, history: list):
        window = history[:self.reaction_window]
        times = [s["responseTime"] for s in window]
        stats = reaction_stats(times)
        if stats is None:
            return
        profile = mind["reactionProfile"]
        profile.update(stats)
        trend = reaction_trend(times)
        if trend is not None:
            profile["trend"] = trend

    def _update_cognitive_vector(self, mind: dict, record: dict):
        vector = mind["cognitiveVector"]
        increment = (record["accuracy"] - 0.5) * 2
        bonus = config.SKILL_SPEED_BONUS if speed_score(record["responseTime"]) > config.SPEED_BONUS_THRESHOLD else 0.0

        for skill, factor, gets_bonus in SECTOR_SKILLS.get(record["sectorId"], GENERAL_SKILLS):
            delta = increment * factor + (bonus if gets_bonus else 0.0)
            vector[skill] = min(100.0, max(0.0, vector[skill] + delta))

    def _apply_observations(self, save: dict, mind: dict, observed: Optional[dict]):
        """Fold a SessionTracker's per-trial observations into the mind."""
        if not isinstance(observed, dict):
            return
        for key in ("riskProfile", "fatigueModel"):
            if isinstance(observed.get(key), dict):
                mind[key].update(observed[key])
        if "intuitionVsAnalysis" in observed:
            value = _number(observed["intuitionVsAnalysis"], mind["behaviorSignature"]["intuitionVsAnalysis"])
            mind["behaviorSignature"]["intuitionVsAnalysis"] = min(1.0, max(-1.0, value))
        if isinstance(observed.get("learningCurves"), dict):
            mind["learningCurves"].update(learning_curves_from(observed["learningCurves"]))
        if observed.get("currentMood") in MOODS:
            mind["currentMood"] = observed["currentMood"]
        peak = int(_number(observed.get("peakStreak"), 0))
        save["bestStreak"] = max(save.get("bestStreak", 0), peak)
        normalize_mind(mind)

    def _update_evolution(self, mind: dict):
        vector = mind["cognitiveVector"]
        average = sum(vector[s] for s in EVOLUTION_SKILLS) / len(EVOLUTION_SKILLS)
        stage = evolution_stage_for(average, mind["totalSessions"])
        if stage > mind["evolutionStage"]:
            log.info(f"Evolution stage {mind['evolutionStage']} -> {stage}")
            mind["evolutionStage"] = stage
