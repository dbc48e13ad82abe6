"""
CosmosMind Player Mind Model
============================
The persistent picture of one player: skills, reaction timing, risk,
fatigue, behavior signature, learning curves, lifetime counters.

Stored as plain JSON-ready dicts (camelCase keys, no cycles). Learning
curves are a dict keyed by challenge-type string. Anything loaded from
disk goes through merge_over_defaults() before the engine touches it:
unknown keys survive, missing or mistyped ones fall back to defaults,
and every bounded value is clamped.
"""

import copy
import math
import time
import uuid

from cosmosmind import config


COGNITIVE_SKILLS = [
    "perception",
    "spatial",
    "logic",
    "temporal",
    "working_memory",
    "pattern_recognition",
    "inhibition",
    "flexibility",
]

# The first six skills drive the evolution ladder
EVOLUTION_SKILLS = COGNITIVE_SKILLS[:6]

# Reflection suggestions look at the four domain skills
DOMAIN_SKILLS = ["perception", "spatial", "logic", "temporal"]

TRENDS = ("improving", "stable", "declining", "volatile")
MOODS = ("flowing", "focused", "determined", "frustrated", "fatigued", "curious")
PRESSURE_RESPONSES = ("thrives", "neutral", "struggles")
SCAN_PATTERNS = ("systematic", "random", "center-out", "edge-first")


def now_ms() -> int:
    return int(time.time() * 1000)


DEFAULT_MIND = {
    "id": None,
    "createdAt": None,
    "lastUpdated": None,
    "totalSessions": 0,
    "totalTrials": 0,
    "lifetimeAccuracy": 0.0,
    "evolutionStage": 1,
    "cognitiveVector": {skill: 50.0 for skill in COGNITIVE_SKILLS},
    "reactionProfile": {
        "mean": 800.0,
        "median": 750.0,
        "variance": 100.0,
        "percentile_25": 600.0,
        "percentile_75": 900.0,
        "trend": "stable",
        "fatigueSignal": 0.0,
    },
    "riskProfile": {
        "riskTolerance": 0.5,
        "speedAccuracyTradeoff": 0.5,
        "hesitationFrequency": 0.2,
        "changeOfMindRate": 0.1,
        "pressureResponse": "neutral",
    },
    "fatigueModel": {
        "sessionDuration": 0,
        "roundsPlayed": 0,
        "responseTimeDeviation": 0.0,
        "accuracyDecline": 0.0,
        "microPauseFrequency": 0.0,
        "estimatedFatigue": 0.0,
        "recommendedBreak": False,
        "optimalSessionLength": 15,
    },
    "behaviorSignature": {
        "preferredScreenRegion": {"x": 0.5, "y": 0.5, "radius": 0.3},
        "scanPattern": "center-out",
        "peakPerformanceTime": 5,
        "warmupRounds": 3,
        "cooldownSignal": 0.0,
        "confidenceThreshold": 0.7,
        "revisionRate": 0.1,
        "intuitionVsAnalysis": 0.5,
    },
    "learningCurves": {},
    "currentMood": "focused",
}

DEFAULT_CURVE = {
    "challengeType": "",
    "exposures": 0,
    "correct": 0,
    "initialAccuracy": 0.0,
    "currentAccuracy": 0.0,
    "plateauLevel": 0.0,
    "improvementRate": 0.0,
    "lastExposure": 0,
}

DEFAULT_SAVE = {
    "playerMind": None,
    "completedChambers": [],
    "unlockedSectors": ["genesis"],
    "sectorProgress": {},
    "sessionHistory": [],
    "dailyChallenges": {},
    "insightCooldowns": {},
    "difficulty": None,
    "evolutionPoints": 0,
    "bestStreak": 0,
    "lastPlayedAt": None,
    "totalPlayTime": 0,
    "createdAt": None,
    "version": config.SAVE_VERSION,
}

SESSION_FIELDS = {
    "id": "",
    "timestamp": 0,
    "sectorId": "",
    "chamberId": "",
    "accuracy": 0.0,
    "responseTime": 0.0,
    "score": 0,
    "roundsPlayed": 0,
    "duration": 0.0,
}


def new_mind() -> dict:
    mind = copy.deepcopy(DEFAULT_MIND)
    stamp = now_ms()
    mind["id"] = f"mind_{uuid.uuid4().hex[:12]}"
    mind["createdAt"] = stamp
    mind["lastUpdated"] = stamp
    return mind


def new_save() -> dict:
    save = copy.deepcopy(DEFAULT_SAVE)
    stamp = now_ms()
    save["playerMind"] = new_mind()
    save["createdAt"] = stamp
    save["lastPlayedAt"] = stamp
    return save


# ── Merge ────────────────────────────────────────────────

def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _overlay(default, stored):
    """Field-by-field merge. Stored wins only when its type matches the default's."""
    if isinstance(default, dict):
        if not isinstance(stored, dict):
            return copy.deepcopy(default)
        merged = copy.deepcopy(default)
        for key, value in stored.items():
            if key in default:
                merged[key] = _overlay(default[key], value)
            else:
                merged[key] = copy.deepcopy(value)
        return merged
    if default is None:
        return copy.deepcopy(stored)
    if isinstance(default, bool):
        return stored if isinstance(stored, bool) else default
    if _is_number(default):
        return stored if _is_number(stored) else default
    if isinstance(default, str):
        return stored if isinstance(stored, str) else default
    if isinstance(default, list):
        return copy.deepcopy(stored) if isinstance(stored, list) else copy.deepcopy(default)
    return copy.deepcopy(stored)


def _clamp(value, lo, hi):
    return max(lo, min(hi, value))


def lifetime_hits(curve: dict) -> float:
    """Correct answers over a curve's lifetime, within [0, exposures].

    Saves written before the count existed only carry an accuracy, so the
    count is estimated from it.
    """
    exposures = curve.get("exposures", 0)
    exposures = max(0, exposures) if _is_number(exposures) else 0
    hits = curve.get("correct")
    if not _is_number(hits):
        accuracy = curve.get("currentAccuracy", 0.0)
        hits = (accuracy if _is_number(accuracy) else 0.0) / 100 * exposures
    return _clamp(float(hits), 0.0, float(exposures))


def learning_curves_from(stored) -> dict:
    """Learning curves as {type: curve}. Accepts the dict form or a list of entries."""
    curves = {}
    if isinstance(stored, dict):
        items = stored.items()
    elif isinstance(stored, list):
        items = []
        for entry in stored:
            if isinstance(entry, (list, tuple)) and len(entry) == 2:
                items.append((entry[0], entry[1]))
            elif isinstance(entry, dict) and entry.get("challengeType"):
                items.append((entry["challengeType"], entry))
    else:
        items = []
    for key, curve in items:
        merged = _overlay(DEFAULT_CURVE, curve)
        merged["challengeType"] = str(key)
        merged["exposures"] = max(0, int(merged["exposures"]))
        if not (isinstance(curve, dict) and "correct" in curve):
            del merged["correct"]
        merged["correct"] = lifetime_hits(merged)
        curves[str(key)] = merged
    return curves


def normalize_mind(mind: dict) -> dict:
    """Clamp every bounded field in place and return the mind."""
    cv = mind["cognitiveVector"]
    for skill in COGNITIVE_SKILLS:
        cv[skill] = _clamp(float(cv.get(skill, 50.0)), 0.0, 100.0)

    mind["lifetimeAccuracy"] = _clamp(float(mind["lifetimeAccuracy"]), 0.0, 1.0)
    mind["totalSessions"] = max(0, int(mind["totalSessions"]))
    mind["totalTrials"] = max(mind["totalSessions"], int(mind["totalTrials"]))
    mind["evolutionStage"] = int(_clamp(int(mind["evolutionStage"]), 1, 10))

    rp = mind["reactionProfile"]
    if rp["trend"] not in TRENDS:
        rp["trend"] = "stable"
    rp["fatigueSignal"] = _clamp(float(rp["fatigueSignal"]), 0.0, 1.0)

    risk = mind["riskProfile"]
    for key in ("riskTolerance", "hesitationFrequency", "changeOfMindRate"):
        risk[key] = _clamp(float(risk[key]), 0.0, 1.0)
    risk["speedAccuracyTradeoff"] = _clamp(float(risk["speedAccuracyTradeoff"]), -1.0, 1.0)
    if risk["pressureResponse"] not in PRESSURE_RESPONSES:
        risk["pressureResponse"] = "neutral"

    fatigue = mind["fatigueModel"]
    fatigue["estimatedFatigue"] = _clamp(float(fatigue["estimatedFatigue"]), 0.0, 1.0)
    fatigue["accuracyDecline"] = _clamp(float(fatigue["accuracyDecline"]), 0.0, 1.0)

    sig = mind["behaviorSignature"]
    sig["intuitionVsAnalysis"] = _clamp(float(sig["intuitionVsAnalysis"]), -1.0, 1.0)
    if sig["scanPattern"] not in SCAN_PATTERNS:
        sig["scanPattern"] = "random"

    if mind["currentMood"] not in MOODS:
        mind["currentMood"] = "curious"
    return mind


def merge_over_defaults(stored) -> dict:
    """A complete, clamped player mind built from a possibly partial record."""
    fresh = new_mind()
    if not isinstance(stored, dict):
        return fresh
    merged = _overlay(fresh, stored)
    for key in ("id", "createdAt", "lastUpdated"):
        if merged.get(key) is None:
            merged[key] = fresh[key]
    merged["learningCurves"] = learning_curves_from(stored.get("learningCurves"))
    return normalize_mind(merged)


def session_from(stored) -> dict:
    record = _overlay(SESSION_FIELDS, stored)
    record["accuracy"] = _clamp(float(record["accuracy"]), 0.0, 1.0)
    return record


def merge_save(stored) -> dict:
    """Full save record over defaults. Corrupt nested structures are replaced, not trusted."""
    fresh = new_save()
    if not isinstance(stored, dict):
        return fresh
    merged = _overlay(fresh, stored)
    merged["playerMind"] = merge_over_defaults(stored.get("playerMind"))
    merged["sessionHistory"] = [
        session_from(s) for s in merged["sessionHistory"] if isinstance(s, dict)
    ][:config.SESSION_HISTORY_CAP]
    merged["completedChambers"] = [str(c) for c in merged["completedChambers"]]
    merged["unlockedSectors"] = [str(s) for s in merged["unlockedSectors"]] or ["genesis"]
    merged["sectorProgress"] = {
        str(k): _clamp(float(v), 0.0, 1.0)
        for k, v in merged["sectorProgress"].items() if _is_number(v)
    }
    merged["insightCooldowns"] = {
        str(k): int(v) for k, v in merged["insightCooldowns"].items() if _is_number(v)
    }
    if not isinstance(merged.get("difficulty"), dict):
        merged["difficulty"] = None
    for key in ("totalPlayTime", "evolutionPoints", "bestStreak"):
        if merged[key] < 0:
            merged[key] = 0
    return merged
