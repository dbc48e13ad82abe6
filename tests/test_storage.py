"""
Tests for the JSON game store.
"""

import json
import os
import tempfile
from datetime import date, timedelta

import pytest

from cosmosmind.storage import GameStore
from cosmosmind.universe import get_chamber


def _fresh():
    tmp = tempfile.mkdtemp()
    path = os.path.join(tmp, "save.json")
    return path, tmp


def _summary(accuracy=0.8, rounds=10, duration=120):
    return {"sectorId": "genesis", "accuracy": accuracy, "roundsPlayed": rounds,
            "responseTime": 900, "score": 500, "duration": duration}


def test_missing_file_starts_fresh():
    path, _ = _fresh()
    store = GameStore(path)
    assert store.mind["totalSessions"] == 0
    assert store.data["unlockedSectors"] == ["genesis"]
    assert not os.path.exists(path)


def test_save_and_reload():
    path, _ = _fresh()
    store = GameStore(path)
    store.record_session(_summary())
    assert store.save() is True

    reloaded = GameStore(path)
    assert reloaded.mind["totalSessions"] == 1
    assert reloaded.mind["id"] == store.mind["id"]
    assert len(reloaded.session_history()) == 1


def test_corrupt_file_loads_defaults():
    path, _ = _fresh()
    with open(path, "w", encoding="utf-8") as f:
        f.write("{not json")
    store = GameStore(path)
    assert store.mind["totalSessions"] == 0

    with open(path, "w", encoding="utf-8") as f:
        f.write("[1, 2, 3]")
    assert GameStore(path).mind["totalSessions"] == 0


def test_partial_file_is_merged():
    path, _ = _fresh()
    with open(path, "w", encoding="utf-8") as f:
        json.dump({"evolutionPoints": 300, "playerMind": {"totalSessions": 4}}, f)
    store = GameStore(path)
    assert store.data["evolutionPoints"] == 300
    assert store.mind["totalSessions"] == 4
    assert store.mind["cognitiveVector"]["logic"] == 50.0


def test_non_finite_numbers_fall_back_to_defaults():
    """json accepts Infinity and NaN tokens; loading must still succeed."""
    path, _ = _fresh()
    with open(path, "w", encoding="utf-8") as f:
        f.write("""{
            "playerMind": {
                "totalSessions": Infinity,
                "totalTrials": NaN,
                "lifetimeAccuracy": -Infinity,
                "learningCurves": {"largest_shape": {"exposures": Infinity, "correct": NaN}}
            },
            "insightCooldowns": {"x": Infinity, "prec_flawless": 5},
            "sectorProgress": {"genesis": NaN},
            "bestStreak": Infinity,
            "difficulty": {"vector": {"shapeCount": Infinity, "timePressure": NaN}, "history": []}
        }""")
    store = GameStore(path)
    assert store.mind["totalSessions"] == 0
    assert store.mind["totalTrials"] == 0
    assert store.mind["lifetimeAccuracy"] == 0.0
    assert store.mind["learningCurves"]["largest_shape"]["exposures"] == 0
    assert store.mind["learningCurves"]["largest_shape"]["correct"] == 0.0
    assert store.insight_cooldowns == {"prec_flawless": 5}
    assert store.data["sectorProgress"] == {}
    assert store.data["bestStreak"] == 0

    from cosmosmind.engine import CosmosEngine
    vector = CosmosEngine(path).start_session().difficulty.current()
    assert vector.shape_count == 4
    assert vector.time_pressure == 1.0


def test_save_failure_keeps_memory():
    """Writing into a path under a regular file fails; data stays in memory."""
    _, tmp = _fresh()
    blocker = os.path.join(tmp, "blocker")
    with open(blocker, "w") as f:
        f.write("x")
    store = GameStore(os.path.join(blocker, "save.json"))
    store.record_session(_summary())
    assert store.save() is False
    assert store.mind["totalSessions"] == 1
    assert store.dirty is True


def test_save_if_due_debounces():
    path, _ = _fresh()
    store = GameStore(path, debounce_sec=60)
    assert store.save_if_due() is False  # nothing pending

    store.record_session(_summary())
    assert store.save_if_due() is True
    assert os.path.exists(path)

    store.record_session(_summary())
    assert store.save_if_due() is False
    assert store.dirty is True

    store.debounce_sec = 0
    assert store.save_if_due() is True
    assert GameStore(path).mind["totalSessions"] == 2


def test_complete_chamber_unlocks_prisma():
    """Three Genesis chambers open Prisma."""
    path, _ = _fresh()
    store = GameStore(path)
    assert store.complete_chamber("gen_1") == []
    assert store.complete_chamber("gen_2") == []
    newly = store.complete_chamber("gen_3")
    assert "prisma" in newly
    assert store.is_sector_unlocked("prisma")
    expected = sum(get_chamber(c).evolution_reward for c in ("gen_1", "gen_2", "gen_3"))
    assert store.data["evolutionPoints"] == expected
    assert store.data["sectorProgress"]["genesis"] == pytest.approx(0.6)


def test_complete_chamber_credits_once():
    path, _ = _fresh()
    store = GameStore(path)
    store.complete_chamber("gen_1")
    points = store.data["evolutionPoints"]
    assert store.complete_chamber("gen_1") == []
    assert store.data["evolutionPoints"] == points
    assert store.data["completedChambers"] == ["gen_1"]
    assert store.is_chamber_completed("gen_1")


def test_complete_unknown_chamber():
    path, _ = _fresh()
    with pytest.raises(ValueError):
        GameStore(path).complete_chamber("nowhere_9")


def test_daily_streak():
    path, _ = _fresh()
    store = GameStore(path)
    today = date(2026, 3, 10)
    for back in (1, 2, 3, 5):
        store.record_daily_challenge(1000, 4, today=today - timedelta(days=back))
    # today still open, streak counts back from yesterday
    assert store.daily_streak(today) == 3
    assert not store.is_daily_challenge_completed(today)

    store.record_daily_challenge(1200, 6, today=today)
    assert store.daily_streak(today) == 4
    assert store.is_daily_challenge_completed(today)
    assert store.daily_streak(today + timedelta(days=2)) == 0


def test_statistics():
    path, _ = _fresh()
    store = GameStore(path)
    for acc in (0.5, 0.76, 0.9):
        store.record_session(_summary(accuracy=acc, duration=1800))
    assert store.recent_accuracy_trend() == [50, 76, 90]
    assert store.recent_accuracy_trend(2) == [76, 90]
    assert store.average_session_duration() == 1800
    assert store.total_play_time_formatted() == "1h 30m"
    assert len(store.session_history(2)) == 2

    store.data["totalPlayTime"] = 125
    assert store.total_play_time_formatted() == "2m"


def test_export_import():
    path, _ = _fresh()
    store = GameStore(path)
    store.record_session(_summary())
    store.complete_chamber("gen_1")
    text = store.export_json()

    other_path, _ = _fresh()
    other = GameStore(other_path)
    assert other.import_json(text) is True
    assert other.data["completedChambers"] == ["gen_1"]
    assert other.mind["totalSessions"] == 1
    assert GameStore(other_path).mind["totalSessions"] == 1


def test_import_rejects_garbage():
    path, _ = _fresh()
    store = GameStore(path)
    assert store.import_json("nope") is False
    assert store.import_json("[1, 2]") is False
    assert store.mind["totalSessions"] == 0


def test_reset():
    path, _ = _fresh()
    store = GameStore(path)
    store.record_session(_summary())
    store.save()
    assert store.reset() is True
    assert store.mind["totalSessions"] == 0
    assert GameStore(path).mind["totalSessions"] == 0


def test_cooldowns_and_difficulty_persist():
    path, _ = _fresh()
    store = GameStore(path)
    store.set_insight_cooldowns({"prec_flawless": 1234})
    store.set_difficulty({"vector": {"shapeCount": 7}, "history": [True]})
    store.save()
    reloaded = GameStore(path)
    assert reloaded.insight_cooldowns == {"prec_flawless": 1234}
    assert reloaded.data["difficulty"]["vector"]["shapeCount"] == 7
