"""
CosmosMind Game Store
=====================
One JSON save file per player: the player mind, session history, chamber
and sector progress, daily challenges, insight cooldowns and the last
difficulty snapshot.

Loading never fails. A missing, unreadable or partially corrupt file is
merged field-by-field over fresh defaults and a warning is logged. The
in-memory record stays authoritative if a write fails.

Writes are explicit. mark_dirty() flags pending changes and save_if_due()
only writes once the debounce interval has passed, so callers can save
after every round without hammering the disk.
"""

import copy
import json
import time
from datetime import date, timedelta
from pathlib import Path
from typing import Optional

from cosmosmind import config
from cosmosmind.log import log, timed
from cosmosmind.mind import merge_save, new_save, now_ms
from cosmosmind.profile import ProfileUpdater
from cosmosmind.scoring import round_half_up
from cosmosmind.universe import (
    available_sectors, get_chamber, sector_progress,
)


def _day_key(day: date) -> str:
    return day.strftime("%Y-%m-%d")


class GameStore:
    """Load, mutate and persist one player's save record."""

    def __init__(self, path: Optional[str] = None, debounce_sec: float = config.SAVE_DEBOUNCE_SEC):
        self.path = Path(path) if path else config.SAVE_PATH
        self.debounce_sec = debounce_sec
        self.updater = ProfileUpdater()
        self.dirty = False
        self._last_save: Optional[float] = None
        self.data = self.load()

    # ── Persistence ──────────────────────────────────────

    def load(self) -> dict:
        if not self.path.exists():
            log.debug(f"No save at {self.path}, starting fresh")
            return new_save()
        try:
            stored = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            log.warning(f"Save file unreadable, using defaults: {e}")
            return new_save()
        if not isinstance(stored, dict):
            log.warning("Save file is not an object, using defaults")
            return new_save()
        with timed("load merge"):
            return merge_save(stored)

    def save(self) -> bool:
        """Write the record now. Returns False (and logs) on I/O failure."""
        with timed("save"):
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                self.path.write_text(
                    json.dumps(self.data, indent=2, ensure_ascii=False), encoding="utf-8",
                )
            except OSError as e:
                log.error(f"Save failed ({self.path}): {e}")
                return False
        self.dirty = False
        self._last_save = time.monotonic()
        log.debug(f"Saved {self.path}")
        return True

    def mark_dirty(self):
        self.dirty = True

    def save_if_due(self) -> bool:
        """Save pending changes if the debounce interval has elapsed."""
        if not self.dirty:
            return False
        if self._last_save is not None and time.monotonic() - self._last_save < self.debounce_sec:
            return False
        return self.save()

    # ── Player mind ──────────────────────────────────────

    @property
    def mind(self) -> dict:
        return self.data["playerMind"]

    def record_session(self, summary: dict, now: Optional[int] = None) -> dict:
        with timed("record session"):
            mind = self.updater.record_session(self.data, summary, now=now)
        self.mark_dirty()
        return mind

    # ── Chambers & sectors ───────────────────────────────

    def complete_chamber(self, chamber_id: str) -> list[str]:
        """Mark a chamber done, credit its reward, and return newly unlocked sectors."""
        chamber = get_chamber(chamber_id)
        if chamber is None:
            raise ValueError(f"Unknown chamber: {chamber_id}")

        completed = self.data["completedChambers"]
        if chamber_id not in completed:
            completed.append(chamber_id)
            self.data["evolutionPoints"] += chamber.evolution_reward
        self.data["sectorProgress"][chamber.sector_id] = sector_progress(chamber.sector_id, completed)

        unlocked = self.data["unlockedSectors"]
        newly = []
        for sector in available_sectors(self.data["evolutionPoints"], completed, self.data["bestStreak"]):
            if sector.id not in unlocked:
                unlocked.append(sector.id)
                newly.append(sector.id)
                log.info(f"Sector unlocked: {sector.id}")
        self.mark_dirty()
        return newly

    def is_chamber_completed(self, chamber_id: str) -> bool:
        return chamber_id in self.data["completedChambers"]

    def is_sector_unlocked(self, sector_id: str) -> bool:
        return sector_id in self.data["unlockedSectors"]

    # ── Daily challenges ─────────────────────────────────

    def record_daily_challenge(self, score: int, streak: int, today: Optional[date] = None):
        key = _day_key(today or date.today())
        self.data["dailyChallenges"][key] = {
            "date": key,
            "completed": True,
            "score": int(score),
            "bestStreak": int(streak),
        }
        self.mark_dirty()

    def is_daily_challenge_completed(self, today: Optional[date] = None) -> bool:
        entry = self.data["dailyChallenges"].get(_day_key(today or date.today()))
        return bool(isinstance(entry, dict) and entry.get("completed"))

    def daily_streak(self, today: Optional[date] = None) -> int:
        """Consecutive completed days ending today. Today may still be open."""
        today = today or date.today()
        streak = 0
        for i in range(365):
            entry = self.data["dailyChallenges"].get(_day_key(today - timedelta(days=i)))
            if isinstance(entry, dict) and entry.get("completed"):
                streak += 1
            elif i > 0:
                break
        return streak

    # ── Statistics ───────────────────────────────────────

    def session_history(self, limit: int = 10) -> list[dict]:
        return self.data["sessionHistory"][:max(0, limit)]

    def recent_accuracy_trend(self, sessions: int = 10) -> list[int]:
        """Accuracy percentages, oldest first."""
        history = self.data["sessionHistory"][:max(0, sessions)]
        return [round_half_up(s["accuracy"] * 100) for s in reversed(history)]

    def average_session_duration(self) -> float:
        history = self.data["sessionHistory"]
        if not history:
            return 0.0
        return sum(s["duration"] for s in history) / len(history)

    def total_play_time_formatted(self) -> str:
        total = int(self.data["totalPlayTime"])
        hours, minutes = total // 3600, (total % 3600) // 60
        if hours > 0:
            return f"{hours}h {minutes}m"
        return f"{minutes}m"

    # ── Cooldowns & difficulty ───────────────────────────

    @property
    def insight_cooldowns(self) -> dict:
        return self.data["insightCooldowns"]

    def set_insight_cooldowns(self, cooldowns: dict):
        self.data["insightCooldowns"] = dict(cooldowns)
        self.mark_dirty()

    def set_difficulty(self, snapshot: Optional[dict]):
        self.data["difficulty"] = copy.deepcopy(snapshot)
        self.mark_dirty()

    # ── Import / export / reset ──────────────────────────

    def export_json(self) -> str:
        return json.dumps(self.data, indent=2, ensure_ascii=False)

    def import_json(self, text: str) -> bool:
        """Replace the record with imported data. False if it isn't a JSON object."""
        try:
            stored = json.loads(text)
        except json.JSONDecodeError as e:
            log.error(f"Import failed: {e}")
            return False
        if not isinstance(stored, dict):
            log.error("Import failed: not a save object")
            return False
        self.data = merge_save(stored)
        self.data["lastPlayedAt"] = now_ms()
        log.info(f"Imported save with {len(self.data['sessionHistory'])} sessions")
        return self.save()

    def reset(self) -> bool:
        self.data = new_save()
        log.info("Game data reset")
        return self.save()
