"""
CosmosMind Engine
=================
The two objects a game loop talks to.

GameSession   one per active session. Owns the scoring engine, the
              difficulty controller and the session tracker, so nothing
              lives at module level. Per round: resolve, record, score,
              adapt.
CosmosEngine  one per player save. Starts sessions, folds finished ones
              into the player mind, builds reflections and persists
              insight cooldowns.

Callers serialize calls per player; nothing here is thread-safe.
"""

import uuid
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from cosmosmind import config
from cosmosmind.difficulty import AdaptiveDifficultyController, DifficultyVector
from cosmosmind.insights import SessionReflection, generate_session_reflection
from cosmosmind.log import log
from cosmosmind.mind import now_ms
from cosmosmind.resolver import resolve_target
from cosmosmind.scoring import ScoreBreakdown, ScoringEngine
from cosmosmind.shapes import ChallengeType, Shape, as_shapes, complexity_of
from cosmosmind.storage import GameStore
from cosmosmind.tracker import SessionTracker
from cosmosmind.universe import get_chamber

__all__ = [
    "CosmosEngine",
    "GameSession",
    "RoundPlan",
    "RoundResult",
    "resolve_target",
]


@dataclass
class RoundPlan:
    challenge: ChallengeType
    shape_count: int
    time_limit_sec: int
    difficulty: DifficultyVector

    def to_dict(self) -> dict:
        return {
            "challenge": self.challenge.value,
            "shapeCount": self.shape_count,
            "timeLimitSec": self.time_limit_sec,
            "difficulty": self.difficulty.to_dict(),
        }


@dataclass
class RoundResult:
    correct: bool
    target_id: Optional[object]
    streak: int
    score: ScoreBreakdown
    difficulty: DifficultyVector

    def to_dict(self) -> dict:
        return {
            "correct": self.correct,
            "targetId": self.target_id,
            "streak": self.streak,
            "score": self.score.to_dict(),
            "difficulty": self.difficulty.to_dict(),
        }


class GameSession:
    """State for one play session."""

    def __init__(
        self,
        mind: Optional[dict] = None,
        sector_id: str = "",
        chamber_id: str = "",
        difficulty_snapshot: Optional[dict] = None,
        rng=None,
    ):
        self.rng = rng if rng is not None else np.random.default_rng()
        self.scoring = ScoringEngine()
        if difficulty_snapshot:
            self.difficulty = AdaptiveDifficultyController.from_snapshot(difficulty_snapshot, rng=self.rng)
        else:
            self.difficulty = AdaptiveDifficultyController(rng=self.rng)
        self.tracker = SessionTracker(mind, sector_id=sector_id, chamber_id=chamber_id)
        self.lifetime_trials = int((mind or {}).get("totalTrials", 0))

    def profile_snapshot(self) -> dict:
        return self.tracker.profile_snapshot(self.lifetime_trials)

    # ── Core operations ──────────────────────────────────

    def score_round(
        self,
        correct: bool,
        response_time_ms: float,
        challenge_type,
        streak: int,
        profile_snapshot=None,
        time_limit_sec: Optional[float] = None,
    ) -> ScoreBreakdown:
        return self.scoring.score_round(
            correct, response_time_ms, challenge_type, streak,
            profile_snapshot if profile_snapshot is not None else self.profile_snapshot(),
            time_limit_sec,
        )

    def adapt_difficulty(self, profile_snapshot=None) -> DifficultyVector:
        return self.difficulty.adapt(
            profile_snapshot if profile_snapshot is not None else self.profile_snapshot()
        )

    # ── Round loop ───────────────────────────────────────

    def plan_round(self, pool: Sequence, level_base: int = 4,
                   base_time_sec: float = config.DEFAULT_TIME_LIMIT_SEC) -> RoundPlan:
        """Pick the next challenge and its round parameters."""
        challenge = self.difficulty.select_challenge(pool, self.profile_snapshot())
        return RoundPlan(
            challenge=challenge,
            shape_count=self.difficulty.shape_count_for(level_base),
            time_limit_sec=self.difficulty.time_limit(base_time_sec),
            difficulty=self.difficulty.current(),
        )

    def record_round(
        self,
        shapes: Sequence[Shape],
        challenge_type,
        selected_id,
        response_time_ms: float,
        target: Optional[str] = None,
        time_limit_sec: Optional[float] = None,
        timestamp: Optional[int] = None,
    ) -> RoundResult:
        """Judge a selection, then score it and step the difficulty loop."""
        challenge = ChallengeType.parse(challenge_type)
        expected = resolve_target(as_shapes(shapes), challenge, target)
        correct = expected is not None and expected.id == selected_id

        self.tracker.record_trial(
            challenge, correct, response_time_ms,
            rule_complexity=complexity_of(challenge), timestamp=timestamp,
        )
        self.difficulty.record_result(correct)
        streak = self.tracker.current_streak
        score = self.score_round(correct, response_time_ms, challenge, streak,
                                 time_limit_sec=time_limit_sec)
        vector = self.adapt_difficulty()
        return RoundResult(
            correct=correct,
            target_id=expected.id if expected is not None else None,
            streak=streak,
            score=score,
            difficulty=vector,
        )

    # ── Wrap-up ──────────────────────────────────────────

    def summary(self) -> dict:
        return self.tracker.summary(score=self.scoring.total_score)

    def reflection_stats(self, mind: Optional[dict] = None, evolution_gained: int = 0) -> dict:
        vector = (mind or {}).get("cognitiveVector")
        return self.tracker.reflection_stats(vector, evolution_gained)


class CosmosEngine:
    """Player-level facade over a GameStore."""

    def __init__(self, save_path: Optional[str] = None, rng=None):
        self.store = GameStore(save_path)
        self.rng = rng if rng is not None else np.random.default_rng()
        self.sessions: dict[str, GameSession] = {}

    @property
    def mind(self) -> dict:
        return self.store.mind

    def start_session(self, sector_id: str = "", chamber_id: str = "") -> GameSession:
        return GameSession(
            self.store.mind,
            sector_id=sector_id,
            chamber_id=chamber_id,
            difficulty_snapshot=self.store.data.get("difficulty"),
            rng=self.rng,
        )

    def record_session(self, session_summary: dict, now: Optional[int] = None) -> dict:
        """Fold one finished session into the player mind and return it."""
        mind = self.store.record_session(session_summary, now=now)
        self.store.save_if_due()
        return mind

    def generate_session_reflection(self, session_stats: dict, now: Optional[int] = None) -> SessionReflection:
        """Reflection for a finished session. Shown insights go on cooldown."""
        now = now if now is not None else now_ms()
        reflection, cooldowns = generate_session_reflection(
            session_stats, self.store.insight_cooldowns, now, self.rng, mind=self.store.mind,
        )
        self.store.set_insight_cooldowns(cooldowns)
        self.store.save_if_due()
        return reflection

    def finish_session(self, session: GameSession, now: Optional[int] = None) -> dict:
        """Record, credit chamber progress and reflect in one step."""
        summary = session.summary()
        mind = self.record_session(summary, now=now)
        self.store.set_difficulty(session.difficulty.snapshot())

        gained = 0
        unlocked = []
        chamber = get_chamber(session.tracker.chamber_id)
        if chamber is not None and summary["accuracy"] >= config.CHAMBER_PASS_ACCURACY:
            if not self.store.is_chamber_completed(chamber.id):
                gained = chamber.evolution_reward
            unlocked = self.store.complete_chamber(chamber.id)

        reflection = self.generate_session_reflection(session.reflection_stats(mind, gained), now=now)
        self.store.save()
        log.info(f"Session finished: score={summary['score']} gained={gained} unlocked={unlocked}")
        return {
            "summary": {k: v for k, v in summary.items() if k != "observations"},
            "scoring": session.scoring.summary(),
            "evolutionGained": gained,
            "unlockedSectors": unlocked,
            "reflection": reflection.to_dict(),
        }

    def reset_insights(self):
        self.store.set_insight_cooldowns({})
        self.store.save()

    # ── Open sessions ────────────────────────────────────

    def open_session(self, sector_id: str = "", chamber_id: str = "") -> str:
        """Start a session and keep it under a short id until closed."""
        session_id = uuid.uuid4().hex[:8]
        self.sessions[session_id] = self.start_session(sector_id, chamber_id)
        log.debug(f"Session {session_id} opened: sector={sector_id or '-'} chamber={chamber_id or '-'}")
        return session_id

    def get_session(self, session_id: str) -> GameSession:
        try:
            return self.sessions[session_id]
        except KeyError:
            raise ValueError(f"No open session: {session_id}") from None

    def close_session(self, session_id: str, now: Optional[int] = None) -> dict:
        session = self.get_session(session_id)
        result = self.finish_session(session, now=now)
        del self.sessions[session_id]
        return result
