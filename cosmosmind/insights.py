"""
CosmosMind Insights
===================
Rule-conditioned observations about how the player thinks, plus the
post-session reflection built around them.

Every insight carries a list of conditions over a closed set of metrics.
Metrics resolve through accessor functions on an InsightContext; a metric
with no value makes its condition false. Cooldowns live in a separate
{insight_id: last_shown_ms} table that selection returns updated rather
than mutating:

    cooldown > 0   eligible again once now - last_shown >= cooldown
    cooldown == 0  shown once, never again until the table is reset

Ranking is priority descending; equal priorities keep table order.
"""

from dataclasses import dataclass, asdict, field
from enum import Enum
from typing import Callable, Optional

import numpy as np

from cosmosmind import config
from cosmosmind.log import log
from cosmosmind.mind import DOMAIN_SKILLS, lifetime_hits
from cosmosmind.scoring import round_half_up
from cosmosmind.shapes import ChallengeType


# ── Context & metrics ────────────────────────────────────

@dataclass
class InsightContext:
    """Flat view of everything an insight condition can ask about."""
    accuracy: Optional[float] = None
    recent_accuracy: Optional[float] = None
    trend: Optional[str] = None
    reaction_mean: Optional[float] = None
    reaction_variance: Optional[float] = None
    reaction_trend: Optional[str] = None
    cognitive_vector: dict = field(default_factory=dict)
    evolution_stage: Optional[int] = None
    total_trials: Optional[int] = None
    improvement_rate: Optional[float] = None
    intuition_vs_analysis: Optional[float] = None
    scan_pattern: Optional[str] = None
    pressure_response: Optional[str] = None
    estimated_fatigue: Optional[float] = None
    current_streak: Optional[int] = None
    current_mood: Optional[str] = None
    domain_mastery: Optional[float] = None
    cognitive_balance: Optional[bool] = None


class Metric(str, Enum):
    PERCEPTION = "cognitiveVector.perception"
    REACTION_MEAN = "reactionProfile.mean"
    REACTION_VARIANCE = "reactionProfile.variance"
    REACTION_TREND = "reactionProfile.trend"
    RECENT_ACCURACY = "recentAccuracy"
    ACCURACY = "accuracy"
    TREND = "trend"
    EVOLUTION_STAGE = "evolutionStage"
    TOTAL_TRIALS = "totalTrials"
    IMPROVEMENT_RATE = "improvementRate"
    INTUITION = "behaviorSignature.intuitionVsAnalysis"
    SCAN_PATTERN = "behaviorSignature.scanPattern"
    PRESSURE_RESPONSE = "riskProfile.pressureResponse"
    FATIGUE = "fatigueModel.estimatedFatigue"
    CURRENT_STREAK = "currentStreak"
    CURRENT_MOOD = "currentMood"
    DOMAIN_MASTERY = "domainMastery"
    COGNITIVE_BALANCE = "cognitiveBalance"


METRIC_ACCESSORS: dict[Metric, Callable[[InsightContext], object]] = {
    Metric.PERCEPTION: lambda c: c.cognitive_vector.get("perception"),
    Metric.REACTION_MEAN: lambda c: c.reaction_mean,
    Metric.REACTION_VARIANCE: lambda c: c.reaction_variance,
    Metric.REACTION_TREND: lambda c: c.reaction_trend,
    Metric.RECENT_ACCURACY: lambda c: c.recent_accuracy,
    Metric.ACCURACY: lambda c: c.accuracy,
    Metric.TREND: lambda c: c.trend,
    Metric.EVOLUTION_STAGE: lambda c: c.evolution_stage,
    Metric.TOTAL_TRIALS: lambda c: c.total_trials,
    Metric.IMPROVEMENT_RATE: lambda c: c.improvement_rate,
    Metric.INTUITION: lambda c: c.intuition_vs_analysis,
    Metric.SCAN_PATTERN: lambda c: c.scan_pattern,
    Metric.PRESSURE_RESPONSE: lambda c: c.pressure_response,
    Metric.FATIGUE: lambda c: c.estimated_fatigue,
    Metric.CURRENT_STREAK: lambda c: c.current_streak,
    Metric.CURRENT_MOOD: lambda c: c.current_mood,
    Metric.DOMAIN_MASTERY: lambda c: c.domain_mastery,
    Metric.COGNITIVE_BALANCE: lambda c: c.cognitive_balance,
}


def _between(value, bounds) -> bool:
    lo, hi = bounds
    return lo <= value <= hi


OPERATORS = {
    ">": lambda v, x: v > x,
    "<": lambda v, x: v < x,
    ">=": lambda v, x: v >= x,
    "<=": lambda v, x: v <= x,
    "==": lambda v, x: v == x,
    "between": _between,
}


@dataclass(frozen=True)
class Condition:
    metric: Metric
    operator: str
    value: object

    def matches(self, context: InsightContext) -> bool:
        actual = METRIC_ACCESSORS[self.metric](context)
        if actual is None:
            return False
        try:
            return bool(OPERATORS[self.operator](actual, self.value))
        except TypeError:
            return False


@dataclass(frozen=True)
class Insight:
    id: str
    category: str
    message: str
    conditions: tuple
    priority: int
    cooldown: int
    tone: str = "neutral"
    subtext: Optional[str] = None

    def applies(self, context: InsightContext) -> bool:
        return all(c.matches(context) for c in self.conditions)

    def is_cooling(self, cooldowns: dict, now: int) -> bool:
        last = cooldowns.get(self.id)
        if last is None:
            return False
        if self.cooldown == 0:
            return True
        return now - last < self.cooldown

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "category": self.category,
            "message": self.message,
            "subtext": self.subtext,
            "priority": self.priority,
            "tone": self.tone,
        }


def _insight(id, category, message, conditions, priority, cooldown, tone="neutral", subtext=None):
    return Insight(
        id=id,
        category=category,
        message=message,
        conditions=tuple(Condition(m, op, v) for m, op, v in conditions),
        priority=priority,
        cooldown=cooldown,
        tone=tone,
        subtext=subtext,
    )


MIN = 60 * 1000
M = Metric

INSIGHTS = [
    # perception
    _insight("perc_sharp_vision", "perception", "Your eyes process the field faster than most.",
             [(M.PERCEPTION, ">", 75)], 80, 5 * MIN, subtext="Pattern recognition: top 15%"),
    _insight("perc_color_mastery", "perception", "Color gives up its secrets to you.",
             [(M.PERCEPTION, ">", 70)], 70, 10 * MIN, "encouraging", "Chromatic discrimination: enhanced"),
    _insight("perc_developing", "perception", "Each trial sharpens what you see.",
             [(M.PERCEPTION, "between", (40, 60))], 40, 15 * MIN, "encouraging"),
    # tempo
    _insight("tempo_lightning", "tempo", "You answer before most minds have read the question.",
             [(M.REACTION_MEAN, "<", 1200)], 90, 3 * MIN, subtext="Response time: exceptional"),
    _insight("tempo_improving", "tempo", "Faster. Less precise.",
             [(M.REACTION_TREND, "==", "improving"), (M.RECENT_ACCURACY, "<", 0.7)],
             75, 5 * MIN, "challenging", "Weigh the tradeoff."),
    _insight("tempo_deliberate", "tempo", "You take your time. Every answer is weighed.",
             [(M.REACTION_MEAN, ">", 3000)], 50, 10 * MIN, subtext="Deliberate thinking detected."),
    _insight("tempo_consistent", "tempo", "Your rhythm barely wavers.",
             [(M.REACTION_VARIANCE, "<", 400)], 70, 5 * MIN, subtext="Timing variance: minimal"),
    # precision
    _insight("prec_flawless", "precision", "Precise and unhesitating. That pairing is rare.",
             [(M.ACCURACY, ">", 0.9)], 95, 2 * MIN),
    _insight("prec_surgical", "precision", "Surgical selections. Nothing wasted.",
             [(M.ACCURACY, ">", 0.85)], 80, 4 * MIN),
    _insight("prec_improving", "precision", "Accuracy is climbing. Your pattern sense adapts.",
             [(M.ACCURACY, "between", (0.65, 0.8)), (M.TREND, "==", "improving")],
             60, 5 * MIN, "encouraging"),
    _insight("prec_pressure", "precision", "Pressure sharpened your perception.",
             [(M.ACCURACY, ">", 0.75)], 65, 5 * MIN),
    # growth
    _insight("growth_breakthrough", "growth", "A threshold is behind you. Your mind works differently now.",
             [(M.EVOLUTION_STAGE, ">", 5)], 100, 0, "profound"),
    _insight("growth_learning", "growth", "Failures teach. Successes confirm.",
             [(M.TOTAL_TRIALS, ">", 50)], 50, 15 * MIN),
    _insight("growth_plateau", "growth", "You have leveled out. New challenges are waiting.",
             [(M.IMPROVEMENT_RATE, "<", 0.01)], 55, 30 * MIN, "challenging",
             "Try an unfamiliar domain."),
    # pattern
    _insight("pattern_intuitive", "pattern", "You saw the structure before you were sure of it.",
             [(M.INTUITION, ">", 0.5)], 75, 10 * MIN, subtext="Intuitive processing: dominant"),
    _insight("pattern_analytical", "pattern", "You take the field apart before deciding.",
             [(M.INTUITION, "<", -0.5)], 75, 10 * MIN, subtext="Analytical processing: dominant"),
    _insight("pattern_spatial_bias", "pattern", "You favor the center. The edges go unexplored.",
             [(M.SCAN_PATTERN, "==", "center-out")], 60, 10 * MIN),
    _insight("pattern_systematic", "pattern", "Your search is methodical. Nearly mechanical.",
             [(M.SCAN_PATTERN, "==", "systematic")], 55, 10 * MIN),
    # pressure
    _insight("pressure_thrives", "pressure", "The harder it gets, the better you play.",
             [(M.PRESSURE_RESPONSE, "==", "thrives")], 85, 5 * MIN, subtext="Pressure response: exceptional"),
    _insight("pressure_steady", "pressure", "Chaos around you. Stillness within.",
             [(M.PRESSURE_RESPONSE, "==", "neutral"), (M.ACCURACY, ">", 0.7)], 70, 5 * MIN),
    _insight("pressure_fatigue", "pressure", "Your answers are slowing. Rest is calling.",
             [(M.FATIGUE, ">", 0.6)], 90, 10 * MIN, subtext="Fatigue detected."),
    # milestone
    _insight("mile_first_hundred", "milestone", "One hundred trials. The pathways are set.",
             [(M.TOTAL_TRIALS, "==", 100)], 100, 0, "profound"),
    _insight("mile_streak_10", "milestone", "Ten in a row. Momentum builds.",
             [(M.CURRENT_STREAK, ">=", 10)], 70, 1 * MIN),
    _insight("mile_streak_25", "milestone", "Twenty-five without a miss. Rare focus.",
             [(M.CURRENT_STREAK, ">=", 25)], 85, 1 * MIN),
    _insight("mile_streak_50", "milestone", "Fifty. The void is watching.",
             [(M.CURRENT_STREAK, ">=", 50)], 95, 0, "profound"),
    # flow
    _insight("flow_entering", "flow", "You are in the flow. Time stops counting.",
             [(M.CURRENT_MOOD, "==", "flowing")], 80, 5 * MIN, "mysterious"),
    _insight("flow_peak", "flow", "Mind and challenge move as one.",
             [(M.CURRENT_MOOD, "==", "flowing"), (M.ACCURACY, ">", 0.9)], 90, 3 * MIN, "profound"),
    # mastery
    _insight("mastery_domain", "mastery", "A cognitive domain is yours.",
             [(M.DOMAIN_MASTERY, ">", 0.85)], 100, 0, "profound", "New challenges unlocked."),
    _insight("mastery_balance", "mastery", "Every domain in balance. An uncommon mind.",
             [(M.COGNITIVE_BALANCE, "==", True)], 95, 0, "profound"),
]

del M

INSIGHT_INDEX = {i.id: i for i in INSIGHTS}


# ── Context building ─────────────────────────────────────

def domain_mastery(learning_curves: dict, min_exposures: int = 10) -> Optional[float]:
    """Best lifetime accuracy (0-1) over domains with enough practice."""
    totals: dict = {}
    for key, curve in (learning_curves or {}).items():
        try:
            domain = ChallengeType.parse(key).domain
        except ValueError:
            continue
        exposures = curve.get("exposures", 0)
        hits, seen = totals.get(domain, (0.0, 0))
        totals[domain] = (hits + lifetime_hits(curve), seen + exposures)
    scores = [hits / seen for hits, seen in totals.values() if seen >= min_exposures]
    return max(scores) if scores else None


def cognitive_balance(vector: dict, floor: float = 60, spread: float = 10) -> Optional[bool]:
    values = [vector.get(skill) for skill in DOMAIN_SKILLS]
    if any(v is None for v in values):
        return None
    return min(values) >= floor and max(values) - min(values) <= spread


def build_context(stats: Optional[dict] = None, mind: Optional[dict] = None) -> InsightContext:
    """Merge session stats over the stored mind. Session values win."""
    stats = stats or {}
    mind = mind or {}
    reaction = mind.get("reactionProfile", {})
    signature = mind.get("behaviorSignature", {})
    risk = stats.get("riskProfile") or mind.get("riskProfile", {})
    fatigue = stats.get("fatigueModel") or mind.get("fatigueModel", {})
    vector = stats.get("cognitiveVector") or mind.get("cognitiveVector", {})
    curves = stats.get("learningCurves") or mind.get("learningCurves", {})

    accuracy = stats.get("accuracy")
    reaction_mean = stats.get("avgResponseTime", reaction.get("mean"))
    return InsightContext(
        accuracy=accuracy,
        recent_accuracy=stats.get("recentAccuracy", accuracy),
        trend=stats.get("trend", reaction.get("trend")),
        reaction_mean=reaction_mean,
        reaction_variance=reaction.get("variance"),
        reaction_trend=stats.get("trend", reaction.get("trend")),
        cognitive_vector=dict(vector),
        evolution_stage=mind.get("evolutionStage"),
        total_trials=mind.get("totalTrials"),
        improvement_rate=stats.get("improvementRate"),
        intuition_vs_analysis=stats.get("intuitionVsAnalysis", signature.get("intuitionVsAnalysis")),
        scan_pattern=signature.get("scanPattern"),
        pressure_response=risk.get("pressureResponse"),
        estimated_fatigue=fatigue.get("estimatedFatigue"),
        current_streak=stats.get("peakStreak", stats.get("currentStreak")),
        current_mood=stats.get("mood", mind.get("currentMood")),
        domain_mastery=domain_mastery(curves),
        cognitive_balance=cognitive_balance(vector) if vector else None,
    )


# ── Selection ────────────────────────────────────────────

def select_insights(
    context: InsightContext,
    cooldowns: Optional[dict] = None,
    now: int = 0,
    limit: Optional[int] = None,
    table=None,
) -> tuple[list[Insight], dict]:
    """Eligible insights, best first, and the cooldown table with them stamped.

    Pure: the input table is copied, never modified.
    """
    table = INSIGHTS if table is None else table
    updated = dict(cooldowns or {})
    eligible = [
        insight for insight in table
        if not insight.is_cooling(updated, now) and insight.applies(context)
    ]
    # sorted() is stable, so equal priorities keep table order
    chosen = sorted(eligible, key=lambda i: -i.priority)
    if limit is not None:
        chosen = chosen[:limit]
    for insight in chosen:
        updated[insight.id] = now
    log.debug(f"Insights: {len(eligible)} eligible, chose {[i.id for i in chosen]}")
    return chosen, updated


def reset_cooldowns(cooldowns: Optional[dict] = None, ids=None) -> dict:
    """Clear all cooldowns, or just the given insight ids."""
    if ids is None:
        return {}
    drop = set(ids)
    return {k: v for k, v in (cooldowns or {}).items() if k not in drop}


# ── Reflection ───────────────────────────────────────────

HEADLINES = {
    "exceptional": [
        "The void saw something rare today.",
        "Few minds run at this level.",
        "Your cognitive signature has shifted.",
        "This session broke every expectation.",
    ],
    "strong": [
        "Solid work. The growth shows.",
        "Your patterns are getting stronger.",
        "Improvement across the board.",
        "The mind sharpens.",
    ],
    "moderate": [
        "A session of learning.",
        "Every challenge teaches something.",
        "Progress is not always visible.",
        "The journey goes on.",
    ],
    "struggling": [
        "Hard rounds show where to grow.",
        "Challenge reveals potential.",
        "Struggle comes before breakthrough.",
        "The path was never meant to be easy.",
    ],
}

SUBHEADLINES = {
    "speed": [
        "Response time: {value}ms average",
        "Decision speed: {value}ms",
    ],
    "accuracy": [
        "Precision index: {value}%",
        "Success rate: {value}%",
        "Accuracy: {value}% over {total}",
    ],
    "streak": [
        "Peak streak: {value} in a row",
        "Longest chain: {value} correct",
    ],
    "evolution": [
        "Evolution gained: +{value}",
        "Growth: {value} points",
    ],
}

TONES = {
    "exceptional": "celebratory",
    "strong": "analytical",
    "moderate": "encouraging",
    "struggling": "challenging",
}


@dataclass
class HighlightedMetric:
    label: str
    value: str
    context: str
    trend: str


@dataclass
class SessionReflection:
    headline: str
    subheadline: str
    insights: list
    highlighted_metric: HighlightedMetric
    suggestion: str
    overall_tone: str
    tier: str

    def to_dict(self) -> dict:
        return {
            "headline": self.headline,
            "subheadline": self.subheadline,
            "insights": [i.to_dict() for i in self.insights],
            "highlightedMetric": asdict(self.highlighted_metric),
            "suggestion": self.suggestion,
            "overallTone": self.overall_tone,
            "tier": self.tier,
        }


def _choose(options, rng):
    return options[min(len(options) - 1, int(rng.random() * len(options)))]


def performance_tier(accuracy: float, avg_response_time: float) -> str:
    if accuracy > 0.85 and avg_response_time < 1500:
        return "exceptional"
    if accuracy > 0.70:
        return "strong"
    if accuracy > 0.50:
        return "moderate"
    return "struggling"


def highlighted_metric(trials: int, accuracy: float, peak_streak: int) -> HighlightedMetric:
    if peak_streak >= 5:
        return HighlightedMetric(
            "Peak Streak", str(peak_streak),
            "Exceptional focus" if peak_streak >= 10 else "Building momentum", "up",
        )
    if accuracy >= 0.75:
        return HighlightedMetric(
            "Accuracy", f"{round_half_up(accuracy * 100)}%",
            "Precision maintained", "up" if accuracy >= 0.85 else "stable",
        )
    return HighlightedMetric("Trials", str(trials), "Experience gained", "stable")


def suggestion_for(accuracy: float, avg_response_time: float, vector: dict) -> str:
    domains = sorted(DOMAIN_SKILLS, key=lambda s: vector.get(s, 50.0))
    weakest = domains[0]
    if vector.get(weakest, 50.0) < 40:
        return f"Spend some time on {weakest} challenges to build that domain up."
    if accuracy < 0.6 and avg_response_time < 1500:
        return "Slowing down a little may lift accuracy without breaking flow."
    if accuracy > 0.85 and avg_response_time > 2500:
        return "Your precision is high. Trust your instincts more."
    return "Keep going at this pace. Growth is happening."


def generate_session_reflection(
    stats: dict,
    cooldowns: Optional[dict] = None,
    now: int = 0,
    rng=None,
    mind: Optional[dict] = None,
) -> tuple[SessionReflection, dict]:
    """Reflection for a finished session and the updated cooldown table."""
    rng = rng if rng is not None else np.random.default_rng()
    trials = int(stats.get("trials", 0) or 0)
    accuracy = min(1.0, max(0.0, float(stats.get("accuracy", 0.0) or 0.0)))
    avg_time = max(0.0, float(stats.get("avgResponseTime", 0.0) or 0.0))
    peak = int(stats.get("peakStreak", 0) or 0)
    vector = stats.get("cognitiveVector") or (mind or {}).get("cognitiveVector", {})

    tier = performance_tier(accuracy, avg_time)
    headline = _choose(HEADLINES[tier], rng)

    if peak >= 10:
        subheadline = _choose(SUBHEADLINES["streak"], rng).format(value=peak)
    elif accuracy > 0.8:
        subheadline = _choose(SUBHEADLINES["accuracy"], rng).format(
            value=round_half_up(accuracy * 100), total=trials,
        )
    else:
        subheadline = _choose(SUBHEADLINES["speed"], rng).format(value=round_half_up(avg_time))

    context = build_context(stats, mind)
    insights, updated = select_insights(context, cooldowns, now, limit=config.REFLECTION_INSIGHTS)

    reflection = SessionReflection(
        headline=headline,
        subheadline=subheadline,
        insights=insights,
        highlighted_metric=highlighted_metric(trials, accuracy, peak),
        suggestion=suggestion_for(accuracy, avg_time, vector),
        overall_tone=TONES[tier],
        tier=tier,
    )
    log.info(f"Reflection: tier={tier} insights={[i.id for i in insights]}")
    return reflection, updated


# ── In-round feedback ────────────────────────────────────

AMBIENT_WHISPERS = [
    "The patterns shift...",
    "Something watches...",
    "Your mind adapts...",
    "The void remembers...",
    "Deeper...",
    "Faster...",
    "Focus...",
    "Again...",
]


def trial_feedback(correct: bool, response_ms: float, streak: int, rng=None,
                   chance: float = config.TRIAL_FEEDBACK_CHANCE) -> Optional[str]:
    """Occasional one-word reaction to a single trial, or None."""
    rng = rng if rng is not None else np.random.default_rng()
    if rng.random() > chance:
        return None
    if correct:
        if response_ms < 800 and streak >= 5:
            return "Lightning."
        if streak == 10:
            return "Ten."
        if streak == 25:
            return "Impressive."
        if response_ms < 1000:
            return "Fast."
        return None
    if streak >= 10:
        return "The streak ends."
    if response_ms < 500:
        return "Too hasty."
    return None


def ambient_whisper(rng=None, chance: float = 0.02) -> Optional[str]:
    rng = rng if rng is not None else np.random.default_rng()
    if rng.random() > chance:
        return None
    return _choose(AMBIENT_WHISPERS, rng)
