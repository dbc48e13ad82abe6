"""
Tests for insight selection and session reflections.
"""

import random

import pytest

from cosmosmind.insights import (
    INSIGHTS, INSIGHT_INDEX, Condition, Insight, InsightContext, Metric,
    ambient_whisper, build_context, cognitive_balance, domain_mastery,
    generate_session_reflection, highlighted_metric, performance_tier,
    reset_cooldowns, select_insights, suggestion_for, trial_feedback,
)

MIN = 60 * 1000


def _ids(insights):
    return [i.id for i in insights]


def test_table_is_well_formed():
    assert len(INSIGHTS) == len(INSIGHT_INDEX)
    for insight in INSIGHTS:
        assert insight.conditions
        assert insight.cooldown >= 0
        assert all(isinstance(c.metric, Metric) for c in insight.conditions)


def test_missing_metric_is_false():
    assert not Condition(Metric.REACTION_MEAN, "<", 1200).matches(InsightContext())
    assert not Condition(Metric.PERCEPTION, ">", 75).matches(InsightContext())


def test_type_mismatch_is_false():
    ctx = InsightContext(reaction_mean="fast")
    assert not Condition(Metric.REACTION_MEAN, "<", 1200).matches(ctx)


def test_between_is_inclusive():
    cond = Condition(Metric.ACCURACY, "between", (0.65, 0.8))
    assert cond.matches(InsightContext(accuracy=0.65))
    assert cond.matches(InsightContext(accuracy=0.8))
    assert not cond.matches(InsightContext(accuracy=0.81))


def test_ranked_by_priority():
    ctx = InsightContext(accuracy=0.95)
    chosen, _ = select_insights(ctx, {}, now=0)
    assert _ids(chosen) == ["prec_flawless", "prec_surgical", "prec_pressure"]
    priorities = [i.priority for i in chosen]
    assert priorities == sorted(priorities, reverse=True)


def test_equal_priority_keeps_table_order():
    table = [
        Insight("b", "x", "B", (Condition(Metric.ACCURACY, ">", 0),), 50, 0),
        Insight("a", "x", "A", (Condition(Metric.ACCURACY, ">", 0),), 50, 0),
        Insight("c", "x", "C", (Condition(Metric.ACCURACY, ">", 0),), 60, 0),
    ]
    chosen, _ = select_insights(InsightContext(accuracy=0.5), table=table)
    assert _ids(chosen) == ["c", "b", "a"]


def test_cooldown_window():
    """Shown at t=0, hidden for the two-minute cooldown, back after."""
    ctx = InsightContext(accuracy=0.95)
    _, cooldowns = select_insights(ctx, {}, now=0)
    assert cooldowns["prec_flawless"] == 0

    chosen, _ = select_insights(ctx, cooldowns, now=1 * MIN)
    assert "prec_flawless" not in _ids(chosen)

    chosen, _ = select_insights(ctx, cooldowns, now=2 * MIN)
    assert "prec_flawless" in _ids(chosen)


def test_selection_is_pure():
    cooldowns = {"prec_surgical": 5}
    snapshot = dict(cooldowns)
    _, updated = select_insights(InsightContext(accuracy=0.95), cooldowns, now=10 * MIN)
    assert cooldowns == snapshot
    assert updated is not cooldowns
    assert "prec_flawless" in updated


def test_limit_only_stamps_shown():
    ctx = InsightContext(accuracy=0.95)
    chosen, updated = select_insights(ctx, {}, now=0, limit=1)
    assert _ids(chosen) == ["prec_flawless"]
    assert set(updated) == {"prec_flawless"}


def test_streak_fifty_shown_once():
    """A zero-cooldown milestone appears in exactly one reflection."""
    stats = {"trials": 60, "accuracy": 0.8, "avgResponseTime": 1500,
             "peakStreak": 50, "mood": "focused"}
    cooldowns = {}
    seen = 0
    for i in range(5):
        reflection, cooldowns = generate_session_reflection(
            stats, cooldowns, now=i * 10**9, rng=random.Random(i),
        )
        assert len(reflection.insights) <= 3
        seen += _ids(reflection.insights).count("mile_streak_50")
    assert seen == 1


def test_reset_cooldowns():
    cooldowns = {"a": 1, "b": 2}
    assert reset_cooldowns(cooldowns) == {}
    assert reset_cooldowns(cooldowns, ids=["a"]) == {"b": 2}
    assert cooldowns == {"a": 1, "b": 2}


def test_build_context_session_wins():
    mind = {
        "reactionProfile": {"mean": 2000, "variance": 300, "trend": "declining"},
        "behaviorSignature": {"intuitionVsAnalysis": 0.1, "scanPattern": "systematic"},
        "riskProfile": {"pressureResponse": "neutral"},
        "fatigueModel": {"estimatedFatigue": 0.2},
        "cognitiveVector": {"perception": 80},
        "evolutionStage": 3,
        "totalTrials": 100,
        "currentMood": "curious",
    }
    stats = {"accuracy": 0.9, "avgResponseTime": 900, "mood": "flowing",
             "riskProfile": {"pressureResponse": "thrives"}, "peakStreak": 12}
    ctx = build_context(stats, mind)
    assert ctx.reaction_mean == 900
    assert ctx.reaction_variance == 300
    assert ctx.current_mood == "flowing"
    assert ctx.pressure_response == "thrives"
    assert ctx.scan_pattern == "systematic"
    assert ctx.current_streak == 12
    assert ctx.total_trials == 100
    assert ctx.cognitive_vector["perception"] == 80
    assert ctx.recent_accuracy == 0.9


def test_domain_mastery():
    curves = {
        "largest_shape": {"exposures": 6, "currentAccuracy": 100.0},
        "unique_color": {"exposures": 6, "currentAccuracy": 80.0},
        "diagonal": {"exposures": 4, "currentAccuracy": 100.0},
        "bogus": {"exposures": 50, "currentAccuracy": 100.0},
    }
    assert domain_mastery(curves) == pytest.approx(0.9)
    assert domain_mastery({}) is None


def test_cognitive_balance():
    assert cognitive_balance({"perception": 65, "spatial": 70, "logic": 62, "temporal": 68}) is True
    assert cognitive_balance({"perception": 65, "spatial": 80, "logic": 62, "temporal": 68}) is False
    assert cognitive_balance({"perception": 65}) is None


def test_reflection_tiers():
    rng = random.Random(0)
    high, _ = generate_session_reflection({"trials": 20, "accuracy": 0.9, "avgResponseTime": 1000}, rng=rng)
    assert high.tier == "exceptional"
    assert high.overall_tone == "celebratory"
    assert "90%" in high.subheadline

    low, _ = generate_session_reflection({"trials": 20, "accuracy": 0.3, "avgResponseTime": 2500}, rng=rng)
    assert low.tier == "struggling"
    assert low.overall_tone == "challenging"
    assert "2500" in low.subheadline

    data = high.to_dict()
    assert set(data) == {"headline", "subheadline", "insights", "highlightedMetric",
                         "suggestion", "overallTone", "tier"}


def test_performance_tier_bands():
    assert performance_tier(0.9, 2000) == "strong"
    assert performance_tier(0.6, 500) == "moderate"
    assert performance_tier(0.5, 500) == "struggling"


def test_highlighted_metric_precedence():
    assert highlighted_metric(20, 0.9, 12).label == "Peak Streak"
    assert highlighted_metric(20, 0.9, 12).context == "Exceptional focus"
    assert highlighted_metric(20, 0.9, 3).value == "90%"
    assert highlighted_metric(20, 0.5, 3).label == "Trials"


def test_suggestions():
    weak_logic = {"perception": 60, "spatial": 60, "logic": 30, "temporal": 60}
    assert "logic" in suggestion_for(0.9, 1000, weak_logic)
    assert "Slowing down" in suggestion_for(0.5, 1000, {})
    assert "instincts" in suggestion_for(0.9, 3000, {})
    assert "Keep going" in suggestion_for(0.75, 2000, {})


def test_trial_feedback():
    always = random.Random(0)
    assert trial_feedback(True, 700, 5, rng=always, chance=1.0) == "Lightning."
    assert trial_feedback(True, 2000, 10, rng=always, chance=1.0) == "Ten."
    assert trial_feedback(True, 900, 2, rng=always, chance=1.0) == "Fast."
    assert trial_feedback(False, 900, 12, rng=always, chance=1.0) == "The streak ends."
    assert trial_feedback(False, 300, 0, rng=always, chance=1.0) == "Too hasty."
    assert trial_feedback(True, 700, 5, rng=random.Random(0), chance=0.0) is None


def test_ambient_whisper():
    assert ambient_whisper(random.Random(0), chance=0.0) is None
    assert ambient_whisper(random.Random(0), chance=1.0).endswith("...")
