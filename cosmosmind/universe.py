"""
CosmosMind Universe
===================
The static map the player travels: ten sectors, each a run of chambers.

A chamber fixes a domain, a pool of challenge types and a complexity in
[0, 1]. Everything else (trial count, difficulty rating, reward, base
genome) is derived from that complexity. Sectors open on one of five
conditions: evolution points, chambers completed, sectors mastered,
best streak, or a named secret.
"""

import math
from dataclasses import dataclass, field
from typing import Optional

from cosmosmind.shapes import ChallengeType, Domain


# ── Modifiers ────────────────────────────────────────────

@dataclass(frozen=True)
class ChamberModifier:
    type: str
    intensity: float
    description: str


MODIFIERS = {m.type: m for m in [
    ChamberModifier("temporal_flux", 0.7, "Time runs strangely here. Trust your instincts."),
    ChamberModifier("spatial_warp", 0.6, "Space bends. Near may be far."),
    ChamberModifier("sensory_overload", 0.8, "Every sense turned up. Every detail counts."),
    ChamberModifier("zen_focus", 0.4, "Silence. One breath, one answer."),
    ChamberModifier("chaos_entropy", 0.9, "Order dissolves. Find the pattern anyway."),
    ChamberModifier("mirror_realm", 0.7, "Everything reflects. Nothing is what it seems."),
    ChamberModifier("shadow_play", 0.65, "Darkness shows what light hides."),
    ChamberModifier("velocity_storm", 0.85, "Everything speeds up. Keep pace."),
]}


# ── Genome ───────────────────────────────────────────────

def create_base_genome(complexity: float) -> dict:
    """Round parameters a chamber of this complexity starts from."""
    c = min(1.0, max(0.0, float(complexity)))
    return {
        "timeAllocation": 8 - c * 3,
        "shapePopulation": 4 + math.floor(c * 8),
        "distractorRatio": 0.1 + c * 0.4,
        "colorSimilarity": 0.2 + c * 0.5,
        "sizeDifferentiation": 0.8 - c * 0.4,
        "spatialDensity": 0.3 + c * 0.5,
        "ruleComplexity": c,
        "memoryLoad": math.floor(c * 3),
        "attentionSplits": 1 + math.floor(c * 2),
        "decayRate": c * 0.5,
        "rhythmComplexity": c * 0.3,
        "ambiguityLevel": c * 0.3,
        "trapDensity": c * 0.4,
    }


# ── Chambers & Sectors ───────────────────────────────────

@dataclass(frozen=True)
class Chamber:
    id: str
    sector_id: str
    index: int
    name: str
    domain: Domain
    challenge_pool: tuple
    complexity: float
    modifier: Optional[ChamberModifier] = None

    @property
    def trial_count(self) -> int:
        return 7 + math.floor(self.complexity * 5)

    @property
    def difficulty(self) -> int:
        return math.ceil(self.complexity * 5) or 1

    @property
    def evolution_reward(self) -> int:
        return math.floor(50 + self.complexity * 150)

    @property
    def base_genome(self) -> dict:
        return create_base_genome(self.complexity)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sectorId": self.sector_id,
            "index": self.index,
            "name": self.name,
            "domain": self.domain.value,
            "challengePool": [c.value for c in self.challenge_pool],
            "complexity": self.complexity,
            "trialCount": self.trial_count,
            "difficulty": self.difficulty,
            "evolutionReward": self.evolution_reward,
            "modifier": self.modifier.type if self.modifier else None,
        }


@dataclass(frozen=True)
class UnlockCondition:
    type: str          # evolution | chambers | mastery | streak | secret
    requirement: object
    description: str


@dataclass(frozen=True)
class Sector:
    id: str
    name: str
    subtitle: str
    unlock: UnlockCondition
    chambers: tuple = field(default_factory=tuple)

    @property
    def total_chambers(self) -> int:
        return len(self.chambers)


def _chambers(sector_id: str, prefix: str, rows) -> tuple:
    out = []
    for i, (name, domain, pool, complexity, *modifier) in enumerate(rows):
        out.append(Chamber(
            id=f"{prefix}_{i + 1}",
            sector_id=sector_id,
            index=i,
            name=name,
            domain=domain,
            challenge_pool=tuple(ChallengeType.parse(c) for c in pool),
            complexity=complexity,
            modifier=MODIFIERS[modifier[0]] if modifier else None,
        ))
    return tuple(out)


P, S, L, T = Domain.PERCEPTION, Domain.SPATIAL, Domain.LOGIC, Domain.TEMPORAL

SECTORS = [
    Sector("genesis", "GENESIS", "The Awakening",
           UnlockCondition("evolution", 0, "Always open"),
           _chambers("genesis", "gen", [
               ("First Light", P, ["unique_color", "match_color", "match_shape"], 0.1),
               ("Shape Whispers", P, ["largest_shape", "smallest_shape"], 0.15),
               ("Color Pulse", P, ["brightest_color", "darkest_color"], 0.2),
               ("Spatial Dawn", S, ["top_most", "bottom_most", "left_most", "right_most"], 0.25),
               ("The Threshold", S, ["center_most"], 0.3, "zen_focus"),
           ])),
    Sector("prisma", "PRISMA", "Spectrum's Edge",
           UnlockCondition("chambers", 3, "Complete 3 Genesis chambers"),
           _chambers("prisma", "pri", [
               ("Chroma Well", P, ["unique_color"], 0.3),
               ("Gradient Falls", P, ["color_gradient"], 0.35),
               ("Luminance Peak", P, ["brightest_color", "darkest_color"], 0.4, "sensory_overload"),
               ("Color Memory", T, ["color_shift"], 0.45),
               ("Prismatic Trial", P, ["unique_color", "brightest_color"], 0.5),
           ])),
    Sector("void", "THE VOID", "Between Dimensions",
           UnlockCondition("evolution", 200, "Reach Evolution 200"),
           _chambers("void", "voi", [
               ("Empty Expanse", S, ["most_isolated", "most_crowded"], 0.35),
               ("Depth Perception", S, ["diagonal"], 0.4),
               ("Mirror Space", S, ["center_most"], 0.45, "mirror_realm"),
               ("Warped Reality", S, ["top_most", "most_crowded"], 0.5, "spatial_warp"),
               ("Singularity", S, ["most_isolated", "diagonal"], 0.55),
           ])),
    Sector("axiom", "AXIOM", "Temple of Reason",
           UnlockCondition("chambers", 8, "Complete 8 total chambers"),
           _chambers("axiom", "axi", [
               ("First Principles", L, ["pattern_breaker", "odd_one_out", "exclusion"], 0.4),
               ("Deduction Chamber", L, ["pattern_breaker"], 0.45),
               ("The Majority Rule", L, ["majority", "count_based"], 0.5),
               ("Inverse Logic", L, ["exclusion"], 0.55, "mirror_realm"),
               ("Conditional Mind", L, ["count_based", "odd_one_out"], 0.6),
               ("Pure Reason", L, ["exclusion", "pattern_breaker", "majority"], 0.65),
           ])),
    Sector("chronos", "CHRONOS", "Rivers of Time",
           UnlockCondition("evolution", 500, "Reach Evolution 500"),
           _chambers("chronos", "chr", [
               ("First Moment", T, ["first_appeared", "last_appeared"], 0.45),
               ("Duration Sense", T, ["last_appeared", "flickering"], 0.5),
               ("Rhythm Chamber", T, ["pulsing"], 0.55, "velocity_storm"),
               ("Time Dilation", T, ["flickering", "pulsing"], 0.6, "temporal_flux"),
               ("Memory Stream", T, ["color_shift", "flickering"], 0.65),
               ("Eternal Now", T, ["first_appeared", "color_shift"], 0.7),
           ])),
    Sector("nexus", "NEXUS", "The Convergence",
           UnlockCondition("mastery", 4, "Master 4 different sectors"),
           _chambers("nexus", "nex", [
               ("Fusion Point", P, ["unique_color", "top_most", "pattern_breaker"], 0.5),
               ("Hybrid Mind", L, ["exclusion", "most_isolated", "brightest_color"], 0.55),
               ("Temporal Space", T, ["first_appeared", "majority"], 0.6, "chaos_entropy"),
               ("Unity Chamber", S, ["center_most", "pattern_breaker", "pulsing"], 0.65),
               ("The Synthesis", L, ["exclusion", "color_shift", "center_most", "unique_color"], 0.7),
           ])),
    Sector("entropy", "ENTROPY", "Edge of Chaos",
           UnlockCondition("evolution", 1000, "Reach Evolution 1000"),
           _chambers("entropy", "ent", [
               ("Disorder Gate", P, ["unique_color", "match_shape"], 0.6, "chaos_entropy"),
               ("Noise Floor", P, ["brightest_color"], 0.65, "sensory_overload"),
               ("Pattern Collapse", L, ["pattern_breaker", "exclusion"], 0.7, "chaos_entropy"),
               ("Time Shatter", T, ["first_appeared", "flickering"], 0.75, "temporal_flux"),
               ("Pure Chaos", L, ["exclusion", "color_shift"], 0.8, "chaos_entropy"),
           ])),
    Sector("oracle", "ORACLE", "Sight Beyond",
           UnlockCondition("streak", 25, "Achieve a 25-trial streak"),
           _chambers("oracle", "ora", [
               ("Foresight Well", L, ["pattern_breaker", "count_based"], 0.55),
               ("Pattern Prophet", L, ["pattern_breaker"], 0.6),
               ("Temporal Sight", T, ["flickering", "pulsing"], 0.65, "shadow_play"),
               ("Mind's Eye", S, ["diagonal", "center_most"], 0.7),
               ("True Prophecy", L, ["count_based", "exclusion", "color_shift"], 0.75),
           ])),
    Sector("abyss", "THE ABYSS", "Beyond Understanding",
           UnlockCondition("evolution", 2000, "Reach Evolution 2000"),
           _chambers("abyss", "aby", [
               ("Event Horizon", P, ["unique_color", "darkest_color"], 0.75, "shadow_play"),
               ("Thought Void", L, ["exclusion"], 0.8, "zen_focus"),
               ("Time's End", T, ["color_shift", "flickering"], 0.85, "temporal_flux"),
               ("Spatial Infinity", S, ["most_isolated", "diagonal"], 0.9, "spatial_warp"),
               ("The Unknowable", L, ["majority", "count_based", "color_shift", "center_most"], 0.95),
           ])),
    Sector("transcendence", "TRANSCENDENCE", "Beyond the Mind",
           UnlockCondition("secret", "master_abyss", "Master the Abyss"),
           _chambers("transcendence", "tra", [
               ("Ego Death", P, ["unique_color", "match_shape"], 0.85, "zen_focus"),
               ("Unity Mind", L, ["majority", "exclusion"], 0.9),
               ("Timeless", T, ["color_shift", "first_appeared", "flickering"], 0.92),
               ("Infinite Space", S, ["center_most", "diagonal"], 0.95),
               ("Perfect Mind", L, ["exclusion", "count_based", "color_shift", "unique_color", "pattern_breaker"], 1.0),
           ])),
]

del P, S, L, T

SECTOR_INDEX = {s.id: s for s in SECTORS}
CHAMBER_INDEX = {c.id: c for s in SECTORS for c in s.chambers}


# ── Lookups ──────────────────────────────────────────────

def get_sector(sector_id: str) -> Optional[Sector]:
    return SECTOR_INDEX.get(sector_id)


def get_chamber(chamber_id: str) -> Optional[Chamber]:
    return CHAMBER_INDEX.get(chamber_id)


def sector_progress(sector_id: str, completed_chambers) -> float:
    """Fraction of a sector's chambers completed. 0 for unknown or empty sectors."""
    sector = get_sector(sector_id)
    if sector is None or sector.total_chambers == 0:
        return 0.0
    done = set(completed_chambers or [])
    return sum(1 for c in sector.chambers if c.id in done) / sector.total_chambers


def next_chamber(sector_id: str, completed_chambers) -> Optional[Chamber]:
    """First chamber of the sector not yet completed, or None."""
    sector = get_sector(sector_id)
    if sector is None:
        return None
    done = set(completed_chambers or [])
    for chamber in sector.chambers:
        if chamber.id not in done:
            return chamber
    return None


def mastered_sectors(completed_chambers) -> list[str]:
    return [s.id for s in SECTORS if sector_progress(s.id, completed_chambers) >= 1.0]


def is_unlocked(sector: Sector, evolution_points: int, completed_chambers, best_streak: int = 0) -> bool:
    cond = sector.unlock
    completed = list(completed_chambers or [])
    if cond.type == "evolution":
        return evolution_points >= cond.requirement
    if cond.type == "chambers":
        return len(completed) >= cond.requirement
    if cond.type == "mastery":
        return len(mastered_sectors(completed)) >= cond.requirement
    if cond.type == "streak":
        return best_streak >= cond.requirement
    if cond.type == "secret" and cond.requirement == "master_abyss":
        return sector_progress("abyss", completed) >= 1.0
    return False


def available_sectors(evolution_points: int, completed_chambers, best_streak: int = 0) -> list[Sector]:
    """Sectors the player can enter, in map order."""
    return [
        s for s in SECTORS
        if is_unlocked(s, evolution_points, completed_chambers, best_streak)
    ]
