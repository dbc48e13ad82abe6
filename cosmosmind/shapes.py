"""
CosmosMind Shapes & Challenges
==============================
The round vocabulary: what sits on screen (Shape, Color) and what the
player is asked to find (ChallengeType).

Every challenge type belongs to one cognitive domain and one rule family.
The catalogue below carries complexity, selection weight and unlock level
for each type; scoring and difficulty both read complexity from here.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


SHAPE_TYPES = [
    "circle", "square", "triangle", "diamond",
    "hexagon", "star", "pentagon", "octagon",
]

# ── Palette ──────────────────────────────────────────────

PALETTE = {
    "Cyan": "#00FFFF",
    "Magenta": "#FF00FF",
    "Violet": "#8B5CF6",
    "Gold": "#FFD700",
    "Emerald": "#00FF88",
    "Rose": "#FF6B9D",
    "Orange": "#FF8C42",
    "Sky": "#00BFFF",
    "Lime": "#CCFF00",
    "Pink": "#FF69B4",
    "Teal": "#00CED1",
    "Coral": "#FF7F50",
}


def hex_to_rgb(hex_code: str) -> tuple[int, int, int]:
    """Parse '#RRGGBB' (or 'RRGGBB', or '#RGB'). Unparseable input is black."""
    h = (hex_code or "").strip().lstrip("#")
    if len(h) == 3:
        h = "".join(c * 2 for c in h)
    if len(h) < 6:
        return (0, 0, 0)
    try:
        return (int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16))
    except ValueError:
        return (0, 0, 0)


@dataclass(frozen=True)
class Color:
    hex: str
    name: str = ""

    @property
    def luminance(self) -> float:
        r, g, b = hex_to_rgb(self.hex)
        return 0.299 * r + 0.587 * g + 0.114 * b

    @property
    def key(self) -> str:
        """Normalized hex, used as the frequency-table key."""
        return self.hex.strip().upper()


@dataclass(frozen=True)
class Shape:
    """One on-screen shape. Immutable for the lifetime of a round."""
    id: int
    type: str
    size: float
    x: float
    y: float
    color: Color
    rotation: float = 0.0
    appearance_order: int = 0
    flickering: bool = False
    pulsing: bool = False
    shifting: bool = False

    @property
    def luminance(self) -> float:
        return self.color.luminance

    @classmethod
    def from_dict(cls, data: dict, index: int = 0) -> "Shape":
        """Build a Shape from a loose collaborator record.

        Accepts camelCase or snake_case keys and a color given either as a
        hex string or as {hex|main, name}. Missing fields get neutral values.
        """
        color = data.get("color", "#FFFFFF")
        if isinstance(color, dict):
            color = Color(
                hex=str(color.get("hex") or color.get("main") or "#FFFFFF"),
                name=str(color.get("name", "")),
            )
        elif not isinstance(color, Color):
            color = Color(hex=str(color))
        order = data.get("appearance_order", data.get("appearanceOrder", index))
        return cls(
            id=data.get("id", index),
            type=str(data.get("type", "circle")),
            size=float(data.get("size", 0) or 0),
            x=float(data.get("x", 0) or 0),
            y=float(data.get("y", 0) or 0),
            color=color,
            rotation=float(data.get("rotation", 0) or 0),
            appearance_order=int(order or 0),
            flickering=bool(data.get("flickering", data.get("isFlickering", False))),
            pulsing=bool(data.get("pulsing", data.get("isPulsing", False))),
            shifting=bool(data.get("shifting", data.get("isShifting", False))),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "size": self.size,
            "x": self.x,
            "y": self.y,
            "color": {"hex": self.color.hex, "name": self.color.name},
            "rotation": self.rotation,
            "appearanceOrder": self.appearance_order,
            "flickering": self.flickering,
            "pulsing": self.pulsing,
            "shifting": self.shifting,
        }


# ── Challenge Types ──────────────────────────────────────

class Domain(str, Enum):
    PERCEPTION = "perception"
    SPATIAL = "spatial"
    LOGIC = "logic"
    TEMPORAL = "temporal"


class RuleFamily(str, Enum):
    EXTREMUM = "extremum"
    DISTANCE = "distance"
    FREQUENCY = "frequency"
    TEMPORAL_FLAG = "temporal_flag"
    MATCH = "match"


class ChallengeType(str, Enum):
    # perception
    MATCH_COLOR = "match_color"
    MATCH_SHAPE = "match_shape"
    BRIGHTEST = "brightest_color"
    DARKEST = "darkest_color"
    LARGEST = "largest_shape"
    SMALLEST = "smallest_shape"
    COLOR_GRADIENT = "color_gradient"
    UNIQUE_COLOR = "unique_color"
    # spatial
    TOP_MOST = "top_most"
    BOTTOM_MOST = "bottom_most"
    LEFT_MOST = "left_most"
    RIGHT_MOST = "right_most"
    CENTER_MOST = "center_most"
    MOST_ISOLATED = "most_isolated"
    MOST_CROWDED = "most_crowded"
    DIAGONAL = "diagonal"
    # logic
    ODD_ONE_OUT = "odd_one_out"
    PATTERN_BREAKER = "pattern_breaker"
    COUNT_BASED = "count_based"
    EXCLUSION = "exclusion"
    MAJORITY = "majority"
    # temporal
    FIRST_APPEARED = "first_appeared"
    LAST_APPEARED = "last_appeared"
    FLICKERING = "flickering"
    COLOR_SHIFT = "color_shift"
    PULSING = "pulsing"

    @classmethod
    def parse(cls, value) -> "ChallengeType":
        """Accept enum members, snake_case values, camelCase names or thematic aliases."""
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        try:
            return cls(text)
        except ValueError:
            pass
        key = _normalize(text)
        if key in _LOOKUP:
            return _LOOKUP[key]
        raise ValueError(f"Unknown challenge type: {value!r}")

    @property
    def definition(self) -> "ChallengeDefinition":
        return CHALLENGE_DEFINITIONS[self]

    @property
    def complexity(self) -> float:
        return CHALLENGE_DEFINITIONS[self].complexity

    @property
    def domain(self) -> Domain:
        return CHALLENGE_DEFINITIONS[self].domain


@dataclass(frozen=True)
class ChallengeDefinition:
    type: ChallengeType
    domain: Domain
    family: RuleFamily
    complexity: float
    base_weight: float
    unlock_level: int
    instruction: str
    aliases: tuple = field(default_factory=tuple)


def _def(ct, domain, family, complexity, weight, unlock, instruction, *aliases):
    return ChallengeDefinition(ct, domain, family, complexity, weight, unlock, instruction, aliases)


P, S, L, T = Domain.PERCEPTION, Domain.SPATIAL, Domain.LOGIC, Domain.TEMPORAL
C = ChallengeType

CHALLENGE_DEFINITIONS = {d.type: d for d in [
    _def(C.MATCH_COLOR, P, RuleFamily.MATCH, 0.2, 1.0, 1, "Find the COLOR shape", "matchColor"),
    _def(C.MATCH_SHAPE, P, RuleFamily.MATCH, 0.2, 1.0, 1, "Find the SHAPE", "matchShape", "form_recognition"),
    _def(C.BRIGHTEST, P, RuleFamily.EXTREMUM, 0.3, 1.2, 1, "Find the BRIGHTEST", "brightestColor", "luminance_peak"),
    _def(C.DARKEST, P, RuleFamily.EXTREMUM, 0.3, 1.2, 3, "Find the DARKEST", "darkestColor", "shadow_depth"),
    _def(C.LARGEST, P, RuleFamily.EXTREMUM, 0.2, 1.1, 1, "Find the LARGEST", "largestShape", "scale_anomaly"),
    _def(C.SMALLEST, P, RuleFamily.EXTREMUM, 0.2, 1.1, 2, "Find the SMALLEST", "smallestShape"),
    _def(C.COLOR_GRADIENT, P, RuleFamily.FREQUENCY, 0.7, 1.8, 15, "Find the GRADIENT BREAKER", "colorGradient", "opacity_gradient"),
    _def(C.UNIQUE_COLOR, P, RuleFamily.FREQUENCY, 0.5, 1.5, 8, "Find the UNIQUE color", "uniqueColor", "chromatic_isolation"),
    _def(C.TOP_MOST, S, RuleFamily.EXTREMUM, 0.3, 1.0, 4, "Find the HIGHEST", "topMost", "cardinal_extreme"),
    _def(C.BOTTOM_MOST, S, RuleFamily.EXTREMUM, 0.3, 1.0, 4, "Find the LOWEST", "bottomMost"),
    _def(C.LEFT_MOST, S, RuleFamily.EXTREMUM, 0.3, 1.0, 2, "Find the LEFTMOST", "leftMost"),
    _def(C.RIGHT_MOST, S, RuleFamily.EXTREMUM, 0.3, 1.0, 2, "Find the RIGHTMOST", "rightMost"),
    _def(C.CENTER_MOST, S, RuleFamily.DISTANCE, 0.5, 1.4, 10, "Find the CENTER", "centerMost", "centroid_proximity"),
    _def(C.MOST_ISOLATED, S, RuleFamily.DISTANCE, 0.7, 1.6, 18, "Find the ISOLATED", "mostIsolated", "isolation_index"),
    _def(C.MOST_CROWDED, S, RuleFamily.DISTANCE, 0.7, 1.6, 20, "Find the CROWDED", "mostCrowded", "cluster_density"),
    _def(C.DIAGONAL, S, RuleFamily.DISTANCE, 0.6, 1.5, 25, "Find the DIAGONAL one", "diagonal_alignment"),
    _def(C.ODD_ONE_OUT, L, RuleFamily.FREQUENCY, 0.6, 1.8, 12, "Find the ODD ONE", "oddOneOut"),
    _def(C.PATTERN_BREAKER, L, RuleFamily.FREQUENCY, 0.8, 2.0, 22, "Find the ANOMALY", "patternBreaker", "pattern_breach"),
    _def(C.COUNT_BASED, L, RuleFamily.FREQUENCY, 0.5, 1.5, 14, "Find the most common TYPE", "countBased"),
    _def(C.EXCLUSION, L, RuleFamily.FREQUENCY, 0.8, 1.7, 28, "Find the one NOT like the rest", "set_exclusion", "inverse_logic"),
    _def(C.MAJORITY, L, RuleFamily.FREQUENCY, 0.7, 1.6, 30, "Find the MAJORITY color", "majority_rule"),
    _def(C.FIRST_APPEARED, T, RuleFamily.EXTREMUM, 0.8, 2.0, 35, "Find the FIRST", "firstAppeared", "emergence_order"),
    _def(C.LAST_APPEARED, T, RuleFamily.EXTREMUM, 0.8, 2.0, 35, "Find the LAST", "lastAppeared"),
    _def(C.FLICKERING, T, RuleFamily.TEMPORAL_FLAG, 0.9, 2.2, 40, "Find the FLICKERING"),
    _def(C.COLOR_SHIFT, T, RuleFamily.TEMPORAL_FLAG, 1.0, 2.5, 45, "Find the SHIFTING", "colorShift", "temporal_memory"),
    _def(C.PULSING, T, RuleFamily.TEMPORAL_FLAG, 0.9, 2.3, 42, "Find the PULSING", "pulse_frequency", "rhythm_sync"),
]}

del P, S, L, T, C


def _normalize(name: str) -> str:
    return name.replace("_", "").replace("-", "").lower()


_LOOKUP = {}
for _d in CHALLENGE_DEFINITIONS.values():
    _LOOKUP[_normalize(_d.type.value)] = _d.type
    _LOOKUP[_normalize(_d.type.name)] = _d.type
    for _alias in _d.aliases:
        _LOOKUP[_normalize(_alias)] = _d.type
del _d


DEFAULT_COMPLEXITY = 0.5


def complexity_of(challenge) -> float:
    """Complexity for a challenge name; unknown names get the neutral default."""
    try:
        return ChallengeType.parse(challenge).complexity
    except ValueError:
        return DEFAULT_COMPLEXITY


def available_challenges(level: int) -> list[ChallengeType]:
    """Challenge types unlocked at a given level, in catalogue order."""
    return [ct for ct, d in CHALLENGE_DEFINITIONS.items() if d.unlock_level <= level]


def describe(challenge, target: Optional[str] = None) -> str:
    """Player-facing instruction line."""
    ct = ChallengeType.parse(challenge)
    if ct is ChallengeType.MATCH_COLOR:
        return f"Find the {(target or 'cyan').upper()} one"
    if ct is ChallengeType.MATCH_SHAPE:
        return f"Find the {(target or 'circle').upper()}"
    return ct.definition.instruction


def as_shapes(items) -> list[Shape]:
    """Shapes from a mix of Shape objects and loose dicts."""
    return [s if isinstance(s, Shape) else Shape.from_dict(s, i) for i, s in enumerate(items or [])]
