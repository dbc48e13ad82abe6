"""
CosmosMind Challenge Resolver
=============================
Given the shapes on screen and a challenge type, which one is correct?

Pure functions only. Same input, same answer. Every rule degrades to the
first shape when it cannot be evaluated, and an empty set resolves to None.

Rule families:
  extremum:      one linear scan, first encountered wins ties
  distance:      scalar per shape (center, mean pairwise, diagonal), then extremum
  frequency:     tables keyed by type or color, in first-seen order
  temporal flag: first shape carrying the flag, else the largest
  match:         optional target attribute, else the first shape
"""

import math
from collections import Counter
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from cosmosmind.config import CANVAS_WIDTH, CANVAS_HEIGHT, SHAPE_AREA_TOP, SHAPE_AREA_FRACTION
from cosmosmind.shapes import ChallengeType, Shape


@dataclass(frozen=True)
class Canvas:
    width: float = CANVAS_WIDTH
    height: float = CANVAS_HEIGHT

    @property
    def area_top(self) -> float:
        return self.height * SHAPE_AREA_TOP

    @property
    def area_height(self) -> float:
        return self.height * SHAPE_AREA_FRACTION

    @property
    def center(self) -> tuple[float, float]:
        return (self.width / 2, self.area_top + self.area_height / 2)

    def diagonal_offset(self, shape: Shape) -> float:
        """Vertical distance from the top-left → bottom-right play-area diagonal."""
        slope = self.area_height / self.width if self.width else 0.0
        return abs(shape.y - (self.area_top + shape.x * slope))


DEFAULT_CANVAS = Canvas()


# ── Scans ────────────────────────────────────────────────

def _argmax(shapes: Sequence[Shape], key: Callable[[Shape], float]) -> Shape:
    best = shapes[0]
    best_val = key(best)
    for s in shapes[1:]:
        v = key(s)
        if v > best_val:
            best, best_val = s, v
    return best


def _argmin(shapes: Sequence[Shape], key: Callable[[Shape], float]) -> Shape:
    return _argmax(shapes, lambda s: -key(s))


def mean_distance(shape: Shape, shapes: Sequence[Shape]) -> float:
    """Mean distance from shape to every other shape. A lone shape has 0."""
    others = [o for o in shapes if o is not shape]
    if not others:
        return 0.0
    return sum(math.hypot(o.x - shape.x, o.y - shape.y) for o in others) / len(others)


# ── Frequency helpers ────────────────────────────────────

def _type_key(s: Shape) -> str:
    return s.type


def _color_key(s: Shape) -> str:
    return s.color.key


def _first_with(shapes: Sequence[Shape], key: Callable[[Shape], str], value: str) -> Shape:
    for s in shapes:
        if key(s) == value:
            return s
    return shapes[0]


def _singleton(shapes, key) -> Shape:
    counts = Counter(key(s) for s in shapes)
    for value, n in counts.items():
        if n == 1:
            return _first_with(shapes, key, value)
    return shapes[0]


def _mode(shapes, key) -> str:
    # Counter keeps insertion order, so max() returns the first-seen value among ties
    counts = Counter(key(s) for s in shapes)
    return max(counts, key=counts.get)


def _rarest(shapes, key) -> str:
    counts = Counter(key(s) for s in shapes)
    return min(counts, key=counts.get)


# ── Rules ────────────────────────────────────────────────

def _largest(shapes, **_):
    return _argmax(shapes, lambda s: s.size)


def _odd_one_out(shapes, **_):
    return _singleton(shapes, _type_key)


def _unique_color(shapes, **_):
    return _singleton(shapes, _color_key)


def _count_based(shapes, **_):
    return _first_with(shapes, _type_key, _mode(shapes, _type_key))


def _majority(shapes, **_):
    return _first_with(shapes, _color_key, _mode(shapes, _color_key))


def _exclusion(shapes, **_):
    majority_type = _mode(shapes, _type_key)
    for s in shapes:
        if s.type != majority_type:
            return s
    return shapes[0]


def _pattern_breaker(shapes, **_):
    return _first_with(shapes, _color_key, _rarest(shapes, _color_key))


def _color_gradient(shapes, **_):
    ranked = sorted(shapes, key=lambda s: s.luminance)
    return ranked[len(ranked) // 2]


def _flagged(flag: str):
    def rule(shapes, **_):
        for s in shapes:
            if getattr(s, flag):
                return s
        return _largest(shapes)
    return rule


def _match_color(shapes, target=None, **_):
    if target:
        t = str(target).strip().lower()
        for s in shapes:
            if s.color.name.lower() == t or s.color.key.lower() == t:
                return s
    return shapes[0]


def _match_shape(shapes, target=None, **_):
    if target:
        t = str(target).strip().lower()
        for s in shapes:
            if s.type.lower() == t:
                return s
    return shapes[0]


def _center_most(shapes, canvas, **_):
    cx, cy = canvas.center
    return _argmin(shapes, lambda s: math.hypot(s.x - cx, s.y - cy))


CT = ChallengeType

RULES = {
    CT.LARGEST: _largest,
    CT.SMALLEST: lambda shapes, **_: _argmin(shapes, lambda s: s.size),
    CT.BRIGHTEST: lambda shapes, **_: _argmax(shapes, lambda s: s.luminance),
    CT.DARKEST: lambda shapes, **_: _argmin(shapes, lambda s: s.luminance),
    CT.LEFT_MOST: lambda shapes, **_: _argmin(shapes, lambda s: s.x),
    CT.RIGHT_MOST: lambda shapes, **_: _argmax(shapes, lambda s: s.x),
    CT.TOP_MOST: lambda shapes, **_: _argmin(shapes, lambda s: s.y),
    CT.BOTTOM_MOST: lambda shapes, **_: _argmax(shapes, lambda s: s.y),
    CT.FIRST_APPEARED: lambda shapes, **_: _argmin(shapes, lambda s: s.appearance_order),
    CT.LAST_APPEARED: lambda shapes, **_: _argmax(shapes, lambda s: s.appearance_order),
    CT.CENTER_MOST: _center_most,
    CT.MOST_ISOLATED: lambda shapes, **_: _argmax(shapes, lambda s: mean_distance(s, shapes)),
    CT.MOST_CROWDED: lambda shapes, **_: _argmin(shapes, lambda s: mean_distance(s, shapes)),
    CT.DIAGONAL: lambda shapes, canvas, **_: _argmin(shapes, canvas.diagonal_offset),
    CT.ODD_ONE_OUT: _odd_one_out,
    CT.UNIQUE_COLOR: _unique_color,
    CT.COUNT_BASED: _count_based,
    CT.MAJORITY: _majority,
    CT.EXCLUSION: _exclusion,
    CT.PATTERN_BREAKER: _pattern_breaker,
    CT.COLOR_GRADIENT: _color_gradient,
    CT.FLICKERING: _flagged("flickering"),
    CT.PULSING: _flagged("pulsing"),
    CT.COLOR_SHIFT: _flagged("shifting"),
    CT.MATCH_COLOR: _match_color,
    CT.MATCH_SHAPE: _match_shape,
}

del CT


def resolve_target(
    shapes: Sequence[Shape],
    challenge,
    target: Optional[str] = None,
    canvas: Optional[Canvas] = None,
) -> Optional[Shape]:
    """Return the correct shape for this challenge, or None for an empty set.

    `challenge` may be a ChallengeType or any name ChallengeType.parse accepts.
    `target` is the attribute asked for by match rules (color name/hex or shape type).
    """
    shapes = list(shapes)
    if not shapes:
        return None
    if len(shapes) == 1:
        return shapes[0]
    rule = RULES.get(ChallengeType.parse(challenge))
    if rule is None:
        return shapes[0]
    return rule(shapes, target=target, canvas=canvas or DEFAULT_CANVAS)


def is_correct(shapes: Sequence[Shape], challenge, selected_id, target: Optional[str] = None) -> bool:
    """True if the shape with `selected_id` is the resolved target."""
    correct = resolve_target(shapes, challenge, target=target)
    return correct is not None and correct.id == selected_id
