"""Geometry and color utility functions used across the game."""

from __future__ import annotations


def clamp(value: float, lo: float, hi: float) -> float:
    """Clamp a numeric value into the inclusive range [lo, hi]."""
    return max(lo, min(hi, value))


def spans_overlap(a_lo: float, a_hi: float, b_lo: float, b_hi: float) -> bool:
    """True if the open intervals (a_lo, a_hi) and (b_lo, b_hi) intersect."""
    return a_hi > b_lo and a_lo < b_hi


def circle_box_hits_rect(
    cx: float,
    cy: float,
    r: float,
    left: float,
    top: float,
    right: float,
    bottom: float,
) -> bool:
    """True if the bounding box of circle (cx,cy,r) overlaps rect [left,right]x[top,bottom].

    Touching edges do not count as overlap.
    """
    return spans_overlap(cx - r, cx + r, left, right) and spans_overlap(cy - r, cy + r, top, bottom)


def lerp_color(
    a: tuple[int, int, int], b: tuple[int, int, int], t: float
) -> tuple[int, int, int]:
    """Linear blend between two RGB colors, t in [0,1]."""
    t = clamp(t, 0.0, 1.0)
    return (
        int(a[0] * (1 - t) + b[0] * t),
        int(a[1] * (1 - t) + b[1] * t),
        int(a[2] * (1 - t) + b[2] * t),
    )
