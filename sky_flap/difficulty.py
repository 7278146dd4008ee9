"""Difficulty ramp: level, scroll speed multiplier and gap height from the score."""

from __future__ import annotations

from .config import BASE_GAP, GAP_STEP, MIN_GAP, POINTS_PER_LEVEL, SPEED_STEP


def level_for_score(score: int, points_per_level: int = POINTS_PER_LEVEL) -> int:
    """Level 1 at score 0, one more level every `points_per_level` points."""
    return score // points_per_level + 1


def speed_multiplier(level: int, step: float = SPEED_STEP) -> float:
    return 1.0 + (level - 1) * step


def gap_for_level(
    level: int,
    base_gap: float = BASE_GAP,
    gap_step: float = GAP_STEP,
    min_gap: float = MIN_GAP,
) -> float:
    # Shrinks linearly, never below min_gap
    return max(min_gap, base_gap - (level - 1) * gap_step)
