"""Game entities and rendering helpers.

Contains the player-controlled bird and the pipe pairs it flies through.
Both advance in fixed ticks (one per frame); positions are in viewport pixels.
"""

from __future__ import annotations

import copy
import math

import pygame

from .config import (
    BIRD_BEAK,
    BIRD_BODY,
    BIRD_BODY_DARK,
    BIRD_EYE,
    BIRD_GLOW,
    BIRD_PUPIL,
    BIRD_RADIUS,
    BIRD_WING,
    COL_ORNAMENT,
    COL_PIPE,
    COL_PIPE_DARK,
    COL_PIPE_EDGE,
    FLAP_POWER,
    GRAVITY,
    MAX_VELOCITY,
    PIPE_WIDTH,
)
from .utils import circle_box_hits_rect, clamp, lerp_color


class Bird:
    def __init__(
        self,
        x: float,
        y: float,
        radius: float = BIRD_RADIUS,
        *,
        gravity: float = GRAVITY,
        flap_power: float = FLAP_POWER,
        max_velocity: float = MAX_VELOCITY,
    ) -> None:
        self.x = float(x)
        self.y = float(y)
        self.radius = float(radius)
        self.vy = 0.0
        self.gravity = gravity
        self.flap_power = flap_power
        self.max_velocity = max_velocity

    def reset(self, x: float, y: float) -> None:
        self.x = float(x)
        self.y = float(y)
        self.vy = 0.0

    def flap(self) -> None:
        # Replaces the current velocity; flaps never stack
        self.vy = self.flap_power

    def update(self) -> None:
        """Advance one tick: gravity, clamp descent speed, integrate."""
        self.vy = min(self.vy + self.gravity, self.max_velocity)
        self.y += self.vy

    @property
    def top(self) -> float:
        return self.y - self.radius

    @property
    def bottom(self) -> float:
        return self.y + self.radius

    def copy(self) -> "Bird":
        return copy.copy(self)

    def draw(self, surf: pygame.Surface) -> None:
        cx, cy = int(self.x), int(self.y)
        r = int(self.radius)

        # Wings first so the body covers the roots; angle follows vertical speed
        wing_angle = clamp(self.vy * 0.05, -0.8, 0.8)
        self._draw_wing(surf, cx - r + 2, cy, -wing_angle)
        self._draw_wing(surf, cx + r - 2, cy, wing_angle)

        pygame.draw.circle(surf, BIRD_GLOW, (cx, cy), r + 2, 2)
        pygame.draw.circle(surf, BIRD_BODY_DARK, (cx, cy), r)
        pygame.draw.circle(surf, BIRD_BODY, (cx - 2, cy - 2), max(1, r - 3))

        # Eyes with pupils looking toward the direction of travel
        pupil_dy = 1 if self.vy > 0 else -1
        for ex in (cx - 4, cx + 4):
            pygame.draw.circle(surf, BIRD_EYE, (ex, cy - 2), 3)
            pygame.draw.circle(surf, BIRD_PUPIL, (ex, cy - 2 + pupil_dy), 1)

        beak = [(cx + r, cy), (cx + r + 8, cy - 3), (cx + r + 8, cy + 3)]
        pygame.draw.polygon(surf, BIRD_BEAK, beak)

    @staticmethod
    def _draw_wing(surf: pygame.Surface, x: int, y: int, angle: float) -> None:
        w, h = 16, 8
        s = pygame.Surface((w, h), pygame.SRCALPHA)
        pygame.draw.ellipse(s, (*BIRD_WING, 160), pygame.Rect(0, 0, w, h))
        rot = pygame.transform.rotate(s, -math.degrees(angle))
        surf.blit(rot, rot.get_rect(center=(x, y - 4)))


class Pipe:
    """One pipe pair: a top barrier above gap_y and a bottom barrier below gap_y + gap."""

    def __init__(self, x: float, gap_y: float, width: float = PIPE_WIDTH) -> None:
        self.x = float(x)
        self.gap_y = float(gap_y)
        self.width = float(width)
        self.scored = False

    @property
    def right(self) -> float:
        return self.x + self.width

    def update(self, speed: float) -> None:
        self.x -= speed

    def passed(self, bird_x: float) -> bool:
        """True once the trailing edge is left of bird_x."""
        return self.right < bird_x

    def offscreen(self) -> bool:
        return self.right < 0

    def collides(self, bird: Bird, gap: float) -> bool:
        """Circle bounding box against the two barrier rectangles."""
        if circle_box_hits_rect(bird.x, bird.y, bird.radius, self.x, float("-inf"), self.right, self.gap_y):
            return True
        return circle_box_hits_rect(
            bird.x, bird.y, bird.radius, self.x, self.gap_y + gap, self.right, float("inf")
        )

    def copy(self) -> "Pipe":
        return copy.copy(self)

    def draw(self, surf: pygame.Surface, gap: float, height: int) -> None:
        x, w = int(self.x), int(self.width)
        top_h = int(self.gap_y)
        bottom_y = int(self.gap_y + gap)
        self._draw_segment(surf, pygame.Rect(x, 0, w, top_h))
        self._draw_segment(surf, pygame.Rect(x, bottom_y, w, max(0, height - bottom_y)))
        # Ornaments mark the mouth of each barrier
        self._draw_ornament(surf, x + w // 2, top_h - 15)
        self._draw_ornament(surf, x + w // 2, bottom_y + 15)

    @staticmethod
    def _draw_segment(surf: pygame.Surface, rect: pygame.Rect) -> None:
        if rect.width <= 0 or rect.height <= 0:
            return
        # Horizontal gradient, bright on the leading edge
        for i in range(rect.width):
            col = lerp_color(COL_PIPE, COL_PIPE_DARK, i / max(1, rect.width - 1))
            pygame.draw.line(surf, col, (rect.left + i, rect.top), (rect.left + i, rect.bottom - 1))
        pygame.draw.rect(surf, COL_PIPE_EDGE, rect, 2)

    @staticmethod
    def _draw_ornament(surf: pygame.Surface, x: int, y: int) -> None:
        s = pygame.Surface((20, 20), pygame.SRCALPHA)
        pygame.draw.circle(s, (*COL_ORNAMENT, 80), (10, 10), 8)
        pygame.draw.circle(s, (*COL_ORNAMENT, 160), (10, 10), 8, 1)
        surf.blit(s, (x - 10, y - 10))
