from __future__ import annotations

"""Game configuration constants for Sky Flap."""

import os
from dataclasses import dataclass

# Window
WINDOW_WIDTH = 480
WINDOW_HEIGHT = 720
FPS = 60

# Physics (units are px and ticks; one tick per frame)
GRAVITY = 0.6  # px/tick^2
FLAP_POWER = -12.0  # px/tick, replaces current velocity
MAX_VELOCITY = 15.0  # px/tick, descent only

# Bird
BIRD_RADIUS = 12
BIRD_X_RATIO = 0.2
BIRD_Y_RATIO = 0.5

# Pipes
PIPE_WIDTH = 50
PIPE_SPEED = 4.0  # px/tick at difficulty 1.0
PIPE_SPACING = 180  # px between spawned pipes
SPAWN_OFFSET = 50  # first spawn cursor sits this far right of the viewport
GAP_MARGIN = 50  # minimum distance from the gap to the top/bottom edge

# Difficulty
POINTS_PER_LEVEL = 5
SPEED_STEP = 0.1  # added to the speed multiplier per level
BASE_GAP = 140
GAP_STEP = 5  # gap shrink per level
MIN_GAP = 110

# Interstitial ad hook fires every N points
AD_INTERVAL = 5

# Persistence
BEST_SCORE_KEY = "sky-flap-best-score"
DATA_DIR = os.environ.get("SKY_FLAP_HOME", os.path.join(os.path.expanduser("~"), ".sky_flap"))
SCORES_FILE = os.path.join(DATA_DIR, "scores.json")

# Audio
SAMPLE_RATE = 22050
SOUND_VOLUME = 0.3

# Palette (neon night)
COL_BG = (15, 15, 35)
COL_GRID = (32, 36, 68)
COL_PIPE = (217, 70, 239)
COL_PIPE_DARK = (130, 42, 150)
COL_PIPE_EDGE = (236, 150, 247)
COL_ORNAMENT = (0, 255, 136)
COL_TEXT = (230, 230, 240)
COL_TEXT_DIM = (170, 170, 190)
COL_ACCENT = (0, 255, 136)
COL_RECORD = (255, 215, 0)

BIRD_BODY = (255, 200, 0)
BIRD_BODY_DARK = (255, 165, 0)
BIRD_GLOW = (0, 255, 136)
BIRD_EYE = (0, 0, 0)
BIRD_PUPIL = (255, 255, 255)
BIRD_BEAK = (255, 107, 53)
BIRD_WING = (235, 120, 70)

GRID_SIZE = 40


@dataclass(frozen=True)
class GameConfig:
    """Per-session tunables. Defaults mirror the module constants."""

    gravity: float = GRAVITY
    flap_power: float = FLAP_POWER
    max_velocity: float = MAX_VELOCITY
    bird_radius: float = BIRD_RADIUS
    pipe_width: float = PIPE_WIDTH
    pipe_speed: float = PIPE_SPEED
    pipe_spacing: float = PIPE_SPACING
    spawn_offset: float = SPAWN_OFFSET
    gap_margin: float = GAP_MARGIN
    points_per_level: int = POINTS_PER_LEVEL
    speed_step: float = SPEED_STEP
    base_gap: float = BASE_GAP
    gap_step: float = GAP_STEP
    min_gap: float = MIN_GAP
    ad_interval: int = AD_INTERVAL
    best_score_key: str = BEST_SCORE_KEY
    seed: int | None = None

    def __post_init__(self) -> None:
        if self.pipe_spacing <= 0:
            raise ValueError("pipe_spacing must be positive")
        if self.points_per_level <= 0 or self.ad_interval <= 0:
            raise ValueError("points_per_level and ad_interval must be positive")
