"""Per-run game state machine: physics, pipes, scoring, collisions, difficulty.

The session knows nothing about pygame. Hosts feed it commands and viewport
sizes, call tick() once per frame, and observe it through SessionListener
callbacks.
"""

from __future__ import annotations

import enum
import logging
import random
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable

from .config import BIRD_X_RATIO, BIRD_Y_RATIO, GameConfig
from .difficulty import gap_for_level, level_for_score, speed_multiplier
from .entities import Bird, Pipe
from .storage import MemoryScoreStore, ScoreStore, StoreError

logger = logging.getLogger(__name__)


class SessionState(enum.Enum):
    START = "start"
    PLAYING = "playing"
    GAME_OVER = "gameover"


class Command(enum.Enum):
    FLAP = "flap"
    PAUSE_TOGGLE = "pause-toggle"
    START = "start"
    GO_HOME = "go-home"


class SoundCue(enum.Enum):
    FLAP = "flap"
    SCORE = "score"
    COLLISION = "collision"


@dataclass(frozen=True)
class RenderState:
    """Snapshot handed to renderers after every tick."""

    state: SessionState
    bird: Bird
    pipes: tuple[Pipe, ...]
    gap: float
    score: int
    level: int
    best_score: int
    elapsed: int
    is_paused: bool
    is_new_record: bool
    width: int
    height: int


class SessionListener:
    """Base class for session observers; override what you need."""

    def on_sound(self, cue: SoundCue) -> None:
        pass

    def on_interstitial_ad(self, score: int) -> None:
        pass

    def on_render(self, render_state: RenderState) -> None:
        pass

    def on_session_ended(self, score: int, best_score: int, is_new_record: bool) -> None:
        pass


class GameSession:
    """Top-level gameplay controller: owns the bird, the pipes and the counters."""

    def __init__(
        self,
        width: int,
        height: int,
        config: GameConfig | None = None,
        store: ScoreStore | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        _check_viewport(width, height)
        self.config = config or GameConfig()
        self.store = store if store is not None else MemoryScoreStore()
        self.clock = clock
        self.rng = random.Random(self.config.seed)
        self.width = int(width)
        self.height = int(height)
        self.listeners: list[SessionListener] = []
        self.commands: deque[Command] = deque()

        self.state = SessionState.START
        self.best_score = self._load_best_score()
        self.is_new_record = False
        self.bird = Bird(
            self.width * BIRD_X_RATIO,
            self.height * BIRD_Y_RATIO,
            self.config.bird_radius,
            gravity=self.config.gravity,
            flap_power=self.config.flap_power,
            max_velocity=self.config.max_velocity,
        )
        self._reset_run()

    # -- setup ------------------------------------------------------------

    def _load_best_score(self) -> int:
        value = self.store.get(self.config.best_score_key)
        return value if value is not None and value > 0 else 0

    def _reset_run(self) -> None:
        self.pipes: list[Pipe] = []
        self.score = 0
        self.level = 1
        self.difficulty_multiplier = 1.0
        self.gap = float(self.config.base_gap)
        self.is_paused = False
        self.is_new_record = False
        self.next_spawn_x = self.width + self.config.spawn_offset
        self.started_at = self.clock()
        self.ended_at: float | None = None
        self._center_bird()

    def _center_bird(self) -> None:
        self.bird.reset(self.width * BIRD_X_RATIO, self.height * BIRD_Y_RATIO)

    def add_listener(self, listener: SessionListener) -> None:
        self.listeners.append(listener)

    def remove_listener(self, listener: SessionListener) -> None:
        self.listeners.remove(listener)

    def resize(self, width: int, height: int) -> None:
        """Adopt a new viewport and recentre the bird."""
        _check_viewport(width, height)
        self.width = int(width)
        self.height = int(height)
        self._center_bird()

    # -- input ------------------------------------------------------------

    def submit(self, command: Command) -> None:
        """Queue a command; it takes effect at the start of the next tick."""
        self.commands.append(command)

    def _apply(self, command: Command) -> None:
        if command is Command.START:
            self.start()
        elif command is Command.FLAP:
            self.flap()
        elif command is Command.PAUSE_TOGGLE:
            self.toggle_pause()
        elif command is Command.GO_HOME:
            self.go_home()

    def start(self) -> None:
        self._reset_run()
        self.state = SessionState.PLAYING
        logger.info("Run started (best %d)", self.best_score)

    def flap(self) -> None:
        if self.state is not SessionState.PLAYING or self.is_paused:
            return
        self.bird.flap()
        self._emit_sound(SoundCue.FLAP)

    def toggle_pause(self) -> None:
        if self.state is SessionState.PLAYING:
            self.is_paused = not self.is_paused

    def go_home(self) -> None:
        if self.state is SessionState.GAME_OVER:
            self.state = SessionState.START

    # -- simulation -------------------------------------------------------

    @property
    def speed(self) -> float:
        return self.config.pipe_speed * self.difficulty_multiplier

    @property
    def elapsed(self) -> int:
        if self.state is SessionState.START:
            return 0
        end = self.ended_at if self.ended_at is not None else self.clock()
        return int(end - self.started_at)

    def tick(self) -> RenderState:
        """Run one frame: commands, physics, pipes, collisions, difficulty, render."""
        while self.commands:
            self._apply(self.commands.popleft())

        if self.state is SessionState.PLAYING and not self.is_paused:
            self.bird.update()
            self.update_pipes()
            self.check_collisions()
            self.update_difficulty()

        render_state = self.snapshot()
        for listener in list(self.listeners):
            listener.on_render(render_state)
        return render_state

    def update_pipes(self) -> None:
        speed = self.speed
        for pipe in self.pipes:
            pipe.update(speed)
            if not pipe.scored and pipe.passed(self.bird.x):
                pipe.scored = True
                self._add_point()

        self.pipes = [p for p in self.pipes if not p.offscreen()]

        # The spawn cursor scrolls with the world so spacing stays constant
        self.next_spawn_x -= speed
        while self.next_spawn_x < self.width:
            self.spawn_pipe(self.next_spawn_x)
            self.next_spawn_x += self.config.pipe_spacing

    def spawn_pipe(self, x: float) -> Pipe:
        margin = self.config.gap_margin
        upper = max(margin, self.height - self.gap - margin)
        pipe = Pipe(x, self.rng.uniform(margin, upper), self.config.pipe_width)
        self.pipes.append(pipe)
        return pipe

    def _add_point(self) -> None:
        self.score += 1
        self._emit_sound(SoundCue.SCORE)
        if self.score % self.config.ad_interval == 0:
            logger.debug("Interstitial ad slot at score %d", self.score)
            for listener in list(self.listeners):
                listener.on_interstitial_ad(self.score)

    def check_collisions(self) -> bool:
        """End the run on the first boundary or pipe hit. Returns True on a hit."""
        if self.bird.top <= 0 or self.bird.bottom >= self.height:
            self.trigger_game_over()
            return True
        for pipe in self.pipes:
            if pipe.collides(self.bird, self.gap):
                self.trigger_game_over()
                return True
        return False

    def update_difficulty(self) -> None:
        level = level_for_score(self.score, self.config.points_per_level)
        if level == self.level:
            return
        self.level = level
        self.difficulty_multiplier = speed_multiplier(level, self.config.speed_step)
        self.gap = gap_for_level(level, self.config.base_gap, self.config.gap_step, self.config.min_gap)
        logger.debug("Level %d: speed x%.1f, gap %.0f", level, self.difficulty_multiplier, self.gap)

    def trigger_game_over(self) -> None:
        if self.state is not SessionState.PLAYING:
            return
        self.state = SessionState.GAME_OVER
        self.is_paused = False
        self.ended_at = self.clock()
        self._emit_sound(SoundCue.COLLISION)

        if self.score > self.best_score:
            self.best_score = self.score
            self.is_new_record = True
            self._save_best_score()
        logger.info("Game over: score %d, best %d", self.score, self.best_score)

        for listener in list(self.listeners):
            listener.on_session_ended(self.score, self.best_score, self.is_new_record)

    def _save_best_score(self) -> None:
        try:
            self.store.set(self.config.best_score_key, self.best_score)
        except StoreError as exc:
            logger.warning("Best score not saved: %s", exc)
        else:
            logger.info("New record: %d", self.best_score)

    def _emit_sound(self, cue: SoundCue) -> None:
        for listener in list(self.listeners):
            listener.on_sound(cue)

    def snapshot(self) -> RenderState:
        return RenderState(
            state=self.state,
            bird=self.bird.copy(),
            pipes=tuple(p.copy() for p in self.pipes),
            gap=self.gap,
            score=self.score,
            level=self.level,
            best_score=self.best_score,
            elapsed=self.elapsed,
            is_paused=self.is_paused,
            is_new_record=self.is_new_record,
            width=self.width,
            height=self.height,
        )


def _check_viewport(width: int, height: int) -> None:
    if width <= 0 or height <= 0:
        raise ValueError(f"viewport must be positive, got {width}x{height}")
