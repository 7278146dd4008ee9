"""Game loop, input mapping and rendering composition for Sky Flap."""

from __future__ import annotations

import logging
import os
import sys

import pygame

from .audio import SoundBank
from .config import (
    COL_ACCENT,
    COL_BG,
    COL_GRID,
    COL_RECORD,
    COL_TEXT,
    COL_TEXT_DIM,
    FPS,
    GRID_SIZE,
    SCORES_FILE,
    WINDOW_HEIGHT,
    WINDOW_WIDTH,
    GameConfig,
)
from .session import Command, GameSession, RenderState, SessionListener, SessionState
from .storage import JsonScoreStore, ScoreStore

logger = logging.getLogger(__name__)

FLAP_KEYS = (pygame.K_SPACE, pygame.K_RETURN, pygame.K_KP_ENTER, pygame.K_UP)


class Game(SessionListener):
    """pygame host: turns events into session commands and draws each tick."""

    def __init__(
        self,
        config: GameConfig | None = None,
        store: ScoreStore | None = None,
        sound: bool = True,
    ) -> None:
        pygame.init()
        self.screen = pygame.display.set_mode((WINDOW_WIDTH, WINDOW_HEIGHT), pygame.RESIZABLE)
        pygame.display.set_caption("Sky Flap")
        self.clock = pygame.time.Clock()
        self.font_big = pygame.font.SysFont(None, 64)
        self.font_mid = pygame.font.SysFont(None, 36)
        self.font_small = pygame.font.SysFont(None, 24)

        self.session = GameSession(WINDOW_WIDTH, WINDOW_HEIGHT, config=config, store=store)
        self.sound = SoundBank(enabled=sound)
        self.session.add_listener(self.sound)
        self.session.add_listener(self)
        self.ads_shown = 0

        self.background = self._generate_grid_surface(WINDOW_WIDTH, WINDOW_HEIGHT)
        self.view: RenderState = self.session.snapshot()

    def _generate_grid_surface(self, width: int, height: int) -> pygame.Surface:
        """Precompute the backdrop as a surface for fast blitting."""
        surf = pygame.Surface((width, height))
        surf.fill(COL_BG)
        for x in range(0, width, GRID_SIZE):
            pygame.draw.line(surf, COL_GRID, (x, 0), (x, height))
        for y in range(0, height, GRID_SIZE):
            pygame.draw.line(surf, COL_GRID, (0, y), (width, y))
        return surf

    # -- session callbacks ----------------------------------------------------

    def on_render(self, render_state: RenderState) -> None:
        self.view = render_state

    def on_interstitial_ad(self, score: int) -> None:
        # No ad network here; just count the slots
        self.ads_shown += 1
        logger.info("Interstitial ad slot reached at %d points", score)

    def on_session_ended(self, score: int, best_score: int, is_new_record: bool) -> None:
        if is_new_record:
            logger.info("New best score %d", best_score)

    # -- input -------------------------------------------------------------------

    def _primary_action(self) -> None:
        if self.session.state is SessionState.PLAYING:
            self.session.submit(Command.FLAP)
        else:
            self.session.submit(Command.START)

    def handle_input(self, event: pygame.event.Event) -> None:
        if event.type == pygame.KEYDOWN:
            if event.key in FLAP_KEYS:
                self._primary_action()
            elif event.key == pygame.K_p:
                self.session.submit(Command.PAUSE_TOGGLE)
            elif event.key == pygame.K_r:
                self.session.submit(Command.START)
            elif event.key == pygame.K_h:
                self.session.submit(Command.GO_HOME)
            elif event.key == pygame.K_m:
                enabled = self.sound.toggle()
                logger.debug("Sound %s", "on" if enabled else "off")
            elif event.key == pygame.K_ESCAPE:
                pygame.event.post(pygame.event.Event(pygame.QUIT))
        elif event.type == pygame.MOUSEBUTTONDOWN:
            if event.button == 1:
                self._primary_action()
        elif event.type == pygame.VIDEORESIZE:
            self.resize(event.w, event.h)

    def resize(self, width: int, height: int) -> None:
        # Minimised windows report a zero size; keep the last good one
        if width <= 0 or height <= 0:
            return
        self.screen = pygame.display.get_surface()
        self.session.resize(width, height)
        self.background = self._generate_grid_surface(width, height)

    # -- drawing -----------------------------------------------------------------

    def draw(self) -> None:
        view = self.view
        self.screen.blit(self.background, (0, 0))
        if view.state is not SessionState.START:
            for pipe in view.pipes:
                pipe.draw(self.screen, view.gap, view.height)
        view.bird.draw(self.screen)
        self._draw_ui(self.screen, view)
        pygame.display.flip()

    def _blit_center(self, surf: pygame.Surface, text: pygame.Surface, center: tuple[int, int]) -> None:
        surf.blit(text, text.get_rect(center=center))

    def _draw_ui(self, surf: pygame.Surface, view: RenderState) -> None:
        cx, cy = view.width // 2, view.height // 2

        if view.state is SessionState.START:
            self._blit_center(surf, self.font_big.render("Sky Flap", True, COL_TEXT), (cx, cy - 120))
            self._blit_center(
                surf, self.font_small.render("Space or Click to start", True, COL_TEXT_DIM), (cx, cy + 70)
            )
            best = self.font_mid.render(f"Best: {view.best_score}", True, COL_ACCENT)
            self._blit_center(surf, best, (cx, cy + 110))
            return

        score_text = self.font_big.render(str(view.score), True, COL_TEXT)
        surf.blit(score_text, score_text.get_rect(midtop=(cx, 20)))
        level_text = self.font_small.render(f"Level {view.level}", True, COL_TEXT_DIM)
        surf.blit(level_text, level_text.get_rect(topright=(view.width - 10, 14)))
        time_text = self.font_small.render(f"Time: {view.elapsed}s", True, COL_ACCENT)
        surf.blit(time_text, (10, 14))

        if view.is_paused:
            self._blit_center(surf, self.font_big.render("Paused", True, COL_TEXT), (cx, cy))
            self._blit_center(surf, self.font_small.render("Press P to resume", True, COL_TEXT_DIM), (cx, cy + 44))

        if view.state is SessionState.GAME_OVER:
            panel = pygame.Surface((view.width, view.height), pygame.SRCALPHA)
            panel.fill((0, 0, 0, 140))
            surf.blit(panel, (0, 0))
            self._blit_center(surf, self.font_big.render("Game Over", True, COL_TEXT), (cx, cy - 80))
            self._blit_center(surf, self.font_mid.render(f"Score: {view.score}", True, COL_TEXT), (cx, cy - 20))
            self._blit_center(
                surf, self.font_mid.render(f"Best: {view.best_score}", True, COL_TEXT_DIM), (cx, cy + 16)
            )
            if view.is_new_record:
                self._blit_center(surf, self.font_mid.render("New record!", True, COL_RECORD), (cx, cy + 56))
            self._blit_center(
                surf,
                self.font_small.render("Space/Click to play again • H for home", True, COL_TEXT_DIM),
                (cx, cy + 100),
            )

    def step(self) -> RenderState:
        """One frame: drain pending events, tick the session, draw."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                pygame.quit()
                sys.exit(0)
            self.handle_input(event)
        view = self.session.tick()
        self.draw()
        return view

    def run(self) -> None:
        while True:
            self.clock.tick(FPS)
            self.step()


def main() -> None:
    logging.basicConfig(
        level=os.environ.get("SKY_FLAP_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    Game(store=JsonScoreStore(SCORES_FILE)).run()
