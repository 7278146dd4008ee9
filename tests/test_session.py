import math

import pytest

from sky_flap.config import BEST_SCORE_KEY, GameConfig
from sky_flap.entities import Pipe
from sky_flap.session import Command, GameSession, SessionListener, SessionState, SoundCue
from sky_flap.storage import MemoryScoreStore, StoreError

WIDTH, HEIGHT = 480, 720


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class Recorder(SessionListener):
    def __init__(self) -> None:
        self.sounds: list[SoundCue] = []
        self.ads: list[int] = []
        self.renders = 0
        self.ended: list[tuple[int, int, bool]] = []

    def on_sound(self, cue: SoundCue) -> None:
        self.sounds.append(cue)

    def on_interstitial_ad(self, score: int) -> None:
        self.ads.append(score)

    def on_render(self, render_state) -> None:
        self.renders += 1

    def on_session_ended(self, score: int, best_score: int, is_new_record: bool) -> None:
        self.ended.append((score, best_score, is_new_record))


class BrokenStore(MemoryScoreStore):
    def set(self, key: str, value: int) -> None:
        raise StoreError("disk full")


def make_session(store=None, **overrides) -> tuple[GameSession, Recorder]:
    config = GameConfig(seed=7, **overrides)
    session = GameSession(WIDTH, HEIGHT, config=config, store=store, clock=FakeClock())
    recorder = Recorder()
    session.add_listener(recorder)
    return session, recorder


def start(session: GameSession) -> None:
    session.submit(Command.START)
    session.tick()
    # keep freshly spawned pipes out of the way unless a test wants them
    session.next_spawn_x = 1e9


def crash(session: GameSession) -> None:
    session.bird.y = -100
    session.tick()


def passed_pipe(session: GameSession) -> Pipe:
    """A pipe already behind the bird, with its gap centred on the bird's height."""
    width = session.config.pipe_width
    return Pipe(session.bird.x - width - 1, HEIGHT / 2 - session.gap / 2, width)


def test_new_session_defaults() -> None:
    session, _ = make_session()
    assert session.state is SessionState.START
    assert session.score == 0
    assert session.level == 1
    assert session.difficulty_multiplier == 1.0
    assert session.best_score == 0
    assert session.bird.x == WIDTH * 0.2
    assert session.bird.y == HEIGHT * 0.5


def test_invalid_viewport() -> None:
    with pytest.raises(ValueError):
        GameSession(0, HEIGHT)
    session, _ = make_session()
    with pytest.raises(ValueError):
        session.resize(WIDTH, -1)


def test_start_command_applied_before_physics() -> None:
    session, recorder = make_session()
    session.submit(Command.START)
    session.submit(Command.FLAP)
    session.tick()
    assert session.state is SessionState.PLAYING
    assert session.bird.vy == session.config.flap_power + session.config.gravity
    assert recorder.sounds == [SoundCue.FLAP]
    assert recorder.renders == 1


def test_flap_ignored_outside_play() -> None:
    session, recorder = make_session()
    session.submit(Command.FLAP)
    session.tick()
    assert session.bird.vy == 0.0
    start(session)
    vy = session.bird.vy
    session.submit(Command.PAUSE_TOGGLE)
    session.submit(Command.FLAP)
    session.tick()
    assert session.is_paused
    assert session.bird.vy == vy
    assert recorder.sounds == []


def test_velocity_never_exceeds_max() -> None:
    session, _ = make_session()
    start(session)
    session.bird.y = 100
    for _ in range(30):
        session.tick()
        assert session.bird.vy <= session.config.max_velocity
        if session.state is not SessionState.PLAYING:
            break


def test_scoring_once_per_pipe() -> None:
    session, recorder = make_session()
    start(session)
    pipe = passed_pipe(session)
    session.pipes.append(pipe)
    session.tick()
    assert pipe.scored
    assert session.score == 1
    for _ in range(5):
        session.bird.y = HEIGHT / 2
        session.tick()
        assert pipe.scored
    assert session.score == 1
    assert recorder.sounds.count(SoundCue.SCORE) == 1


def test_offscreen_pipes_are_removed() -> None:
    session, _ = make_session()
    start(session)
    gone = Pipe(-session.config.pipe_width + 2, 200, session.config.pipe_width)
    gone.scored = True
    session.pipes.append(gone)
    session.tick()
    assert gone not in session.pipes
    assert session.pipes == []


def test_five_points_reach_level_two() -> None:
    session, recorder = make_session()
    start(session)
    assert (session.score, session.level, session.difficulty_multiplier) == (0, 1, 1.0)
    session.pipes.extend(passed_pipe(session) for _ in range(5))
    session.tick()
    assert session.state is SessionState.PLAYING
    assert session.score == 5
    assert session.level == 2
    assert math.isclose(session.difficulty_multiplier, 1.1)
    assert session.gap == 135
    assert recorder.ads == [5]


def test_level_and_gap_are_functions_of_score() -> None:
    session, _ = make_session()
    start(session)
    for score in (0, 4, 5, 12, 30, 99):
        session.score = score
        session.update_difficulty()
        assert session.level == score // 5 + 1
        assert math.isclose(session.difficulty_multiplier, 1 + (session.level - 1) * 0.1)
        assert session.gap == max(110, 140 - (session.level - 1) * 5)


def test_spawn_cursor_keeps_constant_spacing() -> None:
    session, _ = make_session()
    session.state = SessionState.PLAYING
    for i in range(200):
        if i == 90:
            session.difficulty_multiplier = 1.5
        session.update_pipes()
    xs = sorted(p.x for p in session.pipes)
    assert len(xs) >= 2
    for a, b in zip(xs, xs[1:]):
        assert b - a == pytest.approx(session.config.pipe_spacing)
    for pipe in session.pipes:
        assert 50 <= pipe.gap_y <= HEIGHT - session.gap - 50


def test_first_spawn_enters_from_right_edge() -> None:
    session, _ = make_session()
    session.state = SessionState.PLAYING
    ticks = 0
    while not session.pipes:
        session.update_pipes()
        ticks += 1
    assert session.pipes[0].x < WIDTH
    assert session.pipes[0].x >= WIDTH - session.speed
    assert ticks == 13  # cursor starts 50px right of the viewport


def test_seed_makes_spawns_reproducible() -> None:
    a, _ = make_session()
    b, _ = make_session()
    assert [a.spawn_pipe(0).gap_y for _ in range(5)] == [b.spawn_pipe(0).gap_y for _ in range(5)]


def test_short_viewport_pins_gap_to_margin() -> None:
    session = GameSession(WIDTH, 200, config=GameConfig(seed=1))
    assert session.spawn_pipe(WIDTH).gap_y == 50


def test_boundary_collision_short_circuits_pipe_checks() -> None:
    class SpyPipe(Pipe):
        calls = 0

        def collides(self, bird, gap):
            SpyPipe.calls += 1
            return super().collides(bird, gap)

    session, recorder = make_session()
    start(session)
    session.pipes.append(SpyPipe(WIDTH - 60, 200))
    session.bird.y = session.bird.radius - 1
    session.bird.vy = 0.0
    session.tick()
    assert session.state is SessionState.GAME_OVER
    assert SpyPipe.calls == 0
    assert recorder.sounds[-1] is SoundCue.COLLISION


def test_bottom_boundary_collision() -> None:
    session, _ = make_session()
    start(session)
    session.bird.y = HEIGHT - session.bird.radius
    session.tick()
    assert session.state is SessionState.GAME_OVER


def test_pipe_collision_ends_run() -> None:
    session, _ = make_session()
    start(session)
    # top barrier reaches down to the bird's centre
    session.pipes.append(Pipe(session.bird.x - 10, session.bird.y + 30))
    session.tick()
    assert session.state is SessionState.GAME_OVER


def test_game_over_fires_once() -> None:
    session, recorder = make_session()
    start(session)
    crash(session)
    session.tick()
    session.trigger_game_over()
    assert recorder.ended == [(0, 0, False)]
    assert recorder.sounds.count(SoundCue.COLLISION) == 1


def test_point_scored_on_crash_tick_updates_level() -> None:
    session, recorder = make_session()
    start(session)
    session.pipes.extend(passed_pipe(session) for _ in range(5))
    session.bird.y = -100
    view = session.tick()
    assert view.state is SessionState.GAME_OVER
    assert view.score == 5
    assert view.level == view.score // 5 + 1 == 2
    assert math.isclose(session.difficulty_multiplier, 1.1)
    assert view.gap == 135
    assert recorder.ended == [(5, 5, True)]


def test_removed_listener_is_not_notified() -> None:
    session, recorder = make_session()
    other = Recorder()
    session.add_listener(other)
    session.remove_listener(recorder)
    start(session)
    assert recorder.renders == 0
    assert other.renders == 1
    with pytest.raises(ValueError):
        session.remove_listener(recorder)


def test_lower_score_keeps_best() -> None:
    store = MemoryScoreStore({BEST_SCORE_KEY: 10})
    session, recorder = make_session(store)
    assert session.best_score == 10
    start(session)
    session.score = 7
    crash(session)
    assert session.best_score == 10
    assert store.writes == 0
    assert session.is_new_record is False
    assert recorder.ended == [(7, 10, False)]


def test_higher_score_sets_new_record() -> None:
    store = MemoryScoreStore({BEST_SCORE_KEY: 10})
    session, recorder = make_session(store)
    start(session)
    session.score = 15
    crash(session)
    assert session.best_score == 15
    assert store.writes == 1
    assert store.get(BEST_SCORE_KEY) == 15
    assert session.is_new_record is True
    assert recorder.ended == [(15, 15, True)]


def test_equal_score_is_not_a_record() -> None:
    store = MemoryScoreStore({BEST_SCORE_KEY: 10})
    session, _ = make_session(store)
    start(session)
    session.score = 10
    crash(session)
    assert session.is_new_record is False
    assert store.writes == 0


def test_store_write_failure_is_not_fatal() -> None:
    session, recorder = make_session(BrokenStore())
    start(session)
    session.score = 3
    crash(session)
    assert session.state is SessionState.GAME_OVER
    assert session.best_score == 3
    assert recorder.ended == [(3, 3, True)]
    session.submit(Command.START)
    session.tick()
    assert session.state is SessionState.PLAYING


def test_pause_freezes_simulation_but_still_renders() -> None:
    session, recorder = make_session()
    start(session)
    session.pipes.append(Pipe(300, 200))
    session.tick()
    session.submit(Command.PAUSE_TOGGLE)
    session.tick()
    y, xs, score = session.bird.y, [p.x for p in session.pipes], session.score
    renders = recorder.renders
    for _ in range(10):
        view = session.tick()
        assert view.is_paused
    assert session.bird.y == y
    assert [p.x for p in session.pipes] == xs
    assert session.score == score
    assert recorder.renders == renders + 10
    session.submit(Command.PAUSE_TOGGLE)
    session.tick()
    assert session.bird.y != y
    assert session.pipes[0].x < xs[0]


def test_pause_toggle_ignored_when_not_playing() -> None:
    session, _ = make_session()
    session.submit(Command.PAUSE_TOGGLE)
    session.tick()
    assert not session.is_paused


def test_state_machine_round_trip() -> None:
    session, _ = make_session()
    session.submit(Command.GO_HOME)
    session.tick()
    assert session.state is SessionState.START
    start(session)
    session.submit(Command.GO_HOME)
    session.tick()
    assert session.state is SessionState.PLAYING
    crash(session)
    assert session.state is SessionState.GAME_OVER
    session.submit(Command.GO_HOME)
    session.tick()
    assert session.state is SessionState.START
    start(session)
    crash(session)
    start(session)
    assert session.state is SessionState.PLAYING


def test_restart_resets_run() -> None:
    session, _ = make_session()
    start(session)
    session.score = 12
    session.update_difficulty()
    session.pipes.append(Pipe(300, 200))
    session.submit(Command.PAUSE_TOGGLE)
    session.tick()
    session.submit(Command.START)
    session.tick()
    assert session.score == 0
    assert session.level == 1
    assert session.difficulty_multiplier == 1.0
    assert session.gap == 140
    assert session.pipes == []
    assert not session.is_paused
    assert session.next_spawn_x == pytest.approx(WIDTH + 50 - session.speed)


def test_resize_recentres_bird() -> None:
    session, _ = make_session()
    session.resize(1000, 500)
    assert session.bird.x == 200
    assert session.bird.y == 250
    start(session)
    view = session.tick()
    assert (view.width, view.height) == (1000, 500)


def test_elapsed_time_freezes_at_game_over() -> None:
    session, _ = make_session()
    clock = session.clock
    assert session.elapsed == 0
    start(session)
    clock.now += 3.7
    assert session.tick().elapsed == 3
    crash(session)
    clock.now += 100
    assert session.tick().elapsed == 3


def test_render_snapshot_is_detached() -> None:
    session, _ = make_session()
    start(session)
    session.pipes.append(Pipe(300, 200))
    view = session.tick()
    session.tick()
    assert view.pipes[0].x != session.pipes[0].x
    assert view.bird.y != session.bird.y
