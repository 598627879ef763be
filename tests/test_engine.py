"""Tests for the GameEngine module."""

import json
import logging
from collections import deque

import numpy as np
import pytest

from wrap_snake.config import GameConfig
from wrap_snake.engine import GameEngine, GameStatus, TickEvent
from wrap_snake.grid import CellType
from wrap_snake.highscore import InMemoryHighScoreStore
from wrap_snake.snake import Direction


class RecordingStore(InMemoryHighScoreStore):
    def __init__(self, initial: int = 0) -> None:
        super().__init__(initial)
        self.writes: list[int] = []

    def set_high_score(self, score: int) -> None:
        self.writes.append(score)
        super().set_high_score(score)


class BrokenStore:
    def get_high_score(self) -> int:
        raise OSError("storage unavailable")

    def set_high_score(self, score: int) -> None:
        raise OSError("storage unavailable")


def _engine(grid_size: int = 20, seed: int = 0, **kwargs) -> GameEngine:
    return GameEngine(GameConfig(grid_size=grid_size, seed=seed), **kwargs)


def _set_body(engine, body, direction=Direction.RIGHT, food=(0, 0)):
    """Replace the snake with *body* and put the food at *food*."""
    engine.grid.clear()
    engine.food_spawner.position = None
    engine.snake.body = deque(body)
    engine.snake.direction = direction
    for x, y in body:
        engine.grid.set(x, y, CellType.SNAKE)
    if food is not None:
        engine.food_spawner.put(*food)


def _eat_ahead(engine) -> TickEvent:
    """Put the food directly in front of the snake and tick."""
    direction = engine.pending_direction or engine.snake.direction
    nx, ny = engine.grid.wrap(*engine.snake.next_head(direction))
    engine.food_spawner.put(nx, ny)
    return engine.tick()


def _park_food(engine, cell=(0, 0)) -> None:
    engine.food_spawner.put(*cell)


class TestEngineInit:
    def test_defaults(self):
        engine = _engine()
        assert engine.score == 0
        assert engine.tick_count == 0
        assert engine.status == GameStatus.IDLE
        assert not engine.running
        assert not engine.game_over
        assert not engine.won
        assert engine.speed == 8

    def test_snake_starts_center_heading_right(self):
        engine = _engine(grid_size=20)
        assert list(engine.snake.body) == [(10, 10)]
        assert engine.snake.direction == Direction.RIGHT

    def test_food_placed_off_snake(self):
        engine = _engine()
        assert engine.food is not None
        assert not engine.snake.occupies(*engine.food)

    def test_custom_start_and_length(self):
        engine = GameEngine(
            GameConfig(grid_size=10, start=(1, 4), initial_length=3, seed=0),
        )
        assert list(engine.snake.body) == [(1, 4), (0, 4), (9, 4)]
        assert engine.grid.get(9, 4) == CellType.SNAKE

    def test_high_score_loaded_from_store(self):
        engine = _engine(high_scores=InMemoryHighScoreStore(7))
        assert engine.high_score == 7

    def test_failing_store_load_defaults_to_zero(self, caplog):
        with caplog.at_level(logging.ERROR):
            engine = _engine(high_scores=BrokenStore())
        assert engine.high_score == 0
        assert "Failed to load high score" in caplog.text


class TestEngineLifecycle:
    def test_tick_ignored_when_idle(self):
        engine = _engine()
        before = engine.get_state()
        assert engine.tick() is None
        assert engine.get_state() == before

    def test_start_runs(self):
        engine = _engine()
        engine.start()
        assert engine.status == GameStatus.RUNNING
        assert engine.running

    def test_pause_stops_ticks(self):
        engine = _engine()
        engine.start()
        engine.pause()
        assert engine.status == GameStatus.PAUSED
        head = engine.snake.head
        assert engine.tick() is None
        assert engine.snake.head == head

    def test_resume_after_pause_keeps_state(self):
        engine = _engine()
        engine.start()
        _park_food(engine)
        engine.tick()
        head, score = engine.snake.head, engine.score
        engine.pause()
        engine.start()
        assert engine.running
        assert engine.snake.head == head
        assert engine.score == score

    def test_pause_when_idle_is_noop(self):
        engine = _engine()
        engine.pause()
        assert engine.status == GameStatus.IDLE

    def test_reset_restores_defaults(self):
        engine = _engine()
        engine.start()
        _eat_ahead(engine)
        engine.set_direction(Direction.UP)
        engine.reset()
        assert engine.status == GameStatus.IDLE
        assert engine.score == 0
        assert engine.tick_count == 0
        assert list(engine.snake.body) == [(10, 10)]
        assert engine.snake.direction == Direction.RIGHT
        assert engine.pending_direction is None
        assert int(np.count_nonzero(engine.grid.cells == CellType.SNAKE)) == 1

    def test_reset_keeps_high_score(self):
        store = InMemoryHighScoreStore(5)
        engine = _engine(high_scores=store)
        engine.reset()
        assert engine.high_score == 5
        assert store.get_high_score() == 5

    def test_start_after_game_over_resets(self):
        engine = _engine()
        engine.start()
        _eat_ahead(engine)
        _set_body(
            engine, [(5, 5), (6, 5), (6, 6), (5, 6), (4, 6)], Direction.DOWN,
        )
        assert engine.tick() == TickEvent.COLLISION
        engine.start()
        assert engine.running
        assert not engine.game_over
        assert engine.score == 0
        assert len(engine.snake) == 1

    def test_tick_ignored_after_game_over(self):
        engine = _engine()
        engine.start()
        _set_body(
            engine, [(5, 5), (6, 5), (6, 6), (5, 6), (4, 6)], Direction.DOWN,
        )
        engine.tick()
        tick_count = engine.tick_count
        assert engine.tick() is None
        assert engine.tick_count == tick_count


class TestEngineMovement:
    def test_move_drops_tail(self):
        engine = _engine()
        engine.start()
        _set_body(engine, [(5, 5), (4, 5), (3, 5)], Direction.RIGHT)
        assert engine.tick() == TickEvent.MOVED
        assert list(engine.snake.body) == [(6, 5), (5, 5), (4, 5)]
        assert engine.grid.get(6, 5) == CellType.SNAKE
        assert engine.grid.get(3, 5) == CellType.EMPTY
        assert engine.tick_count == 1

    def test_wraps_right_edge(self):
        engine = _engine(grid_size=20)
        engine.start()
        _set_body(engine, [(19, 7)], Direction.RIGHT)
        engine.tick()
        assert engine.snake.head == (0, 7)

    def test_wraps_left_edge(self):
        engine = _engine(grid_size=20)
        engine.start()
        _set_body(engine, [(0, 3)], Direction.LEFT, food=(5, 5))
        engine.tick()
        assert engine.snake.head == (19, 3)

    def test_wraps_top_and_bottom(self):
        engine = _engine(grid_size=20)
        engine.start()
        _set_body(engine, [(4, 0)], Direction.UP, food=(5, 5))
        engine.tick()
        assert engine.snake.head == (4, 19)
        engine.set_direction(Direction.LEFT)
        engine.tick()
        engine.set_direction(Direction.DOWN)
        engine.tick()
        assert engine.snake.head == (3, 0)


class TestEngineDirection:
    def test_opposite_rejected(self):
        engine = _engine()
        assert not engine.set_direction(Direction.LEFT)
        assert engine.pending_direction is None

    def test_opposite_of_left_rejected(self):
        engine = _engine()
        _set_body(engine, [(5, 5), (6, 5)], Direction.LEFT)
        assert not engine.set_direction(Direction.RIGHT)
        assert engine.pending_direction is None

    def test_direction_applied_on_tick(self):
        engine = _engine()
        engine.start()
        _park_food(engine)
        assert engine.set_direction(Direction.UP)
        assert engine.snake.direction == Direction.RIGHT
        engine.tick()
        assert engine.snake.direction == Direction.UP
        assert engine.snake.head == (10, 9)

    def test_last_valid_request_wins(self):
        engine = _engine()
        engine.set_direction(Direction.UP)
        engine.set_direction(Direction.DOWN)
        assert engine.pending_direction == Direction.DOWN

    def test_reversal_checked_against_active_direction(self):
        engine = _engine()
        engine.start()
        _set_body(engine, [(5, 5), (4, 5), (3, 5)], Direction.RIGHT)
        engine.set_direction(Direction.UP)
        # LEFT reverses the active direction even though UP is buffered.
        assert not engine.set_direction(Direction.LEFT)
        assert engine.pending_direction == Direction.UP
        assert engine.tick() == TickEvent.MOVED
        assert engine.snake.head == (5, 4)

    def test_rapid_turns_cannot_reverse(self):
        engine = _engine()
        engine.start()
        _set_body(engine, [(5, 5), (4, 5), (3, 5)], Direction.RIGHT)
        engine.set_direction(Direction.DOWN)
        engine.set_direction(Direction.LEFT)
        assert engine.tick() == TickEvent.MOVED
        assert engine.snake.head == (5, 6)


class TestEngineFood:
    def test_eating_grows_and_scores(self):
        engine = _engine()
        engine.start()
        length = len(engine.snake)
        assert _eat_ahead(engine) == TickEvent.FOOD_EATEN
        assert len(engine.snake) == length + 1
        assert engine.score == 1

    def test_new_food_off_snake(self):
        engine = _engine(grid_size=5)
        engine.start()
        for _ in range(4):
            _eat_ahead(engine)
            assert engine.food is not None
            assert not engine.snake.occupies(*engine.food)
            assert engine.grid.get(*engine.food) == CellType.FOOD

    def test_head_painted_after_eating(self):
        engine = _engine()
        engine.start()
        _eat_ahead(engine)
        assert engine.grid.get(*engine.snake.head) == CellType.SNAKE

    def test_board_full(self):
        engine = _engine(grid_size=4)
        engine.start()
        body = [
            (1, 0), (2, 0), (3, 0),
            (3, 1), (2, 1), (1, 1), (0, 1),
            (0, 2), (1, 2), (2, 2), (3, 2),
            (3, 3), (2, 3), (1, 3), (0, 3),
        ]
        _set_body(engine, body, Direction.LEFT, food=(0, 0))
        assert engine.tick() == TickEvent.BOARD_FULL
        assert len(engine.snake) == 16
        assert engine.score == 1
        assert engine.food is None
        assert engine.status == GameStatus.BOARD_FULL
        assert engine.won
        assert engine.game_over
        assert not engine.running
        assert engine.high_score == 1
        assert engine.tick() is None


class TestEngineCollision:
    BODY = [(5, 5), (6, 5), (6, 6), (5, 6), (4, 6)]

    def test_collision_ends_game(self):
        engine = _engine()
        engine.start()
        _set_body(engine, self.BODY, Direction.DOWN, food=(0, 0))
        assert engine.tick() == TickEvent.COLLISION
        assert engine.status == GameStatus.GAME_OVER
        assert engine.game_over
        assert not engine.running
        assert not engine.won

    def test_collision_leaves_state_untouched(self):
        engine = _engine()
        engine.start()
        _eat_ahead(engine)
        _set_body(engine, self.BODY, Direction.DOWN, food=(0, 0))
        engine.tick()
        assert list(engine.snake.body) == self.BODY
        assert engine.food == (0, 0)
        assert engine.score == 1

    def test_stepping_onto_tail_collides(self):
        engine = _engine()
        engine.start()
        _set_body(
            engine, [(5, 5), (5, 6), (6, 6), (6, 5)], Direction.RIGHT,
        )
        assert engine.tick() == TickEvent.COLLISION

    def test_collision_across_wrapped_edge(self):
        engine = _engine(grid_size=10)
        engine.start()
        _set_body(
            engine, [(9, 5), (9, 6), (0, 6), (0, 5), (0, 4)], Direction.RIGHT,
            food=(3, 3),
        )
        assert engine.tick() == TickEvent.COLLISION


class TestEngineHighScore:
    @staticmethod
    def _score_three_then_crash(engine):
        engine.start()
        for _ in range(3):
            _eat_ahead(engine)
        # Body is a straight line of 4; three turns bite the tail.
        for direction in (Direction.DOWN, Direction.LEFT, Direction.UP):
            engine.set_direction(direction)
            _park_food(engine)
            event = engine.tick()
        return event

    def test_scenario_high_score_kept(self):
        store = RecordingStore()
        engine = _engine(high_scores=store)
        assert engine.high_score == 0

        assert self._score_three_then_crash(engine) == TickEvent.COLLISION
        assert engine.score == 3
        assert store.get_high_score() == 3
        assert engine.high_score == 3

        engine.start()
        _eat_ahead(engine)
        _set_body(engine, TestEngineCollision.BODY, Direction.DOWN)
        engine.tick()
        assert engine.game_over
        assert engine.score == 1
        assert store.get_high_score() == 3
        assert store.writes == [3]

    def test_no_write_when_not_beaten(self):
        store = RecordingStore(10)
        engine = _engine(high_scores=store)
        self._score_three_then_crash(engine)
        assert store.writes == []
        assert engine.high_score == 10

    def test_failing_store_does_not_block_game_over(self, caplog):
        engine = _engine(high_scores=BrokenStore())
        with caplog.at_level(logging.ERROR):
            event = self._score_three_then_crash(engine)
        assert event == TickEvent.COLLISION
        assert engine.game_over
        assert engine.high_score == 3
        assert "Failed to persist high score" in caplog.text

    def test_reset_high_score(self):
        store = RecordingStore(9)
        engine = _engine(high_scores=store)
        engine.reset_high_score()
        assert engine.high_score == 0
        assert store.get_high_score() == 0

    @staticmethod
    def _score_one_then_crash(engine):
        engine.start()
        _eat_ahead(engine)
        _set_body(engine, TestEngineCollision.BODY, Direction.DOWN)
        return engine.tick()

    def test_shared_store_not_lowered_by_stale_engine(self):
        store = RecordingStore()
        first = _engine(high_scores=store)
        second = _engine(high_scores=store)

        self._score_three_then_crash(first)
        assert self._score_one_then_crash(second) == TickEvent.COLLISION
        assert store.get_high_score() == 3
        assert store.writes == [3]
        assert second.high_score == 3

    def test_shared_store_reset_seen_by_other_engine(self):
        store = RecordingStore(9)
        first = _engine(high_scores=store)
        second = _engine(high_scores=store)

        first.reset_high_score()
        self._score_three_then_crash(second)
        assert store.get_high_score() == 3
        assert second.high_score == 3


class TestEngineSpeed:
    def test_initial_speed_from_config(self):
        engine = GameEngine(GameConfig(initial_speed=12))
        assert engine.speed == 12

    @pytest.mark.parametrize(
        ("requested", "applied"), [(100, 20), (0, 3), (-5, 3), (12, 12)],
    )
    def test_set_speed_clamps(self, requested, applied):
        engine = _engine()
        assert engine.set_speed(requested) == applied
        assert engine.speed == applied

    def test_speed_survives_reset(self):
        engine = _engine()
        engine.set_speed(15)
        engine.reset()
        assert engine.speed == 15


class TestEngineListeners:
    def test_listener_receives_events(self):
        engine = _engine()
        received = []
        engine.subscribe(lambda event, state: received.append((event, state)))
        engine.start()
        _park_food(engine)
        engine.tick()
        assert len(received) == 1
        event, state = received[0]
        assert event == TickEvent.MOVED
        assert state["tick"] == 1

    def test_no_event_for_ignored_tick(self):
        engine = _engine()
        received = []
        engine.subscribe(lambda event, state: received.append(event))
        engine.tick()
        assert received == []

    def test_unsubscribe(self):
        engine = _engine()
        received = []

        def listener(event, state):
            received.append(event)

        engine.subscribe(listener)
        engine.unsubscribe(listener)
        engine.start()
        engine.tick()
        assert received == []


class TestEngineSerialization:
    def test_state_is_json_serializable(self):
        engine = _engine(grid_size=10, seed=42)
        engine.start()
        engine.tick()
        serialized = json.dumps(engine.get_state())
        assert isinstance(serialized, str)

    def test_state_structure(self):
        state = _engine().get_state()
        for key in (
            "tick", "score", "high_score", "status", "running",
            "game_over", "won", "speed", "grid", "snake", "food",
        ):
            assert key in state
        assert state["status"] == "idle"
        assert state["grid"]["size"] == 20


class TestEngineInvariants:
    def test_random_play_invariants(self):
        """Random turns on a small board never break the body invariants."""
        rng = np.random.default_rng(3)
        directions = list(Direction)
        engine = _engine(grid_size=6, seed=3)
        for _ in range(20):
            engine.start()
            while engine.running:
                engine.set_direction(directions[int(rng.integers(4))])
                length, score = len(engine.snake), engine.score
                body, food = list(engine.snake.body), engine.food
                event = engine.tick()
                if event == TickEvent.MOVED:
                    assert len(engine.snake) == length
                    assert engine.score == score
                elif event == TickEvent.FOOD_EATEN:
                    assert len(engine.snake) == length + 1
                    assert engine.score == score + 1
                    assert not engine.snake.occupies(*engine.food)
                elif event == TickEvent.COLLISION:
                    assert list(engine.snake.body) == body
                    assert engine.food == food
                    assert engine.score == score
                assert len(set(engine.snake.body)) == len(engine.snake)
                snake_cells = np.count_nonzero(engine.grid.cells == CellType.SNAKE)
                assert snake_cells == len(engine.snake)


class TestEngineDeterminism:
    def test_same_seed_same_outcome(self):
        actions = [
            Direction.RIGHT, Direction.RIGHT, Direction.DOWN,
            Direction.DOWN, Direction.LEFT,
        ]
        assert self._run_game(123, actions) == self._run_game(123, actions)

    def test_different_seeds_differ(self):
        a = self._run_game(1, [Direction.RIGHT] * 5)
        b = self._run_game(2, [Direction.RIGHT] * 5)
        assert a["food"] != b["food"]

    @staticmethod
    def _run_game(seed: int, actions: list[Direction]) -> dict:
        engine = _engine(seed=seed)
        engine.start()
        for action in actions:
            engine.set_direction(action)
            engine.tick()
        return engine.get_state()
