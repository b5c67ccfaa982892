"""
Tests for board state and fair board generation.

Tests:
- Generated boards are full and fair
- Seeded generation is reproducible
- Board parsing and rendering
- Score and control helpers
"""

import random

import pytest

from ..engine_core.board_generator import BoardGenerator, generate_board
from ..engine_core.config import GameConfig, parse_controls
from ..engine_core.state import Board, PlayerControl, PlayerControls, Score, Symbol
from ..errors import InvalidConfiguration


class TestBoardGeneration:
    """Tests for the rejection-sampling generator."""

    @pytest.mark.parametrize("size", [1, 2, 3, 4, 5, 7, 10])
    def test_generated_boards_are_fair(self, size):
        """Neither player starts with more than one extra tile."""
        generator = BoardGenerator.seeded(size)
        for _ in range(20):
            board = generator.generate(size)
            a = board.count(Symbol.PLAYER_A)
            b = board.count(Symbol.PLAYER_B)
            assert abs(a - b) <= 1
            assert a + b == size * size

    def test_generated_boards_have_no_empty_cells(self):
        """A fresh board is fully occupied."""
        board = generate_board(6, random.Random(3))
        assert board.count(Symbol.EMPTY) == 0
        assert board.occupied_count == 36

    def test_seeded_generation_is_reproducible(self):
        """Same seed, same board."""
        first = BoardGenerator.seeded(42).generate(7)
        second = BoardGenerator.seeded(42).generate(7)
        assert first.to_rows() == second.to_rows()

    def test_even_board_is_balanced(self):
        """Even sizes have an even cell count, so counts must match."""
        board = generate_board(4, random.Random(0))
        assert board.count(Symbol.PLAYER_A) == board.count(Symbol.PLAYER_B)

    @pytest.mark.parametrize("size", [0, -3])
    def test_non_positive_size_rejected(self, size):
        """Sizes below 1 cannot be generated."""
        with pytest.raises(InvalidConfiguration):
            BoardGenerator.seeded(1).generate(size)


class TestBoard:
    """Tests for Board helpers."""

    def test_parse_round_trip(self, scenario_board):
        """to_rows() gives back the parsed rows."""
        assert scenario_board.to_rows() == ["OOX", "XOX", "OXO"]
        assert scenario_board.at((0, 2)) is Symbol.PLAYER_B
        assert scenario_board.at((2, 2)) is Symbol.PLAYER_A

    def test_parse_empty_markers(self):
        """'.', '_' and ' ' all mean a captured cell."""
        board = Board.parse(["._ ", "OXO", "XOX"])
        assert board.count(Symbol.EMPTY) == 3
        assert board.to_rows()[0] == "..."

    def test_parse_rejects_non_square(self):
        """Every row must be as long as the board is tall."""
        with pytest.raises(ValueError):
            Board.parse(["OX", "OXO"])

    def test_parse_rejects_unknown_symbol(self):
        with pytest.raises(ValueError):
            Board.parse(["OXZ", "OXO", "XOX"])

    def test_occupied_neighbors_order(self, scenario_board):
        """Neighbors come right, left, down, up."""
        assert scenario_board.occupied_neighbors((1, 1)) == [(1, 2), (1, 0), (2, 1), (0, 1)]

    def test_occupied_neighbors_skip_empty_and_edges(self):
        board = Board.parse(["O.X", "XOX", "OXO"])
        assert board.occupied_neighbors((0, 0)) == [(1, 0)]

    def test_clear_marks_cells_empty(self, scenario_board):
        scenario_board.clear([(0, 0), (0, 1), (1, 1)])
        assert scenario_board.to_rows() == ["..X", "X.X", "OXO"]

    def test_copy_is_independent(self, scenario_board):
        copy = scenario_board.copy()
        copy.clear([(0, 0)])
        assert not scenario_board.is_empty((0, 0))

    def test_render_has_indices(self, scenario_board):
        lines = scenario_board.render().splitlines()
        assert lines[0].split() == ["0", "1", "2"]
        assert lines[1].split() == ["0", "O", "O", "X"]

    def test_in_bounds(self, scenario_board):
        assert scenario_board.in_bounds((2, 2))
        assert not scenario_board.in_bounds((3, 0))
        assert not scenario_board.in_bounds((0, -1))


class TestScoreAndControls:
    """Tests for Score, PlayerControls and GameConfig."""

    def test_score_leader(self):
        score = Score()
        assert score.leader() is None
        score.add(Symbol.PLAYER_B, 3)
        assert score.leader() is Symbol.PLAYER_B
        score.add(Symbol.PLAYER_A, 3)
        assert score.leader() is None

    def test_score_never_decreases(self):
        with pytest.raises(ValueError):
            Score().add(Symbol.PLAYER_A, -1)

    @pytest.mark.parametrize("setting,a,b", [
        ("neither", PlayerControl.HUMAN, PlayerControl.HUMAN),
        ("O", PlayerControl.ROBOT, PlayerControl.HUMAN),
        ("x", PlayerControl.HUMAN, PlayerControl.ROBOT),
        ("both", PlayerControl.ROBOT, PlayerControl.ROBOT),
    ])
    def test_robot_setting(self, setting, a, b):
        """Single-word robot settings map onto both sides."""
        controls = PlayerControls.from_robot_setting(setting)
        assert (controls.player_a, controls.player_b) == (a, b)
        assert PlayerControls.from_robot_setting(controls.robot_setting) == controls

    def test_unknown_robot_setting(self):
        with pytest.raises(ValueError):
            PlayerControls.from_robot_setting("sometimes")

    @pytest.mark.parametrize("size", [2, 11, "7", True])
    def test_config_rejects_bad_size(self, size):
        """Board size must be an integer in 3..10."""
        with pytest.raises(InvalidConfiguration):
            GameConfig(board_size=size)

    def test_config_rejects_negative_delay(self):
        with pytest.raises(InvalidConfiguration):
            GameConfig(robot_delay_ms=-1)

    def test_config_delays_in_seconds(self):
        config = GameConfig()
        assert config.robot_delay == pytest.approx(0.8)
        assert config.manual_robot_delay == pytest.approx(0.3)

    def test_config_from_env(self, monkeypatch):
        monkeypatch.setenv("TRIPLET_BOARD_SIZE", "5")
        monkeypatch.setenv("TRIPLET_ROBOT_DELAY_MS", "100")
        config = GameConfig.from_env(robot="X", seed=9)
        assert config.board_size == 5
        assert config.robot_delay_ms == 100
        assert config.controls.is_robot(Symbol.PLAYER_B)
        assert config.seed == 9

    def test_config_from_env_rejects_garbage(self, monkeypatch):
        monkeypatch.setenv("TRIPLET_BOARD_SIZE", "seven")
        with pytest.raises(InvalidConfiguration):
            GameConfig.from_env()

    def test_parse_controls(self):
        controls = parse_controls("Robot", "human")
        assert controls.robot_setting == "O"
        with pytest.raises(InvalidConfiguration):
            parse_controls("alien", "human")
