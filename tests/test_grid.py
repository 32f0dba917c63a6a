import pytest
import numpy as np
import sys
import os

# Add the src directory to Python path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from tracking_error_bound.certification import (Command, CommandBounds, yaw_rate_grid,
                                                speed_grid, command_grid)


class TestCommandBounds:
    """Test command grid limit validation"""

    def test_defaults_match_reference_scenario(self):
        """Test default bounds are the reference braking scenario"""
        bounds = CommandBounds()

        assert bounds.yaw_rate_min == -1.0
        assert bounds.yaw_rate_max == 1.0
        assert bounds.speed_delta == 0.25
        assert bounds.speed_max == 1.5
        assert bounds.num_samples == 4

    @pytest.mark.parametrize("kwargs", [
        {'yaw_rate_min': 1.0, 'yaw_rate_max': -1.0},
        {'speed_delta': -0.1},
        {'speed_max': 0.0},
        {'num_samples': 0},
        {'num_samples': 2.5},
    ])
    def test_invalid_bounds_rejected(self, kwargs):
        """Test physically meaningless bounds raise ValueError"""
        with pytest.raises(ValueError):
            CommandBounds(**kwargs)


class TestYawRateGrid:
    """Test yaw rate sampling"""

    def test_evenly_spaced_between_limits(self):
        """Test yaw rates are N evenly spaced values including the limits"""
        grid = yaw_rate_grid(CommandBounds())

        np.testing.assert_allclose(grid, [-1.0, -1.0 / 3.0, 1.0 / 3.0, 1.0])

    def test_single_sample(self):
        """Test a single sample sits at the lower limit"""
        grid = yaw_rate_grid(CommandBounds(num_samples=1))

        assert grid.shape == (1,)
        assert grid[0] == -1.0


class TestSpeedGrid:
    """Test feasible speed sampling around the initial speed"""

    def test_reference_scenario_collapses_clipped_duplicates(self):
        """Test v_0 = 1.5 clips the two upper samples onto v_max and deduplicates"""
        grid = speed_grid(1.5, CommandBounds())

        np.testing.assert_allclose(grid, [1.25, 1.25 + 0.5 / 3.0, 1.5])

    @pytest.mark.parametrize("initial_speed", [0.0, 0.1, 0.75, 1.4, 1.5, 2.0])
    def test_grid_is_feasible_unique_and_bounded(self, initial_speed):
        """Test speeds lie in [0, v_max], are unique and number at most N"""
        bounds = CommandBounds(num_samples=5)
        grid = speed_grid(initial_speed, bounds)

        assert np.all(grid >= 0.0)
        assert np.all(grid <= bounds.speed_max)
        assert len(np.unique(grid)) == len(grid)
        assert 1 <= len(grid) <= bounds.num_samples

    def test_zero_delta_gives_single_speed(self):
        """Test a zero speed window samples only the initial speed"""
        grid = speed_grid(1.0, CommandBounds(speed_delta=0.0))

        np.testing.assert_allclose(grid, [1.0])


class TestCommandGrid:
    """Test the Cartesian product of yaw rates and speeds"""

    def test_reference_scenario_has_twelve_commands(self):
        """Test 4 yaw rates x 3 speeds give 12 commands"""
        commands = command_grid(1.5, CommandBounds())

        assert len(commands) == 12
        assert all(isinstance(c, Command) for c in commands)

    def test_yaw_rate_is_outer_loop(self):
        """Test commands iterate speeds fastest"""
        commands = command_grid(1.5, CommandBounds())

        assert [c.yaw_rate for c in commands[:3]] == [-1.0] * 3
        np.testing.assert_allclose([c.speed for c in commands[:3]],
                                   speed_grid(1.5, CommandBounds()))

    def test_command_is_hashable_and_printable(self):
        """Test commands can be used as keys and read in logs"""
        command = Command(0.5, 1.25)

        assert {command: 1}[Command(0.5, 1.25)] == 1
        assert "w=+0.500" in str(command)
        assert "v=1.250" in str(command)
