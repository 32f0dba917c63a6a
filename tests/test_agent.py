import pytest
import numpy as np
import sys
import os

# Add the src directory to Python path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from tracking_error_bound.simulation import (TurtlebotAgent, TrackingGains, UnicycleModel,
                                             TurtlebotParameters, BrakingTrajectoryGenerator,
                                             match_trajectories)
from tracking_error_bound.exceptions import SimulationError


class TestUnicycleModel:
    """Test unicycle dynamics and integration"""

    def test_parameters_validated(self):
        with pytest.raises(ValueError):
            TurtlebotParameters(max_speed=0.0)
        with pytest.raises(ValueError):
            TurtlebotParameters(max_acceleration=-1.0)

    def test_tiny_step_falls_back_to_euler(self):
        """Test steps below the RK4 minimum use one Euler step with a warning"""
        model = UnicycleModel()
        state = np.array([0.0, 0.0, 0.0, 1.0])
        expected = model.integrate_euler(state.copy(), 0.5, 0.2, 1e-7)

        with pytest.warns(UserWarning, match="Euler"):
            result = model.integrate(state.copy(), 0.5, 0.2, 1e-7)

        np.testing.assert_allclose(result, expected, atol=1e-15)

    def test_derivatives(self):
        """Test dx = v cos h, dy = v sin h, dh = w, dv = a"""
        state = np.array([1.0, 2.0, np.pi / 2, 2.0])

        derivative = UnicycleModel.derivatives(state, 0.3, -0.5)

        np.testing.assert_allclose(derivative, [0.0, 2.0, 0.3, -0.5], atol=1e-12)

    def test_straight_line_integration(self):
        """Test constant speed motion along the heading"""
        model = UnicycleModel()
        state = np.array([0.0, 0.0, 0.0, 1.0])

        for _ in range(10):
            state = model.integrate(state, 0.0, 0.0, 0.1)

        np.testing.assert_allclose(state, [1.0, 0.0, 0.0, 1.0], atol=1e-12)

    def test_inputs_saturated(self):
        """Test yaw rate and acceleration are clipped to the robot limits"""
        model = UnicycleModel(TurtlebotParameters(max_yaw_rate=1.0, max_acceleration=0.5))

        assert model.saturate(3.0, -4.0) == (1.0, -0.5)

    def test_speed_stays_within_limits(self):
        """Test the robot neither reverses nor exceeds its top speed"""
        model = UnicycleModel(TurtlebotParameters(max_speed=1.0))

        fast = model.integrate(np.array([0.0, 0.0, 0.0, 0.9]), 0.0, 2.0, 1.0)
        stopped = model.integrate(np.array([0.0, 0.0, 0.0, 0.1]), 0.0, -2.0, 1.0)

        assert fast[3] <= 1.0
        assert stopped[3] >= 0.0

    def test_non_positive_time_step_rejected(self):
        with pytest.raises(ValueError):
            UnicycleModel().integrate(np.zeros(4), 0.0, 0.0, 0.0)

    def test_world_to_body(self):
        """Test a world-frame vector is rotated into the body frame"""
        body = UnicycleModel.world_to_body(np.array([0.0, 1.0]), np.pi / 2)

        np.testing.assert_allclose(body, [1.0, 0.0], atol=1e-12)

    def test_normalize_angle(self):
        assert UnicycleModel.normalize_angle(3 * np.pi / 2) == pytest.approx(-np.pi / 2)


class TestTurtlebotAgent:
    """Test the resettable closed-loop tracker"""

    @pytest.fixture
    def agent(self):
        return TurtlebotAgent()

    @pytest.fixture
    def generator(self):
        return BrakingTrajectoryGenerator()

    def test_reset_sets_initial_condition(self, agent):
        """Test reset stores the state and restarts the clock"""
        agent.reset([0.0, 0.0, 0.0, 1.5])

        np.testing.assert_array_equal(agent.time, [0.0])
        np.testing.assert_array_equal(agent.state[:, 0], [0.0, 0.0, 0.0, 1.5])
        assert agent.position_history.shape == (2, 1)

    def test_invalid_initial_state_rejected(self, agent):
        with pytest.raises(ValueError):
            agent.reset([0.0, 0.0, 0.0])
        with pytest.raises(ValueError):
            agent.reset([0.0, np.inf, 0.0, 1.0])

    def test_drive_requires_reset(self, agent, generator):
        T, U, Z = generator.generate(1.0, 0.0, 1.0)

        with pytest.raises(SimulationError):
            agent.drive(T[-1], T, U, Z)

    def test_invalid_gains_rejected(self):
        with pytest.raises(ValueError):
            TrackingGains(k_x=-1.0)

    def test_history_covers_horizon(self, agent, generator):
        """Test the realized time history runs from zero to the final time"""
        T, U, Z = generator.generate(2.0, 0.5, 1.25)

        agent.reset([0.0, 0.0, 0.0, 1.5])
        agent.drive(T[-1], T, U, Z)

        assert agent.time[0] == 0.0
        assert agent.time[-1] == pytest.approx(T[-1])
        assert np.all(np.diff(agent.time) > 0)
        assert agent.state.shape == (4, agent.time.shape[0])
        assert agent.time.shape[0] == 401

    def test_matching_start_tracks_closely(self, agent, generator):
        """Test starting at the desired speed on a straight line gives negligible error"""
        T, U, Z = generator.generate(2.0, 0.0, 1.5)

        agent.reset([0.0, 0.0, 0.0, 1.5])
        agent.drive(T[-1], T, U, Z)

        realized = match_trajectories(T, agent.time, agent.position_history)

        np.testing.assert_allclose(realized[1], 0.0, atol=1e-12)
        assert np.max(np.abs(realized[0] - Z[0])) < 1e-2

    def test_turning_command_error_is_bounded(self, agent, generator):
        """Test the tracker converges toward a turning desired trajectory"""
        T, U, Z = generator.generate(2.0, 1.0, 1.25)

        agent.reset([0.0, 0.0, 0.0, 1.5])
        agent.drive(T[-1], T, U, Z)

        realized = match_trajectories(T, agent.time, agent.position_history)
        error = np.hypot(*(realized - Z[:2]))

        assert error[0] == 0.0
        assert np.max(error) < 0.5

    def test_reset_clears_previous_run(self, agent, generator):
        """Test a second reset discards the previous history"""
        T, U, Z = generator.generate(2.0, 1.0, 1.25)

        agent.reset([0.0, 0.0, 0.0, 1.5])
        agent.drive(T[-1], T, U, Z)
        agent.reset([0.0, 0.0, 0.0, 1.5])

        assert agent.time.shape == (1,)
        assert agent.state.shape == (4, 1)
