"""
Closed-Loop Tracker Module

This module implements the stateful robot agent that is reset to an initial
condition and driven along a desired trajectory by a feedforward plus feedback
tracking controller. The realized time and state histories are kept on the
agent and read back after each run.

Control Law:
    The position error is expressed in the robot body frame,

        [e_x, e_y] = R(h)^T ([x_d, y_d] - [x, y])
        e_h = wrap(h_d - h)
        e_v = v_d - v

    and combined with the desired inputs (w_d, a_d):

        a = a_d + k_v e_v + k_x e_x
        w = w_d + k_h e_h + k_y v e_y

    Both inputs are saturated to the robot limits before integration.

Usage:
    agent.reset(z_0)
    agent.drive(T[-1], T, U, Z)
    realized = agent.state[agent.position_indices, :]
"""

import logging
import numpy as np
from typing import Optional, Tuple
from dataclasses import dataclass

from .motion import (UnicycleModel, TurtlebotParameters, STATE_DIMENSION,
                     POSITION_INDICES, HEADING_INDEX, SPEED_INDEX)
from .interpolation import match_trajectories
from ..exceptions import SimulationError

logger = logging.getLogger(__name__)


@dataclass
class TrackingGains:
    """Feedback gains of the tracking controller."""

    k_x: float = 2.0    # Along-track position gain [1/s²]
    k_y: float = 2.0    # Cross-track position gain [1/m²]
    k_h: float = 3.0    # Heading gain [1/s]
    k_v: float = 4.0    # Speed gain [1/s]

    def __post_init__(self):
        """Validate controller gains."""
        if any(gain < 0 for gain in (self.k_x, self.k_y, self.k_h, self.k_v)):
            raise ValueError("Tracking gains must be non-negative")


class TurtlebotAgent:
    """
    Resettable unicycle robot with a trajectory tracking controller.

    The agent is a single stateful resource: one reset, drive and read cycle
    must finish before the next one starts.

    Attributes:
        params (TurtlebotParameters): Robot limits
        gains (TrackingGains): Controller gains
        motion_model (UnicycleModel): Dynamics and integrator
        time (np.ndarray): Realized time history, shape (K,)
        state (np.ndarray): Realized state history, shape (4, K)
    """

    position_indices = list(POSITION_INDICES)

    def __init__(self,
                 params: Optional[TurtlebotParameters] = None,
                 gains: Optional[TrackingGains] = None,
                 integration_time_step: float = 0.005):
        if integration_time_step <= 0:
            raise ValueError(f"Integration time step must be positive, got {integration_time_step}")

        self.params = params or TurtlebotParameters()
        self.gains = gains or TrackingGains()
        self.motion_model = UnicycleModel(self.params)
        self.integration_time_step = integration_time_step

        self.time = np.zeros(0)
        self.state = np.zeros((STATE_DIMENSION, 0))
        self._is_reset = False

    def reset(self, initial_state) -> None:
        """
        Reset the agent to an initial state and clear its histories.

        Args:
            initial_state: State [x, y, h, v]
        """
        initial_state = np.asarray(initial_state, dtype=np.float64).reshape(-1)
        if initial_state.shape != (STATE_DIMENSION,):
            raise ValueError(
                f"Initial state must have {STATE_DIMENSION} entries, got {initial_state.shape[0]}"
            )
        if not np.all(np.isfinite(initial_state)):
            raise ValueError("Initial state must be finite")

        self.time = np.array([0.0])
        self.state = initial_state.reshape(STATE_DIMENSION, 1).copy()
        self._is_reset = True

    @property
    def position_history(self) -> np.ndarray:
        """Realized planar positions, shape (2, K)."""
        return self.state[self.position_indices, :]

    def control_law(self, state: np.ndarray, reference_state: np.ndarray,
                    reference_control: np.ndarray) -> Tuple[float, float]:
        """
        Compute unsaturated (yaw rate, acceleration) for the current state.

        Args:
            state: Current state [x, y, h, v]
            reference_state: Desired state [x_d, y_d, h_d, v_d]
            reference_control: Desired inputs [w_d, a_d]

        Returns:
            Tuple of (yaw_rate, acceleration)
        """
        position_error = reference_state[:2] - state[:2]
        e_x, e_y = self.motion_model.world_to_body(position_error, state[HEADING_INDEX])
        e_h = self.motion_model.normalize_angle(reference_state[HEADING_INDEX] - state[HEADING_INDEX])
        e_v = reference_state[SPEED_INDEX] - state[SPEED_INDEX]

        acceleration = reference_control[1] + self.gains.k_v * e_v + self.gains.k_x * e_x
        yaw_rate = (reference_control[0] + self.gains.k_h * e_h
                    + self.gains.k_y * state[SPEED_INDEX] * e_y)

        return yaw_rate, acceleration

    def drive(self, final_time: float, T: np.ndarray, U: np.ndarray, Z: np.ndarray) -> None:
        """
        Track a desired trajectory from the current time until ``final_time``.

        The reference is linearly interpolated at the start of every
        integration step and the control is held over the step. The realized
        samples are appended to ``time`` and ``state``.

        Args:
            final_time: Time to stop integrating [s]
            T: Desired time samples, shape (M,)
            U: Desired inputs [w; a], shape (2, M)
            Z: Desired states [x; y; h; v], shape (4, M)

        Raises:
            SimulationError: If the agent was not reset or the state diverges
        """
        if not self._is_reset:
            raise SimulationError("Agent must be reset before it can be driven")

        T = np.asarray(T, dtype=np.float64)
        U = np.atleast_2d(np.asarray(U, dtype=np.float64))
        Z = np.atleast_2d(np.asarray(Z, dtype=np.float64))
        if Z.shape != (STATE_DIMENSION, T.shape[0]) or U.shape[1] != T.shape[0]:
            raise ValueError(
                f"Desired trajectory shapes do not match: T{T.shape}, U{U.shape}, Z{Z.shape}"
            )

        start_time = self.time[-1]
        duration = final_time - start_time
        if duration <= 0:
            logger.debug(f"Nothing to drive: final time {final_time:.3f}s <= current time")
            return

        dt = self.integration_time_step
        num_steps = int(np.ceil(duration / dt - 1e-9))
        step_ends = start_time + dt * np.arange(1, num_steps + 1)
        step_ends[-1] = final_time
        step_starts = np.concatenate([[start_time], step_ends[:-1]])

        reference_states = match_trajectories(step_starts, T, Z)
        reference_controls = match_trajectories(step_starts, T, U)

        current = self.state[:, -1].copy()
        realized = np.empty((STATE_DIMENSION, num_steps))

        for step in range(num_steps):
            yaw_rate, acceleration = self.control_law(
                current, reference_states[:, step], reference_controls[:, step])
            current = self.motion_model.integrate(
                current, yaw_rate, acceleration, step_ends[step] - step_starts[step])

            if not np.all(np.isfinite(current)):
                raise SimulationError(f"State diverged at t={step_ends[step]:.3f}s")

            realized[:, step] = current

        self.time = np.concatenate([self.time, step_ends])
        self.state = np.hstack([self.state, realized])

        logger.debug(f"Drove {num_steps} steps to t={final_time:.3f}s")

    def __repr__(self) -> str:
        if self.state.shape[1] == 0:
            return "TurtlebotAgent(not reset)"
        x, y, h, v = self.state[:, -1]
        return (f"TurtlebotAgent(t={self.time[-1]:.2f}s, "
                f"pos=[{x:.2f}, {y:.2f}], h={h:.2f}rad, v={v:.2f}m/s)")
