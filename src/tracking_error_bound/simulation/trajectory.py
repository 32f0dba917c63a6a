"""
Braking Trajectory Generation Module

This module generates the desired trajectories that the tracker is asked to
follow: a constant (yaw rate, speed) command held for a planning period,
followed by a braking segment that brings the robot to rest at the end of the
horizon.

Mathematical Framework:
    The speed and yaw rate share one profile factor s(t):

        s(t) = 1                                   t <= t_plan
        s(t) = (t_f - t) / (t_f - t_plan)          t_plan < t <= t_f

        v(t) = v_des * s(t)
        w(t) = w_des * s(t)

    Scaling both inputs by the same factor keeps the path curvature w/v
    constant, so braking does not change the shape of the path. The position
    and heading follow from integrating the unicycle model from the origin.

Horizon:
    t_f = t_plan + max(v_0 / a_brake, t_brake_min)

    The horizon depends only on the initial speed, never on the sampled
    command, so every desired trajectory of one batch shares its time base.
    The braking window never collapses below t_brake_min, so commands sampled
    around v_0 = 0 still come to rest at t_f.
"""

import numpy as np
from typing import NamedTuple
from dataclasses import dataclass
from scipy.integrate import solve_ivp

from ..exceptions import InfeasibleCommandError


@dataclass
class BrakingParameters:
    """Parameters of the desired braking maneuver with validation."""

    t_plan: float = 0.5                 # Duration of the constant-command segment [s]
    braking_deceleration: float = 1.0   # Deceleration used to size the horizon [m/s²]
    min_braking_time: float = 0.5       # Shortest braking window [s]
    time_step: float = 0.01             # Desired trajectory sample spacing [s]
    max_speed: float = 2.0              # Largest feasible commanded speed [m/s]
    max_yaw_rate: float = 2.0           # Largest feasible commanded yaw rate [rad/s]

    def __post_init__(self):
        """Validate maneuver parameters."""
        if self.t_plan <= 0:
            raise ValueError(f"Planning time must be positive, got {self.t_plan}")
        if self.braking_deceleration <= 0:
            raise ValueError(f"Braking deceleration must be positive, got {self.braking_deceleration}")
        if self.min_braking_time <= 0:
            raise ValueError(f"Minimum braking time must be positive, got {self.min_braking_time}")
        if self.time_step <= 0:
            raise ValueError(f"Time step must be positive, got {self.time_step}")
        if self.max_speed <= 0 or self.max_yaw_rate <= 0:
            raise ValueError("Command limits must be positive")


class DesiredTrajectory(NamedTuple):
    """Desired trajectory samples; unpacks as ``T, U, Z``."""

    time: np.ndarray      # (M,)
    control: np.ndarray   # (2, M): yaw rate, acceleration
    state: np.ndarray     # (4, M): x, y, heading, speed


class BrakingTrajectoryGenerator:
    """
    Desired braking trajectory generator for (yaw rate, speed) commands.

    Attributes:
        params (BrakingParameters): Maneuver parameters and command limits
    """

    def __init__(self, params: BrakingParameters = None):
        self.params = params if params is not None else BrakingParameters()

    def horizon_from_initial_speed(self, initial_speed: float) -> float:
        """
        Compute the trajectory horizon for an initial speed.

        Args:
            initial_speed: Initial forward speed v_0 [m/s]

        Returns:
            Horizon t_f [s]
        """
        if initial_speed < 0:
            raise ValueError(f"Initial speed must be non-negative, got {initial_speed}")

        braking_time = max(initial_speed / self.params.braking_deceleration,
                           self.params.min_braking_time)
        return self.params.t_plan + braking_time

    def time_base(self, horizon: float) -> np.ndarray:
        """Evenly spaced samples on [0, horizon] no coarser than ``time_step``."""
        num_samples = int(np.ceil(horizon / self.params.time_step - 1e-9)) + 1
        return np.linspace(0.0, horizon, max(num_samples, 2))

    def profile(self, t, horizon: float):
        """Evaluate the braking profile factor s(t) at scalar or array times."""
        braking_duration = horizon - self.params.t_plan
        if braking_duration <= 0:
            raise ValueError(f"Horizon {horizon} leaves no braking window after t_plan")

        return np.clip((horizon - np.asarray(t, dtype=np.float64)) / braking_duration, 0.0, 1.0)

    def _validate_command(self, horizon: float, yaw_rate: float, speed: float) -> None:
        if not np.isfinite(horizon) or horizon <= self.params.t_plan:
            raise InfeasibleCommandError(
                f"Horizon must be finite and exceed t_plan={self.params.t_plan:.3f}s, got {horizon}"
            )
        if not (np.isfinite(yaw_rate) and np.isfinite(speed)):
            raise InfeasibleCommandError(f"Command ({yaw_rate}, {speed}) is not finite")
        if speed < 0 or speed > self.params.max_speed:
            raise InfeasibleCommandError(
                f"Commanded speed {speed:.3f} m/s outside [0, {self.params.max_speed:.3f}] m/s"
            )
        if abs(yaw_rate) > self.params.max_yaw_rate:
            raise InfeasibleCommandError(
                f"Commanded yaw rate {yaw_rate:.3f} rad/s exceeds limit "
                f"{self.params.max_yaw_rate:.3f} rad/s"
            )

    def generate(self, horizon: float, yaw_rate: float, speed: float) -> DesiredTrajectory:
        """
        Generate the desired braking trajectory for one command.

        Args:
            horizon: Trajectory horizon t_f [s]
            yaw_rate: Commanded yaw rate w_des [rad/s]
            speed: Commanded speed v_des [m/s]

        Returns:
            DesiredTrajectory with time (M,), control (2, M) and state (4, M)

        Raises:
            InfeasibleCommandError: If the command or horizon is infeasible
        """
        self._validate_command(horizon, yaw_rate, speed)

        time = self.time_base(horizon)
        profile = self.profile(time, horizon)

        acceleration = np.zeros_like(time)
        acceleration[time > self.params.t_plan] = -speed / (horizon - self.params.t_plan)

        control = np.vstack([yaw_rate * profile, acceleration])

        def planar_dynamics(t, z):
            s = float(self.profile(t, horizon))
            v = speed * s
            return [v * np.cos(z[2]), v * np.sin(z[2]), yaw_rate * s]

        solution = solve_ivp(planar_dynamics, (0.0, horizon), [0.0, 0.0, 0.0],
                             t_eval=time, rtol=1e-9, atol=1e-12,
                             max_step=self.params.time_step)
        if not solution.success:
            raise InfeasibleCommandError(
                f"Desired trajectory integration failed for command "
                f"({yaw_rate:.3f}, {speed:.3f}): {solution.message}"
            )

        state = np.vstack([solution.y, speed * profile])
        # Every maneuver starts exactly at the origin with zero heading
        state[:3, 0] = 0.0

        return DesiredTrajectory(time=time, control=control, state=state)

    def __repr__(self) -> str:
        return (f"BrakingTrajectoryGenerator(t_plan={self.params.t_plan:.2f}s, "
                f"a_brake={self.params.braking_deceleration:.2f}m/s², "
                f"dt={self.params.time_step:.3f}s)")
