"""
Motion Model Module for Unicycle Robots

This module implements the planar unicycle model used for TurtleBot-style
differential drive robots, together with the frame transformation and
numerical integration needed by the closed-loop tracker.

Mathematical Framework:
    - Unicycle kinematics with a first-order speed state
    - World to body frame transformation of planar errors
    - Fixed-step RK4 integration with an Euler fallback for tiny steps

State and Input:
    z = [x, y, h, v]     position [m], heading [rad], speed [m/s]
    u = [w, a]           yaw rate [rad/s], longitudinal acceleration [m/s²]

    dx/dt = v cos(h)
    dy/dt = v sin(h)
    dh/dt = w
    dv/dt = a
"""

import numpy as np
from typing import Tuple
import warnings
from dataclasses import dataclass


STATE_DIMENSION = 4
POSITION_INDICES = (0, 1)
HEADING_INDEX = 2
SPEED_INDEX = 3


@dataclass
class TurtlebotParameters:
    """Physical limits of the tracked robot."""

    max_speed: float = 2.0          # Maximum forward speed [m/s]
    max_yaw_rate: float = 2.0       # Maximum yaw rate [rad/s]
    max_acceleration: float = 2.0   # Maximum longitudinal acceleration [m/s²]

    def __post_init__(self):
        """Validate robot limits."""
        if self.max_speed <= 0:
            raise ValueError(f"Maximum speed must be positive, got {self.max_speed}")
        if self.max_yaw_rate <= 0:
            raise ValueError(f"Maximum yaw rate must be positive, got {self.max_yaw_rate}")
        if self.max_acceleration <= 0:
            raise ValueError(f"Maximum acceleration must be positive, got {self.max_acceleration}")


class UnicycleModel:
    """
    Planar unicycle model with saturated inputs.

    The tracker integrates it with saturated inputs through ``integrate``.
    The desired trajectory generator integrates its own unsaturated
    kinematics with scipy and does not use this class.

    Attributes:
        params (TurtlebotParameters): Robot limits used for saturation
    """

    def __init__(self, params: TurtlebotParameters = None):
        self.params = params or TurtlebotParameters()
        self._min_dt = 1e-6

    @staticmethod
    def derivatives(state: np.ndarray, yaw_rate: float, acceleration: float) -> np.ndarray:
        """
        Compute the unicycle state derivative.

        Args:
            state: State [x, y, h, v]
            yaw_rate: Yaw rate input [rad/s]
            acceleration: Longitudinal acceleration input [m/s²]

        Returns:
            State derivative [dx, dy, dh, dv]
        """
        heading = state[HEADING_INDEX]
        speed = state[SPEED_INDEX]

        return np.array([
            speed * np.cos(heading),
            speed * np.sin(heading),
            yaw_rate,
            acceleration
        ], dtype=np.float64)

    def saturate(self, yaw_rate: float, acceleration: float) -> Tuple[float, float]:
        """Clip inputs to the robot limits."""
        yaw_rate = float(np.clip(yaw_rate, -self.params.max_yaw_rate, self.params.max_yaw_rate))
        acceleration = float(np.clip(acceleration,
                                     -self.params.max_acceleration,
                                     self.params.max_acceleration))
        return yaw_rate, acceleration

    def _limited_derivatives(self, state: np.ndarray, yaw_rate: float,
                             acceleration: float) -> np.ndarray:
        # The robot cannot reverse or exceed its top speed
        speed = state[SPEED_INDEX]
        if speed <= 0.0 and acceleration < 0.0:
            acceleration = 0.0
        elif speed >= self.params.max_speed and acceleration > 0.0:
            acceleration = 0.0
        return self.derivatives(state, yaw_rate, acceleration)

    def integrate_rk4(self, state: np.ndarray, yaw_rate: float, acceleration: float,
                      dt: float) -> np.ndarray:
        """
        Integrate one step with the classical 4th-order Runge-Kutta method.

        Inputs are held constant over the step (zero-order hold).

        Args:
            state: Current state [x, y, h, v]
            yaw_rate: Yaw rate input [rad/s]
            acceleration: Acceleration input [m/s²]
            dt: Time step [s]

        Returns:
            State at the end of the step
        """
        if dt < self._min_dt:
            warnings.warn(f"Time step {dt} below minimum {self._min_dt}, using Euler method")
            return self.integrate_euler(state, yaw_rate, acceleration, dt)

        dt_half = dt / 2.0

        k1 = self._limited_derivatives(state, yaw_rate, acceleration)
        k2 = self._limited_derivatives(state + k1 * dt_half, yaw_rate, acceleration)
        k3 = self._limited_derivatives(state + k2 * dt_half, yaw_rate, acceleration)
        k4 = self._limited_derivatives(state + k3 * dt, yaw_rate, acceleration)

        new_state = state + (k1 + 2*k2 + 2*k3 + k4) * dt / 6.0
        return self._clamp_speed(new_state)

    def integrate_euler(self, state: np.ndarray, yaw_rate: float, acceleration: float,
                        dt: float) -> np.ndarray:
        """Integrate one step with the explicit Euler method."""
        new_state = state + self._limited_derivatives(state, yaw_rate, acceleration) * dt
        return self._clamp_speed(new_state)

    def integrate(self, state: np.ndarray, yaw_rate: float, acceleration: float,
                  dt: float) -> np.ndarray:
        """
        Saturate the inputs and integrate one RK4 step.

        Args:
            state: Current state [x, y, h, v]
            yaw_rate: Requested yaw rate [rad/s]
            acceleration: Requested acceleration [m/s²]
            dt: Time step [s]

        Returns:
            State at the end of the step
        """
        if dt <= 0:
            raise ValueError(f"Time step must be positive, got {dt}")

        yaw_rate, acceleration = self.saturate(yaw_rate, acceleration)

        return self.integrate_rk4(state, yaw_rate, acceleration, dt)

    def _clamp_speed(self, state: np.ndarray) -> np.ndarray:
        state[SPEED_INDEX] = np.clip(state[SPEED_INDEX], 0.0, self.params.max_speed)
        return state

    @staticmethod
    def world_to_body(world_vector: np.ndarray, heading: float) -> np.ndarray:
        """
        Rotate a planar world-frame vector into the robot body frame.

        Args:
            world_vector: Vector [x, y] in the world frame
            heading: Robot heading [rad]

        Returns:
            Vector [forward, left] in the body frame
        """
        c, s = np.cos(heading), np.sin(heading)
        return np.array([
            c * world_vector[0] + s * world_vector[1],
            -s * world_vector[0] + c * world_vector[1]
        ])

    @staticmethod
    def normalize_angle(angle: float) -> float:
        """Normalize angle to [-π, π] range."""
        return float(np.arctan2(np.sin(angle), np.cos(angle)))

    def __repr__(self) -> str:
        return (f"UnicycleModel(max_speed={self.params.max_speed:.2f}m/s, "
                f"max_yaw_rate={self.params.max_yaw_rate:.2f}rad/s)")
