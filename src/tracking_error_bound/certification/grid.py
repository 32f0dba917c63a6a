"""
Command grid construction.

A command is one (yaw rate, speed) pair. Yaw rates are sampled evenly between
configured limits. Speeds are sampled evenly around the initial speed, clipped
to the feasible range and de-duplicated, so the speed grid can be shorter than
the requested sample count.
"""

import numpy as np
from typing import List
from dataclasses import dataclass


@dataclass(frozen=True)
class Command:
    """A (yaw rate, speed) command defining one braking maneuver."""

    yaw_rate: float   # [rad/s]
    speed: float      # [m/s]

    def __str__(self) -> str:
        return f"(w={self.yaw_rate:+.3f} rad/s, v={self.speed:.3f} m/s)"


@dataclass
class CommandBounds:
    """Limits of the sampled command grid."""

    yaw_rate_min: float = -1.0   # [rad/s]
    yaw_rate_max: float = 1.0    # [rad/s]
    speed_delta: float = 0.25    # Half-width of the speed window around v_0 [m/s]
    speed_max: float = 1.5       # Global maximum speed [m/s]
    num_samples: int = 4         # Samples per grid axis

    def __post_init__(self):
        """Validate grid limits."""
        if self.yaw_rate_min > self.yaw_rate_max:
            raise ValueError(
                f"Yaw rate minimum {self.yaw_rate_min} exceeds maximum {self.yaw_rate_max}"
            )
        if self.speed_delta < 0:
            raise ValueError(f"Speed delta must be non-negative, got {self.speed_delta}")
        if self.speed_max <= 0:
            raise ValueError(f"Maximum speed must be positive, got {self.speed_max}")
        if int(self.num_samples) != self.num_samples or self.num_samples < 1:
            raise ValueError(f"Number of samples must be a positive integer, got {self.num_samples}")


def yaw_rate_grid(bounds: CommandBounds) -> np.ndarray:
    """Evenly spaced yaw rates between the configured limits."""
    return np.linspace(bounds.yaw_rate_min, bounds.yaw_rate_max, int(bounds.num_samples))


def speed_grid(initial_speed: float, bounds: CommandBounds) -> np.ndarray:
    """
    Feasible speeds around an initial speed.

    Args:
        initial_speed: Initial speed v_0 [m/s]
        bounds: Grid limits

    Returns:
        Sorted unique speeds in [0, speed_max], at most ``num_samples`` long
    """
    speeds = np.linspace(initial_speed - bounds.speed_delta,
                         initial_speed + bounds.speed_delta,
                         int(bounds.num_samples))
    return np.unique(np.clip(speeds, 0.0, bounds.speed_max))


def command_grid(initial_speed: float, bounds: CommandBounds) -> List[Command]:
    """Cartesian product of the yaw rate and speed grids, yaw rate outermost."""
    return [Command(float(w), float(v))
            for w in yaw_rate_grid(bounds)
            for v in speed_grid(initial_speed, bounds)]
