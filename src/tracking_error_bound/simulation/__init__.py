"""
Simulation components for tracking error certification.

Components:
    - BrakingTrajectoryGenerator: desired braking trajectories for (yaw rate, speed) commands
    - UnicycleModel: planar unicycle dynamics with RK4 integration
    - TurtlebotAgent: resettable closed-loop tracker with time/state history
    - match_trajectories: time interpolation onto a common time base
"""

from .trajectory import BrakingTrajectoryGenerator, BrakingParameters, DesiredTrajectory
from .motion import UnicycleModel, TurtlebotParameters
from .agent import TurtlebotAgent, TrackingGains
from .interpolation import match_trajectories

__all__ = [
    "BrakingTrajectoryGenerator",
    "BrakingParameters",
    "DesiredTrajectory",
    "UnicycleModel",
    "TurtlebotParameters",
    "TurtlebotAgent",
    "TrackingGains",
    "match_trajectories"
]
