"""
Tracking Error Bound: certified tracking error margins for braking maneuvers

A scientific Python package that computes a conservative, time-indexed bound
on the position tracking error of a mobile robot following open-loop braking
trajectories, for use as a safety margin in motion-planning certification.

This package implements:
- Command grid sampling around a nominal initial speed
- Desired braking trajectory generation and closed-loop tracking simulation
- Worst-case error envelopes per axis
- Polynomial rate functions g_x(t), g_y(t) whose integrals dominate the envelopes
"""

from .certification import (Command, CommandBounds, TrajectoryErrorSampler, SamplerSettings,
                            SamplingResult, ErrorEnvelopeFitter, BoundFunction,
                            ErrorCertificate, compute_error_certificate)
from .simulation import BrakingTrajectoryGenerator, TurtlebotAgent, match_trajectories
from .exceptions import (TrackingErrorBoundError, InfeasibleCommandError, SimulationError,
                         TimeBaseMismatchError, NoValidCommandsError, BoundCorrectionError)

# Optional visualization import (graceful failure if not available)
try:
    from .visualization.plotter import plot_tracking_error
    _has_visualization = True
except ImportError:
    plot_tracking_error = None
    _has_visualization = False

__version__ = "1.0.0"

__all__ = [
    "Command",
    "CommandBounds",
    "TrajectoryErrorSampler",
    "SamplerSettings",
    "SamplingResult",
    "ErrorEnvelopeFitter",
    "BoundFunction",
    "ErrorCertificate",
    "compute_error_certificate",
    "BrakingTrajectoryGenerator",
    "TurtlebotAgent",
    "match_trajectories",
    "TrackingErrorBoundError",
    "InfeasibleCommandError",
    "SimulationError",
    "TimeBaseMismatchError",
    "NoValidCommandsError",
    "BoundCorrectionError"
]

# Add visualization to __all__ only if available
if _has_visualization:
    __all__.append("plot_tracking_error")
