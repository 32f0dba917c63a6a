"""
Tracking error certification.

Components:
    - TrajectoryErrorSampler: worst-case error curves over a command grid
    - ErrorEnvelopeFitter: fit-then-correct synthesis of certified bounds
    - compute_error_certificate: both steps for one initial speed
"""

from .grid import Command, CommandBounds, yaw_rate_grid, speed_grid, command_grid
from .sampler import (TrajectoryErrorSampler, SamplerSettings, SamplingResult,
                      CommandResult, CommandFailure)
from .envelope import (ErrorEnvelopeFitter, BoundFunction, ErrorCertificate,
                       compute_envelope, DEFAULT_FIT_DEGREE)
from .pipeline import compute_error_certificate

__all__ = [
    "Command",
    "CommandBounds",
    "yaw_rate_grid",
    "speed_grid",
    "command_grid",
    "TrajectoryErrorSampler",
    "SamplerSettings",
    "SamplingResult",
    "CommandResult",
    "CommandFailure",
    "ErrorEnvelopeFitter",
    "BoundFunction",
    "ErrorCertificate",
    "compute_envelope",
    "DEFAULT_FIT_DEGREE",
    "compute_error_certificate"
]
