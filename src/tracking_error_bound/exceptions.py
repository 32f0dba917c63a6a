"""
Error taxonomy for tracking error bound computation.

Collaborator failures (infeasible commands, diverging simulations) and batch
preconditions (shared time base, at least one usable command) are reported
with the types below. Parameter validation raises plain ``ValueError``.
"""


class TrackingErrorBoundError(Exception):
    """Base class for all errors raised by this package."""


class InfeasibleCommandError(TrackingErrorBoundError):
    """A desired trajectory cannot be generated for a (yaw rate, speed) command."""


class SimulationError(TrackingErrorBoundError):
    """The closed-loop tracker could not produce a realized trajectory."""


class TimeBaseMismatchError(TrackingErrorBoundError):
    """Desired trajectories within one batch do not share a time base."""


class NoValidCommandsError(TrackingErrorBoundError):
    """Every sampled command failed, so there is nothing to aggregate."""


class BoundCorrectionError(TrackingErrorBoundError):
    """The fitted rate function cannot be scaled to dominate the envelope."""
