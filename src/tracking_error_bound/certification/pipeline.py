"""
One-shot tracking error certification for a single initial speed.
"""

from typing import Optional, Tuple

from .envelope import ErrorEnvelopeFitter, ErrorCertificate, DEFAULT_FIT_DEGREE
from .grid import CommandBounds
from .sampler import TrajectoryErrorSampler, SamplerSettings, SamplingResult


def compute_error_certificate(initial_speed: float,
                              bounds: Optional[CommandBounds] = None,
                              generator=None,
                              agent=None,
                              settings: Optional[SamplerSettings] = None,
                              fit_degree: int = DEFAULT_FIT_DEGREE
                              ) -> Tuple[SamplingResult, ErrorCertificate]:
    """
    Sample the command grid and certify the x and y tracking error bounds.

    Args:
        initial_speed: Initial speed v_0 [m/s]
        bounds: Command grid limits. If None, uses defaults.
        generator: Desired trajectory generator. If None, uses the braking generator.
        agent: Closed-loop tracker. If None, uses a default TurtlebotAgent.
        settings: Sampler failure policy
        fit_degree: Degree of the envelope fit

    Returns:
        Tuple of (sampling result, certificate)
    """
    sampler = TrajectoryErrorSampler(generator=generator, agent=agent, settings=settings)
    sampling = sampler.sample(initial_speed, bounds)
    certificate = ErrorEnvelopeFitter(fit_degree).fit_certificate(sampling)
    return sampling, certificate
