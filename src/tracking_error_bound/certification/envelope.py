"""
Error Envelope Fitter

This module turns per-axis tracking error matrices into certified bound
functions. The bound is expressed as a rate g(t) whose integral from zero
dominates the worst observed error at every sampled time.

Procedure:
    1. e(t_i) = max over commands of |error(t_i)|          (envelope)
    2. p(t)   = least-squares polynomial fit of e(t)       (degree 4 by default)
    3. g(t)   = p'(t)
    4. b(t)   = ∫_0^t g(s) ds
    5. r_max  = max(1, max_i e(t_i) / b(t_i))  over b(t_i) > 0, 0/0 counting as 1
    6. g(t)  <- r_max * g(t)

Scaling alone cannot lift a sample where b(t_i) <= 0 while e(t_i) > 0 (or
where b(t_i) < 0). Before step 5 such samples are repaired by adding the
smallest constant c to g that makes b(t_i) + c t_i >= e(t_i) for all of them;
c is zero whenever the fit is already positive where it needs to be.

Coefficients follow the numpy.polyval convention (highest power first).
"""

import logging
import warnings
import numpy as np
from typing import Optional
from dataclasses import dataclass

from ..exceptions import BoundCorrectionError

logger = logging.getLogger(__name__)

DEFAULT_FIT_DEGREE = 4


def compute_envelope(error_matrix: np.ndarray) -> np.ndarray:
    """
    Column-wise maximum absolute error.

    Args:
        error_matrix: Errors with one row per command, shape (K, M)

    Returns:
        Envelope e(t_i), shape (M,)
    """
    error_matrix = np.atleast_2d(np.asarray(error_matrix, dtype=np.float64))
    if error_matrix.shape[0] == 0 or error_matrix.shape[1] == 0:
        raise ValueError("Error matrix must contain at least one row and one column")
    if not np.all(np.isfinite(error_matrix)):
        raise ValueError("Error matrix contains non-finite values")

    return np.max(np.abs(error_matrix), axis=0)


@dataclass
class BoundFunction:
    """
    Certified tracking error bound for one axis.

    Attributes:
        rate_coefficients: Coefficients of g(t)
        integral_coefficients: Coefficients of ∫_0^t g(s) ds
        scale_factor: Ratio r_max applied during correction (>= 1)
        offset: Constant added to g before scaling (>= 0)
        envelope: Envelope the bound was certified against
    """

    rate_coefficients: np.ndarray
    integral_coefficients: np.ndarray
    scale_factor: float = 1.0
    offset: float = 0.0
    envelope: Optional[np.ndarray] = None

    @property
    def degree(self) -> int:
        """Degree of the rate function g."""
        return len(self.rate_coefficients) - 1

    def rate(self, t):
        """Evaluate g(t)."""
        return np.polyval(self.rate_coefficients, t)

    def bound(self, t):
        """Evaluate ∫_0^t g(s) ds."""
        return np.polyval(self.integral_coefficients, t)

    def dominates(self, time: np.ndarray, envelope: np.ndarray, rtol: float = 1e-9) -> bool:
        """Check bound(t_i) >= e(t_i) up to a relative roundoff tolerance."""
        envelope = np.asarray(envelope, dtype=np.float64)
        tolerance = rtol * np.maximum(1.0, np.abs(envelope))
        return bool(np.all(self.bound(time) >= envelope - tolerance))


class ErrorEnvelopeFitter:
    """
    Fits and corrects polynomial tracking error bounds.

    Attributes:
        degree (int): Degree of the least-squares fit to the envelope. The
            rate function g has one degree less.
    """

    def __init__(self, degree: int = DEFAULT_FIT_DEGREE):
        if int(degree) != degree or degree < 1:
            raise ValueError(f"Fit degree must be a positive integer, got {degree}")
        self.degree = int(degree)

    @staticmethod
    def _validate(time: np.ndarray, envelope: np.ndarray) -> None:
        if time.ndim != 1 or time.shape[0] < 2:
            raise ValueError("Time base must be one-dimensional with at least two samples")
        if envelope.shape != time.shape:
            raise ValueError(
                f"Envelope has {envelope.shape} samples but time base has {time.shape}"
            )
        if np.any(time < 0):
            raise ValueError("Time base must start at or after t = 0")
        if not np.all(np.isfinite(envelope)) or np.any(envelope < 0):
            raise ValueError("Envelope must be finite and non-negative")

    def fit_rate(self, time: np.ndarray, envelope: np.ndarray) -> np.ndarray:
        """
        Fit the envelope and differentiate the fit.

        Args:
            time: Time base, shape (M,)
            envelope: Envelope values, shape (M,)

        Returns:
            Coefficients of the candidate rate function g = p'
        """
        time = np.asarray(time, dtype=np.float64)
        envelope = np.asarray(envelope, dtype=np.float64)
        self._validate(time, envelope)

        # A zero envelope is bounded by the zero function
        if not np.any(envelope):
            return np.zeros(self.degree)

        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            fit_coefficients = np.polyfit(time, envelope, self.degree)
        for warning in caught:
            logger.warning(f"Degree {self.degree} envelope fit: {warning.message}")

        return np.polyder(fit_coefficients)

    def correct(self, time: np.ndarray, envelope: np.ndarray,
                rate_coefficients: np.ndarray) -> BoundFunction:
        """
        Scale a rate function so that its integral dominates the envelope.

        Args:
            time: Time base, shape (M,)
            envelope: Envelope values, shape (M,)
            rate_coefficients: Coefficients of the candidate g

        Returns:
            Corrected BoundFunction

        Raises:
            BoundCorrectionError: If the envelope is positive at t = 0, where
                every integral bound is zero
        """
        time = np.asarray(time, dtype=np.float64)
        envelope = np.asarray(envelope, dtype=np.float64)
        self._validate(time, envelope)

        g = np.atleast_1d(np.asarray(rate_coefficients, dtype=np.float64)).copy()
        bound_values = np.polyval(np.polyint(g), time)

        offset = 0.0
        deficient = (bound_values < 0) | ((bound_values <= 0) & (envelope > 0))
        if np.any(deficient):
            at_origin = deficient & (time == 0)
            if np.any(at_origin):
                raise BoundCorrectionError(
                    f"Envelope is {np.max(envelope[at_origin]):.3e} at t = 0; "
                    f"no integral bound starting at zero can dominate it"
                )

            offset = float(np.max((envelope[deficient] - bound_values[deficient])
                                  / time[deficient]))
            g[-1] += offset
            bound_values = np.polyval(np.polyint(g), time)
            logger.info(f"Raised rate function by {offset:.3e} at "
                        f"{int(np.sum(deficient))} non-positive bound samples")

        ratios = np.ones_like(envelope)
        positive = bound_values > 0
        ratios[positive] = envelope[positive] / bound_values[positive]
        scale_factor = max(1.0, float(np.max(ratios)))

        g = scale_factor * g

        return BoundFunction(
            rate_coefficients=g,
            integral_coefficients=np.polyint(g),
            scale_factor=scale_factor,
            offset=offset,
            envelope=envelope.copy()
        )

    def fit(self, time: np.ndarray, error_matrix: np.ndarray) -> BoundFunction:
        """
        Reduce an error matrix to a certified bound function.

        Args:
            time: Shared time base T_des, shape (M,)
            error_matrix: Signed or absolute errors, shape (K, M)

        Returns:
            Corrected BoundFunction
        """
        envelope = compute_envelope(error_matrix)
        rate_coefficients = self.fit_rate(time, envelope)
        bound = self.correct(time, envelope, rate_coefficients)

        logger.debug(f"Bound fit: max envelope {np.max(envelope):.4e}, "
                     f"scale {bound.scale_factor:.4f}, offset {bound.offset:.3e}")
        return bound

    def fit_certificate(self, sampling) -> "ErrorCertificate":
        """
        Certify both axes of a sampling result.

        Args:
            sampling: SamplingResult from the trajectory error sampler

        Returns:
            ErrorCertificate holding g_x and g_y
        """
        x_bound = self.fit(sampling.time, sampling.x_errors)
        y_bound = self.fit(sampling.time, sampling.y_errors)

        logger.info(f"Certified bounds for v_0={sampling.initial_speed:.3f} m/s: "
                    f"r_x={x_bound.scale_factor:.4f}, r_y={y_bound.scale_factor:.4f}")

        return ErrorCertificate(initial_speed=sampling.initial_speed,
                                time=np.asarray(sampling.time, dtype=np.float64).copy(),
                                x=x_bound, y=y_bound)


@dataclass
class ErrorCertificate:
    """Certified x and y tracking error bounds for one initial speed."""

    initial_speed: float
    time: np.ndarray
    x: BoundFunction
    y: BoundFunction

    def dominates(self, sampling, rtol: float = 1e-9) -> bool:
        """Check both bounds against the envelopes of a sampling result."""
        return (self.x.dominates(self.time, compute_envelope(sampling.x_errors), rtol)
                and self.y.dominates(self.time, compute_envelope(sampling.y_errors), rtol))

    def save(self, path) -> None:
        """Write the certificate to a numpy ``.npz`` archive."""
        arrays = {'initial_speed': np.array(self.initial_speed), 'time': self.time}
        for axis, bound in (('x', self.x), ('y', self.y)):
            arrays[f'g_{axis}'] = bound.rate_coefficients
            arrays[f'int_g_{axis}'] = bound.integral_coefficients
            arrays[f'scale_{axis}'] = np.array(bound.scale_factor)
            arrays[f'offset_{axis}'] = np.array(bound.offset)
            if bound.envelope is not None:
                arrays[f'envelope_{axis}'] = bound.envelope
        np.savez(path, **arrays)

    @classmethod
    def load(cls, path) -> "ErrorCertificate":
        """Read a certificate written by ``save``."""
        with np.load(path) as data:
            bounds = {}
            for axis in ('x', 'y'):
                envelope_key = f'envelope_{axis}'
                bounds[axis] = BoundFunction(
                    rate_coefficients=data[f'g_{axis}'],
                    integral_coefficients=data[f'int_g_{axis}'],
                    scale_factor=float(data[f'scale_{axis}']),
                    offset=float(data[f'offset_{axis}']),
                    envelope=data[envelope_key] if envelope_key in data.files else None
                )
            return cls(initial_speed=float(data['initial_speed']),
                       time=data['time'], x=bounds['x'], y=bounds['y'])
