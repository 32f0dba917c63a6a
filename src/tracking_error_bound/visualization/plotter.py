"""
Plots of sampled tracking error curves against their certified bounds.

Each axis gets one subplot: every sampled |error| curve as a black dashed line
and the certified bound ∫ g(t) dt as a red line on top.
"""

import numpy as np
import matplotlib.pyplot as plt
from typing import Optional, Sequence, Tuple
import logging

logger = logging.getLogger(__name__)


def _plot_axis(ax, time: np.ndarray, abs_errors: np.ndarray, bound_values: np.ndarray,
               ylabel: str, legend_label: str, y_limit: Optional[float]) -> None:
    ax.plot(time, abs_errors.T, 'k--', linewidth=0.8)
    bound_handle, = ax.plot(time, bound_values, 'r-', linewidth=1.5)

    ax.set_ylabel(ylabel)
    ax.legend([bound_handle], [legend_label], loc='upper left')
    ax.set_xlim(0.0, time[-1])
    if y_limit is not None:
        ax.set_ylim(0.0, y_limit)
    ax.grid(True)


def plot_tracking_error(sampling, certificate,
                        axis_limits: Optional[Sequence[float]] = None,
                        figsize: Tuple[float, float] = (10, 8)):
    """
    Plot x and y tracking error curves with their certified bounds.

    Args:
        sampling: SamplingResult holding the error matrices
        certificate: ErrorCertificate for the same batch
        axis_limits: Optional upper y limits (x_limit, y_limit)
        figsize: Figure size in inches

    Returns:
        The matplotlib Figure
    """
    x_limit, y_limit = axis_limits if axis_limits is not None else (None, None)
    time = certificate.time

    fig, (ax_x, ax_y) = plt.subplots(2, 1, figsize=figsize, sharex=True)

    _plot_axis(ax_x, time, sampling.abs_x_errors, certificate.x.bound(time),
               'x error [m]', r'$\int g_x(t)\,dt$', x_limit)
    ax_x.set_title(f'tracking error vs. time, v_0 = {certificate.initial_speed:0.2f} m/s')

    _plot_axis(ax_y, time, sampling.abs_y_errors, certificate.y.bound(time),
               'y error [m]', r'$\int g_y(t)\,dt$', y_limit)
    ax_y.set_xlabel('time [s]')

    fig.tight_layout()
    logger.debug(f"Plotted {sampling.num_commands} error curves per axis")

    return fig
