"""
Visualization of tracking error certificates.
"""

from .plotter import plot_tracking_error

__all__ = ["plot_tracking_error"]
