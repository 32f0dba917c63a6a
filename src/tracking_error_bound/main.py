#!/usr/bin/env python3
"""
Tracking error certification for TurtleBot braking maneuvers

Samples (yaw rate, speed) commands around each requested initial speed,
simulates the closed-loop tracker on every desired braking trajectory, and
certifies polynomial bounds g_x(t), g_y(t) on the x and y tracking error.

Run with: tracking-error-bound --initial-speed 1.5
"""

import argparse
import logging
import os
import sys

import matplotlib.pyplot as plt

from .certification import CommandBounds, SamplerSettings, compute_error_certificate
from .certification.envelope import DEFAULT_FIT_DEGREE
from .exceptions import TrackingErrorBoundError
from .visualization import plot_tracking_error

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Command line interface definition."""
    defaults = CommandBounds()

    parser = argparse.ArgumentParser(
        description='Certified tracking error bounds for braking trajectories')
    parser.add_argument('--initial-speed', type=float, nargs='+', default=[1.5],
                        help='Initial speed(s) v_0 in m/s (default: 1.5)')
    parser.add_argument('--yaw-rate-min', type=float, default=defaults.yaw_rate_min,
                        help=f'Minimum commanded yaw rate in rad/s (default: {defaults.yaw_rate_min})')
    parser.add_argument('--yaw-rate-max', type=float, default=defaults.yaw_rate_max,
                        help=f'Maximum commanded yaw rate in rad/s (default: {defaults.yaw_rate_max})')
    parser.add_argument('--speed-delta', type=float, default=defaults.speed_delta,
                        help=f'Speed window half-width in m/s (default: {defaults.speed_delta})')
    parser.add_argument('--speed-max', type=float, default=defaults.speed_max,
                        help=f'Global maximum speed in m/s (default: {defaults.speed_max})')
    parser.add_argument('--num-samples', type=int, default=defaults.num_samples,
                        help=f'Samples per command axis (default: {defaults.num_samples})')
    parser.add_argument('--fit-degree', type=int, default=DEFAULT_FIT_DEGREE,
                        help=f'Degree of the envelope fit (default: {DEFAULT_FIT_DEGREE})')
    parser.add_argument('--skip-failed', action='store_true',
                        help='Skip and log failing commands instead of aborting the batch')
    parser.add_argument('--output', type=str, default=None,
                        help='Directory to write certificate_v0_<v0>.npz files to')
    parser.add_argument('--no-viz', action='store_true',
                        help='Disable plotting')
    parser.add_argument('--verbose', action='store_true',
                        help='Log per-command details')
    return parser


def run(initial_speeds, bounds: CommandBounds, settings: SamplerSettings,
        fit_degree: int = DEFAULT_FIT_DEGREE, output_dir=None, visualize: bool = True):
    """
    Certify one tracking error bound per initial speed.

    Args:
        initial_speeds: Initial speeds v_0 [m/s]
        bounds: Command grid limits
        settings: Sampler failure policy
        fit_degree: Degree of the envelope fit
        output_dir: Directory for ``.npz`` certificates, or None
        visualize: Plot each certificate

    Returns:
        List of ErrorCertificate, in the order of ``initial_speeds``
    """
    certificates = []

    if output_dir is not None:
        os.makedirs(output_dir, exist_ok=True)

    for initial_speed in initial_speeds:
        sampling, certificate = compute_error_certificate(
            initial_speed, bounds=bounds, settings=settings, fit_degree=fit_degree)

        logger.info(f"v_0={initial_speed:.3f} m/s: {sampling.num_commands} commands, "
                    f"{len(sampling.failures)} skipped, M={sampling.time.shape[0]} samples")
        logger.info(f"  g_x = {certificate.x.rate_coefficients}")
        logger.info(f"  g_y = {certificate.y.rate_coefficients}")

        if output_dir is not None:
            path = os.path.join(output_dir, f"certificate_v0_{initial_speed:.3f}.npz")
            certificate.save(path)
            logger.info(f"  saved {path}")

        if visualize:
            plot_tracking_error(sampling, certificate)

        certificates.append(certificate)

    if visualize and certificates:
        plt.show()

    return certificates


def main(argv=None) -> int:
    """Main entry point"""
    args = build_parser().parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    try:
        bounds = CommandBounds(yaw_rate_min=args.yaw_rate_min,
                               yaw_rate_max=args.yaw_rate_max,
                               speed_delta=args.speed_delta,
                               speed_max=args.speed_max,
                               num_samples=args.num_samples)
        run(args.initial_speed, bounds,
            SamplerSettings(skip_failed_commands=args.skip_failed),
            fit_degree=args.fit_degree,
            output_dir=args.output,
            visualize=not args.no_viz)
    except (TrackingErrorBoundError, ValueError) as e:
        logger.error(f"Certification aborted: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
