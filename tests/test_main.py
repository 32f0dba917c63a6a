import pytest
import numpy as np
import sys
import os
from unittest.mock import patch

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt

# Add the src directory to Python path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from tracking_error_bound.main import main, run, build_parser
from tracking_error_bound.certification import (CommandBounds, SamplerSettings,
                                                ErrorCertificate, compute_error_certificate)
from tracking_error_bound.visualization import plot_tracking_error


class TestCommandLine:
    """Test the command-line entry point"""

    def test_parser_defaults(self):
        args = build_parser().parse_args([])

        assert args.initial_speed == [1.5]
        assert args.num_samples == 4
        assert args.fit_degree == 4
        assert not args.skip_failed
        assert args.output is None

    def test_main_writes_certificate(self, tmp_path):
        """Test a run saves one loadable certificate per initial speed"""
        exit_code = main(['--initial-speed', '1.0', '--num-samples', '2',
                          '--no-viz', '--output', str(tmp_path)])

        assert exit_code == 0
        path = tmp_path / 'certificate_v0_1.000.npz'
        assert path.exists()

        certificate = ErrorCertificate.load(path)
        assert certificate.initial_speed == 1.0
        assert certificate.x.scale_factor >= 1.0

    def test_multiple_initial_speeds(self, tmp_path):
        exit_code = main(['--initial-speed', '0.5', '1.0', '--num-samples', '2',
                          '--no-viz', '--output', str(tmp_path)])

        assert exit_code == 0
        assert (tmp_path / 'certificate_v0_0.500.npz').exists()
        assert (tmp_path / 'certificate_v0_1.000.npz').exists()

    def test_invalid_bounds_reported(self):
        """Test invalid parameters abort with a non-zero exit code"""
        assert main(['--speed-max', '-1.0', '--no-viz']) == 1

    def test_infeasible_grid_reported(self):
        """Test commands beyond the robot limits abort the batch"""
        assert main(['--initial-speed', '2.0', '--speed-max', '3.0',
                     '--num-samples', '2', '--no-viz']) == 1

    def test_infeasible_grid_skipped(self):
        """Test --skip-failed keeps the feasible part of the grid"""
        assert main(['--initial-speed', '2.0', '--speed-max', '3.0',
                     '--num-samples', '2', '--skip-failed', '--no-viz']) == 0

    def test_run_with_visualization(self):
        """Test plotting is requested once per certificate"""
        with patch('tracking_error_bound.main.plt.show') as show:
            certificates = run([1.0], CommandBounds(num_samples=2), SamplerSettings())

        show.assert_called_once()
        assert len(certificates) == 1
        plt.close('all')


class TestPlotter:
    """Test error curve plots"""

    def test_plot_tracking_error(self):
        sampling, certificate = compute_error_certificate(1.0, CommandBounds(num_samples=2))

        fig = plot_tracking_error(sampling, certificate, axis_limits=(0.05, 0.02))

        ax_x, ax_y = fig.axes
        # One dashed line per command plus the certified bound
        assert len(ax_x.lines) == sampling.num_commands + 1
        assert len(ax_y.lines) == sampling.num_commands + 1
        assert ax_x.get_ylim() == (0.0, 0.05)
        assert 'v_0 = 1.00' in ax_x.get_title()

        np.testing.assert_allclose(ax_x.lines[-1].get_ydata(), certificate.x.bound(sampling.time))
        plt.close(fig)
