"""
Trajectory Error Sampler

For every (yaw rate, speed) command of the grid, this module generates the
desired braking trajectory, resets the tracker to the fixed initial condition
(0, 0, 0, v_0), drives it along the desired trajectory, resamples the realized
positions onto the desired time base and records the signed position error
per axis.

Collaborators:
    generator: object with ``horizon_from_initial_speed(v_0)`` and
        ``generate(horizon, yaw_rate, speed) -> (T, U, Z)``
    agent: object with ``reset(z_0)``, ``drive(t_f, T, U, Z)``, ``time``,
        ``state`` and ``position_indices``

The initial speed of every run is v_0. The command speed is only the target of
the maneuver, never its start.
"""

import logging
import time
import numpy as np
from typing import List, Optional
from dataclasses import dataclass, field

from .grid import Command, CommandBounds, command_grid
from ..simulation.agent import TurtlebotAgent
from ..simulation.interpolation import match_trajectories
from ..simulation.trajectory import BrakingTrajectoryGenerator
from ..exceptions import (InfeasibleCommandError, SimulationError,
                          TimeBaseMismatchError, NoValidCommandsError)

logger = logging.getLogger(__name__)


@dataclass
class SamplerSettings:
    """Batch policy of the sampler."""

    # Abort the batch on the first failing command unless this is set
    skip_failed_commands: bool = False


@dataclass
class CommandFailure:
    """A command excluded from the batch and the reason it failed."""

    command: Command
    reason: str


@dataclass
class CommandResult:
    """Outcome of one reset, drive and read cycle."""

    command: Command
    time: Optional[np.ndarray] = None
    x_error: Optional[np.ndarray] = None
    y_error: Optional[np.ndarray] = None
    failure_reason: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.failure_reason is None


@dataclass
class SamplingResult:
    """
    Signed per-axis tracking error curves of one batch.

    Attributes:
        initial_speed: Initial speed v_0 shared by every run [m/s]
        time: Shared desired time base T_des, shape (M,)
        commands: Commands that produced a row, in row order
        x_errors: Signed x errors (realized - desired), shape (K, M)
        y_errors: Signed y errors (realized - desired), shape (K, M)
        failures: Commands excluded from the matrices
        elapsed_time: Wall time of the sampling loop [s]
    """

    initial_speed: float
    time: np.ndarray
    commands: List[Command]
    x_errors: np.ndarray
    y_errors: np.ndarray
    failures: List[CommandFailure] = field(default_factory=list)
    elapsed_time: float = 0.0

    @property
    def num_commands(self) -> int:
        return len(self.commands)

    @property
    def abs_x_errors(self) -> np.ndarray:
        return np.abs(self.x_errors)

    @property
    def abs_y_errors(self) -> np.ndarray:
        return np.abs(self.y_errors)


class TrajectoryErrorSampler:
    """
    Builds per-axis tracking error matrices over a command grid.

    Attributes:
        generator: Desired trajectory generator
        agent: Resettable closed-loop tracker
        settings (SamplerSettings): Failure policy
    """

    def __init__(self, generator=None, agent=None, settings: Optional[SamplerSettings] = None):
        self.generator = generator if generator is not None else BrakingTrajectoryGenerator()
        self.agent = agent if agent is not None else TurtlebotAgent()
        self.settings = settings or SamplerSettings()

    @staticmethod
    def initial_state(initial_speed: float) -> np.ndarray:
        """Initial condition (x, y, h, v) = (0, 0, 0, v_0)."""
        return np.array([0.0, 0.0, 0.0, initial_speed])

    def sample_command(self, command: Command, horizon: float,
                       initial_state: np.ndarray) -> CommandResult:
        """
        Run one command through the generator and the tracker.

        Args:
            command: Command to test
            horizon: Shared trajectory horizon [s]
            initial_state: Tracker initial condition

        Returns:
            Successful CommandResult holding the desired time base and errors

        Raises:
            InfeasibleCommandError: If the generator rejects the command
            SimulationError: If the tracker fails
            TimeBaseMismatchError: If the desired time base is not strictly increasing
        """
        T_des, U_des, Z_des = self.generator.generate(horizon, command.yaw_rate, command.speed)
        T_des = np.asarray(T_des, dtype=np.float64)
        Z_des = np.asarray(Z_des, dtype=np.float64)

        if T_des.ndim != 1 or T_des.shape[0] < 2 or not np.all(np.diff(T_des) > 0):
            raise TimeBaseMismatchError(
                f"Command {command} produced a time base that is not strictly increasing"
            )

        self.agent.reset(initial_state)
        self.agent.drive(T_des[-1], T_des, U_des, Z_des)

        realized_time = np.asarray(self.agent.time)
        realized_position = np.asarray(self.agent.state)[self.agent.position_indices, :]

        matched_position = match_trajectories(T_des, realized_time, realized_position)
        position_error = matched_position - Z_des[:2, :]

        return CommandResult(command=command, time=T_des,
                             x_error=position_error[0], y_error=position_error[1])

    def sample(self, initial_speed: float, bounds: Optional[CommandBounds] = None) -> SamplingResult:
        """
        Sample the tracking error over the whole command grid.

        Args:
            initial_speed: Initial speed v_0 [m/s]
            bounds: Command grid limits. If None, uses defaults.

        Returns:
            SamplingResult with one row per successful command

        Raises:
            TimeBaseMismatchError: If a desired time base is not strictly
                increasing or desired trajectories differ in time base
            NoValidCommandsError: If no command produced a row
            InfeasibleCommandError, SimulationError: On the first failing
                command unless ``skip_failed_commands`` is set
        """
        if not np.isfinite(initial_speed) or initial_speed < 0:
            raise ValueError(f"Initial speed must be finite and non-negative, got {initial_speed}")

        bounds = bounds or CommandBounds()
        commands = command_grid(initial_speed, bounds)
        horizon = self.generator.horizon_from_initial_speed(initial_speed)
        z_0 = self.initial_state(initial_speed)

        logger.info(f"Computing tracking error for v_0={initial_speed:.3f} m/s: "
                    f"{len(commands)} commands, horizon {horizon:.3f}s")

        start_time = time.time()
        results: List[CommandResult] = []
        reference_time: Optional[np.ndarray] = None

        for index, command in enumerate(commands):
            try:
                result = self.sample_command(command, horizon, z_0)
            except (InfeasibleCommandError, SimulationError) as error:
                if not self.settings.skip_failed_commands:
                    raise
                logger.warning(f"Skipping command {command}: {error}")
                results.append(CommandResult(command=command, failure_reason=str(error)))
                continue

            if reference_time is None:
                reference_time = result.time
            elif not np.array_equal(reference_time, result.time):
                raise TimeBaseMismatchError(
                    f"Command {command} produced a time base of {result.time.shape[0]} samples "
                    f"ending at {result.time[-1]:.6f}s; expected {reference_time.shape[0]} "
                    f"samples ending at {reference_time[-1]:.6f}s"
                )

            logger.debug(f"[{index + 1}/{len(commands)}] {command}: "
                         f"max |e_x|={np.max(np.abs(result.x_error)):.4f}m, "
                         f"max |e_y|={np.max(np.abs(result.y_error)):.4f}m")
            results.append(result)

        elapsed = time.time() - start_time

        successes = [r for r in results if r.succeeded]
        failures = [CommandFailure(r.command, r.failure_reason) for r in results if not r.succeeded]

        if not successes:
            raise NoValidCommandsError(
                f"All {len(commands)} commands failed for v_0={initial_speed:.3f} m/s"
            )

        logger.info(f"Sampled {len(successes)}/{len(commands)} commands in {elapsed:.2f}s")

        return SamplingResult(
            initial_speed=float(initial_speed),
            time=reference_time,
            commands=[r.command for r in successes],
            x_errors=np.vstack([r.x_error for r in successes]),
            y_errors=np.vstack([r.y_error for r in successes]),
            failures=failures,
            elapsed_time=elapsed
        )
