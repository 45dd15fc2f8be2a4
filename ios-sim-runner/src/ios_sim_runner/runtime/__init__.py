"""Runtime pieces of a test run: process execution, simulator control, the
project template, scratch directories and the run sequence itself."""

from __future__ import annotations

from ios_sim_runner.runtime.errors import (
    CleanupError,
    ConfigurationError,
    ExecutionError,
    ExtractionError,
    IosTestRunnerError,
    ProvisioningError,
    SdkResolutionError,
    ToolchainResolutionError,
)
from ios_sim_runner.runtime.process import ProcessInvoker, ProcessResult
from ios_sim_runner.runtime.runner import (
    FAILURE_EXIT_CODE,
    ExecutionConfig,
    ProvisionedDevice,
    RunOutcome,
    SimulatorTestRunner,
)
from ios_sim_runner.runtime.scratch import ScratchDirectory, ScratchSpace, default_scratch_root

__all__ = [
    "FAILURE_EXIT_CODE",
    "CleanupError",
    "ConfigurationError",
    "ExecutionConfig",
    "ExecutionError",
    "ExtractionError",
    "IosTestRunnerError",
    "ProcessInvoker",
    "ProcessResult",
    "ProvisionedDevice",
    "ProvisioningError",
    "RunOutcome",
    "ScratchDirectory",
    "ScratchSpace",
    "SdkResolutionError",
    "SimulatorTestRunner",
    "ToolchainResolutionError",
    "default_scratch_root",
]
