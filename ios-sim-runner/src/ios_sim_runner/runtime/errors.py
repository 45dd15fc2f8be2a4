"""Failure taxonomy for a test run.

Extraction, SDK, toolchain and provisioning failures are fatal: the run stops
where it is. Execution failures are reported through the exit code only, and
cleanup failures are logged and dropped.
"""

from __future__ import annotations


class IosTestRunnerError(RuntimeError):
    """Base class for failures that abort a run."""


class ConfigurationError(IosTestRunnerError):
    pass


class ExtractionError(IosTestRunnerError):
    pass


class SdkResolutionError(IosTestRunnerError):
    pass


class ToolchainResolutionError(IosTestRunnerError):
    pass


class ProvisioningError(IosTestRunnerError):
    """Simulator creation failed, or the device type is not in the catalog."""


class ExecutionError(IosTestRunnerError):
    """Raised when a test dispatch cannot be started at all."""


class CleanupError(IosTestRunnerError):
    """Simulator shutdown/delete failed. Never escapes the teardown step."""
