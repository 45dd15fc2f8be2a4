"""Thin `xcrun` wrapper for SDK/toolchain queries and simulator lifecycle.

Queries raise the matching taxonomy error on failure; lifecycle commands that
run during teardown return the raw `ProcessResult` so the caller can decide how
loud to be about it.
"""

from __future__ import annotations

from ios_sim_runner.runtime.errors import (
    ProvisioningError,
    SdkResolutionError,
    ToolchainResolutionError,
)
from ios_sim_runner.runtime.process import ProcessInvoker, ProcessResult

SIMULATOR_SDK = "iphonesimulator"
XCTEST_AGENT_SUBPATH = "Platforms/iPhoneSimulator.platform/Developer/Library/Xcode/Agents/xctest"


def _failure_detail(result: ProcessResult) -> str:
    return (
        f"(rc={result.returncode}): {' '.join(result.args)}\n"
        f"stdout: {result.stdout}\n"
        f"stderr: {result.stderr}"
    )


class SimctlController:
    def __init__(self, *, invoker: ProcessInvoker, xcrun_path: str = "xcrun") -> None:
        self._invoker = invoker
        self._xcrun_path = xcrun_path

    def xcrun(self, *args: str) -> ProcessResult:
        return self._invoker.run(self._xcrun_path, *args)

    # ------------------------------- Toolchain queries -------------------------------

    def show_sdk_version(self) -> str:
        try:
            res = self.xcrun("--sdk", SIMULATOR_SDK, "--show-sdk-version")
        except OSError as e:
            raise SdkResolutionError(f"cannot run {self._xcrun_path}: {e}") from e
        if not res.ok():
            raise SdkResolutionError("sdk version query failed " + _failure_detail(res))
        return res.stdout.strip()

    def developer_dir(self) -> str:
        try:
            res = self.xcrun("xcode-select", "-p")
        except OSError as e:
            raise ToolchainResolutionError(f"cannot run {self._xcrun_path}: {e}") from e
        if not res.ok():
            raise ToolchainResolutionError(
                "developer directory query failed " + _failure_detail(res)
            )
        return res.stdout.strip()

    @staticmethod
    def xctest_agent_path(developer_dir: str) -> str:
        return developer_dir.rstrip("/") + "/" + XCTEST_AGENT_SUBPATH

    # ------------------------------- Simulator lifecycle ------------------------------

    def create(self, name: str, device_type_id: str, runtime_version: str) -> str:
        """Create a simulator and return its UDID."""

        try:
            res = self.xcrun("simctl", "create", name, device_type_id, runtime_version)
        except OSError as e:
            raise ProvisioningError(f"cannot run {self._xcrun_path}: {e}") from e
        if not res.ok():
            raise ProvisioningError("simctl create failed " + _failure_detail(res))
        udid = res.stdout.strip()
        if not udid:
            raise ProvisioningError("simctl create printed no device id " + _failure_detail(res))
        return udid

    def spawn(self, udid: str, executable: str, *args: str) -> ProcessResult:
        return self.xcrun("simctl", "spawn", udid, executable, *args)

    def shutdown(self, udid: str) -> ProcessResult:
        return self.xcrun("simctl", "shutdown", udid)

    def delete(self, udid: str) -> ProcessResult:
        return self.xcrun("simctl", "delete", udid)
