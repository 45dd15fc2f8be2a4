"""End-to-end XCTest run on a throwaway simulator.

A run walks a fixed sequence of steps:

  1. extract the test bundle (`unzip Payload/*`) into a scratch directory
  2. resolve the simulator SDK version
  3. resolve the xctest agent (explicit Xcode path, or `xcode-select -p`)
  4. resolve the device model and create a simulator for it
  5. run the tests, either
       * directly with `simctl spawn <udid> xctest <bundle>`, or
       * inside the test host app via a generated Xcode project
  6. shut down and delete the simulator

Steps 1-4 are fatal on failure. Step 5 only produces an exit code. Step 6 runs
for every simulator that was created, whatever happened in step 5, and its own
failures are only logged.
"""

from __future__ import annotations

import logging
import os
import shutil
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator, Mapping, Optional

import yaml

from ios_sim_runner.catalog import (
    DEFAULT_DEVICE_TYPE,
    CatalogValidationError,
    DeviceCatalog,
    DeviceModel,
    DeviceNotFoundError,
    default_catalog,
)
from ios_sim_runner.runtime.errors import (
    CleanupError,
    ConfigurationError,
    ExecutionError,
    ExtractionError,
    ProvisioningError,
)
from ios_sim_runner.runtime.process import ProcessInvoker
from ios_sim_runner.runtime.scratch import ScratchSpace
from ios_sim_runner.runtime.simctl import SimctlController
from ios_sim_runner.runtime.template import TemplateError, materialize_test_project

logger = logging.getLogger(__name__)

FLAG_KEEP_TEST_DIR = "keep_test_dir"
FLAG_TEST_BUNDLE_PATH = "test_bundle_path"
FLAG_DEVICE_TYPE = "device_type"
FLAG_TEST_HOST_PATH = "test_host_path"
FLAG_TEST_TYPE = "test_type"
FLAG_XCODE_PATH = "xcode_path"

ENV_DEVICE_TYPE = "IOS_SIM_RUNNER_DEVICE_TYPE"

FAILURE_EXIT_CODE = -1
# Blind wait after `simctl create`. There is no readiness probe.
SIMULATOR_SETTLE_DELAY_S = 2.0


@dataclass(frozen=True)
class ExecutionConfig:
    test_bundle_path: Path
    device_type: str = DEFAULT_DEVICE_TYPE
    test_host_path: Optional[Path] = None
    test_type: Optional[str] = None
    xcode_path: Optional[str] = None
    keep_test_dir: bool = False

    @classmethod
    def from_args(
        cls,
        args: Mapping[str, str],
        *,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "ExecutionConfig":
        env = os.environ if environ is None else environ

        bundle = args.get(FLAG_TEST_BUNDLE_PATH)
        if not bundle:
            raise ConfigurationError(f"--{FLAG_TEST_BUNDLE_PATH} is required")
        host = args.get(FLAG_TEST_HOST_PATH)
        test_type = args.get(FLAG_TEST_TYPE)
        if host and not test_type:
            raise ConfigurationError(
                f"--{FLAG_TEST_TYPE} is required when --{FLAG_TEST_HOST_PATH} is set"
            )

        return cls(
            test_bundle_path=Path(bundle),
            device_type=args.get(FLAG_DEVICE_TYPE) or env.get(ENV_DEVICE_TYPE) or DEFAULT_DEVICE_TYPE,
            test_host_path=Path(host) if host else None,
            test_type=test_type or None,
            xcode_path=args.get(FLAG_XCODE_PATH) or None,
            keep_test_dir=args.get(FLAG_KEEP_TEST_DIR) == "true",
        )

    @property
    def test_bundle_name(self) -> str:
        return self.test_bundle_path.stem


@dataclass(frozen=True)
class ProvisionedDevice:
    udid: str
    model: DeviceModel
    runtime_version: str


@dataclass(frozen=True)
class RunOutcome:
    exit_code: int
    device: Optional[ProvisionedDevice] = None


def scheme_for_test_type(test_type: str) -> str:
    """`ui` → `TestProjectUi`, `UNIT` → `TestProjectUnit`."""
    return "TestProject" + test_type[:1].upper() + test_type[1:].lower()


class SimulatorTestRunner:
    def __init__(
        self,
        config: ExecutionConfig,
        *,
        scratch: ScratchSpace,
        invoker: Optional[ProcessInvoker] = None,
        catalog: Optional[DeviceCatalog] = None,
        xcrun_path: str = "xcrun",
        unzip_path: str = "unzip",
        xcodebuild_path: str = "xcodebuild",
        settle_delay_s: float = SIMULATOR_SETTLE_DELAY_S,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._config = config
        self._scratch = scratch
        self._invoker = invoker or ProcessInvoker()
        self._catalog = catalog
        self._simctl = SimctlController(invoker=self._invoker, xcrun_path=xcrun_path)
        self._unzip_path = unzip_path
        self._xcodebuild_path = xcodebuild_path
        self._settle_delay_s = float(settle_delay_s)
        self._sleep = sleep

    @property
    def config(self) -> ExecutionConfig:
        return self._config

    def run(self) -> RunOutcome:
        cfg = self._config
        try:
            test_dir = self._scratch.create("test").path
        except OSError as e:
            raise ConfigurationError(f"cannot create scratch directory: {e}") from e

        self._extract(cfg.test_bundle_path, test_dir)
        test_bundle = test_dir / "Payload" / f"{cfg.test_bundle_name}.xctest"
        logger.info("extracted %s into %s", cfg.test_bundle_path, test_dir)

        sdk_version = self._simctl.show_sdk_version()
        logger.info("simulator sdk version: %s", sdk_version)

        xctest_agent = self._resolve_xctest_agent()
        logger.info("xctest agent: %s", xctest_agent)

        model = self._resolve_model()

        exit_code = FAILURE_EXIT_CODE
        with self._provisioned(model, sdk_version) as device:
            if cfg.test_host_path is not None:
                exit_code = self._run_with_test_host(device, test_dir, test_bundle)
            else:
                exit_code = self._run_direct(device, xctest_agent, test_bundle)
        logger.info("test run finished with exit code %d", exit_code)
        return RunOutcome(exit_code=exit_code, device=device)

    # ---------------------------------- Resolution ----------------------------------

    def _extract(self, archive: Path, destination: Path) -> None:
        try:
            res = self._invoker.run(
                self._unzip_path, "-qq", str(archive), "Payload/*", "-d", str(destination)
            )
        except OSError as e:
            raise ExtractionError(f"cannot run {self._unzip_path}: {e}") from e
        if not res.ok():
            raise ExtractionError(
                f"extracting {archive} failed (rc={res.returncode}): {res.stderr.strip()}"
            )

    def _resolve_xctest_agent(self) -> str:
        developer_dir = self._config.xcode_path or self._simctl.developer_dir()
        return self._simctl.xctest_agent_path(developer_dir)

    def _resolve_model(self) -> DeviceModel:
        try:
            catalog = self._catalog or default_catalog()
        except (CatalogValidationError, yaml.YAMLError, OSError) as e:
            raise ProvisioningError(f"cannot load the device catalog: {e}") from e
        try:
            model = catalog.resolve_by_identifier(self._config.device_type)
        except DeviceNotFoundError as e:
            raise ProvisioningError(str(e)) from e
        if not model.simulator_capable:
            logger.warning(
                "%s has no simulator screen size; simctl may reject %s",
                model.identifier,
                DeviceCatalog.simulator_type_id(model),
            )
        return model

    # ---------------------------------- Lifecycle -----------------------------------

    @contextmanager
    def _provisioned(self, model: DeviceModel, sdk_version: str) -> Iterator[ProvisionedDevice]:
        udid = self._simctl.create(
            str(uuid.uuid4()), DeviceCatalog.simulator_type_id(model), sdk_version
        )
        device = ProvisionedDevice(udid=udid, model=model, runtime_version=sdk_version)
        logger.info("created simulator %s (%s, iOS %s)", udid, model.name, sdk_version)
        try:
            self._sleep(self._settle_delay_s)
            yield device
        finally:
            self._teardown(device)

    def _teardown(self, device: ProvisionedDevice) -> None:
        for step in ("shutdown", "delete"):
            try:
                self._teardown_step(step, device.udid)
            except CleanupError as e:
                logger.warning("%s", e)
        logger.info("simulator %s torn down", device.udid)

    def _teardown_step(self, step: str, udid: str) -> None:
        action = self._simctl.shutdown if step == "shutdown" else self._simctl.delete
        try:
            res = action(udid)
        except OSError as e:
            raise CleanupError(f"simctl {step} {udid} failed: {e}") from e
        if not res.ok():
            raise CleanupError(
                f"simctl {step} {udid} failed (rc={res.returncode}): {res.stderr.strip()}"
            )

    # ----------------------------------- Dispatch -----------------------------------

    def _run_direct(self, device: ProvisionedDevice, xctest_agent: str, test_bundle: Path) -> int:
        try:
            res = self._simctl.spawn(device.udid, xctest_agent, str(test_bundle))
        except OSError as e:
            raise ExecutionError(f"cannot spawn xctest on {device.udid}: {e}") from e
        if res.stdout.strip():
            logger.info("xctest output:\n%s", res.stdout.rstrip("\n"))
        return res.returncode

    def _run_with_test_host(
        self, device: ProvisionedDevice, test_dir: Path, test_bundle: Path
    ) -> int:
        cfg = self._config
        if cfg.test_host_path is None or not cfg.test_type:
            raise ConfigurationError(
                f"--{FLAG_TEST_TYPE} and --{FLAG_TEST_HOST_PATH} are both required for a host run"
            )

        self._extract(cfg.test_host_path, test_dir)
        app_name = cfg.test_host_path.stem
        host_app = test_dir / "Payload" / f"{app_name}.app"
        plugins_dir = host_app / "PlugIns"
        try:
            plugins_dir.mkdir(parents=True, exist_ok=True)
            shutil.copytree(test_bundle, plugins_dir / test_bundle.name)
        except OSError as e:
            raise ExecutionError(f"cannot install {test_bundle.name} into {host_app}: {e}") from e

        try:
            project_dir = self._scratch.create("test_project").path
            xcodeproj = materialize_test_project(
                project_dir, app_name=app_name, test_bundle_name=cfg.test_bundle_name
            )
        except (OSError, TemplateError) as e:
            raise ExecutionError(f"cannot generate the test project: {e}") from e
        logger.info("generated test project %s", xcodeproj)

        cmd = [
            self._xcodebuild_path,
            "-verbose",
            "test",
            f"BUILT_PRODUCTS_DIR={test_dir}/Payload",
            "-project",
            str(xcodeproj),
            "-scheme",
            scheme_for_test_type(cfg.test_type),
            "-destination",
            f"id={device.udid}",
            "-configuration",
            "Debug",
        ]
        try:
            return self._invoker.run_inherited(cmd, cwd=project_dir)
        except OSError as e:
            raise ExecutionError(f"cannot run {self._xcodebuild_path}: {e}") from e
