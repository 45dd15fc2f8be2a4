from __future__ import annotations

import logging
import os
import shutil
import tempfile
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

logger = logging.getLogger(__name__)


def default_scratch_root(environ: Optional[Mapping[str, str]] = None) -> Path:
    env = os.environ if environ is None else environ
    tmpdir = env.get("TMPDIR")
    return Path(tmpdir) if tmpdir else Path(tempfile.gettempdir())


@dataclass(frozen=True)
class ScratchDirectory:
    path: Path
    auto_delete: bool


class ScratchSpace:
    """Uniquely named working directories for one run.

    Names carry a random UUID so concurrent runs on one host never collide.
    Directories are removed by `cleanup()` unless the space was created with
    `keep=True`.
    """

    def __init__(self, root: Path, *, keep: bool = False) -> None:
        self._root = Path(root)
        self._keep = bool(keep)
        self._directories: list[ScratchDirectory] = []

    @property
    def directories(self) -> list[ScratchDirectory]:
        return list(self._directories)

    def create(self, prefix: str) -> ScratchDirectory:
        path = self._root / f"{prefix}.{uuid.uuid4()}"
        path.mkdir(parents=False, exist_ok=False)
        directory = ScratchDirectory(path=path, auto_delete=not self._keep)
        self._directories.append(directory)
        logger.debug("created scratch directory %s (auto_delete=%s)", path, directory.auto_delete)
        return directory

    def cleanup(self) -> None:
        for directory in reversed(self._directories):
            if not directory.auto_delete:
                logger.info("keeping scratch directory %s", directory.path)
                continue
            shutil.rmtree(directory.path, ignore_errors=True)
        self._directories = [d for d in self._directories if not d.auto_delete]
