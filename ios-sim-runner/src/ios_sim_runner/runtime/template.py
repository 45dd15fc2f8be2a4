"""Materialize a templated project from a packaged zip archive.

Every file entry is treated as UTF-8 text: each line goes through the
replacements in order and is written back with the platform line terminator.
Binary assets would need a separate copy path.
"""

from __future__ import annotations

import io
import logging
import re
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

logger = logging.getLogger(__name__)

TEST_PROJECT_ARCHIVE = "TestProject.zip"
PROJECT_NAME_PLACEHOLDER = "%TestProject%"
TEST_BUNDLE_NAME_PLACEHOLDER = "%TestProjectXctest%"


class TemplateError(RuntimeError):
    pass


@dataclass(frozen=True)
class Replacement:
    """Regex `pattern` replaced by literal `replacement`."""

    pattern: str
    replacement: str

    def apply(self, line: str) -> str:
        return re.sub(self.pattern, lambda _m: self.replacement, line)


def templates_dir() -> Path:
    # ios_sim_runner/runtime/* → ios_sim_runner/templates/
    return Path(__file__).resolve().parents[1] / "templates"


def _resolve_entry(destination: Path, name: str) -> Path:
    root = destination.resolve()
    target = (root / name).resolve()
    if target != root and root not in target.parents:
        raise TemplateError(f"archive entry escapes destination: {name}")
    return target


def _resolve_archive(archive: str | Path) -> Path:
    if isinstance(archive, Path):
        return archive
    if "/" in archive or "\\" in archive:
        raise TemplateError(f"packaged template name must not contain a path: {archive}")
    return templates_dir() / archive


def _iter_text_lines(raw: io.BufferedIOBase):
    with io.TextIOWrapper(raw, encoding="utf-8") as text:
        for line in text:
            yield line[:-1] if line.endswith("\n") else line


def unzip_and_replace(
    archive: str | Path,
    destination: Path,
    replacements: Sequence[Replacement],
) -> list[Path]:
    """Extract `archive` into `destination`, rewriting every text line.

    `archive` is either a `Path` on the filesystem or, as a bare `str`, the
    name of an archive shipped in the package's `templates/` directory. The
    working directory is never searched for a bare name. Entries are visited
    once, in stored order. Returns the created paths in that order.
    """

    archive_path = _resolve_archive(archive)
    if not archive_path.is_file():
        raise TemplateError(f"template archive not found: {archive}")

    created: list[Path] = []
    try:
        with zipfile.ZipFile(archive_path) as zf:
            for info in zf.infolist():
                target = _resolve_entry(destination, info.filename)
                if info.is_dir():
                    try:
                        target.mkdir(parents=True, exist_ok=False)
                    except OSError as e:
                        raise TemplateError(f"failed to create directory: {target}") from e
                    created.append(target)
                    continue

                target.parent.mkdir(parents=True, exist_ok=True)
                with zf.open(info) as raw, target.open("x", encoding="utf-8") as out:
                    for line in _iter_text_lines(raw):
                        for replacement in replacements:
                            line = replacement.apply(line)
                        out.write(line + "\n")
                created.append(target)
    except zipfile.BadZipFile as e:
        raise TemplateError(f"not a zip archive: {archive_path}") from e
    except FileExistsError as e:
        raise TemplateError(f"template output already exists: {e.filename}") from e

    logger.debug("materialized %d entries from %s into %s", len(created), archive_path, destination)
    return created


def materialize_test_project(destination: Path, *, app_name: str, test_bundle_name: str) -> Path:
    """Write the host-app test project and return its `.xcodeproj` path."""

    unzip_and_replace(
        TEST_PROJECT_ARCHIVE,
        destination,
        [
            Replacement(PROJECT_NAME_PLACEHOLDER, app_name),
            Replacement(TEST_BUNDLE_NAME_PLACEHOLDER, test_bundle_name),
        ],
    )
    return destination / "TestProject" / "TestProject.xcodeproj"
