from __future__ import annotations

import os
import zipfile
from pathlib import Path

import pytest

from ios_sim_runner.runtime.template import (
    Replacement,
    TemplateError,
    materialize_test_project,
    templates_dir,
    unzip_and_replace,
)


def _make_archive(path: Path, entries: list[tuple[str, str | None]]) -> Path:
    with zipfile.ZipFile(path, "w") as zf:
        for name, content in entries:
            zf.writestr(name, "" if content is None else content)
    return path


def test_unzip_and_replace_applies_replacements_in_order(tmp_path: Path) -> None:
    archive = _make_archive(
        tmp_path / "t.zip",
        [
            ("proj/", None),
            ("proj/sub/", None),
            ("proj/sub/a.txt", "name=%A%\r\nother=%B%\nlast"),
        ],
    )
    out = tmp_path / "out"
    out.mkdir()

    created = unzip_and_replace(
        archive,
        out,
        [Replacement("%A%", "%B%"), Replacement("%B%", "bee")],
    )

    assert created == [
        (out / "proj").resolve(),
        (out / "proj" / "sub").resolve(),
        (out / "proj" / "sub" / "a.txt").resolve(),
    ]
    text = (out / "proj" / "sub" / "a.txt").read_bytes().decode("utf-8")
    assert text == os.linesep.join(["name=bee", "other=bee", "last"]) + os.linesep


def test_replacement_text_is_literal(tmp_path: Path) -> None:
    archive = _make_archive(tmp_path / "t.zip", [("f.txt", "x=%P%\n")])
    out = tmp_path / "out"
    out.mkdir()
    unzip_and_replace(archive, out, [Replacement("%P%", r"C:\path\$1")])
    assert (out / "f.txt").read_text(encoding="utf-8").splitlines() == [r"x=C:\path\$1"]


def test_unzip_and_replace_rejects_escaping_entries(tmp_path: Path) -> None:
    archive = _make_archive(tmp_path / "t.zip", [("../evil.txt", "x")])
    out = tmp_path / "out"
    out.mkdir()
    with pytest.raises(TemplateError, match="escapes destination"):
        unzip_and_replace(archive, out, [])
    assert not (tmp_path / "evil.txt").exists()


def test_unzip_and_replace_fails_when_directory_exists(tmp_path: Path) -> None:
    archive = _make_archive(tmp_path / "t.zip", [("proj/", None)])
    out = tmp_path / "out"
    (out / "proj").mkdir(parents=True)
    with pytest.raises(TemplateError, match="failed to create directory"):
        unzip_and_replace(archive, out, [])


def test_unzip_and_replace_missing_archive(tmp_path: Path) -> None:
    with pytest.raises(TemplateError, match="template archive not found"):
        unzip_and_replace("DoesNotExist.zip", tmp_path, [])


def test_unzip_and_replace_bad_archive(tmp_path: Path) -> None:
    bogus = tmp_path / "bogus.zip"
    bogus.write_text("not a zip", encoding="utf-8")
    with pytest.raises(TemplateError, match="not a zip archive"):
        unzip_and_replace(bogus, tmp_path, [])


def test_packaged_test_project_archive_is_present() -> None:
    with zipfile.ZipFile(templates_dir() / "TestProject.zip") as zf:
        names = zf.namelist()
    assert "TestProject/" in names
    assert "TestProject/TestProject.xcodeproj/project.pbxproj" in names
    assert "TestProject/TestProject.xcodeproj/xcshareddata/xcschemes/TestProjectUi.xcscheme" in names
    assert (
        "TestProject/TestProject.xcodeproj/xcshareddata/xcschemes/TestProjectUnit.xcscheme" in names
    )


def test_materialize_test_project_substitutes_names(tmp_path: Path) -> None:
    xcodeproj = materialize_test_project(tmp_path, app_name="MyApp", test_bundle_name="MyAppTests")

    assert xcodeproj == tmp_path / "TestProject" / "TestProject.xcodeproj"
    pbxproj = (xcodeproj / "project.pbxproj").read_text(encoding="utf-8")
    assert "%TestProject" not in pbxproj
    assert 'path = "MyApp.app";' in pbxproj
    assert 'path = "MyApp.app/PlugIns/MyAppTests.xctest";' in pbxproj

    scheme = (xcodeproj / "xcshareddata" / "xcschemes" / "TestProjectUi.xcscheme").read_text(
        encoding="utf-8"
    )
    assert 'BuildableName = "MyAppTests.xctest"' in scheme
    assert 'BuildableName = "MyApp.app"' in scheme


def test_packaged_template_ignores_archive_in_working_directory(
    tmp_path: Path, monkeypatch
) -> None:
    work = tmp_path / "work"
    work.mkdir()
    _make_archive(
        work / "TestProject.zip",
        [
            ("TestProject/", None),
            ("TestProject/TestProject.xcodeproj/project.pbxproj", "HIJACKED %TestProject%\n"),
        ],
    )
    monkeypatch.chdir(work)
    out = tmp_path / "out"
    out.mkdir()

    xcodeproj = materialize_test_project(out, app_name="MyApp", test_bundle_name="MyAppTests")

    pbxproj = (xcodeproj / "project.pbxproj").read_text(encoding="utf-8")
    assert "HIJACKED" not in pbxproj
    assert 'path = "MyApp.app";' in pbxproj


def test_packaged_template_name_must_be_bare(tmp_path: Path) -> None:
    with pytest.raises(TemplateError, match="must not contain a path"):
        unzip_and_replace("../TestProject.zip", tmp_path, [])
