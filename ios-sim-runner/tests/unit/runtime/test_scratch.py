from __future__ import annotations

from pathlib import Path

from ios_sim_runner.runtime.scratch import ScratchSpace, default_scratch_root


def test_scratch_space_creates_unique_directories(tmp_path: Path) -> None:
    space = ScratchSpace(tmp_path)
    a = space.create("test")
    b = space.create("test")
    project = space.create("test_project")

    assert a.path != b.path
    assert a.path.parent == tmp_path and a.path.is_dir()
    assert a.path.name.startswith("test.")
    assert project.path.name.startswith("test_project.")
    assert all(d.auto_delete for d in space.directories)


def test_scratch_space_cleanup_removes_directories(tmp_path: Path) -> None:
    space = ScratchSpace(tmp_path)
    d = space.create("test")
    (d.path / "Payload").mkdir()
    (d.path / "Payload" / "x.txt").write_text("x", encoding="utf-8")

    space.cleanup()

    assert not d.path.exists()
    assert space.directories == []


def test_scratch_space_keep_flag_preserves_directories(tmp_path: Path) -> None:
    space = ScratchSpace(tmp_path, keep=True)
    d = space.create("test")
    assert d.auto_delete is False

    space.cleanup()

    assert d.path.is_dir()
    assert space.directories == [d]


def test_default_scratch_root_uses_tmpdir(tmp_path: Path) -> None:
    assert default_scratch_root({"TMPDIR": str(tmp_path)}) == tmp_path
    assert default_scratch_root({}).is_dir()
