from __future__ import annotations

import os
from pathlib import Path

import pytest

from treemanifest.errors import TraversalError
from treemanifest.filters import ExcludeRules
from treemanifest.walk import normalize_root, relative_path, walk_tree


def _make_tree(root: Path) -> None:
    (root / "sub" / "deep").mkdir(parents=True)
    (root / "b.txt").write_text("b", encoding="utf-8")
    (root / "a.txt").write_text("a", encoding="utf-8")
    (root / "sub" / "c.txt").write_text("c", encoding="utf-8")
    (root / "sub" / "deep" / "d.txt").write_text("d", encoding="utf-8")


def test_walk_skips_root_and_uses_relative_posix_paths(tmp_path: Path) -> None:
    _make_tree(tmp_path)
    paths = [n.path for n in walk_tree(str(tmp_path))]

    assert "" not in paths and "." not in paths
    assert sorted(paths) == ["a.txt", "b.txt", "sub", "sub/c.txt", "sub/deep", "sub/deep/d.txt"]
    assert all(not p.startswith("/") for p in paths)


def test_walk_does_not_follow_directory_symlinks(tmp_path: Path) -> None:
    outside = tmp_path / "outside"
    outside.mkdir()
    (outside / "secret.txt").write_text("s", encoding="utf-8")
    root = tmp_path / "root"
    root.mkdir()
    os.symlink(outside, root / "link")

    nodes = {n.path: n for n in walk_tree(str(root))}
    assert list(nodes) == ["link"]
    assert os.path.islink(nodes["link"].abs_path)


def test_include_prunes_directories(tmp_path: Path) -> None:
    _make_tree(tmp_path)

    def _include(path: str, st: os.stat_result) -> bool:
        return path != "sub"

    paths = sorted(n.path for n in walk_tree(str(tmp_path), _include))
    assert paths == ["a.txt", "b.txt"]


def test_exclude_rules_match_path_or_name(tmp_path: Path) -> None:
    _make_tree(tmp_path)
    rules = ExcludeRules(["*.txt", "sub/deep"])

    paths = sorted(n.path for n in walk_tree(str(tmp_path), rules))
    assert paths == ["sub"]
    assert rules.should_exclude("x/y/z.txt")
    assert not ExcludeRules([]).should_exclude("anything")
    assert not ExcludeRules([])


def test_root_must_be_existing_directory(tmp_path: Path) -> None:
    f = tmp_path / "file"
    f.write_text("x", encoding="utf-8")
    with pytest.raises(TraversalError):
        normalize_root(f)
    with pytest.raises(TraversalError):
        normalize_root(tmp_path / "missing")
    assert normalize_root(str(tmp_path) + "/./") == os.path.abspath(str(tmp_path))


def test_relative_path_rejects_escape(tmp_path: Path) -> None:
    root = str(tmp_path / "root")
    assert relative_path(root, os.path.join(root, "a", "b")) == "a/b"
    with pytest.raises(TraversalError):
        relative_path(root, str(tmp_path / "elsewhere"))


def test_unreadable_directory_aborts_walk(tmp_path: Path, monkeypatch) -> None:
    _make_tree(tmp_path)
    real_scandir = os.scandir

    def _scandir(path):
        if os.fspath(path).endswith("deep"):
            raise PermissionError(13, "Permission denied", os.fspath(path))
        return real_scandir(path)

    monkeypatch.setattr(os, "scandir", _scandir)
    with pytest.raises(TraversalError):
        list(walk_tree(str(tmp_path)))
