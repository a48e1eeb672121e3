from __future__ import annotations

import hashlib
import stat
from pathlib import Path

import pytest

from treemanifest.digest import HashlibDigester
from treemanifest.errors import HardLinkInvariantError, ManifestBuildError
from treemanifest.hardlinks import HardLinkGroups, HardLinkKey, PendingLink, resolve_group, resolve_hardlinks
from treemanifest.models import HardLink, RegularFile


class _CountingFactory:
    def __init__(self) -> None:
        self.calls = 0

    def __call__(self) -> HashlibDigester:
        self.calls += 1
        return HashlibDigester("sha256")


def _pending(key: HardLinkKey, path: str, abs_path: Path) -> PendingLink:
    return PendingLink(
        key=key,
        abs_path=str(abs_path),
        common={"path": path, "mode": stat.S_IFREG | 0o644, "uid": 0, "gid": 0, "user": "root", "group": "root"},
    )


def test_lexicographically_smallest_path_is_canonical(tmp_path: Path) -> None:
    blob = tmp_path / "blob"
    blob.write_bytes(b"shared content")
    key = HardLinkKey(dev=1, ino=42)

    factory = _CountingFactory()
    out = resolve_group(key, [_pending(key, "b/x", blob), _pending(key, "a/y", blob)], factory)

    canonical, link = out
    assert isinstance(canonical, RegularFile)
    assert canonical.path == "a/y"
    assert canonical.digest == ["sha256:" + hashlib.sha256(b"shared content").hexdigest()]
    assert isinstance(link, HardLink)
    assert link.path == "b/x"
    assert link.target == "a/y"
    assert factory.calls == 1


def test_group_digest_computed_once_for_many_aliases(tmp_path: Path) -> None:
    blob = tmp_path / "blob"
    blob.write_bytes(b"x")
    key = HardLinkKey(dev=1, ino=1)
    members = [_pending(key, f"alias{i}", blob) for i in (5, 3, 9, 1)]

    factory = _CountingFactory()
    out = resolve_group(key, members, factory)

    assert factory.calls == 1
    assert [e.path for e in out] == ["alias1", "alias3", "alias5", "alias9"]
    assert sum(isinstance(e, RegularFile) for e in out) == 1
    assert all(e.target == "alias1" for e in out[1:])  # type: ignore[union-attr]


def test_single_member_group_is_plain_file(tmp_path: Path) -> None:
    blob = tmp_path / "blob"
    blob.write_bytes(b"only me")
    key = HardLinkKey(dev=3, ino=3)

    out = resolve_group(key, [_pending(key, "solo", blob)], _CountingFactory())
    assert len(out) == 1
    assert isinstance(out[0], RegularFile)


def test_empty_group_is_invariant_violation() -> None:
    with pytest.raises(HardLinkInvariantError) as ei:
        resolve_group(HardLinkKey(dev=1, ino=2), [], _CountingFactory())
    assert not isinstance(ei.value, ManifestBuildError)


def test_resolve_all_groups(tmp_path: Path) -> None:
    a = tmp_path / "a"
    b = tmp_path / "b"
    a.write_bytes(b"A")
    b.write_bytes(b"B")
    ka = HardLinkKey(dev=1, ino=10)
    kb = HardLinkKey(dev=1, ino=20)

    groups = HardLinkGroups()
    groups.add(_pending(kb, "z2", b))
    groups.add(_pending(ka, "m1", a))
    groups.add(_pending(kb, "z1", b))
    groups.add(_pending(ka, "m2", a))
    assert len(groups) == 2

    out = resolve_hardlinks(groups, _CountingFactory())
    by_path = {e.path: e for e in out}
    assert isinstance(by_path["m1"], RegularFile)
    assert isinstance(by_path["z1"], RegularFile)
    assert by_path["m2"].target == "m1"  # type: ignore[union-attr]
    assert by_path["z2"].target == "z1"  # type: ignore[union-attr]


def test_empty_group_in_accumulator_fails_resolution() -> None:
    groups = HardLinkGroups()
    groups.groups[HardLinkKey(dev=1, ino=1)] = []
    with pytest.raises(HardLinkInvariantError):
        resolve_hardlinks(groups, _CountingFactory())
