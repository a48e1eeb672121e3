from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

# Ensure `treemanifest` (under ./src) is importable when running `pytest` from the repo root.
_ROOT = Path(__file__).resolve().parents[1]
_SRC = _ROOT / "src"
if str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))

from treemanifest.identity import IdentityResolver  # noqa: E402


def _fake_user(uid: int) -> str:
    if uid == os.geteuid():
        return "tester"
    if uid == 0:
        return "root"
    raise KeyError(uid)


@pytest.fixture
def identities(tmp_path: Path) -> IdentityResolver:
    """
    Resolver that knows the test process's ids without touching the system databases.

    New files take either the egid or the parent directory's gid depending on
    the platform, so both are indexed.
    """
    groups = {0: "root", os.getegid(): "testers", tmp_path.stat().st_gid: "testers"}
    return IdentityResolver(groups, user_lookup=_fake_user)
