from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from platformdirs import PlatformDirs

APP_SLUG = "treemanifest"


@dataclass(frozen=True)
class AppPaths:
    """
    Per-user directories.

    Environment overrides (optional):
    - TREEMANIFEST_DATA_DIR
    """

    data_dir: Path  # audit log

    @property
    def audit_log(self) -> Path:
        return self.data_dir / "audit_log.jsonl"


def get_paths() -> AppPaths:
    data_env = os.environ.get("TREEMANIFEST_DATA_DIR")
    if data_env:
        data_dir = Path(data_env).expanduser().resolve()
    else:
        dirs = PlatformDirs(appname=APP_SLUG, appauthor=False)
        data_dir = Path(dirs.user_data_dir).resolve()
    return AppPaths(data_dir=data_dir)
