from __future__ import annotations

import os
from fnmatch import fnmatchcase
from pathlib import PurePosixPath


class ExcludeRules:
    """
    Glob exclusion usable as the build's inclusion predicate.

    A pattern excludes a node when it matches the root-relative path or the
    node's final name component.
    """

    def __init__(self, patterns: list[str] | None = None):
        self.patterns = [p.strip().strip("/") for p in (patterns or []) if p and p.strip().strip("/")]

    def should_exclude(self, path: str) -> bool:
        name = PurePosixPath(path).name
        for pat in self.patterns:
            if fnmatchcase(path, pat) or fnmatchcase(name, pat):
                return True
        return False

    def __call__(self, path: str, st: os.stat_result) -> bool:
        return not self.should_exclude(path)

    def __bool__(self) -> bool:
        return bool(self.patterns)
