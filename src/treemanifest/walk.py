from __future__ import annotations

import os
import stat
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any

from .errors import TraversalError
from .names import escape_name

# (root-relative posix path, lstat result) -> True to include
IncludeFn = Callable[[str, os.stat_result], bool]


@dataclass(frozen=True)
class Node:
    path: str  # root-relative, posix separators, escaped (see names.escape_name)
    abs_path: str
    stat: Any  # os.stat_result or anything exposing the st_* attributes


def normalize_root(root: str | os.PathLike[str]) -> str:
    root_s = os.path.abspath(os.path.normpath(os.fspath(root)))
    try:
        st = os.stat(root_s)
    except OSError as e:
        raise TraversalError(f"cannot stat root {root_s}: {e}") from e
    if not stat.S_ISDIR(st.st_mode):
        raise TraversalError(f"root is not a directory: {root_s}")
    return root_s


def relative_path(root: str, abs_path: str) -> str:
    """Root-relative POSIX path of ``abs_path`` in manifest text form."""
    rel = os.path.normpath(os.path.relpath(abs_path, root))
    rel = rel.replace(os.sep, "/")
    if rel == "." or rel == ".." or rel.startswith("../"):
        raise TraversalError(f"{abs_path} is not below root {root}")
    return escape_name(rel)


def _raise(err: OSError) -> None:
    raise TraversalError(f"traversal failed at {err.filename}: {err.strerror or err}") from err


def walk_tree(root: str, include: IncludeFn | None = None) -> Iterator[Node]:
    """
    Yield every object below ``root`` (root itself excluded), never following symlinks.

    ``include`` sees each node right after lstat; returning False drops the
    node and, for directories, the whole subtree.
    """
    for dirpath, dirnames, filenames in os.walk(root, topdown=True, onerror=_raise, followlinks=False):
        dirnames.sort(key=os.fsencode)
        filenames.sort(key=os.fsencode)

        # os.walk lists symlinks to directories under dirnames but never
        # descends into them, so every name is lstat'ed here.
        keep_dirs: list[str] = []
        for name in dirnames + filenames:
            abs_path = os.path.join(dirpath, name)
            try:
                st = os.lstat(abs_path)
            except OSError as e:
                raise TraversalError(f"cannot lstat {abs_path}: {e}") from e

            rel = relative_path(root, abs_path)
            if include is not None and not include(rel, st):
                continue

            if stat.S_ISDIR(st.st_mode):
                keep_dirs.append(name)
            yield Node(path=rel, abs_path=abs_path, stat=st)

        dirnames[:] = [d for d in dirnames if d in keep_dirs]
