from __future__ import annotations

from collections.abc import Iterable

from .models import Entry, Manifest, path_sort_key


def assemble_manifest(direct: Iterable[Entry], resolved: Iterable[Entry]) -> Manifest:
    """
    Merge classifier output with resolved hard-link entries into a sorted Manifest.

    On a path collision the resolved entry wins.
    """
    by_path: dict[str, Entry] = {}
    for e in direct:
        by_path[e.path] = e
    for e in resolved:
        by_path[e.path] = e

    entries = sorted(by_path.values(), key=lambda e: path_sort_key(e.path))
    return Manifest(entries=tuple(entries))
