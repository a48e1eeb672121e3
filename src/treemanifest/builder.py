from __future__ import annotations

import logging
import os

from .assemble import assemble_manifest
from .classify import BuildContext, classify
from .config import BuildOptions
from .digest import digester_factory
from .hardlinks import HardLinkGroups, resolve_hardlinks
from .identity import IdentityResolver
from .models import Entry, Manifest
from .walk import IncludeFn, normalize_root, walk_tree

logger = logging.getLogger(__name__)

__all__ = ["BuildContext", "build_manifest"]


def build_manifest(
    root: str | os.PathLike[str],
    include: IncludeFn | None = None,
    *,
    options: BuildOptions | None = None,
    identities: IdentityResolver | None = None,
) -> Manifest:
    """
    Build the manifest for the tree under ``root``.

    Two passes:
    1) walk + classify; multi-linked regular files are parked by (dev, inode)
    2) resolve every parked group, then assemble and sort

    ``include(path, stat)`` returning False drops a node (and a directory's
    subtree). Any error aborts the build and nothing is returned.
    """
    opts = options or BuildOptions()
    root_s = normalize_root(root)

    ctx = BuildContext(
        root=root_s,
        identities=identities if identities is not None else IdentityResolver.from_system(),
        new_digester=digester_factory(opts.digest_algorithm),
        symlink_policy=opts.symlink_policy,
    )

    direct: list[Entry] = []
    groups = HardLinkGroups()

    for node in walk_tree(root_s, include):
        result = classify(node, ctx)
        if result is None:
            continue
        if result.pending is not None:
            groups.add(result.pending)
        elif result.entry is not None:
            direct.append(result.entry)

    resolved = resolve_hardlinks(groups, ctx.new_digester)
    manifest = assemble_manifest(direct, resolved)

    logger.info(
        "manifest built for %s: %s entries (%s hard-link groups)",
        root_s,
        len(manifest),
        len(groups),
    )
    return manifest
