from __future__ import annotations

import logging
import os
import posixpath
import stat
from dataclasses import dataclass
from typing import Any

from .config import SymlinkPolicy
from .digest import DigesterFactory, hash_path, split_device
from .errors import SymlinkError
from .hardlinks import HardLinkKey, PendingLink
from .identity import IdentityResolver
from .models import Device, NamedPipe, RegularFile, Symlink
from .names import escape_name
from .walk import Node

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildContext:
    """Per-build state handed by reference to every classification step."""

    root: str
    identities: IdentityResolver
    new_digester: DigesterFactory
    symlink_policy: SymlinkPolicy = SymlinkPolicy.KEEP


@dataclass(frozen=True)
class Classified:
    entry: RegularFile | Symlink | NamedPipe | Device | None = None
    pending: PendingLink | None = None


def normalize_symlink_target(target: str) -> str:
    """
    Absolute targets are re-anchored at the bundle root; relative ones are kept.

    ``/etc/passwd`` becomes ``etc/passwd``. normpath folds leading ``..`` into
    the root, so an absolute target can never climb out.

    The leading slash is not kept, so ``a/l -> /etc/passwd`` and
    ``a/l -> etc/passwd`` produce the same entry even though the second one
    resolves to ``a/etc/passwd``.
    """
    if not target.startswith("/"):
        return target
    rel = posixpath.normpath(target).lstrip("/")
    return rel or "."


def target_escapes_root(link_path: str, target: str) -> bool:
    if target.startswith("/"):
        return False
    resolved = posixpath.normpath(posixpath.join(posixpath.dirname(link_path), target))
    return resolved == ".." or resolved.startswith("../")


def _common_fields(node: Node, ctx: BuildContext) -> dict[str, Any]:
    st = node.stat
    uid, gid = int(st.st_uid), int(st.st_gid)
    return {
        "path": node.path,
        "mode": int(st.st_mode),
        "uid": uid,
        "gid": gid,
        "user": ctx.identities.user_name(uid),
        "group": ctx.identities.group_name(gid),
    }


def _read_symlink(node: Node, ctx: BuildContext) -> str:
    try:
        raw = os.readlink(node.abs_path)
    except OSError as e:
        raise SymlinkError(f"cannot read symlink {node.abs_path}: {e}") from e

    target = escape_name(normalize_symlink_target(raw))
    if target_escapes_root(node.path, target):
        if ctx.symlink_policy is SymlinkPolicy.REJECT:
            raise SymlinkError(f"symlink {node.path} -> {target} points outside the root")
        if ctx.symlink_policy is SymlinkPolicy.WARN:
            logger.warning("symlink %s -> %s points outside the root", node.path, target)
    return target


def classify(node: Node, ctx: BuildContext) -> Classified | None:
    """
    Turn one node into an entry, a deferred hard-link alias, or nothing.

    Returns None for directories (walked, not recorded) and sockets (never
    recorded).
    """
    st = node.stat
    mode = int(st.st_mode)

    # Ownership is resolved for every node, so an unknown id fails the build
    # even when the node itself is not recorded.
    common = _common_fields(node, ctx)

    if stat.S_ISDIR(mode):
        return None

    # TODO: extended attributes and alternate data streams are not recorded yet.

    if stat.S_ISREG(mode):
        if int(st.st_nlink) < 2:
            dgst = hash_path(node.abs_path, ctx.new_digester)
            return Classified(entry=RegularFile(**common, digest=[dgst]))

        key = HardLinkKey(dev=int(st.st_dev), ino=int(st.st_ino))
        logger.debug("deferring hard-link candidate %s (dev=%s ino=%s)", node.path, key.dev, key.ino)
        return Classified(pending=PendingLink(key=key, abs_path=node.abs_path, common=common))

    if stat.S_ISLNK(mode):
        return Classified(entry=Symlink(**common, target=_read_symlink(node, ctx)))

    if stat.S_ISFIFO(mode):
        # mode alone is enough to recreate a pipe
        return Classified(entry=NamedPipe(**common))

    if stat.S_ISCHR(mode) or stat.S_ISBLK(mode):
        major, minor = split_device(int(st.st_rdev))
        return Classified(entry=Device(**common, major=major, minor=minor))

    if stat.S_ISSOCK(mode):
        logger.debug("skipping socket %s", node.path)
        return None

    logger.debug("skipping unsupported file type %o at %s", stat.S_IFMT(mode), node.path)
    return None
