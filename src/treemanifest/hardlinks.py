from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, NamedTuple

from .digest import DigesterFactory, hash_path
from .errors import HardLinkInvariantError
from .models import HardLink, RegularFile, path_sort_key

logger = logging.getLogger(__name__)


class HardLinkKey(NamedTuple):
    dev: int
    ino: int


@dataclass(frozen=True)
class PendingLink:
    """A regular file with nlink >= 2, parked until every alias has been seen."""

    key: HardLinkKey
    abs_path: str
    common: dict[str, Any]  # path, mode, uid, gid, user, group

    @property
    def path(self) -> str:
        return str(self.common["path"])


@dataclass
class HardLinkGroups:
    """Accumulation stage: (dev, ino) -> aliases seen during traversal."""

    groups: dict[HardLinkKey, list[PendingLink]] = field(default_factory=dict)

    def add(self, pending: PendingLink) -> None:
        self.groups.setdefault(pending.key, []).append(pending)

    def __len__(self) -> int:
        return len(self.groups)

    def items(self) -> Iterable[tuple[HardLinkKey, list[PendingLink]]]:
        return self.groups.items()


def resolve_group(
    key: HardLinkKey,
    members: list[PendingLink],
    new_digester: DigesterFactory,
) -> list[RegularFile | HardLink]:
    """
    Collapse one (dev, inode) group into entries.

    The byte-wise smallest path becomes a RegularFile and is the only member
    read; every other member becomes a HardLink targeting it.

    A group of one is legal: the file's other names live outside the root or
    were filtered out, and it is emitted as a plain RegularFile. Only an empty
    group means the accumulator is broken.
    """
    if not members:
        raise HardLinkInvariantError(f"no hard-link entries for (dev, inode) pair {tuple(key)}")

    # Canonical member is chosen by path so the result never depends on walk order.
    ordered = sorted(members, key=lambda m: path_sort_key(m.path))
    canonical, rest = ordered[0], ordered[1:]

    dgst = hash_path(canonical.abs_path, new_digester)
    out: list[RegularFile | HardLink] = [RegularFile(**canonical.common, digest=[dgst])]
    for link in rest:
        out.append(HardLink(**link.common, target=canonical.path))

    logger.debug("hard-link group %s: canonical=%s links=%s", tuple(key), canonical.path, len(rest))
    return out


def resolve_hardlinks(groups: HardLinkGroups, new_digester: DigesterFactory) -> list[RegularFile | HardLink]:
    resolved: list[RegularFile | HardLink] = []
    for key, members in sorted(groups.items(), key=lambda kv: kv[0]):
        resolved.extend(resolve_group(key, members, new_digester))
    return resolved
