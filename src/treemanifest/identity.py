from __future__ import annotations

import grp
import logging
import pwd
from collections.abc import Callable, Mapping

from .errors import IdentityError

logger = logging.getLogger(__name__)


def _system_user_name(uid: int) -> str:
    return pwd.getpwuid(uid).pw_name


def load_group_index() -> dict[int, str]:
    """
    Snapshot the group database as gid -> name.

    Built once per build so classification never hits the group database.
    When a gid appears more than once the first entry wins, like getgrgid(3).
    """
    index: dict[int, str] = {}
    try:
        groups = grp.getgrall()
    except OSError as e:
        raise IdentityError(f"cannot read group database: {e}") from e
    for g in groups:
        index.setdefault(int(g.gr_gid), g.gr_name)
    logger.debug("group index loaded: %s groups", len(index))
    return index


class IdentityResolver:
    def __init__(
        self,
        group_index: Mapping[int, str],
        user_lookup: Callable[[int], str] = _system_user_name,
    ) -> None:
        self._groups = dict(group_index)
        self._user_lookup = user_lookup

    @classmethod
    def from_system(cls) -> "IdentityResolver":
        return cls(load_group_index())

    def user_name(self, uid: int) -> str:
        try:
            return self._user_lookup(int(uid))
        except KeyError as e:
            raise IdentityError(f"unknown uid: {uid}") from e

    def group_name(self, gid: int) -> str:
        try:
            return self._groups[int(gid)]
        except KeyError as e:
            raise IdentityError(f"unknown gid: {gid}") from e
