from __future__ import annotations

import os
from dataclasses import dataclass, replace as dc_replace
from enum import Enum

DEFAULT_DIGEST = "sha256"


class SymlinkPolicy(str, Enum):
    """What to do with a relative symlink whose target climbs out of the root."""

    KEEP = "keep"
    WARN = "warn"
    REJECT = "reject"

    @classmethod
    def parse(cls, value: str) -> "SymlinkPolicy":
        v = (value or "").strip().lower()
        try:
            return cls(v)
        except ValueError:
            choices = ", ".join(p.value for p in cls)
            raise ValueError(f"unknown symlink policy {value!r} (expected one of: {choices})") from None


@dataclass(frozen=True)
class BuildOptions:
    """
    Knobs for a single manifest build.

    Environment overrides (optional):
    - TREEMANIFEST_DIGEST
    - TREEMANIFEST_SYMLINK_POLICY
    """

    digest_algorithm: str = DEFAULT_DIGEST
    symlink_policy: SymlinkPolicy = SymlinkPolicy.KEEP

    @classmethod
    def from_env(cls) -> "BuildOptions":
        opts = cls()

        digest_env = (os.environ.get("TREEMANIFEST_DIGEST") or "").strip().lower()
        if digest_env:
            opts = dc_replace(opts, digest_algorithm=digest_env)

        policy_env = os.environ.get("TREEMANIFEST_SYMLINK_POLICY")
        if policy_env:
            opts = dc_replace(opts, symlink_policy=SymlinkPolicy.parse(policy_env))

        return opts

    def with_overrides(
        self,
        *,
        digest_algorithm: str | None = None,
        symlink_policy: str | SymlinkPolicy | None = None,
    ) -> "BuildOptions":
        opts = self
        if digest_algorithm:
            opts = dc_replace(opts, digest_algorithm=digest_algorithm.strip().lower())
        if symlink_policy is not None:
            if not isinstance(symlink_policy, SymlinkPolicy):
                symlink_policy = SymlinkPolicy.parse(symlink_policy)
            opts = dc_replace(opts, symlink_policy=symlink_policy)
        return opts
