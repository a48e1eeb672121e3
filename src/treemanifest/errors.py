from __future__ import annotations


class ManifestBuildError(Exception):
    """
    Environment failure while building a manifest.

    Any of these aborts the whole build; no partial manifest is returned.
    """


class TraversalError(ManifestBuildError):
    pass


class IdentityError(ManifestBuildError):
    pass


class DigestError(ManifestBuildError):
    pass


class SymlinkError(ManifestBuildError):
    pass


class HardLinkInvariantError(RuntimeError):
    """
    Internal consistency failure in hard-link accumulation.

    Deliberately not a ManifestBuildError: it signals a bug, not a bad tree.
    """


class SignatureError(Exception):
    """A detached signature does not match the manifest or the key it is checked against."""
