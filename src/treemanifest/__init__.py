from __future__ import annotations

__version__ = "0.1.0"

from .builder import BuildContext, build_manifest  # noqa: E402
from .config import BuildOptions, SymlinkPolicy  # noqa: E402
from .errors import (  # noqa: E402
    DigestError,
    HardLinkInvariantError,
    IdentityError,
    ManifestBuildError,
    SignatureError,
    SymlinkError,
    TraversalError,
)
from .models import Device, HardLink, Manifest, NamedPipe, RegularFile, Symlink  # noqa: E402

__all__ = [
    "__version__",
    "BuildContext",
    "BuildOptions",
    "Device",
    "DigestError",
    "HardLink",
    "HardLinkInvariantError",
    "IdentityError",
    "Manifest",
    "ManifestBuildError",
    "SignatureError",
    "NamedPipe",
    "RegularFile",
    "Symlink",
    "SymlinkError",
    "SymlinkPolicy",
    "TraversalError",
    "build_manifest",
]
