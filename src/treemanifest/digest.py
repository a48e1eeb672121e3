from __future__ import annotations

import hashlib
import os
from collections.abc import Callable
from pathlib import Path
from typing import Protocol

from .errors import DigestError

CHUNK_SIZE = 1024 * 1024


class Digester(Protocol):
    def write(self, data: bytes) -> None: ...

    def finalize(self) -> str: ...


DigesterFactory = Callable[[], Digester]


class HashlibDigester:
    """Streaming hash yielding an algorithm-tagged digest, e.g. ``sha256:<hex>``."""

    def __init__(self, algorithm: str = "sha256") -> None:
        self.algorithm = algorithm
        self._h = hashlib.new(algorithm)

    def write(self, data: bytes) -> None:
        self._h.update(data)

    def finalize(self) -> str:
        return f"{self.algorithm}:{self._h.hexdigest()}"


def digester_factory(algorithm: str = "sha256") -> DigesterFactory:
    algorithm = (algorithm or "").strip().lower()
    if algorithm not in hashlib.algorithms_available:
        raise ValueError(f"unsupported digest algorithm: {algorithm!r}")
    # shake_* need an explicit length and cannot produce a plain hexdigest()
    if algorithm.startswith("shake_"):
        raise ValueError(f"variable-length digest not supported: {algorithm!r}")

    def _new() -> Digester:
        return HashlibDigester(algorithm)

    return _new


def hash_path(path: str | Path, new_digester: DigesterFactory) -> str:
    digester = new_digester()
    try:
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
                digester.write(chunk)
    except OSError as e:
        raise DigestError(f"failed to digest {path}: {e}") from e
    return digester.finalize()


def split_device(rdev: int) -> tuple[int, int]:
    """Decompose a raw device number into (major, minor) with the platform encoding."""
    return int(os.major(rdev)), int(os.minor(rdev))
