from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .names import unescape_name


def path_sort_key(path: str) -> bytes:
    """Byte-wise ordering key: the original name bytes, not the escaped text."""
    return unescape_name(path)


def check_relative_path(path: str) -> str:
    if not path:
        raise ValueError("path must not be empty")
    if path.startswith("/"):
        raise ValueError(f"path must be root-relative: {path!r}")
    for part in path.split("/"):
        if part in ("", ".", ".."):
            raise ValueError(f"path is not normalized: {path!r}")
    unescape_name(path)  # rejects malformed escapes
    return path


class _EntryBase(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    path: str
    mode: int = Field(ge=0)
    uid: int = Field(ge=0)
    gid: int = Field(ge=0)
    user: str
    group: str

    @field_validator("path")
    @classmethod
    def _normalized_path(cls, v: str) -> str:
        return check_relative_path(v)

    def as_record(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class RegularFile(_EntryBase):
    kind: Literal["file"] = "file"
    digest: list[str] = Field(min_length=1)


class HardLink(_EntryBase):
    """Non-canonical member of a hard-link group; target is the canonical entry's path."""

    kind: Literal["hardlink"] = "hardlink"
    target: str

    @field_validator("target")
    @classmethod
    def _normalized_target(cls, v: str) -> str:
        return check_relative_path(v)


class Symlink(_EntryBase):
    kind: Literal["symlink"] = "symlink"
    target: str = Field(min_length=1)

    @field_validator("target")
    @classmethod
    def _escaped_target(cls, v: str) -> str:
        unescape_name(v)
        return v


class NamedPipe(_EntryBase):
    kind: Literal["pipe"] = "pipe"


class Device(_EntryBase):
    kind: Literal["device"] = "device"
    major: int = Field(ge=0)
    minor: int = Field(ge=0)


Entry = Annotated[
    Union[RegularFile, HardLink, Symlink, NamedPipe, Device],
    Field(discriminator="kind"),
]


class Manifest(BaseModel):
    """
    Ordered, immutable description of a directory tree.

    Entries are sorted byte-wise by path and paths are pairwise distinct.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    entries: tuple[Entry, ...] = ()

    @model_validator(mode="after")
    def _sorted_unique(self) -> "Manifest":
        prev: bytes | None = None
        for e in self.entries:
            key = path_sort_key(e.path)
            if prev is not None:
                if key == prev:
                    raise ValueError(f"duplicate manifest path: {e.path!r}")
                if key < prev:
                    raise ValueError(f"manifest entries out of order at {e.path!r}")
            prev = key
        return self

    def __len__(self) -> int:
        return len(self.entries)

    def paths(self) -> list[str]:
        return [e.path for e in self.entries]

    def get(self, path: str) -> Entry | None:
        for e in self.entries:
            if e.path == path:
                return e
        return None

    def as_records(self) -> list[dict[str, Any]]:
        return [e.as_record() for e in self.entries]
