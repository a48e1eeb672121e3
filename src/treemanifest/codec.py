from __future__ import annotations

import hashlib
import json
import os
from pathlib import Path
from typing import Any

from .models import Manifest

MANIFEST_FORMAT = "treemanifest"
MANIFEST_VERSION = 1


def canonical_json_bytes(obj: object) -> bytes:
    """Sorted keys, no whitespace, raw UTF-8. Equal documents give equal bytes."""
    text = json.dumps(obj, ensure_ascii=False, sort_keys=True, separators=(",", ":"), allow_nan=False)
    # strict: names are escaped (names.escape_name) before they reach a model
    return text.encode("utf-8")


def manifest_document(manifest: Manifest) -> dict[str, Any]:
    return {
        "format": MANIFEST_FORMAT,
        "version": MANIFEST_VERSION,
        "entries": manifest.as_records(),
    }


def manifest_to_bytes(manifest: Manifest) -> bytes:
    return canonical_json_bytes(manifest_document(manifest))


def manifest_from_document(doc: object) -> Manifest:
    if not isinstance(doc, dict):
        raise ValueError("manifest must be an object")
    if doc.get("format") != MANIFEST_FORMAT:
        raise ValueError(f"not a {MANIFEST_FORMAT} document (format={doc.get('format')!r})")
    if doc.get("version") != MANIFEST_VERSION:
        raise ValueError(f"unsupported manifest version: {doc.get('version')!r}")
    entries = doc.get("entries")
    if not isinstance(entries, list):
        raise ValueError("manifest.entries must be a list")
    return Manifest.model_validate({"entries": entries})


def manifest_from_bytes(data: bytes) -> Manifest:
    return manifest_from_document(json.loads(data.decode("utf-8")))


def manifest_sha256(manifest: Manifest) -> str:
    """Content address of the manifest itself."""
    return "sha256:" + hashlib.sha256(manifest_to_bytes(manifest)).hexdigest()


def write_manifest(path: Path, manifest: Manifest) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_bytes(manifest_to_bytes(manifest))
    os.replace(tmp, path)


def read_manifest(path: Path) -> Manifest:
    return manifest_from_bytes(path.read_bytes())
