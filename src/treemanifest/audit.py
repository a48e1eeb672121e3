from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from . import __version__

BUILD_EVENT = "manifest_built"


@dataclass(frozen=True)
class BuildRecord:
    """One line of the build audit trail."""

    root: str
    manifest_digest: str
    entries: int
    digest_algorithm: str
    symlink_policy: str
    output: str | None = None
    signed: bool = False
    event_type: str = BUILD_EVENT
    timestamp_utc: str = field(default_factory=lambda: utc_now_iso())
    app_version: str = __version__


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def append_jsonl(path: Path, obj: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8", newline="\n") as f:
        f.write(json.dumps(obj, ensure_ascii=False, sort_keys=True) + "\n")


def record_build(audit_log_path: Path, record: BuildRecord) -> None:
    append_jsonl(audit_log_path, asdict(record))


def read_build_records(audit_log_path: Path) -> list[dict[str, Any]]:
    if not audit_log_path.exists():
        return []
    out: list[dict[str, Any]] = []
    for line in audit_log_path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if line:
            out.append(json.loads(line))
    return out
