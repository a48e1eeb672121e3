from __future__ import annotations

import os
import re

_HEX_ESCAPE = re.compile(r"\\x[0-9a-f]{2}")


def escape_name(name: str | bytes) -> str:
    """
    Filesystem name (any bytes) -> manifest text.

    Valid UTF-8 passes through unchanged except for the backslash, which is
    doubled. Every byte that is not part of a valid UTF-8 sequence is written
    as ``\\xNN`` (lowercase hex). ``unescape_name`` is the exact inverse.

    ``str`` input is taken to be an ``os.fsdecode`` result (surrogate-escaped
    undecodable bytes), i.e. what ``os.walk``/``os.readlink`` return.
    """
    raw = name if isinstance(name, bytes) else os.fsencode(name)
    text = raw.decode("utf-8", "surrogateescape")

    out: list[str] = []
    for ch in text:
        if ch == "\\":
            out.append("\\\\")
        elif "\udc80" <= ch <= "\udcff":
            out.append(f"\\x{ord(ch) - 0xDC00:02x}")
        else:
            out.append(ch)
    return "".join(out)


def unescape_name(text: str) -> bytes:
    """Manifest text -> original name bytes. Malformed escapes raise ValueError."""
    out = bytearray()
    i, n = 0, len(text)
    while i < n:
        j = text.find("\\", i)
        if j < 0:
            out += text[i:].encode("utf-8")
            break
        out += text[i:j].encode("utf-8")
        if text.startswith("\\\\", j):
            out += b"\\"
            i = j + 2
        elif _HEX_ESCAPE.match(text, j):
            out.append(int(text[j + 2 : j + 4], 16))
            i = j + 4
        else:
            raise ValueError(f"malformed escape at offset {j} in {text!r}")
    return bytes(out)
