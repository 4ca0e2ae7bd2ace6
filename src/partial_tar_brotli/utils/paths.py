"""Path and filesystem helper functions."""

from __future__ import annotations

import os
from pathlib import Path, PurePath
from uuid import uuid4


def archive_member_name(path: str | os.PathLike[str]) -> str:
    """Return the POSIX member name an input path is stored under.

    The root or drive anchor is dropped, empty and ``.`` components are
    removed and ``..`` pops the previous component without ever climbing
    above the archive root. An empty string means nothing nameable is left.
    """

    pure = PurePath(path)
    parts: list[str] = []
    for index, part in enumerate(pure.parts):
        if index == 0 and pure.anchor and part == pure.anchor:
            continue
        if part == "..":
            if parts:
                parts.pop()
            continue
        if part in ("", "."):
            continue
        parts.append(part)
    return "/".join(parts)


def atomic_temp_path(target_path: Path) -> Path:
    """Create a unique temp path next to the target for atomic replacement."""

    return target_path.parent / f".{target_path.name}.{uuid4().hex}.tmp"


def write_bytes_atomically(data: bytes, output_path: Path) -> Path:
    """Write bytes via a temporary sibling file then os.replace."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = atomic_temp_path(output_path)
    try:
        temp_path.write_bytes(data)
        os.replace(temp_path, output_path)
    finally:
        if temp_path.exists():
            temp_path.unlink()
    return output_path
