"""Read back archives produced by the packer."""

from __future__ import annotations

import io
import tarfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import brotli

from partial_tar_brotli.errors import ArchiveFormatError
from partial_tar_brotli.pack.manifest import MANIFEST_NAME, parse_manifest


@dataclass(frozen=True, slots=True)
class ArchiveMember:
    """One tar entry of a packed archive."""

    name: str
    size: int
    mode: int


@dataclass(frozen=True, slots=True)
class ArchiveContents:
    """Members of a packed archive and its parsed manifest, if present."""

    members: tuple[ArchiveMember, ...]
    manifest: dict[str, Any] | None

    @property
    def data_members(self) -> tuple[ArchiveMember, ...]:
        return tuple(member for member in self.members if member.name != MANIFEST_NAME)


def read_archive(data: bytes) -> ArchiveContents:
    """Decompress a packed archive and list its members."""

    try:
        raw = brotli.decompress(data)
    except brotli.error as exc:
        raise ArchiveFormatError("Archive is not a valid brotli stream.") from exc

    members: list[ArchiveMember] = []
    manifest: dict[str, Any] | None = None
    try:
        with tarfile.open(fileobj=io.BytesIO(raw), mode="r:") as tar:
            for info in tar:
                members.append(ArchiveMember(name=info.name, size=info.size, mode=info.mode))
                if info.name != MANIFEST_NAME or not info.isfile():
                    continue
                handle = tar.extractfile(info)
                if handle is not None:
                    manifest = parse_manifest(handle.read())
    except tarfile.TarError as exc:
        raise ArchiveFormatError(f"Archive does not contain a valid tar stream: {exc}") from exc
    except ValueError as exc:
        raise ArchiveFormatError(f"Archive manifest is invalid: {exc}") from exc

    return ArchiveContents(members=tuple(members), manifest=manifest)


def read_archive_file(path: Path) -> ArchiveContents:
    """Read and list a packed archive stored on disk."""

    try:
        data = path.read_bytes()
    except OSError as exc:
        raise ArchiveFormatError(f"Could not read archive {path}: {exc}") from exc
    return read_archive(data)
