"""Shared utility helpers."""

from partial_tar_brotli.utils.paths import archive_member_name, atomic_temp_path, write_bytes_atomically

__all__ = [
    "archive_member_name",
    "atomic_temp_path",
    "write_bytes_atomically",
]
