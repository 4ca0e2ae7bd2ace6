"""Output archive writer with atomic file replacement."""

from __future__ import annotations

import logging
from pathlib import Path

from partial_tar_brotli.errors import ArchiveWriteError, ConfigError
from partial_tar_brotli.utils.paths import write_bytes_atomically

LOGGER = logging.getLogger(__name__)


def ensure_output_available(output_path: Path, *, overwrite: bool) -> None:
    """Fail early when the output path cannot receive a new archive."""

    if output_path.is_dir():
        raise ConfigError(f"Output path is a directory: {output_path}")
    if output_path.exists() and not overwrite:
        raise ConfigError(f"Output file already exists: {output_path} (use --force to replace it)")


def write_archive(
    archive: bytes,
    output_path: Path,
    *,
    overwrite: bool = False,
    logger: logging.Logger | None = None,
) -> Path:
    """Write archive bytes atomically; a failed write never leaves a partial file behind."""

    effective_logger = logger or LOGGER
    if output_path.exists() and not overwrite:
        raise ArchiveWriteError(f"Output file already exists: {output_path}")
    try:
        write_bytes_atomically(archive, output_path)
    except OSError as exc:
        raise ArchiveWriteError(f"Could not write archive to {output_path}: {exc}") from exc
    effective_logger.info("pack.archive_written path=%s bytes=%s", output_path, len(archive))
    return output_path
