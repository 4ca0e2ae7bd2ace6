"""Exception types raised by partial_tar_brotli."""

from __future__ import annotations


class PackError(Exception):
    """Base class for all packing failures reported to the user."""


class ConfigError(PackError):
    """Invalid or missing configuration; raised before any output is written."""


class ArchiveWriteError(PackError):
    """The output archive could not be written."""


class InputChangedError(PackError):
    """A committed input file changed while the archive was being built."""


class ArchiveFormatError(PackError):
    """Data is not a brotli-compressed tar archive."""
