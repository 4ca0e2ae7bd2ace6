"""Pack a size-limited prefix of a file list into a brotli-compressed tar."""

from __future__ import annotations

__version__ = "0.1.0"
