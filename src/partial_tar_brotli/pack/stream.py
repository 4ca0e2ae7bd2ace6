"""Tar entries written through a streaming brotli compressor."""

from __future__ import annotations

import io
import tarfile

import brotli

from partial_tar_brotli.config import BrotliConfig

# Fixed header fields keep identical inputs byte-identical across runs.
DETERMINISTIC_MTIME = 1153704088
REGULAR_FILE_MODE = 0o644
EXECUTABLE_FILE_MODE = 0o755

_BROTLI_MODES = {
    "generic": brotli.MODE_GENERIC,
    "text": brotli.MODE_TEXT,
    "font": brotli.MODE_FONT,
}


def new_compressor(config: BrotliConfig) -> brotli.Compressor:
    """Create a brotli compressor from encoder settings."""

    return brotli.Compressor(
        mode=_BROTLI_MODES[config.mode],
        quality=config.quality,
        lgwin=config.lgwin,
        lgblock=config.lgblock,
    )


class _CompressorSink:
    """Write-only file object that feeds everything into a brotli compressor.

    ``tell`` reports the uncompressed offset, which is what ``tarfile``
    expects from the file object it writes to.
    """

    def __init__(self, compressor: brotli.Compressor) -> None:
        self._compressor = compressor
        self._buffer = bytearray()
        self._raw_offset = 0

    def write(self, data: bytes) -> int:
        self._raw_offset += len(data)
        self._buffer += self._compressor.process(bytes(data))
        return len(data)

    def tell(self) -> int:
        return self._raw_offset

    def flush(self) -> None:
        self._buffer += self._compressor.flush()

    def finish(self) -> None:
        self._buffer += self._compressor.finish()

    @property
    def compressed_size(self) -> int:
        return len(self._buffer)

    def getvalue(self) -> bytes:
        return bytes(self._buffer)


class BrotliTarStream:
    """A GNU tar archive compressed on the fly into an in-memory brotli stream.

    Every ``append`` ends with a compressor flush, so ``size`` is the exact
    number of bytes emitted so far rather than an estimate of buffered output.
    The stream cannot be rewound; callers that need to undo an entry build a
    new stream and replay the entries they want to keep.
    """

    def __init__(self, config: BrotliConfig | None = None) -> None:
        self._sink = _CompressorSink(new_compressor(config or BrotliConfig()))
        self._tar = tarfile.TarFile(fileobj=self._sink, mode="w", format=tarfile.GNU_FORMAT)
        self._finished = False

    @property
    def size(self) -> int:
        """Compressed bytes emitted so far."""

        return self._sink.compressed_size

    @property
    def raw_size(self) -> int:
        """Uncompressed tar bytes written so far."""

        return self._sink.tell()

    def append(self, name: str, data: bytes, *, mode: int = REGULAR_FILE_MODE) -> int:
        """Add one regular-file entry, flush, and return the compressed size."""

        if self._finished:
            raise ValueError("cannot append to a finished archive stream")
        info = tarfile.TarInfo(name=name)
        info.size = len(data)
        info.mode = mode
        info.mtime = DETERMINISTIC_MTIME
        info.uid = 0
        info.gid = 0
        info.uname = ""
        info.gname = ""
        self._tar.addfile(info, io.BytesIO(data))
        self._sink.flush()
        return self._sink.compressed_size

    def finish(self) -> bytes:
        """Write the end-of-archive marker, close the brotli stream, return all bytes."""

        if not self._finished:
            self._tar.close()
            self._sink.finish()
            self._finished = True
        return self._sink.getvalue()

    def getvalue(self) -> bytes:
        """Compressed bytes emitted so far."""

        return self._sink.getvalue()
