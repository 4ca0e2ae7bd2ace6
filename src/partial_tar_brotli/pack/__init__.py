"""Archive packing: stream, packer, manifest, report and reader."""

from partial_tar_brotli.pack.manifest import (
    DOES_NOT_FIT,
    MANIFEST_NAME,
    NOT_ATTEMPTED,
    RESERVED_NAME,
    UNREADABLE,
    FileOutcome,
    build_manifest,
    parse_manifest,
    serialize_manifest,
)
from partial_tar_brotli.pack.pipeline import (
    ArchivePacker,
    PackOptions,
    PackReport,
    PackRunResult,
    pack,
    resolve_pack_options,
    run_pack,
)
from partial_tar_brotli.pack.reader import ArchiveContents, ArchiveMember, read_archive, read_archive_file
from partial_tar_brotli.pack.report import report_lines, summary_line
from partial_tar_brotli.pack.stream import BrotliTarStream
from partial_tar_brotli.pack.writer import ensure_output_available, write_archive

__all__ = [
    "DOES_NOT_FIT",
    "MANIFEST_NAME",
    "NOT_ATTEMPTED",
    "RESERVED_NAME",
    "UNREADABLE",
    "FileOutcome",
    "build_manifest",
    "parse_manifest",
    "serialize_manifest",
    "ArchivePacker",
    "PackOptions",
    "PackReport",
    "PackRunResult",
    "pack",
    "resolve_pack_options",
    "run_pack",
    "ArchiveContents",
    "ArchiveMember",
    "read_archive",
    "read_archive_file",
    "report_lines",
    "summary_line",
    "BrotliTarStream",
    "ensure_output_available",
    "write_archive",
]
