"""Greedy prefix-fit packing of candidate files into a size-limited archive."""

from __future__ import annotations

import logging
import os
import stat
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Sequence

from partial_tar_brotli.config import AppSettings, BrotliConfig
from partial_tar_brotli.errors import ConfigError, InputChangedError
from partial_tar_brotli.pack.manifest import (
    DOES_NOT_FIT,
    MANIFEST_NAME,
    NOT_ATTEMPTED,
    RESERVED_NAME,
    UNREADABLE,
    FileOutcome,
    build_manifest,
    included_outcome,
    serialize_manifest,
    skipped_outcome,
)
from partial_tar_brotli.pack.stream import EXECUTABLE_FILE_MODE, REGULAR_FILE_MODE, BrotliTarStream
from partial_tar_brotli.pack.writer import ensure_output_available, write_archive
from partial_tar_brotli.utils.paths import archive_member_name

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PackOptions:
    """Runtime options for one packing run."""

    stop_on_first_skip: bool = False
    reserve_bytes: int = 0
    brotli: BrotliConfig = field(default_factory=BrotliConfig)


@dataclass(frozen=True, slots=True)
class PackReport:
    """Outcome of a packing run."""

    max_size: int
    archive_size: int
    outcomes: tuple[FileOutcome, ...]
    over_budget: bool = False

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def included(self) -> tuple[FileOutcome, ...]:
        return tuple(outcome for outcome in self.outcomes if outcome.included)

    @property
    def skipped(self) -> tuple[FileOutcome, ...]:
        return tuple(outcome for outcome in self.outcomes if not outcome.included)

    @property
    def included_count(self) -> int:
        return len(self.included)

    @property
    def skipped_count(self) -> int:
        return self.total - self.included_count

    @property
    def first_skipped(self) -> FileOutcome | None:
        skipped = self.skipped
        return skipped[0] if skipped else None

    def as_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly summary of the run."""

        first = self.first_skipped
        return {
            "max_size": self.max_size,
            "archive_size": self.archive_size,
            "total": self.total,
            "included": self.included_count,
            "skipped": self.skipped_count,
            "over_budget": self.over_budget,
            "first_skipped": None
            if first is None
            else {"path": first.path, "reason": first.reason, "archive_size": first.archive_size},
        }


@dataclass(frozen=True, slots=True)
class PackRunResult:
    """Return object for a packing run that wrote its archive to disk."""

    output_path: Path
    report: PackReport


@dataclass(frozen=True, slots=True)
class _Checkpoint:
    """A committed entry and the flushed stream size right after it."""

    index: int
    path: str
    name: str
    size: int


def read_candidate(path: Path) -> tuple[bytes, int]:
    """Read a whole input file and derive its tar mode from the owner execute bit."""

    with path.open("rb") as handle:
        data = handle.read()
        st_mode = os.fstat(handle.fileno()).st_mode
    mode = EXECUTABLE_FILE_MODE if st_mode & stat.S_IXUSR else REGULAR_FILE_MODE
    return data, mode


class ArchivePacker:
    """Stateful greedy packer for a single run.

    Candidates are offered one at a time through ``add``. A candidate is
    appended and measured with a compressor flush; if the archive would exceed
    the budget the stream is rebuilt from the committed entries so the
    rejected bytes never reach the output, and later candidates are still
    tried. ``finish`` appends the manifest and closes the stream.
    """

    def __init__(
        self,
        max_size: int,
        *,
        options: PackOptions | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._max_size = max_size
        self._options = options or PackOptions()
        self._logger = logger or LOGGER
        self._stream = BrotliTarStream(self._options.brotli)
        self._checkpoints: list[_Checkpoint] = []
        self._outcomes: list[FileOutcome] = []
        self._names_seen: set[str] = set()
        self._stopped = False
        self._finished = False

    @property
    def committed_size(self) -> int:
        """Compressed size of the committed entries."""

        return self._stream.size

    @property
    def outcomes(self) -> tuple[FileOutcome, ...]:
        return tuple(self._outcomes)

    def add(self, candidate: str) -> FileOutcome:
        """Decide whether one candidate goes into the archive and record the outcome."""

        if self._finished:
            raise RuntimeError("packer already finished")
        outcome = self._decide(candidate)
        self._outcomes.append(outcome)
        return outcome

    def _decide(self, candidate: str) -> FileOutcome:
        name = archive_member_name(candidate)
        if self._stopped:
            return skipped_outcome(candidate, name, NOT_ATTEMPTED)
        if name == MANIFEST_NAME:
            self._logger.warning("pack.reserved_name path=%s", candidate)
            return skipped_outcome(candidate, name, RESERVED_NAME)
        if not name:
            self._logger.warning("pack.empty_member_name path=%s", candidate)
            return skipped_outcome(candidate, name, UNREADABLE, detail="path has no archive member name")

        try:
            data, mode = read_candidate(Path(candidate))
        except OSError as exc:
            self._logger.warning("pack.read_failed path=%s error=%s", candidate, exc)
            return skipped_outcome(candidate, name, UNREADABLE, detail=exc.strerror or str(exc))

        before = self._stream.size
        size = self._stream.append(name, data, mode=mode)
        projected = size + self._options.reserve_bytes
        if projected > self._max_size:
            self._logger.info(
                "pack.does_not_fit path=%s projected_size=%s max_size=%s",
                candidate,
                projected,
                self._max_size,
            )
            self._replay(len(self._checkpoints))
            if self._options.stop_on_first_skip:
                self._stopped = True
            return skipped_outcome(candidate, name, DOES_NOT_FIT, archive_size=projected)

        if name in self._names_seen:
            self._logger.warning("pack.duplicate_member_name name=%s path=%s", name, candidate)
        self._names_seen.add(name)
        self._checkpoints.append(_Checkpoint(index=len(self._outcomes), path=candidate, name=name, size=size))
        self._logger.debug("pack.included path=%s added_bytes=%s archive_size=%s", candidate, size - before, size)
        return included_outcome(candidate, name, archive_size=size, added_bytes=size - before)

    def _replay(self, keep: int) -> None:
        """Rebuild the stream from the first ``keep`` committed entries."""

        previous = self._stream.getvalue()
        stream = BrotliTarStream(self._options.brotli)
        for checkpoint in self._checkpoints[:keep]:
            try:
                data, mode = read_candidate(Path(checkpoint.path))
            except OSError as exc:
                raise InputChangedError(f"{checkpoint.path} could not be read again: {exc}") from exc
            if stream.append(checkpoint.name, data, mode=mode) != checkpoint.size:
                raise InputChangedError(f"{checkpoint.path} changed while the archive was being built")
        # Same encoder calls in the same order must reproduce the committed bytes.
        if stream.getvalue() != previous[: stream.size]:
            raise InputChangedError("committed files changed while the archive was being built")

        del self._checkpoints[keep:]
        self._stream = stream
        self._logger.debug("pack.replayed entries=%s archive_size=%s", keep, stream.size)

    def finish(self) -> tuple[bytes, PackReport]:
        """Append the manifest, close the stream and return the archive with its report.

        If the manifest pushes the archive over budget, the last committed
        file is dropped and the archive is rebuilt until it fits or no data
        files are left.
        """

        if self._finished:
            raise RuntimeError("packer already finished")
        self._finished = True

        while True:
            manifest = build_manifest(self._outcomes, max_size=self._max_size)
            self._stream.append(MANIFEST_NAME, serialize_manifest(manifest))
            archive = self._stream.finish()
            if len(archive) <= self._max_size or not self._checkpoints:
                break
            dropped = self._checkpoints[-1]
            self._logger.info(
                "pack.manifest_overflow dropping=%s archive_size=%s max_size=%s",
                dropped.path,
                len(archive),
                self._max_size,
            )
            self._outcomes[dropped.index] = skipped_outcome(
                dropped.path,
                dropped.name,
                DOES_NOT_FIT,
                archive_size=len(archive),
            )
            self._replay(len(self._checkpoints) - 1)

        over_budget = len(archive) > self._max_size
        if over_budget:
            self._logger.warning(
                "pack.budget_too_small max_size=%s manifest_only_size=%s",
                self._max_size,
                len(archive),
            )
        report = PackReport(
            max_size=self._max_size,
            archive_size=len(archive),
            outcomes=tuple(self._outcomes),
            over_budget=over_budget,
        )
        return archive, report


def pack(
    candidates: Sequence[str | os.PathLike[str]],
    max_size: int,
    *,
    options: PackOptions | None = None,
    logger: logging.Logger | None = None,
) -> tuple[bytes, PackReport]:
    """Pack the candidates that fit in ``max_size`` bytes, in input order.

    Returns the brotli-compressed tar archive and the run report. Per-file
    read failures and files that do not fit are recorded as skips; only
    invalid arguments raise (``ConfigError``).
    """

    effective_logger = logger or LOGGER
    effective_options = options or PackOptions()
    paths = [os.fspath(candidate) for candidate in candidates]
    if not paths:
        raise ConfigError("At least one input file is required.")
    if isinstance(max_size, bool) or not isinstance(max_size, int) or max_size <= 0:
        raise ConfigError(f"max-size must be a positive integer, got {max_size!r}.")
    if effective_options.reserve_bytes < 0:
        raise ConfigError("reserve-bytes must not be negative.")

    started = time.perf_counter()
    effective_logger.info("pack.start candidates=%s max_size=%s", len(paths), max_size)
    packer = ArchivePacker(max_size, options=effective_options, logger=effective_logger)
    for path in paths:
        packer.add(path)
    archive, report = packer.finish()
    effective_logger.info(
        "pack.done included=%s skipped=%s archive_size=%s elapsed_s=%.3f",
        report.included_count,
        report.skipped_count,
        report.archive_size,
        time.perf_counter() - started,
    )
    return archive, report


def resolve_pack_options(
    settings: AppSettings,
    *,
    max_size: int | None = None,
    stop_on_first_skip: bool | None = None,
    reserve_bytes: int | None = None,
) -> tuple[int, PackOptions]:
    """Merge explicit overrides with settings into the budget and run options."""

    effective_max_size = max_size if max_size is not None else settings.pack.max_size
    if effective_max_size is None:
        raise ConfigError("--max-size is required (or set pack.max_size in the settings file).")
    if effective_max_size <= 0:
        raise ConfigError(f"--max-size must be a positive number of bytes, got {effective_max_size}.")

    effective_reserve = reserve_bytes if reserve_bytes is not None else settings.pack.reserve_bytes
    if effective_reserve < 0:
        raise ConfigError("--reserve-bytes must not be negative.")

    options = PackOptions(
        stop_on_first_skip=(
            stop_on_first_skip if stop_on_first_skip is not None else settings.pack.stop_on_first_skip
        ),
        reserve_bytes=effective_reserve,
        brotli=settings.brotli,
    )
    return effective_max_size, options


def run_pack(
    candidates: Sequence[str | os.PathLike[str]],
    *,
    output_path: Path,
    max_size: int,
    options: PackOptions | None = None,
    overwrite: bool = False,
    logger: logging.Logger | None = None,
) -> PackRunResult:
    """Pack candidates and write the archive atomically to ``output_path``."""

    effective_logger = logger or LOGGER
    if not candidates:
        raise ConfigError("At least one input file is required.")
    ensure_output_available(output_path, overwrite=overwrite)
    archive, report = pack(candidates, max_size, options=options, logger=effective_logger)
    write_archive(archive, output_path, overwrite=overwrite, logger=effective_logger)
    return PackRunResult(output_path=output_path, report=report)
