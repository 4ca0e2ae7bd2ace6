"""Human-readable lines describing a packing run."""

from __future__ import annotations

from partial_tar_brotli.pack.manifest import DOES_NOT_FIT, NOT_ATTEMPTED, RESERVED_NAME, UNREADABLE, FileOutcome
from partial_tar_brotli.pack.pipeline import PackReport


def skip_line(outcome: FileOutcome) -> str | None:
    """Return the stdout line for a skipped file, or None when it is only counted."""

    if outcome.reason == DOES_NOT_FIT:
        return f"{outcome.path} does not fit. Archive would be {outcome.archive_size} bytes."
    if outcome.reason == UNREADABLE:
        return f"{outcome.path} could not be read: {outcome.detail}"
    if outcome.reason == RESERVED_NAME:
        return f"{outcome.path} skipped: name is reserved for the manifest"
    if outcome.reason == NOT_ATTEMPTED:
        return None
    return f"{outcome.path} skipped: {outcome.reason}"


def included_line(outcome: FileOutcome) -> str:
    return f"{outcome.path} (used {outcome.added_bytes} bytes)"


def summary_line(report: PackReport) -> str:
    if report.skipped_count == 0:
        return f"Done! All {report.total} files added to archive."
    return f"Done! {report.included_count} out of {report.total} files added ({report.skipped_count} skipped)"


def report_lines(report: PackReport, *, verbose: bool = False) -> list[str]:
    """Render per-file lines in input order followed by the summary."""

    lines: list[str] = []
    for outcome in report.outcomes:
        if outcome.included:
            if verbose:
                lines.append(included_line(outcome))
            continue
        line = skip_line(outcome)
        if line is not None:
            lines.append(line)
    if report.over_budget:
        lines.append(
            f"Warning: budget of {report.max_size} bytes is too small; "
            f"archive holds only the manifest ({report.archive_size} bytes)."
        )
    lines.append(summary_line(report))
    return lines
