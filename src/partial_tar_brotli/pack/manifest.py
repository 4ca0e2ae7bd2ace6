"""Per-file packing outcomes and the manifest embedded in every archive."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Literal, Sequence

MANIFEST_NAME = "partial-tar-brotli-manifest.json"
MANIFEST_FORMAT_VERSION = 1

FileStatus = Literal["included", "skipped"]
SkipReason = Literal["does not fit", "could not read file", "not attempted", "reserved name"]

DOES_NOT_FIT: SkipReason = "does not fit"
UNREADABLE: SkipReason = "could not read file"
NOT_ATTEMPTED: SkipReason = "not attempted"
RESERVED_NAME: SkipReason = "reserved name"


@dataclass(frozen=True, slots=True)
class FileOutcome:
    """Decision recorded for one candidate, in input order.

    ``archive_size`` is the compressed archive size measured when the decision
    was made: the size after adding the file when included, the size the
    archive would have reached when it did not fit, and None otherwise.
    """

    path: str
    name: str
    status: FileStatus
    reason: SkipReason | None = None
    detail: str | None = None
    archive_size: int | None = None
    added_bytes: int | None = None

    @property
    def included(self) -> bool:
        return self.status == "included"


def included_outcome(path: str, name: str, *, archive_size: int, added_bytes: int) -> FileOutcome:
    return FileOutcome(path=path, name=name, status="included", archive_size=archive_size, added_bytes=added_bytes)


def skipped_outcome(
    path: str,
    name: str,
    reason: SkipReason,
    *,
    detail: str | None = None,
    archive_size: int | None = None,
) -> FileOutcome:
    return FileOutcome(
        path=path,
        name=name,
        status="skipped",
        reason=reason,
        detail=detail,
        archive_size=archive_size,
    )


def build_manifest(outcomes: Sequence[FileOutcome], *, max_size: int) -> dict[str, Any]:
    """Build the manifest payload from final outcomes."""

    skipped: list[dict[str, str]] = []
    for outcome in outcomes:
        if outcome.included:
            continue
        entry = {"path": outcome.path, "reason": str(outcome.reason)}
        if outcome.detail is not None:
            entry["detail"] = outcome.detail
        skipped.append(entry)

    return {
        "format_version": MANIFEST_FORMAT_VERSION,
        "max_size": max_size,
        "total": len(outcomes),
        "included": [outcome.path for outcome in outcomes if outcome.included],
        "skipped": skipped,
    }


def serialize_manifest(manifest: dict[str, Any]) -> bytes:
    """Render a manifest payload as UTF-8 JSON bytes."""

    return (json.dumps(manifest, indent=2) + "\n").encode("utf-8")


def parse_manifest(data: bytes) -> dict[str, Any]:
    """Parse manifest bytes and check the fields every manifest carries."""

    payload = json.loads(data.decode("utf-8"))
    if not isinstance(payload, dict):
        raise ValueError("manifest must be a JSON object")
    missing = {"max_size", "included", "skipped"}.difference(payload)
    if missing:
        raise ValueError(f"manifest missing fields: {', '.join(sorted(missing))}")
    return payload
