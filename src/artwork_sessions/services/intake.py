"""File intake validation for upload batches."""

from collections.abc import Iterable

from artwork_sessions.domain.uploads import CandidateFile, FileRejection, IntakeResult

ALLOWED_CONTENT_TYPES = frozenset(
    {"image/jpeg", "image/png", "image/webp", "image/gif"}
)
DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024

REASON_INVALID_TYPE = "invalid file type"
REASON_TOO_LARGE = "file too large"
REASON_DUPLICATE = "duplicate file"


def validate_files(
    candidates: Iterable[CandidateFile],
    existing_filenames: Iterable[str],
    *,
    max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
    allowed_content_types: frozenset[str] = ALLOWED_CONTENT_TYPES,
) -> IntakeResult:
    """Partition candidates into accepted and rejected files.

    Rules are checked in order (type, size, duplicate) and the first failing
    rule gives the rejection reason. Every rejection is reported.
    """
    existing = set(existing_filenames)
    accepted: list[CandidateFile] = []
    rejected: list[FileRejection] = []
    for candidate in candidates:
        reason = _rejection_reason(
            candidate, existing, max_bytes, allowed_content_types
        )
        if reason is None:
            accepted.append(candidate)
        else:
            rejected.append(FileRejection(file=candidate, reason=reason))
    return IntakeResult(accepted=accepted, rejected=rejected)


def _rejection_reason(
    candidate: CandidateFile,
    existing: set[str],
    max_bytes: int,
    allowed_content_types: frozenset[str],
) -> str | None:
    if candidate.content_type.strip().lower() not in allowed_content_types:
        return REASON_INVALID_TYPE
    if candidate.size > max_bytes:
        return REASON_TOO_LARGE
    if candidate.filename in existing:
        return REASON_DUPLICATE
    return None
