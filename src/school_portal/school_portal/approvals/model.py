from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional

from ..common.datetime_utils import parse_timestamp
from ..core.enums import BatchKind, BatchStatus

BATCH_COLUMNS = frozenset(
    {
        "id",
        "submitter_id",
        "member_record_ids",
        "status",
        "reviewer_id",
        "reviewer_feedback",
        "submitted_at",
        "reviewed_at",
    }
)


@dataclass(frozen=True)
class Batch:
    """A reviewable group of submitted records sharing one approval decision.

    ``details`` holds the kind-specific columns (course, room, amount, ...).
    """

    id: str
    kind: BatchKind
    submitter_id: str
    member_record_ids: tuple[str, ...]
    status: BatchStatus
    submitted_at: datetime
    reviewer_id: Optional[str] = None
    reviewer_feedback: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    details: Mapping[str, Any] = field(default_factory=dict)

    @property
    def is_pending(self) -> bool:
        return self.status is BatchStatus.PENDING


def batch_from_row(kind: BatchKind, row: dict) -> Batch:
    reviewed_at = row.get("reviewed_at")
    return Batch(
        id=str(row["id"]),
        kind=kind,
        submitter_id=str(row["submitter_id"]),
        member_record_ids=tuple(str(i) for i in (row.get("member_record_ids") or ())),
        status=BatchStatus(row["status"]),
        submitted_at=parse_timestamp(row["submitted_at"]),
        reviewer_id=row.get("reviewer_id"),
        reviewer_feedback=row.get("reviewer_feedback"),
        reviewed_at=parse_timestamp(reviewed_at) if reviewed_at else None,
        details={k: v for k, v in row.items() if k not in BATCH_COLUMNS},
    )


def batch_to_row(batch: Batch) -> dict:
    return {
        **dict(batch.details),
        "id": batch.id,
        "submitter_id": batch.submitter_id,
        "member_record_ids": list(batch.member_record_ids),
        "status": batch.status.value,
        "reviewer_id": batch.reviewer_id,
        "reviewer_feedback": batch.reviewer_feedback,
        "submitted_at": batch.submitted_at,
        "reviewed_at": batch.reviewed_at,
    }
