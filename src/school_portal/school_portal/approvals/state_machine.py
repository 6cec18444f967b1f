from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Mapping, Optional

from ..common.context import RequestContext, can_review
from ..common.datetime_utils import now_utc
from ..common.validators import optional_text, parse_enum
from ..core.enums import BatchKind, BatchStatus, Severity
from ..core.exceptions import AuthorizationError, InvalidStateError, NotFoundError, ValidationError
from ..notifications.notifier import Notifier
from ..store.repository import RecordStore
from .model import Batch, batch_from_row
from .policies import policy_for
from .side_effects import SideEffect, default_side_effects

logger = logging.getLogger(__name__)

_LABELS = {
    BatchKind.ATTENDANCE: "attendance submission",
    BatchKind.ENROLLMENT: "enrollment request",
    BatchKind.ROOM_BOOKING: "hostel booking",
    BatchKind.FEE_PAYMENT: "fee payment",
}

REVIEW_DECISIONS = frozenset({BatchStatus.APPROVED, BatchStatus.REJECTED})


class ReviewStateMachine:
    """pending -> approved | rejected (reviewer), pending -> cancelled (submitter, bookings only).

    Every transition is a compare-and-swap on ``status``; approval runs the
    kind's side effect in the same store transaction.
    """

    def __init__(
        self,
        store: RecordStore,
        notifier: Notifier,
        *,
        side_effects: Optional[Mapping[BatchKind, SideEffect]] = None,
        clock: Callable = now_utc,
    ):
        self._store = store
        self._notifier = notifier
        self._side_effects = dict(side_effects or default_side_effects())
        self._clock = clock

    def get(self, kind: BatchKind, batch_id: str) -> Batch:
        row = self._store.get(BatchKind(kind).value, str(batch_id))
        if not row:
            raise NotFoundError(f"{_LABELS[BatchKind(kind)].capitalize()} {batch_id} not found")
        return batch_from_row(BatchKind(kind), row)

    def review(
        self,
        ctx: RequestContext,
        kind: BatchKind,
        batch_id: str,
        decision,
        feedback: Optional[str] = None,
    ) -> Batch:
        if not can_review(ctx.role):
            raise AuthorizationError("Only an admin can review submissions")

        decision = parse_enum(BatchStatus, decision, "Decision")
        if decision not in REVIEW_DECISIONS:
            raise ValidationError("Decision must be approved or rejected")

        batch = self.get(kind, batch_id)
        if not batch.is_pending:
            raise InvalidStateError(f"This {_LABELS[batch.kind]} was already {batch.status.value}")

        reviewed = replace(
            batch,
            status=decision,
            reviewer_id=ctx.user_id,
            reviewer_feedback=optional_text(feedback, "Feedback"),
            reviewed_at=self._clock(),
        )
        with self._store.transaction():
            applied = self._store.update_if(
                batch.kind.value,
                batch.id,
                BatchStatus.PENDING.value,
                {
                    "status": reviewed.status.value,
                    "reviewer_id": reviewed.reviewer_id,
                    "reviewer_feedback": reviewed.reviewer_feedback,
                    "reviewed_at": reviewed.reviewed_at,
                },
            )
            if not applied:
                raise InvalidStateError(f"This {_LABELS[batch.kind]} was already reviewed")
            if decision is BatchStatus.APPROVED:
                self._side_effects[batch.kind].apply(self._store, batch, ctx)

        logger.info("Batch %s (%s) %s by %s", batch.id, batch.kind.value, decision.value, ctx.user_id)
        self._notify_submitter(reviewed)
        return reviewed

    def cancel(self, ctx: RequestContext, kind: BatchKind, batch_id: str) -> Batch:
        batch = self.get(kind, batch_id)
        if not policy_for(batch.kind).cancellable:
            raise InvalidStateError(f"A {_LABELS[batch.kind]} cannot be cancelled")
        if batch.submitter_id != ctx.user_id:
            raise AuthorizationError("Only the submitter can cancel")
        if not batch.is_pending:
            raise InvalidStateError(f"This {_LABELS[batch.kind]} was already {batch.status.value}")

        if not self._store.update_if(
            batch.kind.value, batch.id, BatchStatus.PENDING.value, {"status": BatchStatus.CANCELLED.value}
        ):
            raise InvalidStateError(f"This {_LABELS[batch.kind]} was already reviewed")

        logger.info("Batch %s (%s) cancelled by submitter", batch.id, batch.kind.value)
        return replace(batch, status=BatchStatus.CANCELLED)

    def _notify_submitter(self, batch: Batch) -> None:
        message = f"Your {_LABELS[batch.kind]} was {batch.status.value}."
        if batch.reviewer_feedback:
            message += f" Feedback: {batch.reviewer_feedback}"
        severity = Severity.SUCCESS if batch.status is BatchStatus.APPROVED else Severity.WARNING
        self._notifier.notify(batch.submitter_id, message, severity)
