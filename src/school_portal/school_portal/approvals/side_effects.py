from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable

from ..common.context import RequestContext
from ..common.datetime_utils import now_utc
from ..core.enums import BatchKind, EnrollmentStatus
from ..core.exceptions import NotFoundError, ValidationError
from ..fees.model import balance_of, to_money
from ..store.repository import RecordStore
from .model import Batch


class SideEffect(ABC):
    """State change in another entity, applied only when a batch is approved."""

    @abstractmethod
    def apply(self, store: RecordStore, batch: Batch, ctx: RequestContext) -> None:
        raise NotImplementedError


class NoSideEffect(SideEffect):
    def apply(self, store, batch, ctx) -> None:
        return None


class EnrollStudent(SideEffect):
    def __init__(self, *, clock: Callable = now_utc):
        self._clock = clock

    def apply(self, store, batch, ctx) -> None:
        course_id = batch.details["course_id"]
        existing = store.select(
            "enrollments",
            {"student_id": batch.submitter_id, "course_id": course_id, "status": EnrollmentStatus.ACTIVE.value},
            limit=1,
        )
        if existing:
            raise ValidationError("Student is already enrolled in this course")

        store.insert(
            "enrollments",
            {
                "student_id": batch.submitter_id,
                "course_id": course_id,
                "status": EnrollmentStatus.ACTIVE.value,
                "enrollment_date": self._clock(),
                "source_request_id": batch.id,
            },
        )


class CreditFeeAccount(SideEffect):
    def __init__(self, *, clock: Callable = now_utc):
        self._clock = clock

    def apply(self, store, batch, ctx) -> None:
        account = store.get("fee_accounts", batch.details["account_id"])
        if not account:
            raise NotFoundError("Fee account for this payment no longer exists")

        amount_paid = to_money(account.get("amount_paid")) + to_money(batch.details["amount"])
        store.update(
            "fee_accounts",
            account["id"],
            {
                "amount_paid": amount_paid,
                "balance": balance_of(account.get("total_fees"), amount_paid),
                "updated_by": ctx.user_id,
                "updated_at": self._clock(),
            },
        )


def default_side_effects() -> dict[BatchKind, SideEffect]:
    return {
        BatchKind.ATTENDANCE: NoSideEffect(),
        BatchKind.ENROLLMENT: EnrollStudent(),
        BatchKind.ROOM_BOOKING: NoSideEffect(),
        BatchKind.FEE_PAYMENT: CreditFeeAccount(),
    }
