from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional, Sequence

from ..common.validators import require_amount, require_non_empty
from ..core.enums import BatchKind, Role
from ..core.exceptions import ValidationError


class BatchPolicy(ABC):
    """Per-kind rules for what a valid batch looks like (Strategy Pattern)."""

    kind: BatchKind
    submitter_role: Role
    record_table: Optional[str] = None
    cancellable: bool = False

    @abstractmethod
    def validate(self, member_record_ids: Sequence[str], details: Mapping[str, Any]) -> dict:
        """Return the normalized kind-specific columns or raise ValidationError."""

        raise NotImplementedError


class AttendancePolicy(BatchPolicy):
    kind = BatchKind.ATTENDANCE
    submitter_role = Role.LECTURER
    record_table = "attendance"

    def validate(self, member_record_ids, details):
        if not member_record_ids:
            raise ValidationError("Attendance submission needs at least one record")
        if len(set(member_record_ids)) != len(member_record_ids):
            raise ValidationError("Attendance submission contains duplicate records")
        return {
            "course_id": require_non_empty(details.get("course_id"), "Course"),
            "session_date": details.get("session_date"),
        }


class EnrollmentPolicy(BatchPolicy):
    kind = BatchKind.ENROLLMENT
    submitter_role = Role.STUDENT

    def validate(self, member_record_ids, details):
        if member_record_ids:
            raise ValidationError("Enrollment request does not take member records")
        return {"course_id": require_non_empty(details.get("course_id"), "Course")}


class RoomBookingPolicy(BatchPolicy):
    kind = BatchKind.ROOM_BOOKING
    submitter_role = Role.STUDENT
    cancellable = True

    def validate(self, member_record_ids, details):
        if len(member_record_ids) != 1:
            raise ValidationError("Hostel booking must reference exactly one room")
        return {
            "room_id": member_record_ids[0],
            "academic_year": details.get("academic_year"),
            "semester": details.get("semester"),
        }


class FeePaymentPolicy(BatchPolicy):
    kind = BatchKind.FEE_PAYMENT
    submitter_role = Role.STUDENT

    def validate(self, member_record_ids, details):
        if member_record_ids:
            raise ValidationError("Fee payment does not take member records")
        return {
            "account_id": require_non_empty(details.get("account_id"), "Fee account"),
            "amount": require_amount(details.get("amount"), "Amount"),
            "payment_slip_url": details.get("payment_slip_url"),
            "transaction_message": details.get("transaction_message"),
            "academic_year": details.get("academic_year"),
            "semester": details.get("semester"),
        }


POLICIES: dict[BatchKind, BatchPolicy] = {
    p.kind: p for p in (AttendancePolicy(), EnrollmentPolicy(), RoomBookingPolicy(), FeePaymentPolicy())
}


def policy_for(kind: BatchKind) -> BatchPolicy:
    return POLICIES[BatchKind(kind)]
