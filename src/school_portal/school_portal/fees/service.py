from __future__ import annotations

import logging
from pathlib import PurePosixPath
from typing import Callable, Optional

from ..approvals.aggregator import BatchAggregator
from ..approvals.model import Batch, batch_from_row
from ..approvals.state_machine import ReviewStateMachine
from ..common.context import RequestContext, require_role
from ..common.datetime_utils import now_utc
from ..common.validators import optional_text, parse_enum, require_amount
from ..core.constants import DEFAULT_REVIEW_LIMIT, PAYMENT_SLIP_BUCKET
from ..core.enums import BatchKind, BatchStatus, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..store.repository import RecordStore
from ..users.service import UserService
from .model import FeeAccount, balance_of, to_money

logger = logging.getLogger(__name__)

_SLIP_EXTENSIONS = frozenset({"pdf", "png", "jpg", "jpeg"})


class FeeService:
    """Fee accounts (admin), payment submissions (student) and payment review (admin)."""

    def __init__(
        self,
        store: RecordStore,
        users: UserService,
        aggregator: BatchAggregator,
        reviews: ReviewStateMachine,
        *,
        clock: Callable = now_utc,
    ):
        self._store = store
        self._users = users
        self._aggregator = aggregator
        self._reviews = reviews
        self._clock = clock

    def _account_for_student(self, student_id: str) -> Optional[FeeAccount]:
        rows = self._store.select("fee_accounts", {"student_id": str(student_id)}, limit=1)
        return FeeAccount.from_row(rows[0]) if rows else None

    def create_account(
        self,
        ctx: RequestContext,
        *,
        student_id: str,
        total_fees,
        academic_year: Optional[str] = None,
        semester: Optional[str] = None,
    ) -> FeeAccount:
        require_role(ctx, Role.ADMIN)
        self._users.require_profile_with_role(student_id, Role.STUDENT, "Student")
        if self._account_for_student(student_id):
            raise ValidationError("This student already has a fee account")

        total = require_amount(total_fees, "Total fees", allow_zero=True)
        row = {
            "student_id": str(student_id),
            "total_fees": total,
            "amount_paid": to_money(0),
            "balance": balance_of(total, 0),
            "academic_year": optional_text(academic_year),
            "semester": optional_text(semester),
            "updated_by": ctx.user_id,
            "updated_at": self._clock(),
        }
        account_id = self._store.insert("fee_accounts", row)
        return FeeAccount.from_row({**row, "id": account_id})

    def update_total_fees(self, ctx: RequestContext, account_id: str, total_fees) -> FeeAccount:
        require_role(ctx, Role.ADMIN)
        row = self._store.get("fee_accounts", account_id)
        if not row:
            raise NotFoundError("Fee account not found")
        account = FeeAccount.from_row(row)

        total = require_amount(total_fees, "Total fees", allow_zero=True)
        if total < account.amount_paid:
            raise ValidationError("Total fees cannot be lower than the amount already paid")

        self._store.update(
            "fee_accounts",
            account.id,
            {
                "total_fees": total,
                "balance": balance_of(total, account.amount_paid),
                "updated_by": ctx.user_id,
                "updated_at": self._clock(),
            },
        )
        return FeeAccount.from_row(self._store.get("fee_accounts", account.id))

    def get_account(self, ctx: RequestContext, student_id: Optional[str] = None) -> FeeAccount:
        if ctx.role is Role.STUDENT:
            if student_id and student_id != ctx.user_id:
                raise AuthorizationError("You can only view your own fee account")
            student_id = ctx.user_id
        else:
            require_role(ctx, Role.ADMIN)
            if not student_id:
                raise ValidationError("Student is required")

        account = self._account_for_student(student_id)
        if not account:
            raise NotFoundError("No fee account found")
        return account

    def list_accounts(self, ctx: RequestContext) -> list[FeeAccount]:
        require_role(ctx, Role.ADMIN)
        return [FeeAccount.from_row(r) for r in self._store.select("fee_accounts", order_by="updated_at", descending=True)]

    def _new_slip_key(self, student_id: str, filename: str, data: bytes) -> str:
        ext = PurePosixPath(filename or "").suffix.lstrip(".").lower()
        if ext not in _SLIP_EXTENSIONS:
            raise ValidationError("Payment slip must be a PDF or an image")
        if not data:
            raise ValidationError("Payment slip is empty")
        stamp = int(self._clock().timestamp() * 1000)
        return f"{student_id}/{stamp}.{ext}"

    def submit_payment(
        self,
        ctx: RequestContext,
        *,
        amount,
        transaction_message: Optional[str] = None,
        slip: Optional[tuple[str, bytes]] = None,
    ) -> Batch:
        require_role(ctx, Role.STUDENT)
        amount = require_amount(amount, "Amount")
        account = self._account_for_student(ctx.user_id)
        if not account:
            raise ValidationError("No fee account found. Contact the administration office.")

        message = optional_text(transaction_message, "Transaction message")
        slip_key = self._new_slip_key(ctx.user_id, *slip) if slip else None
        slip_url = self._store.upload(PAYMENT_SLIP_BUCKET, slip_key, slip[1]) if slip_key else None
        try:
            batch = self._aggregator.create_batch(
                ctx,
                BatchKind.FEE_PAYMENT,
                details={
                    "account_id": account.id,
                    "amount": amount,
                    "payment_slip_url": slip_url,
                    "transaction_message": message,
                    "academic_year": account.academic_year,
                    "semester": account.semester,
                },
            )
        except Exception:
            # no payment points at the slip, so it must not stay behind
            if slip_key:
                self._store.delete_upload(PAYMENT_SLIP_BUCKET, slip_key)
            raise
        logger.info("Payment %s of %s submitted against account %s", batch.id, amount, account.id)
        return batch

    def list_payments(self, ctx: RequestContext, *, status=None) -> list[Batch]:
        filters: dict = {}
        if status:
            filters["status"] = parse_enum(BatchStatus, status, "Status").value
        if ctx.role is Role.STUDENT:
            filters["submitter_id"] = ctx.user_id
        else:
            require_role(ctx, Role.ADMIN)
        rows = self._store.select(
            BatchKind.FEE_PAYMENT.value, filters, order_by="submitted_at", descending=True, limit=DEFAULT_REVIEW_LIMIT
        )
        return [batch_from_row(BatchKind.FEE_PAYMENT, r) for r in rows]

    def slip_path(self, ctx: RequestContext, student_id: str, filename: str) -> str:
        """Path of a payment slip relative to the upload root, for its owner or an admin."""
        if ctx.role is not Role.ADMIN and ctx.user_id != student_id:
            raise AuthorizationError("You can only view your own payment slips")
        return f"{PAYMENT_SLIP_BUCKET}/{student_id}/{filename}"

    def review_payment(self, ctx: RequestContext, payment_id: str, decision, feedback: Optional[str] = None) -> Batch:
        return self._reviews.review(ctx, BatchKind.FEE_PAYMENT, payment_id, decision, feedback)
