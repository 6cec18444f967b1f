from __future__ import annotations

import threading

import pytest

from src.school_portal.school_portal.approvals.side_effects import SideEffect, default_side_effects
from src.school_portal.school_portal.approvals.state_machine import ReviewStateMachine
from src.school_portal.school_portal.container import wire_services
from src.school_portal.school_portal.core.enums import BatchKind, BatchStatus, Role, Severity
from src.school_portal.school_portal.core.exceptions import (
    AuthorizationError,
    InvalidStateError,
    NotFoundError,
    StoreError,
    ValidationError,
)

from tests.fakes import InMemoryRecordStore, RecordingNotifier, make_profile


def _enrollment_request(container, student, course):
    return container.enrollment_service.request_enrollment(student, course.id)


def test_approve_moves_pending_to_approved_and_notifies(container, notifier, admin, student, course):
    batch = _enrollment_request(container, student, course)

    reviewed = container.reviews.review(admin, BatchKind.ENROLLMENT, batch.id, "approved", "Welcome")

    assert reviewed.status is BatchStatus.APPROVED
    assert reviewed.reviewer_id == admin.user_id
    assert reviewed.reviewed_at is not None
    stored = container.reviews.get(BatchKind.ENROLLMENT, batch.id)
    assert stored.status is BatchStatus.APPROVED
    assert stored.reviewer_feedback == "Welcome"
    assert notifier.sent == [
        (student.user_id, "Your enrollment request was approved. Feedback: Welcome", Severity.SUCCESS)
    ]


def test_reject_has_no_side_effect(container, store, admin, student, course):
    batch = _enrollment_request(container, student, course)

    container.reviews.review(admin, BatchKind.ENROLLMENT, batch.id, "rejected", "Course is full")

    assert store.count("enrollments") == 0


def test_second_review_is_invalid_state(container, admin, student, course):
    batch = _enrollment_request(container, student, course)
    container.reviews.review(admin, BatchKind.ENROLLMENT, batch.id, "rejected")

    with pytest.raises(InvalidStateError):
        container.reviews.review(admin, BatchKind.ENROLLMENT, batch.id, "approved")


def test_unknown_batch_is_not_found(container, admin):
    with pytest.raises(NotFoundError):
        container.reviews.review(admin, BatchKind.FEE_PAYMENT, "missing", "approved")


def test_only_admin_reviews(container, lecturer, student, course):
    batch = _enrollment_request(container, student, course)

    with pytest.raises(AuthorizationError):
        container.reviews.review(lecturer, BatchKind.ENROLLMENT, batch.id, "approved")
    with pytest.raises(AuthorizationError):
        container.reviews.review(student, BatchKind.ENROLLMENT, batch.id, "approved")


@pytest.mark.parametrize("decision", ["pending", "cancelled", "maybe", ""])
def test_decision_must_be_approved_or_rejected(container, admin, student, course, decision):
    batch = _enrollment_request(container, student, course)

    with pytest.raises(ValidationError):
        container.reviews.review(admin, BatchKind.ENROLLMENT, batch.id, decision)


class ExplodingSideEffect(SideEffect):
    def apply(self, store, batch, ctx) -> None:
        store.insert("notifications", {"user_id": "x", "message": "partial", "severity": "info", "is_read": False})
        raise StoreError("backend went away")


def test_failed_side_effect_rolls_back_and_batch_stays_pending(store, admin, student, course, container):
    batch = _enrollment_request(container, student, course)
    effects = default_side_effects()
    effects[BatchKind.ENROLLMENT] = ExplodingSideEffect()
    reviews = ReviewStateMachine(store, RecordingNotifier(), side_effects=effects)

    with pytest.raises(StoreError):
        reviews.review(admin, BatchKind.ENROLLMENT, batch.id, "approved")

    assert reviews.get(BatchKind.ENROLLMENT, batch.id).status is BatchStatus.PENDING
    assert store.count("notifications") == 0


def test_cancel_booking_by_submitter(container, admin, student):
    hostel = container.hostel_service.create_hostel(admin, name="North Hall")
    room = container.hostel_service.create_room(admin, hostel_id=hostel.id, room_number="101", capacity=2)
    booking = container.hostel_service.book_room(student, room.id)

    cancelled = container.reviews.cancel(student, BatchKind.ROOM_BOOKING, booking.id)

    assert cancelled.status is BatchStatus.CANCELLED
    with pytest.raises(InvalidStateError):
        container.reviews.review(admin, BatchKind.ROOM_BOOKING, booking.id, "approved")


def test_cancel_rules(container, admin, student, other_student, course):
    hostel = container.hostel_service.create_hostel(admin, name="North Hall")
    room = container.hostel_service.create_room(admin, hostel_id=hostel.id, room_number="101", capacity=2)
    booking = container.hostel_service.book_room(student, room.id)
    request = _enrollment_request(container, student, course)

    with pytest.raises(AuthorizationError):
        container.reviews.cancel(other_student, BatchKind.ROOM_BOOKING, booking.id)
    with pytest.raises(InvalidStateError):
        container.reviews.cancel(student, BatchKind.ENROLLMENT, request.id)

    container.reviews.review(admin, BatchKind.ROOM_BOOKING, booking.id, "rejected")
    with pytest.raises(InvalidStateError):
        container.reviews.cancel(student, BatchKind.ROOM_BOOKING, booking.id)


class BarrierStore(InMemoryRecordStore):
    """Holds the first two batch reads until both reviewers have seen ``pending``."""

    def __init__(self):
        super().__init__()
        self.barrier = None

    def get(self, table, record_id):
        row = super().get(table, record_id)
        if self.barrier is not None and table == BatchKind.ENROLLMENT.value:
            self.barrier.wait(timeout=5)
        return row


def test_concurrent_approvals_apply_side_effect_once():
    store = BarrierStore()
    container = wire_services(store, notifier=RecordingNotifier())
    admin = make_profile(store, Role.ADMIN, "a@x.test")
    lecturer = make_profile(store, Role.LECTURER, "l@x.test")
    student = make_profile(store, Role.STUDENT, "s@x.test")
    course = container.course_service.create_course(
        admin, course_code="MA201", title="Linear Algebra", lecturer_id=lecturer.user_id
    )
    batch = container.enrollment_service.request_enrollment(student, course.id)

    store.barrier = threading.Barrier(2)
    outcomes: list[object] = []

    def approve():
        try:
            outcomes.append(container.reviews.review(admin, BatchKind.ENROLLMENT, batch.id, "approved"))
        except InvalidStateError as e:
            outcomes.append(e)

    threads = [threading.Thread(target=approve) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)
    store.barrier = None

    assert sum(isinstance(o, InvalidStateError) for o in outcomes) == 1
    assert store.count("enrollments", student_id=student.user_id, course_id=course.id) == 1
