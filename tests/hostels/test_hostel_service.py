from __future__ import annotations

import pytest

from src.school_portal.school_portal.core.enums import AssignmentStatus, BatchStatus, RoomStatus
from src.school_portal.school_portal.core.exceptions import InvalidStateError, ValidationError


@pytest.fixture
def hostel(container, admin):
    return container.hostel_service.create_hostel(admin, name="North Hall", description="Near the library")


@pytest.fixture
def room(container, admin, hostel):
    return container.hostel_service.create_room(
        admin, hostel_id=hostel.id, room_number="101", capacity=2, price="150", amenities="wifi, desk"
    )


def test_room_creation_updates_hostel_room_count(container, admin, hostel, room):
    assert room.amenities == ("wifi", "desk")
    assert container.hostel_service.get_hostel(hostel.id).total_rooms == 1
    with pytest.raises(ValidationError):
        container.hostel_service.create_room(admin, hostel_id=hostel.id, room_number="101", capacity=1)
    with pytest.raises(ValidationError):
        container.hostel_service.create_room(admin, hostel_id=hostel.id, room_number="102", capacity=0)


def test_occupancy_follows_assignments(container, admin, student, other_student, room):
    svc = container.hostel_service

    first = svc.assign_student(admin, student_id=student.user_id, room_id=room.id)
    assert svc.get_room(room.id).occupied == 1
    assert svc.get_room(room.id).status is RoomStatus.AVAILABLE

    svc.assign_student(admin, student_id=other_student.user_id, room_id=room.id)
    full = svc.get_room(room.id)
    assert (full.occupied, full.status) == (2, RoomStatus.OCCUPIED)

    vacated = svc.vacate_assignment(admin, first.id)
    assert vacated.status is AssignmentStatus.VACATED
    assert vacated.vacated_at is not None
    freed = svc.get_room(room.id)
    assert (freed.occupied, freed.status) == (1, RoomStatus.AVAILABLE)

    with pytest.raises(InvalidStateError):
        svc.vacate_assignment(admin, first.id)


def test_assignment_refusals(container, store, admin, student, other_student, hostel, room):
    svc = container.hostel_service
    single = svc.create_room(admin, hostel_id=hostel.id, room_number="201", capacity=1)

    svc.assign_student(admin, student_id=student.user_id, room_id=single.id)
    with pytest.raises(ValidationError):
        svc.assign_student(admin, student_id=student.user_id, room_id=room.id)
    with pytest.raises(ValidationError):
        svc.assign_student(admin, student_id=other_student.user_id, room_id=single.id)

    svc.set_room_status(admin, room.id, "maintenance")
    with pytest.raises(ValidationError):
        svc.assign_student(admin, student_id=other_student.user_id, room_id=room.id)
    assert store.count("student_hostel_assignments") == 1


def test_maintenance_status_survives_occupancy_refresh(container, admin, student, room):
    svc = container.hostel_service
    assignment = svc.assign_student(admin, student_id=student.user_id, room_id=room.id)
    svc.set_room_status(admin, room.id, RoomStatus.MAINTENANCE)

    svc.vacate_assignment(admin, assignment.id)

    assert svc.get_room(room.id).status is RoomStatus.MAINTENANCE


def test_booking_lifecycle(container, admin, student, room):
    svc = container.hostel_service
    booking = svc.book_room(student, room.id, academic_year="2025/2026", semester="1")
    assert booking.details["room_id"] == room.id

    with pytest.raises(ValidationError):
        svc.book_room(student, room.id)

    approved = svc.respond_to_booking(admin, booking.id, "approved", "Key at reception")
    assert approved.status is BatchStatus.APPROVED
    assert [b.id for b in svc.list_bookings(student)] == [booking.id]


def test_unavailable_room_cannot_be_booked(container, admin, student, room):
    container.hostel_service.set_room_status(admin, room.id, "maintenance")

    with pytest.raises(ValidationError):
        container.hostel_service.book_room(student, room.id)


def test_delete_guards(container, admin, student, hostel, room):
    svc = container.hostel_service
    assignment = svc.assign_student(admin, student_id=student.user_id, room_id=room.id)

    with pytest.raises(ValidationError):
        svc.delete_room(admin, room.id)
    with pytest.raises(ValidationError):
        svc.delete_hostel(admin, hostel.id)

    svc.vacate_assignment(admin, assignment.id)
    svc.delete_room(admin, room.id)
    svc.delete_hostel(admin, hostel.id)
    assert svc.list_hostels() == []


def test_lecturer_sees_where_their_students_live(container, admin, lecturer, student, course, room, enroll):
    enroll(student, course)
    container.hostel_service.assign_student(admin, student_id=student.user_id, room_id=room.id)

    views = container.hostel_service.student_hostels_for_lecturer(lecturer)

    assert [(v.student_name, v.hostel_name, v.room_number) for v in views] == [("Sam Student", "North Hall", "101")]
    assert container.hostel_service.my_assignment(student).room_id == room.id
