from __future__ import annotations

from flask import Flask, request

from ..common.http import current_context, identity_required, json_body, ok
from ..container import Container

_ROOM_FIELDS = ("room_number", "capacity", "price", "amenities")


def register(app: Flask, container: Container) -> None:
    auth = identity_required(container.user_service)
    hostels = container.hostel_service

    @app.route("/api/hostels", methods=["GET"], endpoint="list_hostels")
    @auth
    def list_hostels():
        return ok(hostels.list_hostels())

    @app.route("/api/hostels", methods=["POST"], endpoint="create_hostel")
    @auth
    def create_hostel():
        data = json_body()
        hostel = hostels.create_hostel(current_context(), name=data.get("name"), description=data.get("description"))
        return ok(hostel, message="Hostel created", status=201)

    @app.route("/api/hostels/<hostel_id>", methods=["PATCH"], endpoint="update_hostel")
    @auth
    def update_hostel(hostel_id: str):
        data = json_body()
        hostel = hostels.update_hostel(
            current_context(), hostel_id, name=data.get("name"), description=data.get("description")
        )
        return ok(hostel, message="Hostel updated")

    @app.route("/api/hostels/<hostel_id>", methods=["DELETE"], endpoint="delete_hostel")
    @auth
    def delete_hostel(hostel_id: str):
        hostels.delete_hostel(current_context(), hostel_id)
        return ok(message="Hostel deleted")

    @app.route("/api/rooms", methods=["GET"], endpoint="list_rooms")
    @auth
    def list_rooms():
        available_only = request.args.get("available", "").lower() in ("1", "true", "yes")
        return ok(hostels.list_rooms(hostel_id=request.args.get("hostel_id"), available_only=available_only))

    @app.route("/api/rooms", methods=["POST"], endpoint="create_room")
    @auth
    def create_room():
        data = json_body()
        room = hostels.create_room(
            current_context(),
            hostel_id=data.get("hostel_id"),
            room_number=data.get("room_number"),
            capacity=data.get("capacity"),
            price=data.get("price"),
            amenities=data.get("amenities"),
            status=data.get("status") or "available",
        )
        return ok(room, message="Room created", status=201)

    @app.route("/api/rooms/<room_id>", methods=["PATCH"], endpoint="update_room")
    @auth
    def update_room(room_id: str):
        data = json_body()
        changes = {k: data[k] for k in _ROOM_FIELDS if k in data}
        return ok(hostels.update_room(current_context(), room_id, **changes), message="Room updated")

    @app.route("/api/rooms/<room_id>/status", methods=["PUT"], endpoint="set_room_status")
    @auth
    def set_room_status(room_id: str):
        return ok(hostels.set_room_status(current_context(), room_id, json_body().get("status")))

    @app.route("/api/rooms/<room_id>", methods=["DELETE"], endpoint="delete_room")
    @auth
    def delete_room(room_id: str):
        hostels.delete_room(current_context(), room_id)
        return ok(message="Room deleted")

    @app.route("/api/room-bookings", methods=["POST"], endpoint="book_room")
    @auth
    def book_room():
        data = json_body()
        batch = hostels.book_room(
            current_context(),
            data.get("room_id"),
            academic_year=data.get("academic_year"),
            semester=data.get("semester"),
        )
        return ok(batch, message="Booking request submitted", status=201)

    @app.route("/api/room-bookings", methods=["GET"], endpoint="list_bookings")
    @auth
    def list_bookings():
        return ok(hostels.list_bookings(current_context(), status=request.args.get("status")))

    @app.route("/api/room-bookings/<booking_id>/cancel", methods=["POST"], endpoint="cancel_booking")
    @auth
    def cancel_booking(booking_id: str):
        return ok(hostels.cancel_booking(current_context(), booking_id), message="Booking cancelled")

    @app.route("/api/room-bookings/<booking_id>/review", methods=["POST"], endpoint="respond_to_booking")
    @auth
    def respond_to_booking(booking_id: str):
        data = json_body()
        batch = hostels.respond_to_booking(current_context(), booking_id, data.get("decision"), data.get("feedback"))
        return ok(batch, message=f"Booking {batch.status.value}")

    @app.route("/api/hostel-assignments", methods=["GET"], endpoint="list_hostel_assignments")
    @auth
    def list_hostel_assignments():
        active_only = request.args.get("all", "").lower() not in ("1", "true", "yes")
        return ok(hostels.list_assignments(current_context(), active_only=active_only))

    @app.route("/api/hostel-assignments", methods=["POST"], endpoint="assign_student")
    @auth
    def assign_student():
        data = json_body()
        assignment = hostels.assign_student(
            current_context(), student_id=data.get("student_id"), room_id=data.get("room_id"), notes=data.get("notes")
        )
        return ok(assignment, message="Student assigned", status=201)

    @app.route("/api/hostel-assignments/<assignment_id>/vacate", methods=["POST"], endpoint="vacate_assignment")
    @auth
    def vacate_assignment(assignment_id: str):
        return ok(hostels.vacate_assignment(current_context(), assignment_id), message="Room vacated")

    @app.route("/api/student/hostel", methods=["GET"], endpoint="my_hostel")
    @auth
    def my_hostel():
        return ok(hostels.my_assignment(current_context()))

    @app.route("/api/lecturer/student-hostels", methods=["GET"], endpoint="student_hostels")
    @auth
    def student_hostels():
        return ok(hostels.student_hostels_for_lecturer(current_context()))
