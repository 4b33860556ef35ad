"""
Тесты для обработчика запросов и перевода ошибок в статусы.
"""
import logging
from uuid import uuid4

import pytest

from hotel_booking.booking.api import (
    BookingRequestHandler,
    RequestLoggingBehavior,
    RoomRequestHandler,
    translate_exception,
)
from hotel_booking.booking.application import RoomApplicationService
from hotel_booking.booking.infrastructure import StandardLogger
from hotel_booking.shared_kernel import (
    BusinessRuleValidationException,
    ConflictError,
    InvalidRangeError,
    NotFoundError,
    StorageUnavailableError,
)

from .factories import ROOM_101, ROOM_201, day


@pytest.fixture
def handler(booking_service) -> BookingRequestHandler:
    return BookingRequestHandler(booking_service)


def payload(start: int, end: int, **overrides) -> dict:
    data = {
        "room_id": str(ROOM_101),
        "guest_id": str(uuid4()),
        "check_in": day(start).isoformat(),
        "check_out": day(end).isoformat(),
        "adults": 1,
    }
    data.update(overrides)
    return data


class TestTranslateException:
    """Тесты перевода исключений в ответы."""

    @pytest.mark.parametrize(
        "exc, status, title",
        [
            (InvalidRangeError(day(3), day(1)), 400, "Bad Request"),
            (BusinessRuleValidationException("нельзя"), 400, "Bad Request"),
            (NotFoundError("Номер", 1), 404, "Not Found"),
            (ConflictError(room_id=ROOM_101, conflicting_booking_id=uuid4()), 409, "Conflict"),
            (StorageUnavailableError("нет диска"), 503, "Service Unavailable"),
            (ValueError("Нельзя складывать разные валюты"), 400, "Bad Request"),
        ],
    )
    def test_domain_errors(self, exc, status, title):
        response = translate_exception(exc)

        assert response.success is False
        assert response.status == status
        assert response.title == title
        assert response.message == str(exc)

    def test_unexpected_error_hides_details(self):
        response = translate_exception(RuntimeError("секрет"))

        assert response.status == 500
        assert "секрет" not in response.message


class TestBookingRequestHandler:
    """Тесты обработчика запросов к бронированиям."""

    def test_create_returns_201(self, handler: BookingRequestHandler):
        response = handler.create_booking(payload(5, 7))

        assert response.success is True
        assert response.status == 201
        assert response.data["status"] == "pending"
        assert response.data["check_in"] == day(5).isoformat()

    def test_same_dates_return_409(self, handler: BookingRequestHandler):
        handler.create_booking(payload(5, 7))

        response = handler.create_booking(payload(5, 7))

        assert response.status == 409
        assert response.title == "Conflict"

    def test_back_to_back_returns_201(self, handler: BookingRequestHandler):
        handler.create_booking(payload(5, 7))

        assert handler.create_booking(payload(7, 9)).status == 201

    def test_invalid_range_returns_400(self, handler: BookingRequestHandler):
        response = handler.create_booking(payload(3, 1))

        assert response.status == 400
        assert response.title == "Bad Request"

    def test_missing_field_returns_validation_error(self, handler: BookingRequestHandler):
        data = payload(5, 7)
        del data["adults"]

        response = handler.create_booking(data)

        assert response.status == 400
        assert response.title == "Validation Error"
        assert "adults" in response.errors

    def test_unknown_room_returns_404(self, handler: BookingRequestHandler):
        response = handler.create_booking(payload(5, 7, room_id=str(uuid4())))

        assert response.status == 404

    def test_get_cancel_and_list(self, handler: BookingRequestHandler):
        created = handler.create_booking(payload(5, 7)).data

        assert handler.get_booking(created["id"]).data["id"] == created["id"]
        assert handler.confirm_booking(created["id"]).data["status"] == "confirmed"

        cancelled = handler.cancel_booking({"booking_id": created["id"]})
        listed = handler.list_bookings(room_id=ROOM_101)

        assert cancelled.data["status"] == "cancelled"
        assert listed.data["total_count"] == 1

    def test_reschedule(self, handler: BookingRequestHandler):
        created = handler.create_booking(payload(5, 7)).data

        response = handler.reschedule_booking(
            {
                "booking_id": created["id"],
                "check_in": day(6).isoformat(),
                "check_out": day(8).isoformat(),
            }
        )

        assert response.status == 200
        assert response.data["id"] != created["id"]

    def test_unexpected_error_returns_500(self, caplog):
        class BrokenService:
            def get_booking(self, booking_id):
                raise RuntimeError("сбой")

        handler = BookingRequestHandler(BrokenService())

        with caplog.at_level(logging.ERROR, logger="hotel_booking"):
            response = handler.get_booking(uuid4())

        assert response.status == 500
        assert "An unhandled exception occurred" in caplog.text

    def test_requests_are_logged(self, handler: BookingRequestHandler, caplog):
        with caplog.at_level(logging.INFO, logger="hotel_booking"):
            handler.create_booking(payload(5, 7))
            handler.create_booking(payload(5, 7))

        assert "Starting request: CreateBooking" in caplog.text
        assert "Completed request: CreateBooking" in caplog.text
        assert "Request failed: CreateBooking" in caplog.text


class TestRequestLoggingBehavior:
    """Тесты журналирования запросов."""

    def test_returns_result(self):
        behavior = RequestLoggingBehavior(StandardLogger("hotel_booking.test"))

        assert behavior.handle("Ping", lambda: "pong") == "pong"

    def test_reraises(self):
        behavior = RequestLoggingBehavior(StandardLogger("hotel_booking.test"))

        def fail():
            raise ValueError("ошибка")

        with pytest.raises(ValueError, match="ошибка"):
            behavior.handle("Fail", fail)


def test_malformed_id_returns_validation_error(handler: BookingRequestHandler):
    """Некорректный идентификатор - ошибка валидации, а не 404."""
    response = handler.get_booking("not-a-uuid")

    assert response.status == 400
    assert response.title == "Validation Error"


def test_list_bookings_by_status(handler: BookingRequestHandler):
    first = handler.create_booking(payload(1, 3)).data
    handler.create_booking(payload(3, 5))
    handler.cancel_booking({"booking_id": first["id"]})

    cancelled = handler.list_bookings(status="cancelled")
    unknown = handler.list_bookings(status="lost")

    assert [b["id"] for b in cancelled.data["items"]] == [first["id"]]
    assert unknown.status == 400
    assert unknown.title == "Validation Error"


def test_check_availability(handler: BookingRequestHandler):
    handler.create_booking(payload(5, 7))

    busy = handler.check_availability(str(ROOM_101), day(6).isoformat(), day(8).isoformat())
    free = handler.check_availability(str(ROOM_101), day(7).isoformat(), day(8).isoformat())
    invalid = handler.check_availability(str(ROOM_101), day(8).isoformat(), day(7).isoformat())

    assert busy.data["is_available"] is False
    assert free.data["is_available"] is True
    assert invalid.status == 400


class TestRoomRequestHandler:
    """Тесты обработчика запросов к номерам."""

    @pytest.fixture
    def room_handler(self, uow) -> RoomRequestHandler:
        return RoomRequestHandler(RoomApplicationService(uow))

    def test_create_get_update_delete(self, room_handler: RoomRequestHandler):
        created = room_handler.create_room(
            {"number": "502", "type": "deluxe", "capacity": 2, "price_per_night": "6000"}
        )
        room_id = created.data["id"]

        updated = room_handler.update_room({"room_id": room_id, "capacity": 3})
        deleted = room_handler.delete_room(room_id)

        assert created.status == 201
        assert room_handler.get_room(room_id).status == 404
        assert updated.data["capacity"] == 3
        assert deleted.status == 204

    def test_get_unknown_room_returns_404(self, room_handler: RoomRequestHandler):
        response = room_handler.get_room(str(uuid4()))

        assert response.status == 404
        assert response.title == "Not Found"

    def test_invalid_room_returns_validation_error(self, room_handler: RoomRequestHandler):
        response = room_handler.create_room({"number": "503", "type": "castle"})

        assert response.status == 400
        assert "type" in response.errors
        assert "capacity" in response.errors

    def test_delete_booked_room_returns_409(
        self, room_handler: RoomRequestHandler, handler: BookingRequestHandler
    ):
        handler.create_booking(payload(5, 7))

        assert room_handler.delete_room(str(ROOM_101)).status == 409

    def test_list_available_rooms(
        self, room_handler: RoomRequestHandler, handler: BookingRequestHandler
    ):
        handler.create_booking(payload(5, 7))

        response = room_handler.list_available_rooms(
            day(5).isoformat(), day(7).isoformat(), room_type="standard"
        )
        other = room_handler.list_available_rooms(
            day(5).isoformat(), day(7).isoformat(), room_type="deluxe"
        )

        assert response.data == []
        assert [r["id"] for r in other.data] == [str(ROOM_201)]
