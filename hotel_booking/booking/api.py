"""
Внешний интерфейс контекста бронирования.

Тонкий обработчик запросов: принимает данные запроса, вызывает сервис
приложения и переводит результат или исключение в ответ со статусом
HTTP. Сам транспорт (веб-фреймворк) сюда не входит.
"""

import time
from datetime import date
from http import HTTPStatus
from typing import Any, Callable, Dict, List, Optional, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from ..shared_kernel import (
    BookingStatus,
    BusinessRuleValidationException,
    ConflictError,
    EntityId,
    NotFoundError,
    StorageUnavailableError,
)
from . import interfaces as ports
from .application import (
    BookingApplicationService,
    CancelBookingRequest,
    CreateBookingRequest,
    CreateRoomRequest,
    PaginationParameters,
    RescheduleBookingRequest,
    RoomApplicationService,
    UpdateRoomRequest,
)
from .infrastructure import StandardLogger

R = TypeVar("R")

_entity_id = TypeAdapter(EntityId)
_optional_entity_id = TypeAdapter(Optional[EntityId])
_optional_status = TypeAdapter(Optional[BookingStatus])
_date = TypeAdapter(date)


class ApiResponse(BaseModel):
    """Конверт ответа."""

    success: bool
    status: int
    title: Optional[str] = None
    message: Optional[str] = None
    data: Optional[Any] = None
    errors: Optional[Dict[str, List[str]]] = None


def _validation_errors(exc: ValidationError) -> Dict[str, List[str]]:
    errors: Dict[str, List[str]] = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"]) or "__root__"
        errors.setdefault(field, []).append(error["msg"])
    return errors


def translate_exception(exc: Exception) -> ApiResponse:
    """Переводит исключение в ответ с соответствующим статусом."""
    if isinstance(exc, ValidationError):
        return ApiResponse(
            success=False,
            status=int(HTTPStatus.BAD_REQUEST),
            title="Validation Error",
            message="One or more validation errors occurred.",
            errors=_validation_errors(exc),
        )

    # InvalidRangeError - подкласс BusinessRuleValidationException
    if isinstance(exc, BusinessRuleValidationException):
        status, title = HTTPStatus.BAD_REQUEST, "Bad Request"
    elif isinstance(exc, NotFoundError):
        status, title = HTTPStatus.NOT_FOUND, "Not Found"
    elif isinstance(exc, ConflictError):
        status, title = HTTPStatus.CONFLICT, "Conflict"
    elif isinstance(exc, StorageUnavailableError):
        status, title = HTTPStatus.SERVICE_UNAVAILABLE, "Service Unavailable"
    elif isinstance(exc, ValueError):
        # Некорректный аргумент (например, разные валюты)
        status, title = HTTPStatus.BAD_REQUEST, "Bad Request"
    else:
        return ApiResponse(
            success=False,
            status=int(HTTPStatus.INTERNAL_SERVER_ERROR),
            title="Internal Server Error",
            message="An error occurred while processing your request.",
        )

    return ApiResponse(
        success=False, status=int(status), title=title, message=str(exc)
    )


class RequestLoggingBehavior:
    """Журналирует начало, длительность и ошибки каждого запроса."""

    def __init__(self, logger: Optional[ports.ILogger] = None):
        self._logger = logger or StandardLogger("hotel_booking.requests")

    def handle(self, request_name: str, next_: Callable[[], R]) -> R:
        self._logger.info(f"Starting request: {request_name}")
        started = time.perf_counter()

        try:
            response = next_()
        except Exception as e:
            duration_ms = (time.perf_counter() - started) * 1000
            self._logger.error(
                f"Request failed: {request_name} in {duration_ms:.2f}ms",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise

        duration_ms = (time.perf_counter() - started) * 1000
        self._logger.info(f"Completed request: {request_name} in {duration_ms:.2f}ms")
        return response


class RequestHandler:
    """Базовый обработчик: журналирует запрос и переводит результат в ответ."""

    def __init__(self, logger: Optional[ports.ILogger] = None):
        self._logger = logger or StandardLogger("hotel_booking.api")
        self._behavior = RequestLoggingBehavior(self._logger)

    def _dispatch(
        self,
        request_name: str,
        operation: Callable[[], Any],
        success_status: HTTPStatus = HTTPStatus.OK,
    ) -> ApiResponse:
        try:
            result = self._behavior.handle(request_name, operation)
        except Exception as e:
            response = translate_exception(e)
            if response.status == HTTPStatus.INTERNAL_SERVER_ERROR:
                self._logger.error(
                    "An unhandled exception occurred",
                    request=request_name,
                    error=repr(e),
                )
            return response

        data = result.model_dump(mode="json") if isinstance(result, BaseModel) else result
        return ApiResponse(success=True, status=int(success_status), data=data)


class BookingRequestHandler(RequestHandler):
    """Обработчик запросов к бронированиям."""

    def __init__(
        self,
        service: BookingApplicationService,
        logger: Optional[ports.ILogger] = None,
    ):
        super().__init__(logger)
        self._service = service

    def create_booking(self, payload: Dict[str, Any]) -> ApiResponse:
        return self._dispatch(
            "CreateBooking",
            lambda: self._service.create_booking(
                CreateBookingRequest.model_validate(payload)
            ),
            success_status=HTTPStatus.CREATED,
        )

    def get_booking(self, booking_id: Any) -> ApiResponse:
        return self._dispatch(
            "GetBooking",
            lambda: self._service.get_booking(_entity_id.validate_python(booking_id)),
        )

    def confirm_booking(self, booking_id: Any) -> ApiResponse:
        return self._dispatch(
            "ConfirmBooking",
            lambda: self._service.confirm_booking(
                _entity_id.validate_python(booking_id)
            ),
        )

    def cancel_booking(self, payload: Dict[str, Any]) -> ApiResponse:
        return self._dispatch(
            "CancelBooking",
            lambda: self._service.cancel_booking(
                CancelBookingRequest.model_validate(payload)
            ),
        )

    def reschedule_booking(self, payload: Dict[str, Any]) -> ApiResponse:
        return self._dispatch(
            "RescheduleBooking",
            lambda: self._service.reschedule_booking(
                RescheduleBookingRequest.model_validate(payload)
            ),
        )

    def list_bookings(
        self,
        room_id: Any = None,
        guest_id: Any = None,
        status: Any = None,
        page_number: int = 1,
        page_size: int = 10,
    ) -> ApiResponse:
        return self._dispatch(
            "ListBookings",
            lambda: self._service.list_bookings(
                room_id=_optional_entity_id.validate_python(room_id),
                guest_id=_optional_entity_id.validate_python(guest_id),
                status=_optional_status.validate_python(status),
                pagination=PaginationParameters(
                    page_number=page_number, page_size=page_size
                ),
            ),
        )

    def check_availability(
        self, room_id: Any, check_in: Any, check_out: Any
    ) -> ApiResponse:
        def operation() -> Dict[str, Any]:
            room = _entity_id.validate_python(room_id)
            start = _date.validate_python(check_in)
            end = _date.validate_python(check_out)
            return {
                "room_id": str(room),
                "check_in": start.isoformat(),
                "check_out": end.isoformat(),
                "is_available": self._service.check_availability(room, start, end),
            }

        return self._dispatch("CheckAvailability", operation)


class RoomRequestHandler(RequestHandler):
    """Обработчик запросов к номерам."""

    def __init__(
        self,
        service: RoomApplicationService,
        logger: Optional[ports.ILogger] = None,
    ):
        super().__init__(logger)
        self._service = service

    def create_room(self, payload: Dict[str, Any]) -> ApiResponse:
        return self._dispatch(
            "CreateRoom",
            lambda: self._service.create_room(CreateRoomRequest.model_validate(payload)),
            success_status=HTTPStatus.CREATED,
        )

    def get_room(self, room_id: Any) -> ApiResponse:
        return self._dispatch(
            "GetRoom",
            lambda: self._service.get_room(_entity_id.validate_python(room_id)),
        )

    def update_room(self, payload: Dict[str, Any]) -> ApiResponse:
        return self._dispatch(
            "UpdateRoom",
            lambda: self._service.update_room(UpdateRoomRequest.model_validate(payload)),
        )

    def delete_room(self, room_id: Any) -> ApiResponse:
        return self._dispatch(
            "DeleteRoom",
            lambda: self._service.delete_room(_entity_id.validate_python(room_id)),
            success_status=HTTPStatus.NO_CONTENT,
        )

    def list_available_rooms(
        self,
        check_in: Any,
        check_out: Any,
        room_type: Optional[str] = None,
        capacity: Optional[int] = None,
    ) -> ApiResponse:
        return self._dispatch(
            "ListAvailableRooms",
            lambda: [
                room.model_dump(mode="json")
                for room in self._service.list_available_rooms(
                    _date.validate_python(check_in),
                    _date.validate_python(check_out),
                    room_type=room_type,
                    capacity=capacity,
                )
            ],
        )
