"""
Прикладной слой контекста бронирования.

Содержит сервисы приложения, которые координируют
взаимодействие между внешними интерфейсами и доменной моделью.
Все операции ввода-вывода выполняются здесь, доменная модель
получает уже прочитанные данные.
"""

import math
from datetime import date
from decimal import Decimal
from typing import Callable, List, Optional

from pydantic import BaseModel, Field

from ..shared_kernel import (
    BookingStatus,
    BusinessRuleValidationException,
    ConflictError,
    DateRange,
    EntityId,
    Money,
    RoomType,
    today,
)
from . import interfaces as ports
from .domain import Booking, BookingConflictGuard, BookingPolicy, Room
from .infrastructure import StandardLogger

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

# DTO (Data Transfer Objects) для входящих данных


class CreateBookingRequest(BaseModel):
    """Запрос на создание бронирования."""

    room_id: EntityId
    guest_id: EntityId
    check_in: date
    check_out: date
    adults: int = Field(..., gt=0)
    children: int = Field(0, ge=0)
    special_requests: Optional[str] = None


class RescheduleBookingRequest(BaseModel):
    """Запрос на перенос бронирования на другие даты."""

    booking_id: EntityId
    check_in: date
    check_out: date


class CancelBookingRequest(BaseModel):
    """Запрос на отмену бронирования."""

    booking_id: EntityId
    reason: Optional[str] = None


class CreateRoomRequest(BaseModel):
    """Запрос на создание номера."""

    number: str = Field(..., min_length=1)
    type: RoomType
    capacity: int = Field(..., gt=0)
    price_per_night: Decimal = Field(..., ge=0)
    amenities: List[str] = Field(default_factory=list)


class UpdateRoomRequest(BaseModel):
    """Запрос на изменение номера; не указанные поля не меняются."""

    room_id: EntityId
    capacity: Optional[int] = Field(None, gt=0)
    price_per_night: Optional[Decimal] = Field(None, ge=0)
    amenities: Optional[List[str]] = None
    is_available: Optional[bool] = None


class PaginationParameters(BaseModel):
    """Параметры постраничного вывода."""

    page_number: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    def normalized(
        self,
        default_page_size: int = DEFAULT_PAGE_SIZE,
        max_page_size: int = MAX_PAGE_SIZE,
    ) -> "PaginationParameters":
        """Номер страницы меньше 1 заменяется на 1, некорректный размер - на размер по умолчанию."""
        page_size = self.page_size if self.page_size >= 1 else default_page_size
        return PaginationParameters(
            page_number=max(self.page_number, 1),
            page_size=min(page_size, max_page_size),
        )

    @property
    def offset(self) -> int:
        return (self.page_number - 1) * self.page_size


# DTO для исходящих данных


class BookingDTO(BaseModel):
    """DTO для представления бронирования."""

    id: EntityId
    room_id: EntityId
    guest_id: EntityId
    check_in: date
    check_out: date
    nights: int
    status: BookingStatus
    adults: int
    children: int
    total_price: Optional[str]
    currency: Optional[str]
    special_requests: Optional[str]
    created_at: str
    updated_at: str

    @classmethod
    def from_domain(cls, booking: Booking) -> "BookingDTO":
        """Создает DTO из доменной модели."""
        return cls(
            id=booking.id,
            room_id=booking.room_id,
            guest_id=booking.guest_id,
            check_in=booking.period.check_in,
            check_out=booking.period.check_out,
            nights=booking.period.nights,
            status=booking.status,
            adults=booking.adults,
            children=booking.children,
            total_price=(
                str(booking.total_price.amount) if booking.total_price else None
            ),
            currency=booking.total_price.currency if booking.total_price else None,
            special_requests=booking.special_requests,
            created_at=booking.created_at.isoformat(),
            updated_at=booking.updated_at.isoformat(),
        )


class PageDTO(BaseModel):
    """Страница списка бронирований."""

    items: List[BookingDTO]
    page_number: int
    page_size: int
    total_count: int
    total_pages: int


class RoomDTO(BaseModel):
    """DTO для представления номера."""

    id: EntityId
    number: str
    type: str
    capacity: int
    amenities: List[str]
    price_per_night: str
    currency: str
    is_available: bool

    @classmethod
    def from_domain(cls, room: Room) -> "RoomDTO":
        """Создает DTO из доменной модели."""
        return cls(
            id=room.id,
            number=room.number,
            type=room.type.value,
            capacity=room.capacity,
            amenities=room.amenities,
            price_per_night=str(room.base_price_per_night.amount),
            currency=room.base_price_per_night.currency,
            is_available=room.is_available,
        )


# Сервисы приложения


class BookingApplicationService:
    """Сервис приложения для работы с бронированиями."""

    def __init__(
        self,
        uow: ports.IBookingUnitOfWork,
        policy: Optional[BookingPolicy] = None,
        logger: Optional[ports.ILogger] = None,
        clock: Callable[[], date] = today,
        default_page_size: int = DEFAULT_PAGE_SIZE,
        max_page_size: int = MAX_PAGE_SIZE,
    ):
        """Инициализирует сервис."""
        self._uow = uow
        self._policy = policy or BookingPolicy()
        self._guard = BookingConflictGuard()
        self._logger = logger or StandardLogger("hotel_booking.booking")
        self._clock = clock
        self._default_page_size = default_page_size
        self._max_page_size = max_page_size

    def create_booking(self, request: CreateBookingRequest) -> BookingDTO:
        """
        Создает новое бронирование.

        Raises:
            InvalidRangeError: дата выезда не позже даты заезда
            BusinessRuleValidationException: нарушена политика бронирования
            NotFoundError: номер не найден
            ConflictError: номер занят на выбранные даты
        """
        period = DateRange(check_in=request.check_in, check_out=request.check_out)
        self._policy.validate_booking_period(period, self._clock())

        with self._uow:
            room = self._uow.rooms.get_by_id(request.room_id)

            # Быстрая проверка ради понятной ошибки; окончательно
            # пересечение проверяет репозиторий при добавлении
            self._guard.reserve(
                room_id=room.id,
                check_in=period.check_in,
                check_out=period.check_out,
                existing_bookings=self._uow.bookings.list_active_bookings(room.id),
            )

            booking = Booking.create(
                room=room,
                guest_id=request.guest_id,
                period=period,
                adults=request.adults,
                children=request.children,
                special_requests=request.special_requests,
            )
            self._uow.bookings.add(booking)
            self._uow.collect(booking)

        self._logger.info(
            "Booking created",
            booking_id=booking.id,
            room_id=room.id,
            check_in=period.check_in,
            check_out=period.check_out,
        )
        return BookingDTO.from_domain(booking)

    def get_booking(self, booking_id: EntityId) -> BookingDTO:
        """Возвращает информацию о бронировании."""
        booking = self._uow.bookings.get_by_id(booking_id)
        return BookingDTO.from_domain(booking)

    def confirm_booking(self, booking_id: EntityId) -> BookingDTO:
        """Подтверждает бронирование."""
        with self._uow:
            # Меняем копию: при ошибке сохранения хранимое бронирование не меняется
            booking = self._uow.bookings.get_by_id(booking_id).model_copy(deep=True)
            booking.confirm()
            self._uow.bookings.update(booking)
            self._uow.collect(booking)

        return BookingDTO.from_domain(booking)

    def cancel_booking(self, request: CancelBookingRequest) -> BookingDTO:
        """
        Отменяет бронирование.

        Если сохранить отмену не удалось (StorageUnavailableError),
        бронирование остается активным и запрос можно повторить.
        """
        with self._uow:
            booking = self._uow.bookings.get_by_id(request.booking_id).model_copy(
                deep=True
            )
            booking.cancel(request.reason)
            self._uow.bookings.update(booking)
            self._uow.collect(booking)

        self._logger.info("Booking cancelled", booking_id=booking.id)
        return BookingDTO.from_domain(booking)

    def reschedule_booking(self, request: RescheduleBookingRequest) -> BookingDTO:
        """
        Переносит бронирование на новые даты.

        Даты существующего бронирования не меняются: оно отменяется,
        а вместо него создается новое. Старое бронирование не мешает
        новому, даже если периоды пересекаются.
        """
        period = DateRange(check_in=request.check_in, check_out=request.check_out)
        self._policy.validate_booking_period(period, self._clock())

        with self._uow:
            stored = self._uow.bookings.get_by_id(request.booking_id)
            room = self._uow.rooms.get_by_id(stored.room_id)

            self._guard.reserve(
                room_id=room.id,
                check_in=period.check_in,
                check_out=period.check_out,
                existing_bookings=self._uow.bookings.list_active_bookings(room.id),
                exclude_booking_id=stored.id,
            )

            # Отменяем копию, чтобы при ошибке сохранения хранимое
            # бронирование осталось нетронутым
            old = stored.model_copy(deep=True)
            old.cancel(reason="Перенос бронирования")

            booking = Booking.create(
                room=room,
                guest_id=old.guest_id,
                period=period,
                adults=old.adults,
                children=old.children,
                special_requests=old.special_requests,
            )
            self._uow.bookings.add(booking, replacing=old)
            self._uow.collect(old)
            self._uow.collect(booking)

        self._logger.info(
            "Booking rescheduled", old_booking_id=old.id, booking_id=booking.id
        )
        return BookingDTO.from_domain(booking)

    def check_availability(
        self, room_id: EntityId, check_in: date, check_out: date
    ) -> bool:
        """Проверяет, свободен ли номер на указанный период."""
        period = DateRange(check_in=check_in, check_out=check_out)
        room = self._uow.rooms.get_by_id(room_id)
        return self._guard.is_available(
            room.id, period, self._uow.bookings.list_active_bookings(room.id)
        )

    def list_bookings(
        self,
        room_id: Optional[EntityId] = None,
        guest_id: Optional[EntityId] = None,
        status: Optional[BookingStatus] = None,
        pagination: Optional[PaginationParameters] = None,
    ) -> PageDTO:
        """Возвращает страницу бронирований с фильтрацией."""
        pagination = (pagination or PaginationParameters()).normalized(
            self._default_page_size, self._max_page_size
        )

        if guest_id is not None:
            bookings = self._uow.bookings.find_by_guest(guest_id)
        elif status is not None:
            bookings = self._uow.bookings.find_by_status(status)
        else:
            bookings = self._uow.bookings.list_all()

        bookings = [
            b
            for b in bookings
            if (room_id is None or b.room_id == room_id)
            and (status is None or b.status == status)
        ]
        bookings.sort(key=lambda b: (b.period.check_in, b.created_at))

        page = bookings[pagination.offset:pagination.offset + pagination.page_size]
        return PageDTO(
            items=[BookingDTO.from_domain(b) for b in page],
            page_number=pagination.page_number,
            page_size=pagination.page_size,
            total_count=len(bookings),
            total_pages=math.ceil(len(bookings) / pagination.page_size),
        )


class RoomApplicationService:
    """Сервис приложения для работы с номерами."""

    def __init__(self, uow: ports.IBookingUnitOfWork):
        """Инициализирует сервис."""
        self._uow = uow
        self._guard = BookingConflictGuard()

    def list_available_rooms(
        self,
        check_in: date,
        check_out: date,
        room_type: Optional[str] = None,
        capacity: Optional[int] = None,
    ) -> List[RoomDTO]:
        """Возвращает список номеров, свободных на указанный период."""
        period = DateRange(check_in=check_in, check_out=check_out)

        available_rooms = [
            room
            for room in self._uow.rooms.list_all(room_type=room_type)
            if room.is_available
            and (capacity is None or room.capacity >= capacity)
            and self._guard.is_available(
                room.id, period, self._uow.bookings.list_active_bookings(room.id)
            )
        ]

        return [RoomDTO.from_domain(room) for room in available_rooms]

    def get_room(self, room_id: EntityId) -> RoomDTO:
        """Возвращает информацию о номере."""
        room = self._uow.rooms.get_by_id(room_id)
        return RoomDTO.from_domain(room)

    def create_room(self, request: CreateRoomRequest) -> RoomDTO:
        """
        Создает номер.

        Raises:
            BusinessRuleValidationException: номер с таким обозначением уже есть
        """
        if any(r.number == request.number for r in self._uow.rooms.list_all()):
            raise BusinessRuleValidationException(
                f"Номер {request.number} уже существует"
            )

        room = Room(
            number=request.number,
            type=request.type,
            capacity=request.capacity,
            amenities=request.amenities,
            base_price_per_night=Money(amount=request.price_per_night),
        )
        self._uow.rooms.add(room)
        return RoomDTO.from_domain(room)

    def update_room(self, request: UpdateRoomRequest) -> RoomDTO:
        """Изменяет вместимость, цену, удобства или доступность номера."""
        room = self._uow.rooms.get_by_id(request.room_id)

        changes = request.model_dump(
            exclude={"room_id", "price_per_night"}, exclude_none=True
        )
        if request.price_per_night is not None:
            changes["base_price_per_night"] = Money(
                amount=request.price_per_night,
                currency=room.base_price_per_night.currency,
            )

        updated = room.model_copy(update=changes)
        self._uow.rooms.update(updated)
        return RoomDTO.from_domain(updated)

    def delete_room(self, room_id: EntityId) -> None:
        """
        Удаляет номер.

        Raises:
            NotFoundError: номер не найден
            ConflictError: у номера есть активные бронирования
        """
        room = self._uow.rooms.get_by_id(room_id)
        active = self._uow.bookings.list_active_bookings(room.id)
        if active:
            raise ConflictError(
                room_id=room.id,
                conflicting_booking_id=active[0].id,
                message=f"Нельзя удалить номер {room.number}: есть активные бронирования",
            )
        self._uow.rooms.delete(room.id)
