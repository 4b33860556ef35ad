"""
Доменная модель контекста бронирования.

Содержит сущности, доменные события и правило, по которому решается,
можно ли занять номер на запрошенный период. Модуль не выполняет
ввода-вывода: все данные о существующих бронированиях передает вызывающий код.
"""

from datetime import date, datetime
from typing import Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from ..shared_kernel import (
    BookingStatus,
    BusinessRuleValidationException,
    ConflictError,
    DateRange,
    DomainEvent,
    EntityId,
    Money,
    RoomType,
    generate_id,
    now,
    today,
)


class Room(BaseModel):
    """Номер в отеле."""

    id: EntityId = Field(default_factory=generate_id)
    number: str  # Номер комнаты (например, "101", "202A")
    type: RoomType
    capacity: int = Field(..., gt=0)
    amenities: List[str] = Field(default_factory=list)
    base_price_per_night: Money
    is_available: bool = True


class BookingCreated(DomainEvent):
    """Событие создания бронирования."""

    booking_id: EntityId
    room_id: EntityId
    guest_id: EntityId
    period: DateRange


class BookingCancelled(DomainEvent):
    """Событие отмены бронирования."""

    booking_id: EntityId
    room_id: EntityId
    reason: Optional[str] = None


class BookingConfirmed(DomainEvent):
    """Событие подтверждения бронирования."""

    booking_id: EntityId
    confirmed_at: datetime


class Booking(BaseModel):
    """Бронирование номера в отеле."""

    id: EntityId = Field(default_factory=generate_id)
    room_id: EntityId
    guest_id: EntityId
    period: DateRange
    status: BookingStatus = BookingStatus.PENDING
    adults: int = Field(..., gt=0)
    children: int = Field(0, ge=0)
    total_price: Optional[Money] = None
    special_requests: Optional[str] = None
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)
    _domain_events: List[DomainEvent] = PrivateAttr(default_factory=list)

    @property
    def domain_events(self) -> List[DomainEvent]:
        """Возвращает список доменных событий."""
        return self._domain_events

    def pull_domain_events(self) -> List[DomainEvent]:
        """Возвращает накопленные события и очищает список."""
        events, self._domain_events = self._domain_events, []
        return events

    def is_active(self) -> bool:
        """Занимает ли бронирование номер (любой статус, кроме отмененного)."""
        return self.status != BookingStatus.CANCELLED

    def confirm(self) -> None:
        """Подтверждает бронирование."""
        if self.status != BookingStatus.PENDING:
            raise BusinessRuleValidationException(
                f"Невозможно подтвердить бронирование в статусе {self.status.value}"
            )

        self.status = BookingStatus.CONFIRMED
        self.updated_at = now()
        self._domain_events.append(
            BookingConfirmed(booking_id=self.id, confirmed_at=self.updated_at)
        )

    def cancel(self, reason: Optional[str] = None) -> None:
        """Отменяет бронирование."""
        if self.status not in (BookingStatus.PENDING, BookingStatus.CONFIRMED):
            raise BusinessRuleValidationException(
                f"Невозможно отменить бронирование в статусе {self.status.value}"
            )

        self.status = BookingStatus.CANCELLED
        self.updated_at = now()
        self._domain_events.append(
            BookingCancelled(booking_id=self.id, room_id=self.room_id, reason=reason)
        )

    @classmethod
    def create(
        cls,
        room: Room,
        guest_id: EntityId,
        period: DateRange,
        adults: int,
        children: int = 0,
        special_requests: Optional[str] = None,
    ) -> "Booking":
        """Создает новое бронирование."""
        if not room.is_available:
            raise BusinessRuleValidationException("Номер недоступен для бронирования")

        if adults + children > room.capacity:
            raise BusinessRuleValidationException(
                f"Превышена вместимость номера (макс. {room.capacity} человек)"
            )

        booking = cls(
            room_id=room.id,
            guest_id=guest_id,
            period=period,
            adults=adults,
            children=children,
            total_price=room.base_price_per_night * period.nights,
            special_requests=special_requests,
        )

        booking._domain_events.append(
            BookingCreated(
                booking_id=booking.id, room_id=room.id, guest_id=guest_id, period=period
            )
        )

        return booking


def find_conflict(
    candidate: DateRange, existing: Iterable[DateRange]
) -> Optional[DateRange]:
    """
    Находит диапазон из existing, пересекающийся с candidate.

    Просмотр ленивый и останавливается на первом совпадении. Порядок
    existing не важен, поэтому результат - "какой-то" конфликтующий
    диапазон, а не обязательно самый ранний. Если нужен самый ранний,
    отсортируйте existing перед вызовом.
    """
    return next((period for period in existing if candidate.overlaps(period)), None)


def find_conflicting_booking(
    candidate: DateRange,
    bookings: Iterable[Booking],
    exclude_booking_id: Optional[EntityId] = None,
) -> Optional[Booking]:
    """То же, что find_conflict, но по бронированиям; отмененные пропускаются."""
    active = (
        booking
        for booking in bookings
        if booking.is_active() and booking.id != exclude_booking_id
    )
    return next((b for b in active if candidate.overlaps(b.period)), None)


class Accepted(BaseModel):
    """Решение: номер можно занять на указанный период."""

    model_config = ConfigDict(frozen=True)

    room_id: EntityId
    period: DateRange


class BookingConflictGuard:
    """
    Проверка конфликтов бронирования.

    Принимает решение по данным, переданным вызывающим кодом, и ничего не
    сохраняет. Между чтением бронирований и записью нового возможна гонка,
    поэтому окончательную проверку выполняет репозиторий при добавлении.
    """

    def reserve(
        self,
        room_id: EntityId,
        check_in: date,
        check_out: date,
        existing_bookings: Iterable[Booking],
        exclude_booking_id: Optional[EntityId] = None,
    ) -> Accepted:
        """
        Решает, можно ли занять номер room_id на период [check_in, check_out).

        Raises:
            InvalidRangeError: check_out не позже check_in
            ConflictError: период пересекается с активным бронированием номера
        """
        period = DateRange(check_in=check_in, check_out=check_out)

        same_room = (b for b in existing_bookings if b.room_id == room_id)
        conflict = find_conflicting_booking(period, same_room, exclude_booking_id)
        if conflict is not None:
            raise ConflictError(room_id=room_id, conflicting_booking_id=conflict.id)

        return Accepted(room_id=room_id, period=period)

    def is_available(
        self,
        room_id: EntityId,
        period: DateRange,
        existing_bookings: Iterable[Booking],
    ) -> bool:
        """Проверяет, свободен ли номер на указанный период."""
        same_room = (b for b in existing_bookings if b.room_id == room_id)
        return find_conflicting_booking(period, same_room) is None


class BookingPolicy:
    """Политики и бизнес-правила для бронирований."""

    MAX_BOOKING_NIGHTS = 30
    MIN_BOOKING_NIGHTS = 1

    def __init__(self, max_booking_nights: int = MAX_BOOKING_NIGHTS):
        self.max_booking_nights = max_booking_nights

    def validate_booking_period(
        self, period: DateRange, current_date: Optional[date] = None
    ) -> None:
        """Проверяет, что период бронирования соответствует политикам."""
        current_date = current_date or today()

        if period.nights < self.MIN_BOOKING_NIGHTS:
            raise BusinessRuleValidationException(
                f"Минимальный срок бронирования - {self.MIN_BOOKING_NIGHTS} ночь"
            )

        if period.nights > self.max_booking_nights:
            raise BusinessRuleValidationException(
                f"Максимальный срок бронирования - {self.max_booking_nights} дней"
            )

        if period.check_in < current_date:
            raise BusinessRuleValidationException(
                "Дата заезда не может быть в прошлом"
            )
