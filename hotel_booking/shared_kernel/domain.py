"""
Основные доменные типы и утилиты общего ядра.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Общие типы идентификаторов
EntityId = UUID


def generate_id() -> UUID:
    """Генерирует новый UUID."""
    return uuid4()


# Общие исключения
class DomainException(Exception):
    """Базовое исключение для доменных ошибок."""

    pass


class BusinessRuleValidationException(DomainException):
    """Исключение при нарушении бизнес-правил."""

    pass


class InvalidRangeError(BusinessRuleValidationException):
    """Диапазон дат с неположительной длительностью."""

    def __init__(self, start: Any, end: Any):
        self.start = start
        self.end = end
        super().__init__(
            f"Дата выезда ({end}) должна быть позже даты заезда ({start})"
        )


class ConflictError(DomainException):
    """Запрошенный период пересекается с активным бронированием номера."""

    def __init__(
        self,
        room_id: EntityId,
        conflicting_booking_id: EntityId,
        message: Optional[str] = None,
    ):
        self.room_id = room_id
        self.conflicting_booking_id = conflicting_booking_id
        super().__init__(
            message
            or f"Номер {room_id} уже забронирован на выбранные даты "
            f"(бронирование {conflicting_booking_id})"
        )


class NotFoundError(DomainException):
    """Запрошенный объект не найден."""

    def __init__(self, name: str, key: Any):
        self.name = name
        self.key = key
        super().__init__(f"{name} с идентификатором {key} не найден")


class StorageUnavailableError(DomainException):
    """Хранилище временно недоступно, запрос можно повторить."""

    pass


class Money(BaseModel):
    """Денежная сумма с валютой."""

    model_config = ConfigDict(frozen=True)

    amount: Decimal = Field(..., ge=0, description="Сумма денег")
    currency: str = Field(
        default="RUB", max_length=3, description="Код валюты (ISO 4217)"
    )

    def __add__(self, other: "Money") -> "Money":
        if not isinstance(other, Money):
            raise TypeError("Можно складывать только объекты Money")
        if self.currency != other.currency:
            raise ValueError("Нельзя складывать разные валюты")
        return Money(amount=self.amount + other.amount, currency=self.currency)

    def __sub__(self, other: "Money") -> "Money":
        if not isinstance(other, Money):
            raise TypeError("Можно вычитать только объекты Money")
        if self.currency != other.currency:
            raise ValueError("Нельзя вычитать разные валюты")
        if self.amount < other.amount:
            raise ValueError("Результат не может быть отрицательным")
        return Money(amount=self.amount - other.amount, currency=self.currency)

    def __mul__(self, multiplier: int) -> "Money":
        if isinstance(multiplier, bool) or not isinstance(multiplier, (int, Decimal)):
            raise TypeError("Множитель должен быть целым числом или Decimal")
        if multiplier < 0:
            raise ValueError("Множитель не может быть отрицательным")
        return Money(amount=self.amount * multiplier, currency=self.currency)


class DateRange(BaseModel):
    """
    Полуоткрытый диапазон дат [check_in, check_out).

    Дата выезда не входит в диапазон, поэтому бронирование, которое
    заканчивается в день заезда следующего, с ним не пересекается.
    """

    model_config = ConfigDict(frozen=True)

    check_in: date
    check_out: date

    @model_validator(mode="after")
    def check_out_after_check_in(self) -> "DateRange":
        if self.check_out <= self.check_in:
            raise InvalidRangeError(self.check_in, self.check_out)
        return self

    @property
    def nights(self) -> int:
        """Количество ночей в бронировании."""
        return (self.check_out - self.check_in).days

    def overlaps(self, other: "DateRange") -> bool:
        """Проверяет пересечение с другим диапазоном."""
        return self.check_in < other.check_out and other.check_in < self.check_out

    def contains(self, day: date) -> bool:
        """Проверяет, попадает ли ночь с указанной даты в диапазон."""
        return self.check_in <= day < self.check_out


class DomainEvent(BaseModel):
    """Базовый класс для всех доменных событий."""

    model_config = ConfigDict(frozen=True)

    event_id: UUID = Field(default_factory=uuid4)
    occurred_on: datetime = Field(default_factory=lambda: now())

    @property
    def event_type(self) -> str:
        return type(self).__name__


# Общие перечисления
class RoomType(str, Enum):
    """Типы номеров в отеле."""

    STANDARD = "standard"
    DELUXE = "deluxe"
    SUITE = "suite"
    FAMILY = "family"


class BookingStatus(str, Enum):
    """Статусы бронирования."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


# Общие утилиты
def now() -> datetime:
    """Возвращает текущую дату и время в UTC."""
    return datetime.now(timezone.utc)


def today() -> date:
    """Возвращает текущую дату."""
    return date.today()
