"""
Общее ядро (Shared Kernel) системы бронирования номеров.

Содержит общие типы данных, исключения и утилиты.
"""

from .domain import (
    BookingStatus,
    BusinessRuleValidationException,
    ConflictError,
    DateRange,
    DomainEvent,
    # Исключения
    DomainException,
    # Базовые типы
    EntityId,
    InvalidRangeError,
    # Основные классы
    Money,
    NotFoundError,
    # Перечисления
    RoomType,
    StorageUnavailableError,
    generate_id,
    # Утилиты
    now,
    today,
)

__all__ = [
    # Базовые типы
    "EntityId",
    "generate_id",
    # Основные классы
    "Money",
    "DateRange",
    "DomainEvent",
    # Перечисления
    "RoomType",
    "BookingStatus",
    # Исключения
    "DomainException",
    "BusinessRuleValidationException",
    "InvalidRangeError",
    "ConflictError",
    "NotFoundError",
    "StorageUnavailableError",
    # Утилиты
    "now",
    "today",
]
