"""
Общие фикстуры для тестов контекста бронирования.
"""
from typing import List

import pytest

from hotel_booking.booking.application import BookingApplicationService
from hotel_booking.booking.domain import (
    BookingCancelled,
    BookingConfirmed,
    BookingCreated,
    BookingPolicy,
)
from hotel_booking.booking.infrastructure import BookingUnitOfWork
from hotel_booking.shared_kernel import DomainEvent

from .factories import TODAY


@pytest.fixture
def uow() -> BookingUnitOfWork:
    """Единица работы с чистыми репозиториями в памяти."""
    return BookingUnitOfWork()


@pytest.fixture
def published_events(uow: BookingUnitOfWork) -> List[DomainEvent]:
    """Собирает все события, опубликованные через шину единицы работы."""
    events: List[DomainEvent] = []
    for event_type in (BookingCreated, BookingCancelled, BookingConfirmed):
        uow.event_bus.subscribe(event_type, events.append)
    return events


@pytest.fixture
def booking_service(uow: BookingUnitOfWork) -> BookingApplicationService:
    """Сервис приложения с фиксированной датой."""
    return BookingApplicationService(
        uow, policy=BookingPolicy(max_booking_nights=30), clock=lambda: TODAY
    )
