"""
Интерфейсы (порты) для контекста бронирования.
"""

from __future__ import annotations

from typing import Any, Callable, List, Optional, Protocol, Type, TypeVar

from ..shared_kernel import BookingStatus, DomainEvent, EntityId
from .domain import Booking, Room

T_Event = TypeVar("T_Event", bound=DomainEvent)


class ILogger(Protocol):
    """Интерфейс для логгера."""

    def info(self, message: str, **kwargs: Any) -> None: ...
    def error(self, message: str, **kwargs: Any) -> None: ...
    def warning(self, message: str, **kwargs: Any) -> None: ...
    def debug(self, message: str, **kwargs: Any) -> None: ...


class IEventBus(Protocol):
    """Интерфейс для шины событий."""

    def publish(self, event: DomainEvent) -> None: ...
    def subscribe(
        self, event_type: Type[T_Event], handler: Callable[[T_Event], None]
    ) -> None: ...


class IBookingRepository(Protocol):
    """
    Интерфейс репозитория для бронирований.

    add() обязан отклонять бронирование, пересекающееся с активным
    бронированием того же номера (ConflictError). Заменяемое бронирование
    (replacing) и бронирование в update() должны быть еще активны в
    хранилище, иначе ConflictError. Ошибки хранилища сообщаются через
    StorageUnavailableError.
    """

    def add(
        self, booking: Booking, replacing: Optional[Booking] = None
    ) -> None: ...
    def get_by_id(self, booking_id: EntityId) -> Booking: ...
    def update(self, booking: Booking) -> None: ...
    def list_active_bookings(self, room_id: EntityId) -> List[Booking]: ...
    def find_by_guest(self, guest_id: EntityId) -> List[Booking]: ...
    def find_by_status(self, status: BookingStatus) -> List[Booking]: ...
    def list_all(self) -> List[Booking]: ...


class IRoomRepository(Protocol):
    """Интерфейс репозитория для номеров."""

    def add(self, room: Room) -> None: ...
    def get_by_id(self, room_id: EntityId) -> Room: ...
    def update(self, room: Room) -> None: ...
    def delete(self, room_id: EntityId) -> None: ...
    def list_all(self, room_type: Optional[str] = None) -> List[Room]: ...


class IBookingUnitOfWork(Protocol):
    """Интерфейс Unit of Work для контекста Booking."""

    @property
    def bookings(self) -> IBookingRepository: ...
    @property
    def rooms(self) -> IRoomRepository: ...
    @property
    def event_bus(self) -> IEventBus: ...

    def __enter__(self) -> IBookingUnitOfWork: ...
    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None: ...
    def collect(self, booking: Booking) -> None: ...
    def commit(self) -> None: ...
    def rollback(self) -> None: ...
