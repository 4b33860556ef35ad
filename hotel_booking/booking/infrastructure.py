"""
Инфраструктурный слой контекста бронирования.

Содержит реализации репозиториев и других интерфейсов,
зависимые от конкретных технологий (файлы, журналирование и т.д.).
"""
import json
import logging
import threading
from pathlib import Path
from typing import Callable, Dict, Generic, List, Optional, Type, TypeVar
from uuid import UUID

from pydantic import BaseModel, ValidationError

from ..shared_kernel import (
    BookingStatus,
    ConflictError,
    DomainEvent,
    EntityId,
    Money,
    NotFoundError,
    RoomType,
    StorageUnavailableError,
)
from . import interfaces as ports
from .domain import Booking, Room, find_conflicting_booking

T = TypeVar("T", bound=BaseModel)


class StandardLogger(ports.ILogger):
    """Логгер поверх модуля logging; контекст выводится как JSON."""

    def __init__(self, name: str = "hotel_booking"):
        self._logger = logging.getLogger(name)

    def _log(self, level: int, message: str, context: dict) -> None:
        if context:
            self._logger.log(
                level, "%s %s", message, json.dumps(context, default=str, ensure_ascii=False)
            )
        else:
            self._logger.log(level, message)

    def info(self, message: str, **kwargs) -> None:
        self._log(logging.INFO, message, kwargs)

    def error(self, message: str, **kwargs) -> None:
        self._log(logging.ERROR, message, kwargs)

    def warning(self, message: str, **kwargs) -> None:
        self._log(logging.WARNING, message, kwargs)

    def debug(self, message: str, **kwargs) -> None:
        self._log(logging.DEBUG, message, kwargs)


def _ensure_no_overlap(
    stored: List[Booking], booking: Booking, replacing: Optional[Booking] = None
) -> None:
    """Ограничение исключения: активные бронирования номера не пересекаются."""
    if not booking.is_active():
        return
    same_room = (b for b in stored if b.room_id == booking.room_id)
    conflict = find_conflicting_booking(
        booking.period,
        same_room,
        exclude_booking_id=replacing.id if replacing is not None else None,
    )
    if conflict is not None:
        raise ConflictError(
            room_id=booking.room_id, conflicting_booking_id=conflict.id
        )


class JsonFileRepository(Generic[T]):
    """Базовый класс для репозиториев, работающих с JSON-файлами."""

    def __init__(self, file_path: str, model_class: Type[T]):
        """
        Инициализирует репозиторий.

        Args:
            file_path: Путь к JSON-файлу с данными
            model_class: Класс модели данных

        Raises:
            StorageUnavailableError: файл не удалось прочитать или разобрать
        """
        self._file_path = Path(file_path)
        self._model_class = model_class
        self._data: Dict[EntityId, T] = {}
        self._load_data()

    def _load_data(self) -> None:
        """Загружает данные из JSON-файла."""
        if not self._file_path.exists():
            self._data = {}
            return

        try:
            with open(self._file_path, "r", encoding="utf-8") as f:
                raw_data = f.read()
        except OSError as e:
            raise StorageUnavailableError(
                f"Не удалось прочитать {self._file_path}: {e}"
            ) from e

        if not raw_data.strip():
            self._data = {}
            return

        try:
            items = json.loads(raw_data)
        except json.JSONDecodeError as e:
            raise StorageUnavailableError(
                f"Поврежден файл данных {self._file_path}: {e}"
            ) from e

        try:
            self._data = {
                UUID(item["id"]): self._model_class.model_validate(item)
                for item in items
            }
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            raise StorageUnavailableError(
                f"Некорректная запись в файле данных {self._file_path}: {e}"
            ) from e

    def _save_data(self) -> None:
        """Сохраняет данные в JSON-файл."""
        data = [item.model_dump(mode="json") for item in self._data.values()]

        try:
            # Создаем директорию, если она не существует
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._file_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise StorageUnavailableError(
                f"Не удалось записать {self._file_path}: {e}"
            ) from e


class InMemoryBookingRepository(ports.IBookingRepository):
    """Реализация репозитория бронирований в памяти."""

    def __init__(self):
        self._bookings: Dict[EntityId, Booking] = {}
        self._lock = threading.Lock()

    def get_by_id(self, booking_id: EntityId) -> Booking:
        if booking_id not in self._bookings:
            raise NotFoundError("Бронирование", booking_id)
        return self._bookings[booking_id]

    def add(self, booking: Booking, replacing: Optional[Booking] = None) -> None:
        """
        Добавляет бронирование; replacing - заменяемое (уже отмененное)
        бронирование, сохраняется атомарно вместе с новым.

        Raises:
            ConflictError: период занят или заменяемое бронирование
                уже отменено другим запросом
        """
        with self._lock:
            if booking.id in self._bookings:
                raise ValueError(f"Booking with id {booking.id} already exists")
            if replacing is not None:
                self._ensure_still_active(replacing)
            _ensure_no_overlap(list(self._bookings.values()), booking, replacing)

            snapshot = dict(self._bookings)
            if replacing is not None:
                self._bookings[replacing.id] = replacing
            self._bookings[booking.id] = booking
            self._flush(snapshot)

    def update(self, booking: Booking) -> None:
        """Сохраняет измененное бронирование; отмененное уже не меняется."""
        with self._lock:
            self._ensure_still_active(booking)
            snapshot = dict(self._bookings)
            self._bookings[booking.id] = booking
            self._flush(snapshot)

    def _ensure_still_active(self, booking: Booking) -> None:
        """Хранимая версия бронирования не должна быть отменена; вызывается под блокировкой."""
        stored = self._bookings.get(booking.id)
        if stored is None:
            raise NotFoundError("Бронирование", booking.id)
        if not stored.is_active():
            raise ConflictError(
                room_id=stored.room_id,
                conflicting_booking_id=stored.id,
                message=f"Бронирование {stored.id} уже отменено или перенесено",
            )

    def _flush(self, snapshot: Dict[EntityId, Booking]) -> None:
        """Сохраняет изменения; вызывается под блокировкой."""
        pass

    def list_active_bookings(self, room_id: EntityId) -> List[Booking]:
        return [
            booking
            for booking in self.list_all()
            if booking.room_id == room_id and booking.is_active()
        ]

    def find_by_guest(self, guest_id: EntityId) -> List[Booking]:
        return [
            booking for booking in self.list_all()
            if booking.guest_id == guest_id
        ]

    def find_by_status(self, status: BookingStatus) -> List[Booking]:
        return [
            booking for booking in self.list_all()
            if booking.status == status
        ]

    def list_all(self) -> List[Booking]:
        with self._lock:
            return list(self._bookings.values())


class JsonFileBookingRepository(JsonFileRepository[Booking], InMemoryBookingRepository):
    """Репозиторий бронирований, сохраняющий данные в JSON-файл."""

    def __init__(self, file_path: str):
        InMemoryBookingRepository.__init__(self)
        JsonFileRepository.__init__(self, file_path, Booking)
        self._bookings = self._data

    def _flush(self, snapshot: Dict[EntityId, Booking]) -> None:
        try:
            self._save_data()
        except StorageUnavailableError:
            self._data.clear()
            self._data.update(snapshot)
            raise


class InMemoryRoomRepository(ports.IRoomRepository):
    """Реализация репозитория номеров в памяти."""

    def __init__(self, with_sample_data: bool = True):
        self._rooms: Dict[EntityId, Room] = {}
        if with_sample_data:
            self._initialize_sample_data()

    def _initialize_sample_data(self) -> None:
        """Инициализирует тестовые данные."""
        sample_rooms = [
            Room(
                id=UUID("11111111-1111-1111-1111-111111111111"),
                number="101",
                type=RoomType.STANDARD,
                capacity=2,
                amenities=["TV", "Wi-Fi", "Mini-bar"],
                base_price_per_night=Money(amount="3500.00"),
            ),
            Room(
                id=UUID("22222222-2222-2222-2222-222222222222"),
                number="201",
                type=RoomType.DELUXE,
                capacity=2,
                amenities=["TV", "Wi-Fi", "Mini-bar", "Sea View"],
                base_price_per_night=Money(amount="5000.00"),
            ),
            Room(
                id=UUID("33333333-3333-3333-3333-333333333333"),
                number="301",
                type=RoomType.SUITE,
                capacity=4,
                amenities=["TV", "Wi-Fi", "Mini-bar", "Sea View", "Jacuzzi"],
                base_price_per_night=Money(amount="10000.00"),
            ),
            Room(
                id=UUID("44444444-4444-4444-4444-444444444444"),
                number="401",
                type=RoomType.FAMILY,
                capacity=6,
                amenities=["TV", "Wi-Fi", "Kitchen", "Balcony"],
                base_price_per_night=Money(amount="15000.00"),
            ),
        ]

        for room in sample_rooms:
            self._rooms[room.id] = room

    def add(self, room: Room) -> None:
        if room.id in self._rooms:
            raise ValueError(f"Room with id {room.id} already exists")
        self._rooms[room.id] = room

    def get_by_id(self, room_id: EntityId) -> Room:
        if room_id not in self._rooms:
            raise NotFoundError("Номер", room_id)
        return self._rooms[room_id]

    def update(self, room: Room) -> None:
        if room.id not in self._rooms:
            raise NotFoundError("Номер", room.id)
        self._rooms[room.id] = room

    def delete(self, room_id: EntityId) -> None:
        if room_id not in self._rooms:
            raise NotFoundError("Номер", room_id)
        del self._rooms[room_id]

    def list_all(self, room_type: Optional[str] = None) -> List[Room]:
        return [
            room for room in self._rooms.values()
            if room_type is None or room.type == room_type
        ]


class InMemoryEventBus(ports.IEventBus):
    """Реализация шины событий в памяти."""

    def __init__(self, logger: Optional[ports.ILogger] = None):
        self._subscribers: Dict[Type[DomainEvent], List[Callable]] = {}
        self._logger = logger or StandardLogger("hotel_booking.events")

    def publish(self, event: DomainEvent) -> None:
        """Публикует событие."""
        event_type = type(event)
        if event_type not in self._subscribers:
            self._logger.debug(f"No subscribers for event type {event_type.__name__}")
            return

        self._logger.info(
            f"Publishing event: {event_type.__name__}",
            event=event.model_dump(mode="json"),
        )

        for handler in self._subscribers[event_type]:
            try:
                handler(event)
            except Exception as e:
                self._logger.error(
                    f"Error in event handler for {event_type.__name__}",
                    error=str(e),
                    event=event.model_dump(mode="json"),
                )

    def subscribe(self, event_type: Type[DomainEvent], handler) -> None:
        """Подписывает обработчик на события указанного типа."""
        self._subscribers.setdefault(event_type, []).append(handler)
        self._logger.debug(f"Subscribed handler to {event_type.__name__} events")


class BookingUnitOfWork(ports.IBookingUnitOfWork):
    """
    Единица работы для контекста бронирования.

    Репозитории пишут сразу; единица работы собирает доменные события
    затронутых бронирований и публикует их только при фиксации.
    """

    def __init__(
        self,
        bookings_repo: Optional[ports.IBookingRepository] = None,
        rooms_repo: Optional[ports.IRoomRepository] = None,
        event_bus: Optional[ports.IEventBus] = None,
        logger: Optional[ports.ILogger] = None,
    ):
        self._logger = logger or StandardLogger("hotel_booking.uow")
        self._bookings = bookings_repo or InMemoryBookingRepository()
        self._rooms = rooms_repo or InMemoryRoomRepository()
        self._event_bus = event_bus or InMemoryEventBus(self._logger)
        self._seen: List[Booking] = []
        self._committed = False

    @property
    def bookings(self) -> ports.IBookingRepository:
        return self._bookings

    @property
    def rooms(self) -> ports.IRoomRepository:
        return self._rooms

    @property
    def event_bus(self) -> ports.IEventBus:
        return self._event_bus

    @property
    def committed(self) -> bool:
        return self._committed

    def collect(self, booking: Booking) -> None:
        """Запоминает бронирование, события которого надо опубликовать."""
        if all(booking is not seen for seen in self._seen):
            self._seen.append(booking)

    def commit(self) -> None:
        """Фиксирует изменения и публикует накопленные события."""
        seen, self._seen = self._seen, []
        for booking in seen:
            for event in booking.pull_domain_events():
                self._event_bus.publish(event)
        self._committed = True
        self._logger.debug("BookingUnitOfWork committed")

    def rollback(self) -> None:
        """Отбрасывает накопленные события."""
        for booking in self._seen:
            booking.pull_domain_events()
        self._seen = []
        self._committed = False
        self._logger.warning("BookingUnitOfWork rolled back")

    def __enter__(self):
        self._committed = False
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.commit()
        else:
            self.rollback()
        return False  # Пробрасываем исключение дальше, если оно было
