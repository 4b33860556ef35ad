from functools import partial
from typing import Any, Dict, Optional

from .booking.api import BookingRequestHandler, RoomRequestHandler
from .booking.application import BookingApplicationService, RoomApplicationService
from .booking.domain import BookingCancelled, BookingCreated, BookingPolicy
from .booking.infrastructure import (
    BookingUnitOfWork,
    InMemoryBookingRepository,
    JsonFileBookingRepository,
    StandardLogger,
)
from .config import Settings
from .logging_config import configure_logging


def log_booking_event(event, logger) -> None:
    """Обработчик событий бронирования: пишет событие в журнал."""
    logger.info(f"{event.event_type} received", booking_id=event.booking_id)


def bootstrap_app(settings: Optional[Settings] = None) -> Dict[str, Any]:
    """Создает и настраивает все компоненты приложения."""
    settings = settings or Settings.from_env()
    configure_logging(settings)
    logger = StandardLogger("hotel_booking")

    # 1. Выбираем хранилище бронирований
    if settings.storage_path:
        bookings_repo = JsonFileBookingRepository(settings.storage_path)
    else:
        bookings_repo = InMemoryBookingRepository()

    # 2. Создаем Unit of Work и сервисы, передавая им зависимости
    booking_uow = BookingUnitOfWork(bookings_repo=bookings_repo, logger=logger)
    booking_service = BookingApplicationService(
        booking_uow,
        policy=BookingPolicy(max_booking_nights=settings.max_booking_nights),
        logger=logger,
        default_page_size=settings.default_page_size,
        max_page_size=settings.max_page_size,
    )

    # 3. Подписываем обработчики на события
    handler = partial(log_booking_event, logger=logger)
    booking_uow.event_bus.subscribe(BookingCreated, handler)
    booking_uow.event_bus.subscribe(BookingCancelled, handler)

    room_service = RoomApplicationService(booking_uow)

    # Возвращаем настроенные компоненты
    return {
        "settings": settings,
        "booking_uow": booking_uow,
        "booking_service": booking_service,
        "room_service": room_service,
        "booking_handler": BookingRequestHandler(booking_service, logger=logger),
        "room_handler": RoomRequestHandler(room_service, logger=logger),
    }
