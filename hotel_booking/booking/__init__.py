"""
Модуль контекста бронирования (Booking Context).

Отвечает за бронирование номеров в отеле, включая:
- Проверку конфликтов бронирования по датам
- Создание, перенос, подтверждение и отмену бронирований
- Перевод доменных ошибок в ответы обработчика запросов
"""

from . import api, application, domain, infrastructure, interfaces

__all__ = [
    'api',
    'domain',
    'application',
    'infrastructure',
    'interfaces',
]
