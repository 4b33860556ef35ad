"""
Настройки приложения.

Значения читаются из переменных окружения с префиксом HOTEL_BOOKING_;
нечитаемые значения заменяются значениями по умолчанию.
"""

import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field

ENV_PREFIX = "HOTEL_BOOKING_"


def _get_str(env: Mapping[str, str], name: str, default: Optional[str]) -> Optional[str]:
    val = env.get(ENV_PREFIX + name)
    if val is None or not val.strip():
        return default
    return val.strip()


def _get_int(env: Mapping[str, str], name: str, default: int) -> int:
    try:
        return int(env.get(ENV_PREFIX + name, str(default)))
    except (ValueError, TypeError):
        return default


class Settings(BaseModel):
    """Настройки контекста бронирования."""

    log_level: str = "INFO"
    storage_path: Optional[str] = None  # None - хранение в памяти
    max_booking_nights: int = Field(30, gt=0)
    default_page_size: int = Field(10, gt=0)
    max_page_size: int = Field(100, gt=0)

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """Создает настройки из переменных окружения."""
        env = os.environ if env is None else env
        defaults = cls()
        return cls(
            log_level=(_get_str(env, "LOG_LEVEL", defaults.log_level) or "INFO").upper(),
            storage_path=_get_str(env, "STORAGE_PATH", None),
            max_booking_nights=_get_int(
                env, "MAX_BOOKING_NIGHTS", defaults.max_booking_nights
            ),
            default_page_size=_get_int(
                env, "DEFAULT_PAGE_SIZE", defaults.default_page_size
            ),
            max_page_size=_get_int(env, "MAX_PAGE_SIZE", defaults.max_page_size),
        )
