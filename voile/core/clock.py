"""
Clock — unix timestamps (секунды) и cooldown helpers.

Все компоненты принимают clock: Callable[[], int], чтобы тесты могли
подставить фиксированное время.
"""

import time
from typing import Callable, NamedTuple

from voile.config import SECONDS_PER_DAY

Clock = Callable[[], int]


class CooldownRemaining(NamedTuple):
    """Оставшееся время cooldown."""

    days: int
    hours: int
    minutes: int
    seconds: int
    total_seconds: int


def current_timestamp() -> int:
    """Текущий unix timestamp (секунды, UTC)."""
    return int(time.time())


def cooldown_end_timestamp(cooldown_seconds: int, now: int) -> int:
    return now + cooldown_seconds


def is_cooldown_ended(cooldown_end: int, now: int) -> bool:
    return now >= cooldown_end


def remaining_cooldown(cooldown_end: int, now: int) -> CooldownRemaining:
    """
    Разложение оставшегося cooldown на дни/часы/минуты/секунды.

    Args:
        cooldown_end: timestamp окончания cooldown
        now: текущий timestamp

    Returns:
        CooldownRemaining (все нули, если cooldown закончился)
    """
    remaining = cooldown_end - now
    if remaining <= 0:
        return CooldownRemaining(0, 0, 0, 0, 0)

    return CooldownRemaining(
        days=remaining // SECONDS_PER_DAY,
        hours=(remaining % SECONDS_PER_DAY) // 3600,
        minutes=(remaining % 3600) // 60,
        seconds=remaining % 60,
        total_seconds=remaining,
    )


def days_until(cooldown_end: int, now: int) -> int:
    """
    Полные дни до окончания cooldown, минимум 1.

    Если cooldown уже закончился, возвращается 1: нулевой срок
    дал бы нулевой процент.
    """
    return max(1, (cooldown_end - now) // SECONDS_PER_DAY)
