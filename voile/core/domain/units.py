"""
Units — raw units, field elements и валидация входов

Деньги везде — целые числа в наименьшей единице (10^-6 USDC).
Единственное место, где допускается float, — display-конверсия raw_to_usdc
и effective APY (см. voile.core.math.pricing).

ЗАПРЕЩЕНО передавать float в денежные расчёты.
"""

from decimal import Decimal, InvalidOperation, ROUND_FLOOR
from typing import Annotated, Final, Tuple, Union

from pydantic import Field

from voile.config import (
    MAX_COOLDOWN_DAYS,
    MIN_COOLDOWN_DAYS,
    ONE_USDC,
    SECONDS_PER_DAY,
)
from voile.core.exceptions import InvalidAmount


# =============================================================================
# FIELD ELEMENTS
# =============================================================================

# Goldilocks prime: 2^64 - 2^32 + 1
FIELD_MODULUS: Final[int] = 2**64 - 2**32 + 1

# Random ids используют 63 бита, чтобы гарантированно попасть в поле
FELT_RANDOM_BITS: Final[int] = 63

# Длина nullifier secret в байтах
NULLIFIER_SECRET_LEN: Final[int] = 32

Felt = int
Word = Tuple[int, int, int, int]

AccountId = str
NoteId = str

DisplayAmount = Union[int, str, Decimal]


# =============================================================================
# КОНВЕРСИИ
# =============================================================================


def _to_decimal(value: DisplayAmount, name: str) -> Decimal:
    """Разбор display-значения в конечный Decimal."""
    if isinstance(value, (float, bool)):
        raise InvalidAmount(f"{name} must be int, str or Decimal, got {type(value).__name__}")
    try:
        parsed = Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as e:
        raise InvalidAmount(f"{name} is not a decimal number: {value!r}") from e
    if not parsed.is_finite():
        raise InvalidAmount(f"{name} must be finite, got {value!r}")
    return parsed


def usdc_to_raw(display: DisplayAmount) -> int:
    """
    Конверсия display amount → raw units.

    Дробная часть ниже 10^-6 отбрасывается (floor). Float не принимается:
    двоичное представление 0.1 не равно 0.1.

    Args:
        display: Сумма в USDC (int, str или Decimal)

    Returns:
        Сумма в raw units

    Raises:
        InvalidAmount: если передан float, bool или не конечное число
    """
    value = _to_decimal(display, "display amount") * ONE_USDC
    return int(value.to_integral_value(rounding=ROUND_FLOOR))


def raw_to_usdc(raw: int) -> int:
    """Конверсия raw units → целые USDC (floor)."""
    return raw // ONE_USDC


def bps_to_percent(bps: int) -> Decimal:
    """Basis points → проценты (500 bps → 5)."""
    return Decimal(bps) / 100


def percent_to_bps(percent: DisplayAmount) -> int:
    """
    Проценты → basis points (floor).

    8.25% → 825 bps. Float не принимается (8.1 * 100 == 809.999...).
    """
    value = _to_decimal(percent, "percent") * 100
    return int(value.to_integral_value(rounding=ROUND_FLOOR))


def cooldown_days_to_seconds(cooldown_days: int) -> int:
    return cooldown_days * SECONDS_PER_DAY


# =============================================================================
# ВАЛИДАЦИЯ
# =============================================================================


def validate_amount(amount: int, name: str = "amount") -> None:
    """
    Проверка, что сумма — положительное целое число raw units.

    Raises:
        InvalidAmount: если amount не int или amount <= 0
    """
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmount(f"{name} must be an integer number of raw units, got {type(amount).__name__}")

    if amount <= 0:
        raise InvalidAmount(f"{name} must be positive, got {amount}")


def is_valid_cooldown_days(cooldown_days: int) -> bool:
    """Cooldown в днях должен быть в [1, 365]."""
    if isinstance(cooldown_days, bool) or not isinstance(cooldown_days, int):
        return False
    return MIN_COOLDOWN_DAYS <= cooldown_days <= MAX_COOLDOWN_DAYS


def is_valid_felt(value: int) -> bool:
    return isinstance(value, int) and 0 <= value < FIELD_MODULUS


# =============================================================================
# PYDANTIC TYPES
# =============================================================================

FeltField = Annotated[int, Field(ge=0, lt=FIELD_MODULUS, strict=True)]
WordField = Tuple[FeltField, FeltField, FeltField, FeltField]
RawAmount = Annotated[int, Field(ge=0, strict=True)]

# Случайные request/offer id (см. FELT_RANDOM_BITS)
RandomIdField = Annotated[int, Field(ge=0, lt=2**FELT_RANDOM_BITS, strict=True)]
