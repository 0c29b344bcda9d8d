"""
ProtocolConfig — параметры ценообразования протокола

Все денежные параметры задаются в basis points (целые числа).
Float в этом модуле не используется.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Final


# =============================================================================
# КОНСТАНТЫ
# =============================================================================

# Знаменатель basis points: 10_000 bps = 100%
BPS_DENOMINATOR: Final[int] = 10_000

DAYS_PER_YEAR: Final[int] = 365
SECONDS_PER_DAY: Final[int] = 24 * 60 * 60

# USDC: 6 decimals
USDC_DECIMALS: Final[int] = 6
ONE_USDC: Final[int] = 10**USDC_DECIMALS

# Advance fee: 5% = 500 bps
DEFAULT_ADVANCE_FEE_BPS: Final[int] = 500

# APR: 10% = 1000 bps
DEFAULT_APR_BPS: Final[int] = 1_000

# Fee split: 80% LP / 20% protocol
LP_FEE_BPS: Final[int] = 8_000
PROTOCOL_FEE_BPS: Final[int] = 2_000

DEFAULT_COOLDOWN_DAYS: Final[int] = 14
MIN_COOLDOWN_DAYS: Final[int] = 1
MAX_COOLDOWN_DAYS: Final[int] = 365

# Минимальный размер сделки (display units)
MIN_DEAL_SIZE_USDC: Final[int] = 100


# =============================================================================
# ENUMS
# =============================================================================


class FeeRemainderPolicy(str, Enum):
    """
    Куда уходит остаток от floor/floor split advance fee.

    TO_PROTOCOL: LP получает floor(fee * lp_bps / 10000), protocol — остальное.
    TO_LP: protocol получает floor(fee * protocol_bps / 10000), LP — остальное.

    В обоих случаях lp_share + protocol_share == fee.
    """

    TO_PROTOCOL = "to_protocol"
    TO_LP = "to_lp"


# =============================================================================
# CONFIG
# =============================================================================


@dataclass(frozen=True)
class ProtocolConfig:
    """Конфигурация ценообразования.

    Значения по умолчанию соответствуют параметрам протокола:
    - advance fee 5%
    - APR 10%
    - split 80/20 (LP/protocol)
    - cooldown 14 дней
    """

    advance_fee_bps: int = DEFAULT_ADVANCE_FEE_BPS
    default_apr_bps: int = DEFAULT_APR_BPS
    lp_fee_bps: int = LP_FEE_BPS
    protocol_fee_bps: int = PROTOCOL_FEE_BPS
    default_cooldown_days: int = DEFAULT_COOLDOWN_DAYS
    min_deal_size_raw: int = MIN_DEAL_SIZE_USDC * ONE_USDC
    fee_remainder_policy: FeeRemainderPolicy = FeeRemainderPolicy.TO_PROTOCOL

    def __post_init__(self) -> None:
        for name in ("advance_fee_bps", "lp_fee_bps", "protocol_fee_bps"):
            value = getattr(self, name)
            if not 0 <= value <= BPS_DENOMINATOR:
                raise ValueError(f"{name} must be in [0, {BPS_DENOMINATOR}], got {value}")

        if self.default_apr_bps < 0:
            raise ValueError(f"default_apr_bps cannot be negative: {self.default_apr_bps}")

        if self.lp_fee_bps + self.protocol_fee_bps != BPS_DENOMINATOR:
            raise ValueError(
                f"lp_fee_bps + protocol_fee_bps must equal {BPS_DENOMINATOR}, "
                f"got {self.lp_fee_bps} + {self.protocol_fee_bps}"
            )

        if not MIN_COOLDOWN_DAYS <= self.default_cooldown_days <= MAX_COOLDOWN_DAYS:
            raise ValueError(
                f"default_cooldown_days must be in [{MIN_COOLDOWN_DAYS}, {MAX_COOLDOWN_DAYS}], "
                f"got {self.default_cooldown_days}"
            )

        if self.min_deal_size_raw < 0:
            raise ValueError(f"min_deal_size_raw cannot be negative: {self.min_deal_size_raw}")


DEFAULT_CONFIG: Final[ProtocolConfig] = ProtocolConfig()
