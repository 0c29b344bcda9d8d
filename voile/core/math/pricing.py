"""
Pricing — fixed-point арифметика fee / interest / split

Модуль вычисляет все денежные величины сделки:
- advance fee (bps от principal)
- net advance (principal - fee)
- APR interest за срок cooldown
- split fee между LP и протоколом (с явной remainder policy)
- effective APY (только для отображения)

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Все деньги — int (raw units), округление только floor (//)
2. net_advance(p) + advance_fee(p) == p для любых p >= 0
3. lp_share + protocol_share == fee при любой remainder policy
4. effective_apy — единственный float, в settlement math не используется
5. Арифметические функции не бросают исключений; валидация — на границе
   builder/engine и в estimate_pricing (is_valid_cooldown, validate_amount)

ФОРМУЛЫ:
    fee(p, bps)              = floor(p * bps / 10000)
    net_advance(p)           = p - fee(p, advance_fee_bps)
    apr_interest(p, d, apr)  = floor(p * apr * d / (10000 * 365))
    lp_share(fee)            = floor(fee * lp_bps / 10000)
    protocol_share(fee)      = floor(fee * protocol_bps / 10000)
    apy = total_lp_earnings / net_advance * (365 / days) * 100
"""

from dataclasses import dataclass
from typing import Final, NamedTuple, Optional

from voile.config import (
    BPS_DENOMINATOR,
    DAYS_PER_YEAR,
    DEFAULT_ADVANCE_FEE_BPS,
    DEFAULT_APR_BPS,
    DEFAULT_COOLDOWN_DAYS,
    LP_FEE_BPS,
    MAX_COOLDOWN_DAYS,
    MIN_COOLDOWN_DAYS,
    PROTOCOL_FEE_BPS,
    SECONDS_PER_DAY,
    FeeRemainderPolicy,
    ProtocolConfig,
)
from voile.core.domain.units import (
    DisplayAmount,
    is_valid_cooldown_days,
    raw_to_usdc,
    usdc_to_raw,
    validate_amount,
)
from voile.core.exceptions import InvalidRange

MIN_COOLDOWN_SECONDS: Final[int] = MIN_COOLDOWN_DAYS * SECONDS_PER_DAY
MAX_COOLDOWN_SECONDS: Final[int] = MAX_COOLDOWN_DAYS * SECONDS_PER_DAY


# =============================================================================
# ТИПЫ
# =============================================================================


class FeeSplit(NamedTuple):
    """Распределение advance fee между LP и протоколом."""

    lp_share: int
    protocol_share: int
    remainder: int  # остаток floor/floor split, уже включённый в одну из долей


@dataclass(frozen=True)
class PricingBreakdown:
    """Полная разбивка ценообразования сделки (raw units)."""

    principal: int
    advance_fee: int
    net_advance: int
    apr_bps: int
    cooldown_days: int
    apr_interest: int
    lp_fee_share: int
    protocol_fee_share: int
    fee_remainder: int
    total_lp_earnings: int

    # Только для отображения
    effective_apy: float


# =============================================================================
# БАЗОВЫЕ ФУНКЦИИ
# =============================================================================


def advance_fee(principal: int, fee_bps: int = DEFAULT_ADVANCE_FEE_BPS) -> int:
    """
    Advance fee: floor(principal * fee_bps / 10000).

    Args:
        principal: Principal в raw units
        fee_bps: Fee в basis points (default 500 = 5%)

    Returns:
        Fee в raw units
    """
    return principal * fee_bps // BPS_DENOMINATOR


def net_advance(principal: int, fee_bps: int = DEFAULT_ADVANCE_FEE_BPS) -> int:
    """Net advance после fee: principal - advance_fee(principal)."""
    return principal - advance_fee(principal, fee_bps)


def apr_interest(principal: int, days: int, apr_bps: int = DEFAULT_APR_BPS) -> int:
    """
    APR interest за период cooldown.

    floor(principal * apr_bps * days / (10000 * 365))

    Examples:
        >>> apr_interest(10_000, 14, 1000)
        38
        >>> apr_interest(10_000 * 10**6, 14, 1000)
        38356164
    """
    return principal * apr_bps * days // (BPS_DENOMINATOR * DAYS_PER_YEAR)


def lp_fee_share(fee: int, lp_bps: int = LP_FEE_BPS) -> int:
    """Доля LP до применения remainder policy: floor(fee * lp_bps / 10000)."""
    return fee * lp_bps // BPS_DENOMINATOR


def protocol_fee_share(fee: int, protocol_bps: int = PROTOCOL_FEE_BPS) -> int:
    """Доля протокола до применения remainder policy."""
    return fee * protocol_bps // BPS_DENOMINATOR


def split_fee(
    fee: int,
    lp_bps: int = LP_FEE_BPS,
    protocol_bps: int = PROTOCOL_FEE_BPS,
    policy: FeeRemainderPolicy = FeeRemainderPolicy.TO_PROTOCOL,
) -> FeeSplit:
    """
    Split advance fee с явной remainder policy.

    floor + floor может потерять до 1 raw unit (при lp_bps + protocol_bps == 10000).
    Остаток целиком уходит стороне, указанной policy, поэтому
    lp_share + protocol_share == fee всегда.

    Examples:
        >>> split_fee(3)
        FeeSplit(lp_share=2, protocol_share=1, remainder=1)
        >>> split_fee(3, policy=FeeRemainderPolicy.TO_LP)
        FeeSplit(lp_share=3, protocol_share=0, remainder=1)
    """
    lp_floor = lp_fee_share(fee, lp_bps)
    protocol_floor = protocol_fee_share(fee, protocol_bps)
    remainder = fee - lp_floor - protocol_floor

    if policy == FeeRemainderPolicy.TO_LP:
        return FeeSplit(lp_floor + remainder, protocol_floor, remainder)
    return FeeSplit(lp_floor, protocol_floor + remainder, remainder)


def effective_apy(total_lp_earnings: int, net_advance_amount: int, days: int) -> float:
    """
    Effective APY для LP в процентах.

    ТОЛЬКО для отображения. Результат не возвращается в settlement math.

    Returns:
        APY в процентах (например, 140.5), 0.0 при нулевом net advance или сроке
    """
    if net_advance_amount <= 0 or days <= 0:
        return 0.0
    return total_lp_earnings / net_advance_amount * (DAYS_PER_YEAR / days) * 100


# =============================================================================
# FULL BREAKDOWN
# =============================================================================


def calculate_pricing_breakdown(
    principal: int,
    cooldown_days: int = DEFAULT_COOLDOWN_DAYS,
    apr_bps: Optional[int] = None,
    config: Optional[ProtocolConfig] = None,
) -> PricingBreakdown:
    """
    Полная разбивка ценообразования сделки.

    Args:
        principal: Principal (staked amount) в raw units
        cooldown_days: Срок в днях (>= 1, см. days_until)
        apr_bps: APR offer-а; None → default_apr_bps конфигурации
        config: Параметры протокола (default ProtocolConfig())

    Returns:
        PricingBreakdown
    """
    config = config or ProtocolConfig()
    resolved_apr_bps = config.default_apr_bps if apr_bps is None else apr_bps

    fee = advance_fee(principal, config.advance_fee_bps)
    net = principal - fee
    interest = apr_interest(principal, cooldown_days, resolved_apr_bps)
    split = split_fee(
        fee,
        config.lp_fee_bps,
        config.protocol_fee_bps,
        config.fee_remainder_policy,
    )
    total_lp_earnings = split.lp_share + interest

    return PricingBreakdown(
        principal=principal,
        advance_fee=fee,
        net_advance=net,
        apr_bps=resolved_apr_bps,
        cooldown_days=cooldown_days,
        apr_interest=interest,
        lp_fee_share=split.lp_share,
        protocol_fee_share=split.protocol_share,
        fee_remainder=split.remainder,
        total_lp_earnings=total_lp_earnings,
        effective_apy=effective_apy(total_lp_earnings, net, cooldown_days),
    )


class PricingEstimate(NamedTuple):
    """Оценка для пользователя в целых USDC (display)."""

    fee: int
    net_advance: int
    interest: int
    breakdown: PricingBreakdown


def estimate_pricing(
    amount_usdc: DisplayAmount,
    cooldown_days: int = DEFAULT_COOLDOWN_DAYS,
    config: Optional[ProtocolConfig] = None,
) -> PricingEstimate:
    """
    Оценка pricing по display amount (без создания запроса).

    Граница ввода пользователя: здесь, в отличие от арифметических функций,
    входы проверяются.

    Raises:
        InvalidAmount: если сумма <= 0 или не число
        InvalidRange: если cooldown_days вне [1, 365]
    """
    principal = usdc_to_raw(amount_usdc)
    validate_amount(principal, "amount_usdc")
    if not is_valid_cooldown_days(cooldown_days):
        raise InvalidRange(f"cooldown_days must be in [1, 365], got {cooldown_days!r}")

    breakdown = calculate_pricing_breakdown(principal, cooldown_days, config=config)

    return PricingEstimate(
        fee=raw_to_usdc(breakdown.advance_fee),
        net_advance=raw_to_usdc(breakdown.net_advance),
        interest=raw_to_usdc(breakdown.apr_interest),
        breakdown=breakdown,
    )


# =============================================================================
# ВАЛИДАЦИЯ
# =============================================================================


def is_pricing_profitable(breakdown: PricingBreakdown) -> bool:
    """LP должен получить положительный доход."""
    return breakdown.total_lp_earnings > 0


def is_minimum_deal_size(principal: int, config: Optional[ProtocolConfig] = None) -> bool:
    """Principal (raw units) не меньше min_deal_size_raw конфигурации."""
    config = config or ProtocolConfig()
    return principal >= config.min_deal_size_raw


def is_valid_cooldown(cooldown_seconds: int) -> bool:
    """Cooldown от 1 дня до 365 дней включительно."""
    return MIN_COOLDOWN_SECONDS <= cooldown_seconds <= MAX_COOLDOWN_SECONDS
