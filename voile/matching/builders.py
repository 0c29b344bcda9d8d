"""
Request / Offer Builders

Создание immutable UnlockRequest и LpOffer вместе с их commitments.
Запрос строится локально и ничего не транслирует в сеть.

Валидация на этой границе:
- amount <= 0 → InvalidAmount (без clamp к нулю)
- cooldown_days вне [1, 365] → InvalidRange
- min_amount > max_amount или отрицательные границы → InvalidRange
"""

import logging
from typing import Optional

from voile.config import DEFAULT_COOLDOWN_DAYS, ProtocolConfig
from voile.core.clock import Clock, cooldown_end_timestamp, current_timestamp
from voile.core.crypto.commitments import (
    compute_offer_commitment,
    compute_request_commitment,
    generate_nullifier_secret,
    random_felt,
    short_id,
)
from voile.core.crypto.random_source import RandomSource
from voile.core.domain.lp_offer import AprPolicy, LpOffer
from voile.core.domain.units import (
    DisplayAmount,
    cooldown_days_to_seconds,
    is_valid_cooldown_days,
    percent_to_bps,
    validate_amount,
)
from voile.core.domain.unlock_request import UnlockRequest, UnlockRequestStatus
from voile.core.exceptions import InvalidAmount, InvalidRange

logger = logging.getLogger(__name__)


# =============================================================================
# UNLOCK REQUEST BUILDER
# =============================================================================


def build_unlock_request(
    user_account_id: str,
    amount: int,
    cooldown_days: int = DEFAULT_COOLDOWN_DAYS,
    clock: Optional[Clock] = None,
    random_source: Optional[RandomSource] = None,
) -> UnlockRequest:
    """
    Построение unlock-запроса на устройстве пользователя.

    Args:
        user_account_id: Opaque account id пользователя
        amount: Сумма staked asset в raw units (> 0)
        cooldown_days: Срок cooldown в днях, [1, 365]
        clock: Источник времени (default current_timestamp)
        random_source: CSPRNG для request_id и nullifier secret

    Returns:
        UnlockRequest со status=PENDING

    Raises:
        InvalidAmount: если amount <= 0 или не int
        InvalidRange: если cooldown_days вне [1, 365]
    """
    validate_amount(amount)
    if not is_valid_cooldown_days(cooldown_days):
        raise InvalidRange(f"cooldown_days must be in [1, 365], got {cooldown_days!r}")

    now = (clock or current_timestamp)()
    request_id = random_felt(random_source)
    nullifier_secret = generate_nullifier_secret(random_source)
    cooldown_end = cooldown_end_timestamp(cooldown_days_to_seconds(cooldown_days), now)

    commitment = compute_request_commitment(
        amount,
        cooldown_end,
        nullifier_secret,
        user_account_id,
    )

    request = UnlockRequest(
        request_id=request_id,
        amount=amount,
        cooldown_end=cooldown_end,
        nullifier_secret=nullifier_secret,
        user_account_id=user_account_id,
        commitment=commitment,
        created_at=now,
        status=UnlockRequestStatus.PENDING,
    )
    logger.debug("unlock request built: request=%s", short_id(request_id))
    return request


# =============================================================================
# LP OFFER BUILDER
# =============================================================================


def _check_bound(value: int, name: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidAmount(f"{name} must be an integer number of raw units, got {type(value).__name__}")
    if value < 0:
        raise InvalidRange(f"{name} cannot be negative, got {value}")


def build_lp_offer(
    lp_account_id: str,
    max_amount: int,
    min_amount: int,
    custom_apr_percent: Optional[DisplayAmount] = None,
    available_liquidity: Optional[int] = None,
    config: Optional[ProtocolConfig] = None,
    random_source: Optional[RandomSource] = None,
) -> LpOffer:
    """
    Построение LP offer.

    APR policy разрешается здесь один раз: None → Default, иначе Custom(bps).

    Args:
        lp_account_id: Opaque account id LP pool
        max_amount: Максимальный запрос в raw units
        min_amount: Минимальный запрос в raw units
        custom_apr_percent: APR в процентах (8 = 8%, "8.25" = 825 bps)
        available_liquidity: Начальная ликвидность (default max_amount)
        config: Параметры протокола (default APR)
        random_source: CSPRNG для offer_id

    Raises:
        InvalidRange: если min_amount > max_amount, границы или APR отрицательны,
            или available_liquidity вне [0, max_amount]
        InvalidAmount: если custom_apr_percent не конечное число
    """
    config = config or ProtocolConfig()

    _check_bound(max_amount, "max_amount")
    _check_bound(min_amount, "min_amount")
    if min_amount > max_amount:
        raise InvalidRange(f"min_amount {min_amount} exceeds max_amount {max_amount}")

    if available_liquidity is None:
        available_liquidity = max_amount
    _check_bound(available_liquidity, "available_liquidity")
    if available_liquidity > max_amount:
        raise InvalidRange(
            f"available_liquidity {available_liquidity} exceeds max_amount {max_amount}"
        )

    if custom_apr_percent is None:
        apr_policy = AprPolicy.default()
    else:
        custom_bps = percent_to_bps(custom_apr_percent)
        if custom_bps < 0:
            raise InvalidRange(f"custom APR cannot be negative, got {custom_apr_percent}")
        apr_policy = AprPolicy.custom(custom_bps)

    offer_id = random_felt(random_source)
    commitment = compute_offer_commitment(offer_id, lp_account_id, max_amount, min_amount)

    offer = LpOffer(
        offer_id=offer_id,
        lp_account_id=lp_account_id,
        max_amount=max_amount,
        min_amount=min_amount,
        apr_policy=apr_policy,
        apr_bps=apr_policy.resolve(config.default_apr_bps),
        commitment=commitment,
        is_active=True,
        available_liquidity=available_liquidity,
    )
    logger.debug("lp offer built: offer=%s apr_bps=%d", short_id(offer_id), offer.apr_bps)
    return offer
