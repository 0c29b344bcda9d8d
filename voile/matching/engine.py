"""
Matching Engine — приватный off-chain matching запросов и LP offers

Engine — явный объект (никакого глобального реестра offers) с injected
config, clock и random source.

Проверяет (can_match):
1. offer.is_active
2. offer.available_liquidity >= offer.min_amount
3. request.amount ∈ [offer.min_amount, offer.max_amount]
4. offer.available_liquidity >= net_advance(request.amount)

Выбор:
- find_matches сортирует кандидатов по apr_bps (stable sort: при равном APR
  побеждает offer, зарегистрированный раньше)
- match_request берёт первого кандидата, который проходит повторную проверку
  под lock-ом offer-а

Concurrency:
- reservation ликвидности и создание сделки выполняются под per-offer lock,
  check-then-act гонка двух match на одном offer невозможна
- порядок захвата: offer lock → registry lock
- если создание сделки упало после reservation, reservation откатывается

Отсутствие match — нормальный результат (None), не исключение.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from voile.config import ProtocolConfig
from voile.core.clock import Clock, current_timestamp, days_until
from voile.core.crypto.commitments import compute_deal_id, generate_blinding_factor, short_id
from voile.core.crypto.random_source import DEFAULT_RANDOM_SOURCE, RandomSource
from voile.core.domain.deal import DealStatus, MatchedDeal
from voile.core.domain.lp_offer import LpOffer
from voile.core.domain.units import Word
from voile.core.domain.unlock_request import UnlockRequest, UnlockRequestStatus
from voile.core.exceptions import InsufficientLiquidity, InvalidStateTransition
from voile.core.math.pricing import PricingBreakdown, calculate_pricing_breakdown, net_advance

logger = logging.getLogger(__name__)


# =============================================================================
# RESULT
# =============================================================================


@dataclass(frozen=True)
class MatchPreview:
    """Предварительный просмотр match без reservation."""

    best_offer: Optional[LpOffer]
    pricing: Optional[PricingBreakdown]
    alternative_offers: Tuple[LpOffer, ...]

    @property
    def has_match(self) -> bool:
        return self.best_offer is not None


# =============================================================================
# MATCHING ENGINE
# =============================================================================


class MatchingEngine:
    """Off-chain matching engine.

    Единственный компонент, который меняет LpOffer.available_liquidity.
    Offers хранятся как immutable модели; любое изменение заменяет
    экземпляр в реестре.
    """

    def __init__(
        self,
        config: Optional[ProtocolConfig] = None,
        clock: Optional[Clock] = None,
        random_source: Optional[RandomSource] = None,
    ):
        """
        Args:
            config: параметры протокола (fee bps, default APR, fee split)
            clock: источник unix timestamp (default current_timestamp)
            random_source: CSPRNG для blinding factor deal id
        """
        self.config = config or ProtocolConfig()
        self._clock = clock or current_timestamp
        self._random_source = random_source or DEFAULT_RANDOM_SOURCE

        # offer_id → LpOffer, порядок вставки = порядок регистрации
        self._offers: Dict[int, LpOffer] = {}
        self._offer_locks: Dict[int, threading.Lock] = {}
        self._registry_lock = threading.Lock()

        # deal_id → (offer_id, reserved amount) для release_reservation
        self._reservations: Dict[Word, Tuple[int, int]] = {}

    # =========================================================================
    # OFFER REGISTRY
    # =========================================================================

    def add_offer(self, offer: LpOffer) -> None:
        """
        Регистрация нового offer.

        Ликвидность зарегистрированного offer меняет только engine, поэтому
        повторная регистрация того же offer_id запрещена.

        Raises:
            ValueError: если offer_id уже зарегистрирован
        """
        with self._registry_lock:
            if offer.offer_id in self._offers:
                raise ValueError(f"offer {short_id(offer.offer_id)} is already registered")
            self._offer_locks[offer.offer_id] = threading.Lock()
            self._offers[offer.offer_id] = offer
        logger.info("offer registered: offer=%s apr_bps=%d", short_id(offer.offer_id), offer.apr_bps)

    def remove_offer(self, offer_id: int) -> bool:
        """Удаление offer. Возвращает False, если offer не зарегистрирован."""
        lock = self._lock_for(offer_id)
        if lock is None:
            return False

        with lock:
            with self._registry_lock:
                removed = self._offers.pop(offer_id, None)
                self._offer_locks.pop(offer_id, None)

        if removed is not None:
            logger.info("offer removed: offer=%s", short_id(offer_id))
        return removed is not None

    def set_offer_active(self, offer_id: int, is_active: bool) -> Optional[LpOffer]:
        """Включение/выключение offer. Ликвидность не меняется."""
        lock = self._lock_for(offer_id)
        if lock is None:
            return None

        with lock:
            offer = self.get_offer(offer_id)
            if offer is None:
                return None
            updated = offer.model_copy(update={"is_active": is_active})
            self._store(updated)
        return updated

    def get_offer(self, offer_id: int) -> Optional[LpOffer]:
        with self._registry_lock:
            return self._offers.get(offer_id)

    def get_offers(self) -> List[LpOffer]:
        """Snapshot всех offers в порядке регистрации."""
        with self._registry_lock:
            return list(self._offers.values())

    def get_active_offers(self) -> List[LpOffer]:
        return [offer for offer in self.get_offers() if offer.is_active]

    # =========================================================================
    # MATCHING
    # =========================================================================

    def net_advance_for(self, amount: int) -> int:
        return net_advance(amount, self.config.advance_fee_bps)

    def can_match(self, offer: LpOffer, request: UnlockRequest) -> bool:
        """Проверка совместимости offer и запроса."""
        return (
            offer.is_matchable
            and offer.min_amount <= request.amount <= offer.max_amount
            and offer.available_liquidity >= self.net_advance_for(request.amount)
        )

    def find_matches(self, request: UnlockRequest) -> List[LpOffer]:
        """
        Все подходящие offers, по возрастанию APR.

        sorted() стабилен: при равном APR порядок регистрации сохраняется.
        """
        candidates = [offer for offer in self.get_active_offers() if self.can_match(offer, request)]
        logger.debug(
            "candidates filtered: request=%s matches=%d",
            short_id(request.request_id),
            len(candidates),
        )
        return sorted(candidates, key=lambda offer: offer.apr_bps)

    def match_request(self, request: UnlockRequest) -> Optional[MatchedDeal]:
        """
        Match запроса с лучшим доступным offer.

        Если лучший кандидат успел потерять ликвидность в параллельном match,
        проверяется следующий.

        Returns:
            MatchedDeal или None, если подходящих offers нет

        Raises:
            InvalidStateTransition: если запрос не в статусе PENDING
        """
        self._require_pending(request)

        for candidate in self.find_matches(request):
            lock = self._lock_for(candidate.offer_id)
            if lock is None:
                continue
            with lock:
                offer = self.get_offer(candidate.offer_id)
                if offer is None or not self.can_match(offer, request):
                    continue
                return self._reserve_and_build(request, offer)

        logger.info("no match: request=%s", short_id(request.request_id))
        return None

    def match_with_offer(self, request: UnlockRequest, offer_id: int) -> Optional[MatchedDeal]:
        """
        Match с конкретным offer, выбранным вызывающим.

        Returns:
            MatchedDeal или None, если offer не найден, не активен или сумма
            вне его диапазона

        Raises:
            InsufficientLiquidity: offer подходит по диапазону, но не покрывает net advance
            InvalidStateTransition: если запрос не в статусе PENDING
        """
        self._require_pending(request)

        lock = self._lock_for(offer_id)
        if lock is None:
            return None

        with lock:
            offer = self.get_offer(offer_id)
            if offer is None:
                return None

            if not self.can_match(offer, request):
                required = self.net_advance_for(request.amount)
                in_range = offer.min_amount <= request.amount <= offer.max_amount
                if offer.is_active and in_range and offer.available_liquidity < required:
                    raise InsufficientLiquidity(offer_id, required, offer.available_liquidity)
                return None

            return self._reserve_and_build(request, offer)

    def preview_match(self, request: UnlockRequest) -> MatchPreview:
        """Pricing лучшего offer без reservation и без создания сделки."""
        matches = self.find_matches(request)
        if not matches:
            return MatchPreview(best_offer=None, pricing=None, alternative_offers=())

        best = matches[0]
        pricing = calculate_pricing_breakdown(
            request.amount,
            days_until(request.cooldown_end, self._clock()),
            best.apr_bps,
            self.config,
        )
        return MatchPreview(best_offer=best, pricing=pricing, alternative_offers=tuple(matches[1:]))

    def release_reservation(self, deal: MatchedDeal) -> Optional[LpOffer]:
        """
        Возврат ликвидности сделки, провалившейся до получения advance.

        Ликвидность возвращается не выше max_amount. Повторный release
        той же сделки ничего не делает.

        Returns:
            Обновлённый offer или None (нет reservation или offer удалён)
        """
        with self._registry_lock:
            reservation = self._reservations.pop(tuple(deal.deal_id), None)
        if reservation is None:
            return None

        offer_id, amount = reservation
        lock = self._lock_for(offer_id)
        if lock is None:
            return None

        with lock:
            offer = self.get_offer(offer_id)
            if offer is None:
                return None
            restored = min(offer.max_amount, offer.available_liquidity + amount)
            updated = self._with_liquidity(offer, restored)
            self._store(updated)

        logger.info("reservation released: deal=%s offer=%s", short_id(deal.deal_id), short_id(offer_id))
        return updated

    # =========================================================================
    # INTERNAL
    # =========================================================================

    def _lock_for(self, offer_id: int) -> Optional[threading.Lock]:
        with self._registry_lock:
            return self._offer_locks.get(offer_id)

    def _store(self, offer: LpOffer) -> None:
        with self._registry_lock:
            if offer.offer_id in self._offers:
                self._offers[offer.offer_id] = offer

    @staticmethod
    def _with_liquidity(offer: LpOffer, available_liquidity: int) -> LpOffer:
        # model_validate, а не model_copy: инварианты offer проверяются заново
        return LpOffer.model_validate({**offer.model_dump(), "available_liquidity": available_liquidity})

    @staticmethod
    def _require_pending(request: UnlockRequest) -> None:
        if request.status != UnlockRequestStatus.PENDING:
            raise InvalidStateTransition(
                "UnlockRequest", request.status.value, UnlockRequestStatus.MATCHED.value
            )

    def _reserve_and_build(self, request: UnlockRequest, offer: LpOffer) -> MatchedDeal:
        """Reservation + создание сделки. Вызывается под lock-ом offer-а."""
        required = self.net_advance_for(request.amount)
        self._store(self._with_liquidity(offer, offer.available_liquidity - required))

        try:
            deal = self._build_deal(request, offer)
        except Exception:
            self._store(offer)
            logger.warning(
                "deal construction failed, reservation rolled back: offer=%s",
                short_id(offer.offer_id),
            )
            raise

        with self._registry_lock:
            self._reservations[tuple(deal.deal_id)] = (offer.offer_id, required)

        logger.info(
            "deal matched: deal=%s offer=%s apr_bps=%d",
            short_id(deal.deal_id),
            short_id(offer.offer_id),
            deal.apr_bps,
        )
        return deal

    def _build_deal(self, request: UnlockRequest, offer: LpOffer) -> MatchedDeal:
        now = self._clock()
        breakdown = calculate_pricing_breakdown(
            request.amount,
            days_until(request.cooldown_end, now),
            offer.apr_bps,
            self.config,
        )
        deal_id = compute_deal_id(
            request.commitment,
            offer.commitment,
            now,
            generate_blinding_factor(self._random_source),
        )

        return MatchedDeal(
            deal_id=deal_id,
            request_commitment=request.commitment,
            offer_commitment=offer.commitment,
            offer_id=offer.offer_id,
            lp_account_id=offer.lp_account_id,
            user_account_id=request.user_account_id,
            staked_amount=request.amount,
            advance_amount=breakdown.net_advance,
            advance_fee=breakdown.advance_fee,
            lp_fee_share=breakdown.lp_fee_share,
            protocol_fee_share=breakdown.protocol_fee_share,
            apr_bps=breakdown.apr_bps,
            expected_interest=breakdown.apr_interest,
            matched_at=now,
            cooldown_end_timestamp=request.cooldown_end,
            status=DealStatus.PENDING_ADVANCE,
        )
