"""
VoileProtocol — session facade для пользователя и LP

Связывает builders, MatchingEngine, DealLifecycleTracker и внешний
SettlementLayer в один поток:

    create_unlock_request → match_request → execute_unlock_request
        (commitment → settlement note → advance note → consume advance)
    → execute_settlement (после cooldown)

Состояние in-memory на одну сессию; persistence — ответственность вызывающего.
Facade рассчитан на один поток; MatchingEngine при этом потокобезопасен
и может разделяться несколькими сессиями.
"""

import logging
from typing import Dict, Optional

from voile.config import ProtocolConfig
from voile.core.clock import Clock, current_timestamp
from voile.core.crypto.commitments import compute_nullifier, short_id
from voile.core.crypto.random_source import RandomSource
from voile.core.domain.deal import DealStatus, MatchedDeal
from voile.core.domain.lp_offer import LpOffer
from voile.core.domain.settlement import TransactionStatus
from voile.core.domain.units import DisplayAmount, Word, validate_amount
from voile.core.domain.unlock_request import UnlockRequest, UnlockRequestStatus
from voile.core.exceptions import InvalidAmount
from voile.core.math.pricing import PricingEstimate, estimate_pricing, is_minimum_deal_size
from voile.lifecycle.state_machine import (
    DealLifecycleTracker,
    DealTransitionResult,
    cancel_request,
    is_ready_for_settlement,
    transition_request,
)
from voile.matching.builders import build_lp_offer, build_unlock_request
from voile.matching.engine import MatchingEngine
from voile.settlement.interface import (
    SettlementLayer,
    advance_note_inputs,
    settlement_note_inputs,
)

logger = logging.getLogger(__name__)

# Статусы, в которых advance ещё не получен и ликвидность можно вернуть LP
_RELEASABLE_STATUSES = frozenset({DealStatus.PENDING_ADVANCE, DealStatus.ADVANCE_CREATED})


class VoileProtocol:
    """High-level API для users и LPs."""

    def __init__(
        self,
        settlement: SettlementLayer,
        config: Optional[ProtocolConfig] = None,
        clock: Optional[Clock] = None,
        random_source: Optional[RandomSource] = None,
        engine: Optional[MatchingEngine] = None,
    ):
        """
        Args:
            settlement: внешний settlement layer
            config: параметры протокола
            clock: источник unix timestamp
            random_source: CSPRNG для ids, secrets и blinding factors
            engine: общий MatchingEngine (default — новый на эту сессию)
        """
        self.settlement = settlement
        self.config = config or ProtocolConfig()
        self._clock = clock or current_timestamp
        self._random_source = random_source

        self.engine = engine or MatchingEngine(self.config, self._clock, random_source)
        self.tracker = DealLifecycleTracker(self._clock)

        self._requests: Dict[int, UnlockRequest] = {}
        self._deal_requests: Dict[Word, int] = {}

    # =========================================================================
    # USER OPERATIONS
    # =========================================================================

    def preview_unlock_request(
        self,
        amount_usdc: DisplayAmount,
        cooldown_days: Optional[int] = None,
    ) -> PricingEstimate:
        """Pricing без создания запроса."""
        days = self.config.default_cooldown_days if cooldown_days is None else cooldown_days
        return estimate_pricing(amount_usdc, days, self.config)

    def create_unlock_request(
        self,
        user_account_id: str,
        amount: int,
        cooldown_days: Optional[int] = None,
    ) -> UnlockRequest:
        """
        Создание приватного запроса (amount в raw units). Ничего не отправляет в сеть.

        Raises:
            InvalidAmount: amount <= 0 или меньше min_deal_size_raw
            InvalidRange: cooldown_days вне [1, 365]
        """
        validate_amount(amount)
        if not is_minimum_deal_size(amount, self.config):
            raise InvalidAmount(
                f"amount {amount} is below minimum deal size {self.config.min_deal_size_raw}"
            )
        request = build_unlock_request(
            user_account_id,
            amount,
            self.config.default_cooldown_days if cooldown_days is None else cooldown_days,
            clock=self._clock,
            random_source=self._random_source,
        )
        self._requests[request.request_id] = request
        logger.info("unlock request created: request=%s", short_id(request.request_id))
        return request

    def get_request(self, request_id: int) -> Optional[UnlockRequest]:
        return self._requests.get(request_id)

    def cancel_unlock_request(self, request_id: int) -> UnlockRequest:
        """
        Raises:
            KeyError: неизвестный запрос
            InvalidStateTransition: запрос уже сматчен
        """
        request = cancel_request(self._require_request(request_id))
        self._requests[request_id] = request
        logger.info("unlock request cancelled: request=%s", short_id(request_id))
        return request

    def match_request(self, request_id: int) -> Optional[MatchedDeal]:
        """Match с лучшим offer. None — подходящей ликвидности нет."""
        request = self._require_request(request_id)
        deal = self.engine.match_request(request)
        if deal is None:
            return None

        self._track(request, deal)
        return deal

    def match_with_offer(self, request_id: int, offer_id: int) -> Optional[MatchedDeal]:
        """Match с выбранным offer (InsufficientLiquidity, если не хватает ликвидности)."""
        request = self._require_request(request_id)
        deal = self.engine.match_with_offer(request, offer_id)
        if deal is None:
            return None

        self._track(request, deal)
        return deal

    def execute_unlock_request(self, request_id: int) -> Optional[MatchedDeal]:
        """
        Полный поток получения advance.

        1. match с лучшим offer
        2. публикация commitment запроса
        3. settlement note
        4. advance note
        5. consume advance note пользователем → PENDING_SETTLEMENT

        При сбое settlement layer сделка переводится в FAILED, ликвидность
        возвращается offer-у (если advance ещё не получен).

        Returns:
            Сделка в PENDING_SETTLEMENT, в FAILED, или None если match не найден
        """
        deal = self.match_request(request_id)
        if deal is None:
            return None

        request = self._require_request(request_id)
        deal_id = deal.deal_id

        step = "submit_request_commitment"
        try:
            tx = self.settlement.submit_request_commitment(request.commitment)
            if not tx.is_failed:
                settlement_note = self.settlement.create_settlement_note(settlement_note_inputs(deal, request))
                self.tracker.record_settlement_note(deal_id, settlement_note.note_id)

                advance_note = self.settlement.create_advance_note(advance_note_inputs(deal))
                self.tracker.record_advance_created(deal_id, advance_note.note_id)

                step = "consume_advance_note"
                tx = self.settlement.consume_advance_note(request.user_account_id, advance_note.note_id)
        except Exception as e:
            # сделка могла уже стать FAILED в другом вызове
            if not self.tracker.get(deal_id).status.is_terminal:
                self.fail_deal(deal_id, f"settlement layer error: {e}")
            raise

        if tx.is_failed:
            return self._fail_on_tx(deal_id, step, tx)

        self.tracker.record_advance_consumed(deal_id)
        self._requests[request_id] = transition_request(request, UnlockRequestStatus.ADVANCED)
        return self.tracker.get(deal_id)

    # =========================================================================
    # LP OPERATIONS
    # =========================================================================

    def create_lp_offer(
        self,
        lp_account_id: str,
        max_amount: int,
        min_amount: int,
        custom_apr_percent: Optional[DisplayAmount] = None,
    ) -> LpOffer:
        """Создание и регистрация LP offer (границы в raw units)."""
        offer = build_lp_offer(
            lp_account_id,
            max_amount,
            min_amount,
            custom_apr_percent,
            config=self.config,
            random_source=self._random_source,
        )
        self.engine.add_offer(offer)
        return offer

    def cancel_lp_offer(self, offer_id: int) -> bool:
        return self.engine.remove_offer(offer_id)

    def execute_settlement(self, deal_id: Word) -> DealTransitionResult:
        """
        Settlement после окончания cooldown.

        До окончания cooldown — no-op с оставшимся временем.
        Сбой транзакции переводит сделку в FAILED.
        """
        deal = self.tracker.get(deal_id)
        if deal is None:
            raise KeyError(f"unknown deal {short_id(tuple(deal_id))}")

        if not is_ready_for_settlement(deal, self._clock()):
            return self.tracker.settle(deal_id)

        request = self._require_request(self._deal_requests[tuple(deal_id)])
        nullifier = compute_nullifier(request.request_id, request.nullifier_secret)
        tx = self.settlement.consume_settlement_note(deal.settlement_note_id, nullifier)
        if tx.is_failed:
            logger.warning("settlement transaction failed: deal=%s tx=%s", short_id(deal_id), tx.tx_id)
            return self.fail_deal(deal_id, f"consume_settlement_note failed: {tx.error}")

        result = self.tracker.settle(deal_id)
        self._requests[request.request_id] = transition_request(request, UnlockRequestStatus.SETTLED)
        logger.info("deal settled: deal=%s", short_id(deal_id))
        return result

    def fail_deal(self, deal_id: Word, reason: str) -> DealTransitionResult:
        """Перевод сделки в FAILED; до получения advance ликвидность возвращается LP."""
        result = self.tracker.fail(deal_id, reason)
        if result.previous_status in _RELEASABLE_STATUSES:
            self.engine.release_reservation(result.deal)
        return result

    # =========================================================================
    # INTERNAL
    # =========================================================================

    def _require_request(self, request_id: int) -> UnlockRequest:
        request = self._requests.get(request_id)
        if request is None:
            raise KeyError(f"unknown request {short_id(request_id)}")
        return request

    def _track(self, request: UnlockRequest, deal: MatchedDeal) -> None:
        self.tracker.register(deal)
        self._deal_requests[tuple(deal.deal_id)] = request.request_id
        self._requests[request.request_id] = transition_request(request, UnlockRequestStatus.MATCHED)

    def _fail_on_tx(self, deal_id: Word, step: str, tx: TransactionStatus) -> MatchedDeal:
        logger.warning("settlement transaction failed: step=%s tx=%s", step, tx.tx_id)
        return self.fail_deal(deal_id, f"{step} failed: {tx.error}").deal
