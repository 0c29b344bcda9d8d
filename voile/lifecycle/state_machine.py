"""Deal Lifecycle — state machine сделки и запроса.

Сделка:
    PENDING_ADVANCE → ADVANCE_CREATED → ADVANCED → PENDING_SETTLEMENT → SETTLED
    FAILED — из любого нетерминального состояния

Запрос (подмножество):
    PENDING → MATCHED → ADVANCED → SETTLED, CANCELLED только из PENDING

- Пропуск состояния → InvalidStateTransition
- ADVANCED → PENDING_SETTLEMENT происходит автоматически
- SETTLED только при now >= cooldown_end_timestamp; раньше — no-op
  с оставшимся временем, не ошибка
"""

import logging
import threading
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Mapping, Optional, Tuple

from voile.core.clock import Clock, CooldownRemaining, current_timestamp, remaining_cooldown
from voile.core.crypto.commitments import short_id
from voile.core.domain.deal import DealStatus, MatchedDeal
from voile.core.domain.units import Word
from voile.core.domain.unlock_request import UnlockRequest, UnlockRequestStatus
from voile.core.exceptions import InvalidStateTransition

logger = logging.getLogger(__name__)


# =============================================================================
# TRANSITION TABLES
# =============================================================================

DEAL_TRANSITIONS: Mapping[DealStatus, FrozenSet[DealStatus]] = {
    DealStatus.PENDING_ADVANCE: frozenset({DealStatus.ADVANCE_CREATED, DealStatus.FAILED}),
    DealStatus.ADVANCE_CREATED: frozenset({DealStatus.ADVANCED, DealStatus.FAILED}),
    DealStatus.ADVANCED: frozenset({DealStatus.PENDING_SETTLEMENT, DealStatus.FAILED}),
    DealStatus.PENDING_SETTLEMENT: frozenset({DealStatus.SETTLED, DealStatus.FAILED}),
    DealStatus.SETTLED: frozenset(),
    DealStatus.FAILED: frozenset(),
}

REQUEST_TRANSITIONS: Mapping[UnlockRequestStatus, FrozenSet[UnlockRequestStatus]] = {
    UnlockRequestStatus.PENDING: frozenset({UnlockRequestStatus.MATCHED, UnlockRequestStatus.CANCELLED}),
    UnlockRequestStatus.MATCHED: frozenset({UnlockRequestStatus.ADVANCED}),
    UnlockRequestStatus.ADVANCED: frozenset({UnlockRequestStatus.SETTLED}),
    UnlockRequestStatus.SETTLED: frozenset(),
    UnlockRequestStatus.CANCELLED: frozenset(),
}


# =============================================================================
# REQUEST TRANSITIONS
# =============================================================================


def transition_request(request: UnlockRequest, target: UnlockRequestStatus) -> UnlockRequest:
    """
    Переход статуса запроса. Возвращает новый экземпляр.

    Raises:
        InvalidStateTransition: если переход не разрешён
    """
    if target not in REQUEST_TRANSITIONS[request.status]:
        raise InvalidStateTransition("UnlockRequest", request.status.value, target.value)
    # model_copy сохраняет nullifier_secret (model_dump его исключает)
    return request.model_copy(update={"status": target})


def cancel_request(request: UnlockRequest) -> UnlockRequest:
    """Отмена запроса до match. После MATCHED отмена — задача settlement layer."""
    return transition_request(request, UnlockRequestStatus.CANCELLED)


def is_ready_for_settlement(deal: MatchedDeal, now: int) -> bool:
    return deal.status == DealStatus.PENDING_SETTLEMENT and now >= deal.cooldown_end_timestamp


# =============================================================================
# RESULT
# =============================================================================


@dataclass(frozen=True)
class DealTransitionResult:
    """Результат перехода сделки."""

    deal: MatchedDeal
    previous_status: DealStatus
    new_status: DealStatus
    path: Tuple[DealStatus, ...]

    # Диагностика
    transition_occurred: bool
    transition_reason: str

    # Только для отложенного settlement
    remaining: Optional[CooldownRemaining]

    details: str


# =============================================================================
# DEAL LIFECYCLE TRACKER
# =============================================================================


class DealLifecycleTracker:
    """Владелец сделок после match.

    Сделки immutable; каждый переход заменяет экземпляр в реестре.
    Внешние события settlement layer поступают через record_* методы.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock or current_timestamp
        self._deals: Dict[Word, MatchedDeal] = {}
        self._lock = threading.Lock()

    # =========================================================================
    # REGISTRY
    # =========================================================================

    def register(self, deal: MatchedDeal) -> None:
        """
        Регистрация новой сделки.

        Raises:
            ValueError: если сделка уже зарегистрирована или не в PENDING_ADVANCE
        """
        if deal.status != DealStatus.PENDING_ADVANCE:
            raise ValueError(f"new deal must be {DealStatus.PENDING_ADVANCE.value}, got {deal.status.value}")

        key = tuple(deal.deal_id)
        with self._lock:
            if key in self._deals:
                raise ValueError(f"deal {short_id(deal.deal_id)} is already registered")
            self._deals[key] = deal
        logger.info("deal registered: deal=%s", short_id(deal.deal_id))

    def get(self, deal_id: Word) -> Optional[MatchedDeal]:
        with self._lock:
            return self._deals.get(tuple(deal_id))

    def deals(self) -> List[MatchedDeal]:
        with self._lock:
            return list(self._deals.values())

    def deals_ready_for_settlement(self) -> List[MatchedDeal]:
        now = self._clock()
        return [deal for deal in self.deals() if is_ready_for_settlement(deal, now)]

    # =========================================================================
    # EXTERNAL EVENTS
    # =========================================================================

    def record_advance_created(self, deal_id: Word, advance_note_id: str) -> DealTransitionResult:
        """Advance note создан settlement layer: PENDING_ADVANCE → ADVANCE_CREATED."""
        with self._lock:
            deal = self._require(deal_id)
            updated = self._apply(deal, DealStatus.ADVANCE_CREATED, advance_note_id=advance_note_id)

        return self._create_result(
            deal=updated,
            previous_status=deal.status,
            path=(DealStatus.ADVANCE_CREATED,),
            transition_occurred=True,
            transition_reason="advance_note_created",
            details=f"advance note {advance_note_id}",
        )

    def record_settlement_note(self, deal_id: Word, settlement_note_id: str) -> MatchedDeal:
        """
        Привязка settlement note. Статус не меняется.

        Raises:
            InvalidStateTransition: если сделка уже в терминальном состоянии
        """
        with self._lock:
            deal = self._require(deal_id)
            if deal.status.is_terminal:
                raise InvalidStateTransition("MatchedDeal", deal.status.value, deal.status.value)
            updated = self._replace(deal, settlement_note_id=settlement_note_id)
        return updated

    def record_advance_consumed(self, deal_id: Word) -> DealTransitionResult:
        """
        Пользователь получил advance: ADVANCE_CREATED → ADVANCED → PENDING_SETTLEMENT.

        Второй переход автоматический, в результате оба шага в path.
        """
        with self._lock:
            deal = self._require(deal_id)
            advanced = self._apply(deal, DealStatus.ADVANCED)
            updated = self._apply(advanced, DealStatus.PENDING_SETTLEMENT)

        return self._create_result(
            deal=updated,
            previous_status=deal.status,
            path=(DealStatus.ADVANCED, DealStatus.PENDING_SETTLEMENT),
            transition_occurred=True,
            transition_reason="advance_consumed",
            details="advance consumed, waiting for cooldown end",
        )

    def settle(self, deal_id: Word) -> DealTransitionResult:
        """
        Settlement после окончания cooldown.

        До cooldown_end_timestamp — no-op с оставшимся временем.

        Raises:
            InvalidStateTransition: если сделка не в PENDING_SETTLEMENT
        """
        now = self._clock()
        with self._lock:
            deal = self._require(deal_id)
            if deal.status != DealStatus.PENDING_SETTLEMENT:
                raise InvalidStateTransition("MatchedDeal", deal.status.value, DealStatus.SETTLED.value)

            if not is_ready_for_settlement(deal, now):
                remaining = remaining_cooldown(deal.cooldown_end_timestamp, now)
                return self._create_result(
                    deal=deal,
                    previous_status=deal.status,
                    path=(),
                    transition_occurred=False,
                    transition_reason="cooldown_not_ended",
                    remaining=remaining,
                    details=f"Remaining: {remaining.days}d {remaining.hours}h {remaining.minutes}m",
                )

            updated = self._apply(deal, DealStatus.SETTLED)

        return self._create_result(
            deal=updated,
            previous_status=deal.status,
            path=(DealStatus.SETTLED,),
            transition_occurred=True,
            transition_reason="settled",
            details="cooldown ended, settlement executed",
        )

    def fail(self, deal_id: Word, reason: str) -> DealTransitionResult:
        """
        Внешний сбой: любое нетерминальное состояние → FAILED.

        Raises:
            InvalidStateTransition: если сделка уже SETTLED или FAILED
        """
        with self._lock:
            deal = self._require(deal_id)
            updated = self._apply(deal, DealStatus.FAILED)

        return self._create_result(
            deal=updated,
            previous_status=deal.status,
            path=(DealStatus.FAILED,),
            transition_occurred=True,
            transition_reason="external_failure",
            details=reason,
        )

    # =========================================================================
    # INTERNAL
    # =========================================================================

    def _require(self, deal_id: Word) -> MatchedDeal:
        deal = self._deals.get(tuple(deal_id))
        if deal is None:
            raise KeyError(f"unknown deal {short_id(tuple(deal_id))}")
        return deal

    def _apply(self, deal: MatchedDeal, target: DealStatus, **updates) -> MatchedDeal:
        if target not in DEAL_TRANSITIONS[deal.status]:
            raise InvalidStateTransition("MatchedDeal", deal.status.value, target.value)

        updated = self._replace(deal, status=target, **updates)
        logger.info(
            "deal transition: deal=%s %s → %s",
            short_id(deal.deal_id),
            deal.status.value,
            target.value,
        )
        return updated

    def _replace(self, deal: MatchedDeal, **updates) -> MatchedDeal:
        updated = MatchedDeal.model_validate({**deal.model_dump(), **updates})
        self._deals[tuple(deal.deal_id)] = updated
        return updated

    def _create_result(
        self,
        deal: MatchedDeal,
        previous_status: DealStatus,
        path: Tuple[DealStatus, ...],
        transition_occurred: bool,
        transition_reason: str,
        details: str,
        remaining: Optional[CooldownRemaining] = None,
    ) -> DealTransitionResult:
        """Создание результата перехода."""
        return DealTransitionResult(
            deal=deal,
            previous_status=previous_status,
            new_status=deal.status,
            path=path,
            transition_occurred=transition_occurred,
            transition_reason=transition_reason,
            remaining=remaining,
            details=details,
        )
