"""
Settlement Layer Interface — граница с on-chain execution layer

Settlement layer (notes, контракты, отправка транзакций) реализуется вне
этого пакета. Здесь:
- SettlementLayer protocol (что ядро вызывает)
- построение payloads из сделки/запроса с проверкой JSON Schema контрактов
- разбор TransactionStatus, пришедшего извне
"""

from typing import Any, Dict, Protocol, runtime_checkable

from voile.core.contracts import check_contract, validate_payload
from voile.core.domain.deal import MatchedDeal
from voile.core.domain.settlement import (
    AdvanceNote,
    AdvanceNoteInputs,
    SettlementNote,
    SettlementNoteInputs,
    TransactionStatus,
)
from voile.core.domain.units import Word
from voile.core.domain.unlock_request import UnlockRequest


@runtime_checkable
class SettlementLayer(Protocol):
    """Внешний settlement layer. Все вызовы синхронные с точки зрения ядра."""

    def submit_request_commitment(self, commitment: Word) -> TransactionStatus:
        """Публикация commitment запроса (детали запроса остаются приватными)."""
        ...

    def create_settlement_note(self, inputs: SettlementNoteInputs) -> SettlementNote:
        ...

    def create_advance_note(self, inputs: AdvanceNoteInputs) -> AdvanceNote:
        ...

    def consume_advance_note(self, user_account_id: str, note_id: str) -> TransactionStatus:
        ...

    def consume_settlement_note(self, note_id: str, nullifier: Word) -> TransactionStatus:
        """Settlement после cooldown. Повторный nullifier отклоняется settlement layer."""
        ...


# =============================================================================
# PAYLOAD BUILDERS
# =============================================================================


def advance_note_inputs(deal: MatchedDeal) -> AdvanceNoteInputs:
    """
    Payload advance note: {deal_id, request_commitment, offer_id, advance_amount}.

    Raises:
        jsonschema.ValidationError: если payload нарушает контракт
    """
    inputs = AdvanceNoteInputs(
        deal_id=deal.deal_id,
        request_commitment=deal.request_commitment,
        offer_id=deal.offer_id,
        advance_amount=deal.advance_amount,
    )
    validate_payload(inputs)
    return inputs


def settlement_note_inputs(deal: MatchedDeal, request: UnlockRequest) -> SettlementNoteInputs:
    """
    Payload settlement note: {request_id, amount, cooldown_end_timestamp, deal_id}.

    Raises:
        ValueError: если запрос не принадлежит сделке
        jsonschema.ValidationError: если payload нарушает контракт
    """
    if tuple(request.commitment) != tuple(deal.request_commitment):
        raise ValueError("request commitment does not match deal")

    inputs = SettlementNoteInputs(
        request_id=request.request_id,
        amount=request.amount,
        cooldown_end_timestamp=deal.cooldown_end_timestamp,
        deal_id=deal.deal_id,
    )
    validate_payload(inputs)
    return inputs


def parse_transaction_status(data: Dict[str, Any]) -> TransactionStatus:
    """
    Разбор статуса транзакции из JSON settlement layer.

    Raises:
        jsonschema.ValidationError: если данные нарушают контракт
    """
    check_contract(TransactionStatus, data)
    return TransactionStatus.model_validate(data)
