"""
Settlement boundary — модели обмена с settlement layer

Settlement layer (on-chain notes/contracts) вне этого пакета. Здесь только
payloads, которые ему передаются, и то, что он возвращает.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from voile.core.domain.units import FeltField, RawAmount, WordField


class TxState(str, Enum):
    """Статус транзакции в settlement layer."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class TransactionStatus(BaseModel):
    """Результат отправки транзакции."""

    tx_id: str = Field(..., min_length=1)
    status: TxState
    block_number: Optional[int] = Field(None, ge=0)
    error: Optional[str] = None

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_failure_reason(self) -> "TransactionStatus":
        if self.status == TxState.FAILED and not self.error:
            raise ValueError("failed transaction must carry an error message")
        return self

    @property
    def is_failed(self) -> bool:
        return self.status == TxState.FAILED


class AdvanceNoteInputs(BaseModel):
    """Данные для advance note (USDC transfer LP → user)."""

    deal_id: WordField
    request_commitment: WordField
    offer_id: FeltField
    advance_amount: RawAmount

    model_config = {"frozen": True}


class SettlementNoteInputs(BaseModel):
    """Данные для settlement note (staked asset user → LP после cooldown)."""

    request_id: FeltField
    amount: int = Field(..., gt=0, strict=True)
    cooldown_end_timestamp: int = Field(..., ge=0, strict=True)
    deal_id: WordField

    model_config = {"frozen": True}


class AdvanceNote(BaseModel):
    note_id: str = Field(..., min_length=1)
    advance_amount: RawAmount
    deal_id: WordField
    offer_id: FeltField
    request_commitment: WordField
    is_consumed: bool = False

    model_config = {"frozen": True}


class SettlementNote(BaseModel):
    note_id: str = Field(..., min_length=1)
    request_id: FeltField
    amount: int = Field(..., gt=0, strict=True)
    cooldown_end_timestamp: int = Field(..., ge=0, strict=True)
    deal_id: WordField
    is_consumed: bool = False

    model_config = {"frozen": True}
