"""
MatchedDeal — результат match одного запроса с одним offer

Immutable Pydantic модель. Создаётся MatchingEngine, далее принадлежит
DealLifecycleTracker. После создания меняются только status и note ids
(через model_copy в state machine).

Инварианты (точная целочисленная арифметика):
- advance_amount + advance_fee == staked_amount
- lp_fee_share + protocol_fee_share == advance_fee
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from voile.core.domain.units import FeltField, RawAmount, WordField


# =============================================================================
# ENUMS
# =============================================================================


class DealStatus(str, Enum):
    """
    Статус сделки.

    PENDING_ADVANCE → ADVANCE_CREATED → ADVANCED → PENDING_SETTLEMENT → SETTLED,
    FAILED достижим из любого нетерминального состояния.
    """

    PENDING_ADVANCE = "pending_advance"
    ADVANCE_CREATED = "advance_created"
    ADVANCED = "advanced"
    PENDING_SETTLEMENT = "pending_settlement"
    SETTLED = "settled"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (DealStatus.SETTLED, DealStatus.FAILED)


# =============================================================================
# MATCHED DEAL MODEL
# =============================================================================


class MatchedDeal(BaseModel):
    """
    Сделка между пользователем и LP.

    Хранит собственные копии обоих commitments (tuple, read-only).
    """

    # Идентификация
    deal_id: WordField = Field(..., description="Hash(request_commitment, offer_commitment, ts, blinding)")
    request_commitment: WordField
    offer_commitment: WordField
    offer_id: FeltField
    lp_account_id: str = Field(..., min_length=1)
    user_account_id: str = Field(..., min_length=1)

    # Суммы (raw units)
    staked_amount: int = Field(..., gt=0, strict=True)
    advance_amount: RawAmount = Field(..., description="Net advance после fee")
    advance_fee: RawAmount
    lp_fee_share: RawAmount
    protocol_fee_share: RawAmount
    apr_bps: int = Field(..., ge=0, strict=True)
    expected_interest: RawAmount

    # Notes (заполняются settlement layer)
    settlement_note_id: Optional[str] = None
    advance_note_id: Optional[str] = None

    # Время
    matched_at: int = Field(..., ge=0, strict=True)
    cooldown_end_timestamp: int = Field(..., ge=0, strict=True)

    status: DealStatus = DealStatus.PENDING_ADVANCE

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_conservation(self) -> "MatchedDeal":
        if self.advance_amount + self.advance_fee != self.staked_amount:
            raise ValueError(
                f"advance_amount + advance_fee ({self.advance_amount} + {self.advance_fee}) "
                f"!= staked_amount ({self.staked_amount})"
            )
        if self.lp_fee_share + self.protocol_fee_share != self.advance_fee:
            raise ValueError(
                f"lp_fee_share + protocol_fee_share ({self.lp_fee_share} + {self.protocol_fee_share}) "
                f"!= advance_fee ({self.advance_fee})"
            )
        return self

    @property
    def total_lp_earnings(self) -> int:
        """LP fee share + ожидаемый APR interest."""
        return self.lp_fee_share + self.expected_interest
