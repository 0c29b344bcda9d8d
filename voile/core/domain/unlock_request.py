"""
UnlockRequest — приватный запрос на досрочный unlock

Immutable Pydantic модель. Создаётся на устройстве пользователя и до match
никуда не передаётся. Изменения статуса создают новый экземпляр
(см. voile.lifecycle.state_machine.transition_request).

nullifier_secret исключён из repr и из сериализации.
"""

from enum import Enum

from pydantic import BaseModel, Field

from voile.core.domain.units import NULLIFIER_SECRET_LEN, RandomIdField, WordField


# =============================================================================
# ENUMS
# =============================================================================


class UnlockRequestStatus(str, Enum):
    """Статус запроса.

    PENDING → MATCHED → ADVANCED → SETTLED, CANCELLED только из PENDING.
    """

    PENDING = "pending"
    MATCHED = "matched"
    ADVANCED = "advanced"
    SETTLED = "settled"
    CANCELLED = "cancelled"


# =============================================================================
# UNLOCK REQUEST MODEL
# =============================================================================


class UnlockRequest(BaseModel):
    """
    Приватное намерение получить advance под заблокированную позицию.

    commitment — чистая функция от (amount, cooldown_end, nullifier_secret,
    user_account_id), см. voile.core.crypto.commitments.
    """

    request_id: RandomIdField = Field(..., description="Случайный 63-bit идентификатор")
    amount: int = Field(..., gt=0, strict=True, description="Сумма в raw units")
    cooldown_end: int = Field(..., ge=0, strict=True, description="Unix timestamp окончания cooldown")
    nullifier_secret: bytes = Field(
        ...,
        min_length=NULLIFIER_SECRET_LEN,
        max_length=NULLIFIER_SECRET_LEN,
        repr=False,
        exclude=True,
        description="32 байта, не покидают устройство до settlement",
    )
    user_account_id: str = Field(..., min_length=1, description="Opaque account id пользователя")
    commitment: WordField = Field(..., description="Публичный fingerprint запроса")
    created_at: int = Field(..., ge=0, strict=True)
    status: UnlockRequestStatus = Field(default=UnlockRequestStatus.PENDING)

    model_config = {"frozen": True}

    @property
    def is_pending(self) -> bool:
        return self.status == UnlockRequestStatus.PENDING
