"""
Domain models and value objects.

Contains UnlockRequest, LpOffer, MatchedDeal, settlement boundary payloads
and raw-unit helpers.
"""

from voile.core.domain.deal import DealStatus, MatchedDeal
from voile.core.domain.lp_offer import AprPolicy, AprPolicyKind, LpOffer
from voile.core.domain.settlement import (
    AdvanceNote,
    AdvanceNoteInputs,
    SettlementNote,
    SettlementNoteInputs,
    TransactionStatus,
    TxState,
)
from voile.core.domain.units import (
    FIELD_MODULUS,
    AccountId,
    Felt,
    NoteId,
    Word,
    bps_to_percent,
    cooldown_days_to_seconds,
    is_valid_cooldown_days,
    is_valid_felt,
    percent_to_bps,
    raw_to_usdc,
    usdc_to_raw,
    validate_amount,
)
from voile.core.domain.unlock_request import UnlockRequest, UnlockRequestStatus

__all__ = [
    # Units module
    "FIELD_MODULUS",
    "AccountId",
    "Felt",
    "NoteId",
    "Word",
    "usdc_to_raw",
    "raw_to_usdc",
    "bps_to_percent",
    "percent_to_bps",
    "cooldown_days_to_seconds",
    "is_valid_cooldown_days",
    "is_valid_felt",
    "validate_amount",
    # Unlock request
    "UnlockRequest",
    "UnlockRequestStatus",
    # LP offer
    "LpOffer",
    "AprPolicy",
    "AprPolicyKind",
    # Deal
    "MatchedDeal",
    "DealStatus",
    # Settlement boundary
    "TransactionStatus",
    "TxState",
    "AdvanceNoteInputs",
    "SettlementNoteInputs",
    "AdvanceNote",
    "SettlementNote",
]
