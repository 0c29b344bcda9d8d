"""Settlement — граница с on-chain settlement layer."""

from .interface import (
    SettlementLayer,
    advance_note_inputs,
    parse_transaction_status,
    settlement_note_inputs,
)

__all__ = [
    "SettlementLayer",
    "advance_note_inputs",
    "settlement_note_inputs",
    "parse_transaction_status",
]
