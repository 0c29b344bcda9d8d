"""
Contract Validation Module

Валидация JSON payloads на границе с settlement layer.
"""

from .validators import (
    CONTRACTS,
    check_contract,
    contract_validator,
    load_schema,
    validate_payload,
)

__all__ = [
    "CONTRACTS",
    "load_schema",
    "contract_validator",
    "validate_payload",
    "check_contract",
]
