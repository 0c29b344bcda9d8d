"""
Tests for JSON Schema Contract Validators

Комплексное тестирование контрактов settlement boundary:
- Валидность самих схем и связь модель → схема
- Валидация правильных payloads
- Детекция нарушений required полей, типов и constraints
- Интеграция с Pydantic моделями и payload builders
"""

import json

import pytest
from jsonschema import ValidationError

from voile.core.contracts import (
    CONTRACTS,
    check_contract,
    contract_validator,
    load_schema,
    validate_payload,
)
from voile.core.domain.deal import MatchedDeal
from voile.core.domain.lp_offer import LpOffer
from voile.core.domain.settlement import AdvanceNoteInputs, SettlementNoteInputs, TransactionStatus
from voile.core.domain.units import FIELD_MODULUS
from voile.matching.builders import build_lp_offer, build_unlock_request
from voile.matching.engine import MatchingEngine
from voile.settlement import advance_note_inputs, parse_transaction_status, settlement_note_inputs

NOW = 1_700_000_000


# =============================================================================
# FIXTURES - VALID DATA SAMPLES
# =============================================================================


@pytest.fixture
def valid_advance_inputs():
    return {
        "deal_id": [1, 2, 3, 4],
        "request_commitment": [5, 6, 7, 8],
        "offer_id": 42,
        "advance_amount": 9_500,
    }


@pytest.fixture
def valid_settlement_inputs():
    return {
        "request_id": 42,
        "amount": 10_000,
        "cooldown_end_timestamp": NOW,
        "deal_id": [1, 2, 3, 4],
    }


@pytest.fixture
def matched():
    clock = lambda: NOW  # noqa: E731
    engine = MatchingEngine(clock=clock)
    engine.add_offer(build_lp_offer("lp-1", 50_000, 500))
    request = build_unlock_request("user-1", 10_000, 14, clock=clock)
    return request, engine.match_request(request)


# =============================================================================
# ТЕСТЫ: Schemas
# =============================================================================


class TestSchemas:
    @pytest.mark.parametrize("model", list(CONTRACTS))
    def test_every_contract_loads(self, model):
        schema = load_schema(CONTRACTS[model])
        assert schema["$schema"].endswith("2020-12/schema")

    def test_validator_cached_per_model(self):
        assert contract_validator(MatchedDeal) is contract_validator(MatchedDeal)
        assert contract_validator(MatchedDeal) is not contract_validator(TransactionStatus)

    def test_model_without_contract(self):
        with pytest.raises(LookupError, match="LpOffer"):
            contract_validator(LpOffer)

    def test_missing_schema(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_schema("does_not_exist", tmp_path)

    def test_invalid_schema(self, tmp_path):
        (tmp_path / "broken.json").write_text(json.dumps({"type": 12}), encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid JSON Schema"):
            load_schema("broken", tmp_path)


# =============================================================================
# ТЕСТЫ: Advance / settlement note inputs
# =============================================================================


class TestNoteInputs:
    def test_valid_advance(self, valid_advance_inputs):
        check_contract(AdvanceNoteInputs, valid_advance_inputs)
        assert contract_validator(AdvanceNoteInputs).is_valid(valid_advance_inputs)

    def test_valid_settlement(self, valid_settlement_inputs):
        check_contract(SettlementNoteInputs, valid_settlement_inputs)

    def test_validate_payload_returns_json(self, valid_advance_inputs):
        payload = AdvanceNoteInputs.model_validate(valid_advance_inputs)
        assert validate_payload(payload) == valid_advance_inputs

    @pytest.mark.parametrize("field", ["deal_id", "request_commitment", "offer_id", "advance_amount"])
    def test_advance_required(self, valid_advance_inputs, field):
        del valid_advance_inputs[field]
        with pytest.raises(ValidationError):
            check_contract(AdvanceNoteInputs, valid_advance_inputs)

    def test_no_extra_fields(self, valid_advance_inputs):
        valid_advance_inputs["user_account_id"] = "user-1"
        with pytest.raises(ValidationError):
            check_contract(AdvanceNoteInputs, valid_advance_inputs)

    def test_felt_above_modulus(self, valid_advance_inputs):
        valid_advance_inputs["offer_id"] = FIELD_MODULUS
        with pytest.raises(ValidationError):
            check_contract(AdvanceNoteInputs, valid_advance_inputs)

    def test_word_length(self, valid_settlement_inputs):
        valid_settlement_inputs["deal_id"] = [1, 2, 3]
        assert not contract_validator(SettlementNoteInputs).is_valid(valid_settlement_inputs)

    def test_zero_amount(self, valid_settlement_inputs):
        valid_settlement_inputs["amount"] = 0
        with pytest.raises(ValidationError, match="amount|minimum"):
            check_contract(SettlementNoteInputs, valid_settlement_inputs)

    def test_payload_builders(self, matched):
        request, deal = matched

        advance = advance_note_inputs(deal)
        assert advance.advance_amount == 9_500
        assert advance.offer_id == deal.offer_id

        settlement = settlement_note_inputs(deal, request)
        assert settlement.request_id == request.request_id
        assert settlement.amount == 10_000
        assert settlement.cooldown_end_timestamp == deal.cooldown_end_timestamp

    def test_settlement_inputs_reject_foreign_request(self, matched):
        _, deal = matched
        other = build_unlock_request("user-2", 10_000, 14, clock=lambda: NOW)
        with pytest.raises(ValueError, match="does not match"):
            settlement_note_inputs(deal, other)


# =============================================================================
# ТЕСТЫ: Transaction status
# =============================================================================


class TestTransactionStatusContract:
    def test_confirmed(self):
        check_contract(TransactionStatus, {"tx_id": "0x1", "status": "confirmed", "block_number": 5})

    def test_failed_requires_error(self):
        with pytest.raises(ValidationError):
            check_contract(TransactionStatus, {"tx_id": "0x1", "status": "failed"})
        assert not contract_validator(TransactionStatus).is_valid(
            {"tx_id": "0x1", "status": "failed", "error": ""}
        )

    def test_unknown_status(self):
        with pytest.raises(ValidationError):
            parse_transaction_status({"tx_id": "0x1", "status": "dropped"})

    def test_parse(self):
        tx = parse_transaction_status({"tx_id": "0x1", "status": "failed", "error": "reverted"})
        assert tx.is_failed
        assert tx.error == "reverted"


# =============================================================================
# ТЕСТЫ: Matched deal
# =============================================================================


class TestMatchedDealContract:
    def test_model_dump_is_valid(self, matched):
        _, deal = matched
        data = validate_payload(deal)
        assert data["status"] == deal.status.value

    def test_invalid_status(self, matched):
        _, deal = matched
        data = deal.model_dump(mode="json")
        data["status"] = "refunded"
        assert not contract_validator(MatchedDeal).is_valid(data)
