"""
Контракты settlement boundary

Каждая pydantic модель, которая пересекает границу с settlement layer,
связана с JSON Schema (Draft 2020-12) из каталога schema/. Pydantic проверяет
типы внутри пакета, схема фиксирует wire-формат для внешней стороны.

Исходящие payloads проверяются как `model_dump(mode="json")` модели
(validate_payload), входящие dict проверяются до pydantic (check_contract).
"""

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Mapping, Type

import jsonschema
from jsonschema import Draft202012Validator
from pydantic import BaseModel

from voile.core.domain.deal import MatchedDeal
from voile.core.domain.settlement import AdvanceNoteInputs, SettlementNoteInputs, TransactionStatus

SCHEMA_DIR = Path(__file__).parent / "schema"

# Модель → имя файла схемы (без .json)
CONTRACTS: Mapping[Type[BaseModel], str] = {
    AdvanceNoteInputs: "advance_note_inputs",
    SettlementNoteInputs: "settlement_note_inputs",
    TransactionStatus: "transaction_status",
    MatchedDeal: "matched_deal",
}


# =============================================================================
# SCHEMAS
# =============================================================================


def load_schema(schema_name: str, schema_dir: Path = SCHEMA_DIR) -> Dict[str, Any]:
    """
    Чтение схемы с meta-валидацией.

    Raises:
        FileNotFoundError: если файла схемы нет
        ValueError: если файл не является валидной JSON Schema
    """
    schema_path = schema_dir / f"{schema_name}.json"
    if not schema_path.exists():
        raise FileNotFoundError(f"Schema not found: {schema_path}")

    with open(schema_path, "r", encoding="utf-8") as f:
        schema = json.load(f)

    try:
        Draft202012Validator.check_schema(schema)
    except jsonschema.SchemaError as e:
        raise ValueError(f"Invalid JSON Schema in {schema_path.name}: {e.message}") from e

    return schema


@lru_cache(maxsize=None)
def contract_validator(model: Type[BaseModel]) -> Draft202012Validator:
    """
    Validator контракта модели. Схема читается один раз на процесс.

    Raises:
        LookupError: если для модели нет контракта
    """
    schema_name = CONTRACTS.get(model)
    if schema_name is None:
        raise LookupError(f"no contract registered for {model.__name__}")
    return Draft202012Validator(load_schema(schema_name))


# =============================================================================
# VALIDATION
# =============================================================================


def validate_payload(payload: BaseModel) -> Dict[str, Any]:
    """
    Проверка исходящей модели против её контракта.

    Returns:
        JSON-представление payload, прошедшее проверку

    Raises:
        jsonschema.ValidationError: если payload нарушает контракт
    """
    data = payload.model_dump(mode="json")
    contract_validator(type(payload)).validate(data)
    return data


def check_contract(model: Type[BaseModel], data: Mapping[str, Any]) -> None:
    """
    Проверка входящего dict против контракта model (до model_validate).

    Raises:
        jsonschema.ValidationError: если данные нарушают контракт
    """
    contract_validator(model).validate(data)
