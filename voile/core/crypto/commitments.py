"""
Commitments & Nullifiers

Модуль связывает приватные данные запроса/offer с публичным fingerprint
и вычисляет nullifier для защиты от повторного settlement.

Hash backend: BLAKE2b-256 с personalization на каждый тип значения
(domain separation). Входы кодируются однозначно: тег типа + длина + байты,
поэтому разные наборы входов не дают одинаковую строку для хеширования.

Свойства, которые обязан обеспечивать backend:
- hiding: commitment ничего не говорит о входах без nullifier secret
- binding: нельзя найти два разных набора входов с одним commitment

ФОРМУЛЫ:
    request_commitment = H_req(amount, cooldown_end, nullifier_secret, user_account_id)
    offer_commitment   = H_offer(offer_id, lp_account_id, max_amount, min_amount)
    deal_id            = H_deal(request_commitment, offer_commitment, match_ts, blinding)
    nullifier          = H_null(request_id, nullifier_secret)

Результат — Word из 4 field elements (digest 32 байта → 4 × u64 LE mod p).
"""

import hashlib
from typing import Final, Iterable, Optional, Union

from voile.core.crypto.random_source import DEFAULT_RANDOM_SOURCE, RandomSource
from voile.core.domain.units import FELT_RANDOM_BITS, FIELD_MODULUS, NULLIFIER_SECRET_LEN, Felt, Word
from voile.core.exceptions import InvalidKeyMaterial


# =============================================================================
# КОНСТАНТЫ
# =============================================================================

BLINDING_FACTOR_LEN: Final[int] = 32
DIGEST_SIZE: Final[int] = 32

# Personalization (<= 16 байт для BLAKE2b)
PERSON_REQUEST: Final[bytes] = b"voile.request.v1"
PERSON_OFFER: Final[bytes] = b"voile.offer.v1"
PERSON_DEAL: Final[bytes] = b"voile.deal.v1"
PERSON_NULLIFIER: Final[bytes] = b"voile.nullif.v1"

_TAG_INT: Final[bytes] = b"\x01"
_TAG_BYTES: Final[bytes] = b"\x02"
_TAG_STR: Final[bytes] = b"\x03"
_TAG_WORD: Final[bytes] = b"\x04"

HashInput = Union[int, bytes, str, tuple]


# =============================================================================
# RANDOM
# =============================================================================


def random_felt(random_source: Optional[RandomSource] = None) -> Felt:
    """Случайный field element (63 бита, всегда < FIELD_MODULUS)."""
    source = random_source or DEFAULT_RANDOM_SOURCE
    value = int.from_bytes(source.token_bytes(8), "little")
    return value & ((1 << FELT_RANDOM_BITS) - 1)


def random_word(random_source: Optional[RandomSource] = None) -> Word:
    return (
        random_felt(random_source),
        random_felt(random_source),
        random_felt(random_source),
        random_felt(random_source),
    )


def generate_nullifier_secret(random_source: Optional[RandomSource] = None) -> bytes:
    """Случайный nullifier secret (32 байта)."""
    source = random_source or DEFAULT_RANDOM_SOURCE
    return source.token_bytes(NULLIFIER_SECRET_LEN)


def generate_blinding_factor(random_source: Optional[RandomSource] = None) -> bytes:
    source = random_source or DEFAULT_RANDOM_SOURCE
    return source.token_bytes(BLINDING_FACTOR_LEN)


# =============================================================================
# ENCODING
# =============================================================================


def _encode_int(value: int) -> bytes:
    if isinstance(value, bool) or value < 0:
        raise ValueError(f"hash input must be a non-negative integer, got {value!r}")
    raw = value.to_bytes(max(1, (value.bit_length() + 7) // 8), "big")
    return _TAG_INT + len(raw).to_bytes(4, "big") + raw


def _encode(item: HashInput) -> bytes:
    if isinstance(item, bytes):
        return _TAG_BYTES + len(item).to_bytes(4, "big") + item
    if isinstance(item, str):
        raw = item.encode("utf-8")
        return _TAG_STR + len(raw).to_bytes(4, "big") + raw
    if isinstance(item, tuple):
        if len(item) != 4:
            raise ValueError(f"word must have 4 elements, got {len(item)}")
        return _TAG_WORD + b"".join(_encode_int(felt) for felt in item)
    if isinstance(item, int):
        return _encode_int(item)
    raise TypeError(f"unsupported hash input type: {type(item).__name__}")


def digest_to_word(digest: bytes) -> Word:
    """32-байтовый digest → Word (4 × u64 little-endian mod p)."""
    if len(digest) != DIGEST_SIZE:
        raise ValueError(f"digest must be {DIGEST_SIZE} bytes, got {len(digest)}")
    return tuple(
        int.from_bytes(digest[i : i + 8], "little") % FIELD_MODULUS
        for i in range(0, DIGEST_SIZE, 8)
    )


def hash_to_word(person: bytes, items: Iterable[HashInput]) -> Word:
    """BLAKE2b-256 с domain separation по person → Word."""
    hasher = hashlib.blake2b(digest_size=DIGEST_SIZE, person=person)
    for item in items:
        hasher.update(_encode(item))
    return digest_to_word(hasher.digest())


def _check_secret(secret: bytes, name: str, length: int) -> None:
    if not isinstance(secret, (bytes, bytearray)):
        raise InvalidKeyMaterial(f"{name} must be bytes, got {type(secret).__name__}")
    if len(secret) != length:
        raise InvalidKeyMaterial(f"{name} must be exactly {length} bytes, got {len(secret)}")


# =============================================================================
# COMMITMENTS
# =============================================================================


def compute_request_commitment(
    amount: int,
    cooldown_end: int,
    nullifier_secret: bytes,
    user_account_id: str,
) -> Word:
    """
    Commitment unlock-запроса.

    Чистая функция: одинаковые входы → одинаковый commitment.
    Secret входит в hash целиком (32 байта).

    Raises:
        InvalidKeyMaterial: если nullifier_secret не 32 байта
    """
    _check_secret(nullifier_secret, "nullifier_secret", NULLIFIER_SECRET_LEN)
    return hash_to_word(
        PERSON_REQUEST,
        (amount, cooldown_end, bytes(nullifier_secret), user_account_id),
    )


def compute_offer_commitment(
    offer_id: int,
    lp_account_id: str,
    max_amount: int,
    min_amount: int,
) -> Word:
    """Commitment LP offer-а."""
    return hash_to_word(PERSON_OFFER, (offer_id, lp_account_id, max_amount, min_amount))


def compute_deal_id(
    request_commitment: Word,
    offer_commitment: Word,
    match_timestamp: int,
    blinding_factor: bytes,
) -> Word:
    """
    Deal id из обоих commitments, времени match и blinding factor.

    blinding_factor свежий для каждой сделки: одна и та же пара
    request/offer, сматченная дважды, даёт несвязываемые deal id.

    Raises:
        InvalidKeyMaterial: если blinding_factor не 32 байта
    """
    _check_secret(blinding_factor, "blinding_factor", BLINDING_FACTOR_LEN)
    return hash_to_word(
        PERSON_DEAL,
        (tuple(request_commitment), tuple(offer_commitment), match_timestamp, bytes(blinding_factor)),
    )


def compute_nullifier(request_id: int, nullifier_secret: bytes) -> Word:
    """
    Nullifier запроса.

    Отклонение повторного nullifier — задача settlement layer,
    здесь только вычисление значения.
    """
    _check_secret(nullifier_secret, "nullifier_secret", NULLIFIER_SECRET_LEN)
    return hash_to_word(PERSON_NULLIFIER, (request_id, bytes(nullifier_secret)))


# =============================================================================
# CONVERSION UTILITIES
# =============================================================================


def bytes_to_felt(data: bytes) -> Felt:
    """До 8 байт little-endian → felt."""
    if len(data) > 8:
        raise ValueError(f"felt takes at most 8 bytes, got {len(data)}")
    return int.from_bytes(data, "little")


def felt_to_bytes(felt: Felt) -> bytes:
    if not 0 <= felt < 2**64:
        raise ValueError(f"felt out of u64 range: {felt}")
    return felt.to_bytes(8, "little")


def word_to_bytes(word: Word) -> bytes:
    return b"".join(felt_to_bytes(felt) for felt in word)


def bytes_to_word(data: bytes) -> Word:
    if len(data) != 32:
        raise ValueError(f"word takes exactly 32 bytes, got {len(data)}")
    return tuple(bytes_to_felt(data[i : i + 8]) for i in range(0, 32, 8))


def bytes_to_hex(data: bytes) -> str:
    return "0x" + data.hex()


def hex_to_bytes(value: str) -> bytes:
    return bytes.fromhex(value[2:] if value.startswith("0x") else value)


def short_id(value: Union[int, Word]) -> str:
    """Короткий hex-префикс для логов (8 символов)."""
    felt = value[0] if isinstance(value, tuple) else value
    return f"{felt:016x}"[:8]
