"""
Note encryption — шифрование приватных note payloads

ECIES-подобная схема:
- X25519 ECDH между ephemeral ключом отправителя и ключом получателя
- HKDF-SHA256 → 32-байтовый ключ
- AES-256-GCM (authenticated encryption)

Формат ciphertext:
    ephemeral_public_key (32) || nonce (12) || AES-GCM ciphertext + tag (16)

ephemeral_public_key передаётся как associated data, поэтому подмена любой
части blob приводит к InvalidTag при расшифровке.
"""

from dataclasses import dataclass, field
from typing import Final, Optional

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric.x25519 import (
    X25519PrivateKey,
    X25519PublicKey,
)
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from voile.core.crypto.commitments import felt_to_bytes, word_to_bytes
from voile.core.crypto.random_source import DEFAULT_RANDOM_SOURCE, RandomSource
from voile.core.domain.units import Word
from voile.core.exceptions import InvalidKeyMaterial


# =============================================================================
# КОНСТАНТЫ
# =============================================================================

X25519_KEY_LEN: Final[int] = 32
AES_KEY_LEN: Final[int] = 32
NONCE_LEN: Final[int] = 12
TAG_LEN: Final[int] = 16
HKDF_INFO: Final[bytes] = b"voile.note-encryption.v1"

MIN_CIPHERTEXT_LEN: Final[int] = X25519_KEY_LEN + NONCE_LEN + TAG_LEN


# =============================================================================
# KEY PAIR
# =============================================================================


@dataclass(frozen=True)
class KeyPair:
    """X25519 key pair (raw 32-байтовые ключи)."""

    public_key: bytes
    private_key: bytes = field(repr=False)


def generate_key_pair() -> KeyPair:
    private = X25519PrivateKey.generate()
    return KeyPair(
        public_key=private.public_key().public_bytes_raw(),
        private_key=private.private_bytes_raw(),
    )


def _check_key(key: bytes, name: str) -> None:
    if not isinstance(key, (bytes, bytearray)) or len(key) != X25519_KEY_LEN:
        length = len(key) if isinstance(key, (bytes, bytearray)) else type(key).__name__
        raise InvalidKeyMaterial(f"{name} must be {X25519_KEY_LEN} bytes, got {length}")


def _derive_key(shared_secret: bytes, ephemeral_public: bytes, recipient_public: bytes) -> bytes:
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=AES_KEY_LEN,
        salt=None,
        info=HKDF_INFO + ephemeral_public + recipient_public,
    )
    return hkdf.derive(shared_secret)


# =============================================================================
# ENCRYPT / DECRYPT
# =============================================================================


def encrypt_note_data(
    data: bytes,
    recipient_public_key: bytes,
    random_source: Optional[RandomSource] = None,
) -> bytes:
    """
    Шифрование note payload для получателя.

    Args:
        data: Plaintext
        recipient_public_key: X25519 public key получателя (32 байта)
        random_source: Источник nonce (default SecureRandomSource)

    Returns:
        ephemeral_public || nonce || ciphertext

    Raises:
        InvalidKeyMaterial: если ключ не 32 байта
    """
    _check_key(recipient_public_key, "recipient_public_key")
    source = random_source or DEFAULT_RANDOM_SOURCE

    ephemeral = X25519PrivateKey.generate()
    ephemeral_public = ephemeral.public_key().public_bytes_raw()
    shared = ephemeral.exchange(X25519PublicKey.from_public_bytes(bytes(recipient_public_key)))

    key = _derive_key(shared, ephemeral_public, bytes(recipient_public_key))
    nonce = source.token_bytes(NONCE_LEN)
    ciphertext = AESGCM(key).encrypt(nonce, data, ephemeral_public)

    return ephemeral_public + nonce + ciphertext


def decrypt_note_data(encrypted: bytes, private_key: bytes) -> bytes:
    """
    Расшифровка note payload.

    Raises:
        InvalidKeyMaterial: если private_key не 32 байта
        ValueError: если blob короче минимального
        cryptography.exceptions.InvalidTag: если blob подменён или ключ чужой
    """
    _check_key(private_key, "private_key")
    if len(encrypted) < MIN_CIPHERTEXT_LEN:
        raise ValueError(
            f"encrypted note is too short: {len(encrypted)} < {MIN_CIPHERTEXT_LEN} bytes"
        )

    ephemeral_public = encrypted[:X25519_KEY_LEN]
    nonce = encrypted[X25519_KEY_LEN : X25519_KEY_LEN + NONCE_LEN]
    ciphertext = encrypted[X25519_KEY_LEN + NONCE_LEN :]

    private = X25519PrivateKey.from_private_bytes(bytes(private_key))
    shared = private.exchange(X25519PublicKey.from_public_bytes(ephemeral_public))
    key = _derive_key(shared, ephemeral_public, private.public_key().public_bytes_raw())

    return AESGCM(key).decrypt(nonce, ciphertext, ephemeral_public)


# =============================================================================
# NOTE PAYLOADS
# =============================================================================


def encode_settlement_note_data(
    request_id: int,
    amount: int,
    cooldown_end_timestamp: int,
    deal_id: Word,
) -> bytes:
    """
    Plaintext settlement note: request_id || amount || cooldown_end || deal_id.

    Все поля — u64 little-endian, deal_id целиком (32 байта), итого 56 байт.
    """
    return (
        felt_to_bytes(request_id)
        + felt_to_bytes(amount)
        + felt_to_bytes(cooldown_end_timestamp)
        + word_to_bytes(deal_id)
    )
