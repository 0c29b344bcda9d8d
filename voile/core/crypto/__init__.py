"""
Crypto — commitments, nullifiers, random source и шифрование notes.
"""

from voile.core.crypto.commitments import (
    BLINDING_FACTOR_LEN,
    NULLIFIER_SECRET_LEN,
    bytes_to_felt,
    bytes_to_hex,
    bytes_to_word,
    compute_deal_id,
    compute_nullifier,
    compute_offer_commitment,
    compute_request_commitment,
    felt_to_bytes,
    generate_blinding_factor,
    generate_nullifier_secret,
    hex_to_bytes,
    random_felt,
    random_word,
    short_id,
    word_to_bytes,
)
from voile.core.crypto.note_encryption import (
    KeyPair,
    decrypt_note_data,
    encode_settlement_note_data,
    encrypt_note_data,
    generate_key_pair,
)
from voile.core.crypto.random_source import (
    DEFAULT_RANDOM_SOURCE,
    RandomSource,
    SecureRandomSource,
)

__all__ = [
    # Constants
    "BLINDING_FACTOR_LEN",
    "NULLIFIER_SECRET_LEN",
    # Random
    "RandomSource",
    "SecureRandomSource",
    "DEFAULT_RANDOM_SOURCE",
    "random_felt",
    "random_word",
    "generate_nullifier_secret",
    "generate_blinding_factor",
    # Commitments
    "compute_request_commitment",
    "compute_offer_commitment",
    "compute_deal_id",
    "compute_nullifier",
    # Conversions
    "bytes_to_felt",
    "felt_to_bytes",
    "bytes_to_word",
    "word_to_bytes",
    "bytes_to_hex",
    "hex_to_bytes",
    "short_id",
    # Note encryption
    "KeyPair",
    "generate_key_pair",
    "encrypt_note_data",
    "decrypt_note_data",
    "encode_settlement_note_data",
]
