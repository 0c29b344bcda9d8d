"""
Тесты для Commitments & Nullifiers

Проверяемые свойства:
1. Детерминизм: одинаковые входы → одинаковый commitment
2. Binding: изменение любого входа меняет commitment
3. Hiding: разные secrets дают несвязанные commitments
4. Deal id несвязываемы при повторном match той же пары
5. Результат всегда — 4 field elements
"""

import random

import pytest

from voile.core.crypto.commitments import (
    BLINDING_FACTOR_LEN,
    NULLIFIER_SECRET_LEN,
    PERSON_OFFER,
    PERSON_REQUEST,
    bytes_to_hex,
    bytes_to_word,
    compute_deal_id,
    compute_nullifier,
    compute_offer_commitment,
    compute_request_commitment,
    digest_to_word,
    felt_to_bytes,
    generate_blinding_factor,
    generate_nullifier_secret,
    hash_to_word,
    hex_to_bytes,
    random_felt,
    random_word,
    short_id,
    word_to_bytes,
)
from voile.core.crypto.random_source import RandomSource, SecureRandomSource
from voile.core.domain.units import FIELD_MODULUS, is_valid_felt
from voile.core.exceptions import InvalidKeyMaterial


# =============================================================================
# FIXTURES
# =============================================================================


class SeededRandomSource:
    """Детерминированный источник для воспроизводимых тестов."""

    def __init__(self, seed: int):
        self._rng = random.Random(seed)

    def token_bytes(self, n: int) -> bytes:
        return self._rng.randbytes(n)


@pytest.fixture
def secret():
    return bytes(range(32))


@pytest.fixture
def request_commitment(secret):
    return compute_request_commitment(10_000, 1_700_000_000, secret, "user-1")


def _bit_distance(a, b) -> int:
    return sum(bin(x ^ y).count("1") for x, y in zip(word_to_bytes(a), word_to_bytes(b)))


# =============================================================================
# ТЕСТЫ: Random
# =============================================================================


class TestRandom:
    def test_random_felt_in_field(self):
        for _ in range(200):
            value = random_felt()
            assert 0 <= value < 2**63
            assert is_valid_felt(value)

    def test_random_felt_masks_high_bit(self):
        class AllOnes:
            def token_bytes(self, n):
                return b"\xff" * n

        assert random_felt(AllOnes()) == 2**63 - 1

    def test_random_word(self):
        word = random_word()
        assert len(word) == 4
        assert all(is_valid_felt(felt) for felt in word)

    def test_secret_lengths(self):
        assert len(generate_nullifier_secret()) == NULLIFIER_SECRET_LEN
        assert len(generate_blinding_factor()) == BLINDING_FACTOR_LEN

    def test_secure_source_satisfies_protocol(self):
        assert isinstance(SecureRandomSource(), RandomSource)
        assert isinstance(SeededRandomSource(1), RandomSource)

    def test_seeded_source_is_reproducible(self):
        assert random_felt(SeededRandomSource(7)) == random_felt(SeededRandomSource(7))


# =============================================================================
# ТЕСТЫ: Request commitment
# =============================================================================


class TestRequestCommitment:
    def test_deterministic(self, secret, request_commitment):
        again = compute_request_commitment(10_000, 1_700_000_000, secret, "user-1")
        assert again == request_commitment

    def test_word_of_field_elements(self, request_commitment):
        assert len(request_commitment) == 4
        assert all(0 <= felt < FIELD_MODULUS for felt in request_commitment)

    @pytest.mark.parametrize(
        "amount, cooldown_end, user",
        [
            (10_001, 1_700_000_000, "user-1"),
            (10_000, 1_700_000_001, "user-1"),
            (10_000, 1_700_000_000, "user-2"),
        ],
    )
    def test_binding_public_inputs(self, secret, request_commitment, amount, cooldown_end, user):
        assert compute_request_commitment(amount, cooldown_end, secret, user) != request_commitment

    def test_full_secret_is_bound(self, secret, request_commitment):
        """Изменение последнего байта secret меняет commitment."""
        tail_changed = secret[:-1] + bytes([secret[-1] ^ 1])
        assert compute_request_commitment(10_000, 1_700_000_000, tail_changed, "user-1") != request_commitment

    def test_hiding_across_secrets(self):
        """Одинаковые публичные входы с разными secrets дают ~половину различающихся бит."""
        source = SeededRandomSource(42)
        distances = []
        for _ in range(64):
            a = compute_request_commitment(10_000, 1_700_000_000, source.token_bytes(32), "user-1")
            b = compute_request_commitment(10_000, 1_700_000_000, source.token_bytes(32), "user-1")
            distances.append(_bit_distance(a, b))

        mean = sum(distances) / len(distances)
        assert 100 < mean < 156

    def test_hiding_across_amounts(self):
        """Запросы, различающиеся только amount (свежий secret у каждого), не коррелируют по битам."""
        source = SeededRandomSource(43)
        distances = []
        for i in range(64):
            a = compute_request_commitment(10_000 + i, 1_700_000_000, source.token_bytes(32), "user-1")
            b = compute_request_commitment(20_000 + i, 1_700_000_000, source.token_bytes(32), "user-1")
            distances.append(_bit_distance(a, b))

        mean = sum(distances) / len(distances)
        assert 100 < mean < 156

    @pytest.mark.parametrize("bad_secret", [b"", b"\x00" * 31, b"\x00" * 33])
    def test_secret_length_enforced(self, bad_secret):
        with pytest.raises(InvalidKeyMaterial):
            compute_request_commitment(10_000, 1, bad_secret, "user-1")

    def test_secret_type_enforced(self):
        with pytest.raises(InvalidKeyMaterial):
            compute_request_commitment(10_000, 1, "0" * 32, "user-1")

    def test_invalid_key_material_is_value_error(self):
        with pytest.raises(ValueError):
            compute_request_commitment(10_000, 1, b"short", "user-1")


# =============================================================================
# ТЕСТЫ: Offer commitment, deal id, nullifier
# =============================================================================


class TestOfferCommitment:
    def test_deterministic_and_binding(self):
        base = compute_offer_commitment(1, "lp-1", 50_000, 500)
        assert compute_offer_commitment(1, "lp-1", 50_000, 500) == base
        assert compute_offer_commitment(2, "lp-1", 50_000, 500) != base
        assert compute_offer_commitment(1, "lp-1", 50_000, 501) != base

    def test_domain_separation(self):
        """Одинаковые входы под разными personalization дают разные words."""
        items = (1, "lp-1", 50_000, 500)
        assert hash_to_word(PERSON_OFFER, items) != hash_to_word(PERSON_REQUEST, items)

    def test_encoding_is_unambiguous(self):
        assert hash_to_word(PERSON_OFFER, ("ab", "c")) != hash_to_word(PERSON_OFFER, ("a", "bc"))
        assert hash_to_word(PERSON_OFFER, (1,)) != hash_to_word(PERSON_OFFER, (b"\x01",))


class TestDealId:
    def test_fresh_blinding_unlinks_repeat_match(self, request_commitment):
        offer_commitment = compute_offer_commitment(1, "lp-1", 50_000, 500)
        first = compute_deal_id(request_commitment, offer_commitment, 1_000, generate_blinding_factor())
        second = compute_deal_id(request_commitment, offer_commitment, 1_000, generate_blinding_factor())
        assert first != second

    def test_deterministic_for_same_blinding(self, request_commitment):
        offer_commitment = compute_offer_commitment(1, "lp-1", 50_000, 500)
        blinding = b"\x07" * 32
        assert compute_deal_id(request_commitment, offer_commitment, 1_000, blinding) == compute_deal_id(
            request_commitment, offer_commitment, 1_000, blinding
        )

    def test_blinding_length_enforced(self, request_commitment):
        with pytest.raises(InvalidKeyMaterial):
            compute_deal_id(request_commitment, request_commitment, 1_000, b"\x00" * 16)


class TestNullifier:
    def test_deterministic(self, secret):
        assert compute_nullifier(5, secret) == compute_nullifier(5, secret)

    def test_depends_on_request_and_secret(self, secret):
        base = compute_nullifier(5, secret)
        assert compute_nullifier(6, secret) != base
        assert compute_nullifier(5, bytes(32)) != base

    def test_differs_from_commitment(self, secret, request_commitment):
        assert compute_nullifier(5, secret) != request_commitment


# =============================================================================
# ТЕСТЫ: Conversion utilities
# =============================================================================


class TestConversions:
    def test_felt_bytes(self):
        assert felt_to_bytes(1) == b"\x01" + b"\x00" * 7
        with pytest.raises(ValueError):
            felt_to_bytes(2**64)
        with pytest.raises(ValueError):
            felt_to_bytes(-1)

    def test_word_bytes(self):
        word = (1, 2, 3, 2**63)
        assert bytes_to_word(word_to_bytes(word)) == word
        with pytest.raises(ValueError):
            bytes_to_word(b"\x00" * 31)

    def test_hex(self):
        assert bytes_to_hex(b"\xde\xad") == "0xdead"
        assert hex_to_bytes("0xdead") == b"\xde\xad"
        assert hex_to_bytes("dead") == b"\xde\xad"

    def test_digest_to_word_reduces_mod_p(self):
        word = digest_to_word(b"\xff" * 32)
        assert all(felt == (2**64 - 1) % FIELD_MODULUS for felt in word)

    def test_short_id(self):
        assert short_id(0xABCDEF0123456789) == "abcdef01"
        assert short_id((0x1, 2, 3, 4)) == "00000000"
        assert len(short_id(random_felt())) == 8
