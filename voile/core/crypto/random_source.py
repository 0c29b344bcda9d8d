"""
Random source — криптографически стойкий источник байтов.

Все случайные значения (request/offer id, nullifier secret, blinding factor,
nonce) берутся из RandomSource. Некриптографический источник (random.Random)
здесь недопустим: это ошибка корректности, а не качества.
"""

import secrets
from typing import Protocol, runtime_checkable


@runtime_checkable
class RandomSource(Protocol):
    """Источник равномерно распределённых байтов."""

    def token_bytes(self, n: int) -> bytes:
        ...


class SecureRandomSource:
    """RandomSource на основе secrets (CSPRNG операционной системы)."""

    def token_bytes(self, n: int) -> bytes:
        return secrets.token_bytes(n)

    def __repr__(self) -> str:
        return "SecureRandomSource()"


DEFAULT_RANDOM_SOURCE = SecureRandomSource()
