"""
Capability Providers
====================

Внешние возможности, которые адресный слой потребляет, но не реализует:
- digest(data) -> 32 байта, асинхронно (hashlib)
- random_bytes(n) -> n байт, криптографически стойко (PyNaCl / libsodium)

[TESTING] Обе возможности передаются явными параметрами, поэтому в тестах
их легко заменить детерминированными подделками.

[ERRORS] Сбой возможности пробрасывается как DigestUnavailable /
RandomSourceUnavailable. Повторов нет.
"""

import asyncio
import hashlib
import logging
from typing import Awaitable, Callable, Optional

import nacl.utils

from .config import config

from .codec import ADDRESS_SIZE
from .errors import DigestUnavailable, RandomSourceUnavailable

logger = logging.getLogger(__name__)


DigestFunc = Callable[[bytes], Awaitable[bytes]]
RandomBytesFunc = Callable[[int], bytes]


def make_digest(algorithm: str, offload_threshold: Optional[int] = None) -> DigestFunc:
    """
    Построить асинхронный digest на базе hashlib.

    Args:
        algorithm: Имя алгоритма hashlib с 32-байтным выходом
        offload_threshold: Порог в байтах для ухода в executor
            (None = брать из config в момент вызова)

    Raises:
        DigestUnavailable: алгоритм неизвестен или даёт не 32 байта
    """
    try:
        digest_size = hashlib.new(algorithm).digest_size
    except (ValueError, TypeError) as exc:
        raise DigestUnavailable(f"Unknown digest algorithm: {algorithm!r}") from exc

    if digest_size != ADDRESS_SIZE:
        raise DigestUnavailable(
            f"Digest algorithm {algorithm!r} yields {digest_size} bytes, need {ADDRESS_SIZE}"
        )

    def _hash(data: bytes) -> bytes:
        return hashlib.new(algorithm, data).digest()

    async def digest(data: bytes) -> bytes:
        threshold = (
            config.address.digest_offload_threshold
            if offload_threshold is None
            else offload_threshold
        )
        if len(data) > threshold:
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(None, _hash, data)
        return _hash(data)

    digest.__name__ = f"{algorithm}_digest"
    return digest


def default_digest() -> DigestFunc:
    """Digest из конфигурации (HASHADDRESS_DIGEST, по умолчанию sha256)."""
    return make_digest(config.address.digest_algorithm)


def secure_random(n: int) -> bytes:
    """n криптографически стойких случайных байт (libsodium randombytes)."""
    return nacl.utils.random(n)


async def call_digest(digest: DigestFunc, data: bytes) -> bytes:
    """
    Вызвать digest, завернув любой сбой в DigestUnavailable.

    Длину результата не проверяет: это делает конструктор адреса.
    """
    try:
        return bytes(await digest(data))
    except DigestUnavailable:
        raise
    except Exception as exc:
        logger.warning(f"[ADDRESS] Digest capability failed: {exc!r}")
        raise DigestUnavailable(f"Digest capability failed: {exc}") from exc


def call_random_source(random_bytes: RandomBytesFunc, n: int) -> bytes:
    """
    Получить ровно n байт из источника.

    Raises:
        RandomSourceUnavailable: источник упал или вернул не n байт
    """
    try:
        raw = bytes(random_bytes(n))
    except RandomSourceUnavailable:
        raise
    except Exception as exc:
        logger.warning(f"[ADDRESS] Random source failed: {exc!r}")
        raise RandomSourceUnavailable(f"Random source failed: {exc}") from exc

    if len(raw) != n:
        raise RandomSourceUnavailable(f"Random source returned {len(raw)} bytes, expected {n}")
    return raw
