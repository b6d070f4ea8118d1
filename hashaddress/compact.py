"""
Compact Address
===============

[COMPACT] Укороченный адрес: первые 16 символов base64 от дайджеста
(16 * 6 = 96 бит). Метрика считается прямо по символам, без декодирования
в байты.

- compact_distance: sum((idx(a[i]) ^ idx(b[i])) * 2**(-5 - 6*i))
- compact_dist_bit: ceil(log2(1 / distance))
- flip_bit_and_random: аналог flip_bit_randomise для 6-битных символов

[WARNING] Точность ниже, чем у HashAddress. Расстояния двух метрик
несравнимы между собой, типы не взаимозаменяемы.

[RANDOM] flip_bit_and_random берёт символы из модуля random, а не из
криптографически стойкого источника. Это сознательный компромисс в пользу
простоты, для генерации идентичностей используйте HashAddress.
"""

import logging
import math
import random
from dataclasses import dataclass
from typing import Optional, Union

from .codec import (
    ALPHABET_INDEX,
    BASE64_ALPHABET,
    COMPACT_BITS,
    COMPACT_LENGTH,
    BytesLike,
    bytes_to_compact,
    to_bytes,
)
from .errors import InvalidEncoding, InvalidLength
from .providers import DigestFunc, call_digest, default_digest

logger = logging.getLogger(__name__)


# Показатель степени для символа 0: значение 1 весит 2**-5
COMPACT_BASE_EXP = -5
BITS_PER_CHAR = 6


@dataclass(frozen=True, repr=False)
class CompactAddress:
    """Неизменяемая строка из 16 символов алфавита base64."""

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str):
            raise TypeError(f"Expected str, got {type(self.value).__name__}")
        if len(self.value) != COMPACT_LENGTH:
            raise InvalidLength(
                f"Compact address must be {COMPACT_LENGTH} characters, got {len(self.value)}"
            )
        bad = [ch for ch in self.value if ch not in ALPHABET_INDEX]
        if bad:
            raise InvalidEncoding(f"Characters outside base64 alphabet: {''.join(bad)!r}")

    @classmethod
    async def generate(
        cls,
        data: Union[BytesLike, str],
        digest: Optional[DigestFunc] = None,
    ) -> "CompactAddress":
        return await generate_compact(data, digest)

    def __str__(self) -> str:
        return self.value

    def __repr__(self) -> str:
        return f"CompactAddress({self.value!r})"

    def __len__(self) -> int:
        return COMPACT_LENGTH

    def distance(self, other: Union["CompactAddress", str]) -> float:
        return compact_distance(self, other)

    def dist_bit(self, other: Union["CompactAddress", str]) -> Union[int, float]:
        return compact_dist_bit(self, other)

    def randomise(self, bitpos: int, rng: Optional[random.Random] = None) -> "CompactAddress":
        return flip_bit_and_random(self, bitpos, rng)


CompactLike = Union[CompactAddress, str]


def _text(addr: CompactLike) -> str:
    if isinstance(addr, CompactAddress):
        return addr.value
    if isinstance(addr, str):
        return addr
    raise TypeError(f"Expected CompactAddress or str, got {type(addr).__name__}")


def _xor_values(a: CompactLike, b: CompactLike):
    """
    XOR индексов алфавита по позициям.

    Скан заканчивается на конце любой из строк, на символе вне алфавита
    или после 16 позиций.
    """
    x, y = _text(a), _text(b)
    for i in range(min(len(x), len(y), COMPACT_LENGTH)):
        va = ALPHABET_INDEX.get(x[i])
        vb = ALPHABET_INDEX.get(y[i])
        if va is None or vb is None:
            return
        yield va ^ vb


# ============================================================================
# CompactMetric
# ============================================================================

async def generate_compact(
    data: Union[BytesLike, str],
    digest: Optional[DigestFunc] = None,
) -> CompactAddress:
    """
    CompactAddress из дайджеста данных.

    Raises:
        DigestUnavailable: функция дайджеста недоступна или упала
        InvalidLength: дайджест короче 12 байт
    """
    raw = to_bytes(data)
    digest_func = digest or default_digest()
    address = bytes_to_compact(await call_digest(digest_func, raw))
    logger.debug(f"[COMPACT] Generated {address.value} from {len(raw)} bytes")
    return address


def compact_distance(a: CompactLike, b: CompactLike) -> float:
    """
    Расстояние между компактными адресами.

    Значения XOR накапливаются как целое (6 бит на позицию) и масштабируются
    один раз, так что округление происходит только при переводе во float.

    Returns:
        0.0 для совпадающих строк, иначе значение в [2**-95, 2)
    """
    total = 0
    count = 0
    for xor in _xor_values(a, b):
        total = (total << BITS_PER_CHAR) | xor
        count += 1

    if total == 0:
        return 0.0
    return math.ldexp(total, COMPACT_BASE_EXP - BITS_PER_CHAR * (count - 1))


def compact_dist_bit(a: CompactLike, b: CompactLike) -> Union[int, float]:
    """
    Индекс первого отличающегося бита, ceil(log2(1 / compact_distance(a, b))).

    Считается по символам напрямую: сумма хвоста при переводе во float
    может округлиться до следующей степени двойки, а индекс - нет.
    На таких границах округления результат может быть на 1 больше, чем
    compact_dist_bit_of(compact_distance(a, b)): для "A" * 16 и "B" + "/" * 15
    здесь 5, а по расстоянию 2**-4 получается 4.

    Returns:
        0..95 или math.inf, если отличий нет
    """
    for i, xor in enumerate(_xor_values(a, b)):
        if xor:
            return BITS_PER_CHAR * i + BITS_PER_CHAR - xor.bit_length()
    return math.inf


def compact_dist_bit_of(dist: float) -> Union[int, float]:
    """
    ceil(log2(1 / dist)) по самому расстоянию.

    dist = m * 2**exp, 0.5 <= m < 1  =>  ceil(-log2(dist)) = 1 - exp
    """
    if math.isnan(dist) or math.isinf(dist) or dist < 0:
        raise ValueError(f"Distance must be a finite non-negative number, got {dist}")
    if dist == 0:
        return math.inf
    _, exp = math.frexp(dist)
    return 1 - exp


def flip_bit_and_random(
    addr: CompactLike,
    bitpos: int,
    rng: Optional[random.Random] = None,
) -> CompactAddress:
    """
    Компактный адрес с первым отличающимся битом bitpos.

    - первые bitpos бит сохраняются
    - бит bitpos инвертируется, остальные биты того же символа сохраняются
    - все следующие символы - случайные символы алфавита

    [RANDOM] Источник - модуль random (или переданный random.Random),
    криптографической стойкости нет.

    Raises:
        ValueError: bitpos вне 0..95
    """
    text = _text(addr)
    if not isinstance(addr, CompactAddress):
        text = CompactAddress(text).value
    if not 0 <= bitpos < COMPACT_BITS:
        raise ValueError(f"Bit position must be in 0..{COMPACT_BITS - 1}, got {bitpos}")

    source = rng or random
    char_index, offset = divmod(bitpos, BITS_PER_CHAR)
    flipped = ALPHABET_INDEX[text[char_index]] ^ (0x20 >> offset)
    tail = "".join(
        source.choice(BASE64_ALPHABET)
        for _ in range(COMPACT_LENGTH - char_index - 1)
    )
    return CompactAddress(text[:char_index] + BASE64_ALPHABET[flipped] + tail)
