"""
Hash Address
============

[ADDRESS] Хэши как адреса для Kademlia-подобной маршрутизации:
- HashAddress: неизменяемые 32 байта (256 бит)
- generate(): адрес из дайджеста произвольных данных
- flip_bit_randomise(): адрес с заданным первым отличающимся битом
- distance() / dist_bit(): XOR-метрика и обратное отображение

[XOR] Расстояние сжимается в одно число с плавающей точкой:
- окно из 4 байт XOR, начиная с первого отличающегося байта
- младший бит четвёртого байта отбрасывается (24 значащих бита + старший)
- масштаб 2**(93 - 8*i), где i - индекс первого отличающегося байта

Поэтому:
- 0x80.. против 0x00.. -> 2**123 (dist_bit = 0)
- 0x00..01 против 0x00..00 -> 2**-132 (dist_bit = 255)
- dist_bit(distance(a, b)) == индекс первого отличающегося бита

Бит 0 - старший бит байта 0.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Union

from .codec import (
    ADDRESS_BITS,
    ADDRESS_SIZE,
    BytesLike,
    base64_to_bytes,
    bytes_to_base64,
    bytes_to_hex,
    check_length,
    hex_to_bytes,
    parse_address,
    to_bytes,
)
from .providers import (
    DigestFunc,
    RandomBytesFunc,
    call_digest,
    call_random_source,
    default_digest,
    secure_random,
)

logger = logging.getLogger(__name__)


# Показатель степени для различия в старшем бите байта 0
MAX_DISTANCE_EXP = 123
# Размер окна XOR в байтах
DISTANCE_WINDOW = 4
# dist_bit для совпадающих адресов
INFINITE_DISTANCE_BIT = math.inf


@dataclass(frozen=True, repr=False)
class HashAddress:
    """
    Адрес - ровно 32 байта.

    [INVARIANT] Длина всегда 32, иначе InvalidLength. Равенство побайтовое,
    копии не разделяют изменяемого состояния. Все "изменяющие" операции
    возвращают новый адрес.
    """

    data: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", check_length(self.data, ADDRESS_SIZE))

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    async def generate(
        cls,
        data: Union[BytesLike, str],
        digest: Optional[DigestFunc] = None,
    ) -> "HashAddress":
        """Адрес из дайджеста данных, см. generate()."""
        return await generate(data, digest)

    @classmethod
    def from_hex(cls, text: str) -> "HashAddress":
        return cls(hex_to_bytes(text))

    @classmethod
    def from_base64(cls, text: str) -> "HashAddress":
        return cls(base64_to_bytes(text))

    @classmethod
    def from_value(cls, value: Union["HashAddress", BytesLike, str]) -> "HashAddress":
        """
        Привести значение к адресу.

        - HashAddress возвращается как есть
        - буфер должен быть ровно 32 байта
        - строка разбирается как hex (64 символа) или base64
        """
        if isinstance(value, HashAddress):
            return value
        if isinstance(value, str):
            return parse_address(value)
        return cls(value)

    @classmethod
    def random(cls, random_bytes: Optional[RandomBytesFunc] = None) -> "HashAddress":
        """Равномерно случайный адрес из стойкого источника."""
        return cls(call_random_source(random_bytes or secure_random, ADDRESS_SIZE))

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def to_bytes(self) -> bytes:
        return self.data

    def __bytes__(self) -> bytes:
        return self.data

    def __len__(self) -> int:
        return ADDRESS_SIZE

    def hex(self) -> str:
        """64 hex символа в нижнем регистре."""
        return bytes_to_hex(self.data)

    def base64(self) -> str:
        """Стандартный base64, 44 символа."""
        return bytes_to_base64(self.data)

    def to_int(self) -> int:
        """Адрес как big-endian целое."""
        return int.from_bytes(self.data, byteorder="big")

    def bit(self, index: int) -> int:
        """Значение бита index (0 = старший бит байта 0)."""
        if not 0 <= index < ADDRESS_BITS:
            raise ValueError(f"Bit index must be in 0..{ADDRESS_BITS - 1}, got {index}")
        byte_index, offset = divmod(index, 8)
        return (self.data[byte_index] >> (7 - offset)) & 1

    def __str__(self) -> str:
        return self.hex()

    def __repr__(self) -> str:
        return f"HashAddress({self.hex()[:16]}...)"

    # ------------------------------------------------------------------
    # Routing helpers
    # ------------------------------------------------------------------

    def randomise(self, pos: int, random_bytes: Optional[RandomBytesFunc] = None) -> "HashAddress":
        """Новый адрес с первым отличающимся битом pos, см. flip_bit_randomise()."""
        return flip_bit_randomise(self, pos, random_bytes)

    def distance(self, other: "HashAddress") -> float:
        return distance(self, other)

    def dist_bit(self, other: "HashAddress") -> Union[int, float]:
        """
        Индекс первого отличающегося бита.

        addr1.dist_bit(addr2) == dist_bit(addr1.distance(addr2))
        """
        return dist_bit(distance(self, other))


# ============================================================================
# AddressGenerator
# ============================================================================

async def generate(
    data: Union[BytesLike, str],
    digest: Optional[DigestFunc] = None,
) -> HashAddress:
    """
    Сгенерировать адрес из дайджеста данных.

    [ADDRESS] Текст сначала проходит text_to_bytes (по байту на UTF-16
    единицу), затем дайджест оборачивается в HashAddress. Одинаковый вход
    всегда даёт одинаковый адрес.

    Args:
        data: Байты или текст
        digest: Асинхронная функция дайджеста (None = из конфигурации)

    Returns:
        Новый HashAddress

    Raises:
        DigestUnavailable: функция дайджеста недоступна или упала
        InvalidLength: дайджест не 32 байта
    """
    raw = to_bytes(data)
    digest_func = digest or default_digest()
    address = HashAddress(await call_digest(digest_func, raw))
    logger.debug(f"[ADDRESS] Generated {address.hex()[:16]}... from {len(raw)} bytes")
    return address


def flip_bit_randomise(
    addr: HashAddress,
    pos: int,
    random_bytes: Optional[RandomBytesFunc] = None,
) -> HashAddress:
    """
    Сгенерировать адрес, у которого первый отличающийся от addr бит - pos.

    [KADEMLIA] Используется для заполнения bucket'ов по расстоянию:
    - биты 0..pos-1 копируются из addr
    - бит pos инвертируется
    - биты pos+1..255 берутся из криптографически стойкого источника

    Args:
        addr: Исходный адрес
        pos: Индекс бита 0..255
        random_bytes: Источник случайных байт (None = libsodium)

    Raises:
        ValueError: pos вне 0..255
        RandomSourceUnavailable: источник недоступен
    """
    if not 0 <= pos < ADDRESS_BITS:
        raise ValueError(f"Bit position must be in 0..{ADDRESS_BITS - 1}, got {pos}")

    byte_index, offset = divmod(pos, 8)
    noise = call_random_source(random_bytes or secure_random, ADDRESS_SIZE - byte_index)

    flip = 0x80 >> offset
    keep = (0xFF << (8 - offset)) & 0xFF
    source = addr.data[byte_index]

    result = bytearray(addr.data[:byte_index])
    result.append((source & keep) | (~source & flip) | (noise[0] & (flip - 1)))
    result.extend(noise[1:])

    logger.debug(f"[ADDRESS] Randomised {addr.hex()[:16]}... at bit {pos}")
    return HashAddress(bytes(result))


# ============================================================================
# DistanceMetric
# ============================================================================

def distance(a: HashAddress, b: HashAddress) -> float:
    """
    XOR-расстояние между адресами, 24 значащих бита после старшего.

    [XOR] Берётся окно из 4 байт XOR с первого отличающегося байта i
    (за пределами 32 байт - нули). У четвёртого байта отбрасывается младший
    бит, окно упаковывается big-endian и умножается на 2**(93 - 8*i).

    Returns:
        0.0 для равных адресов, иначе значение в [2**-132, 2**124)
    """
    x, y = a.data, b.data
    for i in range(ADDRESS_SIZE):
        if x[i] != y[i]:
            break
    else:
        return 0.0

    window = [
        x[j] ^ y[j] if j < ADDRESS_SIZE else 0
        for j in range(i, i + DISTANCE_WINDOW)
    ]
    value = (window[0] << 23) | (window[1] << 15) | (window[2] << 7) | (window[3] >> 1)
    # ldexp масштабирует без округления
    return math.ldexp(value, MAX_DISTANCE_EXP - 30 - 8 * i)


def dist_bit(dist: float) -> Union[int, float]:
    """
    Индекс первого отличающегося бита по расстоянию.

    dist_bit(d) = 123 - floor(log2(d)). Показатель берётся из frexp,
    поэтому ошибок округления log2 нет.

    Returns:
        0..255 или INFINITE_DISTANCE_BIT (math.inf) для d == 0

    Raises:
        ValueError: отрицательное, NaN или бесконечное расстояние
    """
    if math.isnan(dist) or math.isinf(dist) or dist < 0:
        raise ValueError(f"Distance must be a finite non-negative number, got {dist}")
    if dist == 0:
        return INFINITE_DISTANCE_BIT

    # dist = m * 2**exp, 0.5 <= m < 1  =>  floor(log2(dist)) = exp - 1
    _, exp = math.frexp(dist)
    return MAX_DISTANCE_EXP - (exp - 1)


def first_differing_bit(a: HashAddress, b: HashAddress) -> Union[int, float]:
    """Индекс первого отличающегося бита напрямую, math.inf для равных адресов."""
    xor = a.to_int() ^ b.to_int()
    if xor == 0:
        return INFINITE_DISTANCE_BIT
    return ADDRESS_BITS - xor.bit_length()
