"""
Address Codec
=============

[CODEC] Преобразования без состояния:
- bytes <-> HashAddress (ровно 32 байта)
- HashAddress <-> hex (64 символа, нижний регистр)
- HashAddress <-> base64 (стандартный алфавит, 44 символа с паддингом)
- текст -> байты (младший байт каждой UTF-16 единицы)
- digest -> CompactAddress (первые 16 символов base64)

[COMPAT] text_to_bytes намеренно обрезает символы >= U+0100 до младшего
байта. Дайджесты уже существующих ASCII-ключей должны оставаться прежними,
поэтому переход на UTF-8 здесь недопустим.
"""

import base64
import binascii
import logging
import re
from typing import TYPE_CHECKING, Dict, Union

from .errors import InvalidEncoding, InvalidLength

if TYPE_CHECKING:
    from .address import HashAddress
    from .compact import CompactAddress

logger = logging.getLogger(__name__)


# Размеры
ADDRESS_SIZE = 32  # байт (256 бит)
ADDRESS_BITS = ADDRESS_SIZE * 8
COMPACT_LENGTH = 16  # символов base64 (96 бит)
COMPACT_BITS = COMPACT_LENGTH * 6
COMPACT_MIN_DIGEST = COMPACT_BITS // 8  # 12 байт покрывают 16 символов

# Стандартный алфавит base64: индекс символа = его 6-битное значение
BASE64_ALPHABET = (
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    "abcdefghijklmnopqrstuvwxyz"
    "0123456789+/"
)
ALPHABET_INDEX: Dict[str, int] = {ch: i for i, ch in enumerate(BASE64_ALPHABET)}

_HEX_RE = re.compile(r"[0-9a-fA-F]*")
_BASE64_RE = re.compile(r"[A-Za-z0-9+/]*={0,2}")

BytesLike = Union[bytes, bytearray, memoryview]


# ============================================================================
# Raw bytes
# ============================================================================

def text_to_bytes(text: str) -> bytes:
    """
    Текст -> байты, по одному байту на UTF-16 единицу.

    [COMPAT] Берётся младший байт каждой единицы, символы >= U+0100 теряют
    старший байт. Символы вне BMP дают два байта (по одному на суррогат).

    Args:
        text: Исходная строка

    Returns:
        Байты длиной len(text.encode('utf-16-be')) // 2
    """
    # utf-16-be: старший байт единицы первым, младшие байты на нечётных позициях
    return text.encode("utf-16-be", "surrogatepass")[1::2]


def to_bytes(data: Union[BytesLike, str]) -> bytes:
    """Нормализовать вход генератора: байты как есть, текст через text_to_bytes."""
    if isinstance(data, str):
        return text_to_bytes(data)
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    raise TypeError(f"Expected bytes or str, got {type(data).__name__}")


def check_length(data: BytesLike, size: int = ADDRESS_SIZE) -> bytes:
    """Скопировать буфер в bytes, проверив длину."""
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise TypeError(f"Expected bytes, got {type(data).__name__}")
    raw = bytes(data)
    if len(raw) != size:
        raise InvalidLength(f"Address must be {size} bytes, got {len(raw)}")
    return raw


# ============================================================================
# Hex
# ============================================================================

def bytes_to_hex(data: bytes) -> str:
    """Каждый байт -> две hex цифры в нижнем регистре."""
    return bytes(data).hex()


def hex_to_bytes(text: str, size: int = ADDRESS_SIZE) -> bytes:
    """
    Разобрать hex строку ровно в `size` байт.

    Принимаются цифры в любом регистре. Пробелы, префикс 0x и нечётная длина
    отвергаются (bytes.fromhex сам по себе пробелы пропускает).

    Raises:
        InvalidEncoding: не hex или неверная длина
    """
    if not isinstance(text, str) or not _HEX_RE.fullmatch(text):
        raise InvalidEncoding(f"Not a hex string: {text!r:.80}")
    if len(text) != size * 2:
        raise InvalidEncoding(f"Hex address must be {size * 2} digits, got {len(text)}")
    return bytes.fromhex(text)


# ============================================================================
# Base64
# ============================================================================

def bytes_to_base64(data: bytes) -> str:
    """Стандартный base64 с паддингом."""
    return base64.b64encode(bytes(data)).decode("ascii")


def base64_to_bytes(text: str, size: int = ADDRESS_SIZE) -> bytes:
    """
    Разобрать стандартный base64 (без URL-safe замен) ровно в `size` байт.

    Паддинг на входе необязателен, но если он есть, то должен быть верным.
    Неканоническая запись (ненулевые биты в последнем символе) отвергается.

    Raises:
        InvalidEncoding: неверный алфавит, паддинг или длина
    """
    if not isinstance(text, str) or not _BASE64_RE.fullmatch(text):
        raise InvalidEncoding(f"Not a base64 string: {text!r:.80}")

    stripped = text.rstrip("=")
    padded = stripped + "=" * (-len(stripped) % 4)
    if stripped != text and padded != text:
        raise InvalidEncoding(f"Bad base64 padding: {text!r:.80}")

    try:
        raw = base64.b64decode(padded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidEncoding(f"Malformed base64: {text!r:.80}") from exc

    if len(raw) != size:
        raise InvalidEncoding(f"Base64 address must decode to {size} bytes, got {len(raw)}")
    # Ненулевые хвостовые биты: разные строки дали бы один адрес
    if bytes_to_base64(raw).rstrip("=") != stripped:
        raise InvalidEncoding(f"Non-canonical base64: {text!r:.80}")
    return raw


# ============================================================================
# HashAddress
# ============================================================================

def bytes_to_address(data: BytesLike) -> "HashAddress":
    """
    Создать HashAddress из буфера.

    Raises:
        InvalidLength: длина буфера != 32
    """
    from .address import HashAddress
    return HashAddress(data)


def address_to_hex(addr: "HashAddress") -> str:
    return bytes_to_hex(addr.to_bytes())


def hex_to_address(text: str) -> "HashAddress":
    from .address import HashAddress
    return HashAddress(hex_to_bytes(text))


def address_to_base64(addr: "HashAddress") -> str:
    return bytes_to_base64(addr.to_bytes())


def base64_to_address(text: str) -> "HashAddress":
    from .address import HashAddress
    return HashAddress(base64_to_bytes(text))


def parse_address(text: str) -> "HashAddress":
    """
    Разобрать адрес из текста: 64 hex символа -> hex, иначе base64.

    Неоднозначности нет: base64 от 32 байт имеет длину 43-44 символа.
    """
    if isinstance(text, str) and len(text) == ADDRESS_SIZE * 2 and _HEX_RE.fullmatch(text):
        return hex_to_address(text)
    return base64_to_address(text)


# ============================================================================
# CompactAddress
# ============================================================================

def bytes_to_compact(digest: BytesLike) -> "CompactAddress":
    """
    Спроецировать дайджест в CompactAddress.

    [COMPACT] base64 от дайджеста, первые 16 символов (96 бит). Проекция
    с потерями: это НЕ другая запись того же HashAddress.

    Raises:
        InvalidLength: дайджест короче 12 байт
    """
    from .compact import CompactAddress

    raw = bytes(digest)
    if len(raw) < COMPACT_MIN_DIGEST:
        raise InvalidLength(
            f"Digest must be at least {COMPACT_MIN_DIGEST} bytes for a compact address, "
            f"got {len(raw)}"
        )
    return CompactAddress(bytes_to_base64(raw)[:COMPACT_LENGTH])
