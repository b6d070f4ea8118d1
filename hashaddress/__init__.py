"""
HashAddress Module
==================

Хэши как адреса и утилиты для Kademlia-подобной маршрутизации:
- HashAddress: 256-битный адрес, XOR-расстояние во float и обратно
- CompactAddress: 16 символов base64 (96 бит), более грубая метрика
- Codec: hex / base64 / текст <-> байты

[KADEMLIA] Только примитив идентификатора и метрики. Таблица маршрутизации,
транспорт и хранилище живут уровнем выше.
"""

from .errors import (
    AddressError,
    InvalidLength,
    InvalidEncoding,
    DigestUnavailable,
    RandomSourceUnavailable,
)

from .codec import (
    ADDRESS_SIZE,
    ADDRESS_BITS,
    COMPACT_LENGTH,
    BASE64_ALPHABET,
    bytes_to_address,
    address_to_hex,
    hex_to_address,
    address_to_base64,
    base64_to_address,
    parse_address,
    text_to_bytes,
    bytes_to_compact,
)

from .providers import (
    make_digest,
    default_digest,
    secure_random,
)

from .address import (
    HashAddress,
    INFINITE_DISTANCE_BIT,
    generate,
    flip_bit_randomise,
    distance,
    dist_bit,
    first_differing_bit,
)

from .compact import (
    CompactAddress,
    generate_compact,
    compact_distance,
    compact_dist_bit,
    compact_dist_bit_of,
    flip_bit_and_random,
)

__all__ = [
    # Errors
    "AddressError",
    "InvalidLength",
    "InvalidEncoding",
    "DigestUnavailable",
    "RandomSourceUnavailable",
    # Codec
    "ADDRESS_SIZE",
    "ADDRESS_BITS",
    "COMPACT_LENGTH",
    "BASE64_ALPHABET",
    "bytes_to_address",
    "address_to_hex",
    "hex_to_address",
    "address_to_base64",
    "base64_to_address",
    "parse_address",
    "text_to_bytes",
    "bytes_to_compact",
    # Providers
    "make_digest",
    "default_digest",
    "secure_random",
    # Address
    "HashAddress",
    "INFINITE_DISTANCE_BIT",
    "generate",
    "flip_bit_randomise",
    "distance",
    "dist_bit",
    "first_differing_bit",
    # Compact
    "CompactAddress",
    "generate_compact",
    "compact_distance",
    "compact_dist_bit",
    "compact_dist_bit_of",
    "flip_bit_and_random",
]
