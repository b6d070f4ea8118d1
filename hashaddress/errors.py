"""
Address Errors
==============

Иерархия ошибок адресного слоя. Все ошибки пробрасываются вызывающему коду,
внутри модуля ничего не перехватывается и не повторяется.
"""


class AddressError(Exception):
    """Базовая ошибка адресного слоя."""
    pass


class InvalidLength(AddressError, ValueError):
    """Буфер или строка неверной длины."""
    pass


class InvalidEncoding(AddressError, ValueError):
    """Строка не декодируется в корректный адрес (hex/base64)."""
    pass


class DigestUnavailable(AddressError, RuntimeError):
    """Функция хэширования недоступна или упала."""
    pass


class RandomSourceUnavailable(AddressError, RuntimeError):
    """Источник криптографически стойких случайных байт недоступен."""
    pass
