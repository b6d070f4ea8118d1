"""
HashAddress Configuration
=========================
Централизованная конфигурация адресного слоя.
"""

from dataclasses import dataclass, field

import logging
import os

# ============================================================================
# Environment overrides
# ============================================================================

# Алгоритм дайджеста для generate() (.env: HASHADDRESS_DIGEST)
DIGEST_ALGORITHM: str = os.getenv("HASHADDRESS_DIGEST", "sha256").strip().lower() or "sha256"

# Порог (байты), выше которого хэширование уходит в executor
DEFAULT_OFFLOAD_THRESHOLD = 1_048_576
OFFLOAD_THRESHOLD_ENV = os.getenv("HASHADDRESS_OFFLOAD_THRESHOLD", "").strip()
try:
    OFFLOAD_THRESHOLD: int = int(OFFLOAD_THRESHOLD_ENV) if OFFLOAD_THRESHOLD_ENV else DEFAULT_OFFLOAD_THRESHOLD
except ValueError:
    OFFLOAD_THRESHOLD = DEFAULT_OFFLOAD_THRESHOLD

LOG_LEVEL: str = os.getenv("HASHADDRESS_LOG_LEVEL", "WARNING").strip().upper() or "WARNING"

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


@dataclass
class AddressConfig:
    """Настройки генерации адресов."""

    # Имя алгоритма hashlib, дайджест обязан быть 32 байта
    # (sha256, sha3_256, blake2s)
    digest_algorithm: str = DIGEST_ALGORITHM

    # Входы больше порога хэшируются в default executor,
    # чтобы не блокировать event loop
    digest_offload_threshold: int = OFFLOAD_THRESHOLD

    # Уровень логирования для setup_logging()
    log_level: str = LOG_LEVEL


@dataclass
class Config:
    """Главный конфигурационный класс."""

    address: AddressConfig = field(default_factory=AddressConfig)


# Глобальный экземпляр конфигурации
config = Config()


def setup_logging(level: str = "") -> None:
    """
    Настроить корневой логгер для приложений и тестов.

    Сама библиотека хендлеры не ставит, только пишет в свои логгеры.
    """
    logging.basicConfig(
        level=getattr(logging, (level or config.address.log_level).upper(), logging.WARNING),
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
    )
