"""
HashAddress Test Configuration
==============================

[QA] Central pytest configuration with fixtures for all test types:
- Unit tests: Isolated, no I/O, fast
- Integration tests: Real digest and entropy sources

[FIXTURES]
- zero_address: All-zero HashAddress
- fixed_random: Deterministic replacement for the secure random source
- counting_digest: Fake async digest that records its inputs
- failing_digest / failing_random: Capabilities that always raise

Usage:
    pytest tests/unit/          # Fast unit tests
    pytest tests/integration/   # Integration tests
"""

import sys
import inspect
import hashlib
import logging
from pathlib import Path
from typing import Callable, List

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: Integration tests (real capabilities)")
    config.addinivalue_line("markers", "slow: Slow tests (skip with -m 'not slow')")


def pytest_collection_modifyitems(config, items):
    """Auto-mark tests based on their path."""
    for item in items:
        if "/unit/" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in str(item.fspath):
            item.add_marker(pytest.mark.integration)

        # Mark async tests
        if inspect.iscoroutinefunction(getattr(item, "obj", None)):
            item.add_marker(pytest.mark.asyncio)


# ============================================================================
# Logging Configuration
# ============================================================================

@pytest.fixture(scope="session", autouse=True)
def configure_logging():
    """Configure logging for tests."""
    from hashaddress.config import setup_logging

    setup_logging("WARNING")
    logging.getLogger("asyncio").setLevel(logging.WARNING)


# ============================================================================
# Address Fixtures
# ============================================================================

@pytest.fixture
def zero_address():
    """All-zero address."""
    from hashaddress import HashAddress
    return HashAddress(bytes(32))


def address_with(**bytes_at):
    """Zero address with selected bytes set: address_with(b15=0x10)."""
    from hashaddress import HashAddress

    raw = bytearray(32)
    for key, value in bytes_at.items():
        raw[int(key[1:])] = value
    return HashAddress(bytes(raw))


@pytest.fixture
def make_address() -> Callable:
    """Factory for zero addresses with selected bytes set."""
    return address_with


# ============================================================================
# Capability Fixtures
# ============================================================================

class FixedRandom:
    """
    Deterministic random source.

    Returns `fill` repeated, and records every requested size.
    """

    def __init__(self, fill: int = 0xFF):
        self.fill = fill
        self.requests: List[int] = []

    def __call__(self, n: int) -> bytes:
        self.requests.append(n)
        return bytes([self.fill]) * n


class CountingDigest:
    """Fake async digest: sha256 with input recording."""

    def __init__(self):
        self.calls: List[bytes] = []

    async def __call__(self, data: bytes) -> bytes:
        self.calls.append(data)
        return hashlib.sha256(data).digest()


@pytest.fixture
def fixed_random() -> FixedRandom:
    return FixedRandom(0xFF)


@pytest.fixture
def zero_random() -> FixedRandom:
    return FixedRandom(0x00)


@pytest.fixture
def counting_digest() -> CountingDigest:
    return CountingDigest()


@pytest.fixture
def failing_digest():
    async def _digest(data: bytes) -> bytes:
        raise OSError("digest backend offline")
    return _digest


@pytest.fixture
def failing_random():
    def _random(n: int) -> bytes:
        raise OSError("entropy pool unavailable")
    return _random
