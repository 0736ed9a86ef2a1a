"""Shared fixtures for approval scanner tests."""

import pytest

from approval_scanner.addresses import normalize_address

from tests.helpers import TARGET_SPENDER, TOKEN_1, TOKEN_2, TOKEN_3


@pytest.fixture
def target_spender():
    return normalize_address(TARGET_SPENDER)


@pytest.fixture
def token_addresses():
    """Checksummed token addresses T1, T2, T3."""
    return [normalize_address(t) for t in (TOKEN_1, TOKEN_2, TOKEN_3)]
