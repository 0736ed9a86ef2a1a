"""
Tests for address and selector helpers.

============================================================
TEST SCENARIOS
============================================================
1. Selectors match the well-known 4-byte values
2. Same address in different casings normalizes to one value
3. Raw 20-byte input normalizes like hex input
4. Invalid input raises InvalidAddressError

============================================================
"""

import pytest

from approval_scanner.addresses import (
    APPROVE_SELECTOR,
    NAME_SELECTOR,
    addresses_equal,
    function_selector,
    is_valid_address,
    normalize_address,
)
from approval_scanner.exceptions import InvalidAddressError


# EIP-55 reference vector
CHECKSUMMED = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"


# ============================================================
# TEST: SELECTORS
# ============================================================

class TestSelectors:
    """Tests for function selector derivation."""

    def test_approve_selector(self):
        assert APPROVE_SELECTOR == bytes.fromhex("095ea7b3")

    def test_name_selector(self):
        assert NAME_SELECTOR == bytes.fromhex("06fdde03")

    def test_arbitrary_signature(self):
        assert function_selector("transfer(address,uint256)") == bytes.fromhex("a9059cbb")


# ============================================================
# TEST: NORMALIZATION
# ============================================================

class TestNormalizeAddress:
    """Tests for checksum normalization."""

    def test_checksummed_input_is_unchanged(self):
        assert normalize_address(CHECKSUMMED) == CHECKSUMMED

    def test_casing_invariance(self):
        lower = "0x" + CHECKSUMMED[2:].lower()
        upper = "0x" + CHECKSUMMED[2:].upper()

        assert normalize_address(lower) == CHECKSUMMED
        assert normalize_address(upper) == CHECKSUMMED

    def test_bytes_input(self):
        raw = bytes.fromhex(CHECKSUMMED[2:])
        assert normalize_address(raw) == CHECKSUMMED

    def test_surrounding_whitespace_ignored(self):
        assert normalize_address(f"  {CHECKSUMMED}\n") == CHECKSUMMED

    @pytest.mark.parametrize("value", [
        "",
        "0x1234",
        "not an address",
        "0x" + "zz" * 20,
        b"\x00" * 19,
        b"\x00" * 32,
    ])
    def test_invalid_input_raises(self, value):
        with pytest.raises(InvalidAddressError):
            normalize_address(value)

    def test_bad_checksum_raises(self):
        # Flip the case of one letter in a valid checksum
        broken = CHECKSUMMED[:3] + CHECKSUMMED[3].swapcase() + CHECKSUMMED[4:]
        assert broken != CHECKSUMMED

        with pytest.raises(InvalidAddressError):
            normalize_address(broken)

    def test_non_string_raises(self):
        with pytest.raises(InvalidAddressError):
            normalize_address(12345)


class TestAddressPredicates:
    """Tests for is_valid_address and addresses_equal."""

    def test_is_valid_address(self):
        assert is_valid_address(CHECKSUMMED)
        assert is_valid_address(CHECKSUMMED.lower())
        assert is_valid_address(b"\x01" * 20)
        assert not is_valid_address(None)
        assert not is_valid_address("0x1234")

    def test_bad_checksum_is_invalid(self):
        broken = "0x5AAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"

        assert not is_valid_address(broken)
        assert not is_valid_address(CHECKSUMMED[:-1] + CHECKSUMMED[-1].swapcase())

    def test_addresses_equal_across_forms(self):
        assert addresses_equal(CHECKSUMMED, CHECKSUMMED.lower())
        assert addresses_equal(CHECKSUMMED, bytes.fromhex(CHECKSUMMED[2:]))
        assert not addresses_equal(CHECKSUMMED, "0x" + "00" * 20)
