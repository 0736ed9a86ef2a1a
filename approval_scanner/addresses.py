"""
Address and selector helpers.

Addresses are carried as EIP-55 checksummed strings. Every comparison and
dedup key goes through normalize_address() so that differently-cased input
for the same 20 bytes always collapses to one value.
"""

from typing import Union

from eth_utils import (
    is_address,
    is_checksum_address,
    is_checksum_formatted_address,
    keccak,
    to_checksum_address,
)

from approval_scanner.exceptions import InvalidAddressError


ADDRESS_LENGTH = 20
SELECTOR_LENGTH = 4

APPROVE_SIGNATURE = "approve(address,uint256)"
NAME_SIGNATURE = "name()"


def function_selector(signature: str) -> bytes:
    """First 4 bytes of keccak-256 over the ASCII function signature."""
    return keccak(text=signature)[:SELECTOR_LENGTH]


APPROVE_SELECTOR = function_selector(APPROVE_SIGNATURE)  # 0x095ea7b3
NAME_SELECTOR = function_selector(NAME_SIGNATURE)  # 0x06fdde03


def _is_hex_address(value: str) -> bool:
    """Hex address text; mixed case must carry a valid EIP-55 checksum."""
    if not is_address(value):
        return False
    if is_checksum_formatted_address(value):
        return is_checksum_address(value)
    return True


def is_valid_address(value: Union[str, bytes, None]) -> bool:
    """Check whether value can be normalized to an address."""
    if isinstance(value, (bytes, bytearray)):
        return len(value) == ADDRESS_LENGTH
    if not isinstance(value, str):
        return False
    return _is_hex_address(value.strip())


def normalize_address(value: Union[str, bytes]) -> str:
    """
    Return the checksummed form of an address.

    Accepts hex text in any casing (mixed case must carry a valid checksum)
    or the raw 20 bytes.

    Raises:
        InvalidAddressError: If value is not a 20-byte address
    """
    if isinstance(value, (bytes, bytearray)):
        if len(value) != ADDRESS_LENGTH:
            raise InvalidAddressError(
                value,
                f"Expected {ADDRESS_LENGTH} address bytes, got {len(value)}",
            )
        return to_checksum_address("0x" + bytes(value).hex())

    if not isinstance(value, str) or not _is_hex_address(value.strip()):
        raise InvalidAddressError(value)

    return to_checksum_address(value.strip())


def addresses_equal(left: Union[str, bytes], right: Union[str, bytes]) -> bool:
    """Compare two addresses on their normalized form."""
    return normalize_address(left) == normalize_address(right)
