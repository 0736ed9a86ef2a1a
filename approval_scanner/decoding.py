"""
Selector matching and fixed-layout decoding of approve(address,uint256).

Only the one signature in scope is decoded, so the layout is spelled out
directly instead of going through a general ABI coder:

    [0:4]    selector
    [4:36]   spender, left-padded with 12 zero bytes
    [36:68]  amount, big-endian uint256
"""

from approval_scanner.addresses import (
    ADDRESS_LENGTH,
    APPROVE_SELECTOR,
    SELECTOR_LENGTH,
    normalize_address,
)
from approval_scanner.models import DecodedCall, DecodeFailure, DecodeResult, Transaction


WORD_SIZE = 32
ADDRESS_PADDING = WORD_SIZE - ADDRESS_LENGTH


class SelectorMatcher:
    """Predicate picking out candidate calls by their 4-byte selector."""

    def __init__(self, selector: bytes = APPROVE_SELECTOR) -> None:
        if len(selector) != SELECTOR_LENGTH:
            raise ValueError(f"selector must be {SELECTOR_LENGTH} bytes")
        self.selector = bytes(selector)

    def matches(self, tx: Transaction) -> bool:
        """True when tx has a destination and its call data starts with the selector."""
        if tx.to is None:
            return False
        if len(tx.data) < SELECTOR_LENGTH:
            return False
        return tx.data[:SELECTOR_LENGTH] == self.selector


class ApproveCallDecoder:
    """
    Decode approve(address,uint256) call data.

    Never raises on malformed input; returns a DecodeFailure instead.
    Extra whole words after the two arguments are ignored.
    """

    FUNCTION_NAME = "approve"

    def __init__(self, selector: bytes = APPROVE_SELECTOR) -> None:
        self.selector = bytes(selector)

    def decode(self, call_data: bytes) -> DecodeResult:
        length = len(call_data)

        if length < SELECTOR_LENGTH:
            return DecodeFailure("call data shorter than selector", length)
        if call_data[:SELECTOR_LENGTH] != self.selector:
            return DecodeFailure(
                f"selector 0x{call_data[:SELECTOR_LENGTH].hex()} does not match "
                f"0x{self.selector.hex()}",
                length,
            )

        payload = call_data[SELECTOR_LENGTH:]
        if len(payload) % WORD_SIZE != 0:
            return DecodeFailure(
                f"argument data is not a multiple of {WORD_SIZE} bytes",
                length,
            )
        if len(payload) < 2 * WORD_SIZE:
            return DecodeFailure("expected 2 argument words", length)

        spender_word = payload[:WORD_SIZE]
        amount_word = payload[WORD_SIZE:2 * WORD_SIZE]

        if any(spender_word[:ADDRESS_PADDING]):
            return DecodeFailure("non-zero padding in address argument", length)

        spender = normalize_address(spender_word[ADDRESS_PADDING:])
        amount = int.from_bytes(amount_word, byteorder="big")

        return DecodedCall(name=self.FUNCTION_NAME, args=(spender, amount))
