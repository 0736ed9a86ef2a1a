"""
Mock Chain Client.

============================================================
PURPOSE
============================================================
In-memory chain for testing the scanner and enricher.

FEATURES:
- Configurable blocks and head height
- Failing or missing block heights
- Per-token name() results, reverts and raw return data
- Optional simulated latency
- In-flight tracking to observe fan-out bounds

============================================================
"""

import asyncio
from dataclasses import dataclass, field
from typing import Optional, Union

from eth_abi import encode

from approval_scanner.addresses import APPROVE_SELECTOR, normalize_address
from approval_scanner.client import ChainClient
from approval_scanner.exceptions import ChainConnectionError, ContractCallError
from approval_scanner.models import Block, NetworkInfo


def build_approve_call_data(
    spender: Union[str, bytes],
    amount: int,
    selector: bytes = APPROVE_SELECTOR,
) -> bytes:
    """Encode approve(spender, amount) call data."""
    spender_bytes = bytes.fromhex(normalize_address(spender)[2:])
    return (
        selector
        + b"\x00" * 12 + spender_bytes
        + amount.to_bytes(32, byteorder="big")
    )


def encode_string_result(value: str) -> bytes:
    """ABI-encode a string return value, as a name() call would return it."""
    return encode(["string"], [value])


@dataclass
class MockChainConfig:
    """Configuration for the mock chain."""

    network: NetworkInfo = field(default_factory=lambda: NetworkInfo.from_chain_id(56))

    latest_height: int = 0

    latency_seconds: float = 0.0
    """Simulated latency for every call."""

    failing_heights: set[int] = field(default_factory=set)
    """Heights whose fetch raises ChainConnectionError."""

    unreachable: bool = False
    """Every call raises ChainConnectionError."""


class MockChainClient(ChainClient):
    """
    Mock chain client for testing.

    Heights with no configured block return None, like a node that has not
    seen them yet.
    """

    def __init__(
        self,
        blocks: Optional[list[Block]] = None,
        names: Optional[dict[str, Union[str, bytes, Exception]]] = None,
        config: Optional[MockChainConfig] = None,
    ) -> None:
        self.config = config or MockChainConfig()
        self.blocks: dict[int, Block] = {block.number: block for block in blocks or []}
        self.latest_height = self.config.latest_height
        if self.blocks and not self.latest_height:
            self.latest_height = max(self.blocks)

        # Values are a name, raw return bytes, or an exception to raise
        self.names: dict[str, Union[str, bytes, Exception]] = {
            normalize_address(address): value
            for address, value in (names or {}).items()
        }

        self.fetched_heights: list[int] = []
        self.view_calls: list[tuple[str, str]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False

    async def _simulate_call(self) -> None:
        if self.config.unreachable:
            raise ChainConnectionError("Mock endpoint unreachable", rpc_url="mock://")
        if self.config.latency_seconds:
            await asyncio.sleep(self.config.latency_seconds)

    async def get_network(self) -> NetworkInfo:
        await self._simulate_call()
        return self.config.network

    async def get_latest_block_height(self) -> int:
        await self._simulate_call()
        return self.latest_height

    async def get_block_with_transactions(self, height: int) -> Optional[Block]:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            self.fetched_heights.append(height)
            await self._simulate_call()
            # Yield so sibling fetches in the same batch overlap
            await asyncio.sleep(0)
            if height in self.config.failing_heights:
                raise ChainConnectionError(
                    f"Mock failure fetching block {height}",
                    method="eth_getBlockByNumber",
                    rpc_url="mock://",
                )
            return self.blocks.get(height)
        finally:
            self.in_flight -= 1

    async def call_contract_view(self, address: str, function_name: str) -> bytes:
        key = normalize_address(address)
        self.view_calls.append((key, function_name))
        await self._simulate_call()

        value = self.names.get(key)
        if value is None:
            raise ContractCallError(
                f"{function_name}() reverted: execution reverted",
                address=key,
                function_name=function_name,
            )
        if isinstance(value, Exception):
            raise value
        if isinstance(value, bytes):
            return value
        return encode_string_result(value)

    async def close(self) -> None:
        self.closed = True
