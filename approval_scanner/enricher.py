"""
Metadata Enricher - resolves token names for discovered contracts.

Each token is queried independently. A failure for one token yields a
TokenRecord carrying the error sentinel and never affects the others.
"""

import asyncio
import logging
from typing import Iterable

from eth_abi import decode
from eth_abi.exceptions import DecodingError

from approval_scanner.client import ChainClient
from approval_scanner.exceptions import ChainClientError, ContractCallError
from approval_scanner.models import TokenRecord
from approval_scanner.registry import TokenRegistry


logger = logging.getLogger(__name__)


BYTES32_LENGTH = 32


def decode_string_result(data: bytes) -> str:
    """
    Decode the return data of a string-returning view function.

    Falls back to a right-padded bytes32 value, which older tokens
    (MKR, SAI) return from name() and symbol().

    Raises:
        ValueError: If data is empty or matches neither layout
    """
    if not data:
        raise ValueError("empty return data")

    try:
        return decode(["string"], data)[0]
    except (DecodingError, UnicodeDecodeError, OverflowError) as e:
        if len(data) != BYTES32_LENGTH:
            raise ValueError(f"undecodable string return data: {e}") from e

    return data.rstrip(b"\x00").decode("utf-8", errors="replace")


class MetadataEnricher:
    """Fetch name() for every token, with bounded concurrency."""

    DEFAULT_CONCURRENCY = 5

    def __init__(
        self,
        client: ChainClient,
        concurrency: int = DEFAULT_CONCURRENCY,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be positive")
        self.client = client
        self.concurrency = concurrency

    async def enrich(self, registry: TokenRegistry) -> list[TokenRecord]:
        """Records in registry order."""
        return await self.enrich_addresses(registry.entries())

    async def enrich_addresses(self, addresses: Iterable[str]) -> list[TokenRecord]:
        semaphore = asyncio.Semaphore(self.concurrency)

        async def bounded(address: str) -> TokenRecord:
            async with semaphore:
                return await self._fetch_record(address)

        return list(await asyncio.gather(*(bounded(address) for address in addresses)))

    async def _fetch_record(self, address: str) -> TokenRecord:
        try:
            raw = await self.client.call_contract_view(address, "name")
            name = decode_string_result(raw)
        except ValueError as e:
            error = ContractCallError(str(e), address=address, function_name="name")
            return self._failed(address, error)
        except ChainClientError as e:
            return self._failed(address, e)
        except Exception as e:
            error = ContractCallError(
                f"Unexpected error: {e}",
                address=address,
                function_name="name",
                original_error=e,
            )
            return self._failed(address, error)

        logger.info(f"Token Address: {address}, Name: {name}")
        return TokenRecord(address=address, name=name)

    def _failed(self, address: str, error: ChainClientError) -> TokenRecord:
        logger.warning(f"Token Address: {address}, could not fetch name: {error}")
        return TokenRecord.failed(address, error.message)
