"""
Chain Client - boundary between the scanner and an EVM JSON-RPC endpoint.

The scanner depends only on the ChainClient interface. JsonRpcChainClient is
the production implementation over HTTP using aiohttp.
"""

import asyncio
import itertools
import logging
import time
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional

import aiohttp

from approval_scanner.addresses import function_selector, normalize_address
from approval_scanner.exceptions import (
    ChainClientError,
    ChainConnectionError,
    ContractCallError,
    RateLimitError,
    RPCError,
)
from approval_scanner.models import Block, ClientStats, NetworkInfo, Transaction


logger = logging.getLogger(__name__)


class ChainClient(ABC):
    """
    Abstract read-only view of a chain.

    Implementations must:
    1. get_network() - Establish network identity (fatal if it fails)
    2. get_latest_block_height() - Current head height
    3. get_block_with_transactions() - Block with full tx objects, or None
    4. call_contract_view() - eth_call of a zero-argument view function
    """

    @abstractmethod
    async def get_network(self) -> NetworkInfo:
        pass

    @abstractmethod
    async def get_latest_block_height(self) -> int:
        pass

    @abstractmethod
    async def get_block_with_transactions(self, height: int) -> Optional[Block]:
        pass

    @abstractmethod
    async def call_contract_view(self, address: str, function_name: str) -> bytes:
        """
        Call a zero-argument view function and return the raw return data.

        Raises:
            ContractCallError: If the call reverts
            ChainClientError: On transport failure
        """
        pass

    async def close(self) -> None:
        """Close resources."""

    async def __aenter__(self) -> "ChainClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


def _hex_to_int(value: Any, field_name: str = "value") -> int:
    if isinstance(value, int):
        return value
    if not isinstance(value, str):
        raise ValueError(f"{field_name} is not a hex quantity: {value!r}")
    return int(value, 16)


def _hex_to_bytes(value: Optional[str]) -> bytes:
    if not value:
        return b""
    if value.startswith(("0x", "0X")):
        value = value[2:]
    return bytes.fromhex(value)


class JsonRpcChainClient(ChainClient):
    """
    HTTP JSON-RPC chain client.

    Features:
    - Shared aiohttp session, created lazily or injected
    - Per-call timeout
    - Limited retries with exponential backoff for transport errors,
      rate limits and 5xx responses
    - JSON-RPC error objects are not retried
    """

    DEFAULT_TIMEOUT = 30.0
    MAX_RETRIES = 2
    RETRY_BACKOFF_BASE = 1.5

    def __init__(
        self,
        rpc_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = MAX_RETRIES,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.rpc_url = rpc_url
        self._timeout = timeout
        self._max_retries = max(0, max_retries)
        self._session = session
        self._owns_session = session is None
        self._request_ids = itertools.count(1)
        self.stats = ClientStats()

    # ─────────────────────────────────────────────────────────────
    # ChainClient interface
    # ─────────────────────────────────────────────────────────────

    async def get_network(self) -> NetworkInfo:
        chain_id = await self._rpc_call("eth_chainId", [])
        try:
            return NetworkInfo.from_chain_id(_hex_to_int(chain_id, "chainId"))
        except ValueError as e:
            raise ChainConnectionError(
                f"Unexpected eth_chainId result: {chain_id!r}",
                method="eth_chainId",
                rpc_url=self.rpc_url,
                original_error=e,
            )

    async def get_latest_block_height(self) -> int:
        result = await self._rpc_call("eth_blockNumber", [])
        try:
            return _hex_to_int(result, "blockNumber")
        except ValueError as e:
            raise ChainConnectionError(
                f"Unexpected eth_blockNumber result: {result!r}",
                method="eth_blockNumber",
                rpc_url=self.rpc_url,
                original_error=e,
            )

    async def get_block_with_transactions(self, height: int) -> Optional[Block]:
        raw = await self._rpc_call("eth_getBlockByNumber", [hex(height), True])
        if not raw:
            return None
        try:
            return self._parse_block(raw)
        except (KeyError, TypeError, ValueError) as e:
            raise RPCError(
                f"Malformed block {height}: {e}",
                method="eth_getBlockByNumber",
                rpc_url=self.rpc_url,
                original_error=e,
            )

    async def call_contract_view(self, address: str, function_name: str) -> bytes:
        selector = function_selector(f"{function_name}()")
        call = {"to": normalize_address(address), "data": "0x" + selector.hex()}
        try:
            result = await self._rpc_call("eth_call", [call, "latest"])
        except RPCError as e:
            if e.code is None:
                raise
            raise ContractCallError(
                f"{function_name}() reverted: {e.message}",
                address=call["to"],
                function_name=function_name,
                original_error=e,
            )
        try:
            return _hex_to_bytes(result)
        except (TypeError, ValueError) as e:
            raise ContractCallError(
                f"{function_name}() returned non-hex data",
                address=call["to"],
                function_name=function_name,
                original_error=e,
            )

    # ─────────────────────────────────────────────────────────────
    # Parsing
    # ─────────────────────────────────────────────────────────────

    def _parse_block(self, raw: dict[str, Any]) -> Block:
        number = _hex_to_int(raw["number"], "number")
        transactions = []
        for tx in raw.get("transactions") or []:
            # Hash-only entries carry no call data
            if not isinstance(tx, dict):
                continue
            try:
                transactions.append(self._parse_transaction(tx, number))
            except (TypeError, ValueError) as e:
                logger.warning(
                    f"Skipping malformed transaction {tx.get('hash')} in block {number}: {e}"
                )
        return Block(number=number, transactions=tuple(transactions), hash=raw.get("hash"))

    def _parse_transaction(self, raw: dict[str, Any], block_number: int) -> Transaction:
        return Transaction(
            hash=raw.get("hash", ""),
            to=raw.get("to") or None,
            data=_hex_to_bytes(raw.get("input") or raw.get("data")),
            block_number=block_number,
        )

    # ─────────────────────────────────────────────────────────────
    # Transport
    # ─────────────────────────────────────────────────────────────

    async def _rpc_call(self, method: str, params: list[Any]) -> Any:
        """Make a JSON-RPC call with limited retries."""
        last_error: Optional[ChainClientError] = None

        for attempt in range(self._max_retries + 1):
            try:
                return await asyncio.wait_for(
                    self._send(method, params),
                    timeout=self._timeout,
                )
            except asyncio.TimeoutError as e:
                last_error = ChainConnectionError(
                    f"Timeout after {self._timeout}s",
                    method=method,
                    rpc_url=self.rpc_url,
                    original_error=e,
                )
            except RPCError as e:
                if not isinstance(e, RateLimitError) and not e.is_server_error:
                    self._on_error(e)
                    raise
                last_error = e
            except ChainConnectionError as e:
                last_error = e

            if attempt < self._max_retries:
                wait_time = self.RETRY_BACKOFF_BASE ** attempt
                if isinstance(last_error, RateLimitError) and last_error.retry_after_seconds:
                    wait_time = max(wait_time, last_error.retry_after_seconds)
                self.stats.retries += 1
                logger.warning(
                    f"RPC {method} retry {attempt + 1}/{self._max_retries} "
                    f"in {wait_time:.1f}s: {last_error}"
                )
                await asyncio.sleep(wait_time)

        self._on_error(last_error)
        raise last_error

    async def _send(self, method: str, params: list[Any]) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": next(self._request_ids),
        }
        logger.debug(f"RPC: {method} -> {self.rpc_url}")

        data = await self._make_request(payload)

        if not isinstance(data, dict):
            raise ChainConnectionError(
                f"Unexpected response type: {type(data).__name__}",
                method=method,
                rpc_url=self.rpc_url,
            )

        error = data.get("error")
        if error:
            code = error.get("code") if isinstance(error, dict) else None
            message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            raise RPCError(
                f"RPC error: {message}",
                method=method,
                rpc_url=self.rpc_url,
                code=code,
                context={"error": error},
            )

        return data.get("result")

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._timeout),
                headers={
                    "Accept": "application/json",
                    "Content-Type": "application/json",
                },
            )
            self._owns_session = True
        return self._session

    async def _make_request(self, payload: dict[str, Any]) -> Any:
        """POST one JSON-RPC payload and return the decoded JSON body."""
        session = await self._get_session()
        method = payload.get("method")

        start_time = time.time()
        self.stats.requests += 1
        try:
            async with session.post(self.rpc_url, json=payload) as response:
                self.stats.last_latency_ms = (time.time() - start_time) * 1000

                if response.status == 429:
                    retry_after = response.headers.get("Retry-After")
                    raise RateLimitError(
                        "Rate limit exceeded",
                        method=method,
                        rpc_url=self.rpc_url,
                        retry_after_seconds=int(retry_after) if retry_after and retry_after.isdigit() else None,
                    )

                if response.status >= 400:
                    body = await response.text()
                    raise RPCError(
                        f"HTTP {response.status}",
                        method=method,
                        rpc_url=self.rpc_url,
                        status_code=response.status,
                        context={"response_body": body[:500]},
                    )

                return await response.json(content_type=None)

        except aiohttp.ClientError as e:
            raise ChainConnectionError(
                f"Connection error: {e}",
                method=method,
                rpc_url=self.rpc_url,
                original_error=e,
            )
        except ValueError as e:
            raise ChainConnectionError(
                "Response is not valid JSON",
                method=method,
                rpc_url=self.rpc_url,
                original_error=e,
            )

    def _on_error(self, error: ChainClientError) -> None:
        self.stats.failures += 1
        self.stats.last_error = str(error)
        self.stats.last_error_time = datetime.utcnow()

    # ─────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(rpc_url={self.rpc_url})>"
