"""
Approval Scanner Package - ERC-20 approval discovery over recent blocks.

Walks the most recent blocks of an EVM chain, finds approve(address,uint256)
calls that grant an allowance to one target spender, and reports the
distinct token contracts involved together with each token's name().

Features:
- Batched, concurrent block retrieval with a per-batch barrier
- Fixed-layout approve call decoding
- Checksum-normalized, insertion-ordered token deduplication
- Per-token name() enrichment with isolated failures

Quick Start:
    from approval_scanner import (
        ApprovalScanPipeline,
        JsonRpcChainClient,
        ScannerConfig,
    )

    async def scan():
        config = ScannerConfig.from_env()
        async with JsonRpcChainClient(config.rpc_url) as client:
            result = await ApprovalScanPipeline(config, client).run()

        for token in result.tokens:
            print(f"Token Address: {token.address}, Name: {token.name}")

Custom Clients:
    class MyClient(ChainClient):
        async def get_network(self): ...
        async def get_latest_block_height(self): ...
        async def get_block_with_transactions(self, height): ...
        async def call_contract_view(self, address, function_name): ...
"""

from approval_scanner.addresses import (
    APPROVE_SELECTOR,
    NAME_SELECTOR,
    addresses_equal,
    function_selector,
    is_valid_address,
    normalize_address,
)
from approval_scanner.client import ChainClient, JsonRpcChainClient
from approval_scanner.config import DEFAULT_TARGET_SPENDER, ScannerConfig
from approval_scanner.decoding import ApproveCallDecoder, SelectorMatcher
from approval_scanner.enricher import MetadataEnricher, decode_string_result
from approval_scanner.exceptions import (
    ApprovalScannerError,
    ChainClientError,
    ChainConnectionError,
    ConfigurationError,
    ContractCallError,
    InvalidAddressError,
    RateLimitError,
    RPCError,
)
from approval_scanner.filters import ApprovalFilter
from approval_scanner.models import (
    ERROR_NAME_SENTINEL,
    Block,
    BlockRange,
    DecodedCall,
    DecodeFailure,
    NetworkInfo,
    ScanResult,
    ScanStats,
    TokenDiscovery,
    TokenRecord,
    Transaction,
)
from approval_scanner.pipeline import ApprovalScanPipeline
from approval_scanner.registry import TokenRegistry
from approval_scanner.scanner import BatchScanner


__all__ = [
    # Addresses
    "APPROVE_SELECTOR",
    "NAME_SELECTOR",
    "addresses_equal",
    "function_selector",
    "is_valid_address",
    "normalize_address",
    # Client
    "ChainClient",
    "JsonRpcChainClient",
    # Config
    "DEFAULT_TARGET_SPENDER",
    "ScannerConfig",
    # Pipeline stages
    "SelectorMatcher",
    "ApproveCallDecoder",
    "ApprovalFilter",
    "TokenRegistry",
    "BatchScanner",
    "MetadataEnricher",
    "decode_string_result",
    "ApprovalScanPipeline",
    # Exceptions
    "ApprovalScannerError",
    "ChainClientError",
    "ChainConnectionError",
    "ConfigurationError",
    "ContractCallError",
    "InvalidAddressError",
    "RateLimitError",
    "RPCError",
    # Models
    "ERROR_NAME_SENTINEL",
    "Block",
    "BlockRange",
    "DecodedCall",
    "DecodeFailure",
    "NetworkInfo",
    "ScanResult",
    "ScanStats",
    "TokenDiscovery",
    "TokenRecord",
    "Transaction",
]

__version__ = "1.0.0"
