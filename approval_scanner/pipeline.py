"""
Approval Scan Pipeline.

============================================================
RESPONSIBILITY
============================================================
Runs one scan end to end with strict stage ordering:

1. Establish network identity (fatal on failure)
2. Resolve the scan window from the latest block height
3. Batch scan the window
4. Enrich discovered tokens with their names

Failures below the connectivity tier are contained by the scanner and
the enricher; anything else propagates to the caller.

============================================================
"""

import logging
from datetime import datetime
from typing import Optional

from approval_scanner.client import ChainClient
from approval_scanner.config import ScannerConfig
from approval_scanner.enricher import MetadataEnricher
from approval_scanner.exceptions import ChainClientError, ChainConnectionError
from approval_scanner.models import BlockRange, NetworkInfo, ScanResult
from approval_scanner.scanner import BatchScanner


logger = logging.getLogger(__name__)


class ApprovalScanPipeline:
    """Connect, scan the configured window and enrich the findings."""

    def __init__(
        self,
        config: ScannerConfig,
        client: ChainClient,
        scanner: Optional[BatchScanner] = None,
        enricher: Optional[MetadataEnricher] = None,
    ) -> None:
        self.config = config
        self.client = client
        self.scanner = scanner or BatchScanner(
            client,
            target_spender=config.target_spender,
            batch_size=config.batch_size,
            batch_delay_seconds=config.batch_delay_seconds,
        )
        self.enricher = enricher or MetadataEnricher(
            client,
            concurrency=config.enrich_concurrency,
        )

    async def connect(self) -> NetworkInfo:
        """
        Establish network identity.

        Raises:
            ChainConnectionError: If the endpoint cannot be reached
        """
        logger.info("Connecting to chain node...")
        try:
            network = await self.client.get_network()
        except ChainClientError as e:
            raise ChainConnectionError(
                "Could not establish network identity",
                method=e.method,
                rpc_url=e.rpc_url,
                original_error=e,
            )
        logger.info(f"Connected to network: {network.name} (Chain ID: {network.chain_id})")
        return network

    async def resolve_range(self) -> BlockRange:
        """
        Window of the most recent blocks.

        Raises:
            ChainConnectionError: If the latest height cannot be read
        """
        try:
            latest = await self.client.get_latest_block_height()
        except ChainClientError as e:
            raise ChainConnectionError(
                "Could not read latest block height",
                method=e.method,
                rpc_url=e.rpc_url,
                original_error=e,
            )
        return BlockRange.latest_window(latest, self.config.window_size)

    async def run(self) -> ScanResult:
        started_at = datetime.utcnow()

        network = await self.connect()
        block_range = await self.resolve_range()

        registry = await self.scanner.scan(block_range)

        result = ScanResult(
            network=network,
            block_range=block_range,
            target_spender=self.scanner.target_spender,
            discoveries=registry.discoveries(),
            stats=self.scanner.stats,
            started_at=started_at,
        )

        if len(registry) == 0:
            logger.info("No approval transactions found for the target spender in the scanned blocks.")
        else:
            logger.info(f"Found {len(registry)} unique potential token contract(s). Fetching names...")
            result.tokens = await self.enricher.enrich(registry)

        result.finished_at = datetime.utcnow()
        return result
