"""
Approval Scanner - CLI.

============================================================
RESPONSIBILITY
============================================================
Command-line interface for a single approval scan.

- Provides argparse-based CLI
- Loads configuration from .env, environment and CLI flags
- Runs the scan pipeline and prints the report
- Maps outcomes to process exit codes

============================================================
EXIT CODES
============================================================
0   - Scan completed (with or without findings)
1   - Configuration error, unreachable node or unexpected error
130 - Interrupted by user

============================================================
USAGE
============================================================
approval-scanner --rpc-url https://bsc-dataseed.binance.org
python -m approval_scanner --window 200 --batch-size 20 --json

============================================================
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional, TextIO

from dotenv import load_dotenv

from approval_scanner import __version__
from approval_scanner.client import JsonRpcChainClient
from approval_scanner.config import ScannerConfig
from approval_scanner.exceptions import ChainClientError, ConfigurationError
from approval_scanner.pipeline import ApprovalScanPipeline
from approval_scanner.report import format_report, to_json


logger = logging.getLogger(__name__)


# ============================================================
# LOGGING
# ============================================================

def setup_logging(
    level: str = "INFO",
    log_format: str = "text",
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Set up logging on the root logger.

    Args:
        level: Log level
        log_format: Output format (json or text)
        stream: Destination stream (default: stdout)

    Returns:
        Configured package logger
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    if log_format == "json":
        formatter = logging.Formatter(
            json.dumps({
                "timestamp": "%(asctime)s",
                "level": "%(levelname)s",
                "logger": "%(name)s",
                "message": "%(message)s",
            })
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
        )

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [handler]

    # aiohttp is chatty at DEBUG
    logging.getLogger("aiohttp").setLevel(max(log_level, logging.INFO))

    return logging.getLogger("approval_scanner")


# ============================================================
# CLI ARGUMENT PARSER
# ============================================================

def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="approval-scanner",
        description="Scan recent blocks for ERC-20 approvals granted to a spender",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment:
  BSC_RPC_URL               RPC endpoint URL
  TARGET_SPENDER_ADDRESS    Spender to look for
  SCAN_WINDOW_SIZE          Number of recent blocks to scan
  SCAN_BATCH_SIZE           Blocks fetched concurrently per batch
  SCAN_BATCH_DELAY_SECONDS  Pause between batches
  RPC_TIMEOUT_SECONDS       Per-request timeout
  RPC_MAX_RETRIES           Retries for transient RPC failures
  ENRICH_CONCURRENCY        Concurrent name() calls

Examples:
  %(prog)s --rpc-url https://bsc-dataseed.binance.org
  %(prog)s --window 500 --batch-size 25 --json
        """
    )

    # --------------------------------------------------------
    # Endpoint Options
    # --------------------------------------------------------
    endpoint_group = parser.add_argument_group("Endpoint Options")

    endpoint_group.add_argument(
        "--rpc-url",
        type=str,
        metavar="URL",
        help="JSON-RPC endpoint (default: $BSC_RPC_URL)",
    )

    endpoint_group.add_argument(
        "--timeout",
        type=float,
        metavar="SECONDS",
        help="Per-request timeout (default: 30)",
    )

    endpoint_group.add_argument(
        "--max-retries",
        type=int,
        metavar="N",
        help="Retries for transient RPC failures (default: 2)",
    )

    # --------------------------------------------------------
    # Scan Options
    # --------------------------------------------------------
    scan_group = parser.add_argument_group("Scan Options")

    scan_group.add_argument(
        "--spender",
        type=str,
        metavar="ADDRESS",
        help="Target spender address (default: $TARGET_SPENDER_ADDRESS)",
    )

    scan_group.add_argument(
        "--window",
        type=int,
        metavar="BLOCKS",
        help="Number of most recent blocks to scan (default: 100)",
    )

    scan_group.add_argument(
        "--batch-size",
        type=int,
        metavar="BLOCKS",
        help="Blocks fetched concurrently per batch (default: 10)",
    )

    scan_group.add_argument(
        "--batch-delay",
        type=float,
        metavar="SECONDS",
        help="Pause between batches (default: 0.05)",
    )

    scan_group.add_argument(
        "--enrich-concurrency",
        type=int,
        metavar="N",
        help="Concurrent name() calls (default: 5)",
    )

    # --------------------------------------------------------
    # Output Options
    # --------------------------------------------------------
    output_group = parser.add_argument_group("Output Options")

    output_group.add_argument(
        "--json",
        action="store_true",
        help="Print the result as JSON",
    )

    output_group.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="INFO",
        help="Logging level (default: INFO)",
    )

    output_group.add_argument(
        "--log-format",
        type=str,
        choices=["json", "text"],
        default="text",
        help="Logging format (default: text)",
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser


# ============================================================
# CLI CONFIGURATION BUILDER
# ============================================================

def build_config(args: argparse.Namespace) -> ScannerConfig:
    """
    Build scanner configuration from environment and CLI arguments.

    Raises:
        ConfigurationError: If an environment value is malformed
    """
    return ScannerConfig.from_env(
        rpc_url=args.rpc_url,
        target_spender=args.spender,
        window_size=args.window,
        batch_size=args.batch_size,
        batch_delay_seconds=args.batch_delay,
        request_timeout_seconds=args.timeout,
        max_retries=args.max_retries,
        enrich_concurrency=args.enrich_concurrency,
    )


# ============================================================
# MAIN ENTRY POINT
# ============================================================

async def async_main(args: argparse.Namespace, config: ScannerConfig) -> int:
    """
    Async main entry point.

    Returns:
        Exit code
    """
    async with JsonRpcChainClient(
        config.rpc_url,
        timeout=config.request_timeout_seconds,
        max_retries=config.max_retries,
    ) as client:
        try:
            result = await ApprovalScanPipeline(config, client).run()
        except ChainClientError as e:
            logger.error(f"Failed to connect to the node: {e}")
            return 1
        finally:
            stats = getattr(client, "stats", None)
            if stats is not None:
                logger.info(f"RPC stats: {stats.to_dict()}")

    if args.json:
        print(to_json(result))
    else:
        print(format_report(result))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Args:
        argv: Command line arguments (default: sys.argv[1:])

    Returns:
        Exit code
    """
    load_dotenv()

    parser = create_parser()
    args = parser.parse_args(argv)

    # JSON results own stdout
    setup_logging(
        args.log_level,
        args.log_format,
        stream=sys.stderr if args.json else sys.stdout,
    )

    try:
        config = build_config(args)
    except ConfigurationError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    errors = config.validate()
    if errors:
        for error in errors:
            print(f"Error: {error}", file=sys.stderr)
        return 1

    logger.debug(f"Configuration: {config.to_dict()}")

    try:
        return asyncio.run(async_main(args, config))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
