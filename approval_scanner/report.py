"""
Approval Scanner - Report formatting.

Human-readable and JSON renderings of a ScanResult.
"""

import json

from approval_scanner.models import ScanResult


NO_APPROVALS_MESSAGE = "No approval transactions found for the target spender in the scanned blocks."
SCAN_COMPLETE_MESSAGE = "Scan complete."


def format_report(result: ScanResult) -> str:
    """
    Render the scan result as plain text.

    One entry per token in discovery order, with its name (or the error
    sentinel) and where it was first seen.
    """
    lines = [
        "",
        f"Approval scan on {result.network.name} (Chain ID: {result.network.chain_id})",
        "=" * 60,
        f"  Target spender: {result.target_spender}",
        f"  Blocks:         {result.block_range.start} to {result.block_range.end}",
        f"  Transactions:   {result.stats.transactions_seen}",
    ]
    if result.stats.blocks_failed:
        lines.append(f"  Blocks skipped: {result.stats.blocks_failed} (fetch failed)")
    lines.append("")

    if not result.found_any:
        lines.append(NO_APPROVALS_MESSAGE)
    else:
        lines.append(f"Found {len(result.tokens)} unique token contract(s):")
        lines.append("-" * 60)
        for i, record in enumerate(result.tokens, 1):
            lines.append(f"  {i:2d}. Token Address: {record.address}, Name: {record.name}")
            discovery = result.discoveries.get(record.address)
            if discovery is not None:
                lines.append(
                    f"      first seen in block {discovery.block_number} "
                    f"(tx {discovery.tx_hash})"
                )
            if record.error:
                lines.append(f"      error: {record.error}")
        lines.append("")
        lines.append(SCAN_COMPLETE_MESSAGE)

    return "\n".join(lines)


def to_json(result: ScanResult) -> str:
    return json.dumps(result.to_dict(), indent=2, default=str)
