"""
Main entrypoint: run one program audit and print the JSON report.

Env: SOLANA_RPC_URL or HELIUS_API_KEY (required), SOLANA_NETWORK, SOLPROOF_TX_LIMIT,
SOLPROOF_TIMEFRAME, SOLPROOF_STAGE_TIMEOUT_SEC, SOLPROOF_CACHE_TTL_SEC,
SOLPROOF_SOL_PRICE_USD, COINGECKO_API_KEY (optional), SOLPROOF_LOG_LEVEL, LOG_FORMAT.

Usage:
    python main.py <program_address> [--limit 25] [--timeframe 7d] [--quick] [--dot graph.dot] [-v]
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path

from solproof.solproof_logging import configure_logging, get_logger

logger = get_logger("main")


async def run(args: argparse.Namespace) -> dict:
    from solproof.analysis import quick_check, run_audit, to_dot
    from solproof.chain import CoinGeckoPriceOracle, RpcChainDataSource
    from solproof.config import get_settings

    settings = get_settings()
    fetch = settings.pipeline.fetch
    if args.limit is not None:
        fetch = replace(fetch, limit=args.limit)
    if args.timeframe is not None:
        fetch = replace(fetch, timeframe=args.timeframe)
    pipeline = replace(settings.pipeline, fetch=fetch)
    logger.info("main_settings_loaded", rpc_url=settings.masked_rpc_url(), network=settings.network)

    async with RpcChainDataSource(settings.rpc_url, cache_ttl_sec=settings.cache_ttl_sec) as source:
        if args.quick:
            result = await quick_check(source, args.address)
            return result.to_dict()
        oracle = CoinGeckoPriceOracle(
            default_usd=settings.default_sol_price_usd,
            ttl_sec=settings.cache_ttl_sec,
            api_key=(os.getenv("COINGECKO_API_KEY") or "").strip() or None,
        )
        audit = await run_audit(args.address, source, config=pipeline, price_oracle=oracle)
        if args.dot:
            Path(args.dot).write_text(to_dot(audit.value("call_graph")), encoding="utf-8")
            logger.info("main_dot_written", path=args.dot)
        return audit.report.to_dict()


def main() -> int:
    parser = argparse.ArgumentParser(description="Automated first-pass audit of a Solana program.")
    parser.add_argument("address", help="Program address (base58)")
    parser.add_argument("--limit", type=int, default=None, help="Transactions to fetch (default: SOLPROOF_TX_LIMIT or 25)")
    parser.add_argument("--timeframe", default=None, help="Window such as 7d, 24h, 30m or all (default: 7d)")
    parser.add_argument("--quick", action="store_true", help="Only run the quick status check")
    parser.add_argument("--dot", default=None, help="Write the call graph in DOT format to this path")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging to stderr")
    args = parser.parse_args()
    if args.verbose:
        configure_logging(logging.DEBUG)

    from solproof.core.exceptions import ConfigurationError, InputValidationError

    try:
        output = asyncio.run(run(args))
    except ConfigurationError as e:
        logger.error("main_config_error", error=str(e))
        print("ERROR:", e, file=sys.stderr)
        return 1
    except InputValidationError as e:
        logger.error("main_invalid_input", error=str(e))
        print("ERROR:", e, file=sys.stderr)
        return 2
    print(json.dumps(output, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
