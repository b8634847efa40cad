"""
Entrypoint: load config, init logging, build the fetcher and fetch the CIDs
given on the command line
"""

import argparse
import asyncio
import sys

import structlog
from dotenv import load_dotenv

from cidfetch.cache import ContentCache
from cidfetch.config import Config
from cidfetch.fetcher import ContentFetcher
from cidfetch.gateway import GatewayClient
from cidfetch.log import configure_logging
from cidfetch.retry import RetryingFetch


def _describe(payload) -> str:
    data = getattr(payload, 'data', payload)
    if isinstance(data, (bytes, str)):
        return f"{type(data).__name__}[{len(data)}]"
    return type(data).__name__


async def main(argv=None) -> int:
    """Initialize dependencies and fetch every CID requested"""
    parser = argparse.ArgumentParser(description="Fetch content-addressed data by CID")
    parser.add_argument("cids", nargs="+", help="content identifiers to fetch")
    parser.add_argument("--config", default=None, help="path to config.yaml")
    args = parser.parse_args(argv)

    # Load environment variables from .env file
    load_dotenv()
    config = Config(args.config)

    log_config = config.logging
    configure_logging(log_config.get('level', 'INFO'), log_config.get('format', '%(message)s'))
    logger = structlog.get_logger(__name__)

    cache = ContentCache(
        max_entries=config.get('cache', 'max_entries', default=1000),
        ttl_seconds=config.get('cache', 'ttl_seconds', default=1800),
    )

    async with GatewayClient.from_config(config.gateway) as gateway:
        retrying_fetch = RetryingFetch(
            gateway,
            max_retries=config.get('retry', 'max_retries', default=2),
            base_delay=config.get('retry', 'base_delay', default=1.0),
        )
        fetcher = ContentFetcher(
            cache,
            retrying_fetch,
            settle_on_cache_hit=config.get('fetcher', 'settle_on_cache_hit', default=False),
        )

        results = await fetcher.fetch_multiple_cids(args.cids)

    failures = 0
    for cid, payload in zip(args.cids, results):
        if payload is None:
            failures += 1
            logger.warning("cid_unavailable", cid=cid, error=fetcher.get_error(cid))
            print(f"{cid}\tunavailable")
        else:
            print(f"{cid}\t{_describe(payload)}")

    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
