#!/usr/bin/env python3
"""
Member Vector Sync Script
Embeds every active member and removes vectors of deleted members.

Usage:
    python scripts/sync_members_to_vector_index.py                 # Sync all members
    python scripts/sync_members_to_vector_index.py --dry-run       # List what would change
    python scripts/sync_members_to_vector_index.py --concurrency 4 --interval 0.25
    python scripts/sync_members_to_vector_index.py --limit 10
"""

import argparse
import asyncio
import logging
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from members_api.api.deps import get_embedding_sync_service, get_member_repository
from members_api.core.config import settings
from members_api.core.logging_config import setup_logging
from members_api.workers.member_sync import MemberSyncBatch

logger = logging.getLogger("members.sync")


def main():
    parser = argparse.ArgumentParser(description="Sync member embeddings to the vector index")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List the members that would be synced or removed, without calling any service"
    )
    parser.add_argument(
        "--concurrency", "-c",
        type=int,
        default=settings.SYNC_CONCURRENCY,
        help=f"Members in flight at once (default: {settings.SYNC_CONCURRENCY})"
    )
    parser.add_argument(
        "--interval", "-i",
        type=float,
        default=settings.SYNC_INTERVAL_SECONDS,
        help=f"Minimum seconds between members (default: {settings.SYNC_INTERVAL_SECONDS})"
    )
    parser.add_argument(
        "--limit", "-n",
        type=int,
        default=None,
        help="Only process the first N selected members"
    )

    args = parser.parse_args()
    setup_logging(settings.LOG_LEVEL)

    if args.concurrency < 1:
        parser.error("--concurrency must be at least 1")

    batch = MemberSyncBatch(
        get_member_repository(),
        get_embedding_sync_service(),
        concurrency=args.concurrency,
        interval=args.interval,
    )

    logger.info(f"Starting member sync (concurrency={args.concurrency}, interval={args.interval}s)")
    result = asyncio.run(batch.execute(dry_run=args.dry_run, limit=args.limit))

    logger.info(f"Sync finished: {result.summary()}")
    for failure in result.failures:
        logger.error(f"  {failure['id']}: {failure['error']}")

    sys.exit(1 if result.failed else 0)


if __name__ == "__main__":
    main()
