#!/usr/bin/env python3
"""Sync whitelisted graphs from the upstream graph server into mindmap.

Designed to run from cron or manually.

Usage:
    python scripts/sync_graphs.py
    python scripts/sync_graphs.py --source http://127.0.0.1:8765 --target http://127.0.0.1:18804

Environment (or .env):
    SYNC_SOURCE_URL   upstream graph server (default: http://127.0.0.1:8765)
    API_BASE_URL      mindmap server (default: http://127.0.0.1:18804)
    SYNC_KEY          shared key for /api/sync
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv
from tqdm import tqdm

# Load .env file from project root
project_root = Path(__file__).parent.parent
load_dotenv(project_root / ".env")

from mindmap.config import settings
from mindmap.sync import GraphSyncer, GraphSyncError

logging.basicConfig(
    level=logging.WARNING,  # Reduce noise during progress bar
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def main(args: argparse.Namespace) -> int:
    syncer = GraphSyncer(
        source_url=args.source,
        target_url=args.target,
        sync_key=args.key,
    )
    print(f"Syncing {syncer.source_url} -> {syncer.target_url}")

    try:
        report = await syncer.run(progress=lambda ids: tqdm(list(ids), desc="Syncing", unit="graph"))
    except GraphSyncError as e:
        logger.error(str(e))
        return 1

    print(f"Found {report.total} graphs, {len(report.selected)} match whitelist")
    for graph_id, result in report.synced.items():
        print(f"  + {graph_id}: {result.get('nodes')} nodes, {result.get('relationships')} rels")
    for graph_id, error in report.failed.items():
        print(f"  x {graph_id}: {error}")
    print(f"Complete: {len(report.synced)} synced, {len(report.failed)} failed")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Sync graphs into the mindmap server")
    parser.add_argument("--source", default=settings.sync_source_url, help="Upstream graph server")
    parser.add_argument("--target", default=settings.api_base_url, help="Mindmap server")
    parser.add_argument("--key", default=settings.sync_key, help="X-Sync-Key value")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at INFO level")
    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.INFO)

    sys.exit(asyncio.run(main(args)))
