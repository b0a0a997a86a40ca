#!/usr/bin/env python3
"""
Create the CouchDB databases used by the application.

Safe to run repeatedly: databases that already exist are reported and left
untouched.

Usage:
    python scripts/init_couchdb.py
    python scripts/init_couchdb.py --check
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.config import get_settings
from app.core.exceptions import UpstreamError
from app.db.couch import CouchClient, create_couch_client

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def create_databases(client: CouchClient, names: list[str]) -> dict[str, str]:
    """Create each database; returns name -> "created" | "exists"."""
    outcome = {}
    for name in names:
        created = await client.create_database(name)
        outcome[name] = "created" if created else "exists"
        logger.info(f"Database {name}: {outcome[name]}")
    return outcome


async def main(check_only: bool) -> int:
    settings = get_settings()
    client = create_couch_client(settings)
    names = [settings.users_db, settings.lists_db, settings.comments_db]
    try:
        if not await client.ping():
            logger.error(f"CouchDB is not reachable at {settings.couchdb_url}")
            return 1
        if check_only:
            logger.info(f"CouchDB is reachable at {settings.couchdb_url}")
            return 0
        await create_databases(client, names)
    except UpstreamError as e:
        logger.error(f"Initialization failed: {e}")
        return 1
    finally:
        await client.aclose()
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the application databases")
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only check that CouchDB answers",
    )
    args = parser.parse_args()
    sys.exit(asyncio.run(main(args.check)))
