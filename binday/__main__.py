"""Look up the next bin collection from the command line.

Usage:
    python -m binday "1 Test Road" "SK11 3AB"
    python -m binday "1 Test Road" "SK11 3AB" --date 2026-03-02 --json
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import date

from binday.config import settings
from binday.database import async_session, init_db
from binday.errors import BinDayError
from binday.logging_setup import configure_logging
from binday.schemas import Address
from binday.services.cache import PropertyCache
from binday.services.fetcher import CheshireEastSource
from binday.services.lookup import CollectionService
from binday.services.scheduler import local_today

logger = logging.getLogger(__name__)


async def _lookup(address: Address, today: date, as_json: bool) -> int:
    await init_db()
    async with CheshireEastSource(
        base_url=settings.upstream_base_url,
        timeout=settings.upstream_timeout,
        user_agent=settings.user_agent,
    ) as source:
        service = CollectionService(PropertyCache(async_session), source)
        try:
            result = await service.next_collection(address, today)
        except BinDayError as e:
            logger.debug("Lookup failed: %r", e)
            print(e.user_message, file=sys.stderr)
            return 1
        finally:
            await service.aclose()

    print(result.model_dump_json(indent=2) if as_json else result.message)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Find out which bins are collected next")
    parser.add_argument("address_line", help="First line of the address, e.g. '1 Test Road'")
    parser.add_argument("postcode", help="Postcode, e.g. 'SK11 3AB'")
    parser.add_argument("--date", type=date.fromisoformat, default=None,
                        help="Answer as if today were this date (YYYY-MM-DD)")
    parser.add_argument("--json", action="store_true", help="Print the full result as JSON")
    parser.add_argument("--log-level", default="WARNING")
    args = parser.parse_args(argv)

    configure_logging(args.log_level)
    address = Address(address_line=args.address_line, postal_code=args.postcode)
    return asyncio.run(_lookup(address, args.date or local_today(), args.json))


if __name__ == "__main__":
    sys.exit(main())
