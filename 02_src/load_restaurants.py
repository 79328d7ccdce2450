"""Load an exported restaurant JSON file into the local SQLite record store.

Expects a list of objects with BusinessID, Name, Address, Cuisine, Rating,
NumberOfReviews and ZipCode keys.

Usage:
    python load_restaurants.py restaurants.json [--db PATH]
"""

import argparse
import asyncio
import json
import os
from pathlib import Path

from concierge.logging_config import get_logger, setup_logging
from concierge.models import RestaurantDetail
from concierge.storage import Storage

logger = get_logger(__name__)


async def load(source: Path, db_path: str | None) -> int:
    records = json.loads(source.read_text(encoding="utf-8") or "[]")

    storage = Storage(db_path)
    await storage.init()
    inserted = 0
    try:
        for row in records:
            business_id = row.get("BusinessID")
            cuisine = row.get("Cuisine")
            if not business_id or not cuisine:
                logger.warning("Skipping record without BusinessID/Cuisine: %s", row)
                continue
            detail = RestaurantDetail(
                business_id=business_id,
                name=row.get("Name") or "Unknown Restaurant",
                address=row.get("Address") or "Address not available",
                rating=str(row.get("Rating", "N/A")),
                review_count=str(row.get("NumberOfReviews", "N/A")),
                zip_code=row.get("ZipCode") or "",
            )
            await storage.save_restaurant(detail, cuisine)
            inserted += 1
    finally:
        await storage.close()
    return inserted


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("source", type=Path, help="JSON export to load")
    parser.add_argument(
        "--db", default=os.getenv("DATABASE_URL"), help="SQLite path (defaults to DATABASE_URL)"
    )
    args = parser.parse_args()

    setup_logging()
    inserted = asyncio.run(load(args.source, args.db))
    logger.info("Loaded %s restaurants from %s", inserted, args.source)


if __name__ == "__main__":
    main()
