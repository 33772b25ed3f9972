"""
Seed Default Camps Script
Inserts the default shelter camps that are not present yet. Safe to run repeatedly.
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from app.core.errors import LedgerError
from app.database.store import DEFAULT_CAMPS, get_store, seed_default_camps
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def main():
    """Main function to seed default camps"""
    try:
        store = get_store()

        logger.info("Starting default camp seeding...")
        created = seed_default_camps(store)

        logger.info("Seeding completed successfully!")
        logger.info(f"Total: {created} created, {len(DEFAULT_CAMPS) - created} already present")

    except LedgerError as e:
        logger.error(f"Error during seeding: {e.message}")
        sys.exit(1)


if __name__ == "__main__":
    main()
