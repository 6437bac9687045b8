"""
CLI helper to copy projects from the local JSON file into MongoDB.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from clubsite.config import get_settings
from clubsite.errors import ContentError
from clubsite.repository import build_repository

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Import local projects into MongoDB")
    parser.add_argument(
        "-d",
        "--data-dir",
        type=str,
        default=None,
        help="Directory holding projects.json (defaults to DATA_DIR)",
    )
    parser.add_argument(
        "--uri",
        type=str,
        default=None,
        help="MongoDB connection string (defaults to MONGODB_URI)",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(message)s")
    settings = get_settings()
    uri = args.uri or settings.mongo_connection_string
    if not uri:
        logger.error("No MongoDB connection string configured")
        return 1

    repository = build_repository(
        mongo_uri=uri,
        mongo_db=settings.mongodb_db,
        data_dir=args.data_dir or settings.data_dir,
        local_entities=settings.local_entities,
        project_file_fallback=False,
        gallery_dir=None,
    )
    try:
        result = repository.import_local_projects()
    except ContentError as exc:
        logger.error("Import failed: %s", exc.message)
        return 1
    logger.info(
        "Imported %d projects; %s now holds %d",
        result["imported"],
        result["provider"],
        result["total"],
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
