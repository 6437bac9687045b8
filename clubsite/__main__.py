"""Run the API with uvicorn: ``python -m clubsite``."""

from __future__ import annotations

import logging

import uvicorn

from clubsite.app import create_app
from clubsite.config import get_settings


def main() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(create_app(), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
