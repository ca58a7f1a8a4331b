"""Root logger setup shared by the container and maintenance scripts."""

from __future__ import annotations

import logging

from assetvault.core.config import Settings

_configured = False


def configure_logging(settings: Settings) -> None:
    global _configured
    if _configured:
        return
    logging.basicConfig(
        level=settings.logging.level.upper(),
        format=settings.logging.format,
    )
    if settings.database.echo or settings.debug:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)
    _configured = True
