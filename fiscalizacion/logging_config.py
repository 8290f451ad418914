"""
Logging setup for the API process.

Modules log through ``logging.getLogger(__name__)``; this only wires the
root handler and level once at startup.
"""
import logging
import sys
from typing import Optional

from fiscalizacion.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """Install a single stdout handler on the root logger."""
    root = logging.getLogger()
    root.setLevel((level or settings.LOG_LEVEL).upper())

    # Avoid duplicate handlers when the app factory runs more than once
    if any(getattr(h, "_fiscalizacion", False) for h in root.handlers):
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._fiscalizacion = True
    root.addHandler(handler)

    # SQL echo is driven by DEBUG through the engine, keep the logger quiet otherwise
    if not settings.DEBUG:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
