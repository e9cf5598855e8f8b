# backend/wims/core/logging.py

import logging
import sys
from typing import Optional

from wims.core.config import settings

LOG_FORMAT = "ts=%(asctime)s level=%(levelname)s logger=%(name)s msg=%(message)s"

_configured = False


def configure_logging(level: Optional[str] = None) -> None:
    """Install a single stdout handler on the root logger (idempotent)."""
    global _configured

    root = logging.getLogger()
    root.setLevel((level or settings.log_level).upper())

    if _configured:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)

    # engine echo stays off unless asked for explicitly
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    _configured = True
