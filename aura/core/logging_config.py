"""
Logging setup - one place to configure the "aura" logger tree.

Every module logs through ``logging.getLogger("aura.<area>")`` so the
whole application can be tuned with a single LOG_LEVEL setting.
"""

import logging
import sys

from aura.core.config import settings

LOG_FORMAT = "[%(asctime)s] %(levelname)s [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str = None) -> logging.Logger:
    """
    Attach a stdout handler to the root "aura" logger.

    Safe to call more than once: the handler is only added the first time.
    """
    root = logging.getLogger("aura")
    root.setLevel((level or settings.LOG_LEVEL).upper())

    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        root.addHandler(handler)

    return root
