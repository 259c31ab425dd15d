import logging
import sys

from sales_service.config import settings

_FORMAT = "[%(name)s] %(levelname)s %(message)s"


def configure_logging(level=None):
    """Attach one stdout handler to the ``sales_service`` logger tree (idempotent)."""
    root = logging.getLogger("sales_service")
    root.setLevel(level or settings.LOG_LEVEL)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)
    return root
