import logging

from gateway.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

def configure_logging(level: str = None) -> None:
    """Configure root logging once for the service process."""
    logging.basicConfig(level=level or settings.LOG_LEVEL, format=LOG_FORMAT)
    # httpx logs every outbound request at INFO; the gateway logs its own fetch lines
    logging.getLogger("httpx").setLevel(logging.WARNING)
