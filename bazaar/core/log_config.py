import logging

from bazaar.core.config import settings

LOG_FORMAT = '%(asctime)s %(levelname)s %(name)s - %(message)s'


def configure_logging(level: str = None):
    level = level or settings.LOG_LEVEL
    # Keep whatever handlers the host (uvicorn, pytest) already installed
    if not logging.getLogger().handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("bazaar").setLevel(level)
