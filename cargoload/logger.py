import logging
import os
from logging.handlers import TimedRotatingFileHandler

logger = logging.getLogger("cargoload")
logger.setLevel(os.getenv("CARGOLOAD_LOG_LEVEL", "INFO").upper())

LOG_FILE = os.getenv("CARGOLOAD_LOG_FILE")

if LOG_FILE:
    handler = TimedRotatingFileHandler(
        filename=LOG_FILE,
        when='midnight',
        interval=1,
        backupCount=7,
        encoding='utf-8'
    )
else:
    handler = logging.StreamHandler()

formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
handler.setFormatter(formatter)

if not logger.handlers:
    logger.addHandler(handler)
