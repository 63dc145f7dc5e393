import logging
from .config import Config

logger = logging.getLogger('twist')
logger.setLevel(getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO))
logger.addHandler(logging.NullHandler())
