"""
Logging setup shared by the API and the maintenance scripts.
"""
import logging
import sys
from typing import Optional

from .settings import get_settings


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(level: Optional[str] = None):
    """Configure root logging once; later calls only adjust the level."""
    level_name = (level or get_settings().log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    logging.getLogger().setLevel(getattr(logging, level_name, logging.INFO))
