from loguru import logger
import sys
from protein_dashboard.core.config import settings

def setup_logging():
    logger.remove()
    logger.add(
        sys.stdout,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{function}:{line} | {message}",
        level=settings.LOG_LEVEL,
        serialize=True
    )
    if settings.LOG_FILE:
        logger.add(
            settings.LOG_FILE,
            rotation="1 day",
            retention="30 days",
            level=settings.LOG_LEVEL,
            serialize=True
        )
