import sys

from loguru import logger

_configured = False


def configure_logging(level: str = "INFO") -> None:
    """Swap loguru's default sink for one at the configured level. Safe to call twice."""
    global _configured
    if _configured:
        return
    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | {name}:{line} - {message}",
    )
    _configured = True
