"""Process-wide logging for the guide bot.

Modules log through children of the ``guide_bot`` logger, so one stdout
handler here covers the workflow, the stores and the Discord layer.
"""

import logging
import sys

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"
# Libraries that are chatty at INFO: the gateway heartbeat and every HTTP call.
QUIET_LOGGERS = ("discord", "discord.client", "discord.gateway", "httpx")


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """Attach a stdout handler to ``guide_bot`` once and return the logger."""
    logger = logging.getLogger("guide_bot")
    if logger.handlers:
        return logger
    logger.setLevel(level)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return logger
