import os
import sys
import logging

# --------------------------------------------------------
# Unified logger for all Motionverse pipeline stages
# --------------------------------------------------------
LOGGER_NAME = "motionverse"
LOG_LEVEL = os.environ.get("MOTIONVERSE_LOG_LEVEL", "INFO").upper()

logger = logging.getLogger(LOGGER_NAME)
logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))

# Only attach a handler once (re-imports under uvicorn reload)
if not logger.handlers:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.DEBUG)

    formatter = logging.Formatter(
        '[%(asctime)s] [%(levelname)s] %(message)s',
        datefmt='%H:%M:%S'
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)

logger.propagate = False


# --------------------------------------------------------
# Plain helpers used by stages
# --------------------------------------------------------
def log(msg):
    logger.info(msg)


def debug(msg):
    logger.debug(msg)


def info(msg):
    logger.info(msg)


def warn(msg):
    logger.warning(msg)


def error(msg):
    logger.error(msg)


def stage(name: str, msg: str, level: int = logging.INFO):
    """Log a message tagged with the emitting stage, e.g. [EventsStage]."""
    logger.log(level, f"[{name}] {msg}")
