"""
Logging for the coupon service.

Everything logs under the "coupons" logger: coupon creation and applies at
INFO, per-rule rejections during evaluation at DEBUG. LOG_LEVEL sets the
level; output goes to stdout.
"""
import logging
import os
import sys

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger("coupons")
logger.setLevel(LOG_LEVEL)

if not logger.handlers:
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(LOG_LEVEL)
    console_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(console_handler)

# uvicorn configures the root logger; keep service lines from printing twice
logger.propagate = False


def get_logger(name: str = None) -> logging.Logger:
    """
    Child logger for one part of the service, e.g. get_logger("service")
    -> "coupons.service". No name returns the service root logger.
    """
    if name:
        return logging.getLogger(f"coupons.{name}")
    return logger
