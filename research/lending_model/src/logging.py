"""Logger setup for the lending model and the liquidation simulation.

The oracle gateway logs which source it read a price from and any pull feed
it rejected before falling back to the static layout. Liquidation logs each
eligibility decision, the LIF it priced with, every settlement and any bad
debt socialized to suppliers. LOG_LEVEL (from the environment or .env)
picks the level; DEBUG shows the per-position decisions.
"""

import logging
import os
import sys

from dotenv import load_dotenv

load_dotenv()


def get_logger(name: str) -> logging.Logger:
    """Return a stdout logger for a lending_model.* component, configured once."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter("[%(asctime)s] %(levelname)s %(name)s: %(message)s"))
        logger.addHandler(handler)
        level = os.getenv("LOG_LEVEL", "INFO").upper()
        logger.setLevel(getattr(logging, level, logging.INFO))
    return logger
