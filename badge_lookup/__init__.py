"""Digital badge lookup over an Airtable base."""

import logging
import os


def configure_logging(level=None):
    """Configure root logging once from LOG_LEVEL (default INFO)"""
    logging.basicConfig(
        level=(level or os.getenv("LOG_LEVEL", "INFO")).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
