"""Logging setup for the CLI and the HTTP server."""

import logging

from config.defaults import DEFAULTS

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def configure_logging(level=None, verbose=False):
    """Configure root logging once. verbose forces DEBUG."""
    if verbose:
        level = "DEBUG"
    level = (level or DEFAULTS["log_level"]).upper()
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)
    # the SDK's HTTP client is chatty at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
