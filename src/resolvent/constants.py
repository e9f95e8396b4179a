"""Constants shared across resolvent."""

import logging

LOGGER_NAME: str = "resolvent"
"""Name of the logger resolvent writes its diagnostics to."""

LOGGER: logging.Logger = logging.getLogger(LOGGER_NAME)
"""Library logger; resolvent installs no handlers on it."""

MAKE_PREFIX: str = "make_"
"""Prefix stripped from function names when inferring a factory name."""
