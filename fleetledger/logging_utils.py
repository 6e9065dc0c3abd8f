"""Mini README: Logging for the Fleet Ledger service and its CLI.

Structure:
    * LOG_FORMAT / DATE_FORMAT - the line layout every Fleet Ledger process uses.
    * level_for_environment - ``development`` logs DEBUG (session timers,
      store writes), ``production`` logs INFO (sign-ins, issued invoices,
      refused work IDs) and ``test`` keeps to WARNING so pytest output stays
      readable. Unknown labels fall back to INFO.
    * configure_root_logger - install the stream handler once, or just move the
      level when the CLI reconfigures after import.
    * configure_for_environment - what ``main_ledger_centre.py run`` calls with
      ``FleetLedgerSettings.environment``.
    * get_logger - module logger factory called at import time everywhere.
"""

from __future__ import annotations

import logging
from typing import Optional

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_ENVIRONMENT_LEVELS = {
    "development": logging.DEBUG,
    "test": logging.WARNING,
    "production": logging.INFO,
}

_handler: Optional[logging.Handler] = None


def level_for_environment(environment: str) -> int:
    return _ENVIRONMENT_LEVELS.get(environment.strip().lower(), logging.INFO)


def configure_root_logger(level: int = logging.INFO) -> None:
    """Attach the Fleet Ledger handler to the root logger and set its level.

    Repeated calls only change the level, so uvicorn reloads never stack
    handlers.
    """

    global _handler
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    if _handler is not None:
        return
    _handler = logging.StreamHandler()
    _handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(_handler)


def configure_for_environment(environment: str) -> int:
    """Configure logging for an environment label and return the chosen level."""

    level = level_for_environment(environment)
    configure_root_logger(level)
    return level


def get_logger(name: Optional[str] = None) -> logging.Logger:
    if _handler is None:
        configure_root_logger()
    return logging.getLogger(name)
