"""Process-wide logging setup."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# discord.py and httpx are chatty at INFO
_NOISY_LOGGERS = ("discord.gateway", "discord.client", "httpx")


def configure_logging(level: str | int = "INFO") -> None:
    """Install a single stream handler on the root logger.

    Calling this more than once replaces the previous handler instead of
    stacking duplicates (uvicorn reloads import the app twice).
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_covenant_gate", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._covenant_gate = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(level.upper() if isinstance(level, str) else level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
