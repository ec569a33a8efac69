"""``python -m covenant_gate``: start the service or exit on missing configuration."""

from __future__ import annotations

import logging
import sys

from pydantic import ValidationError

from covenant_gate.core.logging import configure_logging

logger = logging.getLogger("covenant_gate")


def main() -> None:
    configure_logging("INFO")
    try:
        from covenant_gate.main import run
    except ValidationError as exc:
        missing = sorted({str(error["loc"][0]) for error in exc.errors() if error.get("loc")})
        logger.critical("Missing or invalid environment variables: %s", ", ".join(missing))
        sys.exit(1)
    run()


if __name__ == "__main__":
    main()
