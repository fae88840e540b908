from __future__ import annotations

import logging

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(level: str = "INFO") -> None:
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    logging.basicConfig(format=_LOG_FORMAT)
    logging.getLogger().setLevel(numeric_level)
    # urllib3 logs every connection at DEBUG; keep it to warnings.
    logging.getLogger("urllib3").setLevel(max(numeric_level, logging.WARNING))
