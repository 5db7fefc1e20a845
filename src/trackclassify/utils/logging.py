from __future__ import annotations

import logging
from typing import Optional, Sequence

_NOISY_LOGGERS: Sequence[str] = ("ultralytics", "urllib3", "PIL")


def setup_logging(level: str = "INFO", log_file: Optional[str] = None, quiet: Sequence[str] = _NOISY_LOGGERS) -> None:
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file is not None:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    lvl = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=lvl,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        handlers=handlers,
    )
    # third-party model libraries are chatty at INFO
    for name in quiet:
        logging.getLogger(name).setLevel(max(lvl, logging.WARNING))
