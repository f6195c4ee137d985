# -*- coding: utf-8 -*-
from __future__ import annotations
import logging, logging.handlers, sys
from pathlib import Path

LOG_FILENAME = "inventory_search.log"

def setup_logging(settings, console: bool = False) -> Path:
    """Configure rotating file logging under LOG_DIR/inventory_search.log"""
    log_dir = Path(settings.LOG_DIR).expanduser()
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / LOG_FILENAME
    level = logging.getLevelName(str(settings.LOG_LEVEL).upper())
    if not isinstance(level, int):
        level = logging.INFO

    fmt = logging.Formatter("%(asctime)s %(levelname)s %(name)s - %(message)s")
    handler = logging.handlers.RotatingFileHandler(log_path, maxBytes=5_000_000, backupCount=3, encoding="utf-8")
    handler.setFormatter(fmt)
    handler.setLevel(level)

    logger = logging.getLogger()  # root
    logger.setLevel(level)
    # avoid duplicate handlers
    if not any(isinstance(h, logging.handlers.RotatingFileHandler) and getattr(h, 'baseFilename', '').endswith(LOG_FILENAME) for h in logger.handlers):
        logger.addHandler(handler)

    # operator-facing scripts also want stderr
    if console and not any(type(h) is logging.StreamHandler for h in logger.handlers):
        stream = logging.StreamHandler(sys.stderr)
        stream.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
        logger.addHandler(stream)

    # also wire uvicorn loggers (if present)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi"):
        lg = logging.getLogger(name)
        lg.setLevel(level)
        if not any(getattr(h, 'baseFilename', '').endswith(LOG_FILENAME) for h in lg.handlers if hasattr(h, 'baseFilename')):
            lg.addHandler(handler)

    # the transport logs every request at INFO
    logging.getLogger("elastic_transport.transport").setLevel(logging.WARNING)

    return log_path
