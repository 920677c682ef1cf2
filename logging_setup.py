import logging
import json
from logging.handlers import TimedRotatingFileHandler
import os
from datetime import datetime, timezone


class JsonFormatter(logging.Formatter):
    def format(self, record):
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry)


def setup_logger(log_dir: str = "logs", level: str = "INFO", filename: str = "clinic_store.log"):
    logger = logging.getLogger()
    logger.setLevel(level)

    # Calling twice must not duplicate every line
    if any(getattr(h, "_clinic_store", False) for h in logger.handlers):
        return logger

    os.makedirs(log_dir, exist_ok=True)

    # — Log file rotates daily, keeps 14 days —
    handler = TimedRotatingFileHandler(
        filename=os.path.join(log_dir, filename),
        when="midnight",
        backupCount=14,
        encoding="utf-8"
    )

    # Also log to console for debugging
    console = logging.StreamHandler()

    for h in (handler, console):
        h.setFormatter(JsonFormatter())
        h._clinic_store = True
        logger.addHandler(h)

    return logger
