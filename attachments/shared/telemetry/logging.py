"""Process-wide logging for the service and the cleanup CLI."""

import json
import logging
import sys

from attachments.core.config import get_settings

TEXT_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"

# Loggers that are too chatty at DEBUG when S3 disks are in use.
_QUIET_LOGGERS = ("botocore", "boto3", "s3transfer", "urllib3", "aiosqlite")


class JsonLogFormatter(logging.Formatter):
    """One JSON object per line: time, level, logger, message (+ exc_info)."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_logging() -> None:
    """Configure the root logger from settings (log_level, log_json, debug).

    Safe to call more than once; the previous handler is replaced.
    """
    settings = get_settings()
    level = logging.DEBUG if settings.debug else settings.log_level.upper()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        JsonLogFormatter() if settings.log_json else logging.Formatter(TEXT_FORMAT)
    )
    logging.basicConfig(level=level, handlers=[handler], force=True)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
