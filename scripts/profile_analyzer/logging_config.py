#------------------------------------------------------------
#                     logging_config.py
#      Root logger setup: readable lines by default, one
#            JSON object per line when requested.

import json
import logging
import os
import sys
from datetime import datetime, timezone
from .config import ENV_LOG_FORMAT, ENV_LOG_LEVEL

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FORMAT = "text"
JSON_LOG_FORMAT = "json"
TEXT_LOG_PATTERN = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
TEXT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
NOISY_LOGGERS = ("urllib3",)

class JSONFormatter(logging.Formatter):

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "severity": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry)

# This function does configure the root logger from the environment.
# Logs go to stderr so stdout stays free for the report.
def setup_logging(level: str = None, log_format: str = None) -> None:
    level_name = (level or os.environ.get(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL)).upper()
    format_name = (log_format or os.environ.get(ENV_LOG_FORMAT, DEFAULT_LOG_FORMAT)).lower()

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level_name, logging.INFO))
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    if format_name == JSON_LOG_FORMAT:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_LOG_PATTERN, datefmt=TEXT_DATE_FORMAT))
    root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
