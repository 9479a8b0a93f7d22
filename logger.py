# logger.py

import json
import logging
import os


class RequestIdFilter(logging.Filter):
    """Give records logged outside a request a placeholder request_id."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = "N/A"
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line; message text is escaped by json.dumps."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", "N/A"),
        }
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry)


# Configure logging into structured JSON format
_handler = logging.StreamHandler()
_handler.addFilter(RequestIdFilter())
_handler.setFormatter(JsonFormatter(datefmt="%Y-%m-%dT%H:%M:%S"))
logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper(), handlers=[_handler])

# Named logger instance
logger = logging.getLogger("storefront_services")


def set_level(level: str):
    logger.setLevel(level)

def log_info(message: str, request_id: str = "N/A"):
    logger.info(message, extra={"request_id": request_id})

def log_error(message: str, request_id: str = "N/A"):
    logger.error(message, extra={"request_id": request_id})

def log_warning(message: str, request_id: str = "N/A"):
    logger.warning(message, extra={"request_id": request_id})
