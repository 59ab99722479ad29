import logging
import logging.handlers
import sys
from pathlib import Path
from pythonjsonlogger import jsonlogger


# Context keys that services attach through ``extra=`` and that should always
# be present (possibly null) in the JSON output so log queries can rely on them.
ORDER_CONTEXT_FIELDS = ("request_id", "order_id", "order_number", "actor_role", "partner_id")

CONSOLE_FORMAT = "%(asctime)s %(levelname)-7s [%(request_id)s] %(name)s: %(message)s"
JSON_FORMAT = "%(timestamp)s %(level)s %(logger)s %(message)s"
NOISY_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error", "sqlalchemy.engine")


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter that adds standard fields plus order context to every entry.
    """
    def add_fields(self, log_record, record, message_dict):
        super(CustomJsonFormatter, self).add_fields(log_record, record, message_dict)

        log_record['timestamp'] = record.created
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['module'] = record.module
        log_record['function'] = record.funcName
        log_record['line'] = record.lineno

        for field in ORDER_CONTEXT_FIELDS:
            log_record.setdefault(field, getattr(record, field, None))


class RequestIdDefault(logging.Filter):
    """Records logged outside a request (startup, scripts) get "-" as their id."""

    def filter(self, record):
        if getattr(record, "request_id", None) is None:
            record.request_id = "-"
        return True


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.addFilter(RequestIdDefault())
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt="%H:%M:%S"))
    return handler


def _rotating_handler(path: Path, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path,
        maxBytes=10 * 1024 * 1024,  # 10 MB
        backupCount=5,
        encoding='utf-8'
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(log_level: str = "INFO", log_dir: str = "logs"):
    """
    Configure the root logger once at startup.

    Console output is human-readable, tagged with the request id and filtered
    at ``log_level``. Under ``log_dir`` two rotating JSON files are kept:
    ``app.log`` with everything and ``error.log`` with ERROR and above.
    Calling it again replaces the handlers instead of stacking them.
    """
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    json_formatter = CustomJsonFormatter(JSON_FORMAT)
    handlers = [
        _console_handler(getattr(logging, log_level.upper(), logging.INFO)),
        _rotating_handler(log_path / "app.log", logging.DEBUG, json_formatter),
        _rotating_handler(log_path / "error.log", logging.ERROR, json_formatter),
    ]

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for existing in list(root.handlers):
        root.removeHandler(existing)
        existing.close()
    for handler in handlers:
        root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root.debug("Logging configured", extra={"log_level": log_level, "log_dir": str(log_path.resolve())})


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
