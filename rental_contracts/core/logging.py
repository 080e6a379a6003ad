import logging
import sys

from pythonjsonlogger import jsonlogger

from rental_contracts.core.config import Settings

# loggers that would drown lifecycle events at DEBUG
_NOISY = ("sqlalchemy.engine", "sqlalchemy.pool")


def build_formatter(settings: Settings) -> jsonlogger.JsonFormatter:
    return jsonlogger.JsonFormatter(
        "%(asctime)s %(levelname)s %(name)s %(message)s",
        rename_fields={"levelname": "level", "name": "logger"},
        static_fields={"service": settings.app_name},
    )


def configure_logging(settings: Settings) -> None:
    """
    JSON logs on stdout. Lifecycle events (contract_activated,
    expiration_sweep_completed, ...) carry their ids as extra fields.
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)

    # clear handlers if reloaded
    root.handlers = []

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(build_formatter(settings))
    root.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(level)
    logging.getLogger("uvicorn.error").setLevel(level)
    for name in _NOISY:
        logging.getLogger(name).setLevel(logging.WARNING)
