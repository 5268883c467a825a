import logging
import sys

import structlog

SERVICE_NAME = "merchant-games-core"
# Chatty third-party loggers that only matter when debugging the driver itself.
_QUIET_LOGGERS = ("asyncio", "sqlalchemy.engine", "celery.redirected", "uvicorn.access")


def _resolve_level(log_level: str) -> int:
    level = logging.getLevelName(str(log_level).strip().upper())
    return level if isinstance(level, int) else logging.INFO


def _add_service_name(_logger: object, _method_name: str, event_dict: dict) -> dict:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def configure_logging(log_level: str = "INFO") -> None:
    level = _resolve_level(log_level)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
        force=True,
    )
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            _add_service_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
