# app/core/logging_config.py
import logging
import sys
import structlog

# boto3 transfer threads are chatty at INFO/DEBUG
_QUIET_LOGGERS = ("botocore", "boto3", "s3transfer", "urllib3")

_SHARED_PROCESSORS = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
]


def setup_logging(level: str = "INFO") -> None:
    """
    Configure structlog + standard logging.

    structlog events and plain `logging` records (ObjectStore, botocore) both
    go to stdout as one JSON object per line, with the request id bound by the
    HTTP middleware. Safe to call more than once.
    """
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_SHARED_PROCESSORS,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.set_name("listing-media")

    root = logging.getLogger()
    for existing in list(root.handlers):
        if existing.get_name() == "listing-media":
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=_SHARED_PROCESSORS + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


# Shared logger, import it anywhere
logger = structlog.get_logger("listing-media")
