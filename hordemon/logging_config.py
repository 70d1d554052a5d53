import logging
import sys
import structlog


def setup_logging(level: str = "INFO", json: bool = True) -> None:
    """Route structlog through stdlib logging.

    The API process logs JSON to stdout. The CLI passes ``json=False`` so
    log lines go to stderr in console form and stdout stays machine-readable.
    """
    timestamper = structlog.processors.TimeStamper(fmt="iso")
    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout if json else sys.stderr,
        level=log_level,
    )

    renderer = structlog.processors.JSONRenderer() if json else structlog.dev.ConsoleRenderer(colors=False)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            timestamper,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
