"""structlog setup for the API server and the CLI.

One processor chain feeds two renderers: a coloured console renderer for
development and a JSON renderer (with structured tracebacks) when
``APP_ENV=production`` or ``json_output=True``.  The root stdlib logger is
routed through the same chain, so uvicorn, chromadb and the SDK clients log
in the same format as docqa itself.

Request-scoped fields (``request_id``, ``path``) are bound with
:func:`bind_request_context` and merged into every event logged while the
request is handled.
"""

import logging
import os
import sys

import structlog

# Third-party loggers that are chatty at INFO (telemetry notices, one line
# per HTTP call).  Held at WARNING unless docqa itself runs at DEBUG.
_NOISY_LOGGERS = ("chromadb", "httpx", "httpcore", "openai", "anthropic", "multipart")


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]


def _renderers(use_json: bool) -> list[structlog.types.Processor]:
    if use_json:
        return [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]


def configure_logging(log_level: str = "INFO", json_output: bool = False) -> structlog.BoundLogger:
    """Configure structlog and the stdlib root logger.

    Args:
        log_level: DEBUG, INFO, WARNING or ERROR.
        json_output: Force JSON lines.  Otherwise JSON is used only when
            ``APP_ENV`` is ``"production"``.

    Returns:
        A logger bound to nothing, ready for use.
    """
    level_name = log_level.upper()
    use_json = json_output or os.environ.get("APP_ENV", "development") == "production"
    shared = _shared_processors()
    renderers = _renderers(use_json)

    structlog.configure(
        processors=[*shared, *renderers],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level_name)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *renderers],
        )
    )
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level_name)

    third_party_level = logging.DEBUG if level_name == "DEBUG" else logging.WARNING
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(third_party_level)

    return structlog.get_logger()


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a logger tagged with *name*, configuring defaults on first use."""
    if not structlog.is_configured():
        configure_logging()
    return structlog.get_logger(logger_name=name)


def bind_request_context(**values: object) -> None:
    """Attach *values* to every event logged in the current request."""
    structlog.contextvars.bind_contextvars(**values)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()
