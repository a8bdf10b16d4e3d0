"""Structured logging via structlog.

Configures structlog once at process startup. Library modules keep using
`logging.getLogger(__name__)`; the stdlib records are routed through a
structlog `ProcessorFormatter`, so both structlog and stdlib loggers
share one renderer.

Renderer selection:
  debug=True  - `ConsoleRenderer` with colours for local runs.
  debug=False - `JSONRenderer` for CI logs.

Fields passed through ``extra={...}`` on stdlib calls (for example the
``uri`` and ``target`` of a successful upload) end up as top-level keys
of the rendered event.
"""

from __future__ import annotations

import logging
import sys

import structlog

_HANDLER_NAME = "publisher"


def configure_structlog(debug: bool = False) -> None:
    """Configure structlog and the stdlib root logger.

    Calling multiple times is safe; the handler installed by a previous
    call is replaced rather than stacked, and other root handlers stay.
    """
    shared_processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.ExtraAdder(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    # ConsoleRenderer formats exceptions itself.
    if debug:
        render_chain: list = [structlog.dev.ConsoleRenderer()]
    else:
        render_chain = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *render_chain,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    for existing in list(root.handlers):
        if existing.get_name() == _HANDLER_NAME:
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if debug else logging.INFO)

    # httpx logs every request at INFO; keep that noise out of release logs.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
