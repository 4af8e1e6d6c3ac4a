"""Diagnostic logging for notectl runs.

Progress meant for people goes through the Rich status stream
(:mod:`notectl.output.reporter`). Logging carries the diagnostic side:
``autofix.*`` and ``interactive_fix.*`` events from structlog plus plain
stdlib records from the lower layers, both rendered on stderr by a single
``ProcessorFormatter``.

``--verbose`` lowers the ``notectl`` logger to DEBUG; ``--log-json``
switches to one JSON object per line. Values bound with
``structlog.contextvars.bound_contextvars`` (the remediation service binds
the findings file, mode and dry-run flag) are merged into every event.
"""

from __future__ import annotations

import logging
import sys

import structlog

_SHARED_PROCESSORS: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
]


def _renderer(log_json: bool) -> structlog.types.Processor:
    if log_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(*, verbose: bool = False, log_json: bool = False) -> None:
    """Route structlog and stdlib logging to one stderr handler.

    Safe to call repeatedly: the root handler list is replaced, not
    appended to. Third-party loggers stay at WARNING either way.
    """
    structlog.configure(
        processors=[
            *_SHARED_PROCESSORS,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_SHARED_PROCESSORS,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_json),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.WARNING)
    logging.getLogger("notectl").setLevel(logging.DEBUG if verbose else logging.WARNING)
