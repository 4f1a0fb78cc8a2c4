"""Log setup for the flowlint CLI.

Modules emit snake_case events through stdlib loggers: ``config_loaded`` and
``config_not_found`` while reading ``.flowlint.yml``, ``workflow_parsed``,
``rule_evaluated`` per rule, then ``workflow_linted`` or ``workflow_invalid``
per document. structlog renders them on stderr with the document path bound
by :func:`bind_lint_context`.
"""

import logging
import sys

import structlog


def configure_logging(log_level: str = "warning", json_output: bool = False) -> None:
    """Route lint events to stderr; stdout carries only the report.

    Args:
        log_level: ``--log-level`` / ``FLOWLINT_LOG_LEVEL`` value; unknown names fall back to warning.
        json_output: Emit one JSON object per event (``--log-json``) instead of console lines.
    """
    level = getattr(logging, log_level.upper(), logging.WARNING)

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.ExtraAdder(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

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
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)


def bind_lint_context(path: str, **extra: str) -> None:
    """Bind the document being analyzed to the current context."""
    structlog.contextvars.bind_contextvars(path=path, **extra)


def clear_lint_context() -> None:
    """Clear bound context variables after a document is done."""
    structlog.contextvars.clear_contextvars()
