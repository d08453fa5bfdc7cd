"""Logging setup for aks-deployer.

Deploy events go through structlog. Interactive runs render them on stderr
so they never mix with command output on stdout; ``--log-file`` runs write
one JSON document per event to the deployer log instead.
"""

import logging
import sys
from pathlib import Path

import structlog

_LEVELS = (logging.WARNING, logging.INFO, logging.DEBUG)

# Keys whose values never reach a log sink
_SECRET_KEYS = frozenset({"token", "password", "client-key-data", "kubeconfig"})


def verbosity_to_level(verbose: int) -> int:
    """Map a ``-v`` count to a stdlib log level."""
    return _LEVELS[min(max(verbose, 0), len(_LEVELS) - 1)]


def _mask_secrets(
    logger: logging.Logger, method_name: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    for key in _SECRET_KEYS.intersection(event_dict):
        event_dict[key] = "***"
    return event_dict


def configure_logging(verbose: int = 0, log_file: str | Path | None = None) -> None:
    """Route deployer logs to stderr, or as JSON to ``log_file``.

    Args:
        verbose: Number of ``-v`` flags given on the command line
        log_file: Append JSON events to this file instead of stderr
    """
    log_level = verbosity_to_level(verbose)

    handler: logging.Handler
    if log_file:
        handler = logging.FileHandler(str(log_file))
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)

    logging.basicConfig(level=log_level, handlers=[handler], format="%(message)s", force=True)

    processors: list[structlog.types.Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        _mask_secrets,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if log_file:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
