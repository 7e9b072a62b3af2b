"""Logging for squeezebot runs.

Records emitted while a run is in progress carry the ``owner/name`` of the
repository being processed in a ``repository`` attribute, so concurrent runs
in the service can be told apart.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, MutableMapping, Tuple

_ROOT = "squeezebot"
_NO_REPOSITORY = "-"

# Libraries that log per image or per broker heartbeat.
_CHATTY_LOGGERS = ("PIL", "dramatiq", "pika", "uvicorn.access")


def get_logger(name: str | None = None) -> logging.Logger:
    return logging.getLogger(f"{_ROOT}.{name}" if name else _ROOT)


class RunLogger(logging.LoggerAdapter):
    """Adapter that tags every record with the repository a run works on."""

    def __init__(self, logger: logging.Logger, repository: str) -> None:
        super().__init__(logger, {"repository": repository})

    @property
    def repository(self) -> str:
        return self.extra["repository"]  # type: ignore[index]

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}  # type: ignore[arg-type]
        return msg, kwargs


def run_logger(name: str, repository: str) -> RunLogger:
    """Return a logger for ``name`` bound to one repository run."""
    return RunLogger(get_logger(name), repository)


class _RepositoryFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "repository"):
            record.repository = _NO_REPOSITORY
        return True


def configure_logging(*, verbose: bool = False, log_file: Path | None = None) -> logging.Logger:
    """Install console (and optionally file) handlers on the squeezebot logger.

    Calling this again replaces the handlers installed by the previous call.
    Third-party loggers are held at WARNING unless ``verbose`` is set.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_ROOT)
    logger.setLevel(level)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    sinks: list[tuple[logging.Handler, str]] = [
        (logging.StreamHandler(), "[squeezebot] %(levelname)s %(repository)s %(message)s"),
    ]
    if log_file is not None:
        sinks.append(
            (
                logging.FileHandler(log_file, encoding="utf-8"),
                "%(asctime)s %(levelname)s %(name)s [%(repository)s] %(message)s",
            )
        )
    for handler, fmt in sinks:
        handler.setLevel(level)
        handler.addFilter(_RepositoryFilter())
        handler.setFormatter(logging.Formatter(fmt))
        logger.addHandler(handler)

    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if verbose else logging.WARNING)

    return logger


__all__ = ["RunLogger", "configure_logging", "get_logger", "run_logger"]
