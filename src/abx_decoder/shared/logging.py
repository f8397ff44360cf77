"""Component-aware logging for ABX decoding.

Loggers returned by :func:`get_logger` stamp every record with the component
name and the correlation ID of the decode call that produced it, so records
from one call can be grouped when several decodes share a log destination.
"""

import logging
from typing import Any, Dict, MutableMapping, Optional, Tuple

DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(component)s] %(message)s"


class ComponentLogger(logging.LoggerAdapter):
    """Logger adapter that merges component and correlation info into ``extra``."""

    def __init__(
        self,
        name: str,
        correlation_id: Optional[str] = None,
        component: Optional[str] = None,
    ) -> None:
        """Initialize component logger.

        Args:
            name: Logger name (typically __name__)
            correlation_id: Optional correlation ID for request tracking
            component: Component name; defaults to the last part of ``name``
        """
        self.correlation_id = correlation_id
        self.component = component or name.split(".")[-1]
        super().__init__(
            logging.getLogger(name),
            {"component": self.component, "correlation_id": correlation_id},
        )

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> Tuple[Any, MutableMapping[str, Any]]:
        combined: Dict[str, Any] = dict(self.extra)
        if kwargs.get("extra"):
            combined.update(kwargs["extra"])
        kwargs["extra"] = combined
        return msg, kwargs


def get_logger(
    name: str,
    correlation_id: Optional[str] = None,
    component: Optional[str] = None,
) -> ComponentLogger:
    """Get a component-aware logger instance.

    Args:
        name: Logger name (typically __name__)
        correlation_id: Optional correlation ID for request tracking
        component: Component name for structured logging

    Returns:
        ComponentLogger instance
    """
    return ComponentLogger(name, correlation_id, component)


class _ComponentDefaultsFilter(logging.Filter):
    # Records from third-party loggers lack our extra fields.
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "component"):
            record.component = record.name.split(".")[-1]
        if not hasattr(record, "correlation_id"):
            record.correlation_id = None
        return True


def configure_logging(level: str = "WARNING", fmt: str = DEFAULT_FORMAT) -> None:
    """Install a stderr handler on the ``abx_decoder`` logger.

    Intended for command-line use; library callers configure logging
    themselves.

    Args:
        level: Logging level name
        fmt: Format string; may reference ``component`` and ``correlation_id``
    """
    package_logger = logging.getLogger("abx_decoder")
    package_logger.setLevel(level)

    for handler in list(package_logger.handlers):
        if getattr(handler, "_abx_cli_handler", False):
            package_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt))
    handler.addFilter(_ComponentDefaultsFilter())
    handler._abx_cli_handler = True  # type: ignore[attr-defined]
    package_logger.addHandler(handler)
