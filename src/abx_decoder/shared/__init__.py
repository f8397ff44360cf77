"""Shared utilities for ABX decoding.

This module provides the error hierarchy, configuration objects, result types
and logging helpers used across the binary, tree and API layers.
"""

from .errors import (
    AbxDecodeError,
    DuplicateAttributeError,
    ErrorKind,
    ProtocolError,
    TruncatedInputError,
    UnbalancedElementError,
    UnknownDataTypeError,
)
from .result import (
    DecodeResult,
    DecodeStatus,
    DiagnosticEntry,
    DiagnosticSeverity,
    PerformanceMetrics,
)
from .config import (
    AbxConfig,
    ConfigError,
    ConfigValidationError,
    DecoderConfig,
    SerializerConfig,
)
from .logging import (
    ComponentLogger,
    configure_logging,
    get_logger,
)

__all__ = [
    "AbxDecodeError",
    "DuplicateAttributeError",
    "ErrorKind",
    "ProtocolError",
    "TruncatedInputError",
    "UnbalancedElementError",
    "UnknownDataTypeError",
    "DecodeResult",
    "DecodeStatus",
    "DiagnosticEntry",
    "DiagnosticSeverity",
    "PerformanceMetrics",
    "AbxConfig",
    "ConfigError",
    "ConfigValidationError",
    "DecoderConfig",
    "SerializerConfig",
    "ComponentLogger",
    "configure_logging",
    "get_logger",
]
