"""Result objects and diagnostic types for ABX decoding.

This module defines the tagged result returned by every decode call together
with the diagnostics and performance information collected along the way.
"""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from .errors import AbxDecodeError, ErrorKind

if TYPE_CHECKING:
    from abx_decoder.tree.model import XMLDocument


class DiagnosticSeverity(Enum):
    """Severity levels for diagnostic entries."""

    DEBUG = auto()
    INFO = auto()
    WARNING = auto()    # Tolerated protocol irregularities
    ERROR = auto()      # Conditions that aborted the decode


class DecodeStatus(Enum):
    """Outcome of a decode call."""

    SUCCESS = auto()
    NOT_RECOGNIZED = auto()  # Input lacks the ABX magic header
    FAILED = auto()


@dataclass
class DiagnosticEntry:
    """Single diagnostic entry with context information."""

    severity: DiagnosticSeverity
    message: str
    component: str
    offset: Optional[int] = None
    details: Optional[Dict[str, Any]] = None
    timestamp: float = field(default_factory=time.time)
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate diagnostic entry."""
        if not self.message:
            raise ValueError("Diagnostic message cannot be empty")
        if not self.component:
            raise ValueError("Diagnostic component cannot be empty")

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "severity": self.severity.name,
            "message": self.message,
            "component": self.component,
        }
        if self.offset is not None:
            result["offset"] = self.offset
        if self.details:
            result["details"] = dict(self.details)
        return result


@dataclass
class PerformanceMetrics:
    """Performance metrics for a decode call."""

    processing_time_ms: float = 0.0
    bytes_processed: int = 0
    tokens_decoded: int = 0
    elements_built: int = 0
    interned_strings: int = 0

    @property
    def bytes_per_second(self) -> float:
        """Calculate bytes consumed per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.bytes_processed * 1000.0) / self.processing_time_ms

    @property
    def tokens_per_second(self) -> float:
        """Calculate tokens decoded per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.tokens_decoded * 1000.0) / self.processing_time_ms


@dataclass
class DecodeResult:
    """Tagged outcome of decoding one ABX buffer.

    A successful result carries the document tree and, once serialized, its
    XML text. A failed result carries the error that aborted decoding and never
    exposes a partial tree. A ``NOT_RECOGNIZED`` result means the input is not
    ABX at all; it is a negative answer rather than a failure.
    """

    status: DecodeStatus = DecodeStatus.SUCCESS
    document: Optional["XMLDocument"] = None
    text: Optional[str] = None
    error: Optional[AbxDecodeError] = None

    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    performance: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate result consistency."""
        if self.status is DecodeStatus.FAILED and self.error is None:
            raise ValueError("Failed result must carry an error")
        if self.status is not DecodeStatus.FAILED and self.error is not None:
            raise ValueError("Only failed results may carry an error")

    @property
    def success(self) -> bool:
        return self.status is DecodeStatus.SUCCESS

    @property
    def recognized(self) -> bool:
        return self.status is not DecodeStatus.NOT_RECOGNIZED

    @property
    def error_kind(self) -> Optional[ErrorKind]:
        """Kind of the error that aborted decoding, if any."""
        return self.error.kind if self.error is not None else None

    @property
    def processing_time_ms(self) -> float:
        return self.performance.processing_time_ms

    @property
    def warnings(self) -> List[DiagnosticEntry]:
        return self.get_diagnostics_by_severity(DiagnosticSeverity.WARNING)

    def add_diagnostic(
        self,
        severity: DiagnosticSeverity,
        message: str,
        component: str,
        offset: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Add diagnostic entry to result."""
        self.diagnostics.append(
            DiagnosticEntry(
                severity=severity,
                message=message,
                component=component,
                offset=offset,
                details=details,
                correlation_id=self.correlation_id,
            )
        )

    def get_diagnostics_by_severity(
        self, severity: DiagnosticSeverity
    ) -> List[DiagnosticEntry]:
        """Get diagnostics of specific severity level."""
        return [diag for diag in self.diagnostics if diag.severity == severity]

    def has_errors(self) -> bool:
        """Check if result contains any error diagnostics."""
        return any(
            diag.severity is DiagnosticSeverity.ERROR for diag in self.diagnostics
        )

    def raise_for_error(self) -> None:
        """Re-raise the error carried by a failed result."""
        if self.error is not None:
            raise self.error

    def summary(self) -> Dict[str, Any]:
        """Get summary statistics for the decode call."""
        summary: Dict[str, Any] = {
            "status": self.status.name,
            "success": self.success,
            "processing_time_ms": self.performance.processing_time_ms,
            "bytes_processed": self.performance.bytes_processed,
            "tokens_decoded": self.performance.tokens_decoded,
            "warning_count": len(self.warnings),
        }

        if self.error is not None:
            summary["error_kind"] = self.error.kind.name
            summary["error"] = str(self.error)

        if self.document is not None:
            summary.update(
                {
                    "root_tag": self.document.root.tag if self.document.root else None,
                    "element_count": self.document.total_elements,
                    "attribute_count": self.document.total_attributes,
                    "max_depth": self.document.max_depth,
                    "interned_string_count": self.document.interned_string_count,
                }
            )

        return summary
