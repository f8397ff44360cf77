"""Integration adapters exporting decoded ABX documents to other libraries.

Conversion is one-way: a successful :class:`DecodeResult` is turned into an
``xml.etree.ElementTree`` element, an ``lxml.etree`` element or a
``pandas.DataFrame`` with one row per element. lxml and pandas are optional
dependencies; their adapters report unavailability instead of failing at
import time.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Iterator, List, Optional, Tuple

from abx_decoder.shared import DecodeResult, get_logger
from abx_decoder.tree import XMLDocument, XMLElement

MS_PER_SECOND = 1000


class AdapterType(Enum):
    """Types of integration adapters."""

    XML_LIBRARY = auto()     # Element-tree style XML libraries
    DATA_FRAME = auto()      # Tabular libraries


@dataclass
class AdapterMetadata:
    """Metadata about an integration adapter."""

    name: str
    adapter_type: AdapterType
    target_library: str
    description: str


@dataclass
class ConversionResult:
    """Result of a conversion operation."""

    success: bool
    converted_data: Any
    conversion_time_ms: float
    errors: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)


class IntegrationAdapter(ABC):
    """Base class for adapters converting decoded documents to a target format."""

    def __init__(self, correlation_id: Optional[str] = None) -> None:
        self.correlation_id = correlation_id
        self._logger = get_logger(__name__, correlation_id, self.__class__.__name__)

    @property
    @abstractmethod
    def metadata(self) -> AdapterMetadata:
        """Get adapter metadata."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the target library can be imported."""

    @abstractmethod
    def _convert(self, document: XMLDocument) -> Tuple[Any, Dict[str, Any]]:
        """Convert a document, returning the target object and metadata."""

    def to_target(self, decode_result: DecodeResult) -> ConversionResult:
        """Convert a successful decode result to the target format.

        Args:
            decode_result: Result of a decode call

        Returns:
            ConversionResult holding the converted object, or errors
        """
        start_time = time.time()

        if not decode_result.success or decode_result.document is None:
            return self._create_error_result(
                "DecodeResult is not successful or has no document", start_time
            )
        if not self.is_available():
            return self._create_error_result(
                f"{self.metadata.target_library} is not installed", start_time
            )

        try:
            converted, metadata = self._convert(decode_result.document)
        except ValueError as e:
            # Target libraries reject tag or attribute names they cannot represent
            return self._create_error_result(
                f"Failed to convert to {self.metadata.name}: {e}", start_time
            )

        return ConversionResult(
            success=True,
            converted_data=converted,
            conversion_time_ms=(time.time() - start_time) * MS_PER_SECOND,
            metadata=metadata,
        )

    def _create_error_result(self, message: str, start_time: float) -> ConversionResult:
        self._logger.warning(message, extra={"adapter": self.metadata.name})
        return ConversionResult(
            success=False,
            converted_data=None,
            conversion_time_ms=(time.time() - start_time) * MS_PER_SECOND,
            errors=[message],
        )


def _build_etree(root: XMLElement, factory: Any) -> Any:
    root_node = None
    stack: List[Tuple[XMLElement, Any]] = [(root, None)]
    while stack:
        element, parent = stack.pop()
        attributes = {name: attribute.value for name, attribute in element.attributes.items()}
        if parent is None:
            node = root_node = factory.Element(element.tag, attributes)
        else:
            node = factory.SubElement(parent, element.tag, attributes)
        if element.text:
            node.text = element.text
        # Reversed so siblings are appended to their parent in document order
        stack.extend((child, node) for child in reversed(element.children))
    return root_node


class ElementTreeAdapter(IntegrationAdapter):
    """Adapter producing ``xml.etree.ElementTree`` elements."""

    @property
    def metadata(self) -> AdapterMetadata:
        return AdapterMetadata(
            name="etree",
            adapter_type=AdapterType.XML_LIBRARY,
            target_library="xml.etree.ElementTree",
            description="Conversion of decoded documents to ElementTree elements",
        )

    def is_available(self) -> bool:
        return True

    def _convert(self, document: XMLDocument) -> Tuple[Any, Dict[str, Any]]:
        import xml.etree.ElementTree as ET

        root = _build_etree(document.root, ET)
        return root, {"element_count": document.total_elements}


class LxmlAdapter(IntegrationAdapter):
    """Adapter producing ``lxml.etree`` elements."""

    @property
    def metadata(self) -> AdapterMetadata:
        return AdapterMetadata(
            name="lxml",
            adapter_type=AdapterType.XML_LIBRARY,
            target_library="lxml",
            description="Conversion of decoded documents to lxml.etree elements",
        )

    def is_available(self) -> bool:
        """Check if lxml is available."""
        try:
            import lxml.etree  # noqa: F401
            return True
        except ImportError:
            return False

    def _convert(self, document: XMLDocument) -> Tuple[Any, Dict[str, Any]]:
        import lxml.etree as ET

        root = _build_etree(document.root, ET)
        return root, {
            "lxml_version": ET.LXML_VERSION,
            "element_count": len(root.xpath("//*")),
        }


def iter_element_rows(document: XMLDocument) -> Iterator[Dict[str, Any]]:
    """Flatten a document into one row per element.

    Each row carries the element's XPath-like path, tag, depth, text and one
    ``@name`` column per attribute.
    """
    stack: List[Tuple[XMLElement, str, int]] = [
        (document.root, f"/{document.root.tag}", 0)
    ]
    while stack:
        element, path, depth = stack.pop()
        row: Dict[str, Any] = {
            "path": path,
            "tag": element.tag,
            "depth": depth,
            "text": element.text or None,
        }
        for name, attribute in element.attributes.items():
            row[f"@{name}"] = attribute.value
        yield row

        tag_totals: Dict[str, int] = {}
        for child in element.children:
            tag_totals[child.tag] = tag_totals.get(child.tag, 0) + 1
        seen: Dict[str, int] = {}
        children = []
        for child in element.children:
            seen[child.tag] = seen.get(child.tag, 0) + 1
            child_path = f"{path}/{child.tag}"
            if tag_totals[child.tag] > 1:
                child_path += f"[{seen[child.tag]}]"
            children.append((child, child_path, depth + 1))
        stack.extend(reversed(children))


class PandasAdapter(IntegrationAdapter):
    """Adapter producing a ``pandas.DataFrame`` with one row per element."""

    @property
    def metadata(self) -> AdapterMetadata:
        return AdapterMetadata(
            name="pandas",
            adapter_type=AdapterType.DATA_FRAME,
            target_library="pandas",
            description="Flattening of decoded documents into a pandas DataFrame",
        )

    def is_available(self) -> bool:
        """Check if pandas is available."""
        try:
            import pandas  # noqa: F401
            return True
        except ImportError:
            return False

    def _convert(self, document: XMLDocument) -> Tuple[Any, Dict[str, Any]]:
        import pandas as pd

        df = pd.DataFrame(list(iter_element_rows(document)))
        return df, {
            "dataframe_shape": df.shape,
            "columns": list(df.columns),
        }


_ADAPTERS = {
    "etree": ElementTreeAdapter,
    "lxml": LxmlAdapter,
    "pandas": PandasAdapter,
}


def get_adapter(name: str, correlation_id: Optional[str] = None) -> IntegrationAdapter:
    """Create the adapter registered under ``name``.

    Raises:
        KeyError: If no adapter has that name
    """
    try:
        adapter_class = _ADAPTERS[name]
    except KeyError:
        raise KeyError(
            f"Unknown adapter '{name}'; available: {sorted(_ADAPTERS)}"
        ) from None
    return adapter_class(correlation_id)


def list_adapters() -> List[str]:
    return sorted(_ADAPTERS)


def list_available_adapters() -> List[str]:
    return [name for name in list_adapters() if get_adapter(name).is_available()]


def to_element_tree(decode_result: DecodeResult) -> Any:
    """Convert a decode result to an ElementTree element, raising on failure."""
    conversion = ElementTreeAdapter(decode_result.correlation_id).to_target(decode_result)
    if not conversion.success:
        raise ValueError("; ".join(conversion.errors))
    return conversion.converted_data
