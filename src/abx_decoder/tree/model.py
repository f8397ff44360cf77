"""Document tree produced by ABX decoding.

Elements own their children and attributes directly. There are no parent
back-references, so a decoded tree is a strict tree that can be walked,
compared and discarded without any cycle handling.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

from abx_decoder.binary.constants import DataType


@dataclass(frozen=True)
class Attribute:
    """Decoded attribute value together with the data type it was encoded as."""

    data_type: DataType
    value: str

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.data_type.name, "value": self.value}


@dataclass(eq=False)
class XMLElement:
    """A single element in the decoded tree.

    Attributes keep the order in which they appeared in the binary stream.
    """

    tag: str
    attributes: Dict[str, Attribute] = field(default_factory=dict)
    children: List["XMLElement"] = field(default_factory=list)
    text: str = ""

    @property
    def has_text(self) -> bool:
        return bool(self.text)

    @property
    def has_children(self) -> bool:
        return bool(self.children)

    @property
    def is_empty(self) -> bool:
        """True for elements rendered as a self-closing tag."""
        return not self.text and not self.children

    def add_child(self, child: "XMLElement") -> None:
        if not isinstance(child, XMLElement):
            raise TypeError("Child must be an XMLElement instance")
        self.children.append(child)

    def append_text(self, text: str) -> None:
        self.text += text

    def get_attribute(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Get attribute text with optional default."""
        attribute = self.attributes.get(name)
        return attribute.value if attribute is not None else default

    def has_attribute(self, name: str) -> bool:
        return name in self.attributes

    def iter(self) -> Iterator["XMLElement"]:
        """Iterate over this element and its descendants in document order."""
        for element, _ in self.iter_with_depth():
            yield element

    def iter_with_depth(self, depth: int = 0) -> Iterator[Tuple["XMLElement", int]]:
        # Explicit stack; decoded trees may nest deeper than the recursion limit
        stack = [(self, depth)]
        while stack:
            element, level = stack.pop()
            yield element, level
            stack.extend((child, level + 1) for child in reversed(element.children))

    def find_child(self, tag: str) -> Optional["XMLElement"]:
        """Find first direct child with matching tag name."""
        for child in self.children:
            if child.tag == tag:
                return child
        return None

    def find(self, tag: str) -> Optional["XMLElement"]:
        """Find first descendant with matching tag name."""
        return next(
            (element for element in self.iter() if element is not self and element.tag == tag),
            None,
        )

    def find_all(self, tag: str) -> List["XMLElement"]:
        """Find all descendants with matching tag name."""
        return [
            element for element in self.iter()
            if element is not self and element.tag == tag
        ]

    def find_by_attribute(
        self, name: str, value: Optional[str] = None
    ) -> List["XMLElement"]:
        """Find this element or descendants by attribute name and optionally value."""
        return [
            element for element in self.iter()
            if name in element.attributes
            and (value is None or element.attributes[name].value == value)
        ]

    def to_dict(self) -> Dict[str, Any]:
        """Convert element to dictionary representation."""
        result = self._shallow_dict()
        stack = [(self, result)]
        while stack:
            element, entry = stack.pop()
            if not element.children:
                continue
            entry["children"] = []
            for child in element.children:
                child_entry = child._shallow_dict()
                entry["children"].append(child_entry)
                stack.append((child, child_entry))
        return result

    def _shallow_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "tag": self.tag,
            "attributes": {
                name: attribute.to_dict() for name, attribute in self.attributes.items()
            },
        }
        if self.text:
            result["text"] = self.text
        return result


@dataclass
class XMLDocument:
    """Decoded ABX document holding exactly one root element."""

    root: XMLElement
    interned_string_count: int = 0

    total_elements: int = 0
    total_attributes: int = 0
    max_depth: int = 0

    def __post_init__(self) -> None:
        """Calculate document statistics."""
        if not isinstance(self.root, XMLElement):
            raise TypeError("Document root must be an XMLElement instance")

        for element, depth in self.root.iter_with_depth():
            self.total_elements += 1
            self.total_attributes += len(element.attributes)
            self.max_depth = max(self.max_depth, depth)

    def iter_elements(self) -> Iterator[XMLElement]:
        """Iterate over all elements in document order."""
        return self.root.iter()

    def find(self, tag: str) -> Optional[XMLElement]:
        """Find first element with matching tag name, root included."""
        if self.root.tag == tag:
            return self.root
        return self.root.find(tag)

    def find_all(self, tag: str) -> List[XMLElement]:
        """Find all elements with matching tag name, root included."""
        return [element for element in self.iter_elements() if element.tag == tag]

    def find_by_attribute(
        self, name: str, value: Optional[str] = None
    ) -> List[XMLElement]:
        return self.root.find_by_attribute(name, value)

    def to_dict(self) -> Dict[str, Any]:
        """Convert document to dictionary representation."""
        return {
            "total_elements": self.total_elements,
            "total_attributes": self.total_attributes,
            "max_depth": self.max_depth,
            "interned_string_count": self.interned_string_count,
            "root": self.root.to_dict(),
        }
