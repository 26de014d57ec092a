"""
XML ingestion adapter.

E-utilities responses are parsed once into a small tagged tree:

  Text(value)                         a run of character data
  Element(tag, attrs, children)       children are Text and Element nodes
                                        in document order

Attributes never mix with text. Repeatable elements are always read through
``children_named`` / ``findall``, which return lists whether the element
occurs zero, one, or many times.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Iterator, Union


@dataclass(frozen=True)
class Text:
    value: str


@dataclass(frozen=True)
class Element:
    tag: str
    attrs: dict[str, str] = field(default_factory=dict)
    children: tuple[Node, ...] = ()

    def elements(self) -> Iterator[Element]:
        """Child elements in document order (text runs skipped)."""
        for node in self.children:
            if isinstance(node, Element):
                yield node

    def child(self, name: str) -> Element | None:
        """First child element named *name*, or None."""
        for elem in self.elements():
            if elem.tag == name:
                return elem
        return None

    def children_named(self, name: str) -> list[Element]:
        return [elem for elem in self.elements() if elem.tag == name]

    def find(self, path: str) -> Element | None:
        """Follow a ``/``-separated path of child names, taking the first match."""
        found = self.findall(path)
        return found[0] if found else None

    def findall(self, path: str) -> list[Element]:
        """Every element reachable by a ``/``-separated path of child names."""
        current = [self]
        for name in path.split("/"):
            current = [c for elem in current for c in elem.children_named(name)]
            if not current:
                break
        return current

    def attr(self, name: str, default: str = "") -> str:
        return self.attrs.get(name, default)

    @property
    def text(self) -> str:
        return flatten_text(self)

    def child_text(self, name: str) -> str:
        """Flattened text of the first child named *name*, or ``""``."""
        return flatten_text(self.child(name))


Node = Union[Text, Element]


def flatten_text(node: Node | None) -> str:
    """Flatten any node into plain text.

    Text runs are stripped; an element yields the flattened text of each
    child in document order, non-empty pieces joined by single spaces.
    This is the only text flattener: the structured section walk and the
    whole-article fallback both go through it.
    """
    if node is None:
        return ""
    if isinstance(node, Text):
        return node.value.strip()
    pieces = (flatten_text(child) for child in node.children)
    return " ".join(piece for piece in pieces if piece)


def _local_name(name: str) -> str:
    # "{http://www.w3.org/1999/xlink}href" -> "href"
    return name.rsplit("}", 1)[-1]


def _convert(elem: ET.Element) -> Element:
    children: list[Node] = []
    if elem.text and elem.text.strip():
        children.append(Text(elem.text))
    for sub in elem:
        # Comments and processing instructions carry a non-str tag.
        if isinstance(sub.tag, str):
            children.append(_convert(sub))
        if sub.tail and sub.tail.strip():
            children.append(Text(sub.tail))
    attrs = {_local_name(k): v for k, v in elem.attrib.items()}
    return Element(tag=_local_name(elem.tag), attrs=attrs, children=tuple(children))


def parse_xml(xml_text: str) -> Element:
    """Parse an XML document into the tagged tree and return its root.

    Raises ``xml.etree.ElementTree.ParseError`` for malformed input.
    """
    return _convert(ET.fromstring(xml_text))
