"""This is the seam between litmarkup and the underlying markup parser.
We use lxml to do the actual parsing, and then immediately convert its
tree into ``MarkupNode`` instances, so that the transformer never needs
to know about lxml's text/tail model.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from lxml import etree

from litmarkup.exceptions import MarkupSyntaxError

FRAGMENT_TAG = 'DocumentFragment'
# XML doesn't allow a doctype declaration inside an element, and we always
# wrap the markup in a fragment element, so we lift it out beforehand.
_LEADING_DOCTYPE = re.compile(r'^<!doctype\s+([^\s>]+)[^>]*>', re.IGNORECASE)


class NodeKind(Enum):
    TEXT = 'text'
    ELEMENT = 'element'
    COMMENT = 'comment'
    PROCESSING_INSTRUCTION = 'processing_instruction'
    DOCUMENT_TYPE = 'document_type'


@dataclass(slots=True, frozen=True)
class MarkupNode:
    """A generic, parser-independent markup node. Which fields are
    meaningful depends on the kind:
    ++  TEXT: ``text`` is the (entity-decoded) text content
    ++  ELEMENT: ``name`` is the local tag name; ``attributes`` and
        ``children`` are in document order
    ++  COMMENT: ``text`` is the comment data
    ++  PROCESSING_INSTRUCTION: ``name`` is the target, ``text`` the data
    ++  DOCUMENT_TYPE: ``name`` is the declared root name
    """
    kind: NodeKind
    name: str = ''
    text: str = ''
    attributes: tuple[tuple[str, str], ...] = ()
    children: tuple[MarkupNode, ...] = ()


def parse_fragment(markup: str) -> MarkupNode:
    """Parses the markup inside of an implicit fragment element, so
    that templates can have more than one root node. Always returns the
    fragment element itself; it's up to the caller to decide whether or
    not to unwrap it.
    """
    trimmed = markup.strip()
    leading_nodes: list[MarkupNode] = []

    doctype_match = _LEADING_DOCTYPE.match(trimmed)
    if doctype_match is not None:
        leading_nodes.append(MarkupNode(
            kind=NodeKind.DOCUMENT_TYPE,
            name=doctype_match.group(1)))
        trimmed = trimmed[doctype_match.end():].strip()

    wrapped = f'<{FRAGMENT_TAG}>{trimmed}</{FRAGMENT_TAG}>'
    parser = etree.XMLParser(
        resolve_entities=False,
        remove_blank_text=False,
        remove_comments=False,
        remove_pis=False,
        no_network=True)
    try:
        root = etree.fromstring(wrapped, parser)
    except etree.XMLSyntaxError as exc:
        raise MarkupSyntaxError(str(exc), markup) from exc

    fragment = _convert_element(root)
    if leading_nodes:
        return MarkupNode(
            kind=NodeKind.ELEMENT,
            name=fragment.name,
            attributes=fragment.attributes,
            children=(*leading_nodes, *fragment.children))

    return fragment


def _convert_element(element: etree._Element) -> MarkupNode:
    children: list[MarkupNode] = []
    if element.text:
        children.append(MarkupNode(kind=NodeKind.TEXT, text=element.text))

    for child in element:
        children.append(_convert_node(child))
        # lxml hangs any text following a node off of that node, instead of
        # giving it a node of its own.
        if child.tail:
            children.append(MarkupNode(kind=NodeKind.TEXT, text=child.tail))

    return MarkupNode(
        kind=NodeKind.ELEMENT,
        name=etree.QName(element).localname,
        attributes=tuple(
            (etree.QName(key).localname, value)
            for key, value in element.attrib.items()),
        children=tuple(children))


def _convert_node(node: etree._Element) -> MarkupNode:
    if node.tag is etree.Comment:
        return MarkupNode(kind=NodeKind.COMMENT, text=node.text or '')
    elif node.tag is etree.ProcessingInstruction:
        return MarkupNode(
            kind=NodeKind.PROCESSING_INSTRUCTION,
            name=node.target,
            text=node.text or '')
    elif isinstance(node.tag, str):
        return _convert_element(node)
    else:
        raise TypeError('Unsupported markup node type!', node)
