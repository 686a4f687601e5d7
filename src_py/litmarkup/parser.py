from __future__ import annotations

from collections.abc import Iterable
from collections.abc import Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import Annotated

from docnote import ClcNote

from litmarkup._markup import MarkupNode
from litmarkup._markup import NodeKind
from litmarkup._markup import parse_fragment
from litmarkup._types import AttributeValue
from litmarkup._types import ClassMap
from litmarkup._types import PositionalElement
from litmarkup._types import PositionalNode
from litmarkup._types import is_positional_element
from litmarkup._types import is_static
from litmarkup.components import is_component_name
from litmarkup.components import resolve_component
from litmarkup.markers import join_with_markers
from litmarkup.markers import split_markers
from litmarkup.text import render_text_children
from litmarkup.text import render_text_element

# The parser decodes every entity, so literal text and attribute values have
# to be escaped back into markup. Only the characters that would otherwise
# change the meaning of the markup are escaped; ``>`` is left alone.
_TEXT_ESCAPES = str.maketrans({'&': '&amp;', '<': '&lt;'})
_ATTRIBUTE_ESCAPES = str.maketrans({
    '&': '&amp;', '<': '&lt;', '"': '&quot;'})


@dataclass(frozen=True, slots=True)
class ParseConfig:
    collapse_whitespace: Annotated[
        bool,
        ClcNote(
            '''If True, leading and trailing whitespace within each text
            node and attribute value is condensed into a single space
            before the substitution markers are split out. Comments and
            processing instruction data are never collapsed.
            ''')] = True
    flatten_static: Annotated[
        bool,
        ClcNote(
            '''If True, element subtrees that contain neither
            substitutions nor components are rendered into text at parse
            time, and merged with any adjacent literal text. This makes
            rendering cheaper, but the resulting tree is then specific to
            text output.
            ''')] = True


DEFAULT_PARSE_CONFIG = ParseConfig()


def parse(
        strings: Sequence[str],
        class_map: ClassMap | None = None,
        *,
        config: ParseConfig = DEFAULT_PARSE_CONFIG
        ) -> PositionalNode:
    """Parses the literal segments of a template into a positional
    tree. Segment ``i`` is assumed to be followed by substitution ``i``,
    so the resulting tree will reference indices ``0`` through
    ``len(strings) - 2``. Note that this doesn't do any caching; for
    that, use a ``TemplateCache``.

    > Example
    __embed__: 'code/python'
        parse(['<div class="', '">Hello</div>'])
        # PositionalElement('div', {'class': 0}, ('Hello',))
    """
    return parse_markup(join_with_markers(strings), class_map, config=config)


def parse_markup(
        markup: str,
        class_map: ClassMap | None = None,
        *,
        config: ParseConfig = DEFAULT_PARSE_CONFIG
        ) -> PositionalNode:
    """Parses a single string that already contains substitution
    markers (see ``litmarkup.markers.encode_marker``). If the markup has
    exactly one root node, that node is the root of the tree; otherwise,
    the root is a ``DocumentFragment`` component wrapping all of them.
    """
    fragment = parse_fragment(markup)
    if len(fragment.children) == 1:
        root, = fragment.children
        transformed = transform_node(root, class_map, config=config)
        # A lone text node with several substitutions in it decodes into
        # multiple parts, which still need the fragment to hold them.
        if not isinstance(transformed, tuple):
            return transformed

    return transform_node(fragment, class_map, config=config)


def transform_node(
        node: MarkupNode,
        class_map: ClassMap | None = None,
        *,
        config: ParseConfig = DEFAULT_PARSE_CONFIG
        ) -> PositionalNode | tuple[PositionalNode, ...]:
    """Converts a single generic markup node (and all of its
    descendants) into its positional representation. Note that text
    nodes containing substitutions decode into a tuple of parts, which
    callers are expected to splice into the parent.
    """
    if node.kind is NodeKind.TEXT:
        return _transform_text(node.text, config)

    elif node.kind is NodeKind.ELEMENT:
        name = (
            resolve_component(node.name, class_map)
            if is_component_name(node.name)
            else node.name)
        return PositionalElement(
            name=name,
            attributes=MappingProxyType({
                attribute_name: _transform_attribute(attribute_value, config)
                for attribute_name, attribute_value in node.attributes}),
            children=_transform_children(node.children, class_map, config))

    elif node.kind is NodeKind.COMMENT:
        return PositionalElement(
            name=resolve_component('Comment', class_map),
            attributes=MappingProxyType({
                'data': split_markers(node.text, collapse=False)}),
            children=())

    elif node.kind is NodeKind.PROCESSING_INSTRUCTION:
        return PositionalElement(
            name=resolve_component('ProcessingInstruction', class_map),
            attributes=MappingProxyType({
                'target': node.name,
                'data': split_markers(node.text, collapse=False)}),
            children=())

    elif node.kind is NodeKind.DOCUMENT_TYPE:
        return PositionalElement(
            name=resolve_component('DocumentType', class_map),
            attributes=MappingProxyType({'name': node.name}),
            children=())

    else:
        raise TypeError('Impossible branch: invalid markup node kind!', node)


def _transform_text(text: str, config: ParseConfig) -> AttributeValue:
    """Text gets split on its markers, and then the literal parts are
    escaped back into markup. The parser decodes entities like ``&lt;``,
    so without re-escaping, they'd be rendered as live markup.
    """
    return _escape_literals(
        split_markers(text, collapse=config.collapse_whitespace),
        _TEXT_ESCAPES)


def _transform_attribute(value: str, config: ParseConfig) -> AttributeValue:
    """Same as text, except that double quotes also get escaped, since
    the text renderer always wraps attribute values in them.
    """
    return _escape_literals(
        split_markers(value, collapse=config.collapse_whitespace),
        _ATTRIBUTE_ESCAPES)


def _escape_literals(
        decoded: AttributeValue,
        escapes: dict[int, str]
        ) -> AttributeValue:
    # Only the literal parts came out of the parser; substitution indices
    # are left for the renderer, and never escaped.
    if isinstance(decoded, str):
        return decoded.translate(escapes)
    elif isinstance(decoded, int):
        return decoded
    else:
        return tuple(
            part.translate(escapes) if isinstance(part, str) else part
            for part in decoded)


def _transform_children(
        children: Iterable[MarkupNode],
        class_map: ClassMap | None,
        config: ParseConfig
        ) -> tuple[PositionalNode, ...]:
    transformed: list[PositionalNode] = []
    for child in children:
        transformed_child = transform_node(child, class_map, config=config)
        # Text nodes can decode into multiple parts. These get spliced
        # directly into the parent, so that literal text, indices, and
        # elements all live at the same depth.
        if isinstance(transformed_child, tuple):
            transformed.extend(transformed_child)
        else:
            transformed.append(transformed_child)

    return _merge_static_children(transformed, config)


def _merge_static_children(
        children: Iterable[PositionalNode],
        config: ParseConfig
        ) -> tuple[PositionalNode, ...]:
    """Merges runs of adjacent literal text into a single string, and
    (if so configured) flattens static elements into that text. Only
    substitution indices and components interrupt a run.
    """
    merged: list[PositionalNode] = []
    for child in children:
        if (
            config.flatten_static
            and is_positional_element(child)
            and is_static(child)
        ):
            child = _render_static(child)

        if isinstance(child, str):
            if not child:
                continue

            if merged and isinstance(merged[-1], str):
                merged[-1] += child
                continue

        merged.append(child)

    return tuple(merged)


def _render_static(node: PositionalElement) -> str:
    # Static elements have string names, string attributes, and string
    # children. is_static() has already checked all of that.
    return render_text_element(
        node.name,  # type: ignore[arg-type]
        node.attributes,
        render_text_children(node.children))
