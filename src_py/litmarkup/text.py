from __future__ import annotations

from collections.abc import Mapping
from collections.abc import Sequence

from litmarkup._types import RenderOps

# These elements can't have any content, and (in HTML) have no closing tag.
VOID_ELEMENTS: frozenset[str] = frozenset({
    'area',
    'base',
    'br',
    'col',
    'embed',
    'hr',
    'img',
    'input',
    'link',
    'meta',
    'param',
    'source',
    'track',
    'wbr',
})


def to_text(value: object) -> str:
    """Converts a rendered output or substitution value into text.
    Lists and tuples are concatenated item by item (without any
    separator), which lets you substitute the results of several
    renders at once. ``None`` renders as nothing at all.
    """
    if isinstance(value, str):
        return value
    elif value is None:
        return ''
    elif isinstance(value, (list, tuple)):
        return ''.join(to_text(item) for item in value)
    else:
        return str(value)


def render_text_value(substitution: object) -> object:
    # Conversion to a string is deferred until the children get joined, so
    # that single-substitution templates can return the value itself.
    return substitution


def render_text_children(outputs: Sequence[object]) -> str:
    return ''.join(to_text(output) for output in outputs)


def render_text_element(
        name: str,
        attributes: Mapping[str, object],
        children: object
        ) -> str:
    attribute_text = ''.join(
        f' {attribute_name}="{to_text(attribute_value)}"'
        for attribute_name, attribute_value in attributes.items())
    children_text = to_text(children)

    if name in VOID_ELEMENTS and not children_text:
        return f'<{name}{attribute_text}>'

    return f'<{name}{attribute_text}>{children_text}</{name}>'


TEXT_RENDER_OPS = RenderOps(
    value=render_text_value,
    element=render_text_element,
    children=render_text_children)
