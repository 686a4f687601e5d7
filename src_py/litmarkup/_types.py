from __future__ import annotations

from collections.abc import Awaitable
from collections.abc import Mapping
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Annotated
from typing import Protocol

from docnote import ClcNote
from typing_extensions import TypeIs

# Render outputs are whatever the render target produces. For the text
# target this is always a str, but a DOM target would use node objects.
type Output = object
type MaybeAwaitable[T] = T | Awaitable[T]
type Props = Mapping[str, object]
type AttributeValue = str | int | tuple[str | int, ...]
type PositionalNode = str | int | PositionalElement
type ClassMap = Mapping[str, Component]


class Component(Protocol):

    def __call__(
            self,
            props: Annotated[
                Props,
                ClcNote(
                    '''The resolved attributes of the component tag, plus a
                    ``children`` key containing the already-rendered
                    children. Single-substitution attributes are passed
                    through unconverted, so components can receive
                    arbitrary objects as properties.
                    ''')]
            ) -> MaybeAwaitable[Output]:
        """Components render a props mapping into output. They may
        return the output directly, or an awaitable that resolves to
        it; in the latter case, every ancestor in the render tree will
        wait for it before combining its own children.
        """
        ...


@dataclass(slots=True, frozen=True)
class PositionalElement:
    """A structured node within the positional tree. The tree is
    substitution-independent: wherever a substitution appears, the tree
    holds its integer index instead of the value, which means a single
    tree can be cached and then rendered against any number of
    substitution sets.

    Element vs component is decided entirely by ``name``: a string is
    an element (lowercase-leading tag), a callable is a component.
    """
    name: str | Component
    attributes: Mapping[str, AttributeValue]
    children: tuple[PositionalNode, ...]

    @property
    def is_component(self) -> bool:
        return not isinstance(self.name, str)


def is_positional_element(node: object) -> TypeIs[PositionalElement]:
    return isinstance(node, PositionalElement)


def is_static(node: PositionalNode) -> bool:
    """Static nodes are those that don't depend upon any substitution
    and don't involve any components, which means they can be rendered
    to text once, during parsing, and then never again.
    """
    if isinstance(node, str):
        return True
    elif isinstance(node, int):
        return False
    elif node.is_component:
        return False

    return (
        all(isinstance(value, str) for value in node.attributes.values())
        and all(isinstance(child, str) for child in node.children))


class ValueRenderer(Protocol):

    def __call__(self, substitution: object) -> Output:
        """Renders a single substitution value into output."""
        ...


class ElementRenderer(Protocol):

    def __call__(
            self,
            name: str,
            attributes: Mapping[str, object],
            children: Output
            ) -> Output:
        """Combines an element name, its resolved attributes, and its
        already-combined children into output.
        """
        ...


class ChildrenRenderer(Protocol):

    def __call__(self, outputs: Sequence[Output]) -> Output:
        """Combines a sequence of sibling outputs into a single unit.
        This is only ever called once all of the siblings are available,
        regardless of whether any of them were rendered asynchronously.
        """
        ...


@dataclass(slots=True, frozen=True)
class RenderOps:
    """Render ops define a single output target. The renderer core walks
    the positional tree and calls into these to build the result; it
    knows nothing about the output type itself.
    """
    value: Annotated[
        ValueRenderer,
        ClcNote(
            '''Called for every substitution index in child position.
            Literal strings within the tree are never passed through
            ``value``; they go straight to the combiners.
            ''')]
    element: Annotated[
        ElementRenderer,
        ClcNote('''Called for every non-component structured node.''')]
    children: Annotated[
        ChildrenRenderer,
        ClcNote(
            '''Called once per structured node, with the outputs of all
            of its children in document order.
            ''')]
