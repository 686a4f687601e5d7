from __future__ import annotations

import logging
from collections.abc import Callable
from collections.abc import Mapping
from contextvars import ContextVar
from typing import overload

from litmarkup._types import ClassMap
from litmarkup._types import Component
from litmarkup._types import Props
from litmarkup.exceptions import UnresolvedComponent
from litmarkup.text import to_text

logger = logging.getLogger(__name__)


def DocumentFragment(props: Props) -> object:  # noqa: N802
    """Used to wrap templates with more than one root node. Forwards
    its children unchanged.
    """
    return props['children']


def DocumentType(props: Props) -> str:  # noqa: N802
    return f'<!doctype {to_text(props["name"])}>'


def ProcessingInstruction(props: Props) -> str:  # noqa: N802
    return f'<?{to_text(props["target"])} {to_text(props["data"])}?>'


def Comment(props: Props) -> str:  # noqa: N802
    return f'<!--{to_text(props["data"])}-->'


DEFAULT_CLASS_MAP: Mapping[str, Component] = {
    'Comment': Comment,
    'DocumentFragment': DocumentFragment,
    'DocumentType': DocumentType,
    'ProcessingInstruction': ProcessingInstruction,
}

# This is the fallback for component names that aren't in the explicit class
# map. It's a contextvar so that it can be layered over (for example, during
# testing) without affecting the rest of the process.
COMPONENT_REGISTRY: ContextVar[dict[str, Component]] = ContextVar(
    'COMPONENT_REGISTRY', default={})  # noqa: B039


def is_component_name(name: str) -> bool:
    """Capitalization is the only thing that distinguishes components
    from elements: ``<Bold>`` is a component, ``<b>`` is an element.
    """
    return bool(name) and name[0].isupper()


@overload
def register_component[C: Component](
        component: C,
        /, *,
        name: str | None = None
        ) -> C: ...
@overload
def register_component[C: Component](
        component: None = None,
        /, *,
        name: str | None = None
        ) -> Callable[[C], C]: ...
def register_component[C: Component](
        component: C | None = None,
        /, *,
        name: str | None = None
        ) -> C | Callable[[C], C]:
    """Adds a component to the global component registry, making it
    available to every template that doesn't define the same name within
    its own class map. Can be used as a bare decorator, or called with
    an explicit ``name`` if the component's ``__name__`` isn't the tag
    name you want.

    **Note that cached templates are never re-resolved.** Register your
    components before the first render of any template using them.
    """
    def decorator(component: C) -> C:
        registered_name = component.__name__ if name is None else name
        if not is_component_name(registered_name):
            raise ValueError(
                'Component names must start with an uppercase letter!',
                registered_name)

        COMPONENT_REGISTRY.get()[registered_name] = component
        return component

    if component is None:
        return decorator
    else:
        return decorator(component)


def unregister_component(name: str) -> Component:
    """Removes a component from the global registry, returning it.
    Raises KeyError if no such component was registered.
    """
    return COMPONENT_REGISTRY.get().pop(name)


def resolve_component(name: str, class_map: ClassMap | None) -> Component:
    """Finds the component for a capitalized tag name. The explicit
    class map always takes precedence, followed by the default
    components, followed by the global registry.
    """
    if class_map is not None and name in class_map:
        return class_map[name]

    if name in DEFAULT_CLASS_MAP:
        return DEFAULT_CLASS_MAP[name]

    registry = COMPONENT_REGISTRY.get()
    if name in registry:
        logger.info(
            'Component %s not in the class map; using the globally '
            + 'registered component instead.', name)
        return registry[name]

    raise UnresolvedComponent(
        f'Couldn\'t find a definition for component "{name}". Either add '
        + 'it to the class map, or register it globally.',
        name)
