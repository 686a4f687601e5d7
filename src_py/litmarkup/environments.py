from __future__ import annotations

import inspect
from collections.abc import Sequence

from litmarkup._types import ClassMap
from litmarkup._types import Component
from litmarkup._types import MaybeAwaitable
from litmarkup._types import PositionalNode
from litmarkup.cache import DEFAULT_CACHE_MAXSIZE
from litmarkup.cache import DEFAULT_TEMPLATE_CACHE
from litmarkup.cache import TemplateCache
from litmarkup.components import is_component_name
from litmarkup.exceptions import AsyncRenderRequired
from litmarkup.parser import DEFAULT_PARSE_CONFIG
from litmarkup.parser import ParseConfig
from litmarkup.renderer import close_pending
from litmarkup.renderer import render
from litmarkup.renderer import render_to_text
from litmarkup.text import to_text


class MarkupEnvironment:
    """A markup environment bundles together a class map, a parse
    config, and a template cache. Calling it renders a template to text:

    > Example
    __embed__: 'code/python'
        def Bold(props):
            return f'<b>{props["children"]}</b>'

        html = MarkupEnvironment({'Bold': Bold})
        html(('<span>Hello, <Bold>', '</Bold>.</span>'), 'world')
        # '<span>Hello, <b>world</b>.</span>'

    Literal segments are cached by identity, so they should be defined
    once per call site (for example, as a tuple literal), rather than
    being rebuilt for every render.

    Every environment gets its own private cache unless you explicitly
    pass one in. That way, environments with different class maps never
    share parsed trees, even for identical template text.
    """
    _class_map: dict[str, Component]
    _config: ParseConfig
    _parsed_template_cache: TemplateCache

    def __init__(
            self,
            class_map: ClassMap | None = None,
            *,
            config: ParseConfig = DEFAULT_PARSE_CONFIG,
            cache: TemplateCache | None = None,
            cache_maxsize: int | None = DEFAULT_CACHE_MAXSIZE):
        self._class_map = {} if class_map is None else dict(class_map)
        self._config = config
        if cache is None:
            cache = TemplateCache(maxsize=cache_maxsize)
        self._parsed_template_cache = cache

    def register_component(
            self,
            component: Component,
            /, *,
            name: str | None = None
            ) -> Component:
        """Adds a component to this environment's class map. Can also be
        used as a decorator. Templates that were already parsed (and
        cached) are unaffected.
        """
        registered_name = component.__name__ if name is None else name
        if not is_component_name(registered_name):
            raise ValueError(
                'Component names must start with an uppercase letter!',
                registered_name)

        self._class_map[registered_name] = component
        return component

    def parse(self, strings: Sequence[str]) -> PositionalNode:
        """Returns the (cached) positional tree for the literal segments,
        without rendering it. Useful for validating templates up front.
        """
        return self._parsed_template_cache.get_or_parse(
            strings, self._class_map, config=self._config)

    def __call__(
            self,
            strings: Sequence[str],
            *values: object
            ) -> MaybeAwaitable[str]:
        """Renders the template. Returns the text directly if every
        component was synchronous, or an awaitable of the text
        otherwise.
        """
        return render_to_text(self.parse(strings), values)

    def render_sync(self, strings: Sequence[str], *values: object) -> str:
        """Renders the template, raising ``AsyncRenderRequired`` if any
        component (or substitution) turned out to be asynchronous.
        """
        result = render(self.parse(strings), values)
        if inspect.isawaitable(result):
            close_pending(result)
            raise AsyncRenderRequired(
                'A component returned an awaitable; use render_async '
                + 'instead of render_sync for this template!',
                strings)

        return to_text(result)

    async def render_async(
            self,
            strings: Sequence[str],
            *values: object
            ) -> str:
        result = self(strings, *values)
        if inspect.isawaitable(result):
            return await result

        return result


_DEFAULT_ENVIRONMENT = MarkupEnvironment(cache=DEFAULT_TEMPLATE_CACHE)


def markup_to_text(
        strings: Sequence[str],
        *values: object
        ) -> MaybeAwaitable[str]:
    """Renders a template to text using only the default components
    and the global component registry, sharing the process-wide default
    template cache.
    """
    return _DEFAULT_ENVIRONMENT(strings, *values)


def markup_to_text_with(
        class_map: ClassMap | None = None,
        *,
        config: ParseConfig = DEFAULT_PARSE_CONFIG,
        cache_maxsize: int | None = DEFAULT_CACHE_MAXSIZE
        ) -> MarkupEnvironment:
    """Creates a new environment for rendering templates that use the
    components in the passed class map. The environment has its own
    private template cache.
    """
    return MarkupEnvironment(
        class_map, config=config, cache_maxsize=cache_maxsize)
