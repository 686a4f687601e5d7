from __future__ import annotations

import logging
from collections import OrderedDict
from collections.abc import Sequence
from dataclasses import dataclass

from litmarkup._types import ClassMap
from litmarkup._types import PositionalNode
from litmarkup.parser import DEFAULT_PARSE_CONFIG
from litmarkup.parser import ParseConfig
from litmarkup.parser import parse

logger = logging.getLogger(__name__)

DEFAULT_CACHE_MAXSIZE = 1024


@dataclass(slots=True, frozen=True)
class _CacheEntry:
    # We hold onto the strings themselves, both so that we can verify the
    # identity on lookup, and so that their id() can't be reused by some
    # other object while the entry is still alive.
    strings: Sequence[str]
    tree: PositionalNode


class TemplateCache:
    """Template caches memoize parsed positional trees, keyed by the
    **identity** of the literal segments, not their value. The idea is
    that every call site defines its segments exactly once (typically as
    a module- or function-level constant), so the identity is stable for
    as long as the call site exists, and checking it is much cheaper
    than hashing the text.

    Tuples and lists can't be weakly referenced, so instead of a weak
    mapping, the cache holds entries strongly and evicts the least
    recently used one once ``maxsize`` is exceeded. Pass
    ``maxsize=None`` for an unbounded cache.

    Note that the tree depends upon the class map it was parsed with,
    so a single cache should only ever be used with a single class map.
    ``MarkupEnvironment`` takes care of that for you.
    """
    maxsize: int | None
    _entries: OrderedDict[int, _CacheEntry]

    def __init__(self, *, maxsize: int | None = DEFAULT_CACHE_MAXSIZE):
        if maxsize is not None and maxsize < 1:
            raise ValueError('Cache maxsize must be positive!', maxsize)

        self.maxsize = maxsize
        self._entries = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, strings: object) -> bool:
        entry = self._entries.get(id(strings))
        return entry is not None and entry.strings is strings

    def clear(self) -> None:
        self._entries.clear()

    def get_or_parse(
            self,
            strings: Sequence[str],
            class_map: ClassMap | None = None,
            *,
            config: ParseConfig = DEFAULT_PARSE_CONFIG
            ) -> PositionalNode:
        """Returns the cached tree for these exact literal segments,
        parsing (and caching) them first if needed. If parsing fails,
        nothing is cached, and the next call will try again from
        scratch.
        """
        cache_key = id(strings)
        entry = self._entries.get(cache_key)
        if entry is not None and entry.strings is strings:
            self._entries.move_to_end(cache_key)
            return entry.tree

        logger.debug(
            'Template cache miss; parsing template with %s literal segments',
            len(strings))
        # Note that there's no await between the lookup and the insert, so
        # concurrent renders on the same event loop can't interleave here.
        tree = parse(strings, class_map, config=config)
        self._entries[cache_key] = _CacheEntry(strings=strings, tree=tree)
        self._entries.move_to_end(cache_key)

        if self.maxsize is not None:
            while len(self._entries) > self.maxsize:
                __, evicted = self._entries.popitem(last=False)
                logger.debug(
                    'Evicted template from cache: %r', evicted.strings)

        return tree


DEFAULT_TEMPLATE_CACHE = TemplateCache()
