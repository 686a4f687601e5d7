from __future__ import annotations

import inspect
from collections.abc import Awaitable
from collections.abc import Coroutine
from collections.abc import Generator
from collections.abc import Iterable
from collections.abc import Mapping
from collections.abc import Sequence
from typing import Any

import anyio

from litmarkup._types import AttributeValue
from litmarkup._types import MaybeAwaitable
from litmarkup._types import Output
from litmarkup._types import PositionalElement
from litmarkup._types import PositionalNode
from litmarkup._types import RenderOps
from litmarkup.exceptions import AwaitableAttributeValue
from litmarkup.exceptions import SubstitutionIndexError
from litmarkup.text import TEXT_RENDER_OPS
from litmarkup.text import to_text


def render(
        node: PositionalNode,
        substitutions: Sequence[object],
        render_ops: RenderOps = TEXT_RENDER_OPS
        ) -> MaybeAwaitable[Output]:
    """Combines a positional tree with a set of substitutions, using
    the render ops to build the output.

    If every component in the tree returns synchronously, so does this.
    Otherwise, this returns an awaitable, which waits for all of the
    pending components (concurrently) before combining them, in
    document order, into the final output. If you decide not to await
    it after all, pass it to ``close_pending``.

    Awaitable substitutions are awaited in place, just like async
    components. **Each awaitable can therefore only fill a single child
    position.** Within attributes, they can only be passed whole to a
    component.
    """
    if isinstance(node, str):
        return node
    elif isinstance(node, int):
        return render_ops.value(get_substitution(substitutions, node))

    attributes = resolve_attributes(node.attributes, substitutions)
    if isinstance(node.name, str):
        for name, value in attributes.items():
            if inspect.isawaitable(value):
                raise AwaitableAttributeValue(
                    'Awaitable substitutions can\'t be used as element '
                    + 'attributes; only components can receive them!',
                    name)

    children = _render_children(node.children, substitutions, render_ops)
    if inspect.isawaitable(children):
        return _PendingRender(
            _combine_when_ready(node, attributes, children, render_ops),
            holding=(children,))

    return _combine(node, attributes, children, render_ops)


def render_to_text(
        node: PositionalNode,
        substitutions: Sequence[object]
        ) -> MaybeAwaitable[str]:
    """Like ``render``, but using the text render ops, and guaranteeing
    that the (eventual) result is a string, even if the whole template
    was a single substitution.
    """
    result = render(node, substitutions, TEXT_RENDER_OPS)
    if inspect.isawaitable(result):
        return _PendingRender(_to_text_when_ready(result), holding=(result,))

    return to_text(result)


def close_pending(*pending: object) -> None:
    """Closes render results that will never be awaited, along with
    everything they were waiting on, so that none of them complain
    about never having been awaited. Anything that isn't a coroutine
    (or a pending render) is ignored.
    """
    for awaitable in pending:
        if isinstance(awaitable, _PendingRender) or inspect.iscoroutine(
            awaitable
        ):
            awaitable.close()


def get_substitution(substitutions: Sequence[object], index: int) -> object:
    if not 0 <= index < len(substitutions):
        raise SubstitutionIndexError(
            'Template references a substitution that wasn\'t supplied! '
            + 'Did you pass the wrong number of values for the template?',
            index,
            len(substitutions))

    return substitutions[index]


def resolve_attributes(
        attributes: Mapping[str, AttributeValue],
        substitutions: Sequence[object]
        ) -> dict[str, object]:
    """Resolves attribute values against the substitutions. Multi-part
    values are always concatenated into a string. Single-part values
    are passed through as-is, so that (for example) an object can be
    passed to a component as a property; the text renderer converts
    them to strings when it serializes an element.

    This never suspends. Attribute values are rendered immediately, so
    awaitables within multi-part values are rejected.
    """
    resolved: dict[str, object] = {}
    for name, value in attributes.items():
        if isinstance(value, tuple):
            parts: list[str] = []
            for part in value:
                rendered = render(part, substitutions, TEXT_RENDER_OPS)
                if inspect.isawaitable(rendered):
                    raise AwaitableAttributeValue(
                        'Awaitable substitutions can\'t be concatenated '
                        + 'into an attribute value!',
                        name)
                parts.append(to_text(rendered))

            resolved[name] = ''.join(parts)
        else:
            resolved[name] = render(value, substitutions, TEXT_RENDER_OPS)

    return resolved


class _PendingRender[T]:
    """Wraps the coroutine of a pending render. Awaiting it is the same
    as awaiting the coroutine, but closing it before it was ever awaited
    also closes the awaitables it would have waited for. A bare
    coroutine that never started can't do that, since none of its code
    (including any ``finally`` blocks) ever runs.
    """
    __slots__ = ('_coroutine', '_holding')

    def __init__(
            self,
            coroutine: Coroutine[Any, Any, T],
            *,
            holding: Iterable[object]):
        self._coroutine = coroutine
        self._holding = tuple(holding)

    def __await__(self) -> Generator[Any, None, T]:
        return self._coroutine.__await__()

    def close(self) -> None:
        self._coroutine.close()
        close_pending(*self._holding)


def _combine(
        node: PositionalElement,
        attributes: dict[str, object],
        children: Output,
        render_ops: RenderOps
        ) -> MaybeAwaitable[Output]:
    if isinstance(node.name, str):
        return render_ops.element(node.name, attributes, children)

    # Components are trusted to return either output, or an awaitable of it;
    # either way, we hand it back unmodified.
    return node.name({**attributes, 'children': children})


async def _combine_when_ready(
        node: PositionalElement,
        attributes: dict[str, object],
        pending_children: Awaitable[Output],
        render_ops: RenderOps
        ) -> Output:
    children = await pending_children
    result = _combine(node, attributes, children, render_ops)
    if inspect.isawaitable(result):
        return await result

    return result


async def _to_text_when_ready(pending: Awaitable[Output]) -> str:
    return to_text(await pending)


def _render_children(
        children: Sequence[PositionalNode],
        substitutions: Sequence[object],
        render_ops: RenderOps
        ) -> MaybeAwaitable[Output]:
    outputs: list[MaybeAwaitable[Output]] = []
    try:
        for child in children:
            outputs.append(render(child, substitutions, render_ops))

    except Exception:
        # Earlier siblings might already have given us pending renders.
        # Those will never be awaited now, so close them to keep them quiet.
        close_pending(*outputs)
        raise

    pending_positions = [
        position for position, output in enumerate(outputs)
        if inspect.isawaitable(output)]
    if pending_positions:
        return _PendingRender(
            _gather_children(outputs, pending_positions, render_ops),
            holding=[outputs[position] for position in pending_positions])

    return render_ops.children(outputs)


async def _gather_children(
        outputs: list[MaybeAwaitable[Output]],
        pending_positions: list[int],
        render_ops: RenderOps
        ) -> Output:
    """Waits for all pending children concurrently, then combines them.
    Each settled result is stored back at its original position, so the
    combined output is always in document order, regardless of which
    sibling finished first.
    """
    settled: list[Output] = list(outputs)

    async def settle(position: int) -> None:
        settled[position] = await outputs[position]

    try:
        async with anyio.create_task_group() as task_group:
            for position in pending_positions:
                task_group.start_soon(settle, position)

    except BaseException as exc:
        # Siblings can be cancelled before they ever get to await their
        # render; closing the ones that did finish is a no-op.
        close_pending(*(outputs[position] for position in pending_positions))

        # The first failure cancels the remaining siblings, so there's almost
        # always exactly one exception in the group. In that case, re-raise
        # the component's exception itself, so that it reaches the caller
        # unchanged.
        if isinstance(exc, BaseExceptionGroup) and len(exc.exceptions) == 1:
            raise exc.exceptions[0] from None
        raise

    return render_ops.children(settled)
