from collections.abc import Mapping

import anyio


def Bold(props: Mapping[str, object]) -> str:  # noqa: N802
    return f'<b>{props["children"]}</b>'


def Italic(props: Mapping[str, object]) -> str:  # noqa: N802
    return f'<i>{props["children"]}</i>'


def Passthrough(props: Mapping[str, object]) -> object:  # noqa: N802
    """An identity component: renders exactly its children, so that
    templates using it can be compared against their own source text.
    """
    return props['children']


async def Delayed(props: Mapping[str, object]) -> str:  # noqa: N802
    """Waits for ``delay`` milliseconds before wrapping its children
    in square brackets.
    """
    await anyio.sleep(int(props['delay']) / 1000)  # type: ignore[arg-type]
    return f'[{props["children"]}]'


async def Exploding(props: Mapping[str, object]) -> str:  # noqa: N802
    await anyio.sleep(0)
    raise ZeroDivisionError(props.get('message', 'boom'))


class EventLog:
    """Creates a component that records when each of its invocations
    starts and finishes, which lets tests check for concurrency without
    relying upon wall clock timing.
    """

    def __init__(self):
        self.events: list[tuple[str, str]] = []

    async def __call__(self, props: Mapping[str, object]) -> str:
        name = str(props['name'])
        self.events.append(('start', name))
        await anyio.sleep(int(props['delay']) / 1000)  # type: ignore[arg-type]
        self.events.append(('end', name))
        return f'({props["children"]})'
