class LitmarkupException(Exception):
    """Base class for all errors raised by litmarkup itself. Note that
    exceptions raised by components are never wrapped; they propagate
    unchanged to whoever called render.
    """


class MarkupSyntaxError(LitmarkupException, ValueError):
    """Raised when the template markup (after marker insertion) isn't
    well-formed. The parser's diagnostic text is the first arg; the
    original lxml error is chained as the cause.
    """


class UnresolvedComponent(LitmarkupException, LookupError):
    """Raised at parse time when a capitalized tag name can't be found
    in the class map, the default components, or the global component
    registry.
    """

    def __init__(self, message: str, name: str):
        super().__init__(message, name)
        self.name = name


class SubstitutionIndexError(LitmarkupException, IndexError):
    """Raised at render time when the positional tree references a
    substitution index that doesn't exist in the substitutions passed
    to render. Trees are substitution-independent, so this can only be
    checked while rendering.
    """

    def __init__(self, message: str, index: int, count: int):
        super().__init__(message, index, count)
        self.index = index
        self.count = count


class AsyncRenderRequired(LitmarkupException, RuntimeError):
    """Raised by ``render_sync`` when one of the components returned an
    awaitable. Use ``render_async`` for those templates instead.
    """


class AwaitableAttributeValue(LitmarkupException, TypeError):
    """Raised at render time when an awaitable substitution is used
    somewhere it would have to be converted to text immediately: as part
    of a multi-part attribute value, or as an attribute of a plain
    element. Awaitables can only be passed whole to components, or used
    in child position.
    """

    def __init__(self, message: str, name: str):
        super().__init__(message, name)
        self.name = name
