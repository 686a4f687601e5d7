"""Markers are how substitutions survive the trip through the markup
parser. Before parsing, each gap between two literal segments gets a
marker token containing the substitution's index; after parsing, text
content (and attribute values) are split back apart on those tokens.
"""
from __future__ import annotations

import re
from collections.abc import Sequence

MARKER_PREFIX = '[[['
MARKER_SUFFIX = ']]]'
# Note the capture group: re.split includes captured groups in its result,
# which gives us the indices interleaved with the literal segments.
_MARKER_PATTERN = re.compile(r'\[\[\[(\d+)\]\]\]')


def encode_marker(index: int) -> str:
    if index < 0:
        raise ValueError('Substitution indices cannot be negative!', index)
    return f'{MARKER_PREFIX}{index}{MARKER_SUFFIX}'


def join_with_markers(strings: Sequence[str]) -> str:
    """Concatenates the literal segments of a template, putting a marker
    between every pair of adjacent segments. Segment ``i`` is followed
    by the marker for substitution ``i``; the final segment is followed
    by nothing.
    """
    last_index = len(strings) - 1
    return ''.join(
        segment if index == last_index
        else f'{segment}{encode_marker(index)}'
        for index, segment in enumerate(strings))


def collapse_whitespace(text: str) -> str:
    """Condenses any leading or trailing whitespace into a single
    space, leaving everything in between untouched. Text that is nothing
    but whitespace becomes a single space. This mostly matches the way
    HTML treats whitespace, but avoids long runs of indentation in the
    output.

    > Example
    __embed__: 'code/python'
        collapse_whitespace('   Hello,   world\n  ')  # ' Hello,   world '
    """
    stripped = text.strip()
    if not stripped:
        return ' ' if text else ''

    leading = ' ' if text[0].isspace() else ''
    trailing = ' ' if text[-1].isspace() else ''
    return f'{leading}{stripped}{trailing}'


def split_markers(
        text: str,
        *,
        collapse: bool = True
        ) -> str | int | tuple[str | int, ...]:
    """Splits raw text content back apart on its marker tokens. The
    result is:
    ++  the literal text itself, if there were no markers
    ++  a bare index, if the text was exactly one marker
    ++  otherwise, a tuple of literal segments interleaved with
        indices, with any empty literal segments dropped
    """
    if collapse:
        text = collapse_whitespace(text)

    parts = _MARKER_PATTERN.split(text)
    if len(parts) == 1:
        return text

    # re.split always gives us an odd number of parts: even positions are
    # the literal segments, odd positions are the captured indices.
    decoded: list[str | int] = []
    for position, part in enumerate(parts):
        if position % 2:
            decoded.append(int(part))
        elif part:
            decoded.append(part)

    if len(decoded) == 1 and isinstance(decoded[0], int):
        return decoded[0]

    return tuple(decoded)
