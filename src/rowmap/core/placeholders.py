"""Positional placeholder expansion for IN-clauses.

``expand`` walks a SQL fragment left to right.  The k-th ``?`` consumes the
k-th argument; a sequence argument turns that single ``?`` into one ``?`` per
element and its elements are flattened into the parameter list.

    >>> expand("a=? AND b IN (?) AND c=?", 5, [1, 2, 3], 9)
    ('a=? AND b IN (?,?,?) AND c=?', [5, 1, 2, 3, 9])

Placeholders beyond the supplied arguments are left as they are (the driver
reports the mismatch).  An empty sequence expands to nothing, producing
``IN ()``, which the driver also rejects.
"""

from __future__ import annotations

from typing import Any

PLACEHOLDER = "?"

# str/bytes are sequences too, but they bind as single values.
_SEQUENCE_TYPES = (list, tuple, set, frozenset)


def is_sequence_arg(value: Any) -> bool:
    """True when ``value`` expands into multiple placeholders."""
    return isinstance(value, _SEQUENCE_TYPES)


def expand(fragment: str, *args: Any) -> tuple[str, list[Any]]:
    """Rewrite ``fragment`` and flatten ``args`` in placeholder order."""
    if not args:
        return fragment, []

    pieces: list[str] = []
    params: list[Any] = []
    consumed = 0
    start = 0
    while True:
        pos = fragment.find(PLACEHOLDER, start)
        if pos < 0 or consumed >= len(args):
            break
        pieces.append(fragment[start:pos])
        value = args[consumed]
        consumed += 1
        if is_sequence_arg(value):
            items = list(value)
            pieces.append(",".join([PLACEHOLDER] * len(items)))
            params.extend(items)
        else:
            pieces.append(PLACEHOLDER)
            params.append(value)
        start = pos + len(PLACEHOLDER)

    pieces.append(fragment[start:])
    return "".join(pieces), params


__all__ = ["PLACEHOLDER", "expand", "is_sequence_arg"]
