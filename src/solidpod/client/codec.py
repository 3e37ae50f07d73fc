"""Conversion between a sequence of entries and the newline-delimited text
stored in a pod resource.

Every entry is written as its `str()` form followed by a single `"\\n"`:

```pycon
>>> encode(['one', 2, True])
'one\\n2\\nTrue\\n'

>>> decode('one\\n2\\nTrue\\n')
['one', '2', 'True']
```

Entries must not themselves contain a newline; this is not checked.
"""

from typing import Any, Iterable

SEPARATOR = '\n'


def encode(entries: Iterable[Any]) -> str:
    """Serialize `entries` as newline-terminated lines. An empty sequence
    yields the empty string."""
    return ''.join(str(entry) + SEPARATOR for entry in entries)


def decode(text: str) -> list[str]:
    """Split `text` into entries on `"\\n"`.

    Only the single empty segment created by the terminating newline is
    dropped; any other empty segments are kept as empty-string entries. So
    `decode('a\\n\\n')` is `['a', '']`, and `decode('')` is `[]`. Text that
    lacks a terminating newline still decodes its last segment.
    """
    if text == '':
        return []
    segments = text.split(SEPARATOR)
    if segments[-1] == '':
        segments.pop()
    return segments
