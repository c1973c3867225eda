"""Immutable set of names with lexicographic iteration order.

Diagnostics list directory names and states; iterating in sorted order keeps
error messages identical from one run to the next regardless of the order in
which the filesystem returned the entries.
"""

from __future__ import annotations

import collections.abc as cabc
import typing as typ


class SortedSet(cabc.Set[str]):
    """A frozen set of strings that always iterates in sorted order.

    Examples
    --------
    >>> names = SortedSet(["msgdir", "a-repo"])
    >>> list(names)
    ['a-repo', 'msgdir']
    >>> str(names)
    '[a-repo msgdir]'

    """

    __slots__ = ("_items",)

    def __init__(self, items: cabc.Iterable[str] = ()) -> None:
        """Initialise from any iterable of strings, dropping duplicates."""
        self._items: tuple[str, ...] = tuple(sorted(set(items)))

    def __contains__(self, item: object) -> bool:
        """Return True if ``item`` is a member."""
        return item in self._items

    def __iter__(self) -> typ.Iterator[str]:
        """Iterate members in lexicographic order."""
        return iter(self._items)

    def __len__(self) -> int:
        """Return the number of members."""
        return len(self._items)

    def __hash__(self) -> int:
        """Hash like a frozenset of the same members."""
        return self._hash()

    def __repr__(self) -> str:
        """Return a constructor-style representation."""
        return f"SortedSet({list(self._items)!r})"

    def __str__(self) -> str:
        """Return the members as ``[a b c]``."""
        return "[" + " ".join(self._items) + "]"

    def without(self, item: str) -> SortedSet:
        """Return a copy with ``item`` removed, if present."""
        return SortedSet(name for name in self._items if name != item)
