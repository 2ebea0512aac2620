from __future__ import annotations

import sys
from collections.abc import Iterator, Mapping
from typing import Any, TypeVar


if sys.version_info >= (3, 11):
    from typing import Self, TypeAlias
else:
    from typing_extensions import Self, TypeAlias


K = TypeVar("K")
V = TypeVar("V")


class frozendict(Mapping[K, V]):  # noqa: N801
    """Immutable, hashable mapping used as an association tree node.

    Association trees are nested ``frozendict`` instances keyed by
    relationship name; a leaf is an empty ``frozendict``. Being hashable,
    tree nodes can be passed straight into ``lru_cache``-d lookups.

    Example:
        >>> tree = frozendict(posts=frozendict(comments=frozendict()))
        >>> tree["posts"]
        <frozendict {'comments': <frozendict {}>}>
        >>> tree.merge(frozendict(posts=frozendict(author=frozendict())))
        <frozendict {'posts': <frozendict {'comments': <frozendict {}>, 'author': <frozendict {}>}>}>
    """

    __slots__ = ("_dict", "_hash")

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        self._dict: dict[K, V] = dict(*args, **kwargs)
        self._hash = hash(frozenset(self._dict.items()))

    def __getitem__(self, key: K) -> V:
        return self._dict[key]

    def __contains__(self, key: Any) -> bool:
        return key in self._dict

    def copy(self, **add_or_replace: Any) -> Self:
        """Return a new instance with ``add_or_replace`` applied on top."""
        return type(self)(self, **add_or_replace)

    def merge(self, other: Mapping[K, V]) -> Self:
        """Deep-merge ``other`` into a new instance.

        Values present on both sides are merged recursively when both are
        mappings; otherwise the value from ``other`` wins.
        """
        merged: dict[K, Any] = dict(self._dict)
        for key, value in other.items():
            current = merged.get(key)
            if isinstance(current, frozendict) and isinstance(value, Mapping):
                merged[key] = current.merge(value)
            else:
                merged[key] = value

        return type(self)(merged)

    def __iter__(self) -> Iterator[K]:
        return iter(self._dict)

    def __len__(self) -> int:
        return len(self._dict)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self._dict!r}>"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, frozendict):
            return self._dict == other._dict

        if isinstance(other, dict):
            return self._dict == other

        return NotImplemented

    def __hash__(self) -> int:
        return self._hash


AssociationTree: TypeAlias = "frozendict[str, AssociationTree]"

EMPTY_TREE: frozendict[str, Any] = frozendict()
