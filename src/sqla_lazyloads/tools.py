from __future__ import annotations

from collections.abc import Hashable, Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import sqlalchemy as sa
from sqlalchemy import orm


@dataclass(slots=True, frozen=True)
class ResolvedAssociation:
    """What a record currently holds for one relationship.

    ``target`` is the related instance (or ``None``) for a to-one
    relationship, and the loaded collection for a to-many one.
    """

    relationship: orm.RelationshipProperty[Any]
    target: Any

    @property
    def is_collection(self) -> bool:
        return bool(self.relationship.uselist)

    def targets(self) -> Iterator[Any]:
        """Iterate the loaded targets of a to-many relationship in collection order."""
        value = self.target
        if value is None:
            return iter(())
        if isinstance(value, Mapping):
            # attribute_keyed_dict() and friends
            return iter(value.values())

        return iter(value)


def resolve_association(record: Any, name: str) -> ResolvedAssociation:
    """Read relationship ``name`` of ``record`` from its instance state.

    Only the values already present in the instance's ``__dict__`` are used:
    an unloaded, expired, ``dynamic`` or ``write_only`` relationship resolves
    to ``None`` (to-one) or an empty collection (to-many). Nothing here can
    emit SQL.

    Raises:
        sqlalchemy.exc.NoInspectionAvailable: ``record`` is not a mapped instance.
        ValueError: ``name`` is not a relationship of the record's mapper.
    """
    state = sa.inspect(record)
    relationship = state.mapper.relationships.get(name)
    if relationship is None:
        raise ValueError(
            f"No relationship {name!r} on {type(record).__name__}. "
            f"Available: {sorted(state.mapper.relationships.keys())}"
        )

    return ResolvedAssociation(relationship=relationship, target=state.dict.get(name))


def identity_of(obj: Any) -> Hashable:
    """Key used to decide whether two association targets are "the same".

    Persistent instances compare by identity key, so copies of one row loaded
    through different sessions collapse into one. Anything else (transient or
    pending instances, plain objects) compares by object identity. ``None``
    is its own key.
    """
    if obj is None:
        return None

    state = sa.inspect(obj, raiseerr=False)
    key = getattr(state, "key", None)
    if key is not None:
        return key

    return (type(obj), id(obj))


def is_array_like(value: Any) -> bool:
    """True for lazy views that stand in for a concrete sequence."""
    hook = getattr(value, "__array_like__", None)
    return callable(hook)


def wrap_records(value: Any) -> Iterable[Any]:
    """Normalize ``value`` into something that can be iterated more than once.

    - array-like views are returned through their ``__array_like__`` hook, unwrapped;
    - ``None`` becomes an empty tuple;
    - lists, tuples and other sequences are returned unchanged;
    - a single mapped instance is wrapped into a one-element tuple;
    - any other iterable (generators, ``ScalarResult``, sets) is materialized.
    """
    if is_array_like(value):
        return value.__array_like__()
    if value is None:
        return ()
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
        return value
    if sa.inspect(value, raiseerr=False) is not None:
        return (value,)
    if isinstance(value, Iterable) and not isinstance(value, (str, bytes)):
        return tuple(value)

    return (value,)
