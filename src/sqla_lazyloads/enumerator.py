from __future__ import annotations

import logging
from collections.abc import Callable, Hashable, Iterable, Iterator
from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeVar, final, runtime_checkable

from .tools import identity_of, resolve_association


logger = logging.getLogger(__name__)

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)
_R = TypeVar("_R")


@runtime_checkable
class ArrayLike(Protocol[T_co]):
    """Capability interface accepted wherever a record list is expected.

    Anything providing these methods may stand in for a concrete sequence of
    records; ``__array_like__`` lets array-normalizing helpers such as
    :func:`~sqla_lazyloads.tools.wrap_records` recognize it and skip wrapping.
    """

    def __len__(self) -> int: ...

    def __iter__(self) -> Iterator[T_co]: ...

    def is_empty(self) -> bool: ...

    def map(self, func: Callable[[T_co], _R]) -> Iterator[_R]: ...

    def __array_like__(self) -> ArrayLike[T_co]: ...


@dataclass(slots=True, frozen=True)
class _AssociationSequence:
    """Re-iterable lazy walk over the targets of one association.

    Configuration is captured at construction, so an instance always
    describes the same logical sequence.
    """

    parent_records: Iterable[Any]
    association_name: str
    compact: bool
    dedup: bool

    def __iter__(self) -> Iterator[Any]:
        seen: set[Hashable] | None = set() if self.dedup else None

        for record in self.parent_records:
            if record is None:
                continue

            association = resolve_association(record, self.association_name)
            if association.is_collection:
                for target in association.targets():
                    if seen is not None and not _first_sight(seen, target):
                        continue
                    yield target
                continue

            target = association.target
            # dedup is checked before the compact null exclusion, so a repeated
            # None is suppressed as a repeat rather than as a null
            if seen is not None and not _first_sight(seen, target):
                continue
            if self.compact and target is None:
                continue
            yield target

    def count(self) -> int:
        return sum(1 for _ in self)


def _first_sight(seen: set[Hashable], target: Any) -> bool:
    key = identity_of(target)
    if key in seen:
        return False
    seen.add(key)

    return True


@dataclass(slots=True)
class _EnumeratorCache:
    generation: int
    size: int | None = None
    sequence: _AssociationSequence | None = None


@final
class AssociationEnumerator(Generic[T]):
    """Lazy, sized view over one association across many parent records.

    Iterating yields, in parent-record order, the already loaded targets of
    ``association_name`` on each record: every element of a to-many
    collection, or the single target of a to-one relationship (``None``
    included unless the view is compact). ``None`` parent records are
    skipped. Nothing is loaded from the database; relationships missing from
    an instance's state contribute nothing (to-many) or ``None`` (to-one).

    The size and the underlying sequence are computed once and cached under
    the current generation. :meth:`uniq` bumps the generation, which retires
    both caches at once.

    Instances are not thread-safe. Calling :meth:`uniq` while another
    caller is iterating the same instance is undefined behaviour.

    Example:
        >>> posts = AssociationEnumerator(users, "posts")
        >>> len(posts)
        4
        >>> posts.uniq()
        >>> [p.id for p in posts]
        [1, 2, 3]
    """

    __slots__ = (
        "_association_name",
        "_cache",
        "_compact",
        "_dedup",
        "_generation",
        "_parent_records",
    )

    def __init__(
        self,
        parent_records: Iterable[Any],
        association_name: str,
        *,
        compact: bool = False,
    ) -> None:
        if isinstance(parent_records, Iterator):
            parent_records = tuple(parent_records)

        self._parent_records = parent_records
        self._association_name = association_name
        self._compact = compact
        self._dedup = False
        self._generation = 0
        self._cache = _EnumeratorCache(generation=0)

    @property
    def parent_records(self) -> Iterable[Any]:
        return self._parent_records

    @property
    def association_name(self) -> str:
        return self._association_name

    @property
    def compact_mode(self) -> bool:
        """Whether ``None`` to-one targets are excluded."""
        return self._compact

    @property
    def dedup(self) -> bool:
        """Whether repeated targets are suppressed (see :meth:`uniq`)."""
        return self._dedup

    @property
    def generation(self) -> int:
        """Configuration generation the caches are valid for."""
        return self._generation

    def _current_cache(self) -> _EnumeratorCache:
        if self._cache.generation != self._generation:
            self._cache = _EnumeratorCache(generation=self._generation)

        return self._cache

    def _sequence(self) -> _AssociationSequence:
        cache = self._current_cache()
        if cache.sequence is None:
            cache.sequence = _AssociationSequence(
                parent_records=self._parent_records,
                association_name=self._association_name,
                compact=self._compact,
                dedup=self._dedup,
            )

        return cache.sequence

    def __iter__(self) -> Iterator[T]:
        return iter(self._sequence())

    def each(self, func: Callable[[T], Any]) -> None:
        """Call ``func`` with every element in order."""
        for item in self:
            func(item)

    def map(self, func: Callable[[T], _R]) -> Iterator[_R]:
        """Lazily apply ``func`` to every element."""
        return map(func, self)

    def all(self, predicate: Callable[[T], Any] = bool) -> bool:
        """Return ``False`` on the first element failing ``predicate``.

        Stops iterating at that element; an empty view is ``True``.
        """
        for item in self:
            if not predicate(item):
                return False

        return True

    def size(self) -> int:
        """Number of elements iteration would produce, cached per generation."""
        cache = self._current_cache()
        if cache.size is None:
            cache.size = self._sequence().count()

        return cache.size

    def __len__(self) -> int:
        return self.size()

    def is_empty(self) -> bool:
        return self.size() == 0

    def compact(self) -> AssociationEnumerator[T]:
        """Return a new view excluding ``None`` to-one targets.

        The dedup mode of this view is not carried over: call :meth:`uniq`
        on the result if both are wanted.
        """
        return AssociationEnumerator(
            self._parent_records,
            self._association_name,
            compact=True,
        )

    def uniq(self) -> None:
        """Suppress repeated targets, in place.

        Repeats are detected across the whole pass, not per parent record.
        Idempotent.
        """
        self._dedup = True
        self._generation += 1
        logger.debug(
            "dedup enabled for %r, caches invalidated (generation %d)",
            self._association_name,
            self._generation,
        )

    def __array_like__(self) -> AssociationEnumerator[T]:
        return self

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__} {self._association_name!r} "
            f"compact={self._compact} dedup={self._dedup}>"
        )
