from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Protocol

from sqlalchemy import orm

from .datastructures import AssociationTree
from .enumerator import ArrayLike
from .node import Node
from .tools import wrap_records
from .tree import LoadSpec, build_tree


class ContextRegistry(Protocol):
    """Creates the context object published for a lazy-access event."""

    def register(
        self,
        records: ArrayLike[Any] | Iterable[Any],
        association_tree: AssociationTree | None = None,
    ) -> Context: ...


@dataclass(slots=True, frozen=True)
class Context:
    """Records loaded together, plus the associations known to be needed for them.

    ``records`` is either a concrete sequence or any :class:`ArrayLike`
    view (typically an :class:`~sqla_lazyloads.enumerator.AssociationEnumerator`).
    ``association_tree`` is ``None`` when nothing is declared below this
    level.

    The class itself satisfies :class:`ContextRegistry` through
    :meth:`register`.
    """

    records: ArrayLike[Any] | Iterable[Any]
    association_tree: AssociationTree | None = None

    @classmethod
    def register(
        cls,
        records: ArrayLike[Any] | Iterable[Any],
        association_tree: AssociationTree | None = None,
    ) -> Context:
        """Wrap ``records`` so they can be traversed repeatedly and build a context.

        Array-like views are kept as they are, never nested in a list.
        """
        return cls(records=wrap_records(records), association_tree=association_tree)

    @classmethod
    def root(
        cls,
        records: Iterable[Any],
        *loads: LoadSpec,
        model: type[orm.DeclarativeBase] | None = None,
        node: Node | None = None,
    ) -> Context:
        """Context for a freshly loaded query result.

        Example::

            users = unique_scalars(await session.execute(query))
            ctx = Context.root(users, "posts.comments", model=User)
        """
        tree = build_tree(*loads, model=model, node=node) if loads else None

        return cls.register(records, tree)
