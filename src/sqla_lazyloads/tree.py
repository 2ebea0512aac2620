from __future__ import annotations

import sys
from collections.abc import Iterable, Iterator, Mapping
from functools import lru_cache
from typing import Any, Protocol, Union, runtime_checkable


if sys.version_info >= (3, 11):
    from typing import TypeAlias
else:
    from typing_extensions import TypeAlias

from sqlalchemy import orm

from .datastructures import EMPTY_TREE, AssociationTree, frozendict
from .node import Node


LoadSpec: TypeAlias = Union[str, Mapping[str, Any], Iterable[Any], None]


@runtime_checkable
class TreeProvider(Protocol):
    """Looks up the declared subtree of one association."""

    def subtree_for(
        self, tree: AssociationTree | None, name: str
    ) -> AssociationTree | None: ...


def build_tree(
    *loads: LoadSpec,
    model: type[orm.DeclarativeBase] | None = None,
    node: Node | None = None,
) -> AssociationTree:
    """Build an association tree from load declarations.

    Each declaration may be a dotted path, a mapping of name to nested
    declarations, or an iterable of declarations. Branches sharing a name are
    merged.

    Args:
        *loads: Load declarations.
        model: When given, every path is validated against the relationship
            graph starting at this model.
        node: Relationship graph used for validation. Defaults to the
            :class:`Node` singleton.

    Returns:
        Nested ``frozendict`` of relationship names; leaves are empty.

    Raises:
        ValueError: A path segment is empty, or (with ``model``) is not a
            relationship of the model reached so far.
        TypeError: A declaration is neither a string, mapping nor iterable.

    Example::

        build_tree("posts.comments", {"posts": ["author", "tags"]}, "profile")
        # <frozendict {'posts': {'comments': {}, 'author': {}, 'tags': {}}, 'profile': {}}>
    """
    if model is not None and node is None:
        node = Node()

    tree: AssociationTree = EMPTY_TREE
    for path in _iter_paths(loads, ()):
        if model is not None:
            _validate_path(model, ".".join(path), node)
        tree = tree.merge(_path_to_tree(path))

    return tree


def _split(dotted: str) -> tuple[str, ...]:
    parts = tuple(dotted.split("."))
    if not all(parts):
        raise ValueError(f"Empty segment in association path {dotted!r}")

    return parts


def _iter_paths(load: LoadSpec, prefix: tuple[str, ...]) -> Iterator[tuple[str, ...]]:
    """Flatten a load declaration into root-to-leaf name tuples."""
    if load is None:
        return

    if isinstance(load, str):
        yield (*prefix, *_split(load))
        return

    if isinstance(load, Mapping):
        for key, nested in load.items():
            if not isinstance(key, str):
                raise TypeError(f"Association names must be strings, got {key!r}")
            head = (*prefix, *_split(key))
            yield head
            yield from _iter_paths(nested, head)
        return

    if isinstance(load, Iterable):
        for item in load:
            yield from _iter_paths(item, prefix)
        return

    raise TypeError(f"Cannot build an association tree from {load!r}")


def _path_to_tree(path: tuple[str, ...]) -> AssociationTree:
    subtree: AssociationTree = EMPTY_TREE
    for segment in reversed(path):
        subtree = frozendict({segment: subtree})

    return subtree


@lru_cache(maxsize=1028)
def _validate_path(
    model: type[orm.DeclarativeBase],
    dotted: str,
    node: Node,
) -> None:
    """Check every segment of ``dotted`` is a relationship reachable from ``model``."""
    current_cls: type[orm.DeclarativeBase] = model
    for segment in dotted.split("."):
        rel = node.relationship(current_cls, segment)
        if rel is None:
            raise ValueError(
                f"No relationship '{segment}' on {current_cls.__name__} "
                f"(resolving '{dotted}' from {model.__name__})"
            )
        current_cls = rel.mapper.class_


@lru_cache(maxsize=2048)
def _subtree_for(tree: AssociationTree, name: str) -> AssociationTree | None:
    return tree.get(name)


class AssociationTreeProvider:
    """Default :class:`TreeProvider` over ``frozendict`` trees.

    Returns the branch stored under ``name`` (an empty tree for a leaf), or
    ``None`` when there is no tree or no such branch. Plain nested dicts are
    accepted and normalized through :func:`build_tree`.
    """

    __slots__ = ()

    def subtree_for(
        self, tree: Mapping[str, Any] | None, name: str
    ) -> AssociationTree | None:
        if tree is None:
            return None
        if not isinstance(tree, frozendict):
            tree = build_tree(tree)

        return _subtree_for(tree, name)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"
