from __future__ import annotations

from collections.abc import Mapping
from typing import ClassVar, final

from sqlalchemy import orm

from .datastructures import frozendict


RelationshipMap = Mapping[str, orm.RelationshipProperty[orm.DeclarativeBase]]


@final
class Node:
    """Singleton registry of the relationships declared on each mapped model.

    Maps every model class to ``{relationship key: RelationshipProperty}``.
    The association-tree builder walks it to validate dotted load paths
    (``"posts.comments"``) before any context is built from them.
    """

    __instance: ClassVar[Node | None] = None
    _node: Mapping[type[orm.DeclarativeBase], RelationshipMap]

    def __new__(
        cls,
        node: Mapping[type[orm.DeclarativeBase], RelationshipMap] | None = None,
    ) -> Node:
        if cls.__instance is None:
            instance = super().__new__(cls)
            if node is not None:
                instance.set_node(node)

            cls.__instance = instance

        if not getattr(cls.__instance, "_node", None):
            raise RuntimeError("Node is not initialized or empty")

        return cls.__instance

    def get(self, model: type[orm.DeclarativeBase]) -> RelationshipMap:
        """Relationships of ``model`` keyed by name, empty if the model is unknown."""
        return self.node.get(model, frozendict())

    def relationship(
        self, model: type[orm.DeclarativeBase], key: str
    ) -> orm.RelationshipProperty[orm.DeclarativeBase] | None:
        """Look up a single relationship by key, ``None`` when absent."""
        return self.get(model).get(key)

    def __getitem__(self, model: type[orm.DeclarativeBase]) -> RelationshipMap:
        """Look up relationships for *model*, raising ``KeyError`` if not found."""
        return self.node[model]

    @property
    def node(self) -> Mapping[type[orm.DeclarativeBase], RelationshipMap]:
        """The underlying model-to-relationships mapping (read-only)."""
        return self._node

    def set_node(self, node: Mapping[type[orm.DeclarativeBase], RelationshipMap]) -> None:
        self._node = node

    @classmethod
    def reset(cls) -> None:
        """Destroy the singleton, allowing re-initialization (primarily for tests)."""
        cls._node = {}
        cls.__instance = None


def get_node(
    base: type[orm.DeclarativeBase],
) -> Mapping[type[orm.DeclarativeBase], RelationshipMap]:
    """Collect the relationship graph of every mapper registered on ``base``.

    Args:
        base: SQLAlchemy declarative base class.

    Returns:
        Frozen mapping of model class to its relationships keyed by name.

    Raises:
        AssertionError: If base is not a direct subclass of orm.DeclarativeBase.
    """
    assert orm.DeclarativeBase in getattr(base, "__bases__", ()), (
        "base must be a subclass of orm.DeclarativeBase"
    )

    return frozendict({
        mapper.class_: frozendict(mapper.relationships.items())
        for mapper in base.registry.mappers
    })


def init_node(node: Mapping[type[orm.DeclarativeBase], RelationshipMap]) -> None:
    """Initialize the global Node singleton.

    Call once during application startup, before building association trees
    validated against models.

    Example:
        >>> from myapp.models import Base
        >>> init_node(get_node(Base))
    """
    Node(node)
