from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from .config import Config
from .context import Context, ContextRegistry
from .datastructures import AssociationTree
from .enumerator import AssociationEnumerator
from .tree import AssociationTreeProvider, TreeProvider


logger = logging.getLogger(__name__)


def _config_auto_preload() -> bool:
    return Config().is_auto_preload()


@dataclass(slots=True, frozen=True)
class ContextBuilder:
    """Builds the context for records reached through a lazily accessed association.

    Given the context a batch of parent records was loaded in and the name
    of the association just traversed, :meth:`prepare` publishes a new
    context whose records are every parent's already loaded targets of that
    association (as a lazy :class:`AssociationEnumerator`) and whose tree is
    the declared subtree for the association.

    Args:
        auto_preload: Accessor for the auto-preload flag, read on every
            :meth:`prepare` call. Defaults to the :class:`Config` singleton.
        tree_provider: Looks up the child association tree.
        registry: Creates the returned context.
    """

    auto_preload: Callable[[], bool] = field(default=_config_auto_preload)
    tree_provider: TreeProvider = field(default_factory=AssociationTreeProvider)
    registry: ContextRegistry = field(default=Context)

    def prepare(self, parent_context: Context, association_name: str) -> Context:
        """Create and register the context for ``association_name`` under ``parent_context``.

        Pure construction: records are not enumerated and ``parent_context``
        is left untouched. Errors from the tree provider propagate; errors
        resolving the association surface later, when the new context's
        records are first enumerated.
        """
        records: AssociationEnumerator[Any] = AssociationEnumerator(
            parent_context.records,
            association_name,
        )
        association_tree = self._child_association_tree(parent_context, association_name)
        logger.debug(
            "prepared lazy context for %r (subtree %s)",
            association_name,
            "found" if association_tree is not None else "absent",
        )

        return self.registry.register(records, association_tree)

    def _child_association_tree(
        self, parent_context: Context, association_name: str
    ) -> AssociationTree | None:
        # auto preload derives nested loading without a declared tree
        if self.auto_preload():
            return None

        return self.tree_provider.subtree_for(parent_context.association_tree, association_name)


def prepare(parent_context: Context, association_name: str) -> Context:
    """Shorthand for ``ContextBuilder().prepare(parent_context, association_name)``.

    Uses the global :class:`Config` for the auto-preload flag and the default
    tree provider and registry.
    """
    return ContextBuilder().prepare(parent_context, association_name)


def lazy_cache_info() -> dict[str, Any]:
    """Return LRU cache statistics for all internal caches."""
    from .tree import _subtree_for, _validate_path

    return {fn.__name__: fn.cache_info() for fn in (_subtree_for, _validate_path)}


def lazy_cache_clear() -> None:
    """Clear all internal LRU caches."""
    from .tree import _subtree_for, _validate_path

    for fn in (_subtree_for, _validate_path):
        fn.cache_clear()
