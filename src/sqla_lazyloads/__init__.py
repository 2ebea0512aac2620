"""Lazy association preloading for SQLAlchemy.

sqla_lazyloads defers eager-loading decisions until an association is
actually traversed. Records loaded together share a ``Context``; when one of
them touches an association, ``prepare(context, "posts")`` builds the context
for *all* the posts already loaded on those records, so the next level can be
preloaded in one go instead of one query per record. Nothing here emits SQL:
it only re-shapes what is already in memory.
"""

import logging

from ._version import __version__, __version_tuple__
from .config import Config, init_config
from .context import Context, ContextRegistry
from .core import ContextBuilder, lazy_cache_clear, lazy_cache_info, prepare
from .datastructures import EMPTY_TREE, AssociationTree, frozendict
from .enumerator import ArrayLike, AssociationEnumerator
from .node import Node, get_node, init_node
from .tools import (
    ResolvedAssociation,
    identity_of,
    is_array_like,
    resolve_association,
    wrap_records,
)
from .tree import AssociationTreeProvider, TreeProvider, build_tree


logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = (
    "EMPTY_TREE",
    "ArrayLike",
    "AssociationEnumerator",
    "AssociationTree",
    "AssociationTreeProvider",
    "Config",
    "Context",
    "ContextBuilder",
    "ContextRegistry",
    "Node",
    "ResolvedAssociation",
    "TreeProvider",
    "__version__",
    "__version_tuple__",
    "build_tree",
    "frozendict",
    "get_node",
    "identity_of",
    "init_config",
    "init_node",
    "is_array_like",
    "lazy_cache_clear",
    "lazy_cache_info",
    "prepare",
    "resolve_association",
    "wrap_records",
)
