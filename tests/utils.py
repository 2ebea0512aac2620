from __future__ import annotations

from typing import Any, TypeVar

from sqlalchemy.orm.attributes import set_committed_value


_M = TypeVar("_M")


def loaded(instance: _M, **relationships: Any) -> _M:
    """Populate relationships as if eager-loaded, without firing backref events."""
    for key, value in relationships.items():
        set_committed_value(instance, key, value)

    return instance
