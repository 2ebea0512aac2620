from __future__ import annotations

import logging
from typing import ClassVar, final


logger = logging.getLogger(__name__)


@final
class Config:
    """Process-wide lazy-loading settings.

    A singleton in the same manner as :class:`~sqla_lazyloads.node.Node`,
    except that it needs no explicit initialization: the first ``Config()``
    call creates it with defaults.

    ``auto_preload``: when enabled, every query result is treated as a lazy
    context without a declared association tree, so contexts built for nested
    associations never carry one either.
    """

    __instance: ClassVar[Config | None] = None
    _auto_preload: bool

    def __new__(cls, *, auto_preload: bool | None = None) -> Config:
        if cls.__instance is None:
            instance = super().__new__(cls)
            instance._auto_preload = False
            cls.__instance = instance

        if auto_preload is not None:
            cls.__instance.set_auto_preload(auto_preload)

        return cls.__instance

    @property
    def auto_preload(self) -> bool:
        return self._auto_preload

    def is_auto_preload(self) -> bool:
        """Accessor form of :attr:`auto_preload`, read at call time."""
        return self._auto_preload

    def set_auto_preload(self, value: bool) -> None:
        if value != self._auto_preload:
            logger.debug("auto_preload switched to %s", value)
        self._auto_preload = bool(value)

    @classmethod
    def reset(cls) -> None:
        """Drop the singleton so the next ``Config()`` starts from defaults."""
        cls.__instance = None


def init_config(*, auto_preload: bool = False) -> Config:
    """Configure the global :class:`Config` singleton at startup.

    Example:
        >>> config = init_config(auto_preload=True)
        >>> config.auto_preload
        True
    """
    return Config(auto_preload=auto_preload)
