"""
Version providers consumed by the cache manager.

The cache only needs one accessor per registry. The registries here are
in-memory counterparts used to wire the cache in tests and small hosts:
every register/unregister bumps a monotonically increasing counter.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class StyleVersionProvider(Protocol):
    def get_style_update_count(self) -> int: ...


@runtime_checkable
class BlockVersionProvider(Protocol):
    def get_block_update_count(self) -> int: ...


class _CountingRegistry:
    def __init__(self) -> None:
        self._entries: Dict[str, Any] = {}
        self._update_count = 0

    def register(self, name: str, definition: Any = None) -> None:
        self._entries[name] = definition
        self.bump()

    def unregister(self, name: str) -> bool:
        if name not in self._entries:
            return False
        del self._entries[name]
        self.bump()
        return True

    def get(self, name: str) -> Optional[Any]:
        return self._entries.get(name)

    def is_registered(self, name: str) -> bool:
        return name in self._entries

    def bump(self) -> int:
        self._update_count += 1
        logger.debug(f"{type(self).__name__} update count -> {self._update_count}")
        return self._update_count

    def __len__(self) -> int:
        return len(self._entries)


class BlockStylesRegistry(_CountingRegistry):
    """Registered block styles; bumps the style version on every change."""

    def get_style_update_count(self) -> int:
        return self._update_count


class BlockTypeRegistry(_CountingRegistry):
    """Registered block types; bumps the block version on every change."""

    def get_block_update_count(self) -> int:
        return self._update_count
