#!/usr/bin/env python3
"""
Theme JSON Cache Manager

Memoizes the merged theme JSON artifact for each of the four origins
(default, blocks, theme, custom) and recomputes it when upstream inputs move.

Implements:
- get_or_compute(origin, generator) → artifact
- clear_cache()
- invalidate_on_external_event(feature_name, args=None)
- needs_update(origin) → bool
- reset(), get_stats(), recent_invalidations()

Validity is an O(1) comparison of two registry counters (style updates,
block type updates) against a snapshot shared by every slot. Any drift
clears all four slots, since each merge may depend on both registries.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from contextlib import contextmanager, nullcontext
from dataclasses import dataclass
from typing import Any, Callable, ContextManager, Deque, Dict, Iterator, List, Optional, Union

from .config import DRIFT_INCREASE_ONLY, CacheConfig
from .observability import InvalidationRecord
from .origins import ALL_ORIGINS, Origin, coerce_origin
from .registry import BlockVersionProvider, StyleVersionProvider

logger = logging.getLogger(__name__)

Generator = Callable[[str], Any]

# Marks an empty slot; None is a valid artifact.
_ABSENT = object()


@dataclass(frozen=True)
class ValidationSnapshot:
    """Registry versions observed when a slot was last (re)computed."""
    last_style_version: int = 0
    last_block_version: int = 0


class ThemeJsonCacheManager:
    """
    Per-context cache of merged theme JSON data.

    Design:
    - One slot per origin, absent or holding an opaque artifact (None included)
    - One snapshot for all slots; drift in either counter clears everything
    - Feature changes (theme support) clear only the origins they reach
    - Generator failures propagate and leave the slot absent
    - Not thread-safe unless built with thread_safe=True or an explicit lock
    """

    def __init__(
        self,
        style_registry: StyleVersionProvider,
        block_registry: BlockVersionProvider,
        config: Optional[CacheConfig] = None,
        lock: Optional[ContextManager] = None,
    ) -> None:
        self.config = config or CacheConfig()
        self._style_registry = style_registry
        self._block_registry = block_registry

        if lock is None and self.config.thread_safe:
            lock = threading.RLock()
        self._lock = lock

        self._events: Deque[Dict[str, Any]] = deque(maxlen=self.config.event_log_size)
        self._init_state()

        logger.debug(
            f"ThemeJsonCacheManager initialized (drift_policy={self.config.drift_policy}, "
            f"thread_safe={self._lock is not None})"
        )

    @classmethod
    def from_config(
        cls,
        config: CacheConfig,
        style_registry: StyleVersionProvider,
        block_registry: BlockVersionProvider,
    ) -> "ThemeJsonCacheManager":
        return cls(style_registry, block_registry, config=config)

    def _init_state(self) -> None:
        self._cache: Dict[Origin, Any] = dict.fromkeys(ALL_ORIGINS, _ABSENT)
        self._snapshot = ValidationSnapshot()
        self.stats = {
            "hits": 0,
            "misses": 0,
            "recomputes": 0,
            "drift_invalidations": 0,
            "explicit_invalidations": 0,
            "clears": 0,
            "generator_failures": 0,
        }

    def _guard(self) -> ContextManager:
        return self._lock if self._lock is not None else nullcontext()

    @property
    def snapshot(self) -> ValidationSnapshot:
        return self._snapshot

    def is_cached(self, origin: Union[str, Origin]) -> bool:
        return self._cache[coerce_origin(origin)] is not _ABSENT

    def clear_cache(self) -> None:
        """Clear the cached merged data for all origins; the snapshot is kept."""
        with self._guard():
            self._clear_slots(ALL_ORIGINS, reason="clear")
            self.stats["clears"] += 1

    def invalidate_on_external_event(self, feature_name: str, args: Any = None) -> None:
        """
        Handle a theme support change by dropping the origins it can affect.

        Args:
            feature_name: The feature that changed (e.g. "editor-color-palette")
            args: Extra data about the change; logged, not used for the decision
        """
        with self._guard():
            origins = self.config.invalidate_on_event
            self._clear_slots(
                origins,
                reason="external_event",
                feature=feature_name,
                detail=None if args is None else repr(args),
            )
            self.stats["explicit_invalidations"] += 1
            logger.info(
                f"Invalidated {', '.join(o.value for o in origins)} after change to {feature_name}"
            )

    def get_or_compute(self, origin: Union[str, Origin], generator: Generator) -> Any:
        """
        Return the merged data for an origin, generating it if missing or stale.

        Args:
            origin: One of default, blocks, theme, custom
            generator: Called with the origin name; returns the merged artifact

        Returns:
            The cached or freshly generated artifact

        Raises:
            InvalidOriginError: origin is not one of the four known origins
            Whatever the generator or the version registries raise
        """
        key = coerce_origin(origin)

        with self._guard():
            if not self.needs_update(key):
                self.stats["hits"] += 1
                logger.debug(f"Cache hit for {key.value}")
                return self._cache[key]

            self.stats["misses"] += 1
            try:
                artifact = generator(key.value)
            except Exception as e:
                self.stats["generator_failures"] += 1
                logger.warning(f"Generator failed for {key.value}: {e}")
                raise

            self._update_validation_state(key)
            self._cache[key] = artifact
            self.stats["recomputes"] += 1
            logger.debug(
                f"Recomputed {key.value} (style={self._snapshot.last_style_version}, "
                f"block={self._snapshot.last_block_version})"
            )
            return artifact

    def needs_update(self, origin: Union[str, Origin]) -> bool:
        """
        Decide whether the slot for an origin must be regenerated.

        A detected drift clears every slot and moves the snapshot forward,
        so the other origins recompute on their next request.
        """
        key = coerce_origin(origin)
        if self._cache[key] is _ABSENT:
            return True

        current_style = self._style_registry.get_style_update_count()
        current_block = self._block_registry.get_block_update_count()

        if self._has_drifted(current_style, current_block):
            self._invalidate_on_drift(key, current_style, current_block)
            self._snapshot = ValidationSnapshot(current_style, current_block)
            return True

        return False

    def _invalidate_on_drift(self, key: Origin, current_style: int, current_block: int) -> None:
        self._clear_slots(ALL_ORIGINS, reason="drift", style=current_style, block=current_block)
        self.stats["drift_invalidations"] += 1
        logger.info(
            f"Registry drift detected on {key.value} request "
            f"(style={current_style}, block={current_block}); cleared all origins"
        )

    def _has_drifted(self, current_style: int, current_block: int) -> bool:
        last = self._snapshot
        if self.config.drift_policy == DRIFT_INCREASE_ONLY:
            if current_style < last.last_style_version or current_block < last.last_block_version:
                logger.warning(
                    f"Registry counters went backwards (style {last.last_style_version}->{current_style}, "
                    f"block {last.last_block_version}->{current_block}); serving cached data"
                )
            return last.last_style_version < current_style or last.last_block_version < current_block

        # any_change
        return last.last_style_version != current_style or last.last_block_version != current_block

    def _update_validation_state(self, key: Origin) -> None:
        """
        Move the snapshot to the current registry versions after a recompute.

        A recompute of an absent slot skips the drift check in needs_update,
        so drift that happened since the last snapshot is caught here instead:
        the other cached origins were built against older versions.
        """
        current_style = self._style_registry.get_style_update_count()
        current_block = self._block_registry.get_block_update_count()

        others_cached = any(v is not _ABSENT for o, v in self._cache.items() if o is not key)
        if others_cached and self._has_drifted(current_style, current_block):
            self._invalidate_on_drift(key, current_style, current_block)

        self._snapshot = ValidationSnapshot(current_style, current_block)

    def _clear_slots(
        self,
        origins,
        reason: str,
        feature: Optional[str] = None,
        detail: Optional[str] = None,
        style: Optional[int] = None,
        block: Optional[int] = None,
    ) -> None:
        record = InvalidationRecord(
            reason=reason,
            origins=[o.value for o in origins],
            style_version=self._snapshot.last_style_version if style is None else style,
            block_version=self._snapshot.last_block_version if block is None else block,
            feature=feature,
            detail=detail,
        ).to_dict()

        for origin in origins:
            self._cache[origin] = _ABSENT
        self._events.append(record)

    def reset(self) -> None:
        """Return to the initial state: all slots absent, snapshot (0, 0), stats and log empty."""
        with self._guard():
            self._init_state()
            self._events.clear()

    @contextmanager
    def request_scope(self) -> Iterator["ThemeJsonCacheManager"]:
        """Reset on entry so a reused worker starts each request cold."""
        self.reset()
        yield self

    def recent_invalidations(self) -> List[Dict[str, Any]]:
        return list(self._events)

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        lookups = self.stats["hits"] + self.stats["misses"]
        hit_rate = (self.stats["hits"] / lookups * 100) if lookups > 0 else 0

        return {
            **self.stats,
            "hit_rate_percent": round(hit_rate, 1),
            "total_requests": lookups,
            "cached_origins": [o.value for o in ALL_ORIGINS if self._cache[o] is not _ABSENT],
            "snapshot": {
                "style": self._snapshot.last_style_version,
                "block": self._snapshot.last_block_version,
            },
        }
