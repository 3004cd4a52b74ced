"""
Theme JSON Cache
Memoized merged theme data per origin, invalidated by registry version drift.
"""

from .config import CacheConfig, load_config
from .errors import ConfigError, InvalidOriginError, ThemeCacheError
from .manager import ThemeJsonCacheManager, ValidationSnapshot
from .origins import Origin
from .registry import BlockStylesRegistry, BlockTypeRegistry

__all__ = [
    'ThemeJsonCacheManager', 'ValidationSnapshot', 'Origin',
    'CacheConfig', 'load_config',
    'BlockStylesRegistry', 'BlockTypeRegistry',
    'ThemeCacheError', 'InvalidOriginError', 'ConfigError',
]
