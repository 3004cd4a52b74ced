"""The four fixed origins a merged artifact can be cached for."""

from __future__ import annotations

from enum import Enum
from typing import Union

from .errors import InvalidOriginError


class Origin(str, Enum):
    DEFAULT = "default"
    BLOCKS = "blocks"
    THEME = "theme"
    CUSTOM = "custom"


ALL_ORIGINS = tuple(Origin)

# Feature-level config changes only reach theme and custom merges.
FEATURE_SCOPED_ORIGINS = (Origin.THEME, Origin.CUSTOM)


def coerce_origin(value: Union[str, Origin]) -> Origin:
    """Map a string or Origin onto the closed set, rejecting anything else."""
    if isinstance(value, Origin):
        return value
    if isinstance(value, str):
        try:
            return Origin(value)
        except ValueError:
            pass
    raise InvalidOriginError(value)
