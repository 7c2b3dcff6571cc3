"""Enumerations used to fill libvips call parameters.

Values mirror the C enums in libvips, so members can be passed straight
through as integers.
"""

import enum


class Access(enum.IntEnum):
    """How pixels will be requested from an image (VipsAccess)."""
    RANDOM = 0
    SEQUENTIAL = 1
    SEQUENTIAL_UNBUFFERED = 2


class FailOn(enum.IntEnum):
    """Error severity at which a loader gives up (VipsFailOn)."""
    NONE = 0
    TRUNCATED = 1
    ERROR = 2
    WARNING = 3


class ForeignFlags(enum.IntFlag):
    """Loader property flags (VipsForeignFlags)."""
    NONE = 0
    PARTIAL = 1
    BIGENDIAN = 2
    SEQUENTIAL = 4
    ALL = 7


def parse_enum(enum_class, value):
    """Resolve a member from a member, an integer, or a case-insensitive name.
    
    Raises:
        ValueError: If the value does not name a member
    """
    if isinstance(value, enum_class):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return enum_class(value)
    if isinstance(value, str):
        key = value.strip().upper().replace("-", "_")
        if key in enum_class.__members__:
            return enum_class.__members__[key]
    choices = ", ".join(name.lower() for name in enum_class.__members__)
    raise ValueError(
        f"Invalid {enum_class.__name__} value: {value!r}. Expected one of: {choices}"
    )
