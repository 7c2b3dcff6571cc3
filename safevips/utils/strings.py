"""String marshaling for calls into the native library."""

import os
from typing import Union

from safevips.exceptions import StringConversionError

StrOrPath = Union[str, bytes, "os.PathLike[str]"]


def c_string(value: StrOrPath) -> bytes:
    """Convert a Python string or path into a NUL-terminable byte string.
    
    Paths are encoded with the filesystem encoding, plain strings with
    UTF-8. Bytes are passed through unchanged.
    
    Args:
        value: String, bytes or path-like object to convert
        
    Returns:
        Encoded bytes without a trailing terminator
        
    Raises:
        StringConversionError: If the value contains an embedded NUL byte
            or cannot be encoded
        
    Examples:
        >>> c_string("icc-profile-data")
        b'icc-profile-data'
    """
    if isinstance(value, os.PathLike):
        value = os.fspath(value)
        encoded = os.fsencode(value)
    elif isinstance(value, bytes):
        encoded = value
    elif isinstance(value, str):
        try:
            encoded = value.encode("utf-8")
        except UnicodeEncodeError as e:
            raise StringConversionError(
                f"Cannot encode {value!r} for the native library: {e}"
            ) from e
    else:
        raise StringConversionError(
            f"Expected str, bytes or path, got {type(value).__name__}"
        )
    
    if b"\x00" in encoded:
        position = encoded.index(b"\x00")
        raise StringConversionError(
            f"Embedded NUL byte at position {position} in {value!r}"
        )
    
    return encoded
