"""safevips - ownership-aware image handles over libvips.

Load images from files, SVG documents or existing images, inspect their
metadata, and release native resources exactly once.
"""

from safevips._version import __version__, __version_info__
from safevips.config import ConfigManager
from safevips.engine import Engine, get_engine
from safevips.enums import Access, FailOn, ForeignFlags
from safevips.exceptions import (
    VipsError,
    EngineError,
    ImageLoadError,
    ImageMetadataError,
    StringConversionError,
    ImageReleasedError,
)
from safevips.image import VipsImage, FromFileOptions, FromSvgOptions

__license__ = "MIT"
__all__ = [
    "__version__",
    "__version_info__",
    "ConfigManager",
    "Engine",
    "get_engine",
    "Access",
    "FailOn",
    "ForeignFlags",
    "VipsError",
    "EngineError",
    "ImageLoadError",
    "ImageMetadataError",
    "StringConversionError",
    "ImageReleasedError",
    "VipsImage",
    "FromFileOptions",
    "FromSvgOptions",
]
