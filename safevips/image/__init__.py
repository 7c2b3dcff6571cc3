"""Image handles and their construction options."""

from safevips.image.handle import VipsImage
from safevips.image.options import FromFileOptions, FromSvgOptions

__all__ = [
    "VipsImage",
    "FromFileOptions",
    "FromSvgOptions",
]
