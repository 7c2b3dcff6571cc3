"""Ownership-aware handle around a native libvips image."""

import logging
import weakref
from typing import List, Optional, Sequence, Tuple

from safevips.engine import Engine, get_engine
from safevips.exceptions import (
    ImageLoadError,
    ImageMetadataError,
    ImageReleasedError,
)
from safevips.image.options import FromFileOptions, FromSvgOptions
from safevips.utils.strings import StrOrPath, c_string

logger = logging.getLogger(__name__)


class VipsImage:
    """Owning wrapper around a native VipsImage reference.

    A handle holds exactly one reference to a native image and releases it
    exactly once: on close(), on leaving a ``with`` block, or when the
    handle is finalized, whichever happens first. Release is two-phase:
    the image is first marked killed, so pipelines still holding their own
    reference abort cooperatively, then the reference is dropped.

    Handles registered with keepalive() are owned by this handle and are
    released right after it, never before: closing an owned handle does
    nothing until its owner is released. Handles are not thread-safe;
    callers must serialize access to a given handle.

    Attributes:
        engine: Engine the native image was created with

    Examples:
        >>> with VipsImage.new_from_file("photo.jpg") as image:
        ...     image.get_dimensions()
        (4000, 5328)
    """

    def __init__(self, pointer: int, engine: Engine) -> None:
        """Wrap a native image pointer.

        Args:
            pointer: Non-null VipsImage pointer; ownership of one reference
                passes to the handle
            engine: Engine the pointer was obtained from

        Raises:
            ValueError: If pointer is null
        """
        if not pointer:
            raise ValueError("Refusing to wrap a null VipsImage pointer")

        self._pointer: Optional[int] = pointer
        self._children: Optional[List["VipsImage"]] = None
        self._owner: Optional[weakref.ref] = None
        self.engine = engine

    @classmethod
    def new_from_file(
        cls,
        filename: StrOrPath,
        options: Optional[FromFileOptions] = None
    ) -> "VipsImage":
        """Load an image from a file.

        Args:
            filename: Path to the image, optionally with a libvips option
                suffix such as ``"page.pdf[page=1]"``
            options: Load options, or None for the libvips defaults

        Returns:
            New image handle

        Raises:
            StringConversionError: If filename cannot be marshaled
            ImageLoadError: If libvips cannot load the file
        """
        name = c_string(filename)
        engine = get_engine()

        parameters = options.to_parameters() if options is not None else None
        pointer = engine.image_new_from_file(name, parameters)

        if not pointer:
            raise ImageLoadError(engine.last_error())

        logger.debug(f"Loaded image from {filename}")
        return cls(pointer, engine)

    @classmethod
    def new_from_svg(
        cls,
        filename: StrOrPath,
        options: Optional[FromSvgOptions] = None
    ) -> "VipsImage":
        """Rasterize an SVG file.

        Args:
            filename: Path to the SVG document
            options: Rasterization options, or None for the libvips defaults

        Returns:
            New image handle

        Raises:
            StringConversionError: If filename cannot be marshaled
            ImageLoadError: If the loader reports a nonzero status or
                produces no image
        """
        name = c_string(filename)
        engine = get_engine()

        parameters = options.to_parameters() if options is not None else None
        status, pointer = engine.svgload(name, parameters)

        if status != 0 or not pointer:
            message = engine.last_error()
            if pointer:
                # failed call that still produced an output reference
                engine.object_unref(pointer)
            raise ImageLoadError(message)

        logger.debug(f"Rasterized SVG from {filename}")
        return cls(pointer, engine)

    @classmethod
    def new_from_image(cls, image: "VipsImage", bands: Sequence[float]) -> "VipsImage":
        """Create a constant image with the geometry of another image.

        The new image has the size and format of the source, with every
        pixel set to the given per-band values. The result is not
        registered as a child of the source; use keepalive() where a
        pipeline needs that.

        Args:
            image: Source image handle
            bands: One value per band (or a single value for all bands)

        Returns:
            New image handle

        Raises:
            ImageReleasedError: If the source handle has been released
            ImageLoadError: If libvips cannot create the image
        """
        source = image._require()
        engine = image.engine

        pointer = engine.image_new_from_image(source, [float(value) for value in bands])

        if not pointer:
            raise ImageLoadError(engine.last_error())

        return cls(pointer, engine)

    def new_from_self(self, bands: Sequence[float]) -> "VipsImage":
        """Create a constant image with this image's geometry."""
        return VipsImage.new_from_image(self, bands)

    @property
    def pointer(self) -> int:
        """The native VipsImage pointer held by this handle."""
        return self._require()

    @property
    def released(self) -> bool:
        """Whether the native reference has been released."""
        return self._pointer is None

    @property
    def children(self) -> Tuple["VipsImage", ...]:
        """Handles kept alive by this handle, in registration order."""
        return tuple(self._children or ())

    @property
    def owner(self) -> Optional["VipsImage"]:
        """Handle that keeps this one alive, or None."""
        return self._owner() if self._owner is not None else None

    def _require(self) -> int:
        if self._pointer is None:
            raise ImageReleasedError("Image handle has already been released")
        return self._pointer

    def get_width(self) -> int:
        return self.engine.image_get_width(self._require())

    def get_height(self) -> int:
        return self.engine.image_get_height(self._require())

    def get_dimensions(self) -> Tuple[int, int]:
        """Return (width, height) in pixels."""
        return self.get_width(), self.get_height()

    def get_bands(self) -> int:
        return self.engine.image_get_bands(self._require())

    def get_page_count(self) -> int:
        """Return the number of pages or frames in the source document."""
        return self.engine.image_get_n_pages(self._require())

    def has_property(self, name: str) -> bool:
        """Check whether a metadata property is attached to the image.

        Raises:
            StringConversionError: If name cannot be marshaled
        """
        pointer = self._require()
        return self.engine.image_get_typeof(pointer, c_string(name)) > 0

    def get_blob(self, name: str) -> bytes:
        """Return a copy of a binary metadata property.

        Args:
            name: Property name, e.g. ``"icc-profile-data"``

        Returns:
            Bytes copied out of the native buffer

        Raises:
            StringConversionError: If name cannot be marshaled
            ImageMetadataError: If the property is missing or not a blob
        """
        pointer = self._require()
        status, data = self.engine.image_get_blob(pointer, c_string(name))

        if status != 0:
            raise ImageMetadataError(self.engine.last_error())

        return data

    def is_transparent(self) -> bool:
        """Return True if the image has an alpha channel."""
        return self.engine.image_hasalpha(self._require())

    def is_killed(self) -> bool:
        """Return True if the native kill flag is set."""
        return self.engine.image_iskilled(self._require())

    def kill(self) -> None:
        """Signal pipelines processing this image to stop.

        Does not release the image. Safe to call any number of times,
        including after release, where it does nothing.
        """
        if self._pointer is not None:
            self.engine.image_set_kill(self._pointer, True)

    def keepalive(self, image: "VipsImage") -> None:
        """Take ownership of a handle that must outlive this one.

        Use this when a downstream image shares native buffers with an
        intermediate one. From now on close() on the registered handle does
        nothing; it is released right after this handle releases its own
        reference. Registering after kill() is allowed, since release only
        happens on close.

        Args:
            image: Handle to keep alive

        Raises:
            ValueError: If a handle is registered with itself, is already
                owned, or owns this handle
            ImageReleasedError: If either handle has already been released
        """
        if image is self:
            raise ValueError("An image cannot keep itself alive")
        self._require()
        image._require()

        if image.owner is not None:
            raise ValueError("Image is already kept alive by another image")

        owner = self.owner
        while owner is not None:
            if owner is image:
                raise ValueError("Image already keeps this image alive")
            owner = owner.owner

        if self._children is None:
            self._children = []
        self._children.append(image)
        image._owner = weakref.ref(self)

    def _cleanup(self) -> None:
        """Kill, then release the native reference and owned children.

        Guarded by the null check, so only the first call has any effect.
        """
        pointer = self._pointer
        if pointer is None:
            return

        self.kill()
        self._pointer = None
        self._owner = None
        self.engine.object_unref(pointer)
        logger.debug(f"Released image {pointer:#x}")

        children, self._children = self._children, None
        for child in children or ():
            child._cleanup()

    def close(self) -> None:
        """Release the native image now instead of at finalization.

        Does nothing while another handle keeps this one alive.
        """
        if self.owner is not None:
            logger.debug("Image is kept alive by its owner, deferring release")
            return
        self._cleanup()

    def __enter__(self) -> "VipsImage":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def __del__(self) -> None:
        # __init__ may have failed before the pointer was stored
        if getattr(self, "_pointer", None) is not None:
            self._cleanup()

    def __copy__(self):
        raise TypeError("VipsImage handles own their reference and cannot be copied")

    def __deepcopy__(self, memo):
        raise TypeError("VipsImage handles own their reference and cannot be copied")

    def __repr__(self) -> str:
        """Return string representation of the handle."""
        if self._pointer is None:
            return "<VipsImage released>"
        width, height = self.get_dimensions()
        state = " killed" if self.is_killed() else ""
        return f"<VipsImage {width}x{height} bands={self.get_bands()}{state}>"
