"""ctypes binding to the libvips and GObject shared libraries."""

import ctypes
import ctypes.util
import logging
import sys
from ctypes import POINTER, byref, c_char_p, c_double, c_int, c_size_t, c_void_p
from typing import Any, Dict, List, Optional, Sequence, Tuple

from safevips.exceptions import EngineError

logger = logging.getLogger(__name__)

# A named parameter for a variadic libvips call: (name, ctypes value)
Parameter = Tuple[bytes, Any]

# Shared library names tried in order, per platform
VIPS_LIBRARY_NAMES = {
    "linux": ["libvips.so.42", "libvips.so"],
    "darwin": ["libvips.42.dylib", "libvips.dylib"],
    "win32": ["libvips-42.dll"],
}

GOBJECT_LIBRARY_NAMES = {
    "linux": ["libgobject-2.0.so.0", "libgobject-2.0.so"],
    "darwin": ["libgobject-2.0.0.dylib", "libgobject-2.0.dylib"],
    "win32": ["libgobject-2.0-0.dll"],
}

# Fixed-argument prototypes. Variadic entry points list only their fixed
# arguments; named parameters are appended at call time.
VIPS_PROTOTYPES = {
    "vips_init": (c_int, [c_char_p]),
    "vips_version": (c_int, [c_int]),
    "vips_leak_set": (None, [c_int]),
    "vips_error_buffer": (c_char_p, []),
    "vips_error_clear": (None, []),
    "vips_foreign_find_load": (c_char_p, [c_char_p]),
    "vips_image_new_from_file": (c_void_p, [c_char_p]),
    "vips_svgload": (c_int, [c_char_p, POINTER(c_void_p)]),
    "vips_image_new_from_image": (c_void_p, [c_void_p, POINTER(c_double), c_int]),
    "vips_image_get_width": (c_int, [c_void_p]),
    "vips_image_get_height": (c_int, [c_void_p]),
    "vips_image_get_bands": (c_int, [c_void_p]),
    "vips_image_get_n_pages": (c_int, [c_void_p]),
    "vips_image_get_typeof": (c_size_t, [c_void_p, c_char_p]),
    "vips_image_get_blob": (
        c_int,
        [c_void_p, c_char_p, POINTER(c_void_p), POINTER(c_size_t)],
    ),
    "vips_image_hasalpha": (c_int, [c_void_p]),
    "vips_image_set_kill": (None, [c_void_p, c_int]),
    "vips_image_iskilled": (c_int, [c_void_p]),
}

GOBJECT_PROTOTYPES = {
    "g_object_unref": (None, [c_void_p]),
}


def _platform_key() -> str:
    """Return the key into the library name tables for this platform."""
    if sys.platform.startswith("win"):
        return "win32"
    if sys.platform == "darwin":
        return "darwin"
    return "linux"


def open_library(
    explicit: Optional[str],
    candidates: Dict[str, List[str]],
    short_name: str
) -> ctypes.CDLL:
    """Open a shared library by explicit name or by searching known names.

    Args:
        explicit: Library name or path from configuration (empty to search)
        candidates: Per-platform table of names to try
        short_name: Name passed to ctypes.util.find_library as a fallback

    Returns:
        Loaded library

    Raises:
        EngineError: If none of the names can be loaded
    """
    if explicit:
        names = [explicit]
    else:
        names = list(candidates.get(_platform_key(), []))
        found = ctypes.util.find_library(short_name)
        if found and found not in names:
            names.append(found)

    failures = []
    for name in names:
        try:
            library = ctypes.CDLL(name)
        except OSError as e:
            logger.debug(f"Could not load {name}: {e}")
            failures.append(f"  - {name}: {e}")
            continue
        logger.info(f"Loaded native library: {name}")
        return library

    raise EngineError(
        f"Unable to load the {short_name} library. Tried:\n"
        + "\n".join(failures)
    )


def declare_prototypes(library: ctypes.CDLL, prototypes: Dict[str, tuple]) -> None:
    """Set restype/argtypes for every function in a prototype table.

    Raises:
        EngineError: If the library does not export one of the functions
    """
    for name, (restype, argtypes) in prototypes.items():
        try:
            function = getattr(library, name)
        except AttributeError as e:
            raise EngineError(
                f"Native library does not export {name}; libvips 8.8 or newer "
                "is required"
            ) from e
        function.restype = restype
        function.argtypes = argtypes


def _varargs(parameters: Optional[Sequence[Parameter]]) -> list:
    """Flatten named parameters and append the NULL terminator."""
    args: list = []
    for name, value in parameters or ():
        args.append(c_char_p(name))
        args.append(value)
    args.append(None)
    return args


class Engine:
    """Typed access to the libvips entry points used by image handles.

    Every foreign call made by safevips goes through an instance of this
    class. Methods return raw results (pointers as ints or None, status
    codes as ints); interpreting them is the caller's job.

    Attributes:
        vips: Loaded libvips library
        gobject: Library providing GObject symbols (usually the same object
            as vips)
        started: Whether startup() has run successfully

    Examples:
        >>> engine = Engine.load()
        >>> engine.startup("safevips")
        >>> engine.version()
        '8.15.1'
    """

    def __init__(self, vips: Any, gobject: Any = None) -> None:
        self.vips = vips
        self.gobject = gobject if gobject is not None else vips
        self.started = False

    @classmethod
    def load(
        cls,
        library: Optional[str] = None,
        gobject_library: Optional[str] = None
    ) -> "Engine":
        """Load libvips and declare its prototypes.

        GObject symbols are resolved through the libvips handle, which
        finds the GLib libvips is actually linked against. A separate
        libgobject is opened only when one is configured or libvips does
        not expose the symbols.

        Args:
            library: Explicit libvips name or path (searched if not given)
            gobject_library: Explicit libgobject name or path

        Returns:
            Engine bound to the loaded libraries

        Raises:
            EngineError: If a library or required symbol is missing
        """
        vips = open_library(library, VIPS_LIBRARY_NAMES, "vips")
        declare_prototypes(vips, VIPS_PROTOTYPES)

        if gobject_library:
            gobject = open_library(gobject_library, GOBJECT_LIBRARY_NAMES, "gobject-2.0")
        elif all(hasattr(vips, name) for name in GOBJECT_PROTOTYPES):
            gobject = vips
        else:
            logger.debug("libvips does not expose GObject symbols, searching for libgobject")
            gobject = open_library(None, GOBJECT_LIBRARY_NAMES, "gobject-2.0")
        declare_prototypes(gobject, GOBJECT_PROTOTYPES)

        return cls(vips, gobject)

    def startup(self, program_name: str = "safevips") -> None:
        """Initialize libvips for this process.

        Raises:
            EngineError: If vips_init reports failure
        """
        if self.started:
            return

        if self.vips.vips_init(program_name.encode("utf-8")) != 0:
            raise EngineError(self.last_error() or "vips_init failed")

        self.started = True
        logger.info(f"libvips {self.version()} initialized for {program_name}")

    def version(self) -> str:
        """Return the libvips version as "major.minor.micro"."""
        return ".".join(str(self.vips.vips_version(part)) for part in range(3))

    def check_leaks(self, enabled: bool = True) -> None:
        """Ask libvips to report leaked objects at process exit."""
        self.vips.vips_leak_set(int(enabled))
        if enabled:
            logger.warning("libvips leak checking enabled")

    def last_error(self) -> str:
        """Return and clear the engine's accumulated diagnostic text."""
        buffer = self.vips.vips_error_buffer()
        self.vips.vips_error_clear()
        if not buffer:
            return ""
        return buffer.decode("utf-8", errors="replace").rstrip()

    def find_loader(self, filename: bytes) -> Optional[str]:
        """Return the name of the loader libvips would pick, or None."""
        name = self.vips.vips_foreign_find_load(filename)
        if not name:
            # a failed lookup leaves a message behind
            self.vips.vips_error_clear()
            return None
        return name.decode("utf-8")

    def image_new_from_file(
        self,
        filename: bytes,
        parameters: Optional[Sequence[Parameter]] = None
    ) -> Optional[int]:
        return self.vips.vips_image_new_from_file(filename, *_varargs(parameters))

    def svgload(
        self,
        filename: bytes,
        parameters: Optional[Sequence[Parameter]] = None
    ) -> Tuple[int, Optional[int]]:
        """Run the SVG loader.

        Returns:
            Tuple of (status code, output image pointer or None)
        """
        output = c_void_p()
        status = self.vips.vips_svgload(filename, byref(output), *_varargs(parameters))
        return status, output.value

    def image_new_from_image(self, image: int, values: Sequence[float]) -> Optional[int]:
        array = (c_double * len(values))(*values)
        return self.vips.vips_image_new_from_image(image, array, len(values))

    def image_get_width(self, image: int) -> int:
        return self.vips.vips_image_get_width(image)

    def image_get_height(self, image: int) -> int:
        return self.vips.vips_image_get_height(image)

    def image_get_bands(self, image: int) -> int:
        return self.vips.vips_image_get_bands(image)

    def image_get_n_pages(self, image: int) -> int:
        return self.vips.vips_image_get_n_pages(image)

    def image_get_typeof(self, image: int, name: bytes) -> int:
        return self.vips.vips_image_get_typeof(image, name)

    def image_get_blob(self, image: int, name: bytes) -> Tuple[int, Optional[bytes]]:
        """Fetch a blob property and copy it out of native memory.

        The native buffer belongs to the image, so the bytes are copied
        before returning.

        Returns:
            Tuple of (status code, copied bytes or None on failure)
        """
        data = c_void_p()
        length = c_size_t()
        status = self.vips.vips_image_get_blob(image, name, byref(data), byref(length))
        if status != 0:
            return status, None
        if not data.value or not length.value:
            return status, b""
        return status, ctypes.string_at(data.value, length.value)

    def image_hasalpha(self, image: int) -> bool:
        return self.vips.vips_image_hasalpha(image) == 1

    def image_set_kill(self, image: int, kill: bool) -> None:
        self.vips.vips_image_set_kill(image, int(kill))

    def image_iskilled(self, image: int) -> bool:
        return bool(self.vips.vips_image_iskilled(image))

    def object_unref(self, image: int) -> None:
        self.gobject.g_object_unref(image)
