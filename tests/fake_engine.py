"""In-memory stand-in for the libvips engine used by handle tests."""

from typing import Dict, List, Optional, Sequence, Tuple

from safevips.engine import Engine, Parameter


class FakeEngine(Engine):
    """Engine double that tracks references instead of calling libvips.

    Images are plain dicts keyed by fake pointers. Releasing a pointer twice
    or reading a released pointer raises AssertionError, so tests fail
    loudly on the bugs a real engine would turn into crashes.
    """

    def __init__(self) -> None:
        super().__init__(vips=None)
        self.started = True
        self.files: Dict[bytes, dict] = {}
        self.images: Dict[int, dict] = {}
        self.freed: List[int] = []
        self.events: List[Tuple[str, int]] = []
        self.calls: List[tuple] = []
        self.error = ""
        self.svg_result: Optional[Tuple[int, bool]] = None
        self._next_pointer = 0x1000

    def add_file(
        self,
        filename: str,
        width: int = 64,
        height: int = 48,
        bands: int = 3,
        pages: int = 1,
        alpha: bool = False,
        blobs: Optional[Dict[str, bytes]] = None,
    ) -> None:
        self.files[filename.encode("utf-8")] = {
            "width": width,
            "height": height,
            "bands": bands,
            "pages": pages,
            "alpha": alpha,
            "blobs": {name.encode("utf-8"): data for name, data in (blobs or {}).items()},
        }

    def _create(self, attrs: dict) -> int:
        self._next_pointer += 0x10
        pointer = self._next_pointer
        self.images[pointer] = dict(attrs, killed=False)
        return pointer

    def _image(self, pointer: int) -> dict:
        if pointer in self.freed:
            raise AssertionError(f"use of released image {pointer:#x}")
        return self.images[pointer]

    def last_error(self) -> str:
        message, self.error = self.error, ""
        return message.rstrip()

    def find_loader(self, filename: bytes) -> Optional[str]:
        return "fakeload" if filename in self.files else None

    def image_new_from_file(
        self,
        filename: bytes,
        parameters: Optional[Sequence[Parameter]] = None
    ) -> Optional[int]:
        self.calls.append(("new_from_file", filename, parameters))
        attrs = self.files.get(filename)
        if attrs is None:
            self.error = f'VipsForeignLoad: file "{filename.decode()}" does not exist\n'
            return None
        return self._create(attrs)

    def svgload(
        self,
        filename: bytes,
        parameters: Optional[Sequence[Parameter]] = None
    ) -> Tuple[int, Optional[int]]:
        self.calls.append(("svgload", filename, parameters))
        attrs = self.files.get(filename)
        if attrs is None:
            self.error = f"svgload: unable to load {filename.decode()}\n"
            return -1, None

        if self.svg_result is not None:
            status, produce = self.svg_result
            self.error = "svgload: rendering failed\n"
            return status, self._create(attrs) if produce else None

        values = {name: getattr(value, "value", None) for name, value in parameters or ()}
        factor = (values.get(b"dpi") or 72.0) / 72.0 * (values.get(b"scale") or 1.0)
        scaled = dict(
            attrs,
            width=round(attrs["width"] * factor),
            height=round(attrs["height"] * factor),
        )
        return 0, self._create(scaled)

    def image_new_from_image(self, image: int, values: Sequence[float]) -> Optional[int]:
        self.calls.append(("new_from_image", image, list(values)))
        source = self._image(image)
        if len(values) not in (1, source["bands"]):
            self.error = "vips_image_new_from_image: bad number of bands\n"
            return None
        return self._create(dict(source, pages=1, blobs={}))

    def image_get_width(self, image: int) -> int:
        return self._image(image)["width"]

    def image_get_height(self, image: int) -> int:
        return self._image(image)["height"]

    def image_get_bands(self, image: int) -> int:
        return self._image(image)["bands"]

    def image_get_n_pages(self, image: int) -> int:
        return self._image(image)["pages"]

    def image_get_typeof(self, image: int, name: bytes) -> int:
        builtin = {b"width", b"height", b"bands"}
        if name in builtin or name in self._image(image)["blobs"]:
            return 0x50
        return 0

    def image_get_blob(self, image: int, name: bytes) -> Tuple[int, Optional[bytes]]:
        blobs = self._image(image)["blobs"]
        if name not in blobs:
            self.error = f'vips_image_get: field "{name.decode()}" not found\n'
            return -1, None
        return 0, bytes(blobs[name])

    def image_hasalpha(self, image: int) -> bool:
        return self._image(image)["alpha"]

    def image_set_kill(self, image: int, kill: bool) -> None:
        self.events.append(("kill", image))
        self._image(image)["killed"] = kill

    def image_iskilled(self, image: int) -> bool:
        return self._image(image)["killed"]

    def object_unref(self, image: int) -> None:
        if image in self.freed:
            raise AssertionError(f"double release of image {image:#x}")
        self.events.append(("unref", image))
        self.freed.append(image)
