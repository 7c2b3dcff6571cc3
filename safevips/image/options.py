"""Option records for the image construction paths."""

from ctypes import byref, c_double, c_int
from dataclasses import dataclass
from typing import List

from safevips.config import ConfigManager
from safevips.engine import Parameter
from safevips.enums import Access, FailOn, ForeignFlags, parse_enum


@dataclass
class FromFileOptions:
    """Options for loading an image from a file.

    Attributes:
        memory: Force the image to be decoded into memory
        access: Expected pixel access pattern
    """
    memory: bool = False
    access: Access = Access.RANDOM

    def __post_init__(self) -> None:
        self.access = parse_enum(Access, self.access)

    @classmethod
    def from_config(cls, config: ConfigManager) -> "FromFileOptions":
        """Build options from the "load" configuration section."""
        return cls(
            memory=bool(config.get("load.memory", False)),
            access=config.get("load.access", "random"),
        )

    def to_parameters(self) -> List[Parameter]:
        """Return the named parameters for vips_image_new_from_file."""
        return [
            (b"memory", c_int(int(self.memory))),
            (b"access", c_int(int(self.access))),
        ]


@dataclass
class FromSvgOptions:
    """Rasterization options for loading an SVG.

    Attributes:
        dpi: Render resolution in dots per inch
        scale: Additional scale factor applied on top of dpi
        unlimited: Allow SVGs larger than the loader's safety limit
        flags: Loader flags
        memory: Force the image to be decoded into memory
        access: Expected pixel access pattern
        fail_on: Error severity at which loading fails
        revalidate: Bypass the libvips operation cache
    """
    dpi: float = 72.0
    scale: float = 1.0
    unlimited: bool = False
    flags: ForeignFlags = ForeignFlags.NONE
    memory: bool = False
    access: Access = Access.RANDOM
    fail_on: FailOn = FailOn.NONE
    revalidate: bool = False

    def __post_init__(self) -> None:
        if self.dpi <= 0:
            raise ValueError(f"dpi must be positive, got {self.dpi}")
        if self.scale <= 0:
            raise ValueError(f"scale must be positive, got {self.scale}")
        self.flags = ForeignFlags(self.flags)
        self.access = parse_enum(Access, self.access)
        self.fail_on = parse_enum(FailOn, self.fail_on)

    @classmethod
    def from_config(cls, config: ConfigManager) -> "FromSvgOptions":
        """Build options from the "svg" and "load" configuration sections."""
        return cls(
            dpi=float(config.get("svg.dpi", 72.0)),
            scale=float(config.get("svg.scale", 1.0)),
            unlimited=bool(config.get("svg.unlimited", False)),
            flags=int(config.get("svg.flags", 0)),
            memory=bool(config.get("load.memory", False)),
            access=config.get("load.access", "random"),
            fail_on=config.get("svg.fail_on", "none"),
            revalidate=bool(config.get("svg.revalidate", False)),
        )

    def to_parameters(self) -> List[Parameter]:
        """Return the named parameters for vips_svgload.

        libvips declares "flags" as an optional output, so it is passed as a
        pointer to an int seeded with the configured value.
        """
        return [
            (b"dpi", c_double(self.dpi)),
            (b"scale", c_double(self.scale)),
            (b"unlimited", c_int(int(self.unlimited))),
            (b"flags", byref(c_int(int(self.flags)))),
            (b"memory", c_int(int(self.memory))),
            (b"access", c_int(int(self.access))),
            (b"fail_on", c_int(int(self.fail_on))),
            (b"revalidate", c_int(int(self.revalidate))),
        ]
