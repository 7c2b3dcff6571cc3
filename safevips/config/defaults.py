"""Default configuration values for safevips."""

from safevips.enums import Access, FailOn

# Default configuration dictionary
DEFAULT_CONFIG = {
    # Native library configuration
    "engine": {
        "library": "",  # empty: search standard names
        "gobject_library": "",
        "program_name": "safevips",
        "leak_check": False,
    },

    # Options for loading images from files
    "load": {
        "memory": False,
        "access": "random",
    },

    # SVG rasterization options (libvips defaults)
    "svg": {
        "dpi": 72.0,
        "scale": 1.0,
        "unlimited": False,
        "flags": 0,
        "fail_on": "none",
        "revalidate": False,
    },

    # Logging Configuration
    "logging": {
        "level": "INFO",
        "file": "",
        "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    },
}

# Fields holding enum member names, mapped to the enum they name
ENUM_FIELDS = {
    "load.access": Access,
    "svg.fail_on": FailOn,
}

# Fields that must be strictly positive numbers
POSITIVE_FIELDS = [
    "svg.dpi",
    "svg.scale",
]
