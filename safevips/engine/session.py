"""Process-wide engine shared by image handles."""

import logging
from typing import Optional

from safevips.config import ConfigManager
from safevips.engine.library import Engine

logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None


def get_engine(config: Optional[ConfigManager] = None) -> Engine:
    """Return the process-wide engine, loading libvips on first use.

    The configuration is only consulted on the first call; later calls
    return the already loaded engine.

    Args:
        config: Configuration to read engine settings from (searched for
            in standard locations if not given)

    Returns:
        Started Engine instance

    Raises:
        EngineError: If libvips cannot be loaded or initialized
    """
    global _engine

    if _engine is None:
        if config is None:
            config = ConfigManager.load()

        logger.debug(f"Loading libvips engine (config: {config.config_path or 'defaults'})")
        engine = Engine.load(
            library=config.get("engine.library") or None,
            gobject_library=config.get("engine.gobject_library") or None,
        )
        engine.startup(config.get("engine.program_name", "safevips"))

        if config.get("engine.leak_check"):
            engine.check_leaks()

        _engine = engine

    return _engine
