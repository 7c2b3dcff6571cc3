"""Native engine binding for safevips."""

from safevips.engine.library import Engine, Parameter
from safevips.engine.session import get_engine

__all__ = ["Engine", "Parameter", "get_engine"]
