"""Utility functions for safevips."""

from safevips.utils.strings import c_string

__all__ = ["c_string"]
