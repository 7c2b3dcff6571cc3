"""Custom exceptions for native image operations."""


class VipsError(Exception):
    """Base exception for safevips errors.
    
    Attributes:
        message: Diagnostic text, passed through unchanged from libvips
            where the error originates in the engine
    """
    
    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class EngineError(VipsError):
    """Raised when the native library cannot be located or loaded."""
    pass


class ImageLoadError(VipsError):
    """Raised when a construction path fails (null image or nonzero status)."""
    pass


class ImageMetadataError(VipsError):
    """Raised when a metadata query on an image reports failure."""
    pass


class StringConversionError(VipsError, ValueError):
    """Raised when a string cannot be passed across the foreign boundary."""
    pass


class ImageReleasedError(VipsError):
    """Raised when a handle is used after its native reference was released."""
    pass
