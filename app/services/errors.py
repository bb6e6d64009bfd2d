"""Conversion failures.

Every failure is terminal for the single file being converted.
"""


class ConversionError(Exception):
    """Base class for all conversion failures."""


class UnsupportedFormat(ConversionError):
    def __init__(self, extension: str):
        self.extension = extension
        super().__init__(f"unsupported file type: {extension}")


class DecodeError(ConversionError):
    """Input bytes could not be decoded as a raster image."""

    def __init__(self, cause: Exception):
        self.cause = cause
        super().__init__(f"failed to decode image: {cause}")


class LayoutError(ConversionError):
    """The PDF layout engine rejected the content."""

    def __init__(self, cause: Exception):
        self.cause = cause
        super().__init__(f"failed to lay out PDF: {cause}")


class ConversionToolError(ConversionError):
    """The external document converter could not be launched or exited nonzero."""

    def __init__(self, exit_info: str, stderr: str = ""):
        self.exit_info = exit_info
        self.stderr = stderr
        super().__init__(f"document conversion failed: {exit_info}, stderr: {stderr}")


class OutputNotFound(ConversionError):
    def __init__(self, expected_path: str):
        self.expected_path = expected_path
        super().__init__(f"converted PDF not found at {expected_path}")


class ConversionIOError(ConversionError):
    """Reading or writing a temporary conversion artifact failed."""

    def __init__(self, cause: Exception):
        self.cause = cause
        super().__init__(f"temporary file error: {cause}")
