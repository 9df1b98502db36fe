"""Exceptions raised by the model layer."""


class ImageMeasureError(Exception):
    """Base class for all application errors."""


class DecodeError(ImageMeasureError):
    """An image file could not be read or is in an unsupported format."""

    def __init__(self, path: str, reason: str = "") -> None:
        self.path = path
        self.reason = reason
        message = f"Cannot decode image '{path}'"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class ProjectFileError(ImageMeasureError):
    """A project document could not be read or written."""


class ExportError(ImageMeasureError):
    """An annotated image or text export failed."""
