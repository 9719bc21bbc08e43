"""Custom exception hierarchy for the image board service."""

from __future__ import annotations


class ImageBoardError(Exception):
    """Base exception for all image board errors."""

    def __init__(self, message: str, details: dict[str, str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(ImageBoardError):
    """Raised when configuration is invalid or missing."""
    pass


class ValidationError(ImageBoardError):
    """Base class for client input errors."""
    pass


class UploadRejectedError(ValidationError):
    """Base class for uploads rejected before anything is stored."""
    pass


class NoFileProvidedError(UploadRejectedError):
    """Raised when an upload request carries no file."""
    pass


class UnexpectedFileError(UploadRejectedError):
    """Raised when files arrive under an unknown field or more than one file is sent."""
    pass


class EmptyUploadError(UploadRejectedError):
    """Raised when the uploaded file has no content."""
    pass


class UploadTooLargeError(UploadRejectedError):
    """Raised when the uploaded file exceeds the configured size limit."""
    pass


class StorageError(ImageBoardError):
    """Raised when storage operations fail."""
    pass


class RenderError(ImageBoardError):
    """Raised when a QR code cannot be rendered."""
    pass
