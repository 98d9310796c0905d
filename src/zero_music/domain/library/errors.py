"""Library index exceptions for rebuild-level failures."""

from typing import Optional


class LibraryError(Exception):
    """Base exception for library index operations."""

    pass


class DirectoryUnavailableError(LibraryError):
    """Raised when the library root is missing, unreadable or not a directory."""

    def __init__(self, directory: str, message: Optional[str] = None):
        self.directory = directory
        super().__init__(message or f"Music directory unavailable: {directory}")


class ScanFailedError(LibraryError):
    """Raised when the directory walk hits a structural error."""

    def __init__(self, path: str, message: Optional[str] = None):
        self.path = path
        super().__init__(message or f"Failed to scan {path}")


class ScanCancelledError(LibraryError):
    """Raised when the caller's cancel event is set mid-scan."""

    pass
