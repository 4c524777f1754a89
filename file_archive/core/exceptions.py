"""Custom exception classes for the file archive.

Expected failures travel as ``Result`` objects; these exceptions cover
startup misconfiguration and conditions raised deep inside I/O helpers
that a component boundary converts into a ``Result``.
"""


class FileArchiveError(Exception):
    """Base exception for the file archive."""

    def __init__(self, message: str = "An error occurred"):
        self.message = message
        super().__init__(self.message)


class ConfigurationError(FileArchiveError):
    """Raised at startup when a required setting is missing or invalid."""
    pass


class FileTooLargeError(FileArchiveError):
    """Raised when an uploaded stream exceeds the configured max size."""

    def __init__(self, max_bytes: int):
        self.max_bytes = max_bytes
        super().__init__(f"The file exceeds the max allowed size of {max_bytes} bytes")
