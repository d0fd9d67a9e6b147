"""
Exception hierarchy for the resource packer.
"""

from typing import Optional, Any


class PackerError(Exception):
    """Base exception for packer errors."""

    def __init__(self, message: str, node: Optional[Any] = None, recoverable: bool = False):
        super().__init__(message)
        self.node = node
        self.recoverable = recoverable


class FlagError(PackerError):
    """Exception raised when a flag token is malformed."""

    def __init__(self, message: str, token: str):
        super().__init__(f"Invalid flag '{token}': {message}", recoverable=True)
        self.token = token


class ResourceError(PackerError):
    """Exception raised when the resource tree is used inconsistently."""


class ConversionError(PackerError):
    """Exception raised when an external conversion service fails."""


class AtlasGenerationError(PackerError):
    """Exception raised when atlas generation fails."""


class DescriptorError(PackerError):
    """Exception raised when a descriptor file cannot be written."""
