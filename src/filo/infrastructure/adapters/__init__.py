"""Adapters isolating the engine from the operating system."""

from .filesystem_adapter import FileInfo, FilesystemAdapter

__all__ = ["FileInfo", "FilesystemAdapter"]
