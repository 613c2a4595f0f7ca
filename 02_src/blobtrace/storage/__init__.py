"""Storage module."""

from .storage import IObjectStore, IStorage, Storage

__all__ = ["IObjectStore", "IStorage", "Storage"]
