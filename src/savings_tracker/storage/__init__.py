"""Encrypted on-disk container: primitives, framing and the storage manager."""
from savings_tracker.storage.encryption import KdfParams
from savings_tracker.storage.manager import StorageManager

__all__ = ["KdfParams", "StorageManager"]
