"""Exception hierarchy for the savings tracker.

Every public operation raises a subclass of SavingsTrackerError; callers that
only care about "something went wrong" can catch the base class.
"""
from datetime import date
from uuid import UUID

from savings_tracker.utils import redact_query


class SavingsTrackerError(Exception):
    """Base class for all savings tracker errors."""


# ---- Storage / file ----


class InvalidFileFormatError(SavingsTrackerError):
    """The byte buffer is not a well-formed SVTK container."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Invalid file format: {reason}")
        self.reason = reason


class UnsupportedVersionError(SavingsTrackerError):
    """The container declares a format version this build cannot read."""

    def __init__(self, version: int) -> None:
        super().__init__(f"Unsupported file version: {version}")
        self.version = version


class EncryptionError(SavingsTrackerError):
    def __init__(self, reason: str) -> None:
        super().__init__(f"Encryption failed: {reason}")
        self.reason = reason


class DecryptionError(SavingsTrackerError):
    """Wrong password, tampered data or truncated ciphertext (never distinguished)."""

    def __init__(self) -> None:
        super().__init__("Decryption failed: wrong password or corrupted file")


class SerializationError(SavingsTrackerError):
    def __init__(self, reason: str) -> None:
        super().__init__(f"Serialization error: {reason}")
        self.reason = reason


class DeserializationError(SavingsTrackerError):
    def __init__(self, reason: str) -> None:
        super().__init__(f"Deserialization error: {reason}")
        self.reason = reason


class FileIOError(SavingsTrackerError):
    def __init__(self, reason: str) -> None:
        super().__init__(f"File I/O error: {reason}")
        self.reason = reason


# ---- API / network ----


class ApiError(SavingsTrackerError):
    """A provider answered, but not with a usable price."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"API error ({provider}): {message}")
        self.provider = provider
        self.message = message


class NetworkError(SavingsTrackerError):
    """Transport-level failure. The reason never carries URL query strings."""

    def __init__(self, reason: str) -> None:
        reason = redact_query(reason)
        super().__init__(f"Network error: {reason}")
        self.reason = reason


class NoProviderError(SavingsTrackerError):
    def __init__(self, asset_type: str) -> None:
        super().__init__(f"No provider available for asset type: {asset_type}")
        self.asset_type = asset_type


# ---- Business rules ----


class ValidationError(SavingsTrackerError):
    """A business rule rejected the request; nothing was changed."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Validation failed: {reason}")
        self.reason = reason


class EventNotFoundError(SavingsTrackerError):
    def __init__(self, event_id: UUID | str) -> None:
        super().__init__(f"Event not found: {event_id}")
        self.event_id = str(event_id)


class PriceNotAvailableError(SavingsTrackerError):
    def __init__(self, symbol: str, currency: str, on: date | str) -> None:
        super().__init__(f"Price not available for {symbol} in {currency} on {on}")
        self.symbol = symbol
        self.currency = currency
        self.date = str(on)
