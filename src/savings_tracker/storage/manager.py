"""Save/load a Portfolio to/from encrypted bytes or files.

Save: Portfolio -> compact JSON -> AES-256-GCM(Argon2id(password)) -> SVTK bytes
Load: SVTK bytes -> header -> Argon2id(password, salt) -> decrypt -> Portfolio
"""
import logging
from pathlib import Path

import pydantic

from savings_tracker.errors import (DeserializationError, FileIOError,
                                    SerializationError)
from savings_tracker.models import Portfolio
from savings_tracker.storage import encryption
from savings_tracker.storage import format as svtk_format
from savings_tracker.storage.encryption import KdfParams

logger = logging.getLogger(__name__)


class StorageManager:
    """Stateless storage operations; the file is the only persisted artifact."""

    @staticmethod
    def serialize(portfolio: Portfolio) -> bytes:
        try:
            return portfolio.model_dump_json().encode("utf-8")
        except ValueError as e:
            raise SerializationError(f"Failed to serialize portfolio: {e}") from e

    @staticmethod
    def deserialize(plaintext: bytes) -> Portfolio:
        try:
            return Portfolio.model_validate_json(plaintext)
        except (pydantic.ValidationError, ValueError) as e:
            raise DeserializationError(f"Failed to deserialize portfolio: {e}") from e

    @staticmethod
    def save_to_bytes(
        portfolio: Portfolio,
        password: str,
        kdf_params: KdfParams | None = None,
    ) -> bytes:
        """Encrypt a portfolio with a fresh salt and nonce.

        Args:
            portfolio: The portfolio to persist.
            password: User password.
            kdf_params: Argon2id costs; defaults to KdfParams().

        Returns:
            The complete SVTK file contents.
        """
        params = kdf_params or KdfParams()
        plaintext = StorageManager.serialize(portfolio)
        salt = encryption.generate_salt()
        nonce = encryption.generate_nonce()
        key = encryption.derive_key(password, salt, params)
        ciphertext = encryption.encrypt(plaintext, key, nonce)
        data = svtk_format.write_file(svtk_format.CURRENT_VERSION, params, salt, nonce, ciphertext)
        logger.info(
            "Saved portfolio: %d events, %d cached prices, %d bytes",
            len(portfolio.events),
            portfolio.price_cache.total_entries(),
            len(data),
        )
        return data

    @staticmethod
    def load_from_bytes(data: bytes, password: str) -> Portfolio:
        """Decrypt and deserialize; header KDF parameters are honored."""
        header, ciphertext = svtk_format.read_file(data)
        key = encryption.derive_key(password, header.salt, header.kdf_params)
        plaintext = encryption.decrypt(ciphertext, key, header.nonce)
        portfolio = StorageManager.deserialize(plaintext)
        logger.info("Loaded portfolio: %d events (format v%d)", len(portfolio.events), header.version)
        return portfolio

    @staticmethod
    def save_to_file(
        portfolio: Portfolio,
        path: str | Path,
        password: str,
        kdf_params: KdfParams | None = None,
    ) -> None:
        data = StorageManager.save_to_bytes(portfolio, password, kdf_params)
        try:
            Path(path).write_bytes(data)
        except OSError as e:
            raise FileIOError(str(e)) from e

    @staticmethod
    def load_from_file(path: str | Path, password: str) -> Portfolio:
        try:
            data = Path(path).read_bytes()
        except OSError as e:
            raise FileIOError(str(e)) from e
        return StorageManager.load_from_bytes(data, password)
