"""Key derivation and authenticated encryption for the portfolio file.

Argon2id turns the password into a 256-bit key; AES-256-GCM encrypts the
payload with the 16-byte tag appended, so no separate MAC is needed.
"""
import secrets
from dataclasses import dataclass

from cryptography.exceptions import InvalidTag, UnsupportedAlgorithm
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.argon2 import Argon2id

from savings_tracker.errors import DecryptionError, EncryptionError

KEY_SIZE = 32
SALT_SIZE = 16
NONCE_SIZE = 12


@dataclass(frozen=True)
class KdfParams:
    """Argon2id cost parameters, stored in the file header."""

    memory_cost: int = 65_536  # KiB (64 MiB)
    time_cost: int = 3
    parallelism: int = 4


def derive_key(password: str, salt: bytes, params: KdfParams) -> bytes:
    """Derive a 32-byte key from password and salt. Pure: same inputs, same key."""
    try:
        kdf = Argon2id(
            salt=salt,
            length=KEY_SIZE,
            iterations=params.time_cost,
            lanes=params.parallelism,
            memory_cost=params.memory_cost,
        )
        return kdf.derive(password.encode("utf-8"))
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise EncryptionError(f"Invalid Argon2 parameters: {e}") from e


def encrypt(plaintext: bytes, key: bytes, nonce: bytes) -> bytes:
    """AES-256-GCM encrypt; the result ends with the authentication tag."""
    try:
        return AESGCM(key).encrypt(nonce, plaintext, None)
    except (ValueError, OverflowError) as e:
        raise EncryptionError(str(e)) from e


def decrypt(ciphertext: bytes, key: bytes, nonce: bytes) -> bytes:
    """AES-256-GCM decrypt and verify.

    Wrong password, tampering and truncation all raise the same DecryptionError.
    """
    try:
        return AESGCM(key).decrypt(nonce, ciphertext, None)
    except (InvalidTag, ValueError) as e:
        raise DecryptionError() from e


def generate_salt() -> bytes:
    return secrets.token_bytes(SALT_SIZE)


def generate_nonce() -> bytes:
    return secrets.token_bytes(NONCE_SIZE)
