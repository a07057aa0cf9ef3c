"""SVTK container: a little-endian framed envelope around the ciphertext.

    offset size field
     0      4  magic = b"SVTK"
     4      2  version (u16)
     6      4  kdf memory_cost (u32, KiB)
    10      4  kdf time_cost (u32)
    14      4  kdf parallelism (u32)
    18     16  salt
    34     12  nonce
    46      8  ciphertext_len (u64)
    54      N  ciphertext (AES-GCM tag included)

Bytes after the ciphertext are ignored.
"""
import struct
from dataclasses import dataclass

from savings_tracker.errors import InvalidFileFormatError, UnsupportedVersionError
from savings_tracker.storage.encryption import KdfParams

MAGIC = b"SVTK"
CURRENT_VERSION = 1

_HEADER = struct.Struct("<4sHIII16s12sQ")
MIN_HEADER_SIZE = _HEADER.size  # 54

# Bounds on header-supplied KDF costs so a crafted file cannot exhaust memory/CPU
MEMORY_COST_RANGE = (8, 1_048_576)
TIME_COST_RANGE = (1, 20)
PARALLELISM_RANGE = (1, 16)


@dataclass(frozen=True)
class FileHeader:
    version: int
    kdf_params: KdfParams
    salt: bytes
    nonce: bytes
    ciphertext_len: int


def write_file(
    version: int,
    kdf_params: KdfParams,
    salt: bytes,
    nonce: bytes,
    ciphertext: bytes,
) -> bytes:
    """Assemble header and ciphertext into the on-disk byte layout."""
    header = _HEADER.pack(
        MAGIC,
        version,
        kdf_params.memory_cost,
        kdf_params.time_cost,
        kdf_params.parallelism,
        salt,
        nonce,
        len(ciphertext),
    )
    return header + ciphertext


def _check_range(field: str, value: int, bounds: tuple[int, int], unit: str = "") -> None:
    low, high = bounds
    if not low <= value <= high:
        raise InvalidFileFormatError(
            f"KDF {field} out of safe range: {value}{unit} (expected {low}..{high})"
        )


def read_file(data: bytes) -> tuple[FileHeader, bytes]:
    """Parse and validate the header; return it with the ciphertext slice."""
    if len(data) < MIN_HEADER_SIZE:
        raise InvalidFileFormatError("File too small to be a valid SVTK file")

    (
        magic,
        version,
        memory_cost,
        time_cost,
        parallelism,
        salt,
        nonce,
        ciphertext_len,
    ) = _HEADER.unpack_from(data, 0)

    if magic != MAGIC:
        raise InvalidFileFormatError("Invalid magic bytes, not an SVTK file")
    if version == 0 or version > CURRENT_VERSION:
        raise UnsupportedVersionError(version)

    _check_range("memory_cost", memory_cost, MEMORY_COST_RANGE, " KiB")
    _check_range("time_cost", time_cost, TIME_COST_RANGE)
    _check_range("parallelism", parallelism, PARALLELISM_RANGE)

    available = len(data) - MIN_HEADER_SIZE
    if available < ciphertext_len:
        raise InvalidFileFormatError(
            f"File truncated: expected {ciphertext_len} bytes of ciphertext, got {available}"
        )

    header = FileHeader(
        version=version,
        kdf_params=KdfParams(
            memory_cost=memory_cost,
            time_cost=time_cost,
            parallelism=parallelism,
        ),
        salt=salt,
        nonce=nonce,
        ciphertext_len=ciphertext_len,
    )
    return header, bytes(data[MIN_HEADER_SIZE:MIN_HEADER_SIZE + ciphertext_len])
