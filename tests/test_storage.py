"""Tests for encryption primitives, the SVTK container and StorageManager."""
import struct
from datetime import date

import pytest
from fakes import CHEAP_KDF

from savings_tracker.errors import (DecryptionError, DeserializationError,
                                    EncryptionError, FileIOError,
                                    InvalidFileFormatError,
                                    UnsupportedVersionError)
from savings_tracker.models import Asset, Event, EventType, Portfolio
from savings_tracker.storage import KdfParams, StorageManager, encryption
from savings_tracker.storage import format as svtk_format


def _sample_portfolio() -> Portfolio:
    portfolio = Portfolio()
    portfolio.events.append(
        Event.new(EventType.BUY, Asset.crypto("BTC", "Bitcoin"), 1.0, date(2025, 1, 15), "dca")
    )
    portfolio.trash.append(
        Event.new(EventType.BUY, Asset.stock("AAPL"), 3.0, date(2025, 1, 10))
    )
    portfolio.settings.default_currency = "PLN"
    portfolio.price_cache.set_price("BTC", "USD", date(2025, 1, 15), 42_000.0)
    return portfolio


def _frame(kdf: KdfParams, ciphertext: bytes = b"x" * 32, version: int = 1) -> bytes:
    return svtk_format.write_file(version, kdf, b"s" * 16, b"n" * 12, ciphertext)


# ---- encryption ----


def test_derive_key_is_deterministic():
    salt = encryption.generate_salt()
    first = encryption.derive_key("pw", salt, CHEAP_KDF)
    assert first == encryption.derive_key("pw", salt, CHEAP_KDF)
    assert len(first) == encryption.KEY_SIZE
    assert first != encryption.derive_key("pw2", salt, CHEAP_KDF)


def test_encrypt_decrypt_and_tamper_detection():
    key = encryption.derive_key("pw", encryption.generate_salt(), CHEAP_KDF)
    nonce = encryption.generate_nonce()
    ciphertext = encryption.encrypt(b"hello", key, nonce)
    assert encryption.decrypt(ciphertext, key, nonce) == b"hello"

    tampered = bytes([ciphertext[0] ^ 1]) + ciphertext[1:]
    with pytest.raises(DecryptionError):
        encryption.decrypt(tampered, key, nonce)
    with pytest.raises(DecryptionError):
        encryption.decrypt(ciphertext[:-1], key, nonce)


# ---- container format ----


def test_header_size_and_round_trip():
    assert svtk_format.MIN_HEADER_SIZE == 54
    data = _frame(CHEAP_KDF, b"cipher") + b"trailing garbage"
    header, ciphertext = svtk_format.read_file(data)
    assert ciphertext == b"cipher"
    assert header.kdf_params == CHEAP_KDF
    assert header.version == svtk_format.CURRENT_VERSION


def test_rejects_short_buffer_and_bad_magic():
    with pytest.raises(InvalidFileFormatError):
        svtk_format.read_file(b"SVTK")
    with pytest.raises(InvalidFileFormatError, match="magic"):
        svtk_format.read_file(b"NOPE" + _frame(CHEAP_KDF)[4:])


@pytest.mark.parametrize("version", [0, 2])
def test_rejects_unsupported_versions(version):
    with pytest.raises(UnsupportedVersionError) as info:
        svtk_format.read_file(_frame(CHEAP_KDF, version=version))
    assert info.value.version == version


@pytest.mark.parametrize(
    "kdf, field",
    [
        (KdfParams(memory_cost=0, time_cost=1, parallelism=1), "memory_cost"),
        (KdfParams(memory_cost=64, time_cost=21, parallelism=1), "time_cost"),
        (KdfParams(memory_cost=64, time_cost=1, parallelism=17), "parallelism"),
    ],
)
def test_rejects_out_of_range_kdf_params(kdf, field):
    with pytest.raises(InvalidFileFormatError, match=field):
        svtk_format.read_file(_frame(kdf))


def test_rejects_truncated_ciphertext():
    data = _frame(CHEAP_KDF, b"x" * 32)
    with pytest.raises(InvalidFileFormatError, match="truncated"):
        svtk_format.read_file(data[:-1])


def test_header_layout_is_little_endian():
    data = _frame(KdfParams(memory_cost=65_536, time_cost=3, parallelism=4), b"abc")
    assert data[:4] == b"SVTK"
    assert struct.unpack_from("<H", data, 4)[0] == 1
    assert struct.unpack_from("<III", data, 6) == (65_536, 3, 4)
    assert struct.unpack_from("<Q", data, 46)[0] == 3


# ---- storage manager ----


def test_save_load_empty_portfolio_with_wrong_password():
    data = StorageManager.save_to_bytes(Portfolio(), "p", CHEAP_KDF)
    assert StorageManager.load_from_bytes(data, "p") == Portfolio()
    with pytest.raises(DecryptionError):
        StorageManager.load_from_bytes(data, "q")


def test_save_load_preserves_everything():
    portfolio = _sample_portfolio()
    loaded = StorageManager.load_from_bytes(
        StorageManager.save_to_bytes(portfolio, "hunter2", CHEAP_KDF), "hunter2"
    )
    assert loaded == portfolio
    assert loaded.events[0].id == portfolio.events[0].id
    assert loaded.trash[0].id == portfolio.trash[0].id


def test_save_is_not_deterministic():
    portfolio = _sample_portfolio()
    first = StorageManager.save_to_bytes(portfolio, "pw", CHEAP_KDF)
    second = StorageManager.save_to_bytes(portfolio, "pw", CHEAP_KDF)
    assert first != second


def test_default_kdf_params_are_written_to_header():
    data = StorageManager.save_to_bytes(Portfolio(), "pw")
    header, _ = svtk_format.read_file(data)
    assert header.kdf_params == KdfParams()


def test_file_round_trip(tmp_path):
    path = tmp_path / "portfolio.svtk"
    StorageManager.save_to_file(_sample_portfolio(), path, "pw", CHEAP_KDF)
    assert StorageManager.load_from_file(path, "pw").settings.default_currency == "PLN"


def test_missing_file_raises_file_io_error(tmp_path):
    with pytest.raises(FileIOError):
        StorageManager.load_from_file(tmp_path / "missing.svtk", "pw")


def test_derive_key_rejects_params_argon2_refuses():
    # Within the header bounds, but Argon2 needs at least 8 KiB per lane
    with pytest.raises(EncryptionError):
        encryption.derive_key("pw", b"s" * 16, KdfParams(memory_cost=8, time_cost=1, parallelism=4))


def _encrypted(plaintext: bytes, password: str) -> bytes:
    salt, nonce = encryption.generate_salt(), encryption.generate_nonce()
    key = encryption.derive_key(password, salt, CHEAP_KDF)
    ciphertext = encryption.encrypt(plaintext, key, nonce)
    return svtk_format.write_file(svtk_format.CURRENT_VERSION, CHEAP_KDF, salt, nonce, ciphertext)


@pytest.mark.parametrize(
    "plaintext",
    [
        b"not json",
        b'{"events": [{"event_type": "Buy"}]}',
        b'{"price_cache": {"entries": [{"sym": "BTC"}]}}',
        b'{"price_cache": {"entries": [1]}}',
        b'{"price_cache": {"last_updated": [{"symbol": "BTC", "currency": "USD"}]}}',
    ],
)
def test_malformed_payload_with_correct_password(plaintext):
    with pytest.raises(DeserializationError):
        StorageManager.load_from_bytes(_encrypted(plaintext, "pw"), "pw")
