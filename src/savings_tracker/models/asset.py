"""Tracked assets and their categories."""
from enum import Enum

from pydantic import BaseModel, field_validator


class AssetType(str, Enum):
    """Asset category; decides which price providers are consulted."""

    CRYPTO = "Crypto"
    FIAT = "Fiat"
    METAL = "Metal"
    STOCK = "Stock"

    def __str__(self) -> str:
        return self.value


class Asset(BaseModel):
    """A trackable asset (currency, crypto, metal, stock).

    Equality and hashing use (symbol, asset_type) only, so the display name
    never splits one asset into two holdings.
    """

    symbol: str  # e.g. "BTC", "USD", "XAU", "AAPL"
    name: str = ""
    asset_type: AssetType

    model_config = {"frozen": True}

    @field_validator("symbol")
    @classmethod
    def _normalize_symbol(cls, v: str) -> str:
        return v.strip().upper()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Asset):
            return NotImplemented
        return self.symbol == other.symbol and self.asset_type == other.asset_type

    def __hash__(self) -> int:
        return hash((self.symbol, self.asset_type))

    @classmethod
    def crypto(cls, symbol: str, name: str = "") -> "Asset":
        return cls(symbol=symbol, name=name, asset_type=AssetType.CRYPTO)

    @classmethod
    def fiat(cls, symbol: str, name: str = "") -> "Asset":
        return cls(symbol=symbol, name=name, asset_type=AssetType.FIAT)

    @classmethod
    def metal(cls, symbol: str, name: str = "") -> "Asset":
        return cls(symbol=symbol, name=name, asset_type=AssetType.METAL)

    @classmethod
    def stock(cls, symbol: str, name: str = "") -> "Asset":
        return cls(symbol=symbol, name=name, asset_type=AssetType.STOCK)
