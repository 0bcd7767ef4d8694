"""
models.py — Token records as stored in config.toml.

A TokenRecord describes where a named token's secret lives and how codes are
generated from it. One record per [totp.<name>] table in the config file.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .errors import ConfigError
from .otp_core import SHA1, SHA256, SHA512, KeyedHash, check_digits


class StorageKind(Enum):
    # values are the tags written to config.toml
    INLINE = "Config"
    KEYCHAIN = "KeyChain"


class TokenAlgorithm(Enum):
    TOTP_SHA1 = "TotpSha1"
    TOTP_SHA256 = "TotpSha256"
    TOTP_SHA512 = "TotpSha512"
    RSA_TOKEN = "SToken"

    @property
    def keyed_hash(self) -> Optional[KeyedHash]:
        """KeyedHash for TOTP algorithms, None for RSA tokens."""
        return _TOTP_HASHES.get(self)

    @property
    def is_totp(self) -> bool:
        return self in _TOTP_HASHES


_TOTP_HASHES = {
    TokenAlgorithm.TOTP_SHA1: SHA1,
    TokenAlgorithm.TOTP_SHA256: SHA256,
    TokenAlgorithm.TOTP_SHA512: SHA512,
}


@dataclass(frozen=True)
class TokenRecord:
    storage: StorageKind
    algorithm: TokenAlgorithm = TokenAlgorithm.TOTP_SHA1
    secret: Optional[str] = None
    digits: Optional[int] = None
    period: Optional[int] = None

    @classmethod
    def inline(cls, secret: str, algorithm: TokenAlgorithm = TokenAlgorithm.TOTP_SHA1,
               digits: int = None, period: int = None) -> "TokenRecord":
        return cls(StorageKind.INLINE, algorithm, secret, digits, period)

    @classmethod
    def keychain(cls, algorithm: TokenAlgorithm = TokenAlgorithm.TOTP_SHA1,
                 digits: int = None, period: int = None) -> "TokenRecord":
        return cls(StorageKind.KEYCHAIN, algorithm, None, digits, period)

    def to_dict(self) -> dict:
        """TOML table for this record; unset optional fields are left out."""
        data = {"algorithm": self.algorithm.value, "storage": self.storage.value}
        if self.secret is not None:
            data["secret"] = self.secret
        if self.digits is not None:
            data["digits"] = self.digits
        if self.period is not None:
            data["period"] = self.period
        return data

    @classmethod
    def from_dict(cls, name: str, data: dict) -> "TokenRecord":
        """
        Build a record from its TOML table.

        Older config files have neither `storage` nor `algorithm`: those load
        as an inline SHA-1 TOTP secret.

        Raises:
            ConfigError: on unknown tags, wrong types or a keychain record
                that also carries an inline secret
        """
        if not isinstance(data, dict):
            raise ConfigError(f"[totp.{name}] must be a table")
        try:
            storage = StorageKind(data.get("storage", StorageKind.INLINE.value))
            algorithm = TokenAlgorithm(data.get("algorithm", TokenAlgorithm.TOTP_SHA1.value))
        except ValueError as e:
            raise ConfigError(f"[totp.{name}]: {e}") from e

        secret = data.get("secret")
        if secret is not None and not isinstance(secret, str):
            raise ConfigError(f"[totp.{name}]: secret must be a string")
        if storage is StorageKind.KEYCHAIN and secret is not None:
            raise ConfigError(f"[totp.{name}]: keychain entries cannot have an inline secret")

        digits = data.get("digits")
        if digits is not None:
            try:
                check_digits(digits)
            except ValueError as e:
                raise ConfigError(f"[totp.{name}]: {e}") from e
        period = data.get("period")
        if period is not None and (not isinstance(period, int) or isinstance(period, bool) or period <= 0):
            raise ConfigError(f"[totp.{name}]: period must be a positive integer")

        return cls(storage, algorithm, secret, digits, period)
