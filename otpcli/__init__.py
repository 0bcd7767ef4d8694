"""
otpcli package
==============

TOTP (RFC 6238) code generator for a named collection of secrets, with
secrets kept either inline in ~/.config/otpcli/config.toml or in the OS
keychain.

──────────────────────────────────────────────
Core algorithm
──────────────────────────────────────────────
- HOTP (RFC 4226):
  code = Truncate(HMAC(key=secret, msg=counter)) mod 10^digits
- TOTP (RFC 6238):
  HOTP with counter = floor(timestamp / timestep)
  → default timestep = 30 seconds, 6 digits, SHA-1.
  → SHA-256 / SHA-512 are supported per entry.
- Dynamic truncation:
  4 bytes taken at offset (last byte & 0x0F), top bit cleared.

──────────────────────────────────────────────
Quick example
──────────────────────────────────────────────
>>> from otpcli import decode_secret, totp
>>> totp(decode_secret("GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ"), timestamp=59, digits=8)
'94287082'

Managing tokens programmatically:

    from otpcli import ConfigStore, SecretResolver, KeyringKeychain, TokenService

    store = ConfigStore()
    service = TokenService(store.load(), SecretResolver(KeyringKeychain()))
    print(service.generate("github"))
"""

from .config_manager import ConfigStore
from .errors import (
    CapabilityUnavailable,
    ConfigError,
    DigitsOutOfRange,
    ImportFailed,
    InvalidEncoding,
    InvalidSecretEncoding,
    MissingInlineSecret,
    OtpError,
    SecretUnavailable,
    UnknownName,
)
from .models import StorageKind, TokenAlgorithm, TokenRecord
from .otp_core import SHA1, SHA256, SHA512, KeyedHash, decode_secret, encode_secret, hotp, totp
from .rsa_token import RsaTokenCodec
from .secret_store import KeyringKeychain, MemoryKeychain, SecretResolver
from .tokens import TokenService

__version__ = "0.4.0"

__all__ = [
    "CapabilityUnavailable",
    "ConfigError",
    "ConfigStore",
    "DigitsOutOfRange",
    "ImportFailed",
    "InvalidEncoding",
    "InvalidSecretEncoding",
    "KeyedHash",
    "KeyringKeychain",
    "MemoryKeychain",
    "MissingInlineSecret",
    "OtpError",
    "RsaTokenCodec",
    "SHA1",
    "SHA256",
    "SHA512",
    "SecretResolver",
    "SecretUnavailable",
    "StorageKind",
    "TokenAlgorithm",
    "TokenRecord",
    "TokenService",
    "UnknownName",
    "decode_secret",
    "encode_secret",
    "hotp",
    "totp",
]
