"""
tokens.py — Generate codes for named tokens and manage the token set.

TokenService works on an in-memory configuration set ({name: TokenRecord}).
Mutating operations return a new set and replace `self.config`; persisting it
is the caller's job (see otp_cli.py, which hands it to ConfigStore.save).
Keychain entries a mutation drops are queued in `pending_discards` and only
deleted by flush_discards(), which the caller runs once the new set is saved.
"""

import logging
import time
from datetime import datetime, timezone
from typing import List, Optional

from .errors import (
    CapabilityUnavailable,
    ImportFailed,
    InvalidEncoding,
    InvalidSecretEncoding,
    UnknownName,
)
from .models import StorageKind, TokenAlgorithm, TokenRecord
from .otp_core import DEFAULT_DIGITS, DEFAULT_TIME_STEP, check_digits, decode_secret, totp
from .rsa_token import RsaTokenCodec
from .secret_store import SecretResolver

logger = logging.getLogger(__name__)


class TokenService:
    """
    Arguments:
        config: {name: TokenRecord}
        resolver: SecretResolver used for every secret lookup / store
        rsa_codec: optional RsaTokenCodec for "SToken" entries
        clock: time source, seconds since the Unix epoch
    """

    def __init__(self, config: dict, resolver: SecretResolver,
                 rsa_codec: Optional[RsaTokenCodec] = None, clock=time.time):
        self.config = dict(config)
        self.resolver = resolver
        self.rsa_codec = rsa_codec
        self.clock = clock
        self.pending_discards = []

    def lookup(self, name: str) -> TokenRecord:
        try:
            return self.config[name]
        except KeyError:
            raise UnknownName(name) from None

    def _require_rsa_codec(self) -> RsaTokenCodec:
        if self.rsa_codec is None:
            raise CapabilityUnavailable("RSA token support is not configured")
        return self.rsa_codec

    # --- code generation ------------------------------------------------------
    def generate(self, name: str) -> str:
        """
        Current code for the token `name`.

        Raises:
            UnknownName: no such token
            InvalidSecretEncoding: stored TOTP secret is not base32
            ImportFailed: stored RSA token cannot be imported
            SecretError / CapabilityUnavailable: secret cannot be resolved
        """
        record = self.lookup(name)
        if record.algorithm.is_totp:
            return self._standard_totp(name, record)
        elif record.algorithm is TokenAlgorithm.RSA_TOKEN:
            return self._rsa_token(name, record)
        raise ValueError(f"Unknown token algorithm: {record.algorithm!r}")

    def _standard_totp(self, name: str, record: TokenRecord) -> str:
        secret = self.resolver.resolve(name, record)
        try:
            key = bytearray(decode_secret(secret))
        except InvalidEncoding as e:
            raise InvalidSecretEncoding(name) from e
        try:
            return totp(
                key,
                timestamp=self.clock(),
                timestep=record.period or DEFAULT_TIME_STEP,
                digits=record.digits or DEFAULT_DIGITS,
                algorithm=record.algorithm.keyed_hash,
            )
        finally:
            # wipe the decoded key
            key[:] = bytes(len(key))

    def _rsa_token(self, name: str, record: TokenRecord) -> str:
        codec = self._require_rsa_codec()
        blob = self.resolver.resolve(name, record)
        token = codec.import_token(blob)
        if token is None:
            raise ImportFailed(f"Unable to import secret for '{name}' as an RSA token")
        now = datetime.fromtimestamp(self.clock(), tz=timezone.utc)
        return codec.generate(token, now)

    # --- token set management -------------------------------------------------
    def _put(self, name: str, record: TokenRecord) -> dict:
        config = dict(self.config)
        config[name] = record
        self.config = config
        return config

    def add_secret(self, name: str, secret: str, storage: StorageKind = StorageKind.INLINE,
                   algorithm: TokenAlgorithm = TokenAlgorithm.TOTP_SHA1,
                   digits: int = None, period: int = None) -> dict:
        """
        Add (or overwrite) a base32 TOTP secret.

        The secret is validated before anything is written, so an invalid
        secret never reaches the keychain or the config.

        Raises:
            InvalidEncoding: secret is not base32
            DigitsOutOfRange: digits is not in 1..8
        """
        if not algorithm.is_totp:
            raise ValueError(f"{algorithm.value} entries are added with import_rsa_token")
        decode_secret(secret)
        if digits is not None:
            check_digits(digits)
        if period is not None and period <= 0:
            raise ValueError(f"Period must be positive, got {period}")

        # an overwritten keychain entry must not linger if the new one is inline
        old = self.config.get(name)
        record = self.resolver.store(name, secret, storage, algorithm, digits, period)
        if old is not None and old.storage is not storage:
            self.pending_discards.append((name, old))
        logger.info("Added %s (%s, %s)", name, algorithm.value, storage.value)
        return self._put(name, record)

    def import_rsa_token(self, name: str, path: str, pin: str,
                         storage: StorageKind = StorageKind.INLINE) -> dict:
        """Read an RSA token file, decrypt it with `pin` and store the exported token."""
        codec = self._require_rsa_codec()
        token = codec.parse(codec.read_file(path), pin)
        if token is None:
            raise ImportFailed(f"Unable to read RSA token from {path}")
        exported = codec.export(token)
        record = self.resolver.store(name, exported, storage, TokenAlgorithm.RSA_TOKEN)
        logger.info("Imported RSA token %s", name)
        return self._put(name, record)

    def list_names(self, prefix: str = None) -> List[str]:
        names = sorted(self.config)
        if prefix:
            names = [n for n in names if n.startswith(prefix)]
        return names

    def delete_secret(self, name: str) -> dict:
        """Remove a token; its keychain entry, if any, goes on flush_discards()."""
        record = self.lookup(name)
        self.pending_discards.append((name, record))
        config = dict(self.config)
        del config[name]
        self.config = config
        logger.info("Deleted %s", name)
        return config

    def migrate_to_keychain(self) -> dict:
        """
        Move every inline secret into the keychain.

        Each record is resolved, stored under the keychain kind and the new
        record replaces the old one; keychain records are left as they are.
        """
        config = dict(self.config)
        for name in sorted(config):
            record = config[name]
            if record.storage is StorageKind.KEYCHAIN:
                continue
            logger.info("Migrating %s", name)
            config[name] = self.resolver.migrate(name, record, StorageKind.KEYCHAIN)
        self.config = config
        return config

    def flush_discards(self) -> None:
        """Delete the keychain entries dropped by add_secret / delete_secret."""
        while self.pending_discards:
            name, record = self.pending_discards.pop(0)
            self.resolver.discard(name, record)
