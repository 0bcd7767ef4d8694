"""
secret_store.py — Where token secrets live and how they are fetched.

A token secret is stored either inline in config.toml (StorageKind.INLINE)
or in the OS keychain under the service id "urn:otpcli" (StorageKind.KEYCHAIN).
SecretResolver hides the difference from the rest of the code.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from .errors import CapabilityUnavailable, MissingInlineSecret, SecretError, SecretUnavailable
from .models import StorageKind, TokenAlgorithm, TokenRecord

logger = logging.getLogger(__name__)

KEYCHAIN_SERVICE = "urn:otpcli"


# --- Keychain collaborators ------------------------------------------------
class Keychain(ABC):
    """Key/value secret store addressed by token name."""

    @abstractmethod
    def get(self, name: str) -> Optional[str]:
        """Return the secret for `name`, or None if there is none."""

    @abstractmethod
    def set(self, name: str, secret: str) -> None:
        """Store (or overwrite) the secret for `name`."""

    @abstractmethod
    def delete(self, name: str) -> None:
        """Remove the secret for `name`; a missing entry is not an error."""


class KeyringKeychain(Keychain):
    """OS keychain (macOS Keychain, Secret Service, Windows Credential Manager) via `keyring`."""

    def __init__(self, service: str = KEYCHAIN_SERVICE):
        self.service = service

    def get(self, name):
        try:
            return keyring.get_password(self.service, name)
        except KeyringError as e:
            raise SecretError(f"Keychain lookup for '{name}' failed: {e}") from e

    def set(self, name, secret):
        try:
            keyring.set_password(self.service, name, secret)
        except KeyringError as e:
            raise SecretError(f"Keychain write for '{name}' failed: {e}") from e

    def delete(self, name):
        try:
            keyring.delete_password(self.service, name)
        except PasswordDeleteError:
            logger.debug("No keychain entry for %s, nothing to delete", name)
        except KeyringError as e:
            raise SecretError(f"Keychain delete for '{name}' failed: {e}") from e


class MemoryKeychain(Keychain):
    """Dict-backed keychain, for tests and hosts without a keyring backend."""

    def __init__(self, secrets: dict = None):
        self.secrets = dict(secrets or {})

    def get(self, name):
        return self.secrets.get(name)

    def set(self, name, secret):
        self.secrets[name] = secret

    def delete(self, name):
        self.secrets.pop(name, None)


# --- Resolver ----------------------------------------------------------------
class SecretResolver:
    """
    Resolve and store token secrets for either storage kind.

    Arguments:
        keychain: Keychain collaborator, or None when keychain support is not
            available. Touching a keychain record without one raises
            CapabilityUnavailable.
    """

    def __init__(self, keychain: Optional[Keychain] = None):
        self.keychain = keychain

    def _require_keychain(self) -> Keychain:
        if self.keychain is None:
            raise CapabilityUnavailable("Keychain support is not configured")
        return self.keychain

    def resolve(self, name: str, record: TokenRecord) -> str:
        """
        Return the plaintext secret text of `record`.

        Raises:
            MissingInlineSecret: inline record without a secret
            SecretUnavailable: keychain has no entry for `name`
            CapabilityUnavailable: keychain record but no keychain configured
        """
        if record.storage is StorageKind.INLINE:
            if not record.secret:
                raise MissingInlineSecret(name)
            return record.secret
        elif record.storage is StorageKind.KEYCHAIN:
            secret = self._require_keychain().get(name)
            if secret is None:
                raise SecretUnavailable(name)
            return secret
        raise ValueError(f"Unknown storage kind: {record.storage!r}")

    def store(self, name: str, secret: str, storage: StorageKind,
              algorithm: TokenAlgorithm = TokenAlgorithm.TOTP_SHA1,
              digits: int = None, period: int = None) -> TokenRecord:
        """Persist `secret` in `storage` and return the record describing it."""
        if storage is StorageKind.INLINE:
            return TokenRecord.inline(secret, algorithm, digits, period)
        elif storage is StorageKind.KEYCHAIN:
            self._require_keychain().set(name, secret)
            return TokenRecord.keychain(algorithm, digits, period)
        raise ValueError(f"Unknown storage kind: {storage!r}")

    def discard(self, name: str, record: TokenRecord) -> None:
        """Drop whatever `record` keeps outside the config file."""
        if record.storage is StorageKind.KEYCHAIN:
            self._require_keychain().delete(name)

    def migrate(self, name: str, record: TokenRecord, storage: StorageKind) -> TokenRecord:
        """
        Move a secret to another storage kind.

        A fresh record is built from the resolved secret; the old record is
        left untouched for the caller to replace.
        """
        if record.storage is storage:
            return record
        secret = self.resolve(name, record)
        return self.store(name, secret, storage, record.algorithm, record.digits, record.period)
