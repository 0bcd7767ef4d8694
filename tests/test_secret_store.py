"""Tests for otpcli.secret_store — keychain collaborators and SecretResolver."""

from __future__ import annotations

import keyring
import pytest
from keyring.errors import KeyringError, PasswordDeleteError

from otpcli.errors import CapabilityUnavailable, MissingInlineSecret, SecretError, SecretUnavailable
from otpcli.models import StorageKind, TokenAlgorithm, TokenRecord
from otpcli.secret_store import KEYCHAIN_SERVICE, KeyringKeychain, MemoryKeychain, SecretResolver


# ===================================================================
# resolve()
# ===================================================================


class TestResolve:
    def test_inline(self, resolver: SecretResolver) -> None:
        assert resolver.resolve("gh", TokenRecord.inline("JBSWY3DP")) == "JBSWY3DP"

    @pytest.mark.parametrize("secret", [None, ""])
    def test_inline_without_secret(self, resolver: SecretResolver, secret) -> None:
        record = TokenRecord(StorageKind.INLINE, secret=secret)
        with pytest.raises(MissingInlineSecret) as exc:
            resolver.resolve("gh", record)
        assert exc.value.name == "gh"

    def test_keychain(self, resolver: SecretResolver, keychain: MemoryKeychain) -> None:
        keychain.set("gh", "JBSWY3DP")
        assert resolver.resolve("gh", TokenRecord.keychain()) == "JBSWY3DP"

    def test_keychain_miss(self, resolver: SecretResolver) -> None:
        with pytest.raises(SecretUnavailable):
            resolver.resolve("gh", TokenRecord.keychain())

    def test_keychain_not_configured(self) -> None:
        with pytest.raises(CapabilityUnavailable):
            SecretResolver(None).resolve("gh", TokenRecord.keychain())

    def test_inline_works_without_keychain(self) -> None:
        assert SecretResolver(None).resolve("gh", TokenRecord.inline("JBSWY3DP")) == "JBSWY3DP"


# ===================================================================
# store() / discard() / migrate()
# ===================================================================


class TestStore:
    def test_store_inline(self, resolver: SecretResolver, keychain: MemoryKeychain) -> None:
        record = resolver.store("gh", "JBSWY3DP", StorageKind.INLINE, digits=8)
        assert record == TokenRecord.inline("JBSWY3DP", digits=8)
        assert keychain.secrets == {}

    def test_store_keychain(self, resolver: SecretResolver, keychain: MemoryKeychain) -> None:
        record = resolver.store("vpn", "blob", StorageKind.KEYCHAIN, TokenAlgorithm.RSA_TOKEN)
        assert record == TokenRecord.keychain(TokenAlgorithm.RSA_TOKEN)
        assert keychain.secrets == {"vpn": "blob"}

    def test_discard_keychain(self, resolver: SecretResolver, keychain: MemoryKeychain) -> None:
        keychain.set("gh", "JBSWY3DP")
        resolver.discard("gh", TokenRecord.keychain())
        assert keychain.secrets == {}

    def test_discard_inline_is_noop(self) -> None:
        SecretResolver(None).discard("gh", TokenRecord.inline("JBSWY3DP"))

    def test_migrate_round_trip(self, resolver: SecretResolver, keychain: MemoryKeychain) -> None:
        original = TokenRecord.inline("JBSWY3DPEHPK3PXP", TokenAlgorithm.TOTP_SHA512, period=60)
        migrated = resolver.migrate("gh", original, StorageKind.KEYCHAIN)

        assert migrated.storage is StorageKind.KEYCHAIN
        assert migrated.secret is None
        assert (migrated.algorithm, migrated.period) == (TokenAlgorithm.TOTP_SHA512, 60)
        assert resolver.resolve("gh", migrated) == resolver.resolve("gh", original)
        # the old record is not mutated
        assert original.secret == "JBSWY3DPEHPK3PXP"

    def test_migrate_back_to_inline(self, resolver: SecretResolver, keychain: MemoryKeychain) -> None:
        keychain.set("gh", "JBSWY3DP")
        record = resolver.migrate("gh", TokenRecord.keychain(), StorageKind.INLINE)
        assert record == TokenRecord.inline("JBSWY3DP")

    def test_migrate_same_kind_returns_record(self, resolver: SecretResolver) -> None:
        record = TokenRecord.inline("JBSWY3DP")
        assert resolver.migrate("gh", record, StorageKind.INLINE) is record


# ===================================================================
# KeyringKeychain
# ===================================================================


class TestKeyringKeychain:
    def test_get_and_set_use_service_id(self, monkeypatch: pytest.MonkeyPatch) -> None:
        calls = {}
        monkeypatch.setattr(keyring, "set_password", lambda s, n, p: calls.update({(s, n): p}))
        monkeypatch.setattr(keyring, "get_password", lambda s, n: calls.get((s, n)))

        chain = KeyringKeychain()
        chain.set("gh", "JBSWY3DP")
        assert calls == {(KEYCHAIN_SERVICE, "gh"): "JBSWY3DP"}
        assert chain.get("gh") == "JBSWY3DP"
        assert chain.get("other") is None

    def test_delete_missing_entry_is_ignored(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def delete(service, name):
            raise PasswordDeleteError("not found")

        monkeypatch.setattr(keyring, "delete_password", delete)
        KeyringKeychain().delete("gh")

    def test_backend_errors_become_secret_errors(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def broken(*args):
            raise KeyringError("locked")

        monkeypatch.setattr(keyring, "get_password", broken)
        monkeypatch.setattr(keyring, "set_password", broken)
        chain = KeyringKeychain()
        with pytest.raises(SecretError, match="locked"):
            chain.get("gh")
        with pytest.raises(SecretError, match="locked"):
            chain.set("gh", "x")
