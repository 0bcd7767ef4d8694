"""Tests for otpcli.models — TokenRecord <-> TOML table conversion."""

from __future__ import annotations

import pytest

from otpcli.errors import ConfigError
from otpcli.models import StorageKind, TokenAlgorithm, TokenRecord
from otpcli.otp_core import SHA256


class TestTokenRecord:
    def test_inline_record(self) -> None:
        record = TokenRecord.inline("JBSWY3DPEHPK3PXP")
        assert record.storage is StorageKind.INLINE
        assert record.algorithm is TokenAlgorithm.TOTP_SHA1
        assert record.secret == "JBSWY3DPEHPK3PXP"

    def test_keychain_record_has_no_secret(self) -> None:
        record = TokenRecord.keychain(TokenAlgorithm.RSA_TOKEN)
        assert record.storage is StorageKind.KEYCHAIN
        assert record.secret is None

    def test_to_dict_omits_unset_fields(self) -> None:
        assert TokenRecord.keychain().to_dict() == {"algorithm": "TotpSha1", "storage": "KeyChain"}

    def test_to_dict_from_dict(self) -> None:
        record = TokenRecord.inline("MZXW6YQ", TokenAlgorithm.TOTP_SHA256, digits=8, period=60)
        assert TokenRecord.from_dict("x", record.to_dict()) == record

    def test_legacy_entry_defaults(self) -> None:
        record = TokenRecord.from_dict("old", {"secret": "JBSWY3DPEHPK3PXP"})
        assert record == TokenRecord.inline("JBSWY3DPEHPK3PXP")

    def test_algorithm_keyed_hash(self) -> None:
        assert TokenAlgorithm.TOTP_SHA256.keyed_hash is SHA256
        assert TokenAlgorithm.RSA_TOKEN.keyed_hash is None
        assert not TokenAlgorithm.RSA_TOKEN.is_totp

    @pytest.mark.parametrize(
        "data",
        [
            {"secret": "A", "algorithm": "Md5"},
            {"secret": "A", "storage": "Vault"},
            {"secret": 42},
            {"secret": "JBSWY3DP", "storage": "KeyChain"},
            {"secret": "JBSWY3DP", "digits": 9},
            {"secret": "JBSWY3DP", "period": 0},
            {"secret": "JBSWY3DP", "period": "30"},
            "not a table",
        ],
    )
    def test_invalid_tables(self, data) -> None:
        with pytest.raises(ConfigError):
            TokenRecord.from_dict("bad", data)
