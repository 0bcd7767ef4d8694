"""Shared fixtures: in-memory keychain, fixed clock and a fake RSA token codec."""

from __future__ import annotations

from datetime import datetime
from typing import Any

import pytest

from otpcli.rsa_token import RsaTokenCodec
from otpcli.secret_store import MemoryKeychain, SecretResolver

# RFC 6238 Appendix B seed, base32-encoded
RFC_SECRET = b"12345678901234567890"
RFC_SECRET_B32 = "GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ"


class FakeRsaCodec(RsaTokenCodec):
    """Token file = serial number; exported form = "serial:pin"; code = epoch seconds."""

    def read_file(self, path: str) -> str:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()

    def parse(self, blob: str, pin: str) -> Any:
        if pin != "1234":
            return None
        return {"serial": blob.strip(), "pin": pin}

    def export(self, token: Any) -> str:
        return f"{token['serial']}:{token['pin']}"

    def import_token(self, blob: str) -> Any:
        if ":" not in blob:
            return None
        serial, pin = blob.split(":", 1)
        return {"serial": serial, "pin": pin}

    def generate(self, token: Any, now: datetime) -> str:
        return f"{int(now.timestamp()) % 100_000_000:08d}"


@pytest.fixture
def keychain() -> MemoryKeychain:
    return MemoryKeychain()


@pytest.fixture
def resolver(keychain: MemoryKeychain) -> SecretResolver:
    return SecretResolver(keychain)


@pytest.fixture
def rsa_codec() -> FakeRsaCodec:
    return FakeRsaCodec()


@pytest.fixture
def clock():
    """Clock frozen at t=59s (first RFC 6238 test vector)."""
    return lambda: 59
