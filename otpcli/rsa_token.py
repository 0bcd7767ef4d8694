"""
rsa_token.py — Plug-in point for RSA SecurID style software tokens.

otpcli does not decode SecurID tokens itself. A codec implementing
RsaTokenCodec can be handed to TokenService / otp_cli.main; without one,
importing or generating an "SToken" entry fails with CapabilityUnavailable.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional


class RsaTokenCodec(ABC):
    """
    Operations otpcli needs from an RSA token library.

    Tokens are opaque to otpcli: whatever `parse` / `import_token` return is
    only ever passed back to `export` / `generate`.
    """

    @abstractmethod
    def read_file(self, path: str) -> str:
        """Read a token file (e.g. .sdtid) from disk."""

    @abstractmethod
    def parse(self, blob: str, pin: str) -> Any:
        """Decrypt the token file contents with the user's PIN."""

    @abstractmethod
    def export(self, token: Any) -> str:
        """Serialize a token to the string stored as the entry's secret."""

    @abstractmethod
    def import_token(self, blob: str) -> Optional[Any]:
        """Inverse of export; None if the blob is not a valid token."""

    @abstractmethod
    def generate(self, token: Any, now: datetime) -> str:
        """Current tokencode for `now`."""
