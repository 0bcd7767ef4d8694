"""
errors.py — Exception types raised by the otpcli core.

The core never prints: every failure is raised as one of the types below and
turned into a message + exit code by the CLI layer (otp_cli.py).
"""


class OtpError(Exception):
    """Base class for all otpcli failures."""


class InvalidEncoding(OtpError, ValueError):
    """Secret text is not valid RFC4648 base32."""


class InvalidSecretEncoding(InvalidEncoding):
    """The secret stored for a named token could not be base32-decoded."""

    def __init__(self, name: str):
        super().__init__(f"Secret for '{name}' is not valid base32")
        self.name = name


class SecretError(OtpError):
    """A secret could not be resolved from its storage backend."""


class MissingInlineSecret(SecretError):
    def __init__(self, name: str):
        super().__init__(f"'{name}' is stored in the config but has no secret")
        self.name = name


class SecretUnavailable(SecretError):
    def __init__(self, name: str):
        super().__init__(f"No keychain secret found for '{name}'")
        self.name = name


class ImportFailed(OtpError):
    """An exported RSA token blob could not be imported."""


class UnknownName(OtpError, KeyError):
    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self):
        return f"No token named '{self.name}'"


class DigitsOutOfRange(OtpError, ValueError):
    def __init__(self, digits):
        super().__init__(f"Digits must be between 1 and 8, got {digits}")
        self.digits = digits


class ConfigError(OtpError):
    """The configuration file is unreadable or malformed."""


class CapabilityUnavailable(OtpError):
    """An optional collaborator (keychain, RSA token codec) is not configured."""
