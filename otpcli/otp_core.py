#!/usr/bin/env python3
"""
otp_core.py — Core library for HOTP / TOTP + the base32 secret codec.

Goals:
- Pure functions / helpers used directly by TokenService and the CLI.
- No argparse, file, keychain or terminal I/O here; that lives in otp_cli.py
  and config_manager.py.
- Bit-exact with RFC4226 (HOTP) and RFC6238 (TOTP), including the
  SHA-256 / SHA-512 variants of RFC6238 Appendix B.
- Base32 handling for user-entered secrets (spaces / lower-case tolerated).

Security notes:
- Decoded key bytes should be passed as a bytearray and wiped by the caller
  once the code has been produced (see tokens.TokenService.generate).
- Nothing here logs secrets or generated codes.
"""

import base64
import binascii
import hashlib
import hmac
import struct
import time

from .errors import DigitsOutOfRange, InvalidEncoding

# --- Config / constants ----------------------------------------------------
DEFAULT_DIGITS = 6          # RFC6238 recommended: 6 digits
DEFAULT_TIME_STEP = 30      # TOTP step (seconds)
MAX_COUNTER = 2 ** 64 - 1

BASE32_ALPHABET = frozenset("ABCDEFGHIJKLMNOPQRSTUVWXYZ234567")

# index = number of digits; only 1..8 are legal
DIGITS_MODULUS = (
    1,
    10,
    100,
    1_000,
    10_000,
    100_000,
    1_000_000,
    10_000_000,
    100_000_000,
)


# --- Keyed hash capability ---------------------------------------------------
class KeyedHash:
    """
    HMAC over one digest algorithm.

    The HOTP engine only talks to this object, so adding a digest is a matter
    of creating another instance.

    Attributes:
        name: hashlib name of the digest ("sha1", "sha256", ...)
        output_length: size of the HMAC output in bytes
    """

    def __init__(self, name: str):
        self.name = name
        self.output_length = hashlib.new(name).digest_size

    def compute(self, key, message: bytes) -> bytes:
        return hmac.new(key, message, self.name).digest()

    def __repr__(self):
        return f"KeyedHash({self.name!r})"


SHA1 = KeyedHash("sha1")
SHA256 = KeyedHash("sha256")
SHA512 = KeyedHash("sha512")

_KEYED_HASHES = {h.name: h for h in (SHA1, SHA256, SHA512)}


def keyed_hash(name: str) -> KeyedHash:
    """Look up a built-in KeyedHash by name ("sha1", "SHA-256", ...)."""
    key = name.lower().replace("-", "")
    try:
        return _KEYED_HASHES[key]
    except KeyError:
        raise ValueError(f"Unsupported digest algorithm: {name}") from None


# --- Base32 secret codec -----------------------------------------------------
def normalize_secret(text: str) -> str:
    """Strip spaces and upper-case a user-entered base32 secret."""
    return text.replace(" ", "").upper()


def decode_secret(text: str) -> bytes:
    """
    Decode a base32 secret (RFC4648 alphabet, no padding) into raw key bytes.

    - Spaces are removed and letters upper-cased first.
    - Padding characters ('=') are rejected, as is any other character
      outside the alphabet.
    - Lengths that cannot form whole bytes (len % 8 in {1, 3, 6}) are rejected.
    - The unused low bits of the last character must be zero, so every
      accepted secret re-encodes to itself.

    Arguments:
        text: base32 secret as typed by the user

    Example: decode_secret("mzxw 6yq") -> b'foob'

    Returns:
        bytes: decoded key material

    Raises:
        InvalidEncoding: if the text is not valid unpadded base32
    """
    clean = normalize_secret(text)
    if not clean:
        raise InvalidEncoding("Empty base32 secret")
    bad = set(clean) - BASE32_ALPHABET
    if bad:
        raise InvalidEncoding(f"Invalid base32 characters: {''.join(sorted(bad))}")
    if len(clean) % 8 in (1, 3, 6):
        raise InvalidEncoding(f"Invalid base32 length: {len(clean)}")

    # b32decode only accepts whole 8-char blocks, so pad internally
    padded = clean + "=" * (-len(clean) % 8)
    try:
        raw = base64.b32decode(padded)
    except binascii.Error as e:
        raise InvalidEncoding("Invalid base32 secret") from e
    if encode_secret(raw) != clean:
        raise InvalidEncoding("Invalid base32 secret: non-zero trailing bits")
    return raw


def encode_secret(raw: bytes) -> str:
    """Encode raw key bytes as unpadded base32 text."""
    return base64.b32encode(bytes(raw)).decode("ascii").rstrip("=")


# --- RFC helpers -----------------------------------------------------------
def int_to_bytes(i: int) -> bytes:
    """
    Convert a counter to the 8-byte big-endian message RFC4226 requires.

    Example: int_to_bytes(1) -> b'\\x00\\x00\\x00\\x00\\x00\\x00\\x00\\x01'
    """
    if not 0 <= i <= MAX_COUNTER:
        raise ValueError(f"Counter out of range: {i}")
    return struct.pack(">Q", i)


def dynamic_truncate(signature: bytes) -> int:
    """
    RFC4226 dynamic truncation.

    - offset = last_byte & 0x0F
    - take 4 bytes from offset, clear the top bit of the first one
    - return the 31-bit unsigned integer

    Arguments:
        signature: HMAC output (SHA1 -> 20 bytes, SHA256 -> 32, SHA512 -> 64)
    """
    # offset in range 0..15, always valid for digests of 20 bytes or more
    offset = signature[-1] & 0x0F
    # compose the 31-bit integer (clear sign bit)
    return (
        ((signature[offset] & 0x7F) << 24)
        | ((signature[offset + 1] & 0xFF) << 16)
        | ((signature[offset + 2] & 0xFF) << 8)
        | (signature[offset + 3] & 0xFF)
    )


def check_digits(digits: int) -> int:
    if isinstance(digits, bool) or not isinstance(digits, int) or not 1 <= digits <= 8:
        raise DigitsOutOfRange(digits)
    return digits


def hotp(key, counter: int, algorithm: KeyedHash = SHA1, digits: int = DEFAULT_DIGITS) -> str:
    """
    Generate an HOTP code (RFC4226).

    Steps:
    1. Message = 8-byte counter (big-endian)
    2. HMAC(algorithm, key, message)
    3. Dynamic truncate -> dbc
    4. otp = dbc % 10^digits
    5. Zero-pad to exactly "digits" characters

    Arguments:
        key: raw key bytes (already base32-decoded)
        counter: non-negative 64-bit counter
        algorithm: KeyedHash to sign with (SHA1 by default)
        digits: code length, 1..8

    Returns:
        str: zero-padded code

    Raises:
        DigitsOutOfRange: if digits is not in 1..8
    """
    modulus = DIGITS_MODULUS[check_digits(digits)]
    signature = algorithm.compute(key, int_to_bytes(counter))
    return str(dynamic_truncate(signature) % modulus).zfill(digits)


def time_counter(timestamp: float, timestep: int = DEFAULT_TIME_STEP, t0: int = 0) -> int:
    """counter = floor((timestamp - T0) / X) as defined by RFC6238."""
    if timestep <= 0:
        raise ValueError(f"Time step must be positive, got {timestep}")
    if timestamp < t0:
        raise ValueError("Timestamp is before T0")
    return int((timestamp - t0) // timestep)


def totp(
    key,
    timestamp: float = None,
    timestep: int = DEFAULT_TIME_STEP,
    digits: int = DEFAULT_DIGITS,
    algorithm: KeyedHash = SHA1,
    t0: int = 0,
    clock=time.time,
) -> str:
    """
    Generate a TOTP code (RFC6238): HOTP with counter = floor((now - T0) / X).

    Arguments:
        key: raw key bytes
        timestamp: seconds since the Unix epoch (None -> clock())
        timestep: X in seconds, default 30
        digits: code length, default 6
        algorithm: KeyedHash, default SHA1
        t0: start time offset, default 0
        clock: time source used when timestamp is None

    Returns:
        str: the code
    """
    if timestamp is None:
        timestamp = clock()
    return hotp(key, time_counter(timestamp, timestep, t0), algorithm, digits)


def seconds_remaining(timestamp: float, timestep: int = DEFAULT_TIME_STEP, t0: int = 0) -> int:
    """Seconds left before the code for `timestamp` rolls over."""
    return int(timestep - ((timestamp - t0) % timestep))
