"""
Private key material helpers.

Keys reach the harness as PEM text, either raw or base64url-encoded so they
fit on a single command-line flag.  This module normalises both shapes to
PEM and checks that ``cryptography`` can actually load them before the run
starts, so a bad key is reported as a configuration problem instead of a
signing failure halfway through the workload.
"""

from __future__ import annotations

import base64
import binascii

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from .errors import ConfigurationError

PEM_MARKER = "-----BEGIN"


def decode_private_key(value: str) -> str:
    """
    Return PEM text for *value*, which may be raw PEM or base64url-encoded PEM.

    Raises:
        ConfigurationError: If *value* is blank or is not valid base64url.
    """
    if not isinstance(value, str) or not value.strip():
        raise ConfigurationError("Private key material is empty")

    text = value.strip()
    if text.startswith(PEM_MARKER):
        return text + "\n"

    # base64url without padding is the usual shape for CLI-provided keys
    padded = text + "=" * (-len(text) % 4)
    try:
        decoded = base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8")
    except (binascii.Error, UnicodeError, ValueError) as exc:
        raise ConfigurationError("Private key is neither PEM nor base64url-encoded PEM") from exc

    if PEM_MARKER not in decoded:
        raise ConfigurationError("Decoded private key does not contain a PEM block")
    return decoded


def encode_private_key(pem: str) -> str:
    """Encode PEM text as unpadded base64url, the shape the CLI expects."""
    return base64.urlsafe_b64encode(pem.encode("utf-8")).decode("ascii").rstrip("=")


def ensure_loadable(pem: str, label: str) -> None:
    """
    Check that ``cryptography`` can parse *pem* as an unencrypted private key.

    Raises:
        ConfigurationError: If the key cannot be loaded.
    """
    try:
        serialization.load_pem_private_key(pem.encode("utf-8"), password=None)
    except (ValueError, TypeError) as exc:
        raise ConfigurationError(f"Private key for '{label}' cannot be loaded: {exc}") from exc


def generate_key_pair(key_size: int = 2048) -> tuple[str, str]:
    """Generate an RSA private/public key pair as PEM strings."""
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=key_size)
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("utf-8")
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("utf-8")
    return private_pem, public_pem
