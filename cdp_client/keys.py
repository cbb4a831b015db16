"""
Parsing of CDP API key material into typed signing keys.

An API key is either a PEM-encoded EC key (ES256) or a base64 bundle of an
Ed25519 seed followed by its public key (EdDSA). The wallet secret is a
base64 DER (PKCS8) P-256 key used for X-Wallet-Auth tokens.
"""

import base64
import binascii
from dataclasses import dataclass
from enum import Enum
from typing import Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import (
    load_der_private_key,
    load_pem_private_key,
)
from nacl.signing import SigningKey as NaclSigningKey

from cdp_client.exceptions import KeyFormatError

ED25519_SEED_SIZE = 32
ED25519_BUNDLE_SIZE = 64

PEM_HEADER = "-----BEGIN"


class Algorithm(str, Enum):
    """JWT signature algorithm."""

    ES256 = "ES256"
    EDDSA = "EdDSA"


@dataclass(frozen=True)
class EcdsaP256Key:
    """An ECDSA key on curve P-256, signing with SHA-256."""

    key: ec.EllipticCurvePrivateKey

    @property
    def algorithm(self) -> Algorithm:
        return Algorithm.ES256


@dataclass(frozen=True)
class Ed25519Key:
    """An Ed25519 key rebuilt from its 32-byte seed."""

    key: NaclSigningKey

    @property
    def algorithm(self) -> Algorithm:
        return Algorithm.EDDSA

    @property
    def public_key(self) -> bytes:
        return bytes(self.key.verify_key)


SigningKey = Union[EcdsaP256Key, Ed25519Key]


def _normalize(material: str) -> str:
    # Keys pasted into .env files often carry literal "\n" sequences
    return material.strip().replace("\\n", "\n")


def _require_p256(key: object) -> EcdsaP256Key:
    if not isinstance(key, ec.EllipticCurvePrivateKey):
        raise KeyFormatError(f"Expected an EC private key, got {type(key).__name__}")
    if not isinstance(key.curve, ec.SECP256R1):
        raise KeyFormatError(f"Expected curve P-256, got {key.curve.name}")
    return EcdsaP256Key(key)


def _load_pem(pem: str) -> EcdsaP256Key:
    try:
        key = load_pem_private_key(pem.encode(), password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise KeyFormatError(f"Unparseable PEM key: {e}") from e
    return _require_p256(key)


def _b64decode(data: str) -> bytes:
    try:
        return base64.b64decode(data)
    except (binascii.Error, ValueError) as e:
        raise KeyFormatError(f"Key material is not valid base64: {e}") from e


def parse_signing_key(material: str) -> SigningKey:
    """Parse CDP API key material.

    Args:
        material: A PEM EC private key (PKCS8 or SEC1), or base64 of a 64-byte
            Ed25519 seed + public key bundle.

    Returns:
        The parsed key; its ``algorithm`` selects ES256 or EdDSA.

    Raises:
        KeyFormatError: If the material is unparseable, has an unsupported
            length or curve, or the Ed25519 public key does not match its seed.
    """
    trimmed = _normalize(material)

    if trimmed.startswith(PEM_HEADER):
        return _load_pem(trimmed)

    raw = _b64decode(trimmed)
    if len(raw) != ED25519_BUNDLE_SIZE:
        raise KeyFormatError(f"Unsupported CDP API key format ({len(raw)} bytes)")

    seed = raw[:ED25519_SEED_SIZE]
    embedded_public = raw[ED25519_SEED_SIZE:]
    signing_key = NaclSigningKey(seed)
    if bytes(signing_key.verify_key) != embedded_public:
        raise KeyFormatError(
            f"Ed25519 public key does not match seed ({len(raw)} bytes)"
        )
    return Ed25519Key(signing_key)


def parse_wallet_secret(secret: str) -> EcdsaP256Key:
    """Parse a CDP wallet secret.

    Args:
        secret: Base64 DER (PKCS8) of a P-256 private key. A PEM string is
            accepted as well.

    Returns:
        The parsed ES256 key.

    Raises:
        KeyFormatError: If the secret is not a P-256 private key.
    """
    trimmed = _normalize(secret)
    if trimmed.startswith(PEM_HEADER):
        return _load_pem(trimmed)

    der = _b64decode(trimmed)
    try:
        key = load_der_private_key(der, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise KeyFormatError(f"Unparseable wallet secret ({len(der)} bytes): {e}") from e
    return _require_p256(key)
