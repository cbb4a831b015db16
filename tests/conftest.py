"""Pytest fixtures for cdp-client tests."""

import base64

import pytest
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
)
from nacl.signing import SigningKey

# Generate an Ed25519 key pair for API authentication
_ed25519_key = SigningKey.generate()
TEST_ED25519_MATERIAL = base64.b64encode(
    bytes(_ed25519_key) + bytes(_ed25519_key.verify_key)
).decode()

# P-256 keys for ES256 API auth and the wallet secret (DO NOT use in production)
_api_ec_key = ec.generate_private_key(ec.SECP256R1())
TEST_EC_PEM = _api_ec_key.private_bytes(
    Encoding.PEM, PrivateFormat.PKCS8, NoEncryption()
).decode()

_wallet_ec_key = ec.generate_private_key(ec.SECP256R1())
TEST_WALLET_SECRET = base64.b64encode(
    _wallet_ec_key.private_bytes(Encoding.DER, PrivateFormat.PKCS8, NoEncryption())
).decode()

TEST_API_KEY_ID = "test-key-id-12345"


@pytest.fixture
def api_key_id() -> str:
    """Test API key ID."""
    return TEST_API_KEY_ID


@pytest.fixture
def ed25519_signing_key() -> SigningKey:
    """The Ed25519 key behind ed25519_material."""
    return _ed25519_key


@pytest.fixture
def ed25519_material() -> str:
    """Base64 seed + public key bundle."""
    return TEST_ED25519_MATERIAL


@pytest.fixture
def ec_private_key() -> ec.EllipticCurvePrivateKey:
    """The P-256 key behind ec_pem."""
    return _api_ec_key


@pytest.fixture
def ec_pem() -> str:
    """PKCS8 PEM API key."""
    return TEST_EC_PEM


@pytest.fixture
def wallet_private_key() -> ec.EllipticCurvePrivateKey:
    """The P-256 key behind wallet_secret."""
    return _wallet_ec_key


@pytest.fixture
def wallet_secret() -> str:
    """Base64 DER wallet secret."""
    return TEST_WALLET_SECRET


@pytest.fixture
def account_address() -> str:
    """Test platform account address."""
    return "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"


@pytest.fixture
def recipient() -> str:
    """Test payout recipient."""
    return "0x" + "11" * 20


@pytest.fixture
def host() -> str:
    """Test API host."""
    return "https://api.cdp.coinbase.com/platform"
