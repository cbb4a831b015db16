"""
JWT authentication for the CDP API.

Two token shapes are built here:

- the API auth token, sent as ``Authorization: Bearer <jwt>`` on every call
  and signed with the API key (ES256 or EdDSA);
- the wallet auth token, sent as ``X-Wallet-Auth`` on mutating account and
  spend-permission calls, signed with the wallet secret (ES256) and bound to
  the request body through ``reqHash``.

Tokens are single-use: each carries a fresh random nonce and names exactly
one ``METHOD host+path``.
"""

import base64
import hashlib
import json
import secrets
import time
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import decode_dss_signature

from cdp_client.constants import (
    JWT_AUDIENCE,
    JWT_ISSUER,
    JWT_LIFETIME_SECONDS,
    JWT_NONCE_BYTES,
    WALLET_AUTH_METHODS,
    WALLET_AUTH_SEGMENTS,
)
from cdp_client.exceptions import SigningError
from cdp_client.keys import (
    Algorithm,
    EcdsaP256Key,
    Ed25519Key,
    SigningKey,
    parse_signing_key,
    parse_wallet_secret,
)

P256_COORDINATE_SIZE = 32


def _b64encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("utf-8")


def _json_segment(obj: Dict[str, Any]) -> str:
    return _b64encode(json.dumps(obj, separators=(",", ":")).encode("utf-8"))


def random_nonce() -> str:
    """Return 16 random bytes as hex."""
    return secrets.token_hex(JWT_NONCE_BYTES)


def canonical_uri(method: str, url: str) -> str:
    """Build the ``uris`` claim entry: ``METHOD host+path``, no query string."""
    parsed = urlparse(url)
    return f"{method.upper()} {parsed.netloc}{parsed.path}"


def canonical_json(body: Any) -> str:
    """Serialize with object keys sorted at every depth and no whitespace.

    Arrays keep their order.
    """
    return json.dumps(body, separators=(",", ":"), sort_keys=True, ensure_ascii=False)


def request_hash(body: Dict[str, Any]) -> str:
    """Hex SHA-256 of the canonical JSON body."""
    return hashlib.sha256(canonical_json(body).encode("utf-8")).hexdigest()


def needs_wallet_auth(method: str, path: str) -> bool:
    """Whether a call must carry an X-Wallet-Auth token.

    True for POST/PUT/DELETE on account or spend-permission paths.
    """
    if method.upper() not in WALLET_AUTH_METHODS:
        return False
    return any(segment in path for segment in WALLET_AUTH_SEGMENTS)


def _sign_ecdsa(key: EcdsaP256Key, message: bytes) -> bytes:
    der = key.key.sign(message, ec.ECDSA(hashes.SHA256()))
    r, s = decode_dss_signature(der)
    # Fixed-width r || s (IEEE P1363), not DER
    return r.to_bytes(P256_COORDINATE_SIZE, "big") + s.to_bytes(P256_COORDINATE_SIZE, "big")


def sign(key: SigningKey, message: bytes) -> bytes:
    """Sign a JWT signing input with the key's algorithm.

    Raises:
        SigningError: If the key cannot produce a signature.
    """
    try:
        if isinstance(key, EcdsaP256Key):
            return _sign_ecdsa(key, message)
        if isinstance(key, Ed25519Key):
            return key.key.sign(message).signature
    except Exception as e:
        raise SigningError(f"{key.algorithm.value} signing failed: {e}") from e
    raise SigningError(f"Unsupported signing key type: {type(key).__name__}")


def _encode_jwt(key: SigningKey, header: Dict[str, Any], claims: Dict[str, Any]) -> str:
    signing_input = f"{_json_segment(header)}.{_json_segment(claims)}"
    signature = sign(key, signing_input.encode("utf-8"))
    return f"{signing_input}.{_b64encode(signature)}"


def _build_claims(
    uri: str,
    issued_at: int,
    audience: Optional[List[str]] = None,
    req_hash: Optional[str] = None,
) -> Dict[str, Any]:
    claims: Dict[str, Any] = {"uris": [uri], "nbf": issued_at}
    if audience is not None:
        claims["aud"] = audience
    if req_hash is not None:
        claims["reqHash"] = req_hash
    return claims


def build_api_auth_token(
    key: SigningKey,
    key_id: str,
    method: str,
    url: str,
    now: Optional[int] = None,
) -> str:
    """Build the bearer token for one API call.

    Args:
        key: The parsed API key; its variant selects ES256 or EdDSA.
        key_id: The API key name, used as ``kid`` and ``sub``.
        method: HTTP method of the call.
        url: Full request URL.
        now: Issuance time in epoch seconds (defaults to the current time).

    Returns:
        A compact JWT valid for 120 seconds.
    """
    issued_at = int(time.time()) if now is None else now
    header = {
        "alg": key.algorithm.value,
        "kid": key_id,
        "typ": "JWT",
        "nonce": random_nonce(),
    }
    claims = {
        "sub": key_id,
        "iss": JWT_ISSUER,
        **_build_claims(canonical_uri(method, url), issued_at, audience=JWT_AUDIENCE),
        "exp": issued_at + JWT_LIFETIME_SECONDS,
    }
    return _encode_jwt(key, header, claims)


def build_wallet_auth_token(
    wallet_key: EcdsaP256Key,
    method: str,
    url: str,
    body: Optional[Dict[str, Any]] = None,
    now: Optional[int] = None,
) -> str:
    """Build the X-Wallet-Auth token for one mutating call.

    When ``body`` is non-empty its canonical SHA-256 is included as
    ``reqHash``, so the token cannot be replayed with a different body.
    """
    issued_at = int(time.time()) if now is None else now
    header = {"alg": Algorithm.ES256.value, "typ": "JWT"}
    req_hash = request_hash(body) if body else None
    claims = {
        **_build_claims(canonical_uri(method, url), issued_at, req_hash=req_hash),
        "iat": issued_at,
        "jti": random_nonce(),
    }
    return _encode_jwt(wallet_key, header, claims)


class CdpAuth:
    """Produces the authentication headers for CDP API calls."""

    def __init__(self, key_id: str, api_key: SigningKey, wallet_key: EcdsaP256Key) -> None:
        self._key_id = key_id
        self._api_key = api_key
        self._wallet_key = wallet_key

    @property
    def key_id(self) -> str:
        return self._key_id

    @property
    def algorithm(self) -> Algorithm:
        return self._api_key.algorithm

    def headers(
        self,
        method: str,
        url: str,
        body: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, str]:
        """Build fresh headers for a single request.

        Args:
            method: HTTP method.
            url: Full request URL; any query string is ignored.
            body: JSON body, bound into the wallet auth token when required.

        Returns:
            Headers with ``Authorization`` and, for mutating account or
            spend-permission calls, ``X-Wallet-Auth``.
        """
        token = build_api_auth_token(self._api_key, self._key_id, method, url)
        headers = {"Authorization": f"Bearer {token}"}
        if needs_wallet_auth(method, urlparse(url).path):
            headers["X-Wallet-Auth"] = build_wallet_auth_token(
                self._wallet_key, method, url, body
            )
        return headers


def create_auth(api_key_id: str, api_key_material: str, wallet_secret: str) -> CdpAuth:
    """Parse both credentials and build a CdpAuth.

    Raises:
        KeyFormatError: If either credential is malformed.
    """
    return CdpAuth(
        api_key_id,
        parse_signing_key(api_key_material),
        parse_wallet_secret(wallet_secret),
    )
