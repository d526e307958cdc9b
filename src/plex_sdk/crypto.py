"""Ed25519 device keys and JWT signing."""

import logging
from typing import Any

import jwt
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from jwt.algorithms import OKPAlgorithm

from .exceptions import CryptoError
from .models import DeviceKeypair

logger = logging.getLogger("plex-sdk.crypto")

JWT_ALGORITHM = "EdDSA"


def generate_keypair() -> DeviceKeypair:
    """Generate a new Ed25519 device keypair with its public JWK."""
    private_key = Ed25519PrivateKey.generate()
    private_bytes = private_key.private_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PrivateFormat.Raw,
        encryption_algorithm=serialization.NoEncryption(),
    )
    jwk = OKPAlgorithm.to_jwk(private_key.public_key(), as_dict=True)
    jwk.update(use="sig", alg=JWT_ALGORITHM)
    logger.debug("Generated device keypair")
    return DeviceKeypair(private_key=private_bytes, public_jwk=jwk)


def sign_jwt(payload: dict[str, Any], keypair: DeviceKeypair) -> str:
    """Sign a JWT payload with the device private key.

    Raises:
        CryptoError: If the key material is unusable or signing fails.
    """
    try:
        private_key = Ed25519PrivateKey.from_private_bytes(keypair.private_key)
        return jwt.encode(
            payload, private_key, algorithm=JWT_ALGORITHM, headers={"typ": "JWT"}
        )
    except (ValueError, TypeError, UnsupportedAlgorithm, jwt.PyJWTError) as e:
        raise CryptoError(
            "signing_failed",
            errors=[f"{type(e).__name__}: {e}"],
            suggestions=["Delete the stored device keypair and re-register"],
        ) from e


def extract_exp(token: str) -> float | None:
    """Read the ``exp`` claim of a JWT without verifying it.

    Returns None for opaque tokens or tokens without a numeric expiry.
    """
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError:
        return None
    exp = claims.get("exp")
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        return None
    return float(exp)
