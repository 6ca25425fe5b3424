"""Verification of learner access tokens (ES256).

Identity is established upstream; the engine only reads the ``sub``
claim, which is the learner id. In production the issuer's public key
comes from JWT_PUBLIC_KEY. Without it (dev, tests) an ephemeral key pair
is generated on import and create_access_token can mint tokens for it.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta

import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from progression.core.config import SETTINGS

ALGORITHM = "ES256"
AUDIENCE = "progression-engine"
ACCESS_TOKEN_TTL_MIN = 15

if SETTINGS.jwt_public_key:
    _private_key: ec.EllipticCurvePrivateKey | None = None
    _public_key = serialization.load_pem_public_key(SETTINGS.jwt_public_key.encode())
else:
    _private_key = ec.generate_private_key(ec.SECP256R1())
    _public_key = _private_key.public_key()


def create_access_token(*, sub: str, ttl_minutes: int = ACCESS_TOKEN_TTL_MIN) -> str:
    """Sign a token with the ephemeral dev key. Not available with JWT_PUBLIC_KEY."""
    if _private_key is None:
        raise RuntimeError("tokens are issued upstream when JWT_PUBLIC_KEY is set")
    now = datetime.now(UTC)
    payload = {
        "sub": sub,
        "aud": AUDIENCE,
        "exp": now + timedelta(minutes=ttl_minutes),
        "iat": now,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(payload, _private_key, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Verify signature, expiry and audience, return the claims.

    Pins the algorithm to ES256. Raises jwt.ExpiredSignatureError or
    jwt.InvalidTokenError on failure.
    """
    return jwt.decode(
        token,
        _public_key,
        algorithms=[ALGORITHM],
        audience=AUDIENCE,
        options={"require": ["sub", "exp", "iat"]},
    )
