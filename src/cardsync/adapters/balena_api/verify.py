"""Decrypt-then-verify for encrypted user-directory webhooks.

Deliveries are compact JWEs addressed to our key. The plaintext is an ES256
JWT signed by the remote whose ``data`` claim is the event envelope. The
signature is only ever checked on the decrypted token.
"""

from __future__ import annotations

import json
from logging import getLogger
from typing import TYPE_CHECKING, Any

import jwt
from jwcrypto import jwe, jwk
from jwcrypto.common import JWException

if TYPE_CHECKING:
    from collections.abc import Mapping

    from cardsync.config import BalenaApiToken

log = getLogger(__name__)

JOSE_CONTENT_TYPE = "application/jose"
TOKEN_AUDIENCE = "jellyfish"
TOKEN_ISSUER = "api.balena-cloud.com"
SIGNING_ALGORITHMS = ("ES256",)


def _content_type(headers: Mapping[str, str]) -> str:
    lowered = {key.lower(): value for key, value in headers.items()}
    return lowered.get("content-type", "").split(";", 1)[0].strip().lower()


def decrypt_envelope(private_key: bytes, raw_body: bytes) -> bytes | None:
    try:
        key = jwk.JWK.from_pem(private_key)
        envelope = jwe.JWE()
        envelope.deserialize(raw_body.decode("utf-8").strip(), key=key)
    except (JWException, ValueError, TypeError, UnicodeDecodeError) as exc:
        log.debug("Could not decrypt envelope: %s", exc)
        return None
    return envelope.payload


def verify_signed_token(public_key: bytes, token: bytes) -> dict[str, Any] | None:
    try:
        claims = jwt.decode(
            token,
            public_key,
            algorithms=list(SIGNING_ALGORITHMS),
            audience=TOKEN_AUDIENCE,
            issuer=TOKEN_ISSUER,
        )
    except (jwt.PyJWTError, ValueError) as exc:
        log.debug("Rejected signed token: %s", exc)
        return None
    return claims


def decode_event(token: BalenaApiToken | None, raw_body: bytes) -> dict[str, Any] | None:
    """Return the verified event envelope, or ``None`` if any step fails."""

    if token is None or not token.private_key or not token.public_key:
        return None
    plaintext = decrypt_envelope(token.private_key, raw_body)
    if plaintext is None:
        return None
    claims = verify_signed_token(token.public_key, plaintext)
    if claims is None:
        return None
    data = claims.get("data")
    return data if isinstance(data, dict) else None


def is_event_valid(
    token: BalenaApiToken | None, raw_body: bytes, headers: Mapping[str, str]
) -> bool:
    if _content_type(headers) != JOSE_CONTENT_TYPE:
        return False
    return decode_event(token, raw_body) is not None


def load_envelope(
    token: BalenaApiToken | None, payload: object, headers: Mapping[str, str]
) -> dict[str, Any] | None:
    """Return the JSON envelope of an admitted event.

    Encrypted bodies go through :func:`decode_event`; JSON bodies are taken
    as they are.
    """

    if _content_type(headers) == JOSE_CONTENT_TYPE:
        raw = payload.encode("utf-8") if isinstance(payload, str) else payload
        if not isinstance(raw, bytes):
            return None
        return decode_event(token, raw)
    if isinstance(payload, bytes | str):
        payload = json.loads(payload)
    return payload if isinstance(payload, dict) else None
