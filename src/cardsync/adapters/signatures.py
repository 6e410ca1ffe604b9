"""HMAC signature checks shared by webhook adapters."""

from __future__ import annotations

import base64
import hashlib
import hmac
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from collections.abc import Mapping


def compute_signature(
    secret: str, raw_body: bytes, *, encoding: Literal["hex", "base64"] = "hex"
) -> str:
    digest = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).digest()
    if encoding == "base64":
        return base64.b64encode(digest).decode("ascii")
    return digest.hex()


def verify_signature_header(
    secret: str | None,
    raw_body: bytes,
    headers: Mapping[str, str],
    header: str,
    *,
    prefix: str = "",
    encoding: Literal["hex", "base64"] = "hex",
) -> bool:
    """Compare ``headers[header]`` against the body's HMAC-SHA256 in constant time.

    An unconfigured secret or a missing header never validates.
    """

    if not secret:
        return False
    lowered = {key.lower(): value for key, value in headers.items()}
    provided = lowered.get(header.lower())
    if not provided or not provided.startswith(prefix):
        return False
    expected = compute_signature(secret, raw_body, encoding=encoding)
    return hmac.compare_digest(provided[len(prefix) :].strip(), expected)
