"""Unverified inspection of bearer tokens.

Vela tokens are JWTs: three base64url segments (header, payload, signature)
joined by dots. The client only needs the payload's ``exp`` claim to decide
whether a token is worth sending, so the payload is decoded without checking
the signature. The server is the only authority on authenticity.

A token that cannot be decoded is reported as expired rather than raising.
That pushes the resolver toward a refresh (or a clean "log in again" error)
instead of surfacing a decode failure for a credential the server would
reject anyway.
"""

from __future__ import annotations

import base64
import binascii
import json
import time
from typing import Any, Optional

from velaclient.exceptions import TokenDecodeError

MIN_TIME_LEFT = 10
"""Seconds of remaining validity below which a token counts as expired.

A token this close to expiry could lapse while the request is in flight.
"""


def _b64url_decode(segment: str) -> bytes:
    padded = segment + "=" * (-len(segment) % 4)
    return base64.urlsafe_b64decode(padded.encode("ascii"))


def decode_claims(token: str) -> dict[str, Any]:
    """Return the payload claims of *token* without verifying its signature.

    Args:
        token: A compact-serialised JWT.

    Returns:
        The decoded payload mapping.

    Raises:
        TokenDecodeError: If the token is empty, does not have three
            segments, or its payload is not a base64url-encoded JSON object.
    """
    if not token:
        raise TokenDecodeError("token is empty")

    parts = token.split(".")
    if len(parts) != 3:
        raise TokenDecodeError(
            f"token has {len(parts)} segments, expected 3"
        )

    try:
        claims = json.loads(_b64url_decode(parts[1]))
    except (binascii.Error, UnicodeError, ValueError) as exc:
        raise TokenDecodeError(f"token payload is not valid JSON: {exc}") from exc

    if not isinstance(claims, dict):
        raise TokenDecodeError("token payload is not a JSON object")
    return claims


def expires_at(token: str) -> Optional[float]:
    """Return the ``exp`` claim of *token* as a Unix timestamp, or ``None``.

    ``None`` covers every case where no usable expiry exists: an empty or
    malformed token, a missing claim, or a non-numeric value.
    """
    try:
        claims = decode_claims(token)
    except TokenDecodeError:
        return None

    exp = claims.get("exp")
    # bool is an int subclass but never a meaningful timestamp
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        return None
    return float(exp)


def is_token_expired(token: str, now: Optional[float] = None) -> bool:
    """Report whether *token* should be treated as expired.

    Args:
        token: The bearer token to inspect.
        now: Current Unix time. Defaults to :func:`time.time`.

    Returns:
        ``True`` when the token is empty, cannot be decoded, carries no
        ``exp`` claim, or has :data:`MIN_TIME_LEFT` seconds or less of
        validity remaining. ``False`` otherwise.
    """
    exp = expires_at(token)
    if exp is None:
        return True

    if now is None:
        now = time.time()
    return exp - now <= MIN_TIME_LEFT
