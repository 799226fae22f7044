"""Unverified JWT claim inspection.

Signature verification is the server's job; the client only peeks at ``exp``
and ``sub`` to schedule expiry and to label the session.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

import jwt


def decode_claims(token: str | None) -> dict[str, Any]:
    """Return the claim set of a JWT without verifying it.

    Opaque (non-JWT) tokens and malformed tokens yield an empty dict.
    """
    if not token:
        return {}
    try:
        claims = jwt.decode(
            token,
            options={"verify_signature": False, "verify_exp": False},
        )
    except jwt.PyJWTError as e:
        logging.debug(f"🔍 Token is not a decodable JWT type={type(e).__name__}")
        return {}
    return claims if isinstance(claims, dict) else {}


def token_expiry(token: str | None) -> datetime | None:
    exp = decode_claims(token).get("exp")
    if isinstance(exp, int | float) and not isinstance(exp, bool):
        return datetime.fromtimestamp(exp, UTC)
    return None


def token_subject(token: str | None) -> str | None:
    sub = decode_claims(token).get("sub")
    if sub is None:
        return None
    return str(sub)
