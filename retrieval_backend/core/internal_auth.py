"""
Internal bearer-token verification.

Guards the dispatch trigger and worker callbacks with a shared secret.
Comparison is constant-time.

Dependencies: hmac
System role: Internal endpoint authorization
"""

import hmac

from retrieval_backend.core.exceptions import UnauthorizedError

BEARER_PREFIX = "Bearer "


def extract_bearer_token(authorization: str | None) -> str | None:
    """Return the token from an 'Authorization: Bearer <token>' value, if present."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX):].strip()
    return token or None


def verify_bearer_token(authorization: str | None, expected: str | None) -> None:
    """
    Check an Authorization header against the configured secret.

    A missing secret disables the check.

    Args:
        authorization: Raw Authorization header value
        expected: Configured shared secret

    Raises:
        UnauthorizedError: If the header is missing or the token does not match
    """
    if not expected:
        return

    token = extract_bearer_token(authorization)
    if token is None or not hmac.compare_digest(token.encode("utf-8"), expected.encode("utf-8")):
        raise UnauthorizedError("Invalid or missing internal credential")
