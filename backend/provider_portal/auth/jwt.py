"""Bearer-token verification against the identity provider's signing secret.

Tokens are minted by the external identity provider, not by this service.
Claims we rely on:
  - sub:    identity-provider subject id
  - email:  optional
  - aud:    checked only when settings.jwt_audience is set
  - exp:    expiry timestamp
"""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from provider_portal.config import settings
from provider_portal.middleware.exceptions import InternalError, UnauthenticatedError

ALGORITHM = settings.jwt_algorithm


def verify_token(token: str) -> dict:
    """Decode and validate a token. Raises UnauthenticatedError on any failure."""
    if not settings.jwt_secret:
        raise InternalError("Missing JWT secret")

    audience = settings.jwt_audience
    try:
        claims = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[ALGORITHM],
            audience=audience,
            options={"verify_aud": audience is not None},
        )
    except JWTError:
        raise UnauthenticatedError("Invalid or expired token")

    if not claims.get("sub"):
        raise UnauthenticatedError("Invalid token: missing subject")
    return claims


def create_access_token(
    subject_id: str,
    email: str | None = None,
    expires_delta: timedelta | None = None,
    audience: str | None = None,
) -> str:
    """Mint a token the way the identity provider does (local dev and tests)."""
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=30))
    payload: dict = {"sub": subject_id, "exp": expire}
    if email:
        payload["email"] = email
    aud = audience or settings.jwt_audience
    if aud:
        payload["aud"] = aud
    return jwt.encode(payload, settings.jwt_secret, algorithm=ALGORITHM)
