from datetime import datetime, timedelta, timezone
from typing import Sequence

import jwt
from jwt import InvalidTokenError

from ..domain.errors import InvalidIdentifierError
from ..domain.services import parse_id

DEFAULT_TOKEN_TTL = timedelta(minutes=30)


class TokenError(ValueError):
    """Bearer token could not be turned into a student id."""


def create_access_token(
    *,
    student_id: str,
    secret: str,
    algorithm: str = "HS256",
    expires_delta: timedelta | None = None,
) -> str:
    issued_at = datetime.now(timezone.utc)
    claims = {
        "sub": str(student_id),
        "iat": issued_at,
        "exp": issued_at + (expires_delta or DEFAULT_TOKEN_TTL),
    }
    return jwt.encode(claims, secret, algorithm=algorithm)


def decode_access_token(
    token: str,
    *,
    secret: str,
    algorithms: Sequence[str],
) -> str:
    """Return the canonical student id carried in ``sub``."""
    try:
        claims = jwt.decode(token, secret, algorithms=list(algorithms), options={"require": ["sub", "exp"]})
    except InvalidTokenError as exc:  # expired, bad signature or missing claim
        raise TokenError("invalid token") from exc

    try:
        return parse_id(claims["sub"], what="token subject")
    except InvalidIdentifierError as exc:
        raise TokenError("token subject is not a student id") from exc
