"""
Tubely Authentication Module

Local JWT authentication with python-jose. Tokens are HS256-signed with the
configured ``secret_key`` and carry the user's UUID in the ``sub`` claim.

Usage in routes:
    ```python
    @router.post("/video_upload/{video_id}")
    async def upload_video(user_id: UUID = Depends(get_current_user_id)):
        ...
    ```
"""

import logging

from datetime import UTC, datetime, timedelta
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from tubely.config import Settings, get_settings
from tubely.core.errors import UnauthorizedError


logger = logging.getLogger(__name__)

TOKEN_ISSUER = "tubely"

# auto_error=False so a missing header reaches our own error envelope
security = HTTPBearer(
    scheme_name="Bearer",
    description="JWT Bearer token issued by Tubely.",
    auto_error=False,
)


def create_access_token(
    user_id: UUID,
    settings: Settings | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a signed access token for ``user_id``.

    Token claims:
    - sub: User UUID
    - iss: "tubely"
    - iat / exp: Issue and expiration timestamps

    Example:
        ```python
        token = create_access_token(uuid4())
        ```
    """
    settings = settings or get_settings()
    now = datetime.now(UTC)
    expire = now + (expires_delta or timedelta(hours=settings.jwt_expiration_hours))

    payload = {
        "sub": str(user_id),
        "iss": TOKEN_ISSUER,
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def validate_token(token: str, settings: Settings | None = None) -> UUID:
    """
    Verify a token's signature, expiry and issuer and return its subject.

    Raises:
        UnauthorizedError: If the token is invalid, expired or its subject
            is not a UUID.
    """
    settings = settings or get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
            issuer=TOKEN_ISSUER,
        )
        return UUID(str(payload["sub"]))
    except (JWTError, KeyError, ValueError) as e:
        logger.warning("JWT validation failed: %s", str(e))
        raise UnauthorizedError("Couldn't validate JWT") from e


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    settings: Settings = Depends(get_settings),
) -> UUID:
    """
    FastAPI dependency resolving the authenticated user's id from the bearer token.

    Raises:
        UnauthorizedError: "Couldn't find JWT" without a bearer token,
            "Couldn't validate JWT" for an invalid one.
    """
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Couldn't find JWT")
    return validate_token(credentials.credentials, settings)
