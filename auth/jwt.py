"""Owner session JWT creation and validation."""

from datetime import datetime, timedelta, UTC

from jose import jwt, JWTError

import config
from auth.schemas import TokenPayload


def create_dev_token(
    owner_id: str,
    expires_in_hours: int = 24,
) -> str:
    """
    Create a session JWT for an accountant (the owner of upload links).

    Args:
        owner_id: Identity provider user id
        expires_in_hours: Token expiration in hours

    Returns:
        Encoded JWT token string
    """
    exp = datetime.now(UTC) + timedelta(hours=expires_in_hours)

    payload = {
        "sub": owner_id,
        "exp": int(exp.timestamp()),  # JWT expects Unix timestamp
    }

    return jwt.encode(
        payload,
        config.settings.JWT_SECRET,
        algorithm=config.settings.JWT_ALGORITHM,
    )


def decode_token(token: str) -> TokenPayload:
    """
    Decode and validate an owner session JWT.

    Args:
        token: JWT token string

    Returns:
        TokenPayload with decoded claims

    Raises:
        JWTError: If token is invalid or expired
    """
    try:
        payload = jwt.decode(
            token,
            config.settings.JWT_SECRET,
            algorithms=[config.settings.JWT_ALGORITHM],
        )

        return TokenPayload(
            sub=payload["sub"],
            exp=datetime.fromtimestamp(payload["exp"], UTC),
        )
    except (JWTError, KeyError) as e:
        raise JWTError(f"Invalid token: {str(e)}") from e
