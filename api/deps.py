"""FastAPI dependencies for authentication, request metadata and services."""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from auth.jwt import decode_token
from services.container import UploadLinkServices
from services.paths import is_valid_owner_id

# HTTP Bearer token security scheme (owner session tokens)
security = HTTPBearer()


def get_services(request: Request) -> UploadLinkServices:
    """
    Dependency to get the service container built in the app lifespan.

    Tests override this dependency with a container of in-memory doubles.
    """
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service is not initialized",
        )
    return services


async def get_current_owner(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> str:
    """
    Dependency to get the authenticated owner id from the session JWT.

    Args:
        credentials: HTTP Bearer token from Authorization header

    Returns:
        Owner id (JWT subject)

    Raises:
        HTTPException: 401 if the token is invalid or the subject is malformed
    """
    try:
        token_payload = decode_token(credentials.credentials)
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}",
        )

    if not is_valid_owner_id(token_payload.sub):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: malformed subject",
        )

    return token_payload.sub


def get_client_ip(request: Request) -> str:
    """Best-effort caller IP: first X-Forwarded-For hop, then X-Real-IP, then the socket peer."""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first_hop = forwarded_for.split(",")[0].strip()
        if first_hop:
            return first_hop

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def get_user_agent(request: Request) -> str:
    """Caller user agent, or "unknown"."""
    return request.headers.get("user-agent") or "unknown"
