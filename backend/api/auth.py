"""
Bearer-token authentication.

Tokens are HS256 JWTs issued by the user service; the ``sub`` claim carries
the caller's user id.
"""
import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from settings import settings

bearer_scheme = HTTPBearer(auto_error=False)


def decode_user_id(token: str, secret: str) -> str:
    """Return the user id carried by ``token`` or raise ``jwt.PyJWTError``."""
    payload = jwt.decode(token, secret, algorithms=["HS256"])
    sub = payload.get("sub")
    if not sub:
        raise jwt.InvalidTokenError("Token has no subject")
    return str(sub)


def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Authorization token is required")
    if not settings.JWT_SECRET:
        raise HTTPException(status_code=500, detail="Authentication is not configured")
    try:
        return decode_user_id(credentials.credentials, settings.JWT_SECRET)
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail="Invalid access token")
