import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ..auth import admin_login_enabled, authenticate_admin, create_access_token, require_admin
from ..config import ADMIN_USERNAME, JWT_EXPIRES_MINUTES
from ..rate_limiter import create_rate_limiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Authentication"])

login_rate_limit = create_rate_limiter(limit=10, window_seconds=900, key_prefix="admin_login")


class LoginRequest(BaseModel):
    username: str
    password: str


class TokenResponse(BaseModel):
    accessToken: str
    tokenType: str = "bearer"
    expiresIn: int


@router.post("/login", response_model=TokenResponse)
def admin_login(data: LoginRequest, _: None = Depends(login_rate_limit)):
    """Exchange the admin credentials for a bearer token"""
    if not admin_login_enabled():
        logger.error("Admin login attempted but ADMIN_PASSWORD_HASH is not configured")
        raise HTTPException(status_code=503, detail="Admin login is not configured")

    if not authenticate_admin(data.username, data.password):
        logger.warning(f"Failed admin login for username {data.username!r}")
        raise HTTPException(status_code=401, detail="Invalid username or password")

    token = create_access_token({"sub": ADMIN_USERNAME, "role": "admin"})
    logger.info("Admin logged in")
    return TokenResponse(accessToken=token, expiresIn=JWT_EXPIRES_MINUTES * 60)


@router.get("/me")
def admin_me(claims: dict = Depends(require_admin)):
    return {"username": claims.get("sub"), "role": claims.get("role")}
