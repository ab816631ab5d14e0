"""
Authentication dependencies for the progress endpoints.

A request authenticates with either:
- X-API-Key: "key" (acts as "admin") or "key:user_id"
- Authorization: Bearer <JWT>
  - HS256 tokens signed with JWT_SECRET (issuer/audience from settings)
  - Clerk RS256 tokens validated via JWKS when CLERK_DOMAIN is set
"""
import logging
from functools import lru_cache
from typing import Optional

import jwt
from fastapi import Depends, Header, HTTPException

from backend.settings import Settings, get_settings

logger = logging.getLogger(__name__)

HS256 = "HS256"
DEFAULT_API_KEY_USER = "admin"


@lru_cache
def get_jwks_client(clerk_domain: str) -> jwt.PyJWKClient:
    """One cached JWKS client per Clerk domain."""
    return jwt.PyJWKClient(f"https://{clerk_domain}/.well-known/jwks.json")


async def get_current_user(
    authorization: Optional[str] = Header(None),
    x_api_key: Optional[str] = Header(None, alias="X-API-Key"),
    settings: Settings = Depends(get_settings),
) -> str:
    """
    Authenticate via API key OR JWT and return the user ID.

    Usage:
        @router.get("/progress")
        async def read(user_id: str = Depends(get_current_user)):
            ...
    """
    if x_api_key:
        return validate_api_key(x_api_key, settings)

    if authorization:
        return validate_jwt(authorization, settings)

    raise HTTPException(
        status_code=401,
        detail="Missing authentication. Provide Authorization header or X-API-Key.",
    )


def validate_api_key(api_key: str, settings: Settings) -> str:
    """
    Validate API key and return user_id.

    - "sk_test_abc123" -> "admin"
    - "sk_test_abc123:user_12345" -> "user_12345"
    """
    valid_keys = settings.api_keys_list
    if not valid_keys:
        logger.warning("No API keys configured (API_KEYS env var empty)")
        raise HTTPException(status_code=401, detail="API key authentication not configured")

    key_part, _, user_id = api_key.partition(":")
    if key_part not in valid_keys:
        raise HTTPException(status_code=401, detail="Invalid API key")

    return user_id or DEFAULT_API_KEY_USER


def validate_jwt(authorization: str, settings: Settings) -> str:
    """Validate a Bearer token and return its subject."""
    if not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Invalid authorization header format")

    token = authorization.split(" ", 1)[1]

    try:
        header = jwt.get_unverified_header(token)
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token format")

    if header.get("alg") == HS256:
        return validate_hs256_jwt(token, settings)
    return validate_clerk_jwt(token, settings)


def _subject(payload: dict) -> str:
    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Token missing user ID")
    return user_id


def validate_hs256_jwt(token: str, settings: Settings) -> str:
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[HS256],
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError as e:
        logger.warning(f"Invalid HS256 JWT: {e}")
        raise HTTPException(status_code=401, detail=f"Invalid token: {str(e)}")
    return _subject(payload)


def validate_clerk_jwt(token: str, settings: Settings) -> str:
    """Validate Clerk JWT (RS256 via JWKS) and return user_id."""
    if not settings.clerk_domain:
        raise HTTPException(
            status_code=500,
            detail="JWT validation not configured (missing CLERK_DOMAIN)",
        )

    try:
        signing_key = get_jwks_client(settings.clerk_domain).get_signing_key_from_jwt(token)
        payload = jwt.decode(
            token,
            signing_key.key,
            algorithms=["RS256"],
            options={"verify_aud": False},
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError as e:
        raise HTTPException(status_code=401, detail=f"Invalid token: {str(e)}")
    return _subject(payload)
