"""Bearer token authentication for the scan endpoints."""

import os
import secrets

from fastapi import Header, HTTPException

_SCHEME = "bearer "


def _configured_token() -> str:
    token = (os.environ.get("API_AUTH_TOKEN") or "").strip()
    if not token:
        raise HTTPException(
            status_code=503,
            detail="Server configuration error: API_AUTH_TOKEN not set",
        )
    return token


async def require_bearer_token(authorization: str | None = Header(default=None)) -> None:
    """
    Dependency: require ``Authorization: Bearer <token>`` matching API_AUTH_TOKEN.

    503 when no token is configured, 401 when the header is missing or wrong.
    """
    expected = _configured_token()
    header = (authorization or "").strip()
    if not header.lower().startswith(_SCHEME):
        raise HTTPException(status_code=401, detail="Unauthorized")
    supplied = header[len(_SCHEME):].strip()
    if not secrets.compare_digest(supplied.encode(), expected.encode()):
        raise HTTPException(status_code=401, detail="Unauthorized")
