"""
Admin session passthrough.

The backend keeps the session in httpOnly cookies (authToken / refreshToken);
this router relays its Set-Cookie headers so the browser stores them against
this service's origin.
"""

import logging

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, field_validator

from ..rate_limiter import create_rate_limiter
from ..services.backend_client import BarbershopBackend, get_backend_client, unwrap

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

login_rate_limit = create_rate_limiter(limit=5, window_seconds=300, key_prefix="login")


class LoginRequest(BaseModel):
    username: str
    password: str

    @field_validator("username")
    @classmethod
    def strip_username(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("El usuario es requerido")
        return v


def relay_cookies(backend: BarbershopBackend, response: Response) -> None:
    for cookie in backend.set_cookies:
        response.headers.append("set-cookie", cookie)


@router.post("/login")
async def login(
    data: LoginRequest,
    response: Response,
    _: None = Depends(login_rate_limit),
    backend: BarbershopBackend = Depends(get_backend_client),
):
    result = await backend.login(data.username, data.password)
    relay_cookies(backend, response)
    logger.info(f"Admin login for {data.username}")
    return unwrap(result)


@router.post("/refresh")
async def refresh(response: Response, backend: BarbershopBackend = Depends(get_backend_client)):
    result = await backend.refresh()
    relay_cookies(backend, response)
    return unwrap(result)


@router.post("/logout")
async def logout(response: Response, backend: BarbershopBackend = Depends(get_backend_client)):
    await backend.logout()
    relay_cookies(backend, response)
    return {"message": "Sesión cerrada"}
