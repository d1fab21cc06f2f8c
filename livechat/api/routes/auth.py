"""Auth Routes — account registration and login."""

from fastapi import APIRouter, Depends, status

from livechat.api.dependencies import get_services
from livechat.schemas.auth import AuthResponse, Credentials
from livechat.services.container import ServiceContainer

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/register", response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    body: Credentials, services: ServiceContainer = Depends(get_services),
):
    account, token = await services.chat.register(body.nickname, body.password)
    return AuthResponse(nickname=account.nickname, token=token)


@router.post("/login", response_model=AuthResponse)
async def login(
    body: Credentials, services: ServiceContainer = Depends(get_services),
):
    token = await services.chat.login(body.nickname, body.password)
    return AuthResponse(nickname=body.nickname.strip(), token=token)
