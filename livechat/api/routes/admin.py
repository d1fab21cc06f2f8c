"""Admin Routes — moderation console endpoints behind X-Admin-Token."""

from fastapi import APIRouter, Depends

from livechat.api.dependencies import get_services, require_admin
from livechat.schemas.admin import ActionResult, UserList, UserSummary
from livechat.services.container import ServiceContainer

router = APIRouter(
    prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)],
)


@router.post("/clear", response_model=ActionResult, response_model_exclude_none=True)
async def wipe_history(services: ServiceContainer = Depends(get_services)):
    await services.moderation.wipe()
    return ActionResult()


@router.post(
    "/messages/{message_id}/delete",
    response_model=ActionResult, response_model_exclude_none=True,
)
async def delete_message(
    message_id: str, services: ServiceContainer = Depends(get_services),
):
    await services.moderation.delete_message(message_id)
    return ActionResult()


@router.post("/messages/{message_id}/warn", response_model=ActionResult)
async def warn_author(
    message_id: str, services: ServiceContainer = Depends(get_services),
):
    nickname = await services.moderation.warn(message_id)
    return ActionResult(nickname=nickname)


@router.post(
    "/users/{nickname}/ban",
    response_model=ActionResult, response_model_exclude_none=True,
)
async def ban_user(
    nickname: str, services: ServiceContainer = Depends(get_services),
):
    await services.moderation.ban(nickname)
    return ActionResult()


@router.post(
    "/users/{nickname}/unban",
    response_model=ActionResult, response_model_exclude_none=True,
)
async def unban_user(
    nickname: str, services: ServiceContainer = Depends(get_services),
):
    await services.moderation.unban(nickname)
    return ActionResult()


@router.delete(
    "/users/{nickname}",
    response_model=ActionResult, response_model_exclude_none=True,
)
async def delete_user(
    nickname: str, services: ServiceContainer = Depends(get_services),
):
    await services.moderation.delete_account(nickname)
    return ActionResult()


@router.get("/users/active", response_model=UserList)
async def list_active_users(services: ServiceContainer = Depends(get_services)):
    return _user_list(await services.moderation.list_accounts(banned=False))


@router.get("/users/banned", response_model=UserList)
async def list_banned_users(services: ServiceContainer = Depends(get_services)):
    return _user_list(await services.moderation.list_accounts(banned=True))


def _user_list(accounts) -> UserList:
    return UserList(users=[
        UserSummary(nickname=a.nickname, created_at=a.created_at)
        for a in accounts
    ])
