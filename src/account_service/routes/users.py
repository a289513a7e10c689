"""Routes that apply to a user of any type."""

from fastapi import APIRouter, Depends, Response, status

from account_service.exceptions import NotFoundException
from account_service.models.request_models import PasswordUpdateRequest
from account_service.routes.dependencies import get_container, request_body
from account_service.utils.strings import Strings

router = APIRouter(prefix="/v1/users", tags=["Users"])


@router.patch("/{user_id}/password", status_code=status.HTTP_204_NO_CONTENT)
async def change_password(
    user_id: str,
    body: PasswordUpdateRequest = Depends(request_body(PasswordUpdateRequest)),
    container=Depends(get_container),
):
    changed = await container.user_service.change_password(user_id, body.old_password, body.new_password)
    if not changed:
        raise NotFoundException(Strings.USER.NOT_FOUND, Strings.USER.NOT_FOUND_DESCRIPTION)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(user_id: str, container=Depends(get_container)):
    await container.user_service.remove(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
