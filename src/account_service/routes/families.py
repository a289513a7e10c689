"""Family CRUD plus association of children with a family."""

from fastapi import Depends, Response, status

from account_service.exceptions import NotFoundException
from account_service.routes.dependencies import get_container
from account_service.routes.user_routes import create_user_router
from account_service.services.family_service import FamilyService
from account_service.utils.strings import Strings

router = create_user_router("families", "Families", "family_service", FamilyService, Strings.FAMILY)


def _family_not_found() -> NotFoundException:
    return NotFoundException(Strings.FAMILY.NOT_FOUND, Strings.FAMILY.NOT_FOUND_DESCRIPTION)


@router.get("/{family_id}/children")
async def get_all_children(family_id: str, container=Depends(get_container)):
    children = await container.family_service.get_all_children(family_id)
    if children is None:
        raise _family_not_found()
    return [child.to_json() for child in children]


@router.post("/{family_id}/children/{child_id}")
async def associate_child(family_id: str, child_id: str, container=Depends(get_container)):
    family = await container.family_service.associate_child(family_id, child_id)
    if family is None:
        raise _family_not_found()
    return family.to_json()


@router.delete("/{family_id}/children/{child_id}", status_code=status.HTTP_204_NO_CONTENT)
async def disassociate_child(family_id: str, child_id: str, container=Depends(get_container)):
    family = await container.family_service.disassociate_child(family_id, child_id)
    if family is None:
        raise _family_not_found()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
