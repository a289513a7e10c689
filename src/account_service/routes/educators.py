"""
Educators and health professionals.

Both resources share the same shape: standard user CRUD plus the children groups they own
under `/{id}/children/groups`.
"""

from typing import Any, Type

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import JSONResponse

from account_service.exceptions import NotFoundException
from account_service.models.request_models import CreateChildrenGroupRequest, UpdateChildrenGroupRequest
from account_service.repositories.query import Query
from account_service.routes.dependencies import get_container, get_query, request_body
from account_service.routes.user_routes import create_user_router
from account_service.services.educator_service import (
    EducatorService,
    GroupOwnerService,
    HealthProfessionalService,
)
from account_service.utils.strings import Strings


def create_group_owner_router(
    resource: str, tag: str, service_attr: str, service_cls: Type[GroupOwnerService], messages: Any
) -> APIRouter:
    router = create_user_router(resource, tag, service_attr, service_cls, messages)

    def service_of(container):
        return getattr(container, service_attr)

    def group_not_found() -> NotFoundException:
        return NotFoundException(Strings.CHILDREN_GROUP.NOT_FOUND, Strings.CHILDREN_GROUP.NOT_FOUND_DESCRIPTION)

    @router.post("/{user_id}/children/groups", status_code=status.HTTP_201_CREATED)
    async def save_children_group(
        user_id: str,
        body: CreateChildrenGroupRequest = Depends(request_body(CreateChildrenGroupRequest)),
        container=Depends(get_container),
    ):
        group = await service_of(container).save_children_group(user_id, body)
        if group is None:
            raise NotFoundException(messages.NOT_FOUND, messages.NOT_FOUND_DESCRIPTION)
        return JSONResponse(status_code=status.HTTP_201_CREATED, content=group.to_json())

    @router.get("/{user_id}/children/groups")
    async def get_all_children_groups(
        user_id: str, query: Query = Depends(get_query), container=Depends(get_container)
    ):
        groups = await service_of(container).get_all_children_groups(user_id, query)
        return [group.to_json() for group in groups]

    @router.get("/{user_id}/children/groups/{group_id}")
    async def get_children_group(
        user_id: str, group_id: str, query: Query = Depends(get_query), container=Depends(get_container)
    ):
        group = await service_of(container).get_children_group_by_id(user_id, group_id, query)
        if group is None:
            raise group_not_found()
        return group.to_json()

    @router.patch("/{user_id}/children/groups/{group_id}")
    async def update_children_group(
        user_id: str,
        group_id: str,
        body: UpdateChildrenGroupRequest = Depends(request_body(UpdateChildrenGroupRequest)),
        container=Depends(get_container),
    ):
        updated = await service_of(container).update_children_group(user_id, group_id, body)
        if updated is None:
            raise group_not_found()
        return updated.to_json()

    @router.delete("/{user_id}/children/groups/{group_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_children_group(user_id: str, group_id: str, container=Depends(get_container)):
        await service_of(container).delete_children_group(user_id, group_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return router


educators_router = create_group_owner_router(
    "educators", "Educators", "educator_service", EducatorService, Strings.EDUCATOR
)
health_professionals_router = create_group_owner_router(
    "healthprofessionals",
    "Health Professionals",
    "health_professional_service",
    HealthProfessionalService,
    Strings.HEALTH_PROFESSIONAL,
)
