"""
CRUD routes shared by every user subtype.

`create_user_router()` builds the five standard endpoints for one subtype:

- `POST   /v1/<resource>`        → 201
- `GET    /v1/<resource>`        → 200 (query string filters, fields, sort, page, limit)
- `GET    /v1/<resource>/{id}`   → 200 / 404
- `PATCH  /v1/<resource>/{id}`   → 200 / 404
- `DELETE /v1/<resource>/{id}`   → 204, also when the id does not exist
"""

from typing import Any, Type

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from account_service.exceptions import NotFoundException
from account_service.repositories.query import Query
from account_service.routes.dependencies import get_container, get_query, request_body
from account_service.services.base_user_service import UserServiceBase


def create_user_router(
    resource: str, tag: str, service_attr: str, service_cls: Type[UserServiceBase], messages: Any
) -> APIRouter:
    """Bodies are validated against `service_cls.create_request` and `service_cls.update_request`."""
    router = APIRouter(prefix=f"/v1/{resource}", tags=[tag])

    def service_of(container):
        return getattr(container, service_attr)

    @router.post("", status_code=status.HTTP_201_CREATED)
    async def create(
        body: BaseModel = Depends(request_body(service_cls.create_request)), container=Depends(get_container)
    ):
        created = await service_of(container).add(body)
        return JSONResponse(status_code=status.HTTP_201_CREATED, content=created.to_json())

    @router.get("")
    async def get_all(query: Query = Depends(get_query), container=Depends(get_container)):
        users = await service_of(container).get_all(query)
        return [user.to_json() for user in users]

    @router.get("/{user_id}")
    async def get_by_id(user_id: str, query: Query = Depends(get_query), container=Depends(get_container)):
        user = await service_of(container).get_by_id(user_id, query)
        if user is None:
            raise NotFoundException(messages.NOT_FOUND, messages.NOT_FOUND_DESCRIPTION)
        return user.to_json()

    @router.patch("/{user_id}")
    async def update(
        user_id: str,
        body: BaseModel = Depends(request_body(service_cls.update_request)),
        container=Depends(get_container),
    ):
        updated = await service_of(container).update(user_id, body)
        if updated is None:
            raise NotFoundException(messages.NOT_FOUND, messages.NOT_FOUND_DESCRIPTION)
        return updated.to_json()

    @router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete(user_id: str, container=Depends(get_container)):
        await service_of(container).remove(user_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return router
