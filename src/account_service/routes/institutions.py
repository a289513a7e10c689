"""Institution CRUD. Deleting an institution disassociates its users."""

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import JSONResponse

from account_service.exceptions import NotFoundException
from account_service.models.request_models import CreateInstitutionRequest, UpdateInstitutionRequest
from account_service.repositories.query import Query
from account_service.routes.dependencies import get_container, get_query, request_body
from account_service.utils.strings import Strings

router = APIRouter(prefix="/v1/institutions", tags=["Institutions"])


def _not_found() -> NotFoundException:
    return NotFoundException(Strings.INSTITUTION.NOT_FOUND, Strings.INSTITUTION.NOT_FOUND_DESCRIPTION)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_institution(
    body: CreateInstitutionRequest = Depends(request_body(CreateInstitutionRequest)),
    container=Depends(get_container),
):
    created = await container.institution_service.add(body)
    return JSONResponse(status_code=status.HTTP_201_CREATED, content=created.to_json())


@router.get("")
async def get_all_institutions(query: Query = Depends(get_query), container=Depends(get_container)):
    institutions = await container.institution_service.get_all(query)
    return [institution.to_json() for institution in institutions]


@router.get("/{institution_id}")
async def get_institution(
    institution_id: str, query: Query = Depends(get_query), container=Depends(get_container)
):
    institution = await container.institution_service.get_by_id(institution_id, query)
    if institution is None:
        raise _not_found()
    return institution.to_json()


@router.patch("/{institution_id}")
async def update_institution(
    institution_id: str,
    body: UpdateInstitutionRequest = Depends(request_body(UpdateInstitutionRequest)),
    container=Depends(get_container),
):
    updated = await container.institution_service.update(institution_id, body)
    if updated is None:
        raise _not_found()
    return updated.to_json()


@router.delete("/{institution_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_institution(institution_id: str, container=Depends(get_container)):
    await container.institution_service.remove(institution_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
