"""FastAPI dependencies shared by the routers."""

from typing import Any, Callable, Dict, Type

from fastapi import Request
from pydantic import BaseModel

from account_service.exceptions import ValidationException
from account_service.repositories.query import Query, parse_query_string
from account_service.utils.strings import Strings
from account_service.validators.common import validate_request


def get_container(request: Request):
    """The `Container` built in the application lifespan."""
    return request.app.state.container


def get_query(request: Request) -> Query:
    """Parse the request query string; malformed values surface as 400."""
    return parse_query_string(request.query_params.multi_items())


async def get_json_body(request: Request) -> Dict[str, Any]:
    try:
        return await request.json()
    except ValueError:
        raise ValidationException(Strings.ERROR_MESSAGE.INVALID_FIELDS, "The request body is not valid JSON.")


def request_body(model: Type[BaseModel]) -> Callable:
    """
    Dependency that validates the JSON body against `model`.

    Validation goes through `validate_request` so that missing fields are reported together
    with the model's `REQUIRED_PREFIX`, the same way services and tests see them.
    """

    async def dependency(request: Request) -> BaseModel:
        return validate_request(model, await get_json_body(request))

    return dependency
