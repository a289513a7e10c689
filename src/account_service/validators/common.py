"""
Request validation.

Bodies are validated by the pydantic models in `account_service.models.request_models`;
`validate_request()` runs a model and turns the pydantic error list into the single
`ValidationException` the API reports.
"""

from typing import Any, Dict, List, Optional, Sequence, Type, TypeVar

from bson import ObjectId
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from account_service.exceptions import ValidationException
from account_service.utils.strings import Strings

RequestModel = TypeVar("RequestModel", bound=BaseModel)

# Names used in "is required!" messages when they differ from the body key.
REQUIRED_NAMES = {"institution_id": "institution"}

NUMBER_ERRORS = {"float_parsing", "float_type", "int_parsing", "int_type", "int_from_float", "finite_number"}
STRING_ERRORS = {"string_type", "string_too_short"}


def validate_object_id(value: Any, message: Optional[str] = None) -> None:
    if not isinstance(value, str) or not ObjectId.is_valid(value):
        raise ValidationException(
            message or Strings.ERROR_MESSAGE.UUID_NOT_VALID_FORMAT,
            Strings.ERROR_MESSAGE.UUID_NOT_VALID_FORMAT_DESC,
        )


def _field_name(loc: Sequence[Any]) -> str:
    names = [str(part) for part in loc if part != "body" and not isinstance(part, int)]
    return names[0] if names else ""


def validation_exception(errors: List[Dict[str, Any]], prefix: str = "") -> ValidationException:
    """
    Build the ValidationException for a pydantic error list.

    Missing fields win and are listed together; otherwise the first error is described.
    """
    missing = [_field_name(error["loc"]) for error in errors if error["type"] == "missing"]
    if missing:
        names = [REQUIRED_NAMES.get(name, name) for name in dict.fromkeys(missing)]
        return ValidationException(
            Strings.ERROR_MESSAGE.REQUIRED_FIELDS,
            f"{prefix}{', '.join(names)}{Strings.ERROR_MESSAGE.REQUIRED_FIELDS_DESC}",
        )

    error = errors[0]
    field = _field_name(error["loc"])
    kind = error["type"]
    if not field:
        description = "The request body must be a JSON object."
    elif kind == "object_id":
        return ValidationException(
            Strings.ERROR_MESSAGE.UUID_NOT_VALID_FORMAT, Strings.ERROR_MESSAGE.UUID_NOT_VALID_FORMAT_DESC
        )
    elif kind == "value_error":
        description = str(error.get("ctx", {}).get("error", error["msg"]))
    elif kind in NUMBER_ERRORS:
        description = Strings.ERROR_MESSAGE.INVALID_NUMBER_FIELD.format(field)
    elif kind == "greater_than":
        description = Strings.ERROR_MESSAGE.NEGATIVE_PARAMETER.format(field.capitalize())
    elif kind in STRING_ERRORS:
        description = Strings.ERROR_MESSAGE.EMPTY_STRING.format(field)
    elif kind.startswith("datetime"):
        description = Strings.ERROR_MESSAGE.INVALID_DATETIME_FORMAT.format(error.get("input"))
    elif kind == "list_type":
        description = f"{field} must be an array of ids!"
    else:
        description = f"{field}: {error['msg']}"
    return ValidationException(Strings.ERROR_MESSAGE.INVALID_FIELDS, description)


def validate_request(model: Type[RequestModel], data: Any) -> RequestModel:
    """
    Validate `data` against a request model.

    Raises:
        ValidationException: Missing fields (listed together, prefixed with the model's
            `REQUIRED_PREFIX`) or the first malformed field.
    """
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise validation_exception(e.errors(), getattr(model, "REQUIRED_PREFIX", "")) from e
