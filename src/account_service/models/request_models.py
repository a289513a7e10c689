"""
# Request Models

Pydantic models for every request body the Account Service accepts. Routes validate bodies
against these models before anything reaches a service; services convert them into domain
models through the mappers.

## Create vs. Update

Create requests declare the required fields. Update requests are partial: every field is
optional and only the fields present in the body (`model_fields_set`) are written.

## Messages

Field validators raise `ValueError` with the user-facing wording from `Strings`; the pydantic
error list is turned into a single `ValidationException` by
`account_service.validators.common.validate_request`. Required-field errors are reported
together, prefixed with `REQUIRED_PREFIX`.

Two custom error types are raised through `PydanticCustomError`:

- `object_id`: a value that is not a 24-char hex id.
- `missing`: an empty list where at least one item is required; reported like an absent field.
"""

from datetime import datetime
from typing import Any, ClassVar, List, Literal, Optional

from bson import ObjectId
from pydantic import BaseModel, Field, field_validator
from pydantic_core import PydanticCustomError

from account_service.models.user_models import Gender
from account_service.utils.strings import Strings

GENDER_DESCRIPTION = "The names of the allowed genders are: {}.".format(", ".join(g.value for g in Gender))


def check_object_id(value: Any) -> Any:
    if not isinstance(value, str) or not ObjectId.is_valid(value):
        raise PydanticCustomError("object_id", Strings.ERROR_MESSAGE.UUID_NOT_VALID_FORMAT)
    return value


def check_object_ids(value: Any) -> Any:
    if isinstance(value, list):
        for item in value:
            check_object_id(item)
    return value


def check_not_blank(value: Optional[str], field: str) -> Optional[str]:
    if value is not None and not value.strip():
        raise ValueError(Strings.ERROR_MESSAGE.EMPTY_STRING.format(field))
    return value


# ============================================================================
# Users
# ============================================================================


class CreateUserRequest(BaseModel):
    """
    Body of `POST /v1/educators` and `POST /v1/healthprofessionals`.

    Also the base of every other user create request.
    """

    REQUIRED_PREFIX: ClassVar[str] = ""

    username: str = Field(..., description="Unique username within the user type")
    password: str = Field(..., description="Plain text password; hashed before insert")
    institution_id: str = Field(..., description="Id of a registered institution")
    last_login: Optional[datetime] = Field(None, description="Last login timestamp (ISO 8601)")
    last_sync: Optional[datetime] = Field(None, description="Last synchronization timestamp (ISO 8601)")

    @field_validator("username", "password")
    @classmethod
    def validate_not_blank(cls, v, info):
        return check_not_blank(v, info.field_name)

    @field_validator("institution_id", mode="before")
    @classmethod
    def validate_institution_id(cls, v):
        return check_object_id(v) if v is not None else v


class UpdateUserRequest(BaseModel):
    """
    Body of `PATCH` on any user resource.

    `password` is accepted by the model only so the service can reject it with a pointer to
    the password route.
    """

    REQUIRED_PREFIX: ClassVar[str] = ""

    username: Optional[str] = Field(None, description="New username")
    password: Optional[str] = Field(None, description="Not updatable here; see PATCH /v1/users/{id}/password")
    institution_id: Optional[str] = Field(None, description="Id of a registered institution")
    last_login: Optional[datetime] = Field(None, description="Last login timestamp (ISO 8601)")
    last_sync: Optional[datetime] = Field(None, description="Last synchronization timestamp (ISO 8601)")

    @field_validator("username")
    @classmethod
    def validate_not_blank(cls, v, info):
        return check_not_blank(v, info.field_name)

    @field_validator("institution_id", mode="before")
    @classmethod
    def validate_institution_id(cls, v):
        return check_object_id(v) if v is not None else v


class CreateChildRequest(CreateUserRequest):
    gender: Literal["male", "female"] = Field(..., description="Child gender")
    age: float = Field(..., gt=0, description="Child age in years")

    @field_validator("gender", mode="before")
    @classmethod
    def validate_gender(cls, v):
        if v not in [g.value for g in Gender]:
            raise ValueError(GENDER_DESCRIPTION)
        return v


class UpdateChildRequest(UpdateUserRequest):
    gender: Optional[Literal["male", "female"]] = Field(None, description="Child gender")
    age: Optional[float] = Field(None, gt=0, description="Child age in years")

    @field_validator("gender", mode="before")
    @classmethod
    def validate_gender(cls, v):
        if v is not None and v not in [g.value for g in Gender]:
            raise ValueError(GENDER_DESCRIPTION)
        return v


class CreateFamilyRequest(CreateUserRequest):
    REQUIRED_PREFIX: ClassVar[str] = "Family validation: "

    children: List[str] = Field(..., description="Ids of the family's children")

    @field_validator("children", mode="before")
    @classmethod
    def validate_children(cls, v):
        return check_object_ids(v)


class UpdateFamilyRequest(UpdateUserRequest):
    children: Optional[List[str]] = Field(None, description="Replaces the family's children")

    @field_validator("children", mode="before")
    @classmethod
    def validate_children(cls, v):
        return check_object_ids(v)


class CreateApplicationRequest(CreateUserRequest):
    """Applications may be registered without an institution."""

    institution_id: Optional[str] = Field(None, description="Id of a registered institution")
    application_name: str = Field(..., description="Human readable application name")

    @field_validator("application_name")
    @classmethod
    def validate_application_name(cls, v):
        return check_not_blank(v, "application_name")


class UpdateApplicationRequest(UpdateUserRequest):
    application_name: Optional[str] = Field(None, description="Human readable application name")

    @field_validator("application_name")
    @classmethod
    def validate_application_name(cls, v):
        return check_not_blank(v, "application_name")


class PasswordUpdateRequest(BaseModel):
    """Body of `PATCH /v1/users/{user_id}/password`."""

    REQUIRED_PREFIX: ClassVar[str] = "Change password validation: "

    old_password: str = Field(..., description="Current password")
    new_password: str = Field(..., description="Replacement password")

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, v):
        return check_not_blank(v, "new_password")


# ============================================================================
# Institutions and children groups
# ============================================================================


class CreateInstitutionRequest(BaseModel):
    REQUIRED_PREFIX: ClassVar[str] = "Institution validation: "

    type: str = Field(..., description="Institution type, e.g. 'Institute of Scientific Research'")
    name: str = Field(..., description="Institution name, unique")
    address: Optional[str] = Field(None, description="Postal address")
    latitude: Optional[float] = Field(None, description="Geographic latitude")
    longitude: Optional[float] = Field(None, description="Geographic longitude")

    @field_validator("type", "name")
    @classmethod
    def validate_not_blank(cls, v, info):
        return check_not_blank(v, info.field_name)


class UpdateInstitutionRequest(BaseModel):
    REQUIRED_PREFIX: ClassVar[str] = ""

    type: Optional[str] = None
    name: Optional[str] = None
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @field_validator("type", "name")
    @classmethod
    def validate_not_blank(cls, v, info):
        return check_not_blank(v, info.field_name)


class CreateChildrenGroupRequest(BaseModel):
    """The owner comes from the route, never from the body."""

    REQUIRED_PREFIX: ClassVar[str] = "Children Group validation: "

    name: str = Field(..., description="Group name, unique per owner")
    children: List[str] = Field(..., description="Ids of the children in the group, ordered")
    school_class: Optional[str] = Field(None, description="School class the group refers to")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return check_not_blank(v, "name")

    @field_validator("children", mode="before")
    @classmethod
    def validate_children(cls, v):
        if v == []:
            raise PydanticCustomError("missing", "Field required")
        return check_object_ids(v)


class UpdateChildrenGroupRequest(BaseModel):
    REQUIRED_PREFIX: ClassVar[str] = ""

    name: Optional[str] = None
    children: Optional[List[str]] = None
    school_class: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return check_not_blank(v, "name")

    @field_validator("children", mode="before")
    @classmethod
    def validate_children(cls, v):
        if v == []:
            raise ValueError("Children Group must have at least one child!")
        return check_object_ids(v)
