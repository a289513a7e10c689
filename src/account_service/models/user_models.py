"""
# User Models

This module defines the **domain models** for every user subtype handled by the Account Service,
plus the children groups owned by educators and health professionals.

## Domain Model Overview

- **User**: Abstract base. Carries credentials, the user type and the institution reference.
- **Child**: A monitored child (`gender`, `age`).
- **Educator / HealthProfessional**: Professionals that own **children groups**.
- **Family**: A family account linked to its children.
- **Application**: A third-party application account (institution optional).
- **ChildrenGroup**: Named group of children, owned by one educator or health professional.

All users are stored in the single `users` collection and discriminated by `type`.

## Partial Objects

Every field is optional. Models built from a request body or from a reduced projection only
carry the fields that were present; `model_fields_set` records which ones. This is what makes
partial updates and field selection work without overwriting unset fields with `None`.

Request bodies are validated by the models in `request_models` before they are mapped here.
Documents read back from MongoDB are trusted and mapped with `model_construct()`, so a reduced
projection never trips a type check.

## Module Attributes

Attributes:
    UserType (Enum): Discriminator values stored in the `type` field.
    Gender (Enum): Allowed child genders.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from account_service.models.institution_models import Institution
from account_service.utils.datetime_helpers import to_iso_string


class UserType(str, Enum):
    """Discriminator stored in the `type` field of the `users` collection."""

    ADMIN = "admin"
    CHILD = "child"
    EDUCATOR = "educator"
    HEALTH_PROFESSIONAL = "health_professional"
    FAMILY = "family"
    APPLICATION = "application"


class Gender(str, Enum):
    """Allowed child genders."""

    MALE = "male"
    FEMALE = "female"


class User(BaseModel):
    """
    Abstract user. Never stored directly; concrete subtypes set `type`.

    **Key Fields:**
    *   **password**: Write-only. Hashed before insert, never serialized by `to_json()`.
    *   **institution**: Reference to an `Institution`; populated at read time.
    """

    id: Optional[str] = Field(None, description="User id (24-char hex)")
    username: Optional[str] = Field(None, description="Unique username within the user type")
    password: Optional[str] = Field(None, description="Plain text on input, bcrypt hash at rest")
    type: Optional[str] = Field(None, description="User type discriminator")
    institution: Optional[Institution] = Field(None, description="Institution the user belongs to")
    last_login: Optional[datetime] = Field(None, description="Last login timestamp")
    last_sync: Optional[datetime] = Field(None, description="Last synchronization timestamp")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp set by the store")

    def to_json(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        if self.id is not None:
            result["id"] = self.id
        if self.username is not None:
            result["username"] = self.username
        if self.type is not None:
            result["type"] = self.type
        if self.institution is not None and self.institution.id is not None:
            result["institution_id"] = self.institution.id
        if self.last_login is not None:
            result["last_login"] = to_iso_string(self.last_login)
        if self.last_sync is not None:
            result["last_sync"] = to_iso_string(self.last_sync)
        return result


class Child(User):
    """A monitored child."""

    gender: Optional[str] = Field(None, description="Child gender (male|female)")
    age: Optional[float] = Field(None, description="Child age in years")

    def to_json(self) -> Dict[str, Any]:
        result = super().to_json()
        if self.gender is not None:
            result["gender"] = self.gender
        if self.age is not None:
            result["age"] = self.age
        return result


class ChildrenGroup(BaseModel):
    """
    A named group of children owned by an educator or a health professional.

    `user` holds the owner; only its id is persisted.
    """

    id: Optional[str] = Field(None, description="Group id (24-char hex)")
    name: Optional[str] = Field(None, description="Group name, unique per owner")
    children: Optional[List[Child]] = Field(None, description="Children in the group, ordered")
    school_class: Optional[str] = Field(None, description="School class the group refers to")
    user: Optional[User] = Field(None, description="Owner (educator or health professional)")

    def to_json(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        if self.id is not None:
            result["id"] = self.id
        if self.name is not None:
            result["name"] = self.name
        if self.children is not None:
            result["children"] = [child.to_json() for child in self.children]
        if self.school_class is not None:
            result["school_class"] = self.school_class
        return result


class Educator(User):
    """An educator; owns children groups."""

    children_groups: Optional[List[ChildrenGroup]] = Field(None, description="Owned children groups")

    def to_json(self) -> Dict[str, Any]:
        result = super().to_json()
        if self.children_groups is not None:
            result["children_groups"] = [group.to_json() for group in self.children_groups]
        return result


class HealthProfessional(User):
    """A health professional; owns children groups."""

    children_groups: Optional[List[ChildrenGroup]] = Field(None, description="Owned children groups")

    def to_json(self) -> Dict[str, Any]:
        result = super().to_json()
        if self.children_groups is not None:
            result["children_groups"] = [group.to_json() for group in self.children_groups]
        return result


class Family(User):
    """A family account linked to its children."""

    children: Optional[List[Child]] = Field(None, description="Children of the family")

    def to_json(self) -> Dict[str, Any]:
        result = super().to_json()
        if self.children is not None:
            result["children"] = [child.to_json() for child in self.children]
        return result


class Application(User):
    """A third-party application account. The institution is optional."""

    application_name: Optional[str] = Field(None, description="Human readable application name")

    def to_json(self) -> Dict[str, Any]:
        result = super().to_json()
        if self.application_name is not None:
            result["application_name"] = self.application_name
        return result
