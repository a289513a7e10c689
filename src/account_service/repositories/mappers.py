"""
# Entity Mappers

Explicit conversions between the three shapes an entity takes:

- **request data** (`model_dump()` of a validated request model) → model: `from_json()`
- **model** → MongoDB document: `to_document()`
- **MongoDB document** → model: `from_document()`

Only fields that are present on the source are carried over. `to_document()` reads
`model_fields_set`, so a model built from `{"username": "x"}` produces `{"username": "x"}`
and a partial `$set` never overwrites other fields. Documents come from the store and are
mapped with `model_construct()`.

References are stored as `ObjectId`. When a document comes back from a population step the
reference holds the related document instead, and `from_document()` maps it recursively.
"""

from typing import Any, Dict, List, Optional, Type

from bson import ObjectId

from account_service.models.institution_models import Institution
from account_service.models.user_models import (
    Application,
    Child,
    ChildrenGroup,
    Educator,
    Family,
    HealthProfessional,
    User,
    UserType,
)
from account_service.repositories.translator import to_object_id

USER_FIELDS = ("username", "password", "type", "last_login", "last_sync")


def _reference_id(value: Any) -> Optional[str]:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return str(value["_id"]) if "_id" in value else None
    if value is None:
        return None
    return str(value)


class InstitutionMapper:
    FIELDS = ("type", "name", "address", "latitude", "longitude")

    def from_json(self, json: Optional[Dict[str, Any]]) -> Institution:
        if not json:
            return Institution()
        values = {key: json[key] for key in ("id",) + self.FIELDS if key in json}
        return Institution(**values)

    def to_document(self, item: Institution) -> Dict[str, Any]:
        document: Dict[str, Any] = {}
        for key in item.model_fields_set:
            value = getattr(item, key)
            if key == "id":
                if value is not None:
                    document["_id"] = to_object_id(value)
            elif key in self.FIELDS:
                document[key] = value
        return document

    def from_document(self, document: Dict[str, Any]) -> Institution:
        values: Dict[str, Any] = {}
        if "_id" in document:
            values["id"] = str(document["_id"])
        for key in self.FIELDS + ("created_at",):
            if key in document:
                values[key] = document[key]
        return Institution.model_construct(**values)


institution_mapper = InstitutionMapper()


class UserMapper:
    """
    Mapper for the fields every user subtype shares.

    Subclasses declare `model`, `user_type` and their `EXTRA_FIELDS`, and override the hooks
    for reference lists.
    """

    model: Type[User] = User
    user_type: Optional[UserType] = None
    EXTRA_FIELDS: tuple = ()

    def from_json(self, json: Optional[Dict[str, Any]]) -> User:
        if not json:
            return self.model()
        values: Dict[str, Any] = {}
        if "id" in json:
            values["id"] = json["id"]
        for key in USER_FIELDS + self.EXTRA_FIELDS:
            if key in json:
                values[key] = json[key]
        institution = json.get("institution_id", json.get("institution"))
        if "institution_id" in json or "institution" in json:
            if isinstance(institution, dict):
                values["institution"] = institution_mapper.from_json(institution)
            elif institution is not None:
                values["institution"] = Institution(id=institution)
            else:
                values["institution"] = None
        self._references_from_json(json, values)
        return self.model(**values)

    def to_document(self, item: User) -> Dict[str, Any]:
        document: Dict[str, Any] = {}
        for key in item.model_fields_set:
            value = getattr(item, key)
            if key == "id":
                if value is not None:
                    document["_id"] = to_object_id(value)
            elif key == "institution":
                document["institution"] = to_object_id(value.id) if value is not None else None
            elif key in USER_FIELDS or key in self.EXTRA_FIELDS:
                document[key] = value
        self._references_to_document(item, document)
        if self.user_type is not None:
            document["type"] = self.user_type.value
        return document

    def from_document(self, document: Dict[str, Any]) -> User:
        values: Dict[str, Any] = {}
        if "_id" in document:
            values["id"] = str(document["_id"])
        for key in USER_FIELDS + self.EXTRA_FIELDS + ("created_at",):
            if key in document:
                values[key] = document[key]
        if document.get("institution") is not None:
            institution = document["institution"]
            if isinstance(institution, dict):
                values["institution"] = institution_mapper.from_document(institution)
            else:
                values["institution"] = Institution.model_construct(id=_reference_id(institution))
        self._references_from_document(document, values)
        return self.model.model_construct(**values)

    def _references_from_json(self, json: Dict[str, Any], values: Dict[str, Any]) -> None:
        pass

    def _references_to_document(self, item: User, document: Dict[str, Any]) -> None:
        pass

    def _references_from_document(self, document: Dict[str, Any], values: Dict[str, Any]) -> None:
        pass


class ChildMapper(UserMapper):
    model = Child
    user_type = UserType.CHILD
    EXTRA_FIELDS = ("gender", "age")


child_mapper = ChildMapper()


def _children_from_json(children: List[Any]) -> List[Child]:
    result: List[Child] = []
    for child in children:
        if isinstance(child, dict):
            result.append(child_mapper.from_json(child))
        else:
            result.append(Child(id=child))
    return result


def _children_from_document(children: List[Any]) -> List[Child]:
    result: List[Child] = []
    for child in children:
        if isinstance(child, dict):
            result.append(child_mapper.from_document(child))
        else:
            result.append(Child.model_construct(id=str(child)))
    return result


class FamilyMapper(UserMapper):
    model = Family
    user_type = UserType.FAMILY

    def _references_from_json(self, json, values):
        if "children" in json:
            values["children"] = _children_from_json(json["children"])

    def _references_to_document(self, item, document):
        if "children" in item.model_fields_set and item.children is not None:
            document["children"] = [to_object_id(child.id) for child in item.children]

    def _references_from_document(self, document, values):
        if "children" in document:
            values["children"] = _children_from_document(document["children"])


class ChildrenGroupMapper:
    FIELDS = ("name", "school_class")

    def from_json(self, json: Optional[Dict[str, Any]]) -> ChildrenGroup:
        if not json:
            return ChildrenGroup()
        values = {key: json[key] for key in ("id",) + self.FIELDS if key in json}
        if "children" in json:
            values["children"] = _children_from_json(json["children"])
        if json.get("user_id") is not None:
            values["user"] = User(id=json["user_id"])
        return ChildrenGroup(**values)

    def to_document(self, item: ChildrenGroup) -> Dict[str, Any]:
        document: Dict[str, Any] = {}
        for key in item.model_fields_set:
            value = getattr(item, key)
            if key == "id":
                if value is not None:
                    document["_id"] = to_object_id(value)
            elif key == "children":
                if value is not None:
                    document["children"] = [to_object_id(child.id) for child in value]
            elif key == "user":
                if value is not None:
                    document["user_id"] = to_object_id(value.id)
            elif key in self.FIELDS:
                document[key] = value
        return document

    def from_document(self, document: Dict[str, Any]) -> ChildrenGroup:
        values: Dict[str, Any] = {}
        if "_id" in document:
            values["id"] = str(document["_id"])
        for key in self.FIELDS:
            if key in document:
                values[key] = document[key]
        if "children" in document:
            values["children"] = _children_from_document(document["children"])
        if document.get("user_id") is not None:
            values["user"] = User.model_construct(id=str(document["user_id"]))
        return ChildrenGroup.model_construct(**values)


children_group_mapper = ChildrenGroupMapper()


class _GroupOwnerMapper(UserMapper):
    def _references_from_json(self, json, values):
        groups = json.get("children_groups")
        if isinstance(groups, list):
            values["children_groups"] = [
                children_group_mapper.from_json(group) if isinstance(group, dict)
                else ChildrenGroup(id=group)
                for group in groups
            ]

    def _references_to_document(self, item, document):
        if "children_groups" in item.model_fields_set and item.children_groups is not None:
            document["children_groups"] = [to_object_id(group.id) for group in item.children_groups]

    def _references_from_document(self, document, values):
        if "children_groups" in document:
            values["children_groups"] = [
                children_group_mapper.from_document(group) if isinstance(group, dict)
                else ChildrenGroup.model_construct(id=str(group))
                for group in document["children_groups"]
            ]


class EducatorMapper(_GroupOwnerMapper):
    model = Educator
    user_type = UserType.EDUCATOR


class HealthProfessionalMapper(_GroupOwnerMapper):
    model = HealthProfessional
    user_type = UserType.HEALTH_PROFESSIONAL


class ApplicationMapper(UserMapper):
    model = Application
    user_type = UserType.APPLICATION
    EXTRA_FIELDS = ("application_name",)


user_mapper = UserMapper()
family_mapper = FamilyMapper()
educator_mapper = EducatorMapper()
health_professional_mapper = HealthProfessionalMapper()
application_mapper = ApplicationMapper()
