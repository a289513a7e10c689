"""
Repositories for the users that own children groups: educators and health professionals.

Reads populate `children_groups`, then the children of each group, then the institution of
each child.
"""

from typing import Any, Dict, List, Optional

from pymongo.errors import PyMongoError

from account_service.models.user_models import UserType
from account_service.repositories.base import store_error
from account_service.repositories.mappers import educator_mapper, health_professional_mapper
from account_service.repositories.query import Query
from account_service.repositories.translator import Population, to_object_id
from account_service.repositories.user_repository import UserRepository


class GroupOwnerRepository(UserRepository):
    relations = ("institution", "children_groups")

    async def _populate(self, documents, populations, drop_broken):
        documents = await self._populate_institution(documents, populations.get("institution"), drop_broken)
        documents = await self.populate_list(
            documents, "children_groups", self.children_groups, populations.get("children_groups")
        )
        groups: List[Dict[str, Any]] = [
            group for document in documents for group in document.get("children_groups") or []
        ]
        groups = await self.populate_list(
            groups, "children", self.collection, Population(match={"type": UserType.CHILD.value})
        )
        children = [child for group in groups for child in group.get("children") or []]
        await self.populate_reference(children, "institution", self.institutions)
        return documents

    async def add_children_group(self, user_id: str, group_id: str) -> bool:
        return await self._update_groups(user_id, {"$addToSet": {"children_groups": to_object_id(group_id)}})

    async def remove_children_group(self, user_id: str, group_id: str) -> bool:
        return await self._update_groups(user_id, {"$pull": {"children_groups": to_object_id(group_id)}})

    async def _update_groups(self, user_id: str, update: dict) -> bool:
        try:
            result = await self.collection.update_one({"_id": to_object_id(user_id), **self._scope()}, update)
        except PyMongoError as e:
            raise store_error(e) from e
        return result.matched_count == 1

    async def find_by_id(self, user_id: str) -> Optional[Any]:
        return await self.find_one(Query(filters={"_id": user_id}))


class EducatorRepository(GroupOwnerRepository):
    user_type = UserType.EDUCATOR

    def __init__(self, users, institutions, children_groups):
        super().__init__(users, institutions, children_groups, mapper=educator_mapper)


class HealthProfessionalRepository(GroupOwnerRepository):
    user_type = UserType.HEALTH_PROFESSIONAL

    def __init__(self, users, institutions, children_groups):
        super().__init__(users, institutions, children_groups, mapper=health_professional_mapper)
