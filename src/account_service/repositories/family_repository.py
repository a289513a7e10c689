"""
Repository for users of type family.

A family stores the ids of its children; reads replace them with the child documents.
"""

from typing import Optional

from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from account_service.models.user_models import Family, UserType
from account_service.repositories.base import store_error
from account_service.repositories.mappers import family_mapper
from account_service.repositories.translator import Population, to_object_id
from account_service.repositories.user_repository import UserRepository


class FamilyRepository(UserRepository):
    user_type = UserType.FAMILY
    relations = ("institution", "children")

    def __init__(self, users, institutions, children_groups):
        super().__init__(users, institutions, children_groups, mapper=family_mapper)

    async def _populate(self, documents, populations, drop_broken):
        documents = await self._populate_institution(documents, populations.get("institution"), drop_broken)
        children = populations.get("children") or Population()
        children.match = {**children.match, "type": UserType.CHILD.value}
        return await self.populate_list(documents, "children", self.collection, children)

    async def add_child(self, family_id: str, child_id: str) -> Optional[Family]:
        """Append `child_id` to the family once; re-adding is a no-op."""
        return await self._update_children(family_id, {"$addToSet": {"children": to_object_id(child_id)}})

    async def remove_child(self, family_id: str, child_id: str) -> Optional[Family]:
        return await self._update_children(family_id, {"$pull": {"children": to_object_id(child_id)}})

    async def _update_children(self, family_id: str, update: dict) -> Optional[Family]:
        try:
            document = await self.collection.find_one_and_update(
                {"_id": to_object_id(family_id), **self._scope()}, update, return_document=ReturnDocument.AFTER
            )
        except PyMongoError as e:
            raise store_error(e) from e
        if document is None:
            return None
        populated = await self._populate([document], self._empty_populations(), drop_broken=False)
        return self.mapper.from_document(populated[0])
