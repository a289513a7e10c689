"""
Repository for children groups.

A group stores its owner in `user_id` and the ids of its children in `children`. Reads
populate the children, then each child's institution.
"""

from typing import Any, Dict

from pymongo.errors import PyMongoError

from account_service.models.user_models import ChildrenGroup, UserType
from account_service.repositories.base import BaseRepository, store_error
from account_service.repositories.mappers import children_group_mapper
from account_service.repositories.translator import Population, to_object_id


class ChildrenGroupRepository(BaseRepository):
    relations = ("children",)

    def __init__(self, children_groups, users, institutions):
        super().__init__(children_groups, children_group_mapper)
        self.users = users
        self.institutions = institutions

    async def _populate(self, documents, populations, drop_broken):
        children = populations.get("children") or Population()
        children.match = {**children.match, "type": UserType.CHILD.value}
        documents = await self.populate_list(documents, "children", self.users, children)
        child_documents = [child for group in documents for child in group.get("children") or []]
        await self.populate_reference(child_documents, "institution", self.institutions)
        return documents

    async def check_exist(self, item: ChildrenGroup) -> bool:
        """By id when present, otherwise by name within the owner's groups."""
        condition: Dict[str, Any]
        if item.id is not None:
            condition = {"_id": to_object_id(item.id)}
        elif item.name is not None and item.user is not None:
            condition = {"name": item.name, "user_id": to_object_id(item.user.id)}
        else:
            return False
        try:
            return await self.collection.count_documents(condition, limit=1) > 0
        except PyMongoError as e:
            raise store_error(e) from e
