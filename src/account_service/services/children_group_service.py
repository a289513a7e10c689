"""
# Children Group Service

Children groups belong to exactly one owner, an educator or a health professional. The owner
keeps the ids of its groups in `children_groups`; each group keeps its owner in `user_id`.
Both sides are written on create and delete.

Every operation is addressed through the owner: a group that exists but belongs to another
owner is reported as missing.
"""

from typing import List, Optional

from account_service.exceptions import ConflictException, ValidationException
from account_service.managers.logging_manager import get_logger
from account_service.models.request_models import CreateChildrenGroupRequest, UpdateChildrenGroupRequest
from account_service.models.user_models import ChildrenGroup, User
from account_service.repositories.child_repository import ChildRepository
from account_service.repositories.children_group_repository import ChildrenGroupRepository
from account_service.repositories.educator_repository import GroupOwnerRepository
from account_service.repositories.query import Query
from account_service.utils.strings import Strings
from account_service.validators.common import validate_object_id

logger = get_logger(prefix="[ChildrenGroupService]")


class ChildrenGroupService:
    def __init__(
        self,
        repository: ChildrenGroupRepository,
        owner_repository: GroupOwnerRepository,
        child_repository: ChildRepository,
    ):
        self.repository = repository
        self.owner_repository = owner_repository
        self.child_repository = child_repository

    async def _owner_exists(self, owner_id: str) -> bool:
        return await self.owner_repository.check_exist(User(id=owner_id))

    async def _check_children(self, group: ChildrenGroup) -> None:
        if not group.children:
            return
        missing = await self.child_repository.exists_by_ids([child.id for child in group.children])
        if missing:
            raise ValidationException(
                Strings.CHILD.CHILDREN_REGISTER_REQUIRED,
                Strings.CHILD.IDS_WITH_PROBLEMS.format(", ".join(missing)),
            )

    async def add(self, owner_id: str, request: CreateChildrenGroupRequest) -> Optional[ChildrenGroup]:
        """Create a group for `owner_id`. Returns `None` when the owner does not exist."""
        validate_object_id(owner_id)
        group = self.repository.mapper.from_json(request.model_dump(exclude_unset=True, exclude_none=True))
        group.user = User(id=owner_id)
        if not await self._owner_exists(owner_id):
            return None
        await self._check_children(group)
        if await self.repository.check_exist(group):
            raise ConflictException(Strings.CHILDREN_GROUP.ALREADY_REGISTERED)

        created = await self.repository.create(group)
        await self.owner_repository.add_children_group(owner_id, created.id)
        logger.info("Created children group %s for %s", created.id, owner_id)
        return created

    async def get_all(self, owner_id: str, query: Optional[Query] = None) -> List[ChildrenGroup]:
        validate_object_id(owner_id)
        query = query or Query()
        query.add_filter({"user_id": owner_id})
        return await self.repository.find(query)

    async def get_by_id(
        self, owner_id: str, group_id: str, query: Optional[Query] = None
    ) -> Optional[ChildrenGroup]:
        validate_object_id(owner_id)
        validate_object_id(group_id)
        query = query or Query()
        query.filters = {"_id": group_id, "user_id": owner_id}
        return await self.repository.find_one(query)

    async def update(
        self, owner_id: str, group_id: str, request: UpdateChildrenGroupRequest
    ) -> Optional[ChildrenGroup]:
        if await self.get_by_id(owner_id, group_id) is None:
            return None
        group = self.repository.mapper.from_json(request.model_dump(exclude_unset=True, exclude_none=True))
        group.id = group_id
        await self._check_children(group)
        if group.name is not None:
            existing = await self.repository.find_one(Query(filters={"name": group.name, "user_id": owner_id}))
            if existing is not None and existing.id != group.id:
                raise ConflictException(Strings.CHILDREN_GROUP.ALREADY_REGISTERED)
        return await self.repository.update(group)

    async def remove(self, owner_id: str, group_id: str) -> bool:
        if await self.get_by_id(owner_id, group_id) is None:
            return False
        deleted = await self.repository.delete(group_id)
        await self.owner_repository.remove_children_group(owner_id, group_id)
        logger.info("Removed children group %s of %s", group_id, owner_id)
        return deleted
