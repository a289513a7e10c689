"""Educators and health professionals, with the children groups they own."""

from typing import List, Optional

from account_service.models.request_models import CreateChildrenGroupRequest, UpdateChildrenGroupRequest
from account_service.models.user_models import ChildrenGroup, UserType
from account_service.repositories.query import Query
from account_service.services.base_user_service import UserServiceBase
from account_service.services.children_group_service import ChildrenGroupService
from account_service.utils.strings import Strings


class GroupOwnerService(UserServiceBase):
    def __init__(self, repository, institution_repository, children_group_service: ChildrenGroupService, event_bus=None):
        super().__init__(repository, institution_repository, event_bus)
        self.children_group_service = children_group_service

    async def save_children_group(
        self, owner_id: str, request: CreateChildrenGroupRequest
    ) -> Optional[ChildrenGroup]:
        return await self.children_group_service.add(owner_id, request)

    async def get_all_children_groups(self, owner_id: str, query: Optional[Query] = None) -> List[ChildrenGroup]:
        return await self.children_group_service.get_all(owner_id, query)

    async def get_children_group_by_id(
        self, owner_id: str, group_id: str, query: Optional[Query] = None
    ) -> Optional[ChildrenGroup]:
        return await self.children_group_service.get_by_id(owner_id, group_id, query)

    async def update_children_group(
        self, owner_id: str, group_id: str, request: UpdateChildrenGroupRequest
    ) -> Optional[ChildrenGroup]:
        return await self.children_group_service.update(owner_id, group_id, request)

    async def delete_children_group(self, owner_id: str, group_id: str) -> bool:
        return await self.children_group_service.remove(owner_id, group_id)


class EducatorService(GroupOwnerService):
    user_type = UserType.EDUCATOR
    messages = Strings.EDUCATOR


class HealthProfessionalService(GroupOwnerService):
    user_type = UserType.HEALTH_PROFESSIONAL
    messages = Strings.HEALTH_PROFESSIONAL
