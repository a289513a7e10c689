"""
Family accounts and their association with children.

Associating a child that does not exist fails validation; associating one twice, or
disassociating one that is not associated, leaves the family unchanged.
"""

from typing import List, Optional

from account_service.exceptions import ValidationException
from account_service.models.request_models import CreateFamilyRequest, UpdateFamilyRequest
from account_service.models.user_models import Child, Family, UserType
from account_service.repositories.child_repository import ChildRepository
from account_service.repositories.family_repository import FamilyRepository
from account_service.repositories.institution_repository import InstitutionRepository
from account_service.services.base_user_service import UserServiceBase
from account_service.utils.strings import Strings
from account_service.validators.common import validate_object_id


class FamilyService(UserServiceBase):
    user_type = UserType.FAMILY
    messages = Strings.FAMILY
    create_request = CreateFamilyRequest
    update_request = UpdateFamilyRequest

    def __init__(
        self,
        repository: FamilyRepository,
        institution_repository: InstitutionRepository,
        child_repository: ChildRepository,
        event_bus=None,
    ):
        super().__init__(repository, institution_repository, event_bus)
        self.child_repository = child_repository

    async def _check_references(self, item: Family) -> None:
        if not item.children:
            return
        missing = await self.child_repository.exists_by_ids([child.id for child in item.children])
        if missing:
            raise ValidationException(
                Strings.CHILD.CHILDREN_REGISTER_REQUIRED,
                Strings.CHILD.IDS_WITH_PROBLEMS.format(", ".join(missing)),
            )

    async def associate_child(self, family_id: str, child_id: str) -> Optional[Family]:
        validate_object_id(family_id)
        validate_object_id(child_id)
        if not await self.child_repository.check_exist(Child(id=child_id)):
            raise ValidationException(Strings.CHILD.ASSOCIATION_FAILURE)
        family = await self.repository.add_child(family_id, child_id)
        if family is not None:
            self.logger.info("Associated child %s with family %s", child_id, family_id)
        return family

    async def disassociate_child(self, family_id: str, child_id: str) -> Optional[Family]:
        validate_object_id(family_id)
        validate_object_id(child_id)
        family = await self.repository.remove_child(family_id, child_id)
        if family is not None:
            self.logger.info("Disassociated child %s from family %s", child_id, family_id)
        return family

    async def get_all_children(self, family_id: str) -> Optional[List[Child]]:
        family = await self.get_by_id(family_id)
        if family is None:
            return None
        return family.children or []
