"""
Institutions.

Deleting an institution also clears the reference on every user that pointed to it. The two
writes are independent: when the second fails the error is raised, and the institution stays
deleted.
"""

from typing import List, Optional

from account_service.events.event_bus import RedisEventBus
from account_service.events.integration_events import institution_delete_event
from account_service.exceptions import ConflictException
from account_service.managers.logging_manager import get_logger
from account_service.models.institution_models import Institution
from account_service.models.request_models import CreateInstitutionRequest, UpdateInstitutionRequest
from account_service.repositories.institution_repository import InstitutionRepository
from account_service.repositories.query import Query
from account_service.repositories.user_repository import UserRepository
from account_service.utils.strings import Strings
from account_service.validators.common import validate_object_id

logger = get_logger(prefix="[InstitutionService]")


class InstitutionService:
    def __init__(
        self,
        repository: InstitutionRepository,
        user_repository: UserRepository,
        event_bus: Optional[RedisEventBus] = None,
    ):
        self.repository = repository
        self.user_repository = user_repository
        self.event_bus = event_bus

    def _to_item(self, request) -> Institution:
        return self.repository.mapper.from_json(request.model_dump(exclude_unset=True, exclude_none=True))

    async def add(self, request: CreateInstitutionRequest) -> Institution:
        institution = self._to_item(request)
        if await self.repository.check_exist(institution):
            raise ConflictException(Strings.INSTITUTION.ALREADY_REGISTERED)
        created = await self.repository.create(institution)
        logger.info("Created institution %s", created.id)
        return created

    async def get_all(self, query: Query) -> List[Institution]:
        return await self.repository.find(query)

    async def get_by_id(self, institution_id: str, query: Optional[Query] = None) -> Optional[Institution]:
        validate_object_id(institution_id)
        query = query or Query()
        query.filters = {"_id": institution_id}
        return await self.repository.find_one(query)

    async def update(self, institution_id: str, request: UpdateInstitutionRequest) -> Optional[Institution]:
        validate_object_id(institution_id)
        institution = self._to_item(request)
        institution.id = institution_id
        if institution.name is not None:
            existing = await self.repository.find_one(Query(filters={"name": institution.name}))
            if existing is not None and existing.id != institution.id:
                raise ConflictException(Strings.INSTITUTION.ALREADY_REGISTERED)
        return await self.repository.update(institution)

    async def remove(self, institution_id: str) -> bool:
        validate_object_id(institution_id)
        deleted = await self.repository.delete(institution_id)
        await self.user_repository.disassociate_institution(institution_id)
        if deleted:
            logger.info("Removed institution %s", institution_id)
            if self.event_bus is not None and self.event_bus.is_connected:
                event = institution_delete_event(Institution(id=institution_id))
                await self.event_bus.publish(event.to_json(), event.routing_key)
        return deleted
