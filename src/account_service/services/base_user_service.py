"""
# User Service Base

Shared create/read/update/delete flow for every user subtype.

## Create

1. The payload arrives as a validated `create_request` model and is mapped to the domain model.
2. The referenced institution must exist.
3. Subtype reference checks (e.g. a family's children must exist).
4. `check_exist` on the username within the type → `ConflictException`.
5. Persist (the repository hashes the password).
6. Publish `<Type>SaveEvent`.

## Update

Partial: only fields present on the `update_request` model are written. A password on the
payload is rejected; it changes only through `UserService.change_password()`.
"""

from typing import Any, List, Optional, Type

from pydantic import BaseModel

from account_service.events.event_bus import RedisEventBus
from account_service.events.integration_events import (
    IntegrationEvent,
    user_delete_event,
    user_save_event,
    user_update_event,
)
from account_service.exceptions import ConflictException, ValidationException
from account_service.managers.logging_manager import get_logger
from account_service.models.institution_models import Institution
from account_service.models.request_models import CreateUserRequest, UpdateUserRequest
from account_service.models.user_models import User, UserType
from account_service.repositories.institution_repository import InstitutionRepository
from account_service.repositories.query import Query
from account_service.repositories.user_repository import UserRepository
from account_service.utils.strings import Strings
from account_service.validators.common import validate_object_id


class UserServiceBase:
    user_type: UserType
    messages: Any
    create_request: Type[BaseModel] = CreateUserRequest
    update_request: Type[BaseModel] = UpdateUserRequest

    def __init__(
        self,
        repository: UserRepository,
        institution_repository: InstitutionRepository,
        event_bus: Optional[RedisEventBus] = None,
    ):
        self.repository = repository
        self.institution_repository = institution_repository
        self.event_bus = event_bus
        self.logger = get_logger(prefix=f"[{type(self).__name__}]")

    def _to_item(self, request: BaseModel) -> User:
        return self.repository.mapper.from_json(request.model_dump(exclude_unset=True, exclude_none=True))

    async def add(self, request: BaseModel) -> User:
        item = self._to_item(request)
        await self._check_institution(item)
        await self._check_references(item)
        if await self.repository.check_exist(item):
            raise ConflictException(self.messages.ALREADY_REGISTERED)

        item.type = self.user_type.value
        created = await self.repository.create(item)
        self.logger.info("Created %s %s", self.user_type.value, created.id)
        await self.publish(user_save_event(created))
        return created

    async def get_all(self, query: Query, populate: bool = True) -> List[User]:
        return await self.repository.find(query, populate=populate)

    async def get_by_id(self, item_id: str, query: Optional[Query] = None) -> Optional[User]:
        validate_object_id(item_id)
        query = query or Query()
        query.filters = {"_id": item_id}
        return await self.repository.find_one(query)

    async def update(self, item_id: str, request: BaseModel) -> Optional[User]:
        validate_object_id(item_id)
        if "password" in request.model_fields_set:
            raise ValidationException(
                Strings.ERROR_MESSAGE.PASSWORD_NOT_UPDATABLE,
                Strings.ERROR_MESSAGE.PASSWORD_NOT_UPDATABLE_DESC.format(item_id),
            )
        item = self._to_item(request)
        item.id = item_id
        await self._check_institution(item)
        await self._check_references(item)
        if item.username is not None:
            existing = await self.repository.find_one(Query(filters={"username": item.username}))
            if existing is not None and existing.id != item.id:
                raise ConflictException(self.messages.ALREADY_REGISTERED)

        updated = await self.repository.update(item)
        if updated is None:
            return None
        self.logger.info("Updated %s %s", self.user_type.value, updated.id)
        await self.publish(user_update_event(updated))
        return updated

    async def remove(self, item_id: str) -> bool:
        validate_object_id(item_id)
        deleted = await self.repository.delete(item_id)
        if deleted:
            self.logger.info("Removed %s %s", self.user_type.value, item_id)
            await self.publish(user_delete_event(User(id=item_id, type=self.user_type.value)))
        return deleted

    async def _check_institution(self, item: User) -> None:
        if item.institution is None or item.institution.id is None:
            return
        exists = await self.institution_repository.check_exist(Institution(id=item.institution.id))
        if not exists:
            raise ValidationException(
                Strings.INSTITUTION.REGISTER_REQUIRED, Strings.INSTITUTION.ALERT_REGISTER_REQUIRED
            )

    async def _check_references(self, item: User) -> None:
        pass

    async def publish(self, event: IntegrationEvent) -> bool:
        if self.event_bus is None or not self.event_bus.is_connected:
            self.logger.debug("Event bus unavailable, %s not published", event.event_name)
            return False
        return await self.event_bus.publish(event.to_json(), event.routing_key)
