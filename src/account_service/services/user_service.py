"""Operations that apply to a user of any type: password change and removal."""

from typing import Optional

from account_service.events.event_bus import RedisEventBus
from account_service.events.integration_events import user_delete_event
from account_service.managers.logging_manager import get_logger
from account_service.repositories.query import Query
from account_service.repositories.user_repository import UserRepository
from account_service.validators.common import validate_object_id

logger = get_logger(prefix="[UserService]")


class UserService:
    def __init__(self, repository: UserRepository, event_bus: Optional[RedisEventBus] = None):
        self.repository = repository
        self.event_bus = event_bus

    async def change_password(self, user_id: str, old_password: str, new_password: str) -> bool:
        """
        Returns `False` when the user does not exist.

        Raises:
            ValidationException: Invalid id, or `old_password` does not match.
        """
        validate_object_id(user_id)
        changed = await self.repository.change_password(user_id, old_password, new_password)
        if changed:
            logger.info("Password changed for user %s", user_id)
        return changed

    async def remove(self, user_id: str) -> bool:
        validate_object_id(user_id)
        user = await self.repository.find_one(Query(filters={"_id": user_id}, fields={"type": 1}))
        if user is None:
            return False
        deleted = await self.repository.delete(user_id)
        if deleted:
            logger.info("Removed user %s (%s)", user_id, user.type)
            if self.event_bus is not None and self.event_bus.is_connected:
                event = user_delete_event(user)
                await self.event_bus.publish(event.to_json(), event.routing_key)
        return deleted
