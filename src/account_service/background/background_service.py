"""
# Background Service

Starts the message-bus side of the service once the HTTP app is up, and stops it on
shutdown. A bus that cannot be reached is logged and skipped: the REST API keeps working
and events are simply not published.
"""

from redis.exceptions import RedisError

from account_service.config import settings
from account_service.events.provider_task import ProviderEventBusTask
from account_service.managers.logging_manager import get_logger

logger = get_logger(prefix="[BackgroundService]")


class BackgroundService:
    def __init__(self, container):
        self.container = container
        self.provider_task = ProviderEventBusTask(container.event_bus, container)

    async def start_services(self) -> bool:
        if not settings.EVENT_BUS_ENABLED:
            logger.info("Event bus disabled; background services not started")
            return False
        try:
            await self.container.event_bus.connect()
        except (RedisError, OSError) as e:
            logger.error("Could not connect to the event bus: %s", e)
            return False
        await self.provider_task.run()
        logger.info("Background services started")
        return True

    async def stop_services(self) -> None:
        await self.provider_task.stop()
        await self.container.event_bus.manager.close()
        logger.info("Background services stopped")
