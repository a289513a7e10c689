"""
# Provider Event Bus Task

Exposes the read side of the service as RPC resources on the event bus.

| Resource | Params | Result |
|----------|--------|--------|
| `children.find` | query string | list of children |
| `families.find` | query string | list of families |
| `family.children.find` | family id | children of the family (`[]` for an unknown family) |
| `educators.find` | query string | list of educators |
| `educator.children.groups.find` | educator id | groups of the educator |
| `healthprofessionals.find` | query string | list of health professionals |
| `healthprofessional.children.groups.find` | health professional id | groups of the professional |
| `applications.find` | query string | list of applications |
| `institutions.find` | query string | list of institutions |

User lists are read without population, so records whose institution no longer exists are
still returned, with `institution_id` as stored.
"""

from typing import Any, Dict, List

from account_service.events.event_bus import RedisEventBus
from account_service.managers.logging_manager import get_logger
from account_service.repositories.query import parse_query_string

logger = get_logger(prefix="[ProviderEventBusTask]")


def _to_json(items: List[Any]) -> List[Dict[str, Any]]:
    return [item.to_json() for item in items]


class ProviderEventBusTask:
    def __init__(self, event_bus: RedisEventBus, container):
        self.event_bus = event_bus
        self.container = container

    async def run(self) -> None:
        """Register every resource. The bus must already be connected."""
        for resource, handler in self.resources().items():
            self.event_bus.provide_resource(resource, handler)
        logger.info("Providing %d RPC resources", len(self.resources()))

    async def stop(self) -> None:
        await self.event_bus.dispose()

    def resources(self):
        return {
            "children.find": self._find_users(self.container.child_service),
            "families.find": self._find_users(self.container.family_service),
            "family.children.find": self.find_family_children,
            "educators.find": self._find_users(self.container.educator_service),
            "educator.children.groups.find": self._find_groups(self.container.educator_service),
            "healthprofessionals.find": self._find_users(self.container.health_professional_service),
            "healthprofessional.children.groups.find": self._find_groups(
                self.container.health_professional_service
            ),
            "applications.find": self._find_users(self.container.application_service),
            "institutions.find": self.find_institutions,
        }

    @staticmethod
    def _find_users(service):
        async def handler(query_string):
            users = await service.get_all(parse_query_string(query_string or ""), populate=False)
            return _to_json(users)

        return handler

    @staticmethod
    def _find_groups(service):
        async def handler(owner_id):
            return _to_json(await service.get_all_children_groups(owner_id))

        return handler

    async def find_family_children(self, family_id) -> List[Dict[str, Any]]:
        children = await self.container.family_service.get_all_children(family_id)
        return _to_json(children or [])

    async def find_institutions(self, query_string) -> List[Dict[str, Any]]:
        institutions = await self.container.institution_service.get_all(parse_query_string(query_string or ""))
        return _to_json(institutions)
