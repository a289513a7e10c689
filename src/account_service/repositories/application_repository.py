"""Repository for users of type application. The institution reference is optional."""

from account_service.models.user_models import UserType
from account_service.repositories.mappers import application_mapper
from account_service.repositories.user_repository import UserRepository


class ApplicationRepository(UserRepository):
    user_type = UserType.APPLICATION
    relations = ("institution",)

    def __init__(self, users, institutions, children_groups):
        super().__init__(users, institutions, children_groups, mapper=application_mapper)

    async def _populate(self, documents, populations, drop_broken):
        return await self._populate_institution(
            documents, populations.get("institution"), drop_broken, required=False
        )
