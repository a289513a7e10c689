"""Repository for institutions."""

from pymongo.errors import PyMongoError

from account_service.models.institution_models import Institution
from account_service.repositories.base import BaseRepository, store_error
from account_service.repositories.mappers import institution_mapper
from account_service.repositories.translator import to_object_id


class InstitutionRepository(BaseRepository):
    def __init__(self, institutions):
        super().__init__(institutions, institution_mapper)

    async def check_exist(self, item: Institution) -> bool:
        """By id when present, otherwise by name."""
        if item.id is not None:
            condition = {"_id": to_object_id(item.id)}
        elif item.name is not None:
            condition = {"name": item.name}
        else:
            return False
        try:
            return await self.collection.count_documents(condition, limit=1) > 0
        except PyMongoError as e:
            raise store_error(e) from e
