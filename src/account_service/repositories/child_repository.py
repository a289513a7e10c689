"""Repository for users of type child."""

from account_service.models.user_models import UserType
from account_service.repositories.mappers import child_mapper
from account_service.repositories.user_repository import UserRepository


class ChildRepository(UserRepository):
    user_type = UserType.CHILD
    relations = ("institution",)

    def __init__(self, users, institutions, children_groups):
        super().__init__(users, institutions, children_groups, mapper=child_mapper)
