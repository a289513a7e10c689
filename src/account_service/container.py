"""
Explicit construction of repositories and services.

`Container.from_database()` wires everything against the connected `db_manager`; tests build a
`Container` from fake collections instead.
"""

from typing import Optional

from account_service.database import (
    CHILDREN_GROUPS_COLLECTION,
    INSTITUTIONS_COLLECTION,
    USERS_COLLECTION,
    DatabaseManager,
    db_manager,
)
from account_service.events.event_bus import RedisEventBus
from account_service.repositories import (
    ApplicationRepository,
    ChildRepository,
    ChildrenGroupRepository,
    EducatorRepository,
    FamilyRepository,
    HealthProfessionalRepository,
    InstitutionRepository,
    UserRepository,
)
from account_service.services.application_service import ApplicationService
from account_service.services.child_service import ChildService
from account_service.services.children_group_service import ChildrenGroupService
from account_service.services.educator_service import EducatorService, HealthProfessionalService
from account_service.services.family_service import FamilyService
from account_service.services.institution_service import InstitutionService
from account_service.services.user_service import UserService


class Container:
    def __init__(self, users, institutions, children_groups, event_bus: Optional[RedisEventBus] = None):
        self.event_bus = event_bus if event_bus is not None else RedisEventBus()

        # Repositories
        self.user_repository = UserRepository(users, institutions, children_groups)
        self.child_repository = ChildRepository(users, institutions, children_groups)
        self.family_repository = FamilyRepository(users, institutions, children_groups)
        self.educator_repository = EducatorRepository(users, institutions, children_groups)
        self.health_professional_repository = HealthProfessionalRepository(users, institutions, children_groups)
        self.application_repository = ApplicationRepository(users, institutions, children_groups)
        self.institution_repository = InstitutionRepository(institutions)
        self.children_group_repository = ChildrenGroupRepository(children_groups, users, institutions)

        # Services
        self.child_service = ChildService(self.child_repository, self.institution_repository, self.event_bus)
        self.family_service = FamilyService(
            self.family_repository, self.institution_repository, self.child_repository, self.event_bus
        )
        self.educator_service = EducatorService(
            self.educator_repository,
            self.institution_repository,
            ChildrenGroupService(self.children_group_repository, self.educator_repository, self.child_repository),
            self.event_bus,
        )
        self.health_professional_service = HealthProfessionalService(
            self.health_professional_repository,
            self.institution_repository,
            ChildrenGroupService(
                self.children_group_repository, self.health_professional_repository, self.child_repository
            ),
            self.event_bus,
        )
        self.application_service = ApplicationService(
            self.application_repository, self.institution_repository, self.event_bus
        )
        self.institution_service = InstitutionService(
            self.institution_repository, self.user_repository, self.event_bus
        )
        self.user_service = UserService(self.user_repository, self.event_bus)

    @classmethod
    def from_database(cls, manager: DatabaseManager = db_manager, event_bus: Optional[RedisEventBus] = None):
        return cls(
            manager.get_collection(USERS_COLLECTION),
            manager.get_collection(INSTITUTIONS_COLLECTION),
            manager.get_collection(CHILDREN_GROUPS_COLLECTION),
            event_bus,
        )
