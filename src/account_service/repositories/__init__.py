"""
# Repositories Package

Persistence adapters for the Account Service. Each repository wraps one Motor collection and
an explicit mapper; services never touch Motor directly.

- **`query`**: the `Query` object and the query-string parser.
- **`translator`**: `Query` → Motor arguments plus population descriptors.
- **`base`**: generic CRUD and population helpers.
- **`user_repository`** and subtype repositories: user persistence scoped by `type`.
- **`institution_repository`**, **`children_group_repository`**.
"""

from account_service.repositories.application_repository import ApplicationRepository
from account_service.repositories.child_repository import ChildRepository
from account_service.repositories.children_group_repository import ChildrenGroupRepository
from account_service.repositories.educator_repository import EducatorRepository, HealthProfessionalRepository
from account_service.repositories.family_repository import FamilyRepository
from account_service.repositories.institution_repository import InstitutionRepository
from account_service.repositories.query import Query, parse_query_string
from account_service.repositories.user_repository import UserRepository

__all__ = [
    "ApplicationRepository",
    "ChildRepository",
    "ChildrenGroupRepository",
    "EducatorRepository",
    "FamilyRepository",
    "HealthProfessionalRepository",
    "InstitutionRepository",
    "Query",
    "UserRepository",
    "parse_query_string",
]
