from account_service.models.institution_models import Institution
from account_service.models.request_models import (
    CreateApplicationRequest,
    CreateChildRequest,
    CreateChildrenGroupRequest,
    CreateFamilyRequest,
    CreateInstitutionRequest,
    CreateUserRequest,
    PasswordUpdateRequest,
    UpdateApplicationRequest,
    UpdateChildRequest,
    UpdateChildrenGroupRequest,
    UpdateFamilyRequest,
    UpdateInstitutionRequest,
    UpdateUserRequest,
)
from account_service.models.user_models import (
    Application,
    Child,
    ChildrenGroup,
    Educator,
    Family,
    Gender,
    HealthProfessional,
    User,
    UserType,
)

__all__ = [
    "Application",
    "Child",
    "ChildrenGroup",
    "CreateApplicationRequest",
    "CreateChildRequest",
    "CreateChildrenGroupRequest",
    "CreateFamilyRequest",
    "CreateInstitutionRequest",
    "CreateUserRequest",
    "Educator",
    "Family",
    "Gender",
    "HealthProfessional",
    "Institution",
    "PasswordUpdateRequest",
    "UpdateApplicationRequest",
    "UpdateChildRequest",
    "UpdateChildrenGroupRequest",
    "UpdateFamilyRequest",
    "UpdateInstitutionRequest",
    "UpdateUserRequest",
    "User",
    "UserType",
]
