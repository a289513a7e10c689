from account_service.models.request_models import CreateApplicationRequest, UpdateApplicationRequest
from account_service.models.user_models import UserType
from account_service.services.base_user_service import UserServiceBase
from account_service.utils.strings import Strings


class ApplicationService(UserServiceBase):
    """Applications may omit the institution; when one is given it must exist."""

    user_type = UserType.APPLICATION
    messages = Strings.APPLICATION
    create_request = CreateApplicationRequest
    update_request = UpdateApplicationRequest
