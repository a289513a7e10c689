from account_service.models.request_models import CreateChildRequest, UpdateChildRequest
from account_service.models.user_models import UserType
from account_service.services.base_user_service import UserServiceBase
from account_service.utils.strings import Strings


class ChildService(UserServiceBase):
    user_type = UserType.CHILD
    messages = Strings.CHILD
    create_request = CreateChildRequest
    update_request = UpdateChildRequest
