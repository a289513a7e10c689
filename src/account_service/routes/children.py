from account_service.routes.user_routes import create_user_router
from account_service.services.child_service import ChildService
from account_service.utils.strings import Strings

router = create_user_router("children", "Children", "child_service", ChildService, Strings.CHILD)
