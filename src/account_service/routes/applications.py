from account_service.routes.user_routes import create_user_router
from account_service.services.application_service import ApplicationService
from account_service.utils.strings import Strings

router = create_user_router(
    "applications", "Applications", "application_service", ApplicationService, Strings.APPLICATION
)
