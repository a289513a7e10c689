"""
Domain events published after successful writes.

Each event is named `<Entity><Action>Event` and travels on the routing key
`<resource>.<action>`, e.g. `ChildSaveEvent` on `children.save`.
"""

from datetime import datetime
from typing import Any, Dict

from pydantic import BaseModel, Field

from account_service.models.institution_models import Institution
from account_service.models.user_models import User, UserType
from account_service.utils.datetime_helpers import to_iso_string, utc_now

# user type -> (event name prefix, payload key, routing key resource)
USER_EVENT_NAMES = {
    UserType.CHILD.value: ("Child", "child", "children"),
    UserType.EDUCATOR.value: ("Educator", "educator", "educators"),
    UserType.HEALTH_PROFESSIONAL.value: ("HealthProfessional", "health_professional", "healthprofessionals"),
    UserType.FAMILY.value: ("Family", "family", "families"),
    UserType.APPLICATION.value: ("Application", "application", "applications"),
}


class IntegrationEvent(BaseModel):
    event_name: str
    routing_key: str
    entity_key: str
    payload: Dict[str, Any]
    timestamp: datetime = Field(default_factory=utc_now)

    def to_json(self) -> Dict[str, Any]:
        return {
            "event_name": self.event_name,
            "timestamp": to_iso_string(self.timestamp),
            self.entity_key: self.payload,
        }


def _user_event(user: User, action: str) -> IntegrationEvent:
    name, key, resource = USER_EVENT_NAMES[user.type]
    return IntegrationEvent(
        event_name=f"{name}{action.capitalize()}Event",
        routing_key=f"{resource}.{action}",
        entity_key=key,
        payload=user.to_json(),
    )


def user_save_event(user: User) -> IntegrationEvent:
    return _user_event(user, "save")


def user_update_event(user: User) -> IntegrationEvent:
    return _user_event(user, "update")


def user_delete_event(user: User) -> IntegrationEvent:
    return IntegrationEvent(
        event_name="UserDeleteEvent", routing_key="users.delete", entity_key="user", payload=user.to_json()
    )


def institution_delete_event(institution: Institution) -> IntegrationEvent:
    return IntegrationEvent(
        event_name="InstitutionDeleteEvent",
        routing_key="institutions.delete",
        entity_key="institution",
        payload=institution.to_json(),
    )
