import os
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId

os.environ.setdefault("BCRYPT_ROUNDS", "4")

from account_service.container import Container
from fakes import FakeCollection

INSTITUTION_A = ObjectId("5a62be07d6f33400146c9b61")
INSTITUTION_B = ObjectId("5a62be07de34500146d9c544")
INSTITUTION_MISSING = ObjectId("5a62be07d6f33400146c9b62")


@pytest.fixture
def users():
    return FakeCollection("users", unique_keys=["username", "type"])


@pytest.fixture
def institutions():
    collection = FakeCollection("institutions")
    collection.seed(
        {
            "_id": INSTITUTION_A,
            "type": "Institute of Scientific Research",
            "name": "NUTES",
            "address": "R. Baraunas 351",
            "latitude": -7.2100,
            "longitude": -35.9000,
            "created_at": datetime(2019, 1, 1, tzinfo=timezone.utc),
        },
        {
            "_id": INSTITUTION_B,
            "type": "School",
            "name": "Escola Estadual",
            "address": "R. Baraunas 351",
            "created_at": datetime(2019, 1, 2, tzinfo=timezone.utc),
        },
    )
    return collection


@pytest.fixture
def children_groups():
    return FakeCollection("children_groups")


@pytest.fixture
def event_bus():
    bus = MagicMock()
    bus.is_connected = True
    bus.publish = AsyncMock(return_value=True)
    return bus


@pytest.fixture
def container(users, institutions, children_groups, event_bus):
    return Container(users, institutions, children_groups, event_bus=event_bus)


@pytest.fixture
def nine_children(users):
    """Six children registered now plus three with fixed January 2019 creation dates."""
    now = datetime.now(timezone.utc)
    specs = [
        ("child1", INSTITUTION_A, "male", 8, now),
        ("child2", INSTITUTION_A, "female", 9, now),
        ("child3", INSTITUTION_A, "male", 10, now),
        ("child4", INSTITUTION_B, "female", 6, now),
        ("child5", INSTITUTION_B, "male", 7, now),
        ("child6", INSTITUTION_B, "female", 7, now),
        ("child7", INSTITUTION_A, "male", 7, datetime(2019, 1, 20, tzinfo=timezone.utc)),
        ("child8", INSTITUTION_MISSING, "female", 7, datetime(2019, 1, 30, tzinfo=timezone.utc)),
        ("child9", INSTITUTION_A, "female", 7, datetime(2019, 1, 30, tzinfo=timezone.utc)),
    ]
    return users.seed(
        *[
            {
                "username": username,
                "password": "hash",
                "type": "child",
                "institution": institution,
                "gender": gender,
                "age": age,
                "created_at": created_at,
            }
            for username, institution, gender, age, created_at in specs
        ]
    )
