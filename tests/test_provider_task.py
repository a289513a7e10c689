"""Tests for the RPC resources and the background service that registers them."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from bson import ObjectId
from redis.exceptions import ConnectionError as RedisConnectionError

from account_service.background.background_service import BackgroundService
from account_service.events.provider_task import ProviderEventBusTask
from conftest import INSTITUTION_A, INSTITUTION_MISSING

RESOURCES = [
    "children.find",
    "families.find",
    "family.children.find",
    "educators.find",
    "educator.children.groups.find",
    "healthprofessionals.find",
    "healthprofessional.children.groups.find",
    "applications.find",
    "institutions.find",
]


@pytest.fixture
def provider(container, event_bus):
    return ProviderEventBusTask(event_bus, container)


# ============================================================================
# Resources
# ============================================================================

def test_every_resource_is_declared(provider):
    assert sorted(provider.resources()) == sorted(RESOURCES)


@pytest.mark.asyncio
async def test_run_registers_resources(provider, event_bus):
    await provider.run()
    registered = [call.args[0] for call in event_bus.provide_resource.call_args_list]
    assert sorted(registered) == sorted(RESOURCES)


@pytest.mark.asyncio
async def test_children_find_keeps_broken_references(provider, nine_children):
    """RPC reads are not populated, so the orphaned child is still returned."""
    result = await provider.resources()["children.find"]("")
    assert len(result) == 9
    child8 = next(child for child in result if child["username"] == "child8")
    assert child8["institution_id"] == str(INSTITUTION_MISSING)
    assert all("password" not in child for child in result)


@pytest.mark.asyncio
async def test_children_find_applies_query_string(provider, nine_children):
    result = await provider.resources()["children.find"]("?gender=female&age=gte:7&age=lte:10")
    assert sorted(child["username"] for child in result) == ["child2", "child6", "child8", "child9"]


@pytest.mark.asyncio
async def test_family_children_find(provider, nine_children, users):
    [family_id] = users.seed(
        {"username": "fam", "type": "family", "institution": INSTITUTION_A, "children": [nine_children[0]]}
    )
    result = await provider.find_family_children(str(family_id))
    assert [child["username"] for child in result] == ["child1"]
    assert await provider.find_family_children(str(ObjectId())) == []


@pytest.mark.asyncio
async def test_educator_groups_find(provider, nine_children, users, children_groups):
    [educator_id] = users.seed({"username": "edu", "type": "educator", "institution": INSTITUTION_A})
    children_groups.seed({"name": "G1", "user_id": educator_id, "children": [nine_children[1]]})
    [group] = await provider.resources()["educator.children.groups.find"](str(educator_id))
    assert group["name"] == "G1"
    assert group["children"][0]["username"] == "child2"


@pytest.mark.asyncio
async def test_institutions_find(provider):
    result = await provider.find_institutions("?name=NUTES")
    assert [institution["name"] for institution in result] == ["NUTES"]


# ============================================================================
# Background service
# ============================================================================

@pytest.mark.asyncio
async def test_start_services_registers_provider(container, event_bus):
    event_bus.connect = AsyncMock()
    service = BackgroundService(container)
    with patch("account_service.background.background_service.settings") as mock_settings:
        mock_settings.EVENT_BUS_ENABLED = True
        assert await service.start_services() is True
    event_bus.connect.assert_awaited_once()
    assert event_bus.provide_resource.call_count == len(RESOURCES)


@pytest.mark.asyncio
async def test_start_services_disabled(container, event_bus):
    event_bus.connect = AsyncMock()
    with patch("account_service.background.background_service.settings") as mock_settings:
        mock_settings.EVENT_BUS_ENABLED = False
        assert await BackgroundService(container).start_services() is False
    event_bus.connect.assert_not_awaited()


@pytest.mark.asyncio
async def test_start_services_with_unreachable_bus(container, event_bus):
    """The API keeps running when Redis cannot be reached."""
    event_bus.connect = AsyncMock(side_effect=RedisConnectionError("connection refused"))
    with patch("account_service.background.background_service.settings") as mock_settings:
        mock_settings.EVENT_BUS_ENABLED = True
        assert await BackgroundService(container).start_services() is False
    event_bus.provide_resource.assert_not_called()


@pytest.mark.asyncio
async def test_stop_services(container, event_bus):
    event_bus.dispose = AsyncMock()
    event_bus.manager = MagicMock(close=AsyncMock())
    await BackgroundService(container).stop_services()
    event_bus.dispose.assert_awaited_once()
    event_bus.manager.close.assert_awaited_once()
