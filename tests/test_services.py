"""
Service tests.

Services run against in-memory collections; the event bus is a mock so that published
events can be asserted.
"""

import pytest
from bson import ObjectId

from account_service.exceptions import ConflictException, ValidationException
from account_service.models.request_models import (
    CreateApplicationRequest,
    CreateChildRequest,
    CreateChildrenGroupRequest,
    CreateFamilyRequest,
    CreateInstitutionRequest,
    CreateUserRequest,
    UpdateChildRequest,
    UpdateChildrenGroupRequest,
)
from account_service.repositories.query import Query, parse_query_string
from conftest import INSTITUTION_A, INSTITUTION_B, INSTITUTION_MISSING


def _child_json(username="BR0001", institution=INSTITUTION_A):
    return {
        "username": username,
        "password": "mysecret",
        "institution_id": str(institution),
        "gender": "male",
        "age": 11,
    }


def _published(event_bus):
    return [(call.args[0]["event_name"], call.args[1]) for call in event_bus.publish.await_args_list]


# ============================================================================
# Users
# ============================================================================

@pytest.mark.asyncio
async def test_add_child_publishes_save_event(container, event_bus):
    """A new child is stored and announced on `children.save`."""
    child = await container.child_service.add(CreateChildRequest(**_child_json()))

    assert child.id is not None
    assert child.type == "child"
    assert child.institution.name == "NUTES"
    [(payload, routing_key)] = [call.args for call in event_bus.publish.await_args_list]
    assert routing_key == "children.save"
    assert payload["event_name"] == "ChildSaveEvent"
    assert payload["child"]["username"] == "BR0001"
    assert "password" not in payload["child"]


@pytest.mark.asyncio
async def test_add_child_twice_conflicts(container):
    """Usernames are unique per user type."""
    await container.child_service.add(CreateChildRequest(**_child_json()))
    with pytest.raises(ConflictException) as exc_info:
        await container.child_service.add(CreateChildRequest(**_child_json()))
    assert exc_info.value.message == "Child is already registered!"


@pytest.mark.asyncio
async def test_same_username_allowed_for_other_type(container):
    """A family may reuse a child's username."""
    child = await container.child_service.add(CreateChildRequest(**_child_json()))
    family = await container.family_service.add(
        CreateFamilyRequest.model_validate(
            {"username": "BR0001", "password": "x", "institution_id": str(INSTITUTION_A), "children": [child.id]}
        )
    )
    assert family.username == "BR0001"


@pytest.mark.asyncio
async def test_add_with_unregistered_institution(container, event_bus):
    """The institution must exist before users can reference it."""
    with pytest.raises(ValidationException) as exc_info:
        await container.child_service.add(CreateChildRequest(**_child_json(institution=INSTITUTION_MISSING)))
    assert exc_info.value.message == "The institution provided does not have a registration."
    event_bus.publish.assert_not_awaited()


@pytest.mark.asyncio
async def test_add_without_connected_bus_still_saves(container, event_bus):
    """Publishing is skipped while the bus is down."""
    event_bus.is_connected = False
    child = await container.child_service.add(CreateChildRequest(**_child_json()))
    assert child.id is not None
    event_bus.publish.assert_not_awaited()


@pytest.mark.asyncio
async def test_update_child_partially(container, event_bus):
    """Only the provided fields change and an update event is published."""
    child = await container.child_service.add(CreateChildRequest(**_child_json()))
    updated = await container.child_service.update(child.id, UpdateChildRequest(age=12))

    assert updated.age == 12
    assert updated.gender == "male"
    assert ("ChildUpdateEvent", "children.update") in _published(event_bus)


@pytest.mark.asyncio
async def test_update_to_taken_username_conflicts(container):
    """Renaming onto another user's username is rejected."""
    await container.child_service.add(CreateChildRequest(**_child_json("BR0001")))
    second = await container.child_service.add(CreateChildRequest(**_child_json("BR0002")))
    with pytest.raises(ConflictException):
        await container.child_service.update(second.id, UpdateChildRequest(username="BR0001"))
    # keeping its own username is fine
    same = await container.child_service.update(second.id, UpdateChildRequest(username="BR0002"))
    assert same.username == "BR0002"


@pytest.mark.asyncio
async def test_update_missing_child_returns_none(container, event_bus):
    """Nothing is published when no record matched."""
    result = await container.child_service.update(str(ObjectId()), UpdateChildRequest(age=3))
    assert result is None
    event_bus.publish.assert_not_awaited()


@pytest.mark.asyncio
async def test_update_rejects_password(container, event_bus):
    """Passwords change only through the password route."""
    child = await container.child_service.add(CreateChildRequest(**_child_json()))
    event_bus.publish.reset_mock()
    with pytest.raises(ValidationException) as exc_info:
        await container.child_service.update(child.id, UpdateChildRequest(password="other"))
    assert exc_info.value.message == "This parameter could not be updated."
    assert f"/v1/users/{child.id}/password" in exc_info.value.description
    event_bus.publish.assert_not_awaited()


@pytest.mark.asyncio
async def test_get_by_id_validates_id(container):
    with pytest.raises(ValidationException):
        await container.child_service.get_by_id("123")


@pytest.mark.asyncio
async def test_remove_child_publishes_user_delete_event(container, event_bus):
    """Removal is announced as a generic user deletion."""
    child = await container.child_service.add(CreateChildRequest(**_child_json()))
    assert await container.child_service.remove(child.id) is True
    assert _published(event_bus)[-1] == ("UserDeleteEvent", "users.delete")
    assert await container.child_service.remove(child.id) is False


@pytest.mark.asyncio
async def test_application_without_institution(container):
    """Applications are created without an institution."""
    application = await container.application_service.add(
        CreateApplicationRequest.model_validate({"username": "app", "password": "x", "application_name": "Tracker"})
    )
    assert application.application_name == "Tracker"
    assert application.institution is None


# ============================================================================
# Families
# ============================================================================

@pytest.mark.asyncio
async def test_family_with_unregistered_children(container):
    """Every child listed on a new family must exist."""
    missing = str(ObjectId())
    with pytest.raises(ValidationException) as exc_info:
        await container.family_service.add(
            CreateFamilyRequest.model_validate(
                {"username": "fam", "password": "x", "institution_id": str(INSTITUTION_A), "children": [missing]}
            )
        )
    assert exc_info.value.message == "It is necessary for children to be registered before proceeding."
    assert missing in exc_info.value.description


@pytest.mark.asyncio
async def test_family_child_association(container, nine_children):
    """Children are associated once and can be disassociated."""
    family = await container.family_service.add(
        CreateFamilyRequest.model_validate(
            {
                "username": "fam",
                "password": "x",
                "institution_id": str(INSTITUTION_A),
                "children": [str(nine_children[0])],
            }
        )
    )
    family = await container.family_service.associate_child(family.id, str(nine_children[1]))
    family = await container.family_service.associate_child(family.id, str(nine_children[1]))
    assert [child.username for child in family.children] == ["child1", "child2"]

    children = await container.family_service.get_all_children(family.id)
    assert [child.username for child in children] == ["child1", "child2"]

    family = await container.family_service.disassociate_child(family.id, str(nine_children[0]))
    assert [child.username for child in family.children] == ["child2"]


@pytest.mark.asyncio
async def test_associate_unknown_child(container, users):
    [family_id] = users.seed({"username": "fam", "type": "family", "institution": INSTITUTION_A, "children": []})
    with pytest.raises(ValidationException) as exc_info:
        await container.family_service.associate_child(str(family_id), str(ObjectId()))
    assert exc_info.value.message == (
        "The association could not be performed because the child does not have a record."
    )


@pytest.mark.asyncio
async def test_children_of_unknown_family(container):
    assert await container.family_service.get_all_children(str(ObjectId())) is None


# ============================================================================
# Children groups
# ============================================================================

async def _educator(container):
    return await container.educator_service.add(
        CreateUserRequest.model_validate({"username": "edu", "password": "x", "institution_id": str(INSTITUTION_B)})
    )


@pytest.mark.asyncio
async def test_children_group_lifecycle(container, nine_children, children_groups):
    """Groups are created, listed, renamed and removed through their owner."""
    educator = await _educator(container)
    service = container.educator_service

    group = await service.save_children_group(
        educator.id,
        CreateChildrenGroupRequest.model_validate({"name": "G1", "school_class": "3A", "children": [str(nine_children[0])]}),
    )
    assert group.children[0].username == "child1"

    owner = await service.get_by_id(educator.id)
    assert [g.name for g in owner.children_groups] == ["G1"]

    groups = await service.get_all_children_groups(educator.id, parse_query_string(""))
    assert [g.id for g in groups] == [group.id]

    renamed = await service.update_children_group(
        educator.id, group.id, UpdateChildrenGroupRequest(name="G2")
    )
    assert renamed.name == "G2"

    assert await service.delete_children_group(educator.id, group.id) is True
    assert children_groups.documents == []
    owner = await service.get_by_id(educator.id)
    assert owner.children_groups == []


@pytest.mark.asyncio
async def test_children_group_duplicate_name_conflicts(container, nine_children):
    """Group names are unique per owner."""
    educator = await _educator(container)
    body = {"name": "G1", "children": [str(nine_children[0])]}
    await container.educator_service.save_children_group(educator.id, CreateChildrenGroupRequest.model_validate(body))
    with pytest.raises(ConflictException):
        await container.educator_service.save_children_group(educator.id, CreateChildrenGroupRequest.model_validate(body))


@pytest.mark.asyncio
async def test_children_group_for_unknown_owner(container, nine_children):
    """An unknown owner yields no group."""
    group = CreateChildrenGroupRequest.model_validate({"name": "G1", "children": [str(nine_children[0])]})
    assert await container.educator_service.save_children_group(str(ObjectId()), group) is None


@pytest.mark.asyncio
async def test_children_group_of_other_owner_is_hidden(container, nine_children):
    """A group cannot be read through another owner."""
    educator = await _educator(container)
    group = await container.educator_service.save_children_group(
        educator.id, CreateChildrenGroupRequest.model_validate({"name": "G1", "children": [str(nine_children[0])]})
    )
    other = str(ObjectId())
    assert await container.educator_service.get_children_group_by_id(other, group.id) is None
    assert await container.educator_service.delete_children_group(other, group.id) is False


@pytest.mark.asyncio
async def test_health_professional_groups_are_separate(container, nine_children):
    """A health professional id is not an educator."""
    professional = await container.health_professional_service.add(
        CreateUserRequest.model_validate({"username": "hp", "password": "x", "institution_id": str(INSTITUTION_A)})
    )
    assert professional.type == "health_professional"
    group = CreateChildrenGroupRequest.model_validate({"name": "G1", "children": [str(nine_children[0])]})
    assert await container.educator_service.save_children_group(professional.id, group) is None


# ============================================================================
# Institutions and generic users
# ============================================================================

@pytest.mark.asyncio
async def test_add_institution_conflicts_by_name(container):
    with pytest.raises(ConflictException):
        await container.institution_service.add(CreateInstitutionRequest(type="School", name="NUTES"))
    created = await container.institution_service.add(
        CreateInstitutionRequest.model_validate({"type": "School", "name": "New School", "latitude": 1.5})
    )
    assert created.latitude == 1.5


@pytest.mark.asyncio
async def test_remove_institution_disassociates_users(container, nine_children, users, event_bus):
    """Users keep existing without an institution and an event is published."""
    assert await container.institution_service.remove(str(INSTITUTION_B)) is True
    assert users.get(nine_children[3])["institution"] is None
    assert _published(event_bus) == [("InstitutionDeleteEvent", "institutions.delete")]


@pytest.mark.asyncio
async def test_users_of_removed_institution_are_not_listed(container, nine_children, users):
    """Children of a removed institution drop out of the populated listing."""
    before = await container.child_repository.find(Query())
    affected = {str(child_id) for child_id in nine_children[3:6]}
    assert affected <= {child.id for child in before}

    await container.institution_service.remove(str(INSTITUTION_B))

    after = await container.child_repository.find(Query())
    assert affected.isdisjoint({child.id for child in after})
    assert {"child1", "child2", "child3"} <= {child.username for child in after}


@pytest.mark.asyncio
async def test_remove_unknown_institution(container, event_bus):
    assert await container.institution_service.remove(str(ObjectId())) is False
    event_bus.publish.assert_not_awaited()


@pytest.mark.asyncio
async def test_change_password(container):
    """The generic user service checks the old password."""
    child = await container.child_service.add(CreateChildRequest(**_child_json()))
    with pytest.raises(ValidationException) as exc_info:
        await container.user_service.change_password(child.id, "wrong", "newsecret")
    assert exc_info.value.message == "Password does not match!"
    assert await container.user_service.change_password(child.id, "mysecret", "newsecret") is True


@pytest.mark.asyncio
async def test_user_service_remove_publishes_typed_delete(container, nine_children, event_bus):
    """Any user can be removed by id regardless of type."""
    assert await container.user_service.remove(str(nine_children[0])) is True
    [(payload, routing_key)] = [call.args for call in event_bus.publish.await_args_list]
    assert routing_key == "users.delete"
    assert payload["user"] == {"id": str(nine_children[0]), "type": "child"}
    assert await container.user_service.remove(str(nine_children[0])) is False
