"""
Repository tests against in-memory collections.

Covers query translation end to end, population of references (including orphaned ones),
partial updates, error translation and the delete cascades.
"""

import threading
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import bcrypt
import pytest
from bson import ObjectId
from pymongo.errors import OperationFailure, PyMongoError

from account_service.exceptions import ConflictException, RepositoryException, ValidationException
from account_service.models.institution_models import Institution
from account_service.models.user_models import Child, ChildrenGroup, User
from account_service.repositories.child_repository import ChildRepository
from account_service.repositories.query import Query, parse_query_string
from conftest import INSTITUTION_A, INSTITUTION_B, INSTITUTION_MISSING


def _new_child(username="ana", password="mysecret", institution=INSTITUTION_A, gender="female", age=8):
    return Child.model_construct(
        username=username,
        password=password,
        institution=Institution.model_construct(id=str(institution)),
        gender=gender,
        age=age,
    )


def _usernames(items):
    return sorted(item.username for item in items)


# ============================================================================
# Find and query translation
# ============================================================================

@pytest.mark.asyncio
async def test_find_drops_child_with_missing_institution(container, nine_children):
    """A populated read skips the child whose institution no longer exists."""
    children = await container.child_repository.find(parse_query_string(""))
    assert len(children) == 8
    assert "child8" not in _usernames(children)


@pytest.mark.asyncio
async def test_find_without_population_keeps_every_record(container, nine_children):
    """Unpopulated reads return stored ids and filter nothing."""
    children = await container.child_repository.find(parse_query_string(""), populate=False)
    assert len(children) == 9
    child8 = next(child for child in children if child.username == "child8")
    assert child8.institution.id == str(INSTITUTION_MISSING)


@pytest.mark.asyncio
async def test_find_with_comparator(container, nine_children):
    """`age=lt:9` keeps children younger than nine."""
    children = await container.child_repository.find(parse_query_string("?age=lt:9"))
    assert _usernames(children) == ["child1", "child4", "child5", "child6", "child7", "child9"]


@pytest.mark.asyncio
async def test_find_with_combined_filters(container, nine_children):
    """Equality and a numeric range combine into one filter."""
    query = parse_query_string("?gender=female&age=gte:7&age=lte:10")
    populated = await container.child_repository.find(query)
    unpopulated = await container.child_repository.find(query, populate=False)
    assert _usernames(populated) == ["child2", "child6", "child9"]
    assert _usernames(unpopulated) == ["child2", "child6", "child8", "child9"]


@pytest.mark.asyncio
async def test_find_with_date_range(container, nine_children):
    """`start_at` plus `period` selects by creation date."""
    children = await container.child_repository.find(
        parse_query_string("?start_at=2019-01-20T00:00:00.000Z&period=1m")
    )
    assert _usernames(children) == ["child7", "child9"]


@pytest.mark.asyncio
async def test_find_filters_on_related_fields(container, nine_children):
    """`institution.name` is applied to the institution population, not to the user."""
    children = await container.child_repository.find(parse_query_string("?institution.name=NUTES"))
    assert _usernames(children) == ["child1", "child2", "child3", "child7", "child9"]
    assert all(child.institution.name == "NUTES" for child in children)


@pytest.mark.asyncio
async def test_find_sorts_and_paginates(container, nine_children):
    """Sort order and page window are honoured."""
    first = await container.child_repository.find(parse_query_string("?sort=username&limit=3&page=1"))
    second = await container.child_repository.find(parse_query_string("?sort=username&limit=3&page=2"))
    assert [child.username for child in first] == ["child1", "child2", "child3"]
    assert [child.username for child in second] == ["child4", "child5", "child6"]


@pytest.mark.asyncio
async def test_find_default_order_is_newest_first(container, nine_children):
    """Without `sort`, records come back by `created_at` descending."""
    children = await container.child_repository.find(parse_query_string(""))
    assert children[-1].username == "child7"


@pytest.mark.asyncio
async def test_find_with_projection_keeps_records(container, nine_children):
    """Projecting out the institution does not drop records."""
    children = await container.child_repository.find(parse_query_string("?fields=username"))
    assert len(children) == 9
    assert all(child.age is None for child in children)


@pytest.mark.asyncio
async def test_find_is_scoped_to_user_type(container, nine_children, users):
    """Users of another type never leak into a subtype repository."""
    users.seed({"username": "family1", "type": "family", "institution": INSTITUTION_A, "children": []})
    children = await container.child_repository.find(parse_query_string(""), populate=False)
    assert "family1" not in _usernames(children)
    assert await container.child_repository.count() == 9
    assert await container.family_repository.count() == 1


@pytest.mark.asyncio
async def test_find_one_populates_institution(container, nine_children):
    """A single read joins the institution document."""
    child = await container.child_repository.find_one(Query(filters={"_id": str(nine_children[0])}))
    assert child.username == "child1"
    assert child.institution.name == "NUTES"
    assert child.institution.type == "Institute of Scientific Research"


@pytest.mark.asyncio
async def test_find_one_keeps_broken_reference_as_id(container, nine_children):
    """A single read does not drop the record; the reference stays an id."""
    child = await container.child_repository.find_one(Query(filters={"_id": str(nine_children[7])}))
    assert child.username == "child8"
    assert child.institution.id == str(INSTITUTION_MISSING)
    assert child.institution.name is None


@pytest.mark.asyncio
async def test_find_one_unknown_id_returns_none(container, nine_children):
    """Unknown ids resolve to nothing."""
    assert await container.child_repository.find_one(Query(filters={"_id": str(ObjectId())})) is None


# ============================================================================
# Create, update, delete
# ============================================================================

@pytest.mark.asyncio
async def test_create_hashes_password_and_sets_type(container, users):
    """The stored password is a bcrypt hash and the type is forced."""
    child = await container.child_repository.create(_new_child())
    stored = users.get(ObjectId(child.id))
    assert stored["type"] == "child"
    assert stored["password"].startswith("$2")
    assert stored["password"] != "mysecret"
    assert isinstance(stored["created_at"], datetime)
    assert child.institution.name == "NUTES"
    assert "password" not in child.to_json()


@pytest.mark.asyncio
async def test_create_duplicate_username_raises_conflict(container):
    """The unique username index surfaces as a ConflictException."""
    await container.child_repository.create(_new_child())
    with pytest.raises(ConflictException):
        await container.child_repository.create(_new_child())


@pytest.mark.asyncio
async def test_update_sets_only_present_fields(container, nine_children):
    """A partial update leaves untouched fields alone."""
    child = await container.child_repository.update(Child.model_construct(id=str(nine_children[0]), age=11))
    assert child.age == 11
    assert child.gender == "male"
    assert child.username == "child1"
    assert child.institution.name == "NUTES"


@pytest.mark.asyncio
async def test_update_moves_child_to_other_institution(container, nine_children, users):
    """Institution references are stored as ObjectId."""
    await container.child_repository.update(
        Child.model_construct(id=str(nine_children[0]), institution=Institution.model_construct(id=str(INSTITUTION_B)))
    )
    assert users.get(nine_children[0])["institution"] == INSTITUTION_B


@pytest.mark.asyncio
async def test_update_unknown_id_returns_none(container, nine_children):
    """Updating a missing record is not an error."""
    assert await container.child_repository.update(Child.model_construct(id=str(ObjectId()), age=3)) is None


@pytest.mark.asyncio
async def test_delete_unknown_id_returns_false(container, nine_children):
    """Deleting a missing record is not an error."""
    assert await container.child_repository.delete(str(ObjectId())) is False
    assert await container.child_repository.delete("invalid") is False


@pytest.mark.asyncio
async def test_delete_respects_user_type(container, nine_children, users):
    """A family repository cannot delete a child."""
    assert await container.family_repository.delete(str(nine_children[0])) is False
    assert users.get(nine_children[0]) is not None


@pytest.mark.asyncio
async def test_delete_child_is_pulled_from_families_and_groups(container, nine_children, users, children_groups):
    """Deleting a child removes it from every family and children group."""
    child_id = nine_children[0]
    [family_id] = users.seed(
        {"username": "fam", "type": "family", "institution": INSTITUTION_A, "children": [child_id, nine_children[1]]}
    )
    [group_id] = children_groups.seed({"name": "G1", "user_id": ObjectId(), "children": [child_id]})

    assert await container.child_repository.delete(str(child_id)) is True

    assert users.get(family_id)["children"] == [nine_children[1]]
    assert children_groups.get(group_id)["children"] == []


@pytest.mark.asyncio
async def test_delete_educator_removes_owned_groups(container, users, children_groups):
    """Deleting an educator deletes the groups it owns."""
    [educator_id] = users.seed({"username": "edu", "type": "educator", "institution": INSTITUTION_A})
    children_groups.seed(
        {"name": "G1", "user_id": educator_id, "children": []},
        {"name": "G2", "user_id": ObjectId(), "children": []},
    )
    assert await container.educator_repository.delete(str(educator_id)) is True
    assert [group["name"] for group in children_groups.documents] == ["G2"]


@pytest.mark.asyncio
async def test_driver_errors_become_repository_exceptions():
    """Any other driver failure is reported as a RepositoryException."""
    collection = MagicMock()
    collection.find_one = AsyncMock(side_effect=PyMongoError("connection reset"))
    repository = ChildRepository(collection, MagicMock(), MagicMock())
    with pytest.raises(RepositoryException) as exc_info:
        await repository.find_one(Query(filters={"_id": str(ObjectId())}))
    assert exc_info.value.description == "connection reset"


@pytest.mark.asyncio
async def test_refused_projection_becomes_repository_exception(container, nine_children):
    """The in-memory store refuses mixed projections as the server does."""
    with pytest.raises(RepositoryException):
        await container.child_repository.find(Query(fields={"username": 1, "age": 0}))


@pytest.mark.asyncio
async def test_store_refuses_shapes_the_server_refuses(users):
    with pytest.raises(OperationFailure):
        users.find({"age": {"$in": [7, {"$gte": 5}]}})
    with pytest.raises(OperationFailure):
        await users.find_one({}, {"username": 1, "age": 0})
    assert await users.find_one({}, {"username": 1, "_id": 0}) is None
    assert await users.count_documents({"age": {"$in": [7, 8]}}) == 0


# ============================================================================
# Subtype population
# ============================================================================

@pytest.mark.asyncio
async def test_family_children_are_populated_in_order(container, nine_children, users):
    """Dangling child ids are dropped from the populated list."""
    [family_id] = users.seed(
        {
            "username": "fam",
            "type": "family",
            "institution": INSTITUTION_A,
            "children": [nine_children[2], ObjectId(), nine_children[0]],
        }
    )
    family = await container.family_repository.find_one(Query(filters={"_id": str(family_id)}))
    assert [child.username for child in family.children] == ["child3", "child1"]


@pytest.mark.asyncio
async def test_family_add_and_remove_child(container, nine_children, users):
    """Adding a child twice keeps a single reference."""
    [family_id] = users.seed({"username": "fam", "type": "family", "institution": INSTITUTION_A, "children": []})
    await container.family_repository.add_child(str(family_id), str(nine_children[0]))
    family = await container.family_repository.add_child(str(family_id), str(nine_children[0]))
    assert [child.username for child in family.children] == ["child1"]

    family = await container.family_repository.remove_child(str(family_id), str(nine_children[0]))
    assert family.children == []
    assert await container.family_repository.add_child(str(ObjectId()), str(nine_children[0])) is None


@pytest.mark.asyncio
async def test_educator_groups_are_populated_with_children(container, nine_children, users, children_groups):
    """Groups, their children and the children's institution are joined in."""
    [educator_id] = users.seed({"username": "edu", "type": "educator", "institution": INSTITUTION_B})
    [group_id] = children_groups.seed(
        {"name": "G1", "school_class": "3A", "user_id": educator_id, "children": [nine_children[0]]}
    )
    await container.educator_repository.add_children_group(str(educator_id), str(group_id))

    educator = await container.educator_repository.find_by_id(str(educator_id))
    [group] = educator.children_groups
    assert group.name == "G1"
    assert group.children[0].username == "child1"
    assert group.children[0].institution.name == "NUTES"


@pytest.mark.asyncio
async def test_application_without_institution_is_listed(container, users):
    """Applications do not require an institution."""
    users.seed({"username": "app", "type": "application", "application_name": "App", "institution": None})
    [application] = await container.application_repository.find(parse_query_string(""))
    assert application.application_name == "App"
    assert application.institution is None


@pytest.mark.asyncio
async def test_children_group_create_populates_children(container, nine_children):
    """A new group comes back with its children populated."""
    group = ChildrenGroup.model_construct(
        name="Group A",
        school_class="4B",
        children=[Child.model_construct(id=str(nine_children[1]))],
        user=User.model_construct(id=str(ObjectId())),
    )
    created = await container.children_group_repository.create(group)
    assert created.id is not None
    assert created.children[0].username == "child2"
    assert created.children[0].institution.name == "NUTES"


# ============================================================================
# Existence, passwords and institution cascade
# ============================================================================

@pytest.mark.asyncio
async def test_check_exist_by_username_is_scoped(container, nine_children, users):
    """The same username may exist once per user type."""
    assert await container.child_repository.check_exist(Child.model_construct(username="child1")) is True
    assert await container.family_repository.check_exist(User.model_construct(username="child1")) is False
    assert await container.child_repository.check_exist(Child.model_construct(id=str(nine_children[0]))) is True
    assert await container.child_repository.check_exist(Child.model_construct()) is False


@pytest.mark.asyncio
async def test_exists_by_ids_returns_missing(container, nine_children):
    """Only the ids without a matching child are reported."""
    missing = str(ObjectId())
    assert await container.child_repository.exists_by_ids([str(nine_children[0]), missing]) == [missing]


@pytest.mark.asyncio
async def test_institution_check_exist_by_name(container):
    """Institutions are unique by name."""
    assert await container.institution_repository.check_exist(Institution.model_construct(name="NUTES")) is True
    assert await container.institution_repository.check_exist(Institution.model_construct(name="Other")) is False
    assert await container.institution_repository.check_exist(
        Institution.model_construct(id=str(INSTITUTION_B))
    ) is True


@pytest.mark.asyncio
async def test_change_password(container):
    """The old password must match before the new one is stored."""
    child = await container.child_repository.create(_new_child())
    user_repository = container.user_repository

    with pytest.raises(ValidationException):
        await user_repository.change_password(child.id, "wrong", "newsecret")
    assert await user_repository.change_password(child.id, "mysecret", "newsecret") is True
    assert await user_repository.change_password(str(ObjectId()), "mysecret", "newsecret") is False

    stored = await container.child_repository.collection.find_one({"_id": ObjectId(child.id)})
    assert await user_repository.compare_passwords("newsecret", stored["password"]) is True


@pytest.mark.asyncio
async def test_compare_passwords_rejects_non_hash(container):
    """A stored value that is not a bcrypt hash never matches."""
    assert await container.user_repository.compare_passwords("secret", "plain") is False
    assert await container.user_repository.compare_passwords("", "plain") is False


@pytest.mark.asyncio
async def test_bcrypt_runs_in_worker_thread(container):
    """Hashing and verification never run on the event loop thread."""
    loop_thread = threading.get_ident()
    threads = []
    hashpw, checkpw = bcrypt.hashpw, bcrypt.checkpw

    def record(func):
        def wrapper(*args):
            threads.append(threading.get_ident())
            return func(*args)
        return wrapper

    with patch("account_service.repositories.user_repository.bcrypt.hashpw", side_effect=record(hashpw)), patch(
        "account_service.repositories.user_repository.bcrypt.checkpw", side_effect=record(checkpw)
    ):
        child = await container.child_repository.create(_new_child())
        assert await container.user_repository.change_password(child.id, "mysecret", "newsecret") is True

    assert len(threads) == 3
    assert loop_thread not in threads


@pytest.mark.asyncio
async def test_disassociate_institution(container, nine_children, users):
    """Every user of the institution loses the reference."""
    assert await container.user_repository.has_institution(str(INSTITUTION_B)) is True
    await container.user_repository.disassociate_institution(str(INSTITUTION_B))
    assert await container.user_repository.has_institution(str(INSTITUTION_B)) is False
    assert users.get(nine_children[3])["institution"] is None
    assert users.get(nine_children[0])["institution"] == INSTITUTION_A


@pytest.mark.asyncio
async def test_created_at_is_not_overwritten_by_update(container, nine_children, users):
    """`created_at` is owned by the store."""
    await container.child_repository.update(Child.model_construct(id=str(nine_children[6]), age=8))
    assert users.get(nine_children[6])["created_at"] == datetime(2019, 1, 20, tzinfo=timezone.utc)
