"""
# User Repository

Shared persistence for every user subtype. All users live in the `users` collection; a
subtype repository sets `user_type`, and every read and write is scoped to that type.

Besides CRUD this repository owns the operations that cut across user types:

- **Passwords**: bcrypt hashing on create, verification and the dedicated password change.
- **Institution cascade**: `disassociate_institution()` clears the reference on every user
  of a deleted institution.
- **Delete cascade**: deleting a child pulls it from families and children groups; deleting
  an educator or health professional deletes the groups they own.

Cascades are plain sequential writes, not transactions.
"""

from typing import Any, Dict, List, Optional

import bcrypt
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo.errors import PyMongoError
from starlette.concurrency import run_in_threadpool

from account_service.config import settings
from account_service.exceptions import ValidationException
from account_service.managers.logging_manager import get_logger
from account_service.models.user_models import User, UserType
from account_service.repositories.base import BaseRepository, store_error
from account_service.repositories.mappers import user_mapper
from account_service.repositories.query import Query
from account_service.repositories.translator import Population, to_object_id
from account_service.utils.strings import Strings

logger = get_logger(prefix="[UserRepository]")


class UserRepository(BaseRepository):
    user_type: Optional[UserType] = None

    def __init__(
        self,
        users: AsyncIOMotorCollection,
        institutions: AsyncIOMotorCollection,
        children_groups: AsyncIOMotorCollection,
        mapper: Any = user_mapper,
    ):
        super().__init__(users, mapper)
        self.institutions = institutions
        self.children_groups = children_groups

    def _scope(self) -> Dict[str, Any]:
        if self.user_type is None:
            return {}
        return {"type": self.user_type.value}

    # --- Passwords ---
    # bcrypt runs in the threadpool, never on the event loop.

    async def encrypt_password(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
        hashed = await run_in_threadpool(bcrypt.hashpw, password.encode("utf-8"), salt)
        return hashed.decode("utf-8")

    async def compare_passwords(self, password_plain: str, password_hash: str) -> bool:
        if not password_plain or not password_hash:
            return False
        try:
            return await run_in_threadpool(
                bcrypt.checkpw, password_plain.encode("utf-8"), password_hash.encode("utf-8")
            )
        except ValueError:
            logger.warning("Stored password is not a valid bcrypt hash")
            return False

    async def change_password(self, user_id: str, old_password: str, new_password: str) -> bool:
        """
        Replace the password of `user_id` after checking the old one.

        Returns `False` when the user does not exist.

        Raises:
            ValidationException: `old_password` does not match the stored hash.
        """
        object_id = to_object_id(user_id)
        try:
            document = await self.collection.find_one({"_id": object_id, **self._scope()}, {"password": 1})
        except PyMongoError as e:
            raise store_error(e) from e
        if document is None:
            return False
        if not await self.compare_passwords(old_password, document.get("password")):
            raise ValidationException(
                Strings.USER.PASSWORD_NOT_MATCH, Strings.USER.PASSWORD_NOT_MATCH_DESCRIPTION
            )
        new_hash = await self.encrypt_password(new_password)
        try:
            result = await self.collection.update_one({"_id": object_id}, {"$set": {"password": new_hash}})
        except PyMongoError as e:
            raise store_error(e) from e
        return result.matched_count == 1

    async def create(self, item: User) -> Any:
        if item.password:
            item.password = await self.encrypt_password(item.password)
        return await super().create(item)

    # --- Existence ---

    async def check_exist(self, item: User) -> bool:
        """True when a user with the same id, or the same username within the type, exists."""
        if item.id is not None:
            query = Query(filters={"_id": item.id})
        elif item.username is not None:
            query = Query(filters={"username": item.username})
        else:
            return False
        translated_filter = {**self._coerce(query.filters), **self._scope()}
        try:
            return await self.collection.count_documents(translated_filter, limit=1) > 0
        except PyMongoError as e:
            raise store_error(e) from e

    async def exists_by_ids(self, ids: List[str]) -> List[str]:
        """Return the subset of `ids` that does not match a user of this type."""
        object_ids = [to_object_id(item) for item in ids]
        try:
            cursor = self.collection.find({"_id": {"$in": object_ids}, **self._scope()}, {"_id": 1})
            found = {str(document["_id"]) for document in await cursor.to_list(length=None)}
        except PyMongoError as e:
            raise store_error(e) from e
        return [item for item in ids if item not in found]

    @staticmethod
    def _coerce(filters: Dict[str, Any]) -> Dict[str, Any]:
        return {key: to_object_id(value) if key == "_id" else value for key, value in filters.items()}

    # --- Institution cascade ---

    async def has_institution(self, institution_id: str) -> bool:
        try:
            count = await self.collection.count_documents({"institution": to_object_id(institution_id)}, limit=1)
        except PyMongoError as e:
            raise store_error(e) from e
        return count > 0

    async def disassociate_institution(self, institution_id: str) -> bool:
        try:
            result = await self.collection.update_many(
                {"institution": to_object_id(institution_id)}, {"$set": {"institution": None}}
            )
        except PyMongoError as e:
            raise store_error(e) from e
        logger.info("Disassociated %d users from institution %s", result.modified_count, institution_id)
        return True

    # --- Delete cascade ---

    async def delete(self, item_id: str) -> bool:
        object_id = to_object_id(item_id)
        if not isinstance(object_id, ObjectId):
            return False
        try:
            document = await self.collection.find_one({"_id": object_id, **self._scope()}, {"type": 1})
            if document is None:
                return False
            result = await self.collection.delete_one({"_id": object_id})
        except PyMongoError as e:
            raise store_error(e) from e
        if result.deleted_count != 1:
            return False
        await self._cascade_delete(object_id, document.get("type"))
        return True

    async def _cascade_delete(self, object_id: ObjectId, user_type: Optional[str]) -> None:
        try:
            if user_type == UserType.CHILD.value:
                await self.collection.update_many(
                    {"type": UserType.FAMILY.value, "children": object_id}, {"$pull": {"children": object_id}}
                )
                await self.children_groups.update_many({"children": object_id}, {"$pull": {"children": object_id}})
            elif user_type in (UserType.EDUCATOR.value, UserType.HEALTH_PROFESSIONAL.value):
                await self.children_groups.delete_many({"user_id": object_id})
        except PyMongoError as e:
            logger.error("Cascade after deleting user %s failed: %s", object_id, e)
            raise store_error(e) from e

    # --- Population ---

    async def _populate_institution(
        self,
        documents: List[Dict[str, Any]],
        population: Optional[Population],
        drop_broken: bool,
        required: bool = True,
    ) -> List[Dict[str, Any]]:
        return await self.populate_reference(
            documents,
            "institution",
            self.institutions,
            population,
            required=drop_broken and required,
            drop_unresolved=drop_broken,
        )

    async def _populate(self, documents, populations, drop_broken):
        if "institution" in populations:
            return await self._populate_institution(documents, populations["institution"], drop_broken)
        return documents
