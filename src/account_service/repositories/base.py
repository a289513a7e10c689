"""
# Base Repository

Generic CRUD over one Motor collection.

A repository is built from a collection and a mapper. Entity repositories declare the
relations they populate (`relations`) and override `_populate()` to join related documents
at read time; the base class only knows how to translate a `Query`, run it and map the
results.

## Error Translation

Driver errors never leave the repository:

| Driver error | Raised as |
|--------------|-----------|
| `DuplicateKeyError` | `ConflictException` |
| any other `PyMongoError` | `RepositoryException` |

## Orphaned References

Population helpers tolerate dangling references. A required single reference that resolves
to nothing drops the whole record from `find()` results; list references silently drop the
ids that no longer exist.
"""

from typing import Any, Dict, List, Optional, Sequence

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from account_service.exceptions import ConflictException, RepositoryException
from account_service.managers.logging_manager import get_logger
from account_service.repositories.query import Query
from account_service.repositories.translator import Population, TranslatedQuery, to_object_id, translate
from account_service.utils.datetime_helpers import utc_now
from account_service.utils.strings import Strings

logger = get_logger(prefix="[Repository]")


def store_error(error: PyMongoError) -> Exception:
    """Translate a driver error into the service exception taxonomy."""
    if isinstance(error, DuplicateKeyError):
        return ConflictException(Strings.ERROR_MESSAGE.DUPLICATE)
    logger.error("MongoDB operation failed: %s", error)
    return RepositoryException(Strings.ERROR_MESSAGE.INTERNAL_SERVER_ERROR, str(error))


class BaseRepository:
    relations: Sequence[str] = ()

    def __init__(self, collection: AsyncIOMotorCollection, mapper: Any):
        self.collection = collection
        self.mapper = mapper

    def _scope(self) -> Dict[str, Any]:
        """Filter applied to every read and write; user repositories restrict by `type`."""
        return {}

    async def create(self, item: Any) -> Any:
        document = self.mapper.to_document(item)
        document.pop("_id", None)
        document["created_at"] = utc_now()
        try:
            result = await self.collection.insert_one(document)
        except PyMongoError as e:
            raise store_error(e) from e
        return await self.find_one(Query(filters={"_id": str(result.inserted_id)}))

    async def find(self, query: Query, populate: bool = True) -> List[Any]:
        """
        Run a paginated read.

        With `populate`, related documents are joined in and records with a broken required
        reference are dropped. Without it, references come back as stored ids.
        """
        translated = translate(query, self.relations)
        documents = await self._find_documents(translated)
        if populate:
            documents = await self._populate(documents, translated.populations, drop_broken=True)
        return [self.mapper.from_document(document) for document in documents]

    async def find_one(self, query: Query) -> Optional[Any]:
        translated = translate(query, self.relations)
        try:
            document = await self.collection.find_one(
                {**translated.filter, **self._scope()}, translated.projection
            )
        except PyMongoError as e:
            raise store_error(e) from e
        if document is None:
            return None
        populated = await self._populate([document], translated.populations, drop_broken=False)
        return self.mapper.from_document(populated[0])

    async def update(self, item: Any) -> Optional[Any]:
        """
        `$set` only the fields present on `item`.

        Returns the populated post-update record, or `None` when no record matched the id.
        """
        document = self.mapper.to_document(item)
        item_id = document.pop("_id", None)
        if not isinstance(item_id, ObjectId):
            return None
        update: Dict[str, Any] = {}
        if document:
            update["$set"] = document
        try:
            if update:
                result = await self.collection.find_one_and_update(
                    {"_id": item_id, **self._scope()}, update, return_document=ReturnDocument.AFTER
                )
            else:
                result = await self.collection.find_one({"_id": item_id, **self._scope()})
        except PyMongoError as e:
            raise store_error(e) from e
        if result is None:
            return None
        populated = await self._populate([result], self._empty_populations(), drop_broken=False)
        return self.mapper.from_document(populated[0])

    async def delete(self, item_id: str) -> bool:
        object_id = to_object_id(item_id)
        if not isinstance(object_id, ObjectId):
            return False
        try:
            result = await self.collection.delete_one({"_id": object_id, **self._scope()})
        except PyMongoError as e:
            raise store_error(e) from e
        return result.deleted_count == 1

    async def count(self, query: Optional[Query] = None) -> int:
        translated = translate(query or Query(), self.relations)
        try:
            return await self.collection.count_documents({**translated.filter, **self._scope()})
        except PyMongoError as e:
            raise store_error(e) from e

    async def check_exist(self, item: Any) -> bool:
        if getattr(item, "id", None) is None:
            return False
        return await self.find_one(Query(filters={"_id": item.id})) is not None

    async def _find_documents(self, translated: TranslatedQuery) -> List[Dict[str, Any]]:
        try:
            cursor = self.collection.find({**translated.filter, **self._scope()}, translated.projection)
            if translated.sort:
                cursor = cursor.sort(translated.sort)
            cursor = cursor.skip(translated.skip).limit(translated.limit)
            return await cursor.to_list(length=translated.limit)
        except PyMongoError as e:
            raise store_error(e) from e

    def _empty_populations(self) -> Dict[str, Population]:
        return {relation: Population() for relation in self.relations}

    async def _populate(
        self, documents: List[Dict[str, Any]], populations: Dict[str, Population], drop_broken: bool
    ) -> List[Dict[str, Any]]:
        return documents

    async def _fetch_related(
        self, collection: AsyncIOMotorCollection, ids: List[ObjectId], population: Optional[Population] = None
    ) -> Dict[ObjectId, Dict[str, Any]]:
        if not ids:
            return {}
        population = population or Population()
        projection = None
        if population.select:
            projection = dict(population.select)
        try:
            cursor = collection.find({"_id": {"$in": ids}, **population.match}, projection)
            related = await cursor.to_list(length=None)
        except PyMongoError as e:
            raise store_error(e) from e
        return {document["_id"]: document for document in related}

    async def populate_reference(
        self,
        documents: List[Dict[str, Any]],
        field: str,
        collection: AsyncIOMotorCollection,
        population: Optional[Population] = None,
        required: bool = False,
        drop_unresolved: bool = False,
    ) -> List[Dict[str, Any]]:
        """
        Replace the id stored under `field` with the referenced document.

        `required` drops documents whose reference is null. `drop_unresolved` drops
        documents whose reference points to nothing (or to a document excluded by the
        population match); otherwise the raw id is kept.
        """
        ids = list({document[field] for document in documents if isinstance(document.get(field), ObjectId)})
        related = await self._fetch_related(collection, ids, population)
        result = []
        for document in documents:
            if field not in document:
                # projected out
                result.append(document)
                continue
            reference = document[field]
            if reference is None:
                if required:
                    continue
            elif reference in related:
                document[field] = related[reference]
            elif drop_unresolved:
                continue
            result.append(document)
        return result

    async def populate_list(
        self,
        documents: List[Dict[str, Any]],
        field: str,
        collection: AsyncIOMotorCollection,
        population: Optional[Population] = None,
    ) -> List[Dict[str, Any]]:
        """Replace a list of ids under `field` with the referenced documents, keeping order."""
        ids = list({ref for document in documents for ref in document.get(field) or [] if isinstance(ref, ObjectId)})
        related = await self._fetch_related(collection, ids, population)
        for document in documents:
            if field in document and document[field] is not None:
                document[field] = [related[ref] for ref in document[field] if ref in related]
        return documents
