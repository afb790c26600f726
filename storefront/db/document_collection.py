# storefront/db/document_collection.py

# Async wrapper around a pymongo Collection. Blocking driver calls run in a
# worker thread (asyncio.to_thread), the same way db/mongo_client.py does it.
# Adds what the CRUD layer expects from a document store: timestamps,
# default hidden fields, relation population and per-collection hooks.

import asyncio
import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Mapping, Optional, Tuple

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.collection import Collection

from ..shared.query_features import PopulateDirective

if TYPE_CHECKING:
    from .collections import Collections

logger = logging.getLogger(__name__)

Document = Dict[str, Any]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_select_string(select: str) -> Dict[str, bool]:
    """'name -_id email' -> {'name': True, '_id': False, 'email': True}"""
    projection: Dict[str, bool] = {}
    for token in select.split():
        if token.startswith("-"):
            if token[1:]:
                projection[token[1:]] = False
        else:
            projection[token] = True
    return projection


class DocumentCollection:
    """
    One resource collection.

    Subclasses declare:
        relations:        path -> name of the collection the path references
        hidden_fields:    fields never returned unless stored-side code asks for them
        default_populate: directives applied on every read unless the caller overrides the path
        timestamps:       maintain createdAt / updatedAt
    """

    relations: Dict[str, str] = {}
    hidden_fields: Tuple[str, ...] = ()
    default_populate: Tuple[PopulateDirective, ...] = ()
    timestamps: bool = True

    def __init__(self, collection: Collection, registry: Optional["Collections"] = None):
        self._collection = collection
        self._registry = registry

    @property
    def name(self) -> str:
        return self._collection.name

    @property
    def raw(self) -> Collection:
        return self._collection

    # --- Hooks (override in subclasses) ---

    async def before_insert(self, document: Document) -> Document:
        return document

    async def before_update(self, filter: Document, update: Document) -> Document:
        return update

    async def after_write(self, document: Document) -> None:
        return None

    async def after_delete(self, document: Document) -> None:
        return None

    # --- Projection helpers ---

    def projection_for(self, requested: Optional[Mapping[str, bool]] = None) -> Optional[Dict[str, bool]]:
        """
        Normalizes a requested include/exclude mask into one MongoDB accepts.

        Mongo refuses to mix inclusions and exclusions (except for _id). When the
        caller includes anything, the mask becomes an inclusion projection and
        hidden fields cannot be re-included. Otherwise hidden fields are added
        to the exclusions.
        """
        requested = dict(requested or {})
        included = [field for field, selected in requested.items() if selected and field not in self.hidden_fields]

        if included:
            projection = {field: True for field in included}
            if requested.get("_id") is False:
                projection["_id"] = False
            return projection

        projection = {field: False for field in self.hidden_fields}
        projection.update({field: False for field, selected in requested.items() if not selected})
        return projection or None

    def serialize(self, document: Optional[Document]) -> Optional[Document]:
        """Drops hidden fields from a document read without a projection."""
        if document is None:
            return None
        return {key: value for key, value in document.items() if key not in self.hidden_fields}

    # --- Reads ---

    async def count(self, filter: Document) -> int:
        return await asyncio.to_thread(self._collection.count_documents, filter)

    async def find(
        self,
        filter: Document,
        projection: Optional[Mapping[str, bool]] = None,
        skip: int = 0,
        limit: int = 0,
        sort: Optional[Mapping[str, int]] = None,
        populate: Optional[Iterable[PopulateDirective]] = None,
    ) -> List[Document]:
        mongo_projection = self.projection_for(projection)

        def _run() -> List[Document]:
            cursor = self._collection.find(filter, mongo_projection)
            if sort:
                cursor = cursor.sort(list(sort.items()))
            if skip > 0:
                cursor = cursor.skip(skip)
            if limit > 0:
                cursor = cursor.limit(limit)
            return list(cursor)

        documents = await asyncio.to_thread(_run)
        await self.populate(documents, populate)
        return documents

    async def find_one(
        self,
        filter: Document,
        projection: Optional[Mapping[str, bool]] = None,
        populate: Optional[Iterable[PopulateDirective]] = None,
    ) -> Optional[Document]:
        document = await asyncio.to_thread(self._collection.find_one, filter, self.projection_for(projection))
        if document is not None:
            await self.populate([document], populate)
        return document

    async def find_raw(self, filter: Document) -> Optional[Document]:
        """Unprojected read, for server-side checks such as password comparison."""
        return await asyncio.to_thread(self._collection.find_one, filter)

    async def aggregate(self, pipeline: List[Document]) -> List[Document]:
        return await asyncio.to_thread(lambda: list(self._collection.aggregate(pipeline)))

    # --- Writes ---

    async def insert(self, body: Mapping[str, Any]) -> Document:
        document = dict(body)
        if self.timestamps:
            now = utcnow()
            document.setdefault("createdAt", now)
            document.setdefault("updatedAt", now)

        document = await self.before_insert(document)
        result = await asyncio.to_thread(self._collection.insert_one, document)
        document["_id"] = result.inserted_id
        logger.debug("Inserted %s into '%s'", result.inserted_id, self.name)

        await self.after_write(document)
        return self.serialize(document)

    async def find_one_and_update(self, filter: Document, patch: Mapping[str, Any]) -> Optional[Document]:
        """
        Atomically updates one document and returns it as it is after the update.

        `patch` is either a plain field mapping (wrapped in $set) or a full
        update document with operators such as $addToSet / $pull.
        """
        update = self._as_update(patch)
        if self.timestamps:
            update.setdefault("$set", {})["updatedAt"] = utcnow()

        update = await self.before_update(filter, update)
        document = await asyncio.to_thread(
            self._collection.find_one_and_update,
            filter,
            update,
            projection=self.projection_for(None),
            return_document=ReturnDocument.AFTER,
        )
        if document is not None:
            await self.after_write(document)
        return document

    async def find_one_and_replace(self, filter: Document, replacement: Mapping[str, Any], upsert: bool = False) -> Optional[Document]:
        document = dict(replacement)
        if self.timestamps:
            now = utcnow()
            document.setdefault("createdAt", now)
            document["updatedAt"] = now

        return await asyncio.to_thread(
            self._collection.find_one_and_replace,
            filter,
            document,
            upsert=upsert,
            return_document=ReturnDocument.AFTER,
        )

    async def find_one_and_delete(self, filter: Document) -> Optional[Document]:
        document = await asyncio.to_thread(self._collection.find_one_and_delete, filter)
        if document is None:
            return None
        logger.debug("Deleted %s from '%s'", document.get("_id"), self.name)
        await self.after_delete(document)
        return self.serialize(document)

    async def delete_many(self, filter: Document) -> int:
        result = await asyncio.to_thread(self._collection.delete_many, filter)
        return result.deleted_count

    @staticmethod
    def _as_update(patch: Mapping[str, Any]) -> Document:
        if any(key.startswith("$") for key in patch):
            return {operator: dict(fields) for operator, fields in patch.items()}
        return {"$set": dict(patch)} if patch else {}

    # --- Population ---

    def _directives(self, requested: Optional[Iterable[PopulateDirective]]) -> List[PopulateDirective]:
        directives = list(requested or [])
        overridden = {directive.path for directive in directives}
        directives.extend(d for d in self.default_populate if d.path not in overridden)
        return directives

    async def populate(self, documents: List[Document], requested: Optional[Iterable[PopulateDirective]]) -> None:
        """Replaces referenced ids in `documents` with the referenced documents, in place."""
        if not documents or self._registry is None:
            return

        for directive in self._directives(requested):
            related_name = self.relations.get(directive.path)
            if related_name is None:
                logger.debug("'%s' has no relation '%s', skipping population", self.name, directive.path)
                continue
            related = self._registry[related_name]

            ids = set()
            for document in documents:
                value = document.get(directive.path)
                if isinstance(value, ObjectId):
                    ids.add(value)
                elif isinstance(value, list):
                    ids.update(item for item in value if isinstance(item, ObjectId))
            if not ids:
                continue

            requested_projection = parse_select_string(directive.select)
            drop_id = requested_projection.pop("_id", None) is False
            found = await related.find({"_id": {"$in": list(ids)}}, requested_projection)
            by_id = {item["_id"]: item for item in found}
            if drop_id:
                by_id = {key: {k: v for k, v in item.items() if k != "_id"} for key, item in by_id.items()}

            for document in documents:
                value = document.get(directive.path)
                if isinstance(value, ObjectId):
                    document[directive.path] = by_id.get(value)
                elif isinstance(value, list):
                    document[directive.path] = [by_id[item] for item in value if item in by_id]
