# storefront/shared/crud.py

# Generic list/create/read/update/delete handlers for one resource collection,
# parameterized by the query features the resource exposes.

import logging
from typing import Any, Dict, Iterable, Mapping, Optional

from bson import ObjectId
from fastapi import status

from ..db.document_collection import DocumentCollection
from .exceptions import NotFoundError, ValidationFailure
from .pagination import pagination
from .query_features import ApiQueryFeatures, QueryFeatureConfig
from .query_string import QueryMap
from .responses import ApiResponse, success
from .utils import to_object_id

logger = logging.getLogger(__name__)


def _to_int(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


async def ensure_exists(
    collection: DocumentCollection,
    ids: Iterable[ObjectId],
    label: str,
    scope: Optional[Mapping[str, Any]] = None,
) -> None:
    """
    Raises ValidationFailure unless every id references a document of
    `collection` (matching `scope` too, when given).
    """
    wanted = list(dict.fromkeys(ids))
    if not wanted:
        return
    found = await collection.find({"_id": {"$in": wanted}, **(scope or {})}, {"_id": True})
    found_ids = {document["_id"] for document in found}
    missing = [str(item) for item in wanted if item not in found_ids]
    if missing:
        raise ValidationFailure(
            f"no {label} exists with this id {', '.join(missing)}",
            data={"field": label},
        )


class CRUD:
    """
    Common CRUD operations over one DocumentCollection.

    Example:
        operations = CRUD(
            collection=collections.products,
            features=QueryFeatureConfig(
                search=SearchOption(key="keyword", fields=["title", "description"]),
                sort=SortOption(key="sort"),
                projection=ProjectionOption(key="select"),
                populate=PopulateOption(key="populate", ignore_invalid=True),
            ),
        )

        # client query string:
        # ?keyword=Shirt&sort[price]=asc&select=title&select=price&populate[brand]=*

    `filter_query` on every operation is an externally injected base filter,
    e.g. {"category": <id>} for /categories/{id}/subcategories or
    {"user": <id>} to scope a user to their own reviews.
    """

    def __init__(self, collection: DocumentCollection, features: QueryFeatureConfig):
        self.collection = collection
        self.features = features

    def _by_id(self, item_id: Any, filter_query: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        return {**(filter_query or {}), "_id": to_object_id(item_id)}

    def _not_found(self, item_id: Any) -> NotFoundError:
        return NotFoundError(
            f"No {self.collection.name} document exists with this id {item_id}",
            data={"id": str(item_id)},
        )

    async def get_all(self, query: Optional[QueryMap] = None, filter_query: Optional[Mapping[str, Any]] = None) -> ApiResponse:
        query = query or {}
        features = ApiQueryFeatures(self.features, query)

        filter = {**features.filter, **(filter_query or {})}

        documents_count = await self.collection.count(filter)
        page_info = pagination(
            documents_count,
            limit=_to_int(query.get("limit")),
            page=_to_int(query.get("page")),
        )

        data = await self.collection.find(
            filter,
            features.projection,
            skip=page_info.skip,
            limit=page_info.limit,
            sort=features.sort,
            populate=features.populate,
        )

        return success({"data": data, **page_info.to_response_fields()}, status.HTTP_200_OK)

    async def post_create(self, body: Mapping[str, Any]) -> ApiResponse:
        document = await self.collection.insert(body)
        logger.info("Created %s %s", self.collection.name, document.get("_id"))
        return success(document, status.HTTP_201_CREATED)

    async def get_specific(
        self,
        item_id: Any,
        query: Optional[QueryMap] = None,
        filter_query: Optional[Mapping[str, Any]] = None,
    ) -> ApiResponse:
        features = ApiQueryFeatures(self.features, query or {})
        item = await self.collection.find_one(
            self._by_id(item_id, filter_query),
            features.projection,
            populate=features.populate,
        )
        if item is None:
            raise self._not_found(item_id)
        return success(item, status.HTTP_200_OK)

    async def put_specific(
        self,
        item_id: Any,
        body: Mapping[str, Any],
        filter_query: Optional[Mapping[str, Any]] = None,
    ) -> ApiResponse:
        item = await self.collection.find_one_and_update(self._by_id(item_id, filter_query), body)
        if item is None:
            raise self._not_found(item_id)
        return success(item, status.HTTP_200_OK)

    async def delete_specific(self, item_id: Any, filter_query: Optional[Mapping[str, Any]] = None) -> ApiResponse:
        # idempotent: a missing document is still a 204
        await self.collection.find_one_and_delete(self._by_id(item_id, filter_query))
        return success(None, status.HTTP_204_NO_CONTENT)
