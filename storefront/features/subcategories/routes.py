# storefront/features/subcategories/routes.py

# Subcategories are served twice: on their own (/subcategories) and nested
# under their parent (/categories/{category_id}/subcategories), where every
# operation is scoped to that category.

from typing import Any, Callable, Dict

from fastapi import APIRouter, Depends

from ...db.collections import Collections
from ...db.mongo_client import get_collections
from ...models.catalog import SubcategoryCreate, SubcategoryUpdate
from ...shared.crud import CRUD, ensure_exists
from ...shared.exceptions import ValidationFailure
from ...shared.query_features import (
    PopulateOption,
    ProjectionOption,
    QueryFeatureConfig,
    SearchOption,
    SortOption,
)
from ...shared.query_string import QueryMap, get_query_map
from ...shared.utils import to_object_id

features = QueryFeatureConfig(
    search=SearchOption(key="keyword", fields=["name"]),
    sort=SortOption(key="sort"),
    projection=ProjectionOption(key="select"),
    populate=PopulateOption(key="populate", ignore_invalid=True),
)


def get_operations(collections: Collections = Depends(get_collections)) -> CRUD:
    return CRUD(collections.subcategories, features)


# --- Scopes ---
async def no_scope() -> Dict[str, Any]:
    return {}


async def category_scope(category_id: str, collections: Collections = Depends(get_collections)) -> Dict[str, Any]:
    """Validates the parent category of a nested route and filters on it."""
    category = to_object_id(category_id, field="categoryId")
    await ensure_exists(collections.categories, [category], "category")
    return {"category": category}


def build_router(prefix: str, scope: Callable[..., Any]) -> APIRouter:
    router = APIRouter(prefix=prefix, tags=["subcategories"])

    @router.get("")
    async def get_subcategories(
        query: QueryMap = Depends(get_query_map),
        filter_query: Dict[str, Any] = Depends(scope),
        operations: CRUD = Depends(get_operations),
    ):
        return (await operations.get_all(query, filter_query)).to_response()

    @router.post("")
    async def post_subcategory(
        body: SubcategoryCreate,
        filter_query: Dict[str, Any] = Depends(scope),
        collections: Collections = Depends(get_collections),
        operations: CRUD = Depends(get_operations),
    ):
        # the parent from the path wins over the body
        document = {**body.to_document(), **filter_query}
        if not document.get("category"):
            raise ValidationFailure("subcategory must belong to category", data={"field": "category"})
        await ensure_exists(collections.categories, [document["category"]], "category")
        return (await operations.post_create(document)).to_response()

    @router.get("/{id}")
    async def get_specific_subcategory(
        id: str,
        query: QueryMap = Depends(get_query_map),
        filter_query: Dict[str, Any] = Depends(scope),
        operations: CRUD = Depends(get_operations),
    ):
        return (await operations.get_specific(id, query, filter_query)).to_response()

    @router.put("/{id}")
    async def put_update_specific_subcategory(
        id: str,
        body: SubcategoryUpdate,
        filter_query: Dict[str, Any] = Depends(scope),
        collections: Collections = Depends(get_collections),
        operations: CRUD = Depends(get_operations),
    ):
        document = body.to_document()
        if document.get("category"):
            await ensure_exists(collections.categories, [document["category"]], "category")
        return (await operations.put_specific(id, document, filter_query)).to_response()

    @router.delete("/{id}")
    async def delete_specific_subcategory(
        id: str,
        filter_query: Dict[str, Any] = Depends(scope),
        operations: CRUD = Depends(get_operations),
    ):
        return (await operations.delete_specific(id, filter_query)).to_response()

    return router


router = build_router("/subcategories", no_scope)
nested_router = build_router("/categories/{category_id}/subcategories", category_scope)
