# storefront/features/categories/routes.py

# This file defines FastAPI API endpoints for product categories.

from fastapi import APIRouter, Depends

from ...db.collections import Collections
from ...db.mongo_client import get_collections
from ...models.catalog import CategoryCreate, CategoryUpdate
from ...shared.crud import CRUD
from ...shared.query_features import ProjectionOption, QueryFeatureConfig, SearchOption, SortOption
from ...shared.query_string import QueryMap, get_query_map

router = APIRouter(
    prefix="/categories",
    tags=["categories"],
)

features = QueryFeatureConfig(
    search=SearchOption(key="keyword", fields=["name"]),
    sort=SortOption(key="sort"),
    projection=ProjectionOption(key="select"),
)


def get_operations(collections: Collections = Depends(get_collections)) -> CRUD:
    return CRUD(collections.categories, features)


@router.get("")
async def get_categories(query: QueryMap = Depends(get_query_map), operations: CRUD = Depends(get_operations)):
    """
    Lists categories.

    Query: keyword (name search), sort[field]=asc|desc, select=field / -field, page, limit.
    """
    return (await operations.get_all(query)).to_response()


@router.post("")
async def post_category(body: CategoryCreate, operations: CRUD = Depends(get_operations)):
    return (await operations.post_create(body.to_document())).to_response()


@router.get("/{id}")
async def get_specific_category(id: str, query: QueryMap = Depends(get_query_map), operations: CRUD = Depends(get_operations)):
    return (await operations.get_specific(id, query)).to_response()


@router.put("/{id}")
async def put_update_specific_category(id: str, body: CategoryUpdate, operations: CRUD = Depends(get_operations)):
    return (await operations.put_specific(id, body.to_document())).to_response()


@router.delete("/{id}")
async def delete_specific_category(id: str, operations: CRUD = Depends(get_operations)):
    return (await operations.delete_specific(id)).to_response()
