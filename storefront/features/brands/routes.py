# storefront/features/brands/routes.py

from fastapi import APIRouter, Depends

from ...db.collections import Collections
from ...db.mongo_client import get_collections
from ...models.catalog import BrandCreate, BrandUpdate
from ...shared.crud import CRUD
from ...shared.query_features import ProjectionOption, QueryFeatureConfig, SearchOption, SortOption
from ...shared.query_string import QueryMap, get_query_map

router = APIRouter(
    prefix="/brands",
    tags=["brands"],
)

features = QueryFeatureConfig(
    search=SearchOption(key="keyword", fields=["name"]),
    sort=SortOption(key="sort"),
    projection=ProjectionOption(key="select"),
)


def get_operations(collections: Collections = Depends(get_collections)) -> CRUD:
    return CRUD(collections.brands, features)


@router.get("")
async def get_brands(query: QueryMap = Depends(get_query_map), operations: CRUD = Depends(get_operations)):
    return (await operations.get_all(query)).to_response()


@router.post("")
async def post_brand(body: BrandCreate, operations: CRUD = Depends(get_operations)):
    return (await operations.post_create(body.to_document())).to_response()


@router.get("/{id}")
async def get_specific_brand(id: str, query: QueryMap = Depends(get_query_map), operations: CRUD = Depends(get_operations)):
    return (await operations.get_specific(id, query)).to_response()


@router.put("/{id}")
async def put_update_specific_brand(id: str, body: BrandUpdate, operations: CRUD = Depends(get_operations)):
    return (await operations.put_specific(id, body.to_document())).to_response()


@router.delete("/{id}")
async def delete_specific_brand(id: str, operations: CRUD = Depends(get_operations)):
    return (await operations.delete_specific(id)).to_response()
