# storefront/features/products/routes.py

# This file defines FastAPI API endpoints for products. Writes check that
# the referenced category, subcategories and brand exist.

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends

from ...db.collections import Collections
from ...db.mongo_client import get_collections
from ...models.catalog import ProductCreate, ProductUpdate
from ...shared.crud import CRUD, ensure_exists
from ...shared.query_features import (
    PopulateOption,
    ProjectionOption,
    QueryFeatureConfig,
    SearchOption,
    SortOption,
)
from ...shared.query_string import QueryMap, get_query_map
from ...shared.utils import to_object_id

router = APIRouter(
    prefix="/products",
    tags=["products"],
)

features = QueryFeatureConfig(
    search=SearchOption(key="keyword", fields=["title", "description"]),
    sort=SortOption(key="sort"),
    projection=ProjectionOption(key="select"),
    populate=PopulateOption(key="populate", ignore_invalid=True),
)


def get_operations(collections: Collections = Depends(get_collections)) -> CRUD:
    return CRUD(collections.products, features)


async def check_references(collections: Collections, document: Dict[str, Any], category: Optional[Any] = None) -> None:
    """Every subcategory must exist and belong to the product's category."""
    category = document.get("category", category)
    if document.get("category"):
        await ensure_exists(collections.categories, [document["category"]], "category")
    if document.get("subcategory"):
        await ensure_exists(collections.subcategories, document["subcategory"], "subcategory", scope={"category": category})
    if document.get("brand"):
        await ensure_exists(collections.brands, [document["brand"]], "brand")


@router.get("")
async def get_products(query: QueryMap = Depends(get_query_map), operations: CRUD = Depends(get_operations)):
    """
    Lists products.

    Query: keyword (title/description search), sort[field]=asc|desc,
    select=field / -field, populate[category|subcategory|brand]=* or field list,
    page, limit.
    """
    return (await operations.get_all(query)).to_response()


@router.post("")
async def post_product(
    body: ProductCreate,
    collections: Collections = Depends(get_collections),
    operations: CRUD = Depends(get_operations),
):
    document = body.to_document()
    await check_references(collections, document)
    return (await operations.post_create(document)).to_response()


@router.get("/{id}")
async def get_specific_product(id: str, query: QueryMap = Depends(get_query_map), operations: CRUD = Depends(get_operations)):
    return (await operations.get_specific(id, query)).to_response()


@router.put("/{id}")
async def put_update_specific_product(
    id: str,
    body: ProductUpdate,
    collections: Collections = Depends(get_collections),
    operations: CRUD = Depends(get_operations),
):
    document = body.to_document()
    category = None
    if document.get("subcategory") and not document.get("category"):
        current = await collections.products.find_one({"_id": to_object_id(id)}, {"category": True})
        category = current.get("category") if current else None
    await check_references(collections, document, category)
    return (await operations.put_specific(id, document)).to_response()


@router.delete("/{id}")
async def delete_specific_product(id: str, operations: CRUD = Depends(get_operations)):
    return (await operations.delete_specific(id)).to_response()
