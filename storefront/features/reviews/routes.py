# storefront/features/reviews/routes.py

# Product reviews. Writers are always stamped as the logged user and a
# USER-role caller can only touch their own reviews.

from typing import Any, Dict

from fastapi import APIRouter, Depends

from ...db.collections import Collections, UserRoles
from ...db.mongo_client import get_collections
from ...models.review import ReviewCreate, ReviewUpdate
from ...shared.crud import CRUD, ensure_exists
from ...shared.exceptions import ConflictError
from ...shared.query_features import ProjectionOption, QueryFeatureConfig, SearchOption, SortOption
from ...shared.query_string import QueryMap, get_query_map
from ..user.auth.dependencies import AuthContext, auth_guard

router = APIRouter(
    prefix="/reviews",
    tags=["reviews"],
)

features = QueryFeatureConfig(
    search=SearchOption(key="keyword", fields=["description"]),
    sort=SortOption(key="sort"),
    projection=ProjectionOption(key="select"),
)

user_only = auth_guard(authenticated=True, roles=[UserRoles.USER])
any_role = auth_guard(authenticated=True, roles=[UserRoles.ADMIN, UserRoles.MANAGER, UserRoles.USER])


def get_operations(collections: Collections = Depends(get_collections)) -> CRUD:
    return CRUD(collections.reviews, features)


def ownership_filter(auth: AuthContext) -> Dict[str, Any]:
    """USER-role callers are restricted to their own reviews; staff see all."""
    if auth.user.get("role") == UserRoles.USER:
        return {"user": auth.user["_id"]}
    return {}


@router.get("")
async def get_reviews(query: QueryMap = Depends(get_query_map), operations: CRUD = Depends(get_operations)):
    return (await operations.get_all(query)).to_response()


@router.post("")
async def post_review(
    body: ReviewCreate,
    auth: AuthContext = Depends(user_only),
    collections: Collections = Depends(get_collections),
    operations: CRUD = Depends(get_operations),
):
    document = {**body.to_document(), "user": auth.user["_id"]}
    await ensure_exists(collections.products, [document["product"]], "product")

    if await collections.reviews.find_one({"user": document["user"], "product": document["product"]}, {"_id": True}):
        raise ConflictError("user already reviewed this product", data={"product": str(document["product"])})

    return (await operations.post_create(document)).to_response()


@router.get("/{id}")
async def get_specific_review(id: str, query: QueryMap = Depends(get_query_map), operations: CRUD = Depends(get_operations)):
    return (await operations.get_specific(id, query)).to_response()


@router.put("/{id}")
async def put_update_specific_review(
    id: str,
    body: ReviewUpdate,
    auth: AuthContext = Depends(user_only),
    operations: CRUD = Depends(get_operations),
):
    document = {**body.to_document(), "user": auth.user["_id"]}
    return (await operations.put_specific(id, document, ownership_filter(auth))).to_response()


@router.delete("/{id}")
async def delete_specific_review(
    id: str,
    auth: AuthContext = Depends(any_role),
    operations: CRUD = Depends(get_operations),
):
    return (await operations.delete_specific(id, ownership_filter(auth))).to_response()
