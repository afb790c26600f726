# storefront/features/coupons/routes.py

from fastapi import APIRouter, Depends

from ...db.collections import Collections, UserRoles
from ...db.mongo_client import get_collections
from ...models.coupon import CouponCreate, CouponUpdate
from ...shared.crud import CRUD
from ...shared.query_features import ProjectionOption, QueryFeatureConfig, SearchOption, SortOption
from ...shared.query_string import QueryMap, get_query_map
from ..user.auth.dependencies import auth_guard

# staff only
router = APIRouter(
    prefix="/coupons",
    tags=["coupons"],
    dependencies=[Depends(auth_guard(authenticated=True, roles=[UserRoles.ADMIN, UserRoles.MANAGER]))],
)

features = QueryFeatureConfig(
    search=SearchOption(key="keyword", fields=["name"]),
    sort=SortOption(key="sort"),
    projection=ProjectionOption(key="select"),
)


def get_operations(collections: Collections = Depends(get_collections)) -> CRUD:
    return CRUD(collections.coupons, features)


@router.get("")
async def get_coupons(query: QueryMap = Depends(get_query_map), operations: CRUD = Depends(get_operations)):
    return (await operations.get_all(query)).to_response()


@router.post("")
async def post_create_coupon(body: CouponCreate, operations: CRUD = Depends(get_operations)):
    return (await operations.post_create(body.to_document())).to_response()


@router.get("/{id}")
async def get_specific_coupon(id: str, query: QueryMap = Depends(get_query_map), operations: CRUD = Depends(get_operations)):
    return (await operations.get_specific(id, query)).to_response()


@router.put("/{id}")
async def put_update_specific_coupon(id: str, body: CouponUpdate, operations: CRUD = Depends(get_operations)):
    return (await operations.put_specific(id, body.to_document())).to_response()


@router.delete("/{id}")
async def delete_specific_coupon(id: str, operations: CRUD = Depends(get_operations)):
    return (await operations.delete_specific(id)).to_response()
