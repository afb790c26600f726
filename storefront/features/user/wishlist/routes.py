# storefront/features/user/wishlist/routes.py

# The logged user's wishlist: a set of product ids kept on the user document.

from fastapi import APIRouter, Depends

from ....db.collections import Collections, UserRoles
from ....db.mongo_client import get_collections
from ....models.user import WishlistAdd
from ....shared.crud import ensure_exists
from ....shared.exceptions import AuthFailure
from ....shared.responses import success
from ....shared.utils import to_object_id
from ..auth.dependencies import AuthContext, auth_guard

router = APIRouter(
    prefix="/wishlist",
    tags=["wishlist"],
)

user_only = auth_guard(authenticated=True, roles=[UserRoles.USER])


async def _update_wishlist(collections: Collections, auth: AuthContext, operator: str, product_id) -> list:
    user = await collections.users.find_one_and_update(
        {"_id": auth.user["_id"]},
        {operator: {"wishlist": product_id}},
    )
    if user is None:
        raise AuthFailure("failed to find logged user")
    return user.get("wishlist", [])


@router.get("")
async def get_logged_user_wishlist(auth: AuthContext = Depends(user_only)):
    return success({"wishlist": auth.user.get("wishlist", [])}).to_response()


@router.post("")
async def post_add_to_wishlist(
    body: WishlistAdd,
    auth: AuthContext = Depends(user_only),
    collections: Collections = Depends(get_collections),
):
    await ensure_exists(collections.products, [body.product_id], "product")
    wishlist = await _update_wishlist(collections, auth, "$addToSet", body.product_id)
    return success({
        "wishlist": wishlist,
        "message": "Product added to wishlist successfully",
    }).to_response()


@router.delete("/{product_id}")
async def delete_product_in_wishlist(
    product_id: str,
    auth: AuthContext = Depends(user_only),
    collections: Collections = Depends(get_collections),
):
    wishlist = await _update_wishlist(collections, auth, "$pull", to_object_id(product_id, field="productId"))
    return success({
        "wishlist": wishlist,
        "message": "Product removed from wishlist successfully",
    }).to_response()
