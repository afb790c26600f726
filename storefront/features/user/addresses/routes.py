# storefront/features/user/addresses/routes.py

# The logged user's addresses, embedded in the user document.

from bson import ObjectId
from fastapi import APIRouter, Depends

from ....db.collections import Collections, UserRoles
from ....db.mongo_client import get_collections
from ....models.user import AddressCreate
from ....shared.exceptions import AuthFailure, ValidationFailure
from ....shared.responses import success
from ....shared.utils import to_object_id
from ..auth.dependencies import AuthContext, auth_guard

router = APIRouter(
    prefix="/addresses",
    tags=["addresses"],
)

user_only = auth_guard(authenticated=True, roles=[UserRoles.USER])


async def _update_addresses(collections: Collections, auth: AuthContext, update: dict) -> list:
    user = await collections.users.find_one_and_update({"_id": auth.user["_id"]}, update)
    if user is None:
        raise AuthFailure("failed to find logged user")
    return user.get("addresses", [])


@router.get("")
async def get_logged_user_addresses(auth: AuthContext = Depends(user_only)):
    return success({"addresses": auth.user.get("addresses", [])}).to_response()


@router.post("")
async def post_add_address(
    body: AddressCreate,
    auth: AuthContext = Depends(user_only),
    collections: Collections = Depends(get_collections),
):
    address = {"_id": ObjectId(), **body.to_document()}
    addresses = await _update_addresses(collections, auth, {"$addToSet": {"addresses": address}})
    return success({
        "addresses": addresses,
        "message": "New address added successfully",
    }).to_response()


@router.get("/{id}")
async def get_specific_user_address(id: str, auth: AuthContext = Depends(user_only)):
    address_id = to_object_id(id)
    for address in auth.user.get("addresses", []):
        if address.get("_id") == address_id:
            return success(address).to_response()
    raise ValidationFailure("address not found", data={"id": id})


@router.delete("/{id}")
async def delete_user_address(
    id: str,
    auth: AuthContext = Depends(user_only),
    collections: Collections = Depends(get_collections),
):
    address_id = to_object_id(id)
    addresses = await _update_addresses(collections, auth, {"$pull": {"addresses": {"_id": address_id}}})
    return success({
        "addresses": addresses,
        "message": "address removed successfully",
    }).to_response()
