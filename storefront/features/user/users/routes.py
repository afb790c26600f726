# storefront/features/user/users/routes.py

# Staff management of user accounts. Bodies are multipart forms so an
# avatar image can be uploaded alongside the fields.

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError

from ....config.paths import AVATARS_UPLOAD_DIR, AVATARS_UPLOAD_URL
from ....db.collections import Collections, UserRoles
from ....db.mongo_client import get_collections
from ....models.user import UserCreate, UserUpdate
from ....shared.crud import CRUD
from ....shared.exceptions import ConflictError
from ....shared.query_features import ProjectionOption, QueryFeatureConfig, SearchOption, SortOption
from ....shared.query_string import QueryMap, get_query_map
from ....shared.uploads import delete_file, save_image
from ....shared.utils import to_object_id
from ..auth.dependencies import auth_guard

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/users",
    tags=["users"],
    dependencies=[Depends(auth_guard(authenticated=True, roles=[UserRoles.ADMIN, UserRoles.MANAGER]))],
)

features = QueryFeatureConfig(
    search=SearchOption(key="keyword", fields=["name", "email", "phone"]),
    sort=SortOption(key="sort"),
    projection=ProjectionOption(key="select", exclude=["password"]),
)


def get_operations(collections: Collections = Depends(get_collections)) -> CRUD:
    return CRUD(collections.users, features)


def _validate_form(model: type, fields: Dict[str, Any]) -> BaseModel:
    """Runs a pydantic model over submitted form fields; errors surface as a 400 like JSON bodies."""
    try:
        return model.model_validate({key: value for key, value in fields.items() if value is not None})
    except ValidationError as exc:
        raise RequestValidationError(
            [{**err, "loc": ("body", *err["loc"])} for err in exc.errors(include_url=False)]
        ) from exc


async def _ensure_unique_email(collections: Collections, email: Optional[str], user_id: Optional[Any] = None) -> None:
    if not email:
        return
    existing = await collections.users.find_one({"email": email.lower()}, {"_id": True})
    if existing is None:
        return
    if user_id is not None and existing["_id"] == user_id:
        raise ConflictError(f"User {email} is already used in this account", data={"email": email})
    raise ConflictError(f"User {email} is already exists", data={"email": email})


@router.get("")
async def get_users(query: QueryMap = Depends(get_query_map), operations: CRUD = Depends(get_operations)):
    return (await operations.get_all(query)).to_response()


@router.post("")
async def post_create_user(
    name: str = Form(...),
    email: str = Form(...),
    password: str = Form(...),
    confirm_password: str = Form(..., alias="confirmPassword"),
    phone: Optional[str] = Form(default=None),
    role: Optional[int] = Form(default=None),
    avatar: Optional[UploadFile] = File(default=None),
    collections: Collections = Depends(get_collections),
    operations: CRUD = Depends(get_operations),
):
    body = _validate_form(UserCreate, {
        "name": name, "email": email, "password": password,
        "confirmPassword": confirm_password, "phone": phone, "role": role,
    })
    await _ensure_unique_email(collections, body.email)

    document = body.to_document()
    avatar_url = await save_image(avatar, AVATARS_UPLOAD_DIR, AVATARS_UPLOAD_URL)
    if avatar_url:
        document["avatar"] = avatar_url

    try:
        result = await operations.post_create(document)
    except Exception:
        # the user was not stored, the uploaded avatar is orphaned
        await delete_file(avatar_url)
        raise
    return result.to_response()


@router.get("/{id}")
async def get_specific_user(id: str, query: QueryMap = Depends(get_query_map), operations: CRUD = Depends(get_operations)):
    return (await operations.get_specific(id, query)).to_response()


@router.put("/{id}")
async def put_update_specific_user(
    id: str,
    name: Optional[str] = Form(default=None),
    email: Optional[str] = Form(default=None),
    phone: Optional[str] = Form(default=None),
    role: Optional[int] = Form(default=None),
    avatar: Optional[UploadFile] = File(default=None),
    collections: Collections = Depends(get_collections),
    operations: CRUD = Depends(get_operations),
):
    user_id = to_object_id(id)
    body = _validate_form(UserUpdate, {"name": name, "email": email, "phone": phone, "role": role})
    await _ensure_unique_email(collections, body.email, user_id)

    document = body.to_document()
    avatar_url = await save_image(avatar, AVATARS_UPLOAD_DIR, AVATARS_UPLOAD_URL)
    if avatar_url:
        document["avatar"] = avatar_url

    try:
        result = await operations.put_specific(user_id, document)
    except Exception:
        await delete_file(avatar_url)
        raise
    return result.to_response()


@router.delete("/{id}")
async def delete_specific_user(id: str, operations: CRUD = Depends(get_operations)):
    return (await operations.delete_specific(id)).to_response()
