# storefront/db/collections.py

# Resource collections and the registry that owns them. Each class carries the
# per-resource behaviour a schema layer would otherwise provide: slugs,
# password hashing, rating aggregation, image cleanup and relations.

import asyncio
import logging
from enum import IntEnum
from typing import Any, Dict, Mapping, Optional

from bson import ObjectId
from pymongo import ASCENDING
from pymongo.database import Database

from ..config.settings import settings
from ..features.user.auth.security import hash_password
from ..shared.query_features import PopulateDirective
from ..shared.uploads import delete_file
from ..shared.utils import slugify
from .document_collection import Document, DocumentCollection, utcnow

logger = logging.getLogger(__name__)


class UserRoles(IntEnum):
    USER = 0
    ADMIN = 1
    MANAGER = 2


# --- Catalog ---

class SluggedCollection(DocumentCollection):
    """Keeps `slug` in sync with `slug_source` on insert and update."""

    slug_source = "name"

    async def before_insert(self, document: Document) -> Document:
        if document.get(self.slug_source):
            document["slug"] = slugify(document[self.slug_source])
        return document

    async def before_update(self, filter: Document, update: Document) -> Document:
        changes = update.get("$set", {})
        if changes.get(self.slug_source):
            changes["slug"] = slugify(changes[self.slug_source])
        return update


class CategoryCollection(SluggedCollection):
    pass


class SubcategoryCollection(SluggedCollection):
    relations = {"category": "categories"}


class BrandCollection(SluggedCollection):
    pass


class ProductCollection(SluggedCollection):
    slug_source = "title"
    relations = {
        "category": "categories",
        "subcategory": "subcategories",
        "brand": "brands",
    }


class CouponCollection(DocumentCollection):
    pass


class ReviewCollection(DocumentCollection):
    relations = {"user": "users", "product": "products"}
    default_populate = (PopulateDirective(path="user", select="name avatar email -_id"),)

    async def calc_average_ratings(self, product_id: ObjectId) -> None:
        """Recomputes ratingsAverage / ratingQuantity on the reviewed product."""
        stats = await self.aggregate([
            {"$match": {"product": product_id}},
            {"$group": {
                "_id": "$product",
                "ratingQuantity": {"$sum": 1},
                "avgRatings": {"$avg": "$ratings"},
            }},
        ])

        products = self._registry["products"]
        if stats:
            await products.find_one_and_update(
                {"_id": product_id},
                {"ratingQuantity": stats[0]["ratingQuantity"], "ratingsAverage": stats[0]["avgRatings"]},
            )
        else:
            await products.find_one_and_update(
                {"_id": product_id},
                {"$set": {"ratingQuantity": 0}, "$unset": {"ratingsAverage": ""}},
            )

    async def after_write(self, document: Document) -> None:
        if isinstance(document.get("product"), ObjectId) and self._registry is not None:
            await self.calc_average_ratings(document["product"])

    async def after_delete(self, document: Document) -> None:
        await self.after_write(document)


# --- Users ---

class UserCollection(DocumentCollection):
    relations = {"wishlist": "products"}
    hidden_fields = ("password",)

    async def before_insert(self, document: Document) -> Document:
        if document.get("email"):
            document["email"] = document["email"].lower()
        if document.get("password"):
            document["password"] = await asyncio.to_thread(hash_password, document["password"])
        document.setdefault("role", int(UserRoles.USER))
        document.setdefault("wishlist", [])
        document.setdefault("addresses", [])
        return document

    async def before_update(self, filter: Document, update: Document) -> Document:
        changes = update.get("$set", {})
        if changes.get("email"):
            changes["email"] = changes["email"].lower()
        if changes.get("password"):
            changes["password"] = await asyncio.to_thread(hash_password, changes["password"])
            changes["passwordChangedAt"] = utcnow()
        return update

    async def find_one_and_update(self, filter: Document, patch: Mapping[str, Any]) -> Optional[Document]:
        # a replaced avatar is removed only once the new one is stored
        avatar = self._as_update(patch).get("$set", {}).get("avatar")
        previous = await self.find_raw(filter) if avatar else None

        document = await super().find_one_and_update(filter, patch)

        if document is not None and previous and previous.get("avatar") not in (None, avatar):
            await delete_file(previous["avatar"])
        return document

    async def after_delete(self, document: Document) -> None:
        await delete_file(document.get("avatar"))


# --- Password reset tokens ---

class TokenCollection(DocumentCollection):
    relations = {"uid": "users"}


class Collections:
    """Registry of every resource collection of one database."""

    def __init__(self, database: Database):
        self.database = database
        self.categories = CategoryCollection(database["categories"], self)
        self.subcategories = SubcategoryCollection(database["subcategories"], self)
        self.brands = BrandCollection(database["brands"], self)
        self.products = ProductCollection(database["products"], self)
        self.reviews = ReviewCollection(database["reviews"], self)
        self.coupons = CouponCollection(database["coupons"], self)
        self.users = UserCollection(database["users"], self)
        self.tokens = TokenCollection(database["tokens"], self)

        self._by_name: Dict[str, DocumentCollection] = {
            collection.name: collection
            for collection in (
                self.categories, self.subcategories, self.brands, self.products,
                self.reviews, self.coupons, self.users, self.tokens,
            )
        }

    def __getitem__(self, name: str) -> DocumentCollection:
        return self._by_name[name]

    def ensure_indexes(self) -> None:
        """Creates unique and TTL indexes. Blocking, call through asyncio.to_thread."""
        for collection in (self.categories, self.subcategories, self.brands, self.coupons):
            collection.raw.create_index([("name", ASCENDING)], unique=True)
        self.users.raw.create_index([("email", ASCENDING)], unique=True)
        self.reviews.raw.create_index([("user", ASCENDING), ("product", ASCENDING)], unique=True)

        self.tokens.raw.create_index([("requestId", ASCENDING)], unique=True)
        self.tokens.raw.create_index([("uid", ASCENDING)], unique=True)
        self.tokens.raw.create_index([("createdAt", ASCENDING)], expireAfterSeconds=settings.RESET_TOKEN_TTL_SECONDS)
        self.coupons.raw.create_index([("expiresAt", ASCENDING)], expireAfterSeconds=0)
        logger.info("MongoDB indexes ensured.")
