import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from storefront.config.paths import AVATARS_UPLOAD_DIR, AVATARS_UPLOAD_URL, url_to_path
from storefront.db.document_collection import parse_select_string
from storefront.features.user.auth.security import verify_password
from storefront.shared.query_features import PopulateDirective


def test_parse_select_string():
    assert parse_select_string("name -_id  email -") == {"name": True, "_id": False, "email": True}


def stored_avatar():
    AVATARS_UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
    url = f"{AVATARS_UPLOAD_URL}/{ObjectId()}.webp"
    url_to_path(url).write_bytes(b"webp")
    return url


class TestProjectionFor:
    def test_hidden_fields_are_excluded_by_default(self, collections):
        assert collections.users.projection_for(None) == {"password": False}
        assert collections.brands.projection_for(None) is None

    def test_inclusion_wins_over_exclusion(self, collections):
        """Should never mix inclusions and exclusions, except for _id."""
        projection = collections.users.projection_for({"name": True, "email": False, "_id": False})
        assert projection == {"name": True, "_id": False}

    def test_hidden_fields_cannot_be_included(self, collections):
        assert collections.users.projection_for({"password": True}) == {"password": False}


class TestPopulate:
    @pytest.mark.asyncio
    async def test_single_and_many_references(self, collections):
        category = await collections.categories.insert({"name": "Phones"})
        brand = await collections.brands.insert({"name": "Acme"})
        subcategories = [
            await collections.subcategories.insert({"name": name, "category": category["_id"]})
            for name in ("Android", "iOS")
        ]
        product = await collections.products.insert({
            "title": "Phone X",
            "category": category["_id"],
            "brand": brand["_id"],
            "subcategory": [item["_id"] for item in subcategories],
        })

        found = await collections.products.find_one(
            {"_id": product["_id"]},
            populate=[
                PopulateDirective(path="category", select="name -_id"),
                PopulateDirective(path="subcategory", select="name"),
                PopulateDirective(path="brand"),
            ],
        )

        assert found["category"] == {"name": "Phones"}
        assert [item["name"] for item in found["subcategory"]] == ["Android", "iOS"]
        assert set(found["subcategory"][0]) == {"_id", "name"}
        assert found["brand"]["slug"] == "acme"

    @pytest.mark.asyncio
    async def test_unknown_relation_is_ignored(self, collections):
        brand = await collections.brands.insert({"name": "Acme"})
        found = await collections.brands.find_one({"_id": brand["_id"]}, populate=[PopulateDirective(path="owner")])
        assert found["name"] == "Acme"

    @pytest.mark.asyncio
    async def test_dangling_reference_becomes_none(self, collections):
        product = await collections.products.insert({"title": "Orphan", "category": ObjectId()})
        found = await collections.products.find_one({"_id": product["_id"]}, populate=[PopulateDirective(path="category")])
        assert found["category"] is None

    @pytest.mark.asyncio
    async def test_review_default_populate(self, collections, make_user):
        """Should embed the reviewer without id or password on every read."""
        user = make_user(avatar="/images/avatar/a.webp")
        product = await collections.products.insert({"title": "Phone"})
        await collections.reviews.insert({"user": user["_id"], "product": product["_id"], "ratings": 4})

        [review] = await collections.reviews.find({})

        assert review["user"] == {"name": "Test User", "email": "user@example.com", "avatar": "/images/avatar/a.webp"}


class TestReviewRatings:
    @pytest.mark.asyncio
    async def test_average_follows_writes(self, collections, make_user):
        first = make_user(email="first@example.com")
        second = make_user(email="second@example.com")
        product = await collections.products.insert({"title": "Phone"})

        review = await collections.reviews.insert({"user": first["_id"], "product": product["_id"], "ratings": 5})
        await collections.reviews.insert({"user": second["_id"], "product": product["_id"], "ratings": 2})

        stored = await collections.products.find_one({"_id": product["_id"]})
        assert stored["ratingQuantity"] == 2
        assert stored["ratingsAverage"] == pytest.approx(3.5)

        await collections.reviews.find_one_and_update({"_id": review["_id"]}, {"ratings": 3})
        stored = await collections.products.find_one({"_id": product["_id"]})
        assert stored["ratingsAverage"] == pytest.approx(2.5)

    @pytest.mark.asyncio
    async def test_last_review_deleted(self, collections, make_user):
        """Should drop the average and zero the count when no review remains."""
        user = make_user()
        product = await collections.products.insert({"title": "Phone"})
        review = await collections.reviews.insert({"user": user["_id"], "product": product["_id"], "ratings": 4})

        await collections.reviews.find_one_and_delete({"_id": review["_id"]})

        stored = await collections.products.find_one({"_id": product["_id"]})
        assert stored["ratingQuantity"] == 0
        assert "ratingsAverage" not in stored


class TestUsers:
    @pytest.mark.asyncio
    async def test_insert_hashes_password_and_normalizes_email(self, collections):
        user = await collections.users.insert({"name": "Ann", "email": "Ann@Example.com", "password": "Str0ng#Password"})

        assert "password" not in user
        assert user["email"] == "ann@example.com"
        assert user["role"] == 0

        stored = await collections.users.find_raw({"_id": user["_id"]})
        assert stored["password"] != "Str0ng#Password"
        assert verify_password("Str0ng#Password", stored["password"])

    @pytest.mark.asyncio
    async def test_password_update_stamps_change_time(self, collections, make_user):
        user = make_user()
        updated = await collections.users.find_one_and_update({"_id": user["_id"]}, {"password": "An0ther#Password"})

        assert "password" not in updated
        assert updated["passwordChangedAt"] is not None
        stored = await collections.users.find_raw({"_id": user["_id"]})
        assert verify_password("An0ther#Password", stored["password"])

    @pytest.mark.asyncio
    async def test_replaced_avatar_is_deleted_after_the_write(self, collections, make_user):
        old_avatar = stored_avatar()
        user = make_user(avatar=old_avatar)
        new_avatar = stored_avatar()

        updated = await collections.users.find_one_and_update({"_id": user["_id"]}, {"avatar": new_avatar})

        assert updated["avatar"] == new_avatar
        assert not url_to_path(old_avatar).exists()
        assert url_to_path(new_avatar).exists()
        url_to_path(new_avatar).unlink()

    @pytest.mark.asyncio
    async def test_failed_write_keeps_the_old_avatar(self, collections, make_user):
        """Should leave the current avatar on disk when the update is rejected."""
        make_user(email="taken@example.com")
        old_avatar = stored_avatar()
        user = make_user(email="ann@example.com", avatar=old_avatar)

        with pytest.raises(DuplicateKeyError):
            await collections.users.find_one_and_update(
                {"_id": user["_id"]},
                {"avatar": f"{AVATARS_UPLOAD_URL}/{ObjectId()}.webp", "email": "taken@example.com"},
            )

        assert url_to_path(old_avatar).exists()
        stored = await collections.users.find_raw({"_id": user["_id"]})
        assert stored["avatar"] == old_avatar
        url_to_path(old_avatar).unlink()
