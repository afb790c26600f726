import pytest
from bson import ObjectId

from storefront.shared.crud import CRUD, ensure_exists
from storefront.shared.exceptions import NotFoundError, ValidationFailure
from storefront.shared.query_features import (
    ProjectionOption,
    QueryFeatureConfig,
    SearchOption,
    SortOption,
)


@pytest.fixture
def brands(collections):
    return CRUD(
        collection=collections.brands,
        features=QueryFeatureConfig(
            search=SearchOption(key="keyword", fields=["name"]),
            sort=SortOption(key="sort"),
            projection=ProjectionOption(key="select"),
        ),
    )


async def _seed(operations, names):
    created = []
    for name in names:
        response = await operations.post_create({"name": name})
        created.append(response.data)
    return created


class TestGetAll:
    @pytest.mark.asyncio
    async def test_paginates(self, brands):
        """Should return the requested page with pagination metadata."""
        await _seed(brands, [f"Brand {index:02d}" for index in range(25)])

        response = await brands.get_all({"limit": "10", "page": "3", "sort": {"name": "asc"}})

        assert response.status_code == 200
        body = response.data
        assert [item["name"] for item in body["data"]] == [f"Brand {index:02d}" for index in range(20, 25)]
        assert body["documentsCount"] == 25
        assert body["pageCount"] == 3
        assert body["currentPage"] == 3
        assert body["prevPage"] == 2
        assert body["nextPage"] is None

    @pytest.mark.asyncio
    async def test_bad_paging_values_use_defaults(self, brands):
        await _seed(brands, ["Acme"])
        response = await brands.get_all({"limit": "abc", "page": ["1", "2"]})
        assert response.data["limit"] == 10
        assert response.data["currentPage"] == 1

    @pytest.mark.asyncio
    async def test_search_and_sort(self, brands):
        await _seed(brands, ["Apple", "Pineapple", "Samsung"])
        response = await brands.get_all({"keyword": "APPLE", "sort": {"name": "desc"}})
        assert [item["name"] for item in response.data["data"]] == ["Pineapple", "Apple"]

    @pytest.mark.asyncio
    async def test_projection(self, brands):
        await _seed(brands, ["Apple"])
        response = await brands.get_all({"select": "-slug"})
        item = response.data["data"][0]
        assert "slug" not in item
        assert item["name"] == "Apple"

    @pytest.mark.asyncio
    async def test_filter_query_is_applied(self, collections):
        """Should restrict results to the injected base filter."""
        category = await collections.categories.insert({"name": "Phones"})
        other = await collections.categories.insert({"name": "Laptops"})
        await collections.subcategories.insert({"name": "Android", "category": category["_id"]})
        await collections.subcategories.insert({"name": "Gaming", "category": other["_id"]})

        operations = CRUD(collections.subcategories, QueryFeatureConfig())
        response = await operations.get_all({}, filter_query={"category": category["_id"]})

        assert [item["name"] for item in response.data["data"]] == ["Android"]
        assert response.data["documentsCount"] == 1

    @pytest.mark.asyncio
    async def test_hidden_fields_are_never_listed(self, collections, make_user):
        make_user()
        operations = CRUD(collections.users, QueryFeatureConfig(projection=ProjectionOption(key="select")))

        for query in ({}, {"select": "password"}, {"select": ["name", "password"]}):
            response = await operations.get_all(query)
            assert "password" not in response.data["data"][0]


class TestSingleDocument:
    @pytest.mark.asyncio
    async def test_create_sets_slug_and_timestamps(self, brands):
        response = await brands.post_create({"name": "Dell Technologies"})
        assert response.status_code == 201
        assert response.data["slug"] == "dell-technologies"
        assert response.data["createdAt"] == response.data["updatedAt"]

    @pytest.mark.asyncio
    async def test_get_update_delete(self, brands):
        [brand] = await _seed(brands, ["Dell"])
        brand_id = str(brand["_id"])

        assert (await brands.get_specific(brand_id)).data["name"] == "Dell"

        updated = await brands.put_specific(brand_id, {"name": "Dell EMC"})
        assert updated.data["name"] == "Dell EMC"
        assert updated.data["slug"] == "dell-emc"

        deleted = await brands.delete_specific(brand_id)
        assert deleted.status_code == 204

        with pytest.raises(NotFoundError):
            await brands.get_specific(brand_id)

    @pytest.mark.asyncio
    async def test_missing_document_is_not_found(self, brands):
        missing = str(ObjectId())
        with pytest.raises(NotFoundError):
            await brands.get_specific(missing)
        with pytest.raises(NotFoundError):
            await brands.put_specific(missing, {"name": "x"})

    @pytest.mark.asyncio
    async def test_delete_is_idempotent(self, brands):
        response = await brands.delete_specific(str(ObjectId()))
        assert response.status_code == 204

    @pytest.mark.asyncio
    async def test_malformed_id(self, brands):
        """Should reject ids that are not ObjectIds before touching the database."""
        with pytest.raises(ValidationFailure):
            await brands.get_specific("not-an-id")

    @pytest.mark.asyncio
    async def test_filter_query_scopes_single_reads(self, collections):
        category = await collections.categories.insert({"name": "Phones"})
        subcategory = await collections.subcategories.insert({"name": "Android", "category": ObjectId()})

        operations = CRUD(collections.subcategories, QueryFeatureConfig())
        with pytest.raises(NotFoundError):
            await operations.get_specific(str(subcategory["_id"]), filter_query={"category": category["_id"]})


class TestEnsureExists:
    @pytest.mark.asyncio
    async def test_all_present(self, collections):
        brand = await collections.brands.insert({"name": "Acme"})
        await ensure_exists(collections.brands, [brand["_id"], brand["_id"]], "brand")

    @pytest.mark.asyncio
    async def test_missing_reference(self, collections):
        missing = ObjectId()
        with pytest.raises(ValidationFailure) as excinfo:
            await ensure_exists(collections.brands, [missing], "brand")
        assert str(missing) in excinfo.value.message
        assert excinfo.value.data == {"field": "brand"}

    @pytest.mark.asyncio
    async def test_scope(self, collections):
        category = await collections.categories.insert({"name": "Phones"})
        subcategory = await collections.subcategories.insert({"name": "Android", "category": category["_id"]})

        await ensure_exists(collections.subcategories, [subcategory["_id"]], "subcategory", scope={"category": category["_id"]})
        with pytest.raises(ValidationFailure):
            await ensure_exists(collections.subcategories, [subcategory["_id"]], "subcategory", scope={"category": ObjectId()})
