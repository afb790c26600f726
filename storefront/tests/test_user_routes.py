import io

import pytest
from bson import ObjectId
from PIL import Image

from storefront.config.paths import url_to_path
from storefront.db.collections import UserRoles

API = "/api/v1"
PASSWORD = "Str0ng#Password"


def png_bytes(size=(800, 600), color=(200, 30, 30)):
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def staff_headers(make_user, auth_headers):
    return auth_headers(make_user(email="admin@example.com", role=UserRoles.ADMIN))


class TestWishlist:
    def test_add_and_remove(self, client, collections, make_user, auth_headers):
        user = make_user()
        headers = auth_headers(user)
        product = str(collections.products.raw.insert_one({"title": "Phone X"}).inserted_id)

        added = client.post(f"{API}/wishlist", json={"productId": product}, headers=headers)
        assert added.status_code == 200
        assert added.json()["data"] == {"wishlist": [product], "message": "Product added to wishlist successfully"}

        again = client.post(f"{API}/wishlist", json={"productId": product}, headers=headers)
        assert again.json()["data"]["wishlist"] == [product]

        assert client.get(f"{API}/wishlist", headers=headers).json()["data"] == {"wishlist": [product]}

        removed = client.delete(f"{API}/wishlist/{product}", headers=headers)
        assert removed.json()["data"]["wishlist"] == []
        assert removed.json()["data"]["message"] == "Product removed from wishlist successfully"

    def test_unknown_product(self, client, make_user, auth_headers):
        response = client.post(f"{API}/wishlist", json={"productId": str(ObjectId())}, headers=auth_headers(make_user()))
        assert response.status_code == 400

    def test_staff_have_no_wishlist(self, client, staff_headers):
        assert client.get(f"{API}/wishlist", headers=staff_headers).status_code == 403


class TestAddresses:
    ADDRESS = {
        "alias": "home",
        "details": "12 Baker Street",
        "phone": "+44 20 7946 0958",
        "pincode": "10001",
        "city": "London",
        "state": "London",
        "country": "UK",
    }

    def test_add_get_remove(self, client, make_user, auth_headers):
        headers = auth_headers(make_user())

        added = client.post(f"{API}/addresses", json=self.ADDRESS, headers=headers)
        assert added.status_code == 200
        data = added.json()["data"]
        assert data["message"] == "New address added successfully"
        [address] = data["addresses"]
        assert address["city"] == "London"

        fetched = client.get(f"{API}/addresses/{address['_id']}", headers=headers)
        assert fetched.json()["data"]["alias"] == "home"

        assert client.get(f"{API}/addresses", headers=headers).json()["data"]["addresses"] == [address]

        removed = client.delete(f"{API}/addresses/{address['_id']}", headers=headers)
        assert removed.json()["data"] == {"addresses": [], "message": "address removed successfully"}

    def test_missing_address(self, client, make_user, auth_headers):
        response = client.get(f"{API}/addresses/{ObjectId()}", headers=auth_headers(make_user()))
        assert response.status_code == 400
        assert response.json()["data"]["message"] == "address not found"

    def test_invalid_address(self, client, make_user, auth_headers):
        response = client.post(f"{API}/addresses", json={**self.ADDRESS, "pincode": "abc"}, headers=auth_headers(make_user()))
        assert response.status_code == 400
        assert response.json()["data"]["errors"][0]["field"] == "pincode"


class TestUsers:
    def test_requires_staff(self, client, make_user, auth_headers):
        assert client.get(f"{API}/users", headers=auth_headers(make_user())).status_code == 403

    def test_create_with_avatar(self, client, collections, staff_headers):
        response = client.post(
            f"{API}/users",
            data={"name": "Bob", "email": "Bob@Example.com", "password": PASSWORD, "confirmPassword": PASSWORD, "role": "2"},
            files={"avatar": ("avatar.png", png_bytes(), "image/png")},
            headers=staff_headers,
        )

        assert response.status_code == 201, response.text
        user = response.json()["data"]
        assert user["email"] == "bob@example.com"
        assert user["role"] == int(UserRoles.MANAGER)
        assert "password" not in user
        assert user["avatar"].startswith("/images/avatar/")
        assert user["avatar"].endswith(".webp")

        stored = url_to_path(user["avatar"])
        assert stored.exists()
        with Image.open(stored) as image:
            assert image.format == "WEBP"
            assert image.size == (400, 400)

    def test_create_validation(self, client, staff_headers):
        response = client.post(
            f"{API}/users",
            data={"name": "Bob", "email": "not-an-email", "password": PASSWORD, "confirmPassword": PASSWORD},
            headers=staff_headers,
        )
        assert response.status_code == 400
        assert response.json()["data"]["errors"][0]["field"] == "email"

    def test_rejected_avatar_type(self, client, collections, staff_headers):
        response = client.post(
            f"{API}/users",
            data={"name": "Bob", "email": "bob@example.com", "password": PASSWORD, "confirmPassword": PASSWORD},
            files={"avatar": ("avatar.gif", b"GIF89a", "image/gif")},
            headers=staff_headers,
        )
        assert response.status_code == 400
        assert collections.users.raw.count_documents({"email": "bob@example.com"}) == 0

    def test_duplicate_email(self, client, make_user, staff_headers):
        make_user(email="bob@example.com")
        response = client.post(
            f"{API}/users",
            data={"name": "Bob", "email": "bob@example.com", "password": PASSWORD, "confirmPassword": PASSWORD},
            headers=staff_headers,
        )
        assert response.status_code == 409

    def test_update_and_list(self, client, make_user, staff_headers):
        user = make_user(email="bob@example.com")

        response = client.put(f"{API}/users/{user['_id']}", data={"name": "Robert"}, headers=staff_headers)
        assert response.status_code == 200
        assert response.json()["data"]["name"] == "Robert"

        listed = client.get(f"{API}/users", params={"keyword": "robert", "select": "password"}, headers=staff_headers)
        [found] = listed.json()["data"]["data"]
        assert found["email"] == "bob@example.com"
        assert "password" not in found

    def test_update_to_own_email(self, client, make_user, staff_headers):
        user = make_user(email="bob@example.com")
        response = client.put(f"{API}/users/{user['_id']}", data={"email": "bob@example.com"}, headers=staff_headers)
        assert response.status_code == 409
        assert response.json()["data"]["message"] == "User bob@example.com is already used in this account"

    def test_delete_removes_avatar(self, client, collections, staff_headers):
        created = client.post(
            f"{API}/users",
            data={"name": "Bob", "email": "bob@example.com", "password": PASSWORD, "confirmPassword": PASSWORD},
            files={"avatar": ("avatar.png", png_bytes(), "image/png")},
            headers=staff_headers,
        ).json()["data"]
        avatar = url_to_path(created["avatar"])
        assert avatar.exists()

        assert client.delete(f"{API}/users/{created['_id']}", headers=staff_headers).status_code == 204
        assert not avatar.exists()
