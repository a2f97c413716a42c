"""Tests for Cart API endpoints."""

import httpx
import pytest

from storefront.infrastructure.config import settings


def tee_payload(quantity: int = 1, size: str = "M", color: str = "Black") -> dict:
    return {
        "productId": "prod-tee",
        "quantity": quantity,
        "variant": {"size": size, "color": color},
    }


class TestGetCart:
    """Tests for GET /cart."""

    async def test_first_access_returns_empty_cart(
        self, client: httpx.AsyncClient, auth_headers
    ) -> None:
        response = await client.get("/cart", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Cart retrieved successfully"
        cart = body["data"]["cart"]
        assert cart["userId"] == "user-123"
        assert cart["items"] == []
        assert cart["itemCount"] == 0
        assert cart["subtotal"] == 0.0
        assert cart["shipping"] == 99.0
        assert cart["currency"] == "INR"

    async def test_requires_user_header(self, client: httpx.AsyncClient) -> None:
        response = await client.get(
            "/cart", headers={"Authorization": f"Bearer {settings.storefront_api_key}"}
        )

        assert response.status_code == 401
        assert response.json()["errorCode"] == "UNAUTHENTICATED"

    async def test_carts_are_per_user(
        self, client: httpx.AsyncClient, tee, auth_headers, other_user_headers
    ) -> None:
        await client.post("/cart/items", json=tee_payload(), headers=auth_headers)

        response = await client.get("/cart", headers=other_user_headers)

        assert response.json()["data"]["cart"]["items"] == []


class TestCartItems:
    """Tests for adding, updating and removing items."""

    async def test_add_item(self, client: httpx.AsyncClient, tee, auth_headers) -> None:
        response = await client.post("/cart/items", json=tee_payload(2), headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Item added to cart"
        cart = body["data"]["cart"]
        (item,) = cart["items"]
        assert item["productId"] == "prod-tee"
        assert item["name"] == "Classic Tee"
        assert item["variant"] == {"size": "M", "color": "Black", "sku": "TEE-M-BLK"}
        assert item["price"] == 500.0
        assert item["lineTotal"] == 1000.0
        assert cart["subtotal"] == 1000.0
        assert cart["tax"] == 180.0
        assert cart["shipping"] == 0.0
        assert cart["total"] == 1180.0

    async def test_quantity_defaults_to_one(
        self, client: httpx.AsyncClient, tee, auth_headers
    ) -> None:
        payload = {"productId": "prod-tee", "variant": {"size": "M", "color": "Black"}}

        response = await client.post("/cart/items", json=payload, headers=auth_headers)

        assert response.json()["data"]["cart"]["itemCount"] == 1

    async def test_out_of_stock(self, client: httpx.AsyncClient, tee, auth_headers) -> None:
        response = await client.post(
            "/cart/items", json=tee_payload(2, "L", "White"), headers=auth_headers
        )

        assert response.status_code == 409
        body = response.json()
        assert body["errorCode"] == "INSUFFICIENT_STOCK"
        assert body["details"]["available"] == 1

    async def test_unknown_product(self, client: httpx.AsyncClient, auth_headers) -> None:
        response = await client.post("/cart/items", json=tee_payload(), headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["errorCode"] == "NOT_FOUND"

    @pytest.mark.parametrize("quantity", [0, 11])
    async def test_quantity_out_of_range(
        self, client: httpx.AsyncClient, tee, auth_headers, quantity: int
    ) -> None:
        response = await client.post(
            "/cart/items", json=tee_payload(quantity), headers=auth_headers
        )

        assert response.status_code == 422
        body = response.json()
        assert body["errorCode"] == "VALIDATION_ERROR"
        assert body["details"][0]["field"] == "quantity"

    async def test_update_and_remove(self, client: httpx.AsyncClient, tee, auth_headers) -> None:
        added = await client.post("/cart/items", json=tee_payload(), headers=auth_headers)
        item_id = added.json()["data"]["cart"]["items"][0]["id"]

        updated = await client.put(
            f"/cart/items/{item_id}", json={"quantity": 3}, headers=auth_headers
        )
        removed = await client.delete(f"/cart/items/{item_id}", headers=auth_headers)

        assert updated.json()["message"] == "Cart updated"
        assert updated.json()["data"]["cart"]["items"][0]["quantity"] == 3
        assert removed.json()["message"] == "Item removed from cart"
        assert removed.json()["data"]["cart"]["items"] == []

    async def test_update_to_zero_removes(
        self, client: httpx.AsyncClient, tee, auth_headers
    ) -> None:
        added = await client.post("/cart/items", json=tee_payload(), headers=auth_headers)
        item_id = added.json()["data"]["cart"]["items"][0]["id"]

        response = await client.put(
            f"/cart/items/{item_id}", json={"quantity": 0}, headers=auth_headers
        )

        assert response.json()["data"]["cart"]["itemCount"] == 0

    async def test_unknown_item(self, client: httpx.AsyncClient, tee, auth_headers) -> None:
        await client.post("/cart/items", json=tee_payload(), headers=auth_headers)

        response = await client.delete("/cart/items/missing", headers=auth_headers)

        assert response.status_code == 404

    async def test_clear_cart(self, client: httpx.AsyncClient, tee, auth_headers) -> None:
        await client.post("/cart/items", json=tee_payload(2), headers=auth_headers)

        response = await client.delete("/cart", headers=auth_headers)

        assert response.json()["message"] == "Cart cleared"
        assert response.json()["data"]["cart"]["items"] == []


class TestCoupons:
    """Tests for coupon endpoints."""

    async def test_apply_coupon(self, client: httpx.AsyncClient, tee, auth_headers) -> None:
        await client.post("/cart/items", json=tee_payload(2), headers=auth_headers)

        response = await client.post(
            "/cart/apply-coupon", json={"couponCode": "SAVE20"}, headers=auth_headers
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Coupon applied! 20% off"
        assert body["data"]["cart"]["couponCode"] == "SAVE20"
        assert body["data"]["cart"]["discount"] == 200.0

    async def test_unknown_coupon(self, client: httpx.AsyncClient, tee, auth_headers) -> None:
        await client.post("/cart/items", json=tee_payload(), headers=auth_headers)

        response = await client.post(
            "/cart/apply-coupon", json={"couponCode": "BOGUS"}, headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json()["errorCode"] == "INVALID_COUPON"

    async def test_remove_coupon(self, client: httpx.AsyncClient, tee, auth_headers) -> None:
        await client.post("/cart/items", json=tee_payload(2), headers=auth_headers)
        await client.post(
            "/cart/apply-coupon", json={"couponCode": "FIRST10"}, headers=auth_headers
        )

        response = await client.delete("/cart/coupon", headers=auth_headers)

        assert response.json()["message"] == "Coupon removed"
        assert response.json()["data"]["cart"]["couponCode"] is None
        assert response.json()["data"]["cart"]["total"] == 1180.0
