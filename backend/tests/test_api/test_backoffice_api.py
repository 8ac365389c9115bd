"""
API tests for accounts, custom designs, orders, payments and the AI endpoints
"""
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from luster.domain.design import DesignComment
from luster.domain.order import CheckoutQuote, QuotedItem
from luster.domain.user import User
from luster.services.chatbot import ChatResult
from luster.services.errors import AccessDeniedError, ContentGenerationError, PaymentError, ValidationError


CHECKOUT_BODY = {
    "customer_name": "Asha Rao",
    "customer_email": "asha@example.com",
    "shipping_address": {
        "address_line1": "12 Banjara Hills",
        "city": "Hyderabad",
        "postal_code": "500034",
        "country": "in",
    },
    "currency": "INR",
    "items": [{"product_id": 10, "client_price": 120000}],
}


@pytest.fixture
def checkout_quote():
    return CheckoutQuote(
        currency="INR",
        items=[QuotedItem(product_id=10, price=120000, client_price=120000)],
        subtotal=120000,
        shipping=1500,
        total=121500,
        advance=60750,
        balance=60750,
        exchange_rate=80.0,
    )


@pytest.fixture
def checkout_service(checkout_quote, sample_order):
    service = MagicMock()
    service.quote = AsyncMock(return_value=checkout_quote)
    service.place_order = AsyncMock(return_value=(sample_order, checkout_quote))
    return service


# ============================================================================
# Authentication
# ============================================================================

class TestAuthEndpoints:

    @patch('luster.api.auth.UserRepository')
    def test_register(self, mock_repo_cls, client):
        mock_repo_cls.return_value.exists.return_value = False
        mock_repo_cls.return_value.create.return_value = User(id=7, username="asha", email="asha@example.com")

        response = client.post("/api/auth/register", json={
            "username": "asha", "email": "asha@example.com", "password": "secret123",
        })

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["token_type"] == "bearer"
        assert data["user"]["role"] == "customer"
        password_hash = mock_repo_cls.return_value.create.call_args[0][2]
        assert password_hash != "secret123"

    @patch('luster.api.auth.UserRepository')
    def test_register_existing_user(self, mock_repo_cls, client):
        mock_repo_cls.return_value.exists.return_value = True
        response = client.post("/api/auth/register", json={
            "username": "asha", "email": "asha@example.com", "password": "secret123",
        })
        assert response.status_code == 400

    def test_register_rejects_bad_email(self, client):
        response = client.post("/api/auth/register", json={
            "username": "asha", "email": "not-an-email", "password": "secret123",
        })
        assert response.status_code == 422

    @patch('luster.api.auth.verify_password', return_value=False)
    @patch('luster.api.auth.UserRepository')
    def test_login_wrong_password(self, mock_repo_cls, mock_verify, client):
        mock_repo_cls.return_value.find_by_login.return_value = (
            User(id=7, username="asha", email="asha@example.com"), "hash"
        )
        response = client.post("/api/auth/login", json={"username": "asha", "password": "wrong"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid username or password"

    @patch('luster.api.auth.UserRepository')
    def test_login_attempts_are_limited(self, mock_repo_cls, client):
        mock_repo_cls.return_value.find_by_login.return_value = None

        statuses = [
            client.post("/api/auth/login", json={"username": "asha", "password": "guess"}).status_code
            for _ in range(11)
        ]

        assert statuses[:10] == [401] * 10
        assert statuses[10] == 429

    @patch('luster.api.auth.verify_password', return_value=True)
    @patch('luster.api.auth.UserRepository')
    def test_login(self, mock_repo_cls, mock_verify, client):
        mock_repo_cls.return_value.find_by_login.return_value = (
            User(id=7, username="asha", email="asha@example.com"), "hash"
        )
        response = client.post("/api/auth/login", json={"username": "asha@example.com", "password": "secret123"})
        assert response.status_code == 200
        assert response.json()["data"]["access_token"]

    @patch('luster.api.auth.UserRepository')
    def test_me(self, mock_repo_cls, client, customer_headers):
        mock_repo_cls.return_value.find_by_id.return_value = User(id=7, username="asha", email="asha@example.com")
        response = client.get("/api/auth/me", headers=customer_headers)
        assert response.json()["data"]["username"] == "asha"
        mock_repo_cls.return_value.find_by_id.assert_called_once_with(7)

    def test_me_with_invalid_token(self, client):
        response = client.get("/api/auth/me", headers={"Authorization": "Bearer nonsense"})
        assert response.status_code == 401

    def test_users_requires_admin(self, client, customer_headers):
        assert client.get("/api/auth/users", headers=customer_headers).status_code == 403


# ============================================================================
# Custom designs
# ============================================================================

class TestCustomDesignEndpoints:

    @patch('luster.api.custom_designs.DesignRepository')
    def test_create(self, mock_repo_cls, client, customer_headers, sample_design):
        mock_repo_cls.return_value.create.return_value = sample_design

        response = client.post("/api/custom-designs/", headers=customer_headers, json={
            "full_name": "Asha Rao",
            "email": "asha@example.com",
            "metal_type": "22K Gold",
            "primary_stones": ["Emerald"],
            "image_urls": ["https://cdn.example.com/ref1.jpg"],
        })

        assert response.status_code == 201
        assert mock_repo_cls.return_value.create.call_args[0][0] == 7

    def test_create_requires_image(self, client, customer_headers):
        response = client.post("/api/custom-designs/", headers=customer_headers, json={
            "full_name": "Asha Rao",
            "email": "asha@example.com",
            "metal_type": "22K Gold",
            "primary_stones": ["Emerald"],
            "image_urls": ["  "],
        })
        assert response.status_code == 422

    def test_create_requires_login(self, client):
        assert client.post("/api/custom-designs/", json={}).status_code == 401

    @patch('luster.api.custom_designs.DesignRepository')
    def test_owner_can_read(self, mock_repo_cls, client, customer_headers, sample_design):
        mock_repo_cls.return_value.find_by_id.return_value = sample_design
        response = client.get("/api/custom-designs/3", headers=customer_headers)
        assert response.status_code == 200
        mock_repo_cls.return_value.find_by_id.assert_called_once_with(3, with_comments=True)

    @patch('luster.api.custom_designs.DesignRepository')
    def test_other_customer_is_forbidden(self, mock_repo_cls, client, sample_design):
        from luster.core.auth import create_access_token
        other = create_access_token(8, "ravi@example.com", "ravi", "customer")
        mock_repo_cls.return_value.find_by_id.return_value = sample_design

        response = client.get("/api/custom-designs/3", headers={"Authorization": f"Bearer {other}"})
        assert response.status_code == 403

    @patch('luster.api.custom_designs.DesignRepository')
    def test_admin_update_status(self, mock_repo_cls, client, admin_headers, sample_design):
        mock_repo_cls.return_value.update.return_value = sample_design.model_copy(update={"status": "design_started"})

        response = client.put("/api/custom-designs/3", headers=admin_headers, json={"status": "design_started"})

        assert response.status_code == 200
        mock_repo_cls.return_value.update.assert_called_once_with(3, {"status": "design_started"})

    def test_admin_update_rejects_unknown_status(self, client, admin_headers):
        response = client.put("/api/custom-designs/3", headers=admin_headers, json={"status": "shipped"})
        assert response.status_code == 422

    @patch('luster.api.custom_designs.DesignRepository')
    def test_admin_comment(self, mock_repo_cls, client, admin_headers, sample_design):
        mock_repo_cls.return_value.find_by_id.return_value = sample_design
        mock_repo_cls.return_value.add_comment.return_value = DesignComment(
            id=1, design_request_id=3, content="First sketch attached", created_by="admin", is_admin=True
        )

        response = client.post("/api/custom-designs/3/comments", headers=admin_headers,
                               json={"content": "  First sketch attached "})

        assert response.status_code == 201
        mock_repo_cls.return_value.add_comment.assert_called_once_with(
            3, "First sketch attached", created_by="admin", is_admin=True
        )


# ============================================================================
# Orders
# ============================================================================

class TestOrderEndpoints:

    def test_quote(self, client, checkout_service):
        with patch('luster.api.orders.get_checkout_service', return_value=checkout_service):
            response = client.post("/api/orders/checkout/quote", json=CHECKOUT_BODY)

        assert response.status_code == 200
        assert response.json()["data"]["total"] == 121500
        request = checkout_service.quote.call_args[0][0]
        assert request.shipping_address.country == "IN"

    def test_quote_country_mismatch(self, client, checkout_service):
        checkout_service.quote.side_effect = ValidationError("INR orders must ship to IN")
        with patch('luster.api.orders.get_checkout_service', return_value=checkout_service):
            response = client.post("/api/orders/checkout/quote", json=CHECKOUT_BODY)
        assert response.status_code == 400

    def test_quote_passes_the_caller(self, client, checkout_service, customer_headers):
        with patch('luster.api.orders.get_checkout_service', return_value=checkout_service):
            client.post("/api/orders/checkout/quote", json=CHECKOUT_BODY, headers=customer_headers)
        assert checkout_service.quote.call_args[0][1].id == 7

    def test_quote_for_someone_elses_design(self, client, checkout_service, customer_headers):
        checkout_service.quote.side_effect = AccessDeniedError("Design request 3 belongs to another customer")
        with patch('luster.api.orders.get_checkout_service', return_value=checkout_service):
            response = client.post("/api/orders/checkout/quote", json=CHECKOUT_BODY, headers=customer_headers)
        assert response.status_code == 403

    def test_quote_rejects_currency(self, client):
        body = dict(CHECKOUT_BODY, currency="EUR")
        assert client.post("/api/orders/checkout/quote", json=body).status_code == 422

    def test_guest_checkout(self, client, checkout_service):
        with patch('luster.api.orders.get_checkout_service', return_value=checkout_service):
            response = client.post("/api/orders/", json=CHECKOUT_BODY)

        assert response.status_code == 201
        assert response.json()["data"]["amount_due"] == 60750
        assert checkout_service.place_order.call_args[0][0] is None

    def test_checkout_with_account(self, client, checkout_service, customer_headers):
        with patch('luster.api.orders.get_checkout_service', return_value=checkout_service):
            client.post("/api/orders/", json=CHECKOUT_BODY, headers=customer_headers)
        assert checkout_service.place_order.call_args[0][0].id == 7

    @patch('luster.api.orders.OrderRepository')
    def test_get_own_order(self, mock_repo_cls, client, customer_headers, sample_order):
        mock_repo_cls.return_value.find_by_id.return_value = sample_order
        data = client.get("/api/orders/21", headers=customer_headers).json()["data"]
        assert data["amount_due"] == 60750

    @patch('luster.api.orders.OrderRepository')
    def test_get_someone_elses_order(self, mock_repo_cls, client, customer_headers, sample_order):
        mock_repo_cls.return_value.find_by_id.return_value = sample_order.model_copy(update={"user_id": 99})
        assert client.get("/api/orders/21", headers=customer_headers).status_code == 403

    @patch('luster.api.orders.OrderRepository')
    def test_my_orders(self, mock_repo_cls, client, customer_headers, sample_order):
        mock_repo_cls.return_value.find_all.return_value = ([sample_order], 1)
        body = client.get("/api/orders/mine", headers=customer_headers).json()
        assert body["count"] == 1
        mock_repo_cls.return_value.find_all.assert_called_once_with(user_id=7, limit=500)

    @patch('luster.api.orders.OrderRepository')
    def test_admin_status_update(self, mock_repo_cls, client, admin_headers, sample_order):
        mock_repo_cls.return_value.update.return_value = sample_order.model_copy(update={"order_status": "shipped"})

        response = client.put("/api/orders/21/status", headers=admin_headers, json={"order_status": "shipped"})

        assert response.json()["data"]["order_status"] == "shipped"
        mock_repo_cls.return_value.update.assert_called_once_with(21, {"order_status": "shipped"})

    def test_admin_status_update_empty(self, client, admin_headers):
        assert client.put("/api/orders/21/status", headers=admin_headers, json={}).status_code == 400

    def test_admin_status_update_invalid(self, client, admin_headers):
        response = client.put("/api/orders/21/status", headers=admin_headers, json={"payment_status": "paid"})
        assert response.status_code == 422


# ============================================================================
# Payments
# ============================================================================

class TestPaymentEndpoints:

    def test_client_id_not_configured(self, client):
        assert client.get("/api/payments/paypal/client-id").status_code == 503

    @patch('luster.api.payments.settings')
    def test_client_id(self, mock_settings, client):
        mock_settings.PAYPAL_CLIENT_ID = "sandbox-client"
        mock_settings.PAYPAL_MODE = "sandbox"
        data = client.get("/api/payments/paypal/client-id").json()["data"]
        assert data == {"client_id": "sandbox-client", "mode": "sandbox"}

    @patch('luster.api.payments.get_payment_service')
    @patch('luster.api.payments.OrderRepository')
    def test_start_advance(self, mock_repo_cls, mock_service, client, customer_headers, sample_order):
        mock_repo_cls.return_value.find_by_id.return_value = sample_order
        mock_service.return_value.start_order_payment = AsyncMock(return_value={
            "order_id": 21, "stage": "advance", "amount": 60750, "currency": "INR",
            "paypal_order_id": "PP-1", "approve_url": "https://www.sandbox.paypal.com/checkoutnow?token=PP-1",
        })

        response = client.post("/api/payments/orders/21/start", json={}, headers=customer_headers)

        assert response.status_code == 200
        assert response.json()["data"]["amount"] == 60750
        mock_service.return_value.start_order_payment.assert_awaited_once_with(21, "advance")

    @patch('luster.api.payments.OrderRepository')
    def test_start_requires_owner_login(self, mock_repo_cls, client, sample_order):
        mock_repo_cls.return_value.find_by_id.return_value = sample_order
        assert client.post("/api/payments/orders/21/start", json={}).status_code == 401

    @patch('luster.api.payments.get_payment_service')
    @patch('luster.api.payments.OrderRepository')
    def test_guest_order_capture(self, mock_repo_cls, mock_service, client, sample_order):
        guest_order = sample_order.model_copy(update={"user_id": None})
        mock_repo_cls.return_value.find_by_id.return_value = guest_order
        mock_service.return_value.capture_order_payment = AsyncMock(
            return_value=guest_order.model_copy(update={"payment_status": "advance_paid"})
        )

        response = client.post("/api/payments/orders/21/capture", json={"paypal_order_id": "PP-1"})

        assert response.json()["data"]["payment_status"] == "advance_paid"

    @patch('luster.api.payments.get_payment_service')
    @patch('luster.api.payments.OrderRepository')
    def test_capture_declined(self, mock_repo_cls, mock_service, client, customer_headers, sample_order):
        mock_repo_cls.return_value.find_by_id.return_value = sample_order
        mock_service.return_value.capture_order_payment = AsyncMock(
            side_effect=PaymentError("PayPal payment not completed (status: DECLINED)")
        )

        response = client.post("/api/payments/orders/21/capture", json={"paypal_order_id": "PP-1"},
                               headers=customer_headers)

        assert response.status_code == 402

    @patch('luster.api.payments.get_payment_service')
    @patch('luster.api.payments.DesignRepository')
    def test_consultation_start(self, mock_repo_cls, mock_service, client, customer_headers, sample_design):
        mock_repo_cls.return_value.find_by_id.return_value = sample_design
        mock_service.return_value.start_consultation_payment = AsyncMock(return_value={
            "design_request_id": 3, "amount": 150, "currency": "USD",
            "paypal_order_id": "PP-2", "approve_url": "https://paypal.test/PP-2",
        })

        response = client.post("/api/payments/consultations/3/start", json={}, headers=customer_headers)

        assert response.json()["data"]["amount"] == 150
        mock_service.return_value.start_consultation_payment.assert_awaited_once_with(3, "USD")

    def test_cancel(self, client):
        data = client.get("/api/payments/cancel", params={"token": "PP-9"}).json()["data"]
        assert data == {"cancelled": True, "paypal_order_id": "PP-9"}


# ============================================================================
# AI content and chat
# ============================================================================

class TestContentEndpoints:

    def test_requires_admin(self, client, customer_headers):
        response = client.post("/api/content/generate", headers=customer_headers,
                               json={"product_type": "Ring", "metal_type": "18K Gold"})
        assert response.status_code == 403

    @patch('luster.api.content.get_content_generator_service')
    def test_generate(self, mock_service, client, admin_headers):
        mock_service.return_value.generate_product_content = AsyncMock(return_value={
            "title": "Midnight Bloom", "tagline": "t", "short_description": "s",
            "detailed_description": "d", "price_usd": None, "price_inr": None,
        })

        response = client.post("/api/content/generate", headers=admin_headers,
                               json={"product_type": "Ring", "metal_type": "18K Gold"})

        assert response.json()["data"]["title"] == "Midnight Bloom"

    @patch('luster.api.content.get_content_generator_service')
    def test_not_configured(self, mock_service, client, admin_headers):
        mock_service.return_value.generate_testimonial.side_effect = ContentGenerationError(
            "AI content generation is not configured", configured=False
        )

        response = client.post("/api/content/testimonial", headers=admin_headers,
                               json={"name": "Asha", "product_type": "Ring", "text": "Loved it"})

        assert response.status_code == 503

    @patch('luster.api.content.get_content_generator_service')
    def test_bad_ai_response(self, mock_service, client, admin_headers):
        mock_service.return_value.regenerate_for_product = AsyncMock(
            side_effect=ContentGenerationError("AI response is not valid JSON")
        )
        assert client.post("/api/content/regenerate/10", headers=admin_headers).status_code == 502


class TestChatEndpoints:

    @patch('luster.api.chat.get_chatbot_service')
    def test_chat(self, mock_service, client):
        mock_service.return_value.reply.return_value = ChatResult(
            response="Our polki necklaces start at INR 95,000.",
            tools_used=["search_products"],
            model="claude-test",
            input_tokens=1000,
            output_tokens=200,
        )

        response = client.post("/api/chat", json={
            "message": "Do you have polki necklaces?",
            "history": [{"role": "user", "content": "Hi"}, {"role": "assistant", "content": "Hello!"}],
        })

        body = response.json()
        assert body["success"] is True
        assert body["tools_used"] == ["search_products"]
        assert body["usage"]["total_tokens"] == 1200
        assert len(mock_service.return_value.reply.call_args.kwargs["history"]) == 2

    @patch('luster.api.chat.get_chatbot_service')
    def test_chat_fallback(self, mock_service, client):
        mock_service.return_value.reply.return_value = ChatResult(
            response="unavailable", tools_used=[], model="claude-test", fallback=True
        )
        body = client.post("/api/chat", json={"message": "Hello"}).json()
        assert body["success"] is False
        assert body["fallback"] is True

    def test_chat_rejects_long_message(self, client):
        assert client.post("/api/chat", json={"message": "x" * 1001}).status_code == 422

    def test_chat_health(self, client):
        assert client.get("/api/chat/health").json()["status"] == "not_configured"

    @patch('luster.api.chat.get_chatbot_service')
    def test_chat_rate_limited(self, mock_service, client):
        mock_service.return_value.reply.return_value = ChatResult(response="ok", tools_used=[], model="m")

        statuses = [client.post("/api/chat", json={"message": "Hi"}).status_code for _ in range(21)]

        assert statuses[:20] == [200] * 20
        assert statuses[20] == 429
