"""
PayPal REST Connector
Handles order creation and capture against the PayPal Orders v2 API
"""
import logging
from typing import Dict, Optional

import httpx

from luster.core.config import settings

logger = logging.getLogger(__name__)


class PayPalConnector:
    """
    Connector for the PayPal REST API

    Handles:
    - OAuth2 client-credentials token
    - Create order (intent CAPTURE)
    - Capture an approved order
    """

    def __init__(
        self,
        client_id: str = None,
        client_secret: str = None,
        base_url: str = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize PayPal connector

        Args:
            client_id: REST app client id
            client_secret: REST app secret
            base_url: https://api-m.sandbox.paypal.com or https://api-m.paypal.com
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.client_id = client_id or settings.PAYPAL_CLIENT_ID
        self.client_secret = client_secret or settings.PAYPAL_CLIENT_SECRET
        self.base_url = (base_url or settings.paypal_base_url).rstrip("/")
        self._transport = transport

        if not self.client_id or not self.client_secret:
            raise ValueError("PayPal credentials not configured. Set PAYPAL_CLIENT_ID and PAYPAL_CLIENT_SECRET")

    async def _get_access_token(self, client: httpx.AsyncClient) -> str:
        response = await client.post(
            f"{self.base_url}/v1/oauth2/token",
            data={"grant_type": "client_credentials"},
            auth=(self.client_id, self.client_secret),
            headers={"Accept": "application/json"},
            timeout=30.0
        )
        response.raise_for_status()

        token = response.json().get("access_token")
        if not token:
            raise ValueError("PayPal token response missing access_token")
        return token

    async def _make_request(self, method: str, path: str, json: Dict = None) -> Dict:
        async with httpx.AsyncClient(transport=self._transport) as client:
            try:
                token = await self._get_access_token(client)
                response = await client.request(
                    method,
                    f"{self.base_url}{path}",
                    json=json,
                    headers={
                        "Authorization": f"Bearer {token}",
                        "Content-Type": "application/json",
                    },
                    timeout=30.0
                )
                response.raise_for_status()
                return response.json()

            except httpx.HTTPStatusError as e:
                logger.error(f"PayPal API error: {e.response.status_code} - {e.response.text}")
                raise
            except httpx.RequestError as e:
                logger.error(f"PayPal request error: {e}")
                raise

    async def create_order(
        self,
        amount: int,
        currency: str,
        reference_id: str,
        description: str,
        return_url: str = None,
        cancel_url: str = None,
    ) -> Dict:
        """
        Create a PayPal order

        Returns:
            Dict with id, status and approve_url
        """
        payload = {
            "intent": "CAPTURE",
            "purchase_units": [{
                "reference_id": reference_id,
                "description": description,
                "amount": {
                    "currency_code": currency,
                    "value": f"{amount:.2f}",
                },
            }],
            "application_context": {
                "brand_name": "Luster Legacy",
                "user_action": "PAY_NOW",
                "return_url": return_url or f"{settings.FRONTEND_URL}/payment/success",
                "cancel_url": cancel_url or f"{settings.FRONTEND_URL}/payment/cancel",
            },
        }

        data = await self._make_request("POST", "/v2/checkout/orders", json=payload)

        approve_url = next(
            (link.get("href") for link in data.get("links", []) if link.get("rel") in ("approve", "payer-action")),
            None
        )
        logger.info(f"PayPal order {data.get('id')} created for {reference_id} ({amount} {currency})")

        return {
            "id": data.get("id"),
            "status": data.get("status"),
            "approve_url": approve_url,
        }

    async def capture_order(self, paypal_order_id: str) -> Dict:
        """
        Capture an approved PayPal order

        Returns:
            Dict with id, status, capture_id, reference_id, amount (decimal
            string as sent by PayPal) and currency
        """
        data = await self._make_request("POST", f"/v2/checkout/orders/{paypal_order_id}/capture", json={})

        capture_id = None
        reference_id = None
        amount = None
        currency = None
        units = data.get("purchase_units") or []
        if units:
            reference_id = units[0].get("reference_id")
            captures = (units[0].get("payments") or {}).get("captures") or []
            if captures:
                capture_id = captures[0].get("id")
                captured = captures[0].get("amount") or {}
                amount = captured.get("value")
                currency = captured.get("currency_code")

        logger.info(f"PayPal order {paypal_order_id} captured: {data.get('status')} ({amount} {currency})")

        return {
            "id": data.get("id"),
            "status": data.get("status"),
            "capture_id": capture_id,
            "reference_id": reference_id,
            "amount": amount,
            "currency": currency,
        }
