"""
Client for the hosted payment gateway (Razorpay-compatible REST API).

Only order creation happens server to gateway; payment completion arrives
from the browser and is checked with ``verify_payment_signature``.
"""
import logging
import time
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

import httpx

from storefront.core.config import settings
from storefront.core.errors import ErrorKind, StoreError
from storefront.core.security import verify_payment_signature

logger = logging.getLogger(__name__)


def to_minor_units(amount) -> int:
    """Major currency units -> minor units (rupees -> paise)."""
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def new_receipt_id() -> str:
    return f"receipt_{int(time.time() * 1000)}"


class PaymentGateway:
    def __init__(
        self,
        key_id: str,
        key_secret: str,
        base_url: str = "https://api.razorpay.com/v1",
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.key_id = key_id
        self.key_secret = key_secret
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def create_order(self, amount_minor: int, currency: str, receipt: str) -> dict:
        payload = {"amount": amount_minor, "currency": currency, "receipt": receipt}
        with httpx.Client(
            base_url=self.base_url,
            auth=(self.key_id, self.key_secret),
            timeout=self.timeout,
            transport=self.transport,
        ) as client:
            try:
                r = client.post("/orders", json=payload)
            except httpx.HTTPError as e:
                logger.error(f"Gateway network error: {e}")
                raise StoreError(ErrorKind.UPSTREAM_GATEWAY_ERROR, "Payment gateway unreachable")
        if r.status_code >= 400:
            logger.error(f"Gateway rejected order ({r.status_code}): {r.text[:200]}")
            raise StoreError(ErrorKind.UPSTREAM_GATEWAY_ERROR, f"Payment gateway error: {r.status_code}")
        try:
            data = r.json()
        except ValueError:
            raise StoreError(ErrorKind.UPSTREAM_GATEWAY_ERROR, "Payment gateway returned invalid JSON")
        if not data.get("id"):
            raise StoreError(ErrorKind.UPSTREAM_GATEWAY_ERROR, "Payment gateway returned no order id")
        return data

    def verify_signature(self, gateway_order_id: str, gateway_payment_id: str, signature: str) -> bool:
        return verify_payment_signature(gateway_order_id, gateway_payment_id, signature, self.key_secret)


gateway = None


def get_gateway() -> PaymentGateway:
    global gateway
    if gateway is None:
        gateway = PaymentGateway(
            settings.GATEWAY_KEY_ID,
            settings.GATEWAY_KEY_SECRET,
            base_url=settings.GATEWAY_BASE_URL,
            timeout=settings.GATEWAY_TIMEOUT,
        )
    return gateway
