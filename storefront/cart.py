"""
Client-side cart.

The server never stores carts: a client keeps one of these, persists it with
``CartStore`` (its "local storage") and only submits the contents at checkout
via ``Cart.to_checkout_payload``.
"""
import json
import logging
from decimal import Decimal, ROUND_HALF_UP
from pathlib import Path
from typing import List, Optional

from pydantic import Field, ValidationError

from storefront.core.errors import ErrorKind, StoreError
from storefront.models.schemas import CamelModel, ShippingAddress

logger = logging.getLogger(__name__)

FREE_SHIPPING_THRESHOLD = Decimal("999")
SHIPPING_FEE = Decimal("50")
TAX_RATE = Decimal("0.18")


def _money(value: Decimal) -> float:
    return float(value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


class CartItem(CamelModel):
    product_id: str
    name: str
    price: float = Field(..., ge=0)
    quantity: int = Field(..., ge=1)
    image: str = ""
    size: Optional[str] = None
    color: Optional[str] = None
    stock: int = Field(..., ge=0)

    def same_line(self, product_id: str, size: Optional[str], color: Optional[str]) -> bool:
        return self.product_id == product_id and self.size == size and self.color == color


class CartSummary(CamelModel):
    subtotal: float
    shipping: float
    tax: float
    total: float


class Cart(CamelModel):
    items: List[CartItem] = []

    @property
    def total_items(self) -> int:
        return sum(i.quantity for i in self.items)

    @property
    def total_price(self) -> float:
        return _money(self._subtotal())

    def _subtotal(self) -> Decimal:
        return sum((Decimal(str(i.price)) * i.quantity for i in self.items), Decimal(0))

    def _find(self, product_id: str, size: Optional[str], color: Optional[str]) -> Optional[CartItem]:
        for item in self.items:
            if item.same_line(product_id, size, color):
                return item
        return None

    def add(self, item: CartItem) -> CartItem:
        existing = self._find(item.product_id, item.size, item.color)
        quantity = item.quantity + (existing.quantity if existing else 0)
        if quantity > item.stock:
            raise StoreError(ErrorKind.INSUFFICIENT_STOCK, f"Only {item.stock} of {item.name} available")
        if existing:
            existing.quantity = quantity
            existing.stock = item.stock
            return existing
        self.items.append(item)
        return item

    def remove(self, product_id: str, size: Optional[str] = None, color: Optional[str] = None):
        self.items = [i for i in self.items if not i.same_line(product_id, size, color)]

    def update_quantity(self, product_id: str, quantity: int, size: Optional[str] = None, color: Optional[str] = None):
        if quantity <= 0:
            self.remove(product_id, size, color)
            return
        item = self._find(product_id, size, color)
        if item is None:
            raise StoreError(ErrorKind.NOT_FOUND, f"{product_id} is not in the cart")
        if quantity > item.stock:
            raise StoreError(ErrorKind.INSUFFICIENT_STOCK, f"Only {item.stock} of {item.name} available")
        item.quantity = quantity

    def clear(self):
        self.items = []

    def summary(self) -> CartSummary:
        """Display totals. Shipping is free above the threshold; tax is GST on the subtotal."""
        subtotal = self._subtotal()
        shipping = Decimal(0) if subtotal > FREE_SHIPPING_THRESHOLD else SHIPPING_FEE
        if not self.items:
            shipping = Decimal(0)
        tax = subtotal * TAX_RATE
        return CartSummary(
            subtotal=_money(subtotal),
            shipping=_money(shipping),
            tax=_money(tax),
            total=_money(subtotal + shipping + tax),
        )

    def to_checkout_payload(self, shipping_address: ShippingAddress, gateway_order_id: Optional[str] = None) -> dict:
        """Body for ``POST /orders``."""
        if not self.items:
            raise StoreError(ErrorKind.VALIDATION_ERROR, "Cart is empty")
        payload = {
            "items": [
                {
                    "productId": i.product_id,
                    "quantity": i.quantity,
                    "price": i.price,
                    "size": i.size,
                    "color": i.color,
                }
                for i in self.items
            ],
            "shippingAddress": shipping_address.model_dump(by_alias=True),
        }
        if gateway_order_id:
            payload["gatewayOrderId"] = gateway_order_id
        return payload


class CartStore:
    """Persists one cart as JSON on disk."""

    def __init__(self, path):
        self.path = Path(path)

    def load(self) -> Cart:
        if not self.path.exists():
            return Cart()
        try:
            return Cart.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (ValidationError, ValueError) as e:
            logger.warning(f"Discarding unreadable cart at {self.path}: {e}")
            return Cart()

    def save(self, cart: Cart):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(cart.model_dump(by_alias=True)), encoding="utf-8")

    def clear(self):
        if self.path.exists():
            self.path.unlink()
