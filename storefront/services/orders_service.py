"""
Order creation, reads and administrative status changes.

Stock is reserved with a conditional decrement per line (``stock >= qty``
in the same update) before the order document is written. When a later
step fails, every decrement already applied is given back with ``$inc``.
"""
import logging
from decimal import Decimal
from typing import List, Optional

from bson import ObjectId
from pymongo import DESCENDING, ReturnDocument

from storefront.core.errors import ErrorKind, StoreError
from storefront.core.permissions import ORDERS_READ_ALL
from storefront.db.mongo import ORDERS, PAYMENT_INTENTS, PRODUCTS, parse_object_id, to_public, utcnow
from storefront.models.schemas import OrderCreate, OrderStatus, PaymentStatus
from storefront.services.gateway import to_minor_units

logger = logging.getLogger(__name__)


def effective_price(product: dict) -> Decimal:
    discount = product.get("discountPrice")
    if discount is not None:
        return Decimal(str(discount))
    return Decimal(str(product.get("price", 0)))


def _load_products(db, payload: OrderCreate) -> dict:
    products = {}
    for item in payload.items:
        if item.product_id in products:
            continue
        oid = parse_object_id(item.product_id, "product id")
        product = db[PRODUCTS].find_one({"_id": oid})
        if not product:
            raise StoreError(ErrorKind.NOT_FOUND, f"Product not found: {item.product_id}")
        products[item.product_id] = product
    return products


def _check_stock(payload: OrderCreate, products: dict):
    # Lines may repeat a product with different size/color.
    wanted = {}
    for item in payload.items:
        wanted[item.product_id] = wanted.get(item.product_id, 0) + item.quantity
    for product_id, qty in wanted.items():
        product = products[product_id]
        if qty > product.get("stock", 0):
            raise StoreError(ErrorKind.INSUFFICIENT_STOCK, f"Insufficient stock for {product.get('name', product_id)}")


def _release_stock(db, reserved: List[tuple]):
    for oid, qty in reversed(reserved):
        db[PRODUCTS].update_one({"_id": oid}, {"$inc": {"stock": qty}})
        logger.warning(f"Released {qty} units of product {oid}")


def _reserve_stock(db, payload: OrderCreate, products: dict) -> List[tuple]:
    reserved = []
    for item in payload.items:
        oid = products[item.product_id]["_id"]
        updated = db[PRODUCTS].find_one_and_update(
            {"_id": oid, "stock": {"$gte": item.quantity}},
            {"$inc": {"stock": -item.quantity}, "$set": {"updatedAt": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            # Another checkout took the stock after our check.
            _release_stock(db, reserved)
            name = products[item.product_id].get("name", item.product_id)
            raise StoreError(ErrorKind.INSUFFICIENT_STOCK, f"Insufficient stock for {name}")
        reserved.append((oid, item.quantity))
    return reserved


def _claim_payment_intent(db, user: dict, gateway_order_id: str, order_id: ObjectId, total: Decimal):
    """Bind a gateway order opened by this user, for exactly ``total``, to the new order."""
    intent = db[PAYMENT_INTENTS].find_one_and_update(
        {
            "gatewayOrderId": gateway_order_id,
            "userId": user["id"],
            "orderId": None,
            "amount": to_minor_units(total),
        },
        {"$set": {"orderId": order_id, "updatedAt": utcnow()}},
    )
    if intent is None:
        logger.warning(f"Rejected gateway order {gateway_order_id} for user {user['id']} total={total}")
        raise StoreError(ErrorKind.VALIDATION_ERROR, "gatewayOrderId does not match a payment for this order total")


def _unclaim_payment_intent(db, gateway_order_id: str, order_id: ObjectId):
    db[PAYMENT_INTENTS].update_one(
        {"gatewayOrderId": gateway_order_id, "orderId": order_id},
        {"$set": {"orderId": None, "updatedAt": utcnow()}},
    )


def create_order(db, user: dict, payload: OrderCreate) -> dict:
    products = _load_products(db, payload)
    _check_stock(payload, products)

    total = Decimal(0)
    items = []
    for item in payload.items:
        product = products[item.product_id]
        price = effective_price(product)
        if item.price is not None and Decimal(str(item.price)) != price:
            logger.warning(
                f"Client price {item.price} for product {item.product_id} differs from catalog price {price}; using catalog price"
            )
        total += price * item.quantity
        items.append({
            "product": item.product_id,
            "name": product.get("name"),
            "quantity": item.quantity,
            "price": float(price),
            "size": item.size,
            "color": item.color,
        })

    total = total.quantize(Decimal("0.01"))
    oid = ObjectId()
    if payload.gateway_order_id:
        _claim_payment_intent(db, user, payload.gateway_order_id, oid, total)

    try:
        reserved = _reserve_stock(db, payload, products)
    except StoreError:
        if payload.gateway_order_id:
            _unclaim_payment_intent(db, payload.gateway_order_id, oid)
        raise

    now = utcnow()
    order = {
        "_id": oid,
        "userId": user["id"],
        "items": items,
        "totalAmount": float(total),
        "shippingAddress": payload.shipping_address.model_dump(by_alias=True),
        "paymentInfo": {
            "gatewayOrderId": payload.gateway_order_id,
            "paymentStatus": PaymentStatus.PENDING.value,
        },
        "orderStatus": OrderStatus.PENDING.value,
        "createdAt": now,
        "updatedAt": now,
    }
    try:
        result = db[ORDERS].insert_one(order)
    except Exception:
        logger.exception("Order insert failed; releasing reserved stock")
        _release_stock(db, reserved)
        if payload.gateway_order_id:
            _unclaim_payment_intent(db, payload.gateway_order_id, oid)
        raise
    logger.info(f"Order {result.inserted_id} created for user {user['id']} total={order['totalAmount']}")
    return to_public(order)


def list_orders(db, user: dict, status: Optional[str] = None) -> list:
    query = {}
    if ORDERS_READ_ALL not in user["capabilities"]:
        query["userId"] = user["id"]
    if status:
        query["orderStatus"] = status
    docs = db[ORDERS].find(query).sort("createdAt", DESCENDING)
    return [to_public(d) for d in docs]


def find_order(db, order_id: str) -> dict:
    oid = parse_object_id(order_id, "order id")
    order = db[ORDERS].find_one({"_id": oid})
    if not order:
        raise StoreError(ErrorKind.NOT_FOUND, "Order not found")
    return order


def check_order_access(user: dict, order: dict):
    if order.get("userId") != user["id"] and ORDERS_READ_ALL not in user["capabilities"]:
        raise StoreError(ErrorKind.FORBIDDEN, "Forbidden")


def get_order(db, user: dict, order_id: str) -> dict:
    order = find_order(db, order_id)
    check_order_access(user, order)
    return to_public(order)


def update_order_status(db, order_id: str, order_status: OrderStatus) -> dict:
    # No transition rules: an administrator may set any status.
    oid = parse_object_id(order_id, "order id")
    order = db[ORDERS].find_one_and_update(
        {"_id": oid},
        {"$set": {"orderStatus": order_status.value, "updatedAt": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    if not order:
        raise StoreError(ErrorKind.NOT_FOUND, "Order not found")
    logger.info(f"Order {order_id} status set to {order_status.value}")
    return to_public(order)
