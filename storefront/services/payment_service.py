import logging

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from storefront.core.config import settings
from storefront.core.errors import ErrorKind, StoreError
from storefront.db.mongo import ORDERS, PAYMENT_INTENTS, to_public, utcnow
from storefront.models.schemas import (
    OrderStatus,
    PaymentFailureIn,
    PaymentIntentIn,
    PaymentStatus,
    PaymentVerifyIn,
)
from storefront.services.gateway import PaymentGateway, new_receipt_id, to_minor_units
from storefront.services.orders_service import check_order_access, find_order

logger = logging.getLogger(__name__)


def _require_pending(order: dict):
    status = order.get("paymentInfo", {}).get("paymentStatus")
    if status != PaymentStatus.PENDING.value:
        raise StoreError(ErrorKind.CONFLICT, f"Payment already {status}")


def create_payment_intent(db, gateway: PaymentGateway, user: dict, payload: PaymentIntentIn) -> dict:
    """
    Open a gateway order for a checkout.

    Every gateway order is recorded in ``payment_intents`` with the amount it
    was opened for. With ``orderId`` the amount is the stored order total and
    the intent is bound to that order straight away. Without it the intent
    stays unbound until ``POST /orders`` claims it for an order of exactly
    that total.
    """
    order = None
    if payload.order_id:
        order = find_order(db, payload.order_id)
        check_order_access(user, order)
        _require_pending(order)
        amount = order["totalAmount"]
    else:
        amount = payload.amount

    amount_minor = to_minor_units(amount)
    remote = gateway.create_order(amount_minor, settings.CURRENCY, new_receipt_id())
    charged = int(remote.get("amount", amount_minor))
    currency = remote.get("currency", settings.CURRENCY)

    now = utcnow()
    db[PAYMENT_INTENTS].insert_one({
        "gatewayOrderId": remote["id"],
        "userId": order["userId"] if order is not None else user["id"],
        "orderId": order["_id"] if order is not None else None,
        "amount": charged,
        "currency": currency,
        "createdAt": now,
        "updatedAt": now,
    })

    if order is not None:
        db[ORDERS].update_one(
            {"_id": order["_id"]},
            {"$set": {"paymentInfo.gatewayOrderId": remote["id"], "updatedAt": now}},
        )
        logger.info(f"Gateway order {remote['id']} linked to order {order['_id']}")

    return {"orderId": remote["id"], "amount": charged, "currency": currency}


def _require_matching_intent(db, order: dict, gateway_order_id: str):
    stored = order.get("paymentInfo", {}).get("gatewayOrderId")
    if not stored or stored != gateway_order_id:
        logger.warning(f"Gateway order {gateway_order_id} does not belong to order {order['_id']}")
        raise StoreError(ErrorKind.INVALID_SIGNATURE, "Payment does not belong to this order")

    intent = db[PAYMENT_INTENTS].find_one({"gatewayOrderId": stored, "orderId": order["_id"]})
    if intent is None or intent.get("amount") != to_minor_units(order["totalAmount"]):
        logger.warning(f"Gateway order {gateway_order_id} amount does not match order {order['_id']} total")
        raise StoreError(ErrorKind.INVALID_SIGNATURE, "Payment amount does not match order total")


def verify_payment(db, gateway: PaymentGateway, user: dict, payload: PaymentVerifyIn) -> dict:
    if not gateway.verify_signature(payload.gateway_order_id, payload.gateway_payment_id, payload.signature):
        logger.warning(f"Invalid payment signature for order {payload.order_id}")
        raise StoreError(ErrorKind.INVALID_SIGNATURE, "Invalid payment signature")

    order = find_order(db, payload.order_id)
    check_order_access(user, order)

    _require_matching_intent(db, order, payload.gateway_order_id)
    _require_pending(order)

    reused = db[ORDERS].find_one({"paymentInfo.gatewayPaymentId": payload.gateway_payment_id})
    if reused is not None:
        logger.warning(f"Replay of payment {payload.gateway_payment_id} against order {payload.order_id}")
        raise StoreError(ErrorKind.CONFLICT, "Payment already used")

    try:
        updated = db[ORDERS].find_one_and_update(
            {"_id": order["_id"], "paymentInfo.paymentStatus": PaymentStatus.PENDING.value},
            {"$set": {
                "paymentInfo.gatewayPaymentId": payload.gateway_payment_id,
                "paymentInfo.gatewaySignature": payload.signature,
                "paymentInfo.paymentStatus": PaymentStatus.COMPLETED.value,
                "orderStatus": OrderStatus.PROCESSING.value,
                "updatedAt": utcnow(),
            }},
            return_document=ReturnDocument.AFTER,
        )
    except DuplicateKeyError:
        # A concurrent verify recorded the same payment id first.
        logger.warning(f"Replay of payment {payload.gateway_payment_id} against order {payload.order_id}")
        raise StoreError(ErrorKind.CONFLICT, "Payment already used")
    if updated is None:
        raise StoreError(ErrorKind.CONFLICT, "Payment already settled")
    logger.info(f"Payment {payload.gateway_payment_id} verified for order {payload.order_id}")
    return to_public(updated)


def record_payment_failure(db, user: dict, payload: PaymentFailureIn) -> dict:
    order = find_order(db, payload.order_id)
    check_order_access(user, order)
    stored = order.get("paymentInfo", {}).get("gatewayOrderId")
    if payload.gateway_order_id and stored and stored != payload.gateway_order_id:
        raise StoreError(ErrorKind.VALIDATION_ERROR, "Gateway order does not belong to this order")
    _require_pending(order)

    updated = db[ORDERS].find_one_and_update(
        {"_id": order["_id"], "paymentInfo.paymentStatus": PaymentStatus.PENDING.value},
        {"$set": {
            "paymentInfo.paymentStatus": PaymentStatus.FAILED.value,
            "paymentInfo.failureReason": payload.reason,
            "updatedAt": utcnow(),
        }},
        return_document=ReturnDocument.AFTER,
    )
    if updated is None:
        raise StoreError(ErrorKind.CONFLICT, "Payment already settled")
    logger.info(f"Payment failed for order {payload.order_id}: {payload.reason}")
    return to_public(updated)
