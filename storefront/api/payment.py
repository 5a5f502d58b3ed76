from fastapi import APIRouter, Depends

from storefront.api.deps import require_permission
from storefront.core.permissions import PAYMENTS_CREATE, PAYMENTS_VERIFY
from storefront.db.mongo import get_db
from storefront.models.schemas import PaymentFailureIn, PaymentIntentIn, PaymentVerifyIn
from storefront.services import payment_service
from storefront.services.gateway import get_gateway

router = APIRouter()


@router.post("/create-order")
def create_payment_order(
    payload: PaymentIntentIn,
    user=Depends(require_permission(PAYMENTS_CREATE)),
    db=Depends(get_db),
    gateway=Depends(get_gateway),
):
    intent = payment_service.create_payment_intent(db, gateway, user, payload)
    return {"success": True, **intent}


@router.post("/verify")
def verify_payment(
    payload: PaymentVerifyIn,
    user=Depends(require_permission(PAYMENTS_VERIFY)),
    db=Depends(get_db),
    gateway=Depends(get_gateway),
):
    order = payment_service.verify_payment(db, gateway, user, payload)
    return {"success": True, "message": "Payment verified successfully", "order": order}


@router.post("/failure")
def report_payment_failure(
    payload: PaymentFailureIn,
    user=Depends(require_permission(PAYMENTS_VERIFY)),
    db=Depends(get_db),
):
    order = payment_service.record_payment_failure(db, user, payload)
    return {"success": True, "order": order}
