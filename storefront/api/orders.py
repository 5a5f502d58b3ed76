from typing import Optional

from fastapi import APIRouter, Depends, status

from storefront.api.deps import get_current_user, require_permission
from storefront.core.permissions import ORDERS_CREATE, ORDERS_READ_OWN, ORDERS_UPDATE_STATUS
from storefront.db.mongo import get_db
from storefront.models.schemas import OrderCreate, OrderStatus, OrderStatusUpdate
from storefront.services import orders_service

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
def create_order(payload: OrderCreate, user=Depends(require_permission(ORDERS_CREATE)), db=Depends(get_db)):
    order = orders_service.create_order(db, user, payload)
    return {"success": True, "order": order}


@router.get("")
def list_orders(
    status: Optional[OrderStatus] = None,
    user=Depends(require_permission(ORDERS_READ_OWN)),
    db=Depends(get_db),
):
    orders = orders_service.list_orders(db, user, status.value if status else None)
    return {"success": True, "orders": orders}


@router.get("/{order_id}")
def get_order(order_id: str, user=Depends(get_current_user), db=Depends(get_db)):
    return {"success": True, "order": orders_service.get_order(db, user, order_id)}


@router.put("/{order_id}")
def update_order(
    order_id: str,
    payload: OrderStatusUpdate,
    admin=Depends(require_permission(ORDERS_UPDATE_STATUS)),
    db=Depends(get_db),
):
    order = orders_service.update_order_status(db, order_id, payload.order_status)
    return {"success": True, "order": order}
