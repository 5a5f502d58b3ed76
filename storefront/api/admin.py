from fastapi import APIRouter, Depends
from pymongo import DESCENDING

from storefront.api.deps import require_permission
from storefront.core.config import settings
from storefront.core.permissions import ADMIN_STATS
from storefront.db.mongo import ORDERS, PRODUCTS, get_db, to_public
from storefront.models.schemas import PaymentStatus

router = APIRouter()


@router.get("/stats")
def stats(admin=Depends(require_permission(ADMIN_STATS)), db=Depends(get_db)):
    paid = db[ORDERS].find({"paymentInfo.paymentStatus": PaymentStatus.COMPLETED.value}, {"totalAmount": 1})
    revenue = round(sum(o.get("totalAmount", 0) for o in paid), 2)
    recent = db[ORDERS].find({}).sort("createdAt", DESCENDING).limit(5)
    low_stock = db[PRODUCTS].find({"stock": {"$lt": settings.LOW_STOCK_THRESHOLD}}).sort("stock", 1).limit(5)
    return {
        "success": True,
        "totalOrders": db[ORDERS].count_documents({}),
        "totalRevenue": revenue,
        "totalProducts": db[PRODUCTS].count_documents({}),
        "recentOrders": [to_public(o) for o in recent],
        "lowStockProducts": [to_public(p) for p in low_stock],
    }
