import math
import re
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from pymongo import DESCENDING, ReturnDocument

from storefront.api.deps import require_permission
from storefront.core.errors import ErrorKind, StoreError
from storefront.core.permissions import PRODUCTS_WRITE
from storefront.db.mongo import PRODUCTS, get_db, parse_object_id, to_public, utcnow
from storefront.models.schemas import ProductIn, ProductUpdate

router = APIRouter()


@router.get("")
def list_products(
    category: Optional[str] = None,
    search: Optional[str] = None,
    min_price: Optional[float] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[float] = Query(None, alias="maxPrice", ge=0),
    featured: Optional[bool] = None,
    limit: int = Query(20, ge=1, le=100),
    page: int = Query(1, ge=1),
    db=Depends(get_db),
):
    query = {}
    if category:
        query["category"] = category
    if search:
        pattern = {"$regex": re.escape(search), "$options": "i"}
        query["$or"] = [{"name": pattern}, {"description": pattern}]
    price_filter = {}
    if min_price is not None:
        price_filter["$gte"] = min_price
    if max_price is not None:
        price_filter["$lte"] = max_price
    if price_filter:
        query["price"] = price_filter
    if featured:
        query["featured"] = True

    skip = (page - 1) * limit
    docs = db[PRODUCTS].find(query).sort("createdAt", DESCENDING).skip(skip).limit(limit)
    total = db[PRODUCTS].count_documents(query)
    return {
        "success": True,
        "products": [to_public(d) for d in docs],
        "pagination": {"total": total, "page": page, "pages": math.ceil(total / limit)},
    }


@router.post("", status_code=status.HTTP_201_CREATED)
def create_product(payload: ProductIn, admin=Depends(require_permission(PRODUCTS_WRITE)), db=Depends(get_db)):
    now = utcnow()
    doc = payload.model_dump(by_alias=True)
    doc.update({"createdAt": now, "updatedAt": now})
    result = db[PRODUCTS].insert_one(doc)
    doc["_id"] = result.inserted_id
    return {"success": True, "product": to_public(doc)}


@router.get("/{product_id}")
def get_product(product_id: str, db=Depends(get_db)):
    doc = db[PRODUCTS].find_one({"_id": parse_object_id(product_id, "product id")})
    if not doc:
        raise StoreError(ErrorKind.NOT_FOUND, "Product not found")
    return {"success": True, "product": to_public(doc)}


@router.put("/{product_id}")
def update_product(
    product_id: str,
    payload: ProductUpdate,
    admin=Depends(require_permission(PRODUCTS_WRITE)),
    db=Depends(get_db),
):
    oid = parse_object_id(product_id, "product id")
    current = db[PRODUCTS].find_one({"_id": oid})
    if not current:
        raise StoreError(ErrorKind.NOT_FOUND, "Product not found")

    changes = payload.model_dump(by_alias=True, exclude_unset=True)
    merged = {**current, **changes}
    discount = merged.get("discountPrice")
    if discount is not None and discount >= merged.get("price", 0):
        raise StoreError(ErrorKind.VALIDATION_ERROR, "discountPrice must be less than price")

    changes["updatedAt"] = utcnow()
    doc = db[PRODUCTS].find_one_and_update({"_id": oid}, {"$set": changes}, return_document=ReturnDocument.AFTER)
    return {"success": True, "product": to_public(doc)}


@router.delete("/{product_id}")
def delete_product(product_id: str, admin=Depends(require_permission(PRODUCTS_WRITE)), db=Depends(get_db)):
    res = db[PRODUCTS].delete_one({"_id": parse_object_id(product_id, "product id")})
    if res.deleted_count == 0:
        raise StoreError(ErrorKind.NOT_FOUND, "Product not found")
    return {"success": True, "deleted": True}
