from fastapi import APIRouter, Depends, status
from pymongo import ASCENDING
from slugify import slugify

from storefront.api.deps import require_permission
from storefront.core.errors import ErrorKind, StoreError
from storefront.core.permissions import CATEGORIES_WRITE
from storefront.db.mongo import CATEGORIES, get_db, to_public, utcnow
from storefront.models.schemas import CategoryIn

router = APIRouter()


@router.get("")
def list_categories(db=Depends(get_db)):
    docs = db[CATEGORIES].find({}).sort("name", ASCENDING)
    return {"success": True, "categories": [to_public(d) for d in docs]}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_category(payload: CategoryIn, admin=Depends(require_permission(CATEGORIES_WRITE)), db=Depends(get_db)):
    name = payload.name.strip()
    if db[CATEGORIES].find_one({"name": name}):
        raise StoreError(ErrorKind.CONFLICT, "Category already exists")

    # "Mens Wear" -> "mens-wear", then mens-wear-1, mens-wear-2 ...
    base_slug = slugify(name) or "category"
    slug = base_slug
    counter = 1
    while db[CATEGORIES].find_one({"slug": slug}):
        slug = f"{base_slug}-{counter}"
        counter += 1

    now = utcnow()
    doc = {
        "name": name,
        "slug": slug,
        "description": payload.description,
        "image": payload.image,
        "createdAt": now,
        "updatedAt": now,
    }
    result = db[CATEGORIES].insert_one(doc)
    doc["_id"] = result.inserted_id
    return {"success": True, "category": to_public(doc)}
