from bson import ObjectId

from storefront.db.mongo import CATEGORIES, PRODUCTS, seed_categories


def product_body(**overrides):
    body = {
        "name": "Linen Shirt",
        "description": "Breathable summer shirt",
        "price": 1499,
        "category": "men",
        "images": ["https://img.example/shirt.jpg"],
        "stock": 12,
        "sizes": ["M", "L"],
    }
    body.update(overrides)
    return body


def test_admin_creates_product(db, client, admin_headers):
    r = client.post("/products", json=product_body(discountPrice=999), headers=admin_headers)

    assert r.status_code == 201
    product = r.json()["product"]
    assert product["discountPrice"] == 999
    assert product["featured"] is False
    assert db[PRODUCTS].count_documents({"name": "Linen Shirt"}) == 1


def test_user_cannot_create_product(client, user_headers):
    r = client.post("/products", json=product_body(), headers=user_headers)

    assert r.status_code == 403


def test_discount_must_be_below_price(client, admin_headers):
    r = client.post("/products", json=product_body(discountPrice=1499), headers=admin_headers)

    assert r.status_code == 422
    assert r.json()["kind"] == "validation_error"


def test_product_needs_an_image_and_non_negative_stock(client, admin_headers):
    assert client.post("/products", json=product_body(images=[]), headers=admin_headers).status_code == 422
    assert client.post("/products", json=product_body(stock=-1), headers=admin_headers).status_code == 422
    assert client.post("/products", json=product_body(price=-1), headers=admin_headers).status_code == 422


def test_list_filters_and_paginates(client, make_product):
    make_product(price=300, category="women", name="Silk Saree", featured=True)
    make_product(price=800, category="women", name="Cotton Dupatta")
    make_product(price=1200, category="men", name="Denim Jacket")

    women = client.get("/products", params={"category": "women"}).json()
    assert women["pagination"] == {"total": 2, "page": 1, "pages": 1}

    cheap = client.get("/products", params={"maxPrice": 500}).json()["products"]
    assert [p["name"] for p in cheap] == ["Silk Saree"]

    mid = client.get("/products", params={"minPrice": 500, "maxPrice": 1000}).json()["products"]
    assert [p["name"] for p in mid] == ["Cotton Dupatta"]

    featured = client.get("/products", params={"featured": "true"}).json()["products"]
    assert [p["name"] for p in featured] == ["Silk Saree"]

    found = client.get("/products", params={"search": "denim"}).json()["products"]
    assert [p["name"] for p in found] == ["Denim Jacket"]

    page2 = client.get("/products", params={"limit": 2, "page": 2}).json()
    assert page2["pagination"] == {"total": 3, "page": 2, "pages": 2}
    # newest first
    assert [p["name"] for p in page2["products"]] == ["Silk Saree"]


def test_search_is_literal(client, make_product):
    make_product(name="Shirt (L)")

    assert client.get("/products", params={"search": "(L)"}).json()["pagination"]["total"] == 1
    assert client.get("/products", params={"search": ".*"}).json()["pagination"]["total"] == 0


def test_get_product(client, make_product):
    p = make_product()

    r = client.get(f"/products/{p['_id']}")

    assert r.status_code == 200
    assert r.json()["product"]["id"] == str(p["_id"])
    assert client.get(f"/products/{ObjectId()}").status_code == 404
    assert client.get("/products/xyz").status_code == 422


def test_update_checks_discount_against_merged_document(client, make_product, admin_headers):
    p = make_product(price=500, discountPrice=400)

    r = client.put(f"/products/{p['_id']}", json={"price": 300}, headers=admin_headers)
    assert r.status_code == 422

    r = client.put(f"/products/{p['_id']}", json={"price": 450, "stock": 20}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["product"]["price"] == 450
    assert r.json()["product"]["stock"] == 20
    assert r.json()["product"]["discountPrice"] == 400


def test_update_rejects_null_for_required_fields(db, client, make_product, admin_headers):
    p = make_product(price=500, discountPrice=400)

    r = client.put(f"/products/{p['_id']}", json={"price": None}, headers=admin_headers)
    assert r.status_code == 422
    assert r.json()["kind"] == "validation_error"

    r = client.put(f"/products/{p['_id']}", json={"name": None, "images": None}, headers=admin_headers)
    assert r.status_code == 422

    stored = db[PRODUCTS].find_one({"_id": p["_id"]})
    assert stored["price"] == 500
    assert stored["images"] == ["https://img.example/1.jpg"]


def test_update_can_clear_discount(client, make_product, admin_headers):
    p = make_product(price=500, discountPrice=400)

    r = client.put(f"/products/{p['_id']}", json={"discountPrice": None}, headers=admin_headers)

    assert r.status_code == 200
    assert r.json()["product"]["discountPrice"] is None


def test_update_missing_product(client, admin_headers):
    assert client.put(f"/products/{ObjectId()}", json={"stock": 1}, headers=admin_headers).status_code == 404


def test_delete_product(db, client, make_product, admin_headers, user_headers):
    p = make_product()

    assert client.delete(f"/products/{p['_id']}", headers=user_headers).status_code == 403
    assert client.delete(f"/products/{p['_id']}", headers=admin_headers).status_code == 200
    assert db[PRODUCTS].count_documents({}) == 0
    assert client.delete(f"/products/{p['_id']}", headers=admin_headers).status_code == 404


# --- categories ---

def test_seed_categories_only_once(db):
    assert seed_categories(db) == 5
    assert seed_categories(db) == 0
    assert db[CATEGORIES].find_one({"name": "Footwear"})["slug"] == "footwear"


def test_create_category_generates_unique_slug(db, client, admin_headers):
    db[CATEGORIES].insert_one({"name": "Mens Wear (archived)", "slug": "mens-wear"})

    r = client.post("/categories", json={"name": "Mens Wear"}, headers=admin_headers)

    assert r.status_code == 201
    assert r.json()["category"]["slug"] == "mens-wear-1"


def test_duplicate_category_name(client, admin_headers):
    client.post("/categories", json={"name": "Kids"}, headers=admin_headers)

    r = client.post("/categories", json={"name": "Kids"}, headers=admin_headers)

    assert r.status_code == 409


def test_list_categories(db, client, user_headers):
    seed_categories(db)

    r = client.get("/categories")

    names = [c["name"] for c in r.json()["categories"]]
    assert names == sorted(names)
    assert client.post("/categories", json={"name": "Bags"}, headers=user_headers).status_code == 403
