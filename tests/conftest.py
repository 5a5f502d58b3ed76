from datetime import datetime, timedelta, timezone

import mongomock
import pytest
from fastapi.testclient import TestClient

from storefront.core.security import compute_payment_signature, create_token
from storefront.db.mongo import ORDERS, PRODUCTS, get_db
from storefront.main import app
from storefront.services.gateway import PaymentGateway, get_gateway

GATEWAY_SECRET = "test_gateway_secret"


class FakeGateway(PaymentGateway):
    def __init__(self):
        super().__init__("rzp_test_key", GATEWAY_SECRET)
        self.calls = []

    def create_order(self, amount_minor, currency, receipt):
        self.calls.append({"amount": amount_minor, "currency": currency, "receipt": receipt})
        return {"id": f"order_gw_{len(self.calls)}", "amount": amount_minor, "currency": currency}


@pytest.fixture
def db():
    return mongomock.MongoClient()["storefront_test"]


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def client(db, gateway):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_gateway] = lambda: gateway
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth(user_id, role="user"):
    return {"Authorization": f"Bearer {create_token(user_id, role=role)}"}


@pytest.fixture
def user_headers():
    return auth("user-1")


@pytest.fixture
def other_headers():
    return auth("user-2")


@pytest.fixture
def admin_headers():
    return auth("admin-1", role="admin")


@pytest.fixture
def make_product(db):
    counter = {"n": 0}

    def _make(price=500.0, stock=5, **extra):
        counter["n"] += 1
        now = datetime.now(timezone.utc) + timedelta(seconds=counter["n"])
        doc = {
            "name": f"Product {counter['n']}",
            "description": "Cotton kurta",
            "price": price,
            "category": "men",
            "images": ["https://img.example/1.jpg"],
            "stock": stock,
            "sizes": [],
            "colors": [],
            "featured": False,
            "createdAt": now,
            "updatedAt": now,
        }
        doc.update(extra)
        db[PRODUCTS].insert_one(doc)
        return doc

    return _make


@pytest.fixture
def address():
    return {
        "name": "Asha Rao",
        "phone": "9876543210",
        "street": "12 MG Road",
        "city": "Bengaluru",
        "state": "Karnataka",
        "pincode": "560001",
        "country": "India",
    }


@pytest.fixture
def place_order(client, address):
    def _place(headers, items, **extra):
        body = {"items": items, "shippingAddress": address, **extra}
        return client.post("/orders", json=body, headers=headers)

    return _place


def stock_of(db, product):
    return db[PRODUCTS].find_one({"_id": product["_id"]})["stock"]


def order_doc(db, order_id):
    from bson import ObjectId
    return db[ORDERS].find_one({"_id": ObjectId(order_id)})


def sign(gateway_order_id, gateway_payment_id):
    return compute_payment_signature(gateway_order_id, gateway_payment_id, GATEWAY_SECRET)
