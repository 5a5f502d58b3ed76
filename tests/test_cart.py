import pytest

from storefront.cart import Cart, CartItem, CartStore
from storefront.core.errors import ErrorKind, StoreError
from storefront.models.schemas import OrderCreate, ShippingAddress


def shirt(quantity=1, size="M", price=500, stock=5):
    return CartItem(product_id="p1", name="Linen Shirt", price=price, quantity=quantity, size=size, stock=stock)


def test_add_merges_same_variant_and_keeps_other_variants_apart():
    cart = Cart()
    cart.add(shirt(1))
    cart.add(shirt(2))
    cart.add(shirt(1, size="L"))

    assert [(i.size, i.quantity) for i in cart.items] == [("M", 3), ("L", 1)]
    assert cart.total_items == 4
    assert cart.total_price == 2000


def test_add_beyond_stock_is_rejected():
    cart = Cart()
    cart.add(shirt(4))

    with pytest.raises(StoreError) as exc:
        cart.add(shirt(2))

    assert exc.value.kind == ErrorKind.INSUFFICIENT_STOCK
    assert cart.items[0].quantity == 4


def test_update_quantity_and_remove():
    cart = Cart()
    cart.add(shirt(1))
    cart.add(shirt(1, size="L"))

    cart.update_quantity("p1", 3, size="M")
    assert cart.items[0].quantity == 3

    cart.update_quantity("p1", 0, size="L")
    assert [i.size for i in cart.items] == ["M"]

    cart.remove("p1", size="M")
    assert cart.items == []


def test_update_quantity_unknown_line():
    with pytest.raises(StoreError) as exc:
        Cart().update_quantity("nope", 2)
    assert exc.value.kind == ErrorKind.NOT_FOUND


def test_summary_charges_shipping_below_threshold():
    cart = Cart()
    cart.add(shirt(1, price=500))

    s = cart.summary()

    assert (s.subtotal, s.shipping, s.tax, s.total) == (500, 50, 90, 640)


def test_summary_free_shipping_above_threshold():
    cart = Cart()
    cart.add(shirt(2, price=500))

    s = cart.summary()

    assert (s.subtotal, s.shipping, s.tax, s.total) == (1000, 0, 180, 1180)


def test_empty_cart_summary_is_zero():
    assert Cart().summary().total == 0


def test_checkout_payload_is_a_valid_order_request():
    cart = Cart()
    cart.add(shirt(2))
    address = ShippingAddress(
        name="Asha", phone="98", street="MG Road", city="Pune", state="MH", pincode="411001", country="India"
    )

    payload = cart.to_checkout_payload(address, gateway_order_id="order_gw_1")
    order = OrderCreate.model_validate(payload)

    assert order.items[0].product_id == "p1"
    assert order.items[0].quantity == 2
    assert order.gateway_order_id == "order_gw_1"
    assert payload["shippingAddress"]["pincode"] == "411001"


def test_empty_cart_cannot_check_out():
    address = ShippingAddress(name="A", phone="1", street="S", city="C", state="S", pincode="1", country="IN")
    with pytest.raises(StoreError):
        Cart().to_checkout_payload(address)


def test_store_round_trip(tmp_path):
    store = CartStore(tmp_path / "cart.json")
    cart = Cart()
    cart.add(shirt(2))
    store.save(cart)

    loaded = store.load()

    assert loaded.items[0].quantity == 2
    assert loaded.items[0].product_id == "p1"

    store.clear()
    assert store.load().items == []


def test_store_ignores_corrupt_file(tmp_path):
    path = tmp_path / "cart.json"
    path.write_text("{not json", encoding="utf-8")

    assert CartStore(path).load().items == []
