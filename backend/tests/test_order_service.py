import pytest

from wholesale.extensions import db
from wholesale.models import Order, Product
from wholesale.services.cart_service import CartLine
from wholesale.services.fulfillment_service import CartValidationError
from wholesale.services.order_service import (
    OrderError,
    cancel_order,
    checkout,
    reorder,
    set_order_status,
)
from wholesale.services.payment_service import save_payment


def _reload(model, pk):
    db.session.expire_all()
    return db.session.get(model, pk)


class TestCheckout:
    def test_checkout_snapshots_split_and_total(self, make_product, wholesale_client):
        product = make_product(price=10.0, available_qty=5, purchase_price=6.0)

        order = checkout(wholesale_client.id, [CartLine(product.id, 8)])

        assert order.status == "ORDERED"
        assert order.paid_amount == 0
        assert order.total_amount == pytest.approx(79.1)
        assert order.order_number.startswith("ORD-")
        assert order.username == wholesale_client.username
        item = order.items[0]
        assert (item.stock_qty, item.factory_qty) == (5, 3)
        assert item.factory_discount_rate == pytest.approx(0.03)
        assert item.snapshot["sku"] == product.sku
        assert item.snapshot["purchase_price"] == 6.0

    def test_checkout_does_not_touch_inventory(self, make_product, wholesale_client):
        product = make_product(available_qty=5)
        checkout(wholesale_client.id, [CartLine(product.id, 3)])
        assert _reload(Product, product.id).available_qty == 5

    def test_empty_cart_is_noop(self, wholesale_client):
        assert checkout(wholesale_client.id, []) is None
        assert db.session.query(Order).count() == 0

    def test_unknown_client_raises(self, make_product):
        product = make_product()
        with pytest.raises(OrderError):
            checkout(9999, [CartLine(product.id, 1)])

    def test_unknown_product_raises(self, wholesale_client):
        with pytest.raises(OrderError):
            checkout(wholesale_client.id, [CartLine(9999, 1)])

    def test_variant_line_uses_variant_stock(self, make_product, wholesale_client):
        product = make_product(available_qty=1000, variants=[("A", "Navy", 4)])
        order = checkout(wholesale_client.id, [CartLine(product.id, 10, variant_id="A")])
        item = order.items[0]
        assert (item.stock_qty, item.factory_qty) == (4, 6)

    def test_stray_variant_id_is_dropped_for_plain_product(self, make_product, wholesale_client):
        product = make_product(available_qty=10)
        order = checkout(wholesale_client.id, [CartLine(product.id, 4, variant_id="A")])

        item = order.items[0]
        assert item.variant_id is None
        assert item.stock_qty == 4

        set_order_status(order.id, "CONFIRMED")
        assert _reload(Product, product.id).available_qty == 6

        set_order_status(order.id, "CANCELLED")
        assert _reload(Product, product.id).available_qty == 10

    def test_below_moq_line_rejected(self, make_product, wholesale_client):
        product = make_product(moq=50, available_qty=100)
        with pytest.raises(CartValidationError):
            checkout(wholesale_client.id, [CartLine(product.id, 1)])
        assert db.session.query(Order).count() == 0

    @pytest.mark.parametrize("variant_id", [None, "Z"])
    def test_variant_product_requires_known_variant(self, make_product, wholesale_client, variant_id):
        product = make_product(variants=[("A", "Navy", 10)])
        with pytest.raises(CartValidationError):
            checkout(wholesale_client.id, [CartLine(product.id, 5, variant_id=variant_id)])
        assert db.session.query(Order).count() == 0

    def test_snapshot_survives_product_edit(self, make_product, wholesale_client):
        product = make_product(price=10.0, available_qty=10)
        order = checkout(wholesale_client.id, [CartLine(product.id, 2)])

        product.price = 99.0
        db.session.commit()

        order = _reload(Order, order.id)
        assert order.items[0].snapshot["price"] == 10.0
        assert order.total_amount == pytest.approx(20.0)


class TestStatusTransitions:
    def test_confirm_commits_snapshotted_stock_qty(self, make_product, wholesale_client):
        product = make_product(available_qty=5)
        order = checkout(wholesale_client.id, [CartLine(product.id, 8)])

        set_order_status(order.id, "CONFIRMED")

        assert _reload(Product, product.id).available_qty == 0

    def test_committed_to_committed_does_not_reapply(self, make_product, wholesale_client):
        product = make_product(available_qty=10)
        order = checkout(wholesale_client.id, [CartLine(product.id, 4)])

        set_order_status(order.id, "PRODUCTION")
        set_order_status(order.id, "TRANSIT")
        set_order_status(order.id, "CONFIRMED")

        assert _reload(Product, product.id).available_qty == 6

    def test_repeated_same_status_is_noop(self, make_product, wholesale_client):
        product = make_product(available_qty=10)
        order = checkout(wholesale_client.id, [CartLine(product.id, 4)])

        set_order_status(order.id, "CONFIRMED")
        set_order_status(order.id, "CONFIRMED")

        assert _reload(Product, product.id).available_qty == 6

    def test_cancelling_ordered_changes_no_counters(self, make_product, wholesale_client):
        product = make_product(available_qty=10, reserved_qty=2)
        order = checkout(wholesale_client.id, [CartLine(product.id, 4)])

        assert cancel_order(order.id) is True

        product = _reload(Product, product.id)
        assert (product.available_qty, product.reserved_qty) == (10, 2)
        assert _reload(Order, order.id).status == "CANCELLED"

    def test_cancelling_confirmed_restores_committed_stock(self, make_product, wholesale_client):
        product = make_product(available_qty=5)
        order = checkout(wholesale_client.id, [CartLine(product.id, 8)])
        set_order_status(order.id, "CONFIRMED")

        set_order_status(order.id, "CANCELLED")

        assert _reload(Product, product.id).available_qty == 5

    def test_variant_stock_moves_without_touching_product_counters(self, make_product, wholesale_client):
        product = make_product(available_qty=50, variants=[("A", "Navy", 6)])
        order = checkout(wholesale_client.id, [CartLine(product.id, 4, variant_id="A")])

        set_order_status(order.id, "CONFIRMED")

        product = _reload(Product, product.id)
        assert product.find_variant("A").stock == 2
        assert product.available_qty == 50

    def test_deleted_product_is_skipped_on_commit(self, db_session, make_product, wholesale_client):
        product = make_product(available_qty=5)
        order = checkout(wholesale_client.id, [CartLine(product.id, 2)])
        db_session.delete(product)
        db_session.commit()

        order = set_order_status(order.id, "CONFIRMED")
        assert order.status == "CONFIRMED"

    def test_invalid_status_rejected(self, make_product, wholesale_client):
        product = make_product(available_qty=5)
        order = checkout(wholesale_client.id, [CartLine(product.id, 1)])
        with pytest.raises(OrderError):
            set_order_status(order.id, "LOST")

    def test_status_change_updates_timestamp(self, make_product, wholesale_client):
        product = make_product(available_qty=5)
        order = checkout(wholesale_client.id, [CartLine(product.id, 1)])
        before = order.status_updated_at

        order = set_order_status(order.id, "TRANSIT")
        assert order.status_updated_at >= before


class TestCancelOrder:
    def test_only_ordered_can_be_cancelled_by_client(self, make_product, wholesale_client):
        product = make_product(available_qty=5)
        order = checkout(wholesale_client.id, [CartLine(product.id, 1)])
        set_order_status(order.id, "CONFIRMED")

        assert cancel_order(order.id) is False
        assert _reload(Order, order.id).status == "CONFIRMED"

    def test_other_clients_order_cannot_be_cancelled(self, make_product, make_client, wholesale_client):
        other = make_client()
        product = make_product(available_qty=5)
        order = checkout(wholesale_client.id, [CartLine(product.id, 1)])

        assert cancel_order(order.id, client_id=other.id) is False
        assert cancel_order(order.id, client_id=wholesale_client.id) is True

    def test_unknown_order(self):
        assert cancel_order(12345) is False


def test_confirm_pay_cancel_scenario(make_product, wholesale_client):
    """ORDERED -> CONFIRMED, pay 40, cancel: stock returns and the order leaves the balance."""
    product = make_product(price=10.0, available_qty=10)
    order = checkout(wholesale_client.id, [CartLine(product.id, 10)])
    assert order.total_amount == pytest.approx(100.0)

    set_order_status(order.id, "CONFIRMED")
    assert _reload(Product, product.id).available_qty == 0

    save_payment(order.id, 40)
    set_order_status(order.id, "CANCELLED")

    order = _reload(Order, order.id)
    assert _reload(Product, product.id).available_qty == 10
    assert order.paid_amount == pytest.approx(40.0)
    assert len(order.payment_proofs) == 1
    assert db.session.get(type(wholesale_client), wholesale_client.id).balance == pytest.approx(0.0)


def test_reorder_merges_into_cart(make_product, wholesale_client):
    p1 = make_product(available_qty=100)
    p2 = make_product(available_qty=100)
    order = checkout(wholesale_client.id, [CartLine(p1.id, 10, force_factory=True), CartLine(p2.id, 3)])

    cart = reorder(order.id, [CartLine(p1.id, 5)])

    assert cart == [CartLine(p1.id, 15, force_factory=True), CartLine(p2.id, 3)]


def test_reorder_skips_deleted_products(db_session, make_product, wholesale_client):
    p1 = make_product(available_qty=100)
    p2 = make_product(available_qty=100)
    order = checkout(wholesale_client.id, [CartLine(p1.id, 10), CartLine(p2.id, 3)])
    p2_id = p2.id
    db_session.delete(p2)
    db_session.commit()

    cart = reorder(order.id, [])

    assert [line.product_id for line in cart] == [p1.id]
    assert p2_id not in {line.product_id for line in cart}
