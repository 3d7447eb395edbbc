"""HTTP-level tests through the Flask test client."""

import re

import pytest

from wholesale.services.export_service import UTF8_BOM


def test_health(client, db_session):
    resp = client.get("/health")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["status"] == "healthy"
    assert set(body["checks"]["database"]["details"]) == {"products", "clients", "orders"}


class TestProducts:
    def test_create_and_duplicate_sku(self, client, db_session):
        payload = {"sku": "FAB-9", "title": "Twill", "type": "FABRIC", "price": 4.5,
                   "variants": [{"id": "A", "name": "Navy", "stock": -3}]}

        resp = client.post("/api/products", json=payload)
        assert resp.status_code == 201
        created = resp.get_json()
        assert created["sku"] == "FAB-9"
        assert created["variants"] == [{"id": "A", "name": "Navy", "color": None, "stock": 0}]

        resp = client.post("/api/products", json=payload)
        assert resp.status_code == 409

    def test_missing_required_field(self, client, db_session):
        resp = client.post("/api/products", json={"sku": "X", "title": "No price", "type": "FABRIC"})
        assert resp.status_code == 400

    def test_public_listing_hides_costs(self, client, make_product):
        make_product(purchase_price=3.0)
        items = client.get("/api/products?public=true").get_json()["items"]
        assert "purchase_price" not in items[0]
        assert "supplier_name" not in items[0]


class TestCart:
    def test_quote(self, client, make_product):
        product = make_product(price=10.0, available_qty=5)
        resp = client.post("/api/cart/quote", json={"cart": [{"product_id": product.id, "quantity": 8}]})

        assert resp.status_code == 200
        quote = resp.get_json()["quote"]
        assert quote["total_amount"] == pytest.approx(79.1)
        assert quote["total_savings"] == pytest.approx(0.9)

    def test_add_unknown_product(self, client, db_session):
        resp = client.post("/api/cart/add", json={"cart": [], "product_id": 9999, "quantity": 1})
        assert resp.status_code == 404

    def test_add_below_moq(self, client, make_product):
        product = make_product(moq=50)
        resp = client.post("/api/cart/add", json={"cart": [], "product_id": product.id, "quantity": 10})
        assert resp.status_code == 400


class TestOrderFlow:
    def test_checkout_confirm_pay_and_ledger(self, client, make_product, wholesale_client):
        product = make_product(price=10.0, available_qty=10)

        resp = client.post("/api/orders", json={
            "client_id": wholesale_client.id,
            "cart": [{"product_id": product.id, "quantity": 10}],
        })
        assert resp.status_code == 201
        order = resp.get_json()["order"]
        assert order["status"] == "ORDERED"
        assert order["total_amount"] == pytest.approx(100.0)

        resp = client.post(f"/api/orders/{order['id']}/status", json={"status": "CONFIRMED"})
        assert resp.status_code == 200
        assert client.get(f"/api/products/{product.id}").get_json()["available_qty"] == 0

        resp = client.post(f"/api/orders/{order['id']}/payments", json={"amount": 40, "method": "CASH"})
        assert resp.status_code == 200
        assert resp.get_json()["summary"]["remaining_amount"] == pytest.approx(60.0)

        ledger = client.get(f"/api/reports/ledger?client={wholesale_client.id}").get_json()
        assert [tx["type"] for tx in ledger["transactions"]] == ["ORDER", "PAYMENT"]
        assert ledger["closing_balances"] == {str(wholesale_client.id): pytest.approx(-60.0)}

    def test_empty_cart_checkout_is_400(self, client, wholesale_client):
        resp = client.post("/api/orders", json={"client_id": wholesale_client.id, "cart": []})
        assert resp.status_code == 400
        assert client.get("/api/orders").get_json()["count"] == 0

    def test_checkout_rechecks_moq(self, client, make_product, wholesale_client):
        product = make_product(moq=50, available_qty=100)
        resp = client.post("/api/orders", json={
            "client_id": wholesale_client.id,
            "cart": [{"product_id": product.id, "quantity": 1}],
        })
        assert resp.status_code == 400
        assert client.get("/api/orders").get_json()["count"] == 0

    def test_invalid_payment_amount_is_400(self, client, make_product, wholesale_client):
        product = make_product(available_qty=10)
        order = client.post("/api/orders", json={
            "client_id": wholesale_client.id,
            "cart": [{"product_id": product.id, "quantity": 1}],
        }).get_json()["order"]

        resp = client.post(f"/api/orders/{order['id']}/payments", json={"amount": -5})
        assert resp.status_code == 400

    def test_cancel_after_confirm_is_400(self, client, make_product, wholesale_client):
        product = make_product(available_qty=10)
        order = client.post("/api/orders", json={
            "client_id": wholesale_client.id,
            "cart": [{"product_id": product.id, "quantity": 1}],
        }).get_json()["order"]
        client.post(f"/api/orders/{order['id']}/status", json={"status": "CONFIRMED"})

        resp = client.post(f"/api/orders/{order['id']}/cancel", json={})
        assert resp.status_code == 400

    def test_unknown_order_status_change_is_404(self, client, db_session):
        resp = client.post("/api/orders/9999/status", json={"status": "CONFIRMED"})
        assert resp.status_code == 404

    def test_bad_ledger_client(self, client, db_session):
        assert client.get("/api/reports/ledger?client=abc").status_code == 400


class TestCsvExport:
    def test_clients_csv_download(self, client, wholesale_client):
        resp = client.get("/api/reports/clients/csv?lang=en")

        assert resp.status_code == 200
        assert resp.mimetype == "text/csv"
        disposition = resp.headers["Content-Disposition"]
        assert re.search(r'filename="clients_list_\d{4}-\d{2}-\d{2}\.csv"', disposition)
        text = resp.get_data(as_text=True)
        assert text.startswith(UTF8_BOM)
        assert text[len(UTF8_BOM):].splitlines()[0] == "Client,Brand,Phone,Balance,Telegram ID"

    def test_ledger_csv_filename_has_client_suffix(self, client, make_product, wholesale_client):
        product = make_product(available_qty=10)
        client.post("/api/orders", json={
            "client_id": wholesale_client.id,
            "cart": [{"product_id": product.id, "quantity": 1}],
        })

        resp = client.get(f"/api/reports/client_ledger/csv?lang=ru&client={wholesale_client.id}")

        assert resp.status_code == 200
        assert f"client_ledger_{wholesale_client.id}_" in resp.headers["Content-Disposition"]

    def test_empty_report_is_204(self, client, db_session):
        assert client.get("/api/reports/expenses/csv").status_code == 204

    def test_unknown_report_is_404(self, client, db_session):
        assert client.get("/api/reports/payroll/csv").status_code == 404


class TestSearch:
    def test_text_search_logs_query(self, client, make_product, wholesale_client):
        make_product(title="Blue Denim")
        resp = client.get(f"/api/search?q=denim&client_id={wholesale_client.id}")

        assert resp.get_json()["count"] == 1
        resp = client.get("/api/reports/search_logs/csv?lang=en")
        assert "denim" in resp.get_data(as_text=True)

    def test_visual_search(self, client, make_product):
        navy = make_product(title="Navy twill")
        make_product(title="Red satin")

        resp = client.post("/api/search/visual", json={
            "analysis": {"catalog_type": "FABRIC", "color": "navy"},
        })

        assert resp.status_code == 200
        assert resp.get_json()["product_ids"] == [navy.id]

    def test_visual_search_rejects_non_object_analysis(self, client, db_session):
        resp = client.post("/api/search/visual", json={"analysis": "navy"})
        assert resp.status_code == 400
