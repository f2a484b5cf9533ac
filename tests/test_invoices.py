import asyncio
from datetime import datetime

import httpx
import pytest
from fastapi import HTTPException

from barberdesk.domain.invoices.schemas import InvoiceCreate, InvoiceItem
from barberdesk.domain.invoices.service import PRODUCTS_ONLY_LABEL, InvoiceService, check_items, pick_service_reference
from barberdesk.services import backend_client


def service_line(**overrides):
    line = {"type": "servicio", "itemId": "s1", "name": "Corte clásico", "price": 12, "quantity": 1}
    line.update(overrides)
    return line


def product_line(**overrides):
    line = {"type": "product", "itemId": "p1", "name": "Cera mate", "price": 9.99, "quantity": 2}
    line.update(overrides)
    return line


class TestHelpers:
    def test_first_service_line_is_the_reference(self):
        items = [InvoiceItem(**product_line()), InvoiceItem(**service_line())]
        assert pick_service_reference(items, []) == ("s1", "Corte clásico")

    def test_products_only_uses_catalog_fallback(self):
        items = [InvoiceItem(**product_line())]
        assert pick_service_reference(items, [{"id": "s2"}]) == ("s2", PRODUCTS_ONLY_LABEL)
        assert pick_service_reference(items, []) == (None, PRODUCTS_ONLY_LABEL)

    def test_check_items(self):
        with pytest.raises(HTTPException) as exc:
            check_items([])
        assert exc.value.detail == "Debe haber al menos un item"

        with pytest.raises(HTTPException):
            check_items([InvoiceItem(**product_line(name="  "))])

        with pytest.raises(HTTPException):
            check_items([InvoiceItem(**product_line(itemId=None))])

        custom = check_items([InvoiceItem(type="custom", name=" Propina ", price=2)])
        assert custom[0].name == "Propina"


class TestCreateInvoice:
    def test_create_with_discount(self, client, fake_backend):
        response = client.post(
            "/invoices",
            json={
                "customerName": " Ana ",
                "customerPhone": "71234567",
                "items": [service_line(), product_line()],
                "discountCode": "verano10",
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["subtotal"] == 31.98
        assert data["discountAmount"] == 3.2
        assert data["total"] == 28.78
        assert round(sum(i["discountAmount"] for i in data["items"]), 2) == 3.2

        reservation_id = data["reservationId"]
        created = fake_backend.called("POST", "/reservations")[0]
        assert created["serviceId"] == "s1"
        assert created["serviceLabel"] == "Corte clásico"
        assert created["customerName"] == "Ana"
        assert created["customerPhone"] == "71234567"
        assert fake_backend.saved_items[reservation_id]["discountCodeId"] == 1
        assert fake_backend.statuses[reservation_id] == "confirmada"
        # A service line is present, so the catalog is not consulted
        assert fake_backend.called("GET", "/services") == []

    def test_products_only_invoice(self, client, fake_backend):
        data = client.post("/invoices", json={"customerName": "Luis", "items": [product_line()]}).json()

        created = fake_backend.called("POST", "/reservations")[0]
        assert created["serviceLabel"] == PRODUCTS_ONLY_LABEL
        assert created["serviceId"] == "s1"
        assert "customerPhone" not in created
        assert data["discount"] is None
        assert data["total"] == 19.98

    def test_invalid_discount_writes_nothing(self, client, fake_backend):
        response = client.post(
            "/invoices",
            json={"customerName": "Ana", "items": [service_line()], "discountCode": "NOPE"},
        )

        assert response.status_code == 400
        assert fake_backend.called("POST", "/reservations") == []

    def test_name_required(self, client):
        response = client.post("/invoices", json={"customerName": "  ", "items": [service_line()]})
        assert response.status_code == 400
        assert response.json()["detail"] == "El nombre del cliente es requerido"

    def test_invalid_phone(self, client):
        response = client.post(
            "/invoices", json={"customerName": "Ana", "customerPhone": "5551234", "items": [service_line()]}
        )
        assert response.status_code == 422

    def test_stamped_with_current_time(self, fake_backend, backend_factory):
        async def run():
            backend = backend_client.BarbershopBackend()
            try:
                data = InvoiceCreate(customerName="Ana", items=[InvoiceItem(**service_line())])
                return await InvoiceService(backend).create_invoice(data, now=datetime(2026, 10, 19, 14, 5))
            finally:
                await backend.aclose()

        asyncio.run(run())

        created = fake_backend.called("POST", "/reservations")[0]
        assert created["date"] == "2026-10-19"
        assert created["time"] == "14:05"


class TestLoadAndSave:
    def test_load_with_inline_discount(self, client, fake_backend):
        fake_backend.reservation_items[7] = [
            {
                "item_type": "service",
                "item_id": "s1",
                "item_name": "Corte clásico",
                "unit_price": "12.00",
                "quantity": 1,
                "discount_code_id": 1,
                "discount_code": "VERANO10",
                "discount_type": "percentage",
                "discount_value": "10",
            },
            {"item_type": "custom", "item_id": None, "item_name": "Propina", "unit_price": "3.00", "quantity": 1},
        ]

        data = client.get("/invoices/7").json()

        assert data["subtotal"] == 15.0
        assert data["discount"]["code"] == "VERANO10"
        assert data["discountAmount"] == 1.5
        assert data["total"] == 13.5
        assert fake_backend.called("GET", "/discounts/1") == []

    def test_load_fetches_discount_by_id(self, client, fake_backend):
        fake_backend.reservation_items[8] = [
            {"item_type": "product", "item_id": "p2", "item_name": "Shampoo", "unit_price": "6.50", "quantity": 2,
             "discount_code_id": 2},
        ]

        data = client.get("/invoices/8").json()

        assert data["discount"]["code"] == "CINCO"
        assert data["discountAmount"] == 5.0
        assert data["total"] == 8.0

    def test_load_without_discount(self, client, fake_backend):
        fake_backend.reservation_items[9] = [
            {"item_type": "service", "item_id": 11, "item_name": "Barba", "unit_price": 8, "quantity": 1},
        ]
        data = client.get("/invoices/9").json()
        assert data["discount"] is None
        assert data["total"] == 8.0
        assert data["items"][0]["itemId"] == "11"

    def test_save_keeps_discount_by_id(self, client, fake_backend):
        response = client.put(
            "/invoices/7",
            json={"items": [service_line(quantity=2)], "discountCodeId": 1},
        )

        data = response.json()
        assert data["subtotal"] == 24.0
        assert data["discountAmount"] == 2.4
        saved = fake_backend.saved_items[7]
        assert saved["discountCodeId"] == 1
        assert saved["items"][0]["discountAmount"] == 2.4
        assert saved["items"][0]["type"] == "service"

    def test_save_revalidates_code(self, client, fake_backend):
        data = client.put("/invoices/7", json={"items": [service_line()], "discountCode": "CINCO"}).json()
        assert data["discountAmount"] == 5.0
        assert fake_backend.called("POST", "/discounts/validate")[0]["totalAmount"] == 12.0


class TestInvoiceCleanup:
    def test_failed_items_write_removes_reservation(self, client, fake_backend):
        fake_backend.items_error = (400, "El descuento no puede ser mayor al subtotal")

        response = client.post(
            "/invoices", json={"customerName": "Ana", "items": [service_line()], "discountCode": "CINCO"}
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "El descuento no puede ser mayor al subtotal"
        reservation_id = fake_backend.reservations[0]["id"]
        assert len(fake_backend.called("DELETE", f"/reservations/{reservation_id}")) == 1
        assert fake_backend.statuses == {}

    def test_cleanup_failure_keeps_original_error(self, client, fake_backend, monkeypatch):
        fake_backend.items_error = (500, "Error interno")
        handler = fake_backend.handler

        def no_deletes(request):
            if request.method == "DELETE":
                raise httpx.ConnectError("Connection refused", request=request)
            return handler(request)

        monkeypatch.setattr(fake_backend, "handler", no_deletes)

        response = client.post("/invoices", json={"customerName": "Ana", "items": [service_line()]})

        assert response.status_code == 500
        assert response.json()["detail"] == "Error interno"

    def test_line_shares_never_exceed_line_totals(self, client, fake_backend):
        fake_backend.discounts["CENTAVOS"] = {
            "id": 4,
            "code": "CENTAVOS",
            "description": "15 centavos",
            "discount_type": "fixed",
            "discount_value": 0.15,
            "max_discount": None,
            "min_purchase": 0,
        }
        items = [service_line(price=1)] + [product_line(price=1, quantity=1) for _ in range(9)]
        items.append({"type": "custom", "name": "Bolsa", "price": 0.01, "quantity": 1})

        response = client.post("/invoices", json={"customerName": "Ana", "items": items, "discountCode": "CENTAVOS"})

        assert response.status_code == 200
        saved = fake_backend.saved_items[response.json()["reservationId"]]["items"]
        assert all(item["discountAmount"] <= item["price"] * item["quantity"] for item in saved)
        assert round(sum(item["discountAmount"] for item in saved), 2) == 0.15
