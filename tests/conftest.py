import json
import os
import re
import tempfile

# Must be configured before barberdesk is imported
_tmpdir = tempfile.mkdtemp(prefix="barberdesk-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_tmpdir, 'test.db')}"
os.environ["WHATSAPP_NUMBER"] = "+1 (555) 010-2030"
os.environ["API_BASE_URL"] = "http://backend.test/api/"

import httpx  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from barberdesk import rate_limiter  # noqa: E402
from barberdesk.cache import cache  # noqa: E402
from barberdesk.database import Base, engine  # noqa: E402
from barberdesk.main import app  # noqa: E402
from barberdesk.services import backend_client  # noqa: E402

BOOKING_DATE = "2026-10-20"


def ok(data, status_code=200, headers=None):
    return httpx.Response(status_code, json={"success": True, "data": data}, headers=headers)


def fail(status_code, message):
    return httpx.Response(status_code, json={"success": False, "error": {"message": message}})


class FakeBackend:
    """In-memory stand-in for the barbershop REST backend"""

    def __init__(self):
        self.barbers = [
            {"id": "b1", "name": "Carlos", "is_active": True},
            {"id": "b2", "name": "Diego", "is_active": True},
            {"id": "b3", "name": "Mateo", "is_active": False},
        ]
        self.services = [
            {"id": "s1", "name": "Corte clásico", "price": "12.00"},
            {"id": "s2", "name": "Barba", "price": 8},
        ]
        self.offers = [
            {"id": "o1", "name": "Corte + Barba", "original_price": 20, "final_price": "17.50"},
        ]
        self.products = {
            "p1": {"id": "p1", "name": "Cera mate", "price": "9.99", "stock": 5},
            "p2": {"id": "p2", "name": "Shampoo", "price": 6.5, "stock": None},
        }
        self.discounts = {
            "VERANO10": {
                "id": 1,
                "code": "VERANO10",
                "description": "10% en todo",
                "discount_type": "percentage",
                "discount_value": 10,
                "max_discount": None,
                "min_purchase": 0,
            },
            "CINCO": {
                "id": 2,
                "code": "CINCO",
                "description": "$5 de descuento",
                "discount_type": "fixed",
                "discount_value": 5,
                "max_discount": None,
                "min_purchase": 0,
            },
            "MITAD": {
                "id": 3,
                "code": "MITAD",
                "description": "50% hasta $15",
                "discount_type": "percentage",
                "discount_value": 50,
                "max_discount": 15,
                "min_purchase": 30,
            },
        }
        # code -> discountAmount the backend reports
        self.discount_amounts = {}
        self.reservations = []
        self.reservation_items = {}
        self.saved_items = {}
        self.statuses = {}
        self.hours = {"monday": {"open": "09:00", "close": "19:00"}}
        self.notifications = {"newReservation": True}
        self.delivery = {}
        self.items_error = None
        self.from_cart_payload = None
        self.from_cart_result = None
        self.from_cart_error = None
        self.session_valid = True
        self.refresh_ok = True
        self.down = False
        self.calls = []
        self.queries = []

    def called(self, method, path):
        return [body for m, p, body in self.calls if m == method and p == path]

    def handler(self, request: httpx.Request) -> httpx.Response:
        if self.down:
            raise httpx.ConnectError("Connection refused", request=request)

        path = request.url.path
        if path.startswith("/api"):
            path = path[len("/api"):]
        body = json.loads(request.content) if request.content else None
        self.calls.append((request.method, path, body))
        params = dict(request.url.params)
        self.queries.append((path, params))
        method = request.method

        if path == "/auth/login" and method == "POST":
            if body.get("password") != "secreto":
                return fail(401, "Credenciales inválidas")
            self.session_valid = True
            return ok(
                {"user": {"id": 1, "username": body["username"]}},
                headers=[
                    ("set-cookie", "authToken=access; Path=/; HttpOnly"),
                    ("set-cookie", "refreshToken=refresh; Path=/; HttpOnly"),
                ],
            )
        if path == "/auth/refresh" and method == "POST":
            if not self.refresh_ok:
                return fail(401, "Refresh token inválido")
            self.session_valid = True
            return ok({"refreshed": True}, headers=[("set-cookie", "authToken=renewed; Path=/; HttpOnly")])
        if path == "/auth/logout" and method == "POST":
            self.session_valid = False
            return ok(None, headers=[("set-cookie", "authToken=; Max-Age=0; Path=/")])

        if path == "/barbers" and method == "GET":
            return ok(self.barbers)
        if path == "/services" and method == "GET":
            return ok(self.services)
        if path == "/offers" and method == "GET":
            return ok(self.offers)
        if path == "/products" and method == "GET":
            return ok(list(self.products.values()))
        match = re.fullmatch(r"/products/(\w+)", path)
        if match and method == "GET":
            product = self.products.get(match.group(1))
            return ok(product) if product else fail(404, "Producto no encontrado")

        if path == "/reservations/admin" and method == "GET":
            if not self.session_valid:
                return fail(401, "Token expirado")
            return ok({"reservations": self.reservations, "filters": params})
        if path == "/reservations" and method == "GET":
            return ok([r for r in self.reservations if r["date"] == params.get("date")])
        if path == "/reservations" and method == "POST":
            return self._create_reservation(body)
        if path == "/reservations/from-cart" and method == "POST":
            self.from_cart_payload = body
            if self.from_cart_error:
                return fail(*self.from_cart_error)
            result = self.from_cart_result or {"success": len(body["cartItems"]), "failed": 0, "errors": []}
            return ok(result, 201)
        match = re.fullmatch(r"/reservations/(\d+)/items", path)
        if match:
            reservation_id = int(match.group(1))
            if method == "GET":
                return ok(self.reservation_items.get(reservation_id, []))
            if self.items_error:
                return fail(*self.items_error)
            self.saved_items[reservation_id] = body
            return ok({"updated": len(body["items"])})
        match = re.fullmatch(r"/reservations/(\d+)/delivery-status", path)
        if match and method == "PUT":
            self.delivery[int(match.group(1))] = body["deliveryStatus"]
            return ok({"id": int(match.group(1)), "delivery_status": body["deliveryStatus"]})
        match = re.fullmatch(r"/reservations/(\d+)/status", path)
        if match and method == "PUT":
            self.statuses[int(match.group(1))] = body["status"]
            return ok({"id": int(match.group(1)), "status": body["status"]})
        match = re.fullmatch(r"/reservations/(\d+)", path)
        if match and method == "DELETE":
            return ok({"id": int(match.group(1))})

        if path == "/discounts/validate" and method == "POST":
            discount = self.discounts.get(body["code"])
            if not discount:
                return fail(404, "Código de descuento no válido")
            if body["totalAmount"] < (discount.get("min_purchase") or 0):
                return fail(400, f"Compra mínima de ${discount['min_purchase']}")
            data = dict(discount)
            if body["code"] in self.discount_amounts:
                data["discountAmount"] = self.discount_amounts[body["code"]]
            return ok(data)
        if path == "/discounts" and method == "GET":
            return ok(list(self.discounts.values()))
        match = re.fullmatch(r"/discounts/(\d+)", path)
        if match and method == "GET":
            for discount in self.discounts.values():
                if discount["id"] == int(match.group(1)):
                    return ok(discount)
            return fail(404, "Código no encontrado")

        if path == "/settings/hours":
            if method == "PUT":
                self.hours = body
            return ok(self.hours)
        if path == "/settings/notifications":
            if method == "PUT":
                self.notifications = body
            return ok(self.notifications)
        match = re.fullmatch(r"/settings/([\w-]+)", path)
        if match and method == "GET":
            return ok({"key": match.group(1), "value": "Av. Siempre Viva 742"})

        if path.startswith("/statistics/"):
            if not self.session_valid:
                return fail(401, "Token expirado")
            return ok({"path": path, "params": params})

        match = re.fullmatch(r"/(barbers|services|products|offers|discounts)(?:/(\w+))?", path)
        if match and method in ("POST", "PUT", "DELETE"):
            return ok({"resource": match.group(1), "id": match.group(2), "body": body})

        return fail(404, f"Ruta no encontrada: {method} {path}")

    def _create_reservation(self, body):
        barber_id = body.get("barberId")
        at_slot = [
            r
            for r in self.reservations
            if r["date"] == body["date"] and r["time"] == body["time"] and r["status"] != "cancelada"
        ]
        if barber_id is not None:
            taken = any(r["barber_id"] in (None, barber_id) for r in at_slot)
        else:
            taken = len(at_slot) >= len([b for b in self.barbers if b["is_active"]])
        if taken:
            return fail(400, "El horario ya está ocupado")

        reservation = {
            "id": 100 + len(self.reservations),
            "date": body["date"],
            "time": body["time"],
            "barber_id": barber_id,
            "service_id": body.get("serviceId"),
            "status": "pendiente",
        }
        self.reservations.append(reservation)
        return ok({"reservationId": reservation["id"], **reservation}, 201)

    def add_reservation(self, time, barber_id=None, status="pendiente", date=BOOKING_DATE):
        self.reservations.append(
            {
                "id": 100 + len(self.reservations),
                "date": date,
                "time": time,
                "barber_id": barber_id,
                "status": status,
            }
        )


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture(autouse=True)
def isolated_state(monkeypatch):
    """No Redis, fresh tables and fresh rate-limit counters for every test"""
    monkeypatch.setattr(rate_limiter, "get_optional_redis_client", lambda: None)
    monkeypatch.setattr(cache, "_client_factory", lambda: None)
    rate_limiter.reset_rate_limits()
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    rate_limiter.reset_rate_limits()


@pytest.fixture
def backend_factory(fake_backend, monkeypatch):
    """Make every BarbershopBackend talk to the fake instead of the network"""
    original = backend_client.BarbershopBackend

    def factory(**kwargs):
        kwargs.setdefault("transport", httpx.MockTransport(fake_backend.handler))
        return original(**kwargs)

    monkeypatch.setattr(backend_client, "BarbershopBackend", factory)
    return factory


@pytest.fixture
def client(backend_factory):
    with TestClient(app) as test_client:
        yield test_client


class FakeRedis:
    """Just enough of the redis client for the cache"""

    def __init__(self):
        self.store = {}

    def get(self, key):
        return self.store.get(key)

    def setex(self, key, ttl, value):
        self.store[key] = value

    def delete(self, key):
        self.store.pop(key, None)


@pytest.fixture
def fake_redis(monkeypatch):
    redis_client = FakeRedis()
    monkeypatch.setattr(cache, "_client_factory", lambda: redis_client)
    return redis_client


@pytest.fixture
def cart_id(client):
    return client.post("/cart").json()["cartId"]
