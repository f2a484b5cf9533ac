"""
Async client for the barbershop REST backend.

Every endpoint answers with an envelope of the form
``{"success": true, "data": ...}`` or ``{"success": false, "error": {"message": ...}}``;
some older endpoints return the bare payload. Callers get the unwrapped data.
"""

import logging
from typing import Any, Optional

import httpx
from fastapi import Request

from ..config import API_BASE_URL, BACKEND_TIMEOUT

logger = logging.getLogger(__name__)

CONNECTION_ERROR_MESSAGE = "Error de conexión. Verifica que el servidor esté funcionando."
SESSION_EXPIRED_MESSAGE = "Sesión expirada. Por favor, inicia sesión nuevamente."
CREDENTIAL_ENDPOINTS = ("/auth/login", "/auth/logout")


class BackendError(Exception):
    """Non-2xx reply from the backend"""

    def __init__(self, status_code: int, message: str, data: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.data = data


class BackendUnavailableError(BackendError):
    """The backend could not be reached at all"""

    def __init__(self, message: str = CONNECTION_ERROR_MESSAGE):
        super().__init__(503, message)


class SessionExpiredError(BackendError):
    """401 that survived a token refresh"""

    def __init__(self, data: Any = None):
        super().__init__(401, SESSION_EXPIRED_MESSAGE, data)


def unwrap(payload: Any) -> Any:
    """Strip the {success, data} envelope when present"""
    if isinstance(payload, dict) and "data" in payload:
        return payload["data"]
    return payload


def as_list(payload: Any) -> list:
    """Unwrap a payload that should be a list; anything else reads as empty"""
    data = unwrap(payload)
    return data if isinstance(data, list) else []


def error_message(payload: Any, default: str = "Error en la petición") -> str:
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
        if payload.get("message"):
            return str(payload["message"])
    if isinstance(payload, str) and payload.strip():
        return payload.strip()
    return default


class BarbershopBackend:
    """Thin wrapper over the backend's HTTP API"""

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        timeout: float = BACKEND_TIMEOUT,
        headers: Optional[dict[str, str]] = None,
        cookies: Optional[dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=f"{self.base_url}/",
            timeout=timeout,
            headers={"Content-Type": "application/json", **(headers or {})},
            cookies=cookies,
            transport=transport,
        )
        # Set-Cookie headers seen during this client's lifetime, relayed by auth routes
        self.set_cookies: list[str] = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        params: Optional[dict] = None,
        json: Any = None,
        _retry: bool = False,
    ) -> Any:
        """Send a request and return the parsed JSON body (envelope intact)"""
        endpoint = endpoint if endpoint.startswith("/") else f"/{endpoint}"
        if params:
            params = {k: v for k, v in params.items() if v is not None}

        try:
            response = await self._client.request(method, endpoint.lstrip("/"), params=params, json=json)
        except httpx.TransportError as e:
            logger.error(f"Backend unreachable for {method} {endpoint}: {e}")
            raise BackendUnavailableError() from e

        self.set_cookies.extend(response.headers.get_list("set-cookie"))

        try:
            data = response.json()
        except ValueError:
            data = response.text or None

        # A rejected login is a credentials error, not an expired session
        if response.status_code == 401 and endpoint not in CREDENTIAL_ENDPOINTS:
            if _retry or endpoint == "/auth/refresh":
                raise SessionExpiredError(data)
            try:
                await self.refresh()
            except BackendError as e:
                logger.info(f"Token refresh failed for {method} {endpoint}: {e.message}")
                raise SessionExpiredError(data) from e
            return await self.request(method, endpoint, params=params, json=json, _retry=True)

        if response.is_error:
            message = error_message(data)
            logger.warning(f"Backend {method} {endpoint} failed ({response.status_code}): {message}")
            raise BackendError(response.status_code, message, data)

        return data

    async def get(self, endpoint: str, params: Optional[dict] = None) -> Any:
        return await self.request("GET", endpoint, params=params)

    async def post(self, endpoint: str, data: Any = None) -> Any:
        return await self.request("POST", endpoint, json=data)

    async def put(self, endpoint: str, data: Any = None) -> Any:
        return await self.request("PUT", endpoint, json=data)

    async def delete(self, endpoint: str) -> Any:
        return await self.request("DELETE", endpoint)

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    async def login(self, username: str, password: str) -> Any:
        return await self.post("/auth/login", {"username": username, "password": password})

    async def refresh(self) -> Any:
        return await self.post("/auth/refresh")

    async def logout(self) -> None:
        try:
            await self.post("/auth/logout")
        except BackendError as e:
            # Cookie may already be gone
            logger.info(f"Logout call failed: {e.message}")

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    async def list_barbers(self) -> list[dict]:
        return as_list(await self.get("/barbers"))

    async def list_services(self, for_invoice: bool = False) -> list[dict]:
        params = {"forInvoice": "true"} if for_invoice else None
        return as_list(await self.get("/services", params=params))

    async def list_products(self) -> list[dict]:
        return as_list(await self.get("/products"))

    async def get_product(self, product_id: str) -> dict:
        return unwrap(await self.get(f"/products/{product_id}"))

    async def list_offers(self) -> list[dict]:
        return as_list(await self.get("/offers"))

    async def create_resource(self, resource: str, data: dict) -> Any:
        return unwrap(await self.post(f"/{resource}", data))

    async def update_resource(self, resource: str, resource_id: str, data: dict) -> Any:
        return unwrap(await self.put(f"/{resource}/{resource_id}", data))

    async def delete_resource(self, resource: str, resource_id: str) -> Any:
        return unwrap(await self.delete(f"/{resource}/{resource_id}"))

    # ------------------------------------------------------------------
    # Reservations
    # ------------------------------------------------------------------

    async def list_reservations(self, date: str, barber_id: Optional[str] = None) -> list[dict]:
        """Active (non-cancelled) reservations for a date, optionally one barber's"""
        return as_list(await self.get("/reservations", params={"date": date, "barberId": barber_id}))

    async def create_reservation(self, payload: dict) -> dict:
        return unwrap(await self.post("/reservations", payload))

    async def create_reservations_from_cart(self, payload: dict) -> dict:
        return unwrap(await self.post("/reservations/from-cart", payload))

    async def list_admin_reservations(self, params: Optional[dict] = None) -> Any:
        return unwrap(await self.get("/reservations/admin", params=params))

    async def update_reservation_status(self, reservation_id: int, status: str) -> Any:
        return unwrap(await self.put(f"/reservations/{reservation_id}/status", {"status": status}))

    async def update_delivery_status(self, reservation_id: int, delivery_status: str) -> Any:
        return unwrap(
            await self.put(f"/reservations/{reservation_id}/delivery-status", {"deliveryStatus": delivery_status})
        )

    async def get_reservation_items(self, reservation_id: int) -> list[dict]:
        return as_list(await self.get(f"/reservations/{reservation_id}/items"))

    async def update_reservation_items(
        self, reservation_id: int, items: list[dict], discount_code_id: Optional[int]
    ) -> Any:
        return unwrap(
            await self.put(
                f"/reservations/{reservation_id}/items",
                {"items": items, "discountCodeId": discount_code_id},
            )
        )

    async def delete_reservation(self, reservation_id: int) -> Any:
        return unwrap(await self.delete(f"/reservations/{reservation_id}"))

    # ------------------------------------------------------------------
    # Discounts
    # ------------------------------------------------------------------

    async def validate_discount(self, code: str, total_amount: float) -> dict:
        return unwrap(await self.post("/discounts/validate", {"code": code, "totalAmount": total_amount}))

    async def list_discounts(self) -> list[dict]:
        return as_list(await self.get("/discounts"))

    async def get_discount(self, discount_id: int) -> dict:
        return unwrap(await self.get(f"/discounts/{discount_id}"))

    # ------------------------------------------------------------------
    # Settings / statistics
    # ------------------------------------------------------------------

    async def get_public_setting(self, key: str) -> Any:
        return unwrap(await self.get(f"/settings/{key}"))

    async def get_hours(self) -> Any:
        return unwrap(await self.get("/settings/hours"))

    async def update_hours(self, hours: Any) -> Any:
        return unwrap(await self.put("/settings/hours", hours))

    async def get_notification_settings(self) -> Any:
        return unwrap(await self.get("/settings/notifications"))

    async def update_notification_settings(self, settings: Any) -> Any:
        return unwrap(await self.put("/settings/notifications", settings))

    async def get_dashboard_stats(self) -> Any:
        return unwrap(await self.get("/statistics/dashboard"))

    async def get_monthly_sales(self, params: Optional[dict] = None) -> Any:
        return unwrap(await self.get("/statistics/monthly-sales", params=params))


async def get_backend_client(request: Request):
    """
    FastAPI dependency: a backend client carrying the caller's credentials.
    The admin session lives in httpOnly cookies set by the backend, so they are
    forwarded as-is along with any bearer token.
    """
    headers = {}
    authorization = request.headers.get("authorization")
    if authorization:
        headers["Authorization"] = authorization

    client = BarbershopBackend(headers=headers, cookies=dict(request.cookies))
    try:
        yield client
    finally:
        await client.aclose()
