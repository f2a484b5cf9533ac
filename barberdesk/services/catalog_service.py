import logging
from typing import Optional

from fastapi import HTTPException

from ..cache import cache, catalog_key, invalidate_catalog
from ..config import CATALOG_CACHE_TTL
from .backend_client import BackendError, BarbershopBackend

logger = logging.getLogger(__name__)

CACHED_RESOURCES = ("barbers", "services", "offers")


def is_active(entry: dict) -> bool:
    return entry.get("is_active") is not False


class CatalogService:
    """Read access to the backend catalog, cached where stock is not involved"""

    def __init__(self, backend: BarbershopBackend):
        self.backend = backend

    async def get_barbers(self) -> list[dict]:
        barbers = await cache.get_or_fetch(catalog_key("barbers"), self.backend.list_barbers, CATALOG_CACHE_TTL)
        return barbers or []

    async def get_active_barbers(self) -> list[dict]:
        return [b for b in await self.get_barbers() if is_active(b)]

    async def get_services(self) -> list[dict]:
        services = await cache.get_or_fetch(
            catalog_key("services"), self.backend.list_services, CATALOG_CACHE_TTL
        )
        return services or []

    async def get_offers(self) -> list[dict]:
        offers = await cache.get_or_fetch(catalog_key("offers"), self.backend.list_offers, CATALOG_CACHE_TTL)
        return offers or []

    async def get_products(self) -> list[dict]:
        return await self.backend.list_products()

    async def get_product(self, product_id: str) -> dict:
        try:
            product = await self.backend.get_product(product_id)
        except BackendError as e:
            if e.status_code == 404:
                raise HTTPException(status_code=404, detail="Producto no encontrado") from e
            raise
        if not isinstance(product, dict):
            raise HTTPException(status_code=404, detail="Producto no encontrado")
        return product

    async def get_service(self, service_id: str) -> dict:
        return self._find(await self.get_services(), service_id, "Servicio no encontrado")

    async def get_offer(self, offer_id: str) -> dict:
        return self._find(await self.get_offers(), offer_id, "Promoción no encontrada")

    async def get_barber(self, barber_id: Optional[str]) -> Optional[dict]:
        if barber_id is None:
            return None
        return self._find(await self.get_active_barbers(), barber_id, "Barbero no encontrado")

    @staticmethod
    def _find(entries: list[dict], entry_id: str, not_found: str) -> dict:
        for entry in entries:
            if str(entry.get("id")) == str(entry_id):
                return entry
        raise HTTPException(status_code=404, detail=not_found)

    @staticmethod
    def invalidate(resource: str) -> None:
        if resource in CACHED_RESOURCES:
            invalidate_catalog(resource)
            logger.info(f"Catalog cache invalidated for {resource}")
