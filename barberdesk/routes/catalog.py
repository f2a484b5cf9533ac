"""Catalog passthrough - public reads plus admin writes that invalidate the cache"""

import logging
from enum import Enum

from fastapi import APIRouter, Body, Depends

from ..cache import cache
from ..config import CATALOG_CACHE_TTL
from ..services.backend_client import BarbershopBackend, get_backend_client
from ..services.catalog_service import CatalogService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Catalog"])


class CatalogResource(str, Enum):
    BARBERS = "barbers"
    SERVICES = "services"
    PRODUCTS = "products"
    OFFERS = "offers"


def get_catalog_service(backend: BarbershopBackend = Depends(get_backend_client)) -> CatalogService:
    return CatalogService(backend)


@router.get("/barbers")
async def list_barbers(service: CatalogService = Depends(get_catalog_service)):
    """Active barbers only"""
    return await service.get_active_barbers()


@router.get("/services")
async def list_services(service: CatalogService = Depends(get_catalog_service)):
    return await service.get_services()


@router.get("/offers")
async def list_offers(service: CatalogService = Depends(get_catalog_service)):
    return await service.get_offers()


@router.get("/products")
async def list_products(service: CatalogService = Depends(get_catalog_service)):
    # Stock changes with every sale, so products always come from the backend
    return await service.get_products()


@router.get("/products/{product_id}")
async def get_product(product_id: str, service: CatalogService = Depends(get_catalog_service)):
    return await service.get_product(product_id)


@router.get("/settings/public/{key}")
async def get_public_setting(key: str, backend: BarbershopBackend = Depends(get_backend_client)):
    return await cache.get_or_fetch(
        f"settings:{key}", lambda: backend.get_public_setting(key), CATALOG_CACHE_TTL
    )


# ============================================================================
# ADMIN WRITES (auth enforced by the backend)
# ============================================================================


@router.post("/admin/catalog/{resource}")
async def create_entry(
    resource: CatalogResource,
    data: dict = Body(...),
    backend: BarbershopBackend = Depends(get_backend_client),
):
    created = await backend.create_resource(resource.value, data)
    CatalogService.invalidate(resource.value)
    logger.info(f"Created {resource.value} entry")
    return created


@router.put("/admin/catalog/{resource}/{entry_id}")
async def update_entry(
    resource: CatalogResource,
    entry_id: str,
    data: dict = Body(...),
    backend: BarbershopBackend = Depends(get_backend_client),
):
    updated = await backend.update_resource(resource.value, entry_id, data)
    CatalogService.invalidate(resource.value)
    return updated


@router.delete("/admin/catalog/{resource}/{entry_id}")
async def delete_entry(
    resource: CatalogResource,
    entry_id: str,
    backend: BarbershopBackend = Depends(get_backend_client),
):
    deleted = await backend.delete_resource(resource.value, entry_id)
    CatalogService.invalidate(resource.value)
    logger.info(f"Deleted {resource.value} entry {entry_id}")
    return deleted
