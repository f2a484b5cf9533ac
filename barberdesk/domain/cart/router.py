"""Cart router - FastAPI endpoints for the customer cart"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from ...services.backend_client import BarbershopBackend, get_backend_client
from ...services.catalog_service import CatalogService
from .schemas import (
    AddBookableRequest,
    AddProductRequest,
    CartResponse,
    RemoveItemRequest,
    UpdateQuantityRequest,
)
from .service import CartService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cart", tags=["Cart"])


def get_cart_service(db: Session = Depends(get_db)) -> CartService:
    """Dependency injection for CartService"""
    return CartService(db)


def get_catalog_service(backend: BarbershopBackend = Depends(get_backend_client)) -> CatalogService:
    return CatalogService(backend)


@router.post("", response_model=CartResponse)
async def create_cart(service: CartService = Depends(get_cart_service)):
    """Start an empty cart; the client keeps cartId"""
    return service.to_response(service.create_cart())


@router.get("/{cart_id}", response_model=CartResponse)
async def get_cart(cart_id: str, service: CartService = Depends(get_cart_service)):
    return service.to_response(service.get_or_create_cart(cart_id))


@router.post("/{cart_id}/products", response_model=CartResponse)
async def add_product(
    cart_id: str,
    data: AddProductRequest,
    service: CartService = Depends(get_cart_service),
    catalog: CatalogService = Depends(get_catalog_service),
):
    """Add a product; price and stock come from the catalog, not the client"""
    product = await catalog.get_product(data.productId)
    return service.to_response(service.add_product(cart_id, product, data.quantity))


@router.post("/{cart_id}/services", response_model=CartResponse)
async def add_service(
    cart_id: str,
    data: AddBookableRequest,
    service: CartService = Depends(get_cart_service),
    catalog: CatalogService = Depends(get_catalog_service),
):
    entry = await catalog.get_service(data.id)
    return service.to_response(service.add_service(cart_id, entry, data.quantity, data.bookingData))


@router.post("/{cart_id}/offers", response_model=CartResponse)
async def add_offer(
    cart_id: str,
    data: AddBookableRequest,
    service: CartService = Depends(get_cart_service),
    catalog: CatalogService = Depends(get_catalog_service),
):
    entry = await catalog.get_offer(data.id)
    return service.to_response(service.add_offer(cart_id, entry, data.quantity, data.bookingData))


@router.patch("/{cart_id}/items", response_model=CartResponse)
async def update_quantity(
    cart_id: str,
    data: UpdateQuantityRequest,
    service: CartService = Depends(get_cart_service),
):
    """Set a line's quantity; zero removes it"""
    return service.to_response(service.update_quantity(cart_id, data.itemKey, data.type, data.quantity))


@router.delete("/{cart_id}/items", response_model=CartResponse)
async def remove_item(
    cart_id: str,
    data: RemoveItemRequest,
    service: CartService = Depends(get_cart_service),
):
    return service.to_response(service.remove_item(cart_id, data.itemKey, data.type))


@router.delete("/{cart_id}", response_model=CartResponse)
async def clear_cart(cart_id: str, service: CartService = Depends(get_cart_service)):
    return service.to_response(service.clear_cart(cart_id))
