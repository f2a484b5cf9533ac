"""Cart service - line merging, stock rules and totals"""

import logging
from decimal import Decimal
from typing import Any, Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models import Cart, CartItem
from ...shared.money import line_total, money, subtotal
from ...shared.validators import validate_uuid
from .repository import CartRepository
from .schemas import BarberRef, BookingData, CartLineResponse, CartResponse, LineType

logger = logging.getLogger(__name__)


def declared_stock(value: Any) -> Optional[int]:
    """Stock as the catalog declares it; None means untracked"""
    if value is None:
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def booking_item_key(entry_id: Any, booking: Optional[BookingData]) -> str:
    """Same service on different appointments must stay on separate lines"""
    if booking is None:
        return str(entry_id)
    barber = booking.barber.id if booking.barber else "any"
    return f"{entry_id}-{booking.date}-{booking.time}-{barber}"


class CartService:
    """Service layer for cart business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CartRepository()

    def create_cart(self) -> Cart:
        cart = self.repo.create_cart(self.db)
        logger.info(f"Created cart {cart.public_id}")
        return cart

    def get_cart(self, public_id: str) -> Cart:
        cart = self.repo.get_cart_by_public_id(self.db, public_id)
        if not cart:
            raise HTTPException(status_code=404, detail="Carrito no encontrado")
        return cart

    def get_or_create_cart(self, public_id: str) -> Cart:
        """Carts are created lazily under the id the client already holds"""
        cart = self.repo.get_cart_by_public_id(self.db, public_id)
        if cart:
            return cart
        if not validate_uuid(public_id):
            raise HTTPException(status_code=404, detail="Carrito no encontrado")
        try:
            return self.repo.create_cart(self.db, public_id)
        except IntegrityError:
            # A concurrent first request created it
            self.db.rollback()
            logger.info(f"Cart {public_id} created concurrently, reusing it")
            return self.get_cart(public_id)

    def add_product(self, public_id: str, product: dict, quantity: int = 1) -> Cart:
        cart = self.get_or_create_cart(public_id)
        key = str(product["id"])
        existing = self.repo.find_item(cart, LineType.PRODUCT.value, key)

        in_cart = existing.quantity if existing else 0
        new_quantity = in_cart + quantity
        stock = declared_stock(product.get("stock"))

        if stock is not None and stock < new_quantity:
            logger.info(f"Cart {public_id}: product {key} rejected, stock {stock} < {new_quantity}")
            raise HTTPException(
                status_code=409,
                detail=(
                    "No hay suficiente stock disponible.\n\n"
                    f"Stock disponible: {stock}\n"
                    f"Ya en carrito: {in_cart}\n"
                    f"Intentando agregar: {quantity}"
                ),
            )

        if existing:
            existing.stock = stock
            return self.repo.set_quantity(self.db, cart, existing, new_quantity)

        self.repo.add_item(
            self.db,
            cart,
            item_type=LineType.PRODUCT.value,
            catalog_id=str(product["id"]),
            item_key=key,
            name=product.get("name") or "",
            price=float(money(product.get("price"))),
            quantity=quantity,
            image_url=product.get("image_url"),
            stock=stock,
        )
        return cart

    def add_service(
        self, public_id: str, service: dict, quantity: int = 1, booking: Optional[BookingData] = None
    ) -> Cart:
        return self._add_bookable(public_id, LineType.SERVICE, service, service.get("price"), quantity, booking)

    def add_offer(
        self, public_id: str, offer: dict, quantity: int = 1, booking: Optional[BookingData] = None
    ) -> Cart:
        return self._add_bookable(
            public_id,
            LineType.OFFER,
            offer,
            offer.get("final_price"),
            quantity,
            booking,
            original_price=offer.get("original_price"),
        )

    def _add_bookable(
        self,
        public_id: str,
        line_type: LineType,
        entry: dict,
        price: Any,
        quantity: int,
        booking: Optional[BookingData],
        original_price: Any = None,
    ) -> Cart:
        cart = self.get_or_create_cart(public_id)
        key = booking_item_key(entry["id"], booking)
        existing = self.repo.find_item(cart, line_type.value, key)

        if existing:
            return self.repo.set_quantity(self.db, cart, existing, existing.quantity + quantity)

        self.repo.add_item(
            self.db,
            cart,
            item_type=line_type.value,
            catalog_id=str(entry["id"]),
            item_key=key,
            name=entry.get("name") or "",
            price=float(money(price)),
            original_price=float(money(original_price)) if original_price else None,
            quantity=quantity,
            image_url=entry.get("image_url"),
            booking_date=booking.date if booking else None,
            booking_time=booking.time if booking else None,
            barber_id=booking.barber.id if booking and booking.barber else None,
            barber_name=booking.barber.name if booking and booking.barber else None,
        )
        return cart

    def update_quantity(self, public_id: str, item_key: str, line_type: LineType, quantity: int) -> Cart:
        """Set a line's quantity; zero or less removes the line"""
        cart = self.get_cart(public_id)
        item = self.repo.find_item(cart, line_type.value, item_key)
        if not item:
            raise HTTPException(status_code=404, detail="Item no encontrado en el carrito")

        if quantity <= 0:
            return self.repo.delete_item(self.db, cart, item)

        if line_type == LineType.PRODUCT and item.stock is not None and quantity > item.stock:
            raise HTTPException(
                status_code=409,
                detail=f"No hay suficiente stock disponible.\n\nStock disponible: {item.stock}",
            )

        return self.repo.set_quantity(self.db, cart, item, quantity)

    def remove_item(self, public_id: str, item_key: str, line_type: LineType) -> Cart:
        cart = self.get_cart(public_id)
        item = self.repo.find_item(cart, line_type.value, item_key)
        if item:
            return self.repo.delete_item(self.db, cart, item)
        return cart

    def clear_cart(self, public_id: str) -> Cart:
        cart = self.get_cart(public_id)
        logger.info(f"Clearing cart {public_id} ({len(cart.items)} lines)")
        return self.repo.clear_cart(self.db, cart)

    @staticmethod
    def subtotal(cart: Cart) -> Decimal:
        return subtotal(cart.items)

    @staticmethod
    def total_items(cart: Cart) -> int:
        return sum(item.quantity for item in cart.items)

    @staticmethod
    def booking_of(item: CartItem) -> Optional[BookingData]:
        if not item.booking_date or not item.booking_time:
            return None
        barber = BarberRef(id=item.barber_id, name=item.barber_name) if item.barber_id is not None else None
        return BookingData(date=item.booking_date, time=item.booking_time, barber=barber)

    @classmethod
    def to_line(cls, item: CartItem) -> CartLineResponse:
        return CartLineResponse(
            type=LineType(item.item_type),
            id=item.catalog_id,
            itemKey=item.item_key,
            name=item.name,
            price=item.price,
            original_price=item.original_price,
            quantity=item.quantity,
            image_url=item.image_url,
            stock=item.stock,
            bookingData=cls.booking_of(item),
            lineTotal=float(line_total(item.price, item.quantity)),
        )

    @classmethod
    def to_response(cls, cart: Cart) -> CartResponse:
        return CartResponse(
            cartId=cart.public_id,
            items=[cls.to_line(item) for item in cart.items],
            subtotal=float(cls.subtotal(cart)),
            totalItems=cls.total_items(cart),
        )
