"""
Cart models. Carts used to live in the browser's localStorage; they are kept
server-side so checkout can re-price and re-validate them.
"""

import uuid

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_public_id():
    """Generate a unique public ID the client keeps as its cart handle"""
    return str(uuid.uuid4())


class Cart(Base):
    """A customer's cart, addressed by an unguessable public id"""

    __tablename__ = "carts"

    id = Column(Integer, primary_key=True, index=True)
    public_id = Column(String(36), unique=True, nullable=False, index=True, default=generate_public_id)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    items = relationship(
        "CartItem",
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartItem.position",
    )


class CartItem(Base):
    """One line in a cart: a service, product or offer with quantity"""

    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True, index=True)
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)

    item_type = Column(String(20), nullable=False)  # service, product, offer
    catalog_id = Column(String(64), nullable=False)
    # "{id}-{date}-{time}-{barber|any}" for booked lines, str(id) otherwise
    item_key = Column(String(120), nullable=False)

    name = Column(String(255), nullable=False)
    price = Column(Float, nullable=False, default=0)
    original_price = Column(Float, nullable=True)
    quantity = Column(Integer, nullable=False, default=1)
    image_url = Column(String(500), nullable=True)
    stock = Column(Integer, nullable=True)  # Snapshot of declared stock, products only

    # Booking data for services and offers
    booking_date = Column(String(10), nullable=True)
    booking_time = Column(String(5), nullable=True)
    barber_id = Column(String(64), nullable=True)
    barber_name = Column(String(255), nullable=True)

    created_at = Column(DateTime, server_default=func.now())

    cart = relationship("Cart", back_populates="items")
