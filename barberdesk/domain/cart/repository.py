"""Cart repository - Database operations for carts"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Cart, CartItem


class CartRepository:
    """Repository for cart database operations"""

    @staticmethod
    def get_cart_by_public_id(db: Session, public_id: str) -> Optional[Cart]:
        return db.query(Cart).filter(Cart.public_id == public_id).first()

    @staticmethod
    def create_cart(db: Session, public_id: Optional[str] = None) -> Cart:
        cart = Cart(public_id=public_id) if public_id else Cart()
        db.add(cart)
        db.commit()
        db.refresh(cart)
        return cart

    @staticmethod
    def find_item(cart: Cart, item_type: str, item_key: str) -> Optional[CartItem]:
        for item in cart.items:
            if item.item_type == item_type and item.item_key == item_key:
                return item
        return None

    @staticmethod
    def add_item(db: Session, cart: Cart, **item_data) -> CartItem:
        position = max((i.position for i in cart.items), default=-1) + 1
        item = CartItem(position=position, **item_data)
        cart.items.append(item)
        db.commit()
        db.refresh(cart)
        return item

    @staticmethod
    def set_quantity(db: Session, cart: Cart, item: CartItem, quantity: int) -> Cart:
        item.quantity = quantity
        db.commit()
        db.refresh(cart)
        return cart

    @staticmethod
    def delete_item(db: Session, cart: Cart, item: CartItem) -> Cart:
        cart.items.remove(item)
        db.commit()
        db.refresh(cart)
        return cart

    @staticmethod
    def clear_cart(db: Session, cart: Cart) -> Cart:
        cart.items.clear()
        db.commit()
        db.refresh(cart)
        return cart
